# he_params.py - BFV parameter profile and context construction

import functools
import logging
from dataclasses import dataclass
from enum import Enum

from he_errors import IncompatibleParameters

logger = logging.getLogger(__name__)


class SecurityLevel(Enum):
    TC128 = 128
    TC192 = 192
    TC256 = 256


# Largest total coefficient modulus (bits) SEAL accepts per degree and level
MAX_COEFF_BITS = {
    SecurityLevel.TC128: {1024: 27, 2048: 54, 4096: 109, 8192: 218, 16384: 438, 32768: 881},
    SecurityLevel.TC192: {1024: 19, 2048: 37, 4096: 75, 8192: 152, 16384: 305, 32768: 611},
    SecurityLevel.TC256: {1024: 14, 2048: 29, 4096: 58, 8192: 118, 16384: 237, 32768: 476},
}

MAX_PRIME_BITS = 60


@functools.lru_cache(maxsize=None)
def initialize_runtime():
    """Load the TenSEAL runtime once. Everything else waits on this."""
    import tenseal as ts

    if not hasattr(ts.SCHEME_TYPE, "BFV"):
        raise RuntimeError("Installed TenSEAL build does not provide the BFV scheme")
    logger.info("TenSEAL runtime ready (version %s)", getattr(ts, "__version__", "unknown"))
    return ts


def _is_prime(n):
    """Deterministic Miller-Rabin for n < 2**64"""
    if n < 2:
        return False
    small = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37)
    for p in small:
        if n % p == 0:
            return n == p
    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1
    for a in small:
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def batching_prime(poly_modulus_degree, bit_size):
    """
    Largest prime of exactly `bit_size` bits with p = 1 (mod 2 * degree).
    Same choice as SEAL's PlainModulus.Batching; None if there is none.
    """
    factor = 2 * poly_modulus_degree
    candidate = (1 << bit_size) - factor + 1
    lower = 1 << (bit_size - 1)
    while candidate > lower:
        if _is_prime(candidate):
            return candidate
        candidate -= factor
    return None


@dataclass(frozen=True)
class ParameterProfile:
    """Fixed description of the BFV scheme and its numeric parameters"""

    scheme: str = "bfv"
    security_level: SecurityLevel = SecurityLevel.TC128
    poly_modulus_degree: int = 4096
    coeff_mod_bit_sizes: tuple = (36, 36, 37)
    plain_modulus_bit_size: int = 20

    def validate(self):
        """Check the profile without touching the library. Returns the plain modulus."""
        if self.scheme != "bfv":
            raise IncompatibleParameters("scheme", f"only 'bfv' is supported, got {self.scheme!r}")

        n = self.poly_modulus_degree
        limits = MAX_COEFF_BITS[self.security_level]
        if n not in limits:
            raise IncompatibleParameters(
                "poly_modulus_degree",
                f"{n} is not a power of two between 1024 and 32768",
            )

        bits = tuple(self.coeff_mod_bit_sizes)
        if not bits:
            raise IncompatibleParameters("coeff_mod_bit_sizes", "at least one prime is required")
        for b in bits:
            if not 2 <= b <= MAX_PRIME_BITS:
                raise IncompatibleParameters(
                    "coeff_mod_bit_sizes", f"prime size {b} must be in [2, {MAX_PRIME_BITS}] bits"
                )
        if sum(bits) > limits[n]:
            raise IncompatibleParameters(
                "coeff_mod_bit_sizes",
                f"{sum(bits)} total bits exceed {limits[n]} allowed for degree {n} "
                f"at {self.security_level.name}",
            )

        t_bits = self.plain_modulus_bit_size
        if not 2 <= t_bits < min(bits):
            raise IncompatibleParameters(
                "plain_modulus_bit_size",
                f"{t_bits} bits must be at least 2 and below the smallest coefficient prime ({min(bits)} bits)",
            )
        plain_modulus = batching_prime(n, t_bits)
        if plain_modulus is None:
            raise IncompatibleParameters(
                "plain_modulus_bit_size",
                f"no {t_bits}-bit prime supports batching at degree {n}",
            )
        return plain_modulus

    @property
    def data_level_bits(self):
        """Coefficient bits left for data once the special (key) prime is set aside"""
        bits = tuple(self.coeff_mod_bit_sizes)
        return sum(bits[:-1]) if len(bits) > 1 else sum(bits)


DEFAULT_PROFILE = ParameterProfile()


@dataclass(frozen=True)
class Context:
    """A validated TenSEAL BFV context and the parameters behind it"""

    tenseal_context: object
    profile: ParameterProfile
    plain_modulus: int


def build(profile=DEFAULT_PROFILE):
    """
    Validate `profile` and create the library context.
    Raises IncompatibleParameters; never retried.
    """
    ts = initialize_runtime()
    plain_modulus = profile.validate()

    try:
        tenseal_context = ts.context(
            ts.SCHEME_TYPE.BFV,
            poly_modulus_degree=profile.poly_modulus_degree,
            plain_modulus=plain_modulus,
            coeff_mod_bit_sizes=list(profile.coeff_mod_bit_sizes),
        )
    except ValueError as e:
        raise IncompatibleParameters("coeff_mod_bit_sizes", str(e)) from e

    logger.info(
        "BFV context ready: n=%d, coeff bits=%s, t=%d",
        profile.poly_modulus_degree,
        list(profile.coeff_mod_bit_sizes),
        plain_modulus,
    )
    return Context(tenseal_context, profile, plain_modulus)
