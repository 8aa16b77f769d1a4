# he_session.py - Key material and the encoder/evaluator/encryptor/decryptor tools

import logging
import math
from dataclasses import dataclass
from enum import Enum

from he_errors import EvaluationFailed, NoiseBudgetExhausted, UnknownOperation, ValueOutOfRange
from he_params import initialize_runtime

logger = logging.getLogger(__name__)

# Noise bookkeeping (bits). TenSEAL does not report SEAL's invariant noise
# budget, so the evaluator tracks a conservative estimate per ciphertext.
# A budget of b bits stands for a noise magnitude of 2**-b; additions add
# magnitudes, multiplications subtract a fixed cost.
FRESH_NOISE_BITS = 10
MULTIPLY_MARGIN_BITS = 2


class Operation(Enum):
    ADD = "add"
    SUB = "sub"
    MULTIPLY = "multiply"

    @classmethod
    def parse(cls, tag):
        try:
            return cls(str(tag).strip().lower())
        except ValueError:
            raise UnknownOperation(tag) from None

    def apply_plain(self, a, b):
        """Same operation on plain integers (no modular reduction)"""
        if self is Operation.ADD:
            return a + b
        if self is Operation.SUB:
            return a - b
        return a * b


@dataclass
class CipherText:
    vector: object
    noise_budget: float


class Encoder:
    """Maps a scalar onto a length-1 batch vector and back"""

    def __init__(self, context):
        self.plain_modulus = context.plain_modulus
        self.high = (self.plain_modulus - 1) // 2
        self.low = -self.high

    def encode(self, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected an int, got {type(value).__name__}")
        if not self.low <= value <= self.high:
            raise ValueOutOfRange(value, self.low, self.high)
        return [value]

    def decode(self, plain):
        """Centered representatives modulo the plaintext modulus"""
        t, half = self.plain_modulus, self.high
        return [((int(v) + half) % t) - half for v in plain]


class Encryptor:
    """Encrypts under the public key only"""

    def __init__(self, context, public_context):
        self._ts = initialize_runtime()
        self._public_context = public_context
        self.fresh_budget = fresh_noise_budget(context)

    def encrypt(self, plain):
        vector = self._ts.bfv_vector(self._public_context, plain)
        return CipherText(vector, self.fresh_budget)


class Decryptor:
    def __init__(self, secret_key):
        self._secret_key = secret_key

    def decrypt(self, ciphertext):
        return ciphertext.vector.decrypt(self._secret_key)


class Evaluator:
    """Ciphertext-ciphertext arithmetic with noise tracking"""

    def __init__(self, context):
        t_bits = context.plain_modulus.bit_length()
        degree_bits = math.log2(context.profile.poly_modulus_degree)
        self.multiply_cost = t_bits + degree_bits + MULTIPLY_MARGIN_BITS

    def apply(self, op, a, b):
        """Single dispatch point for every homomorphic operation"""
        budget = self.remaining_budget(op, a.noise_budget, b.noise_budget)
        if budget <= 0:
            raise NoiseBudgetExhausted(op.value, budget)

        try:
            if op is Operation.ADD:
                vector = a.vector + b.vector
            elif op is Operation.SUB:
                vector = a.vector - b.vector
            else:
                vector = a.vector * b.vector
        except (ValueError, RuntimeError, TypeError) as e:
            raise EvaluationFailed(f"Homomorphic {op.value} failed: {e}") from e

        logger.debug("%s done, ~%.1f bits of noise budget left", op.value, budget)
        return CipherText(vector, budget)

    def remaining_budget(self, op, a_bits, b_bits):
        if op is Operation.MULTIPLY:
            return min(a_bits, b_bits) - self.multiply_cost
        return -math.log2(2.0 ** -a_bits + 2.0 ** -b_bits)

    def add(self, a, b):
        return self.apply(Operation.ADD, a, b)

    def sub(self, a, b):
        return self.apply(Operation.SUB, a, b)

    def multiply(self, a, b):
        return self.apply(Operation.MULTIPLY, a, b)


def fresh_noise_budget(context):
    """Estimated budget of a fresh encryption under `context`"""
    t_bits = context.plain_modulus.bit_length()
    return context.profile.data_level_bits - t_bits - FRESH_NOISE_BITS


@dataclass
class Session:
    context: object
    encoder: Encoder
    evaluator: Evaluator
    encryptor: Encryptor
    decryptor: Decryptor


def derive(context):
    """
    Build the key material and tools for one run.
    The public context is copied from the secret one, so it always follows key generation.
    """
    secret_context = context.tenseal_context
    secret_context.generate_relin_keys()

    public_context = secret_context.copy()
    public_context.make_context_public()

    session = Session(
        context=context,
        encoder=Encoder(context),
        evaluator=Evaluator(context),
        encryptor=Encryptor(context, public_context),
        decryptor=Decryptor(secret_context.secret_key()),
    )
    logger.info("Session derived (fresh budget ~%.1f bits)", session.encryptor.fresh_budget)
    return session
