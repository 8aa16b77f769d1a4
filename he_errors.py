# he_errors.py - Error families for the encrypted calculator

from enum import Enum


class CalculatorError(Exception):
    """Base exception for all calculator errors (never carries key material)"""

    def __init__(self, message, code="HE_INTERNAL_ERROR", details=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code}] {self.message}"

    def to_dict(self):
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# --- Fatal: configuration ---
class ConfigError(CalculatorError):
    """Static parameter/configuration defect. Terminates the program."""


class IncompatibleParameters(ConfigError):
    def __init__(self, field, reason):
        super().__init__(
            f"Incompatible encryption parameters ({field}): {reason}",
            code="HE_CONFIG_INCOMPATIBLE_PARAMETERS",
            details={"field": field},
        )
        self.field = field
        self.reason = reason


class UnknownOperation(ConfigError):
    def __init__(self, tag):
        super().__init__(
            f"Unknown operation tag: {tag!r}",
            code="HE_CONFIG_UNKNOWN_OPERATION",
            details={"tag": str(tag)},
        )


# --- Recoverable: per iteration ---
class OpErrorKind(Enum):
    EMPTY_INPUT = "empty_input"
    EVALUATION_FAILED = "evaluation_failed"
    VALUE_OUT_OF_RANGE = "value_out_of_range"


class OpError(CalculatorError):
    """Aborts the current computation only; the loop may prompt again."""

    kind = OpErrorKind.EVALUATION_FAILED

    def __init__(self, message, details=None):
        super().__init__(
            message,
            code=f"HE_OP_{self.kind.name}",
            details=details,
        )


class EmptyInput(OpError):
    kind = OpErrorKind.EMPTY_INPUT

    def __init__(self):
        super().__init__("At least one input value is required")


class EvaluationFailed(OpError):
    kind = OpErrorKind.EVALUATION_FAILED


class NoiseBudgetExhausted(EvaluationFailed):
    def __init__(self, operation, remaining_bits):
        super().__init__(
            f"Noise budget exhausted during {operation} "
            f"({remaining_bits:.1f} bits left); the result would not decrypt correctly",
            details={"operation": operation, "remaining_bits": remaining_bits},
        )
        self.remaining_bits = remaining_bits


class ValueOutOfRange(OpError):
    kind = OpErrorKind.VALUE_OUT_OF_RANGE

    def __init__(self, value, low, high):
        super().__init__(
            f"Value {value} is outside the plaintext range [{low}, {high}]",
            details={"low": low, "high": high},
        )
        self.value = value


# --- Display only ---
class DecodeError(CalculatorError):
    """Exporting a ciphertext for display failed. Never blocks decryption."""

    def __init__(self, message, details=None):
        super().__init__(message, code="HE_EXPORT_FAILED", details=details)
