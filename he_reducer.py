# he_reducer.py - Encrypt an ordered list of integers and fold it homomorphically

import logging

from he_errors import EmptyInput, OpError
from he_session import Operation

logger = logging.getLogger(__name__)


def encrypt_values(session, values):
    """Encode and encrypt each value independently, keeping input order"""
    values = list(values)
    if not values:
        raise EmptyInput()
    encoder, encryptor = session.encoder, session.encryptor
    return [encryptor.encrypt(encoder.encode(v)) for v in values]


def fold(session, ciphertexts, op):
    """
    Left fold: ((c0 op c1) op c2) ...
    Order is part of the contract (subtraction, and noise growth for multiply).
    """
    if not ciphertexts:
        raise EmptyInput()

    acc = ciphertexts[0]
    for ct in ciphertexts[1:]:
        acc = session.evaluator.apply(op, acc, ct)
    return acc


def reduce(session, values, op):
    """Encrypt `values` and fold them under `op` into one ciphertext"""
    if not isinstance(op, Operation):
        op = Operation.parse(op)
    ciphertexts = encrypt_values(session, values)
    logger.info("Encrypted %d value(s), folding with %s", len(ciphertexts), op.value)
    return fold(session, ciphertexts, op)


def reduce_all(session, values):
    """
    Every operation over one set of encrypted inputs.
    Maps each Operation to its result ciphertext, or to the OpError it raised.
    """
    ciphertexts = encrypt_values(session, values)
    results = {}
    for op in Operation:
        try:
            results[op] = fold(session, ciphertexts, op)
        except OpError as e:
            logger.warning("%s failed: %s", op.value, e)
            results[op] = e
    return results
