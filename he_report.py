# he_report.py - Decrypt/decode results and export ciphertexts for display

import base64
import logging
import lzma
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import zstandard

from he_errors import DecodeError

logger = logging.getLogger(__name__)


class CompressionMode(Enum):
    NONE = "none"
    ZLIB = "zlib"
    LZMA = "lzma"
    ZSTD = "zstd"


_COMPRESSORS = {
    CompressionMode.NONE: lambda data: data,
    CompressionMode.ZLIB: zlib.compress,
    CompressionMode.LZMA: lzma.compress,
    CompressionMode.ZSTD: lambda data: zstandard.ZstdCompressor().compress(data),
}


@dataclass
class Report:
    value: int
    blob: Optional[bytes] = None


# --- Helper Functions ---
def bytes_to_base64(data):
    return base64.b64encode(data).decode('utf-8')


def format_blob(blob, limit=64):
    """Base64 preview of an exported ciphertext, truncated to `limit` chars"""
    text = bytes_to_base64(blob)
    if limit and len(text) > limit:
        return f"{text[:limit]}... ({len(blob)} bytes)"
    return text


def export_ciphertext(ciphertext, compression=CompressionMode.ZLIB):
    """Serialized (optionally compressed) ciphertext bytes. Display only."""
    try:
        mode = CompressionMode(compression)
    except ValueError:
        raise DecodeError(
            f"Unsupported compression mode: {compression!r}",
            details={"compression": str(compression)},
        ) from None

    try:
        data = ciphertext.vector.serialize()
        return _COMPRESSORS[mode](data)
    except (ValueError, RuntimeError, zlib.error, lzma.LZMAError, zstandard.ZstdError) as e:
        raise DecodeError(f"Could not export ciphertext: {e}") from e


def decrypt_value(session, ciphertext):
    """Decrypt, decode and return the only used slot"""
    plain = session.decryptor.decrypt(ciphertext)
    return session.encoder.decode(plain)[0]


def report(session, ciphertext, compression=None):
    """
    Decrypted scalar plus, when `compression` is given, the exported blob.
    Export problems only drop the blob.
    """
    value = decrypt_value(session, ciphertext)

    blob = None
    if compression is not None:
        try:
            blob = export_ciphertext(ciphertext, compression)
        except DecodeError as e:
            logger.warning("Skipping encrypted display: %s", e)
    return Report(value, blob)
