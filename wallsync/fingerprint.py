"""
Content fingerprints for change detection.

Uses CRC32C (Castagnoli), the checksum Cloud Storage keeps for every
object, so a local file can be compared with its published copy without
downloading it.
"""

import base64

import google_crc32c


def fingerprint(data: bytes) -> int:
    """CRC32C of the data as an unsigned 32-bit integer."""
    return google_crc32c.value(data)


def decode_checksum(encoded: str | None) -> int | None:
    """
    Convert the bucket's base64, big-endian crc32c field to an integer.

    Returns:
        The checksum, or None when the field is missing.
    """
    if not encoded:
        return None
    return int.from_bytes(base64.b64decode(encoded), "big")


def encode_checksum(value: int) -> str:
    """Inverse of decode_checksum."""
    return base64.b64encode(value.to_bytes(4, "big")).decode("ascii")
