"""Text and byte encodings of UUIDs, and UUID validity checks."""

from __future__ import annotations

import string
import time
from typing import Optional, Tuple

from uprotokit.model import (
    UUID,
    UUID_BYTE_SIZE,
    UUID_RANDOM_A_MASK,
    UUID_RANDOM_B_MASK,
    UUID_TIMESTAMP_MASK,
    UUID_TIMESTAMP_SHIFT,
    UUID_VARIANT_MASK,
    UUID_VARIANT_RFC4122,
    UUID_VARIANT_SHIFT,
    UUID_VERSION_7,
    UUID_VERSION_MASK,
    UUID_VERSION_SHIFT,
)

_RANDOM_B_SHIFT = 48
_MASK_14_BITS = 0x3FFF
_MASK_16_BITS = 0xFFFF
_MASK_32_BITS = 0xFFFF_FFFF
_HEX_DIGITS = frozenset(string.hexdigits)
_DASH_POSITIONS = (8, 13, 18, 23)
_FORMAT_ERROR = "Invalid UUID string format"


class InvalidUuid(ValueError):
    """Raised when a value cannot be read as, or is not, a valid UUID."""


def uuid_to_string(uuid: UUID) -> str:
    """Format a UUID in the usual 8-4-4-4-12 hexadecimal form."""
    unix_ts_ms = (uuid.msb >> UUID_TIMESTAMP_SHIFT) & UUID_TIMESTAMP_MASK
    version = (uuid.msb >> UUID_VERSION_SHIFT) & UUID_VERSION_MASK
    rand_a = uuid.msb & UUID_RANDOM_A_MASK
    variant = (uuid.lsb >> UUID_VARIANT_SHIFT) & UUID_VARIANT_MASK
    rand_b = uuid.lsb & UUID_RANDOM_B_MASK

    return "-".join(
        (
            f"{(unix_ts_ms >> 16) & _MASK_32_BITS:08x}",
            f"{unix_ts_ms & _MASK_16_BITS:04x}",
            f"{(version << UUID_VERSION_SHIFT) | rand_a:04x}",
            f"{(variant << 14) | ((rand_b >> _RANDOM_B_SHIFT) & _MASK_14_BITS):04x}",
            f"{rand_b & UUID_TIMESTAMP_MASK:012x}",
        )
    )


def _hex(segment: str) -> int:
    if not segment or not _HEX_DIGITS.issuperset(segment):
        raise InvalidUuid(_FORMAT_ERROR)
    return int(segment, 16)


def uuid_from_string(text: str) -> UUID:
    """Parse a UUID from its 8-4-4-4-12 hexadecimal form."""
    if len(text) != 36 or any(text[pos] != "-" for pos in _DASH_POSITIONS):
        raise InvalidUuid(_FORMAT_ERROR)

    unix_ts_ms = (_hex(text[0:8]) << 16) | _hex(text[9:13])

    msb_low = _hex(text[14:18])
    version = (msb_low >> 12) & UUID_VERSION_MASK
    rand_a = msb_low & UUID_RANDOM_A_MASK

    var_randb = _hex(text[19:23])
    variant = (var_randb >> 14) & UUID_VARIANT_MASK
    rand_b = ((var_randb & _MASK_14_BITS) << _RANDOM_B_SHIFT) | _hex(text[24:])

    msb = (unix_ts_ms << UUID_TIMESTAMP_SHIFT) | (version << UUID_VERSION_SHIFT) | rand_a
    lsb = (variant << UUID_VARIANT_SHIFT) | rand_b
    return UUID(msb=msb, lsb=lsb)


def uuid_to_bytes(uuid: UUID) -> bytes:
    """Encode a UUID as 16 big-endian bytes, most significant half first."""
    return uuid.msb.to_bytes(8, "big") + uuid.lsb.to_bytes(8, "big")


def uuid_from_bytes(data: bytes) -> UUID:
    """Decode a UUID from 16 big-endian bytes."""
    if len(data) != UUID_BYTE_SIZE:
        raise InvalidUuid("Invalid UUID byte array size")
    raw = bytes(data)
    return UUID(msb=int.from_bytes(raw[:8], "big"), lsb=int.from_bytes(raw[8:], "big"))


def is_uuid(uuid: UUID) -> Tuple[bool, Optional[str]]:
    """Check a UUID's version, variant and timestamp.

    Returns ``(True, None)`` when valid, otherwise ``(False, reason)``.
    """
    if (uuid.msb >> UUID_VERSION_SHIFT) & UUID_VERSION_MASK != UUID_VERSION_7:
        return False, "Invalid UUID version"
    if (uuid.lsb >> UUID_VARIANT_SHIFT) & UUID_VARIANT_MASK != UUID_VARIANT_RFC4122:
        return False, "Unsupported UUID variant"
    timestamp_ms = (uuid.msb >> UUID_TIMESTAMP_SHIFT) & UUID_TIMESTAMP_MASK
    if timestamp_ms > time.time_ns() // 1_000_000:
        return False, "UUID timestamp is from the future"
    return True, None