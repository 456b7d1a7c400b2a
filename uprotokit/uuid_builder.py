"""Builder for version 7 UUIDs."""

from __future__ import annotations

import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from uprotokit.model import (
    MASK_64_BITS,
    UUID,
    UUID_RANDOM_A_MASK,
    UUID_RANDOM_B_MASK,
    UUID_TIMESTAMP_SHIFT,
    UUID_VARIANT_RFC4122,
    UUID_VARIANT_SHIFT,
    UUID_VERSION_7,
    UUID_VERSION_SHIFT,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


class UuidBuilder:
    """Builds UUIDs from the current time and random bits.

    A builder created with ``testing=True`` accepts replacement time and
    random sources so that built values are deterministic.
    """

    def __init__(self, testing: bool = False) -> None:
        self._testing = testing
        self._time_source: Optional[Callable[[], datetime]] = None
        self._random_source: Optional[Callable[[], int]] = None

    def with_time_source(self, time_source: Callable[[], datetime]) -> "UuidBuilder":
        """Use ``time_source`` instead of the system clock (test builders only)."""
        if not self._testing:
            raise RuntimeError("Cannot set time source on non-test UuidBuilder")
        self._time_source = time_source
        return self

    def with_random_source(self, random_source: Callable[[], int]) -> "UuidBuilder":
        """Use ``random_source`` instead of true randomness (test builders only)."""
        if not self._testing:
            raise RuntimeError("Cannot set random source on non-test UuidBuilder")
        self._random_source = random_source
        return self

    def build(self) -> UUID:
        """Create a new UUID from the builder's current sources."""
        msb = (self._now_ms() << UUID_TIMESTAMP_SHIFT) & MASK_64_BITS
        msb |= UUID_VERSION_7 << UUID_VERSION_SHIFT
        msb |= self._random(UUID_RANDOM_A_MASK) & UUID_RANDOM_A_MASK

        lsb = self._random(UUID_RANDOM_B_MASK) & UUID_RANDOM_B_MASK
        lsb |= UUID_VARIANT_RFC4122 << UUID_VARIANT_SHIFT
        return UUID(msb=msb, lsb=lsb)

    def _now_ms(self) -> int:
        if self._time_source is None:
            return time.time_ns() // 1_000_000
        now = self._time_source()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return (now - _EPOCH) // _ONE_MS

    def _random(self, upper: int) -> int:
        if self._random_source is not None:
            return self._random_source()
        return secrets.randbelow(upper + 1)