"""Payload builder: serialized data paired with its format."""

from __future__ import annotations

from typing import Tuple, Union

from uprotokit.model import UPayloadFormat

Serialized = Tuple[bytes, UPayloadFormat]


class PayloadMoved(RuntimeError):
    """Raised when a payload is accessed after it has been moved out."""


class Payload:
    """Pre-serialized payload data and its format, ready to embed in a message.

    ``data`` may be bytes-like or a string (encoded as UTF-8). Once
    :meth:`build_move` has been called the payload can no longer be used.
    """

    def __init__(
        self, data: Union[bytes, bytearray, memoryview, str], format: int
    ) -> None:
        try:
            payload_format = UPayloadFormat(format)
        except ValueError:
            raise ValueError("Invalid payload format") from None
        if isinstance(data, str):
            raw = data.encode("utf-8")
        elif isinstance(data, (bytes, bytearray, memoryview)):
            raw = bytes(data)
        else:
            raise TypeError(f"Unsupported payload data type: {type(data).__name__}")
        self._payload: Serialized = (raw, payload_format)
        self._moved = False

    def build_copy(self) -> Serialized:
        """Return the data and format without giving them up."""
        if self._moved:
            raise PayloadMoved("Payload has been already moved")
        return self._payload

    def build_move(self) -> Serialized:
        """Return the data and format, leaving this payload unusable."""
        if self._moved:
            raise PayloadMoved("Payload has been already moved")
        self._moved = True
        payload, self._payload = self._payload, (b"", self._payload[1])
        return payload