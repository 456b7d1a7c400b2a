"""Core data types: URIs, identifiers, attributes, messages and status codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

# Bit layout of a version 7 UUID held as two 64-bit halves.
UUID_TIMESTAMP_SHIFT = 16
UUID_TIMESTAMP_MASK = 0xFFFF_FFFF_FFFF
UUID_VERSION_SHIFT = 12
UUID_VERSION_MASK = 0xF
UUID_VERSION_7 = 7
UUID_RANDOM_A_MASK = 0xFFF
UUID_VARIANT_SHIFT = 62
UUID_VARIANT_MASK = 0x3
UUID_VARIANT_RFC4122 = 0b10
UUID_RANDOM_B_MASK = 0x3FFF_FFFF_FFFF_FFFF
UUID_BYTE_SIZE = 16
MASK_64_BITS = 0xFFFF_FFFF_FFFF_FFFF


class UPriority(IntEnum):
    """Message priority classes."""

    UPRIORITY_UNSPECIFIED = 0
    UPRIORITY_CS0 = 1
    UPRIORITY_CS1 = 2
    UPRIORITY_CS2 = 3
    UPRIORITY_CS3 = 4
    UPRIORITY_CS4 = 5
    UPRIORITY_CS5 = 6
    UPRIORITY_CS6 = 7


class UPayloadFormat(IntEnum):
    """Encodings a message payload may be in."""

    UPAYLOAD_FORMAT_UNSPECIFIED = 0
    UPAYLOAD_FORMAT_PROTOBUF_WRAPPED_IN_ANY = 1
    UPAYLOAD_FORMAT_PROTOBUF = 2
    UPAYLOAD_FORMAT_JSON = 3
    UPAYLOAD_FORMAT_SOMEIP = 4
    UPAYLOAD_FORMAT_SOMEIP_TLV = 5
    UPAYLOAD_FORMAT_RAW = 6
    UPAYLOAD_FORMAT_TEXT = 7
    UPAYLOAD_FORMAT_SHM = 8


class UMessageType(IntEnum):
    """Kinds of message."""

    UMESSAGE_TYPE_UNSPECIFIED = 0
    UMESSAGE_TYPE_PUBLISH = 1
    UMESSAGE_TYPE_REQUEST = 2
    UMESSAGE_TYPE_RESPONSE = 3
    UMESSAGE_TYPE_NOTIFICATION = 4


class UCode(IntEnum):
    """Status codes."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


@dataclass(frozen=True)
class UUri:
    """Address of an entity or one of its resources."""

    authority_name: str = ""
    ue_id: int = 0
    ue_version_major: int = 0
    resource_id: int = 0


@dataclass(frozen=True)
class UUID:
    """A 128-bit identifier held as most and least significant halves."""

    msb: int = 0
    lsb: int = 0


@dataclass
class UAttributes:
    """Metadata carried alongside a message payload."""

    id: Optional[UUID] = None
    type: UMessageType = UMessageType.UMESSAGE_TYPE_UNSPECIFIED
    source: Optional[UUri] = None
    sink: Optional[UUri] = None
    priority: UPriority = UPriority.UPRIORITY_UNSPECIFIED
    ttl: Optional[int] = None
    permission_level: Optional[int] = None
    commstatus: Optional[UCode] = None
    reqid: Optional[UUID] = None
    token: Optional[str] = None
    traceparent: Optional[str] = None
    payload_format: UPayloadFormat = UPayloadFormat.UPAYLOAD_FORMAT_UNSPECIFIED


@dataclass
class UMessage:
    """A message: attributes and an optional payload."""

    attributes: UAttributes = field(default_factory=UAttributes)
    payload: Optional[bytes] = None


@dataclass
class UStatus:
    """Outcome of an operation: a code and an optional message."""

    code: UCode = UCode.OK
    message: str = ""