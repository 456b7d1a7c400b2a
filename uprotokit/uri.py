"""UUri validation and the compact text form of a UUri."""

from __future__ import annotations

import string
from typing import Optional, Tuple

from uprotokit.model import UUri

ValidationResult = Tuple[bool, Optional[str]]

_AUTHORITY_MAX_LENGTH = 128
_MAX_VERSION = 0xFF
_MAX_RESOURCE_ID = 0xFFFF
_MAX_UINT32 = 0xFFFF_FFFF
_WILDCARD_ENTITY_ID = 0xFFFF
_WILDCARD_ENTITY_INSTANCE = 0xFFFF_0000
_WILDCARD_VERSION = 0xFF
_WILDCARD_RESOURCE_ID = 0xFFFF
_MIN_TOPIC_ID = 0x8000
_MAX_TOPIC_ID = 0xFFFE
_MAX_METHOD_ID = 0x7FFF

_SCHEMA_PREFIX = "up://"
_REMOTE_PREFIX = "//"
_SEPARATOR = "/"
_HEX_DIGITS = frozenset(string.hexdigits)

_EMPTY = "URI is empty"
_AUTHORITY_TOO_LONG = "Authority name exceeds the maximum length"
_VERSION_OVERFLOW = "uE major version exceeds the maximum of 0xFF"
_RESOURCE_OVERFLOW = "Resource ID exceeds the maximum of 0xFFFF"
_DISALLOWED_WILDCARD = "URI uses a wildcard where none is allowed"
_BAD_RESOURCE_ID = "Resource ID is not valid for this kind of URI"


class InvalidUUri(ValueError):
    """Raised when a UUri does not pass validation."""


def is_local(uri: UUri) -> bool:
    """Whether the URI has no authority name, i.e. refers to the local host."""
    return not uri.authority_name


def _is_empty(uri: UUri) -> bool:
    return (
        not uri.authority_name
        and uri.ue_id == 0
        and uri.ue_version_major == 0
        and uri.resource_id == 0
    )


def _uses_wildcards(uri: UUri) -> bool:
    return (
        "*" in uri.authority_name
        or (uri.ue_id & 0xFFFF) == _WILDCARD_ENTITY_ID
        or (uri.ue_id & 0xFFFF_0000) == _WILDCARD_ENTITY_INSTANCE
        or uri.ue_version_major == _WILDCARD_VERSION
        or uri.resource_id == _WILDCARD_RESOURCE_ID
    )


def _check_ranges(uri: UUri) -> Optional[str]:
    if len(uri.authority_name) > _AUTHORITY_MAX_LENGTH:
        return _AUTHORITY_TOO_LONG
    if not 0 <= uri.ue_version_major <= _MAX_VERSION:
        return _VERSION_OVERFLOW
    if not 0 <= uri.resource_id <= _MAX_RESOURCE_ID:
        return _RESOURCE_OVERFLOW
    return None


def _check_concrete(uri: UUri) -> Optional[str]:
    reason = _check_ranges(uri)
    if reason is not None:
        return reason
    if _uses_wildcards(uri):
        return _DISALLOWED_WILDCARD
    return None


def _result(reason: Optional[str]) -> ValidationResult:
    return (reason is None, reason)


def is_valid_filter(uri: UUri) -> ValidationResult:
    """The most permissive check: any non-empty URI within range, wildcards allowed."""
    if _is_empty(uri):
        return _result(_EMPTY)
    return _result(_check_ranges(uri))


def is_valid_publish_topic(uri: UUri) -> ValidationResult:
    """A concrete URI whose resource ID is in the topic range."""
    reason = _check_concrete(uri)
    if reason is None and not _MIN_TOPIC_ID <= uri.resource_id <= _MAX_TOPIC_ID:
        reason = _BAD_RESOURCE_ID
    return _result(reason)


def is_valid_notification_source(uri: UUri) -> ValidationResult:
    """A notification source follows the same rules as a publish topic."""
    return is_valid_publish_topic(uri)


def is_valid_notification_sink(uri: UUri) -> ValidationResult:
    """A concrete URI with resource ID 0."""
    reason = _check_concrete(uri)
    if reason is None and uri.resource_id != 0:
        reason = _BAD_RESOURCE_ID
    return _result(reason)


def is_valid_rpc_method(uri: UUri) -> ValidationResult:
    """A concrete URI whose resource ID is in the method range 1..0x7FFF."""
    reason = _check_concrete(uri)
    if reason is None and not 1 <= uri.resource_id <= _MAX_METHOD_ID:
        reason = _BAD_RESOURCE_ID
    return _result(reason)


def is_valid_rpc_response(uri: UUri) -> ValidationResult:
    """A concrete URI with resource ID 0, where RPC responses are returned."""
    return is_valid_notification_sink(uri)


def serialize_uri(uri: UUri) -> str:
    """Format a URI as ``[//authority]/UE_ID/VERSION/RESOURCE`` in upper-case hex."""
    valid, reason = is_valid_filter(uri)
    if not valid:
        raise InvalidUUri(f"Invalid UUri For Serialization | {reason}")
    prefix = "" if is_local(uri) else f"{_REMOTE_PREFIX}{uri.authority_name}"
    return f"{prefix}/{uri.ue_id:X}/{uri.ue_version_major:X}/{uri.resource_id:X}"


def _split_segment(text: str) -> Tuple[str, str]:
    segment, sep, rest = text.partition(_SEPARATOR)
    if not sep:
        raise ValueError(
            f"Could not extract segment from '{text}' with separator '{_SEPARATOR}'"
        )
    return segment, rest


def _segment_to_uint32(segment: str) -> int:
    if not segment or not _HEX_DIGITS.issuperset(segment):
        raise ValueError(f"Failed to convert segment to number: {segment}")
    value = int(segment, 16)
    if value > _MAX_UINT32:
        raise ValueError(f"Failed to convert segment to number: {segment}")
    return value


def deserialize_uri(text: str) -> UUri:
    """Parse a URI from its text form; ``up://``, ``//`` and ``/`` starts are accepted."""
    if not text:
        raise ValueError("Cannot deserialize empty string")

    authority = ""
    if text.startswith(_SCHEMA_PREFIX):
        authority, rest = _split_segment(text[len(_SCHEMA_PREFIX):])
    elif text.startswith(_REMOTE_PREFIX):
        authority, rest = _split_segment(text[len(_REMOTE_PREFIX):])
    elif text.startswith(_SEPARATOR):
        rest = text[len(_SEPARATOR):]
    else:
        raise ValueError(f"Did not find expected URI start in string: '{text}'")

    ue_id_text, rest = _split_segment(rest)
    version_text, resource_text = _split_segment(rest)

    uri = UUri(
        authority_name=authority,
        ue_id=_segment_to_uint32(ue_id_text),
        ue_version_major=_segment_to_uint32(version_text),
        resource_id=_segment_to_uint32(resource_text),
    )

    valid, reason = is_valid_filter(uri)
    if not valid:
        raise InvalidUUri(f"Invalid UUri For DeSerialization | {reason}")
    return uri