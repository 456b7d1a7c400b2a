"""Fluent builder for publish, notification, request and response messages."""

from __future__ import annotations

import dataclasses
from datetime import timedelta
from typing import Optional, Union

from uprotokit.model import (
    UUID,
    UAttributes,
    UCode,
    UMessage,
    UMessageType,
    UPayloadFormat,
    UPriority,
    UUri,
)
from uprotokit.payload import Payload
from uprotokit.uri import (
    InvalidUUri,
    is_valid_notification_sink,
    is_valid_notification_source,
    is_valid_publish_topic,
    is_valid_rpc_method,
    is_valid_rpc_response,
)
from uprotokit.uuid_builder import UuidBuilder
from uprotokit.uuid_codec import InvalidUuid, is_uuid

Ttl = Union[int, timedelta]

_MAX_UINT32 = 0xFFFF_FFFF
_ONE_MS = timedelta(milliseconds=1)
_RPC_TYPES = (UMessageType.UMESSAGE_TYPE_REQUEST, UMessageType.UMESSAGE_TYPE_RESPONSE)


class UnexpectedFormat(ValueError):
    """Raised when a build's payload format does not match the expected one."""


def _ttl_ms(ttl: Ttl) -> int:
    if isinstance(ttl, timedelta):
        value = ttl // _ONE_MS
    else:
        value = int(ttl)
    if value <= 0 or value > _MAX_UINT32:
        raise ValueError("TTL value is out of range")
    return value


def _require_uri(check, uri: UUri, label: str) -> None:
    valid, reason = check(uri)
    if not valid:
        raise InvalidUUri(f"{label} URI is not a valid URI |  {reason}")


class UMessageBuilder:
    """Composes messages of a fixed type; reusable for repeated builds.

    Use the ``publish``, ``notification``, ``request``, ``response`` or
    ``response_to`` constructors, refine with the ``with_*`` methods, then
    call :meth:`build`.
    """

    def __init__(
        self,
        msg_type: UMessageType,
        source: UUri,
        sink: Optional[UUri] = None,
        request_id: Optional[UUID] = None,
    ) -> None:
        self._attributes = UAttributes(
            type=UMessageType(msg_type), source=source, sink=sink, reqid=request_id
        )
        self._expected_format: Optional[UPayloadFormat] = None
        self._uuid_builder = UuidBuilder()

    @staticmethod
    def publish(topic: UUri) -> "UMessageBuilder":
        """Builder for publish messages sent to ``topic``."""
        _require_uri(is_valid_publish_topic, topic, "Source")
        return UMessageBuilder(UMessageType.UMESSAGE_TYPE_PUBLISH, topic)

    @staticmethod
    def notification(source: UUri, sink: UUri) -> "UMessageBuilder":
        """Builder for notifications from ``source`` to ``sink``."""
        _require_uri(is_valid_notification_source, source, "Source")
        _require_uri(is_valid_notification_sink, sink, "Sink")
        return UMessageBuilder(UMessageType.UMESSAGE_TYPE_NOTIFICATION, source, sink)

    @staticmethod
    def request(
        method: UUri, source: UUri, priority: int, ttl: Ttl
    ) -> "UMessageBuilder":
        """Builder for RPC requests to ``method``, answered at ``source``."""
        _require_uri(is_valid_rpc_method, method, "Method")
        _require_uri(is_valid_rpc_response, source, "Source")
        _ttl_ms(ttl)
        builder = UMessageBuilder(UMessageType.UMESSAGE_TYPE_REQUEST, source, method)
        return builder.with_priority(priority).with_ttl(ttl)

    @staticmethod
    def response(
        sink: UUri, request_id: UUID, priority: int, method: UUri
    ) -> "UMessageBuilder":
        """Builder for RPC responses from ``method`` back to ``sink``."""
        _require_uri(is_valid_rpc_method, method, "Method")
        _require_uri(is_valid_rpc_response, sink, "Source")
        valid, reason = is_uuid(request_id)
        if not valid:
            raise InvalidUuid(f"Request id is not a valid UUid | {reason}")
        builder = UMessageBuilder(
            UMessageType.UMESSAGE_TYPE_RESPONSE, method, sink, request_id
        )
        return builder.with_priority(priority)

    @staticmethod
    def response_to(request: UMessage) -> "UMessageBuilder":
        """Builder for the response to a received request message."""
        attrs = request.attributes
        return UMessageBuilder.response(
            attrs.source or UUri(),
            attrs.id or UUID(),
            attrs.priority,
            attrs.sink or UUri(),
        )

    @property
    def attributes(self) -> UAttributes:
        """A copy of the attributes that built messages will carry."""
        return dataclasses.replace(self._attributes)

    def with_priority(self, priority: int) -> "UMessageBuilder":
        """Set the priority; requests and responses need at least CS4."""
        if not min(UPriority) <= priority <= max(UPriority):
            raise ValueError("Priority value is out of range")
        if (
            self._attributes.type in _RPC_TYPES
            and priority < UPriority.UPRIORITY_CS4
        ):
            raise ValueError(
                "Priority value is out of range, for req/resp should be > CS4"
            )
        self._attributes.priority = UPriority(priority)
        return self

    def with_ttl(self, ttl: Ttl) -> "UMessageBuilder":
        """Set the time to live, in milliseconds or as a timedelta."""
        self._attributes.ttl = _ttl_ms(ttl)
        return self

    def with_token(self, token: str) -> "UMessageBuilder":
        """Set the authorization token (requests only)."""
        if self._attributes.type != UMessageType.UMESSAGE_TYPE_REQUEST:
            raise RuntimeError("Token can only be set on a request message")
        self._attributes.token = token
        return self

    def with_permission_level(self, level: int) -> "UMessageBuilder":
        """Set the permission level (requests only)."""
        if self._attributes.type != UMessageType.UMESSAGE_TYPE_REQUEST:
            raise RuntimeError(
                "Permission level can only be set on a request message"
            )
        self._attributes.permission_level = level
        return self

    def with_comm_status(self, code: int) -> "UMessageBuilder":
        """Set the communication status (responses only); OK sets nothing."""
        if self._attributes.type != UMessageType.UMESSAGE_TYPE_RESPONSE:
            raise RuntimeError("CommStatus can only be set on a response message")
        try:
            ucode = UCode(code)
        except ValueError:
            raise ValueError(f"UCode is out of range{code}") from None
        if ucode != UCode.OK:
            self._attributes.commstatus = ucode
        return self

    def with_payload_format(self, format: int) -> "UMessageBuilder":
        """Require every build to carry a payload of this format."""
        if not min(UPayloadFormat) <= format <= max(UPayloadFormat):
            raise ValueError("Payload format value is out of range")
        payload_format = UPayloadFormat(format)
        self._attributes.payload_format = payload_format
        self._expected_format = payload_format
        return self

    def build(self, payload: Optional[Payload] = None) -> UMessage:
        """Create a message with a fresh id; the payload, if given, is moved in."""
        attributes = dataclasses.replace(
            self._attributes, id=self._uuid_builder.build()
        )
        if payload is None:
            if self._expected_format is not None:
                raise UnexpectedFormat(
                    "Tried to build with no payload when a payload format has "
                    "been set using with_payload_format()"
                )
            return UMessage(attributes=attributes)

        data, payload_format = payload.build_move()
        if (
            self._expected_format is not None
            and payload_format != self._expected_format
        ):
            raise UnexpectedFormat("Payload format does not match the expected format")
        attributes.payload_format = payload_format
        return UMessage(attributes=attributes, payload=data)