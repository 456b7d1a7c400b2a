"""Abstract transport: sending messages and registering listeners."""

from __future__ import annotations

import abc
import dataclasses
import threading
from typing import Callable, Optional, Union

from uprotokit.model import UCode, UMessage, UStatus, UUri
from uprotokit.uri import InvalidUUri, is_valid_filter, is_valid_rpc_response

ListenCallback = Callable[[UMessage], None]


class NullTransport(ValueError):
    """Raised when a transport is required but none was given."""


class _ListenerConnection:
    """Callable end of a listener registration.

    Calling it invokes the registered callback for as long as the
    registration is connected; afterwards calls are ignored.
    """

    def __init__(self, callback: ListenCallback) -> None:
        self._callback = callback
        self._lock = threading.Lock()
        self._connected = True

    def __call__(self, message: UMessage) -> None:
        with self._lock:
            callback = self._callback if self._connected else None
        if callback is not None:
            callback(message)

    def __bool__(self) -> bool:
        with self._lock:
            return self._connected

    def _disconnect(self) -> bool:
        """Break the connection; returns whether it was connected before."""
        with self._lock:
            was_connected = self._connected
            self._connected = False
            self._callback = None
        return was_connected


class ListenHandle:
    """Owner's end of a listener registration.

    Resetting the handle, leaving its ``with`` block or dropping it
    disconnects the listener. It is true while still connected.
    """

    def __init__(
        self,
        listener: _ListenerConnection,
        on_disconnect: Optional[Callable[[_ListenerConnection], None]] = None,
    ) -> None:
        self._listener = listener
        self._on_disconnect = on_disconnect

    def reset(self) -> None:
        """Disconnect the listener; further calls do nothing."""
        listener = self._listener
        if listener is None:
            return
        self._listener = None
        on_disconnect, self._on_disconnect = self._on_disconnect, None
        if listener._disconnect() and on_disconnect is not None:
            on_disconnect(listener)

    def __bool__(self) -> bool:
        return self._listener is not None and bool(self._listener)

    def __enter__(self) -> "ListenHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.reset()

    def __del__(self) -> None:
        try:
            self.reset()
        except Exception:
            pass


def _require_valid_filter(uri: UUri, label: str) -> None:
    valid, reason = is_valid_filter(uri)
    if not valid:
        raise InvalidUUri(f"{label} filter is not a valid URI | {reason}")


class UTransport(abc.ABC):
    """Base class for transports.

    Implementations provide :meth:`_send_impl` and
    :meth:`_register_listener_impl`, and may override
    :meth:`_cleanup_listener`. Implementations must be thread-safe.
    """

    def __init__(self, entity_uri: UUri) -> None:
        if entity_uri is None or entity_uri == UUri():
            raise InvalidUUri("Transport entity URI must not be empty")
        valid, reason = is_valid_rpc_response(entity_uri)
        if not valid:
            raise InvalidUUri(f"Transport entity URI is not valid | {reason}")
        self._entity_uri = entity_uri

    @property
    def entity_uri(self) -> UUri:
        """The URI of the entity that owns this transport."""
        return self._entity_uri

    def send(self, message: UMessage) -> UStatus:
        """Send a message and return the transport's status for it."""
        return self._send_impl(message)

    def register_listener(
        self,
        listener: ListenCallback,
        source_filter: UUri,
        sink_filter: Union[UUri, int, None] = None,
    ) -> Union[ListenHandle, UStatus]:
        """Register ``listener`` for messages matching the filters.

        ``sink_filter`` may be a URI, a resource ID (combined with
        :attr:`entity_uri` to form the sink filter) or ``None`` for
        topic-like pub/sub listening. Returns a connected
        :class:`ListenHandle`, or the failing :class:`UStatus` when the
        transport refuses the registration.
        """
        if isinstance(sink_filter, int) and not isinstance(sink_filter, bool):
            sink_filter = dataclasses.replace(
                self._entity_uri, resource_id=sink_filter
            )

        _require_valid_filter(source_filter, "Source")
        if sink_filter is not None:
            _require_valid_filter(sink_filter, "Sink")

        connection = _ListenerConnection(listener)
        status = self._register_listener_impl(connection, source_filter, sink_filter)
        if status.code != UCode.OK:
            connection._disconnect()
            return status
        return ListenHandle(connection, self._cleanup_listener)

    @abc.abstractmethod
    def _send_impl(self, message: UMessage) -> UStatus:
        """Send a message over the underlying transport."""

    @abc.abstractmethod
    def _register_listener_impl(
        self,
        listener: _ListenerConnection,
        source_filter: UUri,
        sink_filter: Optional[UUri],
    ) -> UStatus:
        """Register a connected listener with the underlying transport."""

    def _cleanup_listener(self, listener: _ListenerConnection) -> None:
        """Called when a listener is disconnected; does nothing by default."""