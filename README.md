# uprotokit

Tools for building, encoding and checking uProtocol messages in plain
Python. The package has no runtime dependencies.

## Modules

### `uprotokit.model`

This module holds the data types.

- `UUri` is a frozen dataclass with the fields `authority_name`, `ue_id`,
  `ue_version_major` and `resource_id`.
- `UUID` is a frozen dataclass with the fields `msb` and `lsb`.
- `UAttributes` holds a message's `id`, `type`, `source`, `sink`,
  `priority`, `ttl`, `permission_level`, `commstatus`, `reqid`, `token`,
  `traceparent` and `payload_format`.
- `UMessage` holds `attributes` and an optional `payload` in bytes.
- `UStatus` holds a `code` and a `message`.
- The integer enumerations are `UPriority`, `UPayloadFormat`,
  `UMessageType` and `UCode`.

### `uprotokit.uuid_builder`

`UuidBuilder` builds version 7 UUIDs. Each one is made from the current
time in milliseconds and random bits.

A builder created with `UuidBuilder(testing=True)` accepts two
replacement sources:

- `with_time_source(fn)`, where `fn` returns a `datetime`. A naive value
  is taken as UTC.
- `with_random_source(fn)`, where `fn` returns an `int`.

Calling either method on a builder that is not in testing mode raises
`RuntimeError`.

### `uprotokit.uuid_codec`

- `uuid_to_string(uuid)` and `uuid_from_string(text)` convert to and from
  the `8-4-4-4-12` hexadecimal form.
- `uuid_to_bytes(uuid)` and `uuid_from_bytes(data)` convert to and from
  16 big-endian bytes, with the most significant half first.
- `is_uuid(uuid)` returns `(True, None)` or `(False, reason)`. It checks
  that:
  - the version is 7;
  - the variant is `0b10`;
  - the timestamp is not in the future.

Malformed input raises `InvalidUuid`, which is a `ValueError`.

### `uprotokit.uri`

- `serialize_uri(uri)` produces `[//authority]/UE_ID/VERSION/RESOURCE`,
  with the numbers in upper-case hexadecimal.
- `deserialize_uri(text)` accepts a string that starts with `up://`, `//`
  or `/`.
- The validators each return `(valid, reason)`:
  - `is_valid_filter`
  - `is_valid_publish_topic`
  - `is_valid_notification_source`
  - `is_valid_notification_sink`
  - `is_valid_rpc_method`
  - `is_valid_rpc_response`
- `is_local(uri)` is true when the URI has no authority name.

A URI that fails validation raises `InvalidUUri`. Text that cannot be
parsed raises `ValueError`.

### `uprotokit.payload`

`Payload(data, format)` pairs bytes with a `UPayloadFormat`. A `str`
given as data is encoded as UTF-8.

- `build_copy()` returns `(data, format)` and leaves the payload usable.
- `build_move()` returns `(data, format)` once. After that, any further
  use raises `PayloadMoved`.

An unknown format raises `ValueError`.

### `uprotokit.message_builder`

`UMessageBuilder` has these constructors:

- `publish(topic)`
- `notification(source, sink)`
- `request(method, source, priority, ttl)`
- `response(sink, request_id, priority, method)`
- `response_to(request_message)`

The fluent setters are:

- `with_priority`
- `with_ttl`, which takes milliseconds or a `timedelta`
- `with_token`, for requests only
- `with_permission_level`, for requests only
- `with_comm_status`, for responses only
- `with_payload_format`

`build(payload=None)` creates a message with a fresh id. The builder can
be reused for further messages.

Errors are raised as follows:

| Cause | Exception |
|---|---|
| Invalid URI | `InvalidUUri` |
| Invalid request id | `InvalidUuid` |
| TTL, priority, code or format out of range | `ValueError` |
| Requests or responses below `UPRIORITY_CS4` | `ValueError` |
| Setter used on the wrong message type | `RuntimeError` |
| Payload format missing or different from the expected one | `UnexpectedFormat` |

### `uprotokit.transport`

`UTransport` is an abstract base class. Its constructor takes the owning
entity's URI, which must be a valid RPC response URI (resource ID 0).
That URI is available as `entity_uri`.

- `send(message)` returns the implementation's `UStatus`.
- `register_listener(listener, source_filter, sink_filter=None)` returns
  a connected `ListenHandle`, or the failing `UStatus`.
  - `sink_filter` may be a `UUri`.
  - It may be a resource ID, which is combined with `entity_uri`.
  - It may be `None`, for topic-style listening.

A `ListenHandle` disconnects its listener when any of these happens:

- `reset()` is called;
- its `with` block ends;
- it is dropped.

It is true for as long as the listener is connected. `NullTransport` is
provided for code that requires a transport but receives none.

Subclasses implement `_send_impl` and `_register_listener_impl`. They
may override `_cleanup_listener`.

## Example

```python
from uprotokit.model import UUri, UPayloadFormat
from uprotokit.message_builder import UMessageBuilder
from uprotokit.payload import Payload
from uprotokit.uri import serialize_uri

topic = UUri(authority_name="10.0.0.1", ue_id=0x11101,
             ue_version_major=0xF8, resource_id=0x8101)

builder = UMessageBuilder.publish(topic)
message = builder.build(Payload("hello", UPayloadFormat.UPAYLOAD_FORMAT_TEXT))

print(serialize_uri(message.attributes.source))  # //10.0.0.1/11101/F8/8101
```

## What it does not do

The package contains no working transport, so it does not send anything
over a network. `UTransport` is only an interface, and a concrete
transport must subclass it.

There are also no higher-level publisher, subscriber, notification or
RPC client and server components. There is no command-line tool either.

## Running the tests

```
pip install -e .[test]
pytest
```