from datetime import timedelta

import pytest

from uprotokit.message_builder import UMessageBuilder, UnexpectedFormat
from uprotokit.model import (
    UUID,
    UCode,
    UMessageType,
    UPayloadFormat,
    UPriority,
    UUri,
)
from uprotokit.payload import Payload, PayloadMoved
from uprotokit.uri import InvalidUUri, serialize_uri
from uprotokit.uuid_builder import UuidBuilder
from uprotokit.uuid_codec import InvalidUuid, is_uuid

SOURCE = UUri("10.0.0.1", 0x00011101, 0xF8, 0x8101)
SINK = UUri("10.0.0.2", 0x00011102, 0xF9, 0)
METHOD = UUri("10.0.0.3", 0x00011103, 0xFA, 0x0101)
REQ_ID = UuidBuilder().build()


def fake_request():
    return UMessageBuilder.request(METHOD, SINK, UPriority.UPRIORITY_CS4, 5000)


def fake_response():
    return UMessageBuilder.response(SINK, REQ_ID, UPriority.UPRIORITY_CS4, METHOD)


def uris_equal(a, b):
    return a == b


def test_publish_valid_topic():
    attr = UMessageBuilder.publish(SOURCE).attributes
    assert attr.type == UMessageType.UMESSAGE_TYPE_PUBLISH
    assert serialize_uri(attr.source) == serialize_uri(SOURCE)


def test_publish_invalid_topic_raises():
    with pytest.raises(InvalidUUri):
        UMessageBuilder.publish(UUri())


def test_notification():
    attr = UMessageBuilder.notification(SOURCE, SINK).attributes
    assert attr.type == UMessageType.UMESSAGE_TYPE_NOTIFICATION
    assert serialize_uri(attr.source) == serialize_uri(SOURCE)
    assert serialize_uri(attr.sink) == serialize_uri(SINK)


def test_notification_invalid_source_raises():
    with pytest.raises(InvalidUUri):
        UMessageBuilder.notification(UUri(ue_id=0xFFFF0000), SINK)


def test_notification_invalid_sink_raises():
    with pytest.raises(InvalidUUri):
        UMessageBuilder.notification(SOURCE, UUri(ue_id=0xFFFF0000))


def test_request_valid_parameters():
    attr = fake_request().build().attributes
    assert attr.type == UMessageType.UMESSAGE_TYPE_REQUEST
    assert serialize_uri(attr.sink) == serialize_uri(METHOD)
    assert serialize_uri(attr.source) == serialize_uri(SINK)
    assert attr.priority == UPriority.UPRIORITY_CS4
    assert attr.ttl == 5000


def test_request_invalid_method_raises():
    with pytest.raises(InvalidUUri):
        UMessageBuilder.request(UUri(), SOURCE, UPriority.UPRIORITY_CS4, 5000)


def test_request_invalid_source_raises():
    with pytest.raises(InvalidUUri):
        UMessageBuilder.request(
            METHOD, UUri(ue_id=0xFFFF0000), UPriority.UPRIORITY_CS4, 5000
        )


def test_request_invalid_ttl_raises():
    with pytest.raises(ValueError, match="TTL"):
        UMessageBuilder.request(METHOD, SINK, UPriority.UPRIORITY_CS4, -1)


def test_request_accepts_timedelta_ttl():
    builder = UMessageBuilder.request(
        METHOD, SINK, UPriority.UPRIORITY_CS5, timedelta(seconds=2)
    )
    assert builder.attributes.ttl == 2000


def test_response_valid_parameters():
    attr = fake_response().attributes
    assert attr.type == UMessageType.UMESSAGE_TYPE_RESPONSE
    assert serialize_uri(attr.sink) == serialize_uri(SINK)
    assert serialize_uri(attr.source) == serialize_uri(METHOD)
    assert attr.reqid == REQ_ID
    assert attr.priority == UPriority.UPRIORITY_CS4


def test_response_invalid_method_raises():
    with pytest.raises(InvalidUUri):
        UMessageBuilder.response(SINK, REQ_ID, UPriority.UPRIORITY_CS4, UUri())


def test_response_invalid_sink_raises():
    with pytest.raises(InvalidUUri):
        UMessageBuilder.response(
            UUri(ue_id=0xFFFF0000), REQ_ID, UPriority.UPRIORITY_CS4, METHOD
        )


def test_response_invalid_request_id_raises():
    with pytest.raises(InvalidUuid):
        UMessageBuilder.response(SINK, UUID(), UPriority.UPRIORITY_CS4, METHOD)


def test_response_to_request():
    request = UMessageBuilder.request(
        METHOD, SINK, UPriority.UPRIORITY_CS5, 1000
    ).build()
    attr = UMessageBuilder.response_to(request).attributes
    assert attr.type == UMessageType.UMESSAGE_TYPE_RESPONSE
    assert attr.sink == SINK
    assert attr.source == METHOD
    assert attr.reqid == request.attributes.id
    assert attr.priority == UPriority.UPRIORITY_CS5


def test_with_priority_valid_for_request_and_response():
    assert fake_request().with_priority(UPriority.UPRIORITY_CS4).attributes.priority == (
        UPriority.UPRIORITY_CS4
    )
    assert fake_response().with_priority(UPriority.UPRIORITY_CS6).attributes.priority == (
        UPriority.UPRIORITY_CS6
    )


@pytest.mark.parametrize("priority", [min(UPriority) - 1, max(UPriority) + 1])
def test_with_priority_out_of_range_raises(priority):
    builder = fake_request()
    with pytest.raises(ValueError):
        builder.with_priority(priority)


def test_with_priority_below_cs4_for_request_raises():
    builder = UMessageBuilder.request(METHOD, SINK, UPriority.UPRIORITY_CS4, 5000)
    with pytest.raises(ValueError):
        builder.with_priority(UPriority.UPRIORITY_CS4 - 1)
    assert builder.attributes.priority == UPriority.UPRIORITY_CS4


def test_with_priority_below_cs4_for_response_raises():
    builder = UMessageBuilder.response(SINK, REQ_ID, UPriority.UPRIORITY_CS4, METHOD)
    with pytest.raises(ValueError):
        builder.with_priority(UPriority.UPRIORITY_CS4 - 1)
    assert builder.attributes.priority == UPriority.UPRIORITY_CS4


def test_with_priority_low_allowed_for_publish():
    builder = UMessageBuilder.publish(SOURCE).with_priority(UPriority.UPRIORITY_CS1)
    assert builder.build().attributes.priority == UPriority.UPRIORITY_CS1


def test_with_ttl_valid():
    builder = fake_request()
    assert builder.with_ttl(1).attributes.ttl == 1
    assert builder.with_ttl(0xFFFF_FFFF).attributes.ttl == 0xFFFF_FFFF


@pytest.mark.parametrize("ttl", [-1, 0xFFFF_FFFF + 1, 0])
def test_with_ttl_out_of_range_raises(ttl):
    builder = fake_request()
    with pytest.raises(ValueError):
        builder.with_ttl(ttl)


def test_with_token_empty_string():
    assert fake_request().with_token("").build().attributes.token == ""


def test_with_token_on_non_request_raises():
    with pytest.raises(RuntimeError):
        fake_response().with_token("token")


def test_with_token_on_request():
    assert fake_request().with_token("token").build().attributes.token == "token"


def test_with_permission_level_on_request():
    assert fake_request().with_permission_level(1).attributes.permission_level == 1


def test_with_permission_level_on_non_request_raises():
    with pytest.raises(RuntimeError):
        fake_response().with_permission_level(1)


def test_with_permission_level_zero():
    assert fake_request().with_permission_level(0).attributes.permission_level == 0


def test_with_comm_status_ok_sets_nothing():
    assert fake_response().with_comm_status(UCode.OK).attributes.commstatus is None


def test_with_comm_status_error_is_set():
    builder = fake_response().with_comm_status(UCode.DATA_LOSS)
    assert builder.build().attributes.commstatus == UCode.DATA_LOSS


def test_with_comm_status_on_non_response_raises():
    with pytest.raises(RuntimeError):
        fake_request().with_comm_status(UCode.OK)


def test_with_comm_status_invalid_value_raises():
    with pytest.raises(ValueError):
        fake_response().with_comm_status(-1)


def test_with_payload_format_on_request():
    builder = UMessageBuilder.request(
        METHOD, SINK, UPriority.UPRIORITY_CS4, 5000
    ).with_payload_format(UPayloadFormat.UPAYLOAD_FORMAT_JSON)
    assert builder.attributes.payload_format == UPayloadFormat.UPAYLOAD_FORMAT_JSON


def test_with_payload_format_on_response():
    builder = UMessageBuilder.response(
        SINK, REQ_ID, UPriority.UPRIORITY_CS4, METHOD
    ).with_payload_format(UPayloadFormat.UPAYLOAD_FORMAT_JSON)
    assert builder.attributes.payload_format == UPayloadFormat.UPAYLOAD_FORMAT_JSON


@pytest.mark.parametrize(
    "fmt", [min(UPayloadFormat) - 1, max(UPayloadFormat) + 1]
)
def test_with_payload_format_out_of_range_raises(fmt):
    builder = fake_request()
    with pytest.raises(ValueError):
        builder.with_payload_format(fmt)


def test_build_returns_message():
    builder = fake_request()
    message = builder.build()
    attrs = builder.attributes
    assert message.attributes.priority == attrs.priority
    assert message.attributes.ttl == attrs.ttl
    assert uris_equal(message.attributes.source, attrs.source)
    assert uris_equal(message.attributes.sink, attrs.sink)
    assert message.payload is None
    assert is_uuid(message.attributes.id) == (True, None)


def test_build_gives_fresh_ids():
    builder = fake_request()
    ids = [builder.build().attributes.id for _ in range(20)]
    assert all(is_uuid(uuid) == (True, None) for uuid in ids)
    assert len({(uuid.msb, uuid.lsb) for uuid in ids}) == 20


def test_build_without_payload_when_format_set_raises():
    builder = fake_request().with_payload_format(UPayloadFormat.UPAYLOAD_FORMAT_JSON)
    with pytest.raises(UnexpectedFormat):
        builder.build()


def test_build_with_payload_and_matching_format():
    builder = fake_request().with_payload_format(UPayloadFormat.UPAYLOAD_FORMAT_TEXT)
    payload = Payload("test-data", UPayloadFormat.UPAYLOAD_FORMAT_TEXT)
    message = builder.build(payload)
    attrs = builder.attributes
    assert message.attributes.priority == attrs.priority
    assert message.attributes.ttl == attrs.ttl
    assert message.attributes.source == attrs.source
    assert message.attributes.sink == attrs.sink
    assert message.payload == b"test-data"
    assert message.attributes.payload_format == UPayloadFormat.UPAYLOAD_FORMAT_TEXT


def test_build_with_payload_without_format_set():
    payload = Payload("test-data", UPayloadFormat.UPAYLOAD_FORMAT_TEXT)
    message = fake_request().build(payload)
    assert message.payload == b"test-data"
    assert message.attributes.payload_format == UPayloadFormat.UPAYLOAD_FORMAT_TEXT


def test_build_moves_payload():
    payload = Payload("test-data", UPayloadFormat.UPAYLOAD_FORMAT_TEXT)
    fake_request().build(payload)
    with pytest.raises(PayloadMoved):
        payload.build_copy()


def test_build_with_mismatched_payload_format_raises():
    builder = fake_request().with_payload_format(UPayloadFormat.UPAYLOAD_FORMAT_JSON)
    payload = Payload("test-data", UPayloadFormat.UPAYLOAD_FORMAT_TEXT)
    with pytest.raises(UnexpectedFormat):
        builder.build(payload)


def test_attributes_is_a_copy():
    builder = fake_request()
    builder.attributes.ttl = 1
    assert builder.attributes.ttl == 5000