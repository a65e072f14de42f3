import json

import pytest

from signaling import messages
from signaling.messages import MessageType, parse_message


def test_parse_nested_payload():
    message = parse_message('{"type": "call", "payload": {"target": "bob", "from": "alice"}}')

    assert message.kind is MessageType.CALL
    assert message.raw_type == "call"
    assert message.payload == {"target": "bob", "from": "alice"}


def test_parse_heartbeat_without_payload():
    message = parse_message('{"type": "heartbeat"}')

    assert message.kind is MessageType.HEARTBEAT
    assert message.payload == {}


def test_unknown_type_is_parsed_but_unclassified():
    message = parse_message('{"type": "subscribe", "payload": {}}')

    assert message is not None
    assert message.kind is None
    assert message.raw_type == "subscribe"


@pytest.mark.parametrize("raw", [
    "",
    "{not json",
    "null",
    "[]",
    '{"payload": {}}',
    '{"type": null}',
    '{"type": "call"}',
    '{"type": "call", "payload": []}',
    '{"type": "call", "payload": {"target": "bob"}}',
    '{"type": "accept", "payload": {"from": "alice", "to": 3}}',
])
def test_malformed_frames_are_rejected(raw):
    assert parse_message(raw) is None


def test_flattened_fields_are_not_accepted():
    assert parse_message('{"type": "call", "target": "bob", "from": "alice"}') is None


def test_opaque_fields_may_hold_any_json():
    raw = json.dumps({"type": "candidate", "payload": {"target": "bob", "from": "alice", "candidate": None}})

    message = parse_message(raw)

    assert message.kind is MessageType.CANDIDATE
    assert message.payload["candidate"] is None


def test_every_kind_has_required_fields():
    assert set(messages.REQUIRED_FIELDS) == set(MessageType)


def test_outbound_builders():
    assert messages.login_success("alice") == {"type": "login-success", "username": "alice"}
    assert messages.users(("alice", "bob")) == {"type": "users", "users": ["alice", "bob"]}
    assert messages.incoming_call("alice") == {"type": "incoming-call", "from": "alice"}
    assert messages.call_accepted("bob") == {"type": "call-accepted", "from": "bob"}
    assert messages.call_rejected("bob") == {"type": "call-rejected", "from": "bob"}
    assert messages.hangup("bob") == {"type": "hangup", "from": "bob"}
    assert messages.error("User not available") == {"type": "error", "message": "User not available"}
    assert messages.pong() == {"type": "pong"}


def test_encode_is_compact_json():
    assert messages.encode(messages.pong()) == '{"type":"pong"}'
