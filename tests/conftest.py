import json
import itertools

import pytest
from websockets.exceptions import ConnectionClosedOK
from websockets.protocol import State

from signaling.registry import Registry
from signaling.relay import Relay

_ports = itertools.count(50000)

class FakeConnection:
    """In-memory stand-in for a transport connection handle."""

    def __init__(self, name=""):
        self.name = name
        self.remote_address = ("127.0.0.1", next(_ports))
        self.state = State.OPEN
        self.sent = []
        self.close_calls = 0

    async def send(self, text):
        if self.state is not State.OPEN:
            raise ConnectionClosedOK(None, None)
        self.sent.append(json.loads(text))

    async def close(self):
        self.close_calls += 1
        self.state = State.CLOSED

    def of_type(self, kind):
        return [m for m in self.sent if m["type"] == kind]

    def __repr__(self):
        return f"FakeConnection({self.name!r})"

@pytest.fixture
def registry():
    return Registry()

@pytest.fixture
def relay(registry):
    return Relay(registry)

@pytest.fixture
def connect(relay):
    async def _connect(name=""):
        conn = FakeConnection(name)
        await relay.on_connection_opened(conn)
        return conn
    return _connect

@pytest.fixture
def login(relay, connect):
    async def _login(username, conn=None):
        if conn is None:
            conn = await connect(username)
        await relay.on_message(conn, json.dumps({"type": "login", "payload": {"username": username}}))
        return conn
    return _login

@pytest.fixture
def frame():
    return build_frame

def build_frame(kind, payload=None):
    if payload is None:
        return json.dumps({"type": kind})
    return json.dumps({"type": kind, "payload": payload})
