"""
Wire protocol: inbound message kinds, parsing, and outbound message builders.

Every frame is one JSON object with a string `type`. Inbound frames carry
their fields nested under a `payload` object; `heartbeat` needs none.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

USER_NOT_AVAILABLE = "User not available"

class MessageType(str, Enum):
    LOGIN = "login"
    CALL = "call"
    ACCEPT = "accept"
    REJECT = "reject"
    OFFER = "offer"
    ANSWER = "answer"
    CANDIDATE = "candidate"
    HANGUP = "hangup"
    HEARTBEAT = "heartbeat"

# Fields holding usernames must be strings; the rest are opaque JSON values.
NAME_FIELDS = ("username", "target", "from", "to")

REQUIRED_FIELDS = {
    MessageType.LOGIN: ("username",),
    MessageType.CALL: ("target", "from"),
    MessageType.ACCEPT: ("from", "to"),
    MessageType.REJECT: ("from", "to"),
    MessageType.OFFER: ("target", "offer", "from"),
    MessageType.ANSWER: ("target", "answer", "from"),
    MessageType.CANDIDATE: ("target", "candidate", "from"),
    MessageType.HANGUP: ("target", "from"),
    MessageType.HEARTBEAT: (),
}

@dataclass
class InboundMessage:
    """
    A parsed inbound frame.

    `kind` is None when `type` is a string outside the known set; such
    messages are logged and ignored by the relay.
    """
    raw_type: str
    kind: Optional[MessageType]
    payload: Dict[str, Any] = field(default_factory=dict)

def parse_message(raw_text) -> Optional[InboundMessage]:
    """
    Parse a text frame into an InboundMessage.

    :param raw_text: Frame contents as received from the transport
    :return: The parsed message, or None if the frame is malformed
    """
    try:
        data = json.loads(raw_text)
    except (TypeError, ValueError):
        logging.debug("Dropping frame: not valid JSON")
        return None

    if not isinstance(data, dict):
        logging.debug("Dropping frame: not a JSON object")
        return None
    raw_type = data.get("type")
    if not isinstance(raw_type, str):
        logging.debug("Dropping frame: missing type")
        return None

    try:
        kind = MessageType(raw_type)
    except ValueError:
        return InboundMessage(raw_type=raw_type, kind=None)

    required = REQUIRED_FIELDS[kind]
    payload = data.get("payload")
    if not required:
        return InboundMessage(raw_type=raw_type, kind=kind,
                              payload=payload if isinstance(payload, dict) else {})

    if not isinstance(payload, dict):
        logging.debug(f"Dropping {raw_type}: payload is not an object")
        return None
    for name in required:
        if name not in payload:
            logging.debug(f"Dropping {raw_type}: payload.{name} missing")
            return None
        if name in NAME_FIELDS and not isinstance(payload[name], str):
            logging.debug(f"Dropping {raw_type}: payload.{name} is not a string")
            return None
    return InboundMessage(raw_type=raw_type, kind=kind, payload=payload)

def encode(message: Dict[str, Any]) -> str:
    return json.dumps(message, separators=(",", ":"))

# Outbound messages

def login_success(username: str) -> dict:
    return {"type": "login-success", "username": username}

def users(usernames: List[str]) -> dict:
    return {"type": "users", "users": list(usernames)}

def incoming_call(caller: str) -> dict:
    return {"type": "incoming-call", "from": caller}

def call_accepted(callee: str) -> dict:
    return {"type": "call-accepted", "from": callee}

def call_rejected(callee: str) -> dict:
    return {"type": "call-rejected", "from": callee}

def offer(sdp: Any, sender: str) -> dict:
    return {"type": "offer", "offer": sdp, "from": sender}

def answer(sdp: Any, sender: str) -> dict:
    return {"type": "answer", "answer": sdp, "from": sender}

def candidate(ice: Any, sender: str) -> dict:
    return {"type": "candidate", "candidate": ice, "from": sender}

def hangup(sender: str) -> dict:
    return {"type": "hangup", "from": sender}

def error(message: str) -> dict:
    return {"type": "error", "message": message}

def pong() -> dict:
    return {"type": "pong"}
