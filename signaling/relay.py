"""
Signaling relay: presence registry lifecycle and routing of call-control messages.

The relay reacts to three transport events (opened, message, closed). Each
event's registry work runs to completion under one lock and produces a list
of (connection, message) deliveries. Sends are started as tasks in that
order before the lock is released, so a peer that stops reading never holds
up events from other connections.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from . import messages
from .broadcast import presence_update, send_to
from .messages import MessageType, parse_message
from .registry import Registry
from .utils import is_open, peer_name

# How long an event waits for its own deliveries before moving on.
SEND_WAIT = 1.0

traffic = logging.getLogger("traffic")

Outbox = List[Tuple[object, dict]]

class Relay:
    def __init__(self, registry: Registry, send_wait: float = SEND_WAIT):
        self.registry = registry
        self.send_wait = send_wait
        # connection -> username it logged in with (None until login)
        self._bound: Dict[object, Optional[str]] = {}
        self._lock = asyncio.Lock()
        self._sending = set()
        self._closing = set()
        self._handlers = {
            MessageType.LOGIN: self._login,
            MessageType.CALL: self._call,
            MessageType.ACCEPT: self._accept,
            MessageType.REJECT: self._reject,
            MessageType.OFFER: self._offer,
            MessageType.ANSWER: self._answer,
            MessageType.CANDIDATE: self._candidate,
            MessageType.HANGUP: self._hangup,
            MessageType.HEARTBEAT: self._heartbeat,
        }

    # Transport events

    async def on_connection_opened(self, connection):
        async with self._lock:
            self._bound[connection] = None
        logging.debug(f"Connection opened: {peer_name(connection)}")

    async def on_message(self, connection, raw_text):
        """
        Handle one inbound text frame. Malformed frames are dropped silently.
        """
        message = parse_message(raw_text)
        if message is None:
            return
        if message.kind is None:
            logging.info(f"Unknown message type {message.raw_type!r} from {peer_name(connection)}")
            return
        async with self._lock:
            traffic.info(f"{message.kind.value} from {peer_name(connection)}")
            outbox = self._handlers[message.kind](connection, message.payload)
            tasks = self._deliver(outbox)
        await self._settle(tasks)

    async def on_connection_closed(self, connection):
        """
        Forget the connection. Its username is released only if it is still
        bound to this connection; a session lost to a takeover is already gone.
        """
        tasks = []
        async with self._lock:
            username = self._bound.pop(connection, None)
            if username and self.registry.unbind(username, connection):
                logging.info(f"[LOGOUT] {username}")
                tasks = self._deliver(presence_update(self.registry))
        logging.debug(f"Connection closed: {peer_name(connection)}")
        await self._settle(tasks)

    async def wait_closing(self):
        """Wait for forced closes started by takeovers to finish."""
        if self._closing:
            await asyncio.gather(*list(self._closing))

    # Handlers: mutate the registry, return deliveries

    def _login(self, connection, payload) -> Outbox:
        username = payload["username"].strip()
        if not username:
            return []

        previous_name = self._bound.get(connection)
        if previous_name and previous_name != username:
            self.registry.unbind(previous_name, connection)

        replaced = self.registry.bind(username, connection)
        if replaced is not None:
            logging.info(f"[TAKEOVER] {username}: closing previous connection {peer_name(replaced.connection)}")
            if replaced.connection in self._bound:
                self._bound[replaced.connection] = None
            self._force_close(replaced.connection)

        self._bound[connection] = username
        logging.info(f"[LOGIN] {username}")
        return [(connection, messages.login_success(username))] + presence_update(self.registry)

    def _call(self, connection, payload) -> Outbox:
        callee = self.registry.connection_for(payload["target"])
        if callee is None:
            traffic.info(f"call {payload['from']} -> {payload['target']}: not available")
            return [(connection, messages.error(messages.USER_NOT_AVAILABLE))]
        return [(callee, messages.incoming_call(payload["from"]))]

    def _accept(self, connection, payload) -> Outbox:
        return self._route(payload["from"], messages.call_accepted(payload["to"]))

    def _reject(self, connection, payload) -> Outbox:
        return self._route(payload["from"], messages.call_rejected(payload["to"]))

    def _offer(self, connection, payload) -> Outbox:
        return self._route(payload["target"], messages.offer(payload["offer"], payload["from"]))

    def _answer(self, connection, payload) -> Outbox:
        return self._route(payload["target"], messages.answer(payload["answer"], payload["from"]))

    def _candidate(self, connection, payload) -> Outbox:
        return self._route(payload["target"], messages.candidate(payload["candidate"], payload["from"]))

    def _hangup(self, connection, payload) -> Outbox:
        return self._route(payload["target"], messages.hangup(payload["from"]))

    def _heartbeat(self, connection, payload) -> Outbox:
        return [(connection, messages.pong())]

    def _route(self, username: str, message: dict) -> Outbox:
        # offline recipient: no reply to the sender
        recipient = self.registry.connection_for(username)
        if recipient is None:
            traffic.info(f"{message['type']} -> {username}: offline, dropped")
            return []
        return [(recipient, message)]

    # Delivery

    def _deliver(self, outbox: Outbox) -> list:
        # tasks start in creation order, which keeps frames ordered per connection
        tasks = []
        for connection, message in outbox:
            task = asyncio.create_task(send_to(connection, message))
            self._sending.add(task)
            task.add_done_callback(self._sending.discard)
            tasks.append(task)
        return tasks

    async def _settle(self, tasks):
        if not tasks:
            return
        _, pending = await asyncio.wait(tasks, timeout=self.send_wait)
        if pending:
            logging.warning(f"{len(pending)} deliveries still pending after {self.send_wait}s")

    def _force_close(self, connection):
        if not is_open(connection):
            return
        task = asyncio.create_task(self._close(connection))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _close(self, connection):
        try:
            await connection.close()
        except Exception as exc:
            logging.warning(f"Error closing replaced connection {peer_name(connection)}: {exc}")
