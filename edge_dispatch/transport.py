"""
In-process network transport.

Delivery is reliable, in order and point-to-point: `send` appends to a FIFO
queue and `run` hands each packet to the application bound at the
destination endpoint. Handlers run to completion before the next packet is
delivered, and anything they send is queued behind what is already pending.
"""

import logging
from collections import deque
from typing import Callable, Dict, List, Optional

from .EnvConfig import EnvConfig
from .models import Endpoint, Message, MessageKind

logger = logging.getLogger(__name__)

RequestHandler = Callable[[bytes, Endpoint], None]
Tap = Callable[[Message, Endpoint, Endpoint], None]


class UnknownEndpointError(LookupError):
    """Raised when a packet is sent to an endpoint no application is bound to."""


class UdpApplication:
    """Per-node application: a handler table keyed by message kind."""

    def __init__(self, port: int):
        self.port = port
        self.transport: Optional["Transport"] = None
        self.endpoint: Optional[Endpoint] = None
        self._handlers: Dict[MessageKind, RequestHandler] = {}

    @property
    def is_installed(self) -> bool:
        return self.endpoint is not None

    def get_port(self) -> int:
        return self.port

    def set_request_handler(self, kind: MessageKind, callback: RequestHandler):
        self._handlers[kind] = callback

    def write(self, packet: bytes, destination: str, port: int):
        if self.transport is None:
            raise RuntimeError("application is not installed on a transport")
        self.transport.send(packet, Endpoint(destination, port), self.endpoint)

    def handle(self, packet: bytes, remote: Endpoint, kind: MessageKind):
        handler = self._handlers.get(kind)
        if handler is None:
            logger.debug("%s has no handler for %s, dropping packet", self.endpoint, kind.value)
            return
        handler(packet, remote)


class Transport:
    def __init__(self, network_prefix: str = EnvConfig.NETWORK_PREFIX):
        self.network_prefix = network_prefix
        self._apps: Dict[Endpoint, UdpApplication] = {}
        self._queue = deque()
        self._taps: List[Tap] = []
        self._next_host = 1
        self.sent = 0
        self.delivered = 0

    def install(self, app: UdpApplication) -> Endpoint:
        """Give `app` a fresh address on this network and start routing to it."""
        if app.is_installed:
            return app.endpoint
        endpoint = Endpoint(f"{self.network_prefix}{self._next_host}", app.port)
        self._next_host += 1
        app.transport = self
        app.endpoint = endpoint
        self._apps[endpoint] = app
        return endpoint

    def endpoint_of(self, app: UdpApplication) -> Optional[Endpoint]:
        return app.endpoint

    def add_tap(self, tap: Tap):
        """Register an observer called with (message, source, destination) on every delivery."""
        self._taps.append(tap)

    def send(self, packet: bytes, destination: Endpoint, source: Endpoint):
        if destination not in self._apps:
            raise UnknownEndpointError(f"no application bound to {destination}")
        self._queue.append((packet, Endpoint(*destination), source))
        self.sent += 1

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run(self, max_events: int = EnvConfig.MAX_EVENTS) -> int:
        """Deliver queued packets until the queue drains; returns the number delivered."""
        count = 0
        try:
            while self._queue and count < max_events:
                packet, destination, source = self._queue.popleft()
                msg = Message.from_packet(packet)
                count += 1
                for tap in self._taps:
                    tap(msg, source, destination)
                self._apps[destination].handle(packet, source, msg.kind)
        finally:
            self.delivered += count
        if self._queue:
            logger.warning("transport stopped after %d events with %d packets pending", count, len(self._queue))
        return count
