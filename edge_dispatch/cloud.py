import logging
from typing import Dict, List, Optional

from .EnvConfig import EnvConfig
from .models import Endpoint, Message, MessageKind, Task
from .transport import Transport, UdpApplication

logger = logging.getLogger(__name__)


class CloudServer:
    """
    Centralized server with unbounded capacity.

    It originates DISPATCH_REQUESTs, retires them on DISPATCH_SUCCEEDED,
    re-routes DISPATCH_FAILED into the peer cascade by sending an
    OFFLOAD_REQUEST back to the station that failed, and executes every
    HANDLE_REQUEST it receives.
    """

    def __init__(self, port: int = EnvConfig.CLOUD_PORT):
        self.app = UdpApplication(port)
        self.pending: Dict[str, Task] = {}
        self.executed: List[str] = []
        self.app.set_request_handler(MessageKind.DISPATCH_SUCCEEDED, self.on_dispatching_success_message)
        self.app.set_request_handler(MessageKind.DISPATCH_FAILED, self.on_dispatching_failure_message)
        self.app.set_request_handler(MessageKind.HANDLE_REQUEST, self.on_handling_message)

    def install(self, transport: Transport) -> Endpoint:
        return transport.install(self.app)

    def get_address(self) -> Optional[str]:
        return self.app.endpoint.address if self.app.endpoint else None

    def get_port(self) -> int:
        return self.app.get_port()

    def dispatch(self, t: Task, bs):
        """Send `t` to base station `bs` as a DISPATCH_REQUEST."""
        self.pending[t.id] = t
        msg = Message(MessageKind.DISPATCH_REQUEST, t)
        self.app.write(msg.to_packet(), bs.get_address(), bs.get_port())

    def offload(self, t: Task, bs):
        """Start the peer cascade for `t` at base station `bs`."""
        msg = Message(MessageKind.OFFLOAD_REQUEST, t)
        self.app.write(msg.to_packet(), bs.get_address(), bs.get_port())

    def on_dispatching_success_message(self, packet: bytes, remote: Endpoint):
        t = Message.from_packet(packet).to_task()
        self.pending.pop(t.id, None)
        logger.debug("cloud: task %s dispatched by bs[%s]", t.id, remote.address)

    def on_dispatching_failure_message(self, packet: bytes, remote: Endpoint):
        msg = Message.from_packet(packet)
        logger.info("cloud: bs[%s] could not place task %s, re-routing it as an offloading request",
                    remote.address, msg.task.id)
        # the peer cascade always ends at a device or here, so nothing is left to track
        self.pending.pop(msg.task.id, None)
        msg.kind = MessageKind.OFFLOAD_REQUEST
        self.app.write(msg.to_packet(), remote.address, remote.port)

    def on_handling_message(self, packet: bytes, remote: Endpoint):
        t = Message.from_packet(packet).to_task()
        self.pending.pop(t.id, None)
        self.executed.append(t.id)
        logger.info("cloud: handles task %s from bs[%s]", t.id, remote.address)
