"""
Base stations and the container that ties them together.

A station answers two kinds of requests:

- DISPATCH_REQUEST (from the cloud): place the task on a local device, or
  report DISPATCH_FAILED back to the cloud and let it re-route.
- OFFLOAD_REQUEST (peer cascade): place the task locally, otherwise pass it
  to the first sibling that has not failed it yet, and fall back to the
  cloud once every station has failed it.

Failures are remembered in the container's `DispatchRecordRegistry`, so the
peer cascade visits each station at most once per task.
"""

import logging
from typing import Callable, Iterator, List, Optional

from .EnvConfig import EnvConfig
from .edge_device import EdgeDevice, EdgeDeviceContainer
from .models import Endpoint, Message, MessageKind, Task
from .registry import DispatchRecordRegistry
from .transport import Transport, UdpApplication

logger = logging.getLogger(__name__)


class StationSetupError(RuntimeError):
    """A base station is used before it is fully wired."""


class CloudLinkError(StationSetupError):
    """The cloud server has no network identity yet, or was never linked."""


def can_admit(device: EdgeDevice, task: Task) -> bool:
    """Strictly more free CPU and memory than needed, and a price within budget."""
    return (device.free_cpu() > task.cpu_need and
            device.free_memory() > task.mem_need and
            device.price() <= task.budget)


class BaseStation:
    def __init__(self, base_stations: Optional["BaseStationContainer"] = None,
                 port: int = EnvConfig.BASE_PORT):
        self._edge_devices: Optional[EdgeDeviceContainer] = None
        self._base_stations = base_stations
        self._cs_endpoint: Optional[Endpoint] = None
        self._task_sequence: List[Task] = []
        self.app = UdpApplication(port)
        self.app.set_request_handler(MessageKind.DISPATCH_REQUEST, self.on_dispatching_message)
        self.app.set_request_handler(MessageKind.OFFLOAD_REQUEST, self.on_offloading_message)

    # ----------------------------------------------------------
    # wiring
    # ----------------------------------------------------------
    def install(self, transport: Transport) -> Endpoint:
        return transport.install(self.app)

    def connect_device(self, devices: EdgeDeviceContainer):
        self._edge_devices = devices

    def push_base_stations(self, base_stations: "BaseStationContainer"):
        self._base_stations = base_stations

    def link_cloud(self, cs) -> None:
        """Remember the cloud endpoint; the cloud must already be on the network."""
        if cs.get_address() is None:
            logger.error("link_cloud() Error: the network of cloud server is not initialized at this time.")
            raise CloudLinkError("the network of cloud server is not initialized at this time")
        self._cs_endpoint = Endpoint(cs.get_address(), cs.get_port())

    def get_address(self) -> Optional[str]:
        return self.app.endpoint.address if self.app.endpoint else None

    def get_port(self) -> int:
        return self.app.get_port()

    def get_edge_devices(self) -> EdgeDeviceContainer:
        return self._edge_devices if self._edge_devices is not None else EdgeDeviceContainer()

    @property
    def cloud_endpoint(self) -> Optional[Endpoint]:
        return self._cs_endpoint

    @property
    def registry(self) -> DispatchRecordRegistry:
        return self._require_base_stations().registry

    def set_request_handler(self, kind: MessageKind,
                            callback: Callable[["BaseStation", bytes, Endpoint], None]):
        self.app.set_request_handler(kind, lambda packet, remote: callback(self, packet, remote))

    def write(self, packet: bytes, destination: str, port: int):
        self.app.write(packet, destination, port)

    def task_sequence(self, t: Task):
        self._task_sequence.append(t)

    @property
    def tasks(self) -> List[Task]:
        return list(self._task_sequence)

    # ----------------------------------------------------------
    # admission
    # ----------------------------------------------------------
    def find_device(self, t: Task) -> Optional[EdgeDevice]:
        """First device in pool order that can admit `t` (first fit)."""
        for device in self.get_edge_devices():
            if can_admit(device, t):
                return device
        return None

    def try_local_admit(self, t: Task) -> bool:
        return self.find_device(t) is not None

    # ----------------------------------------------------------
    # dispatch records
    # ----------------------------------------------------------
    def dispatching_record(self, task_id: str):
        """Mark this station as having tried and failed `task_id`."""
        self.registry.record_failure(task_id, self.get_address())

    def dispatched(self, task_id: str, bs_addr: str) -> bool:
        return self.registry.has_failed(task_id, bs_addr)

    def erase_dispatching_record(self, task_id: str):
        self.registry.clear(task_id)

    def detach(self, pred: Callable[["BaseStation"], bool],
               yes: Callable[[str, int], None], no: Callable[[str, int], None]):
        """Call `yes` with the first station matching `pred`, otherwise `no` with the cloud."""
        for bs in self._require_base_stations():
            if pred(bs):
                yes(bs.get_address(), bs.get_port())
                return
        cloud = self._require_cloud()
        no(cloud.address, cloud.port)

    def _require_base_stations(self) -> "BaseStationContainer":
        if self._base_stations is None:
            raise StationSetupError(f"bs[{self.get_address()}] does not belong to a base station container")
        return self._base_stations

    def _require_cloud(self) -> Endpoint:
        if self._cs_endpoint is None:
            raise CloudLinkError(f"bs[{self.get_address()}] is not linked to a cloud server")
        return self._cs_endpoint

    def _write_to_cloud(self, msg: Message):
        cloud = self._require_cloud()
        self.write(msg.to_packet(), cloud.address, cloud.port)

    # ----------------------------------------------------------
    # handlers
    # ----------------------------------------------------------
    def on_dispatching_message(self, packet: bytes, remote: Endpoint):
        msg = Message.from_packet(packet)
        t = msg.to_task()
        self.task_sequence(t)

        device = self.find_device(t)
        if device is not None:
            logger.info("bs[%s] receives the request from %s, dispatching task %s to %s to handle it",
                        self.get_address(), remote.address, t.id, device.get_address())
            msg.kind = MessageKind.HANDLE_REQUEST
            self.write(msg.to_packet(), device.get_address(), device.get_port())

            # lets the cloud drop its bookkeeping for this task
            msg.kind = MessageKind.DISPATCH_SUCCEEDED
            self._write_to_cloud(msg)
            return

        logger.info("bs[%s] receives the request from %s, returning task %s to %s because of lacking resource",
                    self.get_address(), remote.address, t.id, self._require_cloud().address)
        msg.kind = MessageKind.DISPATCH_FAILED
        self._write_to_cloud(msg)

    def on_offloading_message(self, packet: bytes, remote: Endpoint):
        msg = Message.from_packet(packet)
        t = msg.to_task()
        self.task_sequence(t)

        device = self.find_device(t)
        if device is not None:
            logger.info("bs[%s] receives the offloading request from %s, dispatching task %s to %s",
                        self.get_address(), remote.address, t.id, device.get_address())
            msg.kind = MessageKind.HANDLE_REQUEST
            self.write(msg.to_packet(), device.get_address(), device.get_port())
            self.erase_dispatching_record(t.id)
            return

        self.dispatching_record(t.id)

        def to_sibling(address: str, port: int):
            logger.info("bs[%s] receives the offloading request from %s, passing task %s to bs[%s] "
                        "because of lacking resource", self.get_address(), remote.address, t.id, address)
            self.write(packet, address, port)

        def to_cloud(address: str, port: int):
            logger.info("bs[%s] receives the offloading request from %s, sending task %s to cloud %s "
                        "because every station lacks resource", self.get_address(), remote.address, t.id, address)
            msg.kind = MessageKind.HANDLE_REQUEST
            self.write(msg.to_packet(), address, port)
            self.erase_dispatching_record(t.id)

        self.detach(lambda bs: not self.dispatched(t.id, bs.get_address()), to_sibling, to_cloud)

    def __repr__(self):
        return f"BaseStation(address={self.get_address()}, port={self.get_port()})"


class BaseStationContainer:
    """
    All base stations of a simulation plus the registry they share.

    Every station gets a back-reference to this container when it is built,
    which is how it reaches its siblings and the registry.
    """

    def __init__(self, n: int, registry: Optional[DispatchRecordRegistry] = None,
                 port: int = EnvConfig.BASE_PORT):
        self.registry = registry if registry is not None else DispatchRecordRegistry()
        self._base_stations: List[BaseStation] = [BaseStation(self, port) for _ in range(n)]

    def install(self, transport: Transport):
        for bs in self._base_stations:
            bs.install(transport)

    def link_cloud(self, cs):
        for bs in self._base_stations:
            bs.link_cloud(cs)

    def get(self, index: int) -> BaseStation:
        if not 0 <= index < len(self._base_stations):
            raise IndexError("index out of range")
        return self._base_stations[index]

    def __getitem__(self, index: int) -> BaseStation:
        return self.get(index)

    def __call__(self, index: int) -> BaseStation:
        return self.get(index)

    def size(self) -> int:
        return len(self._base_stations)

    def __len__(self) -> int:
        return len(self._base_stations)

    def __iter__(self) -> Iterator[BaseStation]:
        return iter(self._base_stations)

    def record_failure(self, task_id: str, station_addr: str):
        self.registry.record_failure(task_id, station_addr)

    def has_failed(self, task_id: str, station_addr: str) -> bool:
        return self.registry.has_failed(task_id, station_addr)

    def clear(self, task_id: str):
        self.registry.clear(task_id)

    def set_request_handler(self, kind: MessageKind,
                            callback: Callable[[BaseStation, bytes, Endpoint], None]):
        for bs in self._base_stations:
            bs.set_request_handler(kind, callback)
