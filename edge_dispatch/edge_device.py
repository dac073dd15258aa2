import logging
from typing import Iterator, List, Optional

import numpy as np

from .EnvConfig import EnvConfig
from .models import Endpoint, Message, MessageKind
from .transport import Transport, UdpApplication

logger = logging.getLogger(__name__)


class EdgeDevice:
    """
    A device attached to a base station.

    The dispatch core only reads `free_cpu`, `free_memory` and `price`; the
    device itself reserves resources when a `HANDLE_REQUEST` arrives.
    """

    def __init__(self, cpu: float = 0.0, memory: float = 0.0, price: float = 0.0,
                 port: int = EnvConfig.EDGE_DEVICE_PORT):
        self._free_cpu = float(cpu)
        self._free_memory = float(memory)
        self._price = float(price)
        self.executed: List[str] = []
        self.app = UdpApplication(port)
        self.app.set_request_handler(MessageKind.HANDLE_REQUEST, self.on_handling_message)

    def install(self, transport: Transport) -> Endpoint:
        return transport.install(self.app)

    def install_resource(self, cpu: float, memory: float, price: float):
        self._free_cpu = float(cpu)
        self._free_memory = float(memory)
        self._price = float(price)

    def free_cpu(self) -> float:
        return self._free_cpu

    def free_memory(self) -> float:
        return self._free_memory

    def price(self) -> float:
        return self._price

    def get_address(self) -> Optional[str]:
        return self.app.endpoint.address if self.app.endpoint else None

    def get_port(self) -> int:
        return self.app.get_port()

    def on_handling_message(self, packet: bytes, remote: Endpoint):
        t = Message.from_packet(packet).to_task()
        self._free_cpu = max(self._free_cpu - t.cpu_need, 0.0)
        self._free_memory = max(self._free_memory - t.mem_need, 0.0)
        self.executed.append(t.id)
        logger.info("device[%s] handles task %s from %s", self.get_address(), t.id, remote.address)

    def __repr__(self):
        return (f"EdgeDevice(address={self.get_address()}, cpu={self._free_cpu:.2f}, "
                f"memory={self._free_memory:.2f}, price={self._price:.2f})")


class EdgeDeviceContainer:
    """The resource pool of one base station, iterated in insertion order."""

    def __init__(self, devices=None):
        self._devices: List[EdgeDevice] = list(devices) if devices is not None else []

    @classmethod
    def of_size(cls, n: int) -> "EdgeDeviceContainer":
        return cls(EdgeDevice() for _ in range(n))

    def add(self, device: EdgeDevice):
        self._devices.append(device)

    def install(self, transport: Transport):
        for device in self._devices:
            device.install(transport)

    def install_resources(self, resources, offset: int = 0):
        """Assign (cpu, memory, price) triples to devices starting at `offset`."""
        for device, (cpu, memory, price) in zip(self._devices[offset:], resources):
            device.install_resource(cpu, memory, price)

    def get_device(self, index: int) -> EdgeDevice:
        if not 0 <= index < len(self._devices):
            raise IndexError("index out of range")
        return self._devices[index]

    def __iter__(self) -> Iterator[EdgeDevice]:
        return iter(self._devices)

    def __len__(self) -> int:
        return len(self._devices)


class DeviceFactory:
    """Builds device pools with resources drawn uniformly from the configured ranges."""

    def __init__(
        self,
        cpu_range=(EnvConfig.DEVICE_CPU_MIN, EnvConfig.DEVICE_CPU_MAX),
        memory_range=(EnvConfig.DEVICE_MEMORY_MIN, EnvConfig.DEVICE_MEMORY_MAX),
        price_range=(EnvConfig.DEVICE_PRICE_MIN, EnvConfig.DEVICE_PRICE_MAX),
        rng: Optional[np.random.Generator] = None,
    ):
        self.cpu_range = cpu_range
        self.memory_range = memory_range
        self.price_range = price_range
        self.rng = rng if rng is not None else np.random.default_rng()

    def sample_pool(self, n: int) -> EdgeDeviceContainer:
        pool = EdgeDeviceContainer.of_size(n)
        resources = np.column_stack([
            self.rng.uniform(*self.cpu_range, size=n),
            self.rng.uniform(*self.memory_range, size=n),
            self.rng.uniform(*self.price_range, size=n),
        ])
        pool.install_resources(resources.tolist())
        return pool
