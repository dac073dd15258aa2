import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .EnvConfig import EnvConfig
from .base_station import BaseStationContainer
from .cloud import CloudServer
from .edge_device import DeviceFactory
from .models import Endpoint, Message, MessageKind, Task, TaskFactory
from .scenario_config import BASELINE, PROTOCOLS, ScenarioConfig
from .transport import Transport

logger = logging.getLogger(__name__)

_STATION_REQUESTS = (MessageKind.DISPATCH_REQUEST, MessageKind.OFFLOAD_REQUEST)


@dataclass
class Metrics:
    task_id: List[str] = field(default_factory=list)
    entry_station: List[str] = field(default_factory=list)
    protocol: List[str] = field(default_factory=list)
    placement: List[str] = field(default_factory=list)   # "device", "cloud" or "unresolved"
    placed_at: List[Optional[str]] = field(default_factory=list)
    hops: List[int] = field(default_factory=list)
    stations_visited: List[int] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({
            "TaskId": self.task_id,
            "EntryStation": self.entry_station,
            "Protocol": self.protocol,
            "Placement": self.placement,
            "PlacedAt": self.placed_at,
            "Hops": self.hops,
            "StationsVisited": self.stations_visited,
        })

    def summary(self) -> Dict[str, float]:
        n = len(self.task_id)
        placement = np.asarray(self.placement)
        return {
            "tasks": n,
            "device_ratio": float(np.mean(placement == "device")) if n else 0.0,
            "cloud_ratio": float(np.mean(placement == "cloud")) if n else 0.0,
            "unresolved": int(np.sum(placement == "unresolved")),
            "mean_hops": float(np.mean(self.hops)) if n else 0.0,
            "max_hops": int(np.max(self.hops)) if n else 0,
        }


@dataclass
class _TaskTrace:
    entry_station: str
    protocol: str
    placement: str = "unresolved"
    placed_at: Optional[str] = None
    hops: int = 0
    visited: List[str] = field(default_factory=list)


class Simulator:
    """
    Builds a cloud, a set of base stations and their device pools on one
    transport, feeds tasks in, and records how each task was placed.
    """

    def __init__(self, scenario: ScenarioConfig = BASELINE, seed: Optional[int] = EnvConfig.SEED):
        self.scenario = scenario
        self.rng = np.random.default_rng(seed)
        self.transport = Transport()

        # === Cloud first: stations can only link to an installed cloud ===
        self.cloud = CloudServer()
        self.cloud.install(self.transport)

        # === Stations and their devices ===
        self.base_stations = BaseStationContainer(scenario.num_stations)
        self.base_stations.install(self.transport)
        device_factory = DeviceFactory(
            cpu_range=scenario.device_cpu_range,
            memory_range=scenario.device_memory_range,
            price_range=scenario.device_price_range,
            rng=self.rng,
        )
        for bs in self.base_stations:
            pool = device_factory.sample_pool(scenario.devices_per_station)
            pool.install(self.transport)
            bs.connect_device(pool)
        self.base_stations.link_cloud(self.cloud)

        self.factory = TaskFactory(
            cpu_range=scenario.task_cpu_range,
            memory_range=scenario.task_memory_range,
            budget_range=scenario.task_budget_range,
            rng=self.rng,
        )
        self._traces: Dict[str, _TaskTrace] = {}
        self.transport.add_tap(self._observe)

    # ----------------------------------------------------------
    def _observe(self, msg: Message, source: Endpoint, destination: Endpoint):
        trace = self._traces.get(msg.task.id)
        if trace is None:
            return
        if msg.kind in _STATION_REQUESTS:
            trace.hops += 1
            if destination.address not in trace.visited:
                trace.visited.append(destination.address)
        elif msg.kind is MessageKind.HANDLE_REQUEST:
            trace.placement = "cloud" if destination.address == self.cloud.get_address() else "device"
            trace.placed_at = destination.address

    def submit(self, t: Task, station_index: int = 0, protocol: Optional[str] = None):
        """Queue `t` for base station `station_index` through the given entry protocol."""
        protocol = protocol or self.scenario.protocol
        if protocol not in PROTOCOLS:
            raise ValueError(f"protocol must be one of {PROTOCOLS}, got {protocol!r}")
        bs = self.base_stations[station_index]
        self._traces[t.id] = _TaskTrace(entry_station=bs.get_address(), protocol=protocol)
        if protocol == "dispatch":
            self.cloud.dispatch(t, bs)
        else:
            self.cloud.offload(t, bs)

    def run(self, num_tasks: Optional[int] = None, protocol: Optional[str] = None) -> Metrics:
        """Sample `num_tasks` tasks at random entry stations, deliver everything, return metrics."""
        if num_tasks is None:
            num_tasks = self.scenario.num_tasks
        for t in self.factory.sample_many(num_tasks):
            index = int(self.rng.integers(len(self.base_stations)))
            self.submit(t, index, protocol)

        delivered = self.transport.run()
        logger.info("simulation delivered %d packets for %d tasks", delivered, len(self._traces))
        return self.metrics()

    def metrics(self) -> Metrics:
        m = Metrics()
        for task_id, trace in self._traces.items():
            m.task_id.append(task_id)
            m.entry_station.append(trace.entry_station)
            m.protocol.append(trace.protocol)
            m.placement.append(trace.placement)
            m.placed_at.append(trace.placed_at)
            m.hops.append(trace.hops)
            m.stations_visited.append(len(trace.visited))
        return m
