"""
Task and message models exchanged between the cloud, base stations and
edge devices.

A `Message` is the envelope carried by the transport for exactly one hop:
stations decode it, possibly change its kind, and send a fresh packet.
"""

import json
import uuid
from dataclasses import dataclass, asdict
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np

from .EnvConfig import EnvConfig


class Endpoint(NamedTuple):
    address: str
    port: int

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


class MessageKind(Enum):
    DISPATCH_REQUEST = "dispatching"
    HANDLE_REQUEST = "handling"
    DISPATCH_SUCCEEDED = "dispatching_success"
    DISPATCH_FAILED = "dispatching_failure"
    OFFLOAD_REQUEST = "offloading_task"


@dataclass(frozen=True)
class Task:
    """A unit of work with its resource demand and the most the requester will pay."""
    id: str
    cpu_need: float
    mem_need: float
    budget: float

    def __post_init__(self):
        if self.cpu_need <= 0:
            raise ValueError(f"cpu_need must be positive, got {self.cpu_need}")
        if self.mem_need <= 0:
            raise ValueError(f"mem_need must be positive, got {self.mem_need}")
        if self.budget < 0:
            raise ValueError(f"budget must be non-negative, got {self.budget}")


@dataclass
class Message:
    kind: MessageKind
    task: Task

    def to_task(self) -> Task:
        return self.task

    def to_packet(self) -> bytes:
        return json.dumps({"kind": self.kind.value, "task": asdict(self.task)}).encode("utf-8")

    @classmethod
    def from_packet(cls, packet: bytes) -> "Message":
        payload = json.loads(packet.decode("utf-8"))
        try:
            kind = MessageKind(payload["kind"])
        except ValueError:
            raise ValueError(f"Unknown message kind: {payload['kind']!r}") from None
        t = payload["task"]
        task = Task(
            id=str(t["id"]),
            cpu_need=float(t["cpu_need"]),
            mem_need=float(t["mem_need"]),
            budget=float(t["budget"]),
        )
        return cls(kind=kind, task=task)


class TaskFactory:
    """
    Samples tasks with demands drawn uniformly from the configured ranges.

    Ids are fresh uuid4 hex strings, so no id is ever handed out twice.
    """

    def __init__(
        self,
        cpu_range=(EnvConfig.TASK_CPU_MIN, EnvConfig.TASK_CPU_MAX),
        memory_range=(EnvConfig.TASK_MEMORY_MIN, EnvConfig.TASK_MEMORY_MAX),
        budget_range=(EnvConfig.TASK_BUDGET_MIN, EnvConfig.TASK_BUDGET_MAX),
        rng: Optional[np.random.Generator] = None,
    ):
        self.cpu_range = cpu_range
        self.memory_range = memory_range
        self.budget_range = budget_range
        self.rng = rng if rng is not None else np.random.default_rng()

    def sample(self) -> Task:
        return Task(
            id=uuid.uuid4().hex,
            cpu_need=float(self.rng.uniform(*self.cpu_range)),
            mem_need=float(self.rng.uniform(*self.memory_range)),
            budget=float(self.rng.uniform(*self.budget_range)),
        )

    def sample_many(self, n: int):
        return [self.sample() for _ in range(n)]
