import logging
import threading
from typing import Dict, FrozenSet, Set

logger = logging.getLogger(__name__)


class DispatchRecordRegistry:
    """
    Which base stations have already tried and failed to place a task.

    Keyed by task id; each entry is the set of station addresses that failed
    it. Entries exist only while the task is unresolved. All operations hold
    the same lock, so stations failing the same task concurrently observe a
    single order of updates.
    """

    def __init__(self):
        self._records: Dict[str, Set[str]] = {}
        self.lock = threading.Lock()

    def record_failure(self, task_id: str, station_addr: str):
        with self.lock:
            self._records.setdefault(task_id, set()).add(station_addr)
            logger.debug("task %s failed at %s", task_id, station_addr)

    def has_failed(self, task_id: str, station_addr: str) -> bool:
        with self.lock:
            return station_addr in self._records.get(task_id, ())

    def clear(self, task_id: str):
        with self.lock:
            if self._records.pop(task_id, None) is not None:
                logger.debug("dispatch record of task %s cleared", task_id)

    def failed_stations(self, task_id: str) -> FrozenSet[str]:
        with self.lock:
            return frozenset(self._records.get(task_id, ()))

    def __contains__(self, task_id) -> bool:
        with self.lock:
            return task_id in self._records

    def __len__(self) -> int:
        with self.lock:
            return len(self._records)
