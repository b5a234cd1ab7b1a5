from __future__ import annotations

from threading import Lock
from typing import List

from application.ports.run_log_store import RunLogStorePort
from domain.run_log import ScenarioRecord


class InMemoryRunLogStore(RunLogStorePort):
    def __init__(self) -> None:
        self._records: List[ScenarioRecord] = []
        self._lock = Lock()

    def append(self, record: ScenarioRecord) -> None:
        with self._lock:
            self._records.append(record)

    def list(self) -> List[ScenarioRecord]:
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
