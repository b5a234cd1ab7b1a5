from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from domain.run_log import ScenarioRecord


class RunLogStorePort(ABC):
    @abstractmethod
    def append(self, record: ScenarioRecord) -> None:
        ...

    @abstractmethod
    def list(self) -> List[ScenarioRecord]:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...
