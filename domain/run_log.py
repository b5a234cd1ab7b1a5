from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from domain.run_record import StepRecord


@dataclass(frozen=True)
class ScenarioLogEntry:
    timestamp: datetime
    level: str
    event: str
    fields: Dict[str, Any]


@dataclass(frozen=True)
class ScenarioRecord:
    """1シナリオ分の実行結果（run log の1行）"""

    feature: str
    name: str
    tags: Tuple[str, ...]
    worker: str
    status: str
    started_at: Optional[datetime]
    finished_at: Optional[datetime]
    duration_ms: int
    error: Optional[str] = None
    steps: List[StepRecord] = field(default_factory=list)
    log: List[ScenarioLogEntry] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status == "passed"
