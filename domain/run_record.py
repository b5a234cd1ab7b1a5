# domain/run_record.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from domain.exceptions import ContextStateError


class ScenarioStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


_TRANSITIONS = {
    ScenarioStatus.NOT_STARTED: {ScenarioStatus.RUNNING},
    ScenarioStatus.RUNNING: {ScenarioStatus.PASSED, ScenarioStatus.FAILED},
    ScenarioStatus.PASSED: set(),
    ScenarioStatus.FAILED: set(),
}


@dataclass(frozen=True)
class StepRecord:
    keyword: str
    text: str
    status: str  # "passed" | "failed"
    error: Optional[str] = None


@dataclass
class ScenarioRun:
    feature: str
    name: str
    tags: Tuple[str, ...] = ()
    worker: str = "main"
    status: ScenarioStatus = ScenarioStatus.NOT_STARTED
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    steps: List[StepRecord] = field(default_factory=list)

    def start(self) -> None:
        self._transition(ScenarioStatus.RUNNING)
        self.started_at = datetime.now(timezone.utc)

    def record_step(self, keyword: str, text: str) -> None:
        self._require_running()
        self.steps.append(StepRecord(keyword=keyword, text=text, status="passed"))

    def fail(self, keyword: str, text: str, error: str) -> None:
        self._require_running()
        self.steps.append(StepRecord(keyword=keyword, text=text, status="failed", error=error))
        self.error = error
        self._transition(ScenarioStatus.FAILED)
        self.finished_at = datetime.now(timezone.utc)

    def finish(self) -> None:
        # 失敗済みならそのまま
        if self.status == ScenarioStatus.FAILED:
            return
        self._transition(ScenarioStatus.PASSED)
        self.finished_at = datetime.now(timezone.utc)

    def has_tag(self, tag: str) -> bool:
        return tag.lstrip("@") in {t.lstrip("@") for t in self.tags}

    @property
    def duration_ms(self) -> int:
        if self.started_at is None or self.finished_at is None:
            return 0
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    def _require_running(self) -> None:
        if self.status != ScenarioStatus.RUNNING:
            raise ContextStateError(
                f"Scenario '{self.name}' is not running (status={self.status.value})"
            )

    def _transition(self, target: ScenarioStatus) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise ContextStateError(
                f"Illegal scenario transition: {self.status.value} -> {target.value}"
            )
        self.status = target
