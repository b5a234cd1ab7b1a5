from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from application.ports.logger import LoggerPort
from domain.run_log import ScenarioLogEntry
from infrastructure.logging.composite_logger import CompositeLogger


@dataclass(frozen=True)
class ScenarioLogLogger(LoggerPort):
    """アクティブなシナリオのログ（レポートに載る）へ追記する"""

    entries: List[ScenarioLogEntry]
    bound: Dict[str, Any] = field(default_factory=dict)

    def bind(self, **fields: Any) -> "ScenarioLogLogger":
        merged = dict(self.bound)
        merged.update(fields)
        return ScenarioLogLogger(entries=self.entries, bound=merged)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        payload = dict(self.bound)
        payload.update(fields)
        self.entries.append(
            ScenarioLogEntry(
                timestamp=datetime.now(timezone.utc),
                level=level,
                event=event,
                fields=payload,
            )
        )


def scenario_logger_factory(base: LoggerPort, entries: List[ScenarioLogEntry]) -> LoggerPort:
    return CompositeLogger((base, ScenarioLogLogger(entries=entries)))
