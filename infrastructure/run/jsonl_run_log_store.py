# infrastructure/run/jsonl_run_log_store.py
"""
シナリオ結果を JSONL で保存する run log。
xdist ワーカーごとに1ファイル（<worker>.jsonl）に追記し、
読み出し時に全ファイルを開始時刻順にマージする。
"""
from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from application.ports.run_log_store import RunLogStorePort
from domain.run_log import ScenarioLogEntry, ScenarioRecord
from domain.run_record import StepRecord


def _dt_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _str_to_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def record_to_dict(record: ScenarioRecord) -> Dict[str, Any]:
    return {
        "feature": record.feature,
        "name": record.name,
        "tags": list(record.tags),
        "worker": record.worker,
        "status": record.status,
        "started_at": _dt_to_str(record.started_at),
        "finished_at": _dt_to_str(record.finished_at),
        "duration_ms": record.duration_ms,
        "error": record.error,
        "steps": [
            {"keyword": s.keyword, "text": s.text, "status": s.status, "error": s.error}
            for s in record.steps
        ],
        "log": [
            {
                "timestamp": _dt_to_str(e.timestamp),
                "level": e.level,
                "event": e.event,
                "fields": e.fields,
            }
            for e in record.log
        ],
    }


def record_from_dict(data: Dict[str, Any]) -> ScenarioRecord:
    return ScenarioRecord(
        feature=data.get("feature", ""),
        name=data.get("name", ""),
        tags=tuple(data.get("tags", [])),
        worker=data.get("worker", "main"),
        status=data.get("status", ""),
        started_at=_str_to_dt(data.get("started_at")),
        finished_at=_str_to_dt(data.get("finished_at")),
        duration_ms=int(data.get("duration_ms", 0)),
        error=data.get("error"),
        steps=[
            StepRecord(
                keyword=s.get("keyword", ""),
                text=s.get("text", ""),
                status=s.get("status", ""),
                error=s.get("error"),
            )
            for s in data.get("steps", [])
        ],
        log=[
            ScenarioLogEntry(
                timestamp=_str_to_dt(e.get("timestamp")),
                level=e.get("level", "info"),
                event=e.get("event", ""),
                fields=e.get("fields", {}),
            )
            for e in data.get("log", [])
        ],
    )


class JsonlRunLogStore(RunLogStorePort):
    def __init__(self, directory: Path, worker_id: Optional[str] = None) -> None:
        self._dir = Path(directory)
        self._worker_id = worker_id or os.environ.get("PYTEST_XDIST_WORKER", "main")
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._dir / f"{self._worker_id}.jsonl"

    def append(self, record: ScenarioRecord) -> None:
        line = json.dumps(record_to_dict(record), ensure_ascii=False, default=str)
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")

    def list(self) -> List[ScenarioRecord]:
        records: List[ScenarioRecord] = []
        if not self._dir.exists():
            return records
        with self._lock:
            for p in sorted(self._dir.glob("*.jsonl")):
                with p.open("r", encoding="utf-8") as f:
                    for line in f:
                        if line.strip():
                            records.append(record_from_dict(json.loads(line)))
        # 開始時刻順（＝実行順）
        records.sort(key=lambda r: r.started_at.isoformat() if r.started_at else "")
        return records

    def clear(self) -> None:
        with self._lock:
            if not self._dir.exists():
                return
            for p in self._dir.glob("*.jsonl"):
                p.unlink()
