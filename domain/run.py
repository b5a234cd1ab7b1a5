# domain/run.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from domain.request_spec import RequestSpec
from domain.response import ResponseSnapshot
from domain.run_log import ScenarioLogEntry
from domain.run_record import ScenarioRun


@dataclass
class ExecutionContext:
    request: Optional[RequestSpec] = None
    response: Optional[ResponseSnapshot] = None
    scenario: Optional[ScenarioRun] = None
    log: List[ScenarioLogEntry] = field(default_factory=list)
