# domain/response.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict

_NOT_JSON = object()


@dataclass(frozen=True)
class ResponseSnapshot:
    status: int
    url: str
    text: str
    headers: Dict[str, str] = field(default_factory=dict)
    elapsed_ms: int = 0

    def json_body(self) -> Any:
        """JSON として解釈したボディ。JSON でなければ None"""
        parsed = self._parse()
        return None if parsed is _NOT_JSON else parsed

    def is_json(self) -> bool:
        return self._parse() is not _NOT_JSON

    def pretty_body(self) -> str:
        parsed = self._parse()
        if parsed is _NOT_JSON:
            return self.text
        return json.dumps(parsed, indent=2, ensure_ascii=False)

    def _parse(self) -> Any:
        if not self.text:
            return _NOT_JSON
        try:
            return json.loads(self.text)
        except ValueError:
            return _NOT_JSON
