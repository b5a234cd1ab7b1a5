# application/services/json_path.py
from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Union

_INDEX_RE = re.compile(r"^(?P<key>[^\[\]]*)(?P<indices>(\[\d+\])*)$")


class JsonPathError(Exception):
    pass


def parse_path(path: str) -> List[Union[str, int]]:
    """
    path examples:
      name
      support.url
      data[1].first_name
      data.1.first_name
    """
    parts: List[Union[str, int]] = []
    for segment in (path or "").strip().split("."):
        if segment == "":
            raise JsonPathError(f"empty segment in path: {path!r}")
        m = _INDEX_RE.match(segment)
        if m is None:
            raise JsonPathError(f"invalid path segment: {segment!r}")
        key = m.group("key")
        if key.isdigit():
            parts.append(int(key))
        elif key:
            parts.append(key)
        for idx in re.findall(r"\[(\d+)\]", m.group("indices")):
            parts.append(int(idx))
    return parts


def extract(obj: Any, path: str) -> Any:
    """見つからない場合は None（キー欠落・範囲外・型不一致）"""
    cur = obj
    for part in parse_path(path):
        if isinstance(part, int):
            if not isinstance(cur, list) or part >= len(cur):
                return None
            cur = cur[part]
        else:
            if not isinstance(cur, dict):
                return None
            cur = cur.get(part)
        if cur is None:
            return None
    return cur


def as_string(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)
