# domain/http_method.py
from __future__ import annotations

from enum import Enum

from domain.exceptions import InvalidArgumentError


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @classmethod
    def parse(cls, raw: str) -> "HttpMethod":
        name = (raw or "").strip().upper()
        try:
            return cls(name)
        except ValueError:
            supported = ", ".join(m.value for m in cls)
            raise InvalidArgumentError(
                f"Unsupported HTTP method: {raw} (expected one of {supported})"
            ) from None
