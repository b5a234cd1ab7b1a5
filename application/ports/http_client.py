# application/ports/http_client.py
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.http_method import HttpMethod
from domain.request_spec import RequestSpec
from domain.response import ResponseSnapshot


class HttpClientPort(ABC):
    @abstractmethod
    def send(self, spec: RequestSpec, method: HttpMethod, path: str) -> ResponseSnapshot:
        """
        spec + method + path でリクエストを送信する。
        通信エラー・タイムアウトは例外として送出する（リトライしない）。
        """
        ...
