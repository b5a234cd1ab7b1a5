from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LoggerPort(ABC):
    """
    event 名 + キーワード引数の構造化ログ。
    例: logger.info("http.response", status=200, method="GET")

    event 名は "<領域>.<出来事>" で書く（scenario.start, assert.field_failed など）。
    """

    @abstractmethod
    def debug(self, event: str, **fields: Any) -> None:
        ...

    @abstractmethod
    def info(self, event: str, **fields: Any) -> None:
        ...

    @abstractmethod
    def warning(self, event: str, **fields: Any) -> None:
        ...

    @abstractmethod
    def error(self, event: str, **fields: Any) -> None:
        """失敗イベント。error / error_type を fields に含める"""
        ...

    @abstractmethod
    def bind(self, **fields: Any) -> "LoggerPort":
        """fields を以後の全イベントに付与したロガーを返す（元のロガーは変更しない）"""
        ...
