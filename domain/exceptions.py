# domain/exceptions.py
from __future__ import annotations


class HarnessError(Exception):
    pass


class ConfigurationError(HarnessError):
    """設定値（proxy, base URI, timeout など）が不正"""


class ContextStateError(HarnessError):
    """前提となる状態がまだ存在しない（例: base URI 設定前の送信）"""


class InvalidArgumentError(HarnessError):
    """ステップ引数が前提条件を満たさない"""


class TransportError(HarnessError):
    def __init__(self, method: str, path: str, cause: BaseException):
        self.method = method
        self.path = path
        super().__init__(f"Failed to execute {method} request to {path}: {cause}")
