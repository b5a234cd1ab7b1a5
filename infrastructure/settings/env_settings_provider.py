# infrastructure/settings/env_settings_provider.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from domain.exceptions import ConfigurationError
from domain.settings import (
    DEFAULT_BASE_URI,
    DEFAULT_PARALLELISM,
    DEFAULT_TIMEOUT_SEC,
    HarnessSettings,
)

# プロジェクトルートの .env
DEFAULT_ENV_PATH = Path(__file__).parent.parent.parent / ".env"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class EnvSettingsProvider:
    """
    環境変数と .env ファイルから HarnessSettings を組み立てる。
    .env の値が環境変数より優先される。起動時に1回だけ読む想定。
    """

    def __init__(self, env_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        path = env_path if env_path is not None else DEFAULT_ENV_PATH
        values: Dict[str, Optional[str]] = dict(dotenv_values(path)) if path.exists() else {}
        source = os.environ if environ is None else environ
        for key, value in source.items():
            if key not in values:
                values[key] = value
        self._values = values

    def get(self) -> HarnessSettings:
        default_headers: Dict[str, str] = {}
        api_key = self._str("API_KEY")
        if api_key:
            default_headers["x-api-key"] = api_key

        return HarnessSettings(
            base_uri=self._str("API_BASE_URI", DEFAULT_BASE_URI),
            timeout_sec=self._positive_float("API_TIMEOUT_SEC", DEFAULT_TIMEOUT_SEC),
            verify_tls=self._bool("API_VERIFY_TLS", True),
            default_headers=default_headers,
            proxy_host=self._str("HTTP_PROXY_HOST"),
            proxy_port=self._str("HTTP_PROXY_PORT"),
            parallelism=self._positive_int("BDD_PARALLELISM", DEFAULT_PARALLELISM),
            log_level=self._str("LOG_LEVEL", "INFO").upper(),
            report_config_path=self._str("REPORT_CONFIG", "report.yaml"),
        )

    def _str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._values.get(key)
        if value is None or value.strip() == "":
            return default
        return value.strip()

    def _bool(self, key: str, default: bool) -> bool:
        raw = self._str(key)
        if raw is None:
            return default
        if raw.lower() in _TRUE_VALUES:
            return True
        if raw.lower() in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"{key} must be a boolean: {raw!r}")

    def _positive_float(self, key: str, default: float) -> float:
        raw = self._str(key)
        if raw is None:
            return default
        try:
            value = float(raw)
        except ValueError:
            raise ConfigurationError(f"{key} must be a number: {raw!r}") from None
        if value <= 0:
            raise ConfigurationError(f"{key} must be positive: {raw!r}")
        return value

    def _positive_int(self, key: str, default: int) -> int:
        raw = self._str(key)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ConfigurationError(f"{key} must be an integer: {raw!r}") from None
        if value <= 0:
            raise ConfigurationError(f"{key} must be positive: {raw!r}")
        return value
