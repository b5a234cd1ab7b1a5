# domain/settings.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

DEFAULT_BASE_URI = "https://reqres.in/api"
DEFAULT_TIMEOUT_SEC = 10.0
DEFAULT_PARALLELISM = 4


@dataclass(frozen=True)
class HarnessSettings:
    base_uri: str = DEFAULT_BASE_URI
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    verify_tls: bool = True
    default_headers: Dict[str, str] = field(default_factory=dict)
    # proxy は step 実行時に解釈する（不正値はシナリオ単位で失敗させる）
    proxy_host: Optional[str] = None
    proxy_port: Optional[str] = None
    parallelism: int = DEFAULT_PARALLELISM
    log_level: str = "INFO"
    report_config_path: str = "report.yaml"
