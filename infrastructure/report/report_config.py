# infrastructure/report/report_config.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from domain.exceptions import ConfigurationError


class SortingMethod(str, Enum):
    NATURAL = "natural"
    ALPHABETICAL = "alphabetical"


class PresentationMode(str, Enum):
    EXPAND_ALL_STEPS = "expand_all_steps"
    COLLAPSED = "collapsed"


def _default_classifications() -> List[Tuple[str, str]]:
    return [("Platform", "Windows"), ("Browser", "Chrome"), ("Branch", "master")]


@dataclass(frozen=True)
class ReportConfig:
    project_name: str = "API Test Automation"
    build_number: str = "1.0"
    classifications: List[Tuple[str, str]] = field(default_factory=_default_classifications)
    sorting: SortingMethod = SortingMethod.NATURAL
    presentation: PresentationMode = PresentationMode.EXPAND_ALL_STEPS
    output_dir: Path = Path("reports/cucumber-reports")
    run_log_dir: Path = Path("reports/run-log")
    # pytest-bdd --cucumberjson の出力先。外部ツール向けの追加成果物で、HTML レポートは run log から作る
    cucumber_json: Path = Path("reports/cucumber-reports/cucumber.json")
    trends_file: Path = Path("reports/cucumber-reports/trends.json")
    trends_limit: int = 30


class YamlReportConfigLoader:
    """report.yaml から ReportConfig をロード（ファイルが無ければデフォルト）"""

    def load_from_file(self, path: Path) -> ReportConfig:
        p = Path(path)
        if not p.exists():
            return ReportConfig()

        try:
            with p.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Report config is not valid YAML: {path}: {e}") from e

        if data is None:
            return ReportConfig()
        if not isinstance(data, dict):
            raise ConfigurationError(f"Report config must be a mapping: {path}")

        return self.load_from_dict(data, base_dir=p.parent)

    def load_from_dict(self, data: Dict[str, Any], base_dir: Path = Path(".")) -> ReportConfig:
        defaults = ReportConfig()
        paths = data.get("paths", {}) or {}

        return ReportConfig(
            project_name=str(data.get("project_name", defaults.project_name)),
            build_number=str(data.get("build_number", defaults.build_number)),
            classifications=self._load_classifications(data.get("classifications")),
            sorting=self._enum(SortingMethod, data.get("sorting", defaults.sorting.value), "sorting"),
            presentation=self._enum(
                PresentationMode, data.get("presentation", defaults.presentation.value), "presentation"
            ),
            output_dir=self._path(base_dir, paths.get("output_dir"), defaults.output_dir),
            run_log_dir=self._path(base_dir, paths.get("run_log_dir"), defaults.run_log_dir),
            cucumber_json=self._path(base_dir, paths.get("cucumber_json"), defaults.cucumber_json),
            trends_file=self._path(base_dir, paths.get("trends_file"), defaults.trends_file),
            trends_limit=int(data.get("trends_limit", defaults.trends_limit)),
        )

    def _load_classifications(self, raw: Any) -> List[Tuple[str, str]]:
        if raw is None:
            return _default_classifications()
        if not isinstance(raw, dict):
            raise ConfigurationError("classifications must be a mapping of name: value")
        return [(str(k), str(v)) for k, v in raw.items()]

    def _enum(self, enum_cls, raw: Any, label: str):
        try:
            return enum_cls(str(raw).lower())
        except ValueError:
            allowed = ", ".join(m.value for m in enum_cls)
            raise ConfigurationError(f"Unknown {label}: {raw!r} (expected one of {allowed})") from None

    def _path(self, base_dir: Path, raw: Any, default: Path) -> Path:
        if not raw:
            return base_dir / default
        p = Path(str(raw))
        return p if p.is_absolute() else base_dir / p
