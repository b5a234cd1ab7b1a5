# infrastructure/report/html_report_generator.py
"""
run log（ScenarioRecord の列）から閲覧用の HTML レポートを生成する。

- index.html   : feature ごとのシナリオ・ステップ・シナリオログ
- summary.json : 集計値
- trends.json  : ビルドごとの集計履歴（trends_limit 件まで）
"""
from __future__ import annotations

import json
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import BaseLoader, Environment, select_autoescape

from application.ports.logger import LoggerPort
from domain.run_log import ScenarioRecord
from infrastructure.report.report_config import PresentationMode, ReportConfig, SortingMethod

_HTML_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ config.project_name }} - build {{ config.build_number }}</title>
<style>
  body { font-family: system-ui, sans-serif; margin: 24px; color: #111; background: #f7fafc; }
  .card { background: #fff; border-radius: 8px; padding: 12px 16px; margin-bottom: 16px; box-shadow: 0 1px 3px #0002; }
  .passed { color: #137333; } .failed { color: #c5221f; }
  table { border-collapse: collapse; } td, th { padding: 4px 10px; text-align: left; border-bottom: 1px solid #eee; }
  pre { background: #f1f3f4; padding: 8px; overflow-x: auto; font-size: 12px; }
  summary { cursor: pointer; }
</style>
</head>
<body>
<h1>{{ config.project_name }}</h1>

<div class="card">
  <table>
    <tr><th>Build</th><td>{{ config.build_number }}</td></tr>
    <tr><th>Generated</th><td>{{ generated_at }}</td></tr>
    {% for name, value in config.classifications %}
    <tr><th>{{ name }}</th><td>{{ value }}</td></tr>
    {% endfor %}
  </table>
</div>

<div class="card">
  <h3>Summary</h3>
  <table>
    <tr><th>Scenarios</th><td>{{ summary.total }}</td></tr>
    <tr><th>Passed</th><td class="passed">{{ summary.passed }}</td></tr>
    <tr><th>Failed</th><td class="failed">{{ summary.failed }}</td></tr>
    <tr><th>Duration</th><td>{{ summary.duration_ms }} ms</td></tr>
  </table>
</div>

{% if trends %}
<div class="card">
  <h3>Trends</h3>
  <table>
    <tr><th>Build</th><th>Generated</th><th>Total</th><th>Passed</th><th>Failed</th></tr>
    {% for t in trends %}
    <tr><td>{{ t.build }}</td><td>{{ t.generated_at }}</td><td>{{ t.total }}</td>
        <td class="passed">{{ t.passed }}</td><td class="failed">{{ t.failed }}</td></tr>
    {% endfor %}
  </table>
</div>
{% endif %}

{% for feature, scenarios in features.items() %}
<div class="card">
  <h2>Feature: {{ feature }}</h2>
  {% for s in scenarios %}
  <details{% if expand %} open{% endif %}>
    <summary class="{{ s.status }}">
      Scenario: {{ s.name }} [{{ s.status }}] ({{ s.duration_ms }} ms){% if s.tags %} {% for t in s.tags %}@{{ t }} {% endfor %}{% endif %}
    </summary>
    <table>
      {% for step in s.steps %}
      <tr class="{{ step.status }}"><td>{{ step.keyword }}</td><td>{{ step.text }}</td><td>{{ step.status }}</td></tr>
      {% if step.error %}<tr><td></td><td colspan="2"><pre>{{ step.error }}</pre></td></tr>{% endif %}
      {% endfor %}
    </table>
    {% if s.log %}
    <details{% if expand %} open{% endif %}>
      <summary>Scenario log ({{ s.log|length }} entries)</summary>
      {% for entry in s.log %}
      <pre>[{{ entry.level }}] {{ entry.event }} {{ entry.fields | tojson(indent=2) }}</pre>
      {% endfor %}
    </details>
    {% endif %}
  </details>
  {% endfor %}
</div>
{% endfor %}
</body>
</html>
"""

_env = Environment(
    loader=BaseLoader(),
    autoescape=select_autoescape(enabled_extensions=("html", "xml"), default_for_string=True),
)
_env.policies["json.dumps_kwargs"] = {"sort_keys": False, "ensure_ascii": False, "default": str}


@dataclass(frozen=True)
class ReportSummary:
    total: int
    passed: int
    failed: int
    duration_ms: int


class HtmlReportGenerator:
    def __init__(self, config: ReportConfig, logger: LoggerPort):
        self._config = config
        self._logger = logger

    def generate(self, records: List[ScenarioRecord]) -> Path:
        config = self._config
        config.output_dir.mkdir(parents=True, exist_ok=True)

        summary = self.summarize(records)
        generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        trends = self._update_trends(summary, generated_at)

        html = _env.from_string(_HTML_TEMPLATE).render(
            config=config,
            generated_at=generated_at,
            summary=summary,
            trends=trends,
            features=self.group_by_feature(records),
            expand=config.presentation == PresentationMode.EXPAND_ALL_STEPS,
        )

        html_path = config.output_dir / "index.html"
        self._atomic_text_write(html_path, html)
        self._atomic_text_write(
            config.output_dir / "summary.json",
            json.dumps(
                {
                    "project": config.project_name,
                    "build": config.build_number,
                    "generated_at": generated_at,
                    "total": summary.total,
                    "passed": summary.passed,
                    "failed": summary.failed,
                    "duration_ms": summary.duration_ms,
                },
                indent=2,
                ensure_ascii=False,
            ),
        )
        self._logger.info(
            "report.generated",
            path=str(html_path),
            total=summary.total,
            passed=summary.passed,
            failed=summary.failed,
        )
        return html_path

    def summarize(self, records: List[ScenarioRecord]) -> ReportSummary:
        passed = sum(1 for r in records if r.passed)
        return ReportSummary(
            total=len(records),
            passed=passed,
            failed=len(records) - passed,
            duration_ms=sum(r.duration_ms for r in records),
        )

    def group_by_feature(self, records: List[ScenarioRecord]) -> "OrderedDict[str, List[ScenarioRecord]]":
        ordered = list(records)
        if self._config.sorting == SortingMethod.ALPHABETICAL:
            ordered.sort(key=lambda r: (r.feature.lower(), r.name.lower()))

        grouped: "OrderedDict[str, List[ScenarioRecord]]" = OrderedDict()
        for r in ordered:
            grouped.setdefault(r.feature, []).append(r)
        return grouped

    def _update_trends(self, summary: ReportSummary, generated_at: str) -> List[Dict[str, Any]]:
        path = self._config.trends_file
        trends: List[Dict[str, Any]] = []
        if path.exists():
            try:
                loaded = json.loads(path.read_text(encoding="utf-8"))
                if isinstance(loaded, list):
                    trends = loaded
            except ValueError as e:
                # 壊れた trends は作り直す
                self._logger.warning("report.trends_unreadable", path=str(path), error=str(e))

        trends.append(
            {
                "build": self._config.build_number,
                "generated_at": generated_at,
                "total": summary.total,
                "passed": summary.passed,
                "failed": summary.failed,
            }
        )
        if self._config.trends_limit > 0:
            trends = trends[-self._config.trends_limit:]

        path.parent.mkdir(parents=True, exist_ok=True)
        self._atomic_text_write(path, json.dumps(trends, indent=2, ensure_ascii=False))
        return trends

    @staticmethod
    def _atomic_text_write(path: Path, text: str) -> None:
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)
