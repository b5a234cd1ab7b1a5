"""
Scenario lifecycle hooks for pytest-bdd, plus run-level report generation.

Per scenario (every worker):
  before  -> reset the worker's context store, start the scenario run
  steps   -> record passed / failed steps in the scenario run
  after   -> append the scenario record to the run log, reset the store

Per run (controller process only):
  configure -> clear the run log directory, so it only holds this run
  finish    -> with --generate-report, render the HTML report once if any @GenerateReport scenario ran
"""
from __future__ import annotations

from pathlib import Path
from typing import Set

import pytest

from application.executor.scenario_lifecycle import REPORT_TAG, should_generate_report
from domain.exceptions import ConfigurationError
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.report.html_report_generator import HtmlReportGenerator
from infrastructure.report.report_config import YamlReportConfigLoader
from infrastructure.run.jsonl_run_log_store import JsonlRunLogStore
from infrastructure.settings.env_settings_provider import EnvSettingsProvider


def _is_xdist_worker(config: pytest.Config) -> bool:
    return hasattr(config, "workerinput")


def _load_report_config(config: pytest.Config):
    try:
        settings = EnvSettingsProvider().get()
        return settings, YamlReportConfigLoader().load_from_file(Path(settings.report_config_path))
    except ConfigurationError as e:
        raise pytest.UsageError(f"Invalid harness configuration: {e}") from e


# =============================================================================
# pytest hooks
# =============================================================================


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("api-harness")
    group.addoption(
        "--generate-report",
        action="store_true",
        default=False,
        help=f"Render the HTML report at the end of the run when a @{REPORT_TAG} scenario ran.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", f"{REPORT_TAG}: render the HTML report after the run")

    settings, report_config = _load_report_config(config)
    setup_console_logging(settings.log_level)

    # run log は常に今回の実行分だけ（report サブコマンドも同じログを読む）
    if _is_xdist_worker(config):
        return
    JsonlRunLogStore(report_config.run_log_dir).clear()


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    config = session.config
    if _is_xdist_worker(config) or not config.getoption("generate_report"):
        return

    _, report_config = _load_report_config(config)
    records = JsonlRunLogStore(report_config.run_log_dir).list()
    if not should_generate_report(records):
        return
    HtmlReportGenerator(report_config, ConsoleLogger()).generate(records)


# =============================================================================
# pytest-bdd hooks
# =============================================================================


def scenario_tags(feature, scenario) -> Set[str]:
    """Feature のタグはその配下の全シナリオに継承される"""
    return set(feature.tags) | set(scenario.tags)


def pytest_bdd_before_scenario(request, feature, scenario) -> None:
    lifecycle = request.getfixturevalue("scenario_lifecycle")
    store = request.getfixturevalue("context_store")
    lifecycle.before_scenario(store, feature.name, scenario.name, scenario_tags(feature, scenario))


def pytest_bdd_after_step(request, feature, scenario, step, step_func, step_func_args) -> None:
    lifecycle = request.getfixturevalue("scenario_lifecycle")
    store = request.getfixturevalue("context_store")
    lifecycle.after_step(store, step.keyword, step.name)


def pytest_bdd_step_error(request, feature, scenario, step, step_func, step_func_args, exception) -> None:
    lifecycle = request.getfixturevalue("scenario_lifecycle")
    store = request.getfixturevalue("context_store")
    lifecycle.on_step_error(store, step.keyword, step.name, exception)


def pytest_bdd_step_func_lookup_error(request, feature, scenario, step, exception) -> None:
    lifecycle = request.getfixturevalue("scenario_lifecycle")
    store = request.getfixturevalue("context_store")
    lifecycle.on_step_error(store, step.keyword, step.name, exception)


def pytest_bdd_after_scenario(request, feature, scenario) -> None:
    lifecycle = request.getfixturevalue("scenario_lifecycle")
    store = request.getfixturevalue("context_store")
    lifecycle.after_scenario(store)
