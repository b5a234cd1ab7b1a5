"""
Step definitions for the REST API scenarios.

Each step is a thin binding from a Gherkin phrase to ApiStepExecutor;
the worker's RequestContextStore is passed in through the ``context_store``
fixture, so steps never touch shared module state.
"""
from __future__ import annotations

from pathlib import Path

import pytest
from pytest_bdd import given, parsers, then, when

from application.context_store import RequestContextStore, WorkerContextRegistry
from application.executor.scenario_lifecycle import ScenarioLifecycle
from application.executor.step_executor import ApiStepExecutor
from application.ports.http_client import HttpClientPort
from application.ports.logger import LoggerPort
from application.ports.requests_client import RequestsHttpClient
from application.ports.run_log_store import RunLogStorePort
from domain.settings import HarnessSettings
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.scenario_log_logger import scenario_logger_factory
from infrastructure.report.report_config import ReportConfig, YamlReportConfigLoader
from infrastructure.run.jsonl_run_log_store import JsonlRunLogStore
from infrastructure.settings.env_settings_provider import EnvSettingsProvider


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def harness_settings() -> HarnessSettings:
    return EnvSettingsProvider().get()


@pytest.fixture(scope="session")
def harness_logger() -> LoggerPort:
    return ConsoleLogger()


@pytest.fixture(scope="session")
def report_config(harness_settings: HarnessSettings) -> ReportConfig:
    return YamlReportConfigLoader().load_from_file(Path(harness_settings.report_config_path))


@pytest.fixture(scope="session")
def context_registry(harness_logger: LoggerPort) -> WorkerContextRegistry:
    return WorkerContextRegistry(harness_logger)


@pytest.fixture
def context_store(context_registry: WorkerContextRegistry) -> RequestContextStore:
    """The execution context owned by the current worker."""
    return context_registry.current()


@pytest.fixture(scope="session")
def http_client(harness_settings: HarnessSettings) -> HttpClientPort:
    return RequestsHttpClient(
        timeout_sec=harness_settings.timeout_sec,
        verify_tls=harness_settings.verify_tls,
    )


@pytest.fixture
def step_executor(http_client: HttpClientPort, harness_settings: HarnessSettings) -> ApiStepExecutor:
    return ApiStepExecutor(http_client, harness_settings)


@pytest.fixture(scope="session")
def run_log_store(report_config: ReportConfig) -> RunLogStorePort:
    return JsonlRunLogStore(report_config.run_log_dir)


@pytest.fixture
def scenario_lifecycle(run_log_store: RunLogStorePort) -> ScenarioLifecycle:
    return ScenarioLifecycle(run_log_store, scenario_logger_factory)


# =============================================================================
# Given
# =============================================================================


@given("I have a base URI")
def have_base_uri(context_store: RequestContextStore, step_executor: ApiStepExecutor) -> None:
    step_executor.given_base_uri(context_store)


@given("I have the following request body:")
def have_request_body(
    context_store: RequestContextStore, step_executor: ApiStepExecutor, docstring: str
) -> None:
    step_executor.given_request_body(context_store, docstring)


@given(parsers.re(r'I have the header "(?P<name>[^"]*)" with value "(?P<value>[^"]*)"'))
def have_header(
    context_store: RequestContextStore, step_executor: ApiStepExecutor, name: str, value: str
) -> None:
    step_executor.given_header(context_store, name, value)


@given(parsers.re(r'I have the query parameter "(?P<name>[^"]*)" with value "(?P<value>[^"]*)"'))
def have_query_param(
    context_store: RequestContextStore, step_executor: ApiStepExecutor, name: str, value: str
) -> None:
    step_executor.given_query_param(context_store, name, value)


# =============================================================================
# When
# =============================================================================


@when(parsers.re(r'I send a (?P<method>\S+) request to "(?P<path>[^"]*)"'))
def send_request(
    context_store: RequestContextStore, step_executor: ApiStepExecutor, method: str, path: str
) -> None:
    step_executor.when_send_request(context_store, method, path)


# =============================================================================
# Then
# =============================================================================


@then(
    parsers.re(r"the response status code should be (?P<status>\d+)"),
    converters={"status": int},
)
def status_code_should_be(
    context_store: RequestContextStore, step_executor: ApiStepExecutor, status: int
) -> None:
    step_executor.then_status_code(context_store, status)


@then(parsers.re(r'the response should have field "(?P<field>[^"]*)" with value "(?P<value>[^"]*)"'))
def field_should_have_value(
    context_store: RequestContextStore, step_executor: ApiStepExecutor, field: str, value: str
) -> None:
    step_executor.then_field_value(context_store, field, value)


@then(parsers.re(r'the response should contain "(?P<text>[^"]*)"'))
def response_should_contain(
    context_store: RequestContextStore, step_executor: ApiStepExecutor, text: str
) -> None:
    step_executor.then_body_contains(context_store, text)


@then(
    parsers.re(
        r'the response should have field "(?P<field>[^"]*)" at index (?P<index>-?\d+) '
        r'with value "(?P<value>[^"]*)"'
    ),
    converters={"index": int},
)
def field_at_index_should_have_value(
    context_store: RequestContextStore,
    step_executor: ApiStepExecutor,
    field: str,
    index: int,
    value: str,
) -> None:
    step_executor.then_field_at_index(context_store, field, index, value)


@then(
    parsers.re(r"the response should have (?P<count>\d+) items in data array"),
    converters={"count": int},
)
def data_array_should_have_items(
    context_store: RequestContextStore, step_executor: ApiStepExecutor, count: int
) -> None:
    step_executor.then_item_count(context_store, count)
