"""
Offline run of the step library: the HTTP client and the run log are
replaced by in-memory doubles, everything else is the real wiring.
"""
import pytest
from pytest_bdd import parsers, scenarios, then

from application.context_store import RequestContextStore
from domain.settings import HarnessSettings
from infrastructure.run.in_memory_run_log_store import InMemoryRunLogStore
from tests.mock_http_client import StubHttpClient

scenarios("offline_api.feature")


@pytest.fixture(scope="module")
def harness_settings() -> HarnessSettings:
    return HarnessSettings(base_uri="http://stub.local/api")


@pytest.fixture(scope="module")
def http_client() -> StubHttpClient:
    return StubHttpClient()


@pytest.fixture(scope="module")
def run_log_store() -> InMemoryRunLogStore:
    return InMemoryRunLogStore()


@then(parsers.parse('the scenario log should contain "{event}"'))
def scenario_log_should_contain(context_store: RequestContextStore, event: str) -> None:
    events = [entry.event for entry in context_store.context.log]
    assert event in events, f"{event} not in {events}"


@then(parsers.parse('the stub should have received header "{name}" with value "{value}"'))
def stub_received_header(http_client: StubHttpClient, name: str, value: str) -> None:
    assert http_client.last_call.spec.headers[name] == value
