# tests/application/executor/test_step_executor.py
import json

import pytest

from application.context_store import RequestContextStore
from application.executor.step_executor import ApiStepExecutor
from domain.exceptions import (
    ConfigurationError,
    ContextStateError,
    InvalidArgumentError,
    TransportError,
)
from domain.response import ResponseSnapshot
from domain.settings import HarnessSettings
from tests.mock_http_client import StubHttpClient
from tests.recording_logger import RecordingLogger

BASE_URI = "http://stub.local/api"


def make_settings(**overrides) -> HarnessSettings:
    values = {"base_uri": BASE_URI}
    values.update(overrides)
    return HarnessSettings(**values)


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def store(logger):
    return RequestContextStore(logger)


@pytest.fixture
def http():
    return StubHttpClient()


@pytest.fixture
def executor(http):
    return ApiStepExecutor(http, make_settings())


def respond(store: RequestContextStore, body, status: int = 200) -> None:
    text = body if isinstance(body, str) else json.dumps(body)
    store.set_response(ResponseSnapshot(status=status, url=BASE_URI, text=text))


class TestGivenBaseUri:
    def test_initializes_request_spec(self, executor, store):
        spec = executor.given_base_uri(store)

        assert store.get_request() is spec
        assert spec.base_uri == BASE_URI
        assert spec.content_type == "application/json"
        assert spec.proxy is None

    def test_default_headers_are_applied(self, http, store):
        executor = ApiStepExecutor(http, make_settings(default_headers={"x-api-key": "k"}))

        spec = executor.given_base_uri(store)

        assert spec.headers == {"x-api-key": "k"}

    def test_proxy_is_attached_when_configured(self, http, store):
        executor = ApiStepExecutor(http, make_settings(proxy_host="proxy.local", proxy_port="3128"))

        spec = executor.given_base_uri(store)

        assert spec.proxy.url == "http://proxy.local:3128"

    def test_empty_base_uri_is_configuration_error(self, http, store, logger):
        executor = ApiStepExecutor(http, make_settings(base_uri="  "))

        with pytest.raises(ConfigurationError, match="Base URI is not configured"):
            executor.given_base_uri(store)
        assert "step.base_uri_failed" in logger.events("error")

    def test_invalid_proxy_port_is_configuration_error(self, http, store):
        executor = ApiStepExecutor(http, make_settings(proxy_host="proxy.local", proxy_port="abc"))

        with pytest.raises(ConfigurationError):
            executor.given_base_uri(store)

    def test_half_configured_proxy_is_configuration_error(self, http, store):
        executor = ApiStepExecutor(http, make_settings(proxy_host="proxy.local"))

        with pytest.raises(ConfigurationError):
            executor.given_base_uri(store)


class TestGivenRequestModifiers:
    def test_request_body_requires_base_uri(self, executor, store):
        with pytest.raises(ContextStateError, match="Request specification not initialized"):
            executor.given_request_body(store, '{"name": "morpheus"}')

    def test_request_body_is_attached(self, executor, store):
        executor.given_base_uri(store)

        executor.given_request_body(store, '{"name": "morpheus"}')

        assert store.get_request().body == '{"name": "morpheus"}'

    def test_header_is_masked_in_log(self, executor, store, logger):
        executor.given_base_uri(store)

        executor.given_header(store, "x-api-key", "secret")

        assert store.get_request().headers["x-api-key"] == "secret"
        logged = [c for c in logger.calls if c["event"] == "step.header_set"][0]
        assert logged["fields"]["headers"] == {"x-api-key": "********"}

    def test_empty_header_name_is_rejected(self, executor, store):
        executor.given_base_uri(store)
        with pytest.raises(InvalidArgumentError):
            executor.given_header(store, " ", "v")

    def test_query_param_is_attached(self, executor, store, http):
        executor.given_base_uri(store)
        executor.given_query_param(store, "page", "2")

        executor.when_send_request(store, "GET", "/users")

        assert http.last_call.spec.query_params == {"page": "2"}

    def test_empty_query_param_name_is_rejected(self, executor, store):
        executor.given_base_uri(store)
        with pytest.raises(InvalidArgumentError):
            executor.given_query_param(store, "", "2")


class TestWhenSendRequest:
    @pytest.mark.parametrize("method", ["GET", "get", "POST", "put", "Delete", "patch"])
    def test_any_supported_method_in_any_case(self, executor, store, http, method):
        executor.given_base_uri(store)

        executor.when_send_request(store, method, "/users/2")

        assert http.last_call.method == method.upper()
        assert http.last_call.url == f"{BASE_URI}/users/2"
        assert store.get_response() is not None

    def test_unsupported_method_makes_no_call(self, executor, store, http):
        executor.given_base_uri(store)

        with pytest.raises(InvalidArgumentError, match="Unsupported HTTP method: HEAD"):
            executor.when_send_request(store, "HEAD", "/users")
        assert http.calls == []

    @pytest.mark.parametrize("path", ["", "   "])
    def test_empty_endpoint_makes_no_call(self, executor, store, http, path):
        executor.given_base_uri(store)

        with pytest.raises(InvalidArgumentError, match="Endpoint cannot be null or empty"):
            executor.when_send_request(store, "GET", path)
        assert http.calls == []

    def test_send_without_base_uri_is_state_error(self, executor, store, http):
        with pytest.raises(ContextStateError, match="Request specification not initialized"):
            executor.when_send_request(store, "GET", "/users")
        assert http.calls == []

    def test_method_is_validated_before_request_state(self, executor, store):
        with pytest.raises(InvalidArgumentError):
            executor.when_send_request(store, "FETCH", "/users")

    def test_post_sends_body(self, executor, store, http):
        executor.given_base_uri(store)
        executor.given_request_body(store, '{"name": "morpheus", "job": "leader"}')

        response = executor.when_send_request(store, "POST", "/users")

        assert http.last_call.spec.body == '{"name": "morpheus", "job": "leader"}'
        assert response.status == 201
        assert response.json_body()["name"] == "morpheus"

    def test_transport_failure_is_wrapped(self, store):
        http = StubHttpClient(error=ConnectionError("connection refused"))
        executor = ApiStepExecutor(http, make_settings())
        executor.given_base_uri(store)

        with pytest.raises(TransportError) as excinfo:
            executor.when_send_request(store, "GET", "/users")

        assert str(excinfo.value) == "Failed to execute GET request to /users: connection refused"
        assert isinstance(excinfo.value.__cause__, ConnectionError)

    def test_request_and_response_are_logged(self, executor, store, logger):
        executor.given_base_uri(store)
        executor.given_header(store, "Authorization", "Bearer t")

        executor.when_send_request(store, "GET", "/users/2")

        request_log = [c for c in logger.calls if c["event"] == "http.request"][0]
        assert request_log["fields"]["headers"]["Authorization"] == "********"
        response_log = [c for c in logger.calls if c["event"] == "http.response"][0]
        assert response_log["fields"]["status"] == 200
        assert '"first_name": "Janet"' in response_log["fields"]["body"]


class TestThenStatusCode:
    def test_matching_status_passes(self, executor, store):
        executor.given_base_uri(store)
        executor.when_send_request(store, "GET", "/users/2")

        executor.then_status_code(store, 200)

    def test_mismatch_message(self, executor, store, logger):
        executor.given_base_uri(store)
        executor.when_send_request(store, "GET", "/unknown/23")

        with pytest.raises(AssertionError, match="^Expected status code 200 but got 404$"):
            executor.then_status_code(store, 200)
        assert "assert.status_code_failed" in logger.events("error")

    def test_without_response_is_state_error(self, executor, store):
        with pytest.raises(ContextStateError, match="Response not initialized"):
            executor.then_status_code(store, 200)


class TestThenFieldValue:
    def test_nested_field(self, executor, store):
        executor.given_base_uri(store)
        executor.when_send_request(store, "GET", "/users/2")

        executor.then_field_value(store, "data.first_name", "Janet")
        executor.then_field_value(store, "data.id", "2")

    def test_numbers_and_booleans_compare_as_strings(self, executor, store):
        respond(store, {"page": 2, "active": True})

        executor.then_field_value(store, "page", "2")
        executor.then_field_value(store, "active", "true")

    def test_mismatch_message(self, executor, store):
        respond(store, {"name": "morpheus"})

        with pytest.raises(AssertionError) as excinfo:
            executor.then_field_value(store, "name", "neo")
        assert str(excinfo.value) == "Expected value 'neo' for field 'name' but got 'morpheus'"

    def test_missing_field_is_reported_as_none(self, executor, store):
        respond(store, {"name": "morpheus"})

        with pytest.raises(AssertionError, match="but got 'None'"):
            executor.then_field_value(store, "job", "leader")

    def test_non_json_body_fails_assertion(self, executor, store):
        respond(store, "<html></html>")

        with pytest.raises(AssertionError):
            executor.then_field_value(store, "name", "morpheus")


class TestThenBodyContains:
    def test_substring_found(self, executor, store):
        respond(store, {"error": "Missing password"}, status=400)

        executor.then_body_contains(store, "Missing password")

    def test_substring_missing_message_contains_body(self, executor, store):
        respond(store, '{"token":"abc"}')

        with pytest.raises(AssertionError) as excinfo:
            executor.then_body_contains(store, "error")
        assert str(excinfo.value) == (
            "Expected response to contain 'error' but was not found in: {\"token\":\"abc\"}"
        )


class TestThenFieldAtIndex:
    @pytest.fixture(autouse=True)
    def _users_page(self, executor, store):
        executor.given_base_uri(store)
        executor.when_send_request(store, "GET", "/users")

    def test_value_at_index(self, executor, store):
        executor.then_field_at_index(store, "first_name", 1, "Jane")

    def test_data_prefix_is_accepted(self, executor, store):
        executor.then_field_at_index(store, "data.first_name", 0, "Eve")

    def test_mismatch_message(self, executor, store):
        with pytest.raises(AssertionError) as excinfo:
            executor.then_field_at_index(store, "first_name", 1, "John")
        assert str(excinfo.value) == (
            "Expected value 'John' for field 'first_name' at index 1 but got 'Jane'"
        )

    def test_index_out_of_bounds(self, executor, store):
        with pytest.raises(InvalidArgumentError, match="^Index 5 is out of bounds for data array of size 3$"):
            executor.then_field_at_index(store, "first_name", 5, "x")

    def test_negative_index_is_out_of_bounds(self, executor, store):
        with pytest.raises(InvalidArgumentError, match="Index -1 is out of bounds"):
            executor.then_field_at_index(store, "first_name", -1, "Tracey")

    def test_missing_data_array_is_out_of_bounds(self, executor, store):
        respond(store, {"page": 1})

        with pytest.raises(InvalidArgumentError, match="size 0"):
            executor.then_field_at_index(store, "first_name", 0, "Eve")


class TestThenItemCount:
    def test_count_matches(self, executor, store):
        executor.given_base_uri(store)
        executor.when_send_request(store, "GET", "/users")

        executor.then_item_count(store, 3)

    def test_count_mismatch_message(self, executor, store):
        respond(store, {"data": [1, 2]})

        with pytest.raises(AssertionError, match="^Expected 3 items in data array but found 2$"):
            executor.then_item_count(store, 3)

    def test_missing_data_counts_as_zero(self, executor, store):
        respond(store, {"page": 1})

        executor.then_item_count(store, 0)
        with pytest.raises(AssertionError, match="Expected 1 items in data array but found 0"):
            executor.then_item_count(store, 1)

    def test_data_that_is_not_an_array(self, executor, store):
        respond(store, {"data": {"id": 2}})

        with pytest.raises(InvalidArgumentError, match="not an array"):
            executor.then_item_count(store, 1)


class TestDataPrefixStripping:
    def test_only_leading_data_prefix_is_stripped(self, executor, store):
        respond(store, {"data": [{"profile": {"data": {"id": 7}}}]})

        executor.then_field_at_index(store, "profile.data.id", 0, "7")
        executor.then_field_at_index(store, "data.profile.data.id", 0, "7")
