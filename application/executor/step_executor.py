# application/executor/step_executor.py
from __future__ import annotations

import time
from typing import Any, List, NoReturn, Optional

from application.context_store import RequestContextStore
from application.ports.http_client import HttpClientPort
from application.services.json_path import JsonPathError, as_string, extract
from application.services.redactor import mask_dict
from domain.exceptions import (
    ConfigurationError,
    HarnessError,
    InvalidArgumentError,
    TransportError,
)
from domain.http_method import HttpMethod
from domain.request_spec import ProxySettings, RequestSpec
from domain.response import ResponseSnapshot
from domain.settings import HarnessSettings

DATA_ARRAY_KEY = "data"
_DATA_PREFIX = "data."


class ApiStepExecutor:
    """
    BDD ステップ1つ = 1メソッド。
    状態は RequestContextStore 経由でのみ読み書きし、
    失敗はシナリオログに記録してから再送出する。
    """

    def __init__(self, http_client: HttpClientPort, settings: HarnessSettings):
        self._http = http_client
        self._settings = settings

    # --- Given -------------------------------------------------------------

    def given_base_uri(self, store: RequestContextStore) -> RequestSpec:
        log = store.logger
        try:
            base_uri = (self._settings.base_uri or "").strip()
            if not base_uri:
                raise ConfigurationError(f"Base URI is not configured: {self._settings.base_uri!r}")
            proxy = ProxySettings.from_raw(self._settings.proxy_host, self._settings.proxy_port)
            spec = RequestSpec(
                base_uri=base_uri,
                content_type="application/json",
                headers=dict(self._settings.default_headers),
                proxy=proxy,
            )
        except ConfigurationError as e:
            self._fail(
                store,
                "step.base_uri_failed",
                e,
                base_uri=self._settings.base_uri,
                proxy_host=self._settings.proxy_host,
                proxy_port=self._settings.proxy_port,
            )

        store.set_request(spec)
        log.info(
            "step.base_uri_set",
            base_uri=spec.base_uri,
            proxy=spec.proxy.url if spec.proxy else None,
        )
        return spec

    def given_request_body(self, store: RequestContextStore, body: str) -> RequestSpec:
        try:
            spec = store.get_request().with_body(body)
        except HarnessError as e:
            self._fail(store, "step.request_body_failed", e)
        store.set_request(spec)
        store.logger.info("step.request_body_set", body=body)
        return spec

    def given_header(self, store: RequestContextStore, name: str, value: str) -> RequestSpec:
        try:
            if not name.strip():
                raise InvalidArgumentError("Header name cannot be empty")
            spec = store.get_request().with_header(name, value)
        except HarnessError as e:
            self._fail(store, "step.header_failed", e, header=name)
        store.set_request(spec)
        store.logger.info("step.header_set", headers=mask_dict({name: value}))
        return spec

    def given_query_param(self, store: RequestContextStore, name: str, value: str) -> RequestSpec:
        try:
            if not name.strip():
                raise InvalidArgumentError("Query parameter name cannot be empty")
            spec = store.get_request().with_query_param(name, value)
        except HarnessError as e:
            self._fail(store, "step.query_param_failed", e, param=name)
        store.set_request(spec)
        store.logger.info("step.query_param_set", name=name, value=value)
        return spec

    # --- When --------------------------------------------------------------

    def when_send_request(self, store: RequestContextStore, method: str, path: str) -> ResponseSnapshot:
        log = store.logger
        try:
            # ネットワーク呼び出し前に引数を検証する
            if path is None or not path.strip():
                raise InvalidArgumentError(f"Endpoint cannot be null or empty: {path!r}")
            http_method = HttpMethod.parse(method)
            spec = store.get_request()
        except HarnessError as e:
            self._fail(store, "http.invalid_request", e, method=method, path=path)

        log.info(
            "http.request",
            method=http_method.value,
            url=spec.url_for(path),
            headers=mask_dict(spec.all_headers()),
            params=spec.query_params,
            body=spec.body,
        )

        t0 = time.perf_counter()
        try:
            response = self._http.send(spec, http_method, path)
        except HarnessError as e:
            self._fail(store, "http.request_failed", e, method=http_method.value, path=path)
        except Exception as e:
            wrapped = TransportError(http_method.value, path, e)
            log.error(
                "http.request_failed",
                method=http_method.value,
                path=path,
                error=str(wrapped),
                elapsed_ms=int((time.perf_counter() - t0) * 1000),
            )
            raise wrapped from e

        store.set_response(response)
        log.info(
            "http.response",
            method=http_method.value,
            status=response.status,
            url=response.url,
            elapsed_ms=response.elapsed_ms,
            headers=mask_dict(response.headers),
            body=response.pretty_body(),
        )
        return response

    # --- Then --------------------------------------------------------------

    def then_status_code(self, store: RequestContextStore, expected: int) -> None:
        try:
            actual = store.get_response().status
            if expected != actual:
                raise AssertionError(f"Expected status code {expected} but got {actual}")
        except (AssertionError, HarnessError) as e:
            self._fail(store, "assert.status_code_failed", e, expected=expected)
        store.logger.info("assert.status_code_ok", status=actual)

    def then_field_value(self, store: RequestContextStore, field: str, expected: str) -> None:
        try:
            response = store.get_response()
            actual = as_string(self._extract(response.json_body(), field))
            if expected != actual:
                raise AssertionError(
                    f"Expected value '{expected}' for field '{field}' but got '{actual}'"
                )
        except (AssertionError, HarnessError) as e:
            self._fail(store, "assert.field_failed", e, field=field, expected=expected)
        store.logger.info("assert.field_ok", field=field, value=actual)

    def then_body_contains(self, store: RequestContextStore, text: str) -> None:
        try:
            body = store.get_response().text
            if text not in body:
                raise AssertionError(
                    f"Expected response to contain '{text}' but was not found in: {body}"
                )
        except (AssertionError, HarnessError) as e:
            self._fail(store, "assert.contains_failed", e, expected=text)
        store.logger.info("assert.contains_ok", text=text)

    def then_field_at_index(self, store: RequestContextStore, field: str, index: int, expected: str) -> None:
        try:
            response = store.get_response()
            store.logger.debug("assert.response_body", body=response.pretty_body())

            items = self._data_array(response)
            size = len(items) if items is not None else 0
            if items is None or index < 0 or index >= size:
                raise InvalidArgumentError(
                    f"Index {index} is out of bounds for data array of size {size}"
                )

            # "data." 付きで書かれたフィールド名も受け付ける
            element_field = field.replace(_DATA_PREFIX, "", 1) if field.startswith(_DATA_PREFIX) else field
            actual = as_string(self._extract(items[index], element_field))
            if expected != actual:
                raise AssertionError(
                    f"Expected value '{expected}' for field '{field}' at index {index} but got '{actual}'"
                )
        except (AssertionError, HarnessError) as e:
            self._fail(store, "assert.indexed_field_failed", e, field=field, index=index, expected=expected)
        store.logger.info("assert.indexed_field_ok", field=field, index=index, value=actual)

    def then_item_count(self, store: RequestContextStore, expected: int) -> None:
        try:
            items = self._data_array(store.get_response())
            actual = len(items) if items is not None else 0
            if expected != actual:
                raise AssertionError(
                    f"Expected {expected} items in data array but found {actual}"
                )
        except (AssertionError, HarnessError) as e:
            self._fail(store, "assert.item_count_failed", e, expected=expected)
        store.logger.info("assert.item_count_ok", count=actual)

    # --- helpers -----------------------------------------------------------

    def _extract(self, obj: Any, field: str) -> Any:
        try:
            return extract(obj, field)
        except JsonPathError as e:
            raise InvalidArgumentError(f"Invalid field path '{field}': {e}") from e

    def _data_array(self, response: ResponseSnapshot) -> Optional[List[Any]]:
        body = response.json_body()
        if not isinstance(body, dict) or body.get(DATA_ARRAY_KEY) is None:
            return None
        items = body[DATA_ARRAY_KEY]
        if not isinstance(items, list):
            raise InvalidArgumentError(
                f"Field '{DATA_ARRAY_KEY}' is not an array (got {type(items).__name__})"
            )
        return items

    def _fail(self, store: RequestContextStore, event: str, error: Exception, **fields: Any) -> NoReturn:
        store.logger.error(event, error=str(error), error_type=type(error).__name__, **fields)
        raise error
