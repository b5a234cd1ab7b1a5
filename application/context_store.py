# application/context_store.py
from __future__ import annotations

import os
import threading
from typing import Optional

from application.ports.logger import LoggerPort
from domain.exceptions import ContextStateError
from domain.request_spec import RequestSpec
from domain.response import ResponseSnapshot
from domain.run import ExecutionContext
from domain.run_record import ScenarioRun


def current_worker_id() -> str:
    # xdist ワーカーはプロセス単位、その中はスレッド単位で分ける
    worker = os.environ.get("PYTEST_XDIST_WORKER", "main")
    thread = threading.current_thread()
    if thread is threading.main_thread():
        return worker
    return f"{worker}/{thread.name}"


class RequestContextStore:
    """
    1ワーカー専用の ExecutionContext を保持する。
    他ワーカーからは参照されない前提なのでロックは持たない。
    """

    def __init__(self, logger: LoggerPort, worker: str = "main"):
        self._base_logger = logger
        self._worker = worker
        self._ctx = ExecutionContext()
        self._logger: Optional[LoggerPort] = None

    @property
    def worker(self) -> str:
        return self._worker

    @property
    def context(self) -> ExecutionContext:
        return self._ctx

    @property
    def scenario(self) -> Optional[ScenarioRun]:
        return self._ctx.scenario

    @property
    def logger(self) -> LoggerPort:
        return self._logger or self._base_logger

    def reset(self, scenario: Optional[ScenarioRun] = None) -> None:
        self._ctx = ExecutionContext(scenario=scenario)
        self._logger = None

    def use_logger(self, logger: LoggerPort) -> None:
        self._logger = logger

    def set_request(self, spec: RequestSpec) -> None:
        self._ctx.request = spec

    def get_request(self) -> RequestSpec:
        if self._ctx.request is None:
            raise ContextStateError(
                "Request specification not initialized (run 'I have a base URI' first)"
            )
        return self._ctx.request

    def set_response(self, snapshot: ResponseSnapshot) -> None:
        self._ctx.response = snapshot

    def get_response(self) -> ResponseSnapshot:
        if self._ctx.response is None:
            raise ContextStateError("Response not initialized (send a request first)")
        return self._ctx.response


class WorkerContextRegistry:
    """実行ユニット（スレッド）ごとに RequestContextStore を1つ割り当てる"""

    def __init__(self, logger: LoggerPort):
        self._logger = logger
        self._local = threading.local()

    def current(self) -> RequestContextStore:
        store = getattr(self._local, "store", None)
        if store is None:
            worker = current_worker_id()
            store = RequestContextStore(self._logger.bind(worker=worker), worker=worker)
            self._local.store = store
        return store
