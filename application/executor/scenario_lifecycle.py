# application/executor/scenario_lifecycle.py
from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from application.context_store import RequestContextStore
from application.ports.logger import LoggerPort
from application.ports.run_log_store import RunLogStorePort
from domain.run_log import ScenarioLogEntry, ScenarioRecord
from domain.run_record import ScenarioRun, ScenarioStatus

REPORT_TAG = "GenerateReport"

# (store の基本ロガー, シナリオログの格納先) -> シナリオ用ロガー
ScenarioLoggerFactory = Callable[[LoggerPort, List[ScenarioLogEntry]], LoggerPort]


class ScenarioLifecycle:
    """
    NOT_STARTED -> RUNNING -> {PASSED, FAILED}
    開始時に store をリセットし、終了時に run log へ1レコード追記する。
    """

    def __init__(self, run_log_store: RunLogStorePort, logger_factory: ScenarioLoggerFactory):
        self._run_log = run_log_store
        self._logger_factory = logger_factory

    def before_scenario(
        self,
        store: RequestContextStore,
        feature: str,
        name: str,
        tags: Iterable[str] = (),
    ) -> ScenarioRun:
        run = ScenarioRun(
            feature=feature,
            name=name,
            tags=tuple(sorted(tags)),
            worker=store.worker,
        )
        store.reset(scenario=run)
        store.use_logger(self._logger_factory(store.logger.bind(scenario=name), store.context.log))
        run.start()
        store.logger.info("scenario.start", feature=feature, tags=list(run.tags))
        return run

    def after_step(self, store: RequestContextStore, keyword: str, text: str) -> None:
        run = store.scenario
        if run is None or run.status != ScenarioStatus.RUNNING:
            return
        run.record_step(keyword, text)

    def on_step_error(self, store: RequestContextStore, keyword: str, text: str, error: BaseException) -> None:
        run = store.scenario
        if run is None or run.status != ScenarioStatus.RUNNING:
            return
        message = f"{type(error).__name__}: {error}"
        store.logger.error("scenario.step_failed", step=f"{keyword} {text}".strip(), error=message)
        run.fail(keyword, text, message)

    def after_scenario(self, store: RequestContextStore) -> Optional[ScenarioRecord]:
        run = store.scenario
        if run is None:
            return None
        run.finish()
        store.logger.info(
            "scenario.end",
            status=run.status.value,
            duration_ms=run.duration_ms,
            error=run.error,
        )
        record = ScenarioRecord(
            feature=run.feature,
            name=run.name,
            tags=run.tags,
            worker=run.worker,
            status=run.status.value,
            started_at=run.started_at,
            finished_at=run.finished_at,
            duration_ms=run.duration_ms,
            error=run.error,
            steps=list(run.steps),
            log=list(store.context.log),
        )
        try:
            self._run_log.append(record)
        finally:
            store.reset()
        return record


def should_generate_report(records: Iterable[ScenarioRecord]) -> bool:
    return any(REPORT_TAG in {t.lstrip("@") for t in r.tags} for r in records)
