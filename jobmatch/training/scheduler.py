# jobmatch/training/scheduler.py
from __future__ import annotations

import threading
from datetime import datetime, time, timedelta
from typing import Callable, Dict, List, Optional

from jobmatch import logs
from jobmatch.config.training_config import TrainingConfig
from jobmatch.core.types import ModelType
from jobmatch.training.orchestrator import TrainFn, TrainingOrchestrator
from jobmatch.training.results import TrainingResult, TrainingStatus


def next_run_at(now: datetime, scheduled: time) -> datetime:
    """Today at the scheduled time, or tomorrow when that has already passed."""
    target = now.replace(
        hour=scheduled.hour,
        minute=scheduled.minute,
        second=scheduled.second,
        microsecond=0,
    )
    if target <= now:
        target += timedelta(days=1)
    return target


class TrainingScheduler:
    """
    TrainingScheduler (FINAL)

    Daily training of every model type, plus on-demand train-all /
    train-one. All of them share one exclusive-execution token: a second
    request while training is running gets an "already in progress"
    result instead of waiting.

    train_fns maps each model type to the callable that fits it
    (seed → TrainResult).
    """

    def __init__(
        self,
        orchestrator: TrainingOrchestrator,
        train_fns: Dict[ModelType, TrainFn],
        cfg: TrainingConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.orchestrator = orchestrator
        self.train_fns = dict(train_fns)
        self.cfg = cfg or TrainingConfig()
        self._clock = clock

        self._token = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---------------------------------------------------------
    # status
    # ---------------------------------------------------------
    @property
    def is_training(self) -> bool:
        return self._token.locked()

    def next_run_time(self, now: datetime | None = None) -> datetime:
        return next_run_at(now or self._clock(), self.cfg.scheduled_time_of_day())

    def delay_until_next_run(self, now: datetime | None = None) -> float:
        now = now or self._clock()
        return (self.next_run_time(now) - now).total_seconds()

    def status(self) -> TrainingStatus:
        return TrainingStatus(
            is_training=self.is_training,
            is_enabled=self.cfg.enabled,
            scheduled_time=self.cfg.scheduled_time,
            next_run_time=self.next_run_time() if self.cfg.enabled else None,
        )

    # ---------------------------------------------------------
    # on-demand
    # ---------------------------------------------------------
    def train_all(self, cancel: threading.Event | None = None) -> List[TrainingResult]:
        if not self._token.acquire(blocking=False):
            logs.warning("[Scheduler] train_all rejected: training already in progress")
            return [TrainingResult.already_in_progress()]
        try:
            return self._train_types(list(ModelType), cancel)
        finally:
            self._token.release()

    def train_one(self, model_type: ModelType | str) -> TrainingResult:
        model_type = ModelType.parse(model_type)
        if not self._token.acquire(blocking=False):
            logs.warning(f"[Scheduler] train {model_type.value} rejected: training already in progress")
            return TrainingResult.already_in_progress(model_type.value)
        try:
            return self._train_types([model_type], None)[0]
        finally:
            self._token.release()

    def _train_types(
        self, types: List[ModelType], cancel: threading.Event | None
    ) -> List[TrainingResult]:
        results: List[TrainingResult] = []
        for model_type in types:
            if cancel is not None and cancel.is_set():
                logs.info(f"[Scheduler] cancelled before {model_type.value}")
                break
            results.append(self._train_isolated(model_type))
        return results

    def _train_isolated(self, model_type: ModelType) -> TrainingResult:
        # one model failing never stops the others
        try:
            return self.orchestrator.train_and_evaluate(model_type, self.train_fns[model_type])
        except Exception as e:
            logs.exception(f"[Scheduler] {model_type.value} training crashed: {e}")
            return TrainingResult(
                success=False,
                message=f"Training failed: {e}",
                model_type=model_type.value,
            )

    # ---------------------------------------------------------
    # background loop
    # ---------------------------------------------------------
    def run_forever(self, stop: threading.Event | None = None) -> None:
        stop = stop or self._stop
        if not self.cfg.enabled:
            logs.info("[Scheduler] disabled, not starting")
            return

        logs.info(f"[Scheduler] started, daily at {self.cfg.scheduled_time}")
        while not stop.is_set():
            try:
                delay = self.delay_until_next_run()
                logs.info(f"[Scheduler] next run at {self.next_run_time()} (in {delay:.0f}s)")
                if stop.wait(delay):
                    break

                results = self.train_all(cancel=stop)
                ok = sum(1 for r in results if r.success)
                promoted = sum(1 for r in results if r.promoted_to_production)
                logs.info(f"[Scheduler] cycle done: {ok}/{len(results)} succeeded, {promoted} promoted")
            except Exception as e:
                logs.exception(f"[Scheduler] cycle crashed: {e}")
                if stop.wait(self.cfg.cooldown_seconds):
                    break

        logs.info("[Scheduler] stopped")

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever,
            args=(self._stop,),
            name="training-scheduler",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
