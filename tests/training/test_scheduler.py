#!filepath: tests/training/test_scheduler.py
import threading
from datetime import datetime, time

import pytest

from jobmatch.config.training_config import TrainingConfig
from jobmatch.core.types import ModelType
from jobmatch.training.engines.train_result import TrainResult
from jobmatch.training.metrics import ModelMetrics
from jobmatch.training.orchestrator import TrainingOrchestrator
from jobmatch.training.results import ALREADY_IN_PROGRESS
from jobmatch.training.scheduler import TrainingScheduler, next_run_at


def ok_fn(seed: int) -> TrainResult:
    return TrainResult(model={"seed": seed}, metrics=ModelMetrics(pr_auc=0.5, auc=0.5, mae=1.0))


@pytest.fixture
def orchestrator(registry, training_cfg):
    orch = TrainingOrchestrator(registry, training_cfg)
    yield orch
    orch.shutdown()


def test_next_run_at():
    at_22 = time(22, 0)
    assert next_run_at(datetime(2025, 6, 1, 21, 59), at_22) == datetime(2025, 6, 1, 22, 0)
    assert next_run_at(datetime(2025, 6, 1, 22, 0), at_22) == datetime(2025, 6, 2, 22, 0)
    assert next_run_at(datetime(2025, 12, 31, 23, 0), at_22) == datetime(2026, 1, 1, 22, 0)


def test_status_reports_schedule(orchestrator, training_cfg):
    clock = lambda: datetime(2025, 6, 1, 10, 30)
    scheduler = TrainingScheduler(orchestrator, {}, training_cfg, clock=clock)

    status = scheduler.status()
    assert status.is_training is False
    assert status.is_enabled is True
    assert status.next_run_time == datetime(2025, 6, 1, 22, 0)
    assert scheduler.delay_until_next_run() == 11.5 * 3600
    assert status.to_dict()["scheduledTime"] == "22:00"

    disabled = TrainingScheduler(orchestrator, {}, TrainingConfig(enabled=False), clock=clock)
    assert disabled.status().next_run_time is None


def test_train_all_isolates_failures(orchestrator, training_cfg):
    def boom(seed):
        raise RuntimeError("store offline")

    fns = {
        ModelType.JOB_RECOMMENDATION: ok_fn,
        ModelType.STUDENT_RECOMMENDATION: boom,
        ModelType.JOB_PAY_PREDICTION: ok_fn,
    }
    results = TrainingScheduler(orchestrator, fns, training_cfg).train_all()

    assert [r.model_type for r in results] == [t.value for t in ModelType]
    assert [r.success for r in results] == [True, False, True]
    assert "store offline" in results[1].message


def test_concurrent_training_is_rejected(orchestrator, training_cfg):
    started = threading.Event()
    release = threading.Event()

    def blocking(seed):
        started.set()
        release.wait(5)
        return ok_fn(seed)

    fns = {t: blocking for t in ModelType}
    scheduler = TrainingScheduler(orchestrator, fns, training_cfg)

    out = {}
    worker = threading.Thread(target=lambda: out.setdefault("r", scheduler.train_one(ModelType.JOB_RECOMMENDATION)))
    worker.start()
    assert started.wait(5)

    assert scheduler.is_training
    rejected_all = scheduler.train_all()
    rejected_one = scheduler.train_one("JobPayPrediction")
    assert len(rejected_all) == 1 and rejected_all[0].message == ALREADY_IN_PROGRESS
    assert rejected_one.message == ALREADY_IN_PROGRESS
    assert rejected_one.model_type == "JobPayPrediction"

    release.set()
    worker.join(5)
    assert out["r"].success
    assert not scheduler.is_training


def test_cancel_between_model_types(orchestrator, training_cfg):
    cancel = threading.Event()
    calls = []

    def first(seed):
        calls.append("job")
        cancel.set()
        return ok_fn(seed)

    fns = {t: ok_fn for t in ModelType}
    fns[ModelType.JOB_RECOMMENDATION] = first

    results = TrainingScheduler(orchestrator, fns, training_cfg).train_all(cancel=cancel)

    assert calls == ["job"]
    assert len(results) == 1


def test_disabled_scheduler_loop_returns_immediately(orchestrator):
    scheduler = TrainingScheduler(orchestrator, {}, TrainingConfig(enabled=False))
    scheduler.run_forever(threading.Event())
    assert not scheduler.is_training


def test_loop_runs_when_due_and_stops(orchestrator, training_cfg):
    ran = threading.Event()
    stop = threading.Event()

    def fn(seed):
        ran.set()
        stop.set()
        return ok_fn(seed)

    # always "just before" the scheduled time → tiny delay
    clock = lambda: datetime(2025, 6, 1, 21, 59, 59, 990000)
    scheduler = TrainingScheduler(orchestrator, {t: fn for t in ModelType}, training_cfg, clock=clock)

    thread = threading.Thread(target=scheduler.run_forever, args=(stop,), daemon=True)
    thread.start()
    thread.join(10)

    assert ran.is_set()
    assert not thread.is_alive()
