# jobmatch/registry/mlflow_registry.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

import mlflow
import mlflow.artifacts
from mlflow.entities import Metric, Param
from mlflow.exceptions import MlflowException
from mlflow.tracking import MlflowClient

from jobmatch import logs
from jobmatch.core.types import ModelStage, RunStatus
from jobmatch.registry.base import ModelRegistry, RegisteredVersion, RegistryRun
from jobmatch.utils.errors import RegistryError, UserInputError
from jobmatch.utils.retry import Retry


def _ts(ms: Optional[int]) -> Optional[datetime]:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


class MlflowModelRegistry(ModelRegistry):
    """
    Adapter over an MLflow tracking server + model registry.

    Every remote call goes through Retry with exponential backoff; the last
    failure surfaces as RegistryError.
    """

    _TRANSIENT = (MlflowException, ConnectionError, OSError)

    def __init__(
        self,
        tracking_uri: str | None = None,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
    ):
        if tracking_uri:
            mlflow.set_tracking_uri(tracking_uri)
        self.client = MlflowClient(tracking_uri=tracking_uri)
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        logs.info(f"[Registry] mlflow tracking_uri={mlflow.get_tracking_uri()}")

    def _call(self, fn: Callable, *args, **kwargs):
        try:
            return Retry.run(
                fn,
                *args,
                exceptions=self._TRANSIENT,
                max_attempts=self.max_attempts,
                delay=self.retry_delay,
                **kwargs,
            )
        except self._TRANSIENT as e:
            raise RegistryError(f"[Registry] {getattr(fn, '__name__', fn)} failed: {e}") from e

    # ---------------------------------------------------------
    # experiments / runs
    # ---------------------------------------------------------
    def get_or_create_experiment(self, name: str) -> str:
        exp = self._call(self.client.get_experiment_by_name, name)
        if exp is not None:
            return exp.experiment_id
        logs.info(f"[Registry] creating experiment {name}")
        return self._call(self.client.create_experiment, name)

    def create_run(self, experiment_id: str, tags: Mapping[str, str] | None = None) -> str:
        run = self._call(
            self.client.create_run,
            experiment_id,
            tags={k: str(v) for k, v in (tags or {}).items()},
        )
        return run.info.run_id

    def log_param(self, run_id: str, key: str, value: Any) -> None:
        self._call(self.client.log_param, run_id, key, str(value))

    def log_params(self, run_id: str, params: Mapping[str, Any]) -> None:
        if not params:
            return
        self._call(
            self.client.log_batch,
            run_id,
            params=[Param(k, str(v)) for k, v in params.items()],
        )

    def log_metrics(self, run_id: str, metrics: Mapping[str, float]) -> None:
        if not metrics:
            return
        now = int(time.time() * 1000)
        self._call(
            self.client.log_batch,
            run_id,
            metrics=[Metric(k, float(v), now, 0) for k, v in metrics.items()],
        )

    def set_tag(self, run_id: str, key: str, value: Any) -> None:
        self._call(self.client.set_tag, run_id, key, str(value))

    def finish_run(self, run_id: str, status: RunStatus) -> None:
        self._call(self.client.set_terminated, run_id, status=status.value)

    @staticmethod
    def _to_run(run) -> RegistryRun:
        info, data = run.info, run.data
        return RegistryRun(
            run_id=info.run_id,
            experiment_id=info.experiment_id,
            status=RunStatus(info.status) if info.status in RunStatus._value2member_map_ else RunStatus.FAILED,
            start_time=_ts(info.start_time),
            end_time=_ts(info.end_time),
            params=dict(data.params),
            metrics=dict(data.metrics),
            tags=dict(data.tags),
            artifact_uri=info.artifact_uri,
        )

    def get_run(self, run_id: str) -> Optional[RegistryRun]:
        try:
            return self._to_run(self.client.get_run(run_id))
        except MlflowException as e:
            logs.warning(f"[Registry] get_run({run_id}) failed: {e}")
            return None

    def search_runs(self, experiment_id: str) -> List[RegistryRun]:
        runs = self._call(
            self.client.search_runs,
            [experiment_id],
            order_by=["attributes.start_time DESC"],
        )
        return [self._to_run(r) for r in runs]

    # ---------------------------------------------------------
    # registered models
    # ---------------------------------------------------------
    def create_registered_model(self, name: str) -> None:
        found = self._call(self.client.search_registered_models, filter_string=f"name='{name}'")
        if found:
            return
        logs.info(f"[Registry] registering model {name}")
        self._call(self.client.create_registered_model, name)

    @staticmethod
    def _to_version(mv) -> RegisteredVersion:
        stage = mv.current_stage if mv.current_stage in ModelStage._value2member_map_ else "None"
        return RegisteredVersion(
            name=mv.name,
            version=str(mv.version),
            stage=ModelStage(stage),
            run_id=mv.run_id,
            creation_time=_ts(mv.creation_timestamp),
            source=mv.source,
        )

    def create_model_version(self, name: str, source: str, run_id: str) -> RegisteredVersion:
        mv = self._call(self.client.create_model_version, name=name, source=source, run_id=run_id)
        return self._to_version(mv)

    def transition_stage(
        self,
        name: str,
        version: str,
        stage: ModelStage,
        archive_existing: bool = False,
    ) -> RegisteredVersion:
        if self.get_model_version(name, version) is None:
            raise UserInputError(f"Model version {version} not found for {name}")
        mv = self._call(
            self.client.transition_model_version_stage,
            name=name,
            version=str(version),
            stage=stage.value,
            archive_existing_versions=archive_existing,
        )
        return self._to_version(mv)

    def get_model_version(self, name: str, version: str) -> Optional[RegisteredVersion]:
        try:
            return self._to_version(self.client.get_model_version(name, str(version)))
        except MlflowException:
            return None

    def search_model_versions(self, name: str) -> List[RegisteredVersion]:
        found = self._call(self.client.search_model_versions, f"name='{name}'")
        versions = [self._to_version(mv) for mv in found]
        return sorted(versions, key=lambda v: int(v.version), reverse=True)

    # ---------------------------------------------------------
    # artifacts
    # ---------------------------------------------------------
    def log_artifact(self, run_id: str, local_dir: Path, artifact_path: str) -> str:
        self._call(self.client.log_artifacts, run_id, str(local_dir), artifact_path)
        return f"runs:/{run_id}/{artifact_path}"

    def download_artifact(self, run_id: str, artifact_path: str, dst_dir: Path) -> Path:
        Path(dst_dir).mkdir(parents=True, exist_ok=True)
        local = self._call(
            mlflow.artifacts.download_artifacts,
            run_id=run_id,
            artifact_path=artifact_path,
            dst_path=str(dst_dir),
        )
        return Path(local)
