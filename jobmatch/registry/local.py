# jobmatch/registry/local.py
from __future__ import annotations

import json
import shutil
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from jobmatch import logs
from jobmatch.core.types import ModelStage, RunStatus
from jobmatch.registry.base import ModelRegistry, RegisteredVersion, RegistryRun
from jobmatch.utils.errors import RegistryError, UserInputError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LocalModelRegistry(ModelRegistry):
    """
    LocalModelRegistry (FINAL)

    In-process registry backed by a directory::

        <root>/
          registry.json                 experiments / runs / versions
          artifacts/<run_id>/<path>/    uploaded artifact directories

    Semantics:
    - every mutation runs under one lock and is flushed to registry.json
    - transition to Production with archive_existing demotes the other
      Production versions inside the same critical section
    - versions are numbered "1", "2", ... per registered model
    """

    def __init__(self, root: Path | str, persist: bool = True):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.persist = persist

        self._lock = threading.RLock()
        self._experiments: Dict[str, str] = {}
        self._runs: Dict[str, RegistryRun] = {}
        self._models: Dict[str, List[RegisteredVersion]] = {}

        self._load()

    # ---------------------------------------------------------
    # persistence
    # ---------------------------------------------------------
    @property
    def _state_path(self) -> Path:
        return self.root / "registry.json"

    def _load(self) -> None:
        if not self.persist or not self._state_path.exists():
            return
        raw = json.loads(self._state_path.read_text(encoding="utf-8"))
        self._experiments = dict(raw.get("experiments", {}))
        self._runs = {
            r["run_id"]: RegistryRun(
                run_id=r["run_id"],
                experiment_id=r["experiment_id"],
                status=RunStatus(r["status"]),
                start_time=datetime.fromisoformat(r["start_time"]),
                end_time=datetime.fromisoformat(r["end_time"]) if r.get("end_time") else None,
                params=r.get("params", {}),
                metrics=r.get("metrics", {}),
                tags=r.get("tags", {}),
                artifact_uri=r.get("artifact_uri"),
            )
            for r in raw.get("runs", [])
        }
        self._models = {
            name: [
                RegisteredVersion(
                    name=name,
                    version=v["version"],
                    stage=ModelStage(v["stage"]),
                    run_id=v["run_id"],
                    creation_time=datetime.fromisoformat(v["creation_time"]),
                    source=v.get("source"),
                )
                for v in versions
            ]
            for name, versions in raw.get("models", {}).items()
        }
        logs.debug(
            f"[Registry] loaded {len(self._runs)} runs, "
            f"{sum(len(v) for v in self._models.values())} versions from {self._state_path}"
        )

    def _flush(self) -> None:
        if not self.persist:
            return
        state = {
            "experiments": self._experiments,
            "runs": [
                {
                    "run_id": r.run_id,
                    "experiment_id": r.experiment_id,
                    "status": r.status.value,
                    "start_time": r.start_time.isoformat(),
                    "end_time": r.end_time.isoformat() if r.end_time else None,
                    "params": r.params,
                    "metrics": r.metrics,
                    "tags": r.tags,
                    "artifact_uri": r.artifact_uri,
                }
                for r in self._runs.values()
            ],
            "models": {
                name: [
                    {
                        "version": v.version,
                        "stage": v.stage.value,
                        "run_id": v.run_id,
                        "creation_time": v.creation_time.isoformat(),
                        "source": v.source,
                    }
                    for v in versions
                ]
                for name, versions in self._models.items()
            },
        }
        tmp = self._state_path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(state, indent=2), encoding="utf-8")
            tmp.replace(self._state_path)
        except OSError as e:
            raise RegistryError(f"[Registry] failed to write {self._state_path}: {e}") from e

    # ---------------------------------------------------------
    # experiments / runs
    # ---------------------------------------------------------
    def get_or_create_experiment(self, name: str) -> str:
        with self._lock:
            if name not in self._experiments:
                self._experiments[name] = str(len(self._experiments) + 1)
                logs.info(f"[Registry] created experiment {name} id={self._experiments[name]}")
                self._flush()
            return self._experiments[name]

    def create_run(self, experiment_id: str, tags: Mapping[str, str] | None = None) -> str:
        with self._lock:
            if experiment_id not in self._experiments.values():
                raise RegistryError(f"[Registry] unknown experiment id {experiment_id}")
            run_id = uuid.uuid4().hex
            self._runs[run_id] = RegistryRun(
                run_id=run_id,
                experiment_id=experiment_id,
                status=RunStatus.RUNNING,
                start_time=_now(),
                tags={k: str(v) for k, v in (tags or {}).items()},
            )
            self._flush()
            return run_id

    def _open_run(self, run_id: str) -> RegistryRun:
        run = self._runs.get(run_id)
        if run is None:
            raise RegistryError(f"[Registry] unknown run {run_id}")
        if run.status != RunStatus.RUNNING:
            raise RegistryError(f"[Registry] run {run_id} already {run.status.value}")
        return run

    def log_param(self, run_id: str, key: str, value: Any) -> None:
        self.log_params(run_id, {key: value})

    def log_params(self, run_id: str, params: Mapping[str, Any]) -> None:
        with self._lock:
            run = self._open_run(run_id)
            merged = dict(run.params)
            for k, v in params.items():
                v = str(v)
                if k in merged and merged[k] != v:
                    raise RegistryError(
                        f"[Registry] param {k} already logged for run {run_id} "
                        f"({merged[k]!r} != {v!r})"
                    )
                merged[k] = v
            self._runs[run_id] = replace(run, params=merged)
            self._flush()

    def log_metrics(self, run_id: str, metrics: Mapping[str, float]) -> None:
        with self._lock:
            run = self._open_run(run_id)
            merged = dict(run.metrics)
            merged.update({k: float(v) for k, v in metrics.items()})
            self._runs[run_id] = replace(run, metrics=merged)
            self._flush()

    def set_tag(self, run_id: str, key: str, value: Any) -> None:
        with self._lock:
            run = self._open_run(run_id)
            self._runs[run_id] = replace(run, tags={**run.tags, key: str(value)})
            self._flush()

    def finish_run(self, run_id: str, status: RunStatus) -> None:
        with self._lock:
            run = self._open_run(run_id)
            self._runs[run_id] = replace(run, status=status, end_time=_now())
            self._flush()

    def get_run(self, run_id: str) -> Optional[RegistryRun]:
        with self._lock:
            return self._runs.get(run_id)

    def search_runs(self, experiment_id: str) -> List[RegistryRun]:
        with self._lock:
            runs = [r for r in self._runs.values() if r.experiment_id == experiment_id]
        return sorted(runs, key=lambda r: r.start_time, reverse=True)

    # ---------------------------------------------------------
    # registered models
    # ---------------------------------------------------------
    def create_registered_model(self, name: str) -> None:
        with self._lock:
            if name not in self._models:
                self._models[name] = []
                logs.info(f"[Registry] registered model {name}")
                self._flush()

    def create_model_version(self, name: str, source: str, run_id: str) -> RegisteredVersion:
        with self._lock:
            if name not in self._models:
                raise RegistryError(f"[Registry] model {name} is not registered")
            if run_id not in self._runs:
                raise RegistryError(f"[Registry] unknown run {run_id}")
            versions = self._models[name]
            mv = RegisteredVersion(
                name=name,
                version=str(len(versions) + 1),
                stage=ModelStage.NONE,
                run_id=run_id,
                creation_time=_now(),
                source=source,
            )
            versions.append(mv)
            self._flush()
            logs.info(f"[Registry] {name} version {mv.version} created from run {run_id}")
            return mv

    def transition_stage(
        self,
        name: str,
        version: str,
        stage: ModelStage,
        archive_existing: bool = False,
    ) -> RegisteredVersion:
        with self._lock:
            versions = self._models.get(name)
            if versions is None:
                raise RegistryError(f"[Registry] model {name} is not registered")

            idx = next((i for i, v in enumerate(versions) if v.version == str(version)), None)
            if idx is None:
                raise UserInputError(f"Model version {version} not found for {name}")

            if archive_existing and stage in (ModelStage.PRODUCTION, ModelStage.STAGING):
                for i, v in enumerate(versions):
                    if i != idx and v.stage == stage:
                        versions[i] = replace(v, stage=ModelStage.ARCHIVED)
                        logs.info(f"[Registry] {name} v{v.version} {stage.value} → Archived")

            versions[idx] = replace(versions[idx], stage=stage)
            self._flush()
            logs.info(f"[Registry] {name} v{version} → {stage.value}")
            return versions[idx]

    def get_model_version(self, name: str, version: str) -> Optional[RegisteredVersion]:
        with self._lock:
            for v in self._models.get(name, []):
                if v.version == str(version):
                    return v
        return None

    def search_model_versions(self, name: str) -> List[RegisteredVersion]:
        with self._lock:
            versions = list(self._models.get(name, []))
        return sorted(versions, key=lambda v: int(v.version), reverse=True)

    # ---------------------------------------------------------
    # artifacts
    # ---------------------------------------------------------
    def _artifact_dir(self, run_id: str, artifact_path: str) -> Path:
        return self.root / "artifacts" / run_id / artifact_path

    def log_artifact(self, run_id: str, local_dir: Path, artifact_path: str) -> str:
        with self._lock:
            if run_id not in self._runs:
                raise RegistryError(f"[Registry] unknown run {run_id}")
        target = self._artifact_dir(run_id, artifact_path)
        try:
            shutil.copytree(local_dir, target, dirs_exist_ok=True)
        except OSError as e:
            raise RegistryError(f"[Registry] artifact upload failed: {e}") from e

        uri = target.resolve().as_uri()
        with self._lock:
            run = self._runs[run_id]
            self._runs[run_id] = replace(run, artifact_uri=uri)
            self._flush()
        return uri

    def download_artifact(self, run_id: str, artifact_path: str, dst_dir: Path) -> Path:
        src = self._artifact_dir(run_id, artifact_path)
        if not src.exists():
            raise RegistryError(f"[Registry] artifact {artifact_path} not found for run {run_id}")
        dst = Path(dst_dir) / artifact_path
        shutil.copytree(src, dst, dirs_exist_ok=True)
        return dst
