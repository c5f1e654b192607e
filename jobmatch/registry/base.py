# jobmatch/registry/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from jobmatch.core.types import ModelStage, RunStatus


# ============================================================
# Registry records (FROZEN)
# ============================================================
@dataclass(frozen=True)
class RegistryRun:
    run_id: str
    experiment_id: str
    status: RunStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    params: Dict[str, str] = field(default_factory=dict)
    metrics: Dict[str, float] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    artifact_uri: Optional[str] = None


@dataclass(frozen=True)
class RegisteredVersion:
    name: str
    version: str
    stage: ModelStage
    run_id: str
    creation_time: datetime
    source: Optional[str] = None


# ============================================================
# Registry interface
# ============================================================
class ModelRegistry(ABC):
    """
    Model registry collaborator (experiments, runs, versions, artifacts).

    Contract:
    - every call may fail; implementations raise RegistryError for
      transport/storage failures
    - params are append-only per run
    - a finished run is immutable
    - metrics cross this boundary as a flat ``{name: float}`` map
    """

    # ---------- experiments / runs ----------
    @abstractmethod
    def get_or_create_experiment(self, name: str) -> str:
        ...

    @abstractmethod
    def create_run(self, experiment_id: str, tags: Mapping[str, str] | None = None) -> str:
        ...

    @abstractmethod
    def log_param(self, run_id: str, key: str, value: Any) -> None:
        ...

    def log_params(self, run_id: str, params: Mapping[str, Any]) -> None:
        for k, v in params.items():
            self.log_param(run_id, k, v)

    @abstractmethod
    def log_metrics(self, run_id: str, metrics: Mapping[str, float]) -> None:
        ...

    @abstractmethod
    def set_tag(self, run_id: str, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def finish_run(self, run_id: str, status: RunStatus) -> None:
        ...

    @abstractmethod
    def get_run(self, run_id: str) -> Optional[RegistryRun]:
        ...

    @abstractmethod
    def search_runs(self, experiment_id: str) -> List[RegistryRun]:
        """Newest first."""
        ...

    # ---------- registered models ----------
    @abstractmethod
    def create_registered_model(self, name: str) -> None:
        """Idempotent."""
        ...

    @abstractmethod
    def create_model_version(self, name: str, source: str, run_id: str) -> RegisteredVersion:
        ...

    @abstractmethod
    def transition_stage(
        self,
        name: str,
        version: str,
        stage: ModelStage,
        archive_existing: bool = False,
    ) -> RegisteredVersion:
        ...

    @abstractmethod
    def get_model_version(self, name: str, version: str) -> Optional[RegisteredVersion]:
        ...

    @abstractmethod
    def search_model_versions(self, name: str) -> List[RegisteredVersion]:
        """Newest first."""
        ...

    def get_latest_versions(
        self, name: str, stages: Iterable[ModelStage] | None = None
    ) -> List[RegisteredVersion]:
        """Latest version per requested stage."""
        wanted = set(stages) if stages is not None else set(ModelStage)
        latest: Dict[ModelStage, RegisteredVersion] = {}
        for v in self.search_model_versions(name):
            if v.stage in wanted and v.stage not in latest:
                latest[v.stage] = v
        return list(latest.values())

    def get_production_version(self, name: str) -> Optional[RegisteredVersion]:
        found = self.get_latest_versions(name, [ModelStage.PRODUCTION])
        return found[0] if found else None

    # ---------- artifacts ----------
    @abstractmethod
    def log_artifact(self, run_id: str, local_dir: Path, artifact_path: str) -> str:
        """Upload a directory, returns its artifact URI."""
        ...

    @abstractmethod
    def download_artifact(self, run_id: str, artifact_path: str, dst_dir: Path) -> Path:
        ...
