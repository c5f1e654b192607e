# jobmatch/services/model_management.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from jobmatch import logs
from jobmatch.core.types import ModelType
from jobmatch.training.orchestrator import TrainingOrchestrator
from jobmatch.training.results import ModelVersionInfo, TrainingResult, TrainingStatus
from jobmatch.training.scheduler import TrainingScheduler


def summarize(results: List[TrainingResult]) -> Dict[str, Any]:
    ok = sum(1 for r in results if r.success)
    promoted = sum(1 for r in results if r.promoted_to_production)
    return {
        "success": ok == len(results) and len(results) > 0,
        "message": f"Trained {ok}/{len(results)} models successfully, {promoted} promoted to production",
        "results": [r.to_dict() for r in results],
    }


class ModelManagementService:
    """
    Model management facade used by the HTTP layer and the CLI.

    Model type arguments are strings, parsed case-insensitively;
    an unknown type raises UserInputError.
    """

    def __init__(self, orchestrator: TrainingOrchestrator, scheduler: TrainingScheduler):
        self.orchestrator = orchestrator
        self.scheduler = scheduler

    def train_all(self) -> Dict[str, Any]:
        results = self.scheduler.train_all()
        summary = summarize(results)
        logs.info(f"[ModelManagement] {summary['message']}")
        return summary

    def train_one(self, model_type: str) -> TrainingResult:
        return self.scheduler.train_one(ModelType.parse(model_type))

    def get_versions(self, model_type: str) -> List[ModelVersionInfo]:
        return self.orchestrator.get_versions(ModelType.parse(model_type))

    def get_production(self, model_type: str) -> Optional[ModelVersionInfo]:
        return self.orchestrator.get_production(ModelType.parse(model_type))

    def promote(self, model_type: str, version: str) -> ModelVersionInfo:
        return self.orchestrator.promote(ModelType.parse(model_type), version)

    def rollback(self, model_type: str) -> bool:
        return self.orchestrator.rollback(ModelType.parse(model_type))

    def status(self) -> TrainingStatus:
        return self.scheduler.status()

    def invalidate_cache(self, model_type: str | None = None) -> None:
        self.orchestrator.invalidate_cache(ModelType.parse(model_type) if model_type else None)

    @staticmethod
    def list_types() -> List[str]:
        return [t.value for t in ModelType]
