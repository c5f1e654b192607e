# jobmatch/training/results.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from jobmatch.core.types import ModelStage, RunStatus
from jobmatch.training.metrics import ModelMetrics

ALREADY_IN_PROGRESS = "Training already in progress"


@dataclass(frozen=True)
class TrainingResult:
    success: bool
    message: str
    model_type: str = ""
    run_id: Optional[str] = None
    metrics: Optional[ModelMetrics] = None
    promoted_to_production: bool = False
    previous_production_run_id: Optional[str] = None
    version: Optional[str] = None

    @classmethod
    def already_in_progress(cls, model_type: str = "") -> "TrainingResult":
        return cls(success=False, message=ALREADY_IN_PROGRESS, model_type=model_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "modelType": self.model_type,
            "runId": self.run_id,
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "promotedToProduction": self.promoted_to_production,
            "previousProductionRunId": self.previous_production_run_id,
            "version": self.version,
        }


@dataclass(frozen=True)
class ModelVersionInfo:
    """
    One training run of a model type, joined with its registered version.

    Unregistered runs have version None and stage None.
    """
    run_id: str
    version: Optional[str]
    stage: ModelStage
    created_at: datetime
    metrics: ModelMetrics
    status: RunStatus = RunStatus.FINISHED
    comparison_result: Optional[str] = None
    previous_production_run_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "version": self.version,
            "stage": self.stage.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "metrics": self.metrics.to_dict(),
            "status": self.status.value,
            "comparisonResult": self.comparison_result,
            "previousProductionRunId": self.previous_production_run_id,
        }


@dataclass(frozen=True)
class TrainingStatus:
    is_training: bool
    is_enabled: bool
    scheduled_time: str
    next_run_time: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isTraining": self.is_training,
            "isEnabled": self.is_enabled,
            "scheduledTime": self.scheduled_time,
            "nextRunTime": self.next_run_time.isoformat() if self.next_run_time else None,
        }
