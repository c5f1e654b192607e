# jobmatch/training/specs.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from jobmatch.config.training_config import TrainingConfig
from jobmatch.core.types import ModelTask, ModelType
from jobmatch.features.extractor import FeatureExtractor
from jobmatch.store.base import DocumentStore
from jobmatch.training.engines.model_train_engine import ModelTrainEngine
from jobmatch.training.engines.pay_prediction_engine import PayPredictionTrainEngine
from jobmatch.training.engines.recommendation_engine import (
    JobRecommendationTrainEngine,
    StudentRecommendationTrainEngine,
)


# ============================================================
# Model Spec (FROZEN)
# ============================================================
@dataclass(frozen=True)
class ModelSpec:
    model_type: ModelType
    experiment_name: str
    model_name: str
    task: ModelTask
    # metric named in the run's comparison tag
    comparison_metric: str


_SPECS: Dict[ModelType, ModelSpec] = {
    ModelType.JOB_RECOMMENDATION: ModelSpec(
        model_type=ModelType.JOB_RECOMMENDATION,
        experiment_name="job-recommendation-experiment",
        model_name="job-recommendation-model",
        task=ModelTask.CLASSIFICATION,
        comparison_metric="PR-AUC",
    ),
    ModelType.STUDENT_RECOMMENDATION: ModelSpec(
        model_type=ModelType.STUDENT_RECOMMENDATION,
        experiment_name="student-recommendation-experiment-v2",
        model_name="student-recommendation-model",
        task=ModelTask.CLASSIFICATION,
        comparison_metric="PR-AUC",
    ),
    ModelType.JOB_PAY_PREDICTION: ModelSpec(
        model_type=ModelType.JOB_PAY_PREDICTION,
        experiment_name="job-pay-prediction-experiment",
        model_name="job-pay-prediction-model",
        task=ModelTask.REGRESSION,
        comparison_metric="MAE",
    ),
}

EngineFactory = Callable[[TrainingConfig, DocumentStore, FeatureExtractor], ModelTrainEngine]

_ENGINE_REGISTRY: Dict[ModelType, EngineFactory] = {
    ModelType.JOB_RECOMMENDATION: lambda cfg, store, fx: JobRecommendationTrainEngine(cfg, store, fx),
    ModelType.STUDENT_RECOMMENDATION: lambda cfg, store, fx: StudentRecommendationTrainEngine(cfg, store, fx),
    ModelType.JOB_PAY_PREDICTION: lambda cfg, store, fx: PayPredictionTrainEngine(cfg, store, fx),
}


def get_spec(model_type: ModelType | str) -> ModelSpec:
    return _SPECS[ModelType.parse(model_type)]


def all_specs() -> list[ModelSpec]:
    return [_SPECS[t] for t in ModelType]


def resolve_train_engine(
    *,
    spec: ModelSpec,
    cfg: TrainingConfig,
    store: DocumentStore,
    extractor: FeatureExtractor | None = None,
) -> ModelTrainEngine:
    if spec.model_type not in _ENGINE_REGISTRY:
        available = ", ".join(t.value for t in _ENGINE_REGISTRY)
        raise ValueError(
            f"No ModelTrainEngine for {spec.model_type.value}. Available: {available}"
        )
    return _ENGINE_REGISTRY[spec.model_type](cfg, store, extractor or FeatureExtractor())
