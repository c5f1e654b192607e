# jobmatch/recommend/pay_predictor.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

import pandas as pd
from pydantic import ValidationError

from jobmatch import logs
from jobmatch.config.training_config import TrainingConfig
from jobmatch.core.records import PayPredictionInput
from jobmatch.core.types import ModelType
from jobmatch.features.extractor import PAY_INPUT_COLUMNS, FeatureExtractor, pay_row
from jobmatch.recommend.base import EPHEMERAL_SEED
from jobmatch.store.base import DocumentStore
from jobmatch.training.engines.pay_prediction_engine import (
    DEPLOYED_ALGORITHM,
    PAY_ALGORITHMS,
    PayPredictionTrainEngine,
    build_pay_pipeline,
    normalize_algorithm,
)
from jobmatch.training.metrics import ModelMetrics
from jobmatch.training.orchestrator import TrainingOrchestrator
from jobmatch.utils.errors import UserInputError


@dataclass(frozen=True)
class PayPrediction:
    algorithm: str
    hourly_pay: float
    # "production" | "ephemeral" | "type_mean" | "global_mean" | "none"
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "predictedHourlyPay": round(self.hourly_pay, 2),
            "source": self.source,
        }


@dataclass(frozen=True)
class PayEvaluation:
    algorithm: str
    metrics: ModelMetrics
    predictions: List[float] = field(default_factory=list)
    actuals: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "mae": self.metrics.mae,
            "metrics": self.metrics.to_dict(),
            "predictions": self.predictions,
            "actuals": self.actuals,
        }


class PayPredictor:
    """
    Hourly pay estimates for a job description.

    The deployed algorithm serves from the Production pay model when one
    exists; any other algorithm (or no Production model) is fitted on
    the current pay data for the request. Too little data degrades to
    mean pay: same job type, then all jobs, then 0.
    """

    def __init__(
        self,
        store: DocumentStore,
        orchestrator: TrainingOrchestrator | None = None,
        cfg: TrainingConfig | None = None,
        extractor: FeatureExtractor | None = None,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.cfg = cfg or TrainingConfig()
        self.extractor = extractor or FeatureExtractor()

    def _engine(self, algorithm: str) -> PayPredictionTrainEngine:
        return PayPredictionTrainEngine(self.cfg, self.store, self.extractor, algorithm=algorithm)

    # ---------------------------------------------------------
    # predict
    # ---------------------------------------------------------
    def predict(self, algorithm: str, payload: PayPredictionInput | Mapping[str, Any]) -> PayPrediction:
        algorithm = normalize_algorithm(algorithm)
        if not isinstance(payload, PayPredictionInput):
            try:
                payload = PayPredictionInput.model_validate(payload)
            except ValidationError as e:
                raise UserInputError(f"Invalid pay prediction input: {e}") from e

        row = pd.DataFrame(
            [pay_row(payload.type, payload.place_of_work, payload.required_traits)],
            columns=PAY_INPUT_COLUMNS,
        )

        if algorithm == DEPLOYED_ALGORITHM and self.orchestrator is not None:
            model = self.orchestrator.load_production_model(ModelType.JOB_PAY_PREDICTION)
            if model is not None:
                return PayPrediction(algorithm, float(model.predict(row)[0]), "production")

        df = self._engine(algorithm).load_frame()
        if len(df) < self.cfg.min_samples:
            logs.info(
                f"[PayPredictor] {len(df)} pay rows < {self.cfg.min_samples}, falling back to mean pay"
            )
            return self._mean_fallback(algorithm, df, payload.type)

        model = build_pay_pipeline(algorithm, EPHEMERAL_SEED)
        model.fit(df[PAY_INPUT_COLUMNS], df["hourly_pay"])
        return PayPrediction(algorithm, float(model.predict(row)[0]), "ephemeral")

    @staticmethod
    def _mean_fallback(algorithm: str, df: pd.DataFrame, job_type: str) -> PayPrediction:
        same_type = df[df["type"] == job_type]
        if len(same_type):
            return PayPrediction(algorithm, float(same_type["hourly_pay"].mean()), "type_mean")
        if len(df):
            return PayPrediction(algorithm, float(df["hourly_pay"].mean()), "global_mean")
        return PayPrediction(algorithm, 0.0, "none")

    # ---------------------------------------------------------
    # evaluate
    # ---------------------------------------------------------
    def evaluate(self, algorithm: str) -> PayEvaluation:
        """Held-out evaluation of one algorithm. Raises InsufficientDataError."""
        algorithm = normalize_algorithm(algorithm)
        result = self._engine(algorithm).train(seed=EPHEMERAL_SEED)
        return PayEvaluation(
            algorithm=algorithm,
            metrics=result.metrics,
            predictions=list(result.y_pred),
            actuals=list(result.y_true),
        )

    def evaluate_all(self) -> Dict[str, ModelMetrics]:
        out: Dict[str, ModelMetrics] = {}
        for algorithm in PAY_ALGORITHMS:
            out[algorithm] = self.evaluate(algorithm).metrics
        return out

