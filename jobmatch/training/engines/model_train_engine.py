# jobmatch/training/engines/model_train_engine.py
from __future__ import annotations

from abc import ABC, abstractmethod

from jobmatch.config.training_config import TrainingConfig
from jobmatch.features.extractor import FeatureExtractor
from jobmatch.store.base import DocumentStore
from jobmatch.training.engines.train_result import TrainResult
from jobmatch.training.metrics import MetricEvaluator


class ModelTrainEngine(ABC):
    """
    Abstract ModelTrainEngine (FINAL)

    One engine per model type: reads the store, builds the feature
    pipeline + estimator, fits on a train split and evaluates on the
    held-out split. Raises InsufficientDataError below cfg.min_samples.
    """

    def __init__(
        self,
        cfg: TrainingConfig,
        store: DocumentStore,
        extractor: FeatureExtractor | None = None,
        evaluator: MetricEvaluator | None = None,
    ):
        self.cfg = cfg
        self.store = store
        self.extractor = extractor or FeatureExtractor()
        self.evaluator = evaluator or MetricEvaluator()

    @abstractmethod
    def train(self, *, seed: int) -> TrainResult:
        raise NotImplementedError
