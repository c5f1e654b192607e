# jobmatch/training/engines/train_result.py
from dataclasses import dataclass, field
from typing import Any, List

from jobmatch.training.metrics import ModelMetrics


@dataclass(frozen=True)
class TrainResult:
    """
    TrainResult (FINAL / FROZEN)

    Semantics:
    - in-memory outcome of one fit + held-out evaluation
    - no I/O semantics
    """
    model: Any
    metrics: ModelMetrics
    feature_names: List[str] = field(default_factory=list)
    n_train: int = 0
    n_test: int = 0
    y_true: List[float] = field(default_factory=list)
    y_pred: List[float] = field(default_factory=list)
