# jobmatch/training/metrics.py
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Dict, Mapping, Sequence

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    average_precision_score,
    f1_score,
    mean_absolute_error,
    mean_squared_error,
    precision_score,
    r2_score,
    recall_score,
    roc_auc_score,
)

from jobmatch import logs


# ============================================================
# ModelMetrics (FROZEN)
# ============================================================
@dataclass(frozen=True)
class ModelMetrics:
    """
    ModelMetrics (FINAL / FROZEN)

    Semantics:
    - every metric defaults to 0.0
    - 0.0 means "not applicable / not computed" (e.g. MAE on a classifier)
    - converted to the registry's flat map only via to_dict / from_dict
    """
    accuracy: float = 0.0
    auc: float = 0.0
    pr_auc: float = 0.0
    precision: float = 0.0
    recall: float = 0.0
    f1_score: float = 0.0
    mae: float = 0.0
    mse: float = 0.0
    rmse: float = 0.0
    r_squared: float = 0.0
    ndcg_at_10: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {k: float(v) for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, raw: Mapping[str, float] | None) -> "ModelMetrics":
        """Unknown keys are ignored, missing keys default to 0."""
        if not raw:
            return cls()
        names = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in raw.items() if k in names})


# ============================================================
# Ranking
# ============================================================
def ndcg_at_k(labels: Sequence[int], scores: Sequence[float], k: int = 10) -> float:
    """
    NDCG@k with binary relevance.

    DCG takes the top-k items by score with gain rel / log2(i + 2).
    The ideal ordering sorts the same items by label desc, then score desc.
    Returns 0.0 when there are no items or no positives.
    """
    labels = np.asarray(labels, dtype=float)
    scores = np.asarray(scores, dtype=float)
    if labels.size == 0:
        return 0.0

    # stable sorts so ties keep input order
    by_score = np.argsort(-scores, kind="stable")
    ideal = np.lexsort((-scores, -labels))

    def _dcg(order: np.ndarray) -> float:
        top = labels[order[:k]]
        return float(sum(rel / math.log2(i + 2) for i, rel in enumerate(top)))

    idcg = _dcg(ideal)
    if idcg == 0.0:
        return 0.0
    return _dcg(by_score) / idcg


# ============================================================
# Evaluator
# ============================================================
class MetricEvaluator:
    """
    Held-out metrics for classification and regression models.
    """

    def __init__(self, threshold: float = 0.5, ndcg_k: int = 10):
        self.threshold = threshold
        self.ndcg_k = ndcg_k

    def classification(self, y_true: Sequence[int], y_score: Sequence[float]) -> ModelMetrics:
        y_true = np.asarray(y_true, dtype=int)
        y_score = np.asarray(y_score, dtype=float)

        if y_true.size == 0:
            logs.warning("[MetricEvaluator] empty evaluation set, returning zero metrics")
            return ModelMetrics()

        y_pred = (y_score >= self.threshold).astype(int)
        single_class = np.unique(y_true).size < 2
        if single_class:
            logs.warning("[MetricEvaluator] test split has a single class, AUC/PR-AUC set to 0")

        return ModelMetrics(
            accuracy=float(accuracy_score(y_true, y_pred)),
            auc=0.0 if single_class else float(roc_auc_score(y_true, y_score)),
            pr_auc=0.0 if single_class else float(average_precision_score(y_true, y_score)),
            precision=float(precision_score(y_true, y_pred, zero_division=0)),
            recall=float(recall_score(y_true, y_pred, zero_division=0)),
            f1_score=float(f1_score(y_true, y_pred, zero_division=0)),
            ndcg_at_10=ndcg_at_k(y_true, y_score, self.ndcg_k),
        )

    def regression(self, y_true: Sequence[float], y_pred: Sequence[float]) -> ModelMetrics:
        y_true = np.asarray(y_true, dtype=float)
        y_pred = np.asarray(y_pred, dtype=float)

        if y_true.size == 0:
            logs.warning("[MetricEvaluator] empty evaluation set, returning zero metrics")
            return ModelMetrics()

        mse = float(mean_squared_error(y_true, y_pred))
        # r2 is undefined for fewer than two rows
        r2 = float(r2_score(y_true, y_pred)) if y_true.size >= 2 else 0.0
        return ModelMetrics(
            mae=float(mean_absolute_error(y_true, y_pred)),
            mse=mse,
            rmse=math.sqrt(mse),
            r_squared=0.0 if math.isnan(r2) else r2,
        )
