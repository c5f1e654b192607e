# jobmatch/recommend/weights.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Sequence

import numpy as np
from sklearn.linear_model import LogisticRegression

from jobmatch import logs
from jobmatch.features.extractor import (
    COMPANY_RATING,
    HOURLY_PAY,
    JOB_TYPE_EXPERIENCE,
    STUDENT_RATING,
    TRAIT_MATCH,
    TrainingSample,
)

DEFAULT_JOB_WEIGHTS: Dict[str, float] = {
    COMPANY_RATING: 0.4,
    HOURLY_PAY: 0.3,
    JOB_TYPE_EXPERIENCE: 0.2,
    TRAIT_MATCH: 0.1,
}

DEFAULT_STUDENT_WEIGHTS: Dict[str, float] = {
    JOB_TYPE_EXPERIENCE: 0.3,
    TRAIT_MATCH: 0.2,
    STUDENT_RATING: 0.5,
}


@dataclass(frozen=True)
class FeatureWeights:
    """Non-negative, L1-normalized per-feature weights."""
    weights: Mapping[str, float]
    learned: bool = False

    def __getitem__(self, name: str) -> float:
        return self.weights.get(name, 0.0)

    def total(self) -> float:
        return float(sum(self.weights.values()))


def normalize_weights(raw: Mapping[str, float]) -> Dict[str, float]:
    """abs() then divide by the sum. Raises ValueError when nothing is left."""
    absolute = {k: abs(float(v)) for k, v in raw.items()}
    total = sum(absolute.values())
    if not math.isfinite(total) or total <= 0:
        raise ValueError("weights sum to zero")
    return {k: v / total for k, v in absolute.items()}


def default_weights(defaults: Mapping[str, float]) -> FeatureWeights:
    return FeatureWeights(normalize_weights(defaults), learned=False)


def learn_feature_weights(
    samples: Sequence[TrainingSample],
    defaults: Mapping[str, float],
    min_samples: int = 10,
) -> FeatureWeights:
    """
    Auxiliary logistic fit over the explained features only.

    Falls back to the (normalized) defaults below min_samples, on a
    single-class sample set, or when every coefficient is zero.
    """
    names = list(defaults)
    if len(samples) < min_samples:
        return default_weights(defaults)

    X = np.array([[s.features[n] for n in names] for s in samples], dtype=float)
    y = np.array([int(s.label) for s in samples])

    try:
        clf = LogisticRegression(max_iter=200)
        clf.fit(X, y)
        learned = normalize_weights(dict(zip(names, clf.coef_[0])))
    except ValueError as e:
        logs.debug(f"[FeatureWeights] using defaults: {e}")
        return default_weights(defaults)

    return FeatureWeights(learned, learned=True)
