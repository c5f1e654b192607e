# jobmatch/recommend/heuristics.py
"""
Fixed-weight scoring used before any model exists or when there is too
little history to learn from.
"""
from __future__ import annotations

from typing import Mapping

from jobmatch.core.records import Student
from jobmatch.features.extractor import (
    JOB_TYPE_EXPERIENCE,
    STUDENT_RATING,
    TRAIT_MATCH,
    FeatureExtractor,
)
from jobmatch.recommend.weights import DEFAULT_JOB_WEIGHTS, DEFAULT_STUDENT_WEIGHTS

# an unrated student ranks as trustworthy in heuristic mode
HEURISTIC_DEFAULT_STUDENT_RATING = 0.9


def weighted_sum(features: Mapping[str, float], weights: Mapping[str, float]) -> float:
    return float(sum(features[name] * w for name, w in weights.items()))


def job_score(features: Mapping[str, float]) -> float:
    return weighted_sum(features, DEFAULT_JOB_WEIGHTS)


def student_score(features: Mapping[str, float], student: Student) -> float:
    scored = dict(features)
    scored[STUDENT_RATING] = FeatureExtractor.student_rating(
        student, default=HEURISTIC_DEFAULT_STUDENT_RATING
    )
    return weighted_sum(
        {k: scored[k] for k in (JOB_TYPE_EXPERIENCE, TRAIT_MATCH, STUDENT_RATING)},
        DEFAULT_STUDENT_WEIGHTS,
    )
