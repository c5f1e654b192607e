# jobmatch/training/engines/recommendation_engine.py
from __future__ import annotations

from typing import List, Sequence

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.linear_model import SGDClassifier
from sklearn.model_selection import train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder

from jobmatch import logs
from jobmatch.features.extractor import (
    JOB_FEATURES,
    KEY_COLUMNS,
    STUDENT_FEATURES,
    TrainingSample,
    samples_to_frame,
)
from jobmatch.training.engines.model_train_engine import ModelTrainEngine
from jobmatch.training.engines.train_result import TrainResult
from jobmatch.utils.errors import InsufficientDataError


def build_ranking_pipeline(feature_names: Sequence[str], seed: int) -> Pipeline:
    """
    One-hot entity keys + passthrough [0, 1] features → logistic SGD.

    Unseen keys at prediction time encode to all-zero columns.
    """
    columns = ColumnTransformer(
        [
            ("keys", OneHotEncoder(handle_unknown="ignore"), KEY_COLUMNS),
            ("features", "passthrough", list(feature_names)),
        ]
    )
    clf = SGDClassifier(
        loss="log_loss",
        penalty="l2",
        alpha=1e-4,
        max_iter=1000,
        tol=1e-3,
        class_weight="balanced",
        random_state=seed,
    )
    return Pipeline([("columns", columns), ("clf", clf)])


def fit_ranking_model(
    samples: Sequence[TrainingSample],
    feature_names: Sequence[str],
    seed: int,
) -> Pipeline:
    """Fit on every sample (no split). Used for ephemeral serving models."""
    df = samples_to_frame(samples, feature_names)
    if df["label"].nunique() < 2:
        raise InsufficientDataError(0, 1, "samples of the minority outcome")
    model = build_ranking_pipeline(feature_names, seed)
    model.fit(df[KEY_COLUMNS + list(feature_names)], df["label"])
    return model


def positive_scores(model, frame: pd.DataFrame) -> np.ndarray:
    """P(label = 1) for every row, in one batch call."""
    return model.predict_proba(frame)[:, 1]


class RecommendationTrainEngine(ModelTrainEngine):
    """
    Shared train/evaluate flow for the two ranking models.
    """

    feature_names: List[str] = []

    def train(self, *, seed: int) -> TrainResult:
        samples = self.extractor.extract(self.store.snapshot())
        n = len(samples)
        if n < self.cfg.min_samples:
            raise InsufficientDataError(n, self.cfg.min_samples)

        df = samples_to_frame(samples.all, self.feature_names)
        y = df["label"]
        if y.nunique() < 2:
            raise InsufficientDataError(0, 1, "samples of the minority outcome")

        # stratify only when both classes can appear on both sides
        stratify = y if y.value_counts().min() >= 2 else None
        train_df, test_df = train_test_split(
            df,
            test_size=self.cfg.test_fraction,
            random_state=seed,
            stratify=stratify,
        )
        if train_df["label"].nunique() < 2:
            raise InsufficientDataError(int(train_df["label"].sum()), 1, "positive samples in the train split")

        X_cols = KEY_COLUMNS + list(self.feature_names)
        model = build_ranking_pipeline(self.feature_names, seed)
        model.fit(train_df[X_cols], train_df["label"])

        scores = positive_scores(model, test_df[X_cols])
        metrics = self.evaluator.classification(test_df["label"].to_numpy(), scores)

        logs.info(
            f"[{type(self).__name__}] samples={n} "
            f"(pos={len(samples.positive)}, neg={len(samples.negative)}) "
            f"train={len(train_df)} test={len(test_df)} "
            f"pr_auc={metrics.pr_auc:.4f} auc={metrics.auc:.4f} ndcg@10={metrics.ndcg_at_10:.4f}"
        )

        return TrainResult(
            model=model,
            metrics=metrics,
            feature_names=list(self.feature_names),
            n_train=len(train_df),
            n_test=len(test_df),
            y_true=test_df["label"].astype(float).tolist(),
            y_pred=scores.tolist(),
        )


class JobRecommendationTrainEngine(RecommendationTrainEngine):
    feature_names = JOB_FEATURES


class StudentRecommendationTrainEngine(RecommendationTrainEngine):
    feature_names = STUDENT_FEATURES
