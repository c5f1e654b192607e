# jobmatch/training/engines/pay_prediction_engine.py
from __future__ import annotations

from typing import Callable, Dict

from sklearn.compose import ColumnTransformer
from sklearn.ensemble import GradientBoostingRegressor
from sklearn.feature_extraction.text import CountVectorizer
from sklearn.linear_model import PoissonRegressor, SGDRegressor
from sklearn.model_selection import train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder

from jobmatch import logs
from jobmatch.features.extractor import PAY_INPUT_COLUMNS, jobs_to_pay_frame
from jobmatch.training.engines.model_train_engine import ModelTrainEngine
from jobmatch.training.engines.train_result import TrainResult
from jobmatch.utils.errors import InsufficientDataError, UserInputError

# the algorithm the scheduled training deploys
DEPLOYED_ALGORITHM = "tree"

_REGRESSORS: Dict[str, Callable[[int], object]] = {
    "linear": lambda seed: SGDRegressor(max_iter=1000, tol=1e-3, random_state=seed),
    "tree": lambda seed: GradientBoostingRegressor(random_state=seed),
    "lbfgs": lambda seed: PoissonRegressor(solver="lbfgs", max_iter=300),
}

PAY_ALGORITHMS = tuple(_REGRESSORS)


def normalize_algorithm(algorithm: str) -> str:
    name = (algorithm or "").strip().lower()
    if name not in _REGRESSORS:
        raise UserInputError(
            f"Unknown algorithm '{algorithm}'. Available: {', '.join(PAY_ALGORITHMS)}"
        )
    return name


def build_pay_pipeline(algorithm: str, seed: int) -> Pipeline:
    """
    type / place_of_work one-hot + bag of required traits → regressor.
    """
    columns = ColumnTransformer(
        [
            ("categorical", OneHotEncoder(handle_unknown="ignore"), ["type", "place_of_work"]),
            ("traits", CountVectorizer(token_pattern=r"[^,]+", lowercase=True), "required_traits"),
        ]
    )
    return Pipeline([("columns", columns), ("reg", _REGRESSORS[normalize_algorithm(algorithm)](seed))])


class PayPredictionTrainEngine(ModelTrainEngine):
    """
    Hourly pay regression over jobs with pay <= cfg.max_training_hourly_pay.
    """

    def __init__(self, *args, algorithm: str = DEPLOYED_ALGORITHM, **kwargs):
        super().__init__(*args, **kwargs)
        self.algorithm = normalize_algorithm(algorithm)

    def load_frame(self):
        return jobs_to_pay_frame(self.store.jobs_with_max_pay(self.cfg.max_training_hourly_pay))

    def train(self, *, seed: int) -> TrainResult:
        df = self.load_frame()
        n = len(df)
        if n < self.cfg.min_samples:
            raise InsufficientDataError(n, self.cfg.min_samples, "jobs with pay data")

        train_df, test_df = train_test_split(df, test_size=self.cfg.pay_test_fraction, random_state=seed)

        model = build_pay_pipeline(self.algorithm, seed)
        model.fit(train_df[PAY_INPUT_COLUMNS], train_df["hourly_pay"])

        y_pred = model.predict(test_df[PAY_INPUT_COLUMNS])
        metrics = self.evaluator.regression(test_df["hourly_pay"].to_numpy(), y_pred)

        logs.info(
            f"[PayPredictionTrainEngine] algorithm={self.algorithm} rows={n} "
            f"train={len(train_df)} test={len(test_df)} "
            f"mae={metrics.mae:.4f} rmse={metrics.rmse:.4f} r2={metrics.r_squared:.4f}"
        )

        return TrainResult(
            model=model,
            metrics=metrics,
            feature_names=list(PAY_INPUT_COLUMNS),
            n_train=len(train_df),
            n_test=len(test_df),
            y_true=test_df["hourly_pay"].astype(float).tolist(),
            y_pred=[float(v) for v in y_pred],
        )
