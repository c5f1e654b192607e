# jobmatch/training/promotion.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from jobmatch.core.types import ModelTask
from jobmatch.training.metrics import ModelMetrics

COLD_START_RATIONALE = "No existing production model - new model automatically promoted"


@dataclass(frozen=True)
class PromotionDecision:
    """
    PromotionDecision (FROZEN)

    rationale is persisted with the run; it is the audit trail for why a
    model did or did not ship.
    """
    is_better: bool
    rationale: str
    metric: str = ""
    new_value: float = 0.0
    current_value: float = 0.0
    relative_improvement: float = 0.0


def relative_gain(new: float, current: float) -> float:
    """(new - current) / current, or 1.0 / 0.0 when current is not available."""
    if current > 0:
        return (new - current) / current
    return 1.0 if new > 0 else 0.0


def relative_reduction(new: float, current: float) -> float:
    """
    (current - new) / current for lower-is-better metrics. With a zero
    current value only a strictly lower new value counts as 1.0.
    """
    if current > 0:
        return (current - new) / current
    return 1.0 if new < current else 0.0


class PromotionPolicy:
    """
    Decides whether a newly trained model replaces the Production one.

    Order:
    1. no current model → promote (cold start)
    2. classification: PR-AUC (AUC when PR-AUC is unavailable on either
       side) must improve by min_improvement relative; within tie_tolerance
       an F1 gain of min_improvement relative also promotes
    3. regression: MAE must drop by min_improvement relative; within
       tie_tolerance an RMSE drop of min_improvement relative also promotes
    4. otherwise keep the current model
    """

    def __init__(self, min_improvement: float = 0.05, tie_tolerance: float = 0.01):
        self.min_improvement = min_improvement
        self.tie_tolerance = tie_tolerance

    def decide(
        self,
        new: ModelMetrics,
        current: Optional[ModelMetrics],
        task: ModelTask,
    ) -> PromotionDecision:
        if current is None:
            return PromotionDecision(is_better=True, rationale=COLD_START_RATIONALE)

        if task == ModelTask.CLASSIFICATION:
            return self._classification(new, current)
        return self._regression(new, current)

    # ---------------------------------------------------------
    # classification
    # ---------------------------------------------------------
    def _classification(self, new: ModelMetrics, current: ModelMetrics) -> PromotionDecision:
        # compare like with like: PR-AUC only when both sides have it
        if new.pr_auc > 0 and current.pr_auc > 0:
            metric, new_v, cur_v = "PR-AUC", new.pr_auc, current.pr_auc
        else:
            metric, new_v, cur_v = "AUC", new.auc, current.auc

        rel = relative_gain(new_v, cur_v)
        detail = self._detail(metric, new_v, cur_v, new_v - cur_v, rel)

        if rel >= self.min_improvement:
            return PromotionDecision(True, f"Model improved. {detail}", metric, new_v, cur_v, rel)

        if abs(new_v - cur_v) < self.tie_tolerance:
            f1_rel = relative_gain(new.f1_score, current.f1_score)
            if f1_rel >= self.min_improvement:
                secondary = self._detail("F1", new.f1_score, current.f1_score,
                                         new.f1_score - current.f1_score, f1_rel)
                return PromotionDecision(
                    True,
                    f"Model improved on secondary metric (F1). {detail}; {secondary}",
                    metric, new_v, cur_v, rel,
                )

        return PromotionDecision(False, self._rejected(detail), metric, new_v, cur_v, rel)

    # ---------------------------------------------------------
    # regression (lower is better)
    # ---------------------------------------------------------
    def _regression(self, new: ModelMetrics, current: ModelMetrics) -> PromotionDecision:
        new_v, cur_v = new.mae, current.mae
        rel = relative_reduction(new_v, cur_v)
        detail = self._detail("MAE", new_v, cur_v, cur_v - new_v, rel)

        if rel >= self.min_improvement:
            return PromotionDecision(True, f"Model improved. {detail}", "MAE", new_v, cur_v, rel)

        if abs(new_v - cur_v) < self.tie_tolerance:
            rmse_rel = relative_reduction(new.rmse, current.rmse)
            if rmse_rel >= self.min_improvement:
                secondary = self._detail("RMSE", new.rmse, current.rmse,
                                         current.rmse - new.rmse, rmse_rel)
                return PromotionDecision(
                    True,
                    f"Model improved on secondary metric (RMSE). {detail}; {secondary}",
                    "MAE", new_v, cur_v, rel,
                )

        return PromotionDecision(False, self._rejected(detail), "MAE", new_v, cur_v, rel)

    # ---------------------------------------------------------
    # rationale text
    # ---------------------------------------------------------
    @staticmethod
    def _detail(metric: str, new_v: float, cur_v: float, improvement: float, rel: float) -> str:
        return (
            f"{metric}: {new_v:.4f} vs {cur_v:.4f} "
            f"(improvement: {improvement:.4f}, relative: {rel * 100:.2f}%)"
        )

    def _rejected(self, detail: str) -> str:
        return (
            f"Model did not meet minimum improvement threshold "
            f"({self.min_improvement * 100:.0f}%). {detail}"
        )
