# jobmatch/recommend/base.py
from __future__ import annotations

from abc import ABC
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from jobmatch import logs
from jobmatch.config.training_config import TrainingConfig
from jobmatch.core.types import ModelType
from jobmatch.features.extractor import (
    CandidateRow,
    FeatureExtractor,
    SampleSet,
    candidates_to_frame,
)
from jobmatch.recommend.weights import FeatureWeights, learn_feature_weights
from jobmatch.store.base import DocumentStore
from jobmatch.training.engines.recommendation_engine import fit_ranking_model, positive_scores
from jobmatch.training.orchestrator import TrainingOrchestrator
from jobmatch.utils.errors import InsufficientDataError

HEURISTIC = "heuristic"
LEARNED = "learned"

# ephemeral models are fitted deterministically
EPHEMERAL_SEED = 0


class RankingRecommender(ABC):
    """
    Shared learned-mode scoring for job and student recommendations.

    Model resolution, in order:
    1. Production model via the orchestrator cache
    2. ephemeral model fitted on current history (never registered)
    3. None → caller falls back to heuristic scores
    """

    model_type: ModelType
    feature_names: List[str] = []
    default_weights: Mapping[str, float] = {}

    def __init__(
        self,
        store: DocumentStore,
        orchestrator: TrainingOrchestrator | None = None,
        extractor: FeatureExtractor | None = None,
        cfg: TrainingConfig | None = None,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.extractor = extractor or FeatureExtractor()
        self.cfg = cfg or TrainingConfig()

    @property
    def _tag(self) -> str:
        return f"[{type(self).__name__}]"

    def _resolve_model(self, samples: SampleSet) -> Optional[Any]:
        model = None
        if self.orchestrator is not None:
            model = self.orchestrator.load_production_model(self.model_type)
        if model is not None:
            return model

        try:
            model = fit_ranking_model(samples.all, self.feature_names, EPHEMERAL_SEED)
        except (InsufficientDataError, ValueError) as e:
            logs.warning(f"{self._tag} ephemeral model unavailable: {e}")
            return None
        logs.info(f"{self._tag} no production model, using ephemeral model ({len(samples)} samples)")
        return model

    def score_learned(
        self, rows: Sequence[CandidateRow], samples: SampleSet
    ) -> Optional[List[Tuple[CandidateRow, float]]]:
        """
        Batch-score rows, best first. None means "use heuristic mode".
        """
        if len(samples) < self.cfg.min_samples:
            logs.info(
                f"{self._tag} {len(samples)} labeled samples < {self.cfg.min_samples}, heuristic mode"
            )
            return None

        model = self._resolve_model(samples)
        if model is None:
            return None

        try:
            scores = positive_scores(model, candidates_to_frame(rows, self.feature_names))
        except Exception as e:
            # e.g. artifact trained on another feature layout
            logs.exception(f"{self._tag} scoring failed, heuristic mode: {e}")
            return None

        ranked = sorted(zip(rows, (float(s) for s in scores)), key=lambda x: x[1], reverse=True)
        return ranked

    def weights(self, samples: SampleSet) -> FeatureWeights:
        return learn_feature_weights(samples.all, self.default_weights, self.cfg.min_samples)
