# jobmatch/training/orchestrator.py
from __future__ import annotations

import random
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from jobmatch import logs
from jobmatch.config.training_config import TrainingConfig
from jobmatch.core.types import ModelStage, ModelType, RunStatus
from jobmatch.observability.instrumentation import Instrumentation
from jobmatch.registry.base import ModelRegistry, RegisteredVersion
from jobmatch.training.artifact import (
    MODEL_FILE,
    load_model,
    persist_model_artifact,
    resolve_model_artifact_from_dir,
)
from jobmatch.training.cache import ModelCache, TTLModelCache
from jobmatch.training.engines.train_result import TrainResult
from jobmatch.training.metrics import ModelMetrics
from jobmatch.training.promotion import PromotionPolicy
from jobmatch.training.results import ModelVersionInfo, TrainingResult
from jobmatch.training.specs import ModelSpec, get_spec
from jobmatch.utils.errors import UserInputError
from jobmatch.utils.path import PathManager

ARTIFACT_PATH = "model"

TrainFn = Callable[[int], TrainResult]


class TrainingOrchestrator:
    """
    TrainingOrchestrator (FINAL)

    train → evaluate → compare → register → promote, for one model type
    per call, plus serving of the Production model through the cache.

    Semantics:
    - every started run is finished, FINISHED or FAILED
    - training never fails because artifact upload failed; the local
      artifact path is always logged as a run param
    - fitting runs on a single worker thread; the result comes back
      through a future
    - stage changes (promotion, manual promote, rollback) are serialized
      by one lock, so two Production versions can only coexist briefly
    """

    # reloads when a promotion races a cache fill
    LOAD_ATTEMPTS = 3

    def __init__(
        self,
        registry: ModelRegistry,
        cfg: TrainingConfig | None = None,
        cache: ModelCache | None = None,
        policy: PromotionPolicy | None = None,
        model_dir: Path | str | None = None,
        seed_source: Callable[[], int] | None = None,
    ):
        self.registry = registry
        self.cfg = cfg or TrainingConfig()
        self.cache = cache or TTLModelCache(ttl_seconds=self.cfg.cache_ttl_seconds)
        self.policy = policy or PromotionPolicy(
            min_improvement=self.cfg.min_improvement,
            tie_tolerance=self.cfg.tie_tolerance,
        )
        self.model_dir = PathManager.resolve(model_dir or self.cfg.model_dir)
        self._seed_source = seed_source or (lambda: random.randint(0, 2**31 - 1))

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="model-fit")
        self._stage_lock = threading.Lock()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    # =========================================================
    # Train & evaluate
    # =========================================================
    def train_and_evaluate(self, model_type: ModelType | str, train_fn: TrainFn) -> TrainingResult:
        model_type = ModelType.parse(model_type)
        spec = get_spec(model_type)
        tag = f"[Orchestrator:{model_type.value}]"

        # -----------------------------
        # Setup (no run yet)
        # -----------------------------
        try:
            experiment_id = self.registry.get_or_create_experiment(spec.experiment_name)
            current = self.registry.get_production_version(spec.model_name)
            current_metrics = self._metrics_of(current) if current else None

            seed = self._seed_source()
            tags = {
                "model_type": model_type.value,
                "training_date": datetime.now(timezone.utc).isoformat(),
                "framework": self.cfg.framework,
                "comparison_metric": spec.comparison_metric,
            }
            if current is not None:
                tags["previous_production_run_id"] = current.run_id
                tags["previous_production_version"] = current.version
            run_id = self.registry.create_run(experiment_id, tags)
        except Exception as e:
            logs.exception(f"{tag} setup failed: {e}")
            return TrainingResult(
                success=False,
                message=f"Training failed: {e}",
                model_type=model_type.value,
            )

        previous_run_id = current.run_id if current else None
        logs.info(
            f"{tag} run={run_id} seed={seed} "
            f"production={'v' + current.version if current else 'none'}"
        )

        # -----------------------------
        # Run body
        # -----------------------------
        inst = Instrumentation()
        try:
            params: Dict[str, Any] = {
                "model_type": model_type.value,
                "framework": self.cfg.framework,
                "seed": seed,
                "minimum_improvement_delta": self.cfg.min_improvement,
            }
            if current is not None:
                params["previous_production_run_id"] = current.run_id
                params["previous_production_version"] = current.version
            self.registry.log_params(run_id, params)

            with inst.timer("fit"):
                result = self._executor.submit(train_fn, seed).result()

            self.registry.log_metrics(run_id, result.metrics.to_dict())

            decision = self.policy.decide(result.metrics, current_metrics, spec.task)
            self.registry.log_params(
                run_id,
                {
                    "is_better_than_production": str(decision.is_better).lower(),
                    "comparison_result": decision.rationale,
                },
            )
            logs.info(f"{tag} {decision.rationale}")

            with inst.timer("persist"):
                artifact_uri = self._persist(spec, run_id, result)

            version: Optional[str] = None
            if decision.is_better:
                with inst.timer("register"):
                    version = self._register_and_promote(spec, run_id, artifact_uri)

            self.registry.finish_run(run_id, RunStatus.FINISHED)
            inst.report(f"{model_type.value} run={run_id}")

        except Exception as e:
            logs.exception(f"{tag} run={run_id} failed: {e}")
            self._finish_failed(run_id)
            return TrainingResult(
                success=False,
                message=f"Training failed: {e}",
                model_type=model_type.value,
                run_id=run_id,
                previous_production_run_id=previous_run_id,
            )

        if decision.is_better:
            message = f"New model version promoted to production. {decision.rationale}"
        else:
            message = f"Model trained but not promoted. {decision.rationale}"

        return TrainingResult(
            success=True,
            message=message,
            model_type=model_type.value,
            run_id=run_id,
            metrics=result.metrics,
            promoted_to_production=decision.is_better,
            previous_production_run_id=previous_run_id,
            version=version,
        )

    def _metrics_of(self, mv: RegisteredVersion) -> ModelMetrics:
        run = self.registry.get_run(mv.run_id)
        return ModelMetrics.from_dict(run.metrics if run else None)

    def _persist(self, spec: ModelSpec, run_id: str, result: TrainResult) -> str:
        """
        Save locally, then try to upload. Returns the artifact URI, or the
        local path when the upload failed.
        """
        artifact = persist_model_artifact(
            model=result.model,
            artifact_dir=PathManager.model_run_dir(spec.model_name, run_id, base=self.model_dir),
            model_type=spec.model_type.value,
            model_name=spec.model_name,
            run_id=run_id,
            metrics=result.metrics.to_dict(),
            feature_names=result.feature_names,
        )
        local_path = str(artifact.path.resolve())
        self.registry.log_param(run_id, "model_local_path", local_path)

        try:
            uri = self.registry.log_artifact(run_id, artifact.path, ARTIFACT_PATH)
        except Exception as e:
            logs.warning(f"[Orchestrator] artifact upload failed for run {run_id}, keeping local path: {e}")
            return local_path

        self.registry.log_param(run_id, "model_artifact_uri", uri)
        return uri

    def _register_and_promote(self, spec: ModelSpec, run_id: str, source: str) -> str:
        with self._stage_lock:
            self.registry.create_registered_model(spec.model_name)
            mv = self.registry.create_model_version(spec.model_name, source=source, run_id=run_id)
            self.registry.transition_stage(
                spec.model_name, mv.version, ModelStage.PRODUCTION, archive_existing=True
            )
            self.cache.invalidate(spec.model_type)
        logs.info(f"[Orchestrator] {spec.model_name} v{mv.version} promoted to Production")
        return mv.version

    def _finish_failed(self, run_id: str) -> None:
        try:
            self.registry.finish_run(run_id, RunStatus.FAILED)
        except Exception as e:
            logs.error(f"[Orchestrator] could not mark run {run_id} FAILED: {e}")

    # =========================================================
    # Serving
    # =========================================================
    def load_production_model(self, model_type: ModelType | str) -> Optional[Any]:
        """
        Cached Production model, or None when there is none (or it cannot
        be loaded). Never raises for a missing model.

        A model whose version was replaced while it was being loaded is
        never cached; the load is retried against the new Production.
        """
        model_type = ModelType.parse(model_type)
        entry = self.cache.get(model_type)
        if entry is not None:
            return entry.model

        spec = get_spec(model_type)
        model = None
        for _ in range(self.LOAD_ATTEMPTS):
            generation = self.cache.generation(model_type)
            try:
                mv = self.registry.get_production_version(spec.model_name)
                if mv is None:
                    logs.debug(f"[Orchestrator] no production model for {model_type.value}")
                    return None

                artifact_dir = self._resolve_artifact_dir(mv)
                model = load_model(resolve_model_artifact_from_dir(artifact_dir))
            except Exception as e:
                logs.exception(f"[Orchestrator] failed to load production {model_type.value}: {e}")
                return None

            if self.cache.put(model_type, model, mv.version, generation=generation) is not None:
                logs.info(f"[Orchestrator] loaded {spec.model_name} v{mv.version} into cache")
                return model
            logs.info(f"[Orchestrator] {spec.model_name} v{mv.version} replaced while loading, reloading")

        logs.warning(f"[Orchestrator] {spec.model_name} kept changing, serving uncached")
        return model

    def _resolve_artifact_dir(self, mv: RegisteredVersion) -> Path:
        run = self.registry.get_run(mv.run_id)
        local = run.params.get("model_local_path") if run else None
        if local and (Path(local) / MODEL_FILE).exists():
            return Path(local)

        dst = PathManager.model_download_dir(mv.name, mv.version, base=self.model_dir)
        if (dst / ARTIFACT_PATH / MODEL_FILE).exists():
            return dst / ARTIFACT_PATH

        logs.info(f"[Orchestrator] local artifact missing for run {mv.run_id}, downloading")
        dst.mkdir(parents=True, exist_ok=True)
        return self.registry.download_artifact(mv.run_id, ARTIFACT_PATH, dst)

    # =========================================================
    # Version management
    # =========================================================
    def get_versions(self, model_type: ModelType | str) -> List[ModelVersionInfo]:
        spec = get_spec(model_type)
        experiment_id = self.registry.get_or_create_experiment(spec.experiment_name)
        by_run = {v.run_id: v for v in self.registry.search_model_versions(spec.model_name)}

        out: List[ModelVersionInfo] = []
        for run in self.registry.search_runs(experiment_id):
            mv = by_run.get(run.run_id)
            out.append(
                ModelVersionInfo(
                    run_id=run.run_id,
                    version=mv.version if mv else None,
                    stage=mv.stage if mv else ModelStage.NONE,
                    created_at=mv.creation_time if mv else run.start_time,
                    metrics=ModelMetrics.from_dict(run.metrics),
                    status=run.status,
                    comparison_result=run.params.get("comparison_result"),
                    previous_production_run_id=run.params.get("previous_production_run_id"),
                )
            )
        return out

    def get_production(self, model_type: ModelType | str) -> Optional[ModelVersionInfo]:
        spec = get_spec(model_type)
        mv = self.registry.get_production_version(spec.model_name)
        if mv is None:
            return None
        return self._version_info(mv)

    def _version_info(self, mv: RegisteredVersion) -> ModelVersionInfo:
        run = self.registry.get_run(mv.run_id)
        params = run.params if run else {}
        return ModelVersionInfo(
            run_id=mv.run_id,
            version=mv.version,
            stage=mv.stage,
            created_at=mv.creation_time,
            metrics=ModelMetrics.from_dict(run.metrics if run else None),
            status=run.status if run else RunStatus.FINISHED,
            comparison_result=params.get("comparison_result"),
            previous_production_run_id=params.get("previous_production_run_id"),
        )

    def promote(self, model_type: ModelType | str, version: str) -> ModelVersionInfo:
        """Manual promotion of an existing version; the old Production is archived."""
        model_type = ModelType.parse(model_type)
        spec = get_spec(model_type)
        version = str(version).strip()

        with self._stage_lock:
            if self.registry.get_model_version(spec.model_name, version) is None:
                raise UserInputError(f"Model version {version} not found for {model_type.value}")
            mv = self.registry.transition_stage(
                spec.model_name, version, ModelStage.PRODUCTION, archive_existing=True
            )
            self.cache.invalidate(model_type)

        logs.info(f"[Orchestrator] {spec.model_name} v{version} manually promoted to Production")
        return self._version_info(mv)

    def rollback(self, model_type: ModelType | str) -> bool:
        """
        Newest Archived version (other than the current one) → Production,
        current Production → Staging.
        """
        model_type = ModelType.parse(model_type)
        spec = get_spec(model_type)

        with self._stage_lock:
            current = self.registry.get_production_version(spec.model_name)
            if current is None:
                logs.warning(f"[Orchestrator] rollback {model_type.value}: no production model")
                return False

            archived = [
                v for v in self.registry.search_model_versions(spec.model_name)
                if v.stage == ModelStage.ARCHIVED and v.version != current.version
            ]
            if not archived:
                logs.warning(f"[Orchestrator] rollback {model_type.value}: no archived version")
                return False

            target = max(archived, key=lambda v: (v.creation_time, int(v.version)))
            # new Production first so readers never see zero Production versions
            self.registry.transition_stage(spec.model_name, target.version, ModelStage.PRODUCTION)
            self.registry.transition_stage(spec.model_name, current.version, ModelStage.STAGING)
            self.cache.invalidate(model_type)

        logs.info(
            f"[Orchestrator] {spec.model_name} rolled back v{current.version} → v{target.version}"
        )
        return True

    def invalidate_cache(self, model_type: ModelType | str | None = None) -> None:
        self.cache.invalidate(ModelType.parse(model_type) if model_type is not None else None)
