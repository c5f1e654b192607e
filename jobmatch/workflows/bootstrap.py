# jobmatch/workflows/bootstrap.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from jobmatch import logs
from jobmatch.config.app_config import AppConfig
from jobmatch.core.types import ModelType
from jobmatch.features.extractor import FeatureExtractor
from jobmatch.recommend.job_recommender import JobRecommender
from jobmatch.recommend.pay_predictor import PayPredictor
from jobmatch.recommend.student_recommender import StudentRecommender
from jobmatch.registry.base import ModelRegistry
from jobmatch.registry.local import LocalModelRegistry
from jobmatch.services.model_management import ModelManagementService
from jobmatch.store.base import DocumentStore
from jobmatch.store.json_store import JsonSnapshotStore
from jobmatch.training.orchestrator import TrainFn, TrainingOrchestrator
from jobmatch.training.scheduler import TrainingScheduler
from jobmatch.training.specs import all_specs, resolve_train_engine
from jobmatch.utils.path import PathManager


@dataclass
class Services:
    cfg: AppConfig
    store: DocumentStore
    registry: ModelRegistry
    orchestrator: TrainingOrchestrator
    scheduler: TrainingScheduler
    models: ModelManagementService
    jobs: JobRecommender
    students: StudentRecommender
    pay: PayPredictor


def build_registry(cfg: AppConfig) -> ModelRegistry:
    if cfg.registry.backend == "mlflow":
        # optional extra
        from jobmatch.registry.mlflow_registry import MlflowModelRegistry

        return MlflowModelRegistry(
            tracking_uri=cfg.registry.tracking_uri,
            max_attempts=cfg.registry.max_attempts,
            retry_delay=cfg.registry.retry_delay,
        )
    return LocalModelRegistry(PathManager.resolve(cfg.registry.root_dir))


def build_train_fns(
    cfg: AppConfig, store: DocumentStore, extractor: FeatureExtractor
) -> Dict[ModelType, TrainFn]:
    fns: Dict[ModelType, TrainFn] = {}
    for spec in all_specs():
        engine = resolve_train_engine(spec=spec, cfg=cfg.training, store=store, extractor=extractor)
        fns[spec.model_type] = lambda seed, engine=engine: engine.train(seed=seed)
    return fns


def build_services(
    cfg: AppConfig | None = None,
    store: DocumentStore | None = None,
    registry: ModelRegistry | None = None,
) -> Services:
    """
    Service wiring (FINAL)

    store and registry can be injected; otherwise they come from cfg.
    """
    if cfg is None:
        cfg = AppConfig.load()

    store = store or JsonSnapshotStore(PathManager.resolve(cfg.store.snapshot_dir))
    registry = registry or build_registry(cfg)
    extractor = FeatureExtractor(cfg.recommend)

    orchestrator = TrainingOrchestrator(registry, cfg.training)
    scheduler = TrainingScheduler(orchestrator, build_train_fns(cfg, store, extractor), cfg.training)

    logs.info(
        f"[Bootstrap] store={type(store).__name__} registry={type(registry).__name__} "
        f"schedule={cfg.training.scheduled_time if cfg.training.enabled else 'disabled'}"
    )

    return Services(
        cfg=cfg,
        store=store,
        registry=registry,
        orchestrator=orchestrator,
        scheduler=scheduler,
        models=ModelManagementService(orchestrator, scheduler),
        jobs=JobRecommender(store, orchestrator, extractor, cfg.training),
        students=StudentRecommender(store, orchestrator, extractor, cfg.training),
        pay=PayPredictor(store, orchestrator, cfg.training, extractor),
    )
