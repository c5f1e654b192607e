#!filepath: tests/workflows/test_bootstrap_cli.py
import pytest
from typer.testing import CliRunner

from jobmatch import AppConfig, cli
from jobmatch.config.registry_config import RegistryConfig
from jobmatch.config.store_config import StoreConfig
from jobmatch.config.training_config import TrainingConfig
from jobmatch.core.types import ModelType
from jobmatch.registry.local import LocalModelRegistry
from jobmatch.store.json_store import JsonSnapshotStore
from jobmatch.workflows.bootstrap import build_services
from tests.factories import oid

runner = CliRunner()


@pytest.fixture
def services(store, registry, tmp_path):
    cfg = AppConfig(training=TrainingConfig(model_dir=str(tmp_path / "models")))
    services = build_services(cfg, store=store, registry=registry)
    yield services
    services.orchestrator.shutdown()


def test_build_services_from_config(tmp_path):
    cfg = AppConfig(
        store=StoreConfig(snapshot_dir=str(tmp_path / "data")),
        registry=RegistryConfig(root_dir=str(tmp_path / "registry")),
        training=TrainingConfig(model_dir=str(tmp_path / "models")),
    )
    services = build_services(cfg)
    try:
        assert isinstance(services.store, JsonSnapshotStore)
        assert isinstance(services.registry, LocalModelRegistry)
        assert set(services.scheduler.train_fns) == set(ModelType)
        # empty snapshot → nothing to recommend
        assert services.students.recommend(oid(1)) == []
    finally:
        services.orchestrator.shutdown()


def test_cli_commands(monkeypatch, services):
    monkeypatch.setattr(cli, "build_services", lambda: services)

    types = runner.invoke(cli.app, ["types"])
    assert types.exit_code == 0
    assert "StudentRecommendation" in types.output

    trained = runner.invoke(cli.app, ["train", "StudentRecommendation"])
    assert trained.exit_code == 0
    assert "promoted to production" in trained.output

    prod = runner.invoke(cli.app, ["production", "StudentRecommendation"])
    assert prod.exit_code == 0

    missing = runner.invoke(cli.app, ["production", "JobPayPrediction"])
    assert missing.exit_code == 1

    assert runner.invoke(cli.app, ["rollback", "StudentRecommendation"]).exit_code == 1
    assert runner.invoke(cli.app, ["versions", "StudentRecommendation"]).exit_code == 0
    assert runner.invoke(cli.app, ["status"]).exit_code == 0
    assert runner.invoke(cli.app, ["invalidate-cache"]).exit_code == 0

    recs = runner.invoke(cli.app, ["recommend-students", oid(100), "--mode", "heuristic"])
    assert recs.exit_code == 0

    pay = runner.invoke(cli.app, ["predict-pay", "tree", "--type", "gastro", "--trait", "friendly"])
    assert pay.exit_code == 0
    assert "type_mean" in pay.output
