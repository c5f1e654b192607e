#!filepath: tests/registry/test_local_registry.py
from pathlib import Path

import pytest

from jobmatch.core.types import ModelStage, RunStatus
from jobmatch.registry.local import LocalModelRegistry
from jobmatch.utils.errors import RegistryError, UserInputError


def _run(registry: LocalModelRegistry) -> str:
    exp = registry.get_or_create_experiment("job-recommendation-experiment")
    return registry.create_run(exp, {"model_type": "JobRecommendation"})


def test_experiments_are_idempotent(registry):
    a = registry.get_or_create_experiment("a")
    assert registry.get_or_create_experiment("a") == a
    assert registry.get_or_create_experiment("b") != a


def test_run_lifecycle(registry):
    run_id = _run(registry)
    registry.log_params(run_id, {"seed": 3, "framework": "scikit-learn"})
    registry.log_param(run_id, "seed", 3)
    registry.log_metrics(run_id, {"pr_auc": 0.5})
    registry.set_tag(run_id, "note", "x")
    registry.finish_run(run_id, RunStatus.FINISHED)

    run = registry.get_run(run_id)
    assert run.params == {"seed": "3", "framework": "scikit-learn"}
    assert run.metrics == {"pr_auc": 0.5}
    assert run.tags["note"] == "x"
    assert run.status == RunStatus.FINISHED
    assert run.end_time is not None

    with pytest.raises(RegistryError):
        registry.log_metrics(run_id, {"auc": 0.1})


def test_params_are_write_once(registry):
    run_id = _run(registry)
    registry.log_param(run_id, "seed", 1)
    with pytest.raises(RegistryError):
        registry.log_param(run_id, "seed", 2)


def test_unknown_experiment_or_run(registry):
    with pytest.raises(RegistryError):
        registry.create_run("99")
    with pytest.raises(RegistryError):
        registry.log_param("missing", "a", 1)
    assert registry.get_run("missing") is None


def test_versions_and_stages(registry):
    registry.create_registered_model("m")
    registry.create_registered_model("m")
    r1, r2 = _run(registry), _run(registry)

    v1 = registry.create_model_version("m", source="s1", run_id=r1)
    v2 = registry.create_model_version("m", source="s2", run_id=r2)
    assert (v1.version, v2.version) == ("1", "2")
    assert [v.version for v in registry.search_model_versions("m")] == ["2", "1"]

    registry.transition_stage("m", "1", ModelStage.PRODUCTION)
    registry.transition_stage("m", "2", ModelStage.PRODUCTION, archive_existing=True)

    assert registry.get_production_version("m").version == "2"
    assert registry.get_model_version("m", "1").stage == ModelStage.ARCHIVED
    assert registry.get_latest_versions("m", [ModelStage.ARCHIVED])[0].version == "1"

    with pytest.raises(UserInputError):
        registry.transition_stage("m", "5", ModelStage.PRODUCTION)
    with pytest.raises(RegistryError):
        registry.create_model_version("unregistered", source="s", run_id=r1)


def test_artifacts_round_trip(registry, tmp_path: Path):
    run_id = _run(registry)
    src = tmp_path / "artifact"
    src.mkdir()
    (src / "model.joblib").write_bytes(b"123")

    uri = registry.log_artifact(run_id, src, "model")
    assert uri.startswith("file:")
    assert registry.get_run(run_id).artifact_uri == uri

    out = registry.download_artifact(run_id, "model", tmp_path / "dl")
    assert (out / "model.joblib").read_bytes() == b"123"

    with pytest.raises(RegistryError):
        registry.download_artifact(run_id, "other", tmp_path / "dl2")


def test_state_is_persisted(tmp_path: Path):
    root = tmp_path / "reg"
    first = LocalModelRegistry(root)
    run_id = _run(first)
    first.create_registered_model("m")
    first.create_model_version("m", source="s", run_id=run_id)

    second = LocalModelRegistry(root)
    assert second.get_run(run_id).tags["model_type"] == "JobRecommendation"
    assert second.get_model_version("m", "1").source == "s"

    volatile = LocalModelRegistry(tmp_path / "mem", persist=False)
    _run(volatile)
    assert not (tmp_path / "mem" / "registry.json").exists()
