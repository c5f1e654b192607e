#!filepath: tests/api/test_app.py
import pytest

from jobmatch import AppConfig
from jobmatch.api import app as api
from jobmatch.config.training_config import TrainingConfig
from jobmatch.recommend.job_recommender import JobRecommender
from jobmatch.workflows.bootstrap import build_services
from tests.factories import TODAY, oid, pay_store


@pytest.fixture
def services(store, registry, tmp_path):
    cfg = AppConfig(training=TrainingConfig(model_dir=str(tmp_path / "models")))
    services = build_services(cfg, store=store, registry=registry)
    services.jobs = JobRecommender(store, services.orchestrator, today=lambda: TODAY)
    api.set_services(services)
    yield services
    api.set_services(None)
    services.orchestrator.shutdown()


@pytest.fixture
def client(services):
    api.app.config["TESTING"] = True
    with api.app.test_client() as c:
        yield c


def test_health_and_types(client):
    assert client.get("/health").get_json() == {"ok": True}
    assert client.get("/models/types").get_json() == [
        "JobRecommendation", "StudentRecommendation", "JobPayPrediction",
    ]


def test_train_all_summary(client):
    resp = client.post("/models/train")
    body = resp.get_json()

    assert resp.status_code == 200
    # the pay model has too few rows in this store
    assert body["message"] == "Trained 2/3 models successfully, 2 promoted to production"
    assert body["success"] is False
    assert [r["modelType"] for r in body["results"]] == [
        "JobRecommendation", "StudentRecommendation", "JobPayPrediction",
    ]
    assert "Insufficient data" in body["results"][2]["message"]


def test_train_one_versions_production_rollback(client):
    first = client.post("/models/train/jobrecommendation").get_json()
    assert first["success"] and first["promotedToProduction"]
    assert first["version"] == "1"

    versions = client.get("/models/JobRecommendation/versions").get_json()
    assert versions[0]["runId"] == first["runId"]
    assert versions[0]["stage"] == "Production"

    prod = client.get("/models/JobRecommendation/production")
    assert prod.status_code == 200
    assert prod.get_json()["version"] == "1"

    # nothing archived yet
    assert client.post("/models/JobRecommendation/rollback").status_code == 400


def test_missing_production_and_bad_input(client):
    assert client.get("/models/JobPayPrediction/production").status_code == 404

    bad_type = client.get("/models/Nope/versions")
    assert bad_type.status_code == 400
    assert "Invalid model type" in bad_type.get_json()["error"]

    assert client.post("/models/JobRecommendation/promote/7").status_code == 400
    assert client.get(f"/recommendations/jobs/{oid(1)}?mode=magic").status_code == 400
    assert client.get("/recommendations/jobs/123").status_code == 400


def test_status_and_cache(client):
    status = client.get("/models/status").get_json()
    assert status["isTraining"] is False
    assert status["scheduledTime"] == "22:00"

    assert client.post("/models/cache/invalidate").get_json()["modelType"] == "all"
    resp = client.post("/models/cache/invalidate?modelType=JobPayPrediction")
    assert resp.get_json() == {"success": True, "modelType": "JobPayPrediction"}
    assert client.post("/models/cache/invalidate?modelType=x").status_code == 400


def test_recommendations(client):
    jobs = client.get(f"/recommendations/jobs/{oid(1)}").get_json()
    assert [j["job"]["jobId"] for j in jobs] != []
    assert jobs[0]["explanations"][0]["featureName"]

    heuristic = client.get(f"/recommendations/jobs/{oid(1)}?mode=heuristic").get_json()
    assert heuristic[0]["explanations"] == []

    students = client.get(f"/recommendations/students/{oid(100)}").get_json()
    assert len(students) == 6
    assert client.get(f"/recommendations/jobs/{oid(4242)}").get_json() == []


def test_pay_prediction(client, services):
    resp = client.post("/predictions/pay/tree", json={"type": "gastro"})
    assert resp.status_code == 200
    assert resp.get_json()["source"] in {"type_mean", "global_mean"}

    assert client.post("/predictions/pay/forest", json={"type": "gastro"}).status_code == 400
    assert client.post("/predictions/pay/tree", data="nope").status_code == 400

    # too few rows to evaluate
    assert client.get("/predictions/pay/linear/evaluate").status_code == 422

    services.pay.store = pay_store()
    ev = client.get("/predictions/pay/linear/evaluate").get_json()
    assert ev["algorithm"] == "linear"
    assert len(ev["predictions"]) == 9


def test_pay_evaluate_all(client, services):
    assert client.get("/predictions/pay/evaluate").status_code == 422

    services.pay.store = pay_store()
    resp = client.get("/predictions/pay/evaluate")
    assert resp.status_code == 200

    body = resp.get_json()
    assert set(body) == {"linear", "tree", "lbfgs"}
    assert all(m["mae"] >= 0.0 for m in body.values())
    assert all("rmse" in m and "r_squared" in m for m in body.values())
