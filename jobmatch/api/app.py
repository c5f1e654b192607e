# jobmatch/api/app.py
from __future__ import annotations

from flask import Flask, jsonify, request

from jobmatch import AppConfig, Logging, logs
from jobmatch.api.decorators import handle_service_errors
from jobmatch.recommend.base import HEURISTIC, LEARNED
from jobmatch.utils.errors import UserInputError
from jobmatch.workflows.bootstrap import Services, build_services

app = Flask(__name__)

_SERVICES: Services | None = None


def get_services() -> Services:
    global _SERVICES
    if _SERVICES is None:
        _SERVICES = build_services()
    return _SERVICES


def set_services(services: Services | None) -> None:
    """Install prebuilt services (tests, embedding)."""
    global _SERVICES
    _SERVICES = services


def _mode() -> str:
    mode = request.args.get("mode", LEARNED).strip().lower()
    if mode not in (LEARNED, HEURISTIC):
        raise UserInputError(f"Invalid mode '{mode}'. Available: {LEARNED}, {HEURISTIC}")
    return mode


# ---------------------------------------------------------
# model management
# ---------------------------------------------------------
@app.post("/models/train")
@handle_service_errors
def train_all():
    return jsonify(get_services().models.train_all())


@app.post("/models/train/<model_type>")
@handle_service_errors
def train_one(model_type: str):
    result = get_services().models.train_one(model_type)
    return jsonify(result.to_dict())


@app.get("/models/<model_type>/versions")
@handle_service_errors
def get_versions(model_type: str):
    versions = get_services().models.get_versions(model_type)
    return jsonify([v.to_dict() for v in versions])


@app.get("/models/<model_type>/production")
@handle_service_errors
def get_production(model_type: str):
    info = get_services().models.get_production(model_type)
    if info is None:
        return jsonify({"error": "no production model", "modelType": model_type}), 404
    return jsonify(info.to_dict())


@app.post("/models/<model_type>/promote/<version>")
@handle_service_errors
def promote(model_type: str, version: str):
    info = get_services().models.promote(model_type, version)
    return jsonify({"success": True, "message": f"Version {version} promoted to Production", "version": info.to_dict()})


@app.post("/models/<model_type>/rollback")
@handle_service_errors
def rollback(model_type: str):
    if not get_services().models.rollback(model_type):
        return jsonify({"success": False, "message": "No production model or archived version to roll back to"}), 400
    return jsonify({"success": True, "message": "Rolled back to previous version"})


@app.get("/models/status")
def status():
    return jsonify(get_services().models.status().to_dict())


@app.post("/models/cache/invalidate")
@handle_service_errors
def invalidate_cache():
    model_type = request.args.get("modelType")
    get_services().models.invalidate_cache(model_type)
    return jsonify({"success": True, "modelType": model_type or "all"})


@app.get("/models/types")
def list_types():
    return jsonify(get_services().models.list_types())


# ---------------------------------------------------------
# recommendations / predictions
# ---------------------------------------------------------
@app.get("/recommendations/jobs/<student_id>")
@handle_service_errors
def recommend_jobs(student_id: str):
    recs = get_services().jobs.recommend(student_id, mode=_mode())
    return jsonify([r.to_dict() for r in recs])


@app.get("/recommendations/students/<job_id>")
@handle_service_errors
def recommend_students(job_id: str):
    recs = get_services().students.recommend(job_id, mode=_mode())
    return jsonify([r.to_dict() for r in recs])


@app.post("/predictions/pay/<algorithm>")
@handle_service_errors
def predict_pay(algorithm: str):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise UserInputError("JSON body with type, placeOfWork, requiredTraits expected")
    return jsonify(get_services().pay.predict(algorithm, payload).to_dict())


@app.get("/predictions/pay/evaluate")
@handle_service_errors
def evaluate_pay_all():
    results = get_services().pay.evaluate_all()
    return jsonify({algorithm: metrics.to_dict() for algorithm, metrics in results.items()})


@app.get("/predictions/pay/<algorithm>/evaluate")
@handle_service_errors
def evaluate_pay(algorithm: str):
    return jsonify(get_services().pay.evaluate(algorithm).to_dict())


@app.get("/health")
def health():
    return jsonify({"ok": True})


if __name__ == "__main__":
    # python -m jobmatch.api.app
    cfg = AppConfig.load()
    Logging.from_config(cfg.log)
    services = build_services(cfg)
    set_services(services)
    services.scheduler.start()
    logs.info("[API] scheduler thread started")
    try:
        app.run(host="0.0.0.0", port=5000)
    finally:
        services.scheduler.stop()
        services.orchestrator.shutdown()
