# jobmatch/training/artifact.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import joblib

from jobmatch import logs

MODEL_FILE = "model.joblib"
META_FILE = "artifact.json"


# ============================================================
# Model Artifact (RUN-SCOPED)
# ============================================================
@dataclass(frozen=True)
class ModelArtifact:
    """
    ModelArtifact (FINAL / FROZEN)

    Semantics:
    - path always points to an artifact ROOT directory
    - NEVER points to a single file
    """
    path: Path
    model_type: str
    model_name: str
    run_id: str
    metrics: Dict[str, float] = field(default_factory=dict)
    feature_names: List[str] = field(default_factory=list)
    created_at: datetime | None = None


def persist_model_artifact(
    *,
    model: Any,
    artifact_dir: Path,
    model_type: str,
    model_name: str,
    run_id: str,
    metrics: Dict[str, float],
    feature_names: List[str],
) -> ModelArtifact:
    """Write model.joblib + artifact.json into artifact_dir."""
    artifact_dir = Path(artifact_dir)
    artifact_dir.mkdir(parents=True, exist_ok=True)

    joblib.dump(model, artifact_dir / MODEL_FILE)

    created_at = datetime.now(timezone.utc)
    meta = {
        "run_id": run_id,
        "model_type": model_type,
        "model_name": model_name,
        "created_at": created_at.isoformat(),
        "metrics": dict(metrics),
        "feature_names": list(feature_names),
    }
    (artifact_dir / META_FILE).write_text(json.dumps(meta, indent=2), encoding="utf-8")

    artifact = ModelArtifact(
        path=artifact_dir,
        model_type=model_type,
        model_name=model_name,
        run_id=run_id,
        metrics=dict(metrics),
        feature_names=list(feature_names),
        created_at=created_at,
    )
    logs.info(f"[ModelArtifact] persisted {model_name} run={run_id} → {artifact_dir}")
    return artifact


def resolve_model_artifact_from_dir(artifact_dir: Path) -> ModelArtifact:
    """
    Resolve a persisted ModelArtifact from its root directory.
    """
    artifact_dir = Path(artifact_dir)
    meta_path = artifact_dir / META_FILE
    if not meta_path.exists():
        raise RuntimeError(f"[ModelArtifact] {META_FILE} not found in {artifact_dir}")

    meta = json.loads(meta_path.read_text(encoding="utf-8"))
    return ModelArtifact(
        path=artifact_dir,
        model_type=meta["model_type"],
        model_name=meta["model_name"],
        run_id=meta["run_id"],
        metrics=meta.get("metrics", {}),
        feature_names=meta.get("feature_names", []),
        created_at=datetime.fromisoformat(meta["created_at"]),
    )


def load_model(artifact: ModelArtifact) -> Any:
    model_path = artifact.path / MODEL_FILE
    if not model_path.exists():
        raise RuntimeError(f"[ModelArtifact] {MODEL_FILE} not found in {artifact.path}")
    return joblib.load(model_path)
