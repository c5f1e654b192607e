# jobmatch/store/json_store.py
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Type, TypeVar

from pydantic import BaseModel

from jobmatch import logs
from jobmatch.core.records import Application, Company, Job, Student
from jobmatch.store.base import DocumentStore

T = TypeVar("T", bound=BaseModel)


class JsonSnapshotStore(DocumentStore):
    """
    Reads a directory exported from the document store::

        <snapshot_dir>/
          students.json
          jobs.json
          companies.json
          applications.json

    Each file is a JSON array. Files are re-read on every call so a new
    export is picked up without restart. A missing file is an empty collection.
    """

    def __init__(self, snapshot_dir: Path | str):
        self.snapshot_dir = Path(snapshot_dir)

    def _load(self, name: str, model: Type[T]) -> List[T]:
        path = self.snapshot_dir / f"{name}.json"
        if not path.exists():
            logs.warning(f"[JsonSnapshotStore] {path} not found, treating as empty")
            return []
        raw = json.loads(path.read_text(encoding="utf-8"))
        return [model.model_validate(item) for item in raw]

    def list_students(self) -> List[Student]:
        return self._load("students", Student)

    def list_jobs(self) -> List[Job]:
        return self._load("jobs", Job)

    def list_companies(self) -> List[Company]:
        return self._load("companies", Company)

    def list_applications(self) -> List[Application]:
        return self._load("applications", Application)
