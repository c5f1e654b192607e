#!filepath: tests/store/test_stores.py
import json
from pathlib import Path

import pytest

from jobmatch.store.json_store import JsonSnapshotStore
from jobmatch.store.memory import InMemoryDocumentStore
from tests.factories import make_application, make_job, make_student, oid


def test_memory_store_queries():
    store = InMemoryDocumentStore(
        students=[make_student(1)],
        jobs=[make_job(10, pay=8.0), make_job(11, pay=15.0)],
    )
    store.add(make_application(100, 1, 10, "hired"), make_application(101, 1, 11, "expired"))

    assert store.get_student(oid(1)).first_name == "S1"
    assert store.get_job(oid(99)) is None
    assert len(store.applications_for_student(oid(1))) == 2
    assert [a.job_id for a in store.applications_for_job(oid(11))] == [oid(11)]
    assert [j.job_id for j in store.jobs_with_max_pay(10.0)] == [oid(10)]

    snap = store.snapshot()
    assert set(snap.job_index()) == {oid(10), oid(11)}

    with pytest.raises(TypeError):
        store.add("not a record")


def test_json_snapshot_store(tmp_path: Path):
    (tmp_path / "students.json").write_text(json.dumps([
        {"studentId": oid(1), "firstName": "Anna", "traits": [], "jobTypesHistory": []},
    ]), encoding="utf-8")
    (tmp_path / "jobs.json").write_text(json.dumps([
        {"jobId": oid(2), "companyId": oid(3), "type": "office", "hourlyPay": 11,
         "startDate": "2030-01-01T00:00:00Z"},
    ]), encoding="utf-8")

    store = JsonSnapshotStore(tmp_path)

    assert store.list_students()[0].first_name == "Anna"
    assert store.list_jobs()[0].hourly_pay == 11.0
    # missing files are empty collections
    assert store.list_companies() == []
    assert store.list_applications() == []
