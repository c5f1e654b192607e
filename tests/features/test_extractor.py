#!filepath: tests/features/test_extractor.py
import pytest

from jobmatch.core.records import Company
from jobmatch.features.extractor import (
    COMPANY_RATING,
    DEFAULT_COMPANY_RATING,
    DEFAULT_STUDENT_RATING,
    HOURLY_PAY,
    JOB_FEATURES,
    JOB_TYPE_EXPERIENCE,
    KEY_COLUMNS,
    NO_TRAITS_TOKEN,
    STUDENT_FEATURES,
    STUDENT_RATING,
    TRAIT_MATCH,
    FeatureExtractor,
    KeyMap,
    candidates_to_frame,
    jobs_to_pay_frame,
    samples_to_frame,
)
from jobmatch.store.memory import InMemoryDocumentStore
from tests.factories import history_store, make_application, make_job, make_student, oid


@pytest.fixture
def fx() -> FeatureExtractor:
    return FeatureExtractor()


def test_experience_is_capped_and_normalized(fx):
    veteran = make_student(1, history=[{"type": "gastro", "count": 12}])
    one_job = make_student(2, history=[{"type": "gastro", "count": 1}])

    assert fx.experience_count(veteran, "gastro") == 5
    assert fx.experience_score(veteran, "gastro") == 1.0
    assert fx.experience_score(one_job, "gastro") == pytest.approx(0.2)
    assert fx.experience_score(one_job, "office") == 0.0


def test_trait_match(fx):
    s = make_student(1, traits=[
        {"name": "friendly", "positive": 3, "negative": 1},
        {"name": "tidy", "positive": 0, "negative": 0},
    ])
    assert fx.trait_match(s, []) == 0.0
    assert fx.trait_match(s, ["friendly"]) == pytest.approx(0.75)
    # tidy has no signal, strong is unknown → both count as 0
    assert fx.trait_match(s, ["friendly", "tidy", "strong"]) == pytest.approx(0.25)


def test_ratings_default_without_feedback(fx):
    s = make_student(1)
    assert fx.student_rating(s) == DEFAULT_STUDENT_RATING
    assert fx.company_rating(None) == DEFAULT_COMPANY_RATING
    zero = Company.model_validate({"companyId": oid(9), "thumbsReceived": {"up": 0, "down": 0}})
    assert fx.company_rating(zero) == DEFAULT_COMPANY_RATING

    rated = make_student(2, thumbs={"up": 3, "down": 1})
    assert fx.student_rating(rated) == pytest.approx(0.75)


def test_pay_score_is_clamped(fx):
    assert fx.pay_score(10.0) == pytest.approx(0.5)
    assert fx.pay_score(40.0) == 1.0
    assert fx.pay_score(-1.0) == 0.0


def test_features_are_within_unit_interval(fx):
    snap = history_store().snapshot()
    companies = snap.company_index()
    for s in snap.students:
        for j in snap.jobs:
            f = fx.features(s, j, companies.get(j.company_id))
            assert set(f) == {COMPANY_RATING, HOURLY_PAY, JOB_TYPE_EXPERIENCE, TRAIT_MATCH, STUDENT_RATING}
            assert all(0.0 <= v <= 1.0 for v in f.values())


def test_extract_fifteen_samples():
    """10 hired / 5 expired + ignored pending + one with a deleted job."""
    students = [make_student(i) for i in range(1, 4)]
    jobs = [make_job(10 + i) for i in range(5)]
    apps = []
    n = 100
    for s in range(1, 4):
        for j in range(5):
            status = "hired" if (s, j) not in {(1, 0), (2, 1), (3, 2), (3, 3), (3, 4)} else "expired"
            apps.append(make_application(n, s, 10 + j, status))
            n += 1
    apps.append(make_application(n, 1, 10, "pending"))
    apps.append(make_application(n + 1, 1, 99, "hired"))

    samples = FeatureExtractor().extract(InMemoryDocumentStore(students, jobs, [], apps).snapshot())

    assert len(samples) == 15
    assert len(samples.positive) == 10
    assert len(samples.negative) == 5
    assert samples.skipped == 1
    assert len(samples.student_keys) == 3
    assert samples.job_keys.get(oid(10)) == 1


def test_key_map_is_one_based():
    keys = KeyMap.build(["a", "b"])
    assert keys.get("a") == 1 and keys.get("b") == 2
    assert "c" not in keys
    assert keys.get("c") is None


def test_frames(fx):
    snap = history_store().snapshot()
    samples = fx.extract(snap)

    df = samples_to_frame(samples.all, JOB_FEATURES)
    assert list(df.columns) == KEY_COLUMNS + JOB_FEATURES + ["label"]
    assert df["label"].sum() == len(samples.positive)

    student = snap.students[0]
    job = snap.job_index()[oid(200)]
    row = fx.candidate(student, job, None, samples.student_keys, samples.job_keys)
    assert row.experience_count == 4
    cdf = candidates_to_frame([row], STUDENT_FEATURES)
    assert list(cdf.columns) == KEY_COLUMNS + STUDENT_FEATURES

    unknown = make_student(77)
    assert fx.candidate(unknown, job, None, samples.student_keys, samples.job_keys) is None


def test_pay_frame_uses_placeholder_for_no_traits():
    df = jobs_to_pay_frame([make_job(1, traits=["a", "b"]), make_job(2)])
    assert df["required_traits"].tolist() == ["a,b", NO_TRAITS_TOKEN]
    assert df["hourly_pay"].dtype == float
