#!filepath: tests/recommend/test_weights_explanations.py
import pytest

from jobmatch.features.extractor import (
    COMPANY_RATING,
    HOURLY_PAY,
    JOB_TYPE_EXPERIENCE,
    STUDENT_RATING,
    TRAIT_MATCH,
    CandidateRow,
    FeatureExtractor,
)
from jobmatch.recommend import heuristics
from jobmatch.recommend.explanations import (
    explain_job,
    explain_student,
    job_trait_description,
    pay_description,
    student_rating_description,
)
from jobmatch.recommend.weights import (
    DEFAULT_JOB_WEIGHTS,
    DEFAULT_STUDENT_WEIGHTS,
    FeatureWeights,
    default_weights,
    learn_feature_weights,
    normalize_weights,
)
from tests.factories import make_job, make_student


def test_learned_weights_are_normalized(store):
    samples = FeatureExtractor().extract(store.snapshot())
    w = learn_feature_weights(samples.all, DEFAULT_STUDENT_WEIGHTS)

    assert w.learned
    assert w.total() == pytest.approx(1.0)
    assert all(v >= 0 for v in w.weights.values())
    assert set(w.weights) == set(DEFAULT_STUDENT_WEIGHTS)


def test_weights_fall_back_to_defaults(store):
    samples = FeatureExtractor().extract(store.snapshot())

    few = learn_feature_weights(samples.all[:5], DEFAULT_JOB_WEIGHTS)
    assert not few.learned
    assert few.weights == pytest.approx(DEFAULT_JOB_WEIGHTS)

    one_class = learn_feature_weights(samples.positive, DEFAULT_JOB_WEIGHTS)
    assert not one_class.learned


def test_normalize_weights():
    assert normalize_weights({"a": -1.0, "b": 3.0}) == pytest.approx({"a": 0.25, "b": 0.75})
    with pytest.raises(ValueError):
        normalize_weights({"a": 0.0})


def test_heuristic_scores():
    features = {COMPANY_RATING: 0.8, HOURLY_PAY: 0.7, JOB_TYPE_EXPERIENCE: 0.8, TRAIT_MATCH: 1.0, STUDENT_RATING: 0.2}
    assert heuristics.job_score(features) == pytest.approx(0.79)

    unrated = make_student(1)
    # unrated students count as 0.9 in heuristic mode
    assert heuristics.student_score(features, unrated) == pytest.approx(0.8 * 0.3 + 1.0 * 0.2 + 0.9 * 0.5)


@pytest.mark.parametrize(
    "score,word",
    [(0.85, "strong"), (0.65, "good"), (0.45, "partially"), (0.25, "Some"), (0.1, "different")],
)
def test_trait_bands(score, word):
    assert word in job_trait_description(score)


def test_pay_and_rating_bands():
    assert pay_description(16).startswith("High")
    assert pay_description(10).startswith("Good")
    assert pay_description(7).startswith("Average")
    assert pay_description(5).startswith("Below")
    assert "excellent" in student_rating_description(0.95)
    assert "Weak" in student_rating_description(0.2)


def _row(company_rating: float) -> CandidateRow:
    return CandidateRow(
        student=make_student(1),
        job=make_job(2, pay=16.0, job_type="gastro"),
        student_key=1,
        job_key=1,
        features={
            COMPANY_RATING: company_rating,
            HOURLY_PAY: 0.8,
            JOB_TYPE_EXPERIENCE: 0.6,
            TRAIT_MATCH: 0.1,
            STUDENT_RATING: 0.75,
        },
        experience_count=3,
    )


def test_explain_job_sorted_and_company_threshold():
    weights = default_weights(DEFAULT_JOB_WEIGHTS)

    shown = explain_job(_row(0.9), None, weights)
    assert [e.feature for e in shown][0] == "Company rating"
    assert "This company" in shown[0].description
    contributions = [e.contribution for e in shown]
    assert contributions == sorted(contributions, reverse=True)

    hidden = explain_job(_row(0.3), None, weights)
    assert "Company rating" not in [e.feature for e in hidden]
    assert len(hidden) == 3


def test_explain_student():
    weights = FeatureWeights(dict(DEFAULT_STUDENT_WEIGHTS))
    out = explain_student(_row(0.5), weights)

    assert [e.feature for e in out] == ["Student rating", "Job type experience", "Skill match"]
    assert "3 previous jobs" in out[1].description
    assert out[0].to_dict()["featureName"] == "Student rating"
