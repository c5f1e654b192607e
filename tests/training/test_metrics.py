#!filepath: tests/training/test_metrics.py
import math

import pytest

from jobmatch.training.metrics import MetricEvaluator, ModelMetrics, ndcg_at_k


def test_ndcg_perfect_and_worst_ordering():
    labels = [1, 0, 1, 0]
    assert ndcg_at_k(labels, [0.9, 0.1, 0.8, 0.2]) == pytest.approx(1.0)

    worst = ndcg_at_k(labels, [0.1, 0.9, 0.2, 0.8])
    ideal = 1 + 1 / math.log2(3)
    expected = (1 / math.log2(4) + 1 / math.log2(5)) / ideal
    assert worst == pytest.approx(expected)


def test_ndcg_edge_cases():
    assert ndcg_at_k([], []) == 0.0
    assert ndcg_at_k([0, 0, 0], [0.3, 0.2, 0.1]) == 0.0


def test_ndcg_only_counts_top_k():
    labels = [0] * 10 + [1]
    scores = [1.0 - i * 0.01 for i in range(11)]
    # the only positive is ranked 11th
    assert ndcg_at_k(labels, scores, k=10) == 0.0
    assert ndcg_at_k(labels, scores, k=11) > 0.0


def test_classification_metrics():
    ev = MetricEvaluator()
    m = ev.classification([1, 1, 0, 0], [0.9, 0.6, 0.4, 0.1])
    assert m.accuracy == 1.0
    assert m.auc == 1.0
    assert m.pr_auc == 1.0
    assert m.f1_score == 1.0
    assert m.ndcg_at_10 == pytest.approx(1.0)
    assert m.mae == 0.0


def test_classification_single_class_and_empty():
    ev = MetricEvaluator()
    m = ev.classification([1, 1, 1], [0.2, 0.7, 0.9])
    assert m.auc == 0.0 and m.pr_auc == 0.0
    assert m.recall == pytest.approx(2 / 3)

    assert ev.classification([], []) == ModelMetrics()


def test_regression_metrics():
    ev = MetricEvaluator()
    m = ev.regression([10.0, 12.0], [11.0, 12.0])
    assert m.mae == pytest.approx(0.5)
    assert m.mse == pytest.approx(0.5)
    assert m.rmse == pytest.approx(math.sqrt(0.5))
    assert m.r_squared == pytest.approx(0.5)

    single = ev.regression([10.0], [9.0])
    assert single.mae == 1.0
    assert single.r_squared == 0.0


def test_metrics_dict_round_trip_ignores_unknown_keys():
    m = ModelMetrics.from_dict({"auc": 0.7, "pr_auc": 0.6, "custom": 3.0})
    assert m.auc == 0.7 and m.pr_auc == 0.6 and m.f1_score == 0.0
    assert ModelMetrics.from_dict(None) == ModelMetrics()
    assert set(m.to_dict()) >= {"auc", "pr_auc", "mae", "ndcg_at_10"}
