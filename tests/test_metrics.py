"""Tests for confusion matrix and classification/regression metrics."""

from __future__ import annotations

import numpy as np
import pytest
from sklearn.metrics import confusion_matrix as sk_confusion_matrix
from sklearn.metrics import f1_score, mean_squared_error, precision_score, r2_score, recall_score

from regression.errors import EmptyInput, ShapeMismatch
from regression.evaluation import (
    compute_metrics,
    confusion_matrix,
    format_confusion_matrix,
    mse,
    per_class_counts,
    precision_recall_f1,
    r2,
    rmse,
)


@pytest.fixture
def labels(rng):
    y_true = rng.integers(0, 4, size=200)
    y_pred = np.where(rng.random(200) < 0.7, y_true, rng.integers(0, 4, size=200))
    return y_true, y_pred


class TestConfusionMatrix:
    def test_matches_sklearn(self, labels):
        y_true, y_pred = labels
        np.testing.assert_array_equal(
            confusion_matrix(y_pred, y_true),
            sk_confusion_matrix(y_true, y_pred, labels=range(4)),
        )

    def test_binary_layout(self):
        pred = np.array([0, 1, 1, 0, 1])
        true = np.array([0, 1, 0, 1, 1])
        np.testing.assert_array_equal(confusion_matrix(pred, true), [[1, 1], [1, 2]])

    def test_one_hot_inputs(self, labels):
        y_true, y_pred = labels
        eye = np.eye(4)
        np.testing.assert_array_equal(
            confusion_matrix(eye[y_pred], eye[y_true]),
            confusion_matrix(y_pred, y_true),
        )

    def test_invariants(self, labels):
        y_true, y_pred = labels
        conf_mat = confusion_matrix(y_pred, y_true)
        assert np.trace(conf_mat) <= conf_mat.sum()
        np.testing.assert_array_equal(conf_mat.sum(axis=1), np.bincount(y_true, minlength=4))
        np.testing.assert_array_equal(conf_mat.sum(axis=0), np.bincount(y_pred, minlength=4))

    def test_all_one_class_still_2x2(self):
        conf_mat = confusion_matrix(np.zeros(3), np.zeros(3))
        np.testing.assert_array_equal(conf_mat, [[3, 0], [0, 0]])

    def test_explicit_size(self):
        assert confusion_matrix(np.array([0, 1]), np.array([1, 1]), n_classes=5).shape == (5, 5)

    def test_empty(self):
        with pytest.raises(EmptyInput):
            confusion_matrix(np.array([]), np.array([]))

    def test_length_mismatch(self):
        with pytest.raises(ShapeMismatch):
            confusion_matrix(np.array([0, 1]), np.array([0, 1, 1]))

    def test_non_integer_labels(self):
        with pytest.raises(ValueError):
            confusion_matrix(np.array([0.5, 1.0]), np.array([0, 1]))

    def test_per_class_counts(self):
        tp, fp, fn, tn = per_class_counts(np.array([[5, 2], [1, 3]]))
        np.testing.assert_array_equal(tp, [5, 3])
        np.testing.assert_array_equal(fp, [1, 2])
        np.testing.assert_array_equal(fn, [2, 1])
        np.testing.assert_array_equal(tn, [3, 5])


class TestPrecisionRecallF1:
    def test_binary_known_values(self):
        # TN=5, FP=2, FN=1, TP=3
        report = precision_recall_f1(np.array([[5, 2], [1, 3]]))
        assert report.precision == pytest.approx(3 / 5)
        assert report.recall == pytest.approx(3 / 4)
        assert report.specificity == pytest.approx(5 / 7)
        assert report.accuracy == pytest.approx(8 / 11)
        assert report.f1 == pytest.approx(2 * 0.6 * 0.75 / 1.35)

    def test_binary_matches_sklearn(self, rng):
        y_true = rng.integers(0, 2, size=100)
        y_pred = np.where(rng.random(100) < 0.8, y_true, 1 - y_true)
        report = precision_recall_f1(confusion_matrix(y_pred, y_true))
        assert report.precision == pytest.approx(precision_score(y_true, y_pred))
        assert report.recall == pytest.approx(recall_score(y_true, y_pred))
        assert report.f1 == pytest.approx(f1_score(y_true, y_pred))

    @pytest.mark.parametrize("average", ["micro", "macro"])
    def test_multiclass_matches_sklearn(self, labels, average):
        y_true, y_pred = labels
        report = precision_recall_f1(confusion_matrix(y_pred, y_true), average=average)
        assert report.f1 == pytest.approx(f1_score(y_true, y_pred, average=average))
        assert report.precision == pytest.approx(precision_score(y_true, y_pred, average=average))

    def test_per_class(self, labels):
        y_true, y_pred = labels
        report = precision_recall_f1(confusion_matrix(y_pred, y_true), average=None)
        np.testing.assert_allclose(report.f1, f1_score(y_true, y_pred, average=None))
        assert report.precision.shape == (4,)

    def test_binary_falls_back_to_macro(self, labels):
        y_true, y_pred = labels
        report = precision_recall_f1(confusion_matrix(y_pred, y_true), average="binary")
        assert report.average == "macro"

    def test_perfect(self):
        report = precision_recall_f1(np.array([[4, 0], [0, 6]]))
        assert report.f1 == 1.0
        assert report.accuracy == 1.0

    def test_no_positive_predictions_gives_nan(self):
        report = precision_recall_f1(np.array([[5, 0], [0, 0]]))
        assert np.isnan(report.precision)
        assert np.isnan(report.recall)
        assert np.isnan(report.f1)
        assert report.accuracy == 1.0

    def test_unknown_average(self):
        with pytest.raises(ValueError, match="Unknown average"):
            precision_recall_f1(np.eye(2), average="weighted")

    def test_non_square(self):
        with pytest.raises(ShapeMismatch):
            precision_recall_f1(np.ones((2, 3)))

    def test_to_dict(self):
        d = precision_recall_f1(np.array([[5, 2], [1, 3]])).to_dict()
        assert set(d) == {"precision", "recall", "f1", "specificity", "accuracy", "support", "average"}
        assert d["support"] == [7, 4]


class TestComputeMetrics:
    def test_selected_metrics(self):
        y_true = np.array([0, 1, 1, 0])
        y_pred = np.array([0, 1, 0, 0])
        results = compute_metrics(y_true, y_pred, ["accuracy", "F1"])
        assert set(results) == {"accuracy", "f1"}
        assert results["accuracy"] == pytest.approx(0.75)
        assert results["f1"] == pytest.approx(2 / 3)

    def test_unknown_metric(self):
        with pytest.raises(ValueError, match="Unknown metric"):
            compute_metrics(np.array([0, 1]), np.array([0, 1]), ["auc"])


class TestRegressionMetrics:
    def test_values(self):
        y = np.array([1.0, 2.0, 3.0])
        p = np.array([1.0, 2.0, 5.0])
        assert mse(y, p) == pytest.approx(4 / 3)
        assert rmse(y, p) == pytest.approx((4 / 3) ** 0.5)
        assert r2(y, y) == 1.0

    def test_constant_target_r2_is_nan(self):
        assert np.isnan(r2(np.ones(3), np.ones(3)))

    def test_matches_sklearn(self, rng):
        y = rng.normal(size=50)
        p = y + rng.normal(scale=0.3, size=50)
        assert mse(y, p) == pytest.approx(mean_squared_error(y, p))
        assert rmse(y, p) == pytest.approx(mean_squared_error(y, p) ** 0.5)
        assert r2(y, p) == pytest.approx(r2_score(y, p))

    def test_shape_mismatch(self):
        with pytest.raises(ShapeMismatch):
            mse(np.ones(3), np.ones(4))
        with pytest.raises(ShapeMismatch):
            r2(np.ones(3), np.ones(4))

    def test_empty(self):
        with pytest.raises(EmptyInput):
            mse(np.array([]), np.array([]))
        with pytest.raises(EmptyInput):
            r2(np.array([]), np.array([]))


def test_format_confusion_matrix():
    df = format_confusion_matrix(np.array([[1, 2], [3, 4]]), labels=["no", "yes"])
    assert list(df.index) == ["true=no", "true=yes"]
    assert list(df.columns) == ["pred=no", "pred=yes"]
    assert df.loc["true=yes", "pred=no"] == 3
