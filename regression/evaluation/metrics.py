"""
Evaluation metrics for fitted models.

Implements:
- Confusion matrix: counts of (true class, predicted class) pairs
- Precision / recall / F1 / specificity / accuracy from a confusion matrix,
  per class or aggregated (binary, micro, macro)
- MSE / RMSE / R2 for linear regression
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, r2_score

from regression.errors import EmptyInput, ShapeMismatch

AVERAGES = ("binary", "micro", "macro", None)


@dataclass
class ClassificationReport:
    """Metrics derived from a confusion matrix.

    Scalars for an aggregate, per-class arrays when average is None. Any
    ratio with a zero denominator is NaN.
    """

    precision: float | np.ndarray
    recall: float | np.ndarray
    f1: float | np.ndarray
    specificity: float | np.ndarray
    accuracy: float
    support: np.ndarray = field(repr=False)
    average: Optional[str] = "binary"

    def to_dict(self) -> dict:
        def _plain(v):
            return v.tolist() if isinstance(v, np.ndarray) else float(v)

        return {
            "precision": _plain(self.precision),
            "recall": _plain(self.recall),
            "f1": _plain(self.f1),
            "specificity": _plain(self.specificity),
            "accuracy": float(self.accuracy),
            "support": self.support.tolist(),
            "average": self.average,
        }


def _as_class_indices(labels: np.ndarray, name: str) -> np.ndarray:
    """Convert 0/1 vectors, class-index vectors or one-hot rows to indices."""
    arr = np.asarray(labels)
    if arr.ndim == 2:
        if arr.shape[1] == 1:
            arr = arr[:, 0]
        else:
            return np.argmax(arr, axis=1)
    if arr.ndim != 1:
        raise ShapeMismatch(f"{name} must be 1-D labels or 2-D one-hot, got shape {arr.shape}")
    if arr.size and (np.any(arr < 0) or np.any(arr != np.round(arr))):
        raise ValueError(f"{name} must contain non-negative integer class labels")
    return arr.astype(np.int64)


def _n_columns(labels: np.ndarray) -> int:
    arr = np.asarray(labels)
    return arr.shape[1] if arr.ndim == 2 and arr.shape[1] > 1 else 0


def confusion_matrix(
    predictions: np.ndarray,
    ground_truth: np.ndarray,
    n_classes: Optional[int] = None,
) -> np.ndarray:
    """Cross-tabulate true against predicted classes.

    Entry (i, j) counts instances whose true class is i and predicted class
    is j. Binary 0/1 labels give a 2x2 matrix [[TN, FP], [FN, TP]].

    Args:
        predictions: Predicted labels, (m,) or one-hot (m, K).
        ground_truth: True labels, (m,) or one-hot (m, K).
        n_classes: Matrix size K. Inferred from the inputs if None (at least 2).

    Returns:
        (K, K) integer matrix.
    """
    pred = _as_class_indices(predictions, "predictions")
    true = _as_class_indices(ground_truth, "ground_truth")

    if len(true) == 0:
        raise EmptyInput("Cannot build a confusion matrix from zero instances")
    if len(pred) != len(true):
        raise ShapeMismatch(
            f"predictions has {len(pred)} instances, ground_truth has {len(true)}"
        )

    if n_classes is None:
        n_classes = max(
            2,
            _n_columns(predictions),
            _n_columns(ground_truth),
            int(max(pred.max(), true.max())) + 1,
        )
    if pred.max() >= n_classes or true.max() >= n_classes:
        raise ValueError(f"Class index out of range for {n_classes} classes")

    conf_mat = np.zeros((n_classes, n_classes), dtype=np.int64)
    np.add.at(conf_mat, (true, pred), 1)
    return conf_mat


def per_class_counts(conf_mat: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """One-vs-rest TP, FP, FN, TN for every class.

    Returns:
        (tp, fp, fn, tn), each of shape (K,).
    """
    conf_mat = _check_conf_mat(conf_mat)
    total = conf_mat.sum()
    tp = np.diag(conf_mat)
    row = conf_mat.sum(axis=1)
    col = conf_mat.sum(axis=0)
    fp = col - tp
    fn = row - tp
    tn = total - row - col + tp
    return tp, fp, fn, tn


def _check_conf_mat(conf_mat: np.ndarray) -> np.ndarray:
    conf_mat = np.asarray(conf_mat)
    if conf_mat.ndim != 2 or conf_mat.shape[0] != conf_mat.shape[1]:
        raise ShapeMismatch(f"Confusion matrix must be square, got shape {conf_mat.shape}")
    if conf_mat.size == 0:
        raise EmptyInput("Confusion matrix cannot be empty")
    if np.any(conf_mat < 0):
        raise ValueError("Confusion matrix entries must be non-negative")
    return conf_mat


def _safe_divide(num, den):
    """num / den with NaN wherever den == 0."""
    num = np.asarray(num, dtype=np.float64)
    den = np.asarray(den, dtype=np.float64)
    out = np.full(np.broadcast(num, den).shape, np.nan)
    with np.errstate(divide="ignore", invalid="ignore"):
        np.divide(num, den, out=out, where=den != 0)
    return out if out.ndim else float(out)


def _f1(precision, recall):
    return _safe_divide(2.0 * np.multiply(precision, recall), np.add(precision, recall))


def precision_recall_f1(conf_mat: np.ndarray, average: Optional[str] = "binary") -> ClassificationReport:
    """Derive precision, recall, F1, specificity and accuracy.

    Args:
        conf_mat: (K, K) confusion matrix, rows = true class, columns = predicted.
        average: "binary" scores the positive class (index 1) of a 2x2 matrix
            and falls back to "macro" for K > 2; "micro" pools counts over
            classes; "macro" averages per-class scores; None returns per-class
            arrays.

    Returns:
        ClassificationReport.
    """
    if average not in AVERAGES:
        raise ValueError(f"Unknown average: {average}. Supported: {list(AVERAGES)}")

    tp, fp, fn, tn = (c.astype(np.float64) for c in per_class_counts(conf_mat))
    conf_mat = np.asarray(conf_mat)
    accuracy = _safe_divide(np.trace(conf_mat), conf_mat.sum())
    support = conf_mat.sum(axis=1)

    if average == "binary" and len(tp) > 2:
        average_used = "macro"
    else:
        average_used = average

    if average_used == "binary":
        precision = _safe_divide(tp[1], tp[1] + fp[1])
        recall = _safe_divide(tp[1], tp[1] + fn[1])
        specificity = _safe_divide(tn[1], tn[1] + fp[1])
        f1 = _f1(precision, recall)
    elif average_used == "micro":
        precision = _safe_divide(tp.sum(), tp.sum() + fp.sum())
        recall = _safe_divide(tp.sum(), tp.sum() + fn.sum())
        specificity = _safe_divide(tn.sum(), tn.sum() + fp.sum())
        f1 = _f1(precision, recall)
    else:
        precision = _safe_divide(tp, tp + fp)
        recall = _safe_divide(tp, tp + fn)
        specificity = _safe_divide(tn, tn + fp)
        f1 = _f1(precision, recall)
        if average_used == "macro":
            precision = float(np.mean(precision))
            recall = float(np.mean(recall))
            specificity = float(np.mean(specificity))
            f1 = float(np.mean(f1))

    return ClassificationReport(
        precision=precision,
        recall=recall,
        f1=f1,
        specificity=specificity,
        accuracy=accuracy,
        support=support,
        average=average_used,
    )


def format_confusion_matrix(conf_mat: np.ndarray, labels: Sequence | None = None) -> pd.DataFrame:
    """Confusion matrix as a labelled DataFrame for printing."""
    conf_mat = _check_conf_mat(conf_mat)
    if labels is None:
        labels = list(range(conf_mat.shape[0]))
    return pd.DataFrame(
        conf_mat,
        index=pd.Index([f"true={l}" for l in labels]),
        columns=pd.Index([f"pred={l}" for l in labels]),
    )


def _check_regression_targets(y_true: np.ndarray, y_pred: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    y_true = np.asarray(y_true, dtype=np.float64)
    y_pred = np.asarray(y_pred, dtype=np.float64)
    if y_true.shape != y_pred.shape:
        raise ShapeMismatch(f"y_true {y_true.shape} and y_pred {y_pred.shape} differ")
    if y_true.size == 0:
        raise EmptyInput("Cannot score zero predictions")
    return y_true, y_pred


def mse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    y_true, y_pred = _check_regression_targets(y_true, y_pred)
    return float(mean_squared_error(y_true, y_pred))


def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    return mse(y_true, y_pred) ** 0.5


def r2(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Coefficient of determination; NaN for a constant target."""
    y_true, y_pred = _check_regression_targets(y_true, y_pred)
    if np.all(y_true == y_true.flat[0]):
        return float("nan")
    return float(r2_score(y_true, y_pred))


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    metrics: List[str],
    average: Optional[str] = "binary",
) -> Dict[str, float]:
    """Compute multiple classification metrics.

    Args:
        y_true: True labels, (m,) or one-hot (m, K).
        y_pred: Predicted labels, (m,) or one-hot (m, K).
        metrics: List of metric names to compute.
            Supported: "accuracy", "precision", "recall", "f1", "specificity".
        average: Aggregation passed to precision_recall_f1.

    Returns:
        Dictionary mapping metric name to value.
    """
    report = precision_recall_f1(confusion_matrix(y_pred, y_true), average=average)

    metric_funcs = {
        "accuracy": lambda: report.accuracy,
        "precision": lambda: report.precision,
        "recall": lambda: report.recall,
        "f1": lambda: report.f1,
        "specificity": lambda: report.specificity,
    }

    results = {}
    for metric in metrics:
        metric_lower = metric.lower()
        if metric_lower in metric_funcs:
            results[metric_lower] = metric_funcs[metric_lower]()
        else:
            raise ValueError(f"Unknown metric: {metric}. Supported: {list(metric_funcs.keys())}")

    return results
