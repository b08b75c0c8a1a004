"""Evaluation module for classification and regression metrics."""

from regression.evaluation.metrics import (
    ClassificationReport,
    compute_metrics,
    confusion_matrix,
    format_confusion_matrix,
    mse,
    per_class_counts,
    precision_recall_f1,
    r2,
    rmse,
)

__all__ = [
    "ClassificationReport",
    "compute_metrics",
    "confusion_matrix",
    "format_confusion_matrix",
    "mse",
    "per_class_counts",
    "precision_recall_f1",
    "r2",
    "rmse",
]
