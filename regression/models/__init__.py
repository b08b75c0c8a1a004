"""Regression models trained by batch gradient descent."""

from regression.config import GradientDescentConfig, LogisticConfig
from regression.models.base import FitResult, ModelState, RegressionModel, TraceRecord, TraceSink
from regression.models.linear_regression import LinearModel
from regression.models.logistic_regression import LogisticModel, sigmoid, softmax

__all__ = [
    "FitResult",
    "GradientDescentConfig",
    "LinearModel",
    "LogisticConfig",
    "LogisticModel",
    "ModelState",
    "RegressionModel",
    "TraceRecord",
    "TraceSink",
    "sigmoid",
    "softmax",
]
