"""
Exception types raised by the regression toolkit.

Every error subclasses RegressionError and the closest builtin, so callers
that already catch ValueError/RuntimeError keep working.
"""

from __future__ import annotations


class RegressionError(Exception):
    """Base class for all toolkit errors."""


class InvalidDegree(RegressionError, ValueError):
    """Polynomial degree for feature mapping must be >= 1."""


class DimensionMismatch(RegressionError, ValueError):
    """Input feature count disagrees with stored statistics."""


class ShapeMismatch(DimensionMismatch):
    """Matrix shapes are incompatible with each other or with Theta."""


class EmptyInput(RegressionError, ValueError):
    """Zero-length input where at least one element is required."""


class EmptyModel(RegressionError, RuntimeError):
    """Theta has not been allocated, or would have zero rows."""


class InvalidThreshold(RegressionError, ValueError):
    """Classification threshold outside [0, 1]."""


class InvalidLinkFunction(RegressionError, ValueError):
    """Unknown link function for logistic regression."""


class InvalidHyperparameter(RegressionError, ValueError):
    """Learning rate, L2 penalty or iteration cap out of range."""


class NotFittedError(RegressionError, RuntimeError):
    """Transformer or model used before fit()."""


class DivergenceError(RegressionError, RuntimeError):
    """Gradient descent produced a non-finite cost."""


class DataFormatError(RegressionError, ValueError):
    """Data file could not be parsed."""
