"""
Logistic regression with sigmoid or softmax link and a ridge penalty.

- sigmoid: binary targets (m,) or independent 0/1 outputs (m, C)
- softmax: mutually exclusive classes, one-hot targets (m, K)

    h_Θ(X) = g(XΘ)
    J(Θ)   = -1/m Σ [y log h + (1-y) log(1-h)] + λ/(2m) Σ_{j>=1} Θ_j²   (sigmoid)
    J(Θ)   = -1/m Σ yᵗ log h                   + λ/(2m) Σ_{j>=1} Θ_j²   (softmax)
    ∂J/∂Θ  ∝ Xᵗ(h - Y) + λΘ'
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np

from regression.config import LinkFunction, LogisticConfig
from regression.errors import InvalidLinkFunction, InvalidThreshold, ShapeMismatch
from regression.evaluation.metrics import ClassificationReport, confusion_matrix, precision_recall_f1
from regression.models.base import RegressionModel

# Keeps log() finite for saturated probabilities
EPS = 1e-12


def sigmoid(z: np.ndarray | float) -> np.ndarray:
    """Numerically stable logistic function 1 / (1 + e^-z)."""
    z = np.asarray(z, dtype=np.float64)
    out = np.empty_like(z)
    pos = z >= 0
    neg = ~pos
    out[pos] = 1.0 / (1.0 + np.exp(-z[pos]))
    ez = np.exp(z[neg])
    out[neg] = ez / (1.0 + ez)
    return out


def softmax(z: np.ndarray, n_instances: Optional[int] = None) -> np.ndarray:
    """Normalized exponential over the class axis of a score matrix.

    The class axis is found from the shape: the axis whose length is not the
    instance count. With scores (m, K) the rows are normalized, with (K, m)
    the columns are.

    Args:
        z: Scores, (m, K), (K, m) or a single instance (K,).
        n_instances: Number of instances m. Defaults to z.shape[0].

    Returns:
        Probabilities with the same shape as z.
    """
    z = np.asarray(z, dtype=np.float64)
    if z.ndim == 1:
        axis = 0
    elif z.ndim == 2:
        m = z.shape[0] if n_instances is None else n_instances
        if z.shape[0] == m:
            axis = 1
        elif z.shape[1] == m:
            axis = 0
        else:
            raise ShapeMismatch(f"Score matrix {z.shape} has no axis of length {m}")
    else:
        raise ShapeMismatch(f"Scores must be 1-D or 2-D, got shape {z.shape}")

    shifted = z - z.max(axis=axis, keepdims=True)
    e = np.exp(shifted)
    return e / e.sum(axis=axis, keepdims=True)


class LogisticModel(RegressionModel):
    """Classifier with cross-entropy cost."""

    def __init__(
        self,
        link_function: LinkFunction | str = LinkFunction.SIGMOID,
        classification_threshold: float = 0.5,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.link_function = link_function
        self.classification_threshold = classification_threshold

    @classmethod
    def from_config(cls, cfg, logistic_cfg: LogisticConfig | None = None, **kwargs: Any) -> "LogisticModel":
        logistic_cfg = logistic_cfg or LogisticConfig()
        return super().from_config(
            cfg,
            link_function=logistic_cfg.link_function,
            classification_threshold=logistic_cfg.classification_threshold,
            **kwargs,
        )

    @property
    def link_function(self) -> LinkFunction:
        return self._link_function

    @link_function.setter
    def link_function(self, value: LinkFunction | str) -> None:
        try:
            self._link_function = LinkFunction(value)
        except ValueError:
            raise InvalidLinkFunction(
                f"Link function must be one of {[f.value for f in LinkFunction]}, got {value!r}"
            ) from None

    @property
    def classification_threshold(self) -> float:
        return self._classification_threshold

    @classification_threshold.setter
    def classification_threshold(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            raise InvalidThreshold(
                f"Classification threshold must be in [0, 1], got {value}"
            )
        self._classification_threshold = float(value)

    def _link(self, scores: np.ndarray) -> np.ndarray:
        if self._link_function is LinkFunction.SOFTMAX:
            return softmax(scores, n_instances=scores.shape[0])
        return sigmoid(scores)

    def hypothesis(self, X: np.ndarray) -> np.ndarray:
        return self._link(self._design_matrix(X) @ self._require_theta())

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """Probabilities: (m,) for a single sigmoid output, else (m, C)."""
        h = self.hypothesis(X)
        return h[:, 0] if h.shape[1] == 1 else h

    def cost(self, X: np.ndarray, Y: np.ndarray) -> float:
        """Cross-entropy plus the ridge term."""
        Xb, Yt = self._prepare(X, Y)
        m = Xb.shape[0]
        h = np.clip(self._link(Xb @ self._theta), EPS, 1.0 - EPS)

        if self._link_function is LinkFunction.SOFTMAX:
            loss = -np.sum(Yt * np.log(h)) / m
        else:
            loss = -np.sum(Yt * np.log(h) + (1.0 - Yt) * np.log(1.0 - h)) / m
        return float(loss) + self._penalty_cost(m)

    def gradient(self, X: np.ndarray, Y: np.ndarray) -> np.ndarray:
        Xb, Yt = self._prepare(X, Y)
        return Xb.T @ (self._link(Xb @ self._theta) - Yt) + self._penalty_gradient()

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Class decisions.

        sigmoid: 0/1 labels from h >= classification_threshold, (m,) for a
        single output. softmax: one-hot rows of the arg-max class, ties going
        to the lowest index.
        """
        h = self.hypothesis(X)
        if self._link_function is LinkFunction.SOFTMAX:
            return np.eye(h.shape[1], dtype=np.int64)[np.argmax(h, axis=1)]

        labels = (h >= self._classification_threshold).astype(np.int64)
        return labels[:, 0] if labels.shape[1] == 1 else labels

    def predict_classes(self, X: np.ndarray) -> np.ndarray:
        """Predicted class index per instance."""
        h = self.hypothesis(X)
        if h.shape[1] == 1:
            return (h[:, 0] >= self._classification_threshold).astype(np.int64)
        return np.argmax(h, axis=1)

    def confusion_matrix(self, X: np.ndarray, Y: np.ndarray) -> np.ndarray:
        """Confusion matrix of predictions on X against targets Y."""
        Xb = self._design_matrix(X)
        Yt = self._orient_targets(Y, Xb.shape[0])
        truth = Yt[:, 0] if Yt.shape[1] == 1 else Yt
        n_classes = 2 if Yt.shape[1] == 1 else Yt.shape[1]
        return confusion_matrix(self.predict_classes(Xb), truth, n_classes=n_classes)

    def f1_score(self, X: np.ndarray, Y: np.ndarray, average: str = "binary") -> float:
        return float(self.evaluate(X, Y, average=average).f1)

    def evaluate(self, X: np.ndarray, Y: np.ndarray, average: str = "binary") -> ClassificationReport:
        """Precision/recall/F1/accuracy of predictions on X."""
        return precision_recall_f1(self.confusion_matrix(X, Y), average=average)

    def get_params(self) -> Dict[str, Any]:
        params = super().get_params()
        params["link_function"] = self._link_function.value
        params["classification_threshold"] = self._classification_threshold
        return params
