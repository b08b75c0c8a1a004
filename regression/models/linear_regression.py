"""
Linear regression with a ridge penalty, trained by batch gradient descent.

    h_Θ(x) = Θᵗ [1; x]
    J(Θ)   = 1/(2m) ‖XΘ - Y‖² + λ/(2m) Σ_{j>=1} Θ_j²
    ∂J/∂Θ  ∝ Xᵗ(XΘ - Y) + λΘ'        (Θ' = Θ with the bias row zeroed)
"""

from __future__ import annotations

import numpy as np

from regression.models.base import RegressionModel


class LinearModel(RegressionModel):
    """Affine model with squared-error cost."""

    def hypothesis(self, X: np.ndarray) -> np.ndarray:
        return self._design_matrix(X) @ self._require_theta()

    def cost(self, X: np.ndarray, Y: np.ndarray) -> float:
        """Half mean squared residual plus the ridge term."""
        Xb, Yt = self._prepare(X, Y)
        m = Xb.shape[0]
        residual = Xb @ self._theta - Yt
        return float(np.sum(residual * residual) / (2.0 * m)) + self._penalty_cost(m)

    def gradient(self, X: np.ndarray, Y: np.ndarray) -> np.ndarray:
        Xb, Yt = self._prepare(X, Y)
        return Xb.T @ (Xb @ self._theta - Yt) + self._penalty_gradient()

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Predicted targets: (m,) for a single output, else (m, C)."""
        h = self.hypothesis(X)
        return h[:, 0] if h.shape[1] == 1 else h
