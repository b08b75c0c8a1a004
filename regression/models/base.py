"""
Abstract regression model and the batch gradient descent loop.

A model owns its parameter matrix Theta of shape (n_features + 1, n_outputs).
Row 0 is the bias row and is never penalized. Subclasses supply the
hypothesis, the cost and its hand-derived gradient; the base class supplies
shape handling, the L2 penalty terms and the descent loop.

Shapes (convention used here):
- X:     (m, n)      -> m instances, n features (bias column optional)
- Y:     (m, C)      -> targets; a vector (m,) is treated as (m, 1)
- Theta: (n + 1, C)
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Tuple

import numpy as np

from regression.config import GradientDescentConfig, InitStrategy
from regression.errors import (
    DivergenceError,
    EmptyInput,
    EmptyModel,
    InvalidHyperparameter,
    ShapeMismatch,
)

logger = logging.getLogger(__name__)


class ModelState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    TRAINED = "trained"


class TraceRecord(NamedTuple):
    """Cost of the model after a given number of descent steps."""

    iteration: int
    cost: float


class TraceSink(Protocol):
    """Anything that accepts (iteration, cost) records during fit()."""

    def record(self, iteration: int, cost: float) -> None:
        ...


@dataclass
class FitResult:
    """Summary of one call to fit().

    Attributes:
        final_cost: Training cost after the last update.
        n_iterations: Number of parameter updates performed.
        converged: True if stopped by the convergence delta, False if by the cap.
        delta: |cost_prev - cost| of the last update.
        history: (iteration, cost) trace, starting at iteration 0.
    """

    final_cost: float
    n_iterations: int
    converged: bool
    delta: float
    history: List[TraceRecord] = field(default_factory=list)


class RegressionModel(ABC):
    """Base class for models trained with batch gradient descent."""

    def __init__(
        self,
        learning_rate: float = 0.01,
        l2_penalty: float = 0.0,
        init_strategy: InitStrategy | str = InitStrategy.UNIFORM,
        random_seed: Optional[int] = None,
        log_every: int = 500,
    ) -> None:
        self.learning_rate = learning_rate
        self.l2_penalty = l2_penalty
        self.init_strategy = InitStrategy(init_strategy)
        self.random_seed = random_seed
        self.log_every = log_every
        self._theta: np.ndarray | None = None
        self._state = ModelState.UNINITIALIZED
        self._history: List[TraceRecord] = []

    @classmethod
    def from_config(cls, cfg: GradientDescentConfig, **kwargs: Any) -> "RegressionModel":
        """Build a model from a GradientDescentConfig."""
        return cls(
            learning_rate=cfg.learning_rate,
            l2_penalty=cfg.l2_penalty,
            init_strategy=cfg.init_strategy,
            random_seed=cfg.random_seed,
            log_every=cfg.log_every,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Hyperparameters and state
    # ------------------------------------------------------------------

    @property
    def learning_rate(self) -> float:
        """Step size α (> 0)."""
        return self._learning_rate

    @learning_rate.setter
    def learning_rate(self, value: float) -> None:
        if not value > 0.0:
            raise InvalidHyperparameter(f"Learning rate must be > 0, got {value}")
        self._learning_rate = float(value)

    @property
    def l2_penalty(self) -> float:
        """Ridge penalty λ (>= 0)."""
        return self._l2_penalty

    @l2_penalty.setter
    def l2_penalty(self, value: float) -> None:
        if not value >= 0.0:
            raise InvalidHyperparameter(f"L2 penalty must be >= 0, got {value}")
        self._l2_penalty = float(value)

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def theta(self) -> np.ndarray:
        """Copy of the parameter matrix (n_features + 1, n_outputs)."""
        return self._require_theta().copy()

    @property
    def n_features(self) -> int:
        return self._require_theta().shape[0] - 1

    @property
    def n_outputs(self) -> int:
        return self._require_theta().shape[1]

    @property
    def history(self) -> List[TraceRecord]:
        """(iteration, cost) trace of the most recent fit()."""
        return list(self._history)

    def initialize(
        self,
        feature_count: int,
        output_count: int = 1,
        init_strategy: InitStrategy | str | None = None,
        random_seed: Optional[int] = None,
    ) -> None:
        """Allocate Theta with shape (feature_count + 1, output_count).

        Args:
            feature_count: Number of features, excluding the bias.
            output_count: Number of output units (1 for linear/binary, K for softmax).
            init_strategy: "zeros" or "uniform" (U[0, 1)). Defaults to the model's.
            random_seed: Seed for uniform init. Defaults to the model's.

        Raises:
            EmptyModel: If feature_count or output_count is 0.
        """
        if feature_count < 1 or output_count < 1:
            raise EmptyModel(
                f"Cannot initialize empty Theta: features={feature_count}, "
                f"outputs={output_count}"
            )

        strategy = InitStrategy(init_strategy) if init_strategy is not None else self.init_strategy
        seed = random_seed if random_seed is not None else self.random_seed
        shape = (feature_count + 1, output_count)

        if strategy is InitStrategy.ZEROS:
            self._theta = np.zeros(shape)
        else:
            self._theta = np.random.default_rng(seed).random(shape)

        self._state = ModelState.INITIALIZED
        self._history = []

    def _require_theta(self) -> np.ndarray:
        if self._theta is None:
            raise EmptyModel("Theta is not initialized. Call initialize() or fit() first.")
        return self._theta

    # ------------------------------------------------------------------
    # Shape handling
    # ------------------------------------------------------------------

    def _design_matrix(self, X: np.ndarray) -> np.ndarray:
        """Return X with a leading bias column, without touching the caller's X.

        X may already carry the bias column (n_features + 1 columns).
        """
        theta = self._require_theta()
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.ndim != 2:
            raise ShapeMismatch(f"X must be 2-D, got shape {X.shape}")

        n = theta.shape[0] - 1
        if X.shape[1] == n:
            return np.hstack([np.ones((X.shape[0], 1)), X])
        if X.shape[1] == n + 1:
            if not np.all(X[:, 0] == 1.0):
                raise ShapeMismatch(
                    f"X has {n + 1} columns but column 0 is not an all-ones bias column; "
                    f"Theta expects {n} features"
                )
            return X
        raise ShapeMismatch(
            f"X has {X.shape[1]} columns, Theta expects {n} (or {n + 1} with bias)"
        )

    @staticmethod
    def _orient_targets(Y: np.ndarray, m: int) -> np.ndarray:
        """Return targets as an (m, C) float matrix.

        A (C, m) matrix with instances in columns is transposed.
        """
        Y = np.asarray(Y, dtype=np.float64)
        if Y.ndim == 1:
            Y = Y.reshape(-1, 1)
        if Y.ndim != 2:
            raise ShapeMismatch(f"Y must be 1-D or 2-D, got shape {Y.shape}")
        if Y.shape[0] == m:
            return Y
        if Y.shape[1] == m:
            return Y.T
        raise ShapeMismatch(
            f"X has {m} instances, Y has shape {Y.shape}"
        )

    def _prepare(self, X: np.ndarray, Y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        Xb = self._design_matrix(X)
        if Xb.shape[0] == 0:
            raise EmptyInput("X has no instances")
        Yt = self._orient_targets(Y, Xb.shape[0])
        if Yt.shape[1] != self._require_theta().shape[1]:
            raise ShapeMismatch(
                f"Y has {Yt.shape[1]} outputs, Theta has {self._theta.shape[1]}"
            )
        return Xb, Yt

    # ------------------------------------------------------------------
    # Ridge penalty
    # ------------------------------------------------------------------

    def _penalized_theta(self) -> np.ndarray:
        """Theta with the bias row zeroed."""
        theta = self._require_theta().copy()
        theta[0, :] = 0.0
        return theta

    def _penalty_cost(self, m: int) -> float:
        #   λ   n
        #  ---- ∑ Θ_j²
        #   2m  j=1
        theta = self._penalized_theta()
        return float(self.l2_penalty / (2.0 * m) * np.sum(theta * theta))

    def _penalty_gradient(self) -> np.ndarray:
        return self.l2_penalty * self._penalized_theta()

    # ------------------------------------------------------------------
    # Model family
    # ------------------------------------------------------------------

    @abstractmethod
    def hypothesis(self, X: np.ndarray) -> np.ndarray:
        """Raw model output h_Θ(X), shape (m, n_outputs)."""

    @abstractmethod
    def cost(self, X: np.ndarray, Y: np.ndarray) -> float:
        """Loss J(Θ) on (X, Y) including the L2 penalty."""

    @abstractmethod
    def gradient(self, X: np.ndarray, Y: np.ndarray) -> np.ndarray:
        """∂J/∂Θ scaled by m, same shape as Theta."""

    @abstractmethod
    def predict(self, X: np.ndarray) -> np.ndarray:
        """Predictions for X."""

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def fit(
        self,
        X: np.ndarray,
        Y: np.ndarray,
        learning_rate: Optional[float] = None,
        l2_penalty: Optional[float] = None,
        convergence_delta: float = 1e-6,
        max_iterations: int = 10000,
        trace_sink: Optional[TraceSink] = None,
    ) -> FitResult:
        """Run batch gradient descent from the current Theta.

        Each step applies Θ := Θ - (α/m)·gradient(X, Y) and recomputes the
        cost. Stops when |cost_prev - cost| <= convergence_delta or after
        max_iterations updates (0 means no cap). Calling fit() again
        continues from the current Theta.

        Args:
            X: Training features (m, n).
            Y: Training targets, (m,) or (m, C).
            learning_rate: Overrides α if given.
            l2_penalty: Overrides λ if given.
            convergence_delta: Stop once the cost changes by no more than this.
            max_iterations: Upper bound on updates, 0 = unbounded.
            trace_sink: Optional recorder of (iteration, cost) pairs.

        Returns:
            FitResult with the final cost and the trace.

        Raises:
            DivergenceError: If the cost becomes NaN or infinite.
        """
        if learning_rate is not None:
            self.learning_rate = learning_rate
        if l2_penalty is not None:
            self.l2_penalty = l2_penalty
        if max_iterations < 0:
            raise InvalidHyperparameter(f"max_iterations must be >= 0, got {max_iterations}")
        if convergence_delta < 0:
            raise InvalidHyperparameter(
                f"convergence_delta must be >= 0, got {convergence_delta}"
            )

        if self._state is ModelState.UNINITIALIZED:
            X_arr = np.atleast_2d(np.asarray(X, dtype=np.float64))
            Y_arr = self._orient_targets(Y, X_arr.shape[0])
            self.initialize(X_arr.shape[1], Y_arr.shape[1])

        # Bias column is added once; cost/gradient accept it as-is
        Xb, Yt = self._prepare(X, Y)
        m = Xb.shape[0]

        it = 0
        c = self.cost(Xb, Yt)
        history = [TraceRecord(it, c)]
        if trace_sink is not None:
            trace_sink.record(it, c)

        logger.info(
            "Training %s: m=%d, features=%d, outputs=%d, alpha=%g, lambda=%g",
            type(self).__name__, m, self.n_features, self.n_outputs,
            self.learning_rate, self.l2_penalty,
        )

        delta = float("inf")
        converged = False
        while max_iterations == 0 or it < max_iterations:
            #                α  ∂J(Θ)
            #  Θ := Θ  -  --- ------
            #                m   ∂Θ
            self._theta = self._theta - (self.learning_rate / m) * self.gradient(Xb, Yt)
            it += 1

            c_prev, c = c, self.cost(Xb, Yt)
            if not np.isfinite(c):
                raise DivergenceError(
                    f"Cost became {c} at iteration {it}; try a smaller learning rate"
                )

            history.append(TraceRecord(it, c))
            if trace_sink is not None:
                trace_sink.record(it, c)
            if it % self.log_every == 0:
                logger.debug("iteration %d cost %.8f", it, c)

            delta = abs(c_prev - c)
            if delta <= convergence_delta:
                converged = True
                break

        self._history = history
        self._state = ModelState.TRAINED

        logger.info(
            "Finished training: iterations=%d, delta_J=%.3g, J=%.6f, converged=%s",
            it, delta, c, converged,
        )
        if not converged:
            logger.warning("Stopped at max_iterations=%d before convergence", max_iterations)

        return FitResult(
            final_cost=float(c),
            n_iterations=it,
            converged=converged,
            delta=float(delta),
            history=history,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def get_params(self) -> Dict[str, Any]:
        """Constructor arguments, for persistence."""
        return {
            "learning_rate": self.learning_rate,
            "l2_penalty": self.l2_penalty,
            "init_strategy": self.init_strategy.value,
            "random_seed": self.random_seed,
            "log_every": self.log_every,
        }

    def save(self, path: Path | str) -> None:
        """Write Theta and hyperparameters to a .npz file."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez(
            path,
            theta=self._require_theta(),
            params=json.dumps(self.get_params()),
            state=self._state.value,
        )

    @classmethod
    def load(cls, path: Path | str) -> "RegressionModel":
        """Restore a model written by save()."""
        with np.load(Path(path).with_suffix(".npz")) as data:
            model = cls(**json.loads(str(data["params"])))
            model._theta = data["theta"].astype(np.float64)
            model._state = ModelState(str(data["state"]))
        return model
