"""
Polynomial feature mapping and z-score normalization.

The pipeline expands raw features into every monomial of total degree
1..degree and normalizes columns with statistics computed on the training
matrix. Whichever step runs last before the model determines the matrix the
statistics are computed on; transform() replays the same steps on new data.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from itertools import combinations_with_replacement
from typing import List, Sequence, Tuple

import numpy as np

from regression.config import FeatureConfig, PipelineOrder
from regression.errors import DimensionMismatch, EmptyInput, InvalidDegree, NotFittedError


@lru_cache(maxsize=64)
def _exponent_rows(n_features: int, degree: int) -> Tuple[Tuple[int, ...], ...]:
    rows = []
    for total in range(1, degree + 1):
        for combo in combinations_with_replacement(range(n_features), total):
            row = [0] * n_features
            for col in combo:
                row[col] += 1
            rows.append(tuple(row))
    return tuple(rows)


def exponents(n_features: int, degree: int) -> np.ndarray:
    """Build the exponent table for polynomial feature mapping.

    Rows are ordered by total degree, then lexicographically descending, so
    within each degree the first feature varies slowest. For two features and
    degree 2 the table is (1,0), (0,1), (2,0), (1,1), (0,2). The constant
    (all-zero) term is never included.

    Args:
        n_features: Number of raw features (F).
        degree: Maximum total degree of a term (>= 1).

    Returns:
        Integer array of shape (R, F).

    Raises:
        InvalidDegree: If degree < 1.
        EmptyInput: If n_features < 1.
    """
    if degree < 1:
        raise InvalidDegree(
            f"Degree for polynomial feature mapping must be >= 1, got {degree}"
        )
    if n_features < 1:
        raise EmptyInput(f"Need at least one feature, got {n_features}")
    return np.array(_exponent_rows(int(n_features), int(degree)), dtype=np.int64)


def map_features(X: np.ndarray, degree: int) -> np.ndarray:
    """Expand X into all monomials of total degree 1..degree.

    Output columns follow the row order of exponents(). degree=1 returns the
    input columns unchanged.

    Args:
        X: Feature matrix (n_samples, n_features) or a single instance (n_features,).
        degree: Maximum total degree (>= 1).

    Returns:
        Expanded matrix (n_samples, R), or a vector (R,) for vector input.
    """
    X = np.asarray(X, dtype=np.float64)
    single = X.ndim == 1
    X2 = X.reshape(1, -1) if single else X
    if X2.ndim != 2:
        raise DimensionMismatch(f"Expected a 1-D or 2-D array, got shape {X.shape}")

    table = exponents(X2.shape[1], degree)

    if degree == 1:
        out = X2.copy()
    else:
        out = np.empty((X2.shape[0], len(table)), dtype=np.float64)
        for r, row in enumerate(table):
            col = np.ones(X2.shape[0], dtype=np.float64)
            for c in np.flatnonzero(row):
                col *= X2[:, c] ** row[c]
            out[:, r] = col

    return out[0] if single else out


@dataclass(frozen=True)
class NormalizationStats:
    """Per-column statistics of the training matrix.

    Attributes:
        mean: Column means (μ).
        std: Column standard deviations (σ); zeros replaced by 1.
        min: Column minima.
        max: Column maxima.
    """

    mean: np.ndarray
    std: np.ndarray
    min: np.ndarray
    max: np.ndarray

    @property
    def n_features(self) -> int:
        return len(self.mean)

    def to_dict(self) -> dict:
        return {
            "mean": self.mean.tolist(),
            "std": self.std.tolist(),
            "min": self.min.tolist(),
            "max": self.max.tolist(),
        }


def compute_stats(X: np.ndarray) -> NormalizationStats:
    """Compute mean/std/min/max over the rows of X."""
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2 or X.shape[0] == 0 or X.shape[1] == 0:
        raise EmptyInput(f"Cannot compute statistics of an empty matrix, shape {X.shape}")

    std = X.std(axis=0)
    # Constant columns normalize to 0 instead of NaN
    std[std == 0] = 1.0

    return NormalizationStats(
        mean=X.mean(axis=0),
        std=std,
        min=X.min(axis=0),
        max=X.max(axis=0),
    )


class FeatureTransformer:
    """Polynomial expansion plus z-score normalization.

    Follows the fit/transform protocol: fit() computes statistics on the
    training matrix at the configured pipeline stage, transform() replays the
    identical steps on any matrix with the same raw feature count.
    """

    def __init__(
        self,
        degree: int = 1,
        order: PipelineOrder | str = PipelineOrder.EXPAND_THEN_NORMALIZE,
    ):
        """Initialize transformer.

        Args:
            degree: Polynomial degree for feature mapping (>= 1).
            order: Whether statistics are taken before or after expansion.
        """
        if degree < 1:
            raise InvalidDegree(
                f"Degree for polynomial feature mapping must be >= 1, got {degree}"
            )
        self.degree = degree
        self.order = PipelineOrder(order)
        self._stats: NormalizationStats | None = None
        self._n_features_in: int | None = None

    @classmethod
    def from_config(cls, cfg: FeatureConfig) -> "FeatureTransformer":
        return cls(degree=cfg.degree, order=cfg.order)

    @property
    def stats(self) -> NormalizationStats:
        """Stored normalization statistics."""
        if self._stats is None:
            raise NotFittedError("Transformer not fitted. Call fit() first.")
        return self._stats

    @property
    def n_features_in(self) -> int:
        if self._n_features_in is None:
            raise NotFittedError("Transformer not fitted. Call fit() first.")
        return self._n_features_in

    @property
    def n_features_out(self) -> int:
        return len(exponents(self.n_features_in, self.degree))

    def map_features(self, X: np.ndarray) -> np.ndarray:
        """Polynomial expansion with this transformer's degree."""
        return map_features(X, self.degree)

    def fit_normalization(self, X: np.ndarray) -> NormalizationStats:
        """Compute and store statistics of X (no expansion applied)."""
        self._stats = compute_stats(X)
        return self._stats

    def normalize(self, X: np.ndarray) -> np.ndarray:
        """Apply (x - μ) / σ column-wise.

        Args:
            X: Matrix (n_samples, n_features) or vector (n_features,).

        Raises:
            EmptyInput: If X has no elements.
            DimensionMismatch: If the feature count differs from the stored stats.
        """
        X = self._check_against_stats(X)
        return (X - self.stats.mean) / self.stats.std

    def denormalize(self, X: np.ndarray) -> np.ndarray:
        """Invert normalize(): x·σ + μ."""
        X = self._check_against_stats(X)
        return X * self.stats.std + self.stats.mean

    def _check_against_stats(self, X: np.ndarray) -> np.ndarray:
        X = np.asarray(X, dtype=np.float64)
        if X.size == 0:
            raise EmptyInput(f"Input cannot be empty, got shape {X.shape}")
        n = self.stats.n_features
        if X.shape[-1] != n:
            raise DimensionMismatch(
                f"Input has {X.shape[-1]} features, statistics have {n}"
            )
        return X

    def fit(self, X: np.ndarray) -> "FeatureTransformer":
        """Fit statistics on the training matrix.

        Args:
            X: Raw training features (n_samples, n_features).

        Returns:
            Self for chaining.
        """
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2 or X.size == 0:
            raise EmptyInput(f"Training matrix cannot be empty, got shape {X.shape}")
        self._n_features_in = X.shape[1]

        if self.order is PipelineOrder.EXPAND_THEN_NORMALIZE:
            self.fit_normalization(self.map_features(X))
        else:
            self.fit_normalization(X)
        return self

    def transform(self, X: np.ndarray) -> np.ndarray:
        """Replay the fitted pipeline on X (matrix or single instance)."""
        X = np.asarray(X, dtype=np.float64)
        if X.size == 0:
            raise EmptyInput(f"Input cannot be empty, got shape {X.shape}")
        if X.shape[-1] != self.n_features_in:
            raise DimensionMismatch(
                f"Input has {X.shape[-1]} raw features, transformer was fitted "
                f"on {self.n_features_in}"
            )

        if self.order is PipelineOrder.EXPAND_THEN_NORMALIZE:
            return self.normalize(self.map_features(X))
        return self.map_features(self.normalize(X))

    def fit_transform(self, X: np.ndarray) -> np.ndarray:
        """Fit and transform in one step."""
        return self.fit(X).transform(X)

    def feature_names(self, input_names: Sequence[str] | None = None) -> List[str]:
        """Names of the output columns, e.g. ``x0^2 x1``.

        Args:
            input_names: Names of the raw features. Defaults to x0, x1, ...
        """
        n = self.n_features_in
        if input_names is None:
            input_names = [f"x{i}" for i in range(n)]
        if len(input_names) != n:
            raise DimensionMismatch(
                f"Got {len(input_names)} names for {n} input features"
            )

        names = []
        for row in exponents(n, self.degree):
            terms = []
            for c in np.flatnonzero(row):
                terms.append(input_names[c] if row[c] == 1 else f"{input_names[c]}^{row[c]}")
            names.append(" ".join(terms))
        return names
