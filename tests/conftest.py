"""Shared fixtures: small seeded synthetic data sets."""

from __future__ import annotations

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def blobs(rng):
    """Two well separated 2-D Gaussian blobs, labels 0/1.

    Returns (X_train, y_train, X_test, y_test).
    """

    def _draw(n):
        X0 = rng.normal(loc=(-2.0, -2.0), scale=0.5, size=(n, 2))
        X1 = rng.normal(loc=(2.0, 2.0), scale=0.5, size=(n, 2))
        X = np.vstack([X0, X1])
        y = np.concatenate([np.zeros(n), np.ones(n)])
        return X, y

    X_train, y_train = _draw(40)
    X_test, y_test = _draw(15)
    return X_train, y_train, X_test, y_test


@pytest.fixture
def three_blobs(rng):
    """Three separated 2-D blobs with labels 0, 1, 2."""
    centers = np.array([[-3.0, 0.0], [3.0, 0.0], [0.0, 4.0]])
    X = np.vstack([rng.normal(loc=c, scale=0.4, size=(30, 2)) for c in centers])
    y = np.repeat([0.0, 1.0, 2.0], 30)
    return X, y


@pytest.fixture
def linear_data(rng):
    """y = 3 + 2*x0 - x1 with a little noise."""
    X = rng.uniform(-1.0, 1.0, size=(60, 2))
    y = 3.0 + 2.0 * X[:, 0] - X[:, 1] + rng.normal(scale=0.01, size=60)
    return X, y


@pytest.fixture
def data_file(tmp_path, rng):
    """Whitespace-delimited file with one feature and a quadratic target."""
    x = np.linspace(0.0, 10.0, 50)
    y = 1.0 + 0.5 * x + 0.2 * x**2
    path = tmp_path / "quad.dat"
    lines = ["# x y"] + [f"{a:.6f}  {b:.6f}" for a, b in zip(x, y)]
    path.write_text("\n".join(lines) + "\n")
    return path
