"""
Splitting and label encoding utilities.

Implements:
- Shuffled train/test split by percentage
- One-hot encoding against a fixed, sorted class vector
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np
from sklearn.model_selection import train_test_split

from regression.errors import EmptyInput, ShapeMismatch


def shuffle_split(
    X: np.ndarray,
    y: np.ndarray,
    train_percent: float = 70.0,
    test_percent: float = 30.0,
    random_seed: Optional[int] = 42,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Shuffle rows and split into training and test sets.

    Training size is floor(m * train_percent / 100); the rest is test.

    Args:
        X: Feature matrix (m, n).
        y: Targets (m,).
        train_percent: Training share in (0, 100].
        test_percent: Test share in [0, 100).
        random_seed: Seed for the shuffle.

    Returns:
        (X_train, y_train, X_test, y_test).
    """
    if train_percent <= 0.0 or test_percent < 0.0:
        raise ValueError(
            f"Training set = {train_percent}% has to be > 0% and "
            f"test set = {test_percent}% has to be >= 0%"
        )
    if not math.isclose(train_percent + test_percent, 100.0):
        raise ValueError(
            f"Training set {train_percent}% + test set {test_percent}% must equal 100%"
        )
    if len(X) != len(y):
        raise ShapeMismatch(f"X has {len(X)} instances, y has {len(y)}")

    m = len(X)
    n_train = int(m * (train_percent / 100.0))
    if n_train == 0:
        raise ValueError(f"Training set {train_percent}% of {m} instances is empty")

    if n_train == m:
        idx = np.random.default_rng(random_seed).permutation(m)
        return X[idx], y[idx], X[:0], y[:0]

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, train_size=n_train, test_size=m - n_train, random_state=random_seed
    )
    return X_train, y_train, X_test, y_test


def one_hot_encode(labels: np.ndarray, classes: Optional[np.ndarray] = None) -> np.ndarray:
    """Encode labels as one-hot rows.

    Args:
        labels: Label per instance (m,).
        classes: Sorted class vector (K,). Defaults to the sorted unique labels.

    Returns:
        (m, K) matrix of 0/1 with exactly one 1 per row.
    """
    labels = np.asarray(labels)
    if classes is None:
        classes = np.unique(labels)
    classes = np.asarray(classes)
    if classes.size == 0:
        raise EmptyInput("Class vector cannot be empty")

    idx = np.searchsorted(classes, labels)
    idx_clipped = np.clip(idx, 0, len(classes) - 1)
    unknown = classes[idx_clipped] != labels
    if np.any(unknown):
        raise ValueError(f"Labels {np.unique(labels[unknown])} not found in classes {classes}")

    encoded = np.zeros((len(labels), len(classes)), dtype=np.float64)
    encoded[np.arange(len(labels)), idx_clipped] = 1.0
    return encoded
