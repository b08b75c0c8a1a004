"""
Abstract data backend interface and dataset split contract.

Defines the contract that file-based and in-memory backends fulfill, so the
experiment runners never depend on where the data came from.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from regression.data.splitters import one_hot_encode, shuffle_split
from regression.errors import NotFittedError, ShapeMismatch
from regression.preprocessing.feature_pipeline import FeatureTransformer, NormalizationStats

logger = logging.getLogger(__name__)


@dataclass
class DatasetSplit:
    """Model-facing train/test data.

    Attributes:
        X_train: Transformed training features (m_train, F).
        y_train: Training targets (m_train,).
        X_test: Transformed test features (m_test, F).
        y_test: Test targets (m_test,).
        classes: Sorted distinct training targets (K,).
        feature_names: Names of the F model-facing columns.
        stats: Normalization statistics used to build X, if any.
    """

    X_train: np.ndarray
    y_train: np.ndarray
    X_test: np.ndarray
    y_test: np.ndarray
    classes: np.ndarray
    feature_names: List[str]
    stats: Optional[NormalizationStats] = None

    def __post_init__(self) -> None:
        """Validate data integrity after initialization."""
        if len(self.X_train) != len(self.y_train):
            raise ShapeMismatch(
                f"Train shape mismatch: X={len(self.X_train)}, y={len(self.y_train)}"
            )
        if len(self.X_test) != len(self.y_test):
            raise ShapeMismatch(
                f"Test shape mismatch: X={len(self.X_test)}, y={len(self.y_test)}"
            )

        n_features = len(self.feature_names)
        for arr, name in [(self.X_train, "X_train"), (self.X_test, "X_test")]:
            if arr.ndim != 2 or arr.shape[1] != n_features:
                raise ShapeMismatch(
                    f"{name} must have {n_features} columns, got shape {arr.shape}"
                )

    @property
    def n_train(self) -> int:
        """Number of training instances."""
        return len(self.y_train)

    @property
    def n_test(self) -> int:
        """Number of test instances."""
        return len(self.y_test)

    @property
    def n_features(self) -> int:
        return self.X_train.shape[1]

    @property
    def n_classes(self) -> int:
        return len(self.classes)

    @property
    def Y_train_onehot(self) -> np.ndarray:
        """Training targets as one-hot rows (m_train, K)."""
        return one_hot_encode(self.y_train, self.classes)

    @property
    def Y_test_onehot(self) -> np.ndarray:
        """Test targets as one-hot rows (m_test, K)."""
        return one_hot_encode(self.y_test, self.classes)


class DataBackend(ABC):
    """Abstract base class for data backends.

    Subclasses return raw train/test arrays from load_raw(); the base class
    fits the feature transformer on the raw training features only and
    replays it on the test features.
    """

    def __init__(self, transformer: FeatureTransformer | None = None) -> None:
        self.transformer = transformer
        self._split: DatasetSplit | None = None

    @abstractmethod
    def load_raw(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Return raw (X_train, y_train, X_test, y_test)."""
        pass

    def raw_feature_names(self, n_features: int) -> List[str]:
        return [f"x{i}" for i in range(n_features)]

    def get_split(self) -> DatasetSplit:
        """Load, transform and cache the train/test split."""
        if self._split is not None:
            return self._split

        X_train, y_train, X_test, y_test = self.load_raw()
        names = self.raw_feature_names(X_train.shape[1])
        stats = None

        if self.transformer is not None:
            X_train = self.transformer.fit_transform(X_train)
            X_test = self.transformer.transform(X_test) if len(X_test) else np.empty((0, X_train.shape[1]))
            names = self.transformer.feature_names(names)
            stats = self.transformer.stats

        self._split = DatasetSplit(
            X_train=X_train,
            y_train=y_train,
            X_test=X_test,
            y_test=y_test,
            classes=np.unique(y_train),
            feature_names=names,
            stats=stats,
        )
        logger.info(
            "Dataset ready: train=%d, test=%d, features=%d",
            self._split.n_train, self._split.n_test, self._split.n_features,
        )
        return self._split

    def map_features(self, X: np.ndarray) -> np.ndarray:
        """Polynomial expansion with the backend's degree (pass-through)."""
        if self.transformer is None:
            return np.asarray(X, dtype=np.float64)
        return self.transformer.map_features(X)

    def transform(self, X: np.ndarray) -> np.ndarray:
        """Replay the fitted pipeline on raw inference-time features."""
        if self.transformer is None:
            return np.asarray(X, dtype=np.float64)
        if self._split is None:
            raise NotFittedError("Backend not loaded. Call get_split() first.")
        return self.transformer.transform(X)


class ArrayBackend(DataBackend):
    """Backend over in-memory arrays, split by shuffling."""

    def __init__(
        self,
        X: np.ndarray,
        y: np.ndarray,
        train_percent: float = 70.0,
        test_percent: float = 30.0,
        random_seed: Optional[int] = 42,
        transformer: FeatureTransformer | None = None,
    ) -> None:
        super().__init__(transformer)
        self.X = np.asarray(X, dtype=np.float64)
        self.y = np.asarray(y, dtype=np.float64)
        self.train_percent = train_percent
        self.test_percent = test_percent
        self.random_seed = random_seed

    def load_raw(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        return shuffle_split(
            self.X, self.y, self.train_percent, self.test_percent, self.random_seed
        )
