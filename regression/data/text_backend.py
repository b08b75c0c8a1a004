"""
Backend for whitespace-delimited numeric text files.

File format: one instance per line, features first and the target in the
last column. Lines starting with '#' are headers/comments and are skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from regression.data.backend import DataBackend
from regression.data.splitters import shuffle_split
from regression.errors import DataFormatError
from regression.preprocessing.feature_pipeline import FeatureTransformer

logger = logging.getLogger(__name__)


def read_data_file(path: Path | str) -> Tuple[np.ndarray, np.ndarray]:
    """Read features and targets from a whitespace-delimited file.

    Args:
        path: Data file path.

    Returns:
        (X, y) with X of shape (m, n) and y of shape (m,).

    Raises:
        FileNotFoundError: If the file does not exist.
        DataFormatError: If rows are ragged, non-numeric, or there is no feature column.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")

    try:
        df = pd.read_csv(
            path,
            sep=r"\s+",
            comment="#",
            header=None,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        raise DataFormatError(f"No data rows in {path}") from None
    except pd.errors.ParserError as e:
        raise DataFormatError(f"Could not parse {path}: {e}") from e

    numeric = df.apply(pd.to_numeric, errors="coerce")
    if numeric.isna().any().any():
        bad_rows = numeric.index[numeric.isna().any(axis=1)].tolist()
        raise DataFormatError(
            f"{path} has missing or non-numeric values in data rows {bad_rows[:10]}"
        )
    if numeric.shape[1] < 2:
        raise DataFormatError(
            f"{path} needs at least one feature column and a target column, "
            f"got {numeric.shape[1]} column(s)"
        )

    values = numeric.to_numpy(dtype=np.float64)
    logger.info(
        "Read %s: %d instances, %d attributes", path, values.shape[0], values.shape[1] - 1
    )
    return values[:, :-1], values[:, -1]


class TextFileBackend(DataBackend):
    """Backend that loads one text file and shuffles it into train/test."""

    def __init__(
        self,
        path: Path | str,
        train_percent: float = 70.0,
        test_percent: float = 30.0,
        random_seed: Optional[int] = 42,
        transformer: FeatureTransformer | None = None,
    ) -> None:
        """Initialize text file backend.

        Args:
            path: Path to the data file.
            train_percent: Training share in (0, 100].
            test_percent: Test share; train_percent + test_percent must be 100.
            random_seed: Seed for the shuffle.
            transformer: Feature pipeline fitted on the training split.
        """
        super().__init__(transformer)
        self.path = Path(path)
        self.train_percent = train_percent
        self.test_percent = test_percent
        self.random_seed = random_seed

    def load_raw(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        X, y = read_data_file(self.path)
        return shuffle_split(X, y, self.train_percent, self.test_percent, self.random_seed)
