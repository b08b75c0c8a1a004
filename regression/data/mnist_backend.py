"""
Backend for the MNIST handwritten digit data set (IDX binary format).

Expects the four standard files in one directory:
- train-images.idx3-ubyte, train-labels.idx1-ubyte
- t10k-images.idx3-ubyte,  t10k-labels.idx1-ubyte

IDX files start with a big-endian header: a magic number (2051 for images,
2049 for labels), the item count and, for images, the row and column count.
Pixels and labels follow as unsigned bytes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

import numpy as np

from regression.data.backend import DataBackend
from regression.errors import DataFormatError
from regression.preprocessing.feature_pipeline import FeatureTransformer

logger = logging.getLogger(__name__)

IMAGES_MAGIC = 2051
LABELS_MAGIC = 2049

TRAIN_IMAGES = "train-images.idx3-ubyte"
TRAIN_LABELS = "train-labels.idx1-ubyte"
TEST_IMAGES = "t10k-images.idx3-ubyte"
TEST_LABELS = "t10k-labels.idx1-ubyte"


def _read_header(data: bytes, n_fields: int, path: Path) -> np.ndarray:
    size = 4 * n_fields
    if len(data) < size:
        raise DataFormatError(f"{path} is too short for an IDX header")
    return np.frombuffer(data[:size], dtype=">u4").astype(np.int64)


def read_idx_images(path: Path | str) -> np.ndarray:
    """Read an IDX3 image file into an (n_images, n_rows, n_cols) uint8 array."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    data = path.read_bytes()

    magic, n_images, n_rows, n_cols = _read_header(data, 4, path)
    if magic != IMAGES_MAGIC:
        raise DataFormatError(f"{path}: bad magic number {magic}, expected {IMAGES_MAGIC}")

    pixels = np.frombuffer(data, dtype=np.uint8, offset=16)
    expected = n_images * n_rows * n_cols
    if pixels.size != expected:
        raise DataFormatError(f"{path}: expected {expected} pixels, found {pixels.size}")
    return pixels.reshape(n_images, n_rows, n_cols)


def read_idx_labels(path: Path | str) -> np.ndarray:
    """Read an IDX1 label file into an (n_labels,) uint8 array."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    data = path.read_bytes()

    magic, n_labels = _read_header(data, 2, path)
    if magic != LABELS_MAGIC:
        raise DataFormatError(f"{path}: bad magic number {magic}, expected {LABELS_MAGIC}")

    labels = np.frombuffer(data, dtype=np.uint8, offset=8)
    if labels.size != n_labels:
        raise DataFormatError(f"{path}: expected {n_labels} labels, found {labels.size}")
    return labels.copy()


def scale_pixels(images: np.ndarray) -> np.ndarray:
    """Center and scale pixel values: (x - (max - min) / 2) / max.

    Statistics are taken over the whole image stack.
    """
    images = np.asarray(images, dtype=np.float64)
    lo, hi = images.min(), images.max()
    if hi == 0:
        return images - (hi - lo) / 2.0
    return (images - (hi - lo) / 2.0) / hi


def unroll(images: np.ndarray) -> np.ndarray:
    """Flatten each image row-major into one feature row."""
    return images.reshape(images.shape[0], -1)


class MNISTBackend(DataBackend):
    """Backend over the fixed MNIST train/test files."""

    def __init__(self, directory: Path | str, transformer: FeatureTransformer | None = None) -> None:
        """Initialize MNIST backend.

        Args:
            directory: Directory holding the four IDX files.
            transformer: Optional feature pipeline applied after pixel scaling.
        """
        super().__init__(transformer)
        self.directory = Path(directory)

    def load_raw(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        train_images = read_idx_images(self.directory / TRAIN_IMAGES)
        train_labels = read_idx_labels(self.directory / TRAIN_LABELS)
        test_images = read_idx_images(self.directory / TEST_IMAGES)
        test_labels = read_idx_labels(self.directory / TEST_LABELS)

        if len(train_images) != len(train_labels) or len(test_images) != len(test_labels):
            raise DataFormatError(
                f"Image/label counts differ: train {len(train_images)}/{len(train_labels)}, "
                f"test {len(test_images)}/{len(test_labels)}"
            )

        logger.info(
            "MNIST: %d training images, %d test images, %dx%d pixels",
            len(train_images), len(test_images), train_images.shape[1], train_images.shape[2],
        )

        X_train = unroll(scale_pixels(train_images))
        X_test = unroll(scale_pixels(test_images))
        return (
            X_train,
            train_labels.astype(np.float64),
            X_test,
            test_labels.astype(np.float64),
        )

    def raw_feature_names(self, n_features: int):
        return [f"px{i}" for i in range(n_features)]
