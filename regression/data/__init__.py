"""
Data loading and train/test splitting.

This module provides:
- DataBackend: Abstract base class for data sources
- DatasetSplit: Dataclass with the model-facing train/test arrays
- ArrayBackend: In-memory arrays
- TextFileBackend: Whitespace-delimited text files
- MNISTBackend: MNIST IDX binary files
"""

from regression.data.backend import ArrayBackend, DataBackend, DatasetSplit
from regression.data.mnist_backend import MNISTBackend, read_idx_images, read_idx_labels
from regression.data.splitters import one_hot_encode, shuffle_split
from regression.data.text_backend import TextFileBackend, read_data_file

__all__ = [
    "ArrayBackend",
    "DataBackend",
    "DatasetSplit",
    "MNISTBackend",
    "TextFileBackend",
    "one_hot_encode",
    "read_data_file",
    "read_idx_images",
    "read_idx_labels",
    "shuffle_split",
]
