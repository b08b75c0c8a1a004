"""Preprocessing module for polynomial feature mapping and normalization."""

from regression.preprocessing.feature_pipeline import (
    FeatureTransformer,
    NormalizationStats,
    compute_stats,
    exponents,
    map_features,
)

__all__ = [
    "FeatureTransformer",
    "NormalizationStats",
    "compute_stats",
    "exponents",
    "map_features",
]
