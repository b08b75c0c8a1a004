"""
Trace sinks and plot-ready output files.

Writes three whitespace-delimited files, each with a '#' header line:
- cost trace:     "#Iteration #Cost"  one row per gradient descent step
- penalty trace:  "#Lamda #Cost"      one row per fitted L2 penalty
- model curve:    "#Feature #Target"  predictions over the feature range
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, TextIO

import numpy as np

from regression.errors import DimensionMismatch
from regression.models.base import RegressionModel, TraceRecord
from regression.preprocessing.feature_pipeline import FeatureTransformer

COST_HEADER = "#Iteration #Cost"
PENALTY_HEADER = "#Lamda #Cost"
MODEL_HEADER = "#Feature #Target"


class MemoryTrace:
    """In-memory (iteration, cost) recorder."""

    def __init__(self) -> None:
        self.records: List[TraceRecord] = []

    def record(self, iteration: int, cost: float) -> None:
        self.records.append(TraceRecord(int(iteration), float(cost)))

    def __len__(self) -> int:
        return len(self.records)

    def costs(self) -> np.ndarray:
        return np.array([r.cost for r in self.records])


class _FileTrace:
    """Append-only two-column text file, truncated on open."""

    header = ""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._file: Optional[TextIO] = None

    def open(self) -> "_FileTrace":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "w")
        self._file.write(self.header + "\n")
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "_FileTrace":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def _write(self, key: float, cost: float) -> None:
        if self._file is None:
            self.open()
        self._file.write(f"{key:g} {cost:.10g}\n")
        self._file.flush()


class CostTraceWriter(_FileTrace):
    """File sink for fit(): one "iteration cost" row per step."""

    header = COST_HEADER

    def record(self, iteration: int, cost: float) -> None:
        self._write(iteration, cost)


class PenaltyTraceWriter(_FileTrace):
    """One "lambda final_cost" row per fitted penalty."""

    header = PENALTY_HEADER

    def record(self, l2_penalty: float, cost: float) -> None:
        self._write(l2_penalty, cost)


def read_trace(path: Path | str) -> np.ndarray:
    """Load a trace file back as an (n, 2) array."""
    return np.loadtxt(path, comments="#", ndmin=2)


def write_model_curve(
    path: Path | str,
    model: RegressionModel,
    transformer: FeatureTransformer,
    resolution: float = 1.0,
) -> np.ndarray:
    """Sweep a single raw feature from its training min to max and write predictions.

    The raw values are passed through the fitted transformer before
    predicting, so the curve is on the raw feature scale.

    Args:
        path: Output file.
        model: Fitted model on the transformer's output.
        transformer: Fitted transformer with exactly one raw feature.
        resolution: Step between consecutive raw feature values.

    Returns:
        (n, 2) array of (feature, prediction) rows that was written.
    """
    if transformer.n_features_in != 1:
        raise DimensionMismatch(
            f"Model curve needs a single raw feature, got {transformer.n_features_in}"
        )
    if resolution <= 0:
        raise ValueError(f"resolution must be > 0, got {resolution}")

    # Column 0 of both pipeline orders holds the raw feature's range
    lo, hi = float(transformer.stats.min[0]), float(transformer.stats.max[0])
    n_points = int((hi - lo) / resolution) + 1
    x = lo + resolution * np.arange(n_points)

    prediction = np.asarray(model.predict(transformer.transform(x.reshape(-1, 1))))
    if prediction.ndim > 1:
        prediction = prediction[:, 0]
    curve = np.column_stack([x, prediction])

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(path, curve, fmt="%.10g", header=MODEL_HEADER[1:], comments="#")
    return curve
