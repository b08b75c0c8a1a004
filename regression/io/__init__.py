"""Trace sinks and output files."""

from regression.io.traces import (
    CostTraceWriter,
    MemoryTrace,
    PenaltyTraceWriter,
    read_trace,
    write_model_curve,
)

__all__ = [
    "CostTraceWriter",
    "MemoryTrace",
    "PenaltyTraceWriter",
    "read_trace",
    "write_model_curve",
]
