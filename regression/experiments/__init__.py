"""
Experiment runners for gradient descent models.

This module provides:
- load_split: Build a data backend from config and load its train/test split
- run_fit: Single training run scored on the test split
- run_penalty_sweep: One training run per L2 penalty
"""

from regression.experiments.runner import (
    RunResult,
    SweepRow,
    build_model,
    load_split,
    run_fit,
    run_penalty_sweep,
    training_targets,
)

__all__ = [
    "RunResult",
    "SweepRow",
    "build_model",
    "load_split",
    "run_fit",
    "run_penalty_sweep",
    "training_targets",
]
