"""
Experiment runners: single fit and L2 penalty sweep.

Each runner takes a DatasetSplit and an ExperimentConfig, trains on the
training split and scores on the test split:
- linear models: test cost, RMSE and R2
- logistic models: confusion matrix and precision/recall/F1
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from regression.config import DatasetConfig, ExperimentConfig, FeatureConfig, LinkFunction, ModelFamily
from regression.data.backend import DataBackend, DatasetSplit
from regression.data.mnist_backend import MNISTBackend
from regression.data.text_backend import TextFileBackend
from regression.evaluation.metrics import r2, rmse
from regression.io.traces import CostTraceWriter, PenaltyTraceWriter
from regression.models.base import RegressionModel
from regression.models.linear_regression import LinearModel
from regression.models.logistic_regression import LogisticModel
from regression.preprocessing.feature_pipeline import FeatureTransformer

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one training run.

    Classification fields are None for linear models and vice versa.
    """

    model: str
    l2_penalty: float
    learning_rate: float
    final_cost: float
    n_iterations: int
    converged: bool
    test_cost: Optional[float] = None
    test_rmse: Optional[float] = None
    test_r2: Optional[float] = None
    confusion_matrix: Optional[List[List[int]]] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SweepRow:
    """Single row of a penalty sweep."""

    l2_penalty: float
    final_cost: float
    n_iterations: int
    converged: bool
    test_cost: Optional[float]
    f1: Optional[float]


def load_split(
    dataset_cfg: DatasetConfig,
    feature_cfg: FeatureConfig,
) -> Tuple[DataBackend, DatasetSplit]:
    """Build the backend for a dataset config and load its split.

    MNIST pixels are already scaled by the reader; the polynomial/normalize
    pipeline is only applied to MNIST when degree > 1.
    """
    if dataset_cfg.path is None:
        raise ValueError("dataset.path is not set")

    transformer = FeatureTransformer.from_config(feature_cfg)
    if dataset_cfg.format == "mnist":
        backend: DataBackend = MNISTBackend(
            dataset_cfg.path,
            transformer=transformer if feature_cfg.degree > 1 else None,
        )
    else:
        backend = TextFileBackend(
            dataset_cfg.path,
            train_percent=dataset_cfg.train_percent,
            test_percent=dataset_cfg.test_percent,
            random_seed=dataset_cfg.random_seed,
            transformer=transformer,
        )
    return backend, backend.get_split()


def build_model(cfg: ExperimentConfig) -> RegressionModel:
    """Instantiate the model family named in the config."""
    if cfg.model is ModelFamily.LINEAR:
        return LinearModel.from_config(cfg.gradient_descent)
    return LogisticModel.from_config(cfg.gradient_descent, cfg.logistic)


def training_targets(model: RegressionModel, split: DatasetSplit, test: bool = False) -> np.ndarray:
    """Targets in the layout the model expects.

    Linear: raw targets. Logistic with two classes and a sigmoid link: class
    index 0/1. Otherwise one-hot rows.
    """
    y = split.y_test if test else split.y_train
    if isinstance(model, LinearModel):
        return y
    if model.link_function is LinkFunction.SIGMOID and split.n_classes <= 2:
        return np.searchsorted(split.classes, y).astype(np.float64)
    return split.Y_test_onehot if test else split.Y_train_onehot


def _evaluate(model: RegressionModel, split: DatasetSplit, result: RunResult) -> None:
    if split.n_test == 0:
        return

    Y_test = training_targets(model, split, test=True)
    result.test_cost = model.cost(split.X_test, Y_test)

    if isinstance(model, LogisticModel):
        conf_mat = model.confusion_matrix(split.X_test, Y_test)
        average = "binary" if conf_mat.shape[0] == 2 else "macro"
        report = model.evaluate(split.X_test, Y_test, average=average)
        result.confusion_matrix = conf_mat.tolist()
        result.metrics = report.to_dict()
    else:
        prediction = model.predict(split.X_test)
        result.test_rmse = rmse(split.y_test, prediction)
        result.test_r2 = r2(split.y_test, prediction)


def run_fit(
    split: DatasetSplit,
    cfg: ExperimentConfig,
    trace_dir: Path | str | None = None,
    model: RegressionModel | None = None,
) -> Tuple[RegressionModel, RunResult]:
    """Train one model on the training split and score it on the test split.

    Args:
        split: DatasetSplit from a backend.
        cfg: Experiment configuration.
        trace_dir: If given, the cost trace is written to trace_dir/cost.dat.
        model: Model to continue training. A new one is built if None.

    Returns:
        (model, RunResult).
    """
    gd = cfg.gradient_descent
    if model is None:
        model = build_model(cfg)
    Y_train = training_targets(model, split)

    if trace_dir is not None:
        with CostTraceWriter(Path(trace_dir) / "cost.dat") as sink:
            fit = model.fit(
                split.X_train, Y_train,
                convergence_delta=gd.convergence_delta,
                max_iterations=gd.max_iterations,
                trace_sink=sink,
            )
    else:
        fit = model.fit(
            split.X_train, Y_train,
            convergence_delta=gd.convergence_delta,
            max_iterations=gd.max_iterations,
        )

    result = RunResult(
        model=cfg.model.value,
        l2_penalty=model.l2_penalty,
        learning_rate=model.learning_rate,
        final_cost=fit.final_cost,
        n_iterations=fit.n_iterations,
        converged=fit.converged,
    )
    _evaluate(model, split, result)
    return model, result


def run_penalty_sweep(
    split: DatasetSplit,
    cfg: ExperimentConfig,
    penalties: Optional[List[float]] = None,
    output_dir: Path | str | None = None,
    show_progress: bool = True,
) -> List[SweepRow]:
    """Fit one freshly initialized model per L2 penalty.

    Args:
        split: DatasetSplit from a backend.
        cfg: Experiment configuration.
        penalties: Penalties to try. Defaults to cfg.sweep.penalties.
        output_dir: If given, writes output_dir/lamda_cost.dat.
        show_progress: Whether to show a progress bar.

    Returns:
        List of SweepRow, one per penalty.
    """
    if penalties is None:
        penalties = cfg.sweep.penalties

    gd = cfg.gradient_descent
    model = build_model(cfg)
    Y_train = training_targets(model, split)
    n_outputs = 1 if Y_train.ndim == 1 else Y_train.shape[1]

    penalty_trace = None
    if output_dir is not None:
        penalty_trace = PenaltyTraceWriter(Path(output_dir) / "lamda_cost.dat").open()

    if show_progress:
        from tqdm import tqdm
        iterator = tqdm(penalties, desc="L2 penalties")
    else:
        iterator = penalties

    rows: List[SweepRow] = []
    try:
        for lam in iterator:
            model.initialize(split.n_features, n_outputs)
            model.l2_penalty = lam
            fit = model.fit(
                split.X_train, Y_train,
                convergence_delta=gd.convergence_delta,
                max_iterations=gd.max_iterations,
            )
            if penalty_trace is not None:
                penalty_trace.record(lam, fit.final_cost)

            result = RunResult(
                model=cfg.model.value,
                l2_penalty=lam,
                learning_rate=model.learning_rate,
                final_cost=fit.final_cost,
                n_iterations=fit.n_iterations,
                converged=fit.converged,
            )
            _evaluate(model, split, result)

            rows.append(SweepRow(
                l2_penalty=lam,
                final_cost=fit.final_cost,
                n_iterations=fit.n_iterations,
                converged=fit.converged,
                test_cost=result.test_cost,
                f1=result.metrics.get("f1") if result.metrics else None,
            ))
            logger.info("lambda=%g: J=%.6f, f1=%s", lam, fit.final_cost, rows[-1].f1)
    finally:
        if penalty_trace is not None:
            penalty_trace.close()

    return rows
