"""Tests for pydantic configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from regression.config import (
    CONFIGS_DIR,
    DatasetConfig,
    ExperimentConfig,
    FeatureConfig,
    GradientDescentConfig,
    InitStrategy,
    LinkFunction,
    LogisticConfig,
    ModelFamily,
    PipelineOrder,
    SweepConfig,
)


def test_defaults():
    gd = GradientDescentConfig()
    assert gd.learning_rate == 0.01
    assert gd.l2_penalty == 0.0
    assert gd.convergence_delta == 1e-6
    assert gd.init_strategy is InitStrategy.UNIFORM
    assert FeatureConfig().order is PipelineOrder.EXPAND_THEN_NORMALIZE
    assert SweepConfig().penalties == [0.0, 0.1, 0.3, 0.6, 1.0, 3.0, 6.0, 10.0, 30.0, 60.0]


@pytest.mark.parametrize(
    "cls,kwargs",
    [
        (FeatureConfig, {"degree": 0}),
        (GradientDescentConfig, {"learning_rate": 0.0}),
        (GradientDescentConfig, {"l2_penalty": -1.0}),
        (GradientDescentConfig, {"max_iterations": -5}),
        (LogisticConfig, {"classification_threshold": 1.2}),
        (LogisticConfig, {"link_function": "relu"}),
        (DatasetConfig, {"train_percent": 60, "test_percent": 30}),
        (DatasetConfig, {"format": "csv"}),
        (SweepConfig, {"penalties": [0.0, -1.0]}),
    ],
)
def test_invalid_values(cls, kwargs):
    with pytest.raises(ValidationError):
        cls(**kwargs)


@pytest.mark.parametrize("train,test", [(70.0, 30.0 + 1e-12), (70.1, 29.9), (33.3, 66.7)])
def test_split_percents_tolerate_rounding(train, test):
    cfg = DatasetConfig(train_percent=train, test_percent=test)
    assert cfg.train_percent == train


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        FeatureConfig(degree=0)


@pytest.mark.parametrize("name", ["linear.yaml", "logistic.yaml", "mnist.yaml"])
def test_shipped_experiment_configs(name):
    cfg = ExperimentConfig.from_yaml(CONFIGS_DIR / name)
    assert cfg.dataset.path is not None
    assert cfg.gradient_descent.learning_rate > 0


def test_default_experiment_config():
    cfg = ExperimentConfig.from_yaml()
    assert cfg.model is ModelFamily.LOGISTIC
    assert cfg.logistic.link_function is LinkFunction.SIGMOID
    assert cfg.features.degree == 4
    assert cfg.gradient_descent.l2_penalty == 1.0
    assert cfg.dataset.train_percent == 70


def test_component_yaml_defaults():
    assert FeatureConfig.from_yaml().degree == 4
    assert GradientDescentConfig.from_yaml().max_iterations == 100000


def test_from_custom_yaml(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("model: linear\nfeatures:\n  degree: 2\n")
    cfg = ExperimentConfig.from_yaml(path)
    assert cfg.model is ModelFamily.LINEAR
    assert cfg.features.degree == 2
    assert cfg.sweep.penalties[-1] == 60.0
