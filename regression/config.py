"""
Configuration management using pydantic.

All config classes use pydantic for validation and YAML loading.
Config files are stored in configs/ directory.
"""

from __future__ import annotations

import math
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field, model_validator


# Base path for config files
CONFIGS_DIR = Path(__file__).parent.parent / "configs"


def load_yaml(path: Path | str) -> dict[str, Any]:
    """Load a YAML file and return as dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


class PipelineOrder(str, Enum):
    """Where normalization happens relative to polynomial expansion."""

    EXPAND_THEN_NORMALIZE = "expand_then_normalize"
    NORMALIZE_THEN_EXPAND = "normalize_then_expand"


class LinkFunction(str, Enum):
    """Output link of the logistic model."""

    SIGMOID = "sigmoid"
    SOFTMAX = "softmax"


class InitStrategy(str, Enum):
    """How Theta is filled on initialization."""

    ZEROS = "zeros"
    UNIFORM = "uniform"


class ModelFamily(str, Enum):
    LINEAR = "linear"
    LOGISTIC = "logistic"


class FeatureConfig(BaseModel):
    """Configuration for polynomial feature mapping and normalization."""

    degree: int = Field(default=1, ge=1)
    order: PipelineOrder = PipelineOrder.EXPAND_THEN_NORMALIZE

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> FeatureConfig:
        """Load config from YAML file.

        Args:
            path: Path to YAML file. If None, uses configs/features.yaml.
        """
        if path is None:
            path = CONFIGS_DIR / "features.yaml"
        return cls(**load_yaml(path))


class GradientDescentConfig(BaseModel):
    """Configuration for batch gradient descent."""

    learning_rate: float = Field(default=0.01, gt=0.0)  # α
    l2_penalty: float = Field(default=0.0, ge=0.0)  # λ
    convergence_delta: float = Field(default=1e-6, ge=0.0)
    max_iterations: int = Field(default=10000, ge=0)  # 0 = unbounded
    init_strategy: InitStrategy = InitStrategy.UNIFORM
    random_seed: Optional[int] = 42
    log_every: int = Field(default=500, ge=1)

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> GradientDescentConfig:
        """Load config from YAML file.

        Args:
            path: Path to YAML file. If None, uses configs/gradient_descent.yaml.
        """
        if path is None:
            path = CONFIGS_DIR / "gradient_descent.yaml"
        return cls(**load_yaml(path))


class LogisticConfig(BaseModel):
    """Configuration for the logistic model output."""

    link_function: LinkFunction = LinkFunction.SIGMOID
    classification_threshold: float = Field(default=0.5, ge=0.0, le=1.0)


class DatasetConfig(BaseModel):
    """Configuration for loading and splitting a data set."""

    path: Optional[str] = None
    format: str = Field(default="text", pattern="^(text|mnist)$")
    train_percent: float = Field(default=70.0, gt=0.0, le=100.0)
    test_percent: float = Field(default=30.0, ge=0.0, lt=100.0)
    random_seed: Optional[int] = 42

    @model_validator(mode="after")
    def _check_split(self) -> DatasetConfig:
        if not math.isclose(self.train_percent + self.test_percent, 100.0):
            raise ValueError(
                f"train_percent ({self.train_percent}) + test_percent "
                f"({self.test_percent}) must equal 100"
            )
        return self


class SweepConfig(BaseModel):
    """L2 penalties tried by the penalty sweep."""

    penalties: List[float] = Field(
        default=[0.0, 0.1, 0.3, 0.6, 1.0, 3.0, 6.0, 10.0, 30.0, 60.0]
    )

    @model_validator(mode="after")
    def _check_penalties(self) -> SweepConfig:
        if any(p < 0 for p in self.penalties):
            raise ValueError(f"penalties must all be >= 0, got {self.penalties}")
        return self


class ExperimentConfig(BaseModel):
    """Top-level configuration for a single run or a penalty sweep."""

    model: ModelFamily = ModelFamily.LOGISTIC
    dataset: DatasetConfig = Field(default_factory=DatasetConfig)
    features: FeatureConfig = Field(default_factory=FeatureConfig)
    gradient_descent: GradientDescentConfig = Field(
        default_factory=GradientDescentConfig
    )
    logistic: LogisticConfig = Field(default_factory=LogisticConfig)
    sweep: SweepConfig = Field(default_factory=SweepConfig)
    output_dir: str = "output"

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> ExperimentConfig:
        """Load config from YAML file.

        Args:
            path: Path to YAML file. If None, uses configs/logistic.yaml.
        """
        if path is None:
            path = CONFIGS_DIR / "logistic.yaml"
        return cls(**load_yaml(path))
