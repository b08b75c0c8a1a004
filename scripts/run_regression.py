#!/usr/bin/env python
"""
Train a linear or logistic regression model by batch gradient descent.

Loads a whitespace-delimited data file (or the MNIST IDX files), maps the
features to polynomial terms, normalizes them, fits the model on the
training split and reports on the test split. With --sweep, refits once
per L2 penalty and records the final training cost for each.

Outputs (in a timestamped directory):
- config.yaml: resolved configuration
- cost.dat: "#Iteration #Cost" trace of the single fit
- lamda_cost.dat: "#Lamda #Cost" trace of the sweep
- model.dat: "#Feature #Target" fitted curve (linear, one raw feature)
- model.npz: fitted parameters
- results.json: metrics

Usage:
    python scripts/run_regression.py --config configs/linear.yaml
    python scripts/run_regression.py --data data/chip.dat --model logistic --degree 6
    python scripts/run_regression.py --config configs/logistic.yaml --sweep
    python scripts/run_regression.py --mnist data/mnist --config configs/mnist.yaml
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import yaml

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from regression.config import ExperimentConfig, LinkFunction, ModelFamily
from regression.evaluation.metrics import format_confusion_matrix
from regression.experiments.runner import load_split, run_fit, run_penalty_sweep
from regression.io.traces import write_model_curve


def build_config(args: argparse.Namespace) -> ExperimentConfig:
    """Load the YAML config and apply command line overrides."""
    config_path = Path(args.config) if args.config else None
    cfg = ExperimentConfig.from_yaml(config_path)

    if args.data:
        cfg.dataset.path = args.data
        cfg.dataset.format = "text"
    if args.mnist:
        cfg.dataset.path = args.mnist
        cfg.dataset.format = "mnist"
        cfg.model = ModelFamily.LOGISTIC
        cfg.logistic.link_function = LinkFunction.SOFTMAX
    if args.model:
        cfg.model = ModelFamily(args.model)
    if args.degree is not None:
        cfg.features.degree = args.degree
    if args.lamda is not None:
        cfg.gradient_descent.l2_penalty = args.lamda
    if args.alpha is not None:
        cfg.gradient_descent.learning_rate = args.alpha
    if args.max_iterations is not None:
        cfg.gradient_descent.max_iterations = args.max_iterations

    # Re-validate after overrides
    return ExperimentConfig.model_validate(cfg.model_dump())


def main():
    parser = argparse.ArgumentParser(
        description="Polynomial linear/logistic regression by batch gradient descent"
    )
    parser.add_argument("--config", type=str, help="Path to config YAML file")
    parser.add_argument("--data", type=str, help="Whitespace-delimited data file (overrides config)")
    parser.add_argument("--mnist", type=str, help="Directory with the MNIST IDX files (softmax)")
    parser.add_argument("--model", choices=[m.value for m in ModelFamily], help="Model family")
    parser.add_argument("--degree", type=int, help="Polynomial degree")
    parser.add_argument("--lamda", type=float, help="L2 penalty")
    parser.add_argument("--alpha", type=float, help="Learning rate")
    parser.add_argument("--max-iterations", type=int, help="Iteration cap, 0 = unbounded")
    parser.add_argument("--sweep", action="store_true", help="Also run the L2 penalty sweep")
    parser.add_argument("--output", type=str, help="Base output directory (overrides config)")
    parser.add_argument("--verbose", action="store_true", help="Log training progress")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )

    cfg = build_config(args)

    # Create output directory
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base_dir = Path(args.output) if args.output else PROJECT_ROOT / cfg.output_dir
    out_dir = base_dir / f"{cfg.model.value}_{timestamp}"
    out_dir.mkdir(parents=True, exist_ok=True)

    gd = cfg.gradient_descent
    print("=" * 70)
    print(f"{cfg.model.value.capitalize()} regression by batch gradient descent")
    print("=" * 70)
    print(f"  Config: {args.config or 'configs/logistic.yaml'}")
    print(f"  Data: {cfg.dataset.path} ({cfg.dataset.format})")
    print(f"  Output: {out_dir}")
    print(f"  Degree: {cfg.features.degree} ({cfg.features.order.value})")
    print(f"  Alpha: {gd.learning_rate}  Lambda: {gd.l2_penalty}")
    print(f"  Delta: {gd.convergence_delta}  Max iterations: {gd.max_iterations}")
    if cfg.model is ModelFamily.LOGISTIC:
        print(f"  Link: {cfg.logistic.link_function.value}")
    print("=" * 70)

    # Save config to output directory
    with open(out_dir / "config.yaml", "w") as f:
        yaml.dump(cfg.model_dump(mode="json"), f, default_flow_style=False)

    backend, split = load_split(cfg.dataset, cfg.features)
    print(f"\n  Training instances: {split.n_train}")
    print(f"  Test instances: {split.n_test}")
    print(f"  Features: {split.n_features}")
    if cfg.model is ModelFamily.LOGISTIC:
        print(f"  Classes: {split.classes.tolist()}")

    model, result = run_fit(split, cfg, trace_dir=out_dir)
    model.save(out_dir / "model.npz")

    print("\n" + "=" * 70)
    print("TRAINING")
    print("=" * 70)
    print(f"  Iterations: {result.n_iterations}")
    print(f"  Converged: {result.converged}")
    print(f"  Final cost: {result.final_cost:.6f}")

    print("\n" + "=" * 70)
    print("TEST SET")
    print("=" * 70)
    if result.test_cost is not None:
        print(f"  Cost: {result.test_cost:.6f}")
    if result.confusion_matrix is not None:
        print("\n  Confusion matrix:")
        print(format_confusion_matrix(result.confusion_matrix).to_string())
        print()
        for name in ("precision", "recall", "specificity", "accuracy", "f1"):
            print(f"  {name.capitalize():<12} {result.metrics[name]:.4f}")
    if result.test_rmse is not None:
        print(f"  RMSE: {result.test_rmse:.4f}")
        print(f"  R2:   {result.test_r2:.4f}")

    if (
        cfg.model is ModelFamily.LINEAR
        and backend.transformer is not None
        and backend.transformer.n_features_in == 1
    ):
        write_model_curve(out_dir / "model.dat", model, backend.transformer)

    results = {"fit": result.to_dict()}

    if args.sweep:
        print("\n" + "=" * 70)
        print(f"L2 PENALTY SWEEP: {cfg.sweep.penalties}")
        print("=" * 70)
        rows = run_penalty_sweep(split, cfg, output_dir=out_dir)
        results["sweep"] = [vars(r) for r in rows]
        for r in rows:
            f1 = f"{r.f1:.4f}" if r.f1 is not None else "-"
            test_cost = f"{r.test_cost:.6f}" if r.test_cost is not None else "-"
            print(f"  lambda={r.l2_penalty:<6g} J={r.final_cost:.6f}  test J={test_cost}  F1={f1}")

    with open(out_dir / "results.json", "w") as f:
        json.dump(results, f, indent=2)

    print("=" * 70)
    print(f"\nResults saved to: {out_dir}")
    print(f"  - Cost trace: cost.dat")
    if args.sweep:
        print(f"  - Penalty trace: lamda_cost.dat")
    print(f"  - Metrics: results.json")


if __name__ == "__main__":
    main()
