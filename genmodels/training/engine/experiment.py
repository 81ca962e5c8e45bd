# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config-driven training runs for GenModels.

run_experiment wires a loaded GenModelsConfig to the library: it applies
the global log level, builds the model with the global seed, fits it and,
when an experiment directory is given, leaves a record of the run there:

    <experiment_dir>/
      ├── config.json   : frozen config snapshot
      └── history.json  : tracked loss curves (when a history was kept)
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import torch

from genmodels.config.schema import GenModelsConfig
from genmodels.logging.logger import get_logger, set_log_level
from genmodels.model.factory import build_model
from genmodels.model.interfaces import GenerativeModel
from genmodels.training.metrics.core import MetricHistory

logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class ExperimentResult:
    """The trained model, its optimizer and the tracked history."""

    model: GenerativeModel
    optimizer: torch.optim.Optimizer
    history: MetricHistory


def run_experiment(
    config: GenModelsConfig,
    data: torch.Tensor | np.ndarray,
    history: Optional[MetricHistory] = None,
    experiment_dir: Optional[Path] = None,
) -> ExperimentResult:
    """
    Build and fit the model described by `config` on `data`.

    Args:
        config: Validated config with `model` and `train` sections.
        data: Dataset of shape (features, n).
        history: Sink for tracked losses; a new one is created when None.
        experiment_dir: Optional directory for the config and history snapshot.

    Returns:
        ExperimentResult with the fitted model.

    Raises:
        RuntimeError: If the model or train section is missing.
    """
    if config.model is None:
        raise RuntimeError("Model config is required for training")
    if config.train is None:
        raise RuntimeError("Training config is required")

    set_log_level(config.global_config.log_level)
    seed = config.global_config.seed

    if history is None:
        history = MetricHistory()

    model = build_model(config.model, seed=seed)
    optimizer = model.fit(data, config.train, history=history, seed=seed)

    if experiment_dir is not None:
        experiment_dir.mkdir(parents=True, exist_ok=True)
        (experiment_dir / "config.json").write_text(
            json.dumps(config.model_dump(by_alias=True), indent=2, default=str),
            encoding="utf-8",
        )
        (experiment_dir / "history.json").write_text(
            json.dumps(history.as_dict(), indent=2),
            encoding="utf-8",
        )
        logger.info("Experiment saved", extra={"path": str(experiment_dir)})

    return ExperimentResult(model=model, optimizer=optimizer, history=history)
