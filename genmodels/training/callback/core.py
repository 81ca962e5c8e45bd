# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Training callbacks for GenModels.

The training driver calls its callback once per step as
`callback(model, batch, loss, optimizer)`. A callback observes; it never
steers the loop. Two implementations are provided:

  - fast_callback: does nothing. For runs where throughput matters and no
    telemetry is wanted.
  - BasicCallback: counts steps, pushes the current scalar losses to a
    MetricHistory when one is attached, and drives a tqdm progress bar.

BasicCallback does not know any model type. What it records comes from an
injected `metrics_fn(model, batch) -> dict[str, float]`; by default it asks
the model for `model.get_losses(batch)`. One callback therefore serves every
model family.

Displayed losses are recomputed only on the first step and every
`show_every` steps; between those the cached values are shown again, so the
progress bar does not cost an extra loss evaluation per step.
"""

import logging
import math
from typing import Any, Callable, Optional, Protocol, Sequence

import torch
import torch.nn as nn
from tqdm import tqdm

from genmodels.logging.logger import get_logger
from genmodels.training.metrics.core import MetricHistory

logger: logging.Logger = get_logger(__name__)

MetricsFn = Callable[[nn.Module, torch.Tensor], dict[str, float]]


class Callback(Protocol):
    """Anything the training driver can call once per step."""

    def __call__(
        self,
        model: nn.Module,
        batch: torch.Tensor,
        loss: Callable[..., torch.Tensor] | Sequence[Callable[..., torch.Tensor]],
        optimizer: torch.optim.Optimizer | Sequence[torch.optim.Optimizer],
    ) -> None: ...


def fast_callback(model: Any, batch: Any, loss: Any, optimizer: Any) -> None:
    """A callback with no overhead."""
    return None


def model_losses(model: nn.Module, batch: torch.Tensor) -> dict[str, float]:
    """Default metric extractor: the model's own named scalar losses."""
    get_losses = getattr(model, "get_losses", None)
    if get_losses is None:
        raise TypeError(
            f"{type(model).__name__} has no get_losses(); pass metrics_fn to BasicCallback"
        )
    return get_losses(batch)


class BasicCallback:
    """
    Tracking callback: step counter, metric history and progress display.

    Args:
        history: Optional sink for the scalar losses. None disables tracking.
        verbose: Whether to show the progress bar.
        show_every: Recompute the displayed losses every this many steps.
        train_length: Expected number of steps, used as the bar total.
        epoch_size: Steps per epoch, used to show the epoch number.
        metrics_fn: Extracts named scalars from (model, batch).

    Attributes:
        iteration: Number of completed calls.
        progress_values: Cached display values (epoch, iteration, losses).
    """

    def __init__(
        self,
        history: Optional[MetricHistory],
        verbose: bool,
        show_every: int,
        train_length: int = 0,
        epoch_size: int = 1,
        metrics_fn: Optional[MetricsFn] = None,
    ) -> None:
        if show_every < 1:
            raise ValueError(f"show_every must be positive, got {show_every}")
        if epoch_size < 1:
            raise ValueError(f"epoch_size must be positive, got {epoch_size}")

        self.history = history
        self.verbose = verbose
        self.show_every = show_every
        self.train_length = train_length
        self.epoch_size = epoch_size
        self.metrics_fn = metrics_fn if metrics_fn is not None else model_losses

        self.iteration = 0
        self.progress_values: dict[str, float | int] = {}
        self.progress: Optional[tqdm] = None

    def _open_progress(self) -> tqdm:
        return tqdm(total=self.train_length or None, mininterval=0.3, leave=True)

    def __call__(
        self,
        model: nn.Module,
        batch: torch.Tensor,
        loss: Any,
        optimizer: Any,
    ) -> None:
        self.iteration += 1

        if self.history is not None:
            for name, value in self.metrics_fn(model, batch).items():
                self.history.push(name, value, index=self.iteration)

        if not self.verbose:
            return

        if self.iteration % self.show_every == 0 or self.iteration == 1:
            losses = self.metrics_fn(model, batch)
            self.progress_values = {
                "epoch": math.ceil(self.iteration / self.epoch_size),
                "iteration": self.iteration,
                **{name: float(value) for name, value in losses.items()},
            }
            logger.info("Training progress", extra=dict(self.progress_values))

        if self.progress is None:
            self.progress = self._open_progress()
        self.progress.set_postfix(self.progress_values, refresh=False)
        self.progress.update(1)

    def reset(self) -> None:
        """Zero the step counter and drop the cached display state."""
        self.close()
        self.iteration = 0
        self.progress_values = {}

    def close(self) -> None:
        """Close the progress bar, if one is open."""
        if self.progress is not None:
            self.progress.close()
            self.progress = None
