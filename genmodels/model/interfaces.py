# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Base class shared by the GenModels generative models.

Data layout follows the samplers: a batch has shape ``(features, n)`` with
the sample axis last. Subclasses define their training loss and the named
scalar losses used for tracking; fitting is shared and goes through the
generic training driver.

Contract for subclasses:
  - loss(x) -> scalar tensor with autograd history
  - get_losses(x) -> dict[str, float], evaluated without gradients; the
    first entry is the training loss itself
  - optionally _fit_context(...) and _fit_clip_grad(...) to customise fit
"""

import contextlib
import logging
from abc import ABC, abstractmethod
from typing import Iterator, Optional

import numpy as np
import torch
import torch.nn as nn

from genmodels.config.schema import TrainConfig
from genmodels.logging.logger import get_logger
from genmodels.training.callback.core import BasicCallback, Callback, fast_callback
from genmodels.training.engine.core import device_hook_for, train
from genmodels.training.metrics.core import MetricHistory
from genmodels.training.optimizer.core import create_optimizer
from genmodels.training.sampler.core import EpochSampler, collect_all

logger: logging.Logger = get_logger(__name__)


class GenerativeModel(nn.Module, ABC):
    """Autoencoder-style model trained on sample-last batches."""

    @abstractmethod
    def loss(self, x: torch.Tensor) -> torch.Tensor:
        """Training loss of batch `x`."""
        ...

    @abstractmethod
    def get_losses(self, x: torch.Tensor) -> dict[str, float]:
        """Current named scalar losses of batch `x`, without gradients."""
        ...

    def _fit_context(self, train_config: TrainConfig, batch_size: int) -> contextlib.AbstractContextManager:
        """Context active for the duration of fit. Default: nothing."""
        return contextlib.nullcontext()

    def _fit_clip_grad(self, train_config: TrainConfig) -> bool:
        """Whether fit clips gradients before each step."""
        return train_config.clip_grad

    def fit(
        self,
        data: torch.Tensor | np.ndarray,
        train_config: TrainConfig,
        history: Optional[MetricHistory] = None,
        optimizer: Optional[torch.optim.Optimizer] = None,
        seed: Optional[int] = None,
    ) -> torch.optim.Optimizer:
        """
        Fit the model on `data` with an epoch schedule.

        Builds an EpochSampler, an Adam optimizer (unless one is passed, e.g.
        to continue a previous fit with its state) and a callback chosen by
        ``train_config.runtype``, then runs the training driver.

        Args:
            data: Dataset of shape (features, n).
            train_config: Batch size, epochs, learning rate and loop switches.
            history: Optional sink for the tracked losses.
            optimizer: Optimizer to reuse; a new Adam is created when None.
            seed: Optional seed for the batch schedule.

        Returns:
            The optimizer, so its state can be reused by the next fit.
        """
        # no copy when the dtype already matches the parameters
        data = torch.as_tensor(data, dtype=next(self.parameters()).dtype)
        sampler = EpochSampler(data, train_config.n_epochs, train_config.batch_size, seed=seed)

        if optimizer is None:
            optimizer = create_optimizer(self, train_config)

        callback: Callback
        if train_config.runtype == "experimental":
            callback = BasicCallback(
                history,
                train_config.verbose,
                train_config.show_every,
                train_length=sampler.total_batches,
                epoch_size=sampler.epoch_size,
            )
        else:
            callback = fast_callback

        device_hook = None
        if train_config.device != "cpu":
            self.to(train_config.device)
            device_hook = device_hook_for(train_config.device)

        logger.info(
            "Fit started",
            extra={
                "model": type(self).__name__,
                "n_samples": sampler.n_samples,
                "batch_size": sampler.batch_size,
                "n_epochs": sampler.n_epochs,
                "epoch_size": sampler.epoch_size,
                "runtype": train_config.runtype,
            },
        )

        self.train()
        try:
            with self._fit_context(train_config, sampler.batch_size):
                result = train(
                    self,
                    collect_all(sampler),
                    self.loss,
                    optimizer,
                    callback,
                    device_hook=device_hook,
                    memory_efficient=train_config.memory_efficient,
                    clip_grad=self._fit_clip_grad(train_config),
                    grad_clip_bound=train_config.grad_clip_bound,
                )
        finally:
            if isinstance(callback, BasicCallback):
                callback.close()

        logger.info(
            "Fit complete",
            extra={"steps": result.n_steps, "final_loss": result.final_loss},
        )
        return optimizer


def to_rows(x: torch.Tensor) -> torch.Tensor:
    """Sample-last ``(features, n)`` to row-major ``(n, features)`` and back."""
    return x.t()


@contextlib.contextmanager
def evaluation_mode(model: nn.Module) -> Iterator[None]:
    """Disable autograd and restore the model's train/eval flag afterwards."""
    was_training = model.training
    model.eval()
    try:
        with torch.no_grad():
            yield
    finally:
        model.train(was_training)
