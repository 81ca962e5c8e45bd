# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Generic training driver for GenModels.

For every batch, in order, the loop is explicit:
  1. Device transfer (optional hook, no-op by default)
  2. Gradient clipping of the current, pre-step gradients (optional)
  3. Loss evaluation
  4. Backward pass
  5. Optimizer step + gradient reset (the update rule)
  6. Callback
  7. Memory reclamation (optional)

Steps 3-5 run once per (loss, optimizer) pair. Passing sequences of losses
and optimizers lets adversarial or two-stage models alternate encoder,
decoder and discriminator updates on the same batch.

The loop is single-threaded and synchronous, with one batch in flight. It
never catches: an error in any step ends the run and reaches the caller
unchanged. A run either completes every scheduled batch or aborts.
"""

import gc
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

import torch
import torch.nn as nn

from genmodels.config.schema import DEFAULT_GRAD_CLIP_BOUND
from genmodels.logging.logger import get_logger
from genmodels.training.callback.core import Callback
from genmodels.training.clipping.core import clip_model_gradients
from genmodels.training.optimizer.core import update

logger: logging.Logger = get_logger(__name__)

LossFn = Callable[[torch.Tensor], torch.Tensor]
DeviceHook = Callable[[torch.Tensor], torch.Tensor]


@dataclass(frozen=True)
class TrainingResult:
    """Summary of a finished training run."""

    n_steps: int
    final_loss: float


def device_hook_for(device: str | torch.device) -> DeviceHook:
    """Build a device-transfer hook moving each batch to `device`."""
    target = torch.device(device)

    def _to_device(batch: torch.Tensor) -> torch.Tensor:
        return batch.to(target)

    return _to_device


def reclaim_memory() -> None:
    """Run a garbage-collection pass and release cached accelerator memory."""
    gc.collect()
    if torch.cuda.is_available():
        torch.cuda.empty_cache()


def _as_pairs(
    loss: LossFn | Sequence[LossFn],
    optimizer: torch.optim.Optimizer | Sequence[torch.optim.Optimizer],
) -> list[tuple[LossFn, torch.optim.Optimizer]]:
    """Normalise single or sequenced (loss, optimizer) arguments to pairs."""
    if isinstance(loss, (list, tuple)):
        if not isinstance(optimizer, (list, tuple)) or len(optimizer) != len(loss):
            raise ValueError(
                "A sequence of losses needs a sequence of optimizers of the same length"
            )
        return list(zip(loss, optimizer))
    if isinstance(optimizer, (list, tuple)):
        raise ValueError("A sequence of optimizers needs a sequence of losses")
    return [(loss, optimizer)]


def loss_back_update(
    model: nn.Module,
    batch: torch.Tensor,
    loss: LossFn | Sequence[LossFn],
    optimizer: torch.optim.Optimizer | Sequence[torch.optim.Optimizer],
) -> float:
    """
    One training step on `batch`: loss, backward pass and update.

    With sequences, each (loss, optimizer) pair runs in the given order
    against the same batch.

    Returns:
        The scalar value of the last evaluated loss.
    """
    value = float("nan")
    for loss_fn, opt in _as_pairs(loss, optimizer):
        loss_value = loss_fn(batch)
        loss_value.backward()
        update(model, opt)
        value = loss_value.item()
    return value


def train(
    model: nn.Module,
    batches: Iterable[torch.Tensor],
    loss: LossFn | Sequence[LossFn],
    optimizer: torch.optim.Optimizer | Sequence[torch.optim.Optimizer],
    callback: Callback,
    *,
    device_hook: Optional[DeviceHook] = None,
    memory_efficient: bool = False,
    clip_grad: bool = False,
    grad_clip_bound: float = DEFAULT_GRAD_CLIP_BOUND,
) -> TrainingResult:
    """
    Run the training loop over `batches`.

    Args:
        model: The model being trained.
        batches: Batches in training order, typically collect_all(sampler).
        loss: Batch -> scalar loss, or a sequence of such functions.
        optimizer: Optimizer, or a sequence matching `loss`.
        callback: Called as callback(model, batch, loss, optimizer) after
            every step.
        device_hook: Applied to every batch before it is used.
        memory_efficient: Reclaim memory after every batch. Slower, but
            bounds peak memory.
        clip_grad: Clamp the current gradients before each step.
        grad_clip_bound: Elementwise bound used when clipping.

    Returns:
        TrainingResult with the number of steps and the last loss value.

    Raises:
        ValueError: If loss and optimizer sequences do not pair up.
        Any error raised by the loss, backward pass, optimizer or callback,
        unchanged.
    """
    _as_pairs(loss, optimizer)

    n_steps = 0
    last_loss = float("nan")
    logger.debug(
        "Training started",
        extra={"clip_grad": clip_grad, "memory_efficient": memory_efficient},
    )

    for batch in batches:
        if device_hook is not None:
            batch = device_hook(batch)

        if clip_grad:
            clip_model_gradients(model, grad_clip_bound)

        last_loss = loss_back_update(model, batch, loss, optimizer)
        callback(model, batch, loss, optimizer)
        n_steps += 1

        if memory_efficient:
            reclaim_memory()

    logger.debug(
        "Training finished",
        extra={"steps": n_steps, "final_loss": last_loss},
    )
    return TrainingResult(n_steps=n_steps, final_loss=last_loss)
