# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Optimizer factory and parameter update rule for GenModels.

The update rule couples the optimizer step with the gradient reset: every
trainable parameter is moved by the optimizer and then has its gradient
zeroed in place, so the next backward pass starts from a clean state.
Skipping the reset would silently accumulate gradients across steps.
"""

import torch
import torch.nn as nn

from genmodels.config.schema import TrainConfig


def create_optimizer(
    model: nn.Module,
    train_config: TrainConfig,
) -> torch.optim.Adam:
    """
    Create the default Adam optimizer over the model's trainable parameters.

    Args:
        model: The model whose parameters to optimize.
        train_config: Validated training configuration.

    Returns:
        Configured Adam optimizer.
    """
    return torch.optim.Adam(trainable_parameters(model), lr=train_config.learning_rate)


def trainable_parameters(model: nn.Module) -> list[nn.Parameter]:
    """Return the parameters of `model` that receive gradients."""
    return [p for p in model.parameters() if p.requires_grad]


def update(model: nn.Module, optimizer: torch.optim.Optimizer) -> None:
    """
    Apply one optimizer step and clear every parameter gradient.

    The optimizer keeps its per-parameter state (e.g. Adam moments) to
    itself; after the step each gradient is exactly zero, not None, so
    callers and clipping code can keep treating it as a tensor.

    Args:
        model: Model whose trainable parameters are updated.
        optimizer: Optimizer holding (a subset of) those parameters.
    """
    optimizer.step()
    for param in trainable_parameters(model):
        if param.grad is not None:
            param.grad.zero_()
