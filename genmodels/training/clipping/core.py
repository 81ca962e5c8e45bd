# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Elementwise gradient clipping.

Clamping each gradient entry into [-bound, bound] suppresses rare numeric
blow-ups. With the default bound of 1e4 normal-magnitude gradients are left
untouched. Clipping is optional per training run.
"""

import torch
import torch.nn as nn
from torch.nn.utils import clip_grad_value_

from genmodels.config.schema import DEFAULT_GRAD_CLIP_BOUND


def _check_bound(bound: float) -> None:
    if bound <= 0:
        raise ValueError(f"Gradient clip bound must be positive, got {bound}")


def clip_gradient(grad: torch.Tensor, bound: float = DEFAULT_GRAD_CLIP_BOUND) -> torch.Tensor:
    """
    Clamp `grad` into [-bound, bound] in place.

    Args:
        grad: Gradient tensor, modified in place.
        bound: Positive elementwise bound.

    Returns:
        The same tensor, for chaining.
    """
    _check_bound(bound)
    return grad.clamp_(-bound, bound)


def clip_model_gradients(model: nn.Module, bound: float = DEFAULT_GRAD_CLIP_BOUND) -> None:
    """
    Clamp the gradient of every model parameter that currently holds one.

    Parameters without a gradient (nothing has been back-propagated into
    them yet) are skipped.
    """
    _check_bound(bound)
    params = [p for p in model.parameters() if p.grad is not None]
    if not params:
        return
    clip_grad_value_(params, clip_value=bound)
