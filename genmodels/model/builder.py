# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Dense layer builders for GenModels.

Builders return plain ``nn.Sequential`` chains of Linear + activation pairs.
They work on row-major batches ``(n, features)``; the models transpose the
sample-last datasets on the way in and out.
"""

import math

import torch.nn as nn

from genmodels.model.registry import get_activation


def layer_sizes(xdim: int, zdim: int, n_layers: int, hdim: int | None = None) -> list[int]:
    """
    Layer widths from `xdim` down to `zdim` over `n_layers` layers.

    Without `hdim` the widths are interpolated linearly (rounded up), e.g.
    (10, 2, 4) -> [10, 8, 6, 4, 2]. With `hdim` every hidden layer has that
    width: (10, 2, 3, hdim=16) -> [10, 16, 16, 2].
    """
    if n_layers < 1:
        raise ValueError(f"n_layers must be at least 1, got {n_layers}")
    if hdim is not None:
        return [xdim] + [hdim] * (n_layers - 1) + [zdim]
    step = (zdim - xdim) / n_layers
    return [math.ceil(xdim + i * step - 1e-9) for i in range(n_layers)] + [zdim]


def layer_builder(
    sizes: list[int],
    activation: str,
    last_activation: str | None = None,
) -> nn.Sequential:
    """
    Build a dense chain with ``len(sizes) - 1`` layers.

    Args:
        sizes: Widths, input first, e.g. [5, 4, 3, 2] gives three layers.
        activation: Activation name applied after every layer.
        last_activation: Overrides the activation of the last layer.

    Returns:
        The assembled ``nn.Sequential``.
    """
    if len(sizes) < 2:
        raise ValueError(f"Need at least an input and an output size, got {sizes}")

    n_layers = len(sizes) - 1
    activations = [activation] * n_layers
    if last_activation is not None:
        activations[-1] = last_activation

    modules: list[nn.Module] = []
    for d_in, d_out, name in zip(sizes[:-1], sizes[1:], activations):
        modules.append(nn.Linear(d_in, d_out))
        modules.append(get_activation(name)())
    return nn.Sequential(*modules)


def ae_layer_builder(sizes: list[int], activation: str) -> nn.Sequential:
    """Encoder/decoder chain whose last layer is always linear."""
    return layer_builder(sizes, activation, last_activation="linear")
