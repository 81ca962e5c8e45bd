# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Model factory for GenModels.

Turns the `model` section of a run configuration into a model instance.
Model families are looked up by `kind`, so adding one means adding a
builder to _BUILDERS and a value to ModelConfig.kind.
"""

import logging
from typing import Callable

import torch

from genmodels.config.schema import ModelConfig
from genmodels.logging.logger import get_logger
from genmodels.model.ae import AE
from genmodels.model.interfaces import GenerativeModel
from genmodels.model.vae import VAE

logger: logging.Logger = get_logger(__name__)


def _build_ae(config: ModelConfig) -> GenerativeModel:
    return AE(
        config.xdim,
        config.zdim,
        config.n_layers,
        hdim=config.hdim,
        activation=config.activation,
    )


def _build_vae(config: ModelConfig) -> GenerativeModel:
    return VAE(
        config.xdim,
        config.zdim,
        config.n_layers,
        hdim=config.hdim,
        activation=config.activation,
        n_samples=config.n_samples,
        beta=config.beta,
    )


_BUILDERS: dict[str, Callable[[ModelConfig], GenerativeModel]] = {
    "ae": _build_ae,
    "vae": _build_vae,
}


def build_model(config: ModelConfig, seed: int | None = None) -> GenerativeModel:
    """
    Construct the model described by `config`.

    Args:
        config: Validated model section.
        seed: When given, torch's global RNG is seeded first so parameter
              initialisation is reproducible.

    Returns:
        The freshly initialised model.
    """
    if seed is not None:
        torch.manual_seed(seed)

    model = _BUILDERS[config.kind](config)
    n_params = sum(p.numel() for p in model.parameters())
    logger.info(
        "Model created",
        extra={"kind": config.kind, "parameters": n_params, "n_layers": config.n_layers},
    )
    return model
