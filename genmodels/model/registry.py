# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Activation registry for GenModels layer builders.

Configs name activations by string ("relu", "tanh", ...). The registry maps
that string to an ``nn.Module`` class so the builders need no if/else chains.
It is populated once at import time by ``_register_builtins()``.
"""

import logging

import torch.nn as nn

from genmodels.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)

_ACTIVATION_REGISTRY: dict[str, type[nn.Module]] = {}


def register_activation(name: str, cls: type[nn.Module]) -> None:
    """
    Register an activation module class under a unique name.

    Args:
        name: Config-level identifier (e.g. ``"relu"``).
        cls: The ``nn.Module`` subclass to register.

    Raises:
        ValueError: If ``name`` is already registered.
    """
    if name in _ACTIVATION_REGISTRY:
        raise ValueError(
            f"Activation '{name}' is already registered to {_ACTIVATION_REGISTRY[name].__name__}"
        )
    _ACTIVATION_REGISTRY[name] = cls
    logger.debug("registered_activation", extra={"name": name, "cls": cls.__name__})


def get_activation(name: str) -> type[nn.Module]:
    """
    Retrieve a registered activation class by name.

    Raises:
        KeyError: If ``name`` is not registered.
    """
    if name not in _ACTIVATION_REGISTRY:
        available = sorted(_ACTIVATION_REGISTRY.keys())
        raise KeyError(f"Unknown activation '{name}'. Available: {available}")
    return _ACTIVATION_REGISTRY[name]


def list_activations() -> list[str]:
    """Return sorted list of all registered activation names."""
    return sorted(_ACTIVATION_REGISTRY.keys())


_BUILTINS_REGISTERED: bool = False


def _register_builtins() -> None:
    """Register the torch activations used by the dense builders. Idempotent."""
    global _BUILTINS_REGISTERED
    if _BUILTINS_REGISTERED:
        return

    register_activation("relu", nn.ReLU)
    register_activation("leaky_relu", nn.LeakyReLU)
    register_activation("elu", nn.ELU)
    register_activation("tanh", nn.Tanh)
    register_activation("sigmoid", nn.Sigmoid)
    register_activation("softplus", nn.Softplus)
    register_activation("swish", nn.SiLU)
    register_activation("identity", nn.Identity)
    register_activation("linear", nn.Identity)

    _BUILTINS_REGISTERED = True


_register_builtins()
