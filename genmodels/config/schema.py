# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for GenModels.

Every config section is a frozen pydantic model. Once built, a run
configuration cannot be mutated; a fit that needs different settings gets a
new config via `model_copy(update=...)`.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

A YAML file usually holds `global:` plus `model:` and `train:` sections.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_GRAD_CLIP_BOUND: float = 1e4


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings: reproducibility (seed), observability
    (log_level) and project identity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="genmodels", description="Human-readable project identifier"
    )
    seed: int = Field(
        default=42,
        ge=0,
        description="Global random seed for model initialisation and batch sampling",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )


class ModelConfig(BaseModel):
    """
    Dense autoencoder architecture. Layer widths are interpolated linearly
    between `xdim` and `zdim` unless `hdim` fixes the hidden width.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    kind: Literal["ae", "vae"] = Field(
        default="ae",
        description="Model family: plain autoencoder or variational autoencoder",
    )
    xdim: int = Field(ge=1, description="Input (and reconstruction) dimension")
    zdim: int = Field(ge=1, description="Latent code dimension")
    n_layers: int = Field(
        default=3,
        ge=2,
        description="Number of dense layers in the encoder (the decoder mirrors it)",
    )
    hdim: Optional[int] = Field(
        default=None,
        ge=1,
        description="Constant hidden width; None means linear interpolation",
    )
    activation: str = Field(
        default="relu",
        description="Hidden-layer activation name, resolved through the activation registry",
    )
    n_samples: int = Field(
        default=1,
        ge=1,
        description="VAE only: latent draws used to estimate the log-likelihood",
    )
    beta: float = Field(
        default=1.0,
        ge=0.0,
        description="VAE only: weight of the KL term (1 = full KL, 0 = none)",
    )


class TrainConfig(BaseModel):
    """Batch schedule, optimizer and training-loop switches for one fit."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    batch_size: int = Field(
        default=256,
        ge=1,
        description="Samples per batch; clamped to the dataset size",
    )
    n_epochs: int = Field(
        default=10,
        ge=0,
        description="Number of full passes over the dataset",
    )
    learning_rate: float = Field(
        default=1e-3,
        gt=0.0,
        description="Adam learning rate",
    )
    runtype: Literal["experimental", "fast"] = Field(
        default="experimental",
        description="'experimental' tracks and displays losses, 'fast' skips all telemetry",
    )
    verbose: bool = Field(
        default=True,
        description="Show a progress bar with the cached loss values",
    )
    show_every: int = Field(
        default=200,
        ge=1,
        description="Recompute the displayed losses every this many iterations",
    )
    clip_grad: bool = Field(
        default=False,
        description="Clamp gradients elementwise before each update",
    )
    grad_clip_bound: float = Field(
        default=DEFAULT_GRAD_CLIP_BOUND,
        gt=0.0,
        description="Elementwise gradient bound used when clipping",
    )
    memory_efficient: bool = Field(
        default=False,
        description="Run garbage collection after every batch",
    )
    device: str = Field(
        default="cpu",
        description="Torch device batches are moved to, e.g. 'cpu' or 'cuda'",
    )
    prealloc_noise: bool = Field(
        default=False,
        description="VAE only: reuse one pre-allocated noise tensor for sampling",
    )


class GenModelsConfig(BaseModel):
    """
    Top-level config container.

    Sections missing from the YAML stay None; code that needs a section
    checks for it and raises.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    model: Optional[ModelConfig] = Field(default=None)
    train: Optional[TrainConfig] = Field(default=None)
