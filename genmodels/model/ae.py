# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Plain autoencoder.

Encoder and decoder are dense chains with linear outputs; the decoder
mirrors the encoder widths. Training minimises the mean squared
reconstruction error.
"""

import torch
import torch.nn as nn
import torch.nn.functional as F

from genmodels.model.builder import ae_layer_builder, layer_sizes
from genmodels.model.interfaces import GenerativeModel, evaluation_mode, to_rows


class AE(GenerativeModel):
    """
    Dense autoencoder.

    Args:
        xdim: Input dimension.
        zdim: Latent code dimension.
        n_layers: Dense layers in the encoder (and in the decoder), at least 2.
        hdim: Constant hidden width; None interpolates between xdim and zdim.
        activation: Hidden-layer activation name.
    """

    def __init__(
        self,
        xdim: int,
        zdim: int,
        n_layers: int,
        hdim: int | None = None,
        activation: str = "relu",
    ) -> None:
        super().__init__()
        if n_layers < 2:
            raise ValueError(f"An autoencoder needs at least 2 layers, got {n_layers}")

        esize = layer_sizes(xdim, zdim, n_layers, hdim)
        dsize = list(reversed(esize))
        self.xdim = xdim
        self.zdim = zdim
        self.encoder: nn.Sequential = ae_layer_builder(esize, activation)
        self.decoder: nn.Sequential = ae_layer_builder(dsize, activation)

    def encode(self, x: torch.Tensor) -> torch.Tensor:
        """Latent codes (zdim, n) of the batch x (xdim, n)."""
        return to_rows(self.encoder(to_rows(x)))

    def decode(self, z: torch.Tensor) -> torch.Tensor:
        """Reconstructions (xdim, n) of the codes z (zdim, n)."""
        return to_rows(self.decoder(to_rows(z)))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.decode(self.encode(x))

    def loss(self, x: torch.Tensor) -> torch.Tensor:
        """Reconstruction error."""
        return F.mse_loss(self(x), x)

    def get_losses(self, x: torch.Tensor) -> dict[str, float]:
        with evaluation_mode(self):
            return {"loss": self.loss(x).item()}
