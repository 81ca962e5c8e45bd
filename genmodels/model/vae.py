# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Variational autoencoder with a unit-variance Gaussian decoder.

The encoder outputs the mean and log-variance of a diagonal Gaussian over
the latent code; codes are drawn with the reparameterisation trick. The
loss is ``beta * KL - loglikelihood`` where the log-likelihood (up to its
additive constant) is averaged over `n_samples` latent draws.

Noise for the reparameterisation normally comes from torch.randn_like. A
NoiseBuffer can be installed instead to refill one pre-allocated tensor per
draw rather than allocating a new one every step.
"""

import contextlib
import logging
from typing import Callable, Iterator

import torch
import torch.nn as nn

from genmodels.config.schema import TrainConfig
from genmodels.logging.logger import get_logger
from genmodels.model.builder import ae_layer_builder, layer_sizes
from genmodels.model.interfaces import GenerativeModel, evaluation_mode, to_rows

logger: logging.Logger = get_logger(__name__)

NoiseFn = Callable[[torch.Tensor, int], torch.Tensor]


def standard_noise(like: torch.Tensor, draw: int) -> torch.Tensor:
    """Fresh standard-normal noise shaped like `like`."""
    return torch.randn_like(like)


class NoiseBuffer:
    """
    Pre-allocated standard-normal noise, refilled in place on every draw.

    One separate tensor per latent draw of a loss evaluation: all draws of
    one step are saved in the autograd graph until the backward pass, and
    views of a shared base would share its version counter. Batches smaller
    than the buffer (the trailing short batch of an epoch) use a leading
    slice; larger ones fall back to fresh noise.

    Args:
        n_draws: Latent draws per loss evaluation.
        n_rows: Largest batch size served from the buffer.
        zdim: Latent dimension.
        device: Device of the buffer.
        dtype: Dtype of the buffer.
    """

    def __init__(
        self,
        n_draws: int,
        n_rows: int,
        zdim: int,
        device: torch.device | str | None = None,
        dtype: torch.dtype | None = None,
    ) -> None:
        self.n_rows = n_rows
        self.slots: list[torch.Tensor] = [
            torch.empty(n_rows, zdim, device=device, dtype=dtype) for _ in range(n_draws)
        ]

    def __call__(self, like: torch.Tensor, draw: int) -> torch.Tensor:
        n_rows = like.shape[0]
        if draw >= len(self.slots) or n_rows > self.n_rows:
            return torch.randn_like(like)
        return self.slots[draw][:n_rows].normal_()


class VAE(GenerativeModel):
    """
    Dense variational autoencoder.

    Args:
        xdim: Input dimension.
        zdim: Latent code dimension.
        n_layers: Dense layers in the encoder (and in the decoder), at least 2.
        hdim: Constant hidden width; None interpolates between xdim and zdim.
        activation: Hidden-layer activation name.
        n_samples: Latent draws used to estimate the log-likelihood.
        beta: Weight of the KL term.
    """

    def __init__(
        self,
        xdim: int,
        zdim: int,
        n_layers: int,
        hdim: int | None = None,
        activation: str = "relu",
        n_samples: int = 1,
        beta: float = 1.0,
    ) -> None:
        super().__init__()
        if n_layers < 2:
            raise ValueError(f"A VAE needs at least 2 layers, got {n_layers}")
        if n_samples < 1:
            raise ValueError(f"n_samples must be positive, got {n_samples}")

        esize = layer_sizes(xdim, zdim, n_layers, hdim)
        dsize = list(reversed(esize))
        esize[-1] = 2 * zdim  # mean and log-variance

        self.xdim = xdim
        self.zdim = zdim
        self.n_samples = n_samples
        self.beta = beta
        self.encoder: nn.Sequential = ae_layer_builder(esize, activation)
        self.decoder: nn.Sequential = ae_layer_builder(dsize, activation)
        self.noise: NoiseFn = standard_noise

    def _posterior(self, x: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
        """Row-major mean and log-variance of q(z|x)."""
        mu, logvar = self.encoder(to_rows(x)).chunk(2, dim=-1)
        return mu, logvar

    def _draw(self, mu: torch.Tensor, logvar: torch.Tensor, draw: int = 0) -> torch.Tensor:
        return mu + torch.exp(0.5 * logvar) * self.noise(mu, draw)

    def encode(self, x: torch.Tensor) -> torch.Tensor:
        """One latent draw (zdim, n) for the batch x (xdim, n)."""
        return to_rows(self._draw(*self._posterior(x)))

    def decode(self, z: torch.Tensor) -> torch.Tensor:
        """Decoder means (xdim, n) of the codes z (zdim, n)."""
        return to_rows(self.decoder(to_rows(z)))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.decode(self.encode(x))

    def kl(self, x: torch.Tensor) -> torch.Tensor:
        """KL divergence between q(z|x) and the unit Gaussian, averaged over the batch."""
        mu, logvar = self._posterior(x)
        return 0.5 * torch.sum(mu.pow(2) + logvar.exp() - logvar - 1.0, dim=-1).mean()

    def loglikelihood(self, x: torch.Tensor) -> torch.Tensor:
        """
        Unit-variance Gaussian log-likelihood of the reconstructions, without
        its constant, averaged over the batch and over `n_samples` draws.
        """
        mu, logvar = self._posterior(x)
        x_rows = to_rows(x)
        total = x.new_zeros(())
        for draw in range(self.n_samples):
            x_hat = self.decoder(self._draw(mu, logvar, draw))
            total = total - 0.5 * torch.sum((x_rows - x_hat).pow(2), dim=-1).mean()
        return total / self.n_samples

    def loss(self, x: torch.Tensor) -> torch.Tensor:
        return self.beta * self.kl(x) - self.loglikelihood(x)

    def get_losses(self, x: torch.Tensor) -> dict[str, float]:
        with evaluation_mode(self):
            loglik = self.loglikelihood(x).item()
            kl = self.kl(x).item()
        return {"loss": self.beta * kl - loglik, "loglikelihood": loglik, "KL": kl}

    def sample(self, n: int = 1) -> torch.Tensor:
        """Decoder means (xdim, n) for `n` codes drawn from the prior."""
        param = next(self.parameters())
        z = torch.randn(self.zdim, n, device=param.device, dtype=param.dtype)
        with evaluation_mode(self):
            return self.decode(z)

    @contextlib.contextmanager
    def use_noise(self, noise: NoiseFn) -> Iterator[None]:
        """Temporarily replace the noise source used for latent draws."""
        previous = self.noise
        self.noise = noise
        try:
            yield
        finally:
            self.noise = previous

    def _fit_context(self, train_config: TrainConfig, batch_size: int) -> contextlib.AbstractContextManager:
        if not train_config.prealloc_noise:
            return contextlib.nullcontext()
        param = next(self.parameters())
        logger.debug(
            "Pre-allocating latent noise",
            extra={"n_draws": self.n_samples, "rows": batch_size, "zdim": self.zdim},
        )
        buffer = NoiseBuffer(
            self.n_samples, batch_size, self.zdim, device=param.device, dtype=param.dtype
        )
        return self.use_noise(buffer)

    def _fit_clip_grad(self, train_config: TrainConfig) -> bool:
        # the KL term of a fresh VAE can produce huge gradients
        return True
