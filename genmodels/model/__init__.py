# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
GenModels model package.

Dense autoencoder-style generative models trained on sample-last data:
  - AE: plain autoencoder, MSE reconstruction loss
  - VAE: variational autoencoder, KL + Gaussian log-likelihood
"""

from genmodels.model.ae import AE
from genmodels.model.factory import build_model
from genmodels.model.interfaces import GenerativeModel
from genmodels.model.vae import VAE, NoiseBuffer

__all__ = ["AE", "VAE", "GenerativeModel", "NoiseBuffer", "build_model"]
