# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
GenModels: autoencoder-style generative models on PyTorch, with a batch
scheduling engine and a generic training driver.
"""

__version__ = "0.1.0"
