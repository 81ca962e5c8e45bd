# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Batch samplers for GenModels.

A sampler turns a fixed dataset into a finite, ordered sequence of batches.
The dataset is any numeric array whose *last* axis indexes samples; all other
axes are per-sample features. Samplers do not copy the dataset: numpy input
is wrapped with torch.as_tensor (shared memory) and only the selected batches
are materialised with index_select along the sample axis. The one exception
is a numpy view with negative strides (e.g. `X[:, ::-1]`), which torch cannot
wrap; it is copied once into a contiguous array.

Two schedules are provided:
  - UniformSampler: a fixed number of independently drawn batches, with or
    without replacement. No coverage guarantee across batches.
  - EpochSampler: every sample is drawn exactly once per epoch. The last
    batch of an epoch holds whatever is left in the shuffle buffer and can be
    shorter than batch_size, so losses must tolerate a variable batch length.

Protocol:
  - next() returns the next batch, or None once the sampler is exhausted.
    Calling it again on an exhausted sampler keeps returning None.
  - reset() rewinds to the initial state without rebuilding the sampler.
  - Iterating a sampler yields batches until exhaustion.

Sample indices are 0-based: a dataset of N samples has index set {0..N-1}.
Randomness comes from a private torch.Generator, seeded when `seed` is given.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Iterator, Optional

import numpy as np
import torch

from genmodels.logging.logger import get_logger
from genmodels.training.exceptions import SamplerConfigError

logger: logging.Logger = get_logger(__name__)


def check_batch_size(n_samples: int, batch_size: int, replace: bool) -> int:
    """
    Admit a requested batch size for a population of `n_samples`.

    Without replacement a batch cannot hold more than the whole dataset, so
    larger requests are clamped to `n_samples` and a warning is logged. With
    replacement any batch size is legal.

    Args:
        n_samples: Population size N.
        batch_size: Requested batch size.
        replace: Whether sampling is done with replacement.

    Returns:
        The effective batch size.
    """
    if batch_size > n_samples and not replace:
        logger.warning(
            "Batch size too large, clamping to the number of samples",
            extra={"requested": batch_size, "n_samples": n_samples},
        )
        return n_samples
    return batch_size


class Sampler(ABC):
    """
    Shared state and protocol of all samplers.

    Args:
        data: Dataset with the sample axis last (torch.Tensor or numpy array).
            Numpy arrays with negative strides are copied, others are shared.
        batch_size: Requested batch size, admitted via check_batch_size.
        replace: Whether batch indices are drawn with replacement.
        seed: Optional seed for the sampler's random generator.

    Raises:
        SamplerConfigError: If the dataset has no sample axis or no samples,
            or the batch size is not positive.
    """

    def __init__(
        self,
        data: torch.Tensor | np.ndarray,
        batch_size: int,
        replace: bool,
        seed: Optional[int] = None,
    ) -> None:
        if isinstance(data, np.ndarray) and any(stride < 0 for stride in data.strides):
            data = np.ascontiguousarray(data)
        self.data = torch.as_tensor(data)
        if self.data.dim() == 0:
            raise SamplerConfigError("Dataset must have at least one axis (the sample axis)")

        self.n_dims = self.data.dim()
        self.n_samples = self.data.shape[-1]
        if self.n_samples == 0:
            raise SamplerConfigError("Dataset has no samples along its last axis")
        if batch_size < 1:
            raise SamplerConfigError(f"Batch size must be positive, got {batch_size}")

        self.replace = replace
        self.batch_size = check_batch_size(self.n_samples, batch_size, replace)
        self.iteration = 0

        self._generator = torch.Generator()
        if seed is None:
            self._generator.seed()
        else:
            self._generator.manual_seed(seed)

    def _select(self, indices: torch.Tensor) -> torch.Tensor:
        """Materialise the batch holding `indices` along the sample axis."""
        return self.data.index_select(self.n_dims - 1, indices)

    def _permutation(self) -> torch.Tensor:
        """A uniformly random ordering of all sample indices."""
        return torch.randperm(self.n_samples, generator=self._generator)

    @property
    @abstractmethod
    def total_batches(self) -> int:
        """Number of batches a full run (from reset to exhaustion) produces."""

    @abstractmethod
    def next(self) -> Optional[torch.Tensor]:
        """Return the next batch, or None when the sampler is exhausted."""

    @abstractmethod
    def reset(self) -> None:
        """Return to the initial, un-exhausted state."""

    def __iter__(self) -> Iterator[torch.Tensor]:
        batch = self.next()
        while batch is not None:
            yield batch
            batch = self.next()


class UniformSampler(Sampler):
    """
    Draws `n_iterations` batches, each sampled uniformly from the dataset.

    Each draw is independent: without replacement a sample never repeats
    inside one batch but may appear in several batches; with replacement it
    may repeat anywhere.

    Args:
        data: Dataset with the sample axis last.
        n_iterations: Number of batches to produce before exhaustion.
        batch_size: Samples per batch.
        replace: Draw indices with replacement. Default False.
        seed: Optional seed for reproducible draws.
    """

    def __init__(
        self,
        data: torch.Tensor | np.ndarray,
        n_iterations: int,
        batch_size: int,
        replace: bool = False,
        seed: Optional[int] = None,
    ) -> None:
        if n_iterations < 0:
            raise SamplerConfigError(
                f"Number of iterations must be non-negative, got {n_iterations}"
            )
        super().__init__(data, batch_size, replace, seed)
        self.n_iterations = n_iterations

    @property
    def total_batches(self) -> int:
        return self.n_iterations

    def next(self) -> Optional[torch.Tensor]:
        if self.iteration >= self.n_iterations:
            return None

        self.iteration += 1
        if self.replace:
            indices = torch.randint(
                0, self.n_samples, (self.batch_size,), generator=self._generator
            )
        else:
            indices = self._permutation()[: self.batch_size]
        return self._select(indices)

    def reset(self) -> None:
        self.iteration = 0


class EpochSampler(Sampler):
    """
    Guarantees that every sample is drawn exactly once per epoch.

    A shuffle buffer holds the indices not yet used in the current epoch.
    Batches are cut from its front; when no more than `batch_size` indices
    remain, they all form the closing batch of the epoch, the buffer is
    refilled with a fresh permutation and the epoch counter advances.

    Args:
        data: Dataset with the sample axis last.
        n_epochs: Number of full passes before exhaustion.
        batch_size: Samples per batch, admitted without replacement.
        seed: Optional seed for reproducible shuffles.

    Attributes:
        epoch_size: Batches per epoch, ceil(N / batch_size).
        buffer: Indices still unused in the current epoch.
    """

    def __init__(
        self,
        data: torch.Tensor | np.ndarray,
        n_epochs: int,
        batch_size: int,
        seed: Optional[int] = None,
    ) -> None:
        if n_epochs < 0:
            raise SamplerConfigError(f"Number of epochs must be non-negative, got {n_epochs}")
        super().__init__(data, batch_size, replace=False, seed=seed)
        self.n_epochs = n_epochs
        self.epoch_size = math.ceil(self.n_samples / self.batch_size)
        self.buffer = self._permutation()

    @property
    def total_batches(self) -> int:
        return self.n_epochs * self.epoch_size

    def next(self) -> Optional[torch.Tensor]:
        if self.iteration >= self.n_epochs:
            return None

        if len(self.buffer) > self.batch_size:
            indices = self.buffer[: self.batch_size]
            self.buffer = self.buffer[self.batch_size :]
        else:
            # closing batch of the epoch, possibly short
            indices = self.buffer
            self.buffer = self._permutation()
            self.iteration += 1
        return self._select(indices)

    def reset(self) -> None:
        self.iteration = 0
        self.buffer = self._permutation()


def collect_all(sampler: Sampler) -> list[torch.Tensor]:
    """
    Draw batches until the sampler is exhausted.

    Materialises one complete run, which is how a training curriculum is
    precomputed before calling the training driver.
    """
    batches = []
    batch = sampler.next()
    while batch is not None:
        batches.append(batch)
        batch = sampler.next()
    return batches


def enumerate_batches(sampler: Sampler) -> list[tuple[int, torch.Tensor]]:
    """Like collect_all, but pairs every batch with its 1-based position."""
    return list(enumerate(collect_all(sampler), start=1))
