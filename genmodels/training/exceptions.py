# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exceptions raised by the training infrastructure.

Only construction-time problems get their own types. Failures inside a
training step (loss evaluation, backward pass, optimizer step) are never
wrapped: they reach the caller exactly as the tensor library raised them.
"""


class TrainingError(Exception):
    """Base for all training infrastructure errors."""


class SamplerConfigError(TrainingError, ValueError):
    """
    Raised when a sampler is built with settings that cannot produce a valid
    schedule: negative iteration or epoch counts, a non-positive batch size,
    or a dataset without samples.
    """
