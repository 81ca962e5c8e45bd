# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
GenModels training infrastructure package.

Subsystems:
  - sampler: batch schedules (uniform-random and full-epoch coverage)
  - optimizer: default optimizer factory and the parameter update rule
  - clipping: elementwise gradient clipping
  - engine: the generic training driver
  - callback: per-step observers (tracking and no-op)
  - metrics: named scalar history sink
"""
