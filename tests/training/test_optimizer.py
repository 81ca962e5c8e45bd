# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the optimizer factory, the update rule and gradient clipping.
"""

import pytest
import torch
import torch.nn as nn

from genmodels.config.schema import TrainConfig
from genmodels.training.clipping.core import clip_gradient, clip_model_gradients
from genmodels.training.optimizer.core import create_optimizer, trainable_parameters, update


def _small_model() -> nn.Module:
    torch.manual_seed(0)
    return nn.Linear(3, 2)


def _backprop(model: nn.Module, scale: float = 1.0) -> None:
    x = torch.ones(4, 3)
    (scale * model(x).sum()).backward()


class TestCreateOptimizer:
    def test_is_adam_with_configured_lr(self) -> None:
        model = _small_model()
        config = TrainConfig(config_version="1.0.0", learning_rate=0.05)
        optimizer = create_optimizer(model, config)
        assert isinstance(optimizer, torch.optim.Adam)
        assert optimizer.param_groups[0]["lr"] == 0.05

    def test_frozen_parameters_are_left_out(self) -> None:
        model = _small_model()
        model.bias.requires_grad_(False)
        params = trainable_parameters(model)
        assert len(params) == 1
        assert params[0] is model.weight


class TestUpdate:
    def test_moves_parameters_and_zeroes_gradients(self) -> None:
        model = _small_model()
        optimizer = torch.optim.SGD(model.parameters(), lr=0.1)
        before = model.weight.detach().clone()

        _backprop(model)
        update(model, optimizer)

        assert not torch.equal(model.weight, before)
        for param in model.parameters():
            assert param.grad is not None
            assert torch.count_nonzero(param.grad) == 0

    def test_gradients_do_not_accumulate_across_steps(self) -> None:
        model = _small_model()
        optimizer = torch.optim.SGD(model.parameters(), lr=0.0)

        _backprop(model)
        first = model.weight.grad.clone()
        update(model, optimizer)
        _backprop(model)

        assert torch.allclose(model.weight.grad, first)

    def test_parameters_without_gradient_are_skipped(self) -> None:
        model = _small_model()
        optimizer = torch.optim.SGD(model.parameters(), lr=0.1)
        update(model, optimizer)
        assert model.weight.grad is None


class TestClipGradient:
    def test_clamps_into_bound(self) -> None:
        grad = torch.tensor([-5.0, -0.5, 0.0, 0.5, 5.0])
        clipped = clip_gradient(grad, 1.0)
        assert clipped is grad
        assert torch.equal(grad, torch.tensor([-1.0, -0.5, 0.0, 0.5, 1.0]))

    def test_default_bound_leaves_normal_values(self) -> None:
        grad = torch.tensor([-3.0, 250.0, 9999.0])
        clip_gradient(grad)
        assert torch.equal(grad, torch.tensor([-3.0, 250.0, 9999.0]))

    def test_default_bound_cuts_blow_ups(self) -> None:
        grad = torch.tensor([1e6, -1e6])
        clip_gradient(grad)
        assert torch.equal(grad, torch.tensor([1e4, -1e4]))

    @pytest.mark.parametrize("bound", [0.0, -1.0])
    def test_rejects_non_positive_bound(self, bound: float) -> None:
        with pytest.raises(ValueError, match="positive"):
            clip_gradient(torch.zeros(2), bound)


class TestClipModelGradients:
    def test_every_gradient_is_bounded(self) -> None:
        model = _small_model()
        _backprop(model, scale=100.0)
        clip_model_gradients(model, 0.25)
        for param in model.parameters():
            assert param.grad.abs().max() <= 0.25

    def test_missing_gradients_are_fine(self) -> None:
        model = _small_model()
        clip_model_gradients(model, 1.0)
        assert model.weight.grad is None

    def test_only_existing_gradients_are_clipped(self) -> None:
        model = _small_model()
        model.weight.grad = torch.full_like(model.weight, 7.0)
        clip_model_gradients(model, 1.0)
        assert torch.equal(model.weight.grad, torch.ones_like(model.weight))
        assert model.bias.grad is None

    def test_rejects_non_positive_bound(self) -> None:
        with pytest.raises(ValueError):
            clip_model_gradients(_small_model(), 0.0)
