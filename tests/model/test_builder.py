# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for layer sizing, dense builders and the activation registry.
"""

import pytest
import torch
import torch.nn as nn

from genmodels.model.builder import ae_layer_builder, layer_builder, layer_sizes
from genmodels.model.registry import get_activation, list_activations, register_activation


class TestLayerSizes:
    @pytest.mark.parametrize(
        ("args", "expected"),
        [
            ((10, 2, 4), [10, 8, 6, 4, 2]),
            ((5, 2, 2), [5, 4, 2]),
            ((3, 3, 2), [3, 3, 3]),
            ((2, 10, 2), [2, 6, 10]),
        ],
    )
    def test_linear_interpolation(self, args: tuple, expected: list[int]) -> None:
        assert layer_sizes(*args) == expected

    def test_constant_hidden_width(self) -> None:
        assert layer_sizes(10, 2, 3, hdim=16) == [10, 16, 16, 2]

    def test_rejects_zero_layers(self) -> None:
        with pytest.raises(ValueError):
            layer_sizes(10, 2, 0)


class TestLayerBuilder:
    def test_linear_and_activation_pairs(self) -> None:
        net = layer_builder([5, 4, 3, 2], "tanh")
        assert len(net) == 6
        linears = [m for m in net if isinstance(m, nn.Linear)]
        assert [(m.in_features, m.out_features) for m in linears] == [(5, 4), (4, 3), (3, 2)]
        assert all(isinstance(m, nn.Tanh) for m in net[1::2])

    def test_last_activation_override(self) -> None:
        net = layer_builder([4, 3, 2], "relu", last_activation="sigmoid")
        assert isinstance(net[1], nn.ReLU)
        assert isinstance(net[3], nn.Sigmoid)

    def test_ae_builder_output_is_linear(self) -> None:
        net = ae_layer_builder([4, 3, 2], "relu")
        assert isinstance(net[-1], nn.Identity)
        out = net(torch.full((1, 4), -100.0))
        assert out.shape == (1, 2)

    def test_rejects_single_size(self) -> None:
        with pytest.raises(ValueError):
            layer_builder([4], "relu")

    def test_unknown_activation(self) -> None:
        with pytest.raises(KeyError, match="Unknown activation"):
            layer_builder([4, 2], "no_such_activation")


class TestActivationRegistry:
    def test_builtins_are_registered(self) -> None:
        names = list_activations()
        for name in ["relu", "tanh", "sigmoid", "linear", "swish"]:
            assert name in names
        assert get_activation("relu") is nn.ReLU

    def test_duplicate_registration_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="already registered"):
            register_activation("relu", nn.ReLU)

    def test_custom_activation(self) -> None:
        class Square(nn.Module):
            def forward(self, x: torch.Tensor) -> torch.Tensor:
                return x * x

        register_activation("test_square", Square)
        net = layer_builder([2, 2], "test_square")
        assert isinstance(net[1], Square)
