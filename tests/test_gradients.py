"""
Gradient Checking Tests
=======================

Verify analytical gradients match numerical approximations.
This is THE most important test for ensuring backpropagation is correct.

Method: Centered finite differences
    f'(x) ≈ (f(x + ε) - f(x - ε)) / (2ε)

We compare:
    - Analytical gradient: computed by Network.compute_gradient()
    - Numerical gradient: finite difference of the mean batch loss

If they match (relative error < 1e-4), backprop is correct.
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from feedforward.activations import ReLU, Sigmoid, Tanh
from feedforward.matrix import Matrix
from feedforward.network import Network


def numerical_gradient(f, x, epsilon=1e-5):
    """
    Compute numerical gradient using centered finite differences.

    Args:
        f: Function that takes x and returns scalar loss
        x: Point at which to compute gradient
        epsilon: Small perturbation

    Returns:
        Numerical gradient, same shape as x
    """
    grad = np.zeros_like(x)

    it = np.nditer(x, flags=['multi_index'])
    while not it.finished:
        idx = it.multi_index

        # f(x + epsilon)
        x[idx] += epsilon
        loss_plus = f(x)

        # f(x - epsilon)
        x[idx] -= 2 * epsilon
        loss_minus = f(x)

        # Restore
        x[idx] += epsilon

        # Centered difference
        grad[idx] = (loss_plus - loss_minus) / (2 * epsilon)

        it.iternext()

    return grad


def relative_error(analytical, numerical):
    """
    Compute relative error between analytical and numerical gradients.

    Returns:
        Maximum relative error across all elements
    """
    diff = np.abs(analytical - numerical)
    denom = np.maximum(np.abs(analytical) + np.abs(numerical), 1e-8)
    return np.max(diff / denom)


def _one_hot(label, n):
    vector = [0.0] * n
    vector[label] = 1.0
    return vector


def _check_network(network, batch):
    """Compare analytical and numerical gradients of every layer."""
    analytical = network.compute_gradient(batch).gradients

    for l, layer in enumerate(network.layers):
        def loss_fn(W):
            layer.update_weights(Matrix(W))
            return network.compute_gradient(batch).loss

        original = layer.weights.values.copy()
        numerical = numerical_gradient(loss_fn, original.copy())
        layer.update_weights(Matrix(original))

        error = relative_error(analytical[l].values, numerical)
        assert error < 1e-4, f"Layer {l} gradient error too large: {error}"


class TestNetworkGradients:
    """End-to-end gradient tests for small networks."""

    def test_tanh_sigmoid_log_loss(self):
        np.random.seed(42)
        batch = [(np.random.randn(3), [float(i % 2)]) for i in range(4)]

        network = Network('log_loss', batch=batch).add('tanh', 4).add('sigmoid', 1)
        network.initialize(zero_bias=False)

        _check_network(network, batch)

    def test_relu_softmax_cross_entropy(self):
        """Fused softmax + cross-entropy output delta."""
        np.random.seed(7)
        batch = [(np.random.randn(4), _one_hot(i % 3, 3)) for i in range(5)]

        network = Network('cross_entropy', batch=batch).add('relu', 5).add('softmax', 3)
        network.initialize(zero_bias=False)

        _check_network(network, batch)

    def test_sigmoid_identity_mse(self):
        np.random.seed(3)
        batch = [(np.random.randn(2), np.random.randn(2)) for _ in range(3)]

        network = Network('mse', batch=batch).add('sigmoid', 3).add('identity', 2)
        network.initialize(zero_bias=False)

        _check_network(network, batch)

    def test_three_layer_tanh_relu_mse(self):
        np.random.seed(11)
        batch = [(np.random.randn(3), np.random.randn(1)) for _ in range(4)]

        network = Network('mse', batch=batch).add('tanh', 4).add('relu', 3).add('tanh', 1)
        network.initialize(zero_bias=False)

        _check_network(network, batch)

    def test_sigmoid_cross_entropy(self):
        """General chain rule with cross-entropy on an elementwise output."""
        np.random.seed(5)
        batch = [(np.random.randn(2), _one_hot(i % 2, 2)) for i in range(3)]

        network = Network('cross_entropy', batch=batch).add('tanh', 3).add('sigmoid', 2)
        network.initialize(zero_bias=False)

        _check_network(network, batch)


class TestActivationGradients:
    """Gradient tests for activation functions."""

    @pytest.mark.parametrize('activation', [ReLU(), Sigmoid(), Tanh()])
    def test_derivative(self, activation):
        np.random.seed(0)
        x = np.random.randn(10)

        analytical_grad = activation.backward(Matrix.from_list(x)).values[:, 0]

        def loss_fn(x_in):
            return np.sum(activation.forward(Matrix.from_list(x_in), is_output=True).values)

        numerical_grad = numerical_gradient(loss_fn, x.copy())

        error = relative_error(analytical_grad, numerical_grad)
        assert error < 1e-5, f"{activation!r} gradient error: {error}"


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
