"""
Integration Tests for Network
=============================

End-to-end tests for the Network class.
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from feedforward.matrix import Matrix
from feedforward.network import Network
from feedforward.optimizers import GradientDescent
from feedforward.exceptions import DimensionMismatchError, InvalidConfigurationError

XOR = [([1, 1], [0]), ([1, 0], [1]), ([0, 1], [1]), ([0, 0], [0])]
XOR_WEIGHTS = [
    [[0.5, 0.5, 0.5], [-0.5, -0.5, -0.5]],
    [[-0.5, 0.5, 0.5]],
]


def xor_network():
    network = Network('log_loss', batch=XOR).add('tanh', 2).add('sigmoid', 1)
    network.initialize(XOR_WEIGHTS)
    return network


class TestNetworkConstruction:
    """Tests for Network construction and initialization."""

    def test_add_shares_loss(self):
        network = Network('cross_entropy', input_dim=4)
        network.add('relu', 3).add('softmax', 2)

        assert len(network.layers) == 2
        assert all(layer.error is network.error for layer in network.layers)

    def test_random_initialization_shapes(self):
        np.random.seed(42)
        network = Network('mse', input_dim=4).add('relu', 3).add('tanh', 5).add('identity', 2)
        network.initialize()

        shapes = [layer.weights.shape for layer in network.layers]
        assert shapes == [(3, 5), (5, 4), (2, 6)]

        for layer in network.layers:
            assert np.all(np.abs(layer.weights.values) <= 0.5)
            np.testing.assert_array_equal(layer.weights.values[:, 0], 0.0)

    def test_only_last_layer_is_output(self):
        network = Network('mse', input_dim=2).add('relu', 3).add('relu', 3).add('identity', 1)
        network.initialize()

        assert [layer.is_output for layer in network.layers] == [False, False, True]

    def test_input_dim_from_batch(self):
        network = xor_network()

        assert network.input_dim == 2
        assert network.layers[0].weights.to_arrays() == XOR_WEIGHTS[0]

    def test_initialize_without_layers(self):
        with pytest.raises(InvalidConfigurationError):
            Network('mse', input_dim=2).initialize()

    def test_initialize_without_input_dim(self):
        with pytest.raises(InvalidConfigurationError):
            Network('mse').add('relu', 2).initialize()

    def test_wrong_weight_count(self):
        network = Network('log_loss', batch=XOR).add('tanh', 2).add('sigmoid', 1)

        with pytest.raises(InvalidConfigurationError):
            network.initialize(XOR_WEIGHTS[:1])

    def test_wrong_weight_shape(self):
        network = Network('log_loss', batch=XOR).add('tanh', 2).add('sigmoid', 1)

        with pytest.raises(DimensionMismatchError, match="Expected 1x3, got 1x2"):
            network.initialize([XOR_WEIGHTS[0], [[0.1, 0.2]]])

    def test_weights_round_trip(self):
        np.random.seed(1)
        network = Network('mse', input_dim=3).add('tanh', 2).add('identity', 1)
        network.initialize()

        clone = Network('mse', input_dim=3).add('tanh', 2).add('identity', 1)
        clone.initialize(network.get_weights())

        sample = ([0.1, -0.4, 2.0], [1.0])
        assert clone.predict(sample).estimate.get(0, 0) == pytest.approx(
            network.predict(sample).estimate.get(0, 0))


class TestNetworkPasses:
    """Tests for forward/backward passes and gradient aggregation."""

    def test_forward_pass_shapes(self):
        np.random.seed(0)
        network = Network('cross_entropy', input_dim=4).add('relu', 6).add('softmax', 3)
        network.initialize()

        result = network.forward_pass(Matrix.from_list([1, 2, 3, 4]), Matrix.from_list([0, 1, 0]))

        assert result.activated_input.to_arrays()[0] == [1.0]
        assert result.results[0].activated.rows == 7
        assert result.results[0].activated.get(0, 0) == 1.0
        assert result.estimate.rows == 3
        assert abs(np.sum(result.estimate.values) - 1.0) < 1e-9
        assert result.loss == result.results[-1].error

    def test_deltas_match_layers(self):
        network = xor_network()

        result = network.compute_result([1, 0], [1])

        assert len(result.deltas) == 2
        assert result.deltas[0].shape == (2, 1)
        assert result.deltas[1].shape == (1, 1)

    def test_gradient_is_batch_mean(self):
        network = xor_network()

        full = network.compute_gradient()
        singles = [network.compute_gradient([sample]) for sample in XOR]

        for l in range(2):
            mean = sum(s.gradients[l].values for s in singles) / len(XOR)
            np.testing.assert_allclose(full.gradients[l].values, mean, atol=1e-12)
        assert full.loss == pytest.approx(np.mean([s.loss for s in singles]))

    def test_gradient_shapes_match_weights(self):
        network = xor_network()

        result = network.compute_gradient()

        for gradient, layer in zip(result.gradients, network.layers):
            assert gradient.shape == layer.weights.shape

    def test_hidden_softmax_is_rejected(self):
        network = Network('cross_entropy', input_dim=2).add('softmax', 3).add('softmax', 2)
        network.initialize()

        with pytest.raises(InvalidConfigurationError):
            network.compute_gradient([([1, 2], [1, 0])])

    def test_saturated_output_surfaces_as_nan(self):
        """A sigmoid output stuck at 1.0 yields non-finite values, not an exception."""
        network = Network('log_loss', input_dim=1).add('sigmoid', 1)
        network.initialize([[[0.0, 50.0]]])

        with np.errstate(divide='ignore', invalid='ignore'):
            result = network.compute_gradient([([1.0], [0.0])])
            network.layers[0].update_weights(
                network.layers[0].weights.subtract(result.gradients[0]))
            after = network.compute_gradient([([1.0], [0.0])])

        assert not np.all(np.isfinite(result.gradients[0].values))
        assert np.isnan(after.loss)

    def test_set_batch(self):
        network = xor_network()
        network.set_batch(XOR[:1])

        result = network.compute_gradient()

        assert len(result.results) == 1


class TestNetworkValidation:
    """Tests for validate_on_set and predict."""

    def test_validate_log_loss(self):
        network = xor_network()

        result = network.validate_on_set(XOR)

        assert result.loss > 0
        assert 0 <= result.accuracy <= 1

    def test_validate_cross_entropy_arg_max(self):
        network = Network('cross_entropy', input_dim=2).add('softmax', 2)
        # Class 0 when x0 > x1, class 1 otherwise
        network.initialize([[[0, 1, -1], [0, -1, 1]]])

        data = [([2, 0], [1, 0]), ([0, 2], [0, 1]), ([3, 1], [0, 1])]
        result = network.validate_on_set(data)

        assert result.accuracy == pytest.approx(2 / 3)

    def test_half_estimate_rounds_up(self):
        network = Network('log_loss', input_dim=1).add('sigmoid', 1)
        network.initialize([[[0.0, 0.0]]])  # sigmoid(0) == 0.5

        assert network.validate_on_set([([3.0], [1])]).accuracy == 1.0
        assert network.validate_on_set([([3.0], [0])]).accuracy == 0.0

    def test_half_estimates_round_up_for_mse(self):
        network = Network('mse', input_dim=1).add('sigmoid', 2)
        network.initialize([[[0.0, 0.0], [0.0, 10.0]]])

        # estimates [0.5, ~1.0]
        assert network.validate_on_set([([1.0], [1, 1])]).accuracy == 1.0

    def test_predict(self):
        network = xor_network()

        result = network.predict(XOR[0])

        assert result.estimate.shape == (1, 1)
        assert 0 < result.estimate.get(0, 0) < 1


class TestXOR:
    """XOR must be learnable by a 2-2-1 network with plain gradient descent."""

    def test_xor_training(self):
        network = xor_network()

        optimizer = GradientDescent(network, learning_rate=1, max_iterations=500)
        optimizer.optimize()

        assert network.compute_gradient().loss < 0.05

        for x, expected in XOR:
            estimate = network.predict((x, expected)).estimate.get(0, 0)
            assert round(estimate) == expected[0]

        assert network.validate_on_set(XOR).accuracy == 1.0


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
