"""
Dense Layer - From Scratch Implementation
=========================================

A fully connected layer whose bias lives inside the weight matrix.

Every layer input is augmented with a leading constant 1, so a layer with
`neuron_count` neurons fed by a `d`-dimensional activation owns a weight
matrix of shape

    neuron_count x (d + 1)

where column 0 holds the bias weights. Hidden layers prepend the constant 1
to their own activated output, so the next layer receives an augmented
vector as well. The output layer never does.

Passes:
- forward_pass: sum = W @ input, activated = f(sum)
- backward_pass: delta_l = (W_{l+1}^T delta_{l+1}) * f'_l(sum_l)
- output_pass: delta of the output layer, either the general chain rule
  grad(loss) * f'(sum) or the fused softmax + cross-entropy shortcut
"""

from collections import namedtuple

from .activations import Softmax, get_activation
from .exceptions import InvalidConfigurationError
from .losses import CrossEntropyLoss, get_loss

# Loss value reported by hidden layers, where no loss applies.
NO_LOSS = -1.0

ForwardPassResult = namedtuple('ForwardPassResult', ['sum', 'activated', 'error'])
ForwardPassResult.__doc__ = """
Result of one layer's forward pass.

    sum: weighted input sums (pre-activation)
    activated: sum passed through the activation function
    error: loss of the estimate for the output layer, NO_LOSS otherwise
"""


class Layer:
    """
    Fully connected layer with an activation and the network's shared loss.

    Args:
        activation: Activation name or instance ('relu', 'tanh', 'sigmoid', 'softmax', 'identity')
        neuron_count: Number of neurons
        error: Loss name or instance shared by the whole network

    The layer is unusable until initialize() supplies its weights.
    """

    def __init__(self, activation, neuron_count, error):
        self.neuron_count = neuron_count
        self.activation = get_activation(activation)
        self.error = get_loss(error)
        self.is_output = False

        self.weights = None
        # Weights without the bias column, transposed. Used by the previous
        # layer's backward pass.
        self.weights_transpose = None

    def forward_pass(self, x, expected):
        """
        Forward pass: sum = W @ x, activated = f(sum).

        Args:
            x: Augmented input column vector (leading 1)
            expected: Expected output, only used by the output layer

        Returns:
            ForwardPassResult
        """
        weighted = self.weights.multiply(x)
        activated = self.activation.forward(weighted, self.is_output)
        error = self.error.loss(activated, expected) if self.is_output else NO_LOSS

        return ForwardPassResult(weighted, activated, error)

    def backward_pass(self, result, delta_next, layer_next):
        """
        Delta of a hidden layer from the delta of the layer after it.

        delta = (W_next^T @ delta_next) * f'(sum)

        The bias column of W_next is dropped: the constant bias input has no
        upstream neuron to propagate into.
        """
        return layer_next.weights_transpose.multiply(delta_next).hadamard(
            self.activation.backward(result.sum), in_place=True)

    def output_pass(self, result, expected):
        """
        Delta of the output layer.

        Softmax is only supported together with cross-entropy, where the
        delta collapses to activated - expected.
        """
        if isinstance(self.activation, Softmax):
            if not isinstance(self.error, CrossEntropyLoss):
                raise InvalidConfigurationError(
                    f"Softmax output can only be used with cross-entropy, got {self.error!r}")
            return self.activation.output(result.activated, expected)

        return self.error.grad(result.activated, expected).hadamard(
            self.activation.backward(result.sum), in_place=True)

    def update_weights(self, weights):
        """Replace the weights and refresh the cached bias-free transpose."""
        self.weights = weights
        self.weights_transpose = weights.omit(0).transpose()

    def initialize(self, weights, is_output=False):
        self.is_output = is_output
        self.update_weights(weights)

    @property
    def n_params(self):
        if self.weights is None:
            return 0
        return self.weights.rows * self.weights.cols

    def __repr__(self):
        return f"Layer({self.activation.name}, {self.neuron_count})"
