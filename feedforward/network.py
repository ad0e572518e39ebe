"""
Feedforward Network Main Class
==============================

This is the main class that ties everything together:
- Layer stacking
- Forward pass
- Backward pass (backpropagation)
- Mini-batch gradient and loss aggregation
- Weight initialization
- Validation on held-out data

Training itself is driven by an optimizer (see optimizers.py), which calls
compute_gradient() once per iteration and writes new weights back into the
layers.

Samples are (input, expected) pairs of flat numeric sequences. A batch is any
sequence of such pairs.
"""

from collections import namedtuple

import numpy as np

from .activations import Identity
from .exceptions import DimensionMismatchError, InvalidConfigurationError
from .layers import Layer
from .losses import CrossEntropyLoss, LogLoss, get_loss
from .matrix import Matrix
from .utils import random_weights

ForwardResult = namedtuple('ForwardResult', ['loss', 'results', 'estimate', 'activated_input'])
SampleResult = namedtuple('SampleResult', ['input', 'expected', 'loss', 'results', 'estimate',
                                           'activated_input', 'deltas'])
GradientResult = namedtuple('GradientResult', ['gradients', 'loss', 'results'])
SetResult = namedtuple('SetResult', ['loss', 'accuracy'])


_BIAS_INPUT = Identity()


def _as_vector(values):
    if isinstance(values, Matrix):
        return values
    return Matrix.from_list(values)


class Network:
    """
    Feedforward neural network made of dense layers.

    All layers share a single loss function instance. The last layer added
    becomes the output layer at initialize().

    Args:
        error: Loss name or instance ('log_loss', 'cross_entropy', 'mse')
        input_dim: Dimension of the input vectors. Taken from the first sample
            of the current batch at initialize() when omitted.
        batch: Initial batch of (input, expected) pairs

    Example:
        >>> network = Network('log_loss').add('tanh', 2).add('sigmoid', 1)
        >>> network.set_batch([([1, 1], [0]), ([1, 0], [1]), ([0, 1], [1]), ([0, 0], [0])])
        >>> network.initialize()
        >>> result = network.compute_gradient()
        >>> len(result.gradients)
        2
    """

    def __init__(self, error, input_dim=None, batch=None):
        self.error = get_loss(error)
        self.input_dim = input_dim
        self.layers = []
        self.current_batch = list(batch) if batch is not None else []

    def set_batch(self, batch):
        """Replace the batch used by compute_gradient()."""
        self.current_batch = list(batch)

    set_data = set_batch

    def add(self, activation, neuron_count):
        """
        Append a layer bound to the network's shared loss.

        Returns the network so layer specs can be chained.
        """
        self.layers.append(Layer(activation, neuron_count, self.error))
        return self

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _resolve_input_dim(self):
        if self.input_dim is not None:
            return self.input_dim
        if self.current_batch:
            x, _ = self.current_batch[0]
            return _as_vector(x).rows
        raise InvalidConfigurationError(
            "Cannot infer the input dimension: pass input_dim or set a batch first")

    def initialize(self, weights=None, zero_bias=True):
        """
        Initialize weights of every layer.

        Args:
            weights: Optional list with one weight matrix (list of rows or
                Matrix) per layer. Layer l needs shape
                neuron_count x (previous_dim + 1).
            zero_bias: When randomizing, keep the bias column at 0

        Random weights are drawn uniformly from [-0.5, 0.5].
        """
        if not self.layers:
            raise InvalidConfigurationError("You need to specify layers")
        if weights is not None and len(weights) != len(self.layers):
            raise InvalidConfigurationError(
                f"Invalid amount of weights supplied. Should be {len(self.layers)}, "
                f"got {len(weights)}")

        current_dim = self._resolve_input_dim()
        self.input_dim = current_dim
        last = len(self.layers) - 1

        for l, layer in enumerate(self.layers):
            m = layer.neuron_count
            n = current_dim + 1
            current_dim = m

            if weights is not None:
                w = weights[l]
                w = w.copy() if isinstance(w, Matrix) else Matrix.from_arrays(w)
                if w.shape != (m, n):
                    raise DimensionMismatchError(
                        f"Invalid weight dimension at layer {l}. "
                        f"Expected {m}x{n}, got {w.rows}x{w.cols}")
            else:
                w = Matrix(random_weights(m, n, zero_bias=zero_bias))

            layer.initialize(w, is_output=(l == last))

    def get_weights(self):
        """Weights of every layer as nested lists, accepted back by initialize()."""
        return [layer.weights.to_arrays() for layer in self.layers]

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def forward_pass(self, x, expected):
        """
        Forward pass through the network.

        Args:
            x: Input column vector (not augmented)
            expected: Expected output column vector

        Returns:
            ForwardResult with the estimate, its loss, every layer's
            ForwardPassResult and the augmented input
        """
        # Grows the input by the constant 1 that feeds the first layer's bias column
        activated_input = _BIAS_INPUT.forward(x, is_output=False)

        results = []
        current = activated_input
        for layer in self.layers:
            result = layer.forward_pass(current, expected)
            current = result.activated
            results.append(result)

        out = results[-1]
        return ForwardResult(out.error, results, out.activated, activated_input)

    def backward_pass(self, expected, results):
        """
        Backward pass through the network.

        Starts from the output layer's delta and walks the layers in reverse.

        Returns:
            List of deltas, one per layer, ordered first layer first
        """
        deltas = [self.layers[-1].output_pass(results[-1], expected)]

        # deltas[0] is always the delta of layer i + 1
        for i in range(len(self.layers) - 2, -1, -1):
            delta = self.layers[i].backward_pass(results[i], deltas[0], self.layers[i + 1])
            deltas.insert(0, delta)

        return deltas

    def compute_result(self, x, expected):
        """Forward and backward pass for a single sample."""
        x = _as_vector(x)
        expected = _as_vector(expected)

        forward = self.forward_pass(x, expected)
        deltas = self.backward_pass(expected, forward.results)

        return SampleResult(x, expected, forward.loss, forward.results, forward.estimate,
                            forward.activated_input, deltas)

    def compute_gradient(self, batch=None):
        """
        Mean gradient and mean loss over a batch.

        For every sample and layer l:
            gradient_l += delta_l @ activation_{l-1}^T / batch_size
        where activation_{-1} is the augmented network input.

        Args:
            batch: Sequence of (input, expected) pairs. Defaults to the current batch.

        Returns:
            GradientResult(gradients, loss, results)
        """
        batch = self.current_batch if batch is None else list(batch)
        if not batch:
            raise InvalidConfigurationError("Cannot compute a gradient on an empty batch")

        gradients = [Matrix.zeros_like(layer.weights) for layer in self.layers]
        total_loss = 0.0
        batch_size = len(batch)

        results = []
        for x, expected in batch:
            result = self.compute_result(x, expected)

            for l, gradient in enumerate(gradients):
                activations = result.activated_input if l == 0 else result.results[l - 1].activated
                contribution = result.deltas[l].multiply(activations.transpose())
                gradient.sum(contribution.scale(1.0 / batch_size, in_place=True), in_place=True)

            total_loss += result.loss / batch_size
            results.append(result)

        return GradientResult(gradients, total_loss, results)

    # ------------------------------------------------------------------
    # Prediction and validation
    # ------------------------------------------------------------------

    def predict(self, sample):
        """Forward pass result for an (input, expected) pair."""
        x, expected = sample
        return self.forward_pass(_as_vector(x), _as_vector(expected))

    def _is_correct(self, estimate, expected):
        if isinstance(self.error, CrossEntropyLoss):
            return estimate.argmax() == expected.argmax()
        # Half rounds up, so an estimate of exactly 0.5 counts as class 1
        rounded = np.floor(estimate.values + 0.5)
        if isinstance(self.error, LogLoss) or estimate.rows == 1:
            return rounded[0, 0] == expected.get(0, 0)
        return bool(np.array_equal(rounded, expected.values))

    def validate_on_set(self, dataset):
        """
        Mean loss and accuracy over a dataset, forward passes only.

        A sample counts as correct when
        - cross-entropy: the arg-max of the estimate is the expected class
        - single output (log-loss): the estimate rounded half up equals the target
        - otherwise: every rounded element equals the target

        Returns:
            SetResult(loss, accuracy)
        """
        dataset = list(dataset)
        if not dataset:
            raise InvalidConfigurationError("Cannot validate on an empty dataset")

        total_loss = 0.0
        correct = 0
        for x, expected in dataset:
            expected = _as_vector(expected)
            result = self.forward_pass(_as_vector(x), expected)
            total_loss += result.loss
            if self._is_correct(result.estimate, expected):
                correct += 1

        return SetResult(total_loss / len(dataset), correct / len(dataset))

    def summary(self):
        """Print model summary."""
        print("\n" + "=" * 70)
        print("Feedforward Network Summary")
        print("=" * 70)
        print(f"Input dimension: {self.input_dim}")
        print(f"Loss: {self.error!r}")
        print("-" * 70)

        total_params = 0

        for i, layer in enumerate(self.layers):
            total_params += layer.n_params
            print(f"{i:3d}. {str(layer):<45} Params: {layer.n_params:,}")

        print("-" * 70)
        print(f"Total trainable parameters: {total_params:,}")
        print("=" * 70 + "\n")

        return total_params

    def __repr__(self):
        layers = ', '.join(repr(layer) for layer in self.layers)
        return f"Network(error={self.error!r}, layers=[{layers}])"
