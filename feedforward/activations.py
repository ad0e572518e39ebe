"""
Activation Functions
====================

Non-linear activation functions that enable neural networks to learn complex patterns.
Each activation works on column vectors (Matrix with one column) and implements:
- forward(x, is_output): activate the neuron sums. Hidden layers get a constant 1
  prepended to their output, which is the bias input of the next layer.
- backward(x): elementwise derivative evaluated at the neuron sums.
- output(activated, expected): fused output-layer gradient. Only Softmax has one,
  valid together with cross-entropy loss.

Mathematical Background:
- Without non-linearities, stacking layers = single linear transformation
- Activations introduce non-linearity, enabling universal function approximation

All exponentials go through clamped_exp, which clips the exponent to
[-EXP_RANGE, EXP_RANGE] so the result is never 0 or inf.
"""

import numpy as np

from .exceptions import InvalidConfigurationError
from .matrix import Matrix

EXP_RANGE = 500.0


def clamped_exp(x):
    """exp(x) with x clipped to [-500, 500]."""
    return np.exp(np.clip(x, -EXP_RANGE, EXP_RANGE))


class Activation:
    """Base class for all activation functions."""

    name = None

    def function(self, x):
        """Scalar nonlinearity, applied elementwise to an ndarray."""
        raise NotImplementedError

    def derivative(self, x):
        """Derivative of the scalar nonlinearity, applied elementwise to an ndarray."""
        raise NotImplementedError

    def forward(self, x, is_output=False):
        """
        Activate neuron sums.

        Args:
            x: Column vector of weighted input sums
            is_output: Output layer activations carry no bias term

        Returns:
            Activated column vector, one row longer than `x` unless is_output
        """
        activated = Matrix(self.function(x.values))
        if is_output:
            return activated
        return activated.unshift(1.0)

    def backward(self, x):
        """Compute derivative of activation w.r.t. its input."""
        return Matrix(self.derivative(x.values))

    def output(self, activated, expected):
        """Fused output gradient. Not available for elementwise activations."""
        raise InvalidConfigurationError(
            f"{type(self).__name__} has no fused output gradient")

    def __call__(self, x, is_output=False):
        return self.forward(x, is_output)

    def __repr__(self):
        return f"{type(self).__name__}()"


class ReLU(Activation):
    """
    Rectified Linear Unit: f(x) = max(0, x)

    Derivative:
        f'(x) = 1 if x > 0 else 0
    """

    name = 'relu'

    def function(self, x):
        return np.maximum(0, x)

    def derivative(self, x):
        return (x > 0).astype(np.float64)


class Sigmoid(Activation):
    """
    Sigmoid: f(x) = 1 / (1 + exp(-x))

    Squashes output to (0, 1). Used for binary classification output,
    paired with log-loss.

    Derivative:
        f'(x) = f(x) * (1 - f(x))
    """

    name = 'sigmoid'

    def function(self, x):
        return 1.0 / (1.0 + clamped_exp(-x))

    def derivative(self, x):
        s = self.function(x)
        return s * (1 - s)


class Tanh(Activation):
    """
    Hyperbolic Tangent: f(x) = tanh(x) = (e^x - e^-x) / (e^x + e^-x)

    Output range: (-1, 1)
    Zero-centered output is better than sigmoid.

    Derivative:
        f'(x) = 1 - tanh(x)^2
    """

    name = 'tanh'

    def function(self, x):
        pos = clamped_exp(x)
        neg = clamped_exp(-x)
        return (pos - neg) / (pos + neg)

    def derivative(self, x):
        t = self.function(x)
        return 1 - t ** 2


class Softmax(Activation):
    """
    Softmax: f(x_i) = exp(x_i) / sum(exp(x_j))

    Converts logits to probability distribution (sums to 1).
    Used in output layer for multi-class classification.

    Numerical Stability:
        We subtract max(x) before exp to prevent overflow.
        This doesn't change the result: exp(x-c)/sum(exp(x-c)) = exp(x)/sum(exp(x))

    Only the fused output path exists: combined with cross-entropy loss the
    gradient w.r.t. the neuron sums is simply
        dL/dx = softmax(x) - y_true
    The general Jacobian backward pass is not supported.
    """

    name = 'softmax'

    def function(self, x):
        shifted = x - np.max(x, axis=0, keepdims=True)
        exp_x = clamped_exp(shifted)
        return exp_x / np.sum(exp_x, axis=0, keepdims=True)

    def derivative(self, x):
        raise InvalidConfigurationError(
            "Softmax has no elementwise derivative. Use softmax only on the "
            "output layer together with cross-entropy loss")

    def output(self, activated, expected):
        return activated.subtract(expected)


class Identity(Activation):
    """
    Identity (Linear) activation: f(x) = x

    Used for:
    - Regression output layers
    - Growing the network input by the constant bias term
    """

    name = 'identity'

    def function(self, x):
        return x

    def derivative(self, x):
        return np.ones_like(x)


# ====================================
# Activation Registry
# ====================================

ACTIVATIONS = {
    'relu': ReLU,
    'sigmoid': Sigmoid,
    'tanh': Tanh,
    'softmax': Softmax,
    'identity': Identity,
    'linear': Identity,
    'none': Identity,
}


def get_activation(name):
    """
    Get activation function by name.

    Args:
        name: String name ('relu', 'sigmoid', etc.) or Activation instance

    Returns:
        Activation instance

    Example:
        >>> act = get_activation('relu')
        >>> act(Matrix.from_list([-1, 0, 1]), is_output=True).to_arrays()
        [[0.0], [0.0], [1.0]]
    """
    if isinstance(name, Activation):
        return name

    if name is None:
        return Identity()

    name_lower = name.lower().replace('-', '_')
    if name_lower not in ACTIVATIONS:
        available = ', '.join(ACTIVATIONS.keys())
        raise InvalidConfigurationError(
            f"Unknown activation '{name}'. Available: {available}")

    return ACTIVATIONS[name_lower]()
