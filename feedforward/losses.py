"""
Loss Functions
==============

Loss functions measure how wrong a single estimate is.
The goal of training is to minimize the mean loss over a batch.

Each loss works on column vectors and implements:
- loss(estimate, expected): scalar loss value
- grad(estimate, expected): gradient of the loss w.r.t. the estimate

Notation: t is the network's estimate, y is the expected (target) vector.
Both must have the same shape, otherwise DimensionMismatchError is raised.
"""

import numpy as np

from .exceptions import DimensionMismatchError, InvalidConfigurationError
from .matrix import Matrix


class Loss:
    """Base class for loss functions."""

    name = None

    def loss(self, estimate, expected):
        """Compute loss value."""
        raise NotImplementedError

    def grad(self, estimate, expected):
        """Compute gradient of loss w.r.t. the estimate."""
        raise NotImplementedError

    def __call__(self, estimate, expected):
        return self.loss(estimate, expected)

    def __repr__(self):
        return f"{type(self).__name__}()"

    @staticmethod
    def _check_shapes(estimate, expected):
        if estimate.shape != expected.shape:
            raise DimensionMismatchError(
                f"Estimate has shape {estimate.rows}x{estimate.cols}, "
                f"expected has shape {expected.rows}x{expected.cols}")


class LogLoss(Loss):
    """
    Binary cross-entropy for a single sigmoid output.

    Formula: L = -[y*log(t) + (1-y)*log(1-t)]

    Gradient: dL/dt = (t - y) / (t - t^2)

    The loss value clips t to [epsilon, 1 - epsilon] so a correct saturated
    estimate does not evaluate 0 * log(0). The gradient is not clipped, so
    saturation surfaces as inf/nan in the gradient and then in the loss.

    Args:
        epsilon: Small constant to prevent log(0) in the loss value
    """

    name = 'log_loss'

    def __init__(self, epsilon=1e-15):
        self.epsilon = epsilon

    def _scalars(self, estimate, expected):
        self._check_shapes(estimate, expected)
        if estimate.rows * estimate.cols != 1:
            raise DimensionMismatchError(
                f"Log-loss needs a single output, got {estimate.rows}x{estimate.cols}")
        return estimate.get(0, 0), expected.get(0, 0)

    def loss(self, estimate, expected):
        t, y = self._scalars(estimate, expected)
        t = min(max(t, self.epsilon), 1 - self.epsilon)
        return float(-(y * np.log(t) + (1 - y) * np.log(1 - t)))

    def grad(self, estimate, expected):
        # A saturated estimate of exactly 0 or 1 yields inf/nan, not an exception
        self._scalars(estimate, expected)
        t, y = estimate.values, expected.values
        return Matrix((t - y) / (t - t * t))


class CrossEntropyLoss(Loss):
    """
    Cross-Entropy Loss for multi-class classification.

    Formula: L = -sum(y_i * log(t_i))

    For single correct class k: L = -log(t_k)

    Gradient: dL/dt_i = -y_i / t_i

    When the output layer is softmax, layers skip this gradient entirely and
    use the fused dL/dz = t - y instead.

    Args:
        epsilon: Small constant to prevent log(0) in the loss value
    """

    name = 'cross_entropy'

    def __init__(self, epsilon=1e-15):
        self.epsilon = epsilon

    def loss(self, estimate, expected):
        self._check_shapes(estimate, expected)
        # Clip for numerical stability
        t = np.clip(estimate.values, self.epsilon, None)
        return float(-np.sum(expected.values * np.log(t)))

    def grad(self, estimate, expected):
        self._check_shapes(estimate, expected)
        return Matrix(-expected.values / estimate.values)


class MSELoss(Loss):
    """
    Squared Error Loss for regression.

    Formula: L = 1/2 * sum((t_i - y_i)^2)

    Gradient: dL/dt_i = t_i - y_i

    The factor 1/2 makes the gradient exact; it does not change the minimum.
    """

    name = 'mean_squared_error'

    def loss(self, estimate, expected):
        self._check_shapes(estimate, expected)
        return float(0.5 * np.sum((estimate.values - expected.values) ** 2))

    def grad(self, estimate, expected):
        self._check_shapes(estimate, expected)
        return estimate.subtract(expected)


# ============================================================================
# Loss Registry
# ============================================================================

LOSSES = {
    'cross_entropy': CrossEntropyLoss,
    'crossentropy': CrossEntropyLoss,
    'ce': CrossEntropyLoss,
    'categorical_crossentropy': CrossEntropyLoss,
    'mse': MSELoss,
    'mean_squared': MSELoss,
    'mean_squared_error': MSELoss,
    'log_loss': LogLoss,
    'logloss': LogLoss,
    'bce': LogLoss,
    'binary_crossentropy': LogLoss,
}


def get_loss(name):
    """
    Get loss function by name.

    Args:
        name: String name or Loss instance

    Returns:
        Loss instance
    """
    if isinstance(name, Loss):
        return name

    name_lower = name.lower().replace('-', '_').replace(' ', '_')
    if name_lower not in LOSSES:
        available = ', '.join(sorted(set(LOSSES.keys())))
        raise InvalidConfigurationError(f"Unknown loss '{name}'. Available: {available}")

    return LOSSES[name_lower]()
