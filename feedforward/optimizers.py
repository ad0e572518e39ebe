"""
Optimizers
==========

Optimizers drive training: each iteration they ask the network for the mean
gradient of its current batch and update every layer's weights with it.
The choice of optimizer significantly affects training speed and convergence.

All optimizers share one iteration loop (Optimizer.optimize) and differ only
in their update rule (Optimizer.step):
- GradientDescent: plain, momentum and Nesterov lookahead
- AdaGrad: per-weight learning rate from the sum of all squared gradients
- AdaDelta: learning-rate free, ratio of running update and gradient RMS
- RMSProp: per-weight learning rate from a moving average of squared gradients
- Adam: bias-corrected moving averages of gradient and squared gradient

State matrices (velocity, moving averages) have the shape of the weight
matrices they belong to. They are created filled with zeros on the first
update and live as long as the optimizer instance.

Hooks (all optional):
    before_iteration(network, iteration)
    stop_condition(network, data, iteration) -> bool
    after_iteration(network, data, iteration)
    after_all()
where `data` is the GradientResult of the iteration (data.loss, data.gradients).
"""

import numpy as np
from tqdm import tqdm

from .exceptions import InvalidConfigurationError, NegativeLearningRateError
from .matrix import Matrix


class Optimizer:
    """
    Base class for optimizers.

    Args:
        network: Initialized Network to train
        learning_rate: Number, or callable learning_rate(iteration)
        max_iterations: Upper bound on the number of iterations
        before_iteration, after_iteration, stop_condition, after_all: Hooks
        verbose: Show a progress bar with the current batch loss
    """

    def __init__(self, network, learning_rate=0.01, max_iterations=100,
                 before_iteration=None, after_iteration=None,
                 stop_condition=None, after_all=None, verbose=False):
        self.network = network
        self.learning_rate = learning_rate
        self.max_iterations = max_iterations

        self.before_iteration = before_iteration
        self.after_iteration = after_iteration
        self.stop_condition = stop_condition
        self.after_all = after_all
        self.verbose = verbose

        self.t = 0  # Number of updates applied
        self.history = {'loss': [], 'lr': []}

    def get_lr(self, iteration):
        """Learning rate of an iteration. Negative rates abort training."""
        if callable(self.learning_rate):
            lr = self.learning_rate(iteration)
        else:
            lr = self.learning_rate

        if lr < 0:
            raise NegativeLearningRateError(
                f"Negative learning rate {lr} at iteration {iteration}")
        return lr

    def _before_iteration(self, iteration):
        if self.before_iteration is not None:
            self.before_iteration(self.network, iteration)

    def _on_stop(self):
        """Called when the stop condition ends training early."""

    def optimize(self):
        """
        Run the training loop.

        Returns:
            Training history dictionary ('loss' and 'lr' per applied update)
        """
        iterations = range(self.max_iterations)
        if self.verbose:
            pbar = tqdm(iterations, desc=type(self).__name__)
        else:
            pbar = iterations

        for i in pbar:
            self._before_iteration(i)

            data = self.network.compute_gradient()

            if self.stop_condition is not None and self.stop_condition(self.network, data, i):
                self._on_stop()
                break

            lr = self.get_lr(i)
            self.step(lr, data, i)

            self.history['loss'].append(data.loss)
            self.history['lr'].append(lr)

            if self.after_iteration is not None:
                self.after_iteration(self.network, data, i)

            if self.verbose and hasattr(pbar, 'set_postfix'):
                pbar.set_postfix({'loss': f'{data.loss:.4f}', 'lr': f'{lr:.6f}'})

        if self.after_all is not None:
            self.after_all()

        return self.history

    def step(self, learning_rate, data, iteration):
        """Update weights for all layers."""
        raise NotImplementedError

    @property
    def state(self):
        """State matrices by name, one list entry per layer."""
        return {}

    def reset(self):
        """Reset optimizer state."""
        self.t = 0
        self.history = {'loss': [], 'lr': []}

    @staticmethod
    def _zeros(gradients):
        return [Matrix.zeros_like(gradient) for gradient in gradients]

    @staticmethod
    def _moving_average(average, value, decay):
        """average := decay * average + (1 - decay) * value, in place."""
        average.values *= decay
        average.values += (1 - decay) * value
        return average

    def _apply_deltas(self, deltas):
        for layer, delta in zip(self.network.layers, deltas):
            layer.update_weights(layer.weights.sum(delta, in_place=True))


class GradientDescent(Optimizer):
    """
    Gradient descent with optional momentum and Nesterov lookahead.

    Update:
        v := momentum * v - lr * g
        W := W + v

    With nesterov=True the gradient is evaluated at the lookahead position
    W + momentum * v, and the update is applied to the weights as they were
    before the lookahead.

    Args:
        momentum: Momentum factor (default: 0, plain gradient descent)
        nesterov: Use Nesterov momentum (default: False)
    """

    def __init__(self, network, momentum=0.0, nesterov=False, **kwargs):
        super().__init__(network, **kwargs)
        self.momentum = momentum
        self.nesterov = nesterov

        self.velocity = None
        self.base_weights = None

    def _before_iteration(self, iteration):
        super()._before_iteration(iteration)
        if not self.nesterov:
            return

        self.base_weights = [layer.weights.copy() for layer in self.network.layers]
        if self.velocity is not None:
            for layer, base, v in zip(self.network.layers, self.base_weights, self.velocity):
                layer.update_weights(base.sum(v.scale(self.momentum)))

    def _on_stop(self):
        # Leave the network at the committed weights, not at the lookahead
        if self.nesterov and self.base_weights is not None:
            for layer, base in zip(self.network.layers, self.base_weights):
                layer.update_weights(base)

    def step(self, learning_rate, data, iteration):
        gradients = data.gradients
        if self.velocity is None:
            self.velocity = self._zeros(gradients)

        self.t += 1

        for v, g in zip(self.velocity, gradients):
            v.values *= self.momentum
            v.values -= learning_rate * g.values

        if self.nesterov and self.base_weights is not None:
            for layer, base, v in zip(self.network.layers, self.base_weights, self.velocity):
                layer.update_weights(base.sum(v))
        else:
            self._apply_deltas(self.velocity)

    @property
    def state(self):
        return {'velocity': self.velocity or []}

    def reset(self):
        super().reset()
        self.velocity = None
        self.base_weights = None


class AdaGrad(Optimizer):
    """
    AdaGrad optimizer.

    Accumulates every squared gradient (no decay), so the effective learning
    rate of frequently updated weights keeps shrinking.

    Update:
        s := s + g * g
        W := W - lr / (lambda + sqrt(s)) * g

    Args:
        epsilon: Small constant lambda for numerical stability (default: 1e-7)
    """

    def __init__(self, network, epsilon=1e-7, **kwargs):
        super().__init__(network, **kwargs)
        self.epsilon = epsilon
        self.gradient_squared = None

    def step(self, learning_rate, data, iteration):
        gradients = data.gradients
        if self.gradient_squared is None:
            self.gradient_squared = self._zeros(gradients)

        self.t += 1

        deltas = []
        for s, g in zip(self.gradient_squared, gradients):
            s.values += g.values ** 2
            deltas.append(Matrix(-learning_rate / (self.epsilon + np.sqrt(s.values)) * g.values))

        self._apply_deltas(deltas)

    @property
    def state(self):
        return {'gradient_squared': self.gradient_squared or []}

    def reset(self):
        super().reset()
        self.gradient_squared = None


class AdaDelta(Optimizer):
    """
    AdaDelta optimizer.

    Keeps moving averages (decay rho) of the squared gradient and of the
    squared update. The learning rate passed in is ignored; the step size
    comes from the ratio of the two RMS values.

    Update:
        E[g^2]  := rho * E[g^2] + (1 - rho) * g^2
        dW      := -sqrt(E[dW^2] + lambda) / sqrt(E[g^2] + lambda) * g
        E[dW^2] := rho * E[dW^2] + (1 - rho) * dW^2
        W       := W + dW

    Args:
        decay: Decay rate rho (default: 0.9)
        epsilon: Small constant lambda (default: 1e-7)
    """

    def __init__(self, network, decay=0.9, epsilon=1e-7, **kwargs):
        kwargs.setdefault('learning_rate', 0.0)
        super().__init__(network, **kwargs)
        self.decay = decay
        self.epsilon = epsilon

        self.gradient_average = None
        self.delta_average = None

    def step(self, learning_rate, data, iteration):
        gradients = data.gradients
        if self.gradient_average is None:
            self.gradient_average = self._zeros(gradients)
            self.delta_average = self._zeros(gradients)

        self.t += 1

        deltas = []
        for grad_avg, delta_avg, g in zip(self.gradient_average, self.delta_average, gradients):
            self._moving_average(grad_avg, g.values ** 2, self.decay)

            delta_rms = np.sqrt(delta_avg.values + self.epsilon)
            grad_rms = np.sqrt(grad_avg.values + self.epsilon)
            delta = -(delta_rms / grad_rms) * g.values

            self._moving_average(delta_avg, delta ** 2, self.decay)
            deltas.append(Matrix(delta))

        self._apply_deltas(deltas)

    @property
    def state(self):
        return {
            'gradient_average': self.gradient_average or [],
            'delta_average': self.delta_average or [],
        }

    def reset(self):
        super().reset()
        self.gradient_average = None
        self.delta_average = None


class RMSProp(Optimizer):
    """
    RMSProp optimizer.

    Update:
        E[g^2] := rho * E[g^2] + (1 - rho) * g^2
        W      := W - lr / sqrt(E[g^2] + lambda) * g

    Args:
        decay: Decay rate rho (default: 0.9)
        epsilon: Small constant lambda (default: 1e-7)
    """

    def __init__(self, network, decay=0.9, epsilon=1e-7, **kwargs):
        super().__init__(network, **kwargs)
        self.decay = decay
        self.epsilon = epsilon
        self.gradient_average = None

    def step(self, learning_rate, data, iteration):
        gradients = data.gradients
        if self.gradient_average is None:
            self.gradient_average = self._zeros(gradients)

        self.t += 1

        deltas = []
        for grad_avg, g in zip(self.gradient_average, gradients):
            self._moving_average(grad_avg, g.values ** 2, self.decay)
            deltas.append(Matrix(-(learning_rate / np.sqrt(grad_avg.values + self.epsilon)) * g.values))

        self._apply_deltas(deltas)

    @property
    def state(self):
        return {'gradient_average': self.gradient_average or []}

    def reset(self):
        super().reset()
        self.gradient_average = None


class Adam(Optimizer):
    """
    Adam (Adaptive Moment Estimation) optimizer.

    Combines the benefits of:
    - Momentum: Uses running average of gradients
    - RMSprop: Uses running average of squared gradients

    Update at step t (t = 1 on the first update):
        m := beta1 * m + (1 - beta1) * g
        v := beta2 * v + (1 - beta2) * g^2
        m_hat = m / (1 - beta1^t)
        v_hat = v / (1 - beta2^t)
        W := W - lr / (sqrt(v_hat) + lambda) * m_hat

    Args:
        beta1: Decay rate for first moment (default: 0.9)
        beta2: Decay rate for second moment (default: 0.999)
        epsilon: Small constant lambda for numerical stability (default: 1e-8)
    """

    def __init__(self, network, beta1=0.9, beta2=0.999, epsilon=1e-8, **kwargs):
        kwargs.setdefault('learning_rate', 0.001)
        super().__init__(network, **kwargs)
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon

        self.first_moment = None
        self.second_moment = None

    def step(self, learning_rate, data, iteration):
        gradients = data.gradients
        if self.first_moment is None:
            self.first_moment = self._zeros(gradients)
            self.second_moment = self._zeros(gradients)

        self.t += 1

        deltas = []
        for m, v, g in zip(self.first_moment, self.second_moment, gradients):
            # Update biased first moment estimate
            self._moving_average(m, g.values, self.beta1)

            # Update biased second raw moment estimate
            self._moving_average(v, g.values ** 2, self.beta2)

            # Bias-corrected estimates
            m_hat = m.values / (1 - self.beta1 ** self.t)
            v_hat = v.values / (1 - self.beta2 ** self.t)

            deltas.append(Matrix(-(learning_rate / (np.sqrt(v_hat) + self.epsilon)) * m_hat))

        self._apply_deltas(deltas)

    @property
    def state(self):
        return {
            'first_moment': self.first_moment or [],
            'second_moment': self.second_moment or [],
        }

    def reset(self):
        super().reset()
        self.first_moment = None
        self.second_moment = None


# ============================================================================
# Learning Rate Schedules
# ============================================================================
# Each factory returns schedule(iteration) -> learning rate, usable directly
# as an optimizer's learning_rate.

def constant_lr(initial_lr):
    """No decay - constant learning rate."""
    def scheduler(iteration):
        return initial_lr
    return scheduler


def step_decay(initial_lr, drop_rate=0.5, drop_every=10):
    """
    Step decay: LR = initial_lr * drop_rate^(iteration // drop_every)

    Example: drop by 0.5 every 10 iterations
    """
    def scheduler(iteration):
        return initial_lr * (drop_rate ** (iteration // drop_every))
    return scheduler


def exponential_decay(initial_lr, decay_rate=0.95):
    """
    Exponential decay: LR = initial_lr * decay_rate^iteration
    """
    def scheduler(iteration):
        return initial_lr * (decay_rate ** iteration)
    return scheduler


def inverse_decay(initial_lr, decay=0.1, min_lr=0.0):
    """
    Inverse time decay: LR = max(initial_lr / (1 + decay * iteration), min_lr)
    """
    def scheduler(iteration):
        return max(initial_lr / (1.0 + decay * iteration), min_lr)
    return scheduler


def cosine_annealing(initial_lr, total_steps, min_lr=0.0):
    """
    Cosine annealing: Smooth decay following cosine curve.

    LR decreases slowly at first, faster in middle, then slowly again at end.
    """
    def scheduler(iteration):
        progress = min(iteration / total_steps, 1.0)
        return min_lr + 0.5 * (initial_lr - min_lr) * (1 + np.cos(np.pi * progress))
    return scheduler


def warmup_cosine(initial_lr, warmup_steps, total_steps, min_lr=0.0):
    """
    Linear warmup followed by cosine decay.

    Helps stabilize training at the start when gradients might be noisy.
    """
    def scheduler(iteration):
        if iteration < warmup_steps:
            return initial_lr * (iteration / warmup_steps)
        progress = (iteration - warmup_steps) / (total_steps - warmup_steps)
        progress = min(progress, 1.0)
        return min_lr + 0.5 * (initial_lr - min_lr) * (1 + np.cos(np.pi * progress))
    return scheduler


# Learning rate scheduler registry
LR_SCHEDULERS = {
    'constant': constant_lr,
    'step': step_decay,
    'exponential': exponential_decay,
    'inverse': inverse_decay,
    'cosine': cosine_annealing,
    'warmup_cosine': warmup_cosine,
}


def get_lr_scheduler(name, initial_lr, **kwargs):
    """
    Build a learning rate schedule by name.

    Example:
        >>> schedule = get_lr_scheduler('step', 0.1, drop_every=5)
        >>> schedule(5)
        0.05
    """
    name_lower = name.lower().replace('-', '_')
    if name_lower not in LR_SCHEDULERS:
        raise InvalidConfigurationError(
            f"Unknown scheduler '{name}'. Available: {list(LR_SCHEDULERS.keys())}")
    return LR_SCHEDULERS[name_lower](initial_lr, **kwargs)


# Optimizer registry: name -> (class, preset keyword arguments)
OPTIMIZERS = {
    'sgd': (GradientDescent, {}),
    'gradient_descent': (GradientDescent, {}),
    'momentum': (GradientDescent, {'momentum': 0.9}),
    'nesterov': (GradientDescent, {'momentum': 0.9, 'nesterov': True}),
    'adagrad': (AdaGrad, {}),
    'adadelta': (AdaDelta, {}),
    'rmsprop': (RMSProp, {}),
    'adam': (Adam, {}),
}


def get_optimizer(name, network, **kwargs):
    """
    Get optimizer by name.

    Args:
        name: Registry name ('sgd', 'momentum', 'nesterov', 'adagrad',
            'adadelta', 'rmsprop', 'adam') or Optimizer instance
        network: Network the optimizer trains
        **kwargs: Arguments to pass to optimizer, override the presets

    Returns:
        Optimizer instance
    """
    if isinstance(name, Optimizer):
        return name

    name_lower = name.lower().replace('-', '_')
    if name_lower not in OPTIMIZERS:
        raise InvalidConfigurationError(
            f"Unknown optimizer '{name}'. Available: {list(OPTIMIZERS.keys())}")

    cls, preset = OPTIMIZERS[name_lower]
    return cls(network, **{**preset, **kwargs})
