"""
Feedforward Networks from Scratch
=================================

A from-scratch numerical engine for training feedforward neural networks
using only NumPy. This library demonstrates the mechanics of:
- Dense matrix algebra with bias-augmented column vectors
- Activation / loss pairs with forward and backward semantics
- Backpropagation through a stack of dense layers
- Mini-batch gradient aggregation
- Gradient descent (plain, momentum, Nesterov), AdaGrad, AdaDelta, RMSProp and Adam
"""

from .matrix import Matrix
from .exceptions import (NetworkError, DimensionMismatchError, InvalidConfigurationError,
                         NegativeLearningRateError)
from .activations import ReLU, Sigmoid, Tanh, Softmax, Identity, get_activation
from .losses import LogLoss, CrossEntropyLoss, MSELoss, get_loss
from .layers import Layer, ForwardPassResult
from .network import Network, GradientResult, SetResult
from .optimizers import (Optimizer, GradientDescent, AdaGrad, AdaDelta, RMSProp, Adam,
                         get_optimizer, constant_lr, step_decay, exponential_decay,
                         inverse_decay, cosine_annealing, warmup_cosine, get_lr_scheduler)
from .utils import (random_weights, set_random_seed, binary_classification_accuracy,
                    classification_accuracy, area_under_curve, confusion_matrix)

__version__ = "1.0.0"
__all__ = [
    # Matrix
    'Matrix',
    # Errors
    'NetworkError', 'DimensionMismatchError', 'InvalidConfigurationError',
    'NegativeLearningRateError',
    # Activations
    'ReLU', 'Sigmoid', 'Tanh', 'Softmax', 'Identity', 'get_activation',
    # Losses
    'LogLoss', 'CrossEntropyLoss', 'MSELoss', 'get_loss',
    # Layers
    'Layer', 'ForwardPassResult',
    # Main class
    'Network', 'GradientResult', 'SetResult',
    # Optimizers
    'Optimizer', 'GradientDescent', 'AdaGrad', 'AdaDelta', 'RMSProp', 'Adam',
    'get_optimizer',
    # Learning rate schedules
    'constant_lr', 'step_decay', 'exponential_decay', 'inverse_decay',
    'cosine_annealing', 'warmup_cosine', 'get_lr_scheduler',
    # Utilities
    'random_weights', 'set_random_seed', 'binary_classification_accuracy',
    'classification_accuracy', 'area_under_curve', 'confusion_matrix',
]
