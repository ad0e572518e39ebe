"""
Exceptions
==========

Every failure in the library is raised synchronously from the call that
triggered it. Nothing is retried or swallowed.

Numeric instability (a loss that turns into NaN or inf) is NOT an exception:
it surfaces through the ordinary loss value, and a training loop's
stop condition is expected to watch for it.
"""


class NetworkError(ValueError):
    """Base class for all errors raised by the library."""


class DimensionMismatchError(NetworkError):
    """Two operands (or a supplied weight matrix) have incompatible shapes."""


class InvalidConfigurationError(NetworkError):
    """The network, a layer or a registry lookup is configured in an unsupported way."""


class NegativeLearningRateError(NetworkError):
    """The learning rate computed for an iteration is negative."""
