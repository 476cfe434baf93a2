"""Rollgate exceptions."""


class RollgateError(Exception):
    """Base exception for rollgate."""

    pass


class RollgateValidationError(RollgateError, ValueError):
    """Raised when a caller passes invalid input to an evaluation."""

    pass


class InvalidFeatureNameError(RollgateValidationError):
    """Raised when a feature name is empty or not a string."""

    pass


class InvalidUserIdError(RollgateValidationError):
    """Raised when a per-user evaluation gets no usable user identity."""

    pass


class ConfigurationError(RollgateError):
    """Base exception for configuration provider failures."""

    pass


class ConfigurationSourceError(ConfigurationError):
    """Raised when a configuration source cannot be loaded."""

    pass


class ConfigurationRefreshError(ConfigurationError):
    """Raised when a snapshot refresh fails; the previous snapshot stays active."""

    pass
