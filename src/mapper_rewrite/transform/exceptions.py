"""Exceptions for file transformation operations."""


class TransformError(Exception):
    """Base exception for all transformation operations."""


class ConfigurationError(TransformError):
    """Raised when run configuration is invalid; fatal before processing starts."""


class MalformedPromptError(ConfigurationError):
    """Raised when the prompt template cannot be combined with file content."""


class ProviderConfigError(ConfigurationError):
    """Raised when the transformation service cannot be configured (provider, API key)."""


class ServiceError(TransformError):
    """Base exception for failures of the external transformation service."""


class ServiceCallError(ServiceError):
    """Raised when the service call itself errors."""


class EmptyResponseError(ServiceError):
    """Raised when the service returns no candidate output."""


class NonTextResponseError(ServiceError):
    """Raised when the service returns a payload that is not text."""
