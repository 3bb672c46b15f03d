"""Core module - error taxonomy, notifications and logging setup."""

from .errors import (
    AuthFlowError,
    AuthFlowReason,
    CodeBricksError,
    InputValidationError,
    Notification,
    PermissionDeniedError,
    ProviderError,
    ProviderUnavailableError,
)

__all__ = [
    'AuthFlowError',
    'AuthFlowReason',
    'CodeBricksError',
    'InputValidationError',
    'Notification',
    'PermissionDeniedError',
    'ProviderError',
    'ProviderUnavailableError',
]
