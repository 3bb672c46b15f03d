"""
Error taxonomy shared by the API, the flows, the snippet store and the client.

Every error carries a short user-facing title and description so that the
point where a user action is handled can turn it into a notification.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class AuthFlowReason(str, Enum):
    """Distinguishable reasons for a failed sign-in."""
    UNAUTHORIZED_DOMAIN = "auth/unauthorized-domain"
    POPUP_CLOSED = "auth/popup-closed-by-user"
    CANCELLED_POPUP_REQUEST = "auth/cancelled-popup-request"
    INVALID_CREDENTIAL = "auth/invalid-credential"
    UNKNOWN = "auth/unknown"


class CodeBricksError(Exception):
    """Base class for all errors surfaced to a user action."""

    code = "error"
    title = "Something went wrong"
    status_code = 500

    def __init__(self, description: str, title: Optional[str] = None):
        super().__init__(description)
        self.description = description
        if title is not None:
            self.title = title

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "title": self.title, "description": self.description}


class InputValidationError(CodeBricksError):
    """Malformed or missing input, caught before any network call."""
    code = "validation_error"
    title = "Invalid input"
    status_code = 422


class ProviderError(CodeBricksError):
    """The generative model failed or returned malformed output."""
    code = "provider_error"
    title = "AI request failed"
    status_code = 502


class ProviderUnavailableError(ProviderError):
    """The generative model is overloaded, unavailable or not configured."""
    code = "provider_unavailable"
    title = "AI model unavailable"
    status_code = 503


class PermissionDeniedError(CodeBricksError):
    """The store or auth layer rejected the operation for the current identity."""
    code = "permission_denied"
    title = "Permission denied"
    status_code = 403


class AuthFlowError(CodeBricksError):
    """Sign-in failed for a specific, distinguishable reason."""
    code = "auth_error"
    title = "Sign In Failed"
    status_code = 401

    _DESCRIPTIONS = {
        AuthFlowReason.UNAUTHORIZED_DOMAIN: "This domain is not authorized for sign-in.",
        AuthFlowReason.POPUP_CLOSED: "The sign-in window was closed before completing.",
        AuthFlowReason.CANCELLED_POPUP_REQUEST: "Another sign-in request is already in progress.",
        AuthFlowReason.INVALID_CREDENTIAL: "Incorrect username or password.",
        AuthFlowReason.UNKNOWN: "Could not sign in. Please try again.",
    }

    def __init__(self, reason: AuthFlowReason, description: Optional[str] = None):
        self.reason = AuthFlowReason(reason)
        super().__init__(description or self._DESCRIPTIONS[self.reason])
        if self.reason == AuthFlowReason.UNAUTHORIZED_DOMAIN:
            self.status_code = 403

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason.value
        return data


_ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        InputValidationError,
        ProviderError,
        ProviderUnavailableError,
        PermissionDeniedError,
    )
}


def error_from_payload(payload: Dict[str, Any], status_code: int = 500) -> CodeBricksError:
    """
    Rebuild an error from an API error body.

    Args:
        payload: JSON body produced by ``CodeBricksError.to_dict``
        status_code: HTTP status of the response, used when the body is not ours

    Returns:
        CodeBricksError subclass instance
    """
    code = payload.get("error")
    description = str(payload.get("description") or payload.get("detail") or "Request failed")
    title = payload.get("title")

    if code == AuthFlowError.code:
        try:
            reason = AuthFlowReason(payload.get("reason"))
        except ValueError:
            reason = AuthFlowReason.UNKNOWN
        return AuthFlowError(reason, description)

    cls = _ERRORS_BY_CODE.get(code)
    if cls is None:
        if status_code == 401:
            return AuthFlowError(AuthFlowReason.UNKNOWN, description)
        if status_code == 403:
            cls = PermissionDeniedError
        elif status_code in (400, 422):
            cls = InputValidationError
        elif status_code in (429, 503):
            cls = ProviderUnavailableError
        else:
            cls = CodeBricksError
    return cls(description, title=title)


class Notification(BaseModel):
    """User-facing notification (toast) produced by a user action."""
    title: str
    description: Optional[str] = None
    variant: str = "default"  # "default" or "destructive"

    @classmethod
    def from_error(cls, error: Exception) -> "Notification":
        if isinstance(error, CodeBricksError):
            return cls(title=error.title, description=error.description, variant="destructive")
        return cls(
            title="Unexpected error",
            description=str(error) or "An unknown error occurred.",
            variant="destructive",
        )
