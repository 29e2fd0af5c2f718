"""Error types raised by the Muktsar NGO API layer.

Purpose:
- Provide typed exceptions thrown by `MuktsarApiClient` and the services built
  on it.
- Expose HTTP-oriented context (status code, error body) for diagnosis.
- Carry the user-facing `title` / `user_message` pair the client shows in
  place of a platform alert dialog.

Usage:
- Catch `ApiError` for any backend failure and show `title` and `user_message`.
- Catch `UnauthorizedError` to send the user back to login; by the time it is
  raised the client's `on_unauthorized` hook has already run.
- `AccessDeniedError` is raised locally by role checks, before any request.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type

import httpx


class ApiError(Exception):
    """Base error for backend failures.

    Args:
        message: Developer-facing error description (used for logs).
        status_code: Optional HTTP status code associated with the failure.
        details: Optional payload from the server (JSON body or text).
        user_message: Optional override for the message shown to the user.
    """

    title = "Error"
    default_user_message = "An unexpected error occurred. Please try again."

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        user_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details
        self.user_message = user_message or self.default_user_message


class UnauthorizedError(ApiError):
    """HTTP 401: token missing, expired or rejected."""

    title = "Session Expired"
    default_user_message = "Your session has expired. Please log in again."


class ForbiddenError(ApiError):
    """HTTP 403: the authenticated user lacks the required role."""

    title = "Access Denied"
    default_user_message = "You do not have permission to perform this action."


class NotFoundError(ApiError):
    """HTTP 404."""

    title = "Not Found"
    default_user_message = "The requested resource was not found."


class ValidationFailedError(ApiError):
    """HTTP 422: the backend rejected the payload. `user_message` is the server's text."""

    title = "Validation Error"
    default_user_message = "Validation failed"


class ServerError(ApiError):
    """HTTP 500."""

    title = "Server Error"
    default_user_message = "An internal server error occurred. Please try again later."


class ApiTimeoutError(ApiError):
    """The request did not complete within the configured timeout."""

    title = "Request Timeout"
    default_user_message = (
        "The request took too long to complete. Please check your internet connection and try again."
    )


class ApiNetworkError(ApiError):
    """The backend could not be reached at all."""

    title = "Network Error"
    default_user_message = "Unable to connect to the server. Please check your internet connection."


class InvalidResponseError(ApiError):
    """The backend answered 2xx with a body the client cannot interpret."""

    title = "Unexpected Error"


class AuthenticationError(ApiError):
    """Login or registration returned a body without `access_token` and `user`."""

    title = "Login Failed"
    default_user_message = "Invalid response format from server"


class AccessDeniedError(Exception):
    """Raised locally when the current user's role does not allow an action.

    Args:
        action: Short description of the refused action.
        role: The user's role (or None when nobody is logged in).
    """

    title = "Access Denied"

    def __init__(self, action: str, role: Optional[str]) -> None:
        super().__init__(f"Role '{role or 'anonymous'}' is not permitted to {action}")
        self.action = action
        self.role = role
        self.user_message = "You do not have permission to perform this action."


_STATUS_ERRORS: Dict[int, Type[ApiError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    422: ValidationFailedError,
    500: ServerError,
}


def _server_message(details: Any) -> Optional[str]:
    """Extract the `message` field of a NestJS error body.

    The validation pipe sends a list of strings; those are joined.
    """
    if not isinstance(details, dict):
        return None
    message = details.get("message")
    if isinstance(message, list):
        parts = [str(m) for m in message if m]
        return "; ".join(parts) or None
    if isinstance(message, str) and message.strip():
        return message
    return None


def error_from_response(response: httpx.Response, *, operation: str = "request") -> ApiError:
    """Build the typed error matching a non-2xx response.

    Args:
        response: The failed HTTP response.
        operation: Name of the client operation, used in the developer message.

    Returns:
        An `ApiError` subclass instance (not raised).
    """
    status = response.status_code
    try:
        details: Any = response.json()
    except ValueError:
        details = response.text
    server_message = _server_message(details)
    message = f"{operation} failed: {status}"

    cls = _STATUS_ERRORS.get(status)
    if cls is ValidationFailedError:
        return cls(message, status_code=status, details=details, user_message=server_message)
    if cls is not None:
        return cls(message, status_code=status, details=details)
    return ApiError(
        message,
        status_code=status,
        details=details,
        user_message=server_message or f"Request failed with status {status}",
    )
