from __future__ import annotations

import httpx
import pytest

from muktsar_ngo.api.errors import (
    AccessDeniedError,
    ApiError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
    error_from_response,
)


def _response(status: int, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", "http://mock/x"), **kwargs)


def test_unauthorized_has_session_expired_message() -> None:
    err = error_from_response(_response(401, json={"message": "Unauthorized"}), operation="get_profile")

    assert isinstance(err, UnauthorizedError)
    assert err.title == "Session Expired"
    assert err.user_message == "Your session has expired. Please log in again."
    assert "get_profile failed: 401" in str(err)


def test_not_found_ignores_server_text() -> None:
    err = error_from_response(_response(404, json={"message": "Donor d-9 not found"}))

    assert isinstance(err, NotFoundError)
    assert err.user_message == "The requested resource was not found."
    assert err.details == {"message": "Donor d-9 not found"}


@pytest.mark.parametrize(
    "body,expected",
    [
        ({"message": "phone must be unique"}, "phone must be unique"),
        ({"message": ["a is required", "b is required"]}, "a is required; b is required"),
        ({"message": []}, "Validation failed"),
        ({}, "Validation failed"),
    ],
)
def test_validation_failed_uses_server_message(body, expected) -> None:
    err = error_from_response(_response(422, json=body))

    assert isinstance(err, ValidationFailedError)
    assert err.user_message == expected


def test_text_body_is_kept_as_details() -> None:
    err = error_from_response(_response(502, text="Bad Gateway"))

    assert type(err) is ApiError
    assert err.details == "Bad Gateway"
    assert err.user_message == "Request failed with status 502"


def test_access_denied_names_role_and_action() -> None:
    err = AccessDeniedError("create alerts", "DONOR")

    assert err.title == "Access Denied"
    assert "DONOR" in str(err)
    assert "create alerts" in str(err)
    assert "anonymous" in str(AccessDeniedError("create alerts", None))
