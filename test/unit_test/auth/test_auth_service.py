from __future__ import annotations

from datetime import date

import httpx
import pytest

from muktsar_ngo.api.errors import AuthenticationError, UnauthorizedError
from muktsar_ngo.api.models import RegisterDonorRequest
from muktsar_ngo.auth import AuthService, InMemoryCredentialStore
from muktsar_ngo.auth.credentials import TOKEN_KEY, USER_KEY

LOGIN_OK = {"access_token": "tok-1", "user": {"id": "u1", "phone": "+919800000001", "role": "ADMIN"}}


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def auth(make_api, store) -> AuthService:
    return AuthService(make_api(), store)


class TestLogin:
    def test_login_persists_token_and_user(self, handler, auth, store) -> None:
        handler.routes["POST /auth/login"] = httpx.Response(200, json=LOGIN_OK)

        result = auth.login("+919800000001", "secret")

        assert result.token == "tok-1"
        assert store.get(TOKEN_KEY) == "tok-1"
        assert auth.get_user().role == "ADMIN"
        assert auth.is_authenticated()
        assert auth.auth_header() == {"Authorization": "Bearer tok-1"}

    def test_malformed_login_response(self, handler, auth, store) -> None:
        handler.routes["POST /auth/login"] = httpx.Response(200, json={"token": "wrong-key"})

        with pytest.raises(AuthenticationError) as exc_info:
            auth.login("+919800000001", "secret")

        assert exc_info.value.title == "Login Failed"
        assert store.get(TOKEN_KEY) is None

    def test_bad_credentials_propagate(self, handler, auth, store) -> None:
        handler.routes["POST /auth/login"] = httpx.Response(401, json={"message": "Invalid credentials"})

        with pytest.raises(UnauthorizedError):
            auth.login("+919800000001", "wrong")

        assert not auth.is_authenticated()


def test_register_donor_persists_session(handler, auth) -> None:
    handler.routes["POST /auth/register"] = httpx.Response(
        201,
        json={
            "access_token": "tok-d",
            "user": {"id": "u2", "role": "DONOR", "email": "g@example.org"},
            "donor": {"id": "d-1", "name": "Gurpreet Singh", "bloodGroup": "O_POSITIVE"},
        },
    )
    payload = RegisterDonorRequest(
        phone="+919800000002",
        password="secret1",
        first_name="Gurpreet",
        last_name="Singh",
        blood_group="O+",
        gender="MALE",
        date_of_birth=date(1990, 5, 17),
    )

    result = auth.register_donor(payload)

    assert result.donor.id == "d-1"
    assert result.user.donor_id == "d-1"
    assert auth.get_user().donor_id == "d-1"
    assert auth.get_token() == "tok-d"
    assert handler.body(handler.requests[0])["name"] == "Gurpreet Singh"


class TestLogout:
    def test_logout_clears_even_when_api_fails(self, handler, make_api) -> None:
        handler.routes["POST /auth/logout"] = httpx.Response(500, json={})
        store = InMemoryCredentialStore({TOKEN_KEY: "tok-1", USER_KEY: '{"id": "u1"}'})
        auth = AuthService(make_api(token_provider=lambda: store.get(TOKEN_KEY)), store)

        auth.logout()

        assert store.get(TOKEN_KEY) is None
        assert store.get(USER_KEY) is None
        assert handler.calls("POST", "/auth/logout")

    def test_logout_without_token_skips_api(self, handler, auth) -> None:
        auth.logout()

        assert handler.requests == []


class TestValidateToken:
    def test_no_token(self, handler, auth) -> None:
        assert auth.validate_token() is False
        assert handler.requests == []

    def test_valid_token(self, handler, auth, store) -> None:
        store.set(TOKEN_KEY, "tok-1")
        handler.routes["GET /users/profile"] = httpx.Response(200, json={"id": "u1"})

        assert auth.validate_token() is True
        assert store.get(TOKEN_KEY) == "tok-1"

    def test_rejected_token_clears_credentials(self, handler, auth, store) -> None:
        store.set(TOKEN_KEY, "tok-1")
        handler.routes["GET /users/profile"] = httpx.Response(401, json={})

        assert auth.validate_token() is False
        assert store.get(TOKEN_KEY) is None


def test_corrupt_user_data_is_ignored(store, auth) -> None:
    store.set(USER_KEY, "not-json")

    assert auth.get_user() is None
