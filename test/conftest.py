from __future__ import annotations

import json as _json
from typing import Callable, Dict, Iterable, Optional

import httpx
import pytest

from muktsar_ngo.api.client import MuktsarApiClient
from muktsar_ngo.api.models import User
from muktsar_ngo.auth import AuthService, AuthSession, InMemoryCredentialStore
from muktsar_ngo.auth.credentials import TOKEN_KEY, USER_KEY
from muktsar_ngo.core.config import reset_settings_cache

BASE_URL = "http://mock"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
    )

    orig_sync = httpx._client.Client.request

    def _is_allowed(url_str: str) -> bool:
        return any(url_str.startswith(p) for p in allowed_prefixes)

    def offline_sync(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return orig_sync(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard: {url_str}")

    monkeypatch.setattr(httpx._client.Client, "request", offline_sync, raising=True)
    yield


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Point every file the client writes at a temp dir and forget cached settings."""
    monkeypatch.setenv("MUKTSAR_API_BASE_URL", BASE_URL)
    monkeypatch.setenv("MUKTSAR_CREDENTIALS_PATH", str(tmp_path / "credentials.json"))
    monkeypatch.setenv("MUKTSAR_ACKNOWLEDGEMENTS_PATH", str(tmp_path / "acknowledged_alerts.json"))
    monkeypatch.setenv("MUKTSAR_LOG_FILE_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("MUKTSAR_ENABLE_FILE_LOGGING", "false")
    reset_settings_cache()
    yield
    reset_settings_cache()


class RecordingHandler:
    """MockTransport handler that answers from a route table and records every request.

    Routes map ``"METHOD /path"`` to a response or to a callable taking the
    request. Unknown routes answer 404.
    """

    def __init__(self, routes: Optional[Dict[str, object]] = None) -> None:
        self.routes: Dict[str, object] = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(f"{request.method} {request.url.path}")
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(route):
            return route(request)
        return route  # type: ignore[return-value]

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return _json.loads(request.content.decode("utf-8")) if request.content else {}


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def make_api(handler: RecordingHandler) -> Callable[..., MuktsarApiClient]:
    def _make(**kwargs) -> MuktsarApiClient:
        client = httpx.Client(transport=httpx.MockTransport(handler), base_url=BASE_URL)
        return MuktsarApiClient(BASE_URL, client=client, **kwargs)

    return _make


@pytest.fixture
def admin_user() -> User:
    return User(id="u-admin", phone="+919800000001", firstName="Asha", lastName="Kaur", role="ADMIN")


@pytest.fixture
def donor_user() -> User:
    return User(id="u-donor", phone="+919800000002", name="Gurpreet Singh", role="donor", donorId="d-1")


def _logged_in_session(api: MuktsarApiClient, user: User) -> AuthSession:
    store = InMemoryCredentialStore({TOKEN_KEY: "tok-123", USER_KEY: user.model_dump_json(by_alias=True)})
    session = AuthSession(AuthService(api, store), api)
    session.restore()
    return session


@pytest.fixture
def admin_session(make_api, admin_user) -> AuthSession:
    return _logged_in_session(make_api(), admin_user)


@pytest.fixture
def donor_session(make_api, donor_user) -> AuthSession:
    return _logged_in_session(make_api(), donor_user)
