"""Observable session state.

`AuthSession` owns the `AuthState` the rest of the client reads (who is
logged in, whether an auth call is in flight, the last error) and routes
every transition through `AuthService`. It also installs itself on the API
client: the bearer token comes from the credential store and a 401 from any
endpoint ends the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from muktsar_ngo.api.client import MuktsarApiClient
from muktsar_ngo.api.errors import ApiError, UnauthorizedError
from muktsar_ngo.api.models import RegisterDonorRequest, User

from .service import AuthResult, AuthService


@dataclass(frozen=True)
class AuthState:
    is_authenticated: bool = False
    user: Optional[User] = None
    loading: bool = False
    error: Optional[str] = None
    session_expired: bool = False


StateListener = Callable[[AuthState], None]

INVALID_CREDENTIALS = "Invalid phone number or password"


class AuthSession:
    """Session state container wired to an API client.

    Example:
        api = MuktsarApiClient(settings.api_base_url)
        session = AuthSession(AuthService(api, FileCredentialStore(path)), api)
        session.check_auth_status()
        if not session.state.is_authenticated:
            session.login("+919876543210", "secret")
    """

    def __init__(self, auth: AuthService, api: Optional[MuktsarApiClient] = None) -> None:
        self._auth = auth
        self._state = AuthState()
        self._listeners: List[StateListener] = []
        self._logger = logging.getLogger(__name__)
        if api is not None:
            api.token_provider = auth.get_token
            api.on_unauthorized = self.handle_unauthorized

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._state.user

    @property
    def auth(self) -> AuthService:
        return self._auth

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _set(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                self._logger.exception("Session listener failed")

    def check_auth_status(self) -> AuthState:
        """Restore a stored session if the backend still accepts its token."""
        self._set(loading=True)
        try:
            if self._auth.validate_token():
                user = self._auth.get_user()
                if user is not None:
                    self._logger.info("Auto-login successful for user: %s", user.phone or user.email)
                    self._set(is_authenticated=True, user=user, error=None, session_expired=False)
                else:
                    # Token without a user record cannot drive role checks
                    self._auth.clear_auth_data()
            else:
                self._logger.debug("No valid token found - user needs to login")
        finally:
            self._set(loading=False)
        return self._state

    def restore(self) -> AuthState:
        """Load the stored session without asking the backend.

        A stale token is caught by the first request that returns 401.
        """
        user = self._auth.get_user() if self._auth.is_authenticated() else None
        if user is not None:
            self._set(is_authenticated=True, user=user)
        return self._state

    def login(self, phone: str, password: str) -> AuthResult:
        self._set(loading=True, error=None)
        try:
            result = self._auth.login(phone, password)
        except UnauthorizedError:
            self._set(is_authenticated=False, user=None, loading=False, error=INVALID_CREDENTIALS, session_expired=False)
            raise
        except ApiError as exc:
            self._set(is_authenticated=False, user=None, loading=False, error=exc.user_message)
            raise
        self._set(is_authenticated=True, user=result.user, loading=False, error=None, session_expired=False)
        return result

    def register_donor(self, payload: RegisterDonorRequest) -> AuthResult:
        self._set(loading=True, error=None)
        try:
            result = self._auth.register_donor(payload)
        except ApiError as exc:
            self._set(is_authenticated=False, user=None, loading=False, error=exc.user_message)
            raise
        self._set(is_authenticated=True, user=result.user, loading=False, error=None, session_expired=False)
        return result

    def logout(self) -> None:
        self._auth.logout()
        self._set(is_authenticated=False, user=None, loading=False, error=None)

    def refresh_user(self) -> User:
        """Reload the profile from the backend and cache it."""
        user = self._auth.api.get_profile()
        self._auth.set_user(user)
        self._set(user=user)
        return user

    def clear_error(self) -> None:
        self._set(error=None)

    def handle_unauthorized(self, error: UnauthorizedError) -> None:
        """401 hook: drop stored credentials and mark the session expired."""
        self._auth.clear_auth_data()
        self._set(is_authenticated=False, user=None, loading=False, error=error.user_message, session_expired=True)
        self._logger.info("Session cleared after unauthorized response")
