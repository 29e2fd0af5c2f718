"""Authentication against the Muktsar NGO backend.

`AuthService` performs login, donor self-registration and logout, and keeps
the resulting token and user record in a :class:`CredentialStore`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from pydantic import ValidationError

from muktsar_ngo.api.client import MuktsarApiClient
from muktsar_ngo.api.errors import ApiError, AuthenticationError, InvalidResponseError
from muktsar_ngo.api.models import Donor, RegisterDonorRequest, User

from .credentials import TOKEN_KEY, USER_KEY, CredentialStore


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful login or registration."""

    token: str
    user: User
    donor: Optional[Donor] = None


class AuthService:
    """Login/registration/logout with local credential persistence.

    The API client is expected to read its bearer token from this service
    (``token_provider=auth.get_token``) so that a login is picked up by every
    subsequent request.
    """

    def __init__(self, api: MuktsarApiClient, store: CredentialStore) -> None:
        self._api = api
        self._store = store
        self._logger = logging.getLogger(__name__)

    @property
    def api(self) -> MuktsarApiClient:
        return self._api

    def login(self, phone: str, password: str) -> AuthResult:
        """Log in with phone and password and persist the session.

        Raises:
            AuthenticationError: If the backend answers 2xx without `access_token` and `user`.
            ApiError: For HTTP failures (401 for bad credentials).
        """
        try:
            resp = self._api.login(phone, password)
        except InvalidResponseError as exc:
            raise AuthenticationError("login response missing access_token or user", details=exc.details) from exc
        self._persist(resp.access_token, resp.user)
        self._logger.info("Login successful: user=%s role=%s", resp.user.phone or resp.user.id, resp.user.role)
        return AuthResult(token=resp.access_token, user=resp.user)

    def register_donor(self, payload: RegisterDonorRequest) -> AuthResult:
        """Create a DONOR account plus donor profile and persist the session."""
        try:
            resp = self._api.register_donor(payload)
        except InvalidResponseError as exc:
            raise AuthenticationError(
                "registration response missing access_token or user", details=exc.details
            ) from exc
        user = resp.user
        if resp.donor is not None and not user.donor_id:
            user = user.model_copy(update={"donor_id": resp.donor.id})
        self._persist(resp.access_token, user)
        self._logger.info("Donor registration successful: user=%s role=%s", user.email, user.role)
        return AuthResult(token=resp.access_token, user=user, donor=resp.donor)

    def logout(self) -> None:
        """Notify the backend, then clear local credentials regardless of the outcome."""
        if self.get_token():
            try:
                self._api.logout()
            except ApiError as exc:
                self._logger.info("Logout API call failed, continuing with local logout: %s", exc)
        self.clear_auth_data()
        self._logger.info("User logged out")

    def _persist(self, token: str, user: User) -> None:
        self._store.set(TOKEN_KEY, token)
        self._store.set(USER_KEY, user.model_dump_json(by_alias=True))

    def get_token(self) -> Optional[str]:
        return self._store.get(TOKEN_KEY)

    def get_user(self) -> Optional[User]:
        raw = self._store.get(USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            self._logger.warning("Stored user data is corrupt, ignoring it: %s", exc)
            return None

    def set_user(self, user: User) -> None:
        self._store.set(USER_KEY, user.model_dump_json(by_alias=True))

    def is_authenticated(self) -> bool:
        return bool(self.get_token())

    def validate_token(self) -> bool:
        """Check the stored token against `GET /users/profile`.

        Returns:
            True when the backend accepts the token. On any API failure the
            stored credentials are cleared and False is returned.
        """
        if not self.get_token():
            return False
        try:
            self._api.get_profile()
        except ApiError as exc:
            self._logger.info("Token validation failed: %s", exc)
            self.clear_auth_data()
            return False
        return True

    def clear_auth_data(self) -> None:
        self._store.delete(TOKEN_KEY)
        self._store.delete(USER_KEY)
        self._logger.debug("Auth data cleared")

    def auth_header(self) -> Dict[str, str]:
        token = self.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}
