from .credentials import (
    TOKEN_KEY,
    USER_KEY,
    CredentialStore,
    FileCredentialStore,
    InMemoryCredentialStore,
)
from .service import AuthResult, AuthService
from .session import AuthSession, AuthState

__all__ = [
    "TOKEN_KEY",
    "USER_KEY",
    "AuthResult",
    "AuthService",
    "AuthSession",
    "AuthState",
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
]
