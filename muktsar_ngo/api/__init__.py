from muktsar_ngo.api.models import (
    AcceptedDonor,
    Alert,
    AlertStatus,
    BloodGroup,
    Donor,
    Gender,
    Role,
    Urgency,
    User,
)

from .client import MuktsarApiClient
from .errors import (
    AccessDeniedError,
    ApiError,
    ApiNetworkError,
    ApiTimeoutError,
    AuthenticationError,
    ForbiddenError,
    InvalidResponseError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationFailedError,
)

__all__ = [
    "MuktsarApiClient",
    "AcceptedDonor",
    "Alert",
    "AlertStatus",
    "BloodGroup",
    "Donor",
    "Gender",
    "Role",
    "Urgency",
    "User",
    "AccessDeniedError",
    "ApiError",
    "ApiNetworkError",
    "ApiTimeoutError",
    "AuthenticationError",
    "ForbiddenError",
    "InvalidResponseError",
    "NotFoundError",
    "ServerError",
    "UnauthorizedError",
    "ValidationFailedError",
]
