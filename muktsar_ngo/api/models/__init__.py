"""API models.

Re-exports domain models (e.g. `Donor`, `Alert`, `User`) and DTOs (e.g.
`LoginRequest`, `AlertCreate`, `DonorPage`) consumed by `MuktsarApiClient`
and the service layers.
"""

from muktsar_ngo.api.models.domain import (
    TERMINAL_ALERT_STATUSES,
    AcceptedDonor,
    Alert,
    AlertStatus,
    BloodGroup,
    Donor,
    Gender,
    Pagination,
    Role,
    Urgency,
    User,
)
from muktsar_ngo.api.models.dto import (
    AcceptAlertRequest,
    AcceptedDonorList,
    AlertCreate,
    AlertListQuery,
    AlertPage,
    AlertUpdate,
    DonorCreate,
    DonorListQuery,
    DonorPage,
    DonorUpdate,
    LastDonationUpdate,
    LoginRequest,
    LoginResponse,
    ProfileUpdate,
    RegisterDonorRequest,
    RegisterDonorResponse,
)

__all__ = [
    # Domain models
    "AcceptedDonor",
    "Alert",
    "AlertStatus",
    "BloodGroup",
    "Donor",
    "Gender",
    "Pagination",
    "Role",
    "TERMINAL_ALERT_STATUSES",
    "Urgency",
    "User",
    # DTO models
    "AcceptAlertRequest",
    "AcceptedDonorList",
    "AlertCreate",
    "AlertListQuery",
    "AlertPage",
    "AlertUpdate",
    "DonorCreate",
    "DonorListQuery",
    "DonorPage",
    "DonorUpdate",
    "LastDonationUpdate",
    "LoginRequest",
    "LoginResponse",
    "ProfileUpdate",
    "RegisterDonorRequest",
    "RegisterDonorResponse",
]
