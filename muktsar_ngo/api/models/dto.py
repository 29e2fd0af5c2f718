"""Request/response DTOs for the Muktsar NGO REST API.

Pydantic models that define the wire contracts of the backend. These DTOs
centralize serialization/deserialization so the client and services never
touch raw dictionaries.

Guidelines:
- Request bodies derive from `RequestSchema` (camelCase out, unknown fields rejected).
- Response payloads derive from `BaseSchema` (unknown fields ignored).
- Normalize flexible wire formats into a single structured model: list
  endpoints answer with a bare list, `{data: [...], pagination}` or
  `{data: {data: [...]}}` depending on the controller.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, List, Optional, Union

from pydantic import Field, field_serializer, field_validator, model_validator

from muktsar_ngo.schemas.base import BaseSchema, RequestSchema

from .domain import (
    AcceptedDonor,
    Alert,
    BloodGroup,
    Donor,
    Gender,
    Pagination,
    Urgency,
    User,
)


def to_iso_utc(value: Union[date, datetime, None]) -> Optional[str]:
    """Render a date as the backend's ISO timestamp (`2024-01-15T00:00:00.000Z`)."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min, tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(RequestSchema):
    """Body of `POST /auth/login`."""

    phone: str = Field(..., min_length=1, description="Phone number the account was registered with.")
    password: str = Field(..., min_length=1)


class LoginResponse(BaseSchema):
    """`{access_token, user}` returned by a successful login.

    `access_token` is snake_case on the wire, so it gets an explicit alias.
    """

    access_token: str = Field(..., alias="access_token", min_length=1)
    user: User


class RegisterDonorRequest(RequestSchema):
    """Body of `POST /auth/register` for the donor variant.

    The backend creates a DONOR account and its donor profile in one call.
    """

    phone: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = Field(default=None)
    blood_group: BloodGroup = Field(...)
    gender: Gender = Field(...)
    date_of_birth: date = Field(...)
    address: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    pincode: Optional[str] = Field(default=None)
    emergency_contact: Optional[str] = Field(default=None)
    medical_conditions: Optional[str] = Field(default=None)
    last_donation_date: Optional[date] = Field(default=None)

    @field_validator("blood_group", mode="before")
    @classmethod
    def _parse_blood_group(cls, v):
        return BloodGroup(v) if isinstance(v, str) else v

    @field_validator("gender", mode="before")
    @classmethod
    def _parse_gender(cls, v):
        return Gender(v) if isinstance(v, str) else v

    @field_serializer("date_of_birth", "last_donation_date")
    def _serialize_dates(self, v: Optional[date]) -> Optional[str]:
        return to_iso_utc(v)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["name"] = f"{self.first_name} {self.last_name}".strip()
        return payload


class RegisterDonorResponse(BaseSchema):
    """`{access_token, user, donor}` returned by donor registration."""

    access_token: str = Field(..., alias="access_token", min_length=1)
    user: User
    donor: Optional[Donor] = None
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Donors
# ---------------------------------------------------------------------------


class DonorCreate(RequestSchema):
    """Body of `POST /donors` (admin adds a donor without an account)."""

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    blood_group: BloodGroup = Field(...)
    gender: Optional[Gender] = Field(default=None)
    email: Optional[str] = Field(default=None)
    date_of_birth: Optional[date] = Field(default=None)
    address: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    pincode: Optional[str] = Field(default=None)
    last_donation_date: Optional[date] = Field(default=None)
    emergency_contact: Optional[str] = Field(default=None)
    medical_conditions: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)

    @field_validator("blood_group", mode="before")
    @classmethod
    def _parse_blood_group(cls, v):
        return BloodGroup(v) if isinstance(v, str) else v

    @field_validator("gender", mode="before")
    @classmethod
    def _parse_gender(cls, v):
        return Gender(v) if isinstance(v, str) else v

    @field_serializer("date_of_birth", "last_donation_date")
    def _serialize_dates(self, v: Optional[date]) -> Optional[str]:
        return to_iso_utc(v)


class DonorUpdate(RequestSchema):
    """Body of `PATCH /donors/:id`. Only the fields that are set are sent."""

    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None)
    blood_group: Optional[BloodGroup] = Field(default=None)
    gender: Optional[Gender] = Field(default=None)
    address: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    pincode: Optional[str] = Field(default=None)
    is_active: Optional[bool] = Field(default=None)
    emergency_contact: Optional[str] = Field(default=None)
    medical_conditions: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)

    @field_validator("blood_group", mode="before")
    @classmethod
    def _parse_blood_group(cls, v):
        return BloodGroup(v) if isinstance(v, str) else v

    @field_validator("gender", mode="before")
    @classmethod
    def _parse_gender(cls, v):
        return Gender(v) if isinstance(v, str) else v


class LastDonationUpdate(RequestSchema):
    """Body of `PATCH /donors/:id/last-donation`."""

    last_donation_date: date = Field(...)

    @field_serializer("last_donation_date")
    def _serialize_date(self, v: date) -> Optional[str]:
        return to_iso_utc(v)


class DonorListQuery(RequestSchema):
    """Query params for `GET /donors`.

    Use `to_params()` to serialize to HTTP query parameters (booleans are lowercased strings).
    """

    page: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=500)
    search: Optional[str] = Field(default=None)
    blood_group: Optional[BloodGroup] = Field(default=None)
    city: Optional[str] = Field(default=None)
    is_eligible: Optional[bool] = Field(default=None)

    @field_validator("blood_group", mode="before")
    @classmethod
    def _parse_blood_group(cls, v):
        return BloodGroup(v) if isinstance(v, str) else v

    def to_params(self) -> dict[str, str]:
        """Serialize the query into HTTP params, excluding None values."""
        data = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        params: dict[str, str] = {}
        for k, v in data.items():
            if isinstance(v, bool):
                params[k] = str(v).lower()
            else:
                params[k] = str(v)
        return params


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


class AlertCreate(RequestSchema):
    """Body of `POST /alerts`."""

    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    hospital_name: str = Field(..., min_length=1)
    blood_group: BloodGroup = Field(...)
    units_required: int = Field(default=1, ge=1)
    urgency: Urgency = Field(default=Urgency.HIGH)
    contact_number: str = Field(..., min_length=1)
    additional_notes: Optional[str] = Field(default=None)
    expires_at: Optional[datetime] = Field(default=None)

    @field_validator("blood_group", mode="before")
    @classmethod
    def _parse_blood_group(cls, v):
        return BloodGroup(v) if isinstance(v, str) else v

    @field_validator("urgency", mode="before")
    @classmethod
    def _parse_urgency(cls, v):
        return Urgency(v) if isinstance(v, str) else v

    @field_serializer("expires_at")
    def _serialize_expiry(self, v: Optional[datetime]) -> Optional[str]:
        return to_iso_utc(v)


class AlertUpdate(RequestSchema):
    """Body of `PATCH /alerts/:id`."""

    title: Optional[str] = Field(default=None, min_length=1)
    message: Optional[str] = Field(default=None)
    hospital_name: Optional[str] = Field(default=None, min_length=1)
    units_required: Optional[int] = Field(default=None, ge=1)
    urgency: Optional[Urgency] = Field(default=None)
    contact_number: Optional[str] = Field(default=None)
    additional_notes: Optional[str] = Field(default=None)
    expires_at: Optional[datetime] = Field(default=None)

    @field_validator("urgency", mode="before")
    @classmethod
    def _parse_urgency(cls, v):
        return Urgency(v) if isinstance(v, str) else v

    @field_serializer("expires_at")
    def _serialize_expiry(self, v: Optional[datetime]) -> Optional[str]:
        return to_iso_utc(v)


class AcceptAlertRequest(RequestSchema):
    """Body of `POST /alerts/:id/accept`."""

    donor_id: str = Field(..., min_length=1)


class AlertListQuery(RequestSchema):
    """Query params for `GET /alerts`."""

    page: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=500)
    status: Optional[str] = Field(default=None)
    urgency: Optional[Urgency] = Field(default=None)

    @field_validator("urgency", mode="before")
    @classmethod
    def _parse_urgency(cls, v):
        return Urgency(v) if isinstance(v, str) else v

    def to_params(self) -> dict[str, str]:
        data = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        return {k: str(v) for k, v in data.items()}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class ProfileUpdate(RequestSchema):
    """Body of `PUT /users/profile`."""

    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)


# ---------------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------------


def _unwrap_list_payload(v: Any) -> Any:
    """Coerce the supported list wire shapes into `{items: [...], pagination}`.

    - `[...]` → `{items: [...]}`
    - `{data: [...], pagination}` → `{items: [...], pagination}`
    - `{data: {data: [...]}}` → `{items: [...]}`
    - `{items: [...]}` preserved
    """
    if isinstance(v, list):
        return {"items": v}
    if isinstance(v, dict):
        if isinstance(v.get("items"), list):
            return v
        data = v.get("data")
        if isinstance(data, list):
            return {"items": data, "pagination": v.get("pagination")}
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            return {"items": data["data"], "pagination": data.get("pagination") or v.get("pagination")}
    return v


def unwrap_record(v: Any) -> Any:
    """Return the record from either a bare object or a `{data: {...}}` envelope."""
    if isinstance(v, dict) and isinstance(v.get("data"), dict) and "id" not in v:
        return v["data"]
    return v


class DonorPage(BaseSchema):
    """Normalized donor listing."""

    items: List[Donor] = Field(default_factory=list)
    pagination: Optional[Pagination] = None

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, v):
        return _unwrap_list_payload(v)


class AlertPage(BaseSchema):
    """Normalized alert listing."""

    items: List[Alert] = Field(default_factory=list)
    pagination: Optional[Pagination] = None

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, v):
        return _unwrap_list_payload(v)


class AcceptedDonorList(BaseSchema):
    """Normalized `/alerts/:id/accepted-donors` payload.

    Entries may be donor objects or acceptance rows nesting the donor under
    `donor`; the latter are flattened with their `acceptedAt` kept.
    """

    items: List[AcceptedDonor] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, v):
        v = _unwrap_list_payload(v)
        if isinstance(v, dict) and isinstance(v.get("items"), list):
            flattened = []
            for entry in v["items"]:
                if isinstance(entry, dict) and isinstance(entry.get("donor"), dict):
                    row = dict(entry["donor"])
                    row.setdefault("acceptedAt", entry.get("acceptedAt") or entry.get("createdAt"))
                    flattened.append(row)
                else:
                    flattened.append(entry)
            return {"items": flattened}
        return v
