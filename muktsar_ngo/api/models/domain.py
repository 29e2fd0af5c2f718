"""Domain models exchanged with the Muktsar NGO backend.

Defines the enums (`BloodGroup`, `Gender`, `Urgency`, `AlertStatus`, `Role`)
and the records (`User`, `Donor`, `AcceptedDonor`, `Alert`, `Pagination`)
returned by the REST API. Records are plain data: the only client-side rules
are display helpers.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from muktsar_ngo.schemas.base import BaseSchema


class _UpperCaseEnum(str, Enum):
    """String enum that also accepts lower/mixed-case input."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            upper = value.strip().upper()
            for member in cls:
                if member.value == upper:
                    return member
        return None


class BloodGroup(_UpperCaseEnum):
    """Blood groups as stored by the backend (`A_POSITIVE`), displayed as `A+`."""

    A_POSITIVE = "A_POSITIVE"
    A_NEGATIVE = "A_NEGATIVE"
    B_POSITIVE = "B_POSITIVE"
    B_NEGATIVE = "B_NEGATIVE"
    AB_POSITIVE = "AB_POSITIVE"
    AB_NEGATIVE = "AB_NEGATIVE"
    O_POSITIVE = "O_POSITIVE"
    O_NEGATIVE = "O_NEGATIVE"

    @property
    def display(self) -> str:
        """Short display label, e.g. ``A+``."""
        group, _, sign = self.value.partition("_")
        return group + ("+" if sign == "POSITIVE" else "-")

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.display == value.strip().upper():
                    return member
        return super()._missing_(value)

    @classmethod
    def from_value(cls, value: str) -> "BloodGroup":
        """Parse either the backend form (``O_NEGATIVE``) or the display form (``O-``).

        Raises:
            ValueError: If the value is not a known blood group.
        """
        return cls(value)


class Gender(_UpperCaseEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class Urgency(_UpperCaseEnum):
    """Urgency of an emergency alert, lowest first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return list(Urgency).index(self)


class AlertStatus(_UpperCaseEnum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


TERMINAL_ALERT_STATUSES = frozenset({AlertStatus.COMPLETED, AlertStatus.RESOLVED, AlertStatus.CANCELLED})


class Role(_UpperCaseEnum):
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"
    VOLUNTEER = "VOLUNTEER"
    DONOR = "DONOR"


def _upper_or_none(value):
    if isinstance(value, str):
        value = value.strip().upper()
        return value or None
    return value


class User(BaseSchema):
    """Authenticated account as returned by `/auth/login` and `/users/profile`."""

    id: str = Field(..., description="Backend identifier of the user account.")
    email: Optional[str] = Field(default=None, description="Account email.")
    phone: Optional[str] = Field(default=None, description="Account phone number, used to log in.")
    first_name: Optional[str] = Field(default=None)
    last_name: Optional[str] = Field(default=None)
    name: Optional[str] = Field(default=None, description="Full name when the backend sends it pre-joined.")
    role: Optional[str] = Field(
        default=None,
        description="Role string, normalized to upper case (ADMIN, SUPER_ADMIN, VOLUNTEER, DONOR).",
    )
    is_active: Optional[bool] = Field(default=None)
    donor_id: Optional[str] = Field(default=None, description="Linked donor record for DONOR accounts.")

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v):
        return _upper_or_none(v)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return str(v) if isinstance(v, int) else v

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.phone or self.email or self.id


class Donor(BaseSchema):
    """Registered blood donor."""

    id: str = Field(..., description="Backend identifier of the donor record.")
    name: str = Field(..., description="Full name of the donor.")
    email: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    blood_group: BloodGroup = Field(..., description="Blood group in backend form (e.g. O_POSITIVE).")
    gender: Optional[Gender] = Field(default=None)
    date_of_birth: Optional[datetime] = Field(default=None)
    address: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)
    pincode: Optional[str] = Field(default=None)
    last_donation_date: Optional[datetime] = Field(default=None)
    total_donations: int = Field(default=0, ge=0)
    is_eligible: Optional[bool] = Field(
        default=None,
        description="Eligibility as computed by the backend; None when the backend does not send it.",
    )
    is_active: Optional[bool] = Field(default=None)
    emergency_contact: Optional[str] = Field(default=None)
    medical_conditions: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("blood_group", mode="before")
    @classmethod
    def _parse_blood_group(cls, v):
        return BloodGroup(v) if isinstance(v, str) else v

    @field_validator("gender", mode="before")
    @classmethod
    def _parse_gender(cls, v):
        if isinstance(v, str):
            return Gender(v) if v.strip() else None
        return v


class AcceptedDonor(Donor):
    """Donor who accepted an alert, as listed by `/alerts/:id/accepted-donors`."""

    accepted_at: Optional[datetime] = Field(default=None)


class Alert(BaseSchema):
    """Emergency blood request."""

    id: str = Field(..., description="Backend identifier of the alert.")
    title: Optional[str] = Field(default=None)
    message: Optional[str] = Field(default=None)
    hospital_name: str = Field(..., description="Hospital where blood is needed.")
    hospital_address: Optional[str] = Field(default=None)
    blood_group: BloodGroup = Field(...)
    units_required: int = Field(default=1, ge=1)
    urgency: Urgency = Field(default=Urgency.HIGH)
    status: Optional[str] = Field(
        default=None,
        description="Status string set by the backend, normalized to upper case (ACTIVE, COMPLETED, ...).",
    )
    contact_number: Optional[str] = Field(default=None)
    contact_person: Optional[str] = Field(default=None)
    additional_notes: Optional[str] = Field(default=None)
    expires_at: Optional[datetime] = Field(default=None)
    created_by: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)
    has_accepted: Optional[bool] = Field(
        default=None,
        description="Whether the current donor already accepted; only sent by the donor-specific listing.",
    )
    notifications_sent: Optional[int] = Field(default=None)

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v):
        return _upper_or_none(v)

    @field_validator("blood_group", mode="before")
    @classmethod
    def _parse_blood_group(cls, v):
        return BloodGroup(v) if isinstance(v, str) else v

    @field_validator("urgency", mode="before")
    @classmethod
    def _parse_urgency(cls, v):
        return Urgency(v) if isinstance(v, str) else v

    @field_validator("id", "created_by", mode="before")
    @classmethod
    def _stringify_ids(cls, v):
        return str(v) if isinstance(v, int) else v


class Pagination(BaseSchema):
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 1
