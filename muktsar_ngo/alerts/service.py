"""Emergency blood-request alerts.

`AlertService` drives the alert lifecycle from the client side:

* admins create an alert from an `EmergencyAlertForm`, list who accepted
  it and close it (complete, resolve or cancel);
* donors see active alerts with their own acceptance flag and accept them;
* everyone sees past alerts.

Alert states are plain status strings owned by the backend; the only local
rule is how a status is displayed (an expired alert shows as "Completed").
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Literal, Optional

from pydantic import Field, field_validator

from muktsar_ngo.access import alert_view_for, require_admin, require_donor
from muktsar_ngo.api.client import MuktsarApiClient
from muktsar_ngo.api.errors import ApiError, UnauthorizedError
from muktsar_ngo.api.models import (
    TERMINAL_ALERT_STATUSES,
    AcceptedDonor,
    Alert,
    AlertCreate,
    AlertStatus,
    BloodGroup,
    Urgency,
    User,
)
from muktsar_ngo.auth.session import AuthSession
from muktsar_ngo.schemas.base import BaseSchema
from muktsar_ngo.utils.formatting import validate_contact_number

from .acknowledgements import AcknowledgementStore

AlertSection = Literal["current", "past"]

DEFAULT_EXPIRY_HOURS = 24


class AlertNotActiveError(Exception):
    """Raised when accepting an alert that is no longer active."""

    title = "Alert Closed"

    def __init__(self, alert_id: str, status: str) -> None:
        super().__init__(f"Alert {alert_id} is {status.lower()} and can no longer be accepted")
        self.alert_id = alert_id
        self.status = status
        self.user_message = "This alert is no longer active."


class EmergencyAlertForm(BaseSchema):
    """What an admin fills in to raise an emergency alert."""

    hospital_name: str = Field(..., description="Hospital where blood is needed.")
    blood_group: BloodGroup = Field(...)
    contact_number: str = Field(..., description="Number donors should call.")
    urgency: Urgency = Field(default=Urgency.HIGH)
    units_required: int = Field(default=1, ge=1)
    additional_notes: Optional[str] = Field(default=None)

    @field_validator("hospital_name", mode="before")
    @classmethod
    def _require_hospital(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Hospital name is required")
        return v.strip()

    @field_validator("contact_number", mode="before")
    @classmethod
    def _check_contact(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Contact number is required")
        if not validate_contact_number(v):
            raise ValueError("Please enter a valid contact number")
        return v.strip()

    @field_validator("blood_group", mode="before")
    @classmethod
    def _parse_blood_group(cls, v):
        return BloodGroup(v) if isinstance(v, str) else v

    @field_validator("urgency", mode="before")
    @classmethod
    def _parse_urgency(cls, v):
        return Urgency(v) if isinstance(v, str) else v


def _utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _now(now: Optional[datetime]) -> datetime:
    return _utc(now) if now else datetime.now(timezone.utc)


def is_expired(alert: Alert, now: Optional[datetime] = None) -> bool:
    return alert.expires_at is not None and _utc(alert.expires_at) <= _now(now)


def is_active(alert: Alert, now: Optional[datetime] = None) -> bool:
    """Status is ACTIVE (or not sent) and the expiry, if any, has not passed."""
    if alert.status not in (None, AlertStatus.ACTIVE.value):
        return False
    return not is_expired(alert, now)


def display_status(alert: Alert, is_past: bool = False, now: Optional[datetime] = None) -> str:
    """Status label shown next to an alert."""
    status = alert.status
    if status in {s.value for s in TERMINAL_ALERT_STATUSES}:
        return status.title()
    if is_past or status == AlertStatus.EXPIRED.value or is_expired(alert, now):
        return AlertStatus.COMPLETED.value.title()
    return status.title() if status else AlertStatus.ACTIVE.value.title()


def _sort_key(alert: Alert):
    created = _utc(alert.created_at).timestamp() if alert.created_at else float("-inf")
    return (-alert.urgency.rank, -created)


def sort_alerts(alerts: Iterable[Alert]) -> List[Alert]:
    """Most urgent first; within the same urgency, newest first."""
    return sorted(alerts, key=_sort_key)


def confirmation_prompt(alert: Alert) -> str:
    return f"Are you ready to donate {alert.blood_group.display} blood at {alert.hospital_name}?"


class AlertService:
    """Role-aware alert operations for the logged-in user."""

    def __init__(
        self,
        api: MuktsarApiClient,
        session: AuthSession,
        acknowledgements: Optional[AcknowledgementStore] = None,
        expiry_hours: int = DEFAULT_EXPIRY_HOURS,
    ) -> None:
        self._api = api
        self._session = session
        self._acks = acknowledgements
        self._expiry = timedelta(hours=expiry_hours)
        self._logger = logging.getLogger(__name__)

    @property
    def _user(self) -> Optional[User]:
        return self._session.user

    # ------------------------------------------------------------------
    # creation
    # ------------------------------------------------------------------

    def build_alert_payload(self, form: EmergencyAlertForm, now: Optional[datetime] = None) -> AlertCreate:
        bg = form.blood_group.display
        return AlertCreate(
            title=f"Urgent {bg} Blood Needed",
            message=f"{bg} blood urgently needed at {form.hospital_name}. Contact: {form.contact_number}",
            hospital_name=form.hospital_name,
            blood_group=form.blood_group,
            units_required=form.units_required,
            urgency=form.urgency,
            contact_number=form.contact_number,
            additional_notes=form.additional_notes,
            expires_at=_now(now) + self._expiry,
        )

    def create_emergency_alert(self, form: EmergencyAlertForm, now: Optional[datetime] = None) -> Alert:
        require_admin(self._user, "create alerts")
        alert = self._api.create_alert(self.build_alert_payload(form, now))
        self._logger.info(
            "Emergency alert created: id=%s blood_group=%s urgency=%s",
            alert.id,
            alert.blood_group.display,
            alert.urgency.value,
        )
        return alert

    # ------------------------------------------------------------------
    # listing
    # ------------------------------------------------------------------

    def load_alerts(self, section: AlertSection = "current") -> List[Alert]:
        """Alerts for the given section, sorted by urgency then recency.

        Admins see every active alert. Donors get the donor listing, which
        carries their own `hasAccepted` flag; when that endpoint fails they
        fall back to the plain active listing with the flag cleared.
        """
        if section == "past":
            return sort_alerts(self._api.list_past_alerts())
        if section != "current":
            raise ValueError(f"Unknown alert section: {section!r}")

        if alert_view_for(self._user) == "admin":
            alerts = self._api.list_active_alerts()
        else:
            try:
                alerts = self._api.list_active_alerts_for_donor()
            except UnauthorizedError:
                raise
            except ApiError as exc:
                self._logger.info("Falling back to regular active alerts: %s", exc)
                alerts = [a.model_copy(update={"has_accepted": False}) for a in self._api.list_active_alerts()]
        return sort_alerts(alerts)

    def get_alert(self, alert_id: str) -> Alert:
        return self._api.get_alert(alert_id)

    # ------------------------------------------------------------------
    # donor actions
    # ------------------------------------------------------------------

    def accept_alert(self, alert: Alert, donor_id: Optional[str] = None, now: Optional[datetime] = None) -> Any:
        """Accept an alert as the logged-in donor.

        Raises:
            AccessDeniedError: If the user is not a donor.
            AlertNotActiveError: If the alert is closed or expired.
        """
        user = self._user
        require_donor(user, "accept alerts")
        if not is_active(alert, now):
            raise AlertNotActiveError(alert.id, display_status(alert, now=now))
        if donor_id is None:
            donor_id = user.donor_id or self._api.get_my_donor_profile().id
        result = self._api.accept_alert(alert.id, donor_id)
        self._logger.info("Alert accepted: id=%s donor=%s", alert.id, donor_id)
        return result

    # ------------------------------------------------------------------
    # admin actions
    # ------------------------------------------------------------------

    def accepted_donors(self, alert_id: str) -> List[AcceptedDonor]:
        require_admin(self._user, "view accepted donors")
        return self._api.list_accepted_donors(alert_id)

    def mark_complete(self, alert_id: str) -> Any:
        require_admin(self._user, "complete alerts")
        result = self._api.mark_alert_complete(alert_id)
        self._logger.info("Alert marked complete: id=%s", alert_id)
        return result

    def resolve_alert(self, alert_id: str) -> Any:
        require_admin(self._user, "resolve alerts")
        result = self._api.resolve_alert(alert_id)
        self._logger.info("Alert resolved: id=%s", alert_id)
        return result

    def cancel_alert(self, alert_id: str) -> Any:
        require_admin(self._user, "cancel alerts")
        result = self._api.cancel_alert(alert_id)
        self._logger.info("Alert cancelled: id=%s", alert_id)
        return result

    # ------------------------------------------------------------------
    # display & local acknowledgements
    # ------------------------------------------------------------------

    confirmation_prompt = staticmethod(confirmation_prompt)
    display_status = staticmethod(display_status)
    is_active = staticmethod(is_active)
    sort_alerts = staticmethod(sort_alerts)

    def acknowledge(self, alert_id: str, user_id: Optional[str] = None) -> None:
        if self._acks is None:
            return
        if user_id is None and self._user is not None:
            user_id = self._user.id
        self._acks.acknowledge(alert_id, user_id)

    def is_acknowledged(self, alert_id: str) -> bool:
        return self._acks is not None and self._acks.is_acknowledged(alert_id)
