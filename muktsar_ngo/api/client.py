from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from . import endpoints
from .errors import (
    ApiNetworkError,
    ApiTimeoutError,
    InvalidResponseError,
    UnauthorizedError,
    error_from_response,
)
from .models import (
    AcceptAlertRequest,
    AcceptedDonor,
    AcceptedDonorList,
    Alert,
    AlertCreate,
    AlertListQuery,
    AlertPage,
    AlertUpdate,
    BloodGroup,
    Donor,
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
    User,
)
from .models.dto import unwrap_record

TokenProvider = Callable[[], Optional[str]]
UnauthorizedHook = Callable[[UnauthorizedError], None]


class MuktsarApiClient:
    """
    Thin HTTP client for the Muktsar NGO blood-donation REST API.

    Responsibilities:
    - authentication (login, donor registration, logout)
    - donors CRUD and last-donation updates
    - emergency alerts lifecycle (create, accept, accepted donors, mark complete)
    - user profile and reports

    Every call attaches `Authorization: Bearer <token>` when `token_provider`
    returns a token. Non-2xx responses are raised as typed `ApiError`s; on a
    401 the `on_unauthorized` hook runs first so callers can drop stored
    credentials. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token_provider: Optional[TokenProvider] = None,
        on_unauthorized: Optional[UnauthorizedHook] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    def __enter__(self) -> "MuktsarApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        self._logger.debug("MuktsarApiClient.%s: %s %s", operation, method, url)
        try:
            r = self._client.request(method, url, headers=self._headers(), json=json, params=params or None)
        except httpx.TimeoutException as e:
            raise ApiTimeoutError(f"{operation} timed out", details=str(e)) from e
        except httpx.TransportError as e:
            raise ApiNetworkError(f"{operation} could not reach {self.base_url}", details=str(e)) from e

        self._logger.debug("MuktsarApiClient.%s: %s %s", operation, r.status_code, path)
        if r.is_error:
            err = error_from_response(r, operation=operation)
            if isinstance(err, UnauthorizedError):
                self._logger.info("MuktsarApiClient.%s: unauthorized, session cleared", operation)
                if self.on_unauthorized is not None:
                    self.on_unauthorized(err)
            else:
                self._logger.warning("MuktsarApiClient.%s failed: %s %s", operation, r.status_code, err.user_message)
            raise err

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"{operation} returned a non-JSON body", status_code=r.status_code, details=r.text
            ) from e

    def _parse(self, model, data: Any, *, operation: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise InvalidResponseError(
                f"Unexpected response shape from {operation}", details=e.errors(include_url=False)
            ) from e

    # ------------------------------------------------------------------
    # auth
    # ------------------------------------------------------------------

    def login(self, phone: str, password: str) -> LoginResponse:
        body = LoginRequest(phone=phone, password=password).to_payload()
        data = self._request("POST", endpoints.LOGIN, operation="login", json=body)
        return self._parse(LoginResponse, data, operation="login")

    def register_donor(self, payload: RegisterDonorRequest) -> RegisterDonorResponse:
        data = self._request("POST", endpoints.REGISTER, operation="register_donor", json=payload.to_payload())
        return self._parse(RegisterDonorResponse, data, operation="register_donor")

    def logout(self) -> None:
        self._request("POST", endpoints.LOGOUT, operation="logout")

    # ------------------------------------------------------------------
    # donors
    # ------------------------------------------------------------------

    def list_donors(self, query: Optional[DonorListQuery] = None) -> DonorPage:
        params = query.to_params() if query else None
        data = self._request("GET", endpoints.DONORS, operation="list_donors", params=params)
        page = self._parse(DonorPage, data, operation="list_donors")
        self._logger.debug("MuktsarApiClient.list_donors: got %d donors", len(page.items))
        return page

    def get_donor(self, donor_id: str) -> Donor:
        data = self._request("GET", endpoints.donor(donor_id), operation="get_donor")
        return self._parse(Donor, unwrap_record(data), operation="get_donor")

    def get_my_donor_profile(self) -> Donor:
        data = self._request("GET", endpoints.MY_DONOR_PROFILE, operation="get_my_donor_profile")
        return self._parse(Donor, unwrap_record(data), operation="get_my_donor_profile")

    def create_donor(self, payload: DonorCreate) -> Donor:
        data = self._request("POST", endpoints.DONORS, operation="create_donor", json=payload.to_payload())
        donor = self._parse(Donor, unwrap_record(data), operation="create_donor")
        self._logger.debug("MuktsarApiClient.create_donor: created id=%s", donor.id)
        return donor

    def update_donor(self, donor_id: str, payload: DonorUpdate) -> Donor:
        data = self._request(
            "PATCH", endpoints.donor(donor_id), operation="update_donor", json=payload.to_payload()
        )
        return self._parse(Donor, unwrap_record(data), operation="update_donor")

    def delete_donor(self, donor_id: str) -> None:
        self._request("DELETE", endpoints.donor(donor_id), operation="delete_donor")

    def update_last_donation(self, donor_id: str, last_donation_date: date) -> Donor:
        body = LastDonationUpdate(last_donation_date=last_donation_date).to_payload()
        data = self._request(
            "PATCH", endpoints.donor_last_donation(donor_id), operation="update_last_donation", json=body
        )
        return self._parse(Donor, unwrap_record(data), operation="update_last_donation")

    def list_eligible_donors(self) -> List[Donor]:
        data = self._request("GET", endpoints.ELIGIBLE_DONORS, operation="list_eligible_donors")
        return self._parse(DonorPage, data, operation="list_eligible_donors").items

    def list_donors_by_blood_group(self, blood_group: BloodGroup | str) -> List[Donor]:
        bg = BloodGroup.from_value(blood_group) if isinstance(blood_group, str) else blood_group
        data = self._request("GET", endpoints.donors_by_blood_group(bg.value), operation="list_donors_by_blood_group")
        return self._parse(DonorPage, data, operation="list_donors_by_blood_group").items

    def get_donor_statistics(self) -> Dict[str, Any]:
        data = self._request("GET", endpoints.DONOR_STATISTICS, operation="get_donor_statistics")
        return unwrap_record(data) or {}

    # ------------------------------------------------------------------
    # alerts
    # ------------------------------------------------------------------

    def _list_alerts_at(self, path: str, operation: str, params: Optional[Dict[str, str]] = None) -> List[Alert]:
        data = self._request("GET", path, operation=operation, params=params)
        page = self._parse(AlertPage, data, operation=operation)
        self._logger.debug("MuktsarApiClient.%s: got %d alerts", operation, len(page.items))
        return page.items

    def list_alerts(self, query: Optional[AlertListQuery] = None) -> List[Alert]:
        return self._list_alerts_at(endpoints.ALERTS, "list_alerts", query.to_params() if query else None)

    def list_active_alerts(self) -> List[Alert]:
        return self._list_alerts_at(endpoints.ACTIVE_ALERTS, "list_active_alerts")

    def list_active_alerts_for_donor(self) -> List[Alert]:
        return self._list_alerts_at(endpoints.ACTIVE_ALERTS_FOR_DONOR, "list_active_alerts_for_donor")

    def list_current_alerts(self) -> List[Alert]:
        return self._list_alerts_at(endpoints.CURRENT_ALERTS, "list_current_alerts")

    def list_past_alerts(self) -> List[Alert]:
        return self._list_alerts_at(endpoints.PAST_ALERTS, "list_past_alerts")

    def get_alert(self, alert_id: str) -> Alert:
        data = self._request("GET", endpoints.alert(alert_id), operation="get_alert")
        return self._parse(Alert, unwrap_record(data), operation="get_alert")

    def create_alert(self, payload: AlertCreate) -> Alert:
        self._logger.debug(
            "MuktsarApiClient.create_alert: %s at %s", payload.blood_group.display, payload.hospital_name
        )
        data = self._request("POST", endpoints.ALERTS, operation="create_alert", json=payload.to_payload())
        created = self._parse(Alert, unwrap_record(data), operation="create_alert")
        self._logger.debug("MuktsarApiClient.create_alert: created id=%s", created.id)
        return created

    def update_alert(self, alert_id: str, payload: AlertUpdate) -> Alert:
        data = self._request(
            "PATCH", endpoints.alert(alert_id), operation="update_alert", json=payload.to_payload()
        )
        return self._parse(Alert, unwrap_record(data), operation="update_alert")

    def delete_alert(self, alert_id: str) -> None:
        self._request("DELETE", endpoints.alert(alert_id), operation="delete_alert")

    def accept_alert(self, alert_id: str, donor_id: str) -> Any:
        body = AcceptAlertRequest(donor_id=donor_id).to_payload()
        return self._request("POST", endpoints.accept_alert(alert_id), operation="accept_alert", json=body)

    def list_accepted_donors(self, alert_id: str) -> List[AcceptedDonor]:
        data = self._request("GET", endpoints.accepted_donors(alert_id), operation="list_accepted_donors")
        return self._parse(AcceptedDonorList, data, operation="list_accepted_donors").items

    def mark_alert_complete(self, alert_id: str) -> Any:
        return self._request("POST", endpoints.mark_complete(alert_id), operation="mark_alert_complete")

    def resolve_alert(self, alert_id: str) -> Any:
        return self._request("PATCH", endpoints.resolve_alert(alert_id), operation="resolve_alert")

    def cancel_alert(self, alert_id: str) -> Any:
        return self._request("PATCH", endpoints.cancel_alert(alert_id), operation="cancel_alert")

    # ------------------------------------------------------------------
    # users & reports
    # ------------------------------------------------------------------

    def get_profile(self) -> User:
        data = self._request("GET", endpoints.USER_PROFILE, operation="get_profile")
        return self._parse(User, unwrap_record(data), operation="get_profile")

    def update_profile(self, payload: ProfileUpdate) -> User:
        data = self._request("PUT", endpoints.USER_PROFILE, operation="update_profile", json=payload.to_payload())
        return self._parse(User, unwrap_record(data), operation="update_profile")

    def get_reports_summary(self) -> Dict[str, Any]:
        return unwrap_record(self._request("GET", endpoints.REPORTS_SUMMARY, operation="get_reports_summary")) or {}

    def get_donor_report(self) -> Dict[str, Any]:
        return unwrap_record(self._request("GET", endpoints.REPORTS_DONORS, operation="get_donor_report")) or {}

    def get_alert_report(self) -> Dict[str, Any]:
        return unwrap_record(self._request("GET", endpoints.REPORTS_ALERTS, operation="get_alert_report")) or {}


__all__ = ["MuktsarApiClient", "TokenProvider", "UnauthorizedHook"]
