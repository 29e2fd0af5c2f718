"""REST paths of the Muktsar NGO backend, relative to the API base URL."""

from __future__ import annotations

LOGIN = "/auth/login"
LOGOUT = "/auth/logout"
REGISTER = "/auth/register"

DONORS = "/donors"
MY_DONOR_PROFILE = "/donors/me"
ELIGIBLE_DONORS = "/donors/eligible"
DONOR_STATISTICS = "/donors/statistics"

ALERTS = "/alerts"
ACTIVE_ALERTS = "/alerts/active"
ACTIVE_ALERTS_FOR_DONOR = "/alerts/active/for-donor"
CURRENT_ALERTS = "/alerts/current"
PAST_ALERTS = "/alerts/past"

USER_PROFILE = "/users/profile"

REPORTS_SUMMARY = "/reports/summary"
REPORTS_DONORS = "/reports/donors"
REPORTS_ALERTS = "/reports/alerts"


def donor(donor_id: str) -> str:
    return f"{DONORS}/{donor_id}"


def donor_last_donation(donor_id: str) -> str:
    return f"{DONORS}/{donor_id}/last-donation"


def donors_by_blood_group(blood_group: str) -> str:
    return f"{DONORS}/blood-group/{blood_group}"


def alert(alert_id: str) -> str:
    return f"{ALERTS}/{alert_id}"


def accept_alert(alert_id: str) -> str:
    return f"{ALERTS}/{alert_id}/accept"


def accepted_donors(alert_id: str) -> str:
    return f"{ALERTS}/{alert_id}/accepted-donors"


def mark_complete(alert_id: str) -> str:
    return f"{ALERTS}/{alert_id}/mark-complete"


def resolve_alert(alert_id: str) -> str:
    return f"{ALERTS}/{alert_id}/resolve"


def cancel_alert(alert_id: str) -> str:
    return f"{ALERTS}/{alert_id}/cancel"
