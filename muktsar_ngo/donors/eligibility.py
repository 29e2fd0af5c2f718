"""Donation eligibility rules.

Two rules are in use:

* the general rule shown on donor cards: a donor may give again three
  calendar months after the last donation;
* the gender-specific rule used for availability: at least 90 days for men
  and 120 days for women.

Every function takes an optional ``today`` so results are reproducible.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from muktsar_ngo.utils.formatting import DateLike, parse_date

logger = logging.getLogger(__name__)

ELIGIBILITY_MONTHS = 3
MALE_MINIMUM_DAYS = 90
FEMALE_MINIMUM_DAYS = 120


@dataclass(frozen=True)
class EligibilityInfo:
    is_eligible: bool
    status: str
    message: str
    days_remaining: Optional[int] = None
    next_eligible_date: Optional[date] = None


@dataclass(frozen=True)
class AvailabilityInfo:
    is_eligible: bool
    status: str
    reason: str
    days_until_eligible: int = 0
    days_since_last_donation: Optional[int] = None
    next_eligible_date: Optional[date] = None


def add_months(value: date, months: int) -> date:
    """Shift by calendar months, clamping to the last day of a shorter month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _as_date(value: DateLike) -> Optional[date]:
    parsed = parse_date(value)
    return parsed.date() if parsed else None


def _next_date(last: DateLike) -> Optional[date]:
    last_date = _as_date(last)
    return add_months(last_date, ELIGIBILITY_MONTHS) if last_date else None


def calculate_donor_eligibility(last: DateLike, today: Optional[date] = None) -> bool:
    """True if the donor never donated or donated at least three months ago."""
    next_date = _next_date(last)
    if next_date is None:
        return True
    return next_date <= (today or date.today())


def get_next_eligible_date(last: DateLike, today: Optional[date] = None) -> Optional[date]:
    """Date the donor becomes eligible, or None when already eligible."""
    next_date = _next_date(last)
    if next_date is None or next_date <= (today or date.today()):
        return None
    return next_date


def get_days_until_eligible(last: DateLike, today: Optional[date] = None) -> Optional[int]:
    today = today or date.today()
    next_date = get_next_eligible_date(last, today)
    if next_date is None:
        return None
    return (next_date - today).days


def get_eligibility_display_info(last: DateLike, today: Optional[date] = None) -> EligibilityInfo:
    today = today or date.today()
    if calculate_donor_eligibility(last, today):
        return EligibilityInfo(is_eligible=True, status="Eligible", message="Ready to donate")
    days = get_days_until_eligible(last, today)
    return EligibilityInfo(
        is_eligible=False,
        status="Not Eligible",
        message=f"Eligible in {days} days",
        days_remaining=days,
        next_eligible_date=get_next_eligible_date(last, today),
    )


def check_eligibility(last: DateLike, gender: Optional[str] = "male", today: Optional[date] = None) -> AvailabilityInfo:
    """Availability under the gender-specific gap (90 days men, 120 days women).

    Returns:
        AvailabilityInfo with status ``Available``, ``Unavailable`` or, when
        the date cannot be parsed, ``Unknown``.
    """
    if not last:
        return AvailabilityInfo(is_eligible=True, status="Available", reason="No previous donation recorded")

    try:
        last_date = _as_date(last)
    except ValueError as exc:
        logger.warning("Error checking eligibility for last donation %r: %s", last, exc)
        return AvailabilityInfo(is_eligible=False, status="Unknown", reason="Invalid date format")

    today = today or date.today()
    days_since = (today - last_date).days
    minimum = FEMALE_MINIMUM_DAYS if (gender or "").lower() == "female" else MALE_MINIMUM_DAYS

    if days_since >= minimum:
        return AvailabilityInfo(
            is_eligible=True,
            status="Available",
            reason=f"Last donated {days_since} days ago",
            days_since_last_donation=days_since,
        )
    days_until = minimum - days_since
    return AvailabilityInfo(
        is_eligible=False,
        status="Unavailable",
        reason=f"Must wait {days_until} more days",
        days_until_eligible=days_until,
        days_since_last_donation=days_since,
        next_eligible_date=last_date + timedelta(days=minimum),
    )
