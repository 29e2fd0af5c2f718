"""Display formatting and input validation helpers."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from muktsar_ngo.api.models import Gender
from muktsar_ngo.api.models.dto import to_iso_utc

from .blood_groups import format_blood_group, to_backend_format

DateLike = Union[date, datetime, str, None]

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^\+?[0-9]{10,15}$")
_CONTACT_RE = re.compile(r"^\+?[0-9\s\-()]{10,15}$")
_WHITESPACE_RE = re.compile(r"\s")


def parse_date(value: DateLike) -> Optional[datetime]:
    """Parse a date, datetime or ISO-8601 string (``Z`` suffix allowed).

    Raises:
        ValueError: If a string is not ISO-8601.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_date(value: DateLike) -> str:
    """Render as ``dd/mm/yyyy``. Unparseable strings are returned unchanged."""
    try:
        parsed = parse_date(value)
    except ValueError:
        return str(value)
    return parsed.strftime("%d/%m/%Y") if parsed else ""


def validate_email(email: Optional[str]) -> bool:
    return bool(email) and _EMAIL_RE.match(email) is not None


def validate_phone(phone: Optional[str]) -> bool:
    """10-15 digits with an optional leading ``+``; whitespace is ignored."""
    if not phone:
        return False
    return _PHONE_RE.match(_WHITESPACE_RE.sub("", phone)) is not None


def validate_contact_number(contact: Optional[str]) -> bool:
    """Looser check used for hospital contacts: spaces, dashes and brackets allowed."""
    if not contact:
        return False
    return _CONTACT_RE.match(contact.strip()) is not None


def capitalize_first_letter(text: str) -> str:
    return text[:1].upper() + text[1:]


def _gender_to_backend(value: Any) -> Any:
    if isinstance(value, str) and value:
        try:
            return Gender(value).value
        except ValueError:
            return value
    return value


def _gender_from_backend(value: Any) -> Any:
    if isinstance(value, str) and value:
        try:
            return Gender(value).value.capitalize()
        except ValueError:
            return value
    return value


def transform_donor_for_backend(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a form-style donor dict (``A+``, ``Male``) to the backend's enums and ISO dates."""
    out = dict(data)
    if "bloodGroup" in out:
        out["bloodGroup"] = to_backend_format(out["bloodGroup"])
    if "gender" in out:
        out["gender"] = _gender_to_backend(out["gender"])
    for key in ("dateOfBirth", "lastDonationDate"):
        if key in out:
            out[key] = to_iso_utc(parse_date(out[key]))
    return out


def transform_donor_from_backend(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a backend donor dict to display forms with ``YYYY-MM-DD`` dates."""
    out = dict(data)
    if "bloodGroup" in out:
        out["bloodGroup"] = format_blood_group(out["bloodGroup"])
    if "gender" in out:
        out["gender"] = _gender_from_backend(out["gender"])
    for key in ("dateOfBirth", "lastDonationDate"):
        if key in out:
            parsed = parse_date(out[key])
            out[key] = parsed.date().isoformat() if parsed else None
    return out
