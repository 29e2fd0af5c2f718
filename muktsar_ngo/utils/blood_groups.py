"""Blood group formatting and donor/recipient compatibility.

The backend stores groups as `A_POSITIVE`; people read `A+`. Every helper
here accepts either form (or a `BloodGroup`) and leaves unknown input
untouched instead of raising, so a bad value from the backend still renders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from muktsar_ngo.api.models import BloodGroup

BloodGroupLike = Union[BloodGroup, str, None]

_COMPATIBILITY: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    # group: (can donate to, can receive from)
    "A+": (("A+", "AB+"), ("A+", "A-", "O+", "O-")),
    "A-": (("A+", "A-", "AB+", "AB-"), ("A-", "O-")),
    "B+": (("B+", "AB+"), ("B+", "B-", "O+", "O-")),
    "B-": (("B+", "B-", "AB+", "AB-"), ("B-", "O-")),
    "AB+": (("AB+",), ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")),
    "AB-": (("AB+", "AB-"), ("A-", "B-", "AB-", "O-")),
    "O+": (("A+", "B+", "AB+", "O+"), ("O+", "O-")),
    "O-": (("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"), ("O-",)),
}


@dataclass(frozen=True)
class BloodGroupCompatibility:
    can_donate_to: List[str] = field(default_factory=list)
    can_receive_from: List[str] = field(default_factory=list)


def _parse(value: BloodGroupLike) -> Optional[BloodGroup]:
    if isinstance(value, BloodGroup):
        return value
    if not value:
        return None
    try:
        return BloodGroup.from_value(value)
    except ValueError:
        return None


def format_blood_group(value: BloodGroupLike) -> str:
    """`A_POSITIVE` -> `A+`. Empty input gives ``""``; unknown input is returned as is."""
    if not value:
        return ""
    group = _parse(value)
    return group.display if group else str(value)


def to_backend_format(value: BloodGroupLike) -> str:
    """`A+` -> `A_POSITIVE`. Empty input gives ``""``; unknown input is returned as is."""
    if not value:
        return ""
    group = _parse(value)
    return group.value if group else str(value)


def get_blood_group_options() -> List[Dict[str, str]]:
    """Label/value pairs in picker order."""
    return [{"label": g.display, "value": g.value} for g in BloodGroup]


def is_valid_blood_group(value: BloodGroupLike) -> bool:
    return _parse(value) is not None


def get_blood_group_compatibility(value: BloodGroupLike) -> BloodGroupCompatibility:
    entry = _COMPATIBILITY.get(format_blood_group(value))
    if entry is None:
        return BloodGroupCompatibility()
    donate_to, receive_from = entry
    return BloodGroupCompatibility(can_donate_to=list(donate_to), can_receive_from=list(receive_from))


def can_donate(donor_group: BloodGroupLike, recipient_group: BloodGroupLike) -> bool:
    """True when blood of `donor_group` can be given to a `recipient_group` patient."""
    return format_blood_group(recipient_group) in get_blood_group_compatibility(donor_group).can_donate_to


def compatible_donor_groups(recipient_group: BloodGroupLike) -> List[BloodGroup]:
    """Blood groups whose donors can answer a request for `recipient_group`."""
    labels = get_blood_group_compatibility(recipient_group).can_receive_from
    return [BloodGroup.from_value(label) for label in labels]
