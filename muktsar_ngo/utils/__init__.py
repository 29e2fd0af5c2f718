from .blood_groups import (
    BloodGroupCompatibility,
    can_donate,
    compatible_donor_groups,
    format_blood_group,
    get_blood_group_compatibility,
    get_blood_group_options,
    is_valid_blood_group,
    to_backend_format,
)
from .formatting import (
    capitalize_first_letter,
    format_date,
    parse_date,
    transform_donor_for_backend,
    transform_donor_from_backend,
    validate_contact_number,
    validate_email,
    validate_phone,
)

__all__ = [
    "BloodGroupCompatibility",
    "can_donate",
    "capitalize_first_letter",
    "compatible_donor_groups",
    "format_blood_group",
    "format_date",
    "get_blood_group_compatibility",
    "get_blood_group_options",
    "is_valid_blood_group",
    "parse_date",
    "to_backend_format",
    "transform_donor_for_backend",
    "transform_donor_from_backend",
    "validate_contact_number",
    "validate_email",
    "validate_phone",
]
