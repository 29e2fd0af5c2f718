from .eligibility import (
    FEMALE_MINIMUM_DAYS,
    MALE_MINIMUM_DAYS,
    AvailabilityInfo,
    EligibilityInfo,
    add_months,
    calculate_donor_eligibility,
    check_eligibility,
    get_days_until_eligible,
    get_eligibility_display_info,
    get_next_eligible_date,
)
from .service import DonorService, InvalidDonationDateError, donor_is_eligible

__all__ = [
    "FEMALE_MINIMUM_DAYS",
    "MALE_MINIMUM_DAYS",
    "AvailabilityInfo",
    "DonorService",
    "EligibilityInfo",
    "InvalidDonationDateError",
    "add_months",
    "calculate_donor_eligibility",
    "check_eligibility",
    "donor_is_eligible",
    "get_days_until_eligible",
    "get_eligibility_display_info",
    "get_next_eligible_date",
]
