from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from muktsar_ngo.access import is_admin, is_donor, require_admin
from muktsar_ngo.api.client import MuktsarApiClient
from muktsar_ngo.api.errors import AccessDeniedError
from muktsar_ngo.api.models import Alert, BloodGroup, Donor, DonorCreate, DonorListQuery, DonorUpdate, User
from muktsar_ngo.auth.session import AuthSession
from muktsar_ngo.utils.blood_groups import can_donate

from .eligibility import check_eligibility


class InvalidDonationDateError(ValueError):
    """Raised when a donation is recorded with a date in the future."""

    title = "Error"

    def __init__(self, donation_date: date) -> None:
        super().__init__(f"Donation date {donation_date.isoformat()} is in the future")
        self.donation_date = donation_date
        self.user_message = "Donation date cannot be in the future"


def donor_is_eligible(donor: Donor, today: Optional[date] = None) -> bool:
    """Backend flag when present, otherwise the gender-specific gap."""
    if donor.is_eligible is not None:
        return donor.is_eligible
    gender = donor.gender.value if donor.gender else None
    return check_eligibility(donor.last_donation_date, gender, today=today).is_eligible


def _matches(donor: Donor, text: str) -> bool:
    needle = text.strip().lower()
    if not needle:
        return True
    haystack = (
        donor.name,
        donor.phone,
        donor.city,
        donor.email,
        donor.blood_group.display,
    )
    return any(needle in value.lower() for value in haystack if value)


class DonorService:
    """Donor listing and management on top of `MuktsarApiClient`.

    Listing, adding and deleting donors is reserved for admins. A donor may
    read and update their own record and record their own donations.
    """

    def __init__(self, api: MuktsarApiClient, session: Optional[AuthSession] = None) -> None:
        self._api = api
        self._session = session
        self._own_id: Optional[Tuple[str, str]] = None
        self._logger = logging.getLogger(__name__)

    @property
    def _user(self) -> Optional[User]:
        return self._session.user if self._session else None

    def _own_donor_id(self, user: User) -> Optional[str]:
        """Donor record linked to a DONOR account.

        Login responses do not carry `donorId`, so it is looked up once through
        `/donors/me` and kept for the lifetime of the service.
        """
        if user.donor_id:
            return user.donor_id
        if not is_donor(user):
            return None
        if self._own_id is None or self._own_id[0] != user.id:
            self._own_id = (user.id, self._api.get_my_donor_profile().id)
            self._logger.debug("DonorService: resolved own donor id=%s", self._own_id[1])
        return self._own_id[1]

    def _require_self_or_admin(self, donor_id: str, action: str) -> None:
        user = self._user
        if is_admin(user):
            return
        if user is not None and self._own_donor_id(user) == donor_id:
            return
        raise AccessDeniedError(action, user.role if user else None)

    def list_donors(
        self,
        search: Optional[str] = None,
        blood_group: Optional[BloodGroup | str] = None,
        eligible_only: bool = False,
        city: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[Donor]:
        """List donors, narrowing the backend result locally.

        The backend takes `search`, `bloodGroup` and `city` as query params but
        older deployments ignore some of them, so the same filters are applied
        again to the returned page.
        """
        require_admin(self._user, "list donors")
        query = DonorListQuery(search=search or None, blood_group=blood_group, city=city or None)
        donors = self._api.list_donors(query).items

        if search:
            donors = [d for d in donors if _matches(d, search)]
        if query.blood_group is not None:
            donors = [d for d in donors if d.blood_group == query.blood_group]
        if city:
            donors = [d for d in donors if d.city and d.city.strip().lower() == city.strip().lower()]
        if eligible_only:
            donors = [d for d in donors if donor_is_eligible(d, today)]
        self._logger.debug("DonorService.list_donors: %d donors after filtering", len(donors))
        return donors

    def get_donor(self, donor_id: str) -> Donor:
        self._require_self_or_admin(donor_id, "view donor details")
        return self._api.get_donor(donor_id)

    def my_profile(self) -> Donor:
        return self._api.get_my_donor_profile()

    def register_donor(self, payload: DonorCreate) -> Donor:
        require_admin(self._user, "add donors")
        donor = self._api.create_donor(payload)
        self._logger.info("Donor registered: id=%s blood_group=%s", donor.id, donor.blood_group.display)
        return donor

    def update_donor(self, donor_id: str, payload: DonorUpdate) -> Donor:
        self._require_self_or_admin(donor_id, "update donor details")
        return self._api.update_donor(donor_id, payload)

    def delete_donor(self, donor_id: str) -> None:
        require_admin(self._user, "delete donors")
        self._api.delete_donor(donor_id)
        self._logger.info("Donor deleted: id=%s", donor_id)

    def record_donation(self, donor_id: str, donation_date: date, today: Optional[date] = None) -> Donor:
        """Set the donor's last donation date.

        Raises:
            InvalidDonationDateError: If `donation_date` is after today.
            AccessDeniedError: If a non-admin records a donation for someone else.
        """
        if donation_date > (today or date.today()):
            raise InvalidDonationDateError(donation_date)
        self._require_self_or_admin(donor_id, "record donations")
        donor = self._api.update_last_donation(donor_id, donation_date)
        self._logger.info("Donation recorded: donor=%s date=%s", donor_id, donation_date.isoformat())
        return donor

    def eligible_donors(self) -> List[Donor]:
        require_admin(self._user, "list eligible donors")
        return self._api.list_eligible_donors()

    def donors_for_alert(self, alert: Alert) -> List[Donor]:
        """Eligible donors whose blood can be given for the alert's group."""
        return [d for d in self.eligible_donors() if can_donate(d.blood_group, alert.blood_group)]

    def statistics(self) -> Dict[str, Any]:
        require_admin(self._user, "view donor statistics")
        return self._api.get_donor_statistics()
