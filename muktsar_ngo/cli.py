"""
Muktsar NGO command line.

Usage:
    muktsar login +919876543210
    muktsar donors list --blood-group O+ --eligible
    muktsar alerts create --hospital "Civil Hospital" --blood-group B- --contact 9876543210
    muktsar alerts accept 42
    muktsar alerts watch
"""

from __future__ import annotations

import functools
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, List, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from muktsar_ngo import __version__
from muktsar_ngo.access import alert_view_for, is_admin
from muktsar_ngo.alerts import (
    AcknowledgementStore,
    AlertNotActiveError,
    AlertPoller,
    AlertService,
    EmergencyAlertForm,
)
from muktsar_ngo.api.client import MuktsarApiClient
from muktsar_ngo.api.errors import AccessDeniedError, ApiError, AuthenticationError, UnauthorizedError
from muktsar_ngo.api.models import Alert, Donor, DonorCreate, DonorUpdate, ProfileUpdate
from muktsar_ngo.auth import AuthService, AuthSession, FileCredentialStore
from muktsar_ngo.core.config import Settings, get_settings
from muktsar_ngo.core.logging_config import get_logger, setup_logging
from muktsar_ngo.donors import (
    DonorService,
    InvalidDonationDateError,
    check_eligibility,
    get_eligibility_display_info,
)
from muktsar_ngo.utils.blood_groups import format_blood_group
from muktsar_ngo.utils.formatting import format_date

logger = get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="muktsar",
    help="Muktsar NGO blood donation client",
    no_args_is_help=True,
    add_completion=False,
)
donors_app = typer.Typer(help="Donor registry.", no_args_is_help=True)
alerts_app = typer.Typer(help="Emergency blood alerts.", no_args_is_help=True)
profile_app = typer.Typer(help="Your account.", no_args_is_help=True)
app.add_typer(donors_app, name="donors")
app.add_typer(alerts_app, name="alerts")
app.add_typer(profile_app, name="profile")

DATE_FORMATS = ["%Y-%m-%d"]


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


@dataclass
class CliContext:
    settings: Settings
    api: MuktsarApiClient
    session: AuthSession
    donors: DonorService
    alerts: AlertService
    acknowledgements: AcknowledgementStore


def build_context(settings: Optional[Settings] = None) -> CliContext:
    """Settings -> credential store -> API client -> auth session -> services."""
    settings = settings or get_settings()
    api = MuktsarApiClient(settings.api_base_url, timeout=settings.api_timeout)
    session = AuthSession(AuthService(api, FileCredentialStore(settings.credentials_path)), api)
    session.restore()
    acknowledgements = AcknowledgementStore(settings.acknowledgements_path)
    return CliContext(
        settings=settings,
        api=api,
        session=session,
        donors=DonorService(api, session),
        alerts=AlertService(api, session, acknowledgements, expiry_hours=settings.alert_expiry_hours),
        acknowledgements=acknowledgements,
    )


def _context() -> CliContext:
    return build_context()


F = TypeVar("F", bound=Callable[..., Any])

_USER_FACING_ERRORS = (ApiError, AccessDeniedError, AlertNotActiveError, InvalidDonationDateError)


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    msg = str(first.get("msg", "Invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, ") :]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {msg}" if loc else msg


def friendly_errors(func: F) -> F:
    """Turn backend and permission errors into a one-line message and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except _USER_FACING_ERRORS as exc:
            logger.debug("Command failed: %s", exc)
            err_console.print(f"[bold red]{exc.title}[/bold red]: {exc.user_message}")
            raise typer.Exit(code=1)
        except ValidationError as exc:
            err_console.print(f"[bold red]Validation Error[/bold red]: {_validation_message(exc)}")
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def _require_login(ctx: CliContext) -> None:
    if not ctx.session.state.is_authenticated:
        err_console.print("[bold red]Not logged in[/bold red]: run 'muktsar login PHONE' first.")
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, (date, datetime)):
        return format_date(value)
    return str(value)


def _donor_table(donors: Iterable[Donor], title: str = "Donors") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Group", style="red")
    table.add_column("Phone")
    table.add_column("City")
    table.add_column("Last Donation")
    table.add_column("Status", style="green")
    for d in donors:
        gender = d.gender.value if d.gender else None
        table.add_row(
            d.id,
            d.name,
            format_blood_group(d.blood_group),
            _fmt(d.phone),
            _fmt(d.city),
            _fmt(d.last_donation_date),
            check_eligibility(d.last_donation_date, gender).status,
        )
    return table


def _alert_table(alerts: List[Alert], *, is_past: bool, show_accepted: bool, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Group", style="red")
    table.add_column("Hospital")
    table.add_column("Units")
    table.add_column("Urgency")
    table.add_column("Status", style="green")
    table.add_column("Created")
    if show_accepted:
        table.add_column("Accepted")
    for a in alerts:
        row = [
            a.id,
            a.blood_group.display,
            a.hospital_name,
            str(a.units_required),
            a.urgency.value,
            AlertService.display_status(a, is_past=is_past),
            _fmt(a.created_at),
        ]
        if show_accepted:
            row.append("yes" if a.has_accepted else "no")
        table.add_row(*row)
    return table


def _key_value_table(title: str, rows: Iterable[tuple]) -> Table:
    table = Table(title=title)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for key, value in rows:
        table.add_row(key, _fmt(value))
    return table


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    """Muktsar NGO blood donation client."""
    setup_logging(log_level="DEBUG" if verbose else None)


@app.command()
def version() -> None:
    """Show the client version."""
    typer.echo(f"muktsar-ngo-client {__version__}")


@app.command()
@friendly_errors
def login(
    phone: str = typer.Argument(..., help="Phone number the account was registered with."),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Log in and store the session locally."""
    ctx = _context()
    try:
        result = ctx.session.login(phone, password)
    except UnauthorizedError:
        err_console.print(f"[bold red]{AuthenticationError.title}[/bold red]: {ctx.session.state.error}")
        raise typer.Exit(code=1)
    console.print(f"Logged in as [bold]{result.user.display_name}[/bold] ({result.user.role or 'unknown role'})")


@app.command()
@friendly_errors
def logout() -> None:
    """Log out and forget the stored session."""
    ctx = _context()
    ctx.session.logout()
    console.print("Logged out.")


@app.command()
@friendly_errors
def whoami() -> None:
    """Show the logged-in user."""
    ctx = _context()
    _require_login(ctx)
    user = ctx.session.user
    console.print(f"{user.display_name} ({user.role or 'unknown role'})")


# ---------------------------------------------------------------------------
# donors
# ---------------------------------------------------------------------------


@donors_app.command("list")
@friendly_errors
def donors_list(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match name, phone, city or email."),
    blood_group: Optional[str] = typer.Option(None, "--blood-group", "-b", help="e.g. O+ or O_POSITIVE."),
    eligible: bool = typer.Option(False, "--eligible", help="Only donors who can donate now."),
    city: Optional[str] = typer.Option(None, "--city"),
) -> None:
    """List donors (admin)."""
    ctx = _context()
    _require_login(ctx)
    donors = ctx.donors.list_donors(search=search, blood_group=blood_group, eligible_only=eligible, city=city)
    if not donors:
        console.print("No donors found.")
        return
    console.print(_donor_table(donors, title=f"Donors ({len(donors)})"))


@donors_app.command("show")
@friendly_errors
def donors_show(donor_id: str = typer.Argument(...)) -> None:
    """Show one donor."""
    ctx = _context()
    _require_login(ctx)
    d = ctx.donors.get_donor(donor_id)
    gender = d.gender.value if d.gender else None
    info = get_eligibility_display_info(d.last_donation_date)
    console.print(
        _key_value_table(
            f"Donor {d.id}",
            [
                ("Name", d.name),
                ("Blood Group", d.blood_group.display),
                ("Gender", gender.capitalize() if gender else None),
                ("Phone", d.phone),
                ("Email", d.email),
                ("City", d.city),
                ("Last Donation", d.last_donation_date),
                ("Total Donations", d.total_donations),
                ("Eligibility", f"{info.status} ({info.message})"),
                ("Availability", check_eligibility(d.last_donation_date, gender).reason),
            ],
        )
    )


@donors_app.command("add")
@friendly_errors
def donors_add(
    name: str = typer.Option(..., "--name"),
    phone: str = typer.Option(..., "--phone"),
    blood_group: str = typer.Option(..., "--blood-group", "-b"),
    gender: Optional[str] = typer.Option(None, "--gender"),
    email: Optional[str] = typer.Option(None, "--email"),
    city: Optional[str] = typer.Option(None, "--city"),
    date_of_birth: Optional[datetime] = typer.Option(None, "--dob", formats=DATE_FORMATS),
    last_donation: Optional[datetime] = typer.Option(None, "--last-donation", formats=DATE_FORMATS),
) -> None:
    """Register a donor (admin)."""
    ctx = _context()
    _require_login(ctx)
    payload = DonorCreate(
        name=name,
        phone=phone,
        blood_group=blood_group,
        gender=gender,
        email=email,
        city=city,
        date_of_birth=date_of_birth.date() if date_of_birth else None,
        last_donation_date=last_donation.date() if last_donation else None,
    )
    donor = ctx.donors.register_donor(payload)
    console.print(f"Donor registered: {donor.name} ({donor.blood_group.display}) id={donor.id}")


@donors_app.command("update")
@friendly_errors
def donors_update(
    donor_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name"),
    phone: Optional[str] = typer.Option(None, "--phone"),
    email: Optional[str] = typer.Option(None, "--email"),
    blood_group: Optional[str] = typer.Option(None, "--blood-group", "-b"),
    city: Optional[str] = typer.Option(None, "--city"),
) -> None:
    """Update donor details."""
    ctx = _context()
    _require_login(ctx)
    payload = DonorUpdate(name=name, phone=phone, email=email, blood_group=blood_group, city=city)
    if not payload.to_payload():
        err_console.print("Nothing to update.")
        raise typer.Exit(code=1)
    donor = ctx.donors.update_donor(donor_id, payload)
    console.print(f"Donor updated: {donor.name} id={donor.id}")


@donors_app.command("delete")
@friendly_errors
def donors_delete(
    donor_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete a donor (admin)."""
    ctx = _context()
    _require_login(ctx)
    if not yes:
        typer.confirm(f"Delete donor {donor_id}?", abort=True)
    ctx.donors.delete_donor(donor_id)
    console.print(f"Donor {donor_id} deleted.")


@donors_app.command("record-donation")
@friendly_errors
def donors_record_donation(
    donor_id: str = typer.Argument(...),
    donation_date: datetime = typer.Argument(..., formats=DATE_FORMATS, help="YYYY-MM-DD"),
) -> None:
    """Record a donation and update the donor's last donation date."""
    ctx = _context()
    _require_login(ctx)
    donor = ctx.donors.record_donation(donor_id, donation_date.date())
    console.print(f"Donation recorded for {donor.name} on {format_date(donation_date)}.")


@donors_app.command("eligibility")
def donors_eligibility(
    last_donation: datetime = typer.Argument(..., formats=DATE_FORMATS, help="Last donation, YYYY-MM-DD"),
    gender: str = typer.Option("male", "--gender", "-g"),
) -> None:
    """Check when a donor can give blood again."""
    info = get_eligibility_display_info(last_donation.date())
    availability = check_eligibility(last_donation.date(), gender)
    console.print(f"{info.status}: {info.message}")
    console.print(f"{availability.status}: {availability.reason}")
    if availability.next_eligible_date:
        console.print(f"Next eligible date: {format_date(availability.next_eligible_date)}")


# ---------------------------------------------------------------------------
# alerts
# ---------------------------------------------------------------------------


@alerts_app.command("list")
@friendly_errors
def alerts_list(past: bool = typer.Option(False, "--past", help="Show past alerts.")) -> None:
    """List current (or past) alerts for your role."""
    ctx = _context()
    _require_login(ctx)
    section = "past" if past else "current"
    alerts = ctx.alerts.load_alerts(section)
    if not alerts:
        console.print("No past alerts." if past else "No active alerts.")
        return
    show_accepted = not past and alert_view_for(ctx.session.user) == "donor"
    title = f"{'Past' if past else 'Current'} Alerts ({len(alerts)})"
    console.print(_alert_table(alerts, is_past=past, show_accepted=show_accepted, title=title))


@alerts_app.command("create")
@friendly_errors
def alerts_create(
    hospital: str = typer.Option(..., "--hospital", help="Hospital name."),
    blood_group: str = typer.Option(..., "--blood-group", "-b"),
    contact: str = typer.Option(..., "--contact", help="Contact number for donors."),
    urgency: str = typer.Option("HIGH", "--urgency", "-u", help="LOW, MEDIUM, HIGH or CRITICAL."),
    units: int = typer.Option(1, "--units"),
    notes: Optional[str] = typer.Option(None, "--notes"),
) -> None:
    """Send an emergency blood alert (admin)."""
    ctx = _context()
    _require_login(ctx)
    form = EmergencyAlertForm(
        hospital_name=hospital,
        blood_group=blood_group,
        contact_number=contact,
        urgency=urgency,
        units_required=units,
        additional_notes=notes,
    )
    alert = ctx.alerts.create_emergency_alert(form)
    console.print(f"Emergency alert sent: {alert.title or alert.blood_group.display} (id={alert.id})")


@alerts_app.command("accept")
@friendly_errors
def alerts_accept(
    alert_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Accept an alert as a donor."""
    ctx = _context()
    _require_login(ctx)
    alert = ctx.alerts.get_alert(alert_id)
    if not yes:
        typer.confirm(AlertService.confirmation_prompt(alert), abort=True)
    ctx.alerts.accept_alert(alert)
    console.print("Thank You! The admin has been notified. You will be contacted soon.")


@alerts_app.command("accepted")
@friendly_errors
def alerts_accepted(alert_id: str = typer.Argument(...)) -> None:
    """List donors who accepted an alert (admin)."""
    ctx = _context()
    _require_login(ctx)
    donors = ctx.alerts.accepted_donors(alert_id)
    if not donors:
        console.print("No donors have accepted this alert yet.")
        return
    console.print(_donor_table(donors, title=f"Accepted Donors ({len(donors)})"))


def _close_alert(action: Callable[[str], Any], alert_id: str, prompt: str, done: str, yes: bool) -> None:
    if not yes:
        typer.confirm(prompt, abort=True)
    action(alert_id)
    console.print(done)


@alerts_app.command("complete")
@friendly_errors
def alerts_complete(
    alert_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Mark an alert as completed (admin)."""
    ctx = _context()
    _require_login(ctx)
    _close_alert(ctx.alerts.mark_complete, alert_id, "Mark this alert as completed?", "Alert marked as completed.", yes)


@alerts_app.command("resolve")
@friendly_errors
def alerts_resolve(
    alert_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Resolve an alert (admin)."""
    ctx = _context()
    _require_login(ctx)
    _close_alert(ctx.alerts.resolve_alert, alert_id, "Resolve this alert?", "Alert resolved.", yes)


@alerts_app.command("cancel")
@friendly_errors
def alerts_cancel(
    alert_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Cancel an alert (admin)."""
    ctx = _context()
    _require_login(ctx)
    _close_alert(ctx.alerts.cancel_alert, alert_id, "Cancel this alert?", "Alert cancelled.", yes)


@alerts_app.command("watch")
@friendly_errors
def alerts_watch(
    interval: Optional[float] = typer.Option(None, "--interval", "-i", help="Seconds between checks."),
) -> None:
    """Poll for new alerts until interrupted."""
    ctx = _context()
    _require_login(ctx)
    user = ctx.session.user

    def on_new_alerts(alerts: List[Alert]) -> None:
        for a in AlertService.sort_alerts(alerts):
            if ctx.alerts.is_acknowledged(a.id):
                continue
            console.print(
                f"[bold red]{a.urgency.value}[/bold red] {a.title or 'Emergency Blood Needed'} - "
                f"{a.hospital_name} (id={a.id})"
            )
            ctx.alerts.acknowledge(a.id, user.id if user else None)

    poller = AlertPoller(lambda: ctx.alerts.load_alerts("current"), interval or ctx.settings.alert_poll_interval)
    console.print("Watching for new alerts. Press Ctrl+C to stop.")
    poller.start(on_new_alerts)
    try:
        while poller.is_polling:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()

    if ctx.session.state.session_expired:
        expired = UnauthorizedError.default_user_message
        err_console.print(f"[bold red]{UnauthorizedError.title}[/bold red]: {expired}")
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# profile
# ---------------------------------------------------------------------------


@profile_app.command("show")
@friendly_errors
def profile_show() -> None:
    """Show your profile as stored by the backend."""
    ctx = _context()
    _require_login(ctx)
    user = ctx.session.refresh_user()
    console.print(
        _key_value_table(
            "Profile",
            [
                ("Name", user.display_name),
                ("Phone", user.phone),
                ("Email", user.email),
                ("Role", user.role),
                ("Admin", "yes" if is_admin(user) else "no"),
            ],
        )
    )


@profile_app.command("update")
@friendly_errors
def profile_update(
    first_name: Optional[str] = typer.Option(None, "--first-name"),
    last_name: Optional[str] = typer.Option(None, "--last-name"),
    email: Optional[str] = typer.Option(None, "--email"),
    phone: Optional[str] = typer.Option(None, "--phone"),
) -> None:
    """Update your profile."""
    ctx = _context()
    _require_login(ctx)
    payload = ProfileUpdate(first_name=first_name, last_name=last_name, email=email, phone=phone)
    if not payload.to_payload():
        err_console.print("Nothing to update.")
        raise typer.Exit(code=1)
    user = ctx.session.auth.api.update_profile(payload)
    ctx.session.auth.set_user(user)
    console.print(f"Profile updated: {user.display_name}")


if __name__ == "__main__":
    app()
