from .acknowledgements import AcknowledgementStore
from .poller import AlertPoller
from .service import (
    AlertNotActiveError,
    AlertService,
    EmergencyAlertForm,
    confirmation_prompt,
    display_status,
    is_active,
    is_expired,
    sort_alerts,
)

__all__ = [
    "AcknowledgementStore",
    "AlertNotActiveError",
    "AlertPoller",
    "AlertService",
    "EmergencyAlertForm",
    "confirmation_prompt",
    "display_status",
    "is_active",
    "is_expired",
    "sort_alerts",
]
