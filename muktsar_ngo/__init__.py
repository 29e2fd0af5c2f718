"""Muktsar NGO blood-donation client.

This package talks to the Muktsar NGO REST backend on behalf of donors and
administrators: donor registration and listing, emergency blood-request
alerts, and the session that ties them together.

High-level architecture
-----------------------

- ``muktsar_ngo.api``:

  - ``MuktsarApiClient``, a thin ``httpx`` wrapper around the REST contract.
  - Pydantic wire models (``Donor``, ``Alert``, ``User`` and request DTOs).
  - A typed error hierarchy carrying the user-facing title/message for each
    HTTP failure.

- ``muktsar_ngo.auth``:

  - Local credential storage (token + user record).
  - ``AuthService`` for login/registration/logout and ``AuthSession`` for the
    observable session state.

- ``muktsar_ngo.donors`` and ``muktsar_ngo.alerts``:

  - Donor listing, registration and eligibility rules.
  - The emergency alert lifecycle (create → notify → accept → complete) with
    role-gated visibility, plus interval polling for new alerts.

- ``muktsar_ngo.cli``: the ``muktsar`` command line.

Typical workflow
----------------

1. Build an ``AuthSession`` over a ``MuktsarApiClient`` and log in.
2. Admins create an alert through ``AlertService.create_emergency_alert``.
3. Donors list current alerts and accept one.
4. Admins review the accepted donors and mark the alert complete.
"""

__version__ = "0.1.0"
