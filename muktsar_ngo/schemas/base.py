"""Pydantic base schema utilities for the Muktsar NGO wire models.

Provides `BaseSchema` (responses) and `RequestSchema` (request bodies). Both
alias snake_case fields to the camelCase keys the backend speaks.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def _to_camel(s: str) -> str:
    """Convert snake_case to camelCase for JSON aliasing."""
    parts = s.split("_")
    return parts[0] + "".join(p.capitalize() or "_" for p in parts[1:])


class BaseSchema(BaseModel):
    """Shared base for records read from the backend.

    - Ignores fields the client does not model (the backend returns more than we use)
    - Enables populate_by_name for using either snake_case or camelCase
    - Uses a snake->camel alias generator for JSON interop
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        alias_generator=_to_camel,  # snake_case -> camelCase aliases
    )


class RequestSchema(BaseModel):
    """Shared base for request bodies sent to the backend.

    Unknown fields are rejected so that a typo never silently drops data.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        alias_generator=_to_camel,
    )

    def to_payload(self) -> dict:
        """Serialize to the camelCase JSON body, skipping unset optional fields."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
