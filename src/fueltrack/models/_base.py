"""Base model shared by every fueltrack model.

Every model inherits from :class:`TrackerModel` which provides:

* ``alias_generator=to_camel`` so the camelCase keys of persisted and
  exported JSON map to snake_case attributes.
* ``populate_by_name=True`` so callers may use either spelling.
* ``validate_assignment=True`` so in-place mutations by the tracker are
  coerced the same way as construction.
* ``allow_inf_nan=False`` so non-finite amounts never enter the store.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from fueltrack.normalize import parse_timestamp


def utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_optional_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    return parse_timestamp(value)


Timestamp = Annotated[datetime, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces ISO strings, dates and epoch numbers to UTC datetimes."""

OptionalTimestamp = Annotated[datetime | None, BeforeValidator(_parse_optional_timestamp)]


class TrackerModel(BaseModel):
    """Base for fueltrack models."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        validate_assignment=True,
        allow_inf_nan=False,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Return the camelCase, JSON-compatible representation."""
        return self.model_dump(mode="json", by_alias=True)
