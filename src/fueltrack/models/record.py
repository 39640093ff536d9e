"""Fuel record models."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field, field_validator

from fueltrack.models._base import OptionalTimestamp, Timestamp, TrackerModel, utcnow


class FuelRecord(TrackerModel):
    """A single refuelling log entry."""

    id: str
    vehicle_id: str
    """Owning vehicle; checked only when the record is created."""
    fuel_amount: float
    """Fuel consumed (litres by convention)."""
    distance: float
    """Distance travelled (kilometres by convention)."""
    consumption: float | None = None
    """``distance / fuel_amount`` rounded to two decimals.

    ``None`` only for imported data that carried no usable value.
    """
    date: Timestamp = Field(default_factory=utcnow)
    """When the refuelling happened (UTC)."""
    notes: str = ""
    created_at: Timestamp = Field(default_factory=utcnow)

    @field_validator("notes", mode="before")
    @classmethod
    def _coerce_notes(cls, value: Any) -> Any:
        return "" if value is None else value


class RecordUpdate(TrackerModel):
    """Partial patch for :class:`FuelRecord`.

    Only the keys actually supplied are applied; use
    ``model_fields_set`` to tell an omitted field from an explicit one.
    Both ``fuelAmount`` and ``fuel_amount`` spellings are accepted and
    unknown keys are ignored.
    """

    model_config = ConfigDict(frozen=True)

    fuel_amount: float | None = None
    distance: float | None = None
    date: OptionalTimestamp = None
    notes: str | None = None

    def changes(self) -> dict[str, Any]:
        """Supplied fields keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class ConsumptionStats(TrackerModel):
    """Summary statistics over one vehicle's records. Zeroed when there are none."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    total_distance: float = 0.0
    total_fuel: float = 0.0
    average_consumption: float = 0.0
    min_consumption: float = 0.0
    max_consumption: float = 0.0


class AggregateDrift(TrackerModel):
    """A vehicle whose stored totals disagree with its records."""

    model_config = ConfigDict(frozen=True)

    vehicle_id: str
    total_distance: float
    expected_distance: float
    total_fuel_consumed: float
    expected_fuel_consumed: float
