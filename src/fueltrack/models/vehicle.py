"""Vehicle model."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from fueltrack._constants import DEFAULT_FUEL_TYPE
from fueltrack.models._base import Timestamp, TrackerModel, utcnow
from fueltrack.normalize import safe_float


class FuelType(StrEnum):
    """Conventional fuel types. ``Vehicle.fuel_type`` accepts any string."""

    PETROL = "petrol"
    DIESEL = "diesel"
    ELECTRIC = "electric"
    HYBRID = "hybrid"


class Vehicle(TrackerModel):
    """A registered vehicle together with its running fuel aggregates.

    ``total_distance`` and ``total_fuel_consumed`` are maintained by the
    tracker as records change and are never recomputed implicitly.
    """

    id: str
    """Caller-supplied identifier. Uniqueness is not enforced."""
    name: str = ""
    """Display name (e.g. ``"Car A"``)."""
    fuel_type: str = DEFAULT_FUEL_TYPE
    """Fuel type, by convention one of :class:`FuelType`."""
    created_at: Timestamp = Field(default_factory=utcnow)
    """When the vehicle was registered (UTC)."""
    total_distance: float = 0.0
    """Sum of ``distance`` over this vehicle's records."""
    total_fuel_consumed: float = 0.0
    """Sum of ``fuel_amount`` over this vehicle's records."""

    @property
    def known_fuel_type(self) -> FuelType | None:
        """The fuel type as :class:`FuelType`, or ``None`` when unconventional."""
        try:
            return FuelType(self.fuel_type)
        except ValueError:
            return None

    @field_validator("fuel_type", mode="before")
    @classmethod
    def _coerce_fuel_type(cls, value: Any) -> str:
        if isinstance(value, FuelType):
            return value.value
        return value

    @field_validator("total_distance", "total_fuel_consumed", mode="before")
    @classmethod
    def _coerce_totals(cls, value: Any) -> Any:
        if value is None:
            return 0.0
        parsed = safe_float(value)
        return value if parsed is None else parsed

    def apply_delta(self, *, distance: float, fuel: float) -> None:
        """Shift the running aggregates by the given amounts."""
        self.total_distance += distance
        self.total_fuel_consumed += fuel
