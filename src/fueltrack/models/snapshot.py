"""Export/import snapshot model."""

from __future__ import annotations

from pydantic import ConfigDict

from fueltrack.models._base import OptionalTimestamp, TrackerModel
from fueltrack.models.record import FuelRecord
from fueltrack.models.vehicle import Vehicle


class Snapshot(TrackerModel):
    """Full-state export of a tracker.

    On import either collection may be absent (or ``null``), in which
    case the tracker keeps its current contents for it.
    """

    model_config = ConfigDict(frozen=True)

    vehicles: list[Vehicle] | None = None
    records: list[FuelRecord] | None = None
    exported_at: OptionalTimestamp = None
