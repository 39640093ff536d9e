"""Data models for vehicles, fuel records and snapshots."""

from fueltrack.models._base import Timestamp, TrackerModel
from fueltrack.models.record import AggregateDrift, ConsumptionStats, FuelRecord, RecordUpdate
from fueltrack.models.snapshot import Snapshot
from fueltrack.models.vehicle import FuelType, Vehicle

__all__ = [
    "AggregateDrift",
    "ConsumptionStats",
    "FuelRecord",
    "FuelType",
    "RecordUpdate",
    "Snapshot",
    "Timestamp",
    "TrackerModel",
    "Vehicle",
]
