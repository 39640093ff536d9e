"""fueltrack - In-memory vehicle fuel consumption tracker with pluggable persistence."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fueltrack")
except PackageNotFoundError:
    __version__ = "0+local"
from fueltrack.config import TrackerConfig
from fueltrack.exceptions import (
    NotFoundError,
    RecordNotFoundError,
    RecordValidationError,
    SnapshotImportError,
    StorageError,
    TrackerError,
    VehicleNotFoundError,
)
from fueltrack.models import (
    AggregateDrift,
    ConsumptionStats,
    FuelRecord,
    FuelType,
    RecordUpdate,
    Snapshot,
    Vehicle,
)
from fueltrack.storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from fueltrack.tracker import FuelTracker

__all__ = [
    "__version__",
    "AggregateDrift",
    "ConsumptionStats",
    "FuelRecord",
    "FuelTracker",
    "FuelType",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "NotFoundError",
    "RecordNotFoundError",
    "RecordUpdate",
    "RecordValidationError",
    "Snapshot",
    "SnapshotImportError",
    "StorageError",
    "TrackerConfig",
    "TrackerError",
    "Vehicle",
    "VehicleNotFoundError",
]
