"""Custom exception hierarchy for fueltrack."""

from __future__ import annotations


class TrackerError(Exception):
    """Base exception for all fueltrack errors."""


class NotFoundError(TrackerError, LookupError):
    """An operation referenced a vehicle or record id that does not exist."""


class VehicleNotFoundError(NotFoundError):
    """No vehicle with the given id is registered."""

    def __init__(self, vehicle_id: str) -> None:
        self.vehicle_id = vehicle_id
        super().__init__(f"Vehicle with ID {vehicle_id} not found")


class RecordNotFoundError(NotFoundError):
    """No fuel record with the given id exists."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Record with ID {record_id} not found")


class RecordValidationError(TrackerError, ValueError):
    """Fuel record input could not be coerced or would yield a non-finite consumption.

    When raised from pydantic model validation the underlying
    ``pydantic.ValidationError`` is chained as ``__cause__``.
    """


class SnapshotImportError(TrackerError):
    """Snapshot payload could not be parsed into the export shape."""


class StorageError(TrackerError):
    """A persisted collection could not be decoded.

    Raised while hydrating a tracker so that unreadable stored data is
    never replaced by an empty collection on the next save.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
