"""In-memory fuel consumption tracker.

This is the only component allowed to mutate vehicles and fuel records.
Every mutation is mirrored to the injected key/value storage, and each
vehicle's running totals are kept in step with its records by applying
deltas rather than recomputing from scratch.
"""

from __future__ import annotations

import logging
import math
import secrets
import string
import threading
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from fueltrack._constants import AGGREGATE_REL_TOLERANCE, AGGREGATE_TOLERANCE, IMPORT_ERROR_MESSAGE
from fueltrack.config import TrackerConfig
from fueltrack.exceptions import (
    RecordNotFoundError,
    RecordValidationError,
    SnapshotImportError,
    StorageError,
    VehicleNotFoundError,
)
from fueltrack.models._base import utcnow
from fueltrack.models.record import AggregateDrift, ConsumptionStats, FuelRecord, RecordUpdate
from fueltrack.models.snapshot import Snapshot
from fueltrack.models.vehicle import Vehicle
from fueltrack.normalize import coerce_amount, compute_consumption, parse_timestamp, round_to
from fueltrack.storage import JsonFileStorage, KeyValueStorage

_logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9

_VEHICLE_LIST: TypeAdapter[list[Vehicle]] = TypeAdapter(list[Vehicle])
_RECORD_LIST: TypeAdapter[list[FuelRecord]] = TypeAdapter(list[FuelRecord])


def _check_shift(vehicle: Vehicle, *, distance: float, fuel: float) -> None:
    """Raise before a totals shift that would leave *vehicle* with a non-finite total."""
    if math.isfinite(vehicle.total_distance + distance) and math.isfinite(vehicle.total_fuel_consumed + fuel):
        return
    raise RecordValidationError(f"Totals of vehicle {vehicle.id} would no longer be finite")


def _totals_close(stored: float, expected: float) -> bool:
    return math.isclose(stored, expected, rel_tol=AGGREGATE_REL_TOLERANCE, abs_tol=AGGREGATE_TOLERANCE)


class FuelTracker:
    """Record-keeper for vehicles and their fuel consumption log.

    Usage::

        tracker = FuelTracker(JsonFileStorage("fuel.json"))
        tracker.add_vehicle("v1", "Car A")
        tracker.record_fuel_consumption("v1", 10, 150)
        tracker.get_average_consumption("v1")  # 15.0

    Passing no storage keeps the tracker memory-only.
    """

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        *,
        config: TrackerConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._config = config or TrackerConfig()
        self._clock = clock
        self._lock = threading.RLock()
        self._vehicles: list[Vehicle] = []
        self._records: list[FuelRecord] = []
        self._load()

    @classmethod
    def from_config(cls, config: TrackerConfig | None = None, **kwargs: Any) -> FuelTracker:
        """Build a tracker backed by ``config.storage_path`` when it is set.

        With no *config*, settings are read via :meth:`TrackerConfig.from_env`.
        """
        config = config or TrackerConfig.from_env()
        storage = JsonFileStorage(config.storage_path) if config.storage_path else None
        return cls(storage, config=config, **kwargs)

    @property
    def config(self) -> TrackerConfig:
        return self._config

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def add_vehicle(self, vehicle_id: str, name: str, fuel_type: str | None = None) -> Vehicle:
        """Register a vehicle with zeroed totals.

        Ids are not checked for uniqueness; with duplicates, lookups
        return the first vehicle registered under the id.
        """
        with self._lock:
            vehicle = Vehicle(
                id=vehicle_id,
                name=name,
                fuel_type=fuel_type or self._config.default_fuel_type,
                created_at=self._clock(),
            )
            self._vehicles.append(vehicle)
            _logger.debug("Added vehicle id=%s fuel_type=%s", vehicle.id, vehicle.fuel_type)
            self._save()
            return vehicle

    def get_all_vehicles(self) -> list[Vehicle]:
        with self._lock:
            return list(self._vehicles)

    def get_vehicle(self, vehicle_id: str) -> Vehicle | None:
        with self._lock:
            return self._find_vehicle(vehicle_id)

    def delete_vehicle(self, vehicle_id: str) -> bool:
        """Remove a vehicle and every record that references it."""
        with self._lock:
            index = self._vehicle_index(vehicle_id)
            if index is None:
                raise VehicleNotFoundError(vehicle_id)
            before = len(self._records)
            self._records = [r for r in self._records if r.vehicle_id != vehicle_id]
            del self._vehicles[index]
            _logger.debug(
                "Deleted vehicle id=%s and %d record(s)",
                vehicle_id,
                before - len(self._records),
            )
            self._save()
            return True

    # ------------------------------------------------------------------
    # Fuel records
    # ------------------------------------------------------------------

    def record_fuel_consumption(
        self,
        vehicle_id: str,
        fuel_amount: Any,
        distance: Any,
        date: Any = None,
        notes: str = "",
    ) -> FuelRecord:
        """Log a refuelling and add it to the vehicle's totals.

        Raises
        ------
        VehicleNotFoundError
            No vehicle is registered under *vehicle_id*.
        RecordValidationError
            An amount is not a finite number, *fuel_amount* is zero, or
            *date* cannot be parsed.
        """
        with self._lock:
            vehicle = self._find_vehicle(vehicle_id)
            if vehicle is None:
                raise VehicleNotFoundError(vehicle_id)

            amount = coerce_amount(fuel_amount, "fuel_amount")
            travelled = coerce_amount(distance, "distance")
            if amount == 0:
                raise RecordValidationError("fuel_amount must be non-zero to compute consumption")

            now = self._clock()
            try:
                record = FuelRecord(
                    id=self.generate_id(),
                    vehicle_id=vehicle_id,
                    fuel_amount=amount,
                    distance=travelled,
                    consumption=compute_consumption(travelled, amount),
                    date=date if date not in (None, "") else now,
                    notes=notes,
                    created_at=now,
                )
            except ValidationError as exc:
                raise RecordValidationError(f"Invalid fuel record for vehicle {vehicle_id}: {exc}") from exc

            _check_shift(vehicle, distance=record.distance, fuel=record.fuel_amount)
            self._records.append(record)
            vehicle.apply_delta(distance=record.distance, fuel=record.fuel_amount)
            _logger.debug(
                "Recorded fuel id=%s vehicle=%s consumption=%s",
                record.id,
                vehicle_id,
                record.consumption,
            )
            self._save()
            return record

    def get_record(self, record_id: str) -> FuelRecord | None:
        with self._lock:
            index = self._record_index(record_id)
            return None if index is None else self._records[index]

    def get_vehicle_records(self, vehicle_id: str) -> list[FuelRecord]:
        """Records of a vehicle in insertion order; empty for an unknown id."""
        with self._lock:
            return [r for r in self._records if r.vehicle_id == vehicle_id]

    def get_records_by_date_range(self, vehicle_id: str, start_date: Any, end_date: Any) -> list[FuelRecord]:
        """Records of a vehicle dated within ``[start_date, end_date]``.

        Bounds are parsed like record dates; malformed bounds raise
        :class:`ValueError`.
        """
        start = parse_timestamp(start_date)
        end = parse_timestamp(end_date)
        return [r for r in self.get_vehicle_records(vehicle_id) if start <= r.date <= end]

    def update_record(self, record_id: str, updates: Mapping[str, Any] | RecordUpdate) -> FuelRecord:
        """Patch ``fuel_amount``, ``distance``, ``date`` and/or ``notes`` of a record.

        Omitted fields keep their values. Consumption is recomputed only
        when both distance and fuel amount are positive afterwards;
        otherwise the previous value is kept. The owning vehicle's totals
        are shifted by the difference between new and old amounts.
        """
        with self._lock:
            index = self._record_index(record_id)
            if index is None:
                raise RecordNotFoundError(record_id)
            current = self._records[index]

            try:
                patch = updates if isinstance(updates, RecordUpdate) else RecordUpdate.model_validate(dict(updates))
                merged = current.model_dump()
                merged.update(patch.changes())
                updated = FuelRecord.model_validate(merged)
                if updated.distance > 0 and updated.fuel_amount > 0:
                    updated.consumption = compute_consumption(updated.distance, updated.fuel_amount)
            except ValidationError as exc:
                raise RecordValidationError(f"Invalid update for record {record_id}: {exc}") from exc

            vehicle = self._find_vehicle(updated.vehicle_id)
            if vehicle is None:
                _logger.warning(
                    "Vehicle %s of record %s not found; totals not adjusted",
                    updated.vehicle_id,
                    record_id,
                )
            else:
                distance_delta = updated.distance - current.distance
                fuel_delta = updated.fuel_amount - current.fuel_amount
                _check_shift(vehicle, distance=distance_delta, fuel=fuel_delta)
                vehicle.apply_delta(distance=distance_delta, fuel=fuel_delta)

            self._records[index] = updated
            _logger.debug("Updated record id=%s fields=%s", record_id, sorted(patch.model_fields_set))
            self._save()
            return updated

    def delete_record(self, record_id: str) -> bool:
        """Remove a record and subtract it from its vehicle's totals."""
        with self._lock:
            index = self._record_index(record_id)
            if index is None:
                raise RecordNotFoundError(record_id)
            record = self._records[index]

            vehicle = self._find_vehicle(record.vehicle_id)
            if vehicle is None:
                _logger.warning(
                    "Vehicle %s of record %s not found; totals not adjusted",
                    record.vehicle_id,
                    record_id,
                )
            else:
                _check_shift(vehicle, distance=-record.distance, fuel=-record.fuel_amount)
                vehicle.apply_delta(distance=-record.distance, fuel=-record.fuel_amount)

            del self._records[index]
            _logger.debug("Deleted record id=%s", record_id)
            self._save()
            return True

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def get_average_consumption(self, vehicle_id: str) -> float:
        """Total distance over total fuel, or ``0.0`` without records or fuel."""
        records = self.get_vehicle_records(vehicle_id)
        if not records:
            return 0.0
        total_distance = math.fsum(r.distance for r in records)
        total_fuel = math.fsum(r.fuel_amount for r in records)
        return round_to(total_distance / total_fuel) if total_fuel > 0 else 0.0

    def get_consumption_stats(self, vehicle_id: str) -> ConsumptionStats:
        records = self.get_vehicle_records(vehicle_id)
        if not records:
            return ConsumptionStats()

        total_distance = math.fsum(r.distance for r in records)
        total_fuel = math.fsum(r.fuel_amount for r in records)
        # Imported records may lack a consumption value.
        consumptions = [r.consumption for r in records if r.consumption is not None]

        return ConsumptionStats(
            count=len(records),
            total_distance=round_to(total_distance),
            total_fuel=round_to(total_fuel),
            average_consumption=round_to(total_distance / total_fuel) if total_fuel > 0 else 0.0,
            min_consumption=min(consumptions, default=0.0),
            max_consumption=max(consumptions, default=0.0),
        )

    def find_aggregate_drift(self) -> list[AggregateDrift]:
        """Vehicles whose stored totals differ from the sums of their records."""
        with self._lock:
            return [drift for _, drift in self._drifting_vehicles()]

    def rebuild_aggregates(self) -> list[AggregateDrift]:
        """Reset drifting vehicle totals to their record sums.

        Returns the drift that was corrected. Never called implicitly;
        imports leave totals as supplied.
        """
        with self._lock:
            drifting = self._drifting_vehicles()
            for vehicle, drift in drifting:
                vehicle.total_distance = drift.expected_distance
                vehicle.total_fuel_consumed = drift.expected_fuel_consumed
                _logger.info("Rebuilt totals of vehicle %s", vehicle.id)
            if drifting:
                self._save()
            return [drift for _, drift in drifting]

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def export_data(self) -> str:
        """Pretty-printed JSON of ``{"vehicles", "records", "exportedAt"}``."""
        with self._lock:
            snapshot = Snapshot(
                vehicles=list(self._vehicles),
                records=list(self._records),
                exported_at=self._clock(),
            )
            return snapshot.model_dump_json(indent=2, by_alias=True)

    def import_data(self, payload: str | bytes | Mapping[str, Any]) -> Snapshot:
        """Replace the collections present in *payload*.

        A snapshot holding only ``vehicles`` leaves records untouched and
        vice versa. Records are not checked against vehicles and totals
        are taken as supplied; vehicles whose totals disagree with their
        records are logged at WARNING (see :meth:`rebuild_aggregates`).
        """
        try:
            if isinstance(payload, (str, bytes, bytearray)):
                snapshot = Snapshot.model_validate_json(payload)
            elif isinstance(payload, Mapping):
                snapshot = Snapshot.model_validate(dict(payload))
            else:
                raise SnapshotImportError(IMPORT_ERROR_MESSAGE)
        except ValidationError as exc:
            raise SnapshotImportError(IMPORT_ERROR_MESSAGE) from exc

        with self._lock:
            if snapshot.vehicles is not None:
                self._vehicles = [v.model_copy(deep=True) for v in snapshot.vehicles]
            if snapshot.records is not None:
                self._records = [r.model_copy(deep=True) for r in snapshot.records]
            _logger.debug(
                "Imported snapshot vehicles=%s records=%s",
                None if snapshot.vehicles is None else len(snapshot.vehicles),
                None if snapshot.records is None else len(snapshot.records),
            )
            self._save()
            drift = [d for _, d in self._drifting_vehicles()]

        if drift:
            _logger.warning(
                "Imported totals disagree with records for %d vehicle(s): %s",
                len(drift),
                ", ".join(d.vehicle_id for d in drift),
            )
        return snapshot

    def clear_all_data(self) -> None:
        with self._lock:
            self._vehicles = []
            self._records = []
            if self._storage is not None:
                self._storage.remove(self._config.vehicles_key)
                self._storage.remove(self._config.records_key)
            _logger.debug("Cleared all data")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def generate_id(self) -> str:
        """``"<epoch ms>-<9 base36 chars>"``; unique enough for one process."""
        millis = int(self._clock().timestamp() * 1000)
        suffix = "".join(secrets.choice(_BASE36) for _ in range(_ID_SUFFIX_LENGTH))
        return f"{millis}-{suffix}"

    def _find_vehicle(self, vehicle_id: str) -> Vehicle | None:
        return next((v for v in self._vehicles if v.id == vehicle_id), None)

    def _vehicle_index(self, vehicle_id: str) -> int | None:
        return next((i for i, v in enumerate(self._vehicles) if v.id == vehicle_id), None)

    def _record_index(self, record_id: str) -> int | None:
        return next((i for i, r in enumerate(self._records) if r.id == record_id), None)

    def _drifting_vehicles(self) -> list[tuple[Vehicle, AggregateDrift]]:
        drifting: list[tuple[Vehicle, AggregateDrift]] = []
        for vehicle in self._vehicles:
            owned = [r for r in self._records if r.vehicle_id == vehicle.id]
            expected_distance = math.fsum(r.distance for r in owned)
            expected_fuel = math.fsum(r.fuel_amount for r in owned)
            if _totals_close(vehicle.total_distance, expected_distance) and _totals_close(
                vehicle.total_fuel_consumed, expected_fuel
            ):
                continue
            drifting.append(
                (
                    vehicle,
                    AggregateDrift(
                        vehicle_id=vehicle.id,
                        total_distance=vehicle.total_distance,
                        expected_distance=expected_distance,
                        total_fuel_consumed=vehicle.total_fuel_consumed,
                        expected_fuel_consumed=expected_fuel,
                    ),
                )
            )
        return drifting

    def _load(self) -> None:
        if self._storage is None:
            return
        self._vehicles = self._load_collection(self._config.vehicles_key, _VEHICLE_LIST)
        self._records = self._load_collection(self._config.records_key, _RECORD_LIST)
        _logger.debug("Loaded %d vehicle(s) and %d record(s)", len(self._vehicles), len(self._records))

    def _load_collection(self, key: str, adapter: TypeAdapter[list[Any]]) -> list[Any]:
        assert self._storage is not None
        raw = self._storage.get(key)
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            raise StorageError(f"Stored data under {key!r} is unreadable", key=key) from exc

    def _save(self) -> None:
        if self._storage is None:
            return
        self._storage.set(
            self._config.vehicles_key,
            _VEHICLE_LIST.dump_json(self._vehicles, by_alias=True).decode(),
        )
        self._storage.set(
            self._config.records_key,
            _RECORD_LIST.dump_json(self._records, by_alias=True).decode(),
        )
