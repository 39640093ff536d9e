"""Tests for pydantic model parsing and serialization."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from fueltrack.models import ConsumptionStats, FuelRecord, FuelType, RecordUpdate, Snapshot, Vehicle

# ------------------------------------------------------------------
# Vehicle
# ------------------------------------------------------------------


class TestVehicle:
    SAMPLE_PAYLOAD: dict = {
        "id": "v1",
        "name": "Golf",
        "fuelType": "hybrid",
        "createdAt": "2024-02-10T09:15:00Z",
        "totalDistance": "450.5",
        "totalFuelConsumed": 30,
    }

    def test_parses_camel_case(self) -> None:
        vehicle = Vehicle.model_validate(self.SAMPLE_PAYLOAD)

        assert vehicle.fuel_type == "hybrid"
        assert vehicle.known_fuel_type == FuelType.HYBRID
        assert vehicle.created_at == datetime(2024, 2, 10, 9, 15, tzinfo=UTC)
        assert vehicle.total_distance == 450.5
        assert vehicle.total_fuel_consumed == 30.0

    def test_dumps_camel_case(self) -> None:
        data = Vehicle.model_validate(self.SAMPLE_PAYLOAD).to_json_dict()

        assert data == {
            "id": "v1",
            "name": "Golf",
            "fuelType": "hybrid",
            "createdAt": "2024-02-10T09:15:00Z",
            "totalDistance": 450.5,
            "totalFuelConsumed": 30.0,
        }

    def test_snake_case_and_enum_accepted(self) -> None:
        vehicle = Vehicle(id="v2", name="Van", fuel_type=FuelType.DIESEL)

        assert vehicle.fuel_type == "diesel"
        assert vehicle.total_distance == 0.0
        assert vehicle.created_at.tzinfo is not None

    def test_null_totals_default_to_zero(self) -> None:
        vehicle = Vehicle.model_validate({"id": "v1", "totalDistance": None})

        assert vehicle.total_distance == 0.0

    def test_apply_delta(self) -> None:
        vehicle = Vehicle(id="v1", total_distance=100, total_fuel_consumed=8)

        vehicle.apply_delta(distance=-40, fuel=2)

        assert vehicle.total_distance == 60
        assert vehicle.total_fuel_consumed == 10

    def test_missing_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Vehicle.model_validate({"name": "No id"})


# ------------------------------------------------------------------
# FuelRecord / RecordUpdate
# ------------------------------------------------------------------


class TestFuelRecord:
    def test_null_notes_become_empty(self) -> None:
        record = FuelRecord.model_validate(
            {"id": "r1", "vehicleId": "v1", "fuelAmount": 10, "distance": 100, "notes": None}
        )

        assert record.notes == ""
        assert record.consumption is None

    def test_infinite_amount_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FuelRecord(id="r1", vehicle_id="v1", fuel_amount=float("inf"), distance=1)

    def test_assignment_is_validated(self) -> None:
        record = FuelRecord(id="r1", vehicle_id="v1", fuel_amount=10, distance=100)

        record.date = "2025-05-05"

        assert record.date == datetime(2025, 5, 5, tzinfo=UTC)


class TestRecordUpdate:
    def test_tracks_supplied_fields_only(self) -> None:
        patch = RecordUpdate.model_validate({"distance": 200, "notes": "x"})

        assert patch.changes() == {"distance": 200.0, "notes": "x"}

    def test_empty_patch(self) -> None:
        assert RecordUpdate.model_validate({}).changes() == {}

    def test_is_frozen(self) -> None:
        patch = RecordUpdate(distance=1)
        with pytest.raises(ValidationError):
            patch.distance = 2  # type: ignore[misc]


# ------------------------------------------------------------------
# Stats / Snapshot
# ------------------------------------------------------------------


def test_consumption_stats_serializes_camel_case() -> None:
    assert ConsumptionStats().to_json_dict() == {
        "count": 0,
        "totalDistance": 0.0,
        "totalFuel": 0.0,
        "averageConsumption": 0.0,
        "minConsumption": 0.0,
        "maxConsumption": 0.0,
    }


def test_snapshot_tolerates_partial_payload() -> None:
    snapshot = Snapshot.model_validate_json('{"records": []}')

    assert snapshot.vehicles is None
    assert snapshot.records == []
    assert snapshot.exported_at is None
