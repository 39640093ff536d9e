"""Tests for snapshot export/import and storage hydration."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import pytest

from fueltrack.config import TrackerConfig
from fueltrack.exceptions import SnapshotImportError, StorageError
from fueltrack.storage import JsonFileStorage, MemoryStorage
from fueltrack.tracker import FuelTracker


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


@pytest.fixture()
def populated() -> FuelTracker:
    tracker = FuelTracker(clock=_dt)
    tracker.add_vehicle("v1", "Car A")
    tracker.add_vehicle("v2", "Van", "diesel")
    tracker.record_fuel_consumption("v1", 10, 150, date="2025-03-01")
    tracker.record_fuel_consumption("v2", 40, 520, notes="full tank")
    tracker.record_fuel_consumption("v1", 12, 160)
    return tracker


class TestExport:
    def test_export_shape_uses_camel_case(self, populated: FuelTracker) -> None:
        data = json.loads(populated.export_data())

        assert set(data) == {"vehicles", "records", "exportedAt"}
        assert data["vehicles"][1]["fuelType"] == "diesel"
        assert data["vehicles"][0]["totalDistance"] == 310
        assert data["vehicles"][0]["totalFuelConsumed"] == 22
        assert data["records"][1]["vehicleId"] == "v2"
        assert data["records"][1]["fuelAmount"] == 40
        assert data["records"][1]["notes"] == "full tank"
        assert data["exportedAt"].startswith("2026-01-01T00:00:00")

    def test_export_is_pretty_printed(self, populated: FuelTracker) -> None:
        assert populated.export_data().startswith('{\n  "vehicles": [')


class TestImport:
    def test_round_trip_restores_state_in_order(self, populated: FuelTracker) -> None:
        restored = FuelTracker()
        restored.import_data(populated.export_data())

        assert restored.get_all_vehicles() == populated.get_all_vehicles()
        assert [r.id for r in restored.get_vehicle_records("v1")] == [
            r.id for r in populated.get_vehicle_records("v1")
        ]
        assert restored.get_consumption_stats("v1") == populated.get_consumption_stats("v1")

    def test_partial_import_keeps_other_collection(self, populated: FuelTracker) -> None:
        records_before = populated.get_vehicle_records("v1")

        populated.import_data('{"vehicles": [{"id": "v1", "name": "Renamed", "totalDistance": 310, '
                              '"totalFuelConsumed": 22}]}')

        assert [v.name for v in populated.get_all_vehicles()] == ["Renamed"]
        assert populated.get_vehicle_records("v1") == records_before

    def test_null_collection_is_ignored(self, populated: FuelTracker) -> None:
        populated.import_data('{"vehicles": null, "records": []}')

        assert len(populated.get_all_vehicles()) == 2
        assert populated.get_vehicle_records("v1") == []

    def test_import_returns_parsed_snapshot(self) -> None:
        tracker = FuelTracker()

        snapshot = tracker.import_data('{"vehicles": [], "exportedAt": "2025-12-31T23:00:00.000Z"}')

        assert snapshot.vehicles == []
        assert snapshot.records is None
        assert snapshot.exported_at == datetime(2025, 12, 31, 23, 0, tzinfo=UTC)

    def test_imports_browser_exported_data(self) -> None:
        payload = {
            "vehicles": [
                {
                    "id": "car-1",
                    "name": "Golf",
                    "fuelType": "petrol",
                    "createdAt": "2024-02-10T09:15:00.123Z",
                    "totalDistance": 450.5,
                    "totalFuelConsumed": 30,
                }
            ],
            "records": [
                {
                    "id": "1707556500123-k3j9x0a1b",
                    "vehicleId": "car-1",
                    "fuelAmount": 30,
                    "distance": 450.5,
                    "consumption": 15.02,
                    "date": "2024-02-10T09:15:00.123Z",
                    "notes": "",
                    "createdAt": "2024-02-10T09:15:00.123Z",
                }
            ],
            "exportedAt": "2024-02-11T10:00:00.000Z",
        }
        tracker = FuelTracker()

        tracker.import_data(json.dumps(payload))

        assert tracker.get_average_consumption("car-1") == 15.02
        assert tracker.find_aggregate_drift() == []

    @pytest.mark.parametrize("payload", ["not json", "[1, 2]", '{"vehicles": "nope"}', '{"records": [{"id": 1}]}'])
    def test_invalid_payload_raises(self, payload: str) -> None:
        tracker = FuelTracker()

        with pytest.raises(SnapshotImportError, match="Invalid format for import"):
            tracker.import_data(payload)

    def test_invalid_payload_leaves_state_untouched(self, populated: FuelTracker) -> None:
        before = populated.export_data()

        with pytest.raises(SnapshotImportError):
            populated.import_data('{"vehicles": [{"name": "no id"}]}')

        assert populated.export_data() == before

    def test_inconsistent_totals_are_flagged_not_fixed(self, caplog) -> None:
        tracker = FuelTracker()
        payload = {
            "vehicles": [{"id": "v1", "name": "Car A", "totalDistance": 999, "totalFuelConsumed": 1}],
            "records": [{"id": "r1", "vehicleId": "v1", "fuelAmount": 10, "distance": 100, "consumption": 10}],
        }

        with caplog.at_level(logging.WARNING, logger="fueltrack.tracker"):
            tracker.import_data(json.dumps(payload))

        vehicle = tracker.get_vehicle("v1")
        assert vehicle is not None
        assert vehicle.total_distance == 999
        assert "v1" in caplog.text

        [drift] = tracker.find_aggregate_drift()
        assert drift.vehicle_id == "v1"
        assert drift.expected_distance == 100
        assert drift.expected_fuel_consumed == 10

    def test_large_totals_within_relative_tolerance_are_not_drift(self) -> None:
        tracker = FuelTracker()
        payload = {
            "vehicles": [
                {"id": "v1", "name": "Truck", "totalDistance": 1_000_000_000_000.001, "totalFuelConsumed": 10}
            ],
            "records": [{"id": "r1", "vehicleId": "v1", "fuelAmount": 10, "distance": 1_000_000_000_000}],
        }

        tracker.import_data(json.dumps(payload))

        assert tracker.find_aggregate_drift() == []

    def test_rebuild_aggregates_repairs_drift(self) -> None:
        storage = MemoryStorage()
        tracker = FuelTracker(storage)
        tracker.import_data(
            {
                "vehicles": [{"id": "v1", "name": "Car A", "totalDistance": 5}],
                "records": [{"id": "r1", "vehicleId": "v1", "fuelAmount": 10, "distance": 100}],
            }
        )

        fixed = tracker.rebuild_aggregates()

        assert [d.vehicle_id for d in fixed] == ["v1"]
        assert tracker.find_aggregate_drift() == []
        assert FuelTracker(storage).get_vehicle("v1").total_distance == 100  # type: ignore[union-attr]
        assert tracker.rebuild_aggregates() == []


class TestPersistence:
    def test_every_mutation_is_persisted(self) -> None:
        storage = MemoryStorage()
        tracker = FuelTracker(storage, clock=_dt)
        tracker.add_vehicle("v1", "Car A")
        record = tracker.record_fuel_consumption("v1", 10, 150)
        tracker.update_record(record.id, {"distance": 200})

        vehicles = json.loads(storage.get("fuelTrackerVehicles") or "[]")
        records = json.loads(storage.get("fuelTrackerRecords") or "[]")

        assert vehicles[0]["totalDistance"] == 200
        assert records[0]["distance"] == 200
        assert records[0]["consumption"] == 20.0

    def test_hydrates_from_storage(self, tmp_path) -> None:
        path = tmp_path / "fuel.json"
        first = FuelTracker(JsonFileStorage(path), clock=_dt)
        first.add_vehicle("v1", "Car A")
        record = first.record_fuel_consumption("v1", 10, 150)

        second = FuelTracker(JsonFileStorage(path))

        assert second.get_vehicle("v1") == first.get_vehicle("v1")
        assert second.get_vehicle_records("v1") == [record]

    def test_clear_all_data_removes_keys(self) -> None:
        storage = MemoryStorage()
        tracker = FuelTracker(storage)
        tracker.add_vehicle("v1", "Car A")

        tracker.clear_all_data()

        assert tracker.get_all_vehicles() == []
        assert storage.keys() == []
        assert FuelTracker(storage).get_all_vehicles() == []

    def test_custom_keys_from_config(self) -> None:
        storage = MemoryStorage()
        config = TrackerConfig(vehicles_key="cars", records_key="fills")
        FuelTracker(storage, config=config).add_vehicle("v1", "Car A")

        assert sorted(storage.keys()) == ["cars", "fills"]

    def test_memory_only_without_storage(self) -> None:
        tracker = FuelTracker()
        tracker.add_vehicle("v1", "Car A")

        assert FuelTracker().get_all_vehicles() == []

    def test_unreadable_stored_data_raises(self) -> None:
        storage = MemoryStorage({"fuelTrackerVehicles": "{broken"})

        with pytest.raises(StorageError) as excinfo:
            FuelTracker(storage)
        assert excinfo.value.key == "fuelTrackerVehicles"

    def test_from_config_uses_storage_path(self, tmp_path) -> None:
        config = TrackerConfig(storage_path=str(tmp_path / "data" / "fuel.json"))
        FuelTracker.from_config(config).add_vehicle("v1", "Car A")

        assert FuelTracker.from_config(config).get_vehicle("v1") is not None
        assert (tmp_path / "data" / "fuel.json").exists()
