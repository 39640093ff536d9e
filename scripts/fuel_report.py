#!/usr/bin/env python3
"""Summarize, export or import a file-backed fuel tracker.

Usage
-----
Point the script at a storage file (or set ``FUELTRACK_STORAGE_PATH``)::

    python scripts/fuel_report.py --storage fuel.json
    python scripts/fuel_report.py --storage fuel.json --vehicle v1 --json
    python scripts/fuel_report.py --storage fuel.json --export backup.json
    python scripts/fuel_report.py --storage fuel.json --import backup.json

Options::

    --storage FILE      JSON storage file (default: $FUELTRACK_STORAGE_PATH)
    --vehicle ID        Only report this vehicle (default: all vehicles)
    --json              Output the report as machine-readable JSON
    --export FILE       Write a snapshot of the store to FILE
    --import FILE       Load a snapshot from FILE into the store
    --check             Report vehicles whose totals disagree with records
    --rebuild           Reset drifting totals to their record sums
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from fueltrack import FuelTracker, TrackerConfig, TrackerError  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _vehicle_report(tracker: FuelTracker, vehicle_id: str) -> dict[str, Any]:
    vehicle = tracker.get_vehicle(vehicle_id)
    stats = tracker.get_consumption_stats(vehicle_id)
    return {
        "vehicle": vehicle.to_json_dict() if vehicle is not None else None,
        "stats": stats.to_json_dict(),
        "records": [r.to_json_dict() for r in tracker.get_vehicle_records(vehicle_id)],
    }


def _print_report(report: dict[str, Any], out: list[str]) -> None:
    vehicle = report["vehicle"] or {}
    stats = report["stats"]
    out.append(_section(f"{vehicle.get('name', '?')}  id={vehicle.get('id', '?')}"))
    out.append(f"  fuel type   : {vehicle.get('fuelType', '?')}")
    out.append(f"  records     : {stats['count']}")
    out.append(f"  distance    : {stats['totalDistance']}")
    out.append(f"  fuel        : {stats['totalFuel']}")
    out.append(f"  average     : {stats['averageConsumption']}")
    out.append(f"  min / max   : {stats['minConsumption']} / {stats['maxConsumption']}")
    for record in report["records"]:
        notes = f"  ({record['notes']})" if record["notes"] else ""
        out.append(
            f"    - {record['date']}  {record['distance']} / {record['fuelAmount']}"
            f" = {record['consumption']}{notes}"
        )


# ── main ─────────────────────────────────────────────────────


def main() -> int:
    parser = argparse.ArgumentParser(description="Report on a fueltrack storage file.")
    parser.add_argument("--storage", help="JSON storage file (default: $FUELTRACK_STORAGE_PATH)")
    parser.add_argument("--vehicle", help="Only report this vehicle id")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--export", dest="export_path", help="Write a snapshot to FILE")
    parser.add_argument("--import", dest="import_path", help="Load a snapshot from FILE")
    parser.add_argument("--check", action="store_true", help="Report drifting vehicle totals")
    parser.add_argument("--rebuild", action="store_true", help="Reset drifting totals to record sums")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {}
    if args.storage:
        overrides["storage_path"] = args.storage
    config = TrackerConfig.from_env(**overrides)
    if not config.storage_path:
        parser.error("no storage file given (use --storage or FUELTRACK_STORAGE_PATH)")

    try:
        tracker = FuelTracker.from_config(config)

        if args.import_path:
            snapshot = tracker.import_data(Path(args.import_path).read_text(encoding="utf-8"))
            print(
                f"Imported {len(snapshot.vehicles or [])} vehicle(s) and {len(snapshot.records or [])} record(s)",
                file=sys.stderr,
            )

        if args.rebuild:
            for drift in tracker.rebuild_aggregates():
                print(f"Rebuilt totals of {drift.vehicle_id}", file=sys.stderr)
        elif args.check:
            drifts = tracker.find_aggregate_drift()
            for drift in drifts:
                print(
                    f"{drift.vehicle_id}: distance {drift.total_distance} != {drift.expected_distance},"
                    f" fuel {drift.total_fuel_consumed} != {drift.expected_fuel_consumed}"
                )
            if drifts:
                return 1

        if args.export_path:
            Path(args.export_path).write_text(tracker.export_data(), encoding="utf-8")
            print(f"Snapshot written to {args.export_path}", file=sys.stderr)
            return 0

        vehicle_ids = [args.vehicle] if args.vehicle else [v.id for v in tracker.get_all_vehicles()]
        reports = [_vehicle_report(tracker, vehicle_id) for vehicle_id in vehicle_ids]
    except TrackerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.json_mode:
        print(json.dumps(reports, indent=2, ensure_ascii=False))
    else:
        out: list[str] = []
        for report in reports:
            _print_report(report, out)
        print("\n".join(out))
    return 0


if __name__ == "__main__":
    sys.exit(main())
