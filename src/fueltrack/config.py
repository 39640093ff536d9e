"""Tracker configuration for fueltrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from fueltrack._constants import DEFAULT_FUEL_TYPE, RECORDS_KEY, VEHICLES_KEY


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Tracker configuration.

    Parameters
    ----------
    storage_path : str or None
        Path of the JSON file used by :meth:`FuelTracker.from_config`.
        ``None`` keeps the tracker memory-only.
    vehicles_key : str
        Storage key holding the serialized vehicle list.
    records_key : str
        Storage key holding the serialized fuel record list.
    default_fuel_type : str
        Fuel type used by ``add_vehicle`` when the caller gives none.
    """

    storage_path: str | None = None
    vehicles_key: str = VEHICLES_KEY
    records_key: str = RECORDS_KEY
    default_fuel_type: str = DEFAULT_FUEL_TYPE

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from ``FUELTRACK_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FUELTRACK_STORAGE_PATH": "storage_path",
            "FUELTRACK_VEHICLES_KEY": "vehicles_key",
            "FUELTRACK_RECORDS_KEY": "records_key",
            "FUELTRACK_DEFAULT_FUEL_TYPE": "default_fuel_type",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip():
                config_kwargs[field_name] = val.strip()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
