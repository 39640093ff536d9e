"""Internal constants shared across the library."""

VEHICLES_KEY = "fuelTrackerVehicles"
RECORDS_KEY = "fuelTrackerRecords"

DEFAULT_FUEL_TYPE = "petrol"

# Consumption, averages and stat totals are rounded to this many decimals.
ROUND_DIGITS = 2

# Absolute and relative tolerances used when comparing stored aggregates against record sums.
AGGREGATE_TOLERANCE = 1e-6
AGGREGATE_REL_TOLERANCE = 1e-9

IMPORT_ERROR_MESSAGE = "Invalid format for import"
