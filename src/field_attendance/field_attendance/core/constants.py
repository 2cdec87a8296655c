"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Area summation uses the mean radius in metres.
EARTH_RADIUS_AREA_M = 6371000.0
# Haversine distance uses 6371e3. Numerically equal today; do not merge the
# two without checking outputs against stored distances.
EARTH_RADIUS_DISTANCE_M = 6371e3

SQ_METERS_PER_ACRE = 4046.86

MIN_POLYGON_POINTS = 3

UNASSIGNED_FIELD = "unassigned"

DEFAULT_HISTORY_LIMIT = 50
DEFAULT_DRAIN_LIMIT = 100
