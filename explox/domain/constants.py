"""Pipeline limits and thresholds."""

MAX_COMBOS = 5
MAX_CANDIDATES = 10
MAX_FINALISTS = 5

# OSRM demo server rejects longer coordinate lists.
MAX_ROUTING_WAYPOINTS = 25
# Interior slots left once start and end are reserved.
DOWNSAMPLE_DIVISOR = MAX_ROUTING_WAYPOINTS - 2

MIN_PART_SHARE = 0.2
LOWER_BOUND_GRACE = 0.1

FAMILIARITY_SAMPLES = 25
FAMILIARITY_RADIUS_M = 280.0
FAMILIARITY_LOOKUP_LIMIT = 50

DEFAULT_DISTANCE_M = 5000.0
