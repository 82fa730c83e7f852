"""Centralized configuration constants."""

# Tick rate
PHYSICS_TICKS_PER_SECOND = 60

# Planet defaults
DEFAULT_PLANET_RADIUS = 80.0
REFERENCE_RADIUS = 80.0  # Movement speed and mesh subdivisions are calibrated here
ROVER_SPAWN_HEIGHT_OFFSET = 20.0

# Height queries
RAYCAST_START_OFFSET = 150.0  # Above the radius, clears the tallest features
HEIGHT_SOLVER_ITERATIONS = 4

# Height cache
CACHE_GRID_SIZE = 5.0
CACHE_MAX_SIZE = 1000
CACHE_VALIDATION_THRESHOLD = 10.0
CACHE_PRUNE_KEEP_FRACTION = 0.75
