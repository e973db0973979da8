"""World geometry and clock configuration constants."""

# World dimensions in simulation units
WORLD_WIDTH = 600.0
WORLD_HEIGHT = 400.0

# Boundary policy name: "clamp" or "periodic"
BOUNDARY_POLICY = "clamp"

# Simulation timestep (time units per tick)
TIMESTEP = 1.0

# Spatial grid cell size. Queries touch O(1) cells on average when the
# cell size is close to the largest sense radius in the population.
SPATIAL_CELL_SIZE = 60.0

# Worker threads for read-only phases (1 = run inline)
PARALLEL_WORKERS = 1

# Console output
SEPARATOR_WIDTH = 60
STATS_INTERVAL = 250
