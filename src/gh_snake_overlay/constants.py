"""Global constants for the overlay compiler."""

# Animation settings
DEFAULT_FRAME_DURATION_MS = 100  # Milliseconds each path step stays on screen
STEP_EPSILON = 0.0001  # Half-width of an instantaneous style switch (normalized time)

# Grid geometry (pixels)
DEFAULT_CELL_SIZE = 16  # Distance between neighbouring cell origins
DEFAULT_DOT_SIZE = 12  # Side of the rendered dot inside a cell
DEFAULT_DOT_BORDER_RADIUS = 2  # Corner radius of grid dots

# GitHub contribution graph dimensions
NUM_DAYS = 7  # Rows in a contribution graph (Sun-Sat)
DEFAULT_CONTRIBUTION_LEVELS = 5  # Levels 0..4 as rendered by GitHub

# Snake body
DEFAULT_SNAKE_LENGTH = 4  # Segments derived from a head-only path
SNAKE_FALLOFF_SEGMENTS = 4  # Segments over which the body shrinks towards the tail
SNAKE_MIN_SIZE_RATIO = 0.8  # Tail size as a ratio of the dot size
SNAKE_MAX_SIZE_RATIO = 0.9  # Head size as a ratio of the cell size
SNAKE_MAX_RADIUS = 4.5  # Upper bound for segment corner radius
DEFAULT_SNAKE_HEAD_CONTENT = "\U0001f40d"  # Snake emoji for the head
DEFAULT_SNAKE_BODY_CONTENT = "\U0001f7e2"  # Green circle for body segments

# Geometry reduction
WAYPOINT_TOLERANCE = 0.01  # Max distance from a neighbour midpoint to drop a waypoint

# Counter displays
DEFAULT_COUNTER_COLOR = "#666"  # Counter text fill
COUNTER_FOLLOW_OFFSET_RATIO = 0.5  # Follow offset as a ratio of the font size
MONOSPACE_CHAR_WIDTH_RATIO = 0.6  # Estimated glyph advance for monospace fonts
PROPORTIONAL_CHAR_WIDTH_RATIO = 0.5  # Estimated glyph advance for other fonts

# Asset resolution
DEFAULT_ASSET_TIMEOUT = 10.0  # Seconds before a single asset fetch is abandoned
DEFAULT_FRAME_PATTERN = "frame-{n}.png"  # File name pattern for multi-file frames
DEFAULT_LEVEL_FRAME_PATTERN = "Lx-{n}.png"  # File name pattern for per-level frames
