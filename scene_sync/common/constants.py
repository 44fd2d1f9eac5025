"""
scene_sync constants only.

=============================================================================
CONVENTION QUICK REFERENCE
=============================================================================

POSES:
  geometry_msgs/Pose layout: position (x, y, z), orientation quaternion (x, y, z, w)
  4x4 homogeneous matrices are row-major numpy arrays, p_parent = T @ p_child

OCCUPANCY GRID VALUES:
  -1 unknown, 0 free, 100 occupied (nav_msgs/OccupancyGrid)

OCTOMAP:
  Tree depth 16, root cube edge = resolution * 2^16, child index bits (x=1, y=2, z=4)
  Log-odds > 0 means occupied (probability 0.5 threshold)
=============================================================================
"""

# =============================================================================
# TOPICS AND MESSAGE TYPES
# =============================================================================

MARKER_ARRAY_TOPIC_DEFAULT = "/visualization_marker_array"
OCCUPANCY_GRID_TOPIC_DEFAULT = "/map"
OCTOMAP_TOPIC_DEFAULT = "/octomap"

MARKER_ARRAY_MESSAGE_TYPE = "visualization_msgs/MarkerArray"
OCCUPANCY_GRID_MESSAGE_TYPE = "nav_msgs/OccupancyGrid"
OCTOMAP_MESSAGE_TYPE = "octomap_msgs/Octomap"

# Compression tags are forwarded to the transport untouched
MARKER_COMPRESSION_DEFAULT = "png"
MAP_COMPRESSION_DEFAULT = "cbor"

# Map topics only care about the latest message
MAP_QUEUE_LENGTH = 1
MARKER_QUEUE_LENGTH = 10

MARKER_RESOURCE_PATH_DEFAULT = "/"

# =============================================================================
# OCCUPANCY GRID RENDERING
# =============================================================================

GRID_COLOR_DEFAULT = (255, 255, 255)
GRID_OPACITY_DEFAULT = 1.0
GRID_UNKNOWN_VALUE = 127  # gray level for cells with value -1
GRID_OCCUPANCY_MAX = 100

# =============================================================================
# OCTOMAP DECODING
# =============================================================================

OCTREE_TREE_DEPTH = 16
OCTREE_OCCUPANCY_THRESHOLD_LOG_ODDS = 0.0
# Log-odds written for leaves decoded from the binary (occupied/free only) format
OCTREE_BINARY_OCCUPIED_LOG_ODDS = 3.5  # clamping_thres_max of octomap
OCTREE_BINARY_FREE_LOG_ODDS = -2.0  # clamping_thres_min of octomap

OCTREE_DECODE_WORKERS = 2

# Palette used by the occupancy color mode when no palette is configured
OCTREE_PALETTE_DEFAULT = (
    (0, 0, 128),
    (0, 255, 0),
    (255, 255, 0),
    (255, 128, 0),
    (255, 0, 0),
    (255, 0, 255),
)
OCTREE_PALETTE_SCALE_DEFAULT = 1.0
OCTREE_SOLID_COLOR_DEFAULT = (0, 255, 0)
OCTREE_OPACITY_DEFAULT = 1.0

# =============================================================================
# FRAME TRACKING
# =============================================================================

TF_FIXED_FRAME_DEFAULT = "map"
TF_POLL_RATE_HZ = 10.0
TF_TIMEOUT_SEC = 0.05

# =============================================================================
# NODE
# =============================================================================

INSTALL_DRAIN_PERIOD_SEC = 0.02
RERUN_APPLICATION_ID = "scene_sync"
RERUN_ROOT_PATH = "scene"
