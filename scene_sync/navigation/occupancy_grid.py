"""
OccupancyGrid: textured plane built from a nav_msgs/OccupancyGrid.

Cell values map to gray levels: 100 -> 0 (occupied), 0 -> 255 (free), any
other value (including -1 unknown) -> 127. The gray level scales the
configured RGB color; opacity becomes the alpha channel. Row 0 of the texture
is the top of the map (highest y), as images are stored.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

import numpy as np

from scene_sync.common import constants
from scene_sync.common.transforms import make_transform, pose_to_matrix
from scene_sync.scene.graph import Geometry, SceneObject


def grid_to_texture(
    data: Sequence[int],
    width: int,
    height: int,
    color: Tuple[int, int, int] = constants.GRID_COLOR_DEFAULT,
    opacity: float = constants.GRID_OPACITY_DEFAULT,
) -> np.ndarray:
    """(height, width, 4) uint8 RGBA texture for the grid data."""
    values = np.asarray(data, dtype=np.int16).reshape(-1)
    if values.size != width * height:
        raise ValueError(f"grid data has {values.size} cells, expected {width}x{height}")
    grid = values.reshape(height, width)[::-1, :]

    gray = np.full(grid.shape, constants.GRID_UNKNOWN_VALUE, dtype=np.float64)
    gray[grid == 0] = 255.0
    gray[grid == constants.GRID_OCCUPANCY_MAX] = 0.0

    rgb = np.asarray(color, dtype=np.float64)
    texture = np.empty((height, width, 4), dtype=np.uint8)
    texture[..., :3] = np.round(gray[..., None] * rgb / 255.0).astype(np.uint8)
    texture[..., 3] = int(round(np.clip(opacity, 0.0, 1.0) * 255.0))
    return texture


class OccupancyGrid(SceneObject):
    def __init__(
        self,
        message: Any,
        color: Tuple[int, int, int] = constants.GRID_COLOR_DEFAULT,
        opacity: float = constants.GRID_OPACITY_DEFAULT,
    ) -> None:
        super().__init__(name="occupancy_grid")
        info = message.info
        width, height = int(info.width), int(info.height)
        resolution = float(info.resolution)
        texture = grid_to_texture(message.data, width, height, color, opacity)

        self.resolution = resolution
        self.width = width
        self.height = height
        self.geometry = Geometry(
            kind="image",
            image=texture,
            sizes=np.array([[width * resolution, height * resolution, 0.0]], dtype=np.float32),
        )
        # Plane centered on the map; the map origin is its lower-left corner
        center = make_transform(np.eye(3), np.array([width * resolution / 2.0, height * resolution / 2.0, 0.0]))
        self.matrix = pose_to_matrix(info.origin) @ center
