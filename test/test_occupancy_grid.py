"""
Occupancy grid texture mapping and plane placement.
"""

import numpy as np
import pytest

from scene_sync.messages import Point, Pose
from scene_sync.navigation.occupancy_grid import OccupancyGrid, grid_to_texture


def test_cell_values_map_to_gray_levels():
    # row 0 = bottom of the map: [free, occupied]; row 1 = top: [unknown, 50]
    texture = grid_to_texture([0, 100, -1, 50], width=2, height=2)

    # image row 0 is the top row of the map
    assert texture.shape == (2, 2, 4)
    assert texture.dtype == np.uint8
    assert list(texture[1, 0, :3]) == [255, 255, 255]
    assert list(texture[1, 1, :3]) == [0, 0, 0]
    assert list(texture[0, 0, :3]) == [127, 127, 127]
    assert list(texture[0, 1, :3]) == [127, 127, 127]
    assert np.all(texture[..., 3] == 255)


def test_color_scales_gray_level():
    texture = grid_to_texture([0, 100], width=2, height=1, color=(0, 128, 255), opacity=0.0)

    assert list(texture[0, 0, :3]) == [0, 128, 255]
    assert list(texture[0, 1, :3]) == [0, 0, 0]
    assert np.all(texture[..., 3] == 0)


def test_size_mismatch_rejected():
    with pytest.raises(ValueError, match="expected 2x2"):
        grid_to_texture([0, 0, 0], width=2, height=2)


def test_plane_is_centered_on_map(make_grid):
    origin = Pose(position=Point(-1.0, -2.0, 0.0))
    grid = OccupancyGrid(make_grid(width=4, height=2, resolution=0.5, data=[0] * 8, origin=origin))

    assert np.allclose(grid.matrix[:3, 3], [-1.0 + 1.0, -2.0 + 0.5, 0.0])
    assert np.allclose(grid.geometry.sizes, [[2.0, 1.0, 0.0]])
    assert grid.geometry.kind == "image"


def test_dispose_releases_texture(make_grid):
    grid = OccupancyGrid(make_grid())
    grid.dispose()
    grid.dispose()

    assert grid.geometry is None
    assert grid.disposed
