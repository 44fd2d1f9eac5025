"""
Per-type marker geometry and in-place updates.
"""

import numpy as np
import pytest

from scene_sync.markers.marker import Marker, color_to_rgba, resolve_mesh_resource
from scene_sync.messages import ColorRGBA, MarkerType


def test_cube_uses_scale_and_color(make_marker):
    marker = Marker(make_marker(type=MarkerType.CUBE, scale=(1.0, 2.0, 3.0), color=ColorRGBA(1.0, 0.0, 0.0, 0.5)))

    assert marker.name == "a/1"
    assert marker.geometry.kind == "boxes"
    assert np.allclose(marker.geometry.sizes, [[1.0, 2.0, 3.0]])
    assert list(marker.geometry.colors[0]) == [255, 0, 0, 128]


def test_points_types_take_one_primitive_per_point(make_marker):
    points = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0)]
    marker = Marker(make_marker(type=MarkerType.SPHERE_LIST, points=points))

    assert marker.geometry.kind == "spheres"
    assert marker.geometry.positions.shape == (3, 3)
    assert marker.geometry.colors.shape == (3, 4)


def test_per_point_colors(make_marker):
    points = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)]
    colors = [ColorRGBA(1.0, 0.0, 0.0, 1.0), ColorRGBA(0.0, 0.0, 1.0, 1.0)]
    marker = Marker(make_marker(type=MarkerType.POINTS, points=points, colors=colors))

    assert list(marker.geometry.colors[1]) == [0, 0, 255, 255]


def test_arrow_from_two_points(make_marker):
    marker = Marker(make_marker(type=MarkerType.ARROW, points=[(1.0, 1.0, 0.0), (1.0, 3.0, 0.0)]))

    assert np.allclose(marker.geometry.positions, [[1.0, 1.0, 0.0]])
    assert np.allclose(marker.geometry.extras["vectors"], [[0.0, 2.0, 0.0]])


def test_arrow_default_points_along_x(make_marker):
    marker = Marker(make_marker(type=MarkerType.ARROW, scale=(2.0, 0.1, 0.1)))
    assert np.allclose(marker.geometry.extras["vectors"], [[2.0, 0.0, 0.0]])


def test_text_marker(make_marker):
    marker = Marker(make_marker(type=MarkerType.TEXT_VIEW_FACING, text="hello"))
    assert marker.geometry.kind == "text"
    assert marker.geometry.text == "hello"


def test_mesh_resource_resolution(make_marker):
    message = make_marker(type=MarkerType.MESH_RESOURCE, mesh_resource="package://robot/meshes/base.dae")
    marker = Marker(message, path="/opt/share")

    assert marker.geometry.resource == "/opt/share/robot/meshes/base.dae"
    assert resolve_mesh_resource("file:///tmp/x.stl", "/opt") == "file:///tmp/x.stl"


def test_update_in_place(make_marker):
    marker = Marker(make_marker(type=MarkerType.LINE_STRIP, points=[(0, 0, 0), (1, 0, 0)]))
    geometry = marker.geometry

    assert marker.update(make_marker(type=MarkerType.LINE_STRIP, points=[(0, 0, 0), (1, 0, 0), (1, 1, 0)]))
    assert marker.geometry is geometry
    assert geometry.positions.shape == (3, 3)


@pytest.mark.parametrize(
    "first, second",
    [
        (dict(type=MarkerType.CUBE), dict(type=MarkerType.SPHERE)),
        (
            dict(type=MarkerType.MESH_RESOURCE, mesh_resource="package://a.dae"),
            dict(type=MarkerType.MESH_RESOURCE, mesh_resource="package://b.dae"),
        ),
    ],
)
def test_update_rejects_unrepresentable_change(make_marker, first, second):
    marker = Marker(make_marker(**first))
    assert not marker.update(make_marker(**second))


def test_update_after_dispose(make_marker):
    marker = Marker(make_marker())
    marker.dispose()
    assert not marker.update(make_marker())


def test_unsupported_type(make_marker):
    with pytest.raises(ValueError, match="unsupported marker type"):
        Marker(make_marker(type=99))


def test_color_clamped():
    assert list(color_to_rgba(ColorRGBA(2.0, -1.0, 0.5, 1.0))) == [255, 0, 128, 255]
