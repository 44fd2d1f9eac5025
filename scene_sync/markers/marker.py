"""
Marker: renderable built from one visualization_msgs/Marker.

Geometry per marker type:
  ARROW              -> "arrows"   (origin + vector; two points override the default x-axis arrow)
  CUBE/SPHERE/CYLINDER -> single shape at the marker origin, sized by scale
  LINE_STRIP/LINE_LIST -> vertices from points, width scale.x
  CUBE_LIST/SPHERE_LIST/POINTS -> one primitive per point
  TRIANGLE_LIST      -> vertices, three per triangle
  TEXT_VIEW_FACING   -> text label, height scale.z
  MESH_RESOURCE      -> resource path resolved against the client's base path

``update`` mutates the existing buffers in place and reports whether the new
message can be represented by this object at all.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import numpy as np

from scene_sync.common.transforms import pose_to_matrix
from scene_sync.messages import MarkerType
from scene_sync.scene.graph import Geometry, SceneObject

_logger = logging.getLogger(__name__)

_PACKAGE_PREFIX = "package://"

_KIND_BY_TYPE = {
    MarkerType.ARROW: "arrows",
    MarkerType.CUBE: "boxes",
    MarkerType.SPHERE: "spheres",
    MarkerType.CYLINDER: "cylinders",
    MarkerType.LINE_STRIP: "line_strip",
    MarkerType.LINE_LIST: "lines",
    MarkerType.CUBE_LIST: "boxes",
    MarkerType.SPHERE_LIST: "spheres",
    MarkerType.POINTS: "points",
    MarkerType.TEXT_VIEW_FACING: "text",
    MarkerType.MESH_RESOURCE: "mesh_resource",
    MarkerType.TRIANGLE_LIST: "triangles",
}

_POINT_TYPES = {
    MarkerType.LINE_STRIP,
    MarkerType.LINE_LIST,
    MarkerType.CUBE_LIST,
    MarkerType.SPHERE_LIST,
    MarkerType.POINTS,
    MarkerType.TRIANGLE_LIST,
}


def color_to_rgba(color: Any) -> np.ndarray:
    """std_msgs/ColorRGBA (0..1 floats) -> uint8 RGBA."""
    rgba = np.array([color.r, color.g, color.b, color.a], dtype=np.float64)
    return np.round(np.clip(rgba, 0.0, 1.0) * 255.0).astype(np.uint8)


def resolve_mesh_resource(resource: str, path: str) -> str:
    """Map ``package://pkg/mesh.dae`` onto ``path``; other URIs pass through."""
    if resource.startswith(_PACKAGE_PREFIX):
        base = path if path.endswith("/") else path + "/"
        return base + resource[len(_PACKAGE_PREFIX):]
    return resource


def _points_array(points: Sequence[Any]) -> np.ndarray:
    if not points:
        return np.zeros((0, 3), dtype=np.float32)
    return np.array([[p.x, p.y, p.z] for p in points], dtype=np.float32)


class Marker(SceneObject):
    def __init__(self, message: Any, path: str = "/") -> None:
        super().__init__(name=f"{message.ns}/{message.id}")
        self.path = path
        try:
            self.marker_type = MarkerType(int(message.type))
        except ValueError:
            raise ValueError(f"unsupported marker type {message.type!r} ({self.name})") from None
        self.geometry = Geometry(kind=_KIND_BY_TYPE[self.marker_type])
        self._apply(message)

    def update(self, message: Any) -> bool:
        """
        Refresh pose, scale, color and vertices from ``message``.

        Returns False when the message cannot be shown by this object: the
        marker type changed, the mesh resource changed, or the object was
        already disposed.
        """
        if self.disposed or self.geometry is None:
            return False
        if int(message.type) != int(self.marker_type):
            return False
        if self.marker_type == MarkerType.MESH_RESOURCE:
            if resolve_mesh_resource(message.mesh_resource, self.path) != self.geometry.resource:
                return False
        self._apply(message)
        return True

    def _apply(self, message: Any) -> None:
        geometry = self.geometry
        self.matrix = pose_to_matrix(message.pose)
        scale = np.array([message.scale.x, message.scale.y, message.scale.z], dtype=np.float32)
        base_color = color_to_rgba(message.color)
        mtype = self.marker_type

        if mtype in _POINT_TYPES:
            positions = _points_array(message.points)
            n = positions.shape[0]
            per_point = list(getattr(message, "colors", None) or [])
            if len(per_point) == n and n > 0:
                colors = np.stack([color_to_rgba(c) for c in per_point])
            else:
                if per_point:
                    _logger.debug("%s: %d colors for %d points, using marker color", self.name, len(per_point), n)
                colors = np.tile(base_color, (n, 1))
            geometry.positions = positions
            geometry.colors = colors
            geometry.sizes = np.tile(scale, (n, 1))
        elif mtype == MarkerType.ARROW:
            points = _points_array(message.points)
            if points.shape[0] == 2:
                origin, vector = points[0:1], points[1:2] - points[0:1]
            else:
                origin = np.zeros((1, 3), dtype=np.float32)
                vector = np.array([[scale[0], 0.0, 0.0]], dtype=np.float32)
            geometry.positions = origin
            geometry.extras["vectors"] = vector
            geometry.sizes = scale.reshape(1, 3)
            geometry.colors = base_color.reshape(1, 4)
        else:
            geometry.positions = np.zeros((1, 3), dtype=np.float32)
            geometry.sizes = scale.reshape(1, 3)
            geometry.colors = base_color.reshape(1, 4)
            if mtype == MarkerType.TEXT_VIEW_FACING:
                geometry.text = str(message.text)
            elif mtype == MarkerType.MESH_RESOURCE:
                geometry.resource = resolve_mesh_resource(message.mesh_resource, self.path)
