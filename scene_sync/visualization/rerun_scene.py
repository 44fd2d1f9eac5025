"""
Rerun sink: mirrors the scene graph into a Rerun recording.

Every object of the tree becomes an entity under ``scene/`` carrying its local
transform; objects with geometry also log the matching archetype. Entities of
objects that left the tree (or were hidden) are cleared, so the viewer shows
exactly what the clients currently display.

Attach it to clients with ``sink.attach(client)``; each "change" notification
re-logs the tree.
"""

from __future__ import annotations

import logging
import os
import re
import time
from typing import Any, Callable, Dict, List, Optional, Set

import numpy as np

from scene_sync.common import constants
from scene_sync.scene.graph import Geometry, SceneObject

_logger = logging.getLogger(__name__)

_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9_\-.]")


def _ensure_rerun():
    """Lazy import so rerun is optional when use_rerun=False."""
    try:
        import rerun as rr
        return rr
    except ImportError:
        return None


def _set_rerun_time(rr, time_sec: float) -> None:
    """Set current time on the 'time' timeline across rerun API versions."""
    if hasattr(rr, "set_time_seconds"):
        rr.set_time_seconds("time", time_sec)
    else:
        rr.set_time("time", timestamp=time_sec)


def entity_name(obj: SceneObject) -> str:
    name = _UNSAFE_PATH_CHARS.sub("_", obj.name or type(obj).__name__)
    return name or "_"


def _colors(geometry: Geometry, n: int) -> Optional[np.ndarray]:
    if geometry.colors is None or geometry.colors.shape[0] != n:
        return None
    return geometry.colors


def geometry_archetype(rr, geometry: Geometry) -> Optional[Any]:
    """Rerun archetype for ``geometry``, or None when there is nothing to draw."""
    kind = geometry.kind
    positions = np.asarray(geometry.positions, dtype=np.float32).reshape(-1, 3)
    n = positions.shape[0]
    sizes = geometry.sizes
    colors = _colors(geometry, n)

    if kind == "image":
        if geometry.image is None:
            return None
        height, width = geometry.image.shape[:2]
        sx, sy = (float(sizes[0, 0]), float(sizes[0, 1])) if sizes is not None else (float(width), float(height))
        vertices = np.array(
            [[-sx / 2, -sy / 2, 0.0], [sx / 2, -sy / 2, 0.0], [sx / 2, sy / 2, 0.0], [-sx / 2, sy / 2, 0.0]],
            dtype=np.float32,
        )
        # Texture row 0 is the top edge of the plane
        texcoords = np.array([[0.0, 1.0], [1.0, 1.0], [1.0, 0.0], [0.0, 0.0]], dtype=np.float32)
        return rr.Mesh3D(
            vertex_positions=vertices,
            triangle_indices=np.array([[0, 1, 2], [0, 2, 3]], dtype=np.uint32),
            vertex_texcoords=texcoords,
            albedo_texture=geometry.image,
        )

    if n == 0:
        return None

    if kind == "boxes" or (kind == "cylinders" and not hasattr(rr, "Cylinders3D")):
        return rr.Boxes3D(centers=positions, sizes=sizes, colors=colors)
    if kind == "cylinders":
        return rr.Cylinders3D(
            centers=positions,
            lengths=sizes[:, 2],
            radii=sizes[:, 0] / 2.0,
            colors=colors,
        )
    if kind == "spheres":
        if hasattr(rr, "Ellipsoids3D"):
            return rr.Ellipsoids3D(centers=positions, half_sizes=sizes / 2.0, colors=colors)
        return rr.Points3D(positions=positions, radii=sizes[:, 0] / 2.0, colors=colors)
    if kind == "points":
        radii = sizes[:, 0] / 2.0 if sizes is not None else None
        return rr.Points3D(positions=positions, radii=radii, colors=colors)
    if kind == "line_strip":
        if n < 2:
            return None
        strip_color = colors[:1] if colors is not None else None
        return rr.LineStrips3D([positions], colors=strip_color, radii=_line_radius(sizes))
    if kind == "lines":
        usable = n - n % 2
        if usable == 0:
            return None
        segments = positions[:usable].reshape(-1, 2, 3)
        segment_colors = colors[:usable:2] if colors is not None else None
        return rr.LineStrips3D(segments, colors=segment_colors, radii=_line_radius(sizes))
    if kind == "triangles":
        usable = n - n % 3
        if usable == 0:
            return None
        return rr.Mesh3D(
            vertex_positions=positions[:usable],
            vertex_colors=colors[:usable] if colors is not None else None,
        )
    if kind == "arrows":
        return rr.Arrows3D(origins=positions, vectors=geometry.extras.get("vectors"), colors=colors)
    if kind == "text":
        return rr.Points3D(positions=positions, labels=[geometry.text], colors=colors)
    if kind == "mesh_resource":
        if os.path.isfile(geometry.resource):
            return rr.Asset3D(path=geometry.resource)
        return rr.Points3D(positions=positions, labels=[geometry.resource], colors=colors)

    _logger.debug("no rerun archetype for geometry kind %r", kind)
    return None


def _line_radius(sizes: Optional[np.ndarray]) -> Optional[float]:
    if sizes is None or sizes.shape[0] == 0:
        return None
    return float(sizes[0, 0]) / 2.0


class RerunSceneSink:
    """
    Log the scene tree below ``root`` to Rerun.

    Call init() once when use_rerun is True; then attach() clients or call
    log_scene() directly.
    """

    def __init__(
        self,
        root: SceneObject,
        application_id: str = constants.RERUN_APPLICATION_ID,
        spawn: bool = False,
        recording_path: Optional[str] = None,
        root_path: str = constants.RERUN_ROOT_PATH,
    ):
        self.root = root
        self._application_id = application_id
        self._spawn = spawn
        self._recording_path = recording_path
        self._root_path = root_path
        self._initialized = False
        self._rr = None
        self._logged_paths: Set[str] = set()
        self._detach: List[Callable[[], None]] = []

    def init(self) -> bool:
        """Initialize Rerun (spawn viewer and/or record to file). Returns True if active."""
        if self._initialized:
            return self._rr is not None
        rr = _ensure_rerun()
        if rr is None:
            _logger.warning("rerun is not installed; scene will not be logged")
            return False
        self._rr = rr
        rr.init(
            application_id=self._application_id,
            default_enabled=True,
            spawn=self._spawn,
        )
        # If recording to file: must call save() before any log (Rerun API).
        if self._recording_path and not self._spawn:
            rr.save(self._recording_path)
        self._initialized = True
        return True

    def attach(self, client: Any) -> None:
        """Re-log the scene on every change of ``client``."""
        self._detach.append(client.on_change(self.log_scene))

    def detach_all(self) -> None:
        for remove in self._detach:
            remove()
        self._detach = []

    def _visible_paths(self) -> Dict[str, SceneObject]:
        paths: Dict[str, SceneObject] = {}

        def visit(obj: SceneObject, path: str) -> None:
            paths[path] = obj
            taken: Dict[str, int] = {}
            for child in obj.children:
                if not child.visible:
                    continue
                name = entity_name(child)
                count = taken.get(name, 0)
                taken[name] = count + 1
                visit(child, f"{path}/{name}" if count == 0 else f"{path}/{name}_{count}")

        visit(self.root, self._root_path)
        return paths

    def log_scene(self, time_sec: Optional[float] = None) -> None:
        """Log every visible object below the root and clear the ones that went away."""
        if self._rr is None:
            return
        rr = self._rr
        _set_rerun_time(rr, time.time() if time_sec is None else time_sec)

        paths = self._visible_paths()
        for path in sorted(self._logged_paths - set(paths)):
            rr.log(path, rr.Clear(recursive=False))

        for path, obj in paths.items():
            archetype = geometry_archetype(rr, obj.geometry) if obj.geometry is not None else None
            if archetype is None and path in self._logged_paths and path != self._root_path:
                # drop geometry left over from an earlier object at this path
                rr.log(path, rr.Clear(recursive=False))
            rr.log(path, rr.Transform3D(translation=obj.matrix[:3, 3], mat3x3=obj.matrix[:3, :3]))
            if archetype is not None:
                rr.log(path, archetype)
        self._logged_paths = set(paths)

    def flush(self) -> None:
        """Flush recording (call at shutdown if desired)."""
        if self._rr is not None:
            rec = self._rr.get_global_data_recording()
            if rec is not None:
                rec.flush()
