"""
OcTree decoding and voxel geometry for octomap_msgs/Octomap payloads.

Two stream formats are supported:

Binary (``binary=True``, any tree type, ``OcTreeBase.read_binary``):
    Depth-first. Each inner node is two bytes holding 2 bits per child
    (children 0-3 in the first byte, 4-7 in the second, child i at bit 2*(i%4)):
        (lo, hi) = (1, 1) inner node, recursed into after the two bytes
                   (0, 1) occupied leaf
                   (1, 0) free leaf
                   (0, 0) unknown (child absent)
    The root itself is not written; the stream starts with its child bits.

Full (``binary=False``, ``OcTree`` / ``ColorOcTree``, ``read``):
    Depth-first from the root. Each node is its data (float32 log-odds, then
    RGB bytes for ColorOcTree) followed by one byte whose bit i marks child i
    as present. Nodes without children are leaves.

Geometry: child i of a node with center c and edge s has edge s/2 and center
c + s/4 * (+1 if bit set else -1) per axis, with bits x=1, y=2, z=4. The root
cube has edge resolution * 2^16 and is centered at the origin.
"""

from __future__ import annotations

import logging
import struct
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from scene_sync.common import constants
from scene_sync.scene.graph import Geometry, SceneObject

_logger = logging.getLogger(__name__)

_FLOAT = struct.Struct("<f")
_COLOR = struct.Struct("<BBB")


class OcTreeDecodeError(ValueError):
    """The payload could not be turned into an octree."""


class OcTreeColorMode(str, Enum):
    SOLID = "solid"
    OCCUPANCY = "occupancy"
    COLOR = "color"


class OcTreeVoxelRenderMode(str, Enum):
    OCCUPIED = "occupied"
    FREE = "free"
    BOTH = "both"


def payload_bytes(data: Any) -> bytes:
    """Normalize the message payload (bytes, int8[] list or array) to bytes."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    values = np.asarray(data).astype(np.int64).reshape(-1)
    return (values & 0xFF).astype(np.uint8).tobytes()


def _child_center(center: Tuple[float, float, float], edge: float, index: int) -> Tuple[float, float, float]:
    q = edge / 4.0
    return (
        center[0] + (q if index & 1 else -q),
        center[1] + (q if index & 2 else -q),
        center[2] + (q if index & 4 else -q),
    )


class OcTreeBase:
    """
    Occupancy octree holding decoded leaves.

    After decoding, ``centers`` (N, 3), ``edges`` (N,) and ``log_odds`` (N,)
    describe every known leaf; ``build_geometry`` turns them into ``object``.
    """

    default_color_mode = OcTreeColorMode.SOLID

    def __init__(
        self,
        resolution: float,
        color: Optional[Sequence[int]] = None,
        opacity: Optional[float] = None,
        color_mode: Optional[OcTreeColorMode] = None,
        palette: Optional[Sequence[Sequence[int]]] = None,
        palette_scale: Optional[float] = None,
        voxel_render_mode: Optional[OcTreeVoxelRenderMode] = None,
    ) -> None:
        if resolution <= 0.0:
            raise OcTreeDecodeError(f"octree resolution must be positive, got {resolution}")
        self.resolution = float(resolution)
        self.color = tuple(color) if color is not None else constants.OCTREE_SOLID_COLOR_DEFAULT
        self.opacity = constants.OCTREE_OPACITY_DEFAULT if opacity is None else float(opacity)
        self.color_mode = OcTreeColorMode(color_mode) if color_mode is not None else self.default_color_mode
        self.palette = [tuple(c) for c in (palette or constants.OCTREE_PALETTE_DEFAULT)]
        self.palette_scale = constants.OCTREE_PALETTE_SCALE_DEFAULT if palette_scale is None else float(palette_scale)
        self.voxel_render_mode = (
            OcTreeVoxelRenderMode(voxel_render_mode)
            if voxel_render_mode is not None
            else OcTreeVoxelRenderMode.OCCUPIED
        )

        self._centers: List[Tuple[float, float, float]] = []
        self._edges: List[float] = []
        self._log_odds: List[float] = []
        self._colors: List[Tuple[int, int, int]] = []
        self.object: Optional[SceneObject] = None

    @property
    def root_edge(self) -> float:
        return self.resolution * float(1 << constants.OCTREE_TREE_DEPTH)

    @property
    def leaf_count(self) -> int:
        return len(self._edges)

    @property
    def centers(self) -> np.ndarray:
        return np.asarray(self._centers, dtype=np.float64).reshape(-1, 3)

    @property
    def edges(self) -> np.ndarray:
        return np.asarray(self._edges, dtype=np.float64)

    @property
    def log_odds(self) -> np.ndarray:
        return np.asarray(self._log_odds, dtype=np.float64)

    def occupied_mask(self) -> np.ndarray:
        return self.log_odds > constants.OCTREE_OCCUPANCY_THRESHOLD_LOG_ODDS

    def _add_leaf(self, center, edge, log_odds, color=None) -> None:
        self._centers.append(center)
        self._edges.append(edge)
        self._log_odds.append(log_odds)
        if color is not None:
            self._colors.append(color)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def read_binary(self, data: bytes) -> None:
        """Decode the compact occupied/free stream."""
        if not data:
            return
        try:
            end = self._read_binary_node(data, 0, (0.0, 0.0, 0.0), self.root_edge, 0)
        except (IndexError, struct.error) as exc:
            raise OcTreeDecodeError(f"truncated binary octree payload ({len(data)} bytes)") from exc
        if end != len(data):
            _logger.warning("binary octree payload has %d trailing bytes", len(data) - end)

    def _read_binary_node(self, data: bytes, pos: int, center, edge: float, depth: int) -> int:
        if depth >= constants.OCTREE_TREE_DEPTH:
            raise OcTreeDecodeError("binary octree deeper than the maximum tree depth")
        bits = (data[pos], data[pos + 1])
        pos += 2
        child_edge = edge / 2.0
        inner: List[Tuple[float, float, float]] = []
        for i in range(8):
            shift = 2 * (i % 4)
            byte = bits[0] if i < 4 else bits[1]
            lo = (byte >> shift) & 1
            hi = (byte >> (shift + 1)) & 1
            if not (lo or hi):
                continue
            child = _child_center(center, edge, i)
            if lo and hi:
                inner.append(child)
            elif hi:
                self._add_leaf(child, child_edge, constants.OCTREE_BINARY_OCCUPIED_LOG_ODDS)
            else:
                self._add_leaf(child, child_edge, constants.OCTREE_BINARY_FREE_LOG_ODDS)
        for child in inner:
            pos = self._read_binary_node(data, pos, child, child_edge, depth + 1)
        return pos

    def read(self, data: bytes) -> None:
        """Decode the full (log-odds per node) stream."""
        if not data:
            return
        try:
            end = self._read_full_node(data, 0, (0.0, 0.0, 0.0), self.root_edge, 0)
        except (IndexError, struct.error) as exc:
            raise OcTreeDecodeError(f"truncated octree payload ({len(data)} bytes)") from exc
        if end != len(data):
            _logger.warning("octree payload has %d trailing bytes", len(data) - end)

    def _read_node_data(self, data: bytes, pos: int) -> Tuple[float, Optional[Tuple[int, int, int]], int]:
        (value,) = _FLOAT.unpack_from(data, pos)
        return value, None, pos + _FLOAT.size

    def _read_full_node(self, data: bytes, pos: int, center, edge: float, depth: int) -> int:
        if depth > constants.OCTREE_TREE_DEPTH:
            raise OcTreeDecodeError("octree deeper than the maximum tree depth")
        value, color, pos = self._read_node_data(data, pos)
        children = data[pos]
        pos += 1
        if children == 0:
            self._add_leaf(center, edge, value, color)
            return pos
        for i in range(8):
            if children & (1 << i):
                pos = self._read_full_node(data, pos, _child_center(center, edge, i), edge / 2.0, depth + 1)
        return pos

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _selected_mask(self) -> np.ndarray:
        occupied = self.occupied_mask()
        if self.voxel_render_mode == OcTreeVoxelRenderMode.OCCUPIED:
            return occupied
        if self.voxel_render_mode == OcTreeVoxelRenderMode.FREE:
            return ~occupied
        return np.ones_like(occupied, dtype=bool)

    def _voxel_colors(self, mask: np.ndarray) -> np.ndarray:
        n = int(mask.sum())
        if self.color_mode == OcTreeColorMode.OCCUPANCY:
            probability = 1.0 / (1.0 + np.exp(-self.log_odds[mask]))
            count = len(self.palette)
            index = np.floor(probability * self.palette_scale * (count - 1) + 0.5).astype(np.int64) % count
            rgb = np.asarray(self.palette, dtype=np.uint8)[index]
        elif self.color_mode == OcTreeColorMode.COLOR and len(self._colors) == self.leaf_count:
            rgb = np.asarray(self._colors, dtype=np.uint8).reshape(-1, 3)[mask]
        else:
            rgb = np.tile(np.asarray(self.color, dtype=np.uint8), (n, 1))
        alpha = np.full((n, 1), int(round(np.clip(self.opacity, 0.0, 1.0) * 255.0)), dtype=np.uint8)
        return np.hstack([rgb.reshape(n, 3), alpha])

    def build_geometry(self) -> SceneObject:
        """Voxel boxes for the selected leaves; stored in and returned as ``object``."""
        mask = self._selected_mask() if self.leaf_count else np.zeros(0, dtype=bool)
        centers = self.centers[mask].astype(np.float32)
        edges = self.edges[mask].astype(np.float32)
        geometry = Geometry(
            kind="boxes",
            positions=centers,
            sizes=np.repeat(edges[:, None], 3, axis=1),
            colors=self._voxel_colors(mask),
        )
        self.object = SceneObject(name="octree", geometry=geometry)
        return self.object


class OcTree(OcTreeBase):
    """octomap::OcTree (log-odds per node)."""


class ColorOcTree(OcTreeBase):
    """octomap::ColorOcTree (log-odds plus RGB per node)."""

    default_color_mode = OcTreeColorMode.COLOR

    def _read_node_data(self, data: bytes, pos: int) -> Tuple[float, Optional[Tuple[int, int, int]], int]:
        (value,) = _FLOAT.unpack_from(data, pos)
        color = _COLOR.unpack_from(data, pos + _FLOAT.size)
        return value, color, pos + _FLOAT.size + _COLOR.size


# Named tree variants decodable from the full format, keyed by Octomap.id
OCTREE_TYPES: Dict[str, Type[OcTreeBase]] = {
    "OcTree": OcTree,
    "ColorOcTree": ColorOcTree,
}
