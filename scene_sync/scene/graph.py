"""
Minimal retained-mode scene graph.

``SceneObject`` is the container/renderable node every client attaches to the
root. Renderable subclasses hold a ``Geometry`` (numpy buffers standing in for
GPU-resident buffers); ``dispose()`` releases them. A disposed object must not
stay reachable from a live root, so clients always detach before or together
with disposal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

import numpy as np


@dataclass
class Geometry:
    """
    Renderable buffers of one object.

    kind: one of "arrows", "boxes", "spheres", "cylinders", "lines", "line_strip",
          "points", "triangles", "text", "mesh_resource", "image"
    positions: (N, 3) float32 centers/vertices
    sizes: (N, 3) float32 extents (or None)
    colors: (N, 4) uint8 RGBA (or None)
    """

    kind: str
    positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.float32))
    sizes: Optional[np.ndarray] = None
    colors: Optional[np.ndarray] = None
    image: Optional[np.ndarray] = None
    text: str = ""
    resource: str = ""
    extras: Dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def nbytes(self) -> int:
        arrays = [self.positions, self.sizes, self.colors, self.image, *self.extras.values()]
        return int(sum(a.nbytes for a in arrays if a is not None))


class SceneObject:
    """Scene-graph node with children, a local transform and optional geometry."""

    def __init__(self, name: str = "", geometry: Optional[Geometry] = None) -> None:
        self.name = name
        self.parent: Optional[SceneObject] = None
        self.children: List[SceneObject] = []
        self.matrix = np.eye(4, dtype=np.float64)
        self.visible = True
        self.geometry = geometry
        self.disposed = False

    def add(self, child: "SceneObject") -> None:
        if child is self:
            raise ValueError("cannot add a scene object to itself")
        if child.parent is not None:
            child.parent.remove(child)
        self.children.append(child)
        child.parent = self

    def remove(self, child: Optional["SceneObject"]) -> None:
        """Detach ``child``; a no-op when it is not a child of this object."""
        if child is None or child.parent is not self:
            return
        self.children.remove(child)
        child.parent = None

    def dispose(self) -> None:
        """Release the geometry buffers. Idempotent."""
        self.geometry = None
        self.disposed = True

    def world_matrix(self) -> np.ndarray:
        T = self.matrix
        node = self.parent
        while node is not None:
            T = node.matrix @ T
            node = node.parent
        return T

    def traverse(self) -> Iterator["SceneObject"]:
        """Depth-first iteration over this object and its descendants."""
        yield self
        for child in self.children:
            yield from child.traverse()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, children={len(self.children)})"
