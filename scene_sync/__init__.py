"""
scene_sync: keeps a scene graph in sync with streamed robot visualization data.

Clients:
- MarkerArrayClient: visualization_msgs/MarkerArray registry
- OccupancyGridClient: nav_msgs/OccupancyGrid (latest map)
- OcTreeClient: octomap_msgs/Octomap (latest map, decoded off-thread)
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

__all__ = [
    "MarkerArrayClient",
    "OcTreeClient",
    "OccupancyGridClient",
    "SceneNode",
    "SceneObject",
]

_LAZY_ATTRS: dict[str, tuple[str, str]] = {
    "MarkerArrayClient": ("scene_sync.markers.marker_array_client", "MarkerArrayClient"),
    "OcTreeClient": ("scene_sync.navigation.octree_client", "OcTreeClient"),
    "OccupancyGridClient": ("scene_sync.navigation.occupancy_grid_client", "OccupancyGridClient"),
    "SceneNode": ("scene_sync.scene.scene_node", "SceneNode"),
    "SceneObject": ("scene_sync.scene.graph", "SceneObject"),
}


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
