"""
Navigation package for scene_sync.

Map clients and their geometry builders:
- occupancy_grid / occupancy_grid_client: nav_msgs/OccupancyGrid
- octree / octree_client: octomap_msgs/Octomap
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "ColorOcTree",
    "OcTree",
    "OcTreeBase",
    "OcTreeClient",
    "OcTreeDecodeError",
    "OccupancyGrid",
    "OccupancyGridClient",
]

_LAZY_ATTRS: dict[str, tuple[str, str]] = {
    "ColorOcTree": ("scene_sync.navigation.octree", "ColorOcTree"),
    "OcTree": ("scene_sync.navigation.octree", "OcTree"),
    "OcTreeBase": ("scene_sync.navigation.octree", "OcTreeBase"),
    "OcTreeDecodeError": ("scene_sync.navigation.octree", "OcTreeDecodeError"),
    "OcTreeClient": ("scene_sync.navigation.octree_client", "OcTreeClient"),
    "OccupancyGrid": ("scene_sync.navigation.occupancy_grid", "OccupancyGrid"),
    "OccupancyGridClient": ("scene_sync.navigation.occupancy_grid_client", "OccupancyGridClient"),
}


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
