"""Marker geometry and the MarkerArray client."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["Marker", "MarkerArrayClient", "MarkerKey"]

_LAZY_ATTRS: dict[str, tuple[str, str]] = {
    "Marker": ("scene_sync.markers.marker", "Marker"),
    "MarkerArrayClient": ("scene_sync.markers.marker_array_client", "MarkerArrayClient"),
    "MarkerKey": ("scene_sync.markers.marker_array_client", "MarkerKey"),
}


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
