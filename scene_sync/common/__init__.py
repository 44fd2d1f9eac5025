"""
Common package for scene_sync.

Shared utilities used by the streaming clients and the node.

Modules:
- constants: defaults and format constants
- param_models: pydantic option models for every client and the node
- scheduling: deferred install queue and inline executor
- change: observer registration for "change" notifications
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "ChangeNotifier",
    "DeferredCallQueue",
    "constants",
]

_LAZY_ATTRS: dict[str, tuple[str, str | None]] = {
    "ChangeNotifier": ("scene_sync.common.change", "ChangeNotifier"),
    "DeferredCallQueue": ("scene_sync.common.scheduling", "DeferredCallQueue"),
    # Expose as a submodule, but do not eagerly import it at package import time.
    "constants": ("scene_sync.common.constants", None),
}


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    module = import_module(module_name)
    return module if attr_name is None else getattr(module, attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
