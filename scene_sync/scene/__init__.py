"""Scene graph primitives and frame tracking."""

from scene_sync.scene.frame_tracking import FrameTracker, StaticFrameTracker
from scene_sync.scene.graph import Geometry, SceneObject
from scene_sync.scene.scene_node import SceneNode

__all__ = [
    "FrameTracker",
    "Geometry",
    "SceneNode",
    "SceneObject",
    "StaticFrameTracker",
]
