"""
SceneNode: a scene attachment that follows a named reference frame.

The node's local matrix is ``T_fixed_frame @ T_offset``, refreshed on every
transform pushed by the frame tracker. While tracking and before the first
transform arrives the node is hidden, so content never flashes at the origin.
"""

from __future__ import annotations

from typing import Any, Optional

from scene_sync.common.transforms import pose_to_matrix, transform_to_matrix
from scene_sync.messages import Transform
from scene_sync.scene.frame_tracking import FrameTracker
from scene_sync.scene.graph import SceneObject


class SceneNode(SceneObject):
    def __init__(
        self,
        frame_id: str,
        tf_client: Optional[FrameTracker] = None,
        obj: Optional[SceneObject] = None,
        pose: Optional[Any] = None,
        name: str = "",
    ) -> None:
        super().__init__(name=name or f"frame:{frame_id}")
        self.frame_id = frame_id
        self.tf_client = tf_client
        self.pose = pose
        self._offset = pose_to_matrix(pose)
        self.matrix = self._offset.copy()
        self._tracking = False
        # Keep one bound method so unsubscribe removes the exact callback
        self._tf_callback = self._on_transform
        if obj is not None:
            self.add(obj)
        self.subscribe_tf()

    @property
    def tracking(self) -> bool:
        return self._tracking

    def subscribe_tf(self) -> None:
        if self.tf_client is None or self._tracking:
            return
        self.visible = False
        self._tracking = True
        self.tf_client.subscribe(self.frame_id, self._tf_callback)

    def unsubscribe_tf(self) -> None:
        """Stop following the frame. Safe to call when not tracking."""
        if not self._tracking:
            return
        self._tracking = False
        self.tf_client.unsubscribe(self.frame_id, self._tf_callback)

    def retarget(self, frame_id: str) -> None:
        """Follow ``frame_id`` instead of the current frame."""
        self.unsubscribe_tf()
        self.frame_id = frame_id
        self.subscribe_tf()

    def _on_transform(self, transform: Transform) -> None:
        self.matrix = transform_to_matrix(transform) @ self._offset
        self.visible = True
