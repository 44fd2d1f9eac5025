"""
TF-backed frame tracker.

Polls tf2 for the pose of every subscribed frame relative to the fixed frame
and pushes it to the frame's callbacks whenever it changes. Runs on the
node's executor like every other callback, so transforms are applied on the
same thread as scene updates.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import tf2_ros
from rclpy.duration import Duration
from rclpy.node import Node
from rclpy.qos import DurabilityPolicy, HistoryPolicy, QoSProfile, ReliabilityPolicy
from rclpy.time import Time
from tf2_ros import TransformException

from scene_sync.common import constants
from scene_sync.scene.frame_tracking import TransformCallback


def _transform_key(transform) -> Tuple[float, ...]:
    t, q = transform.translation, transform.rotation
    return (t.x, t.y, t.z, q.x, q.y, q.z, q.w)


class TfFrameTracker:
    def __init__(
        self,
        node: Node,
        fixed_frame: str = constants.TF_FIXED_FRAME_DEFAULT,
        poll_rate_hz: float = constants.TF_POLL_RATE_HZ,
        timeout_sec: float = constants.TF_TIMEOUT_SEC,
    ) -> None:
        self.node = node
        self.fixed_frame = fixed_frame
        self.timeout = Duration(seconds=timeout_sec)

        self.tf_buffer = tf2_ros.Buffer()
        tf_qos = QoSProfile(
            depth=100,
            reliability=ReliabilityPolicy.RELIABLE,
            durability=DurabilityPolicy.VOLATILE,
            history=HistoryPolicy.KEEP_LAST,
        )
        tf_static_qos = QoSProfile(
            depth=100,
            reliability=ReliabilityPolicy.RELIABLE,
            # Standard for /tf_static is TRANSIENT_LOCAL (late-joining subscribers receive history)
            durability=DurabilityPolicy.TRANSIENT_LOCAL,
            history=HistoryPolicy.KEEP_LAST,
        )
        self.tf_listener = tf2_ros.TransformListener(
            self.tf_buffer, node, qos=tf_qos, static_qos=tf_static_qos
        )

        self._callbacks: Dict[str, List[TransformCallback]] = {}
        self._last: Dict[str, Tuple[float, ...]] = {}
        self._latest: Dict[str, object] = {}
        self._warned_frames = set()
        self.timer = node.create_timer(1.0 / poll_rate_hz, self.poll)

    def subscribe(self, frame_id: str, callback: TransformCallback) -> None:
        self._callbacks.setdefault(frame_id, []).append(callback)
        known = self._latest.get(frame_id)
        if known is not None:
            callback(known)

    def unsubscribe(self, frame_id: str, callback: TransformCallback) -> None:
        callbacks = self._callbacks.get(frame_id)
        if not callbacks or callback not in callbacks:
            return
        callbacks.remove(callback)
        if not callbacks:
            del self._callbacks[frame_id]
            self._last.pop(frame_id, None)
            self._latest.pop(frame_id, None)

    def lookup(self, frame_id: str) -> Optional[object]:
        """Latest transform fixed_frame <- frame_id, or None if unavailable."""
        try:
            stamped = self.tf_buffer.lookup_transform(self.fixed_frame, frame_id, Time(), timeout=self.timeout)
        except (TransformException, TypeError, ValueError) as e:
            if frame_id not in self._warned_frames:
                self._warned_frames.add(frame_id)
                self.node.get_logger().warn(f"TF lookup failed ({self.fixed_frame} <- {frame_id}): {e}")
            return None
        self._warned_frames.discard(frame_id)
        return stamped.transform

    def poll(self) -> None:
        for frame_id in list(self._callbacks):
            transform = self.lookup(frame_id)
            if transform is None:
                continue
            key = _transform_key(transform)
            if self._last.get(frame_id) == key:
                continue
            self._last[frame_id] = key
            self._latest[frame_id] = transform
            for callback in list(self._callbacks.get(frame_id, ())):
                callback(transform)

    def destroy(self) -> None:
        self.node.destroy_timer(self.timer)
        self._callbacks.clear()
