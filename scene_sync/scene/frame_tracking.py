"""
Frame tracking interface and an in-memory implementation.

A frame tracker pushes the current pose of a named frame (relative to its
fixed frame) to every callback subscribed for that frame. The ROS 2
implementation lives in ``scene_sync.ros.tf_tracker``.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Protocol

from scene_sync.messages import Transform

TransformCallback = Callable[[Transform], None]


class FrameTracker(Protocol):
    def subscribe(self, frame_id: str, callback: TransformCallback) -> None: ...

    def unsubscribe(self, frame_id: str, callback: TransformCallback) -> None: ...


class StaticFrameTracker:
    """
    Frame tracker fed explicitly through ``set_transform``.

    New subscribers immediately receive the last known transform of their
    frame. Used for offline replay and tests.
    """

    def __init__(self) -> None:
        self._callbacks: Dict[str, List[TransformCallback]] = {}
        self._transforms: Dict[str, Transform] = {}

    def subscribe(self, frame_id: str, callback: TransformCallback) -> None:
        self._callbacks.setdefault(frame_id, []).append(callback)
        known = self._transforms.get(frame_id)
        if known is not None:
            callback(known)

    def unsubscribe(self, frame_id: str, callback: TransformCallback) -> None:
        callbacks = self._callbacks.get(frame_id)
        if not callbacks or callback not in callbacks:
            return
        callbacks.remove(callback)
        if not callbacks:
            del self._callbacks[frame_id]

    def set_transform(self, frame_id: str, transform: Transform) -> None:
        self._transforms[frame_id] = transform
        for callback in list(self._callbacks.get(frame_id, ())):
            callback(transform)

    def lookup(self, frame_id: str) -> Optional[Transform]:
        return self._transforms.get(frame_id)

    def subscriber_count(self, frame_id: Optional[str] = None) -> int:
        if frame_id is not None:
            return len(self._callbacks.get(frame_id, ()))
        return sum(len(cbs) for cbs in self._callbacks.values())
