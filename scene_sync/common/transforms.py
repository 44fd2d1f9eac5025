"""
Homogeneous transforms from ROS pose-like messages.

Quaternions follow the ROS (x, y, z, w) order, which is also scipy's
``Rotation.from_quat`` order.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np
from scipy.spatial.transform import Rotation


def quat_to_rotmat(q: Any) -> np.ndarray:
    """3x3 rotation matrix from a quaternion-like object with x, y, z, w."""
    xyzw = np.array([float(q.x), float(q.y), float(q.z), float(q.w)], dtype=np.float64)
    norm = np.linalg.norm(xyzw)
    if norm == 0.0:
        return np.eye(3)
    return Rotation.from_quat(xyzw / norm).as_matrix()


def make_transform(rotation: np.ndarray, translation: np.ndarray) -> np.ndarray:
    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = rotation
    T[:3, 3] = translation
    return T


def pose_to_matrix(pose: Optional[Any]) -> np.ndarray:
    """4x4 matrix from a geometry_msgs/Pose; ``None`` means identity."""
    if pose is None:
        return np.eye(4, dtype=np.float64)
    p = pose.position
    return make_transform(
        quat_to_rotmat(pose.orientation),
        np.array([float(p.x), float(p.y), float(p.z)], dtype=np.float64),
    )


def transform_to_matrix(transform: Any) -> np.ndarray:
    """4x4 matrix from a geometry_msgs/Transform."""
    t = transform.translation
    return make_transform(
        quat_to_rotmat(transform.rotation),
        np.array([float(t.x), float(t.y), float(t.z)], dtype=np.float64),
    )
