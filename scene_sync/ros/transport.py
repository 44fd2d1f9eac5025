"""
rclpy transport: binds client topics to subscriptions of a ROS 2 node.

Message type names are given in the short ``pkg/Type`` form and resolved to
the generated classes through rosidl. Map topics are usually latched by their
publishers, so their subscriptions use TRANSIENT_LOCAL durability.

``compression`` is a hint for bridge-based transports; rclpy delivers
deserialized messages, so it is recorded and otherwise ignored.
"""

from __future__ import annotations

from typing import Any, FrozenSet, Optional

from rclpy.node import Node
from rclpy.qos import DurabilityPolicy, HistoryPolicy, QoSProfile, ReliabilityPolicy
from rosidl_runtime_py.utilities import get_message

from scene_sync.common import constants
from scene_sync.transport.topic import MessageCallback

LATCHED_MESSAGE_TYPES: FrozenSet[str] = frozenset(
    {
        constants.OCCUPANCY_GRID_MESSAGE_TYPE,
        constants.OCTOMAP_MESSAGE_TYPE,
    }
)


def resolve_message_class(message_type: str) -> Any:
    """``nav_msgs/OccupancyGrid`` -> nav_msgs.msg.OccupancyGrid."""
    parts = message_type.split("/")
    if len(parts) == 2:
        parts = [parts[0], "msg", parts[1]]
    return get_message("/".join(parts))


class RclpyTopic:
    def __init__(
        self,
        node: Node,
        name: str,
        message_type: str,
        compression: Optional[str] = None,
        queue_length: Optional[int] = None,
    ) -> None:
        self.name = name
        self.message_type = message_type
        self.compression = compression
        self.queue_length = queue_length
        self._node = node
        self._subscription = None

    def subscribe(self, callback: MessageCallback) -> None:
        if self._subscription is not None:
            raise RuntimeError(f"topic {self.name!r} is already subscribed")
        latched = self.message_type in LATCHED_MESSAGE_TYPES
        qos = QoSProfile(
            reliability=ReliabilityPolicy.RELIABLE,
            durability=DurabilityPolicy.TRANSIENT_LOCAL if latched else DurabilityPolicy.VOLATILE,
            history=HistoryPolicy.KEEP_LAST,
            depth=max(1, int(self.queue_length or 1)),
        )
        self._subscription = self._node.create_subscription(
            resolve_message_class(self.message_type), self.name, callback, qos
        )
        self._node.get_logger().debug(
            f"Subscribed to {self.name} ({self.message_type}, depth={qos.depth}, latched={latched})"
        )

    def unsubscribe(self) -> None:
        if self._subscription is None:
            return
        self._node.destroy_subscription(self._subscription)
        self._subscription = None


class RclpyTransport:
    """Transport handle creating topics on ``node``."""

    def __init__(self, node: Node) -> None:
        self.node = node

    def topic(
        self,
        name: str,
        message_type: str,
        *,
        compression: Optional[str] = None,
        queue_length: Optional[int] = None,
    ) -> RclpyTopic:
        return RclpyTopic(self.node, name, message_type, compression, queue_length)
