"""
Transport abstraction used by the streaming clients.

A transport handle creates topics; a topic delivers decoded messages to one
callback until it is unsubscribed. ``LocalTransport`` is an in-process bus;
``scene_sync.ros.transport.RclpyTransport`` binds topics to an rclpy node.
"""

from scene_sync.transport.local import LocalTopic, LocalTransport
from scene_sync.transport.topic import MessageCallback, Topic, Transport

__all__ = [
    "LocalTopic",
    "LocalTransport",
    "MessageCallback",
    "Topic",
    "Transport",
]
