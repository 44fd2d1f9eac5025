"""
ROS 2 bindings (rclpy transport, tf2 frame tracker and the scene_sync node).

Importing this package requires a sourced ROS 2 environment; the rest of
scene_sync does not depend on it.
"""
