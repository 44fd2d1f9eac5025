"""
Scene Sync Launch File.

Starts scene_sync_node with the packaged parameter file. The Rerun viewer can
be spawned directly or the scene recorded to an .rrd file.
"""

import os

from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node

from ament_index_python.packages import get_package_share_directory


def generate_launch_description():
    """Generate launch description for scene_sync."""
    pkg_share = get_package_share_directory("scene_sync")
    default_config = os.path.join(pkg_share, "config", "scene_sync.yaml")

    config_arg = DeclareLaunchArgument(
        "config_path",
        default_value=default_config,
        description="YAML parameter file (/**: ros__parameters: ...)",
    )
    fixed_frame_arg = DeclareLaunchArgument(
        "fixed_frame",
        default_value="map",
        description="Frame the scene is expressed in.",
    )

    scene_sync_node = Node(
        package="scene_sync",
        executable="scene_sync_node",
        name="scene_sync",
        output="screen",
        parameters=[
            LaunchConfiguration("config_path"),
            {
                "config_path": LaunchConfiguration("config_path"),
                "fixed_frame": LaunchConfiguration("fixed_frame"),
            },
        ],
    )

    return LaunchDescription(
        [
            config_arg,
            fixed_frame_arg,
            scene_sync_node,
        ]
    )
