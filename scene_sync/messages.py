"""
Plain-Python mirrors of the decoded ROS messages consumed by the clients.

Field names match the ROS 2 message definitions, so rclpy messages and these
dataclasses are interchangeable wherever the clients read them. They are used
by the local transport, the tests and offline tooling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


@dataclass
class Header:
    frame_id: str = ""
    stamp_sec: float = 0.0


@dataclass
class Point:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Quaternion:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


@dataclass
class Pose:
    position: Point = field(default_factory=Point)
    orientation: Quaternion = field(default_factory=Quaternion)


@dataclass
class Transform:
    """Pose of a tracked frame relative to the fixed frame."""

    translation: Vector3 = field(default_factory=Vector3)
    rotation: Quaternion = field(default_factory=Quaternion)


@dataclass
class ColorRGBA:
    r: float = 1.0
    g: float = 1.0
    b: float = 1.0
    a: float = 1.0


class MarkerAction(IntEnum):
    """visualization_msgs/Marker action codes."""

    ADD = 0  # add or modify
    DEPRECATED = 1  # MODIFY in ROS 1, no longer emitted
    DELETE = 2
    DELETEALL = 3


class MarkerType(IntEnum):
    ARROW = 0
    CUBE = 1
    SPHERE = 2
    CYLINDER = 3
    LINE_STRIP = 4
    LINE_LIST = 5
    CUBE_LIST = 6
    SPHERE_LIST = 7
    POINTS = 8
    TEXT_VIEW_FACING = 9
    MESH_RESOURCE = 10
    TRIANGLE_LIST = 11


@dataclass
class Marker:
    header: Header = field(default_factory=Header)
    ns: str = ""
    id: int = 0
    type: int = MarkerType.CUBE
    action: int = MarkerAction.ADD
    pose: Pose = field(default_factory=Pose)
    scale: Vector3 = field(default_factory=lambda: Vector3(1.0, 1.0, 1.0))
    color: ColorRGBA = field(default_factory=ColorRGBA)
    points: List[Point] = field(default_factory=list)
    colors: List[ColorRGBA] = field(default_factory=list)
    text: str = ""
    mesh_resource: str = ""
    frame_locked: bool = False


@dataclass
class MarkerArray:
    markers: List[Marker] = field(default_factory=list)


@dataclass
class MapMetaData:
    resolution: float = 0.05
    width: int = 0
    height: int = 0
    origin: Pose = field(default_factory=Pose)


@dataclass
class OccupancyGrid:
    header: Header = field(default_factory=Header)
    info: MapMetaData = field(default_factory=MapMetaData)
    data: List[int] = field(default_factory=list)


@dataclass
class Octomap:
    header: Header = field(default_factory=Header)
    binary: bool = False
    id: str = ""
    resolution: float = 0.05
    data: bytes = b""
