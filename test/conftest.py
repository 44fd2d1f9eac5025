import os
import sys
import pytest
from typing import Dict, Any

# Ensure local package import works for pytest collection.
_TEST_DIR = os.path.dirname(__file__)
_PKG_ROOT = os.path.abspath(os.path.join(_TEST_DIR, ".."))
if _PKG_ROOT not in sys.path:
    sys.path.insert(0, _PKG_ROOT)

from scene_sync.messages import (  # noqa: E402
    Header,
    MapMetaData,
    Marker,
    MarkerAction,
    MarkerArray,
    MarkerType,
    OccupancyGrid,
    Octomap,
    Point,
    Pose,
    Quaternion,
    Transform,
    Vector3,
)
from scene_sync.scene.frame_tracking import StaticFrameTracker  # noqa: E402
from scene_sync.scene.graph import SceneObject  # noqa: E402
from scene_sync.transport.local import LocalTransport  # noqa: E402

# =============================================================================
# Config Fixtures
# =============================================================================


@pytest.fixture
def node_config_path() -> str:
    """Path of the packaged scene_sync node parameter file."""
    path = os.path.join(_PKG_ROOT, "config", "scene_sync.yaml")
    if not os.path.exists(path):
        pytest.skip("config/scene_sync.yaml not found")
    return path


# =============================================================================
# Scene / Transport Fixtures
# =============================================================================


@pytest.fixture
def transport() -> LocalTransport:
    """In-process bus; publish() delivers synchronously."""
    return LocalTransport()


@pytest.fixture
def tf_tracker() -> StaticFrameTracker:
    """Frame tracker fed by set_transform()."""
    return StaticFrameTracker()


@pytest.fixture
def root() -> SceneObject:
    return SceneObject(name="root")


@pytest.fixture
def change_counter():
    """
    Count "change" notifications of a client.

    Usage:
        counter = change_counter(client)
        ...
        assert counter["count"] == 1
    """

    def _attach(client) -> Dict[str, Any]:
        counter = {"count": 0}

        def _on_change():
            counter["count"] += 1

        client.on_change(_on_change)
        return counter

    return _attach


# =============================================================================
# Message Factories
# =============================================================================


@pytest.fixture
def make_translation():
    """Factory for a pure-translation geometry_msgs/Transform mirror."""

    def _make(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> Transform:
        return Transform(translation=Vector3(x, y, z), rotation=Quaternion())

    return _make


@pytest.fixture
def make_marker():
    """Factory for visualization_msgs/Marker mirrors."""

    def _make(
        ns: str = "a",
        id: int = 1,
        action: int = MarkerAction.ADD,
        type: int = MarkerType.CUBE,
        frame_id: str = "base_link",
        scale=(1.0, 1.0, 1.0),
        points=(),
        **kwargs,
    ) -> Marker:
        return Marker(
            header=Header(frame_id=frame_id),
            ns=ns,
            id=id,
            type=type,
            action=action,
            scale=Vector3(*scale),
            points=[Point(*p) for p in points],
            **kwargs,
        )

    return _make


@pytest.fixture
def make_marker_array():
    def _make(*markers: Marker) -> MarkerArray:
        return MarkerArray(markers=list(markers))

    return _make


@pytest.fixture
def make_grid():
    """Factory for nav_msgs/OccupancyGrid mirrors (default 2x2, resolution 0.5)."""

    def _make(
        data=(0, 100, -1, 50),
        width: int = 2,
        height: int = 2,
        resolution: float = 0.5,
        frame_id: str = "map",
        origin: Pose = None,
    ) -> OccupancyGrid:
        return OccupancyGrid(
            header=Header(frame_id=frame_id),
            info=MapMetaData(
                resolution=resolution,
                width=width,
                height=height,
                origin=origin if origin is not None else Pose(),
            ),
            data=list(data),
        )

    return _make


@pytest.fixture
def make_octomap():
    """Factory for octomap_msgs/Octomap mirrors."""

    def _make(
        data: bytes,
        binary: bool = True,
        id: str = "OcTree",
        resolution: float = 0.1,
        frame_id: str = "map",
    ) -> Octomap:
        return Octomap(
            header=Header(frame_id=frame_id),
            binary=binary,
            id=id,
            resolution=resolution,
            data=data,
        )

    return _make
