"""Pydantic option models for scene_sync clients and the node."""

from __future__ import annotations

from typing import Annotated, Any, Callable, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from scene_sync.common import constants
from scene_sync.messages import Pose
from scene_sync.navigation.octree import OcTreeColorMode, OcTreeVoxelRenderMode
from scene_sync.scene.graph import SceneObject

ColorChannel = Annotated[int, Field(ge=0, le=255)]
RGB = Tuple[ColorChannel, ColorChannel, ColorChannel]


class BaseClientParams(BaseModel):
    """Options shared by every streaming client."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, arbitrary_types_allowed=True)

    ros: Any
    topic: str
    tf_client: Optional[Any] = None
    root_object: SceneObject = Field(default_factory=lambda: SceneObject(name="root"))
    compression: Optional[str] = None

    @field_validator("ros")
    @classmethod
    def _ros_creates_topics(cls, value: Any) -> Any:
        if not callable(getattr(value, "topic", None)):
            raise ValueError("ros must be a transport handle exposing topic(name, message_type, ...)")
        return value

    @field_validator("topic")
    @classmethod
    def _topic_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("topic must not be empty")
        return value


class MarkerArrayClientParams(BaseClientParams):
    """MarkerArrayClient options."""

    topic: str = constants.MARKER_ARRAY_TOPIC_DEFAULT
    compression: Optional[str] = constants.MARKER_COMPRESSION_DEFAULT
    path: str = constants.MARKER_RESOURCE_PATH_DEFAULT
    builder: Optional[Callable[..., Any]] = None


class MapClientParams(BaseClientParams):
    """Options shared by the single-payload map clients."""

    compression: Optional[str] = constants.MAP_COMPRESSION_DEFAULT
    continuous: bool = False
    offset_pose: Any = Field(default_factory=Pose)


class OccupancyGridClientParams(MapClientParams):
    """OccupancyGridClient options."""

    topic: str = constants.OCCUPANCY_GRID_TOPIC_DEFAULT
    color: RGB = constants.GRID_COLOR_DEFAULT
    opacity: float = Field(constants.GRID_OPACITY_DEFAULT, ge=0.0, le=1.0)
    builder: Optional[Callable[..., Any]] = None


class OcTreeClientParams(MapClientParams):
    """
    OcTreeClient options.

    The rendering hints are forwarded to the octree builders only when set,
    so the builders keep their own defaults otherwise.
    """

    topic: str = constants.OCTOMAP_TOPIC_DEFAULT
    color: Optional[RGB] = None
    opacity: Optional[float] = Field(None, ge=0.0, le=1.0)
    color_mode: Optional[OcTreeColorMode] = None
    palette: Optional[List[RGB]] = Field(None, min_length=1)
    palette_scale: Optional[float] = Field(None, gt=0.0)
    voxel_render_mode: Optional[OcTreeVoxelRenderMode] = None
    decoders: Optional[Dict[str, Callable[..., Any]]] = None
    executor: Optional[Any] = None
    call_soon: Optional[Callable[[Callable[[], Any]], Any]] = None

    def builder_options(self) -> dict:
        """Rendering hints that were explicitly set."""
        hints = {
            "color": self.color,
            "opacity": self.opacity,
            "color_mode": self.color_mode,
            "palette": self.palette,
            "palette_scale": self.palette_scale,
            "voxel_render_mode": self.voxel_render_mode,
        }
        return {k: v for k, v in hints.items() if v is not None}


class SceneSyncParams(BaseModel):
    """scene_sync_node parameter model."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    fixed_frame: str = constants.TF_FIXED_FRAME_DEFAULT
    use_tf: bool = True
    tf_poll_rate_hz: float = Field(constants.TF_POLL_RATE_HZ, gt=0.0)
    tf_timeout_sec: float = Field(constants.TF_TIMEOUT_SEC, gt=0.0)

    marker_array_topics: List[str] = Field(default_factory=lambda: [constants.MARKER_ARRAY_TOPIC_DEFAULT])
    marker_resource_path: str = constants.MARKER_RESOURCE_PATH_DEFAULT

    occupancy_grid_topic: str = constants.OCCUPANCY_GRID_TOPIC_DEFAULT
    occupancy_grid_continuous: bool = True
    occupancy_grid_opacity: float = Field(constants.GRID_OPACITY_DEFAULT, ge=0.0, le=1.0)

    octomap_topic: str = constants.OCTOMAP_TOPIC_DEFAULT
    octomap_continuous: bool = True
    octomap_color_mode: Optional[OcTreeColorMode] = None
    octomap_voxel_render_mode: Optional[OcTreeVoxelRenderMode] = None
    octomap_decode_workers: int = Field(constants.OCTREE_DECODE_WORKERS, ge=1)

    install_drain_period_sec: float = Field(constants.INSTALL_DRAIN_PERIOD_SEC, gt=0.0)

    use_rerun: bool = True
    rerun_spawn: bool = False
    rerun_recording_path: Optional[str] = None


def load_params_file(path: str) -> Dict[str, Any]:
    """Load a YAML parameter file, handling the ros__parameters wrapper."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    # ROS2 YAML files wrap parameters in /**:/ros__parameters:
    if "/**" in data and "ros__parameters" in (data.get("/**") or {}):
        return data["/**"]["ros__parameters"] or {}
    return data
