"""
OccupancyGridClient: shows the latest occupancy grid of a map topic.

Every message replaces the displayed grid. With a frame tracker the grid lives
inside one SceneNode that is attached to the root on the first install and
kept for every later install; only its content is swapped and its tracking
re-targeted to the new message's frame.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from scene_sync.common import constants
from scene_sync.common.change import ChangeNotifier
from scene_sync.common.param_models import OccupancyGridClientParams
from scene_sync.navigation.occupancy_grid import OccupancyGrid
from scene_sync.scene.graph import SceneObject
from scene_sync.scene.scene_node import SceneNode
from scene_sync.transport.topic import Topic

_logger = logging.getLogger(__name__)


class OccupancyGridClient(ChangeNotifier):
    """
    Options (see ``OccupancyGridClientParams``):

        ros          transport handle
        topic        map topic
        continuous   keep listening after the first map
        tf_client    frame tracker (optional)
        root_object  container the grid is attached to
        offset_pose  pose of the grid relative to its frame
        color        RGB the gray levels are scaled by
        opacity      0 transparent .. 1 opaque
        compression  compression tag forwarded to the transport
        builder      callable(message, color=..., opacity=...) -> renderable
    """

    def __init__(self, **options: Any) -> None:
        super().__init__()
        self.params = OccupancyGridClientParams(**options)
        self.ros = self.params.ros
        self.topic_name = self.params.topic
        self.continuous = self.params.continuous
        self.tf_client = self.params.tf_client
        self.root_object = self.params.root_object
        self.offset_pose = self.params.offset_pose
        self.color = self.params.color
        self.opacity = self.params.opacity
        self._build: Callable[..., SceneObject] = self.params.builder or OccupancyGrid

        # grid currently displayed and the node hosting it
        self.current_grid: Optional[SceneObject] = None
        self.scene_node: Optional[SceneObject] = None
        self.ros_topic: Optional[Topic] = None
        self.subscribe()

    def subscribe(self) -> None:
        self.unsubscribe()
        self.ros_topic = self.ros.topic(
            self.topic_name,
            constants.OCCUPANCY_GRID_MESSAGE_TYPE,
            compression=self.params.compression,
            queue_length=constants.MAP_QUEUE_LENGTH,
        )
        self.ros_topic.subscribe(self.process_message)
        _logger.debug("OccupancyGridClient subscribed to %s", self.topic_name)

    def unsubscribe(self) -> None:
        if self.ros_topic is not None:
            self.ros_topic.unsubscribe()
            self.ros_topic = None

    def close(self) -> None:
        """Unsubscribe and destroy the displayed grid and its scene node."""
        self.unsubscribe()
        self._release_current()
        if self.scene_node is not None:
            self.root_object.remove(self.scene_node)
            self.scene_node = None
        self._emit_change()

    def _release_current(self) -> None:
        if self.current_grid is None:
            return
        if isinstance(self.scene_node, SceneNode):
            self.scene_node.unsubscribe_tf()
        parent = self.current_grid.parent
        if parent is not None:
            parent.remove(self.current_grid)
        self.current_grid.dispose()
        if self.scene_node is self.current_grid:
            self.scene_node = None
        self.current_grid = None

    def process_message(self, message: Any) -> None:
        # A map that fails to build leaves the displayed grid untouched
        try:
            new_grid = self._build(message, color=self.color, opacity=self.opacity)
        except Exception:
            _logger.exception("Failed to build occupancy grid from %s", self.topic_name)
            return

        self._release_current()
        frame_id = message.header.frame_id

        if self.tf_client is not None:
            if self.scene_node is None:
                self.scene_node = SceneNode(
                    frame_id=frame_id,
                    tf_client=self.tf_client,
                    obj=new_grid,
                    pose=self.offset_pose,
                    name="occupancy_grid_frame",
                )
                self.root_object.add(self.scene_node)
            else:
                self.scene_node.add(new_grid)
                self.scene_node.retarget(frame_id)
        else:
            self.scene_node = new_grid
            self.root_object.add(new_grid)
        self.current_grid = new_grid

        self._emit_change()

        if not self.continuous:
            self.unsubscribe()
