"""
OcTreeClient: shows the latest octomap of a topic.

Messages are handled in two stages:

1. decode and geometry build, submitted to ``executor`` (a thread pool unless
   one is injected); the Future of this stage is what ``process_message``
   returns.
2. installation into the scene, handed to ``call_soon`` so it runs on the
   thread that owns the scene graph. By default this is the client's own
   ``DeferredCallQueue``, run by ``process_pending()``.

Installs happen in decode completion order, which may differ from delivery
order when several decodes are in flight.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from scene_sync.common import constants
from scene_sync.common.change import ChangeNotifier
from scene_sync.common.param_models import OcTreeClientParams
from scene_sync.common.scheduling import DeferredCallQueue
from scene_sync.navigation.octree import OCTREE_TYPES, OcTreeBase, OcTreeDecodeError, payload_bytes
from scene_sync.scene.graph import SceneObject
from scene_sync.scene.scene_node import SceneNode
from scene_sync.transport.topic import Topic

_logger = logging.getLogger(__name__)


class OcTreeClient(ChangeNotifier):
    """
    Options (see ``OcTreeClientParams``):

        ros                transport handle
        topic              octomap topic
        continuous         keep listening after the first map
        tf_client          frame tracker (optional)
        root_object        container the octree is attached to
        offset_pose        pose of the octree relative to its frame
        color, opacity, color_mode, palette, palette_scale, voxel_render_mode
                           rendering hints, forwarded to the builders when set
        compression        compression tag forwarded to the transport
        decoders           {Octomap.id: tree class} replacing the default table
        executor           executor for the decode stage
        call_soon          callable(fn) scheduling fn on the scene thread
    """

    def __init__(self, **options: Any) -> None:
        super().__init__()
        self.params = OcTreeClientParams(**options)
        self.ros = self.params.ros
        self.topic_name = self.params.topic
        self.continuous = self.params.continuous
        self.tf_client = self.params.tf_client
        self.root_object = self.params.root_object
        self.offset_pose = self.params.offset_pose
        self.options = self.params.builder_options()
        self.decoders: Dict[str, Callable[..., OcTreeBase]] = dict(self.params.decoders or OCTREE_TYPES)

        self._owns_executor = self.params.executor is None
        self.executor: Executor = self.params.executor or ThreadPoolExecutor(
            max_workers=constants.OCTREE_DECODE_WORKERS,
            thread_name_prefix="octree-decode",
        )
        self.pending = DeferredCallQueue()
        self.call_soon: Callable[[Callable[[], Any]], Any] = self.params.call_soon or self.pending.post

        # renderable currently displayed and the node attached to the root
        self.current_object: Optional[SceneObject] = None
        self.scene_node: Optional[SceneObject] = None
        self.ros_topic: Optional[Topic] = None
        self._closed = False
        self.subscribe()

    def subscribe(self) -> None:
        self.unsubscribe()
        self.ros_topic = self.ros.topic(
            self.topic_name,
            constants.OCTOMAP_MESSAGE_TYPE,
            compression=self.params.compression,
            queue_length=constants.MAP_QUEUE_LENGTH,
        )
        self.ros_topic.subscribe(self.process_message)
        _logger.debug("OcTreeClient subscribed to %s", self.topic_name)

    def unsubscribe(self) -> None:
        if self.ros_topic is not None:
            self.ros_topic.unsubscribe()
            self.ros_topic = None

    def process_pending(self) -> int:
        """Run queued installs on the calling thread; returns how many ran."""
        return self.pending.drain()

    def close(self) -> None:
        """Unsubscribe, destroy the displayed octree and stop an owned executor."""
        self.unsubscribe()
        self._closed = True
        self._release_current()
        if self._owns_executor:
            self.executor.shutdown(wait=False)
        self._emit_change()

    # ------------------------------------------------------------------
    # Stage 1: decode
    # ------------------------------------------------------------------

    def decode(self, message: Any) -> SceneObject:
        """Decode ``message`` and build its voxel geometry."""
        data = payload_bytes(message.data)
        if message.binary:
            tree = OcTreeBase(float(message.resolution), **self.options)
            tree.read_binary(data)
        else:
            tree_type = self.decoders.get(str(message.id))
            if tree_type is None:
                raise OcTreeDecodeError(f'unsupported octree type "{message.id}"')
            tree = tree_type(float(message.resolution), **self.options)
            tree.read(data)
        return tree.build_geometry()

    def process_message(self, message: Any) -> Future:
        if not self.continuous:
            self.unsubscribe()

        future = self.executor.submit(self.decode, message)
        future.add_done_callback(lambda done: self._on_decoded(message, done))
        return future

    def _on_decoded(self, message: Any, future: Future) -> None:
        # Runs on whichever thread completed the decode
        exc = future.exception()
        if exc is not None:
            _logger.error(
                "Failed to decode octomap (id=%r, binary=%s): %s",
                getattr(message, "id", None),
                getattr(message, "binary", None),
                exc,
            )
            return
        renderable = future.result()
        self.call_soon(lambda: self._install(message, renderable))

    # ------------------------------------------------------------------
    # Stage 2: install
    # ------------------------------------------------------------------

    def _release_current(self) -> None:
        if self.current_object is None:
            return
        if isinstance(self.scene_node, SceneNode):
            self.scene_node.unsubscribe_tf()
        if self.scene_node is not None:
            self.root_object.remove(self.scene_node)
        self.current_object.dispose()
        self.current_object = None
        self.scene_node = None

    def _install(self, message: Any, renderable: SceneObject) -> None:
        if self._closed:
            renderable.dispose()
            return

        self._release_current()

        if self.tf_client is not None:
            node: SceneObject = SceneNode(
                frame_id=message.header.frame_id,
                tf_client=self.tf_client,
                obj=renderable,
                pose=self.offset_pose,
                name="octree_frame",
            )
        else:
            node = renderable
        self.root_object.add(node)
        self.scene_node = node
        self.current_object = renderable

        self._emit_change()
