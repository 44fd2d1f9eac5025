"""
MarkerArrayClient: keeps a registry of markers in sync with a MarkerArray topic.

Each directive of a batch is keyed by ``MarkerKey(ns, id)`` and dispatched on
its action code:

    ADD        create, or update in place; an update the marker cannot
               represent removes the entry (it is not re-created)
    DEPRECATED warning only
    DELETE     destroy the entry if present
    DELETEALL  destroy every entry
    other      warning only

Registry invariant: every key maps to exactly one SceneNode attached to
``root_object`` and every node this client attached has a key.
One "change" notification is emitted per batch.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, NamedTuple, Optional

from scene_sync.common import constants
from scene_sync.common.change import ChangeNotifier
from scene_sync.common.param_models import MarkerArrayClientParams
from scene_sync.markers.marker import Marker
from scene_sync.messages import MarkerAction
from scene_sync.scene.scene_node import SceneNode
from scene_sync.transport.topic import Topic

_logger = logging.getLogger(__name__)


class MarkerKey(NamedTuple):
    namespace: str
    identifier: int


def marker_key(message: Any) -> MarkerKey:
    return MarkerKey(str(message.ns), int(message.id))


class MarkerArrayClient(ChangeNotifier):
    """
    Options (see ``MarkerArrayClientParams``):

        ros          transport handle
        topic        MarkerArray topic
        tf_client    frame tracker for the marker frames (optional)
        root_object  container the markers are attached to
        path         base path for package:// mesh resources
        compression  compression tag forwarded to the transport
        builder      callable(message, path=...) -> renderable with update()
    """

    def __init__(self, **options: Any) -> None:
        super().__init__()
        self.params = MarkerArrayClientParams(**options)
        self.ros = self.params.ros
        self.topic_name = self.params.topic
        self.tf_client = self.params.tf_client
        self.root_object = self.params.root_object
        self.path = self.params.path
        self._build: Callable[..., Any] = self.params.builder or Marker

        self.markers: Dict[MarkerKey, SceneNode] = {}
        self.ros_topic: Optional[Topic] = None

        self._handlers: Dict[MarkerAction, Callable[[Any], None]] = {
            MarkerAction.ADD: self._add_or_modify,
            MarkerAction.DEPRECATED: self._deprecated,
            MarkerAction.DELETE: self._delete,
            MarkerAction.DELETEALL: self._delete_all,
        }

        self.subscribe()

    def subscribe(self) -> None:
        self.unsubscribe()
        self.ros_topic = self.ros.topic(
            self.topic_name,
            constants.MARKER_ARRAY_MESSAGE_TYPE,
            compression=self.params.compression,
            queue_length=constants.MARKER_QUEUE_LENGTH,
        )
        self.ros_topic.subscribe(self.process_message)
        _logger.debug("MarkerArrayClient subscribed to %s", self.topic_name)

    def unsubscribe(self) -> None:
        if self.ros_topic is not None:
            self.ros_topic.unsubscribe()
            self.ros_topic = None

    def close(self) -> None:
        """Unsubscribe and destroy every displayed marker."""
        self.unsubscribe()
        self._delete_all(None)
        self._emit_change()

    def process_message(self, array_message: Any) -> None:
        for message in array_message.markers:
            try:
                action = MarkerAction(int(message.action))
            except (TypeError, ValueError):
                _logger.warning(
                    'Received marker message with unknown action identifier "%s"', message.action
                )
                continue
            try:
                self._handlers[action](message)
            except Exception:
                _logger.exception(
                    "Failed to apply marker directive ns=%r id=%r action=%s",
                    getattr(message, "ns", None),
                    getattr(message, "id", None),
                    action.name,
                )

        self._emit_change()

    # ------------------------------------------------------------------
    # Directive handlers
    # ------------------------------------------------------------------

    def _add_or_modify(self, message: Any) -> None:
        key = marker_key(message)
        node = self.markers.get(key)
        if node is not None:
            if not node.children[0].update(message):
                self.remove_marker(key)
            return

        renderable = self._build(message, path=self.path)
        try:
            node = SceneNode(
                frame_id=message.header.frame_id,
                tf_client=self.tf_client,
                obj=renderable,
                name=f"{key.namespace}/{key.identifier}",
            )
        except Exception:
            renderable.dispose()
            raise
        self.markers[key] = node
        self.root_object.add(node)

    def _deprecated(self, message: Any) -> None:
        _logger.warning('Received marker message with deprecated action identifier "1"')

    def _delete(self, message: Any) -> None:
        self.remove_marker(marker_key(message))

    def _delete_all(self, message: Any) -> None:
        for key in list(self.markers):
            self.remove_marker(key)

    def remove_marker(self, key: MarkerKey) -> None:
        node = self.markers.get(key)
        if node is None:
            return
        # Registry entry and attachment go away together even if untracking fails
        try:
            node.unsubscribe_tf()
        finally:
            self.root_object.remove(node)
            del self.markers[key]
            for child in list(node.children):
                child.dispose()
