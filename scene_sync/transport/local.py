"""
In-process publish/subscribe bus.

Deliveries are synchronous and in publish order, on the publisher's thread.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from scene_sync.transport.topic import MessageCallback

_logger = logging.getLogger(__name__)


class LocalTopic:
    def __init__(
        self,
        transport: "LocalTransport",
        name: str,
        message_type: str,
        compression: Optional[str] = None,
        queue_length: Optional[int] = None,
    ) -> None:
        self.name = name
        self.message_type = message_type
        self.compression = compression
        self.queue_length = queue_length
        self._transport = transport
        self._callback: Optional[MessageCallback] = None

    @property
    def subscribed(self) -> bool:
        return self._callback is not None

    def subscribe(self, callback: MessageCallback) -> None:
        if self._callback is not None:
            raise RuntimeError(f"topic {self.name!r} is already subscribed")
        self._callback = callback
        self._transport._attach(self)

    def unsubscribe(self) -> None:
        if self._callback is None:
            return
        self._callback = None
        self._transport._detach(self)

    def _deliver(self, message: Any) -> None:
        if self._callback is not None:
            self._callback(message)


class LocalTransport:
    """Topic factory plus ``publish`` for feeding messages in."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[LocalTopic]] = {}

    def topic(
        self,
        name: str,
        message_type: str,
        *,
        compression: Optional[str] = None,
        queue_length: Optional[int] = None,
    ) -> LocalTopic:
        return LocalTopic(self, name, message_type, compression, queue_length)

    def publish(self, name: str, message: Any) -> int:
        """Deliver ``message`` to every current subscriber; returns how many got it."""
        targets = list(self._subscribers.get(name, ()))
        if not targets:
            _logger.debug("publish on %s dropped: no subscribers", name)
        for topic in targets:
            topic._deliver(message)
        return len(targets)

    def subscription_count(self, name: str) -> int:
        return len(self._subscribers.get(name, ()))

    def _attach(self, topic: LocalTopic) -> None:
        self._subscribers.setdefault(topic.name, []).append(topic)

    def _detach(self, topic: LocalTopic) -> None:
        subs = self._subscribers.get(topic.name)
        if subs and topic in subs:
            subs.remove(topic)
