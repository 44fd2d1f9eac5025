from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

MessageCallback = Callable[[Any], None]


class Topic(Protocol):
    """One subscription to a named topic."""

    name: str

    def subscribe(self, callback: MessageCallback) -> None: ...

    def unsubscribe(self) -> None:
        """Stop delivery. Must be idempotent."""
        ...


class Transport(Protocol):
    """Connection handle able to create topics (the ``ros`` option of a client)."""

    def topic(
        self,
        name: str,
        message_type: str,
        *,
        compression: Optional[str] = None,
        queue_length: Optional[int] = None,
    ) -> Topic: ...
