"""
Observer registration for "change" notifications.

Clients emit one notification per reconciled message (one per batch for the
marker client, one per install for the map clients). Observers take no
arguments; they read whatever state they need from the client.
"""

from __future__ import annotations

import logging
from typing import Callable, List

_logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]


class ChangeNotifier:
    """Mixin holding the observer list of a client."""

    def __init__(self) -> None:
        self._change_callbacks: List[ChangeCallback] = []

    def on_change(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register ``callback``; returns a callable that removes it again."""
        self._change_callbacks.append(callback)

        def _remove() -> None:
            if callback in self._change_callbacks:
                self._change_callbacks.remove(callback)

        return _remove

    def _emit_change(self) -> None:
        # Copy: observers may unregister themselves while being notified
        for callback in list(self._change_callbacks):
            try:
                callback()
            except Exception:
                _logger.exception("change observer %r failed", callback)
