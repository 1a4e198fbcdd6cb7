"""Single-threaded event queue.

Each external event (map click, form submit, kind change, row click,
position callback) is posted as exactly one handler call. Handlers run one
at a time in posting order and never interleave.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("maptrack.events")


class EventQueue:
    """FIFO queue of pending handler invocations."""

    def __init__(self) -> None:
        self._pending: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()
        self._running = False

    def __len__(self) -> int:
        return len(self._pending)

    def post(self, handler: Callable[..., Any], *args: Any) -> None:
        """Queue one handler call."""
        self._pending.append((handler, args))

    def run_pending(self) -> int:
        """Run queued handlers until the queue is empty.

        Handlers posted while draining run after the current one returns.
        A call made from inside a handler does nothing, so handlers never
        re-enter each other.

        Returns:
            Number of handlers run.
        """
        if self._running:
            return 0

        self._running = True
        count = 0
        try:
            while self._pending:
                handler, args = self._pending.popleft()
                logger.debug("Dispatching %s", getattr(handler, "__qualname__", handler))
                handler(*args)
                count += 1
        finally:
            self._running = False
        return count
