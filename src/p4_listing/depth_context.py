from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from p4_listing.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable


class DepthContext:
    """Stream depth of one client/stream, resolved on first use and then cached.

    Every query against the same client shares one context, possibly from
    several threads. The resolver may run p4 commands, and runs while the lock
    is held so that concurrent callers wait for a single resolution.
    `invalidate` must be called whenever the client or stream changes.
    """

    def __init__(self, resolver: Callable[[], int]) -> None:
        self._resolver = resolver
        self._lock = threading.Lock()
        self._depth = 0

    def get(self) -> int:
        with self._lock:
            if self._depth > 0:
                return self._depth
            logger.debug("Resolving stream depth")
            depth = self._resolver()
            self._depth = depth
            logger.debug("Resolved stream depth", depth=depth)
            return depth

    def invalidate(self) -> None:
        with self._lock:
            self._depth = 0
