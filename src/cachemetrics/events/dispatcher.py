# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Synchronous, thread-safe cache event dispatcher."""

from __future__ import annotations

import logging
import threading

from cachemetrics.events.ports import CacheEventHandler
from cachemetrics.events.types import CacheEvent, CacheEventType

logger = logging.getLogger("cachemetrics.events")


class CacheEvents:
    """Per-cache event surface with one handler list per category.

    Handlers run on the thread that emits the event, in subscription order.
    A handler that raises is logged and skipped; the remaining handlers
    still run and the exception never reaches the emitter.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Copy-on-write tuples so emit() iterates without holding the lock.
        self._handlers: dict[CacheEventType, tuple[CacheEventHandler, ...]] = {}

    def subscribe(self, event_type: CacheEventType, handler: CacheEventHandler) -> None:
        with self._lock:
            self._handlers[event_type] = self._handlers.get(event_type, ()) + (handler,)

    def unsubscribe(self, event_type: CacheEventType, handler: CacheEventHandler) -> bool:
        """Remove the first registration of *handler*. Returns True if found."""
        with self._lock:
            handlers = list(self._handlers.get(event_type, ()))
            if handler not in handlers:
                return False
            handlers.remove(handler)
            self._handlers[event_type] = tuple(handlers)
            return True

    def has_subscribers(self, event_type: CacheEventType) -> bool:
        return bool(self._handlers.get(event_type))

    def subscriber_count(self, event_type: CacheEventType) -> int:
        return len(self._handlers.get(event_type, ()))

    def emit(self, event: CacheEvent) -> None:
        for handler in self._handlers.get(event.event_type, ()):
            try:
                handler(event)
            except Exception:
                logger.warning(
                    "Handler %r failed for %s event on cache '%s'",
                    handler,
                    event.event_type.value,
                    event.cache_name,
                    exc_info=True,
                )
