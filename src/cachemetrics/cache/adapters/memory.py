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
"""Observable in-memory cache with TTL, capacity bound, fail-safe and soft timeouts."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from typing import Any

from cachemetrics.cache.options import CacheOptions
from cachemetrics.events.dispatcher import CacheEvents
from cachemetrics.events.types import CacheEvent, CacheEventType, EvictionReason

logger = logging.getLogger("cachemetrics.cache")


@dataclass(frozen=True)
class _Entry:
    value: Any
    expires_at: float
    # End of the fail-safe window; equals expires_at when fail-safe is off.
    physical_expires_at: float
    # Stale value re-armed by fail-safe; every read of it is a stale hit.
    from_fail_safe: bool = False


class InMemoryCache:
    """Thread-safe in-process cache that raises lifecycle events.

    Entries are logically expired after their duration. With fail-safe
    enabled they stay physically stored for ``fail_safe_max_duration``
    longer, so a stale value can stand in when the factory fails or is
    too slow. The store is LRU-bounded by ``max_size``.

    Events are emitted on the calling thread after the internal lock is
    released; background completions emit on a worker thread.
    """

    def __init__(
        self,
        options: CacheOptions | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._options = options or CacheOptions()
        self._clock = clock
        self._events = CacheEvents()
        self._lock = threading.RLock()
        self._store: OrderedDict[str, _Entry] = OrderedDict()
        self._executor: ThreadPoolExecutor | None = None

    @property
    def name(self) -> str:
        return self._options.name

    @property
    def events(self) -> CacheEvents:
        return self._events

    @property
    def options(self) -> CacheOptions:
        return self._options

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    # ── reads ──────────────────────────────────────────────────

    def get(self, key: str, default: Any = None, allow_stale: bool = False) -> Any:
        """Get a value by key.

        A logically expired entry still inside its fail-safe window is
        returned only when *allow_stale* is set, and reported as a stale hit.
        So is a value kept alive by fail-safe throttling.
        """
        pending: list[CacheEvent] = []
        now = self._clock()
        with self._lock:
            entry = self._lookup(key, now, pending)
            if entry is not None and now < entry.expires_at:
                self._store.move_to_end(key)
                pending.append(self._event(CacheEventType.HIT, key, is_stale=entry.from_fail_safe))
                result = entry.value
            elif entry is not None and allow_stale:
                pending.append(self._event(CacheEventType.HIT, key, is_stale=True))
                result = entry.value
            else:
                pending.append(self._event(CacheEventType.MISS, key))
                result = default
        self._dispatch(pending)
        return result

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        duration: timedelta | None = None,
    ) -> Any:
        """Return the cached value, or compute, store and return it.

        Each call reports one read outcome: a hit, a stale hit when fail-safe
        serves the value, or a miss when the factory supplies it. Factory
        exceptions propagate unless fail-safe can serve a stale value.
        """
        pending: list[CacheEvent] = []
        now = self._clock()
        with self._lock:
            entry = self._lookup(key, now, pending)
            fresh = entry is not None and now < entry.expires_at
            if fresh:
                self._store.move_to_end(key)
        if fresh:
            pending.append(self._event(CacheEventType.HIT, key, is_stale=entry.from_fail_safe))
            self._dispatch(pending)
            return entry.value

        # Anything still stored at this point is stale and inside the fail-safe window.
        fallback = entry
        if fallback is None:
            # Nothing to fall back on: the outcome is already known to be a miss.
            pending.append(self._event(CacheEventType.MISS, key))
        self._dispatch(pending)

        if fallback is not None and self._options.factory_soft_timeout is not None:
            return self._run_with_soft_timeout(key, factory, duration, fallback)

        try:
            value = factory()
        except Exception as exc:
            self._emit(CacheEventType.FACTORY_ERROR, key, error=exc)
            if fallback is None:
                raise
            logger.warning("Factory failed for '%s' on cache '%s', serving stale value", key, self.name)
            return self._activate_fail_safe(key, fallback)

        if fallback is not None:
            self._emit(CacheEventType.MISS, key)
        self.set(key, value, duration)
        return value

    # ── writes ─────────────────────────────────────────────────

    def set(self, key: str, value: Any, duration: timedelta | None = None) -> None:
        """Store a value, evicting the least recently used entry when full."""
        pending: list[CacheEvent] = []
        entry = self._new_entry(value, duration)
        with self._lock:
            if key in self._store:
                pending.append(self._event(CacheEventType.EVICTION, key, reason=EvictionReason.REPLACED))
            self._store[key] = entry
            self._store.move_to_end(key)
            max_size = self._options.max_size
            while max_size is not None and len(self._store) > max_size:
                evicted_key, _ = self._store.popitem(last=False)
                pending.append(
                    self._event(CacheEventType.EVICTION, evicted_key, reason=EvictionReason.CAPACITY)
                )
        self._dispatch(pending)

    def remove(self, key: str) -> bool:
        """Remove a key. Returns True if the key existed."""
        with self._lock:
            existed = self._store.pop(key, None) is not None
        pending = [self._event(CacheEventType.REMOVE, key)]
        if existed:
            pending.append(self._event(CacheEventType.EVICTION, key, reason=EvictionReason.REMOVED))
        self._dispatch(pending)
        return existed

    def purge_expired(self) -> int:
        """Drop every entry past its fail-safe window. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._store.items() if now >= e.physical_expires_at]
            for key in expired:
                del self._store[key]
        self._dispatch(
            [self._event(CacheEventType.EVICTION, k, reason=EvictionReason.EXPIRED) for k in expired]
        )
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background factory pool, optionally waiting for running factories."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def __enter__(self) -> InMemoryCache:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)

    # ── factory execution ──────────────────────────────────────

    def _run_with_soft_timeout(
        self,
        key: str,
        factory: Callable[[], Any],
        duration: timedelta | None,
        fallback: _Entry,
    ) -> Any:
        future = self._get_executor().submit(factory)
        done, _ = wait([future], timeout=self._options.factory_soft_timeout)

        if not done:
            self._emit(CacheEventType.FACTORY_SYNTHETIC_TIMEOUT, key)
            if self._options.allow_background_completion:
                future.add_done_callback(partial(self._complete_in_background, key, duration))
            return self._activate_fail_safe(key, fallback)

        error = future.exception()
        if error is not None:
            self._emit(CacheEventType.FACTORY_ERROR, key, error=error)
            return self._activate_fail_safe(key, fallback)

        value = future.result()
        self._emit(CacheEventType.MISS, key)
        self.set(key, value, duration)
        return value

    def _complete_in_background(self, key: str, duration: timedelta | None, future: Future[Any]) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning("Background factory failed for '%s' on cache '%s': %s", key, self.name, error)
            self._emit(CacheEventType.BACKGROUND_FACTORY_ERROR, key, error=error)
            return
        self.set(key, future.result(), duration)
        self._emit(CacheEventType.BACKGROUND_FACTORY_SUCCESS, key)

    def _activate_fail_safe(self, key: str, fallback: _Entry) -> Any:
        # The stale value counts as fresh until the throttle window ends.
        throttled_until = self._clock() + self._options.fail_safe_throttle_duration
        with self._lock:
            if self._store.get(key) is fallback:
                self._store[key] = _Entry(
                    value=fallback.value,
                    expires_at=throttled_until,
                    physical_expires_at=max(fallback.physical_expires_at, throttled_until),
                    from_fail_safe=True,
                )
        self._emit(CacheEventType.FAIL_SAFE_ACTIVATE, key)
        self._emit(CacheEventType.HIT, key, is_stale=True)
        return fallback.value

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._options.background_workers,
                    thread_name_prefix=f"cache-{self.name}",
                )
            return self._executor

    # ── helpers ────────────────────────────────────────────────

    def _new_entry(self, value: Any, duration: timedelta | None) -> _Entry:
        seconds = self._options.duration if duration is None else duration.total_seconds()
        expires_at = self._clock() + seconds
        physical_expires_at = expires_at
        if self._options.fail_safe:
            physical_expires_at += self._options.fail_safe_max_duration
        return _Entry(value=value, expires_at=expires_at, physical_expires_at=physical_expires_at)

    def _lookup(self, key: str, now: float, pending: list[CacheEvent]) -> _Entry | None:
        """Return the stored entry (possibly stale), dropping it if physically expired.

        Caller must hold the lock.
        """
        entry = self._store.get(key)
        if entry is not None and now >= entry.physical_expires_at:
            del self._store[key]
            pending.append(self._event(CacheEventType.EVICTION, key, reason=EvictionReason.EXPIRED))
            return None
        return entry

    def _event(self, event_type: CacheEventType, key: str, **kwargs: Any) -> CacheEvent:
        return CacheEvent(event_type=event_type, cache_name=self.name, key=key, **kwargs)

    def _emit(self, event_type: CacheEventType, key: str, **kwargs: Any) -> None:
        self._events.emit(self._event(event_type, key, **kwargs))

    def _dispatch(self, pending: list[CacheEvent]) -> None:
        for event in pending:
            self._events.emit(event)
