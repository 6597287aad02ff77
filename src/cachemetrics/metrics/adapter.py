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
"""Bridges a cache's event surface to counters and gauges."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sized
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from cachemetrics.cache.options import CacheOptions
from cachemetrics.cache.ports.outbound import ObservableCache
from cachemetrics.events.ports import CacheEventHandler, CacheEventSource
from cachemetrics.events.types import CacheEvent, CacheEventType, EvictionReason
from cachemetrics.kernel.exceptions import AdapterStateException, InvalidArgumentException
from cachemetrics.logging import get_logger
from cachemetrics.metrics.conventions import SemanticConventions
from cachemetrics.metrics.definitions import MetricDefinition, definitions_for
from cachemetrics.metrics.ports import MetricsRecorder

logger = get_logger("cachemetrics.metrics")


class AdapterState(Enum):
    UNWIRED = "UNWIRED"
    WIRED = "WIRED"


@dataclass(frozen=True)
class EventBinding:
    """One listener registered on one event category of a cache."""

    source: CacheEventSource
    event_type: CacheEventType
    handler: CacheEventHandler


class CacheMetricsAdapter:
    """Turns cache events into metric updates tagged with the cache name.

    Every ``record_*`` method emits exactly one metric (hit and miss also
    sample the item-count gauge when a store is given) and never raises:
    backend failures are logged and dropped so they cannot disturb the
    cache operation that raised the event.

    Args:
        cache_name: Identifier attached to every metric as a tag.
        metrics: Backend that receives increments and gauge samples.
        store: Optional sized collection whose ``len()`` is reported as
            the item count.
        conventions: Metric and tag naming; defaults to
            :class:`SemanticConventions`.

    Raises:
        InvalidArgumentException: If *cache_name* is blank or *metrics* is None.
    """

    def __init__(
        self,
        cache_name: str,
        metrics: MetricsRecorder,
        store: Sized | None = None,
        conventions: SemanticConventions | None = None,
    ) -> None:
        if not isinstance(cache_name, str) or not cache_name.strip():
            raise InvalidArgumentException(
                "cache_name must be a non-empty string",
                code="ADAPTER_001",
                context={"argument": "cache_name"},
            )
        if metrics is None:
            raise InvalidArgumentException(
                "metrics must not be None",
                code="ADAPTER_002",
                context={"argument": "metrics"},
            )

        self._cache_name = cache_name
        self._metrics = metrics
        self._conventions = conventions or SemanticConventions()
        self._definitions = definitions_for(self._conventions)
        self._tags = MappingProxyType({self._conventions.cache_name_tag: cache_name})

        self._store: Sized | None = None
        if store is not None:
            if isinstance(store, Sized):
                self._store = store
            else:
                logger.debug("item_count_disabled", cache_name=cache_name, store_type=type(store).__name__)

        self._lock = threading.Lock()
        self._state = AdapterState.UNWIRED
        self._bindings: list[EventBinding] = []

    @property
    def cache_name(self) -> str:
        return self._cache_name

    @property
    def tags(self) -> MappingProxyType[str, str]:
        return self._tags

    @property
    def conventions(self) -> SemanticConventions:
        return self._conventions

    @property
    def state(self) -> AdapterState:
        return self._state

    @property
    def bindings(self) -> tuple[EventBinding, ...]:
        return tuple(self._bindings)

    # ── counter operations ─────────────────────────────────────

    def record_hit(self) -> None:
        self._increment(self._definitions.hit)
        self._sample_item_count()

    def record_stale_hit(self) -> None:
        self._increment(self._definitions.stale_hit)

    def record_miss(self) -> None:
        self._increment(self._definitions.miss)
        self._sample_item_count()

    def record_removal(self) -> None:
        self._increment(self._definitions.removed)

    def record_expiration_eviction(self) -> None:
        self._increment(self._definitions.expired_evict)

    def record_capacity_eviction(self) -> None:
        self._increment(self._definitions.capacity_evict)

    def record_background_refresh(self) -> None:
        self._increment(self._definitions.background_refresh)

    def record_background_refresh_error(self) -> None:
        self._increment(self._definitions.background_refresh_error)

    def record_factory_error(self) -> None:
        self._increment(self._definitions.factory_error)

    def record_factory_synthetic_timeout(self) -> None:
        self._increment(self._definitions.factory_synthetic_timeout)

    def record_fail_safe_activation(self) -> None:
        self._increment(self._definitions.fail_safe_activate)

    # ── lifecycle ──────────────────────────────────────────────

    def wireup(self, cache: ObservableCache, options: CacheOptions | None = None) -> None:
        """Attach one listener per event category to ``cache.events``.

        Raises:
            InvalidArgumentException: If the cache has no event surface or
                *options* is not a :class:`CacheOptions`.
            AdapterStateException: If the adapter is already wired.
        """
        events = getattr(cache, "events", None)
        if not isinstance(events, CacheEventSource):
            raise InvalidArgumentException(
                "cache must expose an event surface",
                code="ADAPTER_003",
                context={"argument": "cache", "type": type(cache).__name__},
            )
        if options is not None and not isinstance(options, CacheOptions):
            raise InvalidArgumentException(
                "options must be CacheOptions",
                code="ADAPTER_004",
                context={"argument": "options", "type": type(options).__name__},
            )

        with self._lock:
            if self._state is AdapterState.WIRED:
                raise AdapterStateException(
                    f"Adapter for cache '{self._cache_name}' is already wired",
                    code="ADAPTER_005",
                    context={"cache_name": self._cache_name},
                )

            routes: dict[CacheEventType, Callable[[CacheEvent], None]] = {
                CacheEventType.HIT: self._on_hit,
                CacheEventType.MISS: lambda e: self.record_miss(),
                CacheEventType.REMOVE: lambda e: self.record_removal(),
                CacheEventType.EVICTION: self._on_eviction,
                CacheEventType.BACKGROUND_FACTORY_SUCCESS: lambda e: self.record_background_refresh(),
                CacheEventType.BACKGROUND_FACTORY_ERROR: lambda e: self.record_background_refresh_error(),
                CacheEventType.FACTORY_ERROR: lambda e: self.record_factory_error(),
                CacheEventType.FACTORY_SYNTHETIC_TIMEOUT: lambda e: self.record_factory_synthetic_timeout(),
                CacheEventType.FAIL_SAFE_ACTIVATE: lambda e: self.record_fail_safe_activation(),
            }
            for event_type, route in routes.items():
                handler = self._guarded(event_type, route)
                events.subscribe(event_type, handler)
                self._bindings.append(EventBinding(events, event_type, handler))
            self._state = AdapterState.WIRED

        logger.debug("adapter_wired", cache_name=self._cache_name, bindings=len(self._bindings))

    def unwire(self) -> None:
        """Detach every listener. A no-op when not wired."""
        with self._lock:
            for binding in self._bindings:
                binding.source.unsubscribe(binding.event_type, binding.handler)
            self._bindings.clear()
            self._state = AdapterState.UNWIRED

    def close(self) -> None:
        self.unwire()

    def __enter__(self) -> CacheMetricsAdapter:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── event routing ──────────────────────────────────────────

    def _on_hit(self, event: CacheEvent) -> None:
        if event.is_stale:
            self.record_stale_hit()
        else:
            self.record_hit()

    def _on_eviction(self, event: CacheEvent) -> None:
        if event.reason is EvictionReason.EXPIRED:
            self.record_expiration_eviction()
        elif event.reason is EvictionReason.CAPACITY:
            self.record_capacity_eviction()

    def _guarded(self, event_type: CacheEventType, route: Callable[[CacheEvent], None]) -> CacheEventHandler:
        def handler(event: CacheEvent) -> None:
            try:
                route(event)
            except Exception:
                logger.warning(
                    "cache_event_listener_failed",
                    cache_name=self._cache_name,
                    event_type=event_type.value,
                    exc_info=True,
                )

        return handler

    # ── emission ───────────────────────────────────────────────

    def _increment(self, definition: MetricDefinition) -> None:
        try:
            self._metrics.increment(definition, self._tags)
        except Exception:
            logger.warning(
                "metric_emission_failed",
                cache_name=self._cache_name,
                metric=definition.name,
                exc_info=True,
            )

    def _sample_item_count(self) -> None:
        store = self._store
        if store is None:
            return
        try:
            self._metrics.set_gauge(self._definitions.item_count, self._tags, lambda: len(store))
        except Exception:
            logger.warning(
                "item_count_sample_failed",
                cache_name=self._cache_name,
                metric=self._definitions.item_count.name,
                exc_info=True,
            )


def instrument(
    cache: ObservableCache,
    metrics: MetricsRecorder,
    conventions: SemanticConventions | None = None,
    track_item_count: bool = True,
) -> CacheMetricsAdapter:
    """Create an adapter named after *cache* and wire it.

    The cache itself is the item-count store unless *track_item_count* is off.
    """
    adapter = CacheMetricsAdapter(
        cache.name,
        metrics,
        store=cache if track_item_count else None,
        conventions=conventions,
    )
    adapter.wireup(cache)
    return adapter
