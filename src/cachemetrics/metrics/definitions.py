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
"""Static metric definitions for cache events."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum

from cachemetrics.metrics.conventions import SemanticConventions


class MetricKind(Enum):
    COUNTER = "COUNTER"
    GAUGE = "GAUGE"


@dataclass(frozen=True)
class MetricDefinition:
    """A named counter or gauge with optional unit and description."""

    name: str
    kind: MetricKind
    description: str = ""
    unit: str | None = None


@dataclass(frozen=True)
class CacheMetricDefinitions:
    """One definition per cache metric, derived from a naming convention."""

    hit: MetricDefinition
    miss: MetricDefinition
    stale_hit: MetricDefinition
    removed: MetricDefinition
    expired_evict: MetricDefinition
    capacity_evict: MetricDefinition
    background_refresh: MetricDefinition
    background_refresh_error: MetricDefinition
    factory_error: MetricDefinition
    factory_synthetic_timeout: MetricDefinition
    fail_safe_activate: MetricDefinition
    item_count: MetricDefinition

    def all(self) -> tuple[MetricDefinition, ...]:
        return (
            self.hit,
            self.miss,
            self.stale_hit,
            self.removed,
            self.expired_evict,
            self.capacity_evict,
            self.background_refresh,
            self.background_refresh_error,
            self.factory_error,
            self.factory_synthetic_timeout,
            self.fail_safe_activate,
            self.item_count,
        )


def _counter(conventions: SemanticConventions, base: str, description: str) -> MetricDefinition:
    return MetricDefinition(conventions.metric_name(base), MetricKind.COUNTER, description, unit="calls")


@functools.lru_cache(maxsize=32)
def definitions_for(conventions: SemanticConventions) -> CacheMetricDefinitions:
    """Build (once per convention) the definitions shared by every adapter using it."""
    c = conventions
    return CacheMetricDefinitions(
        hit=_counter(c, c.hit, "Cache reads that found a fresh value"),
        miss=_counter(c, c.miss, "Cache reads that found nothing"),
        stale_hit=_counter(c, c.stale_hit, "Cache reads served a stale value"),
        removed=_counter(c, c.removed, "Entries explicitly removed by callers"),
        expired_evict=_counter(c, c.expired_evict, "Entries evicted after expiring"),
        capacity_evict=_counter(c, c.capacity_evict, "Entries evicted due to capacity"),
        background_refresh=_counter(c, c.background_refresh, "Background factory completions"),
        background_refresh_error=_counter(c, c.background_refresh_error, "Background factory failures"),
        factory_error=_counter(c, c.factory_error, "Factory failures"),
        factory_synthetic_timeout=_counter(
            c, c.factory_synthetic_timeout, "Factories that exceeded the soft timeout"
        ),
        fail_safe_activate=_counter(c, c.fail_safe_activate, "Stale values served by fail-safe"),
        item_count=MetricDefinition(
            conventions.metric_name(c.item_count),
            MetricKind.GAUGE,
            "Items held in the in-process store",
            unit="items",
        ),
    )
