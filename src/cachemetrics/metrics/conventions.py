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
"""Metric naming conventions."""

from __future__ import annotations

from dataclasses import dataclass

from cachemetrics.metrics.properties import MetricsProperties


@dataclass(frozen=True)
class SemanticConventions:
    """Names for the tag key and every cache metric.

    ``prefix`` is prepended to every metric name, never to the tag key.
    Names must be valid Prometheus identifiers when used with
    :class:`~cachemetrics.metrics.prometheus.PrometheusMetricsRecorder`.
    """

    cache_name_tag: str = "cache_name"
    prefix: str = ""
    hit: str = "cache_hit"
    miss: str = "cache_miss"
    stale_hit: str = "cache_stale_hit"
    removed: str = "cache_removed"
    expired_evict: str = "cache_expired_evict"
    capacity_evict: str = "cache_capacity_evict"
    background_refresh: str = "cache_background_refresh"
    background_refresh_error: str = "cache_background_refresh_error"
    factory_error: str = "cache_factory_error"
    factory_synthetic_timeout: str = "cache_factory_synthetic_timeout"
    fail_safe_activate: str = "cache_fail_safe_activate"
    item_count: str = "cache_item_count"

    def metric_name(self, base: str) -> str:
        return f"{self.prefix}{base}"

    @classmethod
    def from_properties(cls, properties: MetricsProperties) -> SemanticConventions:
        return cls(cache_name_tag=properties.cache_name_tag, prefix=properties.prefix)
