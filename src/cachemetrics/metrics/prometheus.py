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
"""MetricsRecorder backed by prometheus_client."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from prometheus_client import CollectorRegistry

from cachemetrics.kernel.exceptions import MetricEmissionException
from cachemetrics.metrics.definitions import MetricDefinition
from cachemetrics.observability.metrics import MetricsRegistry, registry_for


class PrometheusMetricsRecorder:
    """Records cache metrics as labelled Prometheus counters and gauges.

    Recorders built on the same collector share one :class:`MetricsRegistry`,
    so any number of caches can be instrumented against the default
    ``REGISTRY``. Tag keys become label names; a metric is created on first
    use with the label names of that first tag set, and later tag sets must
    use the same keys.
    """

    def __init__(
        self,
        registry: MetricsRegistry | None = None,
        collector: CollectorRegistry | None = None,
    ) -> None:
        self._registry = registry if registry is not None else registry_for(collector)

    @property
    def registry(self) -> MetricsRegistry:
        return self._registry

    def increment(self, definition: MetricDefinition, tags: Mapping[str, str], amount: float = 1.0) -> None:
        try:
            counter = self._registry.counter(definition.name, definition.description, sorted(tags))
            counter.labels(**tags).inc(amount)
        except ValueError as exc:
            raise MetricEmissionException(
                f"Cannot increment '{definition.name}'",
                code="METRICS_001",
                context={"metric": definition.name, "tags": dict(tags)},
            ) from exc

    def set_gauge(
        self,
        definition: MetricDefinition,
        tags: Mapping[str, str],
        sampler: Callable[[], float],
    ) -> None:
        try:
            gauge = self._registry.gauge(definition.name, definition.description, sorted(tags))
            gauge.labels(**tags).set(sampler())
        except ValueError as exc:
            raise MetricEmissionException(
                f"Cannot set gauge '{definition.name}'",
                code="METRICS_002",
                context={"metric": definition.name, "tags": dict(tags)},
            ) from exc
