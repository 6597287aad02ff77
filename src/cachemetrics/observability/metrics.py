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
"""Prometheus-backed registry of counters and gauges."""

from __future__ import annotations

import threading

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge


class MetricsRegistry:
    """Get-or-create registry for prometheus_client metrics.

    Ensures each metric name is registered only once per collector, even
    when the first use of a name races across threads. Use
    :func:`registry_for` to share one instance per collector.
    """

    def __init__(self, collector: CollectorRegistry | None = None) -> None:
        self._collector = collector if collector is not None else REGISTRY
        self._lock = threading.Lock()
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}

    @property
    def collector(self) -> CollectorRegistry:
        return self._collector

    def counter(self, name: str, description: str, labels: list[str] | None = None) -> Counter:
        """Get or create a counter metric."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name, description, labels or [], registry=self._collector)
            return self._counters[name]

    def gauge(self, name: str, description: str, labels: list[str] | None = None) -> Gauge:
        """Get or create a gauge metric."""
        with self._lock:
            if name not in self._gauges:
                self._gauges[name] = Gauge(name, description, labels or [], registry=self._collector)
            return self._gauges[name]


_shared_lock = threading.Lock()
_shared: dict[int, tuple[CollectorRegistry, MetricsRegistry]] = {}


def registry_for(collector: CollectorRegistry | None = None) -> MetricsRegistry:
    """Return the MetricsRegistry shared by every caller using *collector*.

    Defaults to the process-wide prometheus_client ``REGISTRY``.
    """
    collector = collector if collector is not None else REGISTRY
    with _shared_lock:
        # The collector is kept in the value so its id cannot be reused.
        entry = _shared.get(id(collector))
        if entry is None:
            entry = (collector, MetricsRegistry(collector))
            _shared[id(collector)] = entry
        return entry[1]
