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
"""cachemetrics: publish cache lifecycle events as counters and gauges."""

from cachemetrics.cache import CacheOptions, InMemoryCache, ObservableCache
from cachemetrics.events import CacheEvent, CacheEvents, CacheEventType, EvictionReason
from cachemetrics.kernel.exceptions import (
    AdapterStateException,
    CacheMetricsException,
    InvalidArgumentException,
)
from cachemetrics.metrics import (
    CacheMetricsAdapter,
    MetricsRecorder,
    PrometheusMetricsRecorder,
    SemanticConventions,
    instrument,
    instrument_from_config,
)

__version__ = "0.1.0"

__all__ = [
    "AdapterStateException",
    "CacheEvent",
    "CacheEventType",
    "CacheEvents",
    "CacheMetricsAdapter",
    "CacheMetricsException",
    "CacheOptions",
    "EvictionReason",
    "InMemoryCache",
    "InvalidArgumentException",
    "MetricsRecorder",
    "ObservableCache",
    "PrometheusMetricsRecorder",
    "SemanticConventions",
    "instrument",
    "instrument_from_config",
]
