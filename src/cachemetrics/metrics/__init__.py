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
"""Cache metrics: the event-to-metric adapter, naming conventions and recorders."""

from cachemetrics.metrics.adapter import AdapterState, CacheMetricsAdapter, EventBinding, instrument
from cachemetrics.metrics.auto_configuration import instrument_from_config
from cachemetrics.metrics.conventions import SemanticConventions
from cachemetrics.metrics.definitions import (
    CacheMetricDefinitions,
    MetricDefinition,
    MetricKind,
    definitions_for,
)
from cachemetrics.metrics.ports import MetricsRecorder
from cachemetrics.metrics.prometheus import PrometheusMetricsRecorder
from cachemetrics.metrics.properties import MetricsProperties

__all__ = [
    "AdapterState",
    "CacheMetricDefinitions",
    "CacheMetricsAdapter",
    "EventBinding",
    "MetricDefinition",
    "MetricKind",
    "MetricsProperties",
    "MetricsRecorder",
    "PrometheusMetricsRecorder",
    "SemanticConventions",
    "definitions_for",
    "instrument",
    "instrument_from_config",
]
