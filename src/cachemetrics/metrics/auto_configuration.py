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
"""Configuration-driven adapter setup."""

from __future__ import annotations

from cachemetrics.cache.ports.outbound import ObservableCache
from cachemetrics.core.config import Config
from cachemetrics.logging import LoggingPort, LoggingProperties, StructlogAdapter
from cachemetrics.metrics.adapter import CacheMetricsAdapter, instrument
from cachemetrics.metrics.conventions import SemanticConventions
from cachemetrics.metrics.ports import MetricsRecorder
from cachemetrics.metrics.properties import MetricsProperties


def instrument_from_config(
    config: Config,
    cache: ObservableCache,
    metrics: MetricsRecorder,
    logging_port: LoggingPort | None = None,
) -> CacheMetricsAdapter | None:
    """Wire *cache* to *metrics* per ``cachemetrics.metrics.*``.

    A ``cachemetrics.logging`` section, when present, is applied first through
    *logging_port* (a StructlogAdapter by default). Returns None when
    ``cachemetrics.metrics.enabled`` is false.
    """
    if config.get_section("cachemetrics.logging"):
        (logging_port or StructlogAdapter()).configure(config.bind(LoggingProperties))

    properties = config.bind(MetricsProperties)
    if not properties.enabled:
        return None
    return instrument(
        cache,
        metrics,
        conventions=SemanticConventions.from_properties(properties),
        track_item_count=properties.track_item_count,
    )
