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
"""MetricsRecorder: the outbound port to a metrics backend."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Protocol, runtime_checkable

from cachemetrics.metrics.definitions import MetricDefinition


@runtime_checkable
class MetricsRecorder(Protocol):
    """Records counter increments and gauge samples by definition and tag set.

    Implementations must tolerate concurrent calls from any thread.
    """

    def increment(self, definition: MetricDefinition, tags: Mapping[str, str], amount: float = 1.0) -> None: ...

    def set_gauge(
        self,
        definition: MetricDefinition,
        tags: Mapping[str, str],
        sampler: Callable[[], float],
    ) -> None: ...
