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
"""Cache configuration options."""

from __future__ import annotations

from dataclasses import dataclass

from cachemetrics.core.config import config_properties


@config_properties(prefix="cachemetrics.cache")
@dataclass
class CacheOptions:
    """Options for an observable cache (cachemetrics.cache.*).

    Durations are in seconds. ``max_size`` of ``None`` means unbounded and
    ``factory_soft_timeout`` of ``None`` disables synthetic timeouts.
    """

    name: str = "default"
    duration: float = 300.0
    max_size: int | None = None
    fail_safe: bool = False
    fail_safe_max_duration: float = 3600.0
    fail_safe_throttle_duration: float = 30.0
    factory_soft_timeout: float | None = None
    allow_background_completion: bool = True
    background_workers: int = 4
