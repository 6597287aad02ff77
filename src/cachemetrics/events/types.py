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
"""Cache event types and data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class CacheEventType(Enum):
    """Categories of events a cache raises."""

    HIT = "HIT"
    MISS = "MISS"
    REMOVE = "REMOVE"
    EVICTION = "EVICTION"
    BACKGROUND_FACTORY_SUCCESS = "BACKGROUND_FACTORY_SUCCESS"
    BACKGROUND_FACTORY_ERROR = "BACKGROUND_FACTORY_ERROR"
    FACTORY_ERROR = "FACTORY_ERROR"
    FACTORY_SYNTHETIC_TIMEOUT = "FACTORY_SYNTHETIC_TIMEOUT"
    FAIL_SAFE_ACTIVATE = "FAIL_SAFE_ACTIVATE"


class EvictionReason(Enum):
    """Why an entry left the in-process store."""

    EXPIRED = "EXPIRED"
    CAPACITY = "CAPACITY"
    REMOVED = "REMOVED"
    REPLACED = "REPLACED"


@dataclass(frozen=True)
class CacheEvent:
    """A single occurrence raised by a cache.

    ``is_stale`` is only meaningful for HIT, ``reason`` for EVICTION and
    ``error`` for the factory error categories.
    """

    event_type: CacheEventType
    cache_name: str
    key: str | None = None
    is_stale: bool = False
    reason: EvictionReason | None = None
    error: BaseException | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
