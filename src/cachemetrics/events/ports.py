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
"""Event source protocol defining the subscribe-by-category contract."""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from cachemetrics.events.types import CacheEvent, CacheEventType

CacheEventHandler = Callable[[CacheEvent], None]


@runtime_checkable
class CacheEventSource(Protocol):
    """Abstract event surface exposed by an observable cache."""

    def subscribe(self, event_type: CacheEventType, handler: CacheEventHandler) -> None: ...

    def unsubscribe(self, event_type: CacheEventType, handler: CacheEventHandler) -> bool: ...
