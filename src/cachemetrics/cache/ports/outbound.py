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
"""Observable cache protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cachemetrics.events.ports import CacheEventSource


@runtime_checkable
class ObservableCache(Protocol):
    """A named cache exposing an event surface and its current item count."""

    @property
    def name(self) -> str: ...

    @property
    def events(self) -> CacheEventSource: ...

    def __len__(self) -> int: ...
