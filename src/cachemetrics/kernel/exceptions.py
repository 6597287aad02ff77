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
"""Exception hierarchy for cachemetrics.

All exceptions inherit from CacheMetricsException so callers can catch the
whole family at once.

Categories:
- BusinessException: argument and state violations raised to the caller
- InfrastructureException: metrics backend failures, contained by listeners
"""

from __future__ import annotations


class CacheMetricsException(Exception):
    """Base exception for all cachemetrics errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "ADAPTER_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(CacheMetricsException):
    """Contract violations surfaced immediately to the caller."""


class ValidationException(BusinessException):
    """Input validation failures."""


class InvalidArgumentException(ValidationException):
    """A required argument is missing or malformed."""


class ConflictException(BusinessException):
    """Operation conflicts with current state."""


class AdapterStateException(ConflictException):
    """The adapter is not in a state that allows the requested transition."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(CacheMetricsException):
    """Metrics backend or collaborator failures."""


class MetricEmissionException(InfrastructureException):
    """A metric could not be recorded by the backend."""
