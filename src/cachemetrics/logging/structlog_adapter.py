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
"""StructlogAdapter: renders cachemetrics logs through structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

from cachemetrics.logging.properties import LoggingProperties

PACKAGE_LOGGER = "cachemetrics"

# Applied to structlog events and to plain stdlib records alike.
_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


class _CacheMetricsHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Marker type so a reconfigure replaces, rather than stacks, handlers."""


class StructlogAdapter:
    """Attach one structlog-formatted handler to the cachemetrics logger tree.

    Both the stdlib loggers used by the cache and event dispatcher and the
    structlog loggers used by the metrics adapter end up in the same
    renderer (console or json). Records still propagate, so an
    application's own root handlers keep receiving them.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._levelled: set[str] = set()

    def configure(self, properties: LoggingProperties) -> None:
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                *_SHARED_PROCESSORS,
                structlog.processors.StackInfoRenderer(),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        handler = _CacheMetricsHandler(self._stream or sys.stderr)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    _renderer(properties.format),
                ],
                foreign_pre_chain=_SHARED_PROCESSORS,
            )
        )

        self.close()
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addHandler(handler)
        package_logger.setLevel(_level(properties.level))
        self._levelled.add(PACKAGE_LOGGER)
        for name, level in properties.loggers.items():
            logging.getLogger(name).setLevel(_level(level))
            self._levelled.add(name)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def close(self) -> None:
        """Detach the handler and give back the levels this adapter set."""
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(package_logger.handlers):
            if isinstance(handler, _CacheMetricsHandler):
                package_logger.removeHandler(handler)
                handler.close()
        for name in self._levelled:
            logging.getLogger(name).setLevel(logging.NOTSET)
        self._levelled.clear()


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger by name."""
    return structlog.get_logger(name)
