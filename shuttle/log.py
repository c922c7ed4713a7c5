"""Structured log lines emitted by completion clients.

Clients never log through a global; they receive a ``LoggerFn`` and hand it
``LogLine`` records. ``logging_logger`` bridges those records onto the
standard ``logging`` module so applications get them without extra wiring.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

AuxiliaryType = Literal["string", "integer", "float", "boolean", "object"]

# 0 = error, 1 = info, 2 = debug
LogLevel = Literal[0, 1, 2]

_STDLIB_LEVELS = {0: logging.ERROR, 1: logging.INFO, 2: logging.DEBUG}


class AuxiliaryValue(BaseModel):
    """A diagnostic field attached to a log line."""

    value: str
    type: AuxiliaryType = "string"


class LogLine(BaseModel):
    """One structured log event."""

    category: str
    message: str
    level: LogLevel = 1
    auxiliary: dict[str, AuxiliaryValue] = Field(default_factory=dict)


LoggerFn = Callable[[LogLine], None]


def aux(value: Any, kind: AuxiliaryType | None = None) -> AuxiliaryValue:
    """Build an auxiliary value, JSON-encoding anything that isn't a string."""
    if kind is None:
        if isinstance(value, bool):
            kind = "boolean"
        elif isinstance(value, int):
            kind = "integer"
        elif isinstance(value, float):
            kind = "float"
        elif isinstance(value, str):
            kind = "string"
        else:
            kind = "object"
    if isinstance(value, str):
        text = value
    elif kind == "object":
        text = json.dumps(value, default=_json_default)
    else:
        text = str(value)
    return AuxiliaryValue(value=text, type=kind)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    return str(obj)


def logging_logger(logger: logging.Logger | None = None) -> LoggerFn:
    """Return a LoggerFn that forwards log lines to a stdlib logger."""
    target = logger or logging.getLogger("shuttle")

    def _log(line: LogLine) -> None:
        level = _STDLIB_LEVELS.get(line.level, logging.INFO)
        if not target.isEnabledFor(level):
            return
        target.log(
            level,
            "[%s] %s",
            line.category,
            line.message,
            extra={
                "category": line.category,
                "auxiliary": {k: v.value for k, v in line.auxiliary.items()},
            },
        )

    return _log


def configure_logging(level: str = "INFO") -> None:
    """Basic console logging for scripts and examples."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
