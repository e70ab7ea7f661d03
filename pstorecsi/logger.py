"""Logging that carries per-request fields stored in a context mapping."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

# Key under which the request ID is stored in a context.
REQUEST_ID_KEY = "csi.requestid"

_LOG_FIELDS_KEY = object()

_log = logging.getLogger("pstorecsi")

Context = Optional[Mapping[Any, Any]]


def set_log_fields(ctx: Context, fields: Mapping[str, Any]) -> dict[Any, Any]:
    """Return a copy of the context that carries the given log fields."""
    new_ctx: dict[Any, Any] = dict(ctx) if ctx else {}
    new_ctx[_LOG_FIELDS_KEY] = dict(fields)
    return new_ctx


def get_log_fields(ctx: Context) -> dict[str, Any]:
    """Return the log fields of a context, with its request ID if it has one."""
    if ctx is None:
        return {}
    stored = ctx.get(_LOG_FIELDS_KEY)
    fields = dict(stored) if isinstance(stored, Mapping) else {}
    request_id = ctx.get(REQUEST_ID_KEY)
    if isinstance(request_id, str):
        fields["RequestID"] = request_id
    return fields


def _format(fmt: str, args: tuple[Any, ...]) -> str:
    return fmt % args if args else fmt


class CustomLogger:
    """Logger that attaches the context's log fields to every record."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _log

    def _emit(self, level: int, ctx: Context, fmt: str, args: tuple[Any, ...]) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, _format(fmt, args), extra={"fields": get_log_fields(ctx)})

    def info(self, ctx: Context, fmt: str, *args: Any) -> None:
        """Log at info level."""
        self._emit(logging.INFO, ctx, fmt, args)

    def debug(self, ctx: Context, fmt: str, *args: Any) -> None:
        """Log at debug level."""
        self._emit(logging.DEBUG, ctx, fmt, args)

    def error(self, ctx: Context, fmt: str, *args: Any) -> None:
        """Log at error level."""
        self._emit(logging.ERROR, ctx, fmt, args)