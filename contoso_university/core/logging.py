from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | %(message)s"

# Set by the request_context pipeline stage for the duration of a request.
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_HANDLER_MARKER = "_contoso_handler"


class LoggingContextFilter(logging.Filter):
    """
    Copy the current request's correlation id onto each record, or "-" outside a request.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        return True


# PUBLIC_INTERFACE
def configure_logging(level: int = logging.INFO) -> logging.Handler:
    """
    Install the application's stdout handler on the root logger and set its level.

    Calling it again (one call per app built) replaces the handler installed by
    the previous call and leaves other handlers alone.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(LoggingContextFilter())
    setattr(handler, _HANDLER_MARKER, True)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    return handler
