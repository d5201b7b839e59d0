"""Correlation-aware logging for strict XML parsing.

Records emitted through :class:`CorrelationLogger` always carry ``component``
and ``correlation_id`` attributes so that all log lines belonging to one parse
can be grouped. No handlers are configured here; that is left to the
application.
"""

import logging
import time
from typing import Any, Dict, Optional

MS_PER_SECOND = 1000


def elapsed_ms(start_time: float) -> float:
    """Milliseconds since ``start_time``, a :func:`time.perf_counter` reading."""
    return (time.perf_counter() - start_time) * MS_PER_SECOND


class CorrelationLogger:
    """Wraps a stdlib logger and stamps every record with parse context.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Identifier shared by every record of one parse
        component: Short component label, defaults to the last part of ``name``
    """

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.rsplit(".", 1)[-1]

    def is_enabled_for(self, level: int) -> bool:
        """Whether a record at ``level`` would be processed."""
        return self.logger.isEnabledFor(level)

    def _log(self, level: int, message: str, extra: Optional[Dict[str, Any]],
             exc_info: bool = False) -> None:
        context: Dict[str, Any] = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            context.update(extra)
        self.logger.log(level, message, extra=context, exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, extra)

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = True
    ) -> None:
        """Log at ERROR, attaching the active traceback unless ``exc_info`` is False."""
        self._log(logging.ERROR, message, extra, exc_info)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Return a :class:`CorrelationLogger` for ``name``."""
    return CorrelationLogger(name, correlation_id, component)
