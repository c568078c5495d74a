"""Observability hooks.

Analysis stages stay side-effect free: they report what they did through a
Tracer, which logs at DEBUG level and forwards to an optional caller sink.
"""

import logging
from typing import Any, Callable, Dict, Optional

# (event name, structured fields) -> None
TraceSink = Callable[[str, Dict[str, Any]], None]


class Tracer:
    """Emit structured trace events to a logger and an optional sink."""

    def __init__(self, logger: logging.Logger, sink: Optional[TraceSink] = None):
        self.logger = logger
        self.sink = sink

    def emit(self, event: str, **fields: Any) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            details = ", ".join(f"{k}={v}" for k, v in fields.items())
            self.logger.debug("%s: %s", event, details)
        if self.sink is not None:
            self.sink(event, fields)


class TraceRecorder:
    """A sink that keeps every event in memory, in order."""

    def __init__(self):
        self.events = []

    def __call__(self, event: str, fields: Dict[str, Any]) -> None:
        self.events.append((event, dict(fields)))

    def names(self):
        return [name for name, _ in self.events]

    def last(self, event: str) -> Optional[Dict[str, Any]]:
        for name, fields in reversed(self.events):
            if name == event:
                return fields
        return None


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging with a rich console handler."""
    from rich.logging import RichHandler

    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    # Decoders are chatty at DEBUG
    logging.getLogger("numba").setLevel(logging.WARNING)
