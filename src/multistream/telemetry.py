"""Telemetry - logging and metrics entry point

Log format: [module:stream] msg
Metric examples: layout.op.ok, queue.depth, gesture.timeout, persist.error
"""

import logging

_LOG_FORMAT = "[%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger.

    Args:
        name: module name, usually __name__
    """
    return logging.getLogger(name)


def configure_logging(level: str | None = None) -> None:
    """Install the root handler used by the CLI entry point."""
    from .config import LOG_LEVEL

    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=_LOG_FORMAT)


def format_stream_log(module: str, stream_id: str | None, msg: str) -> str:
    """Format a message scoped to one stream.

    Args:
        module: component tag
        stream_id: stream identifier
        msg: log message

    Returns:
        "[module:stream_id] msg"
    """
    stream = stream_id if stream_id else "unknown"
    return f"[{module}:{stream}] {msg}"


class Metrics:
    """In-memory counter/gauge facade

    Keys are metric names with an optional sorted label suffix.
    """

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}

    def inc(self, name: str, labels: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter.

        Args:
            name: metric name (e.g. "queue.dropped")
            labels: optional labels (e.g. {"op": "add_stream"})
            value: increment, default 1
        """
        key = self._make_key(name, labels)
        self._counters[key] = self._counters.get(key, 0) + value

    def gauge(self, name: str, value: float, labels: dict[str, str] | None = None) -> None:
        """Set a gauge value."""
        key = self._make_key(name, labels)
        self._gauges[key] = value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        key = self._make_key(name, labels)
        return self._counters.get(key, 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        key = self._make_key(name, labels)
        return self._gauges.get(key, 0.0)

    def reset(self) -> None:
        """Clear all metrics (tests)."""
        self._counters.clear()
        self._gauges.clear()

    def _make_key(self, name: str, labels: dict[str, str] | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_all_counters(self) -> dict[str, int]:
        return dict(self._counters)

    def get_all_gauges(self) -> dict[str, float]:
        return dict(self._gauges)


metrics = Metrics()
