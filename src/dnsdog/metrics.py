"""
Metric sinks - where the watcher sends its counts and histograms
"""

from typing import List, Optional, Protocol

from datadog.dogstatsd import DogStatsd

from .constants import DEFAULT_STATSD_PORT
from .utils.logger import get_logger
from .utils.network import parse_address


class MetricsSink(Protocol):
    """The two calls the watcher makes. Failures must not reach the caller."""

    def count(self, name: str, value: int, tags: List[str], sample_rate: float) -> None: ...

    def histogram(self, name: str, value: float, tags: List[str], sample_rate: float) -> None: ...


class StatsdSink:
    """Best-effort DogStatsD client.

    Send errors are logged at debug level and dropped; delivery and any
    buffering are entirely the client's business.
    """

    def __init__(self, host: str, port: int = DEFAULT_STATSD_PORT,
                 namespace: Optional[str] = None,
                 constant_tags: Optional[List[str]] = None,
                 buffered: bool = False,
                 client: Optional[DogStatsd] = None):
        self.host = host
        self.port = port
        self.logger = get_logger(__name__)
        self.client = client or DogStatsd(
            host=host,
            port=port,
            namespace=namespace,
            constant_tags=constant_tags,
            disable_buffering=not buffered,
        )
        self.errors = 0

    @classmethod
    def from_address(cls, address: str, **kwargs) -> 'StatsdSink':
        host, port = parse_address(address, DEFAULT_STATSD_PORT)
        return cls(host, port, **kwargs)

    def count(self, name: str, value: int, tags: List[str], sample_rate: float) -> None:
        try:
            self.client.increment(name, value, tags=tags, sample_rate=sample_rate)
        except Exception as e:
            self._dropped(name, e)

    def histogram(self, name: str, value: float, tags: List[str], sample_rate: float) -> None:
        try:
            self.client.histogram(name, value, tags=tags, sample_rate=sample_rate)
        except Exception as e:
            self._dropped(name, e)

    def _dropped(self, name: str, error: Exception) -> None:
        self.errors += 1
        self.logger.debug(f"Dropped metric {name}: {error}")

    def close(self) -> None:
        try:
            self.client.flush()
            self.client.close_socket()
        except Exception as e:
            self.logger.debug(f"Error closing statsd client: {e}")

    def __enter__(self) -> 'StatsdSink':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"StatsdSink({self.host}:{self.port})"
