"""
Watcher - turns DNS packets into metrics and times replies against queries
"""

import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import constants
from .cache import CorrelationCache
from .codes import op_code, query_type, response_code
from .metrics import MetricsSink
from .packet import CapturedPacket, DNSMessage
from .utils.logger import get_logger

SAMPLE_RATE = constants.DEFAULT_SAMPLE_RATE


class Watcher:
    """Classifies DNS messages and reports them to a metrics sink.

    Queries are remembered in a correlation cache keyed by transaction ID so
    the matching reply can report how long it took. The cache belongs to the
    watcher; nothing else should touch it.
    """

    def __init__(self, sink: MetricsSink,
                 cache: Optional[CorrelationCache] = None,
                 ttl: float = constants.DEFAULT_CACHE_TTL,
                 clock: Callable[[], float] = time.monotonic,
                 include_query: bool = True):
        self.sink = sink
        self.clock = clock
        self.cache = cache if cache is not None else CorrelationCache(ttl=ttl, clock=clock)
        self.include_query = include_query
        self.logger = get_logger(__name__)

        self.running = threading.Event()
        self.stop_requested = threading.Event()
        self._last_skip_report: Optional[float] = None
        self._skips_since_report = 0
        self.stats_lock = threading.Lock()
        self.stats = {
            'packets': 0,
            'queries': 0,
            'replies': 0,
            'matched_replies': 0,
            'unmatched_replies': 0,
            'skipped': 0,
            'sink_errors': 0,
        }

    def watch(self, packets: Iterable[CapturedPacket]) -> None:
        """Handle packets in order until the source is exhausted or ``stop`` is called.

        Errors raised by the packet source end the loop and propagate.
        """
        if self.stop_requested.is_set():
            self.logger.info("Stop requested before watching started")
            return

        self.running.set()
        self.logger.info("Watching for DNS packets")
        try:
            for packet in packets:
                self.handle_packet(packet)
                if self.stop_requested.is_set():
                    break
        finally:
            self.running.clear()
            self.logger.info(f"Watch loop finished: {self.get_stats()}")

    def stop(self) -> None:
        """Ask the loop to return once the current packet is handled.

        Also honoured when called before ``watch`` starts.
        """
        self.stop_requested.set()

    def handle_packet(self, packet: CapturedPacket) -> None:
        with self.stats_lock:
            self.stats['packets'] += 1

        message = packet.message
        if message is None:
            with self.stats_lock:
                self.stats['skipped'] += 1
            self._log_skip(packet)
            return

        self.handle_message(message)

    def handle_message(self, message: DNSMessage) -> None:
        if message.is_response:
            self._handle_reply(message)
        else:
            self._handle_query(message)

    def _handle_reply(self, message: DNSMessage) -> None:
        tags = [f"response_code:{response_code(message.rcode)}"]
        self._emit(self.sink.count, constants.METRIC_REPLY, 1, tags, SAMPLE_RATE)

        start = self.cache.get(str(message.id))
        if start is not None:
            elapsed_ms = (self.clock() - start) * 1000.0
            self._emit(self.sink.histogram, constants.METRIC_REPLY_TIME, elapsed_ms, tags, SAMPLE_RATE)
            matched = 'matched_replies'
        else:
            self.logger.debug(f"{message.id} not in cache")
            matched = 'unmatched_replies'

        for q in message.questions:
            self._emit(self.sink.count, constants.METRIC_REPLY_QUESTION, 1,
                       tags + self._record_tags(q.name, q.rtype), SAMPLE_RATE)

        for a in message.answers:
            self._emit(self.sink.count, constants.METRIC_ANSWER, 1,
                       tags + self._record_tags(a.name, a.rtype), SAMPLE_RATE)

        with self.stats_lock:
            self.stats['replies'] += 1
            self.stats[matched] += 1

    def _handle_query(self, message: DNSMessage) -> None:
        # Stored before anything is emitted so a fast reply can find it
        self.cache.put(str(message.id), self.clock())

        tags = [f"op_code:{op_code(message.opcode)}"]
        self._emit(self.sink.count, constants.METRIC_QUERY, 1, tags, SAMPLE_RATE)

        for q in message.questions:
            self._emit(self.sink.count, constants.METRIC_QUESTION, 1,
                       tags + self._record_tags(q.name, q.rtype), SAMPLE_RATE)

        with self.stats_lock:
            self.stats['queries'] += 1

    def _record_tags(self, name: str, rtype: int) -> List[str]:
        tags = [f"query_type:{query_type(rtype)}"]
        if self.include_query:
            tags.insert(0, f"query:{name}")
        return tags

    def _emit(self, send: Callable[..., Any], name: str, value: float,
              tags: List[str], sample_rate: float) -> None:
        try:
            send(name, value, tags, sample_rate)
        except Exception as e:
            with self.stats_lock:
                self.stats['sink_errors'] += 1
            self.logger.debug(f"Failed to send {name}: {e}")

    def _log_skip(self, packet: CapturedPacket) -> None:
        now = self.clock()
        self._skips_since_report += 1
        if self._last_skip_report is None or now - self._last_skip_report >= constants.SKIP_LOG_INTERVAL:
            self.logger.info(f"packet error: {packet} ({packet.decode_error}), "
                             f"{self._skips_since_report} skipped since last report")
            self._last_skip_report = now
            self._skips_since_report = 0
        else:
            self.logger.debug(f"packet error: {packet} ({packet.decode_error})")

    def get_stats(self) -> Dict[str, Any]:
        with self.stats_lock:
            stats = self.stats.copy()
        stats['pending_queries'] = len(self.cache)
        return stats
