"""
dnsdog - passive DNS monitoring for StatsD

Watches DNS traffic on an interface and reports query, reply and answer
counts plus reply latency to a DogStatsD collector.
"""

__version__ = "0.1.0"

from .cache import CorrelationCache
from .metrics import MetricsSink, StatsdSink
from .packet import CapturedPacket, DNSMessage, decode_message
from .watcher import Watcher

__all__ = [
    "CorrelationCache",
    "MetricsSink",
    "StatsdSink",
    "CapturedPacket",
    "DNSMessage",
    "decode_message",
    "Watcher",
]
