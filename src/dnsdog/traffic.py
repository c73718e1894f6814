"""
Packet sources - live capture with pcapy and pcap file replay with dpkt
"""

import threading
from pathlib import Path
from typing import Iterator, Union

import dpkt
import pcapy

from .config import CaptureConfig
from .constants import DEFAULT_DNS_PORT
from .exceptions import CaptureError
from .packet import CapturedPacket, PacketAnalyzer
from .utils.logger import get_logger

PCAPNG_MAGIC = b'\x0a\x0d\x0d\x0a'


class LiveCapture:
    """Live capture on one interface.

    Iterating yields DNS-port UDP packets until ``close`` is called. Read
    timeouts are retried; any other capture failure raises CaptureError.
    """

    def __init__(self, config: CaptureConfig):
        self.config = config
        self.logger = get_logger(__name__)
        self.analyzer = PacketAnalyzer(dns_port=config.dns_port)
        self.pcap_handle = None
        self.datalink = None
        self.closed = threading.Event()

    def open(self) -> None:
        if self.pcap_handle is not None:
            return
        try:
            self.pcap_handle = pcapy.open_live(
                self.config.interface, self.config.snaplen,
                self.config.promiscuous, self.config.timeout_ms
            )
            self.pcap_handle.setfilter(self.config.bpf_filter)
            self.datalink = self.pcap_handle.datalink()
        except pcapy.PcapError as e:
            raise CaptureError(f"Failed to initialize packet capture on {self.config.interface}: {e}") from e
        self.logger.info(f"Initialized capture on {self.config.interface} with filter: {self.config.bpf_filter}")

    def close(self) -> None:
        """Stop the capture; a pending iteration ends after its current read."""
        self.closed.set()

    def _release(self) -> None:
        handle, self.pcap_handle = self.pcap_handle, None
        if handle is not None and hasattr(handle, 'close'):
            handle.close()

    def __iter__(self) -> Iterator[CapturedPacket]:
        self.open()
        try:
            while not self.closed.is_set():
                try:
                    header, frame = self.pcap_handle.next()
                except pcapy.PcapError as e:
                    # open_live timeouts surface as errors on some platforms
                    if "timed out" in str(e):
                        continue
                    raise CaptureError(f"Capture on {self.config.interface} failed: {e}") from e
                if header is None:
                    continue

                sec, usec = header.getts()
                packet = self.analyzer.analyze_packet(sec + usec * 1e-6, frame, self.datalink)
                if packet is not None:
                    yield packet
        finally:
            self._release()
            self.logger.info(f"Capture on {self.config.interface} closed: {self.analyzer.get_stats()}")

    def __enter__(self) -> 'LiveCapture':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        self._release()


class OfflineCapture:
    """Replays a pcap or pcapng file; iteration ends at end of file."""

    def __init__(self, path: Union[str, Path], dns_port: int = DEFAULT_DNS_PORT):
        self.path = Path(path)
        self.logger = get_logger(__name__)
        self.analyzer = PacketAnalyzer(dns_port=dns_port)
        self.closed = threading.Event()

    def close(self) -> None:
        self.closed.set()

    def _reader(self, f):
        magic = f.read(4)
        f.seek(0)
        try:
            if magic == PCAPNG_MAGIC:
                return dpkt.pcapng.Reader(f)
            return dpkt.pcap.Reader(f)
        except (ValueError, dpkt.UnpackError) as e:
            raise CaptureError(f"{self.path} is not a capture file: {e}") from e

    def __iter__(self) -> Iterator[CapturedPacket]:
        try:
            f = open(self.path, 'rb')
        except OSError as e:
            raise CaptureError(f"Cannot open capture file {self.path}: {e}") from e

        with f:
            reader = self._reader(f)
            datalink = reader.datalink()
            self.logger.info(f"Replaying {self.path} (datalink {datalink})")
            for ts, frame in reader:
                if self.closed.is_set():
                    break
                packet = self.analyzer.analyze_packet(float(ts), frame, datalink)
                if packet is not None:
                    yield packet

        self.logger.info(f"Finished {self.path}: {self.analyzer.get_stats()}")

    def __enter__(self) -> 'OfflineCapture':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def open_capture(config: CaptureConfig) -> Union[LiveCapture, OfflineCapture]:
    """Replay ``config.pcap_file`` if set, otherwise capture live on ``config.interface``."""
    if config.pcap_file:
        return OfflineCapture(config.pcap_file, dns_port=config.dns_port)
    if not config.interface:
        raise CaptureError("No interface configured for live capture")
    return LiveCapture(config)
