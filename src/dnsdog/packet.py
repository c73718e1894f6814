"""
Captured DNS packets and lazily decoded DNS messages
"""

import socket
import struct
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Union

import dpkt

from . import constants
from .codes import op_code, query_type, response_code
from .exceptions import DecodeError

DNS_HEADER_LEN = 12

# dpkt raises more than UnpackError on truncated or garbled records
_DECODE_ERRORS = (dpkt.UnpackError, struct.error, IndexError, ValueError, UnicodeDecodeError)


class Question(NamedTuple):
    name: str
    rtype: int


class Answer(NamedTuple):
    name: str
    rtype: int


@dataclass(slots=True)
class DNSMessage:
    """The header fields and records dnsdog reads from a DNS message"""

    id: int
    is_response: bool
    opcode: int
    rcode: int
    questions: List[Question] = field(default_factory=list)
    answers: List[Answer] = field(default_factory=list)

    @classmethod
    def from_dpkt(cls, dns: dpkt.dns.DNS) -> 'DNSMessage':
        return cls(
            id=dns.id,
            is_response=dns.qr == dpkt.dns.DNS_R,
            opcode=dns.opcode,
            rcode=dns.rcode,
            questions=[Question(_decode_name(q.name), q.type) for q in dns.qd],
            answers=[Answer(_decode_name(rr.name), rr.type) for rr in dns.an],
        )

    def __str__(self) -> str:
        if self.is_response:
            kind = f"Response ({response_code(self.rcode)})"
        else:
            kind = f"Query ({op_code(self.opcode)})"
        qs = " ".join(f"{q.name} {query_type(q.rtype)}" for q in self.questions)
        return f"DNS {kind} ID:{self.id} {qs}".rstrip()


def _decode_name(name: Union[str, bytes]) -> str:
    return name if isinstance(name, str) else name.decode('utf-8', errors='replace')


def decode_message(data: bytes) -> DNSMessage:
    """Decode DNS wire format. Raises DecodeError if ``data`` is not DNS."""
    if len(data) < DNS_HEADER_LEN:
        raise DecodeError(f"payload too short for a DNS header ({len(data)} bytes)")
    try:
        dns = dpkt.dns.DNS(data)
        return DNSMessage.from_dpkt(dns)
    except _DECODE_ERRORS as e:
        raise DecodeError(f"malformed DNS payload: {e!r}") from e


@dataclass(slots=True)
class CapturedPacket:
    """A UDP datagram seen on the DNS port, with its message decoded on demand"""

    timestamp: float
    src_ip: str
    dst_ip: str
    src_port: int
    dst_port: int
    payload: bytes = field(repr=False)

    _message: Optional[DNSMessage] = field(default=None, init=False, repr=False)
    _decode_error: Optional[str] = field(default=None, init=False, repr=False)

    @property
    def message(self) -> Optional[DNSMessage]:
        """Decoded DNS message, or None if the payload is not DNS"""
        if self._message is None and self._decode_error is None:
            try:
                self._message = decode_message(self.payload)
            except DecodeError as e:
                self._decode_error = str(e)
        return self._message

    @property
    def decode_error(self) -> Optional[str]:
        return self._decode_error

    def __str__(self) -> str:
        return f"{self.timestamp:.6f} {self.src_ip}:{self.src_port} -> " \
               f"{self.dst_ip}:{self.dst_port} UDP len={len(self.payload)}"


class PacketAnalyzer:
    """Extracts DNS-port UDP datagrams from link-layer frames using dpkt"""

    def __init__(self, dns_port: int = constants.DEFAULT_DNS_PORT):
        self.dns_port = dns_port
        self.stats = {
            'total_packets': 0,
            'dns_packets': 0,
            'ignored_packets': 0,
            'parse_errors': 0,
        }

    def analyze_packet(self, timestamp: float, frame: bytes,
                       datalink: int = constants.DLT_EN10MB) -> Optional[CapturedPacket]:
        self.stats['total_packets'] += 1
        try:
            ip = self._network_layer(frame, datalink)
        except (dpkt.UnpackError, struct.error, IndexError):
            self.stats['parse_errors'] += 1
            return None

        if isinstance(ip, dpkt.ip.IP):
            family = socket.AF_INET
        elif isinstance(ip, dpkt.ip6.IP6):
            family = socket.AF_INET6
        else:
            self.stats['ignored_packets'] += 1
            return None

        udp = ip.data
        if not isinstance(udp, dpkt.udp.UDP):
            self.stats['ignored_packets'] += 1
            return None
        if self.dns_port not in (udp.sport, udp.dport):
            self.stats['ignored_packets'] += 1
            return None

        self.stats['dns_packets'] += 1
        return CapturedPacket(
            timestamp=timestamp,
            src_ip=socket.inet_ntop(family, ip.src),
            dst_ip=socket.inet_ntop(family, ip.dst),
            src_port=udp.sport,
            dst_port=udp.dport,
            payload=bytes(udp.data),
        )

    @staticmethod
    def _network_layer(frame: bytes, datalink: int) -> Any:
        if datalink == constants.DLT_EN10MB:
            return dpkt.ethernet.Ethernet(frame).data
        if datalink == constants.DLT_LINUX_SLL:
            return dpkt.sll.SLL(frame).data
        if datalink in (constants.DLT_NULL, constants.DLT_LOOP):
            return dpkt.loopback.Loopback(frame).data
        if datalink in (constants.DLT_RAW, constants.LINKTYPE_RAW):
            if frame and frame[0] >> 4 == 6:
                return dpkt.ip6.IP6(frame)
            return dpkt.ip.IP(frame)
        raise dpkt.UnpackError(f"unsupported datalink type {datalink}")

    def get_stats(self) -> Dict[str, Any]:
        stats = self.stats.copy()
        if stats['total_packets'] > 0:
            stats['dns_packet_ratio'] = stats['dns_packets'] / stats['total_packets']
            stats['error_ratio'] = stats['parse_errors'] / stats['total_packets']
        return stats
