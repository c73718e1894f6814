"""Packet builders and test doubles shared by the test modules"""

import socket
from typing import Iterable, List, Tuple

import dpkt

from dnsdog.packet import CapturedPacket


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSink:
    """Metrics sink that keeps every call"""

    def __init__(self):
        self.calls = []

    def count(self, name, value, tags, sample_rate):
        self.calls.append(('count', name, value, tags, sample_rate))

    def histogram(self, name, value, tags, sample_rate):
        self.calls.append(('histogram', name, value, tags, sample_rate))

    def named(self, name) -> List[tuple]:
        return [c for c in self.calls if c[1] == name]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass


def dns_payload(msg_id: int, is_response: bool = False, opcode: int = 0, rcode: int = 0,
                questions: Iterable[Tuple[str, int]] = (),
                answers: Iterable[Tuple[str, int]] = ()) -> bytes:
    """Build DNS wire bytes with dpkt"""
    dns = dpkt.dns.DNS(id=msg_id)
    dns.qr = dpkt.dns.DNS_R if is_response else dpkt.dns.DNS_Q
    dns.opcode = opcode
    dns.rcode = rcode
    dns.qd = [dpkt.dns.DNS.Q(name=name, type=rtype) for name, rtype in questions]
    rdata = {dpkt.dns.DNS_A: b'\x7f\x00\x00\x01', dpkt.dns.DNS_AAAA: b'\x00' * 15 + b'\x01'}
    dns.an = [
        dpkt.dns.DNS.RR(name=name, type=rtype, ttl=60, rdata=rdata.get(rtype, b'\x00\x00\x00\x00'))
        for name, rtype in answers
    ]
    return bytes(dns)


def make_packet(payload: bytes, timestamp: float = 0.0, is_response: bool = False) -> CapturedPacket:
    if is_response:
        return CapturedPacket(timestamp, "10.0.0.53", "10.0.0.1", 53, 40000, payload)
    return CapturedPacket(timestamp, "10.0.0.1", "10.0.0.53", 40000, 53, payload)


def query_packet(msg_id: int, questions=(("example.com", 1),), opcode: int = 0) -> CapturedPacket:
    return make_packet(dns_payload(msg_id, opcode=opcode, questions=questions))


def reply_packet(msg_id: int, questions=(("example.com", 1),), answers=(), rcode: int = 0) -> CapturedPacket:
    return make_packet(dns_payload(msg_id, is_response=True, rcode=rcode,
                                   questions=questions, answers=answers), is_response=True)


def ethernet_frame(payload: bytes, sport: int = 40000, dport: int = 53,
                   src: str = "10.0.0.1", dst: str = "10.0.0.53") -> bytes:
    return bytes(dpkt.ethernet.Ethernet(src=b'\x02' * 6, dst=b'\x04' * 6,
                                        type=dpkt.ethernet.ETH_TYPE_IP,
                                        data=ipv4_datagram(payload, sport, dport, src, dst)))


def ipv4_datagram(payload: bytes, sport: int = 40000, dport: int = 53,
                  src: str = "10.0.0.1", dst: str = "10.0.0.53") -> dpkt.ip.IP:
    udp = dpkt.udp.UDP(sport=sport, dport=dport, data=payload)
    udp.ulen = len(udp)
    ip = dpkt.ip.IP(src=socket.inet_aton(src), dst=socket.inet_aton(dst),
                    p=dpkt.ip.IP_PROTO_UDP, data=udp)
    ip.len = len(ip)
    return ip
