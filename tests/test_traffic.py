"""Tests for pcap file replay"""

from unittest import mock

import pytest

pcapy = pytest.importorskip("pcapy")

import dpkt  # noqa: E402

from dnsdog.config import CaptureConfig  # noqa: E402
from dnsdog.exceptions import CaptureError  # noqa: E402
from dnsdog.traffic import LiveCapture, OfflineCapture, open_capture  # noqa: E402
from dnsdog.watcher import Watcher  # noqa: E402
from tests.helpers import dns_payload, ethernet_frame  # noqa: E402


def write_pcap(path, frames):
    with open(path, 'wb') as f:
        writer = dpkt.pcap.Writer(f)
        for ts, frame in frames:
            writer.writepkt(frame, ts=ts)
    return path


class TestOfflineCapture:

    def test_replays_dns_packets(self, tmp_path):
        path = write_pcap(tmp_path / "dns.pcap", [
            (1.0, ethernet_frame(dns_payload(1, questions=[("example.com", 1)]))),
            (1.1, ethernet_frame(b"not dns at all", sport=1234, dport=80)),
            (1.2, ethernet_frame(dns_payload(1, is_response=True), sport=53, dport=40000)),
        ])

        packets = list(OfflineCapture(path))

        assert len(packets) == 2
        assert packets[0].timestamp == pytest.approx(1.0)
        assert packets[0].message.is_response is False
        assert packets[1].message.is_response is True

    def test_watch_ends_with_file(self, tmp_path, sink, clock):
        path = write_pcap(tmp_path / "dns.pcap", [
            (1.0, ethernet_frame(dns_payload(3, questions=[("example.com", 1)]))),
            (1.0, ethernet_frame(b"\x00\x01\x02", dport=53)),
        ])
        watcher = Watcher(sink, clock=clock)
        watcher.watch(OfflineCapture(path))

        assert len(sink.named("dns.query")) == 1
        assert watcher.get_stats()['skipped'] == 1

    def test_close_stops_replay(self, tmp_path):
        path = write_pcap(tmp_path / "dns.pcap", [
            (float(i), ethernet_frame(dns_payload(i))) for i in range(5)
        ])
        capture = OfflineCapture(path)
        seen = []
        for packet in capture:
            seen.append(packet)
            capture.close()
        assert len(seen) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(CaptureError):
            list(OfflineCapture(tmp_path / "missing.pcap"))

    def test_not_a_capture_file(self, tmp_path):
        path = tmp_path / "junk.pcap"
        path.write_bytes(b"\x00" * 64)
        with pytest.raises(CaptureError):
            list(OfflineCapture(path))


class FakeHeader:

    def __init__(self, sec=100, usec=250000):
        self.sec = sec
        self.usec = usec

    def getts(self):
        return self.sec, self.usec


def fake_handle(reads):
    handle = mock.MagicMock()
    handle.datalink.return_value = dpkt.pcap.DLT_EN10MB
    handle.next.side_effect = reads
    return handle


class TestLiveCapture:

    def test_retries_timeouts_then_fails(self, sink, clock):
        handle = fake_handle([
            pcapy.PcapError("read timed out"),
            (None, b""),
            (FakeHeader(), ethernet_frame(dns_payload(7, questions=[("example.com", 1)]))),
            pcapy.PcapError("The interface went down"),
        ])
        capture = LiveCapture(CaptureConfig(interface="eth9"))
        watcher = Watcher(sink, clock=clock)

        with mock.patch("dnsdog.traffic.pcapy.open_live", return_value=handle) as open_live:
            with pytest.raises(CaptureError, match="went down"):
                watcher.watch(capture)

        open_live.assert_called_once_with("eth9", 1600, True, 100)
        handle.setfilter.assert_called_once_with("udp port 53")
        assert len(sink.named("dns.query")) == 1
        assert watcher.get_stats()['packets'] == 1
        assert handle.next.call_count == 4
        handle.close.assert_called_once_with()
        assert capture.pcap_handle is None

    def test_packet_timestamp_from_header(self):
        handle = fake_handle([
            (FakeHeader(100, 250000), ethernet_frame(dns_payload(8))),
            pcapy.PcapError("done"),
        ])
        capture = LiveCapture(CaptureConfig(interface="eth9"))

        packets = []
        with mock.patch("dnsdog.traffic.pcapy.open_live", return_value=handle):
            with pytest.raises(CaptureError):
                for packet in capture:
                    packets.append(packet)

        assert [p.timestamp for p in packets] == [pytest.approx(100.25)]

    def test_close_ends_iteration(self):
        frame = ethernet_frame(dns_payload(9))
        handle = fake_handle(lambda: (FakeHeader(), frame))
        capture = LiveCapture(CaptureConfig(interface="eth9"))

        seen = []
        with mock.patch("dnsdog.traffic.pcapy.open_live", return_value=handle):
            for packet in capture:
                seen.append(packet)
                capture.close()

        assert len(seen) == 1
        handle.close.assert_called_once_with()
        assert capture.pcap_handle is None

    def test_open_failure(self):
        with mock.patch("dnsdog.traffic.pcapy.open_live",
                        side_effect=pcapy.PcapError("no such device")):
            with pytest.raises(CaptureError, match="eth9"):
                list(LiveCapture(CaptureConfig(interface="eth9")))


class TestOpenCapture:

    def test_pcap_file_selects_offline(self, tmp_path):
        capture = open_capture(CaptureConfig(pcap_file=str(tmp_path / "x.pcap")))
        assert isinstance(capture, OfflineCapture)

    def test_interface_selects_live(self):
        assert isinstance(open_capture(CaptureConfig(interface="lo")), LiveCapture)

    def test_requires_interface(self):
        with pytest.raises(CaptureError):
            open_capture(CaptureConfig(interface=None))
