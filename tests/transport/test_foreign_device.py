"""Tests for the foreign device manager (transport/foreign_device.py)."""

from __future__ import annotations

import logging

import pytest

from bac_discover.network.address import BIPAddress
from bac_discover.transport.bvll import decode_bvll
from bac_discover.transport.foreign_device import ForeignDeviceManager
from bac_discover.types.enums import BvlcFunction, BvlcResultCode

BBMD_ADDR = BIPAddress(host="192.168.1.1", port=47808)
LOCAL_ADDR = BIPAddress(host="10.0.0.50", port=47808)
ACK = (0).to_bytes(2, "big")
NAK = BvlcResultCode.REGISTER_FOREIGN_DEVICE_NAK.to_bytes(2, "big")


class SentCollector:
    """Collects sent messages for test assertions."""

    def __init__(self) -> None:
        self.sent: list[tuple[bytes, BIPAddress]] = []

    def send(self, data: bytes, dest: BIPAddress) -> None:
        self.sent.append((data, dest))

    def functions(self) -> list[BvlcFunction]:
        return [decode_bvll(data).function for data, _ in self.sent]


@pytest.fixture
def collector() -> SentCollector:
    return SentCollector()


@pytest.fixture
def fd_mgr(collector: SentCollector) -> ForeignDeviceManager:
    return ForeignDeviceManager(
        bbmd_address=BBMD_ADDR,
        ttl=60,
        send_callback=collector.send,
        local_address=LOCAL_ADDR,
    )


class TestProperties:
    def test_initial_state(self, fd_mgr: ForeignDeviceManager):
        assert fd_mgr.bbmd_address == BBMD_ADDR
        assert fd_mgr.ttl == 60
        assert fd_mgr.is_registered is False
        assert fd_mgr.last_result is None

    def test_renewal_interval_is_half_ttl(self, fd_mgr: ForeignDeviceManager):
        assert fd_mgr.renewal_interval == 30

    def test_renewal_interval_at_least_one(self, collector: SentCollector):
        fd = ForeignDeviceManager(BBMD_ADDR, 1, collector.send)
        assert fd.renewal_interval == 1

    @pytest.mark.parametrize("ttl", [0, 65536])
    def test_invalid_ttl(self, collector: SentCollector, ttl: int):
        with pytest.raises(ValueError, match="TTL"):
            ForeignDeviceManager(BBMD_ADDR, ttl, collector.send)


class TestRegistration:
    def test_register_sends_ttl(self, fd_mgr: ForeignDeviceManager, collector: SentCollector):
        fd_mgr.register()

        assert len(collector.sent) == 1
        data, dest = collector.sent[0]
        assert dest == BBMD_ADDR
        msg = decode_bvll(data)
        assert msg.function == BvlcFunction.REGISTER_FOREIGN_DEVICE
        assert int.from_bytes(msg.data, "big") == 60

    def test_tick_renews_at_half_ttl(
        self, fd_mgr: ForeignDeviceManager, collector: SentCollector
    ):
        fd_mgr.register()
        for _ in range(29):
            fd_mgr.tick(1)
        assert len(collector.sent) == 1
        fd_mgr.tick(1)
        assert len(collector.sent) == 2
        for _ in range(30):
            fd_mgr.tick(1)
        assert len(collector.sent) == 3

    def test_tick_ignores_zero(self, fd_mgr: ForeignDeviceManager, collector: SentCollector):
        fd_mgr.tick(0)
        assert collector.sent == []

    def test_send_failure_logged(self, caplog: pytest.LogCaptureFixture):
        def failing_send(data: bytes, dest: BIPAddress) -> None:
            raise OSError("network unreachable")

        fd = ForeignDeviceManager(BBMD_ADDR, 60, failing_send)
        with caplog.at_level(logging.WARNING):
            fd.register()
        assert "Failed to send foreign device registration" in caplog.text


class TestBvlcResult:
    def test_ack_registers(self, fd_mgr: ForeignDeviceManager):
        fd_mgr.handle_bvlc_result(ACK)
        assert fd_mgr.is_registered
        assert fd_mgr.last_result == BvlcResultCode.SUCCESSFUL_COMPLETION

    def test_nak_clears_registration(self, fd_mgr: ForeignDeviceManager):
        fd_mgr.handle_bvlc_result(ACK)
        fd_mgr.handle_bvlc_result(NAK)
        assert not fd_mgr.is_registered
        assert fd_mgr.last_result == BvlcResultCode.REGISTER_FOREIGN_DEVICE_NAK

    def test_unknown_code_kept_as_int(self, fd_mgr: ForeignDeviceManager):
        fd_mgr.handle_bvlc_result(b"\x12\x34")
        assert fd_mgr.last_result == 0x1234

    def test_short_payload_ignored(self, fd_mgr: ForeignDeviceManager):
        fd_mgr.handle_bvlc_result(b"\x00")
        assert fd_mgr.last_result is None


class TestDistributeBroadcast:
    def test_requires_registration(self, fd_mgr: ForeignDeviceManager):
        with pytest.raises(RuntimeError, match="Not registered"):
            fd_mgr.send_distribute_broadcast(b"\x01\x00")

    def test_sends_to_bbmd(self, fd_mgr: ForeignDeviceManager, collector: SentCollector):
        fd_mgr.handle_bvlc_result(ACK)
        fd_mgr.send_distribute_broadcast(b"\x01\x00\x10\x08")
        data, dest = collector.sent[0]
        assert dest == BBMD_ADDR
        msg = decode_bvll(data)
        assert msg.function == BvlcFunction.DISTRIBUTE_BROADCAST_TO_NETWORK
        assert msg.data == b"\x01\x00\x10\x08"


class TestDeregister:
    def test_sends_delete_when_registered(
        self, fd_mgr: ForeignDeviceManager, collector: SentCollector
    ):
        fd_mgr.handle_bvlc_result(ACK)
        fd_mgr.deregister()
        assert collector.functions() == [BvlcFunction.DELETE_FOREIGN_DEVICE_TABLE_ENTRY]
        assert decode_bvll(collector.sent[0][0]).data == LOCAL_ADDR.encode()
        assert not fd_mgr.is_registered

    def test_noop_when_not_registered(
        self, fd_mgr: ForeignDeviceManager, collector: SentCollector
    ):
        fd_mgr.deregister()
        assert collector.sent == []
