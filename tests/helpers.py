"""Fakes shared by the session and CLI tests."""

from __future__ import annotations

from bac_discover.app.codec import encode_i_am
from bac_discover.encoding.apdu import AbortPDU, RejectPDU, encode_apdu
from bac_discover.network.address import LOCAL_BROADCAST, BACnetAddress
from bac_discover.network.npdu import NPDU, encode_npdu
from bac_discover.types.enums import AbortReason, RejectReason, Segmentation

MAC_A = bytes([10, 0, 0, 1, 0xBA, 0xC0])
MAC_B = bytes([10, 0, 0, 2, 0xBA, 0xC0])


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDatalink:
    """In-memory datalink.

    Each ``receive`` advances the clock by the poll timeout and returns the
    next scripted reply (``None`` once the script runs out).
    """

    def __init__(self, clock: FakeClock, replies: list[tuple[bytes, bytes] | None] | None = None):
        self.clock = clock
        self.replies = list(replies or [])
        self.sent: list[tuple[BACnetAddress, bytes]] = []
        self.maintenance_calls: list[int] = []
        self.polls = 0

    def send_pdu(self, destination: BACnetAddress, npdu: bytes) -> None:
        self.sent.append((destination, npdu))

    def receive(self, timeout: float) -> tuple[bytes, bytes] | None:
        self.polls += 1
        self.clock.advance(timeout)
        if self.replies:
            return self.replies.pop(0)
        return None

    def maintenance(self, seconds: int) -> None:
        self.maintenance_calls.append(seconds)


def i_am_npdu(
    device_id: int,
    max_apdu: int = 1476,
    segmentation: Segmentation = Segmentation.NONE,
    vendor_id: int = 260,
) -> bytes:
    return encode_i_am(LOCAL_BROADCAST, device_id, max_apdu, segmentation, vendor_id)


def reject_npdu(reason: RejectReason | int = RejectReason.UNRECOGNIZED_SERVICE) -> bytes:
    return encode_npdu(NPDU(payload=encode_apdu(RejectPDU(invoke_id=1, reject_reason=reason))))


def abort_npdu(reason: AbortReason | int = AbortReason.OTHER) -> bytes:
    apdu = encode_apdu(AbortPDU(sent_by_server=True, invoke_id=1, abort_reason=reason))
    return encode_npdu(NPDU(payload=apdu))
