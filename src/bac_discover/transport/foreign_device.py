"""Foreign device registration per Annex J.5-J.6.

Provides ForeignDeviceManager for registering with a remote BBMD,
re-registering from the caller's maintenance clock, and sending
broadcasts through the BBMD.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bac_discover.transport.bvll import encode_bvll
from bac_discover.types.enums import BvlcFunction, BvlcResultCode

if TYPE_CHECKING:
    from collections.abc import Callable

    from bac_discover.network.address import BIPAddress

logger = logging.getLogger(__name__)


class ForeignDeviceManager:
    """Keeps this station registered with a BBMD as a foreign device.

    There is no background task: the owner calls :meth:`tick` with the
    seconds elapsed since the previous call (the sessions do this once a
    second from their maintenance timer) and the manager re-registers
    once half the TTL has passed.

    Usage::

        fd = ForeignDeviceManager(
            bbmd_address=BIPAddress("192.168.1.1", 47808),
            ttl=60,
            send_callback=transport_send,
        )
        fd.register()
        ...
        fd.tick(1)
    """

    def __init__(
        self,
        bbmd_address: BIPAddress,
        ttl: int,
        send_callback: Callable[[bytes, BIPAddress], None],
        local_address: BIPAddress | None = None,
    ) -> None:
        """Initialize the manager.

        :param bbmd_address: B/IP address of the BBMD to register with.
        :param ttl: Time-to-Live in seconds (1-65535).
        :param send_callback: Called with ``(raw_bytes, destination)`` to
            send a UDP datagram.
        :param local_address: This device's B/IP address, used to delete
            the registration on :meth:`deregister`. ``None`` skips the
            delete message.
        :raises ValueError: If *ttl* is out of range.
        """
        if not 1 <= ttl <= 0xFFFF:
            msg = f"TTL must be 1-65535 seconds, got {ttl}"
            raise ValueError(msg)
        self._bbmd_address = bbmd_address
        self._ttl = ttl
        self._send = send_callback
        self._local_address = local_address
        self._registered = False
        self._last_result: BvlcResultCode | int | None = None
        self._elapsed = 0
        self._registration_bvll = encode_bvll(
            BvlcFunction.REGISTER_FOREIGN_DEVICE, ttl.to_bytes(2, "big")
        )

    @property
    def bbmd_address(self) -> BIPAddress:
        """The BBMD this device registers with."""
        return self._bbmd_address

    @property
    def ttl(self) -> int:
        return self._ttl

    @property
    def is_registered(self) -> bool:
        """Whether the BBMD acknowledged the last registration."""
        return self._registered

    @property
    def last_result(self) -> BvlcResultCode | int | None:
        """The last BVLC-Result code received from the BBMD."""
        return self._last_result

    @property
    def renewal_interval(self) -> int:
        """Seconds between registrations: half the TTL, at least one."""
        return max(1, self._ttl // 2)

    def register(self) -> None:
        """Send a Register-Foreign-Device message and restart the renewal clock."""
        self._elapsed = 0
        try:
            self._send(self._registration_bvll, self._bbmd_address)
        except OSError:
            logger.warning("Failed to send foreign device registration", exc_info=True)
            return
        logger.debug(
            "Sent Register-Foreign-Device to %s:%d (TTL=%ds)",
            self._bbmd_address.host,
            self._bbmd_address.port,
            self._ttl,
        )

    def tick(self, seconds: int) -> None:
        """Advance the renewal clock, re-registering at TTL/2 (Annex J.5.2.3)."""
        if seconds <= 0:
            return
        self._elapsed += seconds
        if self._elapsed >= self.renewal_interval:
            self.register()

    def deregister(self) -> None:
        """Ask the BBMD to drop this device's FDT entry, if registered."""
        if not self._registered:
            return
        self._registered = False
        if self._local_address is None:
            return
        bvll = encode_bvll(
            BvlcFunction.DELETE_FOREIGN_DEVICE_TABLE_ENTRY, self._local_address.encode()
        )
        self._send(bvll, self._bbmd_address)
        logger.info(
            "Sent Delete-Foreign-Device-Table-Entry to %s:%d",
            self._bbmd_address.host,
            self._bbmd_address.port,
        )

    def handle_bvlc_result(self, data: bytes) -> None:
        """Process a BVLC-Result received from the BBMD.

        :param data: 2-octet result code payload.
        """
        if len(data) < 2:
            return

        code = int.from_bytes(data[0:2], "big")
        try:
            result: BvlcResultCode | int = BvlcResultCode(code)
        except ValueError:
            result = code
        self._last_result = result

        if result == BvlcResultCode.SUCCESSFUL_COMPLETION:
            if not self._registered:
                logger.info(
                    "Registered as foreign device with BBMD %s:%d (TTL=%ds)",
                    self._bbmd_address.host,
                    self._bbmd_address.port,
                    self._ttl,
                )
            self._registered = True
            return

        name = result.name if isinstance(result, BvlcResultCode) else f"{code:#06x}"
        logger.warning(
            "BVLC-Result %s from BBMD %s:%d",
            name,
            self._bbmd_address.host,
            self._bbmd_address.port,
        )
        if result == BvlcResultCode.REGISTER_FOREIGN_DEVICE_NAK:
            self._registered = False

    def send_distribute_broadcast(self, npdu: bytes) -> None:
        """Broadcast *npdu* through the BBMD with Distribute-Broadcast-To-Network.

        :raises RuntimeError: If not registered with the BBMD.
        """
        if not self._registered:
            msg = "Not registered as a foreign device"
            raise RuntimeError(msg)
        bvll = encode_bvll(BvlcFunction.DISTRIBUTE_BROADCAST_TO_NETWORK, npdu)
        self._send(bvll, self._bbmd_address)
