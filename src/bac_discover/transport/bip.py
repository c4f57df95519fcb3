"""Blocking BACnet/IP transport over UDP per Annex J."""

from __future__ import annotations

import logging
import socket
from typing import TYPE_CHECKING

from bac_discover.errors import TransportError
from bac_discover.network.address import DEFAULT_PORT, BIPAddress
from bac_discover.transport.bvll import decode_bvll, encode_bvll
from bac_discover.transport.foreign_device import ForeignDeviceManager
from bac_discover.types.enums import BvlcFunction

if TYPE_CHECKING:
    from types import TracebackType

    from bac_discover.network.address import BACnetAddress

logger = logging.getLogger(__name__)

MAX_DATAGRAM = 1506  # 1497-octet NPDU + BVLL header and forwarding address


def _resolve_local_ip() -> str:
    """Resolve the local machine's outgoing IP address.

    Uses a UDP connect to a non-routable address to pick the outgoing
    interface. Falls back to ``127.0.0.1``. No traffic is sent.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            ip: str = s.getsockname()[0]
            return ip
    except OSError:
        return "127.0.0.1"


class BIPTransport:
    """BACnet/IP datalink on a blocking UDP socket.

    Implements :class:`~bac_discover.transport.port.Datalink`. Use it as a
    context manager so the socket is closed (and any foreign-device
    registration deleted) when discovery finishes::

        with BIPTransport(port=47808) as link:
            session = DiscoverySession(config, link)
            session.run()
    """

    def __init__(
        self,
        interface: str = "0.0.0.0",
        port: int = DEFAULT_PORT,
        broadcast_address: str = "255.255.255.255",
    ) -> None:
        """Initialize the BACnet/IP transport.

        :param interface: Local IP address to bind. ``"0.0.0.0"`` binds all
            interfaces.
        :param port: UDP port number. Defaults to ``0xBAC0`` (47808).
        :param broadcast_address: Directed broadcast address for this subnet.
        """
        self._interface = interface
        self._port = port
        self._broadcast_address = broadcast_address
        self._sock: socket.socket | None = None
        self._local_address: BIPAddress | None = None
        self._foreign_device: ForeignDeviceManager | None = None

    def __enter__(self) -> BIPTransport:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def open(self) -> None:
        """Bind the UDP socket."""
        if self._sock is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind((self._interface, self._port))
        except OSError:
            sock.close()
            raise
        self._sock = sock

        host, port = sock.getsockname()[:2]
        # Resolve the wildcard so our own broadcasts can be recognised
        if host == "0.0.0.0":
            host = _resolve_local_ip()
        self._local_address = BIPAddress(host=host, port=port)
        logger.info("BIPTransport started on %s:%d", host, port)

    def close(self) -> None:
        """Delete any foreign-device registration and close the socket."""
        if self._foreign_device is not None:
            try:
                self._foreign_device.deregister()
            except OSError:
                logger.warning("Failed to delete foreign device registration", exc_info=True)
            self._foreign_device = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.info("BIPTransport stopped")

    @property
    def local_address(self) -> BIPAddress:
        """The local BACnet/IP address of this transport."""
        if self._local_address is None:
            msg = "Transport not started"
            raise TransportError(msg)
        return self._local_address

    @property
    def local_mac(self) -> bytes:
        """The 6-byte MAC address of this port (4-byte IP + 2-byte port)."""
        return self.local_address.encode()

    @property
    def foreign_device(self) -> ForeignDeviceManager | None:
        """The attached foreign device manager, or ``None``."""
        return self._foreign_device

    def attach_foreign_device(self, bbmd_address: BIPAddress, ttl: int) -> ForeignDeviceManager:
        """Register with a BBMD as a foreign device.

        The first Register-Foreign-Device is sent immediately; renewals
        happen from :meth:`maintenance`. BVLC-Results from the BBMD are
        routed to the returned manager.

        :raises TransportError: If the transport is not open.
        :raises RuntimeError: If a foreign device manager is already attached.
        """
        if self._sock is None:
            msg = "Transport not started"
            raise TransportError(msg)
        if self._foreign_device is not None:
            msg = "Foreign device manager already attached"
            raise RuntimeError(msg)

        self._foreign_device = ForeignDeviceManager(
            bbmd_address=bbmd_address,
            ttl=ttl,
            send_callback=self._send_raw,
            local_address=self.local_address,
        )
        logger.info(
            "Registering as foreign device with BBMD %s:%d",
            bbmd_address.host,
            bbmd_address.port,
        )
        self._foreign_device.register()
        return self._foreign_device

    # --- Datalink ---

    def send_pdu(self, destination: BACnetAddress, npdu: bytes) -> None:
        """Send *npdu* to *destination*'s MAC, or broadcast if it has none.

        When registered as a foreign device, broadcasts go through the BBMD
        as Distribute-Broadcast-To-Network per Annex J.5.6.

        :raises ValueError: If a non-empty MAC is not a 6-byte B/IP address.
        :raises TransportError: If the transport is not open.
        """
        if destination.is_broadcast:
            if self._foreign_device is not None and self._foreign_device.is_registered:
                self._foreign_device.send_distribute_broadcast(npdu)
                return
            bvll = encode_bvll(BvlcFunction.ORIGINAL_BROADCAST_NPDU, npdu)
            self._send_raw(bvll, BIPAddress(host=self._broadcast_address, port=self._port))
            return

        if len(destination.mac) != 6:
            msg = f"BACnet/IP MAC must be 6 bytes, got {len(destination.mac)}"
            raise ValueError(msg)
        bvll = encode_bvll(BvlcFunction.ORIGINAL_UNICAST_NPDU, npdu)
        self._send_raw(bvll, BIPAddress.decode(destination.mac))

    def receive(self, timeout: float) -> tuple[bytes, bytes] | None:
        """Wait up to *timeout* seconds for a datagram and unwrap its NPDU.

        :returns: ``(npdu, source_mac)`` for Original-Unicast,
            Original-Broadcast and Forwarded NPDUs, else ``None``.
        :raises TransportError: If the transport is not open.
        """
        if self._sock is None:
            msg = "Transport not started"
            raise TransportError(msg)
        # A zero timeout makes the socket non-blocking
        self._sock.settimeout(max(timeout, 0.0))
        try:
            data, addr = self._sock.recvfrom(MAX_DATAGRAM)
        except (TimeoutError, BlockingIOError):
            return None
        except OSError as exc:
            logger.warning("UDP receive error: %s", exc)
            return None
        return self._on_datagram(data, (addr[0], addr[1]))

    def maintenance(self, seconds: int) -> None:
        """Advance the foreign-device renewal clock."""
        if self._foreign_device is not None:
            self._foreign_device.tick(seconds)

    # --- internals ---

    def _send_raw(self, data: bytes, destination: BIPAddress) -> None:
        if self._sock is None:
            msg = "Transport not started"
            raise TransportError(msg)
        self._sock.sendto(data, (destination.host, destination.port))

    def _on_datagram(self, data: bytes, addr: tuple[str, int]) -> tuple[bytes, bytes] | None:
        try:
            msg = decode_bvll(memoryview(data))
        except (ValueError, IndexError):
            logger.debug("Dropped malformed BVLL from %s:%d", addr[0], addr[1])
            return None

        source = BIPAddress(host=addr[0], port=addr[1])
        # Our own broadcasts come back through the socket
        if source == self._local_address:
            return None

        match msg.function:
            case BvlcFunction.ORIGINAL_UNICAST_NPDU | BvlcFunction.ORIGINAL_BROADCAST_NPDU:
                return msg.data, source.encode()
            case BvlcFunction.FORWARDED_NPDU:
                origin = msg.originating_address or source
                if origin == self._local_address:
                    return None
                return msg.data, origin.encode()
            case BvlcFunction.BVLC_RESULT:
                fd = self._foreign_device
                if fd is not None and source == fd.bbmd_address:
                    fd.handle_bvlc_result(msg.data)
                else:
                    logger.debug("Ignored BVLC-Result from %s:%d", source.host, source.port)
                return None
            case _:
                logger.debug(
                    "Ignored BVLC %s from %s:%d", msg.function.name, source.host, source.port
                )
                return None
