"""Datalink abstraction used by the discovery sessions.

Defines the ``Datalink`` protocol that the BACnet/IP transport satisfies,
so the session state machines can run over any blocking data link (or
an in-memory fake in tests) without coupling to UDP sockets.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from bac_discover.network.address import BACnetAddress


@runtime_checkable
class Datalink(Protocol):
    """Blocking interface to one BACnet data link.

    MAC encoding conventions (by data-link type):
        - BACnet/IP:  6 bytes  (4-byte IPv4 + 2-byte port, big-endian)
        - MS/TP:      1 byte   (station address 0-254)
    """

    def send_pdu(self, destination: BACnetAddress, npdu: bytes) -> None:
        """Send an encoded NPDU.

        An empty ``destination.mac`` asks for a local broadcast; otherwise
        the NPDU is unicast to that MAC.
        """
        ...

    def receive(self, timeout: float) -> tuple[bytes, bytes] | None:
        """Wait up to *timeout* seconds for one inbound NPDU.

        :returns: ``(npdu_bytes, source_mac)``, or ``None`` when nothing
            usable arrived.
        """
        ...

    def maintenance(self, seconds: int) -> None:
        """Advance periodic link upkeep (foreign-device registration) by *seconds*."""
        ...
