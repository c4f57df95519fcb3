"""BACnet addressing types per ASHRAE 135-2016 Clause 6."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

BROADCAST_NETWORK = 0xFFFF
"""Network number meaning "every reachable network" (global broadcast)."""

MAX_MAC_LEN = 7
"""Longest MAC / DADR / SADR carried in a destination descriptor."""

DEFAULT_PORT = 0xBAC0


@dataclass(frozen=True, slots=True)
class BIPAddress:
    """6-octet BACnet/IP address: 4 bytes IP + 2 bytes port."""

    host: str
    port: int

    def encode(self) -> bytes:
        """Encode to 6-byte wire format."""
        parts = [int(x) for x in self.host.split(".")]
        return bytes(parts) + self.port.to_bytes(2, "big")

    @classmethod
    def decode(cls, data: bytes | memoryview) -> BIPAddress:
        """Decode from 6-byte wire format."""
        host = f"{data[0]}.{data[1]}.{data[2]}.{data[3]}"
        port = int.from_bytes(data[4:6], "big")
        return cls(host=host, port=port)


@dataclass(frozen=True, slots=True)
class BACnetAddress:
    """Destination / source descriptor: MAC, network number and remote address.

    ``mac`` is the data-link address of the next hop on the local segment
    (a router for remote stations).  ``network`` is 0 for the local
    network, 1-65534 for a routed network, or :data:`BROADCAST_NETWORK`.
    ``adr`` is the station address on the remote network (DADR/SADR).

    An empty ``mac`` asks the datalink to broadcast on the local segment.
    """

    mac: bytes = b""
    network: int = 0
    adr: bytes = b""

    def __post_init__(self) -> None:
        if not 0 <= self.network <= BROADCAST_NETWORK:
            msg = f"Network number must be 0-65535, got {self.network}"
            raise ValueError(msg)
        if len(self.mac) > MAX_MAC_LEN:
            msg = f"MAC address must be at most {MAX_MAC_LEN} bytes, got {len(self.mac)}"
            raise ValueError(msg)
        if len(self.adr) > MAX_MAC_LEN:
            msg = f"Remote address must be at most {MAX_MAC_LEN} bytes, got {len(self.adr)}"
            raise ValueError(msg)

    @property
    def is_local(self) -> bool:
        """True if addressing the local network."""
        return self.network == 0

    @property
    def is_broadcast(self) -> bool:
        """True if the datalink must broadcast (no MAC to unicast to)."""
        return len(self.mac) == 0

    def same_as(self, other: BACnetAddress) -> bool:
        """Compare as the stack identifies stations.

        MAC and network must match; the remote address only counts when
        the station sits on a routed network.
        """
        if self.mac != other.mac or self.network != other.network:
            return False
        if self.network == 0:
            return True
        return self.adr == other.adr

    def __str__(self) -> str:
        if len(self.mac) == 6:
            bip = BIPAddress.decode(self.mac)
            text = f"{bip.host}:{bip.port}"
        elif self.mac:
            text = format_hex(self.mac)
        else:
            text = "*"
        if self.network:
            remote = format_hex(self.adr) if self.adr else "*"
            return f"{text} via {self.network}:{remote}"
        return text

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-friendly dict."""
        return {
            "mac": format_hex(self.mac),
            "network": self.network,
            "adr": format_hex(self.adr),
        }


LOCAL_BROADCAST = BACnetAddress()
GLOBAL_BROADCAST = BACnetAddress(network=BROADCAST_NETWORK)


def format_hex(data: bytes) -> str:
    """Format bytes as colon-joined upper-case hex pairs (``0A:FF``)."""
    return ":".join(f"{b:02X}" for b in data)


_IPV4_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})(?::(\d{1,5}))?$")
_HEX_GROUPS_RE = re.compile(r"^[0-9A-Fa-f]{1,2}(?:[:\-][0-9A-Fa-f]{1,2})*$")
_HEX_PACKED_RE = re.compile(r"^(?:[0-9A-Fa-f]{2})+$")


def parse_mac(text: str) -> bytes:
    """Parse a MAC address string into raw bytes.

    Accepted formats::

        "10.1.2.3"            -> BACnet/IP, default port 47808 (6 bytes)
        "10.1.2.3:47809"      -> BACnet/IP, explicit port (6 bytes)
        "00:21:70:7e:32:bb"   -> Ethernet MAC (hex pairs, ``:`` or ``-``)
        "7F" / "0a1b"         -> MS/TP or ARCNET station, packed hex

    :raises ValueError: If *text* is not a recognised format or longer
        than :data:`MAX_MAC_LEN` bytes.
    """
    text = text.strip()
    if not text:
        msg = "MAC address string must not be empty"
        raise ValueError(msg)

    m = _IPV4_RE.match(text)
    if m:
        octets = [int(part) for part in m.groups()[:4]]
        if any(octet > 255 for octet in octets):
            msg = f"Invalid IP address: {text!r}"
            raise ValueError(msg)
        port = int(m.group(5)) if m.group(5) else DEFAULT_PORT
        if port > 0xFFFF:
            msg = f"Port number out of range: {port}"
            raise ValueError(msg)
        return bytes(octets) + port.to_bytes(2, "big")

    if ":" in text or "-" in text or len(text) <= 2:
        if not _HEX_GROUPS_RE.match(text):
            msg = f"Cannot parse MAC address: {text!r}"
            raise ValueError(msg)
        mac = bytes(int(group, 16) for group in re.split(r"[:\-]", text))
    elif _HEX_PACKED_RE.match(text):
        mac = bytes.fromhex(text)
    else:
        msg = f"Cannot parse MAC address: {text!r}"
        raise ValueError(msg)

    if len(mac) > MAX_MAC_LEN:
        msg = f"MAC address must be at most {MAX_MAC_LEN} bytes, got {len(mac)}"
        raise ValueError(msg)
    return mac
