"""Deduplicated, arrival-ordered table of discovered devices.

The text produced by :meth:`PeerRegistry.render` is read back by address
cache loaders, so its column layout is fixed:

.. code-block:: text

    ;Device   MAC (hex)            SNET  SADR (hex)           APDU
    ;-------- -------------------- ----- -------------------- ----
      1234    0A:00:00:01:BA:C0    0     00                   1476
    ;
    ; Total Devices: 1

Rows for devices that share an identifier with another station start
with ``;`` so loaders skip them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from bac_discover.network.address import MAX_MAC_LEN, BACnetAddress, format_hex

if TYPE_CHECKING:
    from collections.abc import Iterator

    from bac_discover.types.enums import Segmentation

logger = logging.getLogger(__name__)

HEADER = ";%-7s  %-20s %-5s %-20s %-4s" % ("Device", "MAC (hex)", "SNET", "SADR (hex)", "APDU")
SEPARATOR = ";-------- -------------------- ----- -------------------- ----"

_LOCAL_SADR = b"\x00"


def format_mac_column(mac: bytes) -> str:
    """Colon-joined hex pairs padded to :data:`MAX_MAC_LEN` columns of three."""
    return format_hex(mac) + "   " * (MAX_MAC_LEN - len(mac))


@dataclass(slots=True)
class PeerEntry:
    """One device seen answering Who-Is."""

    device_id: int
    max_apdu: int
    address: BACnetAddress
    duplicate: bool = False
    """Another entry carries the same *device_id* from a different address."""

    segmentation: Segmentation | None = None
    vendor_id: int | None = None

    def render(self) -> str:
        """Format this entry as one table row."""
        address = self.address
        sadr = address.adr if address.network else _LOCAL_SADR
        return "".join(
            (
                ";" if self.duplicate else " ",
                f" {self.device_id:<7} ",
                format_mac_column(address.mac),
                f" {address.network:<5} ",
                format_mac_column(sadr),
                f" {self.max_apdu:<4} ",
            )
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-friendly dict."""
        return {
            "device_id": self.device_id,
            **self.address.to_dict(),
            "max_apdu": self.max_apdu,
            "segmentation": (
                self.segmentation.name.lower() if self.segmentation is not None else None
            ),
            "vendor_id": self.vendor_id,
            "duplicate": self.duplicate,
        }


class PeerRegistry:
    """Insertion-ordered peer table.

    Two replies are the same peer when the device identifier matches and
    the source addresses are the same station (see
    :meth:`BACnetAddress.same_as`). A repeat is ignored. A new address for
    a known identifier is kept, and every entry with that identifier is
    flagged duplicate.
    """

    def __init__(self) -> None:
        self._entries: list[PeerEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PeerEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> PeerEntry:
        return self._entries[index]

    @property
    def duplicate_count(self) -> int:
        """Number of entries flagged duplicate."""
        return sum(1 for entry in self._entries if entry.duplicate)

    def add(
        self,
        device_id: int,
        max_apdu: int,
        address: BACnetAddress,
        *,
        segmentation: Segmentation | None = None,
        vendor_id: int | None = None,
    ) -> bool:
        """Record a reply.

        :returns: ``True`` if a new entry was appended, ``False`` if the
            (identifier, address) pair was already known.
        """
        same_id = [entry for entry in self._entries if entry.device_id == device_id]
        if any(entry.address.same_as(address) for entry in same_id):
            return False

        for entry in same_id:
            entry.duplicate = True
        if same_id:
            logger.debug("Device %d also answered from %s", device_id, address)

        self._entries.append(
            PeerEntry(
                device_id=device_id,
                max_apdu=max_apdu,
                address=address,
                duplicate=bool(same_id),
                segmentation=segmentation,
                vendor_id=vendor_id,
            )
        )
        return True

    def render(self) -> str:
        """Render the fixed-column table, footer included, newline-terminated."""
        lines = [HEADER, SEPARATOR]
        lines.extend(entry.render() for entry in self._entries)
        lines.append(";")
        lines.append(f"; Total Devices: {len(self._entries)}")
        duplicates = self.duplicate_count
        if duplicates:
            lines.append(f"; * Duplicate Devices: {duplicates}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-friendly dict."""
        return {
            "devices": [entry.to_dict() for entry in self._entries],
            "total": len(self._entries),
            "duplicates": self.duplicate_count,
        }
