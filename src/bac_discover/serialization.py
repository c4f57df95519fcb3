"""JSON rendering of discovery and announcement results (``--json``), backed by orjson."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import orjson

from bac_discover.network.address import format_hex

if TYPE_CHECKING:
    from bac_discover.app.registry import PeerRegistry
    from bac_discover.network.address import BACnetAddress

logger = logging.getLogger(__name__)


def json_default(obj: object) -> object:
    """Fallback for values orjson cannot serialize natively.

    * Objects with a ``to_dict()`` method (``BACnetAddress``,
      ``PeerEntry``) serialize as that dict.
    * ``bytes``, ``bytearray`` and ``memoryview`` become colon-joined hex,
      the same form addresses use.

    :raises TypeError: If *obj* is none of the above.
    """
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, bytes | bytearray | memoryview):
        return format_hex(bytes(obj))
    msg = f"Cannot serialize {type(obj).__name__}"
    logger.warning("serialize failed: %s", msg)
    raise TypeError(msg)


def dumps(data: Any, *, pretty: bool = False) -> str:
    """Serialize *data* to a JSON string, indenting by two when *pretty*."""
    option = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(data, default=json_default, option=option).decode()


def registry_to_json(registry: PeerRegistry, *, pretty: bool = True) -> str:
    """``{"devices": [...], "total": n, "duplicates": m}`` for a finished discovery."""
    return dumps(registry.to_dict(), pretty=pretty)


def announcement_to_json(
    device_id: int,
    destination: BACnetAddress,
    sends: int,
    error: str | None,
    *,
    pretty: bool = True,
) -> str:
    """Summary of an I-Am announcement run."""
    return dumps(
        {"device_id": device_id, "destination": destination, "sends": sends, "error": error},
        pretty=pretty,
    )
