"""Resolve user-supplied address fragments into one destination descriptor."""

from __future__ import annotations

from typing import NamedTuple

from bac_discover.network.address import BROADCAST_NETWORK, GLOBAL_BROADCAST, BACnetAddress


class ResolvedTarget(NamedTuple):
    """Outcome of :func:`resolve_target`."""

    destination: BACnetAddress
    directed: bool
    """``False`` when no fragment was supplied and *destination* is the default."""


def _valid_network(dnet: int | None) -> bool:
    return dnet is not None and 0 <= dnet <= BROADCAST_NETWORK


def resolve_target(
    mac: bytes | None = None,
    dnet: int | None = None,
    dadr: bytes | None = None,
    *,
    default: BACnetAddress = GLOBAL_BROADCAST,
) -> ResolvedTarget:
    """Choose the destination for a request from optional address fragments.

    Rules, first match wins:

    1. Nothing supplied: *default* (a global broadcast unless overridden),
       not directed.
    2. *mac* and *dadr*: that router MAC and remote station, on *dnet*
       when valid, else on the broadcast network.
    3. *mac* only: that station, on *dnet* when valid, else the local
       network.
    4. *dnet* only: a broadcast on *dnet* when valid, else a global
       broadcast. A lone *dadr* has no network to live on and is ignored.

    A *dnet* outside 0-65535 counts as not supplied. It never raises;
    malformed network numbers degrade to broadcast behaviour.

    Empty byte strings count as not supplied.
    """
    network_ok = _valid_network(dnet)
    if not mac and not dadr and not network_ok:
        return ResolvedTarget(default, directed=False)

    if mac and dadr:
        network = dnet if network_ok else BROADCAST_NETWORK
        return ResolvedTarget(BACnetAddress(mac=mac, network=network, adr=dadr), directed=True)

    if mac:
        network = dnet if network_ok else 0
        return ResolvedTarget(BACnetAddress(mac=mac, network=network), directed=True)

    network = dnet if network_ok else BROADCAST_NETWORK
    return ResolvedTarget(BACnetAddress(network=network), directed=True)
