"""bac-discover: BACnet/IP Who-Is discovery and I-Am announcement."""

__version__ = "0.3.0"

from bac_discover.app.config import AnnounceConfig, DatalinkConfig, DiscoveryConfig
from bac_discover.app.registry import PeerEntry, PeerRegistry
from bac_discover.app.session import AnnouncementSession, DiscoverySession, SessionState
from bac_discover.app.target import resolve_target
from bac_discover.errors import BACnetBaseError, ConfigurationError, TransportError
from bac_discover.network.address import BACnetAddress, parse_mac
from bac_discover.transport.bip import BIPTransport

__all__ = [
    "AnnounceConfig",
    "AnnouncementSession",
    "BACnetAddress",
    "BACnetBaseError",
    "BIPTransport",
    "ConfigurationError",
    "DatalinkConfig",
    "DiscoveryConfig",
    "DiscoverySession",
    "PeerEntry",
    "PeerRegistry",
    "SessionState",
    "TransportError",
    "__version__",
    "resolve_target",
]
