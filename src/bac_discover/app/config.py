"""Session and datalink configuration records."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bac_discover.errors import ConfigurationError
from bac_discover.network.address import DEFAULT_PORT, GLOBAL_BROADCAST, LOCAL_BROADCAST
from bac_discover.types.enums import Segmentation
from bac_discover.types.primitives import MAX_INSTANCE

if TYPE_CHECKING:
    from collections.abc import Mapping

    from bac_discover.network.address import BACnetAddress

DEFAULT_APDU_TIMEOUT = 3000  # milliseconds
DEFAULT_APDU_RETRIES = 3
DEFAULT_POLL_DELAY = 100  # milliseconds
DEFAULT_BBMD_TTL = 60  # seconds
DEFAULT_VENDOR_ID = 260
DEFAULT_MAX_APDU = 1476
MIN_MAX_APDU = 50


def _check_instance(name: str, value: int | None) -> None:
    if value is None:
        return
    if value > MAX_INSTANCE:
        msg = f"{name}={value} - not greater than {MAX_INSTANCE}"
        raise ConfigurationError(msg)
    if value < 0:
        msg = f"{name}={value} - not less than 0"
        raise ConfigurationError(msg)


def _check_common(retry_count: int, delay_ms: int) -> None:
    if retry_count < 0:
        msg = f"retry count must be >= 0, got {retry_count}"
        raise ConfigurationError(msg)
    if delay_ms < 0:
        msg = f"poll delay must be >= 0 ms, got {delay_ms}"
        raise ConfigurationError(msg)


@dataclass
class DiscoveryConfig:
    """Configuration for one Who-Is discovery session."""

    destination: BACnetAddress = GLOBAL_BROADCAST
    low_limit: int | None = None
    high_limit: int | None = None
    repeat_forever: bool = False
    retry_count: int = 0
    """Retransmissions after the first send."""
    timeout_ms: int | None = None
    """Wait between sends; ``None`` or ``0`` uses APDU timeout x retries."""
    delay_ms: int = DEFAULT_POLL_DELAY
    """Longest single receive poll."""
    apdu_timeout_ms: int = DEFAULT_APDU_TIMEOUT
    apdu_retries: int = DEFAULT_APDU_RETRIES

    def __post_init__(self) -> None:
        # A lone minimum asks for exactly one device
        if self.high_limit is None and self.low_limit is not None:
            self.high_limit = self.low_limit

    @property
    def effective_timeout_ms(self) -> int:
        """The request timer interval in milliseconds."""
        if self.timeout_ms:
            return self.timeout_ms
        return self.apdu_timeout_ms * self.apdu_retries

    def validate(self) -> None:
        """Reject out-of-range values before any network activity.

        :raises ConfigurationError: On the first invalid field.
        """
        _check_instance("device-instance-min", self.low_limit)
        _check_instance("device-instance-max", self.high_limit)
        if self.low_limit is None and self.high_limit is not None:
            msg = "device-instance-max given without device-instance-min"
            raise ConfigurationError(msg)
        _check_common(self.retry_count, self.delay_ms)
        if self.timeout_ms is not None and self.timeout_ms < 0:
            msg = f"timeout must be >= 0 ms, got {self.timeout_ms}"
            raise ConfigurationError(msg)


@dataclass
class AnnounceConfig:
    """Configuration for an I-Am announcement session."""

    destination: BACnetAddress = LOCAL_BROADCAST
    device_id: int = MAX_INSTANCE
    vendor_id: int = DEFAULT_VENDOR_ID
    max_apdu: int = DEFAULT_MAX_APDU
    segmentation: Segmentation | int = Segmentation.NONE
    repeat_forever: bool = False
    retry_count: int = 0
    delay_ms: int = DEFAULT_POLL_DELAY

    def validate(self) -> None:
        """Reject values that cannot be encoded in an I-Am.

        Normalizes an integer ``segmentation`` to :class:`Segmentation`.

        :raises ConfigurationError: On the first invalid field.
        """
        _check_instance("device-instance", self.device_id)
        if not 0 <= self.vendor_id <= 0xFFFF:
            msg = f"vendor-id={self.vendor_id} - must be 0-65535"
            raise ConfigurationError(msg)
        if not MIN_MAX_APDU <= self.max_apdu <= 0xFFFF:
            msg = f"max-apdu={self.max_apdu} - must be {MIN_MAX_APDU}-65535"
            raise ConfigurationError(msg)
        try:
            self.segmentation = Segmentation(self.segmentation)
        except ValueError:
            msg = f"segmentation={int(self.segmentation)} - must be 0-3"
            raise ConfigurationError(msg) from None
        _check_common(self.retry_count, self.delay_ms)


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw, 0)
    except ValueError:
        msg = f"{name}={raw!r} is not an integer"
        raise ConfigurationError(msg) from None


@dataclass
class DatalinkConfig:
    """BACnet/IP datalink settings."""

    interface: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    broadcast_address: str = "255.255.255.255"
    bbmd_address: str | None = None
    """Register as a foreign device with this BBMD when set."""
    bbmd_port: int = DEFAULT_PORT
    bbmd_ttl: int = DEFAULT_BBMD_TTL
    apdu_timeout_ms: int = DEFAULT_APDU_TIMEOUT
    apdu_retries: int = DEFAULT_APDU_RETRIES
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DatalinkConfig:
        """Build from ``BACNET_*`` environment variables.

        :param environ: Mapping to read; defaults to :data:`os.environ`.
        :raises ConfigurationError: If a numeric variable is not an integer
            or a port is out of range.
        """
        env = os.environ if environ is None else environ
        config = cls(
            interface=env.get("BACNET_IFACE") or "0.0.0.0",
            port=_env_int(env, "BACNET_IP_PORT", DEFAULT_PORT),
            broadcast_address=env.get("BACNET_IP_BROADCAST") or "255.255.255.255",
            bbmd_address=env.get("BACNET_BBMD_ADDRESS") or None,
            bbmd_port=_env_int(env, "BACNET_BBMD_PORT", DEFAULT_PORT),
            bbmd_ttl=_env_int(env, "BACNET_BBMD_TIMETOLIVE", DEFAULT_BBMD_TTL),
            apdu_timeout_ms=_env_int(env, "BACNET_APDU_TIMEOUT", DEFAULT_APDU_TIMEOUT),
            apdu_retries=_env_int(env, "BACNET_APDU_RETRIES", DEFAULT_APDU_RETRIES),
            debug="BACNET_DEBUG" in env,
        )
        config.validate()
        return config

    def validate(self) -> None:
        """:raises ConfigurationError: If a port, TTL or APDU setting is out of range."""
        for name, port in (("port", self.port), ("bbmd port", self.bbmd_port)):
            if not 0 <= port <= 0xFFFF:
                msg = f"{name} must be 0-65535, got {port}"
                raise ConfigurationError(msg)
        if not 1 <= self.bbmd_ttl <= 0xFFFF:
            msg = f"BBMD time-to-live must be 1-65535 seconds, got {self.bbmd_ttl}"
            raise ConfigurationError(msg)
        if self.apdu_timeout_ms < 1 or self.apdu_retries < 1:
            msg = "APDU timeout and retries must be positive"
            raise ConfigurationError(msg)
