"""Who-Is discovery and I-Am announcement loops.

Both sessions are single-threaded poll loops over a blocking
:class:`~bac_discover.transport.port.Datalink`: the receive poll is the
only place they wait, and every timer is checked explicitly after each
poll.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING

from bac_discover.app.codec import decode_event, describe_reason, encode_i_am, encode_who_is
from bac_discover.app.events import AbortReceived, IAmReceived, RejectReceived, Unrecognized
from bac_discover.app.registry import PeerRegistry
from bac_discover.app.timer import MillisecondTimer

if TYPE_CHECKING:
    from collections.abc import Callable

    from bac_discover.app.config import AnnounceConfig, DiscoveryConfig
    from bac_discover.app.events import InboundEvent
    from bac_discover.transport.port import Datalink

logger = logging.getLogger(__name__)

MAINTENANCE_INTERVAL = 1000  # milliseconds


class SessionState(Enum):
    IDLE = "idle"
    SENT = "sent"
    WAITING = "waiting"
    RETRANSMIT = "retransmit"
    TERMINATED = "terminated"


SessionError = AbortReceived | RejectReceived


def format_error(error: SessionError) -> str:
    """``BACnet Abort: <reason>`` / ``BACnet Reject: <reason>``."""
    kind = "Abort" if isinstance(error, AbortReceived) else "Reject"
    return f"BACnet {kind}: {describe_reason(error.reason)}"


class _Session:
    """State shared by both loops: retry budget, error flag, maintenance timer."""

    def __init__(
        self,
        datalink: Datalink,
        *,
        repeat_forever: bool,
        retry_count: int,
        delay_ms: int,
        clock: Callable[[], float],
    ) -> None:
        self._datalink = datalink
        self._repeat_forever = repeat_forever
        self._retries_left = retry_count
        self._delay = delay_ms / 1000
        self._clock = clock
        self._maintenance_timer = MillisecondTimer(clock)
        self.state = SessionState.IDLE
        self.error: SessionError | None = None
        self.sends = 0
        self._cancelled = False

    @property
    def retries_left(self) -> int:
        return self._retries_left

    @property
    def repeat_forever(self) -> bool:
        return self._repeat_forever

    def cancel(self) -> None:
        """Stop at the next send decision.

        Clears ``repeat_forever`` and the remaining retry budget, so
        discovery ends when the request timer next expires and an
        announcement ends after its current poll. Safe to call from a
        signal handler.
        """
        self._cancelled = True
        self._repeat_forever = False
        self._retries_left = 0

    def _may_send_again(self) -> bool:
        return self._repeat_forever or self._retries_left > 0

    def _spend_retry(self) -> None:
        if self._retries_left > 0:
            self._retries_left -= 1

    def _poll(self) -> InboundEvent | None:
        received = self._datalink.receive(self._delay)
        if received is None:
            return None
        data, source_mac = received
        if not data:
            return None
        return decode_event(data, source_mac)

    def _record_error(self, error: SessionError) -> None:
        self.error = error
        logger.warning("%s (from %s)", format_error(error), error.source)

    def _run_maintenance(self) -> None:
        if self._maintenance_timer.expired():
            self._datalink.maintenance(self._maintenance_timer.interval // 1000)
            self._maintenance_timer.reset()


class DiscoverySession(_Session):
    """Send Who-Is and collect I-Am replies into a :class:`PeerRegistry`.

    ``IDLE -> SENT -> WAITING -> (RETRANSMIT -> SENT | TERMINATED)``.
    The request timer governs retransmission: when it expires the request
    is re-sent if ``repeat_forever`` is set or retries remain, otherwise
    the session ends. An Abort or Reject ends it at once.
    """

    def __init__(
        self,
        config: DiscoveryConfig,
        datalink: Datalink,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(
            datalink,
            repeat_forever=config.repeat_forever,
            retry_count=config.retry_count,
            delay_ms=config.delay_ms,
            clock=clock,
        )
        self.config = config
        self.registry = PeerRegistry()
        self._request_timer = MillisecondTimer(clock)

    def run(self) -> PeerRegistry:
        """Run the session to completion and return the registry.

        :raises ConfigurationError: If the configuration is invalid; nothing
            is sent in that case.
        """
        config = self.config
        config.validate()
        request = encode_who_is(config.destination, config.low_limit, config.high_limit)

        self._request_timer.set(config.effective_timeout_ms)
        self._maintenance_timer.set(MAINTENANCE_INTERVAL)
        self._send(request)

        while self.state is not SessionState.TERMINATED:
            event = self._poll()
            if event is not None:
                self._dispatch(event)
            if self.error is not None:
                self.state = SessionState.TERMINATED
                break
            self._run_maintenance()
            if not self._request_timer.expired():
                continue
            self.state = SessionState.RETRANSMIT
            if self._may_send_again():
                self._spend_retry()
                self._send(request)
                self._request_timer.reset()
            else:
                self.state = SessionState.TERMINATED

        logger.info(
            "Discovery finished: %d device(s), %d send(s)", len(self.registry), self.sends
        )
        return self.registry

    def _send(self, request: bytes) -> None:
        self.state = SessionState.SENT
        self._datalink.send_pdu(self.config.destination, request)
        self.sends += 1
        logger.debug("Sent Who-Is #%d to %s", self.sends, self.config.destination)
        self.state = SessionState.WAITING

    def _dispatch(self, event: InboundEvent) -> None:
        match event:
            case IAmReceived():
                self.registry.add(
                    event.device_id,
                    event.max_apdu,
                    event.source,
                    segmentation=event.segmentation,
                    vendor_id=event.vendor_id,
                )
            case AbortReceived() | RejectReceived():
                self._record_error(event)
            case Unrecognized():
                logger.debug("Ignored message from %s: %s", event.source, event.reason)


class AnnouncementSession(_Session):
    """Send I-Am once per unit of retry budget (at least once), or until cancelled.

    Between sends the session polls once so an Abort or Reject aimed at
    the announcement ends it. Nothing is collected.
    """

    def __init__(
        self,
        config: AnnounceConfig,
        datalink: Datalink,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(
            datalink,
            repeat_forever=config.repeat_forever,
            retry_count=config.retry_count,
            delay_ms=config.delay_ms,
            clock=clock,
        )
        self.config = config

    def run(self) -> int:
        """Announce until the budget is spent; returns the number of sends.

        :raises ConfigurationError: If the configuration is invalid.
        """
        config = self.config
        config.validate()
        announcement = encode_i_am(
            config.destination,
            config.device_id,
            config.max_apdu,
            config.segmentation,
            config.vendor_id,
        )
        self._maintenance_timer.set(MAINTENANCE_INTERVAL)

        while True:
            self.state = SessionState.SENT
            self._datalink.send_pdu(config.destination, announcement)
            self.sends += 1
            logger.debug("Sent I-Am #%d for device %d", self.sends, config.device_id)
            if not self._may_send_again():
                break
            self.state = SessionState.WAITING
            event = self._poll()
            if isinstance(event, AbortReceived | RejectReceived):
                self._record_error(event)
                break
            if self._cancelled:
                break
            self._run_maintenance()
            self._spend_retry()
            if not self._may_send_again():
                break

        self.state = SessionState.TERMINATED
        return self.sends
