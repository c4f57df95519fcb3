"""Click command group for Who-Is discovery and I-Am announcement."""

from __future__ import annotations

import contextlib
import logging
import signal
import sys
from typing import TYPE_CHECKING, Any

import click

from bac_discover import __version__
from bac_discover.app.config import AnnounceConfig, DatalinkConfig, DiscoveryConfig
from bac_discover.app.session import AnnouncementSession, DiscoverySession, format_error
from bac_discover.app.target import resolve_target
from bac_discover.errors import ConfigurationError
from bac_discover.network.address import LOCAL_BROADCAST, BIPAddress, parse_mac
from bac_discover.serialization import announcement_to_json, dumps, registry_to_json
from bac_discover.transport.bip import BIPTransport

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


def print_error(message: str, use_json: bool = False) -> None:
    """Print an error message, respecting output mode."""
    if use_json:
        click.echo(dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)


def _parse_mac_option(ctx: click.Context, param: click.Parameter, value: str | None) -> bytes | None:
    if value is None:
        return None
    try:
        return parse_mac(value)
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from None


def _parse_next_hop_option(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> bytes | None:
    """A BACnet/IP next hop: six octets of IPv4 address and UDP port."""
    mac = _parse_mac_option(ctx, param, value)
    if mac is not None and len(mac) != 6:
        msg = f"BACnet/IP MAC must be 6 bytes, got {len(mac)}"
        raise click.BadParameter(msg, ctx=ctx, param=param)
    return mac


def _parse_int_option(ctx: click.Context, param: click.Parameter, value: str | None) -> int | None:
    """Integer option accepting decimal, ``0x`` hex or ``0o`` octal."""
    if value is None:
        return None
    try:
        return int(value, 0)
    except ValueError:
        msg = f"{value!r} is not an integer"
        raise click.BadParameter(msg, ctx=ctx, param=param) from None


def _parse_endpoint(ctx: click.Context, param: click.Parameter, value: str | None) -> Any:
    """Parse ``host[:port]`` into ``(host, port | None)``."""
    if value is None:
        return None
    host, sep, port = value.rpartition(":")
    if not sep:
        return value, None
    if not port.isdigit() or int(port) > 0xFFFF:
        msg = f"invalid port in {value!r}"
        raise click.BadParameter(msg, ctx=ctx, param=param)
    return host, int(port)


def _parse_positionals(ctx: click.Context, values: tuple[str, ...], limit: int) -> list[int]:
    """Convert positional numbers (decimal, ``0x`` hex or ``0o`` octal).

    More than *limit* values prints usage and exits 1.
    """
    if len(values) > limit:
        click.echo(ctx.get_usage(), err=True)
        ctx.exit(1)
    numbers = []
    for value in values:
        try:
            numbers.append(int(value, 0))
        except ValueError:
            msg = f"{value!r} is not an integer"
            raise click.BadParameter(msg, ctx=ctx) from None
    return numbers


@contextlib.contextmanager
def open_datalink(config: DatalinkConfig) -> Iterator[BIPTransport]:
    """Open the BACnet/IP transport, registering with a BBMD when configured."""
    with BIPTransport(
        interface=config.interface,
        port=config.port,
        broadcast_address=config.broadcast_address,
    ) as transport:
        if config.bbmd_address:
            transport.attach_foreign_device(
                BIPAddress(host=config.bbmd_address, port=config.bbmd_port), config.bbmd_ttl
            )
        yield transport


@contextlib.contextmanager
def _cancel_on_interrupt(session: DiscoverySession | AnnouncementSession) -> Iterator[None]:
    """Route Ctrl-C to ``session.cancel()`` so repeat runs still finish cleanly."""
    previous = signal.signal(signal.SIGINT, lambda signum, frame: session.cancel())
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


_address_options = [
    click.option(
        "--mac",
        callback=_parse_next_hop_option,
        help="Destination BACnet/IP MAC: IP[:port] or six hex pairs (0a:00:00:01:ba:c0).",
    ),
    click.option(
        "--dnet",
        callback=_parse_int_option,
        help="Destination network number, 0 (local) to 65535 (broadcast).",
    ),
    click.option(
        "--dadr",
        callback=_parse_mac_option,
        help="Station address on the destination network: hex pairs (7F) or IP[:port].",
    ),
    click.option(
        "--repeat",
        is_flag=True,
        default=False,
        help="Send repeatedly until interrupted.",
    ),
    click.option(
        "--retry",
        type=click.IntRange(min=0, clamp=True),
        default=0,
        show_default=True,
        help=(
            "Retry budget: whois resends this many times after the first send,"
            " iam sends this many times (at least once)."
        ),
    ),
]


def address_options(func: Any) -> Any:
    for option in reversed(_address_options):
        func = option(func)
    return func


@click.group()
@click.version_option(__version__, prog_name="bac-discover")
@click.option("--interface", default=None, help="Local bind address [env BACNET_IFACE].")
@click.option("--port", default=None, type=int, help="Local BACnet/IP port [env BACNET_IP_PORT].")
@click.option(
    "--broadcast",
    default=None,
    help="Directed broadcast address [env BACNET_IP_BROADCAST].",
)
@click.option(
    "--bbmd",
    callback=_parse_endpoint,
    help="Register as a foreign device with this BBMD, host[:port] [env BACNET_BBMD_ADDRESS].",
)
@click.option(
    "--bbmd-ttl",
    default=None,
    type=int,
    help="Foreign device time-to-live in seconds [env BACNET_BBMD_TIMETOLIVE].",
)
@click.option(
    "--json",
    "use_json",
    is_flag=True,
    default=False,
    help="Output JSON instead of table.",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Enable debug logging [env BACNET_DEBUG].",
)
@click.pass_context
def cli(
    ctx: click.Context,
    interface: str | None,
    port: int | None,
    broadcast: str | None,
    bbmd: tuple[str, int | None] | None,
    bbmd_ttl: int | None,
    use_json: bool,
    verbose: bool,
) -> None:
    """BACnet/IP device discovery (Who-Is) and announcement (I-Am)."""
    try:
        datalink = DatalinkConfig.from_env()
        if interface is not None:
            datalink.interface = interface
        if port is not None:
            datalink.port = port
        if broadcast is not None:
            datalink.broadcast_address = broadcast
        if bbmd is not None:
            datalink.bbmd_address = bbmd[0]
            if bbmd[1] is not None:
                datalink.bbmd_port = bbmd[1]
        if bbmd_ttl is not None:
            datalink.bbmd_ttl = bbmd_ttl
        datalink.validate()
    except ConfigurationError as e:
        print_error(str(e), use_json)
        ctx.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["datalink"] = datalink
    ctx.obj["use_json"] = use_json

    # Configure logging
    level = logging.DEBUG if verbose or datalink.debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


@cli.command()
@click.argument("instances", nargs=-1, metavar="[DEVICE_INSTANCE_MIN [DEVICE_INSTANCE_MAX]]")
@address_options
@click.option(
    "--timeout",
    type=click.IntRange(min=0),
    default=0,
    help="Milliseconds to wait after sending before a retry; 0 uses APDU timeout x retries.",
)
@click.option(
    "--delay",
    type=click.IntRange(min=0),
    default=100,
    show_default=True,
    help="Milliseconds to wait for responses in each receive poll.",
)
@click.pass_context
def whois(
    ctx: click.Context,
    instances: tuple[str, ...],
    mac: bytes | None,
    dnet: int | None,
    dadr: bytes | None,
    repeat: bool,
    retry: int,
    timeout: int,
    delay: int,
) -> None:
    """Send Who-Is and list the devices that answer.

    With one DEVICE_INSTANCE only that device is asked; with two, the
    inclusive range. Instances run from 0 to 4194303.
    """
    datalink: DatalinkConfig = ctx.obj["datalink"]
    use_json: bool = ctx.obj["use_json"]
    limits = _parse_positionals(ctx, instances, 2)

    target = resolve_target(mac, dnet, dadr)
    config = DiscoveryConfig(
        destination=target.destination,
        low_limit=limits[0] if limits else None,
        high_limit=limits[1] if len(limits) > 1 else None,
        repeat_forever=repeat,
        retry_count=retry,
        timeout_ms=timeout,
        delay_ms=delay,
        apdu_timeout_ms=datalink.apdu_timeout_ms,
        apdu_retries=datalink.apdu_retries,
    )
    try:
        config.validate()
    except ConfigurationError as e:
        click.echo(str(e), err=True)
        ctx.exit(1)

    try:
        with open_datalink(datalink) as link:
            session = DiscoverySession(config, link)
            with _cancel_on_interrupt(session):
                registry = session.run()
    except OSError as e:
        print_error(str(e), use_json)
        sys.exit(1)

    if session.error is not None:
        click.echo(format_error(session.error), err=True)
    if use_json:
        click.echo(registry_to_json(registry))
    else:
        click.echo(registry.render(), nl=False)


@cli.command()
@click.argument("values", nargs=-1, metavar="[DEVICE_ID [VENDOR_ID [MAX_APDU [SEGMENTATION]]]]")
@address_options
@click.option(
    "--delay",
    type=click.IntRange(min=0),
    default=100,
    show_default=True,
    help="Milliseconds to wait for an error reply between repeated sends.",
)
@click.pass_context
def iam(
    ctx: click.Context,
    values: tuple[str, ...],
    mac: bytes | None,
    dnet: int | None,
    dadr: bytes | None,
    repeat: bool,
    retry: int,
    delay: int,
) -> None:
    """Announce a device with I-Am.

    Defaults: device 4194303, vendor 260, max APDU 1476 and
    segmentation 3 (none). Without an address the announcement is a
    local broadcast.
    """
    datalink: DatalinkConfig = ctx.obj["datalink"]
    use_json: bool = ctx.obj["use_json"]
    numbers = _parse_positionals(ctx, values, 4)

    target = resolve_target(mac, dnet, dadr, default=LOCAL_BROADCAST)
    config = AnnounceConfig(destination=target.destination)
    fields = ("device_id", "vendor_id", "max_apdu", "segmentation")
    for name, number in zip(fields, numbers, strict=False):
        setattr(config, name, number)
    config.repeat_forever = repeat
    config.retry_count = retry
    config.delay_ms = delay
    try:
        config.validate()
    except ConfigurationError as e:
        click.echo(str(e), err=True)
        ctx.exit(1)

    try:
        with open_datalink(datalink) as link:
            session = AnnouncementSession(config, link)
            with _cancel_on_interrupt(session):
                sends = session.run()
    except OSError as e:
        print_error(str(e), use_json)
        sys.exit(1)

    if session.error is not None:
        click.echo(format_error(session.error), err=True)
    if use_json:
        error = format_error(session.error) if session.error is not None else None
        click.echo(announcement_to_json(config.device_id, target.destination, sends, error))
