"""
Registry Poll CLI Main Entry Point

Command-line interface for draining a registry message queue.
"""

import getpass
import logging
import logging.config
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
import yaml
from dateutil import parser as date_parser

from registry_poll import __version__
from registry_poll.client import EPPClient
from registry_poll.exceptions import (
    ConfigurationError,
    EPPAuthenticationError,
    EPPCommandError,
    EPPConnectionError,
    RegistryPollError,
)
from registry_poll.models import to_utc
from registry_poll.poller import TIME_BUDGET, PollLoop
from registry_poll.queue import EPPQueueClient, RegistryQueueClient
from registry_poll.vendors import VENDORS, get_classifier, get_vendor
from registry_poll_cli.config import CLIConfig, create_sample_config
from registry_poll_cli.output import OutputFormatter, print_error, print_info

logger = logging.getLogger("regpoll.cli")


# Global state for the CLI session
class CLIState:
    config: Optional[CLIConfig] = None
    formatter: Optional[OutputFormatter] = None


state = CLIState()


def setup_logging(debug: bool, log_config: Optional[str]) -> None:
    """Configure logging from a dictConfig YAML file, else basicConfig."""
    if log_config:
        path = Path(log_config).expanduser()
        if not path.exists():
            raise ConfigurationError(f"Logging config not found: {path}")
        with open(path) as f:
            logging.config.dictConfig(yaml.safe_load(f))
        if debug:
            logging.getLogger("regpoll").setLevel(logging.DEBUG)
        return

    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)


def parse_since(value: Optional[str]):
    """Parse a --since value; naive times are taken as UTC."""
    if not value:
        return None
    try:
        return to_utc(date_parser.parse(value))
    except (ValueError, OverflowError):
        raise click.BadParameter(f"not a date/time: {value!r}", param_hint="--since")


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
@click.option("--profile", "-p", default="default", help="Config profile to use")
@click.option("--host", "-h", help="EPP server hostname")
@click.option("--port", type=int, help="EPP server port")
@click.option("--cert", type=click.Path(exists=True), help="Client certificate file")
@click.option("--key", type=click.Path(exists=True), help="Client private key file")
@click.option("--ca", type=click.Path(exists=True), help="CA certificate file")
@click.option("--client-id", "-u", help="Client/registrar ID")
@click.option("--password", "-P", help="Password (or use REGPOLL_PASSWORD env)")
@click.option("--timeout", type=int, help="Connection timeout")
@click.option("--no-verify", is_flag=True, help="Disable server certificate verification")
@click.option("--format", "-f", type=click.Choice(["table", "json"]), default="table", help="Output format")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-config", type=click.Path(), help="Logging dictConfig YAML file")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, config, profile, host, port, cert, key, ca, client_id, password, timeout,
        no_verify, format, quiet, debug, log_config):
    """
    Registry Poll CLI - drain registry notification queues

    Reads queued domain lifecycle messages (transfers, renewals,
    deletions), acknowledges them and prints the ones that map to a
    notification.

    \b
    Configuration:
      Use a config file at ~/.regpoll/config.yaml or specify options on command line.
      Run 'regpoll config init' to create a sample config file.

    \b
    Examples:
      regpoll --host epp.registry.example --cert client.crt --key client.key poll
      regpoll -c config.yaml poll --limit 20 --since 2024-06-01T00:00:00Z
      regpoll --profile ote -f json poll
    """
    state.formatter = OutputFormatter(format=format, quiet=quiet)

    if config:
        loaded = CLIConfig.from_file(Path(config), profile)
    else:
        loaded = CLIConfig.find_and_load(profile)
    loaded = loaded or CLIConfig(profile=profile)
    state.config = loaded

    setup_logging(debug, log_config or loaded.logging)

    # CLI options override config file
    ctx.ensure_object(dict)
    ctx.obj["host"] = host or loaded.server.host
    ctx.obj["port"] = port or loaded.server.port
    ctx.obj["cert"] = cert or loaded.certs.cert_file
    ctx.obj["key"] = key or loaded.certs.key_file
    ctx.obj["ca"] = ca or loaded.certs.ca_file
    ctx.obj["client_id"] = client_id or loaded.credentials.client_id
    ctx.obj["password"] = password or loaded.credentials.password or os.environ.get("REGPOLL_PASSWORD")
    ctx.obj["timeout"] = timeout or loaded.server.timeout
    ctx.obj["verify"] = not no_verify and loaded.server.verify_server


def get_queue_client(ctx) -> RegistryQueueClient:
    """
    Build the EPP queue client from CLI options and config.

    The client is returned unconnected; use it as a context manager.
    """
    host = ctx.obj.get("host")
    if not host:
        print_error("No server host specified. Use --host or config file.")
        sys.exit(1)

    client_id = ctx.obj.get("client_id")
    if not client_id:
        print_error("No client ID specified. Use --client-id or config file.")
        sys.exit(1)

    password = ctx.obj.get("password")
    if not password:
        password = getpass.getpass("Password: ")

    client = EPPClient(
        host=host,
        port=ctx.obj.get("port", 700),
        cert_file=ctx.obj.get("cert"),
        key_file=ctx.obj.get("key"),
        ca_file=ctx.obj.get("ca"),
        timeout=ctx.obj.get("timeout", 30),
        verify_server=ctx.obj.get("verify", True),
    )
    return EPPQueueClient(client, client_id=client_id, password=password)


def open_queue(ctx) -> RegistryQueueClient:
    """Build and connect the queue client, exiting on connection or login failure."""
    queue = get_queue_client(ctx)
    try:
        queue.connect()
    except EPPConnectionError as e:
        print_error(f"Connection failed: {e}")
        sys.exit(1)
    except EPPAuthenticationError as e:
        queue.close()
        print_error(f"Authentication failed: {e}")
        sys.exit(1)
    return queue


# =============================================================================
# Poll Commands
# =============================================================================

@cli.command("poll")
@click.option("--limit", "-l", type=click.IntRange(min=1), help="Maximum notifications to return")
@click.option("--since", "-s", help="Drop notifications created before this ISO 8601 time")
@click.option("--time-budget", type=click.FloatRange(min=0, min_open=True),
              help=f"Wall-clock budget in seconds (default {TIME_BUDGET})")
@click.pass_context
def poll_command(ctx, limit, since, time_budget):
    """
    Drain the queue into domain notifications.

    Every message read is acknowledged, including ones that are not
    domain lifecycle events. No cursor is stored: pass the newest
    Created At you have processed as --since on the next run. A
    notification exactly at --since is returned again.
    """
    poll_config = state.config.poll
    vendor = get_vendor(poll_config.vendor)
    if vendor.queue_client is not EPPQueueClient:
        raise ConfigurationError(
            f"Vendor '{vendor.name}' has no CLI transport; use the library API"
        )

    since_dt = parse_since(since)
    loop_limit = limit or poll_config.limit
    budget = time_budget or poll_config.time_budget

    queue = open_queue(ctx)
    try:
        loop = PollLoop(queue, get_classifier(vendor.name), time_budget=budget)
        result = loop.poll(loop_limit, since_dt)
    except EPPCommandError as e:
        print_error(f"Command failed: {e}")
        sys.exit(1)
    finally:
        queue.close()

    state.formatter.output(result)


@cli.command("ack")
@click.argument("msg_id")
@click.pass_context
def ack_command(ctx, msg_id):
    """
    Acknowledge a single queue message.

    MSG_ID: Message ID to acknowledge.
    """
    queue = open_queue(ctx)
    try:
        queue.ack(msg_id)
        state.formatter.success(f"Message acknowledged: {msg_id}")
    except EPPCommandError as e:
        print_error(f"Command failed: {e}")
        sys.exit(1)
    finally:
        queue.close()


@cli.command("vendors")
def vendors_command():
    """List supported vendors and their message type tables."""
    for name in sorted(VENDORS):
        vendor = VENDORS[name]
        click.echo(f"{name}: {vendor.description}")
        for raw_type, notification_type in vendor.types.items():
            click.echo(f"  {raw_type} -> {notification_type.value}")


# =============================================================================
# Config Commands
# =============================================================================

@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option("--path", "-p", type=click.Path(), default="~/.regpoll/config.yaml", help="Config file path")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path, force):
    """Create sample configuration file."""
    path = Path(path).expanduser()

    if path.exists() and not force:
        print_error(f"Config file already exists: {path} (use --force to overwrite)")
        sys.exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(create_sample_config())
    state.formatter.success(f"Created config file: {path}")
    print_info("Edit the file to set your server and credentials")


@config.command("show")
def config_show():
    """Show the effective configuration (password hidden)."""
    shown = state.config
    if shown.credentials.password:
        shown = replace(shown, credentials=replace(shown.credentials, password="********"))
    state.formatter.output(shown)


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """Main entry point."""
    try:
        cli()
    except RegistryPollError as e:
        print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted.")
        sys.exit(130)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
