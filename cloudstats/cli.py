"""Click CLI entry point for cloudstats."""
from __future__ import annotations

import json
import logging
import sys

import click

from cloudstats import __version__
from cloudstats import config as cfg
from cloudstats.errors import StatsError
from cloudstats.graph.store import load_graph
from cloudstats.output.terminal import print_advisory, render_report
from cloudstats.store.database import Database
from cloudstats.telemetry.report import build_report
from cloudstats.telemetry.share import check_stats_to_send, send_stats
from cloudstats.telemetry.transport import SecureTransport

CONFIG_KEYS = ("telemetry", "server_url", "public_key_path", "region")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


def _open_store() -> Database:
    db = Database(cfg.data_dir())
    db.ensure_identity()
    return db


def _load_graphs(infra_path: str | None, access_path: str | None):
    infra = load_graph(infra_path) if infra_path else None
    access = load_graph(access_path) if access_path else None
    return infra, access


@click.group()
@click.version_option(version=__version__, prog_name="cloudstats")
@click.option("--verbose", is_flag=True, help="Debug logging to stderr")
def cli(verbose: bool) -> None:
    """cloudstats - anonymized usage statistics."""
    _setup_logging(verbose)


@cli.command()
@click.argument("tokens", nargs=-1, required=True)
def record(tokens: tuple[str, ...]) -> None:
    """Record an executed command in the local history."""
    try:
        _open_store().add_history(list(tokens))
    except StatsError as e:
        click.echo(f"Failed to record command: {e}", err=True)
        sys.exit(1)


@cli.command("log")
@click.argument("message")
def log_cmd(message: str) -> None:
    """Attach a log record to the next report."""
    try:
        _open_store().add_log(message)
    except StatsError as e:
        click.echo(f"Failed to record log: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--infra", "infra_path", type=click.Path(exists=True),
              help="Infrastructure graph (node-link JSON)")
@click.option("--access", "access_path", type=click.Path(exists=True),
              help="Access graph (node-link JSON)")
@click.option("--json-output", "--json", "json_output", is_flag=True,
              help="JSON to stdout instead of Rich")
def show(infra_path: str | None, access_path: str | None, json_output: bool) -> None:
    """Show the report that the next send would submit."""
    try:
        store = _open_store()
        infra, access = _load_graphs(infra_path, access_path)
        report, _ = build_report(store, infra, access,
                                 store.get_int_value(cfg.SENT_ID_KEY))
    except StatsError as e:
        click.echo(f"Failed to build report: {e}", err=True)
        sys.exit(1)

    if json_output:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        render_report(report)


@cli.command()
@click.option("--infra", "infra_path", type=click.Path(exists=True),
              help="Infrastructure graph (node-link JSON)")
@click.option("--access", "access_path", type=click.Path(exists=True),
              help="Access graph (node-link JSON)")
@click.option("--public-key", "public_key_path", type=click.Path(exists=True),
              help="Collector RSA public key (PEM)")
@click.option("--force", is_flag=True, help="Send even if the last send is recent")
def send(infra_path: str | None, access_path: str | None,
         public_key_path: str | None, force: bool) -> None:
    """Encrypt and send usage statistics to the collector."""
    settings = cfg.load_settings(cfg.get_config_path())
    if not cfg.telemetry_enabled(settings):
        click.echo("Telemetry is disabled.", err=True)
        return

    key_path = cfg.resolve_public_key_path(settings, public_key_path)
    if not key_path:
        click.echo("No collector public key configured "
                   "(use --public-key or `cloudstats config set public_key_path`).", err=True)
        sys.exit(1)

    try:
        store = _open_store()
        transport_config = cfg.TransportConfig.from_settings(settings)
        if not force and not check_stats_to_send(store, expiration=transport_config.expiration):
            click.echo("Statistics were sent less than 24h ago; use --force to resend.")
            return
        public_key = cfg.load_public_key_file(key_path)
        infra, access = _load_graphs(infra_path, access_path)
        transport = SecureTransport(transport_config)
        advisory = send_stats(store, infra, access, public_key, transport)
    except StatsError as e:
        click.echo(f"Failed to send statistics: {e}", err=True)
        sys.exit(1)

    click.echo("Statistics sent.")
    if advisory is not None:
        print_advisory(advisory)


@cli.group()
def config() -> None:
    """Manage cloudstats configuration."""
    pass


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a configuration value."""
    if key not in CONFIG_KEYS:
        click.echo(f"Unknown config key: {key}", err=True)
        sys.exit(1)
    config_path = cfg.get_config_path()
    settings = cfg.load_settings(config_path)
    if key == "telemetry":
        if value not in ("on", "off"):
            click.echo("Value must be 'on' or 'off'", err=True)
            sys.exit(1)
        settings["telemetry"] = (value == "on")
    elif key == "region":
        # The region is read from the store at report time.
        try:
            _open_store().set_string_value(cfg.REGION_KEY, value)
        except StatsError as e:
            click.echo(f"Failed to set region: {e}", err=True)
            sys.exit(1)
        click.echo(f"region: {value}")
        return
    else:
        settings[key] = value
    try:
        cfg.save_settings(config_path, settings)
    except OSError as e:
        click.echo(f"Failed to save config: {e}", err=True)
        sys.exit(1)
    click.echo(f"{key}: {value}")


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Get a configuration value."""
    if key not in CONFIG_KEYS:
        click.echo(f"Unknown config key: {key}", err=True)
        sys.exit(1)
    settings = cfg.load_settings(cfg.get_config_path())
    if key == "telemetry":
        click.echo(f"telemetry: {'on' if cfg.telemetry_enabled(settings) else 'off'}")
    elif key == "region":
        try:
            region = _open_store().get_default_region()
        except StatsError as e:
            click.echo(f"Failed to read region: {e}", err=True)
            sys.exit(1)
        click.echo(f"region: {region}")
    else:
        click.echo(f"{key}: {settings.get(key, '')}")


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
