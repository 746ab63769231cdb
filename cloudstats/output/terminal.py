"""Rich terminal output for reports and upgrade advisories."""
from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cloudstats.models import StatsReport, UpgradeAdvisory

console = Console()
err_console = Console(stderr=True)


def _metrics_table(title: str, rows: dict) -> Table:
    table = Table(title=title, show_header=False, title_justify="left")
    table.add_column("metric", style="dim")
    table.add_column("value", justify="right")
    for key, value in rows.items():
        if key == "Date":
            continue
        table.add_row(key, str(value))
    return table


def render_report(report: StatsReport, out: Console | None = None) -> None:
    """Human summary of what would be sent."""
    out = out or console
    out.print(Panel.fit(
        f"[bold]cloudstats {report.version}[/bold]\n"
        f"id [dim]{report.anonymous_id or '-'}[/dim]",
        title="Usage report",
    ))

    commands = Table(title="Commands", title_justify="left")
    commands.add_column("Day")
    commands.add_column("Command")
    commands.add_column("Hits", justify="right")
    for c in report.commands:
        commands.add_row(c.date.strftime("%Y-%m-%d"), c.command, str(c.hits))
    out.print(commands)

    if report.instance_stats:
        instances = Table(title="Instances", title_justify="left")
        instances.add_column("Stat")
        instances.add_column("Value")
        instances.add_column("Hits", justify="right")
        for s in report.instance_stats:
            instances.add_row(s.stat_type, s.name, str(s.hits))
        out.print(instances)

    out.print(_metrics_table("Infrastructure", report.infra_metrics.to_dict()))
    out.print(_metrics_table("Access", report.access_metrics.to_dict()))
    out.print(f"[dim]{len(report.logs)} log record(s) attached[/dim]")


def print_advisory(advisory: UpgradeAdvisory, out: Console | None = None) -> None:
    out = out or err_console
    out.print(f"[bold yellow]New version {advisory.version} available.[/bold yellow] "
              f"{advisory.install_hint}")
