"""Alert management commands for CoinAlert CLI.

Handles creating, listing, changing the status of and removing alerts.
Every command loads the user's alerts once, applies at most one
mutation and waits for it to be written before exiting.
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from coinalert.alerts import AlertPanel, AlertStore, can_transition
from coinalert.config import (
    create_template_config,
    load_config,
    market_data,
    storage_path,
    validate_config,
)
from coinalert.db.documents import EncryptedDocumentStore
from coinalert.models import AlertStatus, AlertType

console = Console()

STATUS_STYLES = {
    AlertStatus.ACTIVE: "green",
    AlertStatus.TRIGGERED: "red",
    AlertStatus.DISMISSED: "dim",
}


def _error(title: str, message: str) -> None:
    console.print(Panel(
        f"[red]{title}[/red]\n\n{message}",
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def _get_config(ctx: click.Context) -> dict:
    """Load and validate config, exiting with a message if unusable."""
    config_path = (ctx.obj or {}).get("config_path")
    config = load_config(config_path)

    if config is None:
        _error(
            "No configuration found.",
            "Run [cyan]coinalert init[/cyan] to create a config file.",
        )

    missing = validate_config(config)
    if missing:
        _error("Configuration incomplete:", "\n".join(f"  - {key}" for key in missing))

    return config


def _open_store(config: dict) -> AlertStore:
    documents = EncryptedDocumentStore(
        storage_path(config),
        user_id=config["user"]["id"],
        secret=config["user"]["secret"],
    )
    return AlertStore(documents)


async def _open_panel(config: dict, coin: Optional[str] = None) -> AlertPanel:
    store = _open_store(config)
    await store.load()
    return AlertPanel(store, coin=coin, market_data=market_data(config))


def _report_writes(results) -> None:
    for result in results:
        if not result.ok:
            console.print(
                f"[yellow]Warning: change kept locally but not saved: {result.error}[/yellow]"
            )


@click.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
@click.pass_context
def init_config(ctx: click.Context, force: bool) -> None:
    """Create a template configuration file."""
    config_path: Optional[Path] = (ctx.obj or {}).get("config_path")

    if load_config(config_path) is not None and not force:
        console.print("[yellow]Config already exists. Use --force to overwrite.[/yellow]")
        return

    path = create_template_config(config_path)
    console.print(Panel(
        f"[yellow]Configuration file created at:[/yellow]\n"
        f"[cyan]{path}[/cyan]\n\n"
        f"Set [bold]user.id[/bold] and [bold]user.secret[/bold] before adding alerts.",
        title="[bold]Configuration Required[/bold]",
        border_style="yellow",
    ))


@click.command("add")
@click.argument("coin")
@click.argument("alert_type", type=click.Choice([t.value for t in AlertType]))
@click.argument("price")
@click.option("--disabled", is_flag=True, help="Store the alert with enabled=false.")
@click.pass_context
def add_alert(ctx: click.Context, coin: str, alert_type: str, price: str, disabled: bool) -> None:
    """Create a price alert.

    COIN is the asset symbol (e.g., BTC, ETH).
    ALERT_TYPE is 'above' or 'below'.
    PRICE is the threshold price.

    \b
    Examples:
      coinalert add BTC above 70000
      coinalert add eth below 2500.5
    """
    config = _get_config(ctx)
    results = []

    async def run():
        panel = await _open_panel(config)
        panel.store.on_persisted = results.append
        panel.update_draft(coin=coin, alert_type=AlertType(alert_type), price=price,
                           enabled=not disabled)
        return await panel.submit()

    alert = asyncio.run(run())
    if alert is None:
        _error("Invalid alert:", f"coin={coin!r} price={price!r}")

    _report_writes(results)
    console.print(Panel(
        f"[bold green]Alert Created[/bold green]\n\n"
        f"ID:     {alert.id}\n"
        f"Alert:  {alert.describe()}\n"
        f"Status: {alert.status.value}",
        title="[bold]New Alert[/bold]",
        border_style="green",
    ))


@click.command("list")
@click.option("--coin", default=None, help="Only show alerts for this coin.")
@click.pass_context
def list_alerts(ctx: click.Context, coin: Optional[str]) -> None:
    """Display alerts.

    \b
    Examples:
      coinalert list
      coinalert list --coin btc
    """
    config = _get_config(ctx)
    panel = asyncio.run(_open_panel(config, coin=coin))
    rows = panel.rows()

    if not rows:
        console.print(Panel(
            "[dim]No alerts set. Use 'coinalert add COIN above|below PRICE' to create one.[/dim]",
            title=f"[bold]{panel.title()}[/bold]",
            border_style="dim",
        ))
        return

    table = Table(
        title=panel.title(),
        show_header=True,
        header_style="bold cyan",
    )

    table.add_column("ID", style="dim")
    table.add_column("Alert", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Created", style="dim")
    table.add_column("Triggered", style="dim")
    table.add_column("Current", justify="right")

    for row in rows:
        style = STATUS_STYLES[row.status]
        table.add_row(
            row.id,
            row.title,
            f"[{style}]{row.status.value.upper()}[/{style}]",
            row.created.isoformat(),
            row.triggered.isoformat() if row.triggered else "-",
            f"{row.current_price:g}" if row.current_price is not None else "-",
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(rows)} alerts[/dim]")


def _change_status(ctx: click.Context, alert_id: str, status: AlertStatus) -> None:
    config = _get_config(ctx)
    results = []

    async def run():
        panel = await _open_panel(config)
        alert = panel.store.get(alert_id)
        if alert is None or not can_transition(alert, status):
            return alert, None
        panel.store.on_persisted = results.append
        await panel.change_status(alert_id, status)
        return panel.store.get(alert_id), results

    alert, outcome = asyncio.run(run())

    if alert is None:
        console.print(f"[yellow]Alert with ID {alert_id} not found[/yellow]")
        return
    if outcome is None:
        console.print(
            f"[yellow]Cannot move alert {alert_id} from {alert.status.value} "
            f"to {status.value}[/yellow]"
        )
        return

    _report_writes(outcome)
    console.print(f"[green]✓ {alert.describe()} is now {alert.status.value}[/green]")


@click.command("trigger")
@click.argument("alert_id")
@click.pass_context
def trigger_alert(ctx: click.Context, alert_id: str) -> None:
    """Mark an active alert as triggered."""
    _change_status(ctx, alert_id, AlertStatus.TRIGGERED)


@click.command("dismiss")
@click.argument("alert_id")
@click.pass_context
def dismiss_alert(ctx: click.Context, alert_id: str) -> None:
    """Dismiss an active alert."""
    _change_status(ctx, alert_id, AlertStatus.DISMISSED)


@click.command("reactivate")
@click.argument("alert_id")
@click.pass_context
def reactivate_alert(ctx: click.Context, alert_id: str) -> None:
    """Return a triggered alert to active."""
    _change_status(ctx, alert_id, AlertStatus.ACTIVE)


@click.command("rm")
@click.argument("alert_id")
@click.pass_context
def remove_alert(ctx: click.Context, alert_id: str) -> None:
    """Delete an alert in any state."""
    config = _get_config(ctx)
    results = []

    async def run():
        panel = await _open_panel(config)
        alert = panel.store.get(alert_id)
        if alert is None:
            return None, []
        panel.store.on_persisted = results.append
        await panel.remove(alert_id)
        return alert, results

    alert, outcome = asyncio.run(run())

    if alert is None:
        console.print(f"[yellow]Alert with ID {alert_id} not found[/yellow]")
        return

    _report_writes(outcome)
    console.print(f"[green]✓ Removed alert {alert_id} ({alert.describe()})[/green]")
