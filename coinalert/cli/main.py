"""Main CLI entry point for CoinAlert."""

import logging
from pathlib import Path
from typing import Optional

import click

from coinalert.cli.alerts import (
    add_alert,
    dismiss_alert,
    init_config,
    list_alerts,
    reactivate_alert,
    remove_alert,
    trigger_alert,
)


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="coinalert")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.toml (default: ~/.config/coinalert/config.toml).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """CoinAlert - price-threshold alerts for crypto assets.

    Alerts are stored encrypted per user. Marking an alert as
    triggered is manual: nothing here watches live prices.

    \b
    Quick Start:
      coinalert init                 # Create a config file
      coinalert add BTC above 70000  # Create an alert
      coinalert list                 # Show alerts
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


cli.add_command(init_config)
cli.add_command(add_alert)
cli.add_command(list_alerts)
cli.add_command(trigger_alert)
cli.add_command(dismiss_alert)
cli.add_command(reactivate_alert)
cli.add_command(remove_alert)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
