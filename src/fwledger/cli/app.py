"""Root Typer application with subcommand registration."""

from __future__ import annotations

from typing import Optional

import typer

from fwledger import LedgerContext, __version__

app = typer.Typer(
    name="fwledger",
    help="fwledger: record firmware analysis summaries on a blockchain ledger",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Shared state across commands
_ctx = LedgerContext()


def get_context() -> LedgerContext:
    return _ctx


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"fwledger {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", "-C", help="Path to fwledger.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=_version_callback, is_eager=True
    ),
) -> None:
    """fwledger: record firmware analysis summaries on a blockchain ledger."""
    from fwledger.config.loader import load_config
    from fwledger.utils.logging import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING", json_output=json_logs)
    if _ctx.config is None or config is not None:
        _ctx.config = load_config(config)


# -- Subcommand registration --
from fwledger.cli.log_cmd import exists_cmd, log_cmd, poll_cmd  # noqa: E402
from fwledger.cli.history_cmd import history_cmd  # noqa: E402
from fwledger.cli.contract_cmd import contract_app  # noqa: E402
from fwledger.cli.wallet_cmd import wallet_app  # noqa: E402
from fwledger.cli.chains_cmd import chains_cmd, validate_address_cmd  # noqa: E402
from fwledger.cli.schema_cmd import schema_app  # noqa: E402

app.command(name="log")(log_cmd)
app.command(name="poll")(poll_cmd)
app.command(name="exists")(exists_cmd)
app.command(name="history")(history_cmd)
app.add_typer(contract_app, name="contract", help="Ledger contract address settings")
app.add_typer(wallet_app, name="wallet", help="Wallet account, network and balance")
app.command(name="chains")(chains_cmd)
app.command(name="validate-address")(validate_address_cmd)
app.add_typer(schema_app, name="schema", help="Record store schema management")
