"""Rich output formatters for CLI display."""

from __future__ import annotations

import json
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table

from fwledger.chains import EXPLORER_PLACEHOLDER, chain_name, explorer_tx_url
from fwledger.ledger.errors import LedgerError, LedgerErrorKind
from fwledger.ledger.models import LedgerResult

console = Console()
err_console = Console(stderr=True)


def print_table(
    rows: Sequence[dict[str, Any]],
    title: str | None = None,
    columns: Sequence[str] | None = None,
) -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No results.[/dim]")
        return

    cols = columns or list(rows[0].keys())
    table = Table(title=title, show_lines=True)
    for col in cols:
        table.add_column(col, overflow="fold")

    for row in rows:
        table.add_row(*(str(row.get(c, "")) for c in cols))

    console.print(table)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str, indent=2))


def print_success(msg: str) -> None:
    console.print(f"[bold green]{msg}[/bold green]")


def print_info(msg: str) -> None:
    console.print(f"[cyan]{msg}[/cyan]")


def print_error(msg: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {msg}")


def print_warning(msg: str) -> None:
    err_console.print(f"[bold yellow]Warning:[/bold yellow] {msg}")


def print_ledger_result(result: LedgerResult) -> None:
    action = "updated on" if result.is_update else "logged to"
    print_success(f"Analysis {action} the ledger")
    console.print(f"  Network:     {chain_name(result.chain_id)}")
    console.print(f"  Transaction: {result.tx_hash}")
    console.print(f"  Block:       #{result.block_number}")
    console.print(f"  Gas used:    {result.gas_used}")
    url = explorer_tx_url(result.chain_id, result.tx_hash)
    if url != EXPLORER_PLACEHOLDER:
        console.print(f"  Explorer:    {url}")


def print_ledger_error(error: LedgerError, verbose: bool = False) -> None:
    """Render one message per error kind; cancellations and timeouts are not failures."""
    if error.kind is LedgerErrorKind.USER_REJECTED:
        print_info(error.message)
    elif error.kind is LedgerErrorKind.CONFIRMATION_TIMEOUT:
        print_warning(error.message)
        err_console.print(f"  Transaction: {error.tx_hash}")
    else:
        print_error(error.message)
        if error.tx_hash:
            err_console.print(f"  Transaction: {error.tx_hash}")
    if verbose and error.detail:
        err_console.print(f"[dim]  {error.kind.value}: {error.detail}[/dim]")
