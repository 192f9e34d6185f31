"""fwledger history: analyses recorded on the ledger."""

from __future__ import annotations

import typer


def history_cmd(
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum rows to show"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List logged analyses, most recent first."""
    from fwledger.address import short_address
    from fwledger.chains import chain_name, explorer_tx_url
    from fwledger.cli.app import get_context
    from fwledger.utils.formatters import print_json, print_table

    ctx = get_context()
    records = ctx.ensure_store().list_logged(limit=limit)

    rows = [
        {
            "analysis": r.id,
            "filename": r.filename,
            "crypto/total": f"{r.crypto_function_count}/{r.total_function_count}",
            "state": r.ledger_state.value,
            "network": chain_name(r.chain_id),
            "block": f"#{r.block_number}" if r.block_number is not None else "-",
            "tx": short_address(r.tx_hash or ""),
            "updates": len(r.updates),
            "logged_at": r.logged_at.isoformat() if r.logged_at else "-",
            "explorer": explorer_tx_url(r.chain_id, r.tx_hash or ""),
        }
        for r in records
    ]
    if as_json:
        print_json(rows)
    else:
        print_table(rows, title="Ledger History")
