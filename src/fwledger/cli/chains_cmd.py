"""fwledger chains / validate-address: reference lookups."""

from __future__ import annotations

import typer


def chains_cmd() -> None:
    """List known networks and their block explorers."""
    from fwledger.chains import KNOWN_CHAINS
    from fwledger.utils.formatters import print_table

    rows = [
        {
            "chain_id": info.chain_id,
            "name": info.name,
            "testnet": "yes" if info.testnet else "no",
            "explorer": info.explorer,
        }
        for info in sorted(KNOWN_CHAINS.values(), key=lambda i: i.chain_id)
    ]
    print_table(rows, title="Known Networks")


def validate_address_cmd(
    address: str = typer.Argument(..., help="Candidate account or contract address"),
) -> None:
    """Exit 0 if ADDRESS is 0x followed by 40 hex digits, 1 otherwise."""
    from fwledger.address import is_valid_address
    from fwledger.utils.formatters import print_error, print_success

    if is_valid_address(address):
        print_success(f"{address} is a valid address")
        return
    print_error(f"{address!r} is not a valid address")
    raise typer.Exit(1)
