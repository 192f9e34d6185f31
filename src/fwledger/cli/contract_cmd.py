"""fwledger contract: manage the ledger contract address."""

from __future__ import annotations

import typer

contract_app = typer.Typer(no_args_is_help=True)


@contract_app.command()
def show() -> None:
    """Show the resolved contract address and where it comes from."""
    from fwledger.cli.app import get_context
    from fwledger.utils.formatters import console, print_warning

    ctx = get_context()
    cfg = ctx.ensure_config()
    settings = ctx.settings_store().load()

    if settings.contract_address:
        console.print(f"{settings.contract_address} [dim](user setting)[/dim]")
    elif cfg.ledger.contract_address:
        console.print(f"{cfg.ledger.contract_address} [dim](configured default)[/dim]")
    else:
        print_warning("No contract address configured; ledger logging is disabled")


@contract_app.command(name="set")
def set_address(
    address: str = typer.Argument(..., help="Deployed ledger contract address (0x + 40 hex)"),
) -> None:
    """Save a contract address; it overrides the configured default."""
    from fwledger.cli.app import get_context
    from fwledger.utils.formatters import print_error, print_success

    ctx = get_context()
    try:
        ctx.settings_store().save_contract_address(address)
    except ValueError:
        print_error("Please enter a valid address: 0x followed by 40 hex digits")
        raise typer.Exit(1)
    ctx.coordinator = None
    print_success("Contract address saved")


@contract_app.command()
def clear() -> None:
    """Remove the saved contract address."""
    from fwledger.cli.app import get_context
    from fwledger.utils.formatters import print_success

    ctx = get_context()
    ctx.settings_store().clear_contract_address()
    ctx.coordinator = None
    print_success("Contract address cleared")
