"""fwledger wallet: connected account, network and balances."""

from __future__ import annotations

from typing import Optional

import typer

wallet_app = typer.Typer(no_args_is_help=True)


@wallet_app.command()
def status() -> None:
    """Show the connected account, its network and balance."""
    import asyncio

    from fwledger.address import short_address
    from fwledger.chains import EXPLORER_PLACEHOLDER, chain_name, explorer_address_url
    from fwledger.cli.app import get_context
    from fwledger.ledger.errors import LedgerClientError
    from fwledger.utils.formatters import console, print_error, print_warning

    ctx = get_context()
    wallet = ctx.ensure_wallet()

    async def _query():
        account = await wallet.get_connected_account()
        if account is None:
            return None, None, None
        chain_id = await wallet.get_active_chain_id()
        balance = await wallet.get_balance(account)
        return account, chain_id, balance

    try:
        account, chain_id, balance = asyncio.run(_query())
    except (LedgerClientError, OSError) as exc:
        print_error(f"Wallet unavailable: {exc}")
        raise typer.Exit(1)

    if account is None:
        print_warning("No wallet account connected")
        raise typer.Exit(1)

    console.print(f"Account: {short_address(account)}  [dim]{account}[/dim]")
    console.print(f"Network: {chain_name(chain_id)}")
    console.print(f"Balance: {balance:.4f} ETH")
    url = explorer_address_url(chain_id, account)
    if url != EXPLORER_PLACEHOLDER:
        console.print(f"Explorer: {url}")


@wallet_app.command()
def balance(
    address: Optional[str] = typer.Argument(None, help="Account to look up (defaults to the connected one)"),
) -> None:
    """Look up the balance of any account on the active network."""
    import asyncio

    from fwledger.address import is_valid_address
    from fwledger.chains import chain_name
    from fwledger.cli.app import get_context
    from fwledger.ledger.errors import LedgerClientError
    from fwledger.utils.formatters import console, print_error

    ctx = get_context()
    wallet = ctx.ensure_wallet()

    if address is not None and not is_valid_address(address):
        print_error("Please enter a valid address: 0x followed by 40 hex digits")
        raise typer.Exit(1)

    async def _query():
        target = address or await wallet.get_connected_account()
        if target is None:
            return None, None, None
        return target, await wallet.get_active_chain_id(), await wallet.get_balance(target)

    try:
        target, chain_id, amount = asyncio.run(_query())
    except (LedgerClientError, OSError) as exc:
        print_error(f"Failed to fetch account details: {exc}")
        raise typer.Exit(1)

    if target is None:
        print_error("No address given and no wallet account connected")
        raise typer.Exit(1)

    console.print(f"{target} on {chain_name(chain_id)}: {amount:.4f} ETH")
