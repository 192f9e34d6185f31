"""fwledger log / poll / exists: ledger writes and lookups."""

from __future__ import annotations

from typing import Optional

import typer

EXIT_FAILED = 1
EXIT_REJECTED = 2
EXIT_UNCONFIRMED = 3


def _exit_code(outcome) -> int:
    from fwledger.ledger.errors import LedgerError, LedgerErrorKind

    if not isinstance(outcome, LedgerError):
        return 0
    if outcome.kind is LedgerErrorKind.USER_REJECTED:
        return EXIT_REJECTED
    if outcome.kind is LedgerErrorKind.CONFIRMATION_TIMEOUT:
        return EXIT_UNCONFIRMED
    return EXIT_FAILED


def _render(outcome, verbose: bool) -> None:
    from fwledger.ledger.models import LedgerResult
    from fwledger.utils.formatters import print_ledger_error, print_ledger_result

    if isinstance(outcome, LedgerResult):
        print_ledger_result(outcome)
    else:
        print_ledger_error(outcome, verbose=verbose)


def log_cmd(
    analysis_id: str = typer.Argument(..., help="Analysis identifier"),
    filename: Optional[str] = typer.Option(None, "--filename", "-f", help="Firmware filename (new records)"),
    crypto: Optional[int] = typer.Option(None, "--crypto", help="Detected crypto function count"),
    total: Optional[int] = typer.Option(None, "--total", help="Total function count"),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Confirmation timeout in seconds"),
    retry: bool = typer.Option(False, "--retry", help="Retry network failures with backoff"),
    verbose: bool = typer.Option(False, "--details", help="Show raw error details"),
) -> None:
    """Log an analysis to the ledger (creates it on first write, updates it afterwards).

    Exit status: 0 logged, 1 failed, 2 cancelled in the wallet, 3 submitted but unconfirmed.
    """
    import asyncio

    from fwledger.cli.app import get_context
    from fwledger.ledger.errors import ConfigurationError
    from fwledger.ledger.models import AnalysisRecord
    from fwledger.ledger.reconcile import LedgerReconciler
    from fwledger.utils.formatters import console, print_error

    ctx = get_context()
    cfg = ctx.ensure_config()
    store = ctx.ensure_store()

    record = store.get(analysis_id)
    if record is None:
        if filename is None or total is None:
            print_error(
                f"Analysis {analysis_id!r} is not stored; pass --filename, --crypto and --total to register it"
            )
            raise typer.Exit(EXIT_FAILED)
        try:
            record = AnalysisRecord.new(analysis_id, filename, crypto or 0, total)
        except ValueError as exc:
            print_error(str(exc))
            raise typer.Exit(EXIT_FAILED)
        store.save(record)

    try:
        coordinator = ctx.ensure_coordinator()
    except ConfigurationError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_FAILED)

    reconciler = LedgerReconciler(store, coordinator)
    with console.status("Waiting for wallet approval and block confirmation..."):
        result = asyncio.run(
            reconciler.log_record(
                ctx.ensure_wallet(),
                analysis_id,
                confirmation_timeout=timeout,
                crypto_count=crypto,
                total_count=total,
                retry_policy=cfg.retry if retry else None,
            )
        )

    _render(result.outcome, verbose)
    console.print(f"[dim]Record state: {result.record.ledger_state.value}[/dim]")
    code = _exit_code(result.outcome)
    if code:
        raise typer.Exit(code)


def poll_cmd(
    analysis_id: str = typer.Argument(..., help="Analysis identifier with a pending transaction"),
) -> None:
    """Check whether a pending ledger write has been confirmed."""
    import asyncio

    from fwledger.cli.app import get_context
    from fwledger.ledger.errors import ConfigurationError
    from fwledger.ledger.reconcile import LedgerReconciler, RecordNotFoundError
    from fwledger.utils.formatters import console, print_error, print_info

    ctx = get_context()
    try:
        reconciler = LedgerReconciler(ctx.ensure_store(), ctx.ensure_coordinator())
    except ConfigurationError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_FAILED)

    try:
        result = asyncio.run(reconciler.poll_record(ctx.ensure_wallet(), analysis_id))
    except RecordNotFoundError:
        print_error(f"Analysis {analysis_id!r} not found")
        raise typer.Exit(EXIT_FAILED)

    if result.outcome is None:
        if result.record.tx_hash:
            print_info(f"Transaction {result.record.tx_hash} is not confirmed yet")
        else:
            print_info(f"Nothing to poll: record is {result.record.ledger_state.value}")
        console.print(f"[dim]Record state: {result.record.ledger_state.value}[/dim]")
        return

    _render(result.outcome, verbose=False)
    console.print(f"[dim]Record state: {result.record.ledger_state.value}[/dim]")
    code = _exit_code(result.outcome)
    if code:
        raise typer.Exit(code)


def exists_cmd(
    analysis_id: str = typer.Argument(..., help="Analysis identifier"),
) -> None:
    """Read-only check whether the ledger already holds an analysis."""
    import asyncio

    from fwledger.cli.app import get_context
    from fwledger.ledger.errors import (
        ConfigurationError,
        LedgerClientError,
        LedgerErrorKind,
        to_ledger_error,
        user_message,
    )
    from fwledger.utils.formatters import console, print_error

    ctx = get_context()
    try:
        coordinator = ctx.ensure_coordinator()
    except ConfigurationError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_FAILED)
    if not coordinator.is_configured:
        print_error(user_message(LedgerErrorKind.NOT_CONFIGURED))
        raise typer.Exit(EXIT_FAILED)

    try:
        found = asyncio.run(coordinator.analysis_exists(ctx.ensure_wallet(), analysis_id))
    except (LedgerClientError, ConfigurationError, OSError) as exc:
        print_error(to_ledger_error(exc).message)
        raise typer.Exit(EXIT_FAILED)

    console.print(f"{analysis_id}: {'on ledger' if found else 'not on ledger'}")
