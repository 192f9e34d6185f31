"""fwledger schema: record store schema management."""

from __future__ import annotations

import typer

schema_app = typer.Typer(no_args_is_help=True)


@schema_app.command()
def create() -> None:
    """Create record store constraints and indexes."""
    from fwledger.cli.app import get_context
    from fwledger.store.graph import create_record_schema
    from fwledger.utils.formatters import print_success

    ctx = get_context()
    driver = ctx.ensure_neo4j()
    create_record_schema(driver)
    print_success("Schema created successfully")
