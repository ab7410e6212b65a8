#!/usr/bin/env python3
"""Operator CLI for querybridge."""
import pathlib
from typing import Optional

import typer
from typing_extensions import Annotated

from querybridge import QueryBridgeContext
from querybridge.common.settings import settings

from querybridge_cli.commands.check import check_connection, check_database, parse_details
from querybridge_cli.commands.drivers import list_drivers
from querybridge_cli.commands.query import run_native_query
from querybridge_cli.commands.sync import sync_database
from querybridge_cli.common.decorators import handle_cli_errors

app = typer.Typer(
    name="querybridge",
    help="Database drivers, connectivity checks, sync and native queries.",
    no_args_is_help=True,
    add_completion=False,
)

ConfigOption = Annotated[Optional[pathlib.Path], typer.Option("--config", help="Path to databases config YAML")]


def build_context(config: Optional[pathlib.Path] = None) -> QueryBridgeContext:
    app_settings = settings
    if config is not None:
        app_settings = settings.model_copy(update={"databases_config_path": str(config)})
    return QueryBridgeContext(settings=app_settings)


@app.command()
@handle_cli_errors
def drivers():
    """
    List registered drivers and their connection fields.
    """
    list_drivers(build_context())


@app.command()
@handle_cli_errors
def check(
    engine: Annotated[Optional[str], typer.Argument(help="Engine to check, e.g. sqlserver")] = None,
    details: Annotated[str, typer.Option("--details", help="Connection details as a JSON object")] = "{}",
    database_id: Annotated[Optional[int], typer.Option("--database", help="Check a configured database instead")] = None,
    config: ConfigOption = None,
):
    """
    Check that a database is reachable.
    """
    ctx = build_context(config)
    if database_id is not None:
        check_database(ctx, database_id)
        return
    if engine is None:
        raise ValueError("Pass an ENGINE with --details, or --database ID")
    check_connection(ctx, engine, parse_details(details))


@app.command()
@handle_cli_errors
def sync(
    database_id: Annotated[int, typer.Argument(help="Configured database id")],
    config: ConfigOption = None,
):
    """
    Introspect a configured database and show its field metadata.
    """
    sync_database(build_context(config), database_id)


@app.command()
@handle_cli_errors
def query(
    database_id: Annotated[int, typer.Argument(help="Configured database id")],
    sql: Annotated[str, typer.Argument(help="Native SQL to run")],
    user: Annotated[Optional[str], typer.Option("--user", help="Recorded as the executor of the query")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full response as JSON")] = False,
    config: ConfigOption = None,
):
    """
    Run native SQL against a configured database. Changes are always rolled back.
    """
    run_native_query(build_context(config), database_id, sql, executed_by=user, as_json=as_json)


def main():
    app()


if __name__ == "__main__":
    main()
