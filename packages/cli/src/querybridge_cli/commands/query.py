import json
import sys
from typing import Optional

from rich.markup import escape
from rich.table import Table

from querybridge import QueryBridgeContext
from querybridge.execution import QueryStatus
from querybridge_cli.console import console, print_error


def run_native_query(
    ctx: QueryBridgeContext,
    database_id: int,
    sql: str,
    executed_by: Optional[str] = None,
    as_json: bool = False,
) -> None:
    query = {"database": database_id, "type": "native", "native": {"query": sql}}
    response = ctx.query_processor.dataset_query(query, executed_by=executed_by)

    if as_json:
        console.print_json(response.model_dump_json())
        if response.status == QueryStatus.FAILED:
            sys.exit(1)
        return

    if response.status == QueryStatus.FAILED:
        print_error(response.error.message)
        sys.exit(1)

    table = Table(show_header=True, header_style="bold magenta")
    for column in response.data.columns:
        table.add_column(escape(column))
    for row in response.data.rows:
        table.add_row(*[escape(_render(v)) for v in row])

    console.print(table)
    console.print(f"[dim]{response.row_count} row(s) in {response.data.execution_time_ms or 0:.0f} ms, execution {response.id}[/dim]")


def _render(value) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)
