from rich.table import Table

from querybridge import QueryBridgeContext
from querybridge_cli.console import console, print_success


def sync_database(ctx: QueryBridgeContext, database_id: int) -> None:
    database = ctx.databases.get(database_id)
    with console.status(f"[bold green]Syncing database {database_id}...[/bold green]"):
        result = ctx.sync.sync_database(database)

    for table_result in result.tables:
        table = Table(title=table_result.table.full_name, show_header=True, header_style="bold cyan")
        table.add_column("Field")
        table.add_column("Base Type")
        table.add_column("Special Type")
        table.add_column("Preview")
        for field in table_result.fields:
            table.add_row(
                field.name,
                field.base_type.value,
                field.special_type.value if field.special_type else "",
                "yes" if field.preview_display else "no",
            )
        console.print(table)

    print_success(f"Synced {len(result.tables)} table(s).")
