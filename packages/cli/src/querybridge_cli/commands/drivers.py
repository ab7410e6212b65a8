from rich.table import Table

from querybridge import QueryBridgeContext
from querybridge_cli.console import console


def list_drivers(ctx: QueryBridgeContext) -> None:
    table = Table(title="Registered Drivers", show_header=True, header_style="bold magenta")
    table.add_column("Engine", style="engine", no_wrap=True)
    table.add_column("Name")
    table.add_column("Features")
    table.add_column("Connection Fields")

    for engine, info in ctx.registry.available_drivers().items():
        fields = ", ".join(
            f"{f['name']}*" if f.get("required") else f["name"] for f in info["details_fields"]
        )
        table.add_row(engine, info["driver_name"], ", ".join(info["features"]) or "-", fields)

    console.print(table)
    console.print("[dim]* required[/dim]")
