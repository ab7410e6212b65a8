import json
import sys
from typing import Any, Dict

from querybridge import QueryBridgeContext
from querybridge_cli.console import print_error, print_success


def parse_details(raw: str) -> Dict[str, Any]:
    try:
        details = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"--details must be a JSON object: {e}") from e
    if not isinstance(details, dict):
        raise ValueError("--details must be a JSON object")
    return details


def check_connection(ctx: QueryBridgeContext, engine: str, details: Dict[str, Any]) -> None:
    # Raises DatabaseConnectionError with a humanized message on failure
    if not ctx.can_connect_with_details(engine, details, rethrow=True):
        print_error(f"Connected to {ctx.registry.resolve(engine)} but the test query returned an unexpected result.")
        sys.exit(1)
    print_success(f"Connected to {ctx.registry.resolve(engine)} database.")


def check_database(ctx: QueryBridgeContext, database_id: int) -> None:
    database = ctx.databases.get(database_id)
    if ctx.can_connect(database_id):
        print_success(f"Database {database_id} ({database.name or database.engine}) is reachable.")
    else:
        print_error(f"Database {database_id} ({database.name or database.engine}) is not reachable.")
        sys.exit(1)
