from functools import wraps
import sys
import traceback

from rich.markup import escape

from querybridge.common.errors import DatabaseNotFoundError, DriverNotFoundError
from querybridge_driver_sdk import DriverError
from querybridge_cli.console import console


def handle_cli_errors(func):
    """
    Decorator to wrap CLI commands with unified error handling.

    - Driver, lookup and configuration errors: a clean red message, exit code 1.
    - KeyboardInterrupt: exits with 130.
    - Anything else: the stack trace, exit code 1.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (DriverError, DriverNotFoundError, DatabaseNotFoundError, FileNotFoundError, ValueError) as e:
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user.[/yellow]")
            sys.exit(130)
        except Exception as e:
            console.print(f"[bold red]Unexpected Error:[/bold red] {escape(str(e))}")
            console.print(traceback.format_exc(), markup=False)
            sys.exit(1)

    return wrapper
