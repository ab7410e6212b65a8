from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

querybridge_theme = Theme({
    "engine": "cyan",
    "error": "bold red",
    "success": "bold green",
})

console = Console(theme=querybridge_theme)


def print_success(message: str) -> None:
    console.print(f"[success]✔ {escape(message)}[/success]")


def print_error(message: str) -> None:
    console.print(f"[error]✘ {escape(message)}[/error]")
