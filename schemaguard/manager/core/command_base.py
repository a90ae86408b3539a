"""
Base Command - Common functionality for all module commands.

Provides shared utilities including:
- Service injection
- Status messaging and JSON output
- Rich table printing
- Data formatting helpers
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List
import json

from rich.console import Console
from rich.table import Table


class BaseCommand(ABC):
    """Base class for all module commands."""

    def __init__(self):
        self.config = None
        self.console = Console()

    def inject_services(self, services: Dict[str, Any]) -> None:
        """Inject required services (config, trigger system, etc.)."""
        self.config = services.get('config')

    @abstractmethod
    def execute(self, args) -> None:
        """Execute the command with given arguments."""
        pass

    # Output formatting utilities
    def print_success(self, message: str) -> None:
        self.console.print(f"[bold green]✅ {message}[/bold green]")

    def print_error(self, message: str) -> None:
        self.console.print(f"[bold red]❌ {message}[/bold red]")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠️  {message}[/yellow]")

    def print_info(self, message: str) -> None:
        self.console.print(f"ℹ️  {message}")

    def print_json(self, data: Any, title: str = None) -> None:
        """Print data in JSON format with optional title."""
        if title:
            self.console.print(f"[bold]{title.upper()}[/bold]")

        # Plain print keeps the output machine-readable
        print(json.dumps(data, indent=2, default=str))

    def print_table(self, headers: List[str], rows: List[List[Any]], title: str = None) -> None:
        """Print data in a rich table."""
        if not headers or not rows:
            return

        table = Table(title=title, show_header=True, header_style="bold magenta")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*[str(cell) for cell in row])

        self.console.print(table)

    # Data formatting utilities
    def format_file_size(self, bytes_size: float) -> str:
        """Format file size in human-readable format."""
        for unit in ['B', 'KB', 'MB', 'GB']:
            if bytes_size < 1024.0:
                return f"{bytes_size:.1f}{unit}"
            bytes_size /= 1024.0
        return f"{bytes_size:.1f}TB"

    def confirm_operation(self, message: str, assume_yes: bool = False) -> bool:
        """Ask the operator to confirm (skipped when assume_yes is set)."""
        if assume_yes:
            return True

        try:
            response = input(f"{message} (yes/no): ").strip().lower()
            return response == 'yes'
        except (EOFError, KeyboardInterrupt):
            print("\nOperation cancelled by user")
            return False
