"""Console output and prompts."""

import logging
from datetime import datetime
from typing import ContextManager, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

logger = logging.getLogger(__name__)


def name(value: str) -> str:
    """Markup for a branch or remote name."""
    return f"[blue]{escape(value)}[/blue]"


class ConsoleUI:
    """Status lines, spinners and confirmation prompts on a rich console."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def status(self, message: str) -> ContextManager:
        """Spinner shown while a long operation runs."""
        return self.console.status(escape(message))

    def _line(self, mark: str, message: str) -> None:
        timestamp = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S %z")
        self.console.print(f"[grey50]{timestamp}[/grey50] {mark} {message}", highlight=False)

    def success(self, message: str) -> None:
        self._line("[green]✓[/green]", message)

    def note(self, message: str) -> None:
        self._line("[yellow]✓[/yellow]", message)

    def error(self, message: str) -> None:
        self._line("[red]✗[/red]", message)

    def confirm(self, message: str) -> bool:
        """Ask a yes/no question. No answer at all, such as a closed stdin, means no."""
        try:
            return Confirm.ask(message, console=self.console, default=False)
        except EOFError:
            logger.debug("No input available, answering no")
            self.console.print()
            return False
