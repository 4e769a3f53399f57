"""
Crucible Core - Structured logging with Rich
"""

from rich.console import Console
from rich.theme import Theme
from rich.logging import RichHandler
from rich.markup import escape
import logging

# Crucible theme
CRUCIBLE_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red bold",
    "success": "green",
    "debug": "dim",
    "header": "cyan bold",
    "path": "blue underline",
    "component": "magenta",
    "output": "grey50",
})

# Global console
console = Console(theme=CRUCIBLE_THEME)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configures global logging through Rich."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )
    log.verbose = verbose or debug


class CrucibleLogger:
    """Structured logger for Crucible."""

    def __init__(self, name: str = "crucible"):
        self._logger = logging.getLogger(name)
        self.verbose = False

    def header(self, title: str) -> None:
        """Prints a section header."""
        console.print()
        console.print("=" * 50, style="cyan")
        console.print(f"   {title}", style="header")
        console.print("=" * 50, style="cyan")

    def info(self, message: str, **kwargs) -> None:
        console.print(f"[info]ℹ️  {escape(message)}[/info]", **kwargs)

    def success(self, message: str, **kwargs) -> None:
        console.print(f"[success]✓ {escape(message)}[/success]", **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        console.print(f"[warning]⚠️  {escape(message)}[/warning]", **kwargs)

    def error(self, message: str, **kwargs) -> None:
        console.print(f"[error]✗ {escape(message)}[/error]", **kwargs)

    def debug(self, message: str) -> None:
        """Debug log, subject to the configured logging level."""
        self._logger.debug(message)

    def step(self, message: str, **kwargs) -> None:
        """Logs a process step."""
        console.print(f"  → {message}", style="dim", markup=False, **kwargs)

    def component(self, name: str, status: str, success: bool = True) -> None:
        """Logs a component status line."""
        icon = "✓" if success else "✗"
        style = "success" if success else "error"
        console.print(f"  [{style}]{icon}[/{style}] [component]{escape(name)}[/component]: {escape(status)}")

    def output(self, text: str) -> None:
        """Echoes captured toolchain output, dimmed so it does not drown the log."""
        for line in text.rstrip().splitlines():
            console.print(f"  | {line}", style="output", markup=False, highlight=False)


# Global logger
log = CrucibleLogger()
