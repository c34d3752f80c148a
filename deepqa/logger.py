"""
Logging Module for the DeepQA pipeline
Provides rich console output and file logging
"""
import logging
import logging.handlers
from pathlib import Path
from typing import Dict, List

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config.settings import LoggingConfig

ROOT_LOGGER = "deepqa"

# Rich console for beautiful output
console = Console()


class PipelineLogger:
    """Custom logger with rich formatting"""

    def __init__(self, name: str = ROOT_LOGGER):
        self.name = name
        self.logger = logging.getLogger(name)
        _ensure_console_handler()

    def debug(self, msg: str, *args, **kwargs):
        self.logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self.logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self.logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self.logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args, **kwargs):
        self.logger.critical(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        self.logger.exception(msg, *args, **kwargs)


def _ensure_console_handler():
    """Attach the rich console handler to the package logger once."""
    root = logging.getLogger(ROOT_LOGGER)
    if any(isinstance(h, RichHandler) for h in root.handlers):
        return
    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    root.addHandler(console_handler)
    if root.level == logging.NOTSET:
        root.setLevel(logging.INFO)


def configure_logging(config: LoggingConfig) -> None:
    """Apply the ``logging`` config section: level plus rotating log file."""
    root = logging.getLogger(ROOT_LOGGER)
    level = getattr(logging, config.level.upper(), logging.INFO)
    root.setLevel(level)
    _ensure_console_handler()

    for handler in root.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)

    log_file = Path(config.file)
    for handler in list(root.handlers):
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            if Path(handler.baseFilename) == log_file.resolve():
                return
            root.removeHandler(handler)
            handler.close()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=config.max_file_size * 1024 * 1024,
        backupCount=config.backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root.addHandler(file_handler)


# Logger cache
_loggers: Dict[str, PipelineLogger] = {}


def get_logger(name: str = ROOT_LOGGER) -> PipelineLogger:
    """Get or create a logger instance"""
    if name not in _loggers:
        _loggers[name] = PipelineLogger(name)
    return _loggers[name]


# =============================================================================
# RICH OUTPUT HELPERS
# =============================================================================

def print_header(title: str, subtitle: str = None):
    """Print a styled header"""
    text = Text()
    text.append(title, style="bold cyan")
    if subtitle:
        text.append(f"\n{subtitle}", style="dim")

    console.print(Panel(text, border_style="cyan"))


def print_success(message: str):
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str):
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str):
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str):
    console.print(f"[blue]ℹ[/blue] {message}")


def print_answer_table(question, score_name: str, limit: int = 10):
    """Print the ranked candidate answers of a completed question."""
    answers = question.ranked(score_name)
    table = Table(
        title=f"Answers (showing {min(len(answers), limit)} of {len(answers)})",
        border_style="cyan",
    )

    table.add_column("#", style="dim", width=3)
    table.add_column("Answer", style="cyan", max_width=40)
    table.add_column("Passages", justify="right", width=8)
    table.add_column(score_name, justify="right", min_width=8)
    table.add_column("Correct", width=7)

    for i, answer in enumerate(answers[:limit], start=1):
        value = answer.score(score_name)
        correct = ""
        if question.known_answer is not None:
            correct = "[green]yes[/green]" if question.is_correct(answer) else "[dim]no[/dim]"
        table.add_row(
            str(i),
            answer.text[:40],
            str(len(answer.passages)),
            f"{value:.3f}" if value is not None else "-",
            correct,
        )

    console.print(table)


def print_statistics_table(stats: dict):
    """Print a statistics table"""
    table = Table(title="Run Statistics", border_style="cyan")

    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Questions", f"{stats.get('questions', 0):,}")
    table.add_row("Answers", f"{stats.get('answers', 0):,}")
    table.add_row("Passages", f"{stats.get('passages', 0):,}")
    table.add_row("─" * 15, "─" * 10)
    table.add_row("With Known Answer", f"{stats.get('labeled', 0):,}")
    table.add_row("Correct Candidate Found", f"{stats.get('correct_found', 0):,}")
    table.add_row("Correct Ranked First", f"{stats.get('correct_top', 0):,}")
    table.add_row("Failed Providers", f"{stats.get('failed_providers', 0):,}")
    table.add_row("Failed Scorers", f"{stats.get('failed_scorers', 0):,}")

    console.print(table)


def print_layout_table(layout: Dict[str, List[str]]):
    """Print the declared component order of each stage."""
    table = Table(title="Pipeline Layout", border_style="cyan")

    table.add_column("Stage", style="cyan")
    table.add_column("Components (in order)")

    for stage, names in layout.items():
        table.add_row(stage, " → ".join(names) if names else "[dim](none)[/dim]")

    console.print(table)


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format"""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3600:.1f}h"
