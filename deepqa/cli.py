"""
CLI Interface for DeepQA
"""
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.prompt import Prompt

from .config.settings import apply_overrides, get_env_settings, load_config, set_config
from .errors import ConfigurationError, PipelineError
from .graph import Question
from .logger import (
    print_answer_table, print_error, print_header, print_info,
    print_layout_table, print_success, print_warning,
)
from .pipeline import QAPipeline

app = typer.Typer(
    name="deepqa",
    help="DeepQA - answer questions through a staged search, research and scoring pipeline",
    add_completion=False
)

console = Console()


def _parse_overrides(pairs: Optional[List[str]]) -> dict:
    overrides = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{pair}'", param_hint="--set")
        overrides[key.strip()] = value.strip()
    return overrides


def _build_pipeline(config_file: Optional[str], overrides: Optional[List[str]]) -> QAPipeline:
    """Load configuration and build the pipeline; startup errors exit with 1."""
    try:
        config = load_config(config_file)
        parsed = _parse_overrides(overrides)
        if parsed:
            config = apply_overrides(config, parsed)
        set_config(config)
        return QAPipeline(config)
    except ConfigurationError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)


@app.command()
def ask(
    question: Optional[str] = typer.Argument(
        None,
        help="The question to answer. If not provided, will prompt for input."
    ),
    known_answer: Optional[str] = typer.Option(
        None,
        "--known-answer", "-k",
        help="Known correct answer, used to label candidates"
    ),
    top: int = typer.Option(
        10,
        "--top", "-n",
        help="Number of ranked answers to show"
    ),
    config_file: Optional[str] = typer.Option(
        None,
        "--config", "-c",
        help="Path to configuration file (default: $DEEPQA_CONFIG or config.yaml)"
    ),
    overrides: Optional[List[str]] = typer.Option(
        None,
        "--set", "-s",
        help="Override a config value, e.g. --set search.timeout_seconds=5"
    ),
):
    """
    Answer a single question and print the ranked candidates.
    """
    if not question:
        question = Prompt.ask("[bold cyan]Enter your question[/bold cyan]", console=console)
        if not question.strip():
            print_error("Question cannot be empty")
            raise typer.Exit(1)

    pipeline = _build_pipeline(config_file, overrides)

    try:
        result = pipeline.ask(Question(raw_text=question, known_answer=known_answer))
    except PipelineError as e:
        print_error(f"Question failed: {e}")
        raise typer.Exit(1)

    print_answer_table(result, pipeline.config.scoring.rank_score, limit=top)
    if result.failed_providers:
        print_warning(f"Omitted search providers: {', '.join(result.failed_providers)}")
    if result.failed_scorers:
        print_warning(f"Failed scorers: {', '.join(result.failed_scorers)}")


@app.command()
def batch(
    questions_file: Path = typer.Argument(
        ...,
        exists=True, dir_okay=False, readable=True,
        help="One question per line, optionally followed by a TAB and the known answer"
    ),
    config_file: Optional[str] = typer.Option(
        None,
        "--config", "-c",
        help="Path to configuration file"
    ),
    overrides: Optional[List[str]] = typer.Option(
        None,
        "--set", "-s",
        help="Override a config value"
    ),
):
    """
    Answer every question in a file; research passes finalize once at the end.
    """
    items = []
    for line in questions_file.read_text(encoding="utf-8").splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        text, _, known = line.partition("\t")
        items.append(Question(raw_text=text.strip(), known_answer=known.strip() or None))

    if not items:
        print_info("No questions found.")
        return

    pipeline = _build_pipeline(config_file, overrides)
    print_header("DeepQA Batch", f"{len(items)} questions from {questions_file}")

    try:
        results = pipeline.ask_batch(items)
    except PipelineError as e:
        print_error(f"Batch failed: {e}")
        raise typer.Exit(1)

    failed = [q for q in results if q.failed_stage is not None]
    print_success(f"Answered {len(results) - len(failed)} of {len(results)} questions")
    for q in failed:
        print_warning(f"Failed during {q.failed_stage.value}: {q.raw_text[:60]}")


@app.command()
def layout(
    config_file: Optional[str] = typer.Option(
        None,
        "--config", "-c",
        help="Path to configuration file"
    ),
):
    """
    Show the configured components of every stage, in execution order.
    """
    pipeline = _build_pipeline(config_file, None)
    print_layout_table(pipeline.layout.describe())


@app.command()
def validate(
    config_file: Optional[str] = typer.Option(
        None,
        "--config", "-c",
        help="Path to configuration file"
    ),
):
    """
    Validate configuration, credentials and component names.
    """
    print_header("Configuration Validation", "Checking setup...")

    config_path = Path(config_file or get_env_settings().config_path)
    if config_path.exists():
        print_success(f"{config_path} found")
    else:
        print_error(f"{config_path} not found (copy config.example.yaml)")
        raise typer.Exit(1)

    settings = get_env_settings()
    if settings.tavily_api_key:
        print_success("TAVILY_API_KEY is set")
    else:
        print_info("TAVILY_API_KEY is not set (needed by the tavily searcher)")

    pipeline = _build_pipeline(str(config_path), None)
    print_success("Configuration loaded and every component built")
    print_layout_table(pipeline.layout.describe())


if __name__ == "__main__":
    app()
