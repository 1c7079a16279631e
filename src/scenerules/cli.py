"""Scene Rules CLI - typer application entry point."""

from __future__ import annotations

import asyncio
import atexit
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scenerules.config import ConfigError, EditorConfig, load_config
from scenerules.errors import SceneRulesError
from scenerules.graph.authoring import load_authoring_delta
from scenerules.graph.conditions import serialize_condition, validate_condition
from scenerules.models.rules import KNOWN_OPERATORS, SceneRule, load_rules_json, scene_ids
from scenerules.observability import close_file_logging, configure_logging, get_logs_dir
from scenerules.session import SceneRulesSession, import_rules

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="scenerules",
    help="Scene Rules: inspect, validate and reconcile story adventure rule files.",
    no_args_is_help=True,
)
console = Console()
DEFAULT_LOG_DIR = Path("logs")


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_enabled: Annotated[
        bool,
        typer.Option("--log", help="Enable JSONL file logging to --log-dir."),
    ] = False,
    log_dir: Annotated[
        Path,
        typer.Option(
            "--log-dir",
            help="Directory for debug.jsonl (default: ./logs).",
            envvar="SCENERULES_LOG_DIR",
        ),
    ] = DEFAULT_LOG_DIR,
) -> None:
    """Scene Rules: inspect, validate and reconcile story adventure rule files."""
    configure_logging(verbosity=verbose, log_to_file=log_enabled, log_dir=log_dir)
    if log_enabled:
        atexit.register(close_file_logging)


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(1)


def _read_rules(rules_file: Path) -> list[SceneRule]:
    try:
        text = rules_file.read_text(encoding="utf-8")
    except OSError as e:
        raise _fail(f"Cannot read {rules_file}: {e.strerror}") from e
    try:
        return load_rules_json(text, path=rules_file)
    except SceneRulesError as e:
        raise _fail(str(e)) from e


def _load_config(directory: Path) -> EditorConfig:
    try:
        return load_config(directory)
    except ConfigError as e:
        raise _fail(str(e)) from e


@app.command()
def version() -> None:
    """Show version information, and the debug log file when --log is on."""
    from scenerules import __version__

    console.print(f"Scene Rules v{__version__}")
    logs_dir = get_logs_dir()
    if logs_dir is not None:
        console.print(f"Logging to {escape(str(logs_dir / 'debug.jsonl'))}", soft_wrap=True)


@app.command()
def show(
    rules_file: Annotated[Path, typer.Argument(help="Scene rules JSON file.")],
) -> None:
    """Show scenes and transitions of a rule file."""
    rules = _read_rules(rules_file)
    graph = import_rules(rules)

    table = Table(title=f"Transitions: {rules_file.name}")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Conditions")

    for rule in rules:
        conditions = " and ".join(serialize_condition(c).value for c in rule.params)
        table.add_row(
            escape(rule.current_scene),
            escape(rule.result_scene),
            str(rule.weight),
            escape(conditions) or "[dim]always[/dim]",
        )

    console.print()
    console.print(table)
    console.print(
        f"[bold]{len(graph.entities)}[/bold] scene(s), "
        f"[bold]{len(graph.relations)}[/bold] transition(s)"
    )


@app.command()
def validate(
    rules_file: Annotated[Path, typer.Argument(help="Scene rules JSON file.")],
) -> None:
    """Check that a rule file is well formed."""
    rules = _read_rules(rules_file)

    warnings = [
        f"{rule.current_scene} -> {rule.result_scene}: unknown operator '{c.operator}'"
        for rule in rules
        for c in rule.params
        if c.operator not in KNOWN_OPERATORS
    ]
    keys = [(rule.current_scene, rule.result_scene) for rule in rules]
    warnings.extend(
        f"{source} -> {target}: more than one rule, they share one transition on the diagram"
        for source, target in dict.fromkeys(k for k in keys if keys.count(k) > 1)
    )

    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")
    console.print(
        f"[green]✓[/green] {len(rules)} rule(s), {len(scene_ids(rules))} scene(s) in {rules_file}"
    )


@app.command()
def apply(
    rules_file: Annotated[Path, typer.Argument(help="Scene rules JSON file.")],
    delta_file: Annotated[Path, typer.Argument(help="Authoring delta JSON file.")],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory (default: directory of the rules file).",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the reconciled rules instead of writing them."),
    ] = False,
) -> None:
    """Fold an authoring delta into a rule file and save the result.

    Transitions in the delta refer to scenes by their id before any rename
    listed in the same delta.
    """
    config = _load_config(rules_file.parent)
    session = SceneRulesSession(config)

    try:
        text = rules_file.read_text(encoding="utf-8")
        delta_text = delta_file.read_text(encoding="utf-8")
    except OSError as e:
        raise _fail(f"Cannot read {e.filename}: {e.strerror}") from e

    try:
        asyncio.run(session.open(text, path=rules_file))
        state = load_authoring_delta(delta_text, import_rules(session.rules))
        session.editor.set_authoring_state(state)
        if dry_run:
            console.print(session.save(), markup=False, highlight=False, soft_wrap=True)
            return
        output_file = session.save_to(output or rules_file.parent)
    except SceneRulesError as e:
        raise _fail(str(e)) from e

    console.print(f"[green]✓[/green] Saved {len(session.rules)} rule(s) to {output_file}")


@app.command()
def condition(
    name: Annotated[str, typer.Argument(help="Property name, e.g. hp.")],
    operator: Annotated[str, typer.Argument(help="One of EQ, GT, GE, LT, LE.")],
    value: Annotated[str, typer.Argument(help="Numeric value.")],
) -> None:
    """Validate a condition and print its stored form."""
    parsed = validate_condition(name, operator, value)
    if parsed.built is None:
        raise _fail(parsed.validation_message or "Invalid condition")
    console.print(serialize_condition(parsed.built).value, markup=False, highlight=False)
