"""
CLI interface for clientbook.

Usage:
    clientbook run add-client n/Alex Tan t/friends
    clientbook run find-project s/done from/2024-01-01
    clientbook shell
    clientbook tags
"""

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from typing_extensions import Annotated

from .commands import (
    CLIENTS_VIEW,
    MUTATING_COMMANDS,
    PROJECTS_VIEW,
    TAGS_VIEW,
    CommandResult,
)
from .config import get_default_store_path, load_or_create_config
from .errors import ClientbookError, StorageError, log_exception
from .logging_config import (
    configure_ops_log,
    configure_quiet_mode,
    enable_debug_mode,
    remove_ops_log,
)
from .model import Model
from .parser import COMMAND_WORDS, parse_command
from .storage import JsonStorage, client_to_dict, project_to_dict
from .tag_index import TagUsageRecord

SHELL_PROMPT = "clientbook> "
EXIT_WORDS = ("exit", "quit")

# Set CLIENTBOOK_VERBOSE=1 to enable debug mode via environment
if os.environ.get("CLIENTBOOK_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"clientbook {version('clientbook')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_store_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _store_callback(value: Optional[Path]):
    global _store_override
    _store_override = value


def _get_store_override() -> Optional[Path]:
    return _store_override


app = typer.Typer(
    name="clientbook",
    help="Record-keeper for freelancers: clients, projects and tags.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    store: Annotated[Optional[Path], typer.Option(
        "--store", "-s",
        envvar="CLIENTBOOK_STORE_PATH",
        help="Path to the store directory",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Record-keeper for freelancers: clients, projects and tags."""


# -----------------------------------------------------------------------------
# Session and rendering
# -----------------------------------------------------------------------------

@contextmanager
def _open_session() -> Iterator[tuple[Model, JsonStorage]]:
    """Load the store's data for one CLI invocation."""
    store_path = _get_store_override() or get_default_store_path()
    try:
        config = load_or_create_config(store_path)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    handler = configure_ops_log(store_path)
    try:
        storage = JsonStorage(config.data_path)
        try:
            model = storage.load()
        except ClientbookError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        yield model, storage
    finally:
        remove_ops_log(handler)


def _execute(line: str, model: Model, storage: JsonStorage) -> CommandResult:
    """
    Parse and run one command line, saving if it changed anything.

    If the save fails the model is reloaded from its state before the
    command, so memory never holds changes the data file lacks.
    """
    command = parse_command(line)
    if not isinstance(command, MUTATING_COMMANDS):
        return command.execute(model)

    clients, projects = model.clients, model.projects
    result = command.execute(model)
    try:
        storage.save(model)
    except StorageError:
        model.load(clients, projects)
        raise
    return result


def _format_record(record: TagUsageRecord, width: int) -> str:
    return (f"{record.tag.name:<{width}}  clients: {record.client_count}"
            f"  projects: {record.project_count}")


def _format_result(result: CommandResult, model: Model, as_json: bool = False) -> str:
    """Render command feedback and the list it asks to display."""
    if as_json:
        data: dict = {"feedback": result.feedback}
        if result.view == CLIENTS_VIEW:
            data["clients"] = [client_to_dict(c) for c in model.filtered_clients]
        elif result.view == PROJECTS_VIEW:
            data["projects"] = [project_to_dict(p) for p in model.filtered_projects]
        elif result.view == TAGS_VIEW:
            data["tags"] = [
                {"tag": r.tag.name, "clients": r.client_count, "projects": r.project_count}
                for r in model.tag_usage()
            ]
        return json.dumps(data, ensure_ascii=False, indent=2)

    lines = [result.feedback]
    if result.view == CLIENTS_VIEW:
        lines.extend(f"{i}. {c}" for i, c in enumerate(model.filtered_clients, 1))
    elif result.view == PROJECTS_VIEW:
        lines.extend(f"{i}. {p}" for i, p in enumerate(model.filtered_projects, 1))
    elif result.view == TAGS_VIEW:
        records = model.tag_usage()
        width = max((len(r.tag.name) for r in records), default=0)
        lines.extend(_format_record(r, width) for r in records)
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def run(
    words: Annotated[list[str], typer.Argument(
        help="Command line, e.g. find-client n/alex t/friends"
    )],
):
    """
    Run one command against the store.

    Each run starts from freshly loaded, unfiltered lists, so an INDEX
    always counts from the full client or project list, not from the
    results of an earlier find. Use the shell to act on find results.

    \b
    Examples:
        clientbook run add-client n/Alex Tan p/98765432 t/friends
        clientbook run edit-client 1 t/                 # Clear all tags
        clientbook run find-project s/done from/2024-01-01
    """
    line = " ".join(words)
    with _open_session() as (model, storage):
        try:
            result = _execute(line, model, storage)
        except ClientbookError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        typer.echo(_format_result(result, model, as_json=_get_json_output()))


@app.command()
def shell():
    """
    Read commands interactively until 'exit' or end of input.

    Errors in one command are reported and the loop continues.
    """
    with _open_session() as (model, storage):
        typer.echo(f"Commands: {', '.join(COMMAND_WORDS)}, exit", err=True)
        while True:
            try:
                line = input(SHELL_PROMPT)
            except EOFError:
                break
            if line.strip().casefold() in EXIT_WORDS:
                break
            if not line.strip():
                continue
            try:
                result = _execute(line, model, storage)
            except ClientbookError as e:
                typer.echo(f"Error: {e}", err=True)
                continue
            typer.echo(_format_result(result, model, as_json=_get_json_output()))


@app.command()
def tags():
    """Show how many clients and projects use each tag."""
    with _open_session() as (model, storage):
        result = CommandResult(f"{len(model.tag_index)} tag(s) in use", TAGS_VIEW)
        typer.echo(_format_result(result, model, as_json=_get_json_output()))


def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        store_path = _get_store_override() or get_default_store_path()
        log_path = log_exception(e, context="clientbook CLI", store_path=store_path)
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
