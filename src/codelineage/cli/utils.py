"""CLI utilities: shared query options, JSON output, error reporting."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from codelineage.config.models import CodeLineageConfig
from codelineage.core.errors import CodeLineageError
from codelineage.history.errors import GitError
from codelineage.symbols.models import ExtractionQuery, ScopeFilter

F = TypeVar("F", bound=Callable[..., Any])

_QUERY_OPTIONS = [
    click.option(
        "-e",
        "--element",
        "elements",
        multiple=True,
        help="Element kind to extract (class, function, method, constant, ...). Repeatable.",
    ),
    click.option(
        "--exclude", "exclusions", multiple=True, help="Element kind to drop. Repeatable."
    ),
    click.option("--function", "function_name", help="Only the function/method with this name."),
    click.option("--class", "class_name", help="Only the class with this name."),
    click.option("--extends", "extends", help="Only classes extending this base."),
    click.option("--top-level", is_flag=True, help="Drop methods and nested symbols."),
    click.option("--preserve-context", is_flag=True, help="Report methods as Class.method."),
    click.option(
        "--query-json",
        help="Full query as a JSON object, or @path to a JSON file. Overrides the other options.",
    ),
]


def query_options(f: F) -> F:
    """Attach the extraction query options to a command."""
    for option in reversed(_QUERY_OPTIONS):
        f = option(f)
    return f


def build_query(
    elements: tuple[str, ...] = (),
    exclusions: tuple[str, ...] = (),
    function_name: str | None = None,
    class_name: str | None = None,
    extends: str | None = None,
    top_level: bool = False,
    preserve_context: bool = False,
    query_json: str | None = None,
) -> ExtractionQuery:
    """Turn command options into an ExtractionQuery (raises InvalidQueryError)."""
    if query_json:
        text = Path(query_json[1:]).read_text() if query_json.startswith("@") else query_json
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"not valid JSON: {e}", param_hint="--query-json") from e
        return ExtractionQuery.from_wire(payload)

    return ExtractionQuery.from_wire(
        {
            "Elements": list(elements),
            "Exclusions": list(exclusions),
            "Filters": {
                "FunctionName": function_name,
                "ClassName": class_name,
                "Extends": extends,
            },
            "ScopeFilter": ScopeFilter.TOP_LEVEL.value if top_level else None,
            "PreserveContext": preserve_context,
        }
    )


def get_config(ctx: click.Context) -> CodeLineageConfig:
    return ctx.obj["config"] if ctx.obj and "config" in ctx.obj else CodeLineageConfig()


def emit_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def fail(error: CodeLineageError | GitError | OSError) -> NoReturn:
    """Print the error as JSON on stdout and exit with status 1."""
    if isinstance(error, CodeLineageError):
        emit_json({"error": error.to_dict()})
    else:
        emit_json({"error": {"code": None, "error": type(error).__name__, "message": str(error)}})
    raise click.exceptions.Exit(1)
