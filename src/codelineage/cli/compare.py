"""codelineage compare command - side-by-side symbol text between two revisions."""

from pathlib import Path
from typing import Any

import click

from codelineage.cli.utils import build_query, emit_json, fail, get_config, query_options
from codelineage.core.errors import CodeLineageError
from codelineage.history.errors import GitError
from codelineage.ops import compare
from codelineage.report import comparison_payload, render_side_by_side


@click.command("compare")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("old")
@click.argument("new")
@click.option(
    "--repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Repository root (default: discovered from FILE).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="json",
    show_default=True,
)
@click.option("--width", default=60, show_default=True, help="Left column width (text format).")
@query_options
@click.pass_context
def compare_command(
    ctx: click.Context,
    file: Path,
    old: str,
    new: str,
    repo: Path | None,
    output_format: str,
    width: int,
    **query_kwargs: Any,
) -> None:
    """Compare the symbols of FILE at revisions OLD and NEW."""
    try:
        query = build_query(**query_kwargs)
        comparisons = compare(file, old, new, repo=repo, query=query, config=get_config(ctx))
    except (CodeLineageError, GitError, OSError) as e:
        fail(e)

    if output_format == "text":
        click.echo("\n\n".join(render_side_by_side(c, width=width) for c in comparisons))
    else:
        emit_json(
            {
                "file": str(file),
                "old": old,
                "new": new,
                "symbols": [comparison_payload(c) for c in comparisons],
            }
        )
