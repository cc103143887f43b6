"""codelineage refs command - find uses of a file's symbols across a project."""

from pathlib import Path
from typing import Any

import click

from codelineage.cli.utils import build_query, emit_json, fail, get_config, query_options
from codelineage.core.errors import CodeLineageError
from codelineage.ops import find_project_references
from codelineage.report import references_payload


@click.command("refs")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project directory to search (default: the directory of FILE).",
)
@query_options
@click.pass_context
def refs_command(ctx: click.Context, file: Path, root: Path | None, **query_kwargs: Any) -> None:
    """Find references to the symbols defined in FILE.

    The symbols are selected with the query options, then every file of the
    same language under --root is searched.
    """
    try:
        query = build_query(**query_kwargs)
        refs = find_project_references(file, root=root, query=query, config=get_config(ctx))
    except (CodeLineageError, OSError) as e:
        fail(e)
    emit_json({"file": str(file), "references": references_payload(refs)})
