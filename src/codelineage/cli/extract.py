"""codelineage extract command - list the symbols of one file."""

from pathlib import Path
from typing import Any

import click

from codelineage.cli.utils import build_query, emit_json, fail, get_config, query_options
from codelineage.core.errors import CodeLineageError
from codelineage.ops import extract_file
from codelineage.report import symbols_payload


@click.command("extract")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@query_options
@click.pass_context
def extract_command(ctx: click.Context, file: Path, **query_kwargs: Any) -> None:
    """Extract classes, functions, methods and constants from FILE."""
    try:
        query = build_query(**query_kwargs)
        symbols = extract_file(file, query, get_config(ctx))
        source = file.read_text(encoding="utf-8", errors="replace")
    except (CodeLineageError, OSError) as e:
        fail(e)
    emit_json({"file": str(file), "symbols": symbols_payload(symbols, source)})
