"""codelineage evolve command - per-symbol history of one file."""

from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.text import Text

from codelineage.cli.utils import build_query, emit_json, fail, get_config, query_options
from codelineage.core.errors import CodeLineageError
from codelineage.evolution.compositor import compose
from codelineage.evolution.models import ChangeKind, VersionChain
from codelineage.history.errors import GitError
from codelineage.ops import evolve
from codelineage.report import compressed_lines, evolution_payload

_STYLES = {None: "", ChangeKind.ADD: "green", ChangeKind.DELETE: "red"}


def print_chains(chains: list[VersionChain], console: Console | None = None) -> None:
    """Compressed views as colored text."""
    console = console or Console(highlight=False)
    for chain in chains:
        view = compose(chain)
        console.rule(
            f"{chain.kind} {chain.name} "
            f"({len(chain.versions)} versions, {view.transition_count} transitions)"
        )
        for line, kind in compressed_lines(view):
            console.print(Text(line, style=_STYLES[kind]))


@click.command("evolve")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Repository root (default: discovered from FILE).",
)
@click.option("--ref", default="HEAD", show_default=True, help="Revision to walk back from.")
@click.option("--limit", type=int, help="Stop after this many commits.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="json",
    show_default=True,
)
@query_options
@click.pass_context
def evolve_command(
    ctx: click.Context,
    file: Path,
    repo: Path | None,
    ref: str,
    limit: int | None,
    output_format: str,
    **query_kwargs: Any,
) -> None:
    """Track how each symbol of FILE changed across its commit history."""
    try:
        query = build_query(**query_kwargs)
        chains = evolve(file, repo=repo, query=query, config=get_config(ctx), ref=ref, limit=limit)
    except (CodeLineageError, GitError, OSError) as e:
        fail(e)

    if output_format == "text":
        print_chains(chains)
    else:
        emit_json({"file": str(file), "symbols": evolution_payload(chains)})
