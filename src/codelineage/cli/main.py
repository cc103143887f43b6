"""codelineage CLI - codelineage command."""

from pathlib import Path

import click

from codelineage.cli.compare import compare_command
from codelineage.cli.evolve import evolve_command
from codelineage.cli.extract import extract_command
from codelineage.cli.refs import refs_command
from codelineage.config.loader import load_config
from codelineage.core.errors import ConfigError
from codelineage.core.logging import configure_logging, set_run_id


@click.group()
@click.version_option(version="0.1.0", prog_name="codelineage")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-w", "--workers", type=int, help="Worker processes (overrides config).")
@click.option(
    "--config-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory holding .codelineage/config.yaml (default: current directory).",
)
@click.pass_context
def cli(
    ctx: click.Context, verbose: bool, workers: int | None, config_root: Path | None
) -> None:
    """codelineage - symbol history and cross-file references for polyglot repositories."""
    overrides = {"workers": {"max_workers": workers}} if workers is not None else {}
    try:
        config = load_config(config_root, **overrides)
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config.logging)
    set_run_id()

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config


cli.add_command(extract_command, name="extract")
cli.add_command(refs_command, name="refs")
cli.add_command(evolve_command, name="evolve")
cli.add_command(compare_command, name="compare")


if __name__ == "__main__":
    cli()
