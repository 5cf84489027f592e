"""
rpchart — CLI entrypoint.

Usage:
    python -m src.main --help
    python -m src.main render -f values.yaml
    python -m src.main check -f values.yaml --set statefulset.replicas=1
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click
import yaml

from src.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    level_from_flags,
    setup_logging,
)

from src import __version__


@click.group()
@click.version_option(version=__version__, prog_name="rpchart")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """rpchart — resolve Redpanda chart values into broker configuration."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


_values_option = click.option(
    "--values", "-f", "values_files",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Values file (repeatable, later files win).",
)
_set_option = click.option(
    "--set", "sets",
    multiple=True,
    help="Override a value: key.path=value (repeatable).",
)


@cli.command()
@_values_option
@_set_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def render(values_files: tuple[Path, ...], sets: tuple[str, ...], as_json: bool) -> None:
    """Resolve values and print the rendered manifests."""
    from src.core.services.chart.render import render_yaml
    from src.core.use_cases.render import render_values

    result = render_values(list(values_files), list(sets))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        for err in result.errors:
            click.secho(f"❌ {err}", fg="red", err=True)
        sys.exit(1)

    assert result.resolved is not None  # guaranteed when ok
    click.echo(render_yaml(result.resolved), nl=False)


@cli.command()
@_values_option
@_set_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(
    ctx: click.Context,
    values_files: tuple[Path, ...],
    sets: tuple[str, ...],
    as_json: bool,
) -> None:
    """Validate values without rendering."""
    from src.core.use_cases.render import render_values

    result = render_values(list(values_files), list(sets), manifests=False)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        click.secho("❌ Values are invalid:", fg="red", bold=True)
        for err in result.errors:
            for line in err.splitlines():
                click.echo(f"   • {line}")
        sys.exit(1)

    assert result.resolved is not None  # guaranteed when ok
    click.secho("✅ Values are valid", fg="green", bold=True)
    if ctx.obj.get("quiet"):
        return

    resolved = result.resolved
    click.echo(f"   Version: {resolved.version}")
    click.echo(f"   Listeners: {len(resolved.listeners)}")
    click.echo(f"   Mounts: {len(resolved.mounts)}")
    if resolved.truststore_paths:
        click.echo("   Truststores:")
        for (kind, network), path in sorted(resolved.truststore_paths.items()):
            click.echo(f"     • {kind}/{network} → {path}")


@cli.command("defaults")
def defaults() -> None:
    """Print the chart defaults the engine layers user values over."""
    from src.core.services.chart.defaults import CHART_VALUES

    click.echo(yaml.dump(CHART_VALUES, default_flow_style=False, sort_keys=False), nl=False)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
