"""Command-line interface for chartstate."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .chart_url import ChartUrl
from .config import load_config
from .query_params import (
    legacy_query_params_to_current,
    query_params_to_str,
    str_to_query_params,
)

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def main(verbose: bool) -> None:
    """chartstate: Encode chart state into shareable URLs and back."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@main.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.option("--query", "-q", default="", help="Query string applied on load")
@click.option(
    "--keep-unchanged",
    is_flag=True,
    help="Include parameters even when they match the chart's defaults",
)
def encode(config_file: Path, query: str, keep_unchanged: bool) -> None:
    """
    Print the URL for a chart configuration.

    Parameters equal to the configuration's defaults are left out unless
    --keep-unchanged is given.
    """
    try:
        config = load_config(config_file)
        url = ChartUrl(config, query_str=query)
        url.drop_unchanged_params = not keep_unchanged
        click.echo(url.url)

    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.argument("query")
def decode(config_file: Path, query: str) -> None:
    """Apply QUERY to a chart configuration and print the resulting JSON."""
    try:
        config = load_config(config_file)
        url = ChartUrl(config)
        applied = url.populate_from_query_params(str_to_query_params(query))
        logger.debug(f"Applied parameters: {applied}")
        click.echo(json.dumps(config.to_dict(), indent=2))

    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("query")
def upgrade(query: str) -> None:
    """Rewrite legacy parameters in QUERY to their current names."""
    params = legacy_query_params_to_current(str_to_query_params(query))
    click.echo(query_params_to_str(params))


@main.command()
@click.option("--create", is_flag=True, help="Create default configuration template")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default="chart.json",
    help="Output path",
)
def config(create: bool, output: Path) -> None:
    """
    Configuration management commands.

    Use --create to generate a default chart configuration.
    """
    if create:
        from .config import create_default_config

        default_config = create_default_config()

        with open(output, "w") as f:
            json.dump(default_config, f, indent=2)

        click.echo(f"✅ Created default configuration: {output}")
    else:
        click.echo("Use --create to generate default configuration")


@main.command()
@click.argument("config_file", type=click.Path(path_type=Path), required=False)
def validate(config_file: Optional[Path]) -> None:
    """Validate a chart configuration file."""
    if config_file is None:
        config_file = _discover_config_file()
        if config_file is None:
            click.echo("❌ No configuration file found")
            click.echo("💡 Run 'chartstate config --create' to generate one")
            return

    try:
        chart = load_config(config_file)
        url = ChartUrl(chart)
        url.drop_unchanged_params = False
        click.echo(f"✅ Configuration is valid: {config_file}")
        click.echo(f"  Slug: {chart.slug or '-'}")
        click.echo(f"  Full URL: {url.url}")

    except Exception as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)


def _discover_config_file() -> Optional[Path]:
    """Auto-discover a chart configuration in the working directory."""
    for name in ["chart.json", "config.json"]:
        path = Path(name)
        if path.exists():
            return path
    return None


if __name__ == "__main__":
    main()
