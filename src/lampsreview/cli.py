"""Command-line interface for lampsreview."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.logging import RichHandler

from lampsreview import __version__
from lampsreview.config import (
    CONFIG_FILE,
    ReviewConfig,
    load_config,
    save_config,
    set_config_value,
)
from lampsreview.exceptions import LampsReviewError
from lampsreview.ui.console import Console

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console.console, show_path=False)],
        force=True,
    )


def _get_project_root(path: str) -> Path:
    """Resolve the repository root or error."""
    root = Path(path).resolve()
    if not root.is_dir():
        console.error(f"Not a directory: {path}")
        sys.exit(1)
    return root


def _load(root: Path, config_file: str | None) -> ReviewConfig:
    try:
        return load_config(root, Path(config_file) if config_file else None)
    except LampsReviewError as e:
        console.error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="lampsreview")
def main():
    """lampsreview - context-curated, multi-pass AI code review."""
    pass


# =========================================================================
# Review
# =========================================================================

@main.command()
@click.argument("path", default=".")
@click.option("--model", "-m", default=None, help="Model to use (overrides config).")
@click.option("--output", "-o", default=None, help="Write the JSON report to this file.")
@click.option("--verbose", "-v", is_flag=True, help="Log progress and context selection.")
@click.option("--config", "config_file", default=None, help=f"Config file (default: <path>/{CONFIG_FILE}).")
def review(path: str, model: str | None, output: str | None, verbose: bool, config_file: str | None):
    """Review a repository in three AI passes: architecture, deep-dive, security.

    Exits with status 1 when any error-severity finding is reported.

    Examples:

        lampsreview review .

        lampsreview review ./my-app --model anthropic/claude-sonnet-4.5 -o report.json
    """
    root = _get_project_root(path)
    config = _load(root, config_file)
    if model:
        config.ai.model = model
    config.verbose = config.verbose or verbose
    _setup_logging(config.verbose)

    from lampsreview.pipeline import ReviewPipeline

    console.banner()
    console.info(f"Reviewing {root} with {config.ai.model}")

    try:
        report = asyncio.run(ReviewPipeline(config).run(root))
    except asyncio.TimeoutError:
        console.error(f"Review timed out after {config.timeout_seconds:.0f}s")
        sys.exit(1)
    except LampsReviewError as e:
        console.error(str(e))
        sys.exit(1)

    console.info(f"Analyzed {report.files_analyzed} files in {report.duration_seconds:.1f}s")
    if report.pass_results:
        console.show_pass_results(report.pass_results)
    console.show_findings(report.findings)
    if report.ai_summary:
        console.markdown(report.ai_summary)
    console.show_health(report.summary.health_score, report.summary.by_severity)

    if output:
        Path(output).write_text(report.to_json(), encoding="utf-8")
        console.success(f"Report written to {output}")

    if report.has_errors:
        sys.exit(1)


# =========================================================================
# Dependency graph
# =========================================================================

@main.command()
@click.argument("path", default=".")
@click.option("--top", "-n", default=20, type=int, help="Number of files to list (default: 20).")
@click.option("--json", "as_json", is_flag=True, help="Print the serialized graph.")
@click.option("--config", "config_file", default=None, help=f"Config file (default: <path>/{CONFIG_FILE}).")
def graph(path: str, top: int, as_json: bool, config_file: str | None):
    """Build the dependency graph and show files by review priority."""
    root = _get_project_root(path)
    config = _load(root, config_file)
    _setup_logging(config.verbose)

    from lampsreview.files import ContentCache
    from lampsreview.graph import GraphBuilder, rank_nodes, score_graph
    from lampsreview.scanner import collect_files

    cache = ContentCache()
    records = collect_files(root, config.scan)
    builder = GraphBuilder(config.graph, cache)
    dep_graph = score_graph(builder.build(records), config.scoring)

    if as_json:
        click.echo(json.dumps(dep_graph.to_dict(), indent=2))
        return

    console.show_stats(builder.get_stats())
    console.show_ranking(rank_nodes(dep_graph)[:top])


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=".", help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str):
    """Manage lampsreview configuration."""
    root = _get_project_root(path)
    config = _load(root, None)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: lampsreview config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: lampsreview config set <key> <value>")
            sys.exit(1)
        # Try to parse as JSON for non-string values
        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value

        try:
            config = set_config_value(config, key, parsed_value)
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ValidationError as e:
            console.error(f"Invalid value for {key}: {e.errors()[0]['msg']}")
            sys.exit(1)
        save_config(root, config)
        console.success(f"Set {key} = {parsed_value}")


if __name__ == "__main__":
    main()
