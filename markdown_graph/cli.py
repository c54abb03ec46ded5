from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .config import DEFAULT_OUTPUT_NAME, GardenConfig
from .errors import MarkdownGraphError
from .graph import summarize
from .ingestion import generate_graph
from .logging_utils import setup_logging
from .repository import make_repository
from .serialize import write_graph
from .watcher import GraphWatcher

LOGGER = logging.getLogger(__name__)

EPILOG = f"""examples:
  markdown-graph                 graph of the current directory -> ./{DEFAULT_OUTPUT_NAME}
  markdown-graph ./docs          graph of docs -> ./docs/{DEFAULT_OUTPUT_NAME}
  markdown-graph -o graph.json   custom output file -> ./graph.json
  markdown-graph -v ./docs       verbose logging
  markdown-graph --watch ./docs  keep the graph file up to date
"""


@dataclass
class CliResult:
    success: bool
    message: str
    output_file: Optional[Path] = None
    node_count: Optional[int] = None
    link_count: Optional[int] = None


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markdown-graph",
        description=f"Generate a graph from markdown files and save it to {DEFAULT_OUTPUT_NAME}.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "directory",
        nargs="?",
        type=Path,
        default=None,
        help="Directory to scan for markdown files (default: current directory)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Output file path (default: <directory>/{DEFAULT_OUTPUT_NAME})",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress all output except errors"
    )
    parser.add_argument(
        "--watch", action="store_true", help="Keep running and rewrite the graph on changes"
    )
    parser.add_argument(
        "--no-implicit-links",
        dest="implicit_links",
        action="store_false",
        default=None,
        help="Do not infer links from the lead paragraph of each section",
    )
    parser.add_argument(
        "--section-sources",
        dest="section_link_sources",
        action="store_true",
        default=None,
        help="Attribute links to the section containing them instead of the document",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Number of documents loaded concurrently (default: 8)",
    )
    return parser


def _log_level(verbose: bool, quiet: bool) -> Optional[str]:
    if quiet:
        return "ERROR"
    if verbose:
        return "DEBUG"
    return None


def _resolve_output(output_file: Optional[Path]) -> Optional[Path]:
    if output_file is None or output_file.is_absolute():
        return output_file
    return Path.cwd() / output_file


def build_config(
    target_directory: Optional[Path] = None,
    output_file: Optional[Path] = None,
    *,
    implicit_links: Optional[bool] = None,
    section_link_sources: Optional[bool] = None,
    batch_size: Optional[int] = None,
) -> GardenConfig:
    return GardenConfig.from_env(
        source="file",
        path=target_directory or Path.cwd(),
        output_path=_resolve_output(output_file),
        implicit_links=implicit_links,
        section_link_sources=section_link_sources,
        batch_size=batch_size,
    )


def run_cli(
    target_directory: Optional[Path] = None,
    output_file: Optional[Path] = None,
    *,
    verbose: bool = False,
    quiet: bool = False,
    implicit_links: Optional[bool] = None,
    section_link_sources: Optional[bool] = None,
    batch_size: Optional[int] = None,
) -> CliResult:
    """
    Generates the graph of a directory and writes it to disk.

    Failures are reported through the returned `CliResult` rather than raised.
    """
    setup_logging(_log_level(verbose, quiet))
    target = Path(target_directory) if target_directory else Path.cwd()
    if not target.is_dir():
        message = f"Directory does not exist: {target}"
        LOGGER.error(message)
        return CliResult(success=False, message=message)

    try:
        config = build_config(
            target,
            Path(output_file) if output_file else None,
            implicit_links=implicit_links,
            section_link_sources=section_link_sources,
            batch_size=batch_size,
        )
        LOGGER.info("Scanning directory: %s", target)
        repository = make_repository(config)
        graph = asyncio.run(
            generate_graph(repository, batch_size=config.batch_size, **config.builder_options())
        )
        node_count, link_count = len(graph.nodes), len(graph.links)
        LOGGER.info("Found %d nodes and %d links", node_count, link_count)
        if verbose:
            summary = summarize(graph)
            LOGGER.debug("Output file: %s", config.resolved_output_path())
            LOGGER.debug("Nodes: %s", ", ".join(graph.nodes))
            LOGGER.debug(
                "Dangling links: %d, orphan nodes: %d, components: %d",
                summary.dangling_link_count,
                summary.orphan_count,
                summary.component_count,
            )
        output_path = write_graph(graph, config.resolved_output_path())
    except (MarkdownGraphError, OSError, ValueError) as exc:
        message = f"Failed to generate graph: {exc}"
        LOGGER.error(message)
        return CliResult(success=False, message=message)

    message = f"Graph generated and written to {output_path}"
    LOGGER.info(message)
    return CliResult(
        success=True,
        message=message,
        output_file=output_path,
        node_count=node_count,
        link_count=link_count,
    )


def run_watch(config: GardenConfig) -> None:
    watcher = GraphWatcher(config)
    LOGGER.info("Press Ctrl+C to stop watching")
    try:
        asyncio.run(watcher.run())
    except KeyboardInterrupt:
        watcher.stop()
        LOGGER.info("File watcher stopped")


def _load_env(directory: Optional[Path]) -> None:
    # Values already set in the environment take precedence over .env files.
    if directory is not None:
        load_dotenv(directory / ".env")
    load_dotenv(Path.cwd() / ".env")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_arg_parser().parse_args(argv)
    _load_env(args.directory)
    if args.batch_size is not None and args.batch_size < 1:
        build_arg_parser().error("--batch-size must be at least 1")

    if args.watch:
        setup_logging(_log_level(args.verbose, args.quiet))
        try:
            config = build_config(
                args.directory,
                args.output,
                implicit_links=args.implicit_links,
                section_link_sources=args.section_link_sources,
                batch_size=args.batch_size,
            )
            run_watch(config)
        except MarkdownGraphError as exc:
            LOGGER.error("Failed to start watcher: %s", exc)
            sys.exit(1)
        return

    result = run_cli(
        args.directory,
        args.output,
        verbose=args.verbose,
        quiet=args.quiet,
        implicit_links=args.implicit_links,
        section_link_sources=args.section_link_sources,
        batch_size=args.batch_size,
    )
    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
