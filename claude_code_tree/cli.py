#!/usr/bin/env python3
"""CLI interface for claude-code-tree."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import load_config
from .loader import TranscriptView, load_transcript
from .models import ResultNode, TreeNode

INDENT = "  "


def format_tree_lines(node: TreeNode, depth: int = 0) -> list[str]:
    """Render a tree as indented display lines, one per node."""
    text = node.display_text
    if isinstance(node, ResultNode) and node.use_rich_display:
        category = node.classification.category.value if node.classification else "text"
        text = f"{text} [{category}]"
    lines = [f"{INDENT * depth}{text}"]
    for child in node.children:
        lines.extend(format_tree_lines(child, depth + 1))
    return lines


def format_json(view: TranscriptView) -> str:
    data = {
        "tree": view.tree.to_dict(),
        "errors": [
            {"line": error.line_number, "kind": error.kind, "reason": error.reason}
            for error in view.errors
        ],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def report_errors(view: TranscriptView) -> None:
    if not view.errors:
        return
    click.echo(
        f"Warning: {len(view.errors)} of {view.line_count} lines could not be parsed",
        err=True,
    )
    for error in view.errors:
        click.echo(f"  {error}", err=True)


@click.command()
@click.argument(
    "input_path", type=click.Path(path_type=Path, exists=True, dir_okay=False)
)
@click.option(
    "-n",
    "--limit",
    type=click.IntRange(min=0),
    default=None,
    help="Only read the first N lines of the transcript",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text). json prints the full tree with classifications.",
)
@click.option(
    "--tui",
    is_flag=True,
    help="Open the transcript in the interactive tree viewer",
)
@click.option(
    "--no-cache",
    is_flag=True,
    help="Disable the classification cache",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging and show full traceback on errors.",
)
def main(
    input_path: Path,
    limit: Optional[int],
    output_format: str,
    tui: bool,
    no_cache: bool,
    debug: bool,
) -> None:
    """Show a Claude Code stream-json transcript as a tree.

    INPUT_PATH: Path to a JSONL transcript (stream-json output or a
    conversation file from ~/.claude/projects/).
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = load_config({"cache": {"enabled": False}} if no_cache else None)

        if tui:
            from .tui import run_viewer

            run_viewer(input_path, limit=limit, config=config)
            return

        view = load_transcript(input_path, limit=limit, config=config)

        if output_format == "json":
            click.echo(format_json(view))
        else:
            for line in format_tree_lines(view.tree):
                click.echo(line)

        report_errors(view)

    except Exception as e:
        click.echo(f"Error reading transcript: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
