#!/usr/bin/env python3
"""Command-line interface for material flow layouts."""

import argparse
import json
import logging
import sys

from flow_graph import validate_flow
from layout_graphviz import layout_to_graphviz
from materials import layout_to_dict, materials_from_dicts, relationships_from_dicts
from sankey_layout import create_layered_layout
from statements import statements_to_flow


def load_flow_document(path: str) -> tuple[list, list]:
    """Load materials and relationships from a JSON document.

    Precondition:
        path names a readable JSON file

    Postcondition:
        returns (materials, relationships)
        documents with "materials" use them with "relationships"
        documents with "statements" are converted together with "objects"

    Args:
        path: JSON file path

    Returns:
        tuple of (materials, relationships)

    Raises:
        ValueError: if the file is not valid JSON or has neither form
        OSError: if the file cannot be read
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(document, dict):
        raise ValueError(f"Invalid document in {path}: expected a JSON object")

    if "materials" in document:
        return (
            materials_from_dicts(document.get("materials")),
            relationships_from_dicts(document.get("relationships")),
        )
    if "statements" in document:
        return statements_to_flow(document.get("statements"), document.get("objects"))

    raise ValueError(
        f"Invalid document in {path}: expected 'materials' or 'statements'"
    )


def _print_validation(materials: list, relationships: list) -> None:
    """Print validation warnings and errors to stderr.

    Precondition:
        materials and relationships are model lists

    Postcondition:
        each warning and error is printed on its own line to stderr
    """
    validation = validate_flow(materials, relationships)
    for error in validation.errors:
        print(f"Error: {error}", file=sys.stderr)
    for warning in validation.warnings:
        print(f"Warning: {warning}", file=sys.stderr)


def _render(result, output_format: str) -> str:
    """Render a layout in the requested output format.

    Precondition:
        result is a LayoutResult
        output_format is "json", "dot" or "stats"

    Postcondition:
        "json" returns the indented JSON payload
        "dot" returns graphviz source
        "stats" returns a one-line summary
    """
    if output_format == "dot":
        return layout_to_graphviz(result).source
    if output_format == "stats":
        stats = result.stats
        return (
            f"flows={stats.total_flows} links={len(result.links)} "
            f"recycling={stats.recycling_flows} rate={stats.recycling_rate}%\n"
        )
    return json.dumps(layout_to_dict(result), indent=2) + "\n"


def _write_output(text: str, output_file: str | None) -> None:
    """Write rendered output to file or stdout.

    Precondition:
        text is a string
        output_file is either None or a valid file path

    Postcondition:
        text is written to file or stdout
        success message is printed to stderr if file written
    """
    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Layout written to {output_file}", file=sys.stderr)
    else:
        sys.stdout.write(text)


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser.

    Returns:
        ArgumentParser instance ready to parse command-line arguments
    """
    parser = argparse.ArgumentParser(
        description="Lay out material flows as left-to-right stages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Layout payload as JSON
  %(prog)s flow.json

  # Graphviz source for a statement export
  %(prog)s statements.json --format dot --output-file flow.gv

  # Recycling summary with decision trace
  %(prog)s flow.json --format stats --verbose
        """,
    )

    parser.add_argument(
        "input",
        help='JSON file with "materials"/"relationships" or "statements"/"objects"',
    )

    parser.add_argument(
        "--format",
        "-F",
        choices=["json", "dot", "stats"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "--output-file", "-f", help="Write output to file instead of stdout"
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log layout decisions"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI function.

    Precondition:
        argv is None (use sys.argv) or a list of arguments

    Postcondition:
        layout is computed and written
        returns 0 on success, 1 on error

    Returns:
        exit code (0=success, 1=error)
    """
    parser = _create_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format='%(message)s'
    )

    try:
        materials, relationships = load_flow_document(args.input)
        _print_validation(materials, relationships)

        result = create_layered_layout(materials, relationships)
        _write_output(_render(result, args.format), args.output_file)

        return 0

    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
