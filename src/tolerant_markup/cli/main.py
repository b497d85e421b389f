"""Main CLI entry point for the tolerant-markup command-line tool.

Provides sub-commands to reformat markup files, check how they parse and
print the outline of their node tree.
"""

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from tolerant_markup import __version__
from tolerant_markup.api import MarkupProcessor, save_document
from tolerant_markup.shared import (
    ConfigurationError,
    FormatterError,
    MarkupConfig,
    MarkupParseError,
    configure_logging,
    get_logger,
)
from tolerant_markup.tree import MarkupDocument, MarkupNode, NodeKind

OUTLINE_INDENT = "  "
TEXT_PREVIEW_LENGTH = 40  # Max characters of text shown per outline line


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="tolerant-markup",
        description="Tolerant markup parser and pretty-printer"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Format command
    format_parser = subparsers.add_parser(
        "format", help="Reformat markup files with consistent indentation"
    )
    format_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Markup files to format"
    )
    format_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    format_parser.add_argument(
        "--in-place", "-i",
        action="store_true",
        help="Rewrite each file in its own encoding"
    )
    format_parser.add_argument(
        "--indent",
        type=int,
        metavar="N",
        help="Indent with N spaces instead of tabs"
    )
    format_parser.add_argument(
        "--raw-on-error",
        action="store_true",
        help="Pass files that are not markup through unchanged"
    )

    # Check command
    check_parser = subparsers.add_parser(
        "check", help="Parse files and report what the parser found"
    )
    check_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Markup files to check"
    )
    check_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Tree command
    tree_parser = subparsers.add_parser(
        "tree", help="Print the node tree of a markup file"
    )
    tree_parser.add_argument(
        "path",
        type=Path,
        help="Markup file to outline"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )

    return parser


def load_config(args: argparse.Namespace) -> MarkupConfig:
    """Build the configuration from ``--config`` and command-line overrides."""
    config = MarkupConfig.from_file(args.config) if args.config else MarkupConfig()

    indent = getattr(args, "indent", None)
    if indent is not None:
        if indent < 0:
            raise ConfigurationError("--indent must be >= 0")
        config.formatter = dataclasses.replace(config.formatter, indent=" " * indent)
    return config


def cmd_format(args: argparse.Namespace, config: MarkupConfig) -> int:
    """Handle format command."""
    processor = MarkupProcessor(config)
    logger = get_logger(__name__, processor.correlation_id, "cli_format")
    outputs: List[str] = []
    failures = 0

    for path in args.paths:
        try:
            document = processor.parse(path)
        except OSError as e:
            print(f"Cannot read {path}: {e}", file=sys.stderr)
            failures += 1
            continue
        except MarkupParseError as e:
            if args.raw_on_error:
                logger.info("Passing through non-markup file", extra={"file": str(path)})
                if not args.in_place:
                    outputs.append(path.read_text(encoding="utf-8", errors="replace"))
                continue
            print(f"Cannot format {path}: {e}", file=sys.stderr)
            failures += 1
            continue

        if args.in_place and document.compression is not None:
            print(
                f"Cannot format {path} in place: {document.compression} source",
                file=sys.stderr
            )
            failures += 1
            continue

        try:
            if args.in_place:
                save_document(document, path, config)
                print(f"Formatted: {path}", file=sys.stderr)
            else:
                outputs.append(processor.format(document))
        except (OSError, FormatterError) as e:
            print(f"Cannot format {path}: {e}", file=sys.stderr)
            failures += 1

    if not args.in_place:
        formatted_output = "".join(outputs)
        if args.output:
            try:
                args.output.write_text(formatted_output, encoding="utf-8")
            except OSError as e:
                print(f"Error writing output: {e}", file=sys.stderr)
                return 1
            print(f"Output written to {args.output}", file=sys.stderr)
        else:
            sys.stdout.write(formatted_output)

    return 0 if failures == 0 else 1


def check_file(processor: MarkupProcessor, path: Path) -> Dict[str, Any]:
    """Parse a single file and summarize the outcome."""
    try:
        report = processor.parse_with_report(path)
    except (OSError, MarkupParseError) as e:
        return {"file": str(path), "success": False, "error": str(e)}

    result: Dict[str, Any] = {"file": str(path), "success": True}
    result.update(report.summary())
    return result


def format_check_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format check results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No results to display."

    successful = sum(1 for r in results if r["success"])
    lines = [f"Checked {len(results)} files, {successful} parsed"]
    lines.append("-" * 60)

    for result in results:
        status = "✓" if result["success"] else "✗"
        lines.append(f"{status} {result['file']}")
        if not result["success"]:
            lines.append(f"   Error: {result['error']}")
        else:
            lines.append(
                f"   Encoding: {result['encoding']}, "
                f"Elements: {result['element_count']}, "
                f"Nodes: {result['node_count']}, "
                f"Depth: {result['max_depth']}"
            )
            warnings = [
                d for d in result["diagnostics"] if d["severity"] == "WARNING"
            ]
            for warning in warnings[:3]:  # Show max 3 warnings
                lines.append(f"   Warning: {warning['message']}")
            if len(warnings) > 3:
                lines.append(f"   ... and {len(warnings) - 3} more warnings")
        lines.append("")

    return "\n".join(lines)


def cmd_check(args: argparse.Namespace, config: MarkupConfig) -> int:
    """Handle check command."""
    processor = MarkupProcessor(config)
    results = [check_file(processor, path) for path in args.paths]

    print(format_check_results(results, args.format))

    successful = sum(1 for r in results if r["success"])
    return 0 if successful == len(results) else 1


def _outline_label(node: MarkupNode) -> str:
    if node.kind is NodeKind.TEXT:
        text = " ".join(node.value.split())  # type: ignore[attr-defined]
        if len(text) > TEXT_PREVIEW_LENGTH:
            text = text[:TEXT_PREVIEW_LENGTH] + "..."
        return f'"{text}"'
    if node.kind is NodeKind.COMMENT:
        return f"// {node.value.strip()}"  # type: ignore[attr-defined]
    return str(node)


def outline(document: MarkupDocument) -> List[str]:
    """One line per node below the document, indented by depth."""
    return [
        f"{OUTLINE_INDENT * (node.depth - 1)}{_outline_label(node)}"
        for node in document
        if node is not document
    ]


def cmd_tree(args: argparse.Namespace, config: MarkupConfig) -> int:
    """Handle tree command."""
    processor = MarkupProcessor(config)
    try:
        document = processor.parse(args.path)
    except (OSError, MarkupParseError) as e:
        print(f"Cannot parse {args.path}: {e}", file=sys.stderr)
        return 1

    for line in outline(document):
        print(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    # Route to appropriate command handler
    try:
        if args.command == "format":
            return cmd_format(args, config)
        elif args.command == "check":
            return cmd_check(args, config)
        elif args.command == "tree":
            return cmd_tree(args, config)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
