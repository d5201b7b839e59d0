"""Main CLI entry point for the strict-xml command-line tool.

``strict-xml parse`` prints the structured form of each document and
``strict-xml check`` only reports well-formedness. Both accept several files
and exit non-zero if any of them fails.
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__
from ..api.parser import XmlParser
from ..shared.config import PRESETS, ConfigError, ConfigValidationError, ParserConfig
from ..shared.errors import XmlError
from ..shared.json_output import dumps
from ..shared.logging import elapsed_ms, get_logger

# Command-line flag destination -> ParserConfig field
_OPTION_FLAGS = {
    "preserve_comments": "preserve_comments",
    "preserve_cdata": "preserve_cdata",
    "preserve_doctype": "preserve_document_type",
    "preserve_xml_declaration": "preserve_xml_declaration",
    "sort_attributes": "sort_attributes",
    "include_offsets": "include_offsets",
    "ignore_undefined_entities": "ignore_undefined_entities",
}


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="strict-xml",
        description="Strict XML 1.0 well-formedness parser"
    )
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parse_parser = subparsers.add_parser("parse", help="Parse XML files and print their trees")
    parse_parser.add_argument("paths", nargs="+", type=Path, help="XML files to parse")
    parse_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)"
    )
    parse_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    _add_config_arguments(parse_parser)

    check_parser = subparsers.add_parser("check", help="Check XML files for well-formedness")
    check_parser.add_argument("paths", nargs="+", type=Path, help="XML files to check")
    check_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )
    _add_config_arguments(check_parser)

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
    return parser


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON file with parser options"
    )
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default="strict",
        help="Parser configuration preset (default: strict)"
    )
    parser.add_argument("--preserve-comments", action="store_true", help="Keep comment nodes")
    parser.add_argument("--preserve-cdata", action="store_true", help="Keep CDATA section nodes")
    parser.add_argument("--preserve-doctype", action="store_true", help="Keep the doctype node")
    parser.add_argument(
        "--preserve-xml-declaration", action="store_true", help="Keep the XML declaration node"
    )
    parser.add_argument("--sort-attributes", action="store_true", help="Sort attribute names")
    parser.add_argument("--include-offsets", action="store_true", help="Record node offsets")
    parser.add_argument(
        "--ignore-undefined-entities",
        action="store_true",
        help="Keep undefined entity references as literal text"
    )


def build_config(args: argparse.Namespace) -> ParserConfig:
    """Combine preset, configuration file and flags; later sources win."""
    config = PRESETS[args.preset]()
    if args.config:
        try:
            data = json.loads(args.config.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration file must contain a JSON object")
        # Hooks cannot come from a file.
        data.pop("resolve_undefined_entity", None)
        config = config.override(**data)
    flags = {field: True for dest, field in _OPTION_FLAGS.items() if getattr(args, dest)}
    return config.override(**flags) if flags else config


def process_file(parser: XmlParser, path: Path, include_document: bool) -> Dict[str, Any]:
    """Parse one file and describe the outcome as a dictionary."""
    start_time = time.perf_counter()
    result: Dict[str, Any] = {"file": str(path)}
    try:
        document = parser.parse_file(path)
    except XmlError as e:
        result["success"] = False
        result["error"] = e.to_dict()
        result["message"] = e.message
    except (OSError, UnicodeDecodeError) as e:
        result["success"] = False
        result["error"] = {"code": type(e).__name__, "description": str(e)}
        result["message"] = str(e)
    else:
        result["success"] = True
        result["element_count"] = sum(1 for _ in document.iter_elements())
        if include_document:
            result["document"] = document.to_dict()
    result["processing_time_ms"] = elapsed_ms(start_time)
    return result


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format processing results for output."""
    if format_type == "json":
        return dumps(results, indent=2)

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r["success"])
    lines.append(f"Processed {len(results)} files, {successful} well-formed")
    lines.append("-" * 60)
    for result in results:
        status = "✓" if result["success"] else "✗"
        lines.append(f"{status} {result['file']}")
        if result["success"]:
            lines.append(
                f"   Elements: {result['element_count']}, "
                f"Time: {result['processing_time_ms']:.1f}ms"
            )
        else:
            for message_line in result["message"].rstrip("\n").split("\n"):
                lines.append(f"   {message_line}")
    return "\n".join(lines)


def _run(args: argparse.Namespace, include_document: bool) -> int:
    logger = get_logger(__name__, None, "cli")
    try:
        config = build_config(args)
    except (ConfigError, OSError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    parser = XmlParser(config)
    results = [process_file(parser, path, include_document) for path in args.paths]
    logger.info("Processed files", extra={"statistics": parser.statistics})

    formatted_output = format_results(results, args.format)
    output = getattr(args, "output", None)
    if output:
        try:
            output.write_text(formatted_output, encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        print(f"Results written to {output}", file=sys.stderr)
    else:
        print(formatted_output)

    return 0 if all(r["success"] for r in results) else 1


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    return _run(args, include_document=True)


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    return _run(args, include_document=False)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    try:
        if args.command == "parse":
            return cmd_parse(args)
        if args.command == "check":
            return cmd_check(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
