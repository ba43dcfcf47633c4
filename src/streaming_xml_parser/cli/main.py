"""Main CLI entry point for the streaming-xml command-line tool.

Provides commands to parse XML files and render every top-level document
they contain as XML, JSON or a summary, and to check files for
well-formedness.
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import psutil

from streaming_xml_parser import __version__
from streaming_xml_parser.api.parser import iter_documents
from streaming_xml_parser.shared.config import ConfigError, ParserConfig
from streaming_xml_parser.shared.errors import FormatError
from streaming_xml_parser.shared.logging import get_logger
from streaming_xml_parser.tree import JsonWriterOptions, XmlDocument, XmlWriterOptions

XML_SUFFIXES = {".xml", ".xhtml", ".svg"}
OUTPUT_FORMATS = ["xml", "json", "summary"]
MAX_ERRORS_SHOWN = 3


def get_memory_usage_mb() -> float:
    """Get resident memory of the current process in MB."""
    return psutil.Process().memory_info().rss / (1024 * 1024)


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self):
        self.parser_config = ParserConfig.default()
        self.output_format = "xml"
        self.merge_arrays = False
        self.pretty_print = False
        self.allow_single_tags = True

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        Unreadable or invalid files leave the defaults in place and print a
        warning.
        """
        config = cls()
        if not config_path.exists():
            return config
        try:
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
            if "parser" in data:
                config.parser_config = ParserConfig.from_dict(data["parser"])
            config.output_format = data.get("output_format", config.output_format)
            config.merge_arrays = bool(data.get("merge_arrays", config.merge_arrays))
            config.pretty_print = bool(data.get("pretty_print", config.pretty_print))
            config.allow_single_tags = bool(
                data.get("allow_single_tags", config.allow_single_tags)
            )
        except (OSError, ValueError, TypeError, ConfigError) as e:
            print(f"Warning: Could not load config file: {e}", file=sys.stderr)

        if config.output_format not in OUTPUT_FORMATS:
            print(
                f"Warning: Unknown output format {config.output_format!r}, using 'xml'",
                file=sys.stderr,
            )
            config.output_format = "xml"
        return config


class DocumentProcessor:
    """Core processing logic for CLI operations."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.logger = get_logger(__name__, config.parser_config.correlation_id, "cli_processor")

    def render(self, document: XmlDocument) -> str:
        """Render one document in the configured output format."""
        if self.config.output_format == "json":
            return document.to_json(JsonWriterOptions(
                merge_arrays=self.config.merge_arrays,
                pretty_print=self.config.pretty_print,
            ))
        return document.to_string(XmlWriterOptions(
            allow_single_tags=self.config.allow_single_tags,
            pretty_print=self.config.pretty_print,
        ))

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Parse every document in a file and return the results."""
        start_time = time.time()
        outputs: List[str] = []
        documents = 0
        elements = 0
        try:
            with file_path.open("rb") as handle:
                for document in iter_documents(handle, str(file_path), self.config.parser_config):
                    documents += 1
                    elements += sum(1 for _ in document.iter_elements())
                    if self.config.output_format != "summary":
                        outputs.append(self.render(document))
        except (FormatError, OSError) as e:
            self.logger.warning("Failed to process file", extra={"file": str(file_path), "error": str(e)})
            return {
                "file": str(file_path),
                "success": False,
                "documents": documents,
                "element_count": elements,
                "error": str(e),
                "processing_time_ms": (time.time() - start_time) * 1000,
                "memory_mb": get_memory_usage_mb(),
            }

        return {
            "file": str(file_path),
            "success": True,
            "documents": documents,
            "element_count": elements,
            "output": outputs,
            "processing_time_ms": (time.time() - start_time) * 1000,
            "memory_mb": get_memory_usage_mb(),
        }

    def find_xml_files(self, path: Path, recursive: bool = True) -> Iterator[Path]:
        """Find XML files in path.

        A file named directly is always processed; directories are searched
        for files with an XML-like suffix.
        """
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            for candidate in sorted(path.glob(pattern)):
                if candidate.is_file() and candidate.suffix.lower() in XML_SUFFIXES:
                    yield candidate
        else:
            yield path

    def batch_process(self, paths: List[Path], recursive: bool = True) -> List[Dict[str, Any]]:
        """Process every file found under ``paths`` in order."""
        results = []
        for path in paths:
            for file_path in self.find_xml_files(path, recursive):
                results.append(self.process_single_file(file_path))
        return results


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="streaming-xml",
        description="Streaming XML parser: render XML documents as XML or JSON and check well-formedness"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse XML files and render their documents")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files or directories to process"
    )
    parse_parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: xml, or the config file setting)"
    )
    parse_parser.add_argument(
        "--merge-arrays",
        action="store_true",
        help="Merge non-contiguous repeated elements into one JSON array"
    )
    parse_parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent XML and JSON output"
    )
    parse_parser.add_argument(
        "--no-single-tags",
        action="store_true",
        help="Write empty elements as <T></T> instead of <T/>"
    )
    parse_parser.add_argument(
        "--no-recursive",
        action="store_true",
        help="Do not descend into subdirectories"
    )
    parse_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    parse_parser.add_argument(
        "--config",
        type=Path,
        help="JSON configuration file"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Check XML files for well-formedness")
    validate_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files to validate"
    )
    validate_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format"
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

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format processing results for output."""
    if format_type in ("xml", "json"):
        lines = []
        for result in results:
            lines.extend(result.get("output", []))
        return "\n".join(lines)

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r.get("success", False))

    lines.append(f"Processed {len(results)} files, {successful} successful")
    lines.append("-" * 60)

    for result in results:
        status = "✓" if result.get("success", False) else "✗"
        lines.append(f"{status} {result['file']}")
        line = (
            f"   Documents: {result.get('documents', 0)}, "
            f"Elements: {result.get('element_count', 0)}, "
            f"Time: {result.get('processing_time_ms', 0):.1f}ms"
        )
        if "memory_mb" in result:
            line += f", Memory: {result['memory_mb']:.1f}MB"
        lines.append(line)
        if "error" in result:
            lines.append(f"   Error: {result['error']}")
        lines.append("")

    return "\n".join(lines)


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    config = CLIConfig()
    if args.config:
        config = CLIConfig.from_file(args.config)
        if not (args.verbose or args.quiet):
            logging.getLogger("streaming_xml_parser").setLevel(config.parser_config.logging_level)

    # Apply command-line overrides
    if args.format:
        config.output_format = args.format
    if args.merge_arrays:
        config.merge_arrays = True
    if args.pretty:
        config.pretty_print = True
    if args.no_single_tags:
        config.allow_single_tags = False

    processor = DocumentProcessor(config)
    try:
        results = processor.batch_process(args.paths, recursive=not args.no_recursive)
    except KeyboardInterrupt:
        print("\nProcessing interrupted by user", file=sys.stderr)
        return 1

    formatted_output = format_results(results, config.output_format)

    if config.output_format != "summary":
        failures = [r for r in results if not r.get("success", False)]
        for failure in failures[:MAX_ERRORS_SHOWN]:
            print(f"Error: {failure['error']}", file=sys.stderr)
        if len(failures) > MAX_ERRORS_SHOWN:
            print(f"... and {len(failures) - MAX_ERRORS_SHOWN} more errors", file=sys.stderr)

    if args.output:
        try:
            args.output.write_text(formatted_output + "\n", encoding="utf-8")
            print(f"Results written to {args.output}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    elif formatted_output:
        print(formatted_output)

    if not results:
        print("No XML files found", file=sys.stderr)
        return 1

    successful = sum(1 for r in results if r.get("success", False))
    return 0 if successful == len(results) else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    config = CLIConfig()
    config.output_format = "summary"
    processor = DocumentProcessor(config)
    results = []

    for path in args.paths:
        if not path.exists():
            results.append({
                "file": str(path),
                "valid": False,
                "error": "File not found"
            })
            continue

        result = processor.process_single_file(path)
        validation_result = {
            "file": str(path),
            "valid": result["success"] and result["documents"] > 0,
            "documents": result["documents"],
        }
        if not result["success"]:
            validation_result["error"] = result["error"]
        elif result["documents"] == 0:
            validation_result["error"] = "No XML content found"
        results.append(validation_result)

    # Output results
    if args.format == "json":
        print(json.dumps(results, indent=2))
    else:
        valid_count = sum(1 for r in results if r.get("valid", False))
        print(f"Validated {len(results)} files, {valid_count} valid")
        print("-" * 50)

        for result in results:
            status = "✓" if result.get("valid", False) else "✗"
            print(f"{status} {result['file']}")
            if "error" in result:
                print(f"   Error: {result['error']}")

    valid_count = sum(1 for r in results if r.get("valid", False))
    return 0 if valid_count == len(results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        if args.command == "parse":
            return cmd_parse(args)
        if args.command == "validate":
            return cmd_validate(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
