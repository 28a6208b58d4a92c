"""CLI entrypoint for Intel 471 lookups."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from intel471_lookup.config import load_options, load_request_config, validate_options
from intel471_lookup.errors import LookupFailedError
from intel471_lookup.integration import startup
from intel471_lookup.logging_setup import setup_logging
from intel471_lookup.models import BatchResult, Entity
from intel471_lookup.parser import parse_entity_file, parse_entity_values

logger = logging.getLogger("intel471_lookup.cli")

EXIT_OK = 0
EXIT_LOOKUP_FAILED = 1
EXIT_FILE_NOT_FOUND = 2
EXIT_INVALID_OPTIONS = 3


def collect_entities(
    ioc_file: Optional[str], values: list[str]
) -> list[Entity]:
    """
    Gather entities from a file and/or explicit values.

    Raises:
        FileNotFoundError: If ``ioc_file`` does not exist
    """
    entities: list[Entity] = []
    malformed: list[tuple[int, str, str]] = []
    duplicates = 0

    if ioc_file:
        parsed, bad, dups = parse_entity_file(ioc_file)
        entities.extend(parsed)
        malformed.extend(bad)
        duplicates += dups

    if values:
        parsed, bad, dups = parse_entity_values(values)
        seen = {(e.entity_type, e.value.lower()) for e in entities}
        for entity in parsed:
            key = (entity.entity_type, entity.value.lower())
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            entities.append(entity)
        malformed.extend(bad)
        duplicates += dups

    for line_num, raw_line, error in malformed:
        logger.warning(f"Skipping line {line_num} ({raw_line!r}): {error}")

    logger.info(
        f"Parsed {len(entities)} entities, "
        f"{len(malformed)} malformed, "
        f"{duplicates} duplicates removed"
    )
    return entities


def write_results(results: list[dict], output: Optional[str]) -> None:
    """Write results as JSON to ``output``, or stdout when not set."""
    text = json.dumps(results, indent=2, default=str)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        logger.info(f"Results written to {output}")
    else:
        sys.stdout.write(text + "\n")


async def lookup_command(args: argparse.Namespace) -> int:
    """
    Execute the lookup command.

    Returns:
        Exit code (0 = success, 1 = lookup failed, 2 = file not found,
        3 = invalid options).
    """
    options = load_options()
    errors = validate_options(options)
    if errors:
        for error in errors:
            logger.error(f"{error.key}: {error.message}")
        return EXIT_INVALID_OPTIONS

    try:
        entities = collect_entities(args.ioc_file, args.value or [])
    except FileNotFoundError as e:
        logger.error(str(e))
        return EXIT_FILE_NOT_FOUND

    if not entities:
        logger.info("No entities to look up")
        write_results([], args.output)
        return EXIT_OK

    try:
        integration = startup(load_request_config())
    except (ValueError, OSError) as e:
        logger.error(f"Invalid client configuration: {e}")
        return EXIT_INVALID_OPTIONS

    async with integration:
        try:
            batch: BatchResult = await integration.do_lookup(
                entities, options, raise_for_errors=not args.allow_errors
            )
        except LookupFailedError as e:
            logger.error(f"Lookup failed: {e}")
            return EXIT_LOOKUP_FAILED

    results = batch.in_order(entities) if args.input_order else batch.results
    write_results([r.to_dict() for r in results], args.output)

    logger.info(
        f"Lookup complete: {len(batch.hits)} of {len(batch)} entities had Intel 471 data"
    )
    return EXIT_OK


async def validate_command(args: argparse.Namespace) -> int:
    """
    Execute the validate command.

    Returns:
        Exit code (0 = options valid, 3 = invalid options).
    """
    errors = validate_options(load_options())
    for error in errors:
        logger.error(f"{error.key}: {error.message}")
    if errors:
        return EXIT_INVALID_OPTIONS
    logger.info("Options are valid")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Intel 471 entity lookup")
    parser.add_argument(
        "command",
        choices=["lookup", "validate"],
        help="Command to run",
    )
    parser.add_argument(
        "ioc_file",
        nargs="?",
        default=None,
        help="Path to a file with one entity per line (lookup only)",
    )
    parser.add_argument(
        "--value",
        action="append",
        help="Entity value to look up; may be repeated (lookup only)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write JSON results to this path instead of stdout",
    )
    parser.add_argument(
        "--input-order",
        action="store_true",
        help="Emit results in input order rather than completion order",
    )
    parser.add_argument(
        "--allow-errors",
        action="store_true",
        help="Report classified upstream errors per entity instead of failing the batch",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--trace", action="store_true", help="Log every request and response"
    )
    return parser


def main() -> None:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(debug=args.debug, trace=args.trace)

    if args.ioc_file == "":
        args.ioc_file = None

    if args.command == "lookup" and not (args.ioc_file or args.value):
        parser.error("an ioc_file or at least one --value is required for 'lookup'")

    if args.command == "lookup":
        exit_code = asyncio.run(lookup_command(args))
    elif args.command == "validate":
        exit_code = asyncio.run(validate_command(args))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
