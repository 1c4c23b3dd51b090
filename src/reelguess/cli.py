from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml
from rich.console import Console

from .config import RuleConfiguration, default_configuration, load_config
from .errors import ConfigurationError
from .guesser import Guesser
from .models import MediaType, ParseOptions, ParseOutcome
from .summary_table import ResultTableRenderer
from .version import __version__

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARSE_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _split_values(values: Optional[Sequence[str]]) -> Optional[list[str]]:
    """Flatten repeated and comma-separated option values."""
    if not values:
        return None
    items = [item.strip() for value in values for item in value.split(",")]
    return [item for item in items if item] or None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reelguess",
        description="Extract title, episode and release metadata from media filenames.",
    )
    parser.add_argument("filenames", nargs="*", help="Filenames (or paths) to parse")
    parser.add_argument(
        "--from-file",
        type=Path,
        help="Read filenames from a file, one per line ('-' reads stdin)",
    )
    parser.add_argument("--config", type=Path, help="YAML file merged over the built-in rule tables")
    parser.add_argument(
        "--type",
        choices=[MediaType.MOVIE.value, MediaType.EPISODE.value],
        help="Media type hint",
    )
    parser.add_argument("--include", action="append", metavar="PROPS", help="Only extract these properties")
    parser.add_argument("--exclude", action="append", metavar="PROPS", help="Never extract these properties")
    parser.add_argument("--language", action="append", metavar="LANGS", help="Allowed languages")
    parser.add_argument("--country", action="append", metavar="COUNTRIES", help="Allowed countries")
    parser.add_argument("--json", action="store_true", help="Print one JSON object per filename")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads for batch parsing")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the effective rule configuration as YAML and exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s\n%(message)s\n",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_options(args: argparse.Namespace) -> ParseOptions:
    include = _split_values(args.include)
    languages = _split_values(args.language)
    countries = _split_values(args.country)
    return ParseOptions(
        media_type=MediaType(args.type) if args.type else None,
        include_only=frozenset(include) if include is not None else None,
        exclude=frozenset(_split_values(args.exclude) or ()),
        allowed_languages=frozenset(languages) if languages is not None else None,
        allowed_countries=frozenset(countries) if countries is not None else None,
        output_input_string=args.json,
    )


def read_filenames(args: argparse.Namespace) -> list[str]:
    names = list(args.filenames)
    if args.from_file is not None:
        if str(args.from_file) == "-":
            lines = sys.stdin.read().splitlines()
        else:
            lines = args.from_file.read_text(encoding="utf-8").splitlines()
        names.extend(line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#"))
    return names


def load_configuration(path: Optional[Path]) -> RuleConfiguration:
    if path is None:
        return default_configuration()
    return load_config(path)


def emit_json(outcomes: Sequence[ParseOutcome], stream=None) -> None:
    stream = stream or sys.stdout
    for outcome in outcomes:
        if outcome.ok:
            payload = outcome.unwrap().to_dict()
        else:
            payload = {
                "input_string": outcome.filename,
                "error": str(outcome.error),
                "error_type": type(outcome.error).__name__,
            }
        stream.write(json.dumps(payload, ensure_ascii=False) + "\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        configuration = load_configuration(args.config)
    except ConfigurationError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR
    except (OSError, ValueError, yaml.YAMLError) as exc:
        LOGGER.error("Failed to load config %s: %s", args.config, exc)
        return EXIT_CONFIG_ERROR

    if args.show_config:
        sys.stdout.write(yaml.safe_dump(configuration.to_dict(), sort_keys=False, allow_unicode=True))
        return EXIT_OK

    try:
        filenames = read_filenames(args)
    except OSError as exc:
        LOGGER.error("Failed to read %s: %s", args.from_file, exc)
        return EXIT_PARSE_FAILURE
    if not filenames:
        parser.error("no filenames given")

    try:
        options = build_options(args)
    except ValueError as exc:
        parser.error(str(exc))

    guesser = Guesser(configuration, max_workers=args.workers)
    outcomes = guesser.parse_batch(filenames, options)

    if args.json:
        emit_json(outcomes)
    else:
        ResultTableRenderer(Console()).print_outcomes(outcomes)

    return EXIT_OK if all(outcome.ok for outcome in outcomes) else EXIT_PARSE_FAILURE


if __name__ == "__main__":
    sys.exit(main())
