"""verlens: resolve declared dependency versions against package registries.

Reads ``name:spec`` dependencies from the command line, a list file or a
JSON file, resolves them concurrently and prints one JSON object per
dependency (a package document or an error object).
"""

import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

from args import parse_args
from cli_config import apply_cli_overrides, load_resolver_config
from common.http_client import JsonHttpClient
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from registry.dub import DubSelectionsError, read_dub_selections, selected_version
from versioning.config import ResolverConfig
from versioning.models import (
    Ecosystem,
    PackageDocument,
    PackageRequest,
    ResolutionError,
    SuggestionTag,
)
from versioning.parser import tokenize_rightmost_colon
from versioning.service import Outcome, PackageResolutionService

logger = logging.getLogger(__name__)

WARNING_TAGS = {
    SuggestionTag.NOT_FOUND,
    SuggestionTag.NO_MATCH,
    SuggestionTag.FOUR_SEGMENT_UNSUPPORTED,
}


class InputError(Exception):
    """A dependency list could not be read."""


def load_pkgs_file(file_name: str) -> List[str]:
    """Load ``name:spec`` lines from a file, skipping blanks and ``#`` comments."""
    try:
        with open(file_name, encoding="utf-8") as file:
            lines = [line.strip() for line in file]
    except OSError as e:
        raise InputError(f"Cannot read {file_name}: {e}") from e
    return [line for line in lines if line and not line.startswith("#")]


def to_request(token: str, ecosystem: Ecosystem) -> PackageRequest:
    """Split a CLI token on the rightmost colon; a missing spec means latest."""
    name, spec = tokenize_rightmost_colon(token)
    return PackageRequest(ecosystem=ecosystem, name=name, raw_spec=spec or "")


def load_json_requests(path: str, ecosystem: Ecosystem) -> List[PackageRequest]:
    """Load ``[{"name", "version", "ecosystem"?}, ...]`` entries."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise InputError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, list):
        raise InputError(f"{path} must contain a JSON list")

    requests = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("name"):
            raise InputError(f"Invalid entry in {path}: {entry!r}")
        eco_name = entry.get("ecosystem")
        try:
            entry_ecosystem = Ecosystem(str(eco_name).lower()) if eco_name else ecosystem
        except ValueError as e:
            raise InputError(f"Unsupported ecosystem in {path}: {eco_name}") from e
        requests.append(
            PackageRequest(
                ecosystem=entry_ecosystem,
                name=str(entry["name"]),
                raw_spec=str(entry.get("version") or ""),
            )
        )
    return requests


def build_requests(args) -> List[PackageRequest]:
    """Build resolution requests from whichever input option was given."""
    ecosystem = Ecosystem(args.package_type)
    if getattr(args, "INPUT_JSON", None):
        return load_json_requests(args.INPUT_JSON, ecosystem)
    tokens: List[str] = []
    for file_name in getattr(args, "LIST_FROM_FILE", None) or []:
        tokens.extend(load_pkgs_file(file_name))
    tokens.extend(getattr(args, "SINGLE", None) or [])
    return [to_request(token, ecosystem) for token in tokens]


def outcome_to_dict(outcome: Outcome, selections: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """JSON view of one outcome; dub rows gain the locally selected version."""
    data = outcome.to_dict()
    if (
        selections is not None
        and isinstance(outcome, PackageDocument)
        and outcome.requested.ecosystem == Ecosystem.DUB
    ):
        data["selected"] = selected_version(selections, outcome.requested.name)
    return data


def export_json(rows: List[Dict[str, Any]], path: str) -> None:
    """Write the result rows to ``path``.

    Raises:
        InputError: the file cannot be written.
    """
    try:
        with open(path, "w", encoding="utf-8") as file:
            json.dump(rows, file, ensure_ascii=False, indent=4)
    except OSError as e:
        raise InputError(f"JSON file couldn't be written to disk: {e}") from e
    logging.info("JSON file has been successfully exported at: %s", path)


async def resolve_requests(config: ResolverConfig, requests: Sequence[PackageRequest]) -> List[Outcome]:
    """Resolve ``requests`` with one HTTP session for the whole run."""
    async with JsonHttpClient() as http_client:
        service = PackageResolutionService(config, http_client)
        return await service.resolve_all(requests)


def exit_code_for(outcomes: Sequence[Outcome], error_on_warnings: bool) -> int:
    """Map outcomes to the process exit code."""
    errors = [o for o in outcomes if isinstance(o, ResolutionError)]
    if any(e.kind == "configuration" for e in errors):
        return ExitCodes.FILE_ERROR.value
    if errors:
        return ExitCodes.CONNECTION_ERROR.value
    warnings = [
        o for o in outcomes if isinstance(o, PackageDocument) and o.suggestion.tag in WARNING_TAGS
    ]
    if warnings:
        logging.warning("%d dependencies have no usable match.", len(warnings))
        if error_on_warnings:
            logging.error("Warnings present, exiting with non-zero status code.")
            return ExitCodes.EXIT_WARNINGS.value
    return ExitCodes.SUCCESS.value


def _setup_logging(args) -> None:
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.LOG_LEVEL_ENV] = str(args.LOG_LEVEL).upper()
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the exit code."""
    args = parse_args(argv)
    _setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug("CLI start", extra=extra_context(event="function_entry", component="cli", action="main"))

    try:
        requests = build_requests(args)
        config = load_resolver_config(getattr(args, "CONFIG", None))
        selections = None
        if getattr(args, "DUB_SELECTIONS", None):
            selections = read_dub_selections(args.DUB_SELECTIONS)
    except (InputError, ValueError, FileNotFoundError, DubSelectionsError) as e:
        logging.error("%s, aborting", e)
        return ExitCodes.FILE_ERROR.value

    if not requests:
        logging.warning("No packages found in the input list.")
        return ExitCodes.SUCCESS.value

    config = apply_cli_overrides(config, args, Ecosystem(args.package_type))
    logging.info("Resolving %d dependencies.", len(requests))
    outcomes = asyncio.run(resolve_requests(config, requests))
    rows = [outcome_to_dict(o, selections) for o in outcomes]

    if getattr(args, "OUTPUT", None):
        try:
            export_json(rows, args.OUTPUT)
        except InputError as e:
            logging.error("%s", e)
            return ExitCodes.FILE_ERROR.value
    else:
        for row in rows:
            sys.stdout.write(json.dumps(row, ensure_ascii=False) + "\n")

    return exit_code_for(outcomes, bool(getattr(args, "ERROR_ON_WARNINGS", False)))


def main():
    """Main function of the program."""
    sys.exit(run())


if __name__ == "__main__":
    main()
