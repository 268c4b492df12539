"""Argument parsing functionality for verlens."""

import argparse
from constants import Constants

def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="verlens",
        description=(
            "verlens - Resolve declared dependency versions against package registries"
        ),
        add_help=True,
    )

    parser.add_argument("-t", "--type",
                        dest="package_type",
                        help="Package Manager Type, i.e: npm, nuget, dub, pub",
                        action="store", type=str.lower,
                        choices=Constants.SUPPORTED_PACKAGES,
                        required=True)

    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument("-l", "--load_list",
                        dest="LIST_FROM_FILE",
                        help="Load list of name:version dependencies from a file",
                        action="append", type=str)
    input_group.add_argument("-p", "--package",
                            dest="SINGLE",
                            help="Name a single dependency as name:version.",
                            action="append", type=str)
    input_group.add_argument("-i", "--input-json",
                            dest="INPUT_JSON",
                            help="Load dependencies from a JSON list of {name, version} objects",
                            action="store", type=str)

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to JSON output file",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if warnings are present.",
                        action="store_true")

    # Config file (general)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)

    # Resolver overrides
    parser.add_argument("--registry",
                        dest="REGISTRY",
                        help="Registry or service index URL for the selected type (repeatable, ordered)",
                        action="append",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="Per-request timeout in seconds",
                        action="store",
                        type=int)
    parser.add_argument("--cache-ttl",
                        dest="CACHE_TTL",
                        help="Response cache TTL in seconds (0 disables caching)",
                        action="store",
                        type=int)
    parser.add_argument("--no-prerelease",
                        dest="NO_PRERELEASE",
                        help="Exclude prerelease versions from registry results",
                        action="store_true")
    parser.add_argument("--dub-selections",
                        dest="DUB_SELECTIONS",
                        help=f"Path to {Constants.DUB_SELECTIONS_FILE}; adds the locally selected version to dub results",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
