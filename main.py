"""
Entry point: add notes and diameter dimensions from drafterData.json to an
Onshape drawing.

Usage:
    python main.py <document_url> [--stack STACK] [--data PATH] [--config PATH]

Examples:
    python main.py "https://cad.onshape.com/documents/<did>/w/<wid>/e/<eid>"
    python main.py "<url>" --strict --verbose --json-log drafter.log.json
    python main.py --validate-only --data drafterData.json

Exit codes:
    0  all annotations created (or nothing to create)
    1  runtime failure: bad data, unresolved geometry, API or job failure
    2  usage or configuration error (no network call was made)
    3  the job finished but some annotations failed
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

if sys.stdout.encoding and sys.stdout.encoding.lower() not in ('utf-8', 'utf8'):
    sys.stdout.reconfigure(encoding='utf-8', errors='replace')
if sys.stderr.encoding and sys.stderr.encoding.lower() not in ('utf-8', 'utf8'):
    sys.stderr.reconfigure(encoding='utf-8', errors='replace')

from onshape_drafter.api.client import OnshapeClient, parse_document_url, validate_base_urls
from onshape_drafter.errors import ConfigurationError, DrafterError
from onshape_drafter.io.drafter_data import load_drafter_data
from onshape_drafter.io.validator import validate_drafter_file
from onshape_drafter.logging_config import configure_default_logging
from onshape_drafter.project_config import ProjectConfig, load_config
from onshape_drafter.workflow import RunStatus, apply_annotations

logger = logging.getLogger("onshape_drafter.main")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_PARTIAL = 3

_STATUS_EXIT_CODES = {
    RunStatus.SUCCESS: EXIT_OK,
    RunStatus.NOTHING_TO_DO: EXIT_OK,
    RunStatus.PARTIAL: EXIT_PARTIAL,
    RunStatus.FAILED: EXIT_FAILURE,
}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onshape-drafter",
        description="Add notes and diameter dimensions from a drafter data file to an Onshape drawing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "document_url",
        nargs="?",
        help="Drawing URL: https://<host>/documents/<did>/w/<wid>/e/<eid>.",
    )
    parser.add_argument(
        "--stack",
        default=None,
        help="Credentials stack name (default from config: 'cad').",
    )
    parser.add_argument(
        "--credentials",
        default=None,
        help="Path to the credentials JSON file.",
    )
    parser.add_argument(
        "--data",
        default=None,
        help="Path to the drafter data file (default: ./drafterData.json).",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a .drafter.json configuration file.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail the whole batch when a diameter dimension matches no view.",
    )
    parser.add_argument(
        "--view-selection",
        choices=["all", "random"],
        default=None,
        dest="view_selection",
        help="Search all views of the active sheet or one random view.",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        dest="validate_only",
        help="Only validate the data file; no network access.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--json-log",
        default=None,
        dest="json_log",
        help="Also write JSON-lines logs to this file.",
    )
    return parser


def _apply_cli_overrides(config: ProjectConfig, args: argparse.Namespace) -> ProjectConfig:
    if args.stack:
        config.api.stack = args.stack
    if args.credentials:
        config.api.credentials_file = args.credentials
    if args.data:
        config.input.data_file = args.data
    if args.strict:
        config.annotations.policy = "strict"
    if args.view_selection:
        config.annotations.view_selection = args.view_selection
    return config.validate()


def _validate_only(data_file: str) -> int:
    report = validate_drafter_file(data_file)
    print(report.summary())
    return EXIT_OK if report.is_valid else EXIT_FAILURE


def run(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_default_logging(verbose=args.verbose, json_file=args.json_log)

    # Arguments and configuration: nothing here touches the network.
    try:
        config = _apply_cli_overrides(load_config(args.config), args)
        if args.validate_only:
            return _validate_only(config.input.data_file)
        if not args.document_url:
            raise ConfigurationError("document_url is required")
        document_base_url, ref = parse_document_url(args.document_url)
        client = OnshapeClient.from_stack(config.api.stack, config.api.credentials_file,
                                          timeout=config.api.timeout_seconds)
        validate_base_urls(client.base_url, document_base_url)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        parser.print_usage(sys.stderr)
        return EXIT_USAGE
    except DrafterError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE

    try:
        with client:
            data = load_drafter_data(Path(config.input.data_file))
            report = apply_annotations(client, ref, data, config)
    except DrafterError as exc:
        logger.error("Create notes failed: %s", exc)
        return EXIT_FAILURE
    except Exception as exc:
        logger.critical("Unexpected error: %s", exc, exc_info=True)
        return EXIT_FAILURE

    print(report.summary())
    return _STATUS_EXIT_CODES[report.status]


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
