#!/usr/bin/env python3
"""Command-line browser for the Healthcare DICOM hierarchy.

Each subcommand makes one listing (or one download) and prints JSON to stdout:

    hc-browse projects --search my-
    hc-browse datasets my-project us-central1
    hc-browse download my-project us-central1 ds store STUDY SERIES INSTANCE -o x.dcm

Exit codes: 0 success, 1 abandoned for sign-in, 2 API error, 3 bad configuration.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .auth import AuthProvider, GoogleAuth, StaticTokenAuth
from .client import HealthcareClient
from .config import Settings, get_settings
from .errors import ApiError
from .logging_conf import get_logger, setup_logging

logger = get_logger("healthcare_client.cli")

EXIT_OK = 0
EXIT_SIGN_IN = 1
EXIT_API_ERROR = 2
EXIT_CONFIG = 3

# subcommand -> positional hierarchy arguments it takes, in order
_HIERARCHY = {
    "projects": [],
    "locations": ["project"],
    "datasets": ["project", "location"],
    "stores": ["project", "location", "dataset"],
    "studies": ["project", "location", "dataset", "store"],
    "series": ["project", "location", "dataset", "store", "study"],
    "instances": ["project", "location", "dataset", "store", "study", "series"],
    "download": ["project", "location", "dataset", "store", "study", "series", "instance"],
}


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the browser."""
    parser = argparse.ArgumentParser(
        prog="hc-browse", description="Browse Healthcare API DICOM stores"
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Bearer token; defaults to $HEALTHCARE_ACCESS_TOKEN, then Application Default Credentials",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for command, positionals in _HIERARCHY.items():
        p = sub.add_parser(command)
        for name in positionals:
            p.add_argument(name)
        if command == "projects":
            p.add_argument("--search", default=None, help="Only ids starting with this prefix")
        if command == "download":
            p.add_argument("-o", "--output", required=True, type=Path)
    return parser.parse_args(argv)


async def run_command(args: argparse.Namespace, client: HealthcareClient) -> object | None:
    """Dispatch one subcommand; returns what should be printed, or None."""
    c = args.command
    if c == "projects":
        return await client.fetch_projects(args.search)
    if c == "locations":
        return await client.fetch_locations(args.project)
    if c == "datasets":
        return await client.fetch_datasets(args.project, args.location)
    if c == "stores":
        return await client.fetch_dicom_stores(args.project, args.location, args.dataset)
    if c == "studies":
        return await client.fetch_studies(args.project, args.location, args.dataset, args.store)
    if c == "series":
        return await client.fetch_series(
            args.project, args.location, args.dataset, args.store, args.study
        )
    if c == "instances":
        return await client.fetch_instances(
            args.project, args.location, args.dataset, args.store, args.study, args.series
        )
    # download
    url = client.dicom_instance_url(
        args.project,
        args.location,
        args.dataset,
        args.store,
        args.study,
        args.series,
        args.instance,
    )
    data = await client.fetch_dicom_file(url)
    if data is None:
        return None
    args.output.write_bytes(data)
    return {"path": str(args.output), "bytes": len(data)}


def make_auth(token: str | None) -> AuthProvider:
    return StaticTokenAuth(token) if token else GoogleAuth()


async def run(
    args: argparse.Namespace,
    *,
    settings: Settings | None = None,
    client: HealthcareClient | None = None,
) -> int:
    """Run the parsed command and return the process exit code."""
    if client is None:
        settings = settings or get_settings()
        auth = make_auth(args.token or settings.access_token)
        client = HealthcareClient.from_settings(settings, auth)

    async with client:
        try:
            result = await run_command(args, client)
        except ApiError as e:
            logger.error(
                "cli.api_error",
                extra={"event": "api_error", "status_code": e.status_code, "url": e.url},
            )
            print(str(e), file=sys.stderr)
            return EXIT_API_ERROR

    if result is None:
        print("sign-in required; no result", file=sys.stderr)
        return EXIT_SIGN_IN
    print(json.dumps(result, indent=2))
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        settings = get_settings()
    except ValueError as e:
        setup_logging()
        logger.error("cli.bad_config", extra={"event": "bad_config", "error": str(e)})
        print(str(e), file=sys.stderr)
        raise SystemExit(EXIT_CONFIG)
    setup_logging(settings.log_level)
    raise SystemExit(asyncio.run(run(args, settings=settings)))


if __name__ == "__main__":
    main()
