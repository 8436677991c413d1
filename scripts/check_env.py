"""Utility for verifying that the service's environment configuration is intact.

The tool performs two main checks:

1. It loads ``AppSettings`` from the provided ``.env`` file and reports which
   integrations (Zettle token exchange, Zettle webhook signatures, PayPal
   webhook verification) are missing credentials.
2. It can record and verify a checksum for the ``.env`` file so unexpected
   edits are detected before the service is restarted.

Example usages::

    # Report unconfigured integrations; fail if any are missing.
    python -m scripts.check_env check --env-file /srv/salesboard/.env --strict

    # Record a baseline, then alert on drift later (e.g. from cron).
    python -m scripts.check_env record --env-file .env --hash-file .env.sha256
    python -m scripts.check_env verify --env-file .env --hash-file .env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from salesboard.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5

_FEATURE_REQUIREMENTS: dict[str, tuple[tuple[str, str, str], ...]] = {
    "purchases-count (Zettle token exchange)": (
        ("zettle", "client_id", "ZETTLE_CLIENT_ID"),
        ("zettle", "api_key", "ZETTLE_API_KEY"),
    ),
    "Zettle webhook signatures": (("zettle", "signing_key", "ZETTLE_SIGNING_KEY"),),
    "PayPal webhook verification": (
        ("paypal", "client_id", "PAYPAL_CLIENT_ID"),
        ("paypal", "client_secret", "PAYPAL_CLIENT_SECRET"),
        ("paypal", "webhook_id", "PAYPAL_WEBHOOK_ID"),
    ),
}


def _compute_hash(env_file: Path) -> str:
    """Return the SHA256 checksum for the target environment file."""
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    """Load settings from the supplied env file."""
    _load_env_file(str(env_file))
    return AppSettings(_env_file=env_file)


def missing_variables(settings: AppSettings) -> dict[str, list[str]]:
    """Map each integration to the environment variables it still needs."""
    report: dict[str, list[str]] = {}
    for feature, requirements in _FEATURE_REQUIREMENTS.items():
        missing = [
            env_name
            for section, attribute, env_name in requirements
            if not getattr(getattr(settings, section), attribute)
        ]
        if missing:
            report[feature] = missing
    return report


def _check(settings: AppSettings, strict: bool) -> int:
    report = missing_variables(settings)
    if not report:
        print("All integrations configured.")
        return EXIT_OK

    for feature, names in report.items():
        print(f"{feature}: missing {', '.join(names)}", file=sys.stderr)
    return EXIT_VALIDATION_ERROR if strict else EXIT_OK


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    """Persist the current checksum to ``hash_file``."""
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    """Compare the current checksum to the recorded baseline."""
    if not hash_file.exists():
        print(
            f"Expected checksum file {hash_file} is missing. "
            "Re-run with the 'record' command to establish a baseline.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report unconfigured integrations and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common_arguments(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    for name, help_text in (
        ("record", "Validate settings and store the checksum baseline."),
        ("verify", "Validate settings and compare the checksum with the baseline."),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        add_common_arguments(subparser)
        subparser.add_argument(
            "--hash-file",
            required=True,
            type=Path,
            help="Location of the checksum baseline.",
        )

    check_parser = subparsers.add_parser(
        "check",
        help="Validate settings and list integrations missing credentials.",
    )
    add_common_arguments(check_parser)
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with an error when any integration is unconfigured.",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file
    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    command: str = args.command
    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: _check(settings, args.strict),
    }
    return handlers[command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
