"""Command-line interface for the users service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from users_api.config import Settings, apply_environment, load_settings, resolve_config_path

logger = logging.getLogger("usersapi.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to the YAML settings file (default: USERS_API_CONFIG or config/settings.yaml)",
    )

    parser = argparse.ArgumentParser(description="Users service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve", config=None)

    serve_parser = subparsers.add_parser(
        "serve", parents=[common], help="Start the HTTP users service"
    )
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument("--port", type=int, default=None, help="Port for the HTTP API")
    serve_parser.add_argument(
        "--min-age",
        type=int,
        default=None,
        help="Override the minimum age, in whole years, required to create a user",
    )

    subparsers.add_parser(
        "show-config", parents=[common], help="Print the effective settings and exit"
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "show-config"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(config: str | None) -> Settings:
    config_path: Path = resolve_config_path(config or os.getenv("USERS_API_CONFIG"))
    settings = apply_environment(load_settings(config_path))
    logger.debug("Loaded settings from %s", config_path)
    return settings


def _apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if getattr(args, "host", None):
        overrides["host"] = args.host
    if getattr(args, "port", None) is not None:
        if args.port < 1 or args.port > 65535:
            raise SystemExit("--port must be between 1 and 65535.")
        overrides["port"] = args.port
    if getattr(args, "min_age", None) is not None:
        if args.min_age < 0:
            raise SystemExit("--min-age must not be negative.")
        overrides["min_user_age"] = args.min_age
    return replace(settings, **overrides) if overrides else settings


def _serve(settings: Settings) -> None:
    from users_api.api import create_app
    import uvicorn

    logger.info(
        "Starting users API on http://%s:%s (minimum age %s)",
        settings.host,
        settings.port,
        settings.min_user_age,
    )

    app = create_app(settings=settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def _show_config(settings: Settings) -> None:
    print(f"min_user_age: {settings.min_user_age}")
    print(f"log_level:    {settings.log_level}")
    print(f"host:         {settings.host}")
    print(f"port:         {settings.port}")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    try:
        settings = _apply_cli_overrides(_load_settings(args.config), args)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.command == "serve":
        _serve(settings)
    elif args.command == "show-config":
        _show_config(settings)


if __name__ == "__main__":
    main()
