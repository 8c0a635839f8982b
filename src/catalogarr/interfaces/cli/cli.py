from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TextIO

import structlog

from catalogarr.domain.entities.errors import (
    ConfigValidationError,
    EmptyResultError,
)
from catalogarr.infrastructure.config import load_config
from catalogarr.infrastructure.logging.setup import configure_logging
from catalogarr.infrastructure.persistence.config_store import config_to_dict
from catalogarr.interfaces.composition import Services, build_services

log = structlog.get_logger(__name__)


def _add_addon_hint(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--addon",
        default=None,
        help="Id of the addon the item was listed by (queried first).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalogarr")

    # Config wiring flags (no business logic)
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--dotenv", default=None, help="Path to .env file.")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    home = sub.add_parser("home", help="Aggregated home rows.")
    home.add_argument(
        "--wait",
        action="store_true",
        help="Wait for TMDB backdrop enhancement and print the final rows.",
    )

    search = sub.add_parser("search", help="Search every provider.")
    search.add_argument("query")

    meta = sub.add_parser("meta", help="Detail record for one item.")
    meta.add_argument("type", choices=["movie", "series"])
    meta.add_argument("id")
    _add_addon_hint(meta)

    seasons = sub.add_parser("seasons", help="Season numbers of a series.")
    seasons.add_argument("type", choices=["series"])
    seasons.add_argument("id")
    _add_addon_hint(seasons)

    episodes = sub.add_parser("episodes", help="Episodes of one season.")
    episodes.add_argument("type", choices=["series"])
    episodes.add_argument("id")
    episodes.add_argument("season", type=int)
    _add_addon_hint(episodes)

    streams = sub.add_parser("streams", help="Ranked playable streams.")
    streams.add_argument("type", choices=["movie", "series"])
    streams.add_argument("id")
    streams.add_argument("--season", type=int, default=None)
    streams.add_argument("--episode", type=int, default=None)

    addon = sub.add_parser("addon", help="Manage installed addons.")
    addon_sub = addon.add_subparsers(dest="addon_command", required=True)
    addon_sub.add_parser("install").add_argument("url")
    addon_sub.add_parser("remove").add_argument("url")
    toggle = addon_sub.add_parser("toggle")
    toggle.add_argument("url")
    toggle.add_argument("catalog", help="Catalog key, e.g. movie/top.")
    addon_sub.add_parser("list")

    tmdb = sub.add_parser("tmdb", help="TMDB metadata provider settings.")
    tmdb_sub = tmdb.add_subparsers(dest="tmdb_command", required=True)
    tmdb_sub.add_parser("key").add_argument("key")
    tmdb_sub.add_parser("clear")
    tmdb_sub.add_parser("enable")
    tmdb_sub.add_parser("disable")

    return parser


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {k: _to_jsonable(v) for k, v in dataclasses.asdict(value).items()}
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_to_jsonable(v) for v in value)
    return value


def _emit(payload: Any, out: TextIO) -> None:
    json.dump(_to_jsonable(payload), out, indent=2, ensure_ascii=False)
    out.write("\n")


async def _run(args: argparse.Namespace, services: Services) -> Any:
    command = args.command

    if command == "home":
        rows = await services.catalog.home_rows()
        if args.wait:
            await services.catalog.wait_background()
            rows = await services.catalog.home_rows()
        return rows
    if command == "search":
        return await services.catalog.search(args.query)
    if command == "meta":
        return await services.metadata.resolve(args.id, args.type, args.addon)
    if command == "seasons":
        result = await services.metadata.resolve(args.id, args.type, args.addon)
        seasons = result.record.seasons
        if not seasons and result.addon_base_url:
            seasons = await services.seasons.list_seasons(
                result.addon_base_url, result.record.id
            )
        return {"seasons": seasons or []}
    if command == "episodes":
        result = await services.metadata.resolve(args.id, args.type, args.addon)
        return await services.seasons.for_result(result, args.season)
    if command == "streams":
        return await services.streams.resolve(
            args.type, args.id, args.season, args.episode
        )
    if command == "addon":
        return await _run_addon(args, services)
    if command == "tmdb":
        return _run_tmdb(args, services)
    raise ValueError(f"Unknown command: {command}")


async def _run_addon(args: argparse.Namespace, services: Services) -> Any:
    manager = services.addons
    if args.addon_command == "install":
        addon = await manager.install(args.url)
        return {"installed": addon.id, "catalogs": [c.key for c in addon.catalogs]}
    if args.addon_command == "remove":
        manager.uninstall(args.url)
        return {"removed": args.url}
    if args.addon_command == "toggle":
        enabled = manager.toggle_catalog(args.url, args.catalog)
        return {"catalog": args.catalog, "enabled": enabled}
    config = config_to_dict(manager.list_addons())
    config["tmdb"]["api_key"] = bool(config["tmdb"]["api_key"])
    return config


def _run_tmdb(args: argparse.Namespace, services: Services) -> Any:
    manager = services.addons
    if args.tmdb_command == "key":
        manager.set_tmdb_key(args.key)
    elif args.tmdb_command == "clear":
        manager.set_tmdb_key(None)
    else:
        manager.set_tmdb_enabled(args.tmdb_command == "enable")
    provider = manager.list_addons().metadata_provider
    return {"has_key": provider.has_key, "enabled": provider.enabled}


async def _main(args: argparse.Namespace, config: Any) -> Any:
    async with build_services(config) as services:
        return await _run(args, services)


def start(argv: Iterable[str] | None = None, *, out: TextIO | None = None) -> int:
    """
    Process entrypoint.

    Loads config once, runs one command, prints JSON on stdout.
    Classified errors print ``{"error": ...}`` and return exit code 1.
    """
    if argv is None:
        argv = sys.argv[1:]
    out = out or sys.stdout

    args = _build_parser().parse_args(list(argv))

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    config = load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )
    # stdout carries the JSON result
    configure_logging(config, info_stream=sys.stderr)

    try:
        result = asyncio.run(_main(args, config))
    except (EmptyResultError, ConfigValidationError) as exc:
        log.info("command_failed", command=args.command, error=str(exc))
        _emit({"error": str(exc)}, out)
        return 1

    _emit(result, out)
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
