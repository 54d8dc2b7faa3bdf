from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Sequence

from storefront_sdk import ApiSession, load_config
from storefront_sdk.config import ConfigError
from storefront_sdk.exceptions import ApiError

from .config import load_admin_config
from .listing.sorting import SortDirection, SortState
from .listing.table import format_table
from .listing.view_state import ListStatus
from .logger import configure_logging
from .pages import ENTITY_NAMES, build_list_page


class CommandFailed(Exception):
    def __init__(self, payload: dict[str, Any]) -> None:
        super().__init__(payload.get("message"))
        self.payload = payload


def parse_filters(pairs: Sequence[str]) -> dict[str, Any]:
    """``key=value`` pairs; a comma-separated value becomes a list."""
    filters: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Invalid filter {pair!r}; expected key=value")
        value = value.strip()
        filters[key.strip()] = [part.strip() for part in value.split(",") if part.strip()] if "," in value else value
    return filters


def _open_session(args: argparse.Namespace) -> ApiSession:
    session = ApiSession(load_config(args.env_file))
    session.start()
    return session


async def cmd_login(args: argparse.Namespace) -> None:
    session = ApiSession(load_config(args.env_file))
    try:
        user = await session.login(args.email, args.password)
    finally:
        await session.aclose()
    print(json.dumps({"user": user.model_dump() if user else None, "trace_id": session.trace.last_trace_id}, indent=2))


async def cmd_logout(args: argparse.Namespace) -> None:
    session = _open_session(args)
    await session.logout()
    print(json.dumps({"logged_out": True}, indent=2))


async def cmd_list(args: argparse.Namespace) -> None:
    admin_config = load_admin_config(args.env_file)
    configure_logging(admin_config.log_level)
    session = _open_session(args)
    initial_sort = None
    if args.sort:
        initial_sort = SortState(args.sort, SortDirection.DESC if args.desc else SortDirection.ASC)
    page = build_list_page(args.entity, session.service(args.entity), config=admin_config, initial_sort=initial_sort)
    try:
        filters = parse_filters(args.filter)
        if args.search:
            filters["search"] = args.search
        if filters:
            page.filters.set_filters(filters)
        if args.page > 1:
            await page.controller.goto_page(args.page)
        else:
            await page.open()
        controller = page.controller
        if controller.status is ListStatus.ERROR:
            error = controller.error
            raise CommandFailed(
                {
                    "error": error.category if error else "unexpected",
                    "message": error.message if error else "Could not load records",
                    "trace_id": error.trace_id if error else None,
                }
            )
        print(format_table(page.view(), title=page.definition.title))
        pagination = controller.pagination
        pages = pagination.total_pages
        print(f"\npage {pagination.page}{f' of {pages}' if pages else ''} (total {pagination.total if pagination.total is not None else '?'})")
    finally:
        page.close()
        await session.aclose()


async def cmd_export(args: argparse.Namespace) -> None:
    admin_config = load_admin_config(args.env_file)
    configure_logging(admin_config.log_level)
    session = _open_session(args)
    page = build_list_page(args.entity, session.service(args.entity), config=admin_config)
    try:
        filters = parse_filters(args.filter)
        if filters:
            page.filters.set_filters(filters)
        result = await page.controller.export(args.format)
        if not result.ok:
            error = result.error
            raise CommandFailed(
                {
                    "error": error.category if error else "unexpected",
                    "message": error.message if error else "Export failed",
                    "trace_id": error.trace_id if error else None,
                }
            )
        print(json.dumps({"path": str(result.path), "bytes": result.size}, indent=2))
    finally:
        page.close()
        await session.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront-admin", description="Storefront admin list tools")
    parser.add_argument("--env-file", default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login")
    login_parser.add_argument("--email", required=True)
    login_parser.add_argument("--password", required=True)
    login_parser.set_defaults(func=cmd_login)

    logout_parser = subparsers.add_parser("logout")
    logout_parser.set_defaults(func=cmd_logout)

    list_parser = subparsers.add_parser("list")
    list_parser.add_argument("entity", choices=ENTITY_NAMES)
    list_parser.add_argument("--filter", action="append", default=[], metavar="KEY=VALUE")
    list_parser.add_argument("--search", default=None)
    list_parser.add_argument("--sort", default=None)
    list_parser.add_argument("--desc", action="store_true")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.set_defaults(func=cmd_list)

    export_parser = subparsers.add_parser("export")
    export_parser.add_argument("entity", choices=ENTITY_NAMES)
    export_parser.add_argument("--filter", action="append", default=[], metavar="KEY=VALUE")
    export_parser.add_argument("--format", default="csv", choices=("csv", "json"))
    export_parser.set_defaults(func=cmd_export)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        asyncio.run(args.func(args))
    except ApiError as exc:
        print(json.dumps({"error": exc.code, "message": exc.message, "trace_id": exc.trace_id}, indent=2))
        raise SystemExit(1) from exc
    except CommandFailed as exc:
        print(json.dumps(exc.payload, indent=2))
        raise SystemExit(1) from exc
    except (ConfigError, argparse.ArgumentTypeError) as exc:
        print(json.dumps({"error": "CONFIG_ERROR", "message": str(exc)}, indent=2))
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
