import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime
from typing import Any, Optional, Sequence

import aiohttp

from idreesia_admin.config import settings
from idreesia_admin.infrastructure.storage.persisted_state import StateStore
from idreesia_admin.services.backend.client import BackendClient, BackendRequestError
from idreesia_admin.services.backend.resources import DEFINITIONS, ResourceRegistry
from idreesia_admin.services.i18n.localization import get_text, resource_label
from idreesia_admin.services.listing.controller import entity_to_dict
from idreesia_admin.services.notifications.toasts import error_message

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return entity_to_dict(value)


def _print_json(value: Any) -> None:
    print(json.dumps(value, ensure_ascii=False, indent=2, default=_json_default))


def _parse_filters(pairs: Sequence[str]) -> dict[str, str]:
    filters: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"Filter must look like name=value, got {pair!r}")
        filters[name.strip()] = value.strip()
    return filters


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="idreesia-admin", description="Idreesia admin API client.")
    parser.add_argument("--api-url", default=None, help="Override the configured API base URL.")
    parser.add_argument("--token", default=None, help="Bearer token; defaults to the stored session.")
    sub = parser.add_subparsers(dest="command", required=True)

    resources = sorted(name.replace("_", "-") for name in DEFINITIONS)

    list_cmd = sub.add_parser("list", help="Fetch one page of a resource.")
    list_cmd.add_argument("resource", choices=resources)
    list_cmd.add_argument("--page", type=int, default=1)
    list_cmd.add_argument("--size", type=int, default=settings.default_page_size)
    list_cmd.add_argument("--search", default="")
    list_cmd.add_argument("--filter", action="append", default=[], metavar="NAME=VALUE")

    show_cmd = sub.add_parser("show", help="Fetch a single record.")
    show_cmd.add_argument("resource", choices=resources)
    show_cmd.add_argument("id")

    delete_cmd = sub.add_parser("delete", help="Delete a record.")
    delete_cmd.add_argument("resource", choices=resources)
    delete_cmd.add_argument("id")

    approve_cmd = sub.add_parser("approve", help="Approve a karkun join request.")
    approve_cmd.add_argument("id")
    approve_cmd.add_argument("--reject", action="store_true", help="Revoke approval instead.")

    return parser


async def _run(args: argparse.Namespace, client: BackendClient) -> Any:
    registry = ResourceRegistry(client)
    language = settings.default_language
    if args.command == "list":
        resource = registry.get(args.resource)
        page = await resource.list(args.page, args.size, args.search, **_parse_filters(args.filter))
        return {
            "data": page.data,
            "meta": {
                "total": page.meta.total,
                "current_page": page.meta.current_page,
                "per_page": page.meta.per_page,
                "last_page": page.meta.last_page,
            },
        }
    if args.command == "show":
        item = await registry.get(args.resource).get(args.id)
        if item is None:
            raise LookupError(f"{args.resource} {args.id} not found")
        return item
    if args.command == "delete":
        resource = registry.get(args.resource)
        deleted = await resource.delete(args.id)
        if not deleted:
            raise RuntimeError(get_text("error.delete", language, item=resource_label(resource.name, language)))
        return {"success": True}
    if args.command == "approve":
        return await registry.karkun_join_requests.approve(args.id, not args.reject)
    raise ValueError(f"Unknown command: {args.command}")


async def run(args: argparse.Namespace) -> int:
    store = StateStore(settings.state_path)
    token_provider = (lambda: args.token) if args.token else store.token_provider(settings.api_token)
    async with BackendClient(
        base_url=args.api_url or settings.api_url,
        token_provider=token_provider,
        request_timeout=settings.request_timeout,
    ) as client:
        try:
            result = await _run(args, client)
        except (BackendRequestError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.debug("Request failed", exc_info=True)
            print(error_message(exc, str(exc) or get_text("error.save", settings.default_language)), file=sys.stderr)
            return 1
        except (LookupError, RuntimeError, ValueError, argparse.ArgumentTypeError) as exc:
            print(str(exc), file=sys.stderr)
            return 1
    _print_json(result)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level, format=settings.log_format)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
