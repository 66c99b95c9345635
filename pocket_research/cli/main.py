"""Command-line entry point for pocket-research.

Usage:
    pocket-research [--db PATH] [--debug] init DIR
    pocket-research fetch [--limit N]
    pocket-research list [--tag a,b] [--limit N] [--favorite-only] [--timezone TZ]
    pocket-research pocket auth --key KEY
    pocket-research pocket fetch|add|favorite ...
    pocket-research local add|list|favorite ...
    pocket-research notes URI TEXT
    pocket-research export --raindrop [--output FILE]
    pocket-research handle research://save?url=...
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pocket_research import __version__
from pocket_research.adapters.pocket.provider import PocketProvider
from pocket_research.adapters.registry import build_provider
from pocket_research.config import load_config
from pocket_research.core.logging_utils import generate_correlation_id, setup_json_logging
from pocket_research.domain.exceptions.domain_exceptions import ResearchError
from pocket_research.domain.models.item import ProviderName
from pocket_research.domain.models.secrets import Secrets
from pocket_research.export.csv_export import DEFAULT_EXPORT_FILE, export_raindrop_csv
from pocket_research.handler.url_handler import handle_url
from pocket_research.infrastructure.persistence.sqlite.repositories.item_store import (
    SqliteItemStore,
    open_item_store,
)
from pocket_research.sync.service import SyncService

if TYPE_CHECKING:
    from datetime import tzinfo

    from pocket_research.config.settings import AppConfig
    from pocket_research.domain.models.item import CanonicalItem, Tag
    from pocket_research.sync.models import SyncResult

logger = logging.getLogger(__name__)

DB_FILE_NAME = "research.sqlite"
MAX_LISTED_ERRORS = 10


def _split_tags(values: list[str] | None) -> list[str]:
    """``--tag a,b --tag c`` -> ``["a", "b", "c"]``."""
    tags: list[str] = []
    for value in values or []:
        tags.extend(part.strip() for part in value.split(",") if part.strip())
    return tags


def _add_item_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("uri", help="URL of the item")
    parser.add_argument("--tag", action="append", help="Comma-separated tags (repeatable)")
    parser.add_argument("--title", default=None, help="Title (default: page <title>)")
    parser.add_argument("--excerpt", default=None, help="Excerpt (default: meta description)")


def _add_credential_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--key", default=None, help="Pocket consumer key if none is stored")
    parser.add_argument("--access", default=None, help="Pocket access token if none is stored")


def _add_favorite_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("uri", help="URL of a stored item")
    parser.add_argument(
        "--unmark", action="store_true", help="Remove the favorite flag instead of setting it"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pocket-research",
        description="Collect research links from Pocket and local saves into SQLite",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--db", default=None, help="Database file (default: DB_PATH)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init", help="Create a new database in DIR")
    init.add_argument("path", help="Directory for research.sqlite")

    fetch = commands.add_parser("fetch", help="Fetch from every authenticated provider")
    fetch.add_argument("--limit", type=int, default=None, help="Maximum items to fetch")

    listing = commands.add_parser("list", help="List stored items, newest first")
    listing.add_argument("--tag", action="append", help="Only items with any of these tags")
    listing.add_argument("--limit", type=int, default=None)
    listing.add_argument("--favorite-only", action="store_true")
    listing.add_argument("--timezone", default=None, help="IANA zone for dates (e.g. Europe/Paris)")

    pocket = commands.add_parser("pocket", help="Pocket provider commands")
    pocket_cmds = pocket.add_subparsers(dest="pocket_command", required=True)
    auth = pocket_cmds.add_parser("auth", help="Authorize this app with Pocket")
    auth.add_argument("--key", required=True, help="Pocket consumer key")
    pocket_fetch = pocket_cmds.add_parser("fetch", help="Fetch items from Pocket")
    _add_credential_arguments(pocket_fetch)
    pocket_fetch.add_argument("--limit", type=int, default=None)
    pocket_add = pocket_cmds.add_parser("add", help="Save a URL to Pocket and locally")
    _add_item_arguments(pocket_add)
    _add_credential_arguments(pocket_add)
    pocket_fav = pocket_cmds.add_parser("favorite", help="Favorite an item on Pocket and locally")
    _add_favorite_arguments(pocket_fav)
    _add_credential_arguments(pocket_fav)

    local = commands.add_parser("local", help="Local provider commands")
    local_cmds = local.add_subparsers(dest="local_command", required=True)
    _add_item_arguments(local_cmds.add_parser("add", help="Save a URL locally"))
    local_cmds.add_parser("list", help="List locally saved items")
    _add_favorite_arguments(local_cmds.add_parser("favorite", help="Favorite a local item"))

    notes = commands.add_parser("notes", help="Set the notes of a stored item")
    notes.add_argument("uri")
    notes.add_argument("text", help="New notes; an empty string clears them")

    export = commands.add_parser("export", help="Export stored items")
    export.add_argument("--raindrop", action="store_true", help="Raindrop.io CSV format")
    export.add_argument("--output", default=DEFAULT_EXPORT_FILE)

    handle = commands.add_parser("handle", help="Handle a research:// link")
    handle.add_argument("url")
    return parser


def _resolve_timezone(name: str | None, config: AppConfig) -> tzinfo | None:
    if name is None:
        return config.runtime.zoneinfo()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ResearchError(f"Unknown timezone '{name}'") from exc


def _print_items(rows: list[tuple[CanonicalItem, list[Tag]]], tz: tzinfo | None) -> None:
    print(f"Displaying {len(rows)} items:")
    for item, tags in rows:
        print("Research Item")
        print("-------------")
        if item.id is not None:
            print(f"ID: {item.id}")
        print(item.to_display(tags, tz))
        print()


def _print_sync_result(result: SyncResult) -> None:
    print(result.summary_line())
    print(f"Duration: {result.duration_seconds:.1f}s")
    if result.errors:
        print(f"Skipped ({len(result.errors)}):")
        for err in result.errors[:MAX_LISTED_ERRORS]:
            print(f"  - {err}")
        if len(result.errors) > MAX_LISTED_ERRORS:
            print(f"  ... and {len(result.errors) - MAX_LISTED_ERRORS} more")


class CommandRunner:
    """Execute one parsed command against the configured database."""

    def __init__(self, args: argparse.Namespace, config: AppConfig, correlation_id: str) -> None:
        self.args = args
        self.config = config
        self.cid = correlation_id

    def _store(self) -> SqliteItemStore:
        runtime = self.config.runtime
        return open_item_store(
            runtime.db_path,
            operation_timeout=runtime.db_operation_timeout,
            max_retries=runtime.db_max_retries,
        )

    async def _provider(
        self, store: SqliteItemStore, name: ProviderName, **provider_options: Any
    ) -> Any:
        secrets = await store.async_get_secrets()
        secrets = secrets.with_fallbacks(
            getattr(self.args, "key", None), getattr(self.args, "access", None)
        )
        return build_provider(
            name,
            pocket_config=self.config.pocket,
            secrets=secrets,
            correlation_id=self.cid,
            **provider_options,
        )

    async def run(self) -> int:
        command = self.args.command
        if command == "init":
            return self.init()
        if command == "fetch":
            return await self.fetch(self.args.limit)
        if command == "list":
            return await self.list_items()
        if command == "pocket":
            return await self.pocket()
        if command == "local":
            return await self.local()
        if command == "notes":
            return await self.notes()
        if command == "export":
            return await self.export()
        if command == "handle":
            item = await handle_url(self.args.url, self.config, correlation_id=self.cid)
            print(f"Saved: {item.title} ({item.uri})")
            return 0
        raise ResearchError(f"Unknown command '{command}'")

    def init(self) -> int:
        directory = Path(self.args.path)
        directory.mkdir(parents=True, exist_ok=True)
        db_path = directory / DB_FILE_NAME
        print(f"Creating new database: {db_path}", file=sys.stderr)
        open_item_store(str(db_path), create=True)
        print("Database created and migrated successfully!", file=sys.stderr)
        return 0

    async def fetch(self, limit: int | None) -> int:
        store = self._store()
        provider = await self._provider(store, ProviderName.POCKET)
        service = SyncService(store, correlation_id=self.cid)
        result = await service.sync_provider(provider, limit=limit)
        _print_sync_result(result)
        if result.fetch_aborted:
            print(
                "Fetch stopped after repeated Pocket errors; run it again later.", file=sys.stderr
            )
            return 1
        return 0

    async def list_items(self) -> int:
        tz = _resolve_timezone(self.args.timezone, self.config)
        tags = _split_tags(self.args.tag)
        store = self._store()
        rows = await store.async_list_items(
            tags=tags or None, favorite_only=self.args.favorite_only
        )
        if tags:
            print(f"Tags: {tags}")
        print(f"Total items: {len(rows)}")
        if self.args.limit is not None:
            rows = rows[: self.args.limit]
        _print_items(rows, tz)
        return 0

    async def pocket(self) -> int:
        sub = self.args.pocket_command
        store = self._store()
        if sub == "auth":
            provider = PocketProvider(
                self.config.pocket,
                Secrets(pocket_consumer_key=self.args.key),
                correlation_id=self.cid,
            )
            secrets = await provider.authenticate()
            await store.async_set_secrets(secrets)
            print(
                "Success: Access token saved to the database! "
                "You can now run `pocket fetch` to fetch items from Pocket."
            )
            return 0
        if sub == "fetch":
            return await self.fetch(self.args.limit)

        provider = await self._provider(store, ProviderName.POCKET)
        service = SyncService(store, correlation_id=self.cid)
        if sub == "add":
            item = await service.add_item(
                provider,
                self.args.uri,
                _split_tags(self.args.tag),
                title=self.args.title,
                excerpt=self.args.excerpt,
            )
            print(f"Saved to Pocket: {item.title} (id {item.id})")
            return 0
        if sub == "favorite":
            mark = not self.args.unmark
            await service.mark_favorite(provider, self.args.uri, mark)
            print(f"Item marked as favorite: {str(mark).lower()}")
            return 0
        raise ResearchError(f"Unknown pocket command '{sub}'")

    async def local(self) -> int:
        sub = self.args.local_command
        store = self._store()
        if sub == "list":
            items = await store.async_items_by_provider(ProviderName.LOCAL.value)
            print(f"Items: {len(items)}")
            for item in items:
                print(f"[{item.id}] {item.title} - {item.uri}")
            return 0

        provider = await self._provider(store, ProviderName.LOCAL)
        service = SyncService(store, correlation_id=self.cid)
        if sub == "add":
            item = await service.add_item(
                provider,
                self.args.uri,
                _split_tags(self.args.tag),
                title=self.args.title,
                excerpt=self.args.excerpt,
            )
            print(f"Inserted document successfully! (id {item.id})")
            return 0
        if sub == "favorite":
            mark = not self.args.unmark
            await service.mark_favorite(provider, self.args.uri, mark)
            print(f"Item marked as favorite: {str(mark).lower()}")
            return 0
        raise ResearchError(f"Unknown local command '{sub}'")

    async def notes(self) -> int:
        service = SyncService(self._store(), correlation_id=self.cid)
        item = await service.update_notes(self.args.uri, self.args.text)
        print(f"Notes updated for item {item.id}")
        return 0

    async def export(self) -> int:
        if not self.args.raindrop:
            print("Choose an export format, e.g. --raindrop", file=sys.stderr)
            return 1
        rows = await self._store().async_list_items()
        count = export_raindrop_csv(rows, self.args.output)
        print(f"Exported {count} items to {self.args.output}")
        return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.db:
        overrides["db_path"] = args.db
    if args.debug:
        overrides["log_level"] = "DEBUG"
    try:
        config = load_config(runtime=overrides) if overrides else load_config()
    except RuntimeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    setup_json_logging(config.runtime.log_level, json_logs=config.runtime.log_json)
    correlation_id = generate_correlation_id()
    logger.debug("command_started", extra={"cid": correlation_id, "command": args.command})

    try:
        return asyncio.run(CommandRunner(args, config, correlation_id).run())
    except ResearchError as exc:
        logger.debug("command_failed", extra={"cid": correlation_id, "error": exc.message})
        print(f"ERROR: {exc.message}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.exception("command_crashed", extra={"cid": correlation_id})
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
