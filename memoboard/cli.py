"""
memoboard CLI - manage memos from the terminal.

Usage:
    memoboard list [--category C] [--search Q] [--json]
    memoboard show ID [--json]
    memoboard add TITLE CONTENT [--category C] [--tag T]...
    memoboard edit ID [--title T] [--content C] [--category C] [--tag T]...
    memoboard delete ID
    memoboard clear --yes
    memoboard stats [--json]
"""

import argparse
import asyncio
import json
import logging
import re
import sys

from .config import get_settings
from .database import close_supabase_client, create_supabase_client
from .errors import MemoError, MemoNotFoundError
from .store import MemoStore
from .types import ALL_CATEGORIES, CATEGORY_LABELS, Memo, MemoForm, category_label


def validate_input(value: str, field_name: str, max_length: int = 10000) -> str:
    """Validate and sanitize CLI inputs."""
    if len(value) > max_length:
        raise ValueError(f"{field_name} too long (max {max_length} characters)")

    # Remove null bytes and control characters except newlines and tabs
    sanitized = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', value)
    if not sanitized.strip():
        raise ValueError(f"{field_name} must not be empty")
    return sanitized


def memo_to_dict(memo: Memo) -> dict:
    return {
        "id": memo.id,
        "title": memo.title,
        "content": memo.content,
        "category": memo.category.value,
        "tags": memo.tags,
        "created_at": memo.created_at.isoformat(),
        "updated_at": memo.updated_at.isoformat(),
    }


def format_memo_line(memo: Memo) -> str:
    tags = f"  #{' #'.join(memo.tags)}" if memo.tags else ""
    stamp = memo.updated_at.strftime("%Y-%m-%d %H:%M")
    return f"{memo.id}  [{category_label(memo.category)}]  {memo.title}  ({stamp}){tags}"


def cmd_list(args, store: MemoStore):
    """Print memos matching the filters."""
    if args.search:
        store.set_search_query(args.search)
    if args.category:
        store.set_category_filter(args.category)

    memos = store.memos
    if args.json:
        print(json.dumps([memo_to_dict(m) for m in memos], indent=2))
        return

    if not memos:
        print("No memos.")
        return
    for memo in memos:
        print(format_memo_line(memo))
    stats = store.stats
    print(f"\n{stats.filtered} of {stats.total} memos")


def cmd_show(args, store: MemoStore):
    memo = store.get_by_id(args.id)
    if memo is None:
        raise MemoNotFoundError(args.id)

    if args.json:
        print(json.dumps(memo_to_dict(memo), indent=2))
        return

    print(memo.title)
    print("=" * len(memo.title))
    print(f"Category: {category_label(memo.category)}")
    if memo.tags:
        print(f"Tags: {', '.join(memo.tags)}")
    print(f"Created: {memo.created_at.isoformat()}")
    print(f"Updated: {memo.updated_at.isoformat()}")
    print()
    print(memo.content)


async def cmd_add(args, store: MemoStore):
    form = MemoForm(
        title=validate_input(args.title, "title", 500),
        content=validate_input(args.content, "content"),
        category=args.category,
        tags=[validate_input(t, "tag", 100) for t in (args.tag or [])],
    )
    memo = await store.create(form)
    print(f"✓ Memo saved: {memo.id}")


async def cmd_edit(args, store: MemoStore):
    existing = store.get_by_id(args.id)
    if existing is None:
        raise MemoNotFoundError(args.id)

    form = MemoForm(
        title=validate_input(args.title, "title", 500) if args.title else existing.title,
        content=validate_input(args.content, "content") if args.content else existing.content,
        category=args.category or existing.category,
        tags=[validate_input(t, "tag", 100) for t in args.tag] if args.tag else existing.tags,
    )
    memo = await store.update(args.id, form)
    print(f"✓ Memo updated: {memo.id}")


async def cmd_delete(args, store: MemoStore):
    await store.delete(args.id)
    print(f"✓ Memo deleted: {args.id}")


async def cmd_clear(args, store: MemoStore):
    if not args.yes:
        print("Refusing to delete every memo without --yes", file=sys.stderr)
        sys.exit(1)
    count = store.stats.total
    await store.clear_all()
    print(f"✓ Deleted {count} memos")


def cmd_stats(args, store: MemoStore):
    stats = store.stats
    if args.json:
        print(json.dumps({"total": stats.total, "by_category": stats.by_category}, indent=2))
        return

    print(f"Total: {stats.total}")
    for category, count in sorted(stats.by_category.items()):
        print(f"  {category}: {count}")


async def run(args) -> None:
    """Build a session store, run one command through it, then close it."""
    settings = get_settings()
    db = await create_supabase_client(settings)
    store = MemoStore(db)
    await store.initialize()
    try:
        if args.command == "list":
            cmd_list(args, store)
        elif args.command == "show":
            cmd_show(args, store)
        elif args.command == "add":
            await cmd_add(args, store)
        elif args.command == "edit":
            await cmd_edit(args, store)
        elif args.command == "delete":
            await cmd_delete(args, store)
        elif args.command == "clear":
            await cmd_clear(args, store)
        elif args.command == "stats":
            cmd_stats(args, store)
    finally:
        store.close()
        await close_supabase_client(db)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memoboard",
        description="Personal memo board backed by Supabase",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at INFO level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    categories = [c.value for c in CATEGORY_LABELS]

    # list
    p_list = subparsers.add_parser("list", help="List memos")
    p_list.add_argument("--category", "-c", help=f"Category filter ({ALL_CATEGORIES}, {', '.join(categories)})")
    p_list.add_argument("--search", "-s", help="Search title, content and tags")
    p_list.add_argument("--json", "-j", action="store_true")

    # show
    p_show = subparsers.add_parser("show", help="Show one memo")
    p_show.add_argument("id", help="Memo ID")
    p_show.add_argument("--json", "-j", action="store_true")

    # add
    p_add = subparsers.add_parser("add", help="Create a memo")
    p_add.add_argument("title", help="Memo title")
    p_add.add_argument("content", help="Memo body (markdown)")
    p_add.add_argument("--category", "-c", default="other", help=f"Category ({', '.join(categories)})")
    p_add.add_argument("--tag", "-t", action="append", help="Tag (repeatable)")

    # edit
    p_edit = subparsers.add_parser("edit", help="Update a memo")
    p_edit.add_argument("id", help="Memo ID")
    p_edit.add_argument("--title", help="New title")
    p_edit.add_argument("--content", help="New body")
    p_edit.add_argument("--category", "-c", help="New category")
    p_edit.add_argument("--tag", "-t", action="append", help="Replace tags (repeatable)")

    # delete
    p_delete = subparsers.add_parser("delete", help="Delete a memo")
    p_delete.add_argument("id", help="Memo ID")

    # clear
    p_clear = subparsers.add_parser("clear", help="Delete every memo")
    p_clear.add_argument("--yes", action="store_true", help="Confirm deleting everything")

    # stats
    p_stats = subparsers.add_parser("stats", help="Memo counts by category")
    p_stats.add_argument("--json", "-j", action="store_true")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        asyncio.run(run(args))
    except (MemoError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
