"""
main.py
-------
Entry point for the posts demo.

Responsibilities:
    - Build the one ConnectionManager for this process from config.py.
    - Run the requested action (ping, CRUD, transaction demos).
    - Optionally print the query log, then close the connection.

Examples:
    python main.py init-db
    python main.py insert --title "Hello" --content "First post"
    python main.py show 1
    python main.py --log tx-rollback
"""

import argparse
import json
import sys
from typing import Callable, Optional, Sequence

import config
from db.config import ConnectionConfig
from db.database import Database
from db.driver import get_driver
from db.errors import DatabaseConnectionError
from db.init_db import create_tables
from db.manager import ConnectionManager
from services.post_service import PostService
from utils.logger import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Command-line interface mirroring the page's actions."""
    parser = argparse.ArgumentParser(description="Posts database demo.")
    parser.add_argument("--log", action="store_true", help="print the query log after the action")
    actions = parser.add_subparsers(dest="action", required=True)

    actions.add_parser("ping", help="check the database connection")
    actions.add_parser("init-db", help="create tbl_posts if missing")
    actions.add_parser("list", help="show the most recent posts")

    insert = actions.add_parser("insert", help="insert a new post")
    insert.add_argument("--title")
    insert.add_argument("--content")
    insert.add_argument("--image")
    insert.add_argument("--category", dest="posts_categories_id", type=int)
    insert.add_argument("--archive", dest="is_archive", type=int, choices=(0, 1))
    insert.add_argument("--status", type=int, choices=(0, 1))

    show = actions.add_parser("show", help="show one post")
    show.add_argument("post_id", type=int)

    update = actions.add_parser("update", help="update a post's title and content")
    update.add_argument("post_id", type=int)
    update.add_argument("--title")
    update.add_argument("--content")

    delete = actions.add_parser("delete", help="delete a post")
    delete.add_argument("post_id", type=int)

    actions.add_parser("tx-commit", help="insert two posts in a committed transaction")
    actions.add_parser("tx-rollback", help="insert a post, fail, and roll back")
    return parser


def run_action(args: argparse.Namespace, db: Database, out: Callable[[str], None] = print) -> bool:
    """
    Dispatch one parsed action against the database.

    Returns:
        True if the action succeeded.
    """
    service = PostService(db)
    action = args.action

    if action == "init-db":
        create_tables(db)
        out("Table tbl_posts is ready.")
        return True

    if action == "ping":
        result = service.ping_database()
    elif action == "insert":
        result = service.insert_new_post({
            key: getattr(args, key)
            for key in ("title", "content", "image", "posts_categories_id", "is_archive", "status")
        })
    elif action == "list":
        result = service.select_all_posts()
    elif action == "show":
        result = service.select_single_post(args.post_id)
    elif action == "update":
        result = service.update_existing_post(args.post_id, {"title": args.title, "content": args.content})
    elif action == "delete":
        result = service.delete_existing_post(args.post_id)
    elif action == "tx-commit":
        result = service.run_successful_transaction()
    elif action == "tx-rollback":
        result = service.run_failed_transaction()
    else:
        out(f"Unknown action: {action}")
        return False

    out(result["message"])
    for post in result.get("posts", []):
        out(f"  {post}")
    if result.get("post"):
        out(f"  {result['post']}")
    if result.get("data"):
        out(f"  {result['data']}")
    return bool(result["success"])


def _print_log(service: PostService, out: Callable[[str], None]) -> None:
    entries = service.get_query_log_data()
    if not entries:
        out("Query log is empty.")
        return
    for entry in entries:
        out(json.dumps(entry, default=str))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run the action and close the connection."""
    args = build_parser().parse_args(argv)
    manager = ConnectionManager(get_driver(config.DB_DRIVER))
    try:
        db = manager.get_instance(ConnectionConfig.from_env())
    except DatabaseConnectionError as e:
        logger.error(f"Database connection failed: {e}")
        print("Database connection failed. Check the DB_* settings and that the server is running.")
        return 1

    try:
        ok = run_action(args, db)
        if args.log:
            _print_log(PostService(db), print)
    finally:
        manager.close_connection()
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
