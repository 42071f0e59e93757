"""Manage the user records senders are matched against."""

from __future__ import annotations

import argparse

from mailthreads.infrastructure import create_store_client, get_settings
from mailthreads.infrastructure.log_config import configure_logging


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage known users")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add a user")
    add.add_argument("email")
    add.add_argument("--name", default=None)

    sub.add_parser("list", help="List users")

    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    store = create_store_client(settings)
    try:
        if args.command == "add":
            user = store.add_user(args.email, args.name)
            print(f"{user.id}\t{user.email}\t{user.name or ''}")
        else:
            for user in store.list_users():
                print(f"{user.id}\t{user.email}\t{user.name or ''}")
    finally:
        store.disconnect()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
