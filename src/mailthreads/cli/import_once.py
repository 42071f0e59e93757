"""One-shot import: fetch a batch, rebuild threads, store everything."""

from __future__ import annotations

import argparse
import asyncio
import sqlite3

import psycopg
from loguru import logger

from mailthreads.domain.errors import EmailImportError, MessageSourceError, MessagesAlreadyImported
from mailthreads.infrastructure import (
    create_import_use_case,
    create_message_source,
    create_store_client,
    get_settings,
)
from mailthreads.infrastructure.log_config import configure_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_THREADING = 2
EXIT_SOURCE = 3
EXIT_ALREADY_IMPORTED = 4

STORE_ERRORS = (sqlite3.Error, psycopg.Error)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import emails and reconstruct their threads")
    parser.add_argument("--source", choices=["imap", "mbox"], default="mbox", help="Message source (default: mbox)")
    parser.add_argument("--mbox", default=None, help="Mbox file to read (default: MAILTHREADS_MBOX_PATH)")
    parser.add_argument(
        "--ordering",
        choices=["strict", "topological"],
        default=None,
        help="Reply ordering policy (default: MAILTHREADS_REPLY_ORDERING)",
    )
    parser.add_argument("--reset", action="store_true", help="Delete previously imported data first")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        source = create_message_source(settings, args.source, args.mbox)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FAILED

    try:
        store = create_store_client(settings)
    except STORE_ERRORS as e:
        logger.error(f"Store unavailable: {e}")
        return EXIT_FAILED

    try:
        if args.reset:
            store.reset()

        use_case = create_import_use_case(store, source, args.ordering or settings.reply_ordering)
        report = asyncio.run(use_case.run())
    except MessagesAlreadyImported as e:
        logger.error(f"Import refused ({e.kind}): {e}")
        return EXIT_ALREADY_IMPORTED
    except MessageSourceError as e:
        logger.error(f"Import aborted ({e.kind}): {e}")
        return EXIT_SOURCE
    except EmailImportError as e:
        logger.error(f"Import aborted ({e.kind}): {e}")
        return EXIT_THREADING
    except STORE_ERRORS as e:
        logger.error(f"Import aborted, store failed: {e}")
        return EXIT_FAILED
    finally:
        store.disconnect()

    print(
        f"Imported {report.imported}/{report.fetched} messages into "
        f"{report.threads_created} threads ({report.unknown_senders} from unknown senders)"
    )
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
