#!/usr/bin/env python3

import argparse
import os

from ohmage_runkeeper import db as db_module
from ohmage_runkeeper.services.runkeeper import DOMAIN_ID


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Link or unlink an ohmage user's RunKeeper bearer token."
    )
    parser.add_argument("owner", help="ohmage username that owns the token.")
    parser.add_argument(
        "--unlink", action="store_true", help="Remove the stored token instead."
    )
    parser.add_argument(
        "--db-path",
        help="Credential database. Defaults to DATABASE_PATH.",
    )
    return parser.parse_args(argv)


def bearer_key(owner: str) -> str:
    return f"bearer_{owner}"


def main(argv=None) -> int:
    args = parse_args(argv)
    db_module.init_db(args.db_path)

    conn = db_module.get_db(args.db_path)
    try:
        if args.unlink:
            removed = db_module.delete_credential(conn, DOMAIN_ID, bearer_key(args.owner))
            print(f"{'Unlinked' if removed else 'No RunKeeper link for'} {args.owner}")
            return 0

        token = os.getenv("RUNKEEPER_BEARER_TOKEN", "").strip()
        if not token:
            print("RUNKEEPER_BEARER_TOKEN is required.")
            return 1
        db_module.set_credential(conn, DOMAIN_ID, bearer_key(args.owner), token)
        print(f"Linked RunKeeper for {args.owner}")
        return 0
    finally:
        conn.close()


if __name__ == "__main__":
    raise SystemExit(main())
