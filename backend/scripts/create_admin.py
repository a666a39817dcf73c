"""Provision an administrator account.

Admins cannot register over HTTP; run this from the backend directory:

    python -m scripts.create_admin alice --password 's3cret!'

Omit --password to be prompted.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Optional

from db import SessionLocal, init_db
from domain.errors import CatalogError
from services.auth import create_admin

LOG = logging.getLogger("create_admin")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a library administrator.")
    parser.add_argument("username", help="Admin username (unique across users and admins).")
    parser.add_argument("--password", help="Admin password. Prompted for when omitted.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    password = args.password or getpass.getpass("Password: ")

    init_db()
    with SessionLocal() as session:
        try:
            admin = create_admin(session, args.username, password)
        except CatalogError as e:
            LOG.error("could not create admin %s: %s", args.username, e.message)
            return 1
    print(f"Created admin {admin.username} (id={admin.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
