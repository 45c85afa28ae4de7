#!/usr/bin/env python3
"""
Create an account directly in the configured store.

Usage:
  python scripts/add_user.py --username alice [--password s3cret!]
"""
from __future__ import annotations

import argparse
import secrets
import sys
from pathlib import Path

# Make the trustbridge package importable when run from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trustbridge.core.config import get_settings  # noqa: E402
from trustbridge.core.security import PASSWORD_MIN_LEN, CredentialService  # noqa: E402
from trustbridge.domain.accounts import is_valid_username  # noqa: E402
from trustbridge.repositories import open_store  # noqa: E402


def gen_password(length: int = 12) -> str:
    return secrets.token_urlsafe(length)[:length]


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Create a TrustBridge account")
    ap.add_argument("--username", required=True, help="3-20 chars [A-Za-z0-9_]")
    ap.add_argument("--password", help=f"at least {PASSWORD_MIN_LEN} chars (default: random)")
    args = ap.parse_args(argv)

    username = (args.username or "").strip()
    if not is_valid_username(username):
        raise SystemExit("Invalid username (use 3-20 chars [A-Za-z0-9_])")
    password = args.password or gen_password()
    if len(password) < PASSWORD_MIN_LEN:
        raise SystemExit(f"Password must be at least {PASSWORD_MIN_LEN} characters")

    settings = get_settings()
    credentials = CredentialService(settings.password_pepper, settings.legacy_password_salt)
    store = open_store(settings)
    try:
        with store.locked():
            if store.find_by_username(username):
                raise SystemExit(f"Username '{username}' already exists")
            account = store.create(username, credentials.hash(password))
    finally:
        store.close()
    print("OK: account created")
    print(f"  ID: {account.id}")
    print(f"  Username: {account.username}")
    if not args.password:
        print(f"  Password: {password}")


if __name__ == "__main__":
    try:
        main()
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
