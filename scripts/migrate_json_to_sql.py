"""One-off migration script: legacy users.json -> SQL store."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Make the trustbridge package importable when run from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trustbridge.core.config import get_settings  # noqa: E402
from trustbridge.core.log import configure_logging  # noqa: E402
from trustbridge.domain.errors import DuplicateUsernameError  # noqa: E402
from trustbridge.repositories.json_storage import JSONAccountStore  # noqa: E402
from trustbridge.repositories.sql_repository import SQLAccountStore  # noqa: E402

logger = logging.getLogger("trustbridge.migrate")


def migrate(source: str, database_url: str) -> tuple[int, int]:
    """Copy every account from the JSON file; returns (imported, skipped)."""
    if not Path(source).exists():
        raise SystemExit(f"File not found: {source}")
    imported = skipped = 0
    legacy = JSONAccountStore(source)
    target = SQLAccountStore(database_url)
    try:
        for account in legacy.accounts():
            try:
                target.import_account(account)
            except DuplicateUsernameError:
                logger.warning("Skipping %s: username %r already present", account.id, account.username)
                skipped += 1
                continue
            imported += 1
    finally:
        legacy.close()
        target.close()
    return imported, skipped


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Import a legacy users.json into the SQL store")
    ap.add_argument("--source", default=settings.json_store_path, help="path to users.json")
    ap.add_argument("--database-url", default=settings.database_url, help="target SQLAlchemy URL")
    args = ap.parse_args(argv)
    configure_logging(settings.log_level)
    imported, skipped = migrate(args.source, args.database_url)
    print(f"Migrated {imported} account(s), skipped {skipped}.")


if __name__ == "__main__":
    main()
