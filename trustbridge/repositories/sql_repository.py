"""Account store backed by SQLAlchemy."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from trustbridge.db.models import Transaction, User
from trustbridge.db.session import Base, build_engine, build_sessionmaker
from trustbridge.domain.accounts import Account, Record, fold_username, new_account_id, now_ms
from trustbridge.domain.errors import DuplicateUsernameError, StorageUnavailableError, UnauthenticatedError

logger = logging.getLogger(__name__)


class SQLAccountStore:
    """CRUD helpers wrapping the SQLAlchemy session, serialized by one lock."""

    backend = "sql"

    def __init__(self, url: str, *, create_tables: bool = True) -> None:
        self._lock = threading.RLock()
        try:
            self._engine = build_engine(url)
            if create_tables:
                Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as exc:
            logger.exception("Could not open SQL store")
            raise StorageUnavailableError() from exc
        self._sessionmaker = build_sessionmaker(self._engine)

    # -------------------------- plumbing --------------------------
    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session: Session = self._sessionmaker()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("SQL store operation failed")
            raise StorageUnavailableError() from exc
        finally:
            session.close()

    @staticmethod
    def _to_domain(row: User) -> Account:
        return Account(
            id=row.id,
            username=row.username,
            credential_hash=row.password_hash,
            session_token=row.token,
            created_at=int(row.created_at),
            records={
                tx.tx_id: Record(key=tx.tx_id, payload=dict(tx.data or {}), updated_at=int(tx.updated_at))
                for tx in row.transactions
            },
        )

    # -------------------------- lookups --------------------------
    def find_by_username(self, username: str) -> Optional[Account]:
        key = fold_username(username)
        if not key:
            return None
        with self._lock, self._session() as session:
            row = session.execute(select(User).where(User.username_key == key)).scalar_one_or_none()
            return self._to_domain(row) if row else None

    def find_by_token(self, token: Optional[str]) -> Optional[Account]:
        if not token:
            return None
        with self._lock, self._session() as session:
            row = session.execute(select(User).where(User.token == token)).scalar_one_or_none()
            return self._to_domain(row) if row else None

    def accounts(self) -> list[Account]:
        with self._lock, self._session() as session:
            stmt = select(User).options(selectinload(User.transactions)).order_by(User.created_at, User.id)
            return [self._to_domain(row) for row in session.execute(stmt).scalars().all()]

    def ping(self) -> bool:
        try:
            with self._session() as session:
                session.execute(text("SELECT 1"))
            return True
        except StorageUnavailableError:
            return False

    # -------------------------- writes --------------------------
    def create(self, username: str, credential_hash: str, *, session_token: Optional[str] = None) -> Account:
        key = fold_username(username)
        with self._lock, self._session() as session:
            taken = session.execute(select(User.id).where(User.username_key == key)).first()
            if taken:
                raise DuplicateUsernameError()
            row = User(
                id=new_account_id(),
                username=username,
                username_key=key,
                password_hash=credential_hash,
                token=session_token,
                created_at=now_ms(),
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateUsernameError() from exc
            return Account(
                id=row.id,
                username=row.username,
                credential_hash=row.password_hash,
                session_token=row.token,
                created_at=row.created_at,
            )

    def update(self, account: Account) -> None:
        """Persist hash and records. The token column is owned by set_session_token."""
        with self._lock, self._session() as session:
            row = session.get(User, account.id)
            if row is None:
                raise UnauthenticatedError("User not found.")
            row.username = account.username
            row.username_key = account.username_key
            row.password_hash = account.credential_hash
            existing = {tx.tx_id: tx for tx in row.transactions}
            for key, record in account.records.items():
                entity = existing.get(key)
                if entity is None:
                    row.transactions.append(
                        Transaction(tx_id=key, data=dict(record.payload), updated_at=record.updated_at)
                    )
                elif entity.data != record.payload or entity.updated_at != record.updated_at:
                    entity.data = dict(record.payload)
                    entity.updated_at = record.updated_at
            session.commit()

    def set_session_token(self, account_id: str, token: Optional[str]) -> None:
        with self._lock, self._session() as session:
            row = session.get(User, account_id)
            if row is None:
                raise UnauthenticatedError("User not found.")
            row.token = token
            session.commit()

    def import_account(self, account: Account) -> None:
        """Insert an account keeping its id, hash, token and records (migrations)."""
        with self._lock, self._session() as session:
            taken = session.execute(select(User.id).where(User.username_key == account.username_key)).first()
            if taken:
                raise DuplicateUsernameError()
            row = User(
                id=account.id,
                username=account.username,
                username_key=account.username_key,
                password_hash=account.credential_hash,
                token=account.session_token,
                created_at=account.created_at,
                transactions=[
                    Transaction(tx_id=record.key, data=dict(record.payload), updated_at=record.updated_at)
                    for record in account.records.values()
                ],
            )
            session.add(row)
            session.commit()

    def close(self) -> None:
        self._engine.dispose()
