"""Persistent key-value storage for client preferences and watch state."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from sqlalchemy import MetaData, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Declarative base with consistent naming conventions."""

    metadata = MetaData()


class StorageError(RuntimeError):
    """Raised when the persistent store cannot be read or written."""


class KeyValueStore(Protocol):
    """Synchronous string key-value store, the analogue of browser storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store used for ephemeral sessions and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)


class SqlKeyValueStore:
    """Key-value store persisted in a single SQL table."""

    def __init__(self, database_url: str):
        # Imported lazily so the model registers on ``Base`` before create_all.
        from .db_models import StoredValue

        self._model = StoredValue
        try:
            self._engine: Engine = create_engine(database_url, future=True)
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to open storage at {database_url}") from exc
        self.session_factory: sessionmaker[Session] = sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def get(self, key: str) -> str | None:
        try:
            with self.session_factory() as session:
                return session.scalar(
                    select(self._model.value).where(self._model.key == key)
                )
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {key!r}") from exc

    def set(self, key: str, value: str) -> None:
        try:
            with self.session_factory.begin() as session:
                record = session.get(self._model, key)
                if record is None:
                    session.add(self._model(key=key, value=value))
                else:
                    record.value = value
                    record.updated_at = datetime.utcnow()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write {key!r}") from exc

    def delete(self, key: str) -> None:
        try:
            with self.session_factory.begin() as session:
                session.execute(delete(self._model).where(self._model.key == key))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete {key!r}") from exc

    def dispose(self) -> None:
        """Dispose of the underlying database engine."""

        self._engine.dispose()
