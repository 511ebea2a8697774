"""
Record Store Service — insert / update / select over named collections.

This is the durable store contract the coordination components depend on:

- ``insert(collection, record)``   → the stored record, with its assigned id
- ``update(collection, id, changes)`` → None
- ``select(collection, filters, created_after=None)`` → list of records

Records cross this boundary as plain dicts keyed by column name. Each call
runs in its own database session and commits on its own, so writes are
atomic per record and never transactional across records.

Any database failure is raised as ``StoreError``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import create_engine, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from team_consensus.store.models import COLLECTIONS, Base

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the underlying store fails a read or write."""
    pass


class RecordStore:
    """
    SQLAlchemy-backed record store.

    Usage:
        store = RecordStore("sqlite:///./team_consensus.db")
        store.initialize()  # Create tables

        session = store.insert("team_sessions", {
            "session_name": "Production rollout",
            "coordinator_agent": "AICommander",
        })
        store.update("team_sessions", session["id"], {"status": "completed"})
        rows = store.select("agent_contributions", {"team_session_id": session["id"]})
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        """
        Initialize the store.

        Args:
            database_url: SQLAlchemy connection string. ``sqlite://`` gives a
                private in-memory database shared by all sessions of this store.
            echo: Log emitted SQL.
        """
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        self.database_url = database_url
        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def initialize(self) -> None:
        """Create any missing collection tables."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not initialize store: {exc}") from exc
        logger.info("Record store initialized: collections=%s", ", ".join(COLLECTIONS))

    def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        """
        Insert one record and return it as stored (defaults and id filled in).

        Raises:
            StoreError: Unknown collection, unknown column, or database failure.
        """
        model = self._model(collection)
        attributes = self._to_attributes(model, record)
        try:
            with self.SessionLocal() as session:
                row = model(**attributes)
                session.add(row)
                session.commit()
                session.refresh(row)
                stored = self._to_record(row)
        except SQLAlchemyError as exc:
            raise StoreError(f"Insert into {collection} failed: {exc}") from exc

        logger.debug("Record inserted: collection=%s id=%s", collection, stored["id"])
        return stored

    def update(self, collection: str, record_id: str, changes: dict[str, Any]) -> None:
        """
        Apply ``changes`` to the record with ``record_id``.

        Raises:
            StoreError: No such record, unknown column, or database failure.
        """
        model = self._model(collection)
        attributes = self._to_attributes(model, changes)
        try:
            with self.SessionLocal() as session:
                row = session.get(model, record_id)
                if row is None:
                    raise StoreError(f"No record {record_id} in {collection}")
                for key, value in attributes.items():
                    setattr(row, key, value)
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"Update of {collection}/{record_id} failed: {exc}") from exc

        logger.debug("Record updated: collection=%s id=%s fields=%s",
                     collection, record_id, sorted(changes))

    def select(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        created_after: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """
        Return records matching every equality filter, oldest first.

        Args:
            collection: Collection name.
            filters: Column name → required value.
            created_after: Only records created at or after this instant.
        """
        model = self._model(collection)
        stmt = select(model)
        for key, value in self._to_attributes(model, filters or {}).items():
            stmt = stmt.where(getattr(model, key) == value)
        if created_after is not None:
            stmt = stmt.where(model.created_at >= created_after)
        stmt = stmt.order_by(model.created_at.asc())

        try:
            with self.SessionLocal() as session:
                rows = session.execute(stmt).scalars().all()
                return [self._to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreError(f"Select from {collection} failed: {exc}") from exc

    # ── Internal ────────────────────────────────────────────────

    @staticmethod
    def _model(collection: str) -> type[Base]:
        model = COLLECTIONS.get(collection)
        if model is None:
            raise StoreError(f"Unknown collection: {collection}")
        return model

    @staticmethod
    def _to_attributes(model: type[Base], record: dict[str, Any]) -> dict[str, Any]:
        """Translate column names to mapped attribute names."""
        by_column = {
            attr.columns[0].name: attr.key for attr in inspect(model).column_attrs
        }
        attributes = {}
        for name, value in record.items():
            if name not in by_column:
                raise StoreError(f"Unknown field {name!r} for {model.__tablename__}")
            attributes[by_column[name]] = value
        return attributes

    @staticmethod
    def _to_record(row: Base) -> dict[str, Any]:
        """Translate a mapped row to a dict keyed by column name."""
        return {
            attr.columns[0].name: getattr(row, attr.key)
            for attr in inspect(type(row)).column_attrs
        }
