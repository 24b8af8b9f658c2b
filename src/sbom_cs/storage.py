from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from .models import Record, RecordRow

LOGGER = logging.getLogger(__name__)


class RecordStore:
    """Per-run collection of check results, one record per (check key, entity id).

    Every store owns a private in-memory SQLite database, so stores for
    different documents never share state. The database is dropped on
    :meth:`close`.
    """

    def __init__(self) -> None:
        self._engine = create_engine(
            "sqlite://",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        SQLModel.metadata.create_all(self._engine, tables=[RecordRow.__table__])

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._engine.dispose()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        session = Session(self._engine)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def add(self, record: Record) -> None:
        with self.session_scope() as session:
            self._upsert(session, record)

    def add_all(self, records: Iterable[Record]) -> int:
        count = 0
        with self.session_scope() as session:
            for record in records:
                self._upsert(session, record)
                count += 1
        LOGGER.debug("stored %d records", count)
        return count

    @staticmethod
    def _upsert(session: Session, record: Record) -> None:
        statement = select(RecordRow).where(
            RecordRow.check_key == int(record.check_key),
            RecordRow.entity_id == record.entity_id,
        )
        row = session.exec(statement).first()
        if row is None:
            row = RecordRow(check_key=int(record.check_key), entity_id=record.entity_id, score=record.score)
        row.score = record.score
        row.result = record.result
        session.add(row)
        session.flush()

    def entity_ids(self) -> List[str]:
        """Distinct entity ids in the order they were first stored."""
        statement = (
            select(RecordRow.entity_id)
            .group_by(RecordRow.entity_id)
            .order_by(func.min(RecordRow.id))
        )
        with self.session_scope() as session:
            return list(session.exec(statement))

    def records(self) -> List[Record]:
        return self._fetch(select(RecordRow).order_by(RecordRow.id))

    def records_for_entity(self, entity_id: str) -> List[Record]:
        return self._fetch(select(RecordRow).where(RecordRow.entity_id == entity_id).order_by(RecordRow.id))

    def records_for_key(self, check_key: int) -> List[Record]:
        return self._fetch(select(RecordRow).where(RecordRow.check_key == int(check_key)).order_by(RecordRow.id))

    def record(self, check_key: int, entity_id: str) -> Optional[Record]:
        statement = select(RecordRow).where(
            RecordRow.check_key == int(check_key),
            RecordRow.entity_id == entity_id,
        )
        with self.session_scope() as session:
            row = session.exec(statement).first()
            return row.to_record() if row is not None else None

    def __len__(self) -> int:
        with self.session_scope() as session:
            return session.exec(select(func.count()).select_from(RecordRow)).one()

    def _fetch(self, statement) -> List[Record]:
        with self.session_scope() as session:
            return [row.to_record() for row in session.exec(statement)]
