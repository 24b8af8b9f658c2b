from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

MIN_SCORE = 0.0
MAX_SCORE = 10.0

DOC_ENTITY = "doc"


@dataclass(frozen=True, slots=True)
class Record:
    check_key: int
    entity_id: str
    score: float
    result: str = ""

    def __post_init__(self) -> None:
        if not MIN_SCORE <= self.score <= MAX_SCORE:
            raise ValueError(f"score {self.score} outside [{MIN_SCORE}, {MAX_SCORE}]")


class RecordRow(SQLModel, table=True):
    __tablename__ = "compliance_record"
    __table_args__ = (UniqueConstraint("check_key", "entity_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    check_key: int = Field(index=True)
    entity_id: str = Field(index=True)
    score: float
    result: str = ""

    def to_record(self) -> Record:
        return Record(
            check_key=self.check_key,
            entity_id=self.entity_id,
            score=self.score,
            result=self.result,
        )
