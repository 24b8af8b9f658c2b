from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping

from .criteria import NTIA_CRITERIA, Criterion, lookup
from .models import MAX_SCORE, Record
from .storage import RecordStore


@dataclass(slots=True)
class Score:
    required: List[float] = field(default_factory=list)
    optional: List[float] = field(default_factory=list)
    max_score: float = MAX_SCORE

    def total_score(self) -> float:
        return _mean(self.required + self.optional)

    def total_required_score(self) -> float:
        return _mean(self.required)

    def total_optional_score(self) -> float:
        return _mean(self.optional)

    def count(self) -> int:
        return len(self.required) + len(self.optional)


def score_records(
    records: Iterable[Record],
    criteria: Mapping[int, Criterion] = NTIA_CRITERIA,
) -> Score:
    score = Score()
    for record in records:
        if lookup(criteria, record.check_key).required:
            score.required.append(record.score)
        else:
            score.optional.append(record.score)
    return score


def aggregate_score(store: RecordStore, criteria: Mapping[int, Criterion] = NTIA_CRITERIA) -> Score:
    return score_records(store.records(), criteria)


def entity_score(store: RecordStore, entity_id: str, criteria: Mapping[int, Criterion] = NTIA_CRITERIA) -> Score:
    return score_records(store.records_for_entity(entity_id), criteria)


def key_entity_score(
    store: RecordStore,
    check_key: int,
    entity_id: str,
    criteria: Mapping[int, Criterion] = NTIA_CRITERIA,
) -> Score:
    record = store.record(check_key, entity_id)
    return score_records([record] if record is not None else [], criteria)


def _mean(values: List[float]) -> float:
    if not values:
        return 0.0
    return min(MAX_SCORE, sum(values) / len(values))
