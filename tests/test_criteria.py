from __future__ import annotations

import pytest

from sbom_cs.criteria import NTIA_CRITERIA, CriteriaConfigError, Criterion, NtiaKey, lookup, validate_criteria


def test_ntia_table_covers_every_key() -> None:
    validate_criteria(NTIA_CRITERIA, list(NtiaKey))
    assert lookup(NTIA_CRITERIA, NtiaKey.COMP_OTHER_UNIQ_IDS).section_id == "2.8"


def test_ntia_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        NTIA_CRITERIA[99] = Criterion(99, "x", "9.9", True, "x")  # type: ignore[index]


def test_validate_reports_missing_keys() -> None:
    table = {1: Criterion(1, "Automation Support", "1.1", True, "Machine-Readable Formats")}

    with pytest.raises(CriteriaConfigError, match=r"\[2\]"):
        validate_criteria(table, [1, 2])


def test_validate_reports_mismatched_key() -> None:
    table = {1: Criterion(2, "Author", "2.1", True, "Author")}

    with pytest.raises(CriteriaConfigError):
        validate_criteria(table, [1])
