from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Iterable, Mapping


class CriteriaConfigError(RuntimeError):
    pass


class NtiaKey(IntEnum):
    SBOM_MACHINE_FORMAT = 1
    SBOM_CREATOR = 2
    SBOM_TIMESTAMP = 3
    SBOM_DEPENDENCY = 4
    SBOM_COMPONENTS = 5
    COMP_NAME = 6
    COMP_DEPTH = 7
    COMP_CREATOR = 8
    COMP_VERSION = 9
    COMP_OTHER_UNIQ_IDS = 10


@dataclass(frozen=True, slots=True)
class Criterion:
    key: int
    title: str
    section_id: str
    required: bool
    data_field: str
    document_level: bool = False


_DOCUMENT_KEYS = frozenset(
    {
        NtiaKey.SBOM_MACHINE_FORMAT,
        NtiaKey.SBOM_CREATOR,
        NtiaKey.SBOM_TIMESTAMP,
        NtiaKey.SBOM_DEPENDENCY,
        NtiaKey.SBOM_COMPONENTS,
    }
)


def _criterion(key: NtiaKey, title: str, section_id: str, data_field: str, required: bool = True) -> Criterion:
    return Criterion(
        key=int(key),
        title=title,
        section_id=section_id,
        required=required,
        data_field=data_field,
        document_level=key in _DOCUMENT_KEYS,
    )


NTIA_CRITERIA: Mapping[int, Criterion] = MappingProxyType(
    {
        int(c.key): c
        for c in (
            _criterion(NtiaKey.SBOM_MACHINE_FORMAT, "Automation Support", "1.1", "Machine-Readable Formats"),
            _criterion(NtiaKey.SBOM_CREATOR, "Required fields sboms", "2.1", "Author"),
            _criterion(NtiaKey.SBOM_TIMESTAMP, "Required fields sboms", "2.2", "Timestamp"),
            _criterion(NtiaKey.SBOM_COMPONENTS, "Required sbom component", "2.3", "Packages"),
            _criterion(NtiaKey.COMP_NAME, "Required fields components", "2.4", "Package Name"),
            _criterion(NtiaKey.SBOM_DEPENDENCY, "Required fields sboms", "2.5", "Dependencies on other components"),
            _criterion(NtiaKey.COMP_DEPTH, "Required fields components", "2.5", "Dependencies on other components"),
            _criterion(NtiaKey.COMP_CREATOR, "Required fields component", "2.6", "Package Supplier"),
            _criterion(NtiaKey.COMP_VERSION, "Required fields components", "2.7", "Package Version"),
            _criterion(NtiaKey.COMP_OTHER_UNIQ_IDS, "Required fields component", "2.8", "Other Uniq IDs"),
        )
    }
)


def lookup(criteria: Mapping[int, Criterion], key: int) -> Criterion:
    try:
        return criteria[key]
    except KeyError as exc:
        raise CriteriaConfigError(f"no criterion registered for key {key}") from exc


def validate_criteria(criteria: Mapping[int, Criterion], keys: Iterable[int]) -> None:
    missing = sorted({int(key) for key in keys} - set(criteria))
    if missing:
        raise CriteriaConfigError(f"criteria table is missing keys: {missing}")
    for key, criterion in criteria.items():
        if criterion.key != key:
            raise CriteriaConfigError(f"criterion {criterion.title!r} is registered under key {key}, expected {criterion.key}")
