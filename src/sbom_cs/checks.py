from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence

from .criteria import NTIA_CRITERIA, NtiaKey, validate_criteria
from .document import Component, Document, NameIndex
from .models import DOC_ENTITY, MAX_SCORE, MIN_SCORE, Record
from .storage import RecordStore

LOGGER = logging.getLogger(__name__)

SPEC_FORMATS: Dict[str, frozenset] = {
    "spdx": frozenset({"json", "xml", "yaml", "rdf", "tag-value"}),
    "cyclonedx": frozenset({"json", "xml"}),
}

UNIQUE_ID_KINDS = ("purl", "cpe")

_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)


def _binary(key: NtiaKey, entity_id: str, value: str) -> Record:
    score = MAX_SCORE if value else MIN_SCORE
    return Record(check_key=int(key), entity_id=entity_id, score=score, result=value)


def automation_spec(document: Document) -> Record:
    spec = (document.spec_type() or "").strip()
    fmt = (document.format() or "").strip()
    allowed = SPEC_FORMATS.get(spec.lower(), frozenset())
    score = MAX_SCORE if fmt.lower() in allowed else MIN_SCORE
    return Record(int(NtiaKey.SBOM_MACHINE_FORMAT), DOC_ENTITY, score, f"{spec}, {fmt}")


def sbom_creator(document: Document) -> Record:
    label = next((author.label for author in document.authors() if author.label), "")
    return _binary(NtiaKey.SBOM_CREATOR, DOC_ENTITY, label)


def sbom_timestamp(document: Document) -> Record:
    timestamp = document.creation_timestamp() or ""
    score = MAX_SCORE if _RFC3339.match(timestamp) else MIN_SCORE
    return Record(int(NtiaKey.SBOM_TIMESTAMP), DOC_ENTITY, score, timestamp)


def sbom_dependency(document: Document) -> Record:
    count = document.primary_component_dependency_count()
    score = MAX_SCORE if count > 0 else MIN_SCORE
    return Record(int(NtiaKey.SBOM_DEPENDENCY), DOC_ENTITY, score, f"doc has {count} dependencies")


def sbom_components(document: Document) -> Record:
    count = len(document.components())
    score = MAX_SCORE if count > 0 else MIN_SCORE
    return Record(int(NtiaKey.SBOM_COMPONENTS), DOC_ENTITY, score, str(count))


def component_name(component: Component) -> Record:
    return _binary(NtiaKey.COMP_NAME, component.id, component.name or "")


def component_version(component: Component) -> Record:
    return _binary(NtiaKey.COMP_VERSION, component.id, component.version or "")


def component_supplier(component: Component) -> Record:
    supplier = component.supplier
    return _binary(NtiaKey.COMP_CREATOR, component.id, supplier.label if supplier else "")


def component_other_uniq_ids(component: Component) -> Record:
    """Score purl/cpe coverage as matched references over all references."""
    references = list(component.external_references)
    total = len(references)
    if total == 0:
        return Record(int(NtiaKey.COMP_OTHER_UNIQ_IDS), component.id, MIN_SCORE, "")

    counts = {kind: 0 for kind in UNIQUE_ID_KINDS}
    for reference in references:
        kind = (reference.ref_type or "").lower()
        if kind in counts:
            counts[kind] += 1

    matched = sum(counts.values())
    result = ", ".join(f"{kind}:({found}/{total})" for kind, found in counts.items() if found)
    return Record(int(NtiaKey.COMP_OTHER_UNIQ_IDS), component.id, MAX_SCORE * matched / total, result)


def component_dependencies(document: Document, component: Component, names: NameIndex) -> Record:
    dependencies = document.dependencies_of(component.id)
    resolved = ", ".join(names.resolve(dep) for dep in dependencies)
    score = MAX_SCORE if dependencies else MIN_SCORE
    return Record(int(NtiaKey.COMP_DEPTH), component.id, score, resolved)


EMITTED_KEYS = tuple(NtiaKey)

validate_criteria(NTIA_CRITERIA, EMITTED_KEYS)


def ntia_records(document: Document, names: Optional[NameIndex] = None) -> List[Record]:
    names = names if names is not None else NameIndex.from_document(document)
    records: List[Record] = [
        automation_spec(document),
        sbom_creator(document),
        sbom_timestamp(document),
        sbom_dependency(document),
        sbom_components(document),
    ]
    components: Sequence[Component] = document.components()
    for component in components:
        records.extend(
            [
                component_name(component),
                component_version(component),
                component_supplier(component),
                component_other_uniq_ids(component),
                component_dependencies(document, component, names),
            ]
        )
    return records


def evaluate_ntia(document: Document, store: RecordStore, names: Optional[NameIndex] = None) -> int:
    records = ntia_records(document, names)
    LOGGER.debug(
        "evaluated %d NTIA records for %d components",
        len(records),
        len(document.components()),
    )
    return store.add_all(records)
