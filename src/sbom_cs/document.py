from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple


@dataclass(frozen=True, slots=True)
class Identity:
    name: str = ""
    email: str = ""
    url: str = ""
    kind: str = ""

    @property
    def label(self) -> str:
        return self.name or self.email or self.url


@dataclass(frozen=True, slots=True)
class ExternalReference:
    ref_type: str
    locator: str = ""


@dataclass(frozen=True, slots=True)
class Package:
    id: str = ""
    name: str = ""
    version: str = ""
    supplier: Optional[Identity] = None
    external_references: Tuple[ExternalReference, ...] = ()


@dataclass(frozen=True, slots=True)
class PrimaryComponent:
    id: str = ""
    dependency_count: int = 0


class Component(Protocol):
    """Read-only view of one SBOM component."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def version(self) -> str: ...

    @property
    def supplier(self) -> Optional[Identity]: ...

    @property
    def external_references(self) -> Sequence[ExternalReference]: ...


class Document(Protocol):
    """Capabilities the compliance checks need from any SBOM format.

    Absent data is reported as an empty string, zero or an empty sequence,
    never as an exception.
    """

    def spec_type(self) -> str: ...

    def format(self) -> str: ...

    def spec_version(self) -> str: ...

    def creation_timestamp(self) -> str: ...

    def authors(self) -> Sequence[Identity]: ...

    def components(self) -> Sequence[Component]: ...

    def primary_component_dependency_count(self) -> int: ...

    def dependencies_of(self, component_id: str) -> Sequence[str]: ...


@dataclass(slots=True)
class SpdxDocument:
    version: str = ""
    file_format: str = "json"
    created: str = ""
    creators: List[Identity] = field(default_factory=list)
    packages: List[Package] = field(default_factory=list)
    relationships: Dict[str, List[str]] = field(default_factory=dict)
    primary: PrimaryComponent = field(default_factory=PrimaryComponent)

    def spec_type(self) -> str:
        return "spdx"

    def format(self) -> str:
        return self.file_format

    def spec_version(self) -> str:
        return self.version

    def creation_timestamp(self) -> str:
        return self.created

    def authors(self) -> Sequence[Identity]:
        return list(self.creators)

    def components(self) -> Sequence[Component]:
        return list(self.packages)

    def primary_component_dependency_count(self) -> int:
        return self.primary.dependency_count if self.primary.id else 0

    def dependencies_of(self, component_id: str) -> Sequence[str]:
        return list(self.relationships.get(component_id, []))


@dataclass(slots=True)
class CdxDocument:
    version: str = ""
    file_format: str = "json"
    created: str = ""
    metadata_authors: List[Identity] = field(default_factory=list)
    tools: List[Identity] = field(default_factory=list)
    comps: List[Package] = field(default_factory=list)
    dependencies: Dict[str, List[str]] = field(default_factory=dict)
    primary: PrimaryComponent = field(default_factory=PrimaryComponent)

    def spec_type(self) -> str:
        return "cyclonedx"

    def format(self) -> str:
        return self.file_format

    def spec_version(self) -> str:
        return self.version

    def creation_timestamp(self) -> str:
        return self.created

    def authors(self) -> Sequence[Identity]:
        # tools stand in for authors when the producer declared none
        return list(self.metadata_authors or self.tools)

    def components(self) -> Sequence[Component]:
        return list(self.comps)

    def primary_component_dependency_count(self) -> int:
        return self.primary.dependency_count if self.primary.id else 0

    def dependencies_of(self, component_id: str) -> Sequence[str]:
        return list(self.dependencies.get(component_id, []))


class NameIndex:
    """Resolves component ids to display names for a single scoring run."""

    def __init__(self, names: Optional[Mapping[str, str]] = None) -> None:
        self._names: Dict[str, str] = dict(names or {})

    @classmethod
    def from_document(cls, document: Document, extra: Optional[Mapping[str, str]] = None) -> "NameIndex":
        index = cls()
        index.register_all((comp.id, comp.name) for comp in document.components())
        if extra:
            index.register_all(extra.items())
        return index

    def register(self, component_id: str, name: str) -> None:
        if component_id and name:
            self._names[component_id] = name

    def register_all(self, pairs: Iterable[Tuple[str, str]]) -> None:
        for component_id, name in pairs:
            self.register(component_id, name)

    def resolve(self, component_id: str) -> str:
        return self._names.get(component_id, component_id)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._names

    def __len__(self) -> int:
        return len(self._names)
