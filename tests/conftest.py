from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import pytest

from sbom_cs.document import (
    CdxDocument,
    ExternalReference,
    Identity,
    NameIndex,
    Package,
    PrimaryComponent,
    SpdxDocument,
)

TOOLS_GOLANG_ID = "github/spdx/tools-golang@9db247b854b9634d0109153d515fd1a9efd5a1b1"
GORDF_ID = "github/spdx/gordf@b735bd5aac89fe25cad4ef488a95bc00ea549edd"


@dataclass
class FakeDocument:
    spec: str = ""
    fmt: str = ""
    version: str = ""
    created: str = ""
    creators: List[Identity] = field(default_factory=list)
    packages: List[Package] = field(default_factory=list)
    relationships: Dict[str, List[str]] = field(default_factory=dict)
    primary_dependencies: int = 0

    def spec_type(self) -> str:
        return self.spec

    def format(self) -> str:
        return self.fmt

    def spec_version(self) -> str:
        return self.version

    def creation_timestamp(self) -> str:
        return self.created

    def authors(self) -> List[Identity]:
        return self.creators

    def components(self) -> List[Package]:
        return self.packages

    def primary_component_dependency_count(self) -> int:
        return self.primary_dependencies

    def dependencies_of(self, component_id: str) -> List[str]:
        return self.relationships.get(component_id, [])


def _tools_golang(**overrides) -> Package:
    values = dict(
        id=TOOLS_GOLANG_ID,
        name="tool-golang",
        version="v0.7.1",
        supplier=Identity(email="hello@interlynk.io"),
        external_references=(ExternalReference("purl", "pkg:golang/github.com/spdx/tools-golang@v0.7.1"),),
    )
    values.update(overrides)
    return Package(**values)


@pytest.fixture
def spdx_document() -> SpdxDocument:
    return SpdxDocument(
        version="SPDX-2.3",
        file_format="json",
        created="2023-05-04T09:33:40Z",
        creators=[Identity(name="syft", kind="tool")],
        packages=[_tools_golang()],
        relationships={TOOLS_GOLANG_ID: [GORDF_ID]},
        primary=PrimaryComponent(id=TOOLS_GOLANG_ID, dependency_count=1),
    )


@pytest.fixture
def cdx_document() -> CdxDocument:
    return CdxDocument(
        version="1.4",
        file_format="xml",
        created="2023-05-04T09:33:40Z",
        metadata_authors=[Identity(email="hello@interlynk.io", kind="person")],
        comps=[_tools_golang(external_references=(ExternalReference("purl", "vivek"),))],
        dependencies={TOOLS_GOLANG_ID: [GORDF_ID]},
        primary=PrimaryComponent(id=TOOLS_GOLANG_ID, dependency_count=1),
    )


@pytest.fixture
def failing_document() -> FakeDocument:
    return FakeDocument(
        spec="swid",
        fmt="fjson",
        version="SPDX-4.0",
        created="2023-05-04",
        creators=[Identity(name="")],
        packages=[Package()],
    )


@pytest.fixture
def gordf_names(spdx_document: SpdxDocument) -> NameIndex:
    return NameIndex.from_document(spdx_document, extra={GORDF_ID: "gordf"})
