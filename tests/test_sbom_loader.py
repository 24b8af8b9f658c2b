from __future__ import annotations

import json
from pathlib import Path

import pytest

from sbom_cs.checks import evaluate_ntia, ntia_records
from sbom_cs.criteria import NtiaKey
from sbom_cs.document import CdxDocument, SpdxDocument
from sbom_cs import sbom_loader
from sbom_cs.sbom_loader import SbomLoadError, load_sbom, parse_sbom
from sbom_cs.storage import RecordStore

SPDX_PAYLOAD = {
    "spdxVersion": "SPDX-2.3",
    "SPDXID": "SPDXRef-DOCUMENT",
    "name": "tools-golang",
    "creationInfo": {
        "created": "2023-05-04T09:33:40Z",
        "creators": ["Tool: syft-0.80.0", "Organization: Interlynk (hello@interlynk.io)"],
    },
    "documentDescribes": ["SPDXRef-tools-golang"],
    "packages": [
        {
            "SPDXID": "SPDXRef-tools-golang",
            "name": "tools-golang",
            "versionInfo": "v0.7.1",
            "supplier": "Organization: Interlynk (hello@interlynk.io)",
            "externalRefs": [
                {
                    "referenceCategory": "PACKAGE-MANAGER",
                    "referenceType": "purl",
                    "referenceLocator": "pkg:golang/github.com/spdx/tools-golang@v0.7.1",
                },
                {
                    "referenceCategory": "SECURITY",
                    "referenceType": "cpe23Type",
                    "referenceLocator": "cpe:2.3:a:spdx:tools-golang:0.7.1:*:*:*:*:*:*:*",
                },
            ],
        },
        {
            "SPDXID": "SPDXRef-gordf",
            "name": "gordf",
            "versionInfo": "v0.0.0",
            "supplier": "NOASSERTION",
        },
    ],
    "relationships": [
        {
            "spdxElementId": "SPDXRef-DOCUMENT",
            "relationshipType": "DESCRIBES",
            "relatedSpdxElement": "SPDXRef-tools-golang",
        },
        {
            "spdxElementId": "SPDXRef-tools-golang",
            "relationshipType": "DEPENDS_ON",
            "relatedSpdxElement": "SPDXRef-gordf",
        },
    ],
}

CDX_PAYLOAD = {
    "bomFormat": "CycloneDX",
    "specVersion": "1.5",
    "metadata": {
        "timestamp": "2023-05-04T09:33:40Z",
        "tools": {"components": [{"type": "application", "name": "syft", "version": "0.80.0"}]},
        "component": {"bom-ref": "app", "name": "app", "version": "1.0.0"},
    },
    "components": [
        {
            "bom-ref": "pkg:pypi/requests@2.31.0",
            "name": "requests",
            "version": "2.31.0",
            "purl": "pkg:pypi/requests@2.31.0",
            "supplier": {"name": "Python Software Foundation", "url": ["https://python.org"]},
            "components": [
                {"bom-ref": "urllib3", "name": "urllib3", "version": "2.0.0"},
            ],
        }
    ],
    "dependencies": [
        {"ref": "app", "dependsOn": ["pkg:pypi/requests@2.31.0"]},
        {"ref": "pkg:pypi/requests@2.31.0", "dependsOn": ["urllib3"]},
    ],
}


def test_load_spdx(tmp_path: Path) -> None:
    path = tmp_path / "sbom.spdx.json"
    path.write_text(json.dumps(SPDX_PAYLOAD), encoding="utf-8")

    document = load_sbom(path)

    assert isinstance(document, SpdxDocument)
    assert document.spec_type() == "spdx"
    assert document.format() == "json"
    assert document.spec_version() == "SPDX-2.3"
    assert [a.name for a in document.authors()] == ["syft-0.80.0", "Interlynk"]
    assert document.authors()[1].email == "hello@interlynk.io"
    assert document.primary_component_dependency_count() == 1
    assert document.dependencies_of("SPDXRef-tools-golang") == ["SPDXRef-gordf"]

    tools, gordf = document.components()
    assert [ref.ref_type for ref in tools.external_references] == ["purl", "cpe"]
    assert tools.supplier is not None and tools.supplier.label == "Interlynk"
    assert gordf.supplier is None


def test_spdx_records_resolve_dependency_names() -> None:
    records = ntia_records(parse_sbom(SPDX_PAYLOAD))
    by_entity = {(r.entity_id, r.check_key): r for r in records}

    deps = by_entity[("SPDXRef-tools-golang", NtiaKey.COMP_DEPTH)]
    assert deps.result == "gordf"
    uniq = by_entity[("SPDXRef-tools-golang", NtiaKey.COMP_OTHER_UNIQ_IDS)]
    assert uniq.result == "purl:(1/2), cpe:(1/2)"
    assert uniq.score == 10.0


def test_parse_cyclonedx() -> None:
    document = parse_sbom(CDX_PAYLOAD)

    assert isinstance(document, CdxDocument)
    assert document.spec_type() == "cyclonedx"
    assert [a.label for a in document.authors()] == ["syft"]
    assert [c.name for c in document.components()] == ["requests", "urllib3"]
    assert document.primary_component_dependency_count() == 1
    requests_component = document.components()[0]
    assert requests_component.supplier.label == "Python Software Foundation"
    assert requests_component.external_references[0].ref_type == "purl"
    assert document.dependencies_of("pkg:pypi/requests@2.31.0") == ["urllib3"]


def test_cyclonedx_authors_preferred_over_tools() -> None:
    payload = json.loads(json.dumps(CDX_PAYLOAD))
    payload["metadata"]["authors"] = [{"email": "hello@interlynk.io"}]

    document = parse_sbom(payload)

    assert [a.label for a in document.authors()] == ["hello@interlynk.io"]


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SbomLoadError):
        load_sbom(path)


def test_unsupported_format() -> None:
    with pytest.raises(SbomLoadError):
        parse_sbom({"swid": "tag"})
    with pytest.raises(SbomLoadError):
        parse_sbom(["not", "an", "object"])


def test_cyclonedx_components_without_bom_ref_keep_their_records(caplog) -> None:
    payload = {
        "bomFormat": "CycloneDX",
        "specVersion": "1.5",
        "metadata": {"timestamp": "2023-05-04T09:33:40Z"},
        "components": [
            {"name": "requests", "version": "2.31.0", "purl": "pkg:pypi/requests@2.31.0"},
            {},
        ],
    }

    document = parse_sbom(payload)

    ids = [c.id for c in document.components()]
    assert ids == ["requests@2.31.0#0", "@#1"]
    assert "has no identifier" in caplog.text
    with RecordStore() as store:
        added = evaluate_ntia(document, store)
        assert len(store) == added == 15
        assert store.entity_ids() == ["doc", "requests@2.31.0#0", "@#1"]
        assert store.record(NtiaKey.COMP_NAME, "requests@2.31.0#0").score == 10.0


def test_spdx_packages_without_spdxid_get_distinct_ids() -> None:
    payload = {
        "spdxVersion": "SPDX-2.3",
        "packages": [{"name": "a", "versionInfo": "1"}, {"name": "b"}],
    }

    document = parse_sbom(payload)

    assert [p.id for p in document.components()] == ["a@1#0", "b@#1"]


def test_spdx_malformed_entries_are_skipped(caplog) -> None:
    payload = {
        "spdxVersion": "SPDX-2.3",
        "creationInfo": "yesterday",
        "packages": [
            "oops",
            {"SPDXID": "SPDXRef-a", "name": "a", "externalRefs": ["oops", {"referenceType": "purl"}]},
        ],
        "relationships": ["oops", {"spdxElementId": "SPDXRef-a", "relationshipType": "DEPENDS_ON", "relatedSpdxElement": "SPDXRef-b"}],
    }

    document = parse_sbom(payload)

    assert document.creation_timestamp() == ""
    assert [p.id for p in document.components()] == ["SPDXRef-a"]
    assert [r.ref_type for r in document.components()[0].external_references] == ["purl"]
    assert document.dependencies_of("SPDXRef-a") == ["SPDXRef-b"]
    assert "skipping malformed SPDX relationship" in caplog.text


def test_cyclonedx_malformed_entries_are_skipped() -> None:
    payload = {
        "bomFormat": "CycloneDX",
        "metadata": {
            "authors": ["someone"],
            "tools": "syft",
            "component": "app",
        },
        "components": [
            "oops",
            {"bom-ref": "a", "name": "a", "supplier": {"name": "", "contact": {"email": "a@example.com"}}},
        ],
        "dependencies": ["oops", {"ref": "a", "dependsOn": "b"}],
    }

    document = parse_sbom(payload)

    assert document.authors() == []
    assert document.primary_component_dependency_count() == 0
    (component,) = document.components()
    assert component.supplier.label == "a@example.com"
    assert document.dependencies_of("a") == []


def test_unexpected_shape_becomes_load_error(monkeypatch) -> None:
    def explode(payload):
        raise AttributeError("'str' object has no attribute 'get'")

    monkeypatch.setattr(sbom_loader, "parse_spdx", explode)

    with pytest.raises(SbomLoadError, match="malformed SBOM"):
        parse_sbom({"spdxVersion": "SPDX-2.3"})
