from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .document import (
    CdxDocument,
    ExternalReference,
    Identity,
    Package,
    PrimaryComponent,
    SpdxDocument,
)

LOGGER = logging.getLogger(__name__)

SbomDocument = Union[SpdxDocument, CdxDocument]

_SPDX_ACTOR = re.compile(r"^\s*(?P<kind>Tool|Person|Organization)\s*:\s*(?P<value>.*)$", re.IGNORECASE)
_EMAIL_SUFFIX = re.compile(r"^(?P<name>.*?)\s*\((?P<email>[^)]*)\)\s*$")
_NOASSERTION = {"NOASSERTION", "NONE"}
_SPDX_REF_KINDS = {
    "purl": "purl",
    "cpe22type": "cpe",
    "cpe23type": "cpe",
}


class SbomLoadError(RuntimeError):
    pass


def load_sbom(path: Path) -> SbomDocument:
    try:
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except OSError as exc:
        raise SbomLoadError(f"unable to read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SbomLoadError(f"{path} is not valid JSON: {exc}") from exc
    return parse_sbom(payload)


def parse_sbom(payload: Any) -> SbomDocument:
    if not isinstance(payload, dict):
        raise SbomLoadError("SBOM payload must be a JSON object")
    try:
        if "spdxVersion" in payload:
            return parse_spdx(payload)
        if str(payload.get("bomFormat", "")).lower() == "cyclonedx":
            return parse_cyclonedx(payload)
    except (AttributeError, KeyError, TypeError) as exc:
        raise SbomLoadError(f"malformed SBOM: {exc}") from exc
    raise SbomLoadError("unsupported SBOM: expected SPDX or CycloneDX JSON")


def parse_spdx(payload: Dict[str, Any]) -> SpdxDocument:
    creation = _as_dict(payload.get("creationInfo"), "SPDX creationInfo")
    creators = [
        identity
        for identity in (_spdx_actor(raw) for raw in _as_list(creation.get("creators")))
        if identity is not None
    ]

    packages = [
        _spdx_package(raw, index)
        for index, raw in enumerate(_dict_entries(payload.get("packages"), "SPDX package"))
    ]

    relationships: Dict[str, List[str]] = {}
    described: List[str] = [str(ref) for ref in _as_list(payload.get("documentDescribes")) if ref]
    document_id = payload.get("SPDXID", "SPDXRef-DOCUMENT")
    for rel in _dict_entries(payload.get("relationships"), "SPDX relationship"):
        source = str(rel.get("spdxElementId") or "")
        target = str(rel.get("relatedSpdxElement") or "")
        kind = str(rel.get("relationshipType", "")).upper()
        if not source or not target:
            LOGGER.warning("skipping incomplete SPDX relationship: %s", rel)
            continue
        if kind == "DESCRIBES" and source == document_id:
            described.append(target)
        elif kind == "DESCRIBED_BY" and target == document_id:
            described.append(source)
        elif kind == "DEPENDS_ON":
            _link(relationships, source, target)
        elif kind == "DEPENDENCY_OF":
            _link(relationships, target, source)

    primary = PrimaryComponent()
    if described:
        primary_id = described[0]
        primary = PrimaryComponent(id=primary_id, dependency_count=len(relationships.get(primary_id, [])))

    return SpdxDocument(
        version=str(payload.get("spdxVersion", "")),
        file_format="json",
        created=str(creation.get("created", "")),
        creators=creators,
        packages=packages,
        relationships=relationships,
        primary=primary,
    )


def parse_cyclonedx(payload: Dict[str, Any]) -> CdxDocument:
    metadata = _as_dict(payload.get("metadata"), "CycloneDX metadata")
    authors = [_cdx_identity(raw, kind="person") for raw in _dict_entries(metadata.get("authors"), "CycloneDX author")]

    tools_raw = metadata.get("tools") or []
    if isinstance(tools_raw, dict):
        # CycloneDX 1.5 moved tools under tools.components / tools.services
        tools_raw = _as_list(tools_raw.get("components")) + _as_list(tools_raw.get("services"))
    tools = [_cdx_identity(raw, kind="tool") for raw in _dict_entries(tools_raw, "CycloneDX tool")]

    components = [
        _cdx_package(raw, index)
        for index, raw in enumerate(_walk_components(_as_list(payload.get("components"))))
    ]

    dependencies: Dict[str, List[str]] = {}
    for entry in _dict_entries(payload.get("dependencies"), "CycloneDX dependency"):
        ref = str(entry.get("ref") or "")
        for target in _as_list(entry.get("dependsOn")):
            if ref and target:
                _link(dependencies, ref, str(target))

    primary = PrimaryComponent()
    primary_raw = _as_dict(metadata.get("component"), "CycloneDX metadata.component")
    primary_id = str(primary_raw.get("bom-ref") or "")
    if primary_id:
        primary = PrimaryComponent(id=primary_id, dependency_count=len(dependencies.get(primary_id, [])))

    return CdxDocument(
        version=str(payload.get("specVersion", "")),
        file_format="json",
        created=str(metadata.get("timestamp", "")),
        metadata_authors=[author for author in authors if author.label],
        tools=[tool for tool in tools if tool.label],
        comps=components,
        dependencies=dependencies,
        primary=primary,
    )


def _as_dict(value: Any, what: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        LOGGER.warning("ignoring %s: expected an object, got %s", what, type(value).__name__)
        return {}
    return value


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    return []


def _dict_entries(value: Any, what: str) -> Iterable[Dict[str, Any]]:
    for entry in _as_list(value):
        if isinstance(entry, dict):
            yield entry
        else:
            LOGGER.warning("skipping malformed %s: %r", what, entry)


def _fallback_id(name: str, version: str, index: int, what: str) -> str:
    component_id = f"{name}@{version}#{index}"
    LOGGER.warning("%s %r has no identifier, using %r", what, name, component_id)
    return component_id


def _link(mapping: Dict[str, List[str]], source: str, target: str) -> None:
    targets = mapping.setdefault(source, [])
    if target not in targets:
        targets.append(target)


def _spdx_actor(raw: Any) -> Optional[Identity]:
    if not isinstance(raw, str) or raw.strip().upper() in _NOASSERTION:
        return None
    match = _SPDX_ACTOR.match(raw)
    if match is None:
        return Identity(name=raw.strip())
    kind = match.group("kind").lower()
    value = match.group("value").strip()
    email = ""
    email_match = _EMAIL_SUFFIX.match(value)
    if email_match is not None:
        value = email_match.group("name").strip()
        email = email_match.group("email").strip()
    return Identity(name=value, email=email, kind=kind)


def _spdx_package(raw: Dict[str, Any], index: int) -> Package:
    references = []
    for ref in _dict_entries(raw.get("externalRefs"), "SPDX external reference"):
        ref_type = str(ref.get("referenceType", ""))
        references.append(
            ExternalReference(
                ref_type=_SPDX_REF_KINDS.get(ref_type.lower(), ref_type),
                locator=str(ref.get("referenceLocator", "")),
            )
        )
    name = str(raw.get("name", ""))
    version = str(raw.get("versionInfo", ""))
    package_id = str(raw.get("SPDXID") or "") or _fallback_id(name, version, index, "SPDX package")
    return Package(
        id=package_id,
        name=name,
        version=version,
        supplier=_spdx_actor(raw.get("supplier")),
        external_references=tuple(references),
    )


def _walk_components(components: Iterable[Any]) -> Iterable[Dict[str, Any]]:
    for component in _dict_entries(components, "CycloneDX component"):
        yield component
        yield from _walk_components(component.get("components"))


def _cdx_identity(raw: Any, kind: str) -> Identity:
    if not isinstance(raw, dict):
        return Identity()
    email = raw.get("email") or ""
    contacts = raw.get("contact")
    if isinstance(contacts, dict):
        contacts = [contacts]
    if not email and isinstance(contacts, list) and contacts and isinstance(contacts[0], dict):
        email = contacts[0].get("email") or ""
    urls = raw.get("url") or ""
    if isinstance(urls, list):
        urls = urls[0] if urls else ""
    return Identity(name=str(raw.get("name") or ""), email=str(email), url=str(urls), kind=kind)


def _cdx_package(raw: Dict[str, Any], index: int) -> Package:
    references = []
    if raw.get("purl"):
        references.append(ExternalReference(ref_type="purl", locator=str(raw["purl"])))
    if raw.get("cpe"):
        references.append(ExternalReference(ref_type="cpe", locator=str(raw["cpe"])))
    supplier = _cdx_identity(raw.get("supplier") or raw.get("manufacturer"), kind="organization")
    name = str(raw.get("name", ""))
    version = str(raw.get("version", ""))
    component_id = str(raw.get("bom-ref") or "") or _fallback_id(name, version, index, "CycloneDX component")
    return Package(
        id=component_id,
        name=name,
        version=version,
        supplier=supplier if supplier.label else None,
        external_references=tuple(references),
    )
