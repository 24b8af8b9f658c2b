from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, TextIO

from rich.console import Console
from rich.table import Table

from . import __version__
from .config import get_settings
from .criteria import NTIA_CRITERIA, Criterion, lookup
from .scorer import aggregate_score, key_entity_score
from .storage import RecordStore

REPORT_NAME = "NTIA-minimum elements Compliance Report"
REPORT_SUBTITLE = "Part 2: Software Bill of Materials (SBOM)"
ENGINE_VERSION = "1"
TOOL_NAME = "sbom-cs"
DOC_ELEMENT_ID = "sbom"


@dataclass(slots=True)
class Section:
    section_title: str
    section_id: str
    section_data_field: str
    required: bool
    element_id: str
    element_result: str
    score: float


def construct_sections(store: RecordStore, criteria: Mapping[int, Criterion] = NTIA_CRITERIA) -> List[Section]:
    sections: List[Section] = []
    for entity_id in store.entity_ids():
        for record in store.records_for_entity(entity_id):
            criterion = lookup(criteria, record.check_key)
            score = key_entity_score(store, record.check_key, record.entity_id, criteria)
            sections.append(
                Section(
                    section_title=criterion.title,
                    section_id=criterion.section_id,
                    section_data_field=criterion.data_field,
                    required=criterion.required,
                    element_id=DOC_ELEMENT_ID if criterion.document_level else record.entity_id,
                    element_result=record.result,
                    score=score.total_score(),
                )
            )
    return sections


def build_json_report(
    store: RecordStore,
    file_name: str,
    criteria: Mapping[int, Criterion] = NTIA_CRITERIA,
) -> Dict[str, Any]:
    settings = get_settings()
    score = aggregate_score(store, criteria)
    return {
        "report_name": REPORT_NAME,
        "subtitle": REPORT_SUBTITLE,
        "revision": "",
        "run": {
            "id": str(uuid.uuid4()),
            "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "file_name": file_name,
            "engine_version": ENGINE_VERSION,
        },
        "tool": {
            "name": TOOL_NAME,
            "version": __version__,
            "vendor": settings.tool_vendor,
        },
        "summary": {
            "total_score": score.total_score(),
            "max_score": score.max_score,
            "required_elements_score": score.total_required_score(),
            "optional_elements_score": score.total_optional_score(),
        },
        "sections": [asdict(section) for section in construct_sections(store, criteria)],
    }


def write_json_report(store: RecordStore, file_name: str, stream: TextIO) -> None:
    payload = build_json_report(store, file_name)
    stream.write(json.dumps(payload, indent=2))
    stream.write("\n")


def sorted_sections(sections: List[Section]) -> List[Section]:
    return sorted(sections, key=lambda section: (section.element_id, section.section_id))


def write_detailed_report(store: RecordStore, file_name: str, stream: TextIO) -> None:
    console = Console(file=stream, force_terminal=False, color_system=None, width=160)
    score = aggregate_score(store)

    console.print("NTIA Report", markup=False, highlight=False)
    console.print(
        f"Compliance score by {TOOL_NAME} Score:{score.total_score():0.1f} "
        f"RequiredScore:{score.total_required_score():0.1f} "
        f"OptionalScore:{score.total_optional_score():0.1f} for {file_name}",
        markup=False,
        highlight=False,
    )
    console.print("* indicates optional fields", markup=False, highlight=False)

    table = Table(show_header=True, show_lines=True)
    table.add_column("ELEMENT ID", overflow="fold")
    table.add_column("Section ID")
    table.add_column("NTIA minimum elements", overflow="fold")
    table.add_column("Result", overflow="fold")
    table.add_column("Score", justify="right")

    previous_element = None
    for section in sorted_sections(construct_sections(store)):
        section_id = section.section_id if section.required else f"{section.section_id}*"
        # merge consecutive rows of the same element
        element_cell = "" if section.element_id == previous_element else section.element_id
        previous_element = section.element_id
        table.add_row(
            element_cell,
            section_id,
            section.section_data_field,
            section.element_result,
            f"{section.score:0.1f}",
        )
    console.print(table)


def write_basic_report(store: RecordStore, file_name: str, stream: TextIO) -> None:
    score = aggregate_score(store)
    stream.write("NTIA Report\n")
    stream.write(
        f"Score:{score.total_score():0.1f} RequiredScore:{score.total_required_score():0.1f} "
        f"OptionalScore:{score.total_optional_score():0.1f} for {file_name}\n"
    )


RENDERERS = {
    "json": write_json_report,
    "detailed": write_detailed_report,
    "basic": write_basic_report,
}


def render_report(report_format: str, store: RecordStore, file_name: str, stream: TextIO) -> None:
    try:
        renderer = RENDERERS[report_format]
    except KeyError as exc:
        raise ValueError(f"unknown report format {report_format!r}") from exc
    renderer(store, file_name, stream)
