from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TextIO

from . import sbom_loader
from .checks import evaluate_ntia
from .config import get_settings
from .document import Document, NameIndex
from .report_builder import build_json_report, render_report
from .scorer import aggregate_score
from .storage import RecordStore

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ComplianceResult:
    file_name: str
    component_count: int
    record_count: int
    total_score: float
    required_score: float
    optional_score: float


class ComplianceService:
    def __init__(self, report_format: Optional[str] = None) -> None:
        settings = get_settings()
        self.settings = settings
        self.report_format = report_format or settings.report_format

    def score(self, document: Document, file_name: str, stream: Optional[TextIO] = None) -> ComplianceResult:
        """Evaluate one document with a fresh store, optionally rendering a report."""
        with RecordStore() as store:
            result = self._evaluate(document, file_name, store)
            if stream is not None:
                render_report(self.report_format, store, file_name, stream)
            return result

    def run(self, sbom_path: Path, stream: Optional[TextIO] = None) -> ComplianceResult:
        document = sbom_loader.load_sbom(sbom_path)
        return self.score(document, sbom_path.name, stream)

    def run_many(self, sbom_paths: Iterable[Path], stream: Optional[TextIO] = None) -> List[ComplianceResult]:
        """Score each file with its own store.

        JSON output for more than one file is written as a single array.
        """
        paths = list(sbom_paths)
        if stream is None or self.report_format != "json" or len(paths) < 2:
            return [self.run(path, stream) for path in paths]

        results: List[ComplianceResult] = []
        reports: List[Dict[str, Any]] = []
        for path in paths:
            document = sbom_loader.load_sbom(path)
            with RecordStore() as store:
                results.append(self._evaluate(document, path.name, store))
                reports.append(build_json_report(store, path.name))
        stream.write(json.dumps(reports, indent=2))
        stream.write("\n")
        return results

    @staticmethod
    def json_report(payload: Any, file_name: str) -> Dict[str, Any]:
        document = sbom_loader.parse_sbom(payload)
        with RecordStore() as store:
            evaluate_ntia(document, store, NameIndex.from_document(document))
            return build_json_report(store, file_name)

    @staticmethod
    def _evaluate(document: Document, file_name: str, store: RecordStore) -> ComplianceResult:
        record_count = evaluate_ntia(document, store, NameIndex.from_document(document))
        score = aggregate_score(store)
        LOGGER.info("scored %s: %.1f over %d records", file_name, score.total_score(), record_count)
        return ComplianceResult(
            file_name=file_name,
            component_count=len(document.components()),
            record_count=record_count,
            total_score=score.total_score(),
            required_score=score.total_required_score(),
            optional_score=score.total_optional_score(),
        )
