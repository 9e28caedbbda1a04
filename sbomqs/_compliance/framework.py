"""Framework definitions and the report built from a framework run."""

import dataclasses
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple

from .. import __version__
from ..logging_config import logger
from ..models import Document, SpecType
from .records import DOC_ELEMENT, ComplianceScore, Record, RecordDB

COMPLIANCE_ENGINE_VERSION = "1"
MAX_SCORE = 10.0


@dataclass(frozen=True)
class Section:
    """Row of a framework's section table."""

    title: str
    id: str
    data_field: str
    required: bool = True


@dataclass(frozen=True)
class Framework:
    """
    A compliance framework: its section table and the checks that fill it.

    Attributes:
        key: Short name used on the command line, e.g. ``ntia``
        report_name: Report title for JSON output
        heading: First line of the basic and detailed reports
        subtitle: Report subtitle
        revision: Framework revision the checks follow
        sections: Section per record key
        checks: Produces the records for a Document
        doc_label: Element id shown for document level records
        spec_types: Specifications the framework applies to
        has_maturity: Whether records carry a maturity level
    """

    key: str
    report_name: str
    heading: str
    subtitle: str
    revision: str
    sections: Mapping[str, Section]
    checks: Callable[[Document], Iterable[Record]]
    doc_label: str = "SBOM"
    spec_types: Tuple[SpecType, ...] = (SpecType.SPDX, SpecType.CYCLONEDX)
    has_maturity: bool = False

    def supports(self, doc: Document) -> bool:
        return doc.spec.spec_type in self.spec_types

    def evaluate(self, doc: Document) -> RecordDB:
        """Run every check and resolve each record's required flag from its section."""
        db = RecordDB()
        for record in self.checks(doc):
            if record.key not in self.sections:
                raise KeyError(f"{self.key}: no section for record key {record.key}")
            if record.required is None:
                record = dataclasses.replace(record, required=self.sections[record.key].required)
            db.add(record)
        logger.debug(f"{self.key} compliance produced {len(db)} records for {len(db.element_ids)} elements")
        return db


def _section_sort_key(section_id: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r"\d+", section_id))


@dataclass
class ComplianceResult:
    """Outcome of running one framework against one SBOM."""

    framework: Framework
    file_name: str
    db: RecordDB

    @property
    def score(self) -> ComplianceScore:
        return self.db.score()

    def sections(self) -> List[Dict[str, Any]]:
        """
        Report rows, document rows first, then each component in document order.

        Rows of one element are ordered by section id.
        """
        rows: List[Dict[str, Any]] = []
        for element_id in self.db.element_ids:
            element_rows = []
            for record in self.db.by_id(element_id):
                section = self.framework.sections[record.key]
                row: Dict[str, Any] = {
                    "section_title": section.title,
                    "section_id": section.id,
                    "section_data_field": section.data_field,
                    "required": record.required,
                    "element_id": self.framework.doc_label if element_id == DOC_ELEMENT else element_id,
                    "element_result": record.value,
                    "score": ComplianceScore.of(self.db.by_key_id(record.key, element_id)).total,
                }
                if self.framework.has_maturity:
                    row["maturity"] = record.maturity
                element_rows.append(row)
            element_rows.sort(key=lambda r: _section_sort_key(r["section_id"]))
            if element_id == DOC_ELEMENT:
                rows[:0] = element_rows
            else:
                rows.extend(element_rows)
        return rows

    def to_dict(self) -> Dict[str, Any]:
        score = self.score
        return {
            "report_name": self.framework.report_name,
            "subtitle": self.framework.subtitle,
            "revision": self.framework.revision,
            "run": {
                "id": str(uuid.uuid4()),
                "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
                "file_name": self.file_name,
                "compliance_engine_version": COMPLIANCE_ENGINE_VERSION,
            },
            "tool": {"name": "sbomqs", "version": __version__},
            "summary": {
                "max_score": MAX_SCORE,
                "total_score": round(score.total, 2),
                "required_elements_score": round(score.required, 2),
                "optional_elements_score": round(score.optional, 2),
            },
            "sections": self.sections(),
        }

    def basic_line(self) -> str:
        score = self.score
        return (
            f"Score:{score.total:0.1f} RequiredScore:{score.required:0.1f} "
            f"OptionalScore:{score.optional:0.1f} for {self.file_name}"
        )


def run_framework(framework: Framework, doc: Document, file_name: str) -> ComplianceResult:
    """
    Evaluate a Document against a framework.

    Raises:
        ValueError: If the framework does not apply to the Document's specification
    """
    if not framework.supports(doc):
        supported = ", ".join(s.value for s in framework.spec_types)
        raise ValueError(f"{framework.heading} only supports {supported} documents")
    return ComplianceResult(framework=framework, file_name=file_name, db=framework.evaluate(doc))
