"""NTIA minimum elements compliance."""

from typing import Iterator

from ..models import Component, Document, FileFormat, SpecType
from .common import authors_summary, dependency_names, element_id, is_rfc3339, party_summary, tools_summary
from .framework import Framework, Section
from .records import DOC_ELEMENT, Record

MACHINE_FORMATS = {FileFormat.JSON, FileFormat.XML, FileFormat.YAML, FileFormat.TAG_VALUE}

SECTIONS = {
    "sbom_machine_format": Section("Automation Support", "1.1", "Machine-Readable Formats"),
    "sbom_creator": Section("Required fields sboms", "2.1", "Author"),
    "sbom_timestamp": Section("Required fields sboms", "2.2", "Timestamp"),
    "sbom_dependency": Section("Required fields sboms", "2.3", "Dependencies"),
    "sbom_components": Section("Required fields components", "2.4", "Components"),
    "comp_name": Section("Required fields components", "2.4", "Package Name"),
    "comp_depth": Section("Required fields components", "2.5", "Dependencies on other components"),
    "comp_supplier": Section("Required fields component", "2.6", "Package Supplier"),
    "comp_version": Section("Required fields components", "2.7", "Package Version"),
    "comp_other_uniq_ids": Section("Required fields component", "2.8", "Other Uniq IDs"),
}


def _machine_format(doc: Document) -> Record:
    spec = doc.spec
    ok = spec.spec_type != SpecType.UNKNOWN and spec.file_format in MACHINE_FORMATS
    value = f"{spec.spec_type.value}, {spec.file_format.value}"
    return Record("sbom_machine_format", DOC_ELEMENT, value, 10.0 if ok else 0.0)


def _creator(doc: Document) -> Record:
    """SPDX credits tools before people; CycloneDX people, tools, supplier, then manufacturer."""
    if doc.spec.spec_type == SpecType.SPDX:
        candidates = (tools_summary(doc.tools), authors_summary(doc.authors))
    else:
        candidates = (
            authors_summary(doc.authors),
            tools_summary(doc.tools),
            party_summary(doc.supplier),
            party_summary(doc.manufacturer),
        )
    found = next((c for c in candidates if c), None)
    return Record("sbom_creator", DOC_ELEMENT, found or "", 10.0 if found else 0.0)


def _timestamp(doc: Document) -> Record:
    timestamp = doc.spec.creation_timestamp
    return Record("sbom_timestamp", DOC_ELEMENT, timestamp, 10.0 if is_rfc3339(timestamp) else 0.0)


def _dependency(doc: Document) -> Record:
    count = doc.primary_component.dependency_count
    return Record("sbom_dependency", DOC_ELEMENT, f"doc has {count} dependencies", 10.0 if count else 0.0)


def _component_records(doc: Document, comp: Component) -> Iterator[Record]:
    ident = element_id(comp)
    yield Record("comp_name", ident, comp.name, 10.0 if comp.name else 0.0)

    depends = dependency_names(doc, doc.dependencies_of(comp.id))
    yield Record("comp_depth", ident, ", ".join(depends) or "no-relationships", 10.0 if depends else 0.0)

    supplier = party_summary(comp.supplier) or party_summary(comp.manufacturer)
    yield Record("comp_supplier", ident, supplier or "", 10.0 if supplier else 0.0)
    yield Record("comp_version", ident, comp.version, 10.0 if comp.version else 0.0)
    yield _other_uniq_ids(doc, comp)


def _other_uniq_ids(doc: Document, comp: Component) -> Record:
    """SPDX scores the purl share of external refs; CycloneDX any purl or CPE, as an optional field."""
    if doc.spec.spec_type == SpecType.SPDX:
        total = len(comp.external_refs)
        purls = sum(1 for ref in comp.external_refs if ref.ref_type.lower() == "purl")
        if not purls:
            return Record("comp_other_uniq_ids", element_id(comp), "", 0.0)
        return Record("comp_other_uniq_ids", element_id(comp), f"purl:({purls}/{total})", purls / total * 10.0)

    identifier = next(iter(comp.purls + comp.cpes), "")
    return Record("comp_other_uniq_ids", element_id(comp), identifier, 10.0 if identifier else 0.0, required=False)


def checks(doc: Document) -> Iterator[Record]:
    yield _machine_format(doc)
    yield _creator(doc)
    yield _timestamp(doc)
    yield _dependency(doc)
    if not doc.components:
        yield Record("sbom_components", DOC_ELEMENT, "absent", 0.0)
        return
    for comp in doc.components:
        yield from _component_records(doc, comp)


NTIA = Framework(
    key="ntia",
    report_name="NTIA-minimum elements Compliance Report",
    heading="NTIA Report",
    subtitle="Part 2: Software Bill of Materials (SBOM)",
    revision="",
    sections=SECTIONS,
    checks=checks,
    doc_label="sbom",
)
