"""Framing Software Component Transparency (3rd edition) compliance.

Every record carries a maturity level: None, Minimum (10), Recommended (12)
or Aspirational (15).
"""

from typing import Iterator, Set

from .._licenses import LicenseSource
from ..models import Component, Document
from .common import (
    authors_summary,
    checksum_strength,
    dependency_names,
    element_id,
    has_value,
    is_rfc3339,
    party_summary,
    tools_summary,
)
from .framework import Framework, Section
from .records import DOC_ELEMENT, Record

NONE = "None"
MINIMUM = "Minimum"
RECOMMENDED = "Recommended"
ASPIRATIONAL = "Aspirational"

SECTIONS = {
    "sbom_author": Section("SBOM Level", "2.2.1.1", "SBOM Author"),
    "sbom_timestamp": Section("SBOM Level", "2.2.1.2", "SBOM Timestamp"),
    "sbom_type": Section("SBOM Level", "2.2.1.3", "SBOM Type", required=False),
    "sbom_primary_component": Section("SBOM Level", "2.2.1.4", "Primary Component"),
    "comp_name": Section("Component Level", "2.2.2.1", "Component Name"),
    "comp_version": Section("Component Level", "2.2.2.2", "Component Version"),
    "comp_supplier": Section("Component Level", "2.2.2.3", "Component Supplier"),
    "comp_uniq_id": Section("Component Level", "2.2.2.4", "Component Unique ID"),
    "comp_checksum": Section("Component Level", "2.2.2.5", "Component Checksum"),
    "comp_relationship": Section("Component Level", "2.2.2.6", "Component Relationship"),
    "comp_license": Section("Component Level", "2.2.2.7", "Component License"),
    "comp_copyright": Section("Component Level", "2.2.2.8", "Component Copyright"),
}


def _record(key: str, element: str, value: str, score: float, maturity: str) -> Record:
    return Record(key, element, value, score, maturity=maturity)


def _minimum(key: str, element: str, value: str) -> Record:
    if value:
        return _record(key, element, value, 10.0, MINIMUM)
    return _record(key, element, "", 0.0, NONE)


def _author(doc: Document) -> Record:
    """Authors are the minimum; authors plus tools are recommended; tools alone do not count."""
    authors = authors_summary(doc.authors, persons_only=True)
    tools = tools_summary(doc.tools)
    if authors and tools:
        return _record("sbom_author", DOC_ELEMENT, f"{authors}, {tools}", 12.0, RECOMMENDED)
    if authors:
        return _record("sbom_author", DOC_ELEMENT, authors, 10.0, MINIMUM)
    return _record("sbom_author", DOC_ELEMENT, tools or "", 0.0, NONE)


def _timestamp(doc: Document) -> Record:
    timestamp = doc.spec.creation_timestamp
    if timestamp and is_rfc3339(timestamp):
        return _record("sbom_timestamp", DOC_ELEMENT, timestamp, 10.0, MINIMUM)
    return _record("sbom_timestamp", DOC_ELEMENT, timestamp, 0.0, NONE)


def _sbom_type(doc: Document) -> Record:
    lifecycle = next(iter(doc.lifecycles), "")
    if lifecycle:
        return _record("sbom_type", DOC_ELEMENT, lifecycle, 15.0, ASPIRATIONAL)
    return _record("sbom_type", DOC_ELEMENT, "", 0.0, NONE)


def _primary_component(doc: Document) -> Record:
    primary = doc.primary_component
    return _minimum("sbom_primary_component", DOC_ELEMENT, primary.name if primary.present else "")


def _uniq_ids(comp: Component) -> Record:
    found = [ids[0] for ids in (comp.purls, comp.cpes, comp.omnibor_ids, comp.swhids) if ids]
    if comp.swids:
        found.append(comp.swids[0].tag_id)
    return _minimum("comp_uniq_id", element_id(comp), ", ".join(v for v in found if v))


def _checksum(comp: Component) -> Record:
    """A strong hash on the primary component is recommended; any hash is the minimum."""
    ident = element_id(comp)
    names, weak, strong = checksum_strength(comp.checksums)
    if names and comp.is_primary and strong:
        return _record("comp_checksum", ident, names, 12.0, RECOMMENDED)
    if names and (weak or strong):
        return _record("comp_checksum", ident, names, 10.0, MINIMUM)
    return _record("comp_checksum", ident, "", 0.0, NONE)


def _relationship(doc: Document, comp: Component, primary_deps: Set[str], valid_primary: bool) -> Record:
    """
    Relationships only count when the primary component's dependencies are all listed.

    A direct dependency of the primary with its own dependencies is recommended,
    a leaf direct dependency or the primary itself is the minimum.
    """
    ident = element_id(comp)
    if valid_primary and comp.id in primary_deps:
        own = dependency_names(doc, doc.dependencies_of(comp.id))
        if own:
            return _record("comp_relationship", ident, ", ".join(own), 12.0, RECOMMENDED)
        return _record("comp_relationship", ident, "", 10.0, MINIMUM)
    if valid_primary and comp.is_primary:
        names = dependency_names(doc, doc.primary_component.dependencies)
        return _record("comp_relationship", ident, ", ".join(names), 10.0, MINIMUM)
    return _record("comp_relationship", ident, "", 0.0, NONE)


def _license(comp: Component) -> Record:
    """Registry licenses with names are recommended; any license is the minimum."""
    ident = element_id(comp)
    licenses = comp.licenses
    if not licenses:
        return _record("comp_license", ident, "", 0.0, NONE)
    value = ", ".join(lic.short_id for lic in licenses if lic.short_id)
    named = all(lic.name and lic.name != lic.short_id for lic in licenses)
    listed = all(lic.source != LicenseSource.CUSTOM for lic in licenses)
    if named and listed and all(lic.source == LicenseSource.SPDX for lic in licenses):
        return _record("comp_license", ident, value, 15.0, ASPIRATIONAL)
    if named and listed:
        return _record("comp_license", ident, value, 12.0, RECOMMENDED)
    return _record("comp_license", ident, value, 10.0, MINIMUM)


def _copyright(comp: Component) -> Record:
    text = comp.copyright.strip()
    if not has_value(text):
        return _record("comp_copyright", element_id(comp), "", 0.0, NONE)
    if len(text) > 50:
        text = f"{text[:50]}..."
    return _record("comp_copyright", element_id(comp), text, 10.0, MINIMUM)


def checks(doc: Document) -> Iterator[Record]:
    yield _author(doc)
    yield _timestamp(doc)
    yield _sbom_type(doc)
    yield _primary_component(doc)

    known = {comp.id for comp in doc.components}
    primary_deps = set(doc.primary_component.dependencies)
    valid_primary = bool(primary_deps) and primary_deps <= known

    for comp in doc.components:
        ident = element_id(comp)
        yield _minimum("comp_name", ident, comp.name)
        yield _minimum("comp_version", ident, comp.version)
        yield _minimum("comp_supplier", ident, party_summary(comp.supplier) or "")
        yield _uniq_ids(comp)
        yield _checksum(comp)
        yield _relationship(doc, comp, primary_deps, valid_primary)
        yield _license(comp)
        yield _copyright(comp)


FSCT = Framework(
    key="fsct",
    report_name="Framing Software Component Transparency (v3)",
    heading="Framing Software Component Transparency (v3)",
    subtitle="NTIA Minimum Elements 3rd Edition",
    revision="3rd Edition",
    sections=SECTIONS,
    checks=checks,
    doc_label="SBOM Level",
    has_maturity=True,
)
