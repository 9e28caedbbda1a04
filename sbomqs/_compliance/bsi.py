"""BSI TR-03183-2 v1.1 compliance."""

from typing import Iterator

from .._licenses import License, LicenseSource
from ..models import Component, Document
from .common import dependency_names, element_id, is_rfc3339, is_valid_email, is_valid_url, party_contact
from .framework import Framework, Section
from .records import DOC_ELEMENT, Record

SECTIONS = {
    "sbom_creator": Section("Required fields sboms", "5.2.1", "creator of sbom"),
    "sbom_timestamp": Section("Required fields sboms", "5.2.1", "timestamp"),
    "sbom_components": Section("Required fields component", "5.2.2", "components"),
    "sbom_uri": Section("Additional fields sboms", "5.3.1", "SBOM-URI", required=False),
    "comp_creator": Section("Required fields component", "5.2.2", "component creator"),
    "comp_name": Section("Required fields components", "5.2.2", "component name"),
    "comp_version": Section("Required fields components", "5.2.2", "component version"),
    "comp_depth": Section("Required fields components", "5.2.2", "Dependencies on other components"),
    "comp_license": Section("Required fields components", "5.2.2", "License"),
    "comp_hash": Section("Required fields components", "5.2.2", "Hash value of the executable component"),
    "comp_source_code_url": Section("Additional fields components", "5.3.2", "Source code URI", required=False),
    "comp_download_url": Section(
        "Additional fields components", "5.3.2", "URI of the executable form of the component", required=False
    ),
    "comp_source_hash": Section(
        "Additional fields components", "5.3.2", "Hash value of the source code of the component", required=False
    ),
    "comp_other_uniq_ids": Section("Additional fields components", "5.3.2", "Other unique identifiers", required=False),
}


def _creator(doc: Document) -> Record:
    """First valid email among authors, then a manufacturer or supplier email or URL."""
    contact = next((a.email for a in doc.authors if is_valid_email(a.email)), None)
    contact = contact or party_contact(doc.manufacturer) or party_contact(doc.supplier)
    return Record("sbom_creator", DOC_ELEMENT, contact or "", 10.0 if contact else 0.0)


def _timestamp(doc: Document) -> Record:
    timestamp = doc.spec.creation_timestamp.strip()
    return Record("sbom_timestamp", DOC_ELEMENT, timestamp, 10.0 if is_rfc3339(timestamp) else 0.0)


def _uri(doc: Document) -> Record:
    uri = doc.spec.uri.strip()
    ok = is_valid_url(uri) or uri.startswith("urn:")
    return Record("sbom_uri", DOC_ELEMENT, uri, 10.0 if uri and ok else 0.0)


def _component_creator(comp: Component) -> Record:
    contact = next((a.email for a in comp.authors if is_valid_email(a.email)), None)
    contact = contact or party_contact(comp.manufacturer) or party_contact(comp.supplier)
    return Record("comp_creator", element_id(comp), contact or "", 10.0 if contact else 0.0)


def _dependencies(doc: Document, comp: Component) -> Record:
    """A component without outgoing edges complies; one pointing at an unknown component does not."""
    ident = element_id(comp)
    declared = doc.dependencies_of(comp.id)
    if not declared:
        return Record("comp_depth", ident, "no-dependencies", 10.0)
    if any(doc.component_by_id(dep) is None for dep in declared):
        return Record("comp_depth", ident, "broken-dependencies", 0.0)
    return Record("comp_depth", ident, ", ".join(n for n in dependency_names(doc, declared) if n), 10.0)


def _license_valid(lic: License) -> bool:
    key = lic.short_id.strip()
    if not key or key.upper() in ("NONE", "NOASSERTION"):
        return False
    if lic.source == LicenseSource.SPDX:
        return True
    return lic.source == LicenseSource.CUSTOM and key.startswith("LicenseRef-")


def _license(comp: Component) -> Record:
    """Concluded licenses are tried first, then declared ones."""
    candidates = comp.concluded_licenses + comp.declared_licenses
    if not candidates:
        candidates = comp.licenses
    if any(_license_valid(lic) for lic in candidates):
        result, score = "compliant", 10.0
    elif candidates:
        result, score = "non-compliant", 0.0
    else:
        result, score = "missing", 0.0
    return Record("comp_license", element_id(comp), result, score)


def _hash(comp: Component) -> Record:
    value = next(
        (c.value for c in comp.checksums if c.algorithm.upper().replace("-", "") == "SHA256" and c.value.strip()),
        "",
    )
    return Record("comp_hash", element_id(comp), value, 10.0 if value else 0.0)


def _url_record(key: str, comp: Component, url: str) -> Record:
    url = url.strip()
    ok = bool(url) and is_valid_url(url)
    return Record(key, element_id(comp), url if ok else "", 10.0 if ok else 0.0)


def _component_records(doc: Document, comp: Component) -> Iterator[Record]:
    ident = element_id(comp)
    yield _component_creator(comp)
    yield Record("comp_name", ident, comp.name.strip(), 10.0 if comp.name.strip() else 0.0)
    yield Record("comp_version", ident, comp.version.strip(), 10.0 if comp.version.strip() else 0.0)
    yield _dependencies(doc, comp)
    yield _license(comp)
    yield _hash(comp)
    yield _url_record("comp_source_code_url", comp, comp.source_code_url)
    yield _url_record("comp_download_url", comp, comp.download_location)
    source_hash = comp.source_code_hash.strip()
    yield Record("comp_source_hash", ident, source_hash, 10.0 if source_hash else 0.0)
    identifier = next((v.strip() for v in comp.purls + comp.cpes if v.strip()), "")
    yield Record("comp_other_uniq_ids", ident, identifier, 10.0 if identifier else 0.0)


def checks(doc: Document) -> Iterator[Record]:
    yield _creator(doc)
    yield _timestamp(doc)
    yield _uri(doc)
    if not doc.components:
        yield Record("sbom_components", DOC_ELEMENT, "", 0.0)
        return
    for comp in doc.components:
        yield from _component_records(doc, comp)
    yield Record("sbom_components", DOC_ELEMENT, "present", 10.0)


BSI = Framework(
    key="bsi",
    report_name="BSI TR-03183-2 v1.1 Compliance Report",
    heading="BSI TR-03183-2 v1.1 Compliance Report",
    subtitle="Part 2: Software Bill of Materials (SBOM)",
    revision="TR-03183-2 (1.1)",
    sections=SECTIONS,
    checks=checks,
)
