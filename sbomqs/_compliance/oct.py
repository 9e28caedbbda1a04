"""OpenChain Telco SBOM guide compliance, SPDX documents only."""

from typing import Iterator, Tuple

from .._licenses import License
from ..models import Component, Document, FileFormat, SpecType
from .common import has_value, is_rfc3339, is_valid_email
from .framework import Framework, Section
from .records import DOC_ELEMENT, Record

OCT_FORMATS = {FileFormat.JSON, FileFormat.TAG_VALUE}

SECTIONS = {
    "sbom_spec": Section("SBOM Format", "3.1.1", "SBOM data format"),
    "sbom_spec_version": Section("SPDX Elements", "3.1.2", "Spec version"),
    "sbom_spdxid": Section("SPDX Elements", "3.1.3", "Spec spdxid"),
    "sbom_org": Section("SBOM Build Information", "3.1.4", "SBOM creator organization"),
    "sbom_comment": Section("SPDX Elements", "3.1.5", "SBOM creator comment"),
    "sbom_namespace": Section("SPDX Elements", "3.1.6", "SBOM namespace"),
    "sbom_license": Section("SPDX Elements", "3.1.7", "SBOM license"),
    "sbom_name": Section("SPDX Elements", "3.1.8", "SBOM name"),
    "sbom_timestamp": Section("SPDX Elements", "3.1.9", "SBOM timestamp"),
    "sbom_tool": Section("SBOM Build Information", "3.1.10", "SBOM creator tool"),
    "sbom_machine_format": Section("Machine Readable Data Format", "3.1.11", "SBOM machine readable format"),
    "sbom_human_format": Section("Human Readable Data Format", "3.1.12", "SBOM human readable format"),
    "sbom_delivery_time": Section("Timing of SBOM delivery", "3.1.14", "SBOM delivery time"),
    "sbom_delivery_method": Section("Method of SBOM delivery", "3.1.15", "SBOM delivery method"),
    "sbom_scope": Section("SBOM Scope", "3.1.16", "SBOM scope"),
    "pack_info": Section("SPDX Elements", "3.2.1", "Package info"),
    "pack_name": Section("SPDX Elements", "3.2.2", "Package name"),
    "pack_spdxid": Section("SPDX Elements", "3.2.3", "Package spdxid"),
    "pack_version": Section("SPDX Elements", "3.2.4", "Package version"),
    "pack_file_analyzed": Section("SPDX Elements", "3.2.5", "FileAnalyze"),
    "pack_download_url": Section("SPDX Elements", "3.2.6", "Package download URL"),
    "pack_hash": Section("SPDX Elements", "3.2.7", "Package checksum"),
    "pack_supplier": Section("SPDX Elements", "3.2.8", "Package supplier"),
    "pack_license_con": Section("SPDX Elements", "3.2.9", "Package concluded License"),
    "pack_license_dec": Section("SPDX Elements", "3.2.10", "Package declared License"),
    "pack_copyright": Section("SPDX Elements", "3.2.11", "Package copyright"),
    "pack_ext_ref": Section("SPDX Elements", "3.2.12", "Package external References"),
}


def _present(key: str, element: str, value: str) -> Record:
    return Record(key, element, value, 10.0 if value else 0.0)


def _document_records(doc: Document) -> Iterator[Record]:
    spec = doc.spec
    yield Record("sbom_spec", DOC_ELEMENT, spec.spec_type.value, 10.0 if spec.spec_type == SpecType.SPDX else 0.0)
    yield _present("sbom_spec_version", DOC_ELEMENT, spec.version)
    yield _present("sbom_spdxid", DOC_ELEMENT, spec.spdx_id)
    yield _present("sbom_comment", DOC_ELEMENT, spec.comment)
    yield _present("sbom_namespace", DOC_ELEMENT, spec.namespace)
    yield _present("sbom_license", DOC_ELEMENT, ", ".join(lic.name for lic in spec.licenses if lic.name))
    yield _present("sbom_name", DOC_ELEMENT, spec.name)

    timestamp = spec.creation_timestamp
    yield Record("sbom_timestamp", DOC_ELEMENT, timestamp, 10.0 if is_rfc3339(timestamp) else 0.0)

    format_score = 10.0 if spec.file_format in OCT_FORMATS else 0.0
    yield Record("sbom_machine_format", DOC_ELEMENT, f"{spec.spec_type.value}, {spec.file_format.value}", format_score)
    yield Record("sbom_human_format", DOC_ELEMENT, spec.file_format.value, format_score)

    yield _present("sbom_tool", DOC_ELEMENT, next((t.name for t in doc.tools if t.name), ""))
    yield _present("sbom_org", DOC_ELEMENT, spec.organization)

    # Delivery and scope are agreed out of band and never recorded in SPDX.
    for key in ("sbom_delivery_time", "sbom_delivery_method", "sbom_scope"):
        yield Record(key, DOC_ELEMENT, "unknown", 0.0)


def _license_text(licenses: Tuple[License, ...]) -> str:
    return " AND ".join(lic.short_id for lic in licenses if has_value(lic.short_id))


def _ext_refs(comp: Component) -> Record:
    """Share of external references that are purls."""
    total = len(comp.external_refs)
    purls = sum(1 for ref in comp.external_refs if ref.ref_type.lower() == "purl")
    last = comp.external_refs[-1].ref_type if comp.external_refs else ""
    if not purls:
        return Record("pack_ext_ref", comp.id, last, 0.0)
    return Record("pack_ext_ref", comp.id, f"{last}:({purls}/{total})", purls / total * 10.0)


def _component_records(comp: Component) -> Iterator[Record]:
    ident = comp.id
    yield _present("pack_name", ident, comp.name)
    yield _present("pack_spdxid", ident, comp.id)
    yield _present("pack_version", ident, comp.version)

    supplier_email = comp.supplier.email if is_valid_email(comp.supplier.email) else ""
    yield _present("pack_supplier", ident, supplier_email)
    yield _present("pack_download_url", ident, comp.download_location)
    analyzed = comp.files_analyzed
    yield Record("pack_file_analyzed", ident, "yes" if analyzed else "no", 10.0 if analyzed else 0.0)

    sha256 = next((c.value for c in comp.checksums if c.algorithm.upper().replace("-", "") == "SHA256"), "")
    yield _present("pack_hash", ident, sha256)
    yield _present("pack_license_con", ident, _license_text(comp.concluded_licenses))
    yield _present("pack_license_dec", ident, _license_text(comp.declared_licenses))
    yield _present("pack_copyright", ident, comp.copyright if has_value(comp.copyright) else "")
    yield _ext_refs(comp)


def checks(doc: Document) -> Iterator[Record]:
    yield from _document_records(doc)
    if not doc.components:
        yield Record("pack_info", DOC_ELEMENT, "", 0.0)
        return
    for comp in doc.components:
        yield from _component_records(comp)
    yield Record("pack_info", DOC_ELEMENT, "present", 10.0)


OCT = Framework(
    key="oct",
    report_name="Open Chain Telco Report",
    heading="OpenChain Telco Report",
    subtitle="Part 2: Software Bill of Materials (SBOM)",
    revision="",
    sections=SECTIONS,
    checks=checks,
    spec_types=(SpecType.SPDX,),
)
