"""Per-feature evaluators used to list which components satisfy a feature.

Component evaluators and document evaluators both return ``(present, value)``
where value is what was found, for display.
"""

from typing import Callable, Dict, Iterable, Optional, Tuple

from .._licenses import License, LicenseSource, get_license_registry
from .._scoring import normalize_feature
from .._scoring.checks.common import has_lookup_id, has_sha256, is_blank, licenses_valid
from ..models import Component, Document, SpecType
from ..sniffer import SUPPORTED_FORMATS, primary_purposes, supported_spec_versions

Evaluation = Tuple[bool, str]
ComponentEvaluator = Callable[[Document, Component], Evaluation]
DocumentEvaluator = Callable[[Document], Evaluation]


def _text(value: str) -> Evaluation:
    return (not is_blank(value), value)


def _joined(values: Iterable[str]) -> Evaluation:
    values = [v for v in values if v]
    return (bool(values), ", ".join(values))


def _license_ids(comp: Component, licenses: Optional[Tuple[License, ...]] = None) -> str:
    return ", ".join(lic.short_id for lic in (comp.licenses if licenses is None else licenses))


def _valid_licenses(_doc: Document, comp: Component) -> Evaluation:
    valid = [lic for lic in comp.licenses if lic.source != LicenseSource.CUSTOM and not lic.deprecated]
    return (bool(valid), _license_ids(comp))


def _associated_license(doc: Document, comp: Component) -> Evaluation:
    licenses = comp.concluded_licenses if doc.spec.spec_type == SpecType.SPDX else comp.licenses
    return (licenses_valid(licenses), _license_ids(comp, licenses))


def _flagged_licenses(flag: str) -> ComponentEvaluator:
    def evaluate(_doc: Document, comp: Component) -> Evaluation:
        flagged = [lic.short_id for lic in comp.licenses if getattr(lic, flag)]
        return (bool(flagged), ", ".join(flagged))

    return evaluate


def _dependencies(doc: Document, comp: Component) -> Evaluation:
    names = []
    for dep in doc.dependencies_of(comp.id):
        target = doc.component_by_id(dep)
        names.append(target.name if target is not None and target.name else dep)
    return _joined(names)


def _primary_purpose(doc: Document, comp: Component) -> Evaluation:
    purpose = comp.primary_purpose
    return (bool(purpose) and purpose.lower() in primary_purposes(doc.spec.spec_type), purpose)


COMPONENT_FEATURES: Dict[str, ComponentEvaluator] = {
    "comp_with_name": lambda d, c: _text(c.name),
    "comp_with_version": lambda d, c: _text(c.version),
    "comp_with_supplier": lambda d, c: _text(c.supplier.name),
    "comp_with_uniq_ids": lambda d, c: _joined(c.purls + c.cpes),
    "comp_with_local_id": lambda d, c: _text(c.id),
    "comp_valid_licenses": _valid_licenses,
    "comp_with_licenses": lambda d, c: (bool(c.licenses), _license_ids(c)),
    "comp_with_checksums": lambda d, c: _joined(cs.algorithm for cs in c.checksums),
    "comp_with_sha256": lambda d, c: (has_sha256(c), ", ".join(cs.algorithm for cs in c.checksums)),
    "comp_with_source_code_uri": lambda d, c: _text(c.source_code_url),
    "comp_with_source_code_hash": lambda d, c: _text(c.source_code_hash),
    "comp_with_executable_uri": lambda d, c: _text(c.download_location),
    "comp_with_associated_license": _associated_license,
    "comp_with_concluded_license": lambda d, c: (
        licenses_valid(c.concluded_licenses),
        _license_ids(c, c.concluded_licenses),
    ),
    "comp_with_declared_license": lambda d, c: (
        licenses_valid(c.declared_licenses),
        _license_ids(c, c.declared_licenses),
    ),
    "comp_with_dependencies": _dependencies,
    "comp_with_any_vuln_lookup_id": lambda d, c: (has_lookup_id(c), ", ".join(c.purls + c.cpes)),
    "comp_with_multi_vuln_lookup_id": lambda d, c: (bool(c.purls and c.cpes), ", ".join(c.purls + c.cpes)),
    "comp_with_deprecated_licenses": _flagged_licenses("deprecated"),
    "comp_with_restrictive_licenses": _flagged_licenses("restrictive"),
    "comp_with_primary_purpose": _primary_purpose,
    "comp_with_purl": lambda d, c: _joined(c.purls),
    "comp_with_cpe": lambda d, c: _joined(c.cpes),
    "comp_with_copyright": lambda d, c: _text(c.copyright),
}


def _sharable(doc: Document) -> Evaluation:
    registry = get_license_registry()
    licenses = doc.spec.licenses
    free = all(lic.free_any_use or registry.is_free_any_use(lic.short_id) for lic in licenses)
    return (bool(licenses) and free, ", ".join(lic.short_id for lic in licenses))


def _tools_with_version(doc: Document) -> Evaluation:
    complete = [f"{t.name}-{t.version}" for t in doc.tools if t.name and t.version]
    return (bool(doc.tools) and len(complete) == len(doc.tools), ", ".join(complete))


def _yes_no(value) -> Evaluation:
    return (bool(value), "yes" if value else "no")


DOCUMENT_FEATURES: Dict[str, DocumentEvaluator] = {
    "sbom_creation_timestamp": lambda d: _text(d.spec.creation_timestamp),
    "sbom_authors": lambda d: _joined([a.name or a.email for a in d.authors] + [t.name for t in d.tools]),
    "sbom_build": lambda d: ("build" in d.lifecycles, ", ".join(d.lifecycles)),
    "sbom_with_creator_and_version": _tools_with_version,
    "sbom_with_primary_component": lambda d: (d.primary_component.present, d.primary_component.name),
    "sbom_dependencies": lambda d: (bool(d.relationships), f"{len(d.relationships)} relationships"),
    "sbom_sharable": _sharable,
    "sbom_parsable": lambda d: _yes_no(d.spec.parsable),
    "sbom_spec": lambda d: (d.spec.spec_type != SpecType.UNKNOWN, d.spec.spec_type.value),
    "sbom_spec_file_format": lambda d: (
        d.spec.file_format in SUPPORTED_FORMATS.get(d.spec.spec_type, ()),
        d.spec.file_format.value,
    ),
    "sbom_spec_version": lambda d: (d.spec.version in supported_spec_versions(d.spec.spec_type), d.spec.version),
    "sbom_with_uri": lambda d: _text(d.spec.uri),
    "sbom_with_vuln": lambda d: _joined(v.id for v in d.vulnerabilities),
    "sbom_with_bomlinks": lambda d: _joined(d.spec.external_doc_refs),
    "sbom_spdxid": lambda d: _text(d.spec.spdx_id),
    "sbom_organization": lambda d: _text(d.spec.organization),
    "sbom_schema_valid": lambda d: _yes_no(d.schema_valid),
    "sbom_license": lambda d: _joined(lic.short_id for lic in d.spec.licenses),
    "sbom_comment": lambda d: _text(d.spec.comment),
    "sbom_supplier": lambda d: _text(d.supplier.name or d.supplier.email or d.supplier.url),
}

FEATURE_ALIASES = {
    "comp_name": "comp_with_name",
    "comp_version": "comp_with_version",
    "comp_supplier": "comp_with_supplier",
    "comp_uniq_id": "comp_with_uniq_ids",
    "comp_with_uniq_id": "comp_with_uniq_ids",
    "comp_license": "comp_valid_licenses",
    "comp_with_checksums_sha256": "comp_with_sha256",
    "comp_hash": "comp_with_checksums",
    "comp_hash_sha256": "comp_with_sha256",
    "comp_source_code_url": "comp_with_source_code_uri",
    "comp_download_url": "comp_with_executable_uri",
    "comp_source_hash": "comp_with_source_code_hash",
    "comp_dependencies": "comp_with_dependencies",
    "comp_depth": "comp_with_dependencies",
    "comp_purpose": "comp_with_primary_purpose",
    "comp_purl": "comp_with_purl",
    "comp_cpe": "comp_with_cpe",
    "pack_copyright": "comp_with_copyright",
    "sbom_timestamp": "sbom_creation_timestamp",
    "sbom_creator": "sbom_authors",
    "sbom_lifecycle": "sbom_build",
    "sbom_tool": "sbom_with_creator_and_version",
    "sbom_primary_component": "sbom_with_primary_component",
    "sbom_uri": "sbom_with_uri",
    "sbom_namespace": "sbom_with_uri",
    "sbom_vulnerabilities": "sbom_with_vuln",
    "sbom_bomlinks": "sbom_with_bomlinks",
    "sbom_data_license": "sbom_license",
}


def resolve_feature(name: str) -> str:
    """Canonical feature key for a name, legacy scoring alias or list alias."""
    name = normalize_feature(name).lower()
    return FEATURE_ALIASES.get(name, name)


def available_features() -> Tuple[str, ...]:
    return tuple(COMPONENT_FEATURES) + tuple(DOCUMENT_FEATURES)
