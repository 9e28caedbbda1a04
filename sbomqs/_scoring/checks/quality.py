"""Quality checks: license hygiene, lookup identifiers and authoring tools."""

from ..._licenses import LicenseSource
from ...models import Component, Document
from ...sniffer import primary_purposes
from ..protocol import Category, Check
from ..result import MAX_SCORE, Outcome
from .common import component_ratio, count_components, has_lookup_id


def _valid_license_share(comp: Component) -> float:
    if not comp.licenses:
        return 0.0
    valid = sum(1 for lic in comp.licenses if lic.source != LicenseSource.CUSTOM and not lic.deprecated)
    return valid / len(comp.licenses)


def comp_valid_licenses(doc: Document) -> Outcome:
    """Average share of non-deprecated registry licenses per component."""
    total = len(doc.components)
    if total == 0:
        return Outcome.not_applicable()
    shares = [_valid_license_share(c) for c in doc.components]
    with_valid = sum(1 for s in shares if s > 0)
    return Outcome(
        score=sum(shares) / total * MAX_SCORE,
        description=f"{with_valid}/{total} components with valid license",
    )


def comp_with_primary_purpose(doc: Document) -> Outcome:
    purposes = primary_purposes(doc.spec.spec_type)
    return component_ratio(
        doc,
        lambda c: bool(c.primary_purpose) and c.primary_purpose.lower() in purposes,
        "components have primary purpose specified",
    )


def _components_without(doc: Document, flag: str, what: str) -> Outcome:
    total = len(doc.components)
    if total == 0:
        return Outcome.not_applicable()
    if not any(c.licenses for c in doc.components):
        return Outcome(score=0.0, description="no licenses found")
    flagged = count_components(doc, lambda c: any(getattr(lic, flag) for lic in c.licenses))
    return Outcome(score=(total - flagged) / total * MAX_SCORE, description=f"{flagged}/{total} components have {what}")


def comp_with_deprecated_licenses(doc: Document) -> Outcome:
    return _components_without(doc, "deprecated", "deprecated licenses")


def comp_with_restrictive_licenses(doc: Document) -> Outcome:
    return _components_without(doc, "restrictive", "restricted licenses")


def comp_with_any_vuln_lookup_id(doc: Document) -> Outcome:
    return component_ratio(doc, has_lookup_id, "components have any lookup id")


def comp_with_multi_vuln_lookup_id(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: bool(c.purls and c.cpes), "components have multiple lookup id")


def sbom_with_creator_and_version(doc: Document) -> Outcome:
    total = len(doc.tools)
    complete = sum(1 for t in doc.tools if t.name and t.version)
    score = complete / total * MAX_SCORE if total else 0.0
    return Outcome(score=score, description=f"{complete}/{total} tools have creator and version")


def sbom_with_primary_component(doc: Document) -> Outcome:
    return Outcome.boolean(
        doc.primary_component.present, "primary component found", "no primary component found"
    )


CHECKS = [
    Check(Category.QUALITY, "comp_valid_licenses", "Components have valid spdx licenses", comp_valid_licenses),
    Check(
        Category.QUALITY,
        "comp_with_primary_purpose",
        "Components have primary purpose defined",
        comp_with_primary_purpose,
    ),
    Check(
        Category.QUALITY,
        "comp_with_deprecated_licenses",
        "Components have no deprecated licenses",
        comp_with_deprecated_licenses,
    ),
    Check(
        Category.QUALITY,
        "comp_with_restrictive_licenses",
        "Components have no restricted licenses",
        comp_with_restrictive_licenses,
    ),
    Check(
        Category.QUALITY,
        "comp_with_any_vuln_lookup_id",
        "Components have any vulnerability lookup id",
        comp_with_any_vuln_lookup_id,
    ),
    Check(
        Category.QUALITY,
        "comp_with_multi_vuln_lookup_id",
        "Components have multiple vulnerability lookup ids",
        comp_with_multi_vuln_lookup_id,
    ),
    Check(
        Category.QUALITY,
        "sbom_with_creator_and_version",
        "Doc has creator tool and version",
        sbom_with_creator_and_version,
    ),
    Check(
        Category.QUALITY,
        "sbom_with_primary_component",
        "Doc has primary component",
        sbom_with_primary_component,
    ),
]
