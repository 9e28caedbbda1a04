"""BSI TR-03183-2 checks, versions 1.1 and 2.0.

Both versions share most component checks; 2.0 adds vulnerability,
build lifecycle, signature, BOM-link and declared/concluded license checks.
"""

from typing import Dict, List, Tuple

from ..._parsers.signature import verify_signature
from ...models import Document, SpecType
from ..protocol import Category, Check
from ..result import Outcome
from .common import component_ratio, has_lookup_id, has_sha256, is_blank, licenses_valid
from .ntia import comp_with_name, comp_with_supplier, comp_with_version, sbom_authors, sbom_creation_timestamp

BSI_VERSIONS: Dict[Category, Dict[SpecType, Tuple[str, ...]]] = {
    Category.BSI_V1_1: {
        SpecType.SPDX: ("SPDX-2.3",),
        SpecType.CYCLONEDX: ("1.4", "1.5", "1.6"),
    },
    Category.BSI_V2_0: {
        SpecType.SPDX: ("SPDX-2.2", "SPDX-2.3"),
        SpecType.CYCLONEDX: ("1.5", "1.6"),
    },
}


def _spec_with_version_compliant(category: Category):
    def check(doc: Document) -> Outcome:
        spec = doc.spec.spec_type
        version = doc.spec.version
        if spec not in (SpecType.SPDX, SpecType.CYCLONEDX):
            return Outcome(score=0.0, description=f"provided sbom spec: {spec.value} is not supported")
        if version in BSI_VERSIONS[category][spec]:
            return Outcome(
                score=10.0, description=f"provided sbom spec: {spec.value}, and version: {version} is supported"
            )
        return Outcome(
            score=5.0, description=f"provided sbom spec: {spec.value}, is supported but not version: {version}"
        )

    return check


def sbom_with_uri(doc: Document) -> Outcome:
    return Outcome.boolean(not is_blank(doc.spec.uri), "doc has URI", "doc has no URI")


def comp_with_uniq_id(doc: Document) -> Outcome:
    return component_ratio(doc, has_lookup_id, "have unique ID's")


def comp_with_sha256(doc: Document) -> Outcome:
    return component_ratio(doc, has_sha256, "have checksums")


def comp_with_source_code_uri(doc: Document) -> Outcome:
    if doc.spec.spec_type == SpecType.SPDX:
        return Outcome.not_applicable("no-deterministic-field in spdx")
    return component_ratio(doc, lambda c: not is_blank(c.source_code_url), "have source code URI")


def comp_with_executable_uri(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: not is_blank(c.download_location), "have executable URI")


def comp_with_source_code_hash(doc: Document) -> Outcome:
    if doc.spec.spec_type == SpecType.CYCLONEDX:
        return Outcome.not_applicable("no-deterministic-field in cdx")
    return component_ratio(doc, lambda c: not is_blank(c.source_code_hash), "have source code hash")


def comp_with_associated_license(doc: Document) -> Outcome:
    if doc.spec.spec_type == SpecType.SPDX:
        return component_ratio(doc, lambda c: licenses_valid(c.concluded_licenses), "have compliant licenses")
    return component_ratio(doc, lambda c: licenses_valid(c.licenses), "have compliant licenses")


def comp_with_concluded_license(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: licenses_valid(c.concluded_licenses), "have compliant concluded licenses")


def comp_with_declared_license(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: licenses_valid(c.declared_licenses), "have compliant declared licenses")


def comp_with_dependencies(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: c.has_relationships, "have dependencies")


def sbom_with_vuln(doc: Document) -> Outcome:
    if doc.spec.spec_type == SpecType.SPDX:
        return Outcome(score=10.0, description="no-deterministic-field in spdx")
    ids = [v.id for v in doc.vulnerabilities if v.id]
    if ids:
        return Outcome(score=0.0, description=f"vulnerabilities found: {', '.join(ids)}")
    return Outcome(score=10.0, description="no vulnerabilities found")


def sbom_build_process(doc: Document) -> Outcome:
    if doc.spec.spec_type == SpecType.SPDX:
        return Outcome.not_applicable("no-deterministic-field in spdx")
    return Outcome.boolean(
        "build" in doc.lifecycles, "doc has build phase in lifecycle", "doc has no build phase in lifecycle"
    )


def sbom_with_signature(doc: Document) -> Outcome:
    signature = doc.signature
    if signature is None or not signature.present:
        return Outcome.not_applicable("No signature provided")
    if not signature.public_key:
        return Outcome(score=0.0, description="No signature or public key provided!")
    if verify_signature(signature):
        return Outcome(score=10.0, description="Signature verification succeeded!")
    return Outcome(score=5.0, description="Signature provided but verification failed!")


def sbom_with_bomlinks(doc: Document) -> Outcome:
    links = doc.spec.external_doc_refs
    if not links:
        return Outcome(score=0.0, description="no bom links found")
    return Outcome(score=10.0, description=f"found {len(links)} bom links")


def _common_checks(category: Category) -> List[Check]:
    return [
        Check(
            category,
            "spec_with_version_compliant",
            "SBOM spec and version are BSI compliant",
            _spec_with_version_compliant(category),
        ),
        Check(category, "sbom_with_uri", "Doc has URI", sbom_with_uri),
        Check(category, "comp_with_name", "Components have names", comp_with_name),
        Check(category, "comp_with_version", "Components have versions", comp_with_version),
        Check(category, "comp_with_supplier", "Components have supplier names", comp_with_supplier),
        Check(category, "comp_with_uniq_id", "Components have unique ids", comp_with_uniq_id),
        Check(category, "comp_with_sha256", "Components have SHA-256 checksums", comp_with_sha256),
        Check(category, "comp_with_source_code_uri", "Components have source code URI", comp_with_source_code_uri),
        Check(category, "comp_with_executable_uri", "Components have executable URI", comp_with_executable_uri),
        Check(category, "comp_with_source_code_hash", "Components have source code hash", comp_with_source_code_hash),
        Check(
            category,
            "comp_with_associated_license",
            "Components have associated licenses",
            comp_with_associated_license,
        ),
        Check(category, "comp_with_dependencies", "Components have dependencies", comp_with_dependencies),
        Check(category, "sbom_authors", "Doc has authors", sbom_authors),
        Check(category, "sbom_creation_timestamp", "Doc has creation timestamp", sbom_creation_timestamp),
    ]


CHECKS_V1_1 = _common_checks(Category.BSI_V1_1)

CHECKS_V2_0 = _common_checks(Category.BSI_V2_0) + [
    Check(Category.BSI_V2_0, "sbom_with_vuln", "Doc lists no known vulnerabilities", sbom_with_vuln),
    Check(Category.BSI_V2_0, "sbom_build_process", "Doc was created during build", sbom_build_process),
    Check(Category.BSI_V2_0, "sbom_with_signature", "Doc has a verifiable signature", sbom_with_signature),
    Check(Category.BSI_V2_0, "sbom_with_bomlinks", "Doc links to other BOMs", sbom_with_bomlinks),
    Check(
        Category.BSI_V2_0,
        "comp_with_concluded_license",
        "Components have concluded licenses",
        comp_with_concluded_license,
    ),
    Check(
        Category.BSI_V2_0,
        "comp_with_declared_license",
        "Components have declared licenses",
        comp_with_declared_license,
    ),
]

CHECKS = CHECKS_V1_1 + CHECKS_V2_0
