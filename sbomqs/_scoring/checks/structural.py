"""Structural checks: is the document a supported, parsable, schema-valid SBOM."""

from ...models import Document, SpecType
from ...sniffer import SUPPORTED_FORMATS, supported_spec_versions
from ..protocol import Category, Check
from ..result import Outcome


def sbom_spec(doc: Document) -> Outcome:
    supported = ", ".join(s.value for s in (SpecType.SPDX, SpecType.CYCLONEDX))
    return Outcome.boolean(
        doc.spec.spec_type in (SpecType.SPDX, SpecType.CYCLONEDX),
        f"provided sbom is in a supported sbom format of {supported}",
        f"provided sbom format is not one of {supported}",
    )


def sbom_spec_version(doc: Document) -> Outcome:
    versions = supported_spec_versions(doc.spec.spec_type)
    return Outcome(
        score=10.0 if doc.spec.version in versions else 0.0,
        description=(
            f"provided sbom should be in supported spec version for spec:{doc.spec.version} "
            f"and versions: {','.join(versions)}"
        ),
    )


def sbom_spec_file_format(doc: Document) -> Outcome:
    formats = [f.value for f in SUPPORTED_FORMATS.get(doc.spec.spec_type, ())]
    return Outcome(
        score=10.0 if doc.spec.file_format.value in formats else 0.0,
        description=(
            f"provided sbom should be in supported file format for spec: {doc.spec.file_format.value} "
            f"and version: {','.join(formats)}"
        ),
    )


def sbom_parsable(doc: Document) -> Outcome:
    return Outcome.boolean(doc.spec.parsable, "provided sbom is parsable", "provided sbom is not parsable")


def sbom_schema_valid(doc: Document) -> Outcome:
    if doc.schema_valid is None:
        return Outcome.not_applicable("schema validation not performed")
    return Outcome.boolean(doc.schema_valid, "provided sbom is schema valid", "provided sbom is not schema valid")


CHECKS = [
    Check(Category.STRUCTURAL, "sbom_spec", "SBOM Specification", sbom_spec),
    Check(Category.STRUCTURAL, "sbom_spec_version", "Spec Version", sbom_spec_version),
    Check(Category.STRUCTURAL, "sbom_spec_file_format", "Spec File Format", sbom_spec_file_format),
    Check(Category.STRUCTURAL, "sbom_parsable", "Spec is parsable", sbom_parsable),
    Check(Category.STRUCTURAL, "sbom_schema_valid", "Spec is schema valid", sbom_schema_valid),
]
