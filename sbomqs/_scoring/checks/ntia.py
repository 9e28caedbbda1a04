"""NTIA minimum elements."""

from typing import Set

from ...models import Document
from ..protocol import Category, Check
from ..result import Outcome
from .common import component_ratio, is_blank


def comp_with_supplier(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: not is_blank(c.supplier.name), "have supplier names")


def comp_with_name(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: not is_blank(c.name), "have names")


def comp_with_version(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: not is_blank(c.version), "have versions")


def comp_with_uniq_ids(doc: Document) -> Outcome:
    """Components with a PURL or CPE that no earlier component already used."""
    seen: Set[str] = set()
    unique = 0
    for comp in doc.components:
        identifiers = set(comp.purls) | set(comp.cpes)
        if identifiers and not identifiers & seen:
            unique += 1
        seen |= identifiers
    return Outcome.ratio(unique, len(doc.components), "have unique ID's")


def sbom_dependencies(doc: Document) -> Outcome:
    count = len(doc.relationships)
    return Outcome(score=10.0 if count else 0.0, description=f"doc has {count} relationships")


def sbom_authors(doc: Document) -> Outcome:
    total = sum(1 for a in doc.authors if a.present) + len(doc.tools)
    return Outcome(score=10.0 if total else 0.0, description=f"doc has {total} authors")


def sbom_creation_timestamp(doc: Document) -> Outcome:
    timestamp = doc.spec.creation_timestamp
    return Outcome.boolean(
        not is_blank(timestamp),
        f"doc has creation timestamp {timestamp}",
        "doc has no creation timestamp",
    )


CHECKS = [
    Check(Category.NTIA, "comp_with_supplier", "Components have supplier names", comp_with_supplier),
    Check(Category.NTIA, "comp_with_name", "Components have names", comp_with_name),
    Check(Category.NTIA, "comp_with_version", "Components have versions", comp_with_version),
    Check(Category.NTIA, "comp_with_uniq_ids", "Components have uniq ids", comp_with_uniq_ids),
    Check(Category.NTIA, "sbom_dependencies", "Doc has relationships", sbom_dependencies),
    Check(Category.NTIA, "sbom_authors", "Doc has authors", sbom_authors),
    Check(Category.NTIA, "sbom_creation_timestamp", "Doc has creation timestamp", sbom_creation_timestamp),
]
