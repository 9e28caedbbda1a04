"""Semantic checks: required fields, licenses and checksums."""

from ...models import Document
from ..protocol import Category, Check
from ..result import MAX_SCORE, Outcome
from .common import component_ratio, count_components


def sbom_required_fields(doc: Document) -> Outcome:
    """Blend of document and package required fields.

    Document and packages complete score 10, a complete document with
    incomplete packages averages 10 with the package ratio, and an incomplete
    document scores 0.
    """
    total = len(doc.components)
    doc_ok = doc.spec.required_fields
    complete = count_components(doc, lambda c: c.required_fields)
    pkgs_ok = total > 0 and complete == total

    if not doc_ok:
        score = 0.0
    elif pkgs_ok:
        score = MAX_SCORE
    else:
        pkg_score = complete / total * MAX_SCORE if total else 0.0
        score = (MAX_SCORE + pkg_score) / 2.0

    return Outcome(score=score, description=f"Doc Fields:{str(doc_ok).lower()} Pkg Fields:{str(pkgs_ok).lower()}")


def comp_with_licenses(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: len(c.licenses) > 0, "have licenses")


def comp_with_checksums(doc: Document) -> Outcome:
    return component_ratio(doc, lambda c: len(c.checksums) > 0, "have checksums")


CHECKS = [
    Check(Category.SEMANTIC, "sbom_required_fields", "Doc has all required fields", sbom_required_fields),
    Check(Category.SEMANTIC, "comp_with_licenses", "Components have licenses", comp_with_licenses),
    Check(Category.SEMANTIC, "comp_with_checksums", "Components have checksums", comp_with_checksums),
]
