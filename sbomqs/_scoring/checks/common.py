"""Helpers shared by the check modules."""

from typing import Callable, Iterable

from ..._licenses import License, LicenseSource
from ...models import Component, Document
from ..result import Outcome

ComponentPredicate = Callable[[Component], bool]

SHA256_ALGORITHMS = {"SHA256", "SHA-256"}


def is_blank(value: str) -> bool:
    return not value or not value.strip()


def count_components(doc: Document, predicate: ComponentPredicate) -> int:
    return sum(1 for comp in doc.components if predicate(comp))


def component_ratio(doc: Document, predicate: ComponentPredicate, what: str) -> Outcome:
    """Share of components satisfying *predicate*, N/A without components."""
    return Outcome.ratio(count_components(doc, predicate), len(doc.components), what)


def licenses_valid(licenses: Iterable[License]) -> bool:
    """All licenses come from a registry or use the LicenseRef- convention.

    An empty collection is not valid.
    """
    licenses = list(licenses)
    if not licenses:
        return False
    for lic in licenses:
        if lic.source == LicenseSource.CUSTOM and not (lic.is_license_ref or lic.name.startswith("LicenseRef-")):
            return False
    return True


def has_sha256(comp: Component) -> bool:
    return any(c.algorithm.upper() in SHA256_ALGORITHMS and c.value for c in comp.checksums)


def has_lookup_id(comp: Component) -> bool:
    return bool(comp.purls or comp.cpes)
