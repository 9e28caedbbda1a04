"""Sharing check: can the SBOM itself be redistributed freely."""

from ..._licenses import get_license_registry
from ...models import Document
from ..protocol import Category, Check
from ..result import Outcome


def sbom_sharable(doc: Document) -> Outcome:
    registry = get_license_registry()
    licenses = doc.spec.licenses
    free = sum(1 for lic in licenses if lic.free_any_use or registry.is_free_any_use(lic.short_id))
    return Outcome(
        score=10.0 if licenses and free == len(licenses) else 0.0,
        description=f"doc has a sharable license free {free} :: of {len(licenses)}",
    )


CHECKS = [
    Check(Category.SHARING, "sbom_sharable", "Doc shareable license", sbom_sharable),
]
