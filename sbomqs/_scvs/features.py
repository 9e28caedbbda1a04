"""SCVS (OWASP Software Component Verification Standard) SBOM predicates.

Each predicate answers one verification requirement for a whole Document.
"""

from .._licenses import LicenseSource
from .._parsers.signature import verify_signature
from ..models import Document, SpecType

_NO_VALUE = {"", "NONE", "NOASSERTION"}


def is_machine_readable(doc: Document) -> bool:
    """2.1 SBOM is in a standard machine readable format."""
    return doc.spec.spec_type in (SpecType.SPDX, SpecType.CYCLONEDX) and doc.spec.parsable


def is_creation_automated(doc: Document) -> bool:
    """2.3 SBOM creation is automated: a tool with name and version is recorded."""
    return any(t.name and t.version for t in doc.tools)


def has_unique_id(doc: Document) -> bool:
    """2.3 Each SBOM has a unique identifier."""
    return bool(doc.spec.namespace.strip())


def has_signature(doc: Document) -> bool:
    """2.4 SBOM is signed."""
    return doc.signature is not None and doc.signature.present


def is_signature_correct(doc: Document) -> bool:
    """2.5 The signature carries everything needed to verify it."""
    signature = doc.signature
    return bool(signature and signature.present and signature.algorithm and signature.public_key)


def is_signature_verified(doc: Document) -> bool:
    """2.6 The signature verifies against the embedded public key."""
    return verify_signature(doc.signature)


def is_timestamped(doc: Document) -> bool:
    """2.7 SBOM is timestamped."""
    return bool(doc.spec.creation_timestamp.strip())


def is_analyzed_for_risk(doc: Document) -> bool:
    """2.8 SBOM is analyzed for risk; not expressible in the document."""
    return False


def has_dependency_inventory(doc: Document) -> bool:
    """2.9 SBOM contains a complete inventory of the primary component's dependencies."""
    return doc.primary_component.present and doc.primary_component.has_dependencies


def has_test_inventory(doc: Document) -> bool:
    """2.10 SBOM contains an inventory of test components; not expressible."""
    return False


def has_primary_component(doc: Document) -> bool:
    """2.11 SBOM identifies its primary component."""
    return doc.primary_component.present


def components_have_identity(doc: Document) -> bool:
    """2.12 Every component has an identifier in a standard format."""
    return bool(doc.components) and all(c.purls or c.cpes or c.swhids or c.swids for c in doc.components)


def components_have_origin(doc: Document) -> bool:
    """2.13 Every component's point of origin is identified (PURL)."""
    return bool(doc.components) and all(c.purls for c in doc.components)


def components_have_licenses(doc: Document) -> bool:
    """2.14 Every component has license information."""
    return bool(doc.components) and all(c.licenses for c in doc.components)


def components_have_verified_licenses(doc: Document) -> bool:
    """2.15 Every component license resolves against a license list."""
    return components_have_licenses(doc) and all(
        lic.source != LicenseSource.CUSTOM for c in doc.components for lic in c.licenses
    )


def components_have_copyright(doc: Document) -> bool:
    """2.16 Every component has a copyright statement."""
    return bool(doc.components) and all(c.copyright.strip().upper() not in _NO_VALUE for c in doc.components)


def components_have_modifications(doc: Document) -> bool:
    """2.17 Modified components carry pedigree; not expressible in the model."""
    return False


def components_have_hash(doc: Document) -> bool:
    """2.18 Every component has a checksum."""
    return bool(doc.components) and all(c.checksums for c in doc.components)
