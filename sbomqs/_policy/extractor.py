"""Field values that policy rules are matched against."""

from typing import Callable, Dict, List

from ..models import Component, Document, Party

DOCUMENT_PREFIX = "sbom_"
NO_ASSERTION = "NOASSERTION"


def _party_values(party: Party) -> List[str]:
    return [v for v in (party.name, party.email, party.url) if v]


def _licenses(comp: Component) -> List[str]:
    """License ids, ``NOASSERTION`` when the component declares none."""
    ids = [lic.short_id for lic in comp.licenses if lic.short_id]
    return ids or [NO_ASSERTION]


COMPONENT_FIELDS: Dict[str, Callable[[Component], List[str]]] = {
    "name": lambda c: [c.name] if c.name else [],
    "version": lambda c: [c.version] if c.version else [],
    "license": _licenses,
    "purl": lambda c: list(c.purls),
    "cpe": lambda c: list(c.cpes),
    "copyright": lambda c: [c.copyright] if c.copyright else [],
    "downloadlocation": lambda c: [c.download_location] if c.download_location else [],
    "type": lambda c: [c.primary_purpose] if c.primary_purpose else [],
    "supplier": lambda c: _party_values(c.supplier),
    "author": lambda c: [v for a in c.authors for v in (a.name, a.email) if v],
    "checksum": lambda c: [cs.value for cs in c.checksums if cs.value],
}

DOCUMENT_FIELDS: Dict[str, Callable[[Document], List[str]]] = {
    "sbom_timestamp": lambda d: [d.spec.creation_timestamp] if d.spec.creation_timestamp else [],
    "sbom_author": lambda d: [v for a in d.authors for v in (a.name, a.email) if v],
    "sbom_supplier": lambda d: _party_values(d.supplier),
    "sbom_tool": lambda d: [t.name for t in d.tools if t.name],
    "sbom_lifecycle": lambda d: list(d.lifecycles),
    "sbom_pc": lambda d: [v for v in (d.primary_component.name, d.primary_component.id) if v],
}

ALIASES = {
    "licenses": "license",
    "download_location": "downloadlocation",
    "checksums": "checksum",
    "authors": "author",
    "sbom_primary_component": "sbom_pc",
}


def normalize_field(field: str) -> str:
    field = field.strip().lower()
    return ALIASES.get(field, field)


def is_document_field(field: str) -> bool:
    return normalize_field(field).startswith(DOCUMENT_PREFIX)


def known_field(field: str) -> bool:
    field = normalize_field(field)
    return field in COMPONENT_FIELDS or field in DOCUMENT_FIELDS


def component_values(comp: Component, field: str) -> List[str]:
    """Values of a component field; unknown fields have none."""
    getter = COMPONENT_FIELDS.get(normalize_field(field))
    return getter(comp) if getter else []


def document_values(doc: Document, field: str) -> List[str]:
    """Values of an ``sbom_`` document field; unknown fields have none."""
    getter = DOCUMENT_FIELDS.get(normalize_field(field))
    return getter(doc) if getter else []
