"""Parsing of SPDX free-text entity strings such as ``Organization: ACME (ops@acme.example)``."""

import re
from dataclasses import dataclass

_ENTITY_RE = re.compile(r"(Organization|Person)\s*:\s*([^(]+)\s*(?:\(\s*([^)]*)\s*\))?")
_NO_VALUE = {"NOASSERTION", "NONE"}


@dataclass(frozen=True)
class Entity:
    """A parsed person or organization."""

    kind: str
    name: str
    email: str = ""

    @property
    def is_organization(self) -> bool:
        return self.kind == "Organization"


def parse_entity(value: str | None) -> Entity | None:
    """Parse one ``Type: Name (email)`` string.

    Returns None for empty input, NOASSERTION / NONE, or text that does not
    follow the grammar.
    """
    if not value:
        return None
    text = value.strip().lstrip(":").strip()
    if not text or text.upper() in _NO_VALUE:
        return None

    match = _ENTITY_RE.search(text)
    if match is None:
        return None

    name = match.group(2).strip()
    if not name or name.upper() in _NO_VALUE:
        return None
    return Entity(kind=match.group(1), name=name, email=(match.group(3) or "").strip())


def parse_entities(value: str | None) -> list[Entity]:
    """Parse a string that may hold several comma separated entities.

    Example:
        >>> [e.name for e in parse_entities("Person: A (a@x.io), Organization: B")]
        ['A', 'B']
    """
    if not value:
        return []
    parts = re.split(r",\s*(?=(?:Organization|Person)\s*:)", value)
    entities = []
    for part in parts:
        entity = parse_entity(part)
        if entity is not None:
            entities.append(entity)
    return entities
