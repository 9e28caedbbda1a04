"""Field helpers shared by the compliance frameworks."""

import posixpath
from datetime import datetime
from email.utils import parseaddr
from typing import Iterable, Optional, Tuple
from urllib.parse import urlparse

from ..models import Author, Checksum, Component, Document, Party, Tool

NO_VALUE = {"NONE", "NOASSERTION"}


def element_id(component: Component) -> str:
    """Short ``name-version`` label identifying a component in reports.

    Long names keep their first 12 and last 8 characters, long versions
    their first and last 6.
    """
    name = posixpath.basename(component.name)
    if len(name) > 20:
        name = f"{name[:12]}...{name[-8:]}"
    version = component.version
    if len(version) > 12:
        version = f"{version[:6]}...{version[-6:]}"
    return f"{name}-{version}"


def is_rfc3339(value: str) -> bool:
    """Full date-time with an explicit offset or ``Z``."""
    value = value.strip()
    if "T" not in value.upper():
        return False
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return False
    return parsed.tzinfo is not None


def is_valid_email(value: str) -> bool:
    value = value.strip()
    if not value:
        return False
    _, address = parseaddr(value)
    local, _, domain = address.partition("@")
    return bool(local and domain)


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value.strip())
    return bool(parsed.scheme and parsed.netloc)


def has_value(value: str) -> bool:
    """Non-blank and not an SPDX NONE/NOASSERTION placeholder."""
    return bool(value.strip()) and value.strip().upper() not in NO_VALUE


def tools_summary(tools: Iterable[Tool]) -> Optional[str]:
    names = [f"{t.name}-{t.version}" if t.version else t.name for t in tools if t.name]
    return ", ".join(names) or None


def authors_summary(authors: Iterable[Author], persons_only: bool = False) -> Optional[str]:
    """``name (email, phone)`` per author, None when nobody is named."""
    entries = []
    for author in authors:
        if persons_only and author.author_type != "person":
            continue
        parts = [author.name] if author.name else []
        contact = [v for v in (author.email, author.phone) if v]
        if contact:
            parts.append(f"({', '.join(contact)})")
        if parts:
            entries.append(" ".join(parts))
    return ", ".join(entries) or None


def party_summary(party: Party) -> Optional[str]:
    """Name and email, then URL, then the first contact of a supplier or manufacturer."""
    parts = []
    if party.name and party.email:
        parts.append(f"{party.name}, {party.email}")
    elif party.name or party.email:
        parts.append(party.name or party.email)
    if party.url:
        parts.append(party.url)
    for contact in party.contacts:
        detail = ", ".join(v for v in (contact.name, contact.email) if v)
        if detail:
            parts.append(detail)
            break
    return ", ".join(parts) or None


def party_contact(party: Party) -> Optional[str]:
    """First valid email or URL of a party, contacts last."""
    if is_valid_email(party.email):
        return party.email
    if is_valid_url(party.url):
        return party.url
    return next((c.email for c in party.contacts if is_valid_email(c.email)), None)


def checksum_strength(checksums: Iterable[Checksum]) -> Tuple[str, bool, bool]:
    """Algorithms present, and whether a weak (SHA-1/MD5) or strong (SHA-256+) one is among them."""
    weak = strong = False
    names = []
    for checksum in checksums:
        algorithm = checksum.algorithm.upper().replace("-", "")
        if not checksum.value:
            continue
        if algorithm in ("SHA1", "MD5"):
            weak = True
        elif algorithm in ("SHA256", "SHA384", "SHA512", "SHA3256", "SHA3384", "SHA3512", "BLAKE2B256", "BLAKE3"):
            strong = True
        names.append(checksum.algorithm)
    return ", ".join(names), weak, strong


def dependency_names(doc: Document, component_ids: Iterable[str]) -> Tuple[str, ...]:
    """Component names for ids, the id itself when no component matches."""
    names = []
    for component_id in component_ids:
        target = doc.component_by_id(component_id)
        names.append(target.name if target is not None and target.name else component_id)
    return tuple(names)
