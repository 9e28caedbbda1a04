"""Validators for software identifiers found in SBOMs.

Covers Package URLs, CPE 2.2 / 2.3 names, Software Heritage identifiers
(SWHID), SWID tags and OmniBOR gitoids.
"""

import re
from dataclasses import dataclass

from packageurl import PackageURL

# CPE 2.2 URI binding: only the prefix is checked.
_CPE22 = r"[c][pP][eE]:/[AHOaho]?(:[A-Za-z0-9._\-~%]*){0,6}"

# One CPE 2.3 formatted-string component. Plain characters, quoted
# punctuation, or a lone logical value (* or -).
_CPE23_COMPONENT = (
    r"(((\?*|\*?)([a-zA-Z0-9\-._()]|(\\[\\*?!\"#$%&'()+,/:;<=>@\[\]^`{|}~]))+(\?*|\*?))|[*\-])"
)
_CPE23_LANGUAGE = r"(([a-zA-Z]{2,3}(-([a-zA-Z]{2}|[0-9]{3}))?)|[*\-])"
_CPE23 = rf"cpe:2\.3:[aho*\-](:{_CPE23_COMPONENT}){{5}}(:{_CPE23_LANGUAGE})(:{_CPE23_COMPONENT}){{4}}$"

CPE_PATTERN = re.compile(rf"{_CPE22}|{_CPE23}")
SWHID_PATTERN = re.compile(r"^swh:1:cnt:[a-fA-F0-9]{40}$")
OMNIBOR_PATTERN = re.compile(r"^gitoid:blob:(sha1:[a-fA-F0-9]{40}|sha256:[a-fA-F0-9]{64})$")


def is_valid_purl(purl: str | None) -> bool:
    """Check whether a string parses as a Package URL."""
    if not purl:
        return False
    try:
        PackageURL.from_string(purl)
    except ValueError:
        return False
    return True


def is_valid_cpe(cpe: str | None) -> bool:
    """Check whether a string is a CPE 2.2 URI or a CPE 2.3 formatted string."""
    if not cpe:
        return False
    return CPE_PATTERN.match(cpe) is not None


def is_valid_swhid(swhid: str | None) -> bool:
    """Check for a Software Heritage content identifier (``swh:1:cnt:<sha1>``)."""
    return bool(swhid) and SWHID_PATTERN.match(swhid) is not None


def is_valid_omnibor_id(omnibor_id: str | None) -> bool:
    """Check for an OmniBOR blob gitoid (sha1 or sha256)."""
    return bool(omnibor_id) and OMNIBOR_PATTERN.match(omnibor_id) is not None


@dataclass(frozen=True)
class Swid:
    """ISO/IEC 19770-2 software identification tag reference."""

    tag_id: str
    name: str = ""

    @property
    def valid(self) -> bool:
        return bool(self.tag_id)

    def __str__(self) -> str:
        return self.tag_id
