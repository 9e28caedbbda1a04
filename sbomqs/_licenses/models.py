"""License value type produced by the license resolver."""

from dataclasses import dataclass
from enum import Enum


class LicenseSource(str, Enum):
    """Registry a license was resolved from."""

    SPDX = "spdx"
    ABOUTCODE = "aboutcode"
    CUSTOM = "custom"


@dataclass(frozen=True)
class License:
    """A resolved license.

    Instances come from the registry or from create_custom_license(); the
    flags describe the license list entry, not the usage in the SBOM.

    Attributes:
        name: Human-readable name (AboutCode key for AboutCode entries)
        short_id: SPDX short identifier or the raw token for custom licenses
        source: Registry that produced the entry
        deprecated: Listed as a deprecated identifier
        osi_approved: OSI approved according to the SPDX list
        fsf_libre: FSF libre according to the SPDX list
        restrictive: Copyleft or otherwise restricted category
        exception: SPDX/AboutCode license exception rather than a license
        free_any_use: Public domain style category
    """

    name: str
    short_id: str
    source: LicenseSource
    deprecated: bool = False
    osi_approved: bool = False
    fsf_libre: bool = False
    restrictive: bool = False
    exception: bool = False
    free_any_use: bool = False

    @property
    def is_custom(self) -> bool:
        return self.source == LicenseSource.CUSTOM

    @property
    def is_license_ref(self) -> bool:
        """Whether the identifier uses the document-local LicenseRef- convention."""
        return self.short_id.startswith("LicenseRef-")


def create_custom_license(short_id: str, name: str | None = None) -> License:
    """Create a custom license with every flag cleared.

    Args:
        short_id: Identifier as it appeared in the SBOM
        name: Optional display name, defaults to the identifier

    Returns:
        License with source ``custom``.
    """
    return License(name=name or short_id, short_id=short_id, source=LicenseSource.CUSTOM)
