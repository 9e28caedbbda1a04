"""Process-wide license registry.

The registry combines three read-only tables:

- the SPDX license list (bundled ``data/licenses.json``)
- the SPDX license exception list (bundled ``data/exceptions.json``)
- the ScanCode LicenseDB index shipped with ``license-expression``

It is built once, at import time, and never mutated afterwards.
"""

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from license_expression import get_license_index

from ..logging_config import logger
from .models import License, LicenseSource

SPDX_LICENSE_DATA = Path(__file__).parent / "data" / "licenses.json"
SPDX_EXCEPTION_DATA = Path(__file__).parent / "data" / "exceptions.json"


def _is_restrictive(category: str) -> bool:
    lowered = category.lower()
    return "copyleft" in lowered or "restricted" in lowered


def _is_free_any_use(category: str) -> bool:
    return "public" in category.lower()


def _read_list(path: Path) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load SPDX license list from {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


class LicenseRegistry:
    """Lookup tables for SPDX, SPDX exception and AboutCode licenses.

    Example:
        registry = LicenseRegistry.from_sources()
        mit = registry.lookup("MIT")
        assert mit is not None and mit.osi_approved
    """

    def __init__(
        self,
        spdx: Optional[Dict[str, License]] = None,
        exceptions: Optional[Dict[str, License]] = None,
        aboutcode: Optional[Dict[str, License]] = None,
        list_version: str = "",
    ) -> None:
        self._spdx: Dict[str, License] = dict(spdx or {})
        self._exceptions: Dict[str, License] = dict(exceptions or {})
        self._aboutcode: Dict[str, License] = dict(aboutcode or {})
        self.list_version = list_version

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_sources(
        cls,
        spdx_path: Path = SPDX_LICENSE_DATA,
        exceptions_path: Path = SPDX_EXCEPTION_DATA,
        aboutcode_index: Optional[Iterable[Dict[str, Any]]] = None,
    ) -> "LicenseRegistry":
        """Build a registry from the SPDX list files and the AboutCode index.

        Args:
            spdx_path: Path to an SPDX license-list-data ``licenses.json``
            exceptions_path: Path to an SPDX license-list-data ``exceptions.json``
            aboutcode_index: LicenseDB index entries; defaults to the index
                bundled with license-expression

        Returns:
            Populated LicenseRegistry. A table that fails to load is left
            empty and the failure is logged.
        """
        licenses_data = _read_list(spdx_path)
        exceptions_data = _read_list(exceptions_path)
        list_version = licenses_data.get("licenseListVersion", "")
        spdx = cls._load_spdx_licenses(licenses_data.get("licenses", []))
        exceptions = cls._load_spdx_exceptions(exceptions_data.get("exceptions", []))

        aboutcode: Dict[str, License] = {}
        try:
            entries = aboutcode_index if aboutcode_index is not None else get_license_index()
            aboutcode = cls._load_aboutcode(entries)
        except Exception as e:
            logger.error(f"Failed to load AboutCode license index: {e}")

        logger.debug(
            f"Loaded {len(spdx)} SPDX licenses, {len(exceptions)} exceptions "
            f"and {len(aboutcode)} AboutCode keys (SPDX list {list_version or 'unknown'})"
        )
        return cls(spdx=spdx, exceptions=exceptions, aboutcode=aboutcode, list_version=list_version)

    @staticmethod
    def _load_spdx_licenses(entries: List[Dict[str, Any]]) -> Dict[str, License]:
        table: Dict[str, License] = {}
        for entry in entries:
            license_id = entry.get("licenseId")
            if not license_id:
                continue
            table[license_id] = License(
                name=entry.get("name", license_id),
                short_id=license_id,
                source=LicenseSource.SPDX,
                deprecated=bool(entry.get("isDeprecatedLicenseId", False)),
                osi_approved=bool(entry.get("isOsiApproved", False)),
                fsf_libre=bool(entry.get("isFsfLibre", False)),
            )
        return table

    @staticmethod
    def _load_spdx_exceptions(entries: List[Dict[str, Any]]) -> Dict[str, License]:
        table: Dict[str, License] = {}
        for entry in entries:
            exception_id = entry.get("licenseExceptionId")
            if not exception_id:
                continue
            table[exception_id] = License(
                name=entry.get("name", exception_id),
                short_id=exception_id,
                source=LicenseSource.SPDX,
                deprecated=bool(entry.get("isDeprecatedLicenseId", False)),
                exception=True,
            )
        return table

    @staticmethod
    def _load_aboutcode(entries: Iterable[Dict[str, Any]]) -> Dict[str, License]:
        table: Dict[str, License] = {}
        for entry in entries:
            category = entry.get("category") or ""
            keys = [k for k in (entry.get("other_spdx_license_keys") or []) if k]
            if entry.get("spdx_license_key"):
                keys.append(entry["spdx_license_key"])
            for key in keys:
                table[key] = License(
                    name=entry.get("license_key", key),
                    short_id=key,
                    source=LicenseSource.ABOUTCODE,
                    deprecated=bool(entry.get("is_deprecated", False)),
                    restrictive=_is_restrictive(category),
                    exception=bool(entry.get("is_exception", False)),
                    free_any_use=_is_free_any_use(category),
                )
        return table

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, short_id: str) -> Optional[License]:
        """Resolve one identifier against SPDX, exceptions, then AboutCode.

        An SPDX hit keeps its SPDX flags; a matching AboutCode entry can only
        raise ``restrictive`` from False to True.
        """
        if not short_id:
            return None

        spdx_hit = self._spdx.get(short_id) or self._exceptions.get(short_id)
        aboutcode_hit = self._aboutcode.get(short_id)

        if spdx_hit is not None:
            if aboutcode_hit is not None and aboutcode_hit.restrictive and not spdx_hit.restrictive:
                return replace(spdx_hit, restrictive=True)
            return spdx_hit

        return aboutcode_hit

    def is_spdx(self, short_id: str) -> bool:
        return short_id in self._spdx

    def is_exception(self, short_id: str) -> bool:
        return short_id in self._exceptions

    def is_aboutcode(self, short_id: str) -> bool:
        return short_id in self._aboutcode

    def is_free_any_use(self, short_id: str) -> bool:
        """Whether the AboutCode category for this identifier is public domain like."""
        entry = self._aboutcode.get(short_id)
        return bool(entry and entry.free_any_use)

    def __len__(self) -> int:
        return len(self._spdx) + len(self._exceptions) + len(self._aboutcode)


# Built once at import; parsers resolve licenses against this instance.
_REGISTRY = LicenseRegistry.from_sources()


def get_license_registry() -> LicenseRegistry:
    """Return the process-wide license registry."""
    return _REGISTRY
