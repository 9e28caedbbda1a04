"""SBOM format detection.

Detection runs a fixed sequence of trial decodes over one in-memory buffer:

1. SPDX 3 JSON-LD (``@context`` pointing at ``spdx.org/rdf/3``)
2. SPDX 2 JSON (``SPDXID`` starting with ``SPDX``)
3. CycloneDX JSON (``bomFormat == "CycloneDX"``)
4. CycloneDX XML (root namespace ``http://cyclonedx.org/...``) or SPDX RDF/XML
5. SPDX tag-value (first non-blank line starts with ``SPDX``)
6. SPDX YAML (``SPDXID`` starting with ``SPDX``)

The first match wins. A failed trial only means "not this format".
"""

import io
import json
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Union

import yaml

from .logging_config import logger
from .models import FileFormat, SpecType

CYCLONEDX_VERSIONS = ("1.0", "1.1", "1.2", "1.3", "1.4", "1.5", "1.6")
SPDX_VERSIONS = ("SPDX-2.1", "SPDX-2.2", "SPDX-2.3")
SPDX3_VERSIONS = ("3.0", "3.0.0", "3.0.1")
SPDX3_LATEST_VERSION = "3.0.1"

SPDX_PRIMARY_PURPOSES = (
    "application",
    "framework",
    "library",
    "container",
    "operating-system",
    "device",
    "firmware",
    "source",
    "archive",
    "file",
    "install",
    "other",
)

CYCLONEDX_PRIMARY_PURPOSES = (
    "application",
    "framework",
    "library",
    "container",
    "operating-system",
    "device",
    "firmware",
    "file",
)

SUPPORTED_FORMATS = {
    SpecType.CYCLONEDX: (FileFormat.JSON, FileFormat.XML),
    SpecType.SPDX: (FileFormat.JSON, FileFormat.YAML, FileFormat.RDF, FileFormat.TAG_VALUE),
}

_SPDX3_CONTEXT_RE = re.compile(r"spdx\.org/rdf/3")
_SPDX3_VERSION_RE = re.compile(r"spdx\.org/rdf/(\d+\.\d+(?:\.\d+)?)/")
_SPDX_RDF_TERMS_RE = re.compile(r"spdx\.org/rdf/terms")
_CYCLONEDX_NS_RE = re.compile(r"^\{(http://cyclonedx\.org/[^}]*)\}")
_RDF_ROOT = "{http://www.w3.org/1999/02/22-rdf-syntax-ns#}RDF"


@dataclass(frozen=True)
class FormatInfo:
    """Result of format detection."""

    spec: SpecType
    file_format: FileFormat
    version: str = ""

    @property
    def is_spdx3(self) -> bool:
        return self.spec == SpecType.SPDX and self.version.startswith("3")

    @property
    def known(self) -> bool:
        return self.spec != SpecType.UNKNOWN

    @classmethod
    def unknown(cls) -> "FormatInfo":
        return cls(spec=SpecType.UNKNOWN, file_format=FileFormat.UNKNOWN, version="")


def supported_spec_versions(spec: SpecType) -> tuple[str, ...]:
    if spec == SpecType.CYCLONEDX:
        return CYCLONEDX_VERSIONS
    if spec == SpecType.SPDX:
        return SPDX_VERSIONS + SPDX3_VERSIONS
    return ()


def primary_purposes(spec: SpecType) -> tuple[str, ...]:
    """Primary-purpose vocabulary of a specification."""
    if spec == SpecType.CYCLONEDX:
        return CYCLONEDX_PRIMARY_PURPOSES
    if spec == SpecType.SPDX:
        return SPDX_PRIMARY_PURPOSES
    return ()


# ---------------------------------------------------------------------------
# SPDX 3 helpers
# ---------------------------------------------------------------------------


def _context_strings(data: dict) -> list[str]:
    ctx = data.get("@context")
    if isinstance(ctx, str):
        return [ctx]
    if isinstance(ctx, list):
        return [c for c in ctx if isinstance(c, str)]
    if isinstance(ctx, dict):
        return [v for v in ctx.values() if isinstance(v, str)]
    return []


def is_spdx3(data: Any) -> bool:
    """Return ``True`` if *data* looks like an SPDX 3.x JSON-LD document."""
    if not isinstance(data, dict):
        return False
    return any(_SPDX3_CONTEXT_RE.search(c) for c in _context_strings(data))


def extract_spdx3_version(data: dict) -> str:
    """Spec version of an SPDX 3 document.

    Looks at CreationInfo ``specVersion`` values first, then the ``@context``
    URL, and falls back to the latest supported version.
    """
    graph = data.get("@graph")
    if isinstance(graph, list):
        for elem in graph:
            if not isinstance(elem, dict):
                continue
            if (elem.get("type") or elem.get("@type")) == "CreationInfo" and elem.get("specVersion"):
                return str(elem["specVersion"])
            ci = elem.get("creationInfo")
            if isinstance(ci, dict) and ci.get("specVersion"):
                return str(ci["specVersion"])

    for ctx in _context_strings(data):
        match = _SPDX3_VERSION_RE.search(ctx)
        if match:
            return match.group(1)

    return SPDX3_LATEST_VERSION


# ---------------------------------------------------------------------------
# Trials
# ---------------------------------------------------------------------------


def _try_json(stream: BinaryIO) -> Optional[FormatInfo]:
    stream.seek(0)
    try:
        data = json.load(stream)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None

    if is_spdx3(data):
        return FormatInfo(SpecType.SPDX, FileFormat.JSON, extract_spdx3_version(data))

    spdx_id = data.get("SPDXID")
    if isinstance(spdx_id, str) and spdx_id.startswith("SPDX"):
        return FormatInfo(SpecType.SPDX, FileFormat.JSON, str(data.get("spdxVersion", "")))

    if data.get("bomFormat") == "CycloneDX":
        return FormatInfo(SpecType.CYCLONEDX, FileFormat.JSON, str(data.get("specVersion", "")))

    return None


def _try_xml(stream: BinaryIO) -> Optional[FormatInfo]:
    stream.seek(0)
    try:
        root = ET.parse(stream).getroot()
    except ET.ParseError:
        return None

    match = _CYCLONEDX_NS_RE.match(root.tag)
    if match:
        namespace = match.group(1)
        return FormatInfo(SpecType.CYCLONEDX, FileFormat.XML, namespace.rstrip("/").rsplit("/", 1)[-1])

    if root.tag == _RDF_ROOT:
        stream.seek(0)
        raw = stream.read().decode("utf-8", errors="replace")
        if _SPDX_RDF_TERMS_RE.search(raw):
            version_match = re.search(r"SPDX-\d+\.\d+", raw)
            return FormatInfo(SpecType.SPDX, FileFormat.RDF, version_match.group(0) if version_match else "")

    return None


def _try_tag_value(stream: BinaryIO) -> Optional[FormatInfo]:
    stream.seek(0)
    try:
        text = stream.read().decode("utf-8")
    except UnicodeDecodeError:
        return None

    first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
    if not first_line.startswith("SPDX"):
        return None

    # SPDX YAML may also start with an "SPDXID" key but spells the version key spdxVersion.
    version = ""
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        if key.strip().strip("\"'") == "spdxVersion":
            return None
        if not version and key.strip() == "SPDXVersion":
            version = value.strip()
    return FormatInfo(SpecType.SPDX, FileFormat.TAG_VALUE, version)


def _try_yaml(stream: BinaryIO) -> Optional[FormatInfo]:
    stream.seek(0)
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError:
        return None
    if not isinstance(data, dict):
        return None

    spdx_id = data.get("SPDXID")
    if isinstance(spdx_id, str) and spdx_id.startswith("SPDX"):
        return FormatInfo(SpecType.SPDX, FileFormat.YAML, str(data.get("spdxVersion", "")))
    return None


_TRIALS = (_try_json, _try_xml, _try_tag_value, _try_yaml)


def detect_format(source: Union[bytes, BinaryIO]) -> FormatInfo:
    """Detect the specification, file format and version of an SBOM.

    Args:
        source: Raw bytes or a binary stream. Streams are read once into
            memory; every trial runs against that buffer.

    Returns:
        FormatInfo. ``FormatInfo.unknown()`` when nothing matched.
    """
    if isinstance(source, (bytes, bytearray)):
        buffer = io.BytesIO(bytes(source))
    else:
        buffer = io.BytesIO(source.read())

    for trial in _TRIALS:
        info = trial(buffer)
        if info is not None:
            logger.debug(f"Detected {info.spec.value} {info.version or '?'} ({info.file_format.value})")
            return info

    logger.debug("Input did not match any supported SBOM format")
    return FormatInfo.unknown()


def guess_encoding(text: str) -> FileFormat:
    """Classify raw text as JSON or YAML from its first meaningful character."""
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped[0] in "{[":
            return FileFormat.JSON
        if ":" in stripped or stripped.startswith("-"):
            return FileFormat.YAML
        break
    return FileFormat.UNKNOWN
