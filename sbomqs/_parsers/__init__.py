"""SBOM specification parsers.

Each parser turns one specification family into the unified Document model.
The default registry handles SPDX 2 (JSON, YAML, tag-value, RDF), SPDX 3
JSON-LD and CycloneDX (JSON, XML).

Example:
    from sbomqs._parsers import create_default_registry
    from sbomqs.sniffer import detect_format

    registry = create_default_registry()
    doc = registry.parse(raw, detect_format(raw))
"""

from .cyclonedx import CycloneDXParser, build_cyclonedx_document
from .cyclonedx_xml import CycloneDXXmlParser
from .protocol import SpecParser
from .registry import ParserRegistry
from .signature import extract_signature, verify_signature
from .spdx import SpdxParser, build_spdx_document
from .spdx3 import Spdx3Parser, build_spdx3_document


def create_default_registry() -> ParserRegistry:
    """Create a ParserRegistry with all built-in parsers.

    SPDX 3 is registered before SPDX 2 so JSON-LD documents never reach the
    2.x adapter.
    """
    registry = ParserRegistry()
    registry.register(Spdx3Parser())
    registry.register(SpdxParser())
    registry.register(CycloneDXParser())
    registry.register(CycloneDXXmlParser())
    return registry


__all__ = [
    # Factory
    "create_default_registry",
    # Registry and protocol
    "ParserRegistry",
    "SpecParser",
    # Parsers
    "CycloneDXParser",
    "CycloneDXXmlParser",
    "SpdxParser",
    "Spdx3Parser",
    # Builders
    "build_cyclonedx_document",
    "build_spdx_document",
    "build_spdx3_document",
    # Signatures
    "extract_signature",
    "verify_signature",
]
