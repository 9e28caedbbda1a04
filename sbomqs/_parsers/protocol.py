"""Protocol definition for SBOM specification parsers."""

from typing import Protocol

from ..models import Document
from ..sniffer import FormatInfo


class SpecParser(Protocol):
    """Protocol for specification parser plugins.

    Each parser turns the raw bytes of one SBOM specification family into
    the unified Document model. Parsers are registered with ParserRegistry
    and selected with supports() on the sniffed FormatInfo.

    Example:
        class CycloneDXJsonParser:
            name = "cyclonedx-json"

            def supports(self, info: FormatInfo) -> bool:
                return info.spec == SpecType.CYCLONEDX and info.file_format == FileFormat.JSON

            def parse(self, raw: bytes, info: FormatInfo) -> Document:
                ...
    """

    @property
    def name(self) -> str:
        """Human-readable name of this parser, used for logging."""
        ...

    def supports(self, info: FormatInfo) -> bool:
        """Check if this parser handles the detected format.

        Args:
            info: Result of format detection

        Returns:
            True if parse() accepts this format.
        """
        ...

    def parse(self, raw: bytes, info: FormatInfo) -> Document:
        """Decode raw bytes into a Document.

        Implementations record field-level problems in Document.logs instead
        of raising.

        Args:
            raw: Complete SBOM contents
            info: Result of format detection

        Returns:
            Normalized Document.

        Raises:
            SBOMParseError: If the input cannot be decoded at all.
        """
        ...
