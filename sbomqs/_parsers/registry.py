"""Registry for SBOM specification parsers."""

from ..exceptions import SBOMParseError, UnsupportedFormatError
from ..logging_config import logger
from ..models import Document
from ..sniffer import FormatInfo
from .protocol import SpecParser


class ParserRegistry:
    """Registry for specification parsers.

    Manages parser instances and dispatches parsing to the first parser
    that supports a detected format.

    Example:
        registry = ParserRegistry()
        registry.register(SpdxParser())
        registry.register(CycloneDXParser())

        doc = registry.parse(raw, detect_format(raw))
    """

    def __init__(self) -> None:
        self._parsers: list[SpecParser] = []

    def register(self, parser: SpecParser) -> None:
        """Register a parser.

        Args:
            parser: Parser instance implementing the SpecParser protocol.
        """
        self._parsers.append(parser)
        logger.debug(f"Registered SBOM parser: {parser.name}")

    def get_parser_for(self, info: FormatInfo) -> SpecParser | None:
        """Get the parser that supports this format, or None."""
        for parser in self._parsers:
            if parser.supports(info):
                return parser
        return None

    def parse(self, raw: bytes, info: FormatInfo) -> Document:
        """Parse raw SBOM bytes with the appropriate parser.

        Args:
            raw: Complete SBOM contents
            info: Result of format detection

        Returns:
            Normalized Document.

        Raises:
            UnsupportedFormatError: If no parser handles the format.
            SBOMParseError: If the selected parser cannot decode the input.
        """
        parser = self.get_parser_for(info)
        if parser is None:
            raise UnsupportedFormatError(
                f"Unsupported SBOM format: spec={info.spec.value}, format={info.file_format.value}, "
                f"version={info.version or 'unknown'}"
            )

        logger.debug(f"Using {parser.name} to parse {info.spec.value} {info.version} ({info.file_format.value})")
        try:
            return parser.parse(raw, info)
        except SBOMParseError:
            raise
        except Exception as e:
            raise SBOMParseError(
                f"{parser.name} failed: {e}", spec=info.spec.value, file_format=info.file_format.value
            ) from e

    @property
    def registered_parsers(self) -> list[str]:
        """Get names of all registered parsers."""
        return [p.name for p in self._parsers]
