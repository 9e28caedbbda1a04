"""Document factory: bytes, streams, paths and URLs in, Documents out.

Example:
    from sbomqs.sbom import load_sbom

    doc = load_sbom("bom.cdx.json")
    print(doc.spec.spec_type, len(doc.components))
"""

import dataclasses
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional, Union

from ._parsers import ParserRegistry, create_default_registry
from .exceptions import FileProcessingError, UnsupportedFormatError
from .http_client import fetch_sbom, is_url
from .logging_config import logger
from .models import Document
from .sniffer import detect_format
from .validation import validate_sbom

_default_registry: Optional[ParserRegistry] = None


def _registry() -> ParserRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_registry()
    return _default_registry


def parse_sbom(
    source: Union[bytes, BinaryIO],
    validate: bool = True,
    registry: Optional[ParserRegistry] = None,
) -> Document:
    """Detect the format of an SBOM and parse it into a Document.

    Args:
        source: Raw bytes or a binary stream; streams are read once
        validate: Run the schema validator and record its verdict in
            ``Document.schema_valid``
        registry: Parser registry to use instead of the default one

    Returns:
        Parsed Document.

    Raises:
        UnsupportedFormatError: If the input matches no supported format.
        SBOMParseError: If the input matched a format but failed to decode.
    """
    raw = bytes(source) if isinstance(source, (bytes, bytearray)) else source.read()
    info = detect_format(raw)
    if not info.known:
        raise UnsupportedFormatError("Input is not a supported SPDX or CycloneDX document")

    document = (registry or _registry()).parse(raw, info)

    if validate:
        result = validate_sbom(info.spec.value, info.version, raw, info.file_format.value)
        logs = document.logs + tuple(result.logs) if result.valid is False else document.logs
        document = dataclasses.replace(document, schema_valid=result.valid, logs=logs)

    logger.debug(
        f"Parsed {info.spec.value} {info.version} document with {len(document.components)} component(s), "
        f"{len(document.logs)} log entr{'y' if len(document.logs) == 1 else 'ies'}"
    )
    return document


def read_input(path_or_url: Union[str, Path], timeout: int = 60, retries: int = 3) -> bytes:
    """Read an SBOM from a local path or an HTTP(S) URL.

    Raises:
        FileProcessingError: If a local file cannot be read.
        FetchError: If a URL cannot be downloaded.
    """
    location = str(path_or_url)
    if is_url(location):
        return fetch_sbom(location, timeout=timeout, retries=retries)

    path = Path(location)
    try:
        return path.read_bytes()
    except OSError as e:
        raise FileProcessingError(f"Cannot read {path}: {e}") from e


def load_sbom(path_or_url: Union[str, Path], validate: bool = True) -> Document:
    """Read and parse an SBOM from a path or URL."""
    return parse_sbom(read_input(path_or_url), validate=validate)


def iter_sbom_paths(inputs: Iterable[Union[str, Path]]) -> Iterator[str]:
    """Expand inputs into individual SBOM locations.

    URLs and files are yielded as given; directories yield their regular
    files in name order (not recursive).
    """
    for item in inputs:
        location = str(item)
        if is_url(location):
            yield location
            continue
        path = Path(location)
        if path.is_dir():
            children: List[Path] = sorted(p for p in path.iterdir() if p.is_file())
            if not children:
                logger.warning(f"Directory {path} contains no files")
            for child in children:
                yield str(child)
        else:
            yield location
