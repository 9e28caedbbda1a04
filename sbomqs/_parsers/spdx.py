"""SPDX 2.x parser.

JSON and YAML documents are read as dictionaries directly. Tag-value and
RDF/XML documents are decoded with ``spdx-tools`` and converted to the same
JSON shape, so a single adapter builds the Document for all four encodings.
"""

import json
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from .._licenses import License, create_custom_license, is_no_assertion, lookup_expression
from ..exceptions import SBOMParseError
from ..identifiers import Swid, is_valid_cpe, is_valid_omnibor_id, is_valid_purl, is_valid_swhid
from ..logging_config import logger
from ..models import (
    Author,
    Checksum,
    Component,
    Document,
    ExternalReference,
    FileFormat,
    Party,
    PrimaryComponent,
    Relationship,
    RelationshipType,
    Spec,
    SpecType,
    Tool,
)
from ..sniffer import FormatInfo
from .entity import parse_entities, parse_entity

DOCUMENT_ID = "SPDXRef-DOCUMENT"

_KEPT_RELATIONSHIPS = {"DESCRIBES", "CONTAINS", "DEPENDS_ON"}
_REVERSED_RELATIONSHIPS = {
    "DESCRIBED_BY": "DESCRIBES",
    "CONTAINED_BY": "CONTAINS",
    "DEPENDENCY_OF": "DEPENDS_ON",
}
_NO_VALUE = {"NONE", "NOASSERTION"}


def _as_str(value: Any) -> str:
    """Stringify scalar values; YAML turns timestamps into datetime objects."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat().replace("+00:00", "Z")
    return str(value)


def _files_analyzed(pkg: Dict[str, Any]) -> bool:
    value = pkg.get("filesAnalyzed", True)
    if isinstance(value, str):
        return value.lower() != "false"
    return bool(value)


def _element_id(value: Any) -> str:
    text = _as_str(value).strip()
    if not text or text.upper() in _NO_VALUE:
        return ""
    if text.startswith("SPDXRef-") or text.startswith("DocumentRef-"):
        return text
    return f"SPDXRef-{text}"


def split_tool_name(creator: str) -> Tuple[str, str]:
    """Split ``name-version`` at the last dash when the tail contains a digit.

    Example:
        >>> split_tool_name("syft-0.85.0")
        ('syft', '0.85.0')
        >>> split_tool_name("my-tool")
        ('my-tool', '')
    """
    name, sep, version = creator.rpartition("-")
    if not sep or not any(ch.isdigit() for ch in version):
        return creator.strip(), ""
    return name.strip(), version.strip()


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _convert_spdx_tools_document(document: Any) -> Dict[str, Any]:
    from spdx_tools.spdx.jsonschema.document_converter import DocumentConverter

    return DocumentConverter().convert(document)


def _load_tag_value(text: str) -> Dict[str, Any]:
    from spdx_tools.spdx.parser.tagvalue.parser import Parser

    return _convert_spdx_tools_document(Parser().parse(text))


def _load_rdf(raw: bytes) -> Dict[str, Any]:
    from spdx_tools.spdx.parser.rdf import rdf_parser

    # rdflib reads from a path; the file only lives for the duration of the parse.
    with tempfile.TemporaryDirectory(prefix="sbomqs-rdf-") as tmpdir:
        path = Path(tmpdir) / "document.rdf.xml"
        path.write_bytes(raw)
        document = rdf_parser.parse_from_file(str(path))
    return _convert_spdx_tools_document(document)


def load_spdx_dict(raw: bytes, file_format: FileFormat) -> Dict[str, Any]:
    """Decode SPDX 2 bytes into the JSON-shaped dictionary.

    Raises:
        SBOMParseError: If the bytes cannot be decoded in the given format.
    """
    try:
        if file_format == FileFormat.JSON:
            data = json.loads(raw)
        elif file_format == FileFormat.YAML:
            data = yaml.safe_load(raw)
        elif file_format == FileFormat.TAG_VALUE:
            data = _load_tag_value(raw.decode("utf-8"))
        elif file_format == FileFormat.RDF:
            data = _load_rdf(raw)
        else:
            raise SBOMParseError(f"Unsupported SPDX encoding: {file_format.value}", "spdx", file_format.value)
    except SBOMParseError:
        raise
    except Exception as e:
        raise SBOMParseError(f"Failed to decode SPDX document: {e}", "spdx", file_format.value) from e

    if not isinstance(data, dict):
        raise SBOMParseError("SPDX document is not a mapping", "spdx", file_format.value)
    return data


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class _SpdxAdapter:
    """Builds a Document from an SPDX 2 JSON-shaped dictionary."""

    def __init__(self, data: Dict[str, Any], info: FormatInfo) -> None:
        self.data = data
        self.info = info
        self.logs: List[str] = []
        self.creation_info: Dict[str, Any] = data.get("creationInfo") or {}
        self.packages: List[Dict[str, Any]] = [p for p in (data.get("packages") or []) if isinstance(p, dict)]
        self.custom_licenses: List[License] = [
            create_custom_license(_as_str(e.get("licenseId")), _as_str(e.get("name")) or None)
            for e in (data.get("hasExtractedLicensingInfos") or [])
            if isinstance(e, dict) and e.get("licenseId")
        ]

    def _log(self, message: str) -> None:
        self.logs.append(message)
        logger.debug(message)

    def build(self) -> Document:
        relationships = self._relationships()
        primary_id = self._primary_component_id(relationships)
        components = tuple(
            self._component(index, pkg, relationships, primary_id) for index, pkg in enumerate(self.packages)
        )

        primary = PrimaryComponent()
        if primary_id:
            deps = tuple(
                r.to_id
                for r in relationships
                if r.from_id == primary_id and r.rel_type in (RelationshipType.DEPENDS_ON, RelationshipType.CONTAINS)
            )
            primary_name = next((c.name for c in components if c.id == primary_id), "")
            primary = PrimaryComponent(
                present=True, id=primary_id, name=primary_name, dependency_count=len(deps), dependencies=deps
            )

        return Document(
            spec=self._spec(),
            components=components,
            relationships=relationships,
            authors=self._authors(),
            tools=self._tools(),
            primary_component=primary,
            logs=tuple(self.logs),
        )

    # -- document level ----------------------------------------------------

    def _creators(self) -> List[str]:
        creators = self.creation_info.get("creators") or []
        if isinstance(creators, str):
            creators = [creators]
        return [_as_str(c) for c in creators]

    def _required_fields(self) -> bool:
        data = self.data
        checks = (
            (bool(self.creation_info), "spdx doc is missing creation info"),
            (bool(data.get("spdxVersion")), "spdx doc is missing SPDXVersion"),
            (bool(data.get("dataLicense")), "spdx doc is missing Datalicense"),
            (bool(data.get("SPDXID")), "spdx doc is missing SPDXIdentifier"),
            (bool(data.get("name")), "spdx doc is missing DocumentName"),
            (bool(data.get("documentNamespace")), "spdx doc is missing Document Namespace"),
            (bool(self._creators()), "spdx doc is missing creators"),
            (bool(self.creation_info.get("created")), "spdx doc is missing created timestamp"),
        )
        for ok, message in checks:
            if not ok:
                self._log(message)
                return False
        return True

    def _spec(self) -> Spec:
        organization = ""
        for creator in self._creators():
            entity = parse_entity(creator)
            if entity is not None and entity.is_organization:
                organization = entity.name
                break

        external_refs = tuple(
            _as_str(ref.get("spdxDocument"))
            for ref in (self.data.get("externalDocumentRefs") or [])
            if isinstance(ref, dict) and ref.get("spdxDocument")
        )
        namespace = _as_str(self.data.get("documentNamespace"))

        return Spec(
            spec_type=SpecType.SPDX,
            version=_as_str(self.data.get("spdxVersion")) or self.info.version,
            file_format=self.info.file_format,
            name=_as_str(self.data.get("name")),
            spdx_id=_as_str(self.data.get("SPDXID")),
            namespace=namespace,
            uri=namespace,
            creation_timestamp=_as_str(self.creation_info.get("created")),
            organization=organization,
            licenses=tuple(lookup_expression(_as_str(self.data.get("dataLicense")))),
            comment=_as_str(self.creation_info.get("comment")),
            external_doc_refs=external_refs,
            required_fields=self._required_fields(),
        )

    def _authors(self) -> Tuple[Author, ...]:
        authors = []
        for creator in self._creators():
            if creator.lower().startswith("tool"):
                continue
            for entity in parse_entities(creator):
                authors.append(Author(name=entity.name, email=entity.email, author_type=entity.kind.lower()))
        return tuple(authors)

    def _tools(self) -> Tuple[Tool, ...]:
        tools = []
        for creator in self._creators():
            kind, sep, value = creator.partition(":")
            if not sep or kind.strip().lower() != "tool":
                continue
            name, version = split_tool_name(value.strip())
            tools.append(Tool(name=name, version=version))
        return tuple(tools)

    def _relationships(self) -> Tuple[Relationship, ...]:
        relationships: List[Relationship] = []
        for raw in self.data.get("relationships") or []:
            if not isinstance(raw, dict):
                continue
            rel_type = _as_str(raw.get("relationshipType")).upper()
            source = _element_id(raw.get("spdxElementId"))
            target = _element_id(raw.get("relatedSpdxElement"))
            if not source or not target:
                continue
            if rel_type in _KEPT_RELATIONSHIPS:
                relationships.append(Relationship(source, target, rel_type))
            elif rel_type in _REVERSED_RELATIONSHIPS:
                relationships.append(Relationship(target, source, _REVERSED_RELATIONSHIPS[rel_type]))

        # Converted tag-value/RDF documents carry DESCRIBES as documentDescribes.
        doc_id = _element_id(self.data.get("SPDXID")) or DOCUMENT_ID
        described = {r.to_id for r in relationships if r.rel_type == RelationshipType.DESCRIBES}
        for target in self.data.get("documentDescribes") or []:
            target_id = _element_id(target)
            if target_id and target_id not in described:
                relationships.append(Relationship(doc_id, target_id, RelationshipType.DESCRIBES.value))
        return tuple(relationships)

    def _primary_component_id(self, relationships: Tuple[Relationship, ...]) -> str:
        package_ids = {_as_str(p.get("SPDXID")) for p in self.packages}
        for rel in relationships:
            if rel.rel_type == RelationshipType.DESCRIBES and rel.to_id in package_ids:
                return rel.to_id
        return ""

    # -- package level -----------------------------------------------------

    def _package_required_fields(self, index: int, pkg: Dict[str, Any]) -> bool:
        name = _as_str(pkg.get("name"))
        spdx_id = _as_str(pkg.get("SPDXID"))
        if not name:
            self._log(f"spdx doc pkg {spdx_id} at index {index} missing name")
            return False
        if not spdx_id:
            self._log(f"spdx doc pkg {name} at index {index} missing identifier")
            return False
        if not _as_str(pkg.get("downloadLocation")):
            self._log(f"spdx doc pkg {name} at index {index} missing downloadLocation")
            return False
        if _files_analyzed(pkg) and not pkg.get("packageVerificationCode"):
            self._log(f"spdx doc pkg {name} at index {index} missing packageVerificationCode")
            return False
        return True

    def _external_refs(self, pkg: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [r for r in (pkg.get("externalRefs") or []) if isinstance(r, dict)]

    def _purls(self, index: int, pkg: Dict[str, Any]) -> Tuple[str, ...]:
        purls = []
        for ref in self._external_refs(pkg):
            if _as_str(ref.get("referenceType")).lower() != "purl":
                continue
            locator = _as_str(ref.get("referenceLocator"))
            if is_valid_purl(locator):
                purls.append(locator)
            else:
                self._log(f"spdx doc pkg {pkg.get('name')} at index {index} invalid purl found")
        if not purls:
            self._log(f"spdx doc pkg {pkg.get('name')} at index {index} no purls found")
        return tuple(purls)

    def _cpes(self, index: int, pkg: Dict[str, Any]) -> Tuple[str, ...]:
        cpes = []
        for ref in self._external_refs(pkg):
            if _as_str(ref.get("referenceType")) not in ("cpe23Type", "cpe22Type"):
                continue
            locator = _as_str(ref.get("referenceLocator"))
            if is_valid_cpe(locator):
                cpes.append(locator)
            else:
                self._log(f"spdx doc pkg {pkg.get('name')} at index {index} invalid cpes found")
        if not cpes:
            self._log(f"spdx doc pkg {pkg.get('name')} at index {index} no cpes found")
        return tuple(cpes)

    def _refs_of_type(self, pkg: Dict[str, Any], ref_type: str) -> List[str]:
        return [
            _as_str(ref.get("referenceLocator"))
            for ref in self._external_refs(pkg)
            if _as_str(ref.get("referenceType")).lower() == ref_type and ref.get("referenceLocator")
        ]

    def _validated_refs(
        self, index: int, pkg: Dict[str, Any], ref_type: str, is_valid: Callable[[str], bool]
    ) -> Tuple[str, ...]:
        valid = []
        for locator in self._refs_of_type(pkg, ref_type):
            if is_valid(locator):
                valid.append(locator)
            else:
                self._log(f"spdx doc pkg {pkg.get('name')} at index {index} invalid {ref_type} found")
        return tuple(valid)

    def _licenses(self, pkg: Dict[str, Any]) -> Tuple[Tuple[License, ...], Tuple[License, ...], Tuple[License, ...]]:
        """Return (unified, declared, concluded) license views."""
        concluded_expr = _as_str(pkg.get("licenseConcluded"))
        declared_expr = _as_str(pkg.get("licenseDeclared"))

        concluded = (
            tuple(lookup_expression(concluded_expr, self.custom_licenses))
            if not is_no_assertion(concluded_expr)
            else ()
        )
        declared = (
            tuple(lookup_expression(declared_expr, self.custom_licenses)) if not is_no_assertion(declared_expr) else ()
        )

        unified = concluded if concluded else declared
        return unified, declared, concluded

    def _party(self, value: Any) -> Party:
        entity = parse_entity(_as_str(value))
        if entity is None:
            return Party()
        return Party(name=entity.name, email=entity.email)

    def _component(
        self,
        index: int,
        pkg: Dict[str, Any],
        relationships: Tuple[Relationship, ...],
        primary_id: str,
    ) -> Component:
        spdx_id = _as_str(pkg.get("SPDXID"))
        name = _as_str(pkg.get("name"))

        supplier = self._party(pkg.get("supplier"))
        manufacturer = self._party(pkg.get("originator"))
        if not supplier.present and manufacturer.present:
            supplier = manufacturer
        if not supplier.present:
            self._log(f"spdx doc pkg {name} at index {index} no supplier/originator found")

        checksums = tuple(
            Checksum(algorithm=_as_str(c.get("algorithm")), value=_as_str(c.get("checksumValue")))
            for c in (pkg.get("checksums") or [])
            if isinstance(c, dict)
        )
        if not checksums:
            self._log(f"spdx doc pkg {name} at index {index} no checksum found")

        download = _as_str(pkg.get("downloadLocation"))
        if download.upper() in _NO_VALUE:
            download = ""

        verification = pkg.get("packageVerificationCode") or {}
        source_code_hash = (
            _as_str(verification.get("packageVerificationCodeValue")) if isinstance(verification, dict) else ""
        )

        outgoing = [r for r in relationships if r.from_id == spdx_id]
        dependencies = tuple(
            r.to_id for r in outgoing if r.rel_type in (RelationshipType.DEPENDS_ON, RelationshipType.CONTAINS)
        )

        licenses, declared, concluded = self._licenses(pkg)
        purpose = _as_str(pkg.get("primaryPackagePurpose")).lower().replace("_", "-")

        return Component(
            id=spdx_id,
            name=name,
            version=_as_str(pkg.get("versionInfo")),
            purls=self._purls(index, pkg),
            cpes=self._cpes(index, pkg),
            swhids=self._validated_refs(index, pkg, "swh", is_valid_swhid),
            swids=tuple(Swid(tag_id=tag) for tag in self._refs_of_type(pkg, "swid")),
            omnibor_ids=self._validated_refs(index, pkg, "gitoid", is_valid_omnibor_id),
            checksums=checksums,
            licenses=licenses,
            declared_licenses=declared,
            concluded_licenses=concluded,
            supplier=supplier,
            manufacturer=manufacturer,
            primary_purpose=purpose,
            download_location=download,
            source_code_hash=source_code_hash,
            copyright=_as_str(pkg.get("copyrightText")),
            files_analyzed=_files_analyzed(pkg),
            external_refs=tuple(
                ExternalReference(_as_str(r.get("referenceType")), _as_str(r.get("referenceLocator")))
                for r in self._external_refs(pkg)
            ),
            required_fields=self._package_required_fields(index, pkg),
            is_primary=bool(primary_id) and spdx_id == primary_id,
            has_relationships=bool(outgoing),
            relationship_count=len(outgoing),
            dependencies=dependencies,
        )


class SpdxParser:
    """Parser for SPDX 2.1 - 2.3 in JSON, YAML, tag-value and RDF/XML."""

    name = "spdx"

    def supports(self, info: FormatInfo) -> bool:
        return (
            info.spec == SpecType.SPDX
            and not info.is_spdx3
            and info.file_format in (FileFormat.JSON, FileFormat.YAML, FileFormat.TAG_VALUE, FileFormat.RDF)
        )

    def parse(self, raw: bytes, info: FormatInfo) -> Document:
        data = load_spdx_dict(raw, info.file_format)
        return build_spdx_document(data, info)


def build_spdx_document(data: Dict[str, Any], info: Optional[FormatInfo] = None) -> Document:
    """Build a Document from an already decoded SPDX 2 dictionary."""
    info = info or FormatInfo(SpecType.SPDX, FileFormat.JSON, _as_str(data.get("spdxVersion")))
    return _SpdxAdapter(data, info).build()
