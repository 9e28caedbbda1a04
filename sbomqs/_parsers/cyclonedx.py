"""CycloneDX parser.

JSON documents are decoded directly. XML documents are normalised into the
same JSON shape by :mod:`.cyclonedx_xml`, so one adapter builds the Document
for both encodings.
"""

import json
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import semantic_version

from .._licenses import License, is_no_assertion, lookup_expression, lookup_license
from ..exceptions import SBOMParseError
from ..identifiers import Swid, is_valid_cpe, is_valid_omnibor_id, is_valid_purl, is_valid_swhid
from ..logging_config import logger
from ..models import (
    Author,
    Checksum,
    Component,
    Composition,
    Contact,
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
    Vulnerability,
)
from ..sniffer import FormatInfo
from .signature import extract_signature

_ACKNOWLEDGEMENT_VERSION = semantic_version.Version("1.6.0")


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, dict)]
    return []


def _strings(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_text(v) for v in value if _text(v)]
    text = _text(value)
    return [text] if text else []


def _spec_version(version: str) -> Optional[semantic_version.Version]:
    try:
        return semantic_version.Version.coerce(version)
    except ValueError:
        return None


def _party(value: Any) -> Party:
    """Organizational entity: name, first url, contacts."""
    if not isinstance(value, dict):
        return Party()
    urls = _strings(value.get("url"))
    contacts = tuple(
        Contact(name=_text(c.get("name")), email=_text(c.get("email")), phone=_text(c.get("phone")))
        for c in _dicts(value.get("contact"))
    )
    email = next((c.email for c in contacts if c.email), "")
    return Party(name=_text(value.get("name")), url=urls[0] if urls else "", email=email, contacts=contacts)


def _authors(values: Any) -> Tuple[Author, ...]:
    return tuple(
        Author(name=_text(a.get("name")), email=_text(a.get("email")), phone=_text(a.get("phone")))
        for a in _dicts(values)
    )


def component_identity(comp: Dict[str, Any]) -> str:
    """BOM-ref, else the first valid PURL, else a fresh UUID."""
    bom_ref = _text(comp.get("bom-ref"))
    if bom_ref:
        return bom_ref
    purl = _text(comp.get("purl"))
    if is_valid_purl(purl):
        return purl
    return str(uuid.uuid4())


class _CycloneDXAdapter:
    """Builds a Document from a CycloneDX JSON-shaped dictionary."""

    def __init__(self, data: Dict[str, Any], info: FormatInfo) -> None:
        self.data = data
        self.info = info
        self.logs: List[str] = []
        self.metadata: Dict[str, Any] = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
        self.version = _text(data.get("specVersion")) or info.version
        self.dependency_map = self._dependency_map()
        primary = self.metadata.get("component")
        self.primary: Optional[Dict[str, Any]] = primary if isinstance(primary, dict) else None
        self.primary_id = component_identity(self.primary) if self.primary is not None else ""

    def _log(self, message: str) -> None:
        self.logs.append(message)
        logger.debug(message)

    def build(self) -> Document:
        primary = self._primary_component()
        components = tuple(self._component(comp, ident, primary.id) for comp, ident in self._walk_components())

        return Document(
            spec=self._spec(),
            components=components,
            relationships=self._relationships(),
            authors=_authors(self.metadata.get("authors")),
            tools=self._tools(),
            supplier=_party(self.metadata.get("supplier")),
            manufacturer=_party(self.metadata.get("manufacturer") or self.metadata.get("manufacture")),
            primary_component=primary,
            vulnerabilities=self._vulnerabilities(),
            signature=extract_signature(self.data) if self.info.file_format == FileFormat.JSON else None,
            compositions=self._compositions(),
            lifecycles=self._lifecycles(),
            logs=tuple(self.logs),
        )

    # -- document level ----------------------------------------------------

    def _required_fields(self) -> bool:
        if self.info.file_format == FileFormat.JSON and not _text(self.data.get("bomFormat")):
            self._log("cdx doc is missing BOMFormat")
            return False
        if not _text(self.data.get("specVersion")):
            self._log("cdx doc is missing specVersion")
            return False
        try:
            doc_version = int(self.data.get("version", 0))
        except (TypeError, ValueError):
            doc_version = 0
        if doc_version < 1:
            self._log("cdx doc is missing doc version")
            return False
        for dep in _dicts(self.data.get("dependencies")):
            if not _text(dep.get("ref")):
                self._log("cdx doc is missing dependencies")
                return False
        return True

    def _spec(self) -> Spec:
        serial = _text(self.data.get("serialNumber"))
        uri = f"{serial}/{_text(self.data.get('version'))}" if serial.startswith("urn:uuid:") else ""
        external_refs = tuple(
            _text(ref.get("url"))
            for ref in _dicts(self.data.get("externalReferences"))
            if _text(ref.get("type")) == "bom" and _text(ref.get("url"))
        )
        supplier = _party(self.metadata.get("supplier"))
        licenses, _, _ = self._licenses(self.metadata.get("licenses"))

        return Spec(
            spec_type=SpecType.CYCLONEDX,
            version=self.version,
            file_format=self.info.file_format,
            name="cyclonedx",
            namespace=serial,
            uri=uri,
            creation_timestamp=_text(self.metadata.get("timestamp")),
            organization=supplier.name,
            licenses=licenses,
            external_doc_refs=external_refs,
            required_fields=self._required_fields(),
        )

    def _tools(self) -> Tuple[Tool, ...]:
        tools_field = self.metadata.get("tools")
        entries: List[Dict[str, Any]] = []
        if isinstance(tools_field, list):
            entries = _dicts(tools_field)
        elif isinstance(tools_field, dict):
            entries = _dicts(tools_field.get("components")) + _dicts(tools_field.get("services"))
        return tuple(
            Tool(name=_text(t.get("name")), version=_text(t.get("version"))) for t in entries if _text(t.get("name"))
        )

    def _lifecycles(self) -> Tuple[str, ...]:
        phases = []
        for lifecycle in _dicts(self.metadata.get("lifecycles")):
            phase = _text(lifecycle.get("phase")) or _text(lifecycle.get("name"))
            if phase:
                phases.append(phase)
        return tuple(phases)

    def _vulnerabilities(self) -> Tuple[Vulnerability, ...]:
        return tuple(
            Vulnerability(id=_text(v.get("id"))) for v in _dicts(self.data.get("vulnerabilities")) if _text(v.get("id"))
        )

    def _compositions(self) -> Tuple[Composition, ...]:
        compositions = []
        for raw in _dicts(self.data.get("compositions")):
            compositions.append(
                Composition(
                    id=_text(raw.get("bom-ref")),
                    aggregate=_text(raw.get("aggregate")) or "unknown",
                    assemblies=tuple(_strings(raw.get("assemblies"))),
                    dependencies=tuple(_strings(raw.get("dependencies"))),
                    vulnerabilities=tuple(_strings(raw.get("vulnerabilities"))),
                )
            )
        return tuple(compositions)

    # -- dependency graph --------------------------------------------------

    def _dependency_map(self) -> Dict[str, Tuple[str, ...]]:
        deps: Dict[str, Tuple[str, ...]] = {}
        for dep in _dicts(self.data.get("dependencies")):
            ref = _text(dep.get("ref"))
            if ref:
                deps[ref] = deps.get(ref, ()) + tuple(_strings(dep.get("dependsOn")))
        return deps

    def _relationships(self) -> Tuple[Relationship, ...]:
        return tuple(
            Relationship(ref, target, RelationshipType.DEPENDS_ON.value)
            for ref, targets in self.dependency_map.items()
            for target in targets
        )

    def _primary_component(self) -> PrimaryComponent:
        if self.primary is None:
            return PrimaryComponent()
        deps = self.dependency_map.get(self.primary_id, ())
        return PrimaryComponent(
            present=True,
            id=self.primary_id,
            name=_text(self.primary.get("name")),
            dependency_count=len(deps),
            dependencies=deps,
        )

    def _walk_components(self) -> Iterable[Tuple[Dict[str, Any], str]]:
        """Yield (component, identity) pairs, metadata.component first.

        Nested components are visited depth-first. An identity seen before is
        not yielded again, but its nested components are still visited.
        """
        visited: Set[str] = set()
        roots: List[Dict[str, Any]] = []
        if self.primary is not None:
            roots.append(self.primary)
        roots.extend(_dicts(self.data.get("components")))

        stack = list(reversed(roots))
        while stack:
            comp = stack.pop()
            ident = self.primary_id if comp is self.primary else component_identity(comp)
            stack.extend(reversed(_dicts(comp.get("components"))))
            if ident in visited:
                continue
            visited.add(ident)
            yield comp, ident

    # -- component level ---------------------------------------------------

    def _component_required_fields(self, comp: Dict[str, Any]) -> bool:
        name = _text(comp.get("name"))
        if not _text(comp.get("type")):
            self._log(f"cdx doc comp {name} missing type field")
            return False
        if not name:
            self._log(f"cdx doc comp {_text(comp.get('bom-ref'))} missing name field")
            return False
        return True

    def _licenses(self, entries: Any) -> Tuple[Tuple[License, ...], Tuple[License, ...], Tuple[License, ...]]:
        """Return (unified, declared, concluded) license views.

        Entries without an acknowledgement count as declared from CycloneDX
        1.6 onwards and as concluded before it.
        """
        version = _spec_version(self.version)
        default_ack = "declared" if version is not None and version >= _ACKNOWLEDGEMENT_VERSION else "concluded"

        unified: List[License] = []
        declared: List[License] = []
        concluded: List[License] = []
        for entry in _dicts(entries):
            if entry.get("expression"):
                ack = _text(entry.get("acknowledgement"))
                resolved = lookup_expression(_text(entry.get("expression")))
            else:
                lic = entry.get("license") if isinstance(entry.get("license"), dict) else {}
                ack = _text(lic.get("acknowledgement"))
                identifier = _text(lic.get("id")) or _text(lic.get("name"))
                if is_no_assertion(identifier):
                    continue
                resolved = [lookup_license(identifier)]
            if not resolved:
                continue

            unified.extend(resolved)
            if (ack or default_ack) == "declared":
                declared.extend(resolved)
            else:
                concluded.extend(resolved)
        return tuple(unified), tuple(declared), tuple(concluded)

    def _component(self, comp: Dict[str, Any], ident: str, primary_id: str) -> Component:
        name = _text(comp.get("name"))

        purl = _text(comp.get("purl"))
        purls: Tuple[str, ...] = ()
        if purl:
            if is_valid_purl(purl):
                purls = (purl,)
            else:
                self._log(f"cdx doc comp {name} invalid purl found")

        cpe = _text(comp.get("cpe"))
        cpes: Tuple[str, ...] = ()
        if cpe:
            if is_valid_cpe(cpe):
                cpes = (cpe,)
            else:
                self._log(f"cdx doc comp {name} invalid cpe found")

        swid_raw = comp.get("swid")
        swids: Tuple[Swid, ...] = ()
        if isinstance(swid_raw, dict):
            swid = Swid(tag_id=_text(swid_raw.get("tagId")), name=_text(swid_raw.get("name")))
            if swid.valid:
                swids = (swid,)

        checksums = tuple(
            Checksum(algorithm=_text(h.get("alg")), value=_text(h.get("content"))) for h in _dicts(comp.get("hashes"))
        )
        if not checksums:
            self._log(f"cdx doc comp {name} no checksum found")

        supplier = _party(comp.get("supplier"))
        if not supplier.present:
            self._log(f"cdx doc comp {name} no supplier found")

        authors = _authors(comp.get("authors"))
        if not authors and _text(comp.get("author")):
            authors = (Author(name=_text(comp.get("author"))),)

        external_refs = tuple(
            ExternalReference(_text(r.get("type")), _text(r.get("url"))) for r in _dicts(comp.get("externalReferences"))
        )
        source_code_url = next((r.locator for r in external_refs if r.ref_type == "vcs"), "")
        download = next(
            (r.locator for r in external_refs if r.ref_type in ("distribution", "distribution-intake")), ""
        )

        licenses, declared, concluded = self._licenses(comp.get("licenses"))
        dependencies = self.dependency_map.get(ident, ())

        return Component(
            id=ident,
            name=name,
            version=_text(comp.get("version")),
            purls=purls,
            cpes=cpes,
            swhids=tuple(s for s in _strings(comp.get("swhid")) if is_valid_swhid(s)),
            swids=swids,
            omnibor_ids=tuple(o for o in _strings(comp.get("omniborId")) if is_valid_omnibor_id(o)),
            checksums=checksums,
            licenses=licenses,
            declared_licenses=declared,
            concluded_licenses=concluded,
            supplier=supplier,
            manufacturer=_party(comp.get("manufacturer")),
            authors=authors,
            publisher=_text(comp.get("publisher")),
            primary_purpose=_text(comp.get("type")).lower(),
            source_code_url=source_code_url,
            download_location=download,
            copyright=_text(comp.get("copyright")),
            external_refs=external_refs,
            required_fields=self._component_required_fields(comp),
            is_primary=bool(primary_id) and ident == primary_id,
            has_relationships=bool(dependencies),
            relationship_count=len(dependencies),
            dependencies=dependencies,
        )


class CycloneDXParser:
    """Parser for CycloneDX 1.0 - 1.6 JSON."""

    name = "cyclonedx-json"

    def supports(self, info: FormatInfo) -> bool:
        return info.spec == SpecType.CYCLONEDX and info.file_format == FileFormat.JSON

    def parse(self, raw: bytes, info: FormatInfo) -> Document:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SBOMParseError(f"Failed to decode CycloneDX JSON: {e}", "cyclonedx", "json") from e
        if not isinstance(data, dict):
            raise SBOMParseError("CycloneDX document is not an object", "cyclonedx", "json")
        return build_cyclonedx_document(data, info)


def build_cyclonedx_document(data: Dict[str, Any], info: Optional[FormatInfo] = None) -> Document:
    """Build a Document from an already decoded CycloneDX dictionary."""
    info = info or FormatInfo(SpecType.CYCLONEDX, FileFormat.JSON, _text(data.get("specVersion")))
    return _CycloneDXAdapter(data, info).build()
