"""SPDX 3 JSON-LD parser.

Walks the ``@graph`` of an SPDX 3.0.x document in two passes: the first
indexes every element by its identifier, the second turns packages,
relationships and agents into the unified Document model. Property names
are accepted both with and without the profile prefix (``software_``,
``simplelicensing_``) since pre-3.0.1 producers omit it.
"""

import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .._licenses import License, lookup_expression
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
from ..sniffer import FormatInfo, extract_spdx3_version, is_spdx3
from .spdx import split_tool_name

# Map JSON-LD type aliases to the names used below
_TYPE_ALIASES: dict[str, str] = {
    "software_Package": "Package",
    "software_File": "File",
    "software_Sbom": "Sbom",
    "simplelicensing_LicenseExpression": "LicenseExpression",
    "expandedlicensing_ListedLicense": "ListedLicense",
    "expandedlicensing_CustomLicense": "CustomLicense",
    "expandedlicensing_ListedLicenseException": "ListedLicenseException",
    "expandedlicensing_NoAssertionLicense": "NoAssertionLicense",
    "expandedlicensing_NoneLicense": "NoneLicense",
}

_AGENT_TYPES = {"Person", "Organization", "Tool", "SoftwareAgent", "Agent"}
_TOOL_TYPES = {"Tool", "SoftwareAgent"}

_GRAPH_RELATIONSHIPS = {
    "describes": RelationshipType.DESCRIBES,
    "contains": RelationshipType.CONTAINS,
    "dependson": RelationshipType.DEPENDS_ON,
    "depends_on": RelationshipType.DEPENDS_ON,
}

_LISTED_LICENSE_PREFIX = "https://spdx.org/licenses/"


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _prop(elem: Dict[str, Any], name: str, *prefixes: str) -> Any:
    """Read a property with or without its profile prefix."""
    for prefix in prefixes:
        key = f"{prefix}_{name}"
        if key in elem:
            return elem[key]
    return elem.get(name)


def _element_type(elem: Dict[str, Any]) -> str:
    elem_type = elem.get("type") or elem.get("@type", "")
    return _TYPE_ALIASES.get(elem_type, elem_type)


def _element_id(elem: Dict[str, Any]) -> str:
    return str(elem.get("spdxId") or elem.get("@id") or "")


class _Spdx3Adapter:
    """Builds a Document from a decoded SPDX 3 JSON-LD dictionary."""

    def __init__(self, data: Dict[str, Any], info: FormatInfo) -> None:
        self.data = data
        self.info = info
        self.logs: List[str] = []

        graph = data.get("@graph", [])
        if not graph and ("type" in data or "@type" in data):
            graph = [data]
        self.graph: List[Dict[str, Any]] = [e for e in graph if isinstance(e, dict)]

        # First pass: index elements by identifier
        self.elements: Dict[str, Dict[str, Any]] = {}
        for elem in self.graph:
            elem_id = _element_id(elem)
            if elem_id:
                self.elements[elem_id] = elem

        self.document = next((e for e in self.graph if _element_type(e) == "SpdxDocument"), {})
        self.sboms = [e for e in self.graph if _element_type(e) == "Sbom"]
        self.packages = [e for e in self.graph if _element_type(e) == "Package"]
        self.relationships_raw = [e for e in self.graph if _element_type(e) == "Relationship"]

    def _log(self, message: str) -> None:
        self.logs.append(message)
        logger.debug(message)

    # -- lookups -------------------------------------------------------------

    def _creation_info(self, elem: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        source = elem if elem is not None else self.document
        ci = source.get("creationInfo") if source else None
        if isinstance(ci, dict):
            return ci
        if isinstance(ci, str) and ci in self.elements:
            return self.elements[ci]
        # Fall back to the first CreationInfo in the graph
        return next((e for e in self.graph if _element_type(e) == "CreationInfo"), {})

    def _agent(self, ref: Any) -> Optional[Dict[str, Any]]:
        if isinstance(ref, dict):
            return ref
        if isinstance(ref, str):
            return self.elements.get(ref)
        return None

    def _agent_email(self, agent: Dict[str, Any]) -> str:
        for ext in _as_list(agent.get("externalIdentifier")):
            if isinstance(ext, dict) and str(ext.get("externalIdentifierType", "")).lower() == "email":
                return str(ext.get("identifier", ""))
        return ""

    def _license_expression(self, ref: Any) -> str:
        """Resolve the target of a license relationship to an expression string."""
        if isinstance(ref, dict):
            elem = ref
        elif isinstance(ref, str) and ref in self.elements:
            elem = self.elements[ref]
        elif isinstance(ref, str):
            return ref[len(_LISTED_LICENSE_PREFIX) :] if ref.startswith(_LISTED_LICENSE_PREFIX) else ref
        else:
            return ""

        elem_type = _element_type(elem)
        if elem_type == "LicenseExpression":
            return str(_prop(elem, "licenseExpression", "simplelicensing") or "")
        if elem_type in ("NoAssertionLicense",):
            return "NOASSERTION"
        if elem_type in ("NoneLicense",):
            return "NONE"
        elem_id = _element_id(elem)
        if elem_id.startswith(_LISTED_LICENSE_PREFIX):
            return elem_id[len(_LISTED_LICENSE_PREFIX) :]
        return str(elem.get("name") or elem_id)

    def _licenses_for(self, package_id: str, rel_type: str) -> Tuple[License, ...]:
        licenses: List[License] = []
        for rel in self.relationships_raw:
            if rel.get("from") != package_id or str(rel.get("relationshipType", "")).lower() != rel_type:
                continue
            for target in _as_list(rel.get("to")):
                licenses.extend(lookup_expression(self._license_expression(target)))
        return tuple(licenses)

    # -- document ------------------------------------------------------------

    def build(self) -> Document:
        relationships = self._relationships()
        primary_id = self._primary_component_id(relationships)
        components = tuple(self._component(pkg, relationships, primary_id) for pkg in self.packages)

        primary = PrimaryComponent()
        if primary_id:
            deps = tuple(
                r.to_id
                for r in relationships
                if r.from_id == primary_id and r.rel_type in (RelationshipType.DEPENDS_ON, RelationshipType.CONTAINS)
            )
            primary = PrimaryComponent(
                present=True,
                id=primary_id,
                name=next((c.name for c in components if c.id == primary_id), ""),
                dependency_count=len(deps),
                dependencies=deps,
            )

        authors, tools = self._authors_and_tools()
        return Document(
            spec=self._spec(),
            components=components,
            relationships=relationships,
            authors=authors,
            tools=tools,
            primary_component=primary,
            lifecycles=self._lifecycles(),
            logs=tuple(self.logs),
        )

    def _required_fields(self) -> bool:
        ci = self._creation_info()
        checks = (
            (bool(self.document), "spdx3 doc is missing SpdxDocument element"),
            (bool(_element_id(self.document)), "spdx3 doc is missing SPDXIdentifier"),
            (bool(self.document.get("name")), "spdx3 doc is missing Name"),
            (bool(ci), "spdx3 doc is missing creation info"),
            (bool(_as_list(ci.get("createdBy"))), "spdx3 doc is missing creators"),
            (bool(ci.get("created")), "spdx3 doc is missing created timestamp"),
        )
        for ok, message in checks:
            if not ok:
                self._log(message)
                return False
        return True

    def _spec(self) -> Spec:
        ci = self._creation_info()

        organization = ""
        for ref in _as_list(ci.get("createdBy")):
            agent = self._agent(ref)
            if agent and _element_type(agent) == "Organization":
                organization = str(agent.get("name", ""))
                break

        namespace = ""
        for entry in _as_list(self.document.get("namespaceMap")):
            if isinstance(entry, dict) and entry.get("namespace"):
                namespace = str(entry["namespace"])
                break
        if not namespace:
            namespace = _element_id(self.document)

        data_license = self.document.get("dataLicense") or ci.get("dataLicense") or ""
        external_refs = tuple(
            str(ref.get("externalSpdxId") or ref.get("locationHint") or "")
            for ref in _as_list(self.document.get("import"))
            if isinstance(ref, dict)
        )

        return Spec(
            spec_type=SpecType.SPDX,
            version=str(ci.get("specVersion") or self.info.version),
            file_format=FileFormat.JSON,
            name=str(self.document.get("name", "")),
            spdx_id=_element_id(self.document),
            namespace=namespace,
            uri=namespace,
            creation_timestamp=str(ci.get("created", "")),
            organization=organization,
            licenses=tuple(lookup_expression(self._license_expression(data_license))),
            comment=str(ci.get("comment", "")),
            external_doc_refs=tuple(r for r in external_refs if r),
            required_fields=self._required_fields(),
        )

    def _authors_and_tools(self) -> Tuple[Tuple[Author, ...], Tuple[Tool, ...]]:
        ci = self._creation_info()
        authors: List[Author] = []
        tools: List[Tool] = []

        for ref in _as_list(ci.get("createdBy")):
            agent = self._agent(ref)
            if agent is None:
                self._log(f"spdx3 doc creator {ref} not found in graph")
                continue
            agent_type = _element_type(agent)
            name = str(agent.get("name", ""))
            if agent_type in _TOOL_TYPES:
                tools.append(Tool(*split_tool_name(name)))
            else:
                authors.append(Author(name=name, email=self._agent_email(agent), author_type=agent_type.lower()))

        for ref in _as_list(ci.get("createdUsing")):
            agent = self._agent(ref)
            if agent is not None:
                tools.append(Tool(*split_tool_name(str(agent.get("name", "")))))

        return tuple(authors), tuple(tools)

    def _lifecycles(self) -> Tuple[str, ...]:
        phases: List[str] = []
        for sbom in self.sboms:
            for phase in _as_list(_prop(sbom, "sbomType", "software")):
                if isinstance(phase, str) and phase not in phases:
                    phases.append(phase)
        return tuple(phases)

    def _relationships(self) -> Tuple[Relationship, ...]:
        relationships: List[Relationship] = []
        for rel in self.relationships_raw:
            rel_type = _GRAPH_RELATIONSHIPS.get(str(rel.get("relationshipType", "")).lower())
            source = rel.get("from")
            if rel_type is None or not isinstance(source, str):
                continue
            for target in _as_list(rel.get("to")):
                if isinstance(target, str) and target:
                    relationships.append(Relationship(source, target, rel_type.value))

        # rootElement of the Sbom (or SpdxDocument) counts as a describes edge
        described = {r.to_id for r in relationships if r.rel_type == RelationshipType.DESCRIBES}
        for holder in self.sboms + ([self.document] if self.document else []):
            for root in _as_list(holder.get("rootElement")):
                if isinstance(root, str) and root not in described:
                    relationships.append(Relationship(_element_id(holder), root, RelationshipType.DESCRIBES.value))
                    described.add(root)
        return tuple(relationships)

    def _primary_component_id(self, relationships: Iterable[Relationship]) -> str:
        package_ids = {_element_id(p) for p in self.packages}
        for rel in relationships:
            if rel.rel_type == RelationshipType.DESCRIBES and rel.to_id in package_ids:
                return rel.to_id
        return ""

    # -- packages ------------------------------------------------------------

    def _package_required_fields(self, pkg: Dict[str, Any]) -> bool:
        name = str(pkg.get("name", ""))
        spdx_id = _element_id(pkg)
        if not name:
            self._log(f"spdx3 doc pkg {spdx_id} missing name")
            return False
        if not spdx_id:
            self._log(f"spdx3 doc pkg {name} missing identifier")
            return False
        if not _prop(pkg, "downloadLocation", "software"):
            self._log(f"spdx3 doc pkg {name} missing downloadLocation")
            return False
        return True

    def _identifiers(self, pkg: Dict[str, Any], *kinds: str) -> List[str]:
        found = []
        for ext in _as_list(pkg.get("externalIdentifier")):
            if isinstance(ext, dict) and str(ext.get("externalIdentifierType", "")).lower() in kinds:
                identifier = str(ext.get("identifier", ""))
                if identifier and identifier not in found:
                    found.append(identifier)
        return found

    def _validated_identifiers(
        self, pkg: Dict[str, Any], kind: str, is_valid: Callable[[str], bool]
    ) -> Tuple[str, ...]:
        valid = []
        for identifier in self._identifiers(pkg, kind):
            if is_valid(identifier):
                valid.append(identifier)
            else:
                self._log(f"spdx3 doc pkg {pkg.get('name', '')} invalid {kind} found: {identifier}")
        return tuple(valid)

    def _external_refs(self, pkg: Dict[str, Any]) -> List[ExternalReference]:
        refs = []
        for ref in _as_list(pkg.get("externalRef") or pkg.get("externalReference")):
            if not isinstance(ref, dict):
                continue
            ref_type = str(ref.get("externalRefType") or ref.get("externalReferenceType") or "")
            for locator in _as_list(ref.get("locator")):
                refs.append(ExternalReference(ref_type, str(locator)))
        return refs

    def _purls(self, pkg: Dict[str, Any]) -> Tuple[str, ...]:
        name = pkg.get("name", "")
        candidates = [p for p in _as_list(_prop(pkg, "packageUrl", "software")) if p]
        candidates += self._identifiers(pkg, "purl", "packageurl")
        candidates += [r.locator for r in self._external_refs(pkg) if r.locator.startswith("pkg:")]

        purls: List[str] = []
        for candidate in candidates:
            if not is_valid_purl(str(candidate)):
                self._log(f"spdx3 doc pkg {name} invalid purl found: {candidate}")
            elif candidate not in purls:
                purls.append(str(candidate))
        if not purls:
            self._log(f"spdx3 doc pkg {name} no purls found")
        return tuple(purls)

    def _cpes(self, pkg: Dict[str, Any]) -> Tuple[str, ...]:
        name = pkg.get("name", "")
        cpes: List[str] = []
        for candidate in self._identifiers(pkg, "cpe22", "cpe23"):
            if not is_valid_cpe(candidate):
                self._log(f"spdx3 doc pkg {name} invalid cpe found: {candidate}")
            elif candidate not in cpes:
                cpes.append(candidate)
        if not cpes:
            self._log(f"spdx3 doc pkg {name} no cpes found")
        return tuple(cpes)

    def _checksums(self, pkg: Dict[str, Any]) -> Tuple[Checksum, ...]:
        checksums = tuple(
            Checksum(algorithm=str(h.get("algorithm", "")), value=str(h.get("hashValue", "")))
            for h in _as_list(pkg.get("verifiedUsing"))
            if isinstance(h, dict) and ("algorithm" in h or "hashValue" in h)
        )
        if not checksums:
            self._log(f"spdx3 doc pkg {pkg.get('name', '')} no checksum found")
        return checksums

    def _party(self, ref: Any) -> Party:
        agent = self._agent(ref)
        if agent is None:
            return Party()
        return Party(name=str(agent.get("name", "")), email=self._agent_email(agent))

    def _component(self, pkg: Dict[str, Any], relationships: Tuple[Relationship, ...], primary_id: str) -> Component:
        spdx_id = _element_id(pkg)

        supplied_by = _as_list(pkg.get("suppliedBy"))
        originated_by = _as_list(pkg.get("originatedBy"))
        supplier = self._party(supplied_by[0]) if supplied_by else Party()
        manufacturer = self._party(originated_by[0]) if originated_by else Party()
        if not supplier.present and manufacturer.present:
            supplier = manufacturer

        authors = []
        for ref in originated_by:
            agent = self._agent(ref)
            if agent is not None:
                authors.append(
                    Author(
                        name=str(agent.get("name", "")),
                        email=self._agent_email(agent),
                        author_type=_element_type(agent).lower(),
                    )
                )

        concluded = self._licenses_for(spdx_id, "hasconcludedlicense")
        declared = self._licenses_for(spdx_id, "hasdeclaredlicense")

        external_refs = self._external_refs(pkg)
        source_code_url = next(
            (r.locator for r in external_refs if r.ref_type.lower() in ("vcs", "sourceartifact")),
            "",
        )
        if not source_code_url:
            source_info = str(_prop(pkg, "sourceInfo", "software") or "")
            if source_info.startswith(("http://", "https://", "git+", "git://")):
                source_code_url = source_info

        content_identifier = _prop(pkg, "contentIdentifier", "software")
        if isinstance(content_identifier, str) and content_identifier:
            external_refs.append(ExternalReference("contentIdentifier", content_identifier))

        outgoing = [r for r in relationships if r.from_id == spdx_id]
        dependencies = tuple(
            r.to_id for r in outgoing if r.rel_type in (RelationshipType.DEPENDS_ON, RelationshipType.CONTAINS)
        )
        download = str(_prop(pkg, "downloadLocation", "software") or "")
        if download.upper() in ("NONE", "NOASSERTION"):
            download = ""

        return Component(
            id=spdx_id,
            name=str(pkg.get("name", "")),
            version=str(_prop(pkg, "packageVersion", "software") or ""),
            purls=self._purls(pkg),
            cpes=self._cpes(pkg),
            swhids=self._validated_identifiers(pkg, "swhid", is_valid_swhid),
            swids=tuple(Swid(tag_id=t) for t in self._identifiers(pkg, "swid")),
            omnibor_ids=self._validated_identifiers(pkg, "gitoid", is_valid_omnibor_id),
            checksums=self._checksums(pkg),
            licenses=concluded if concluded else declared,
            declared_licenses=declared,
            concluded_licenses=concluded,
            supplier=supplier,
            manufacturer=manufacturer,
            authors=tuple(authors),
            primary_purpose=str(_prop(pkg, "primaryPurpose", "software") or "").lower(),
            source_code_url=source_code_url,
            download_location=download,
            copyright=str(_prop(pkg, "copyrightText", "software") or ""),
            external_refs=tuple(external_refs),
            required_fields=self._package_required_fields(pkg),
            is_primary=bool(primary_id) and spdx_id == primary_id,
            has_relationships=bool(outgoing),
            relationship_count=len(outgoing),
            dependencies=dependencies,
        )


class Spdx3Parser:
    """Parser for SPDX 3.0.x JSON-LD documents."""

    name = "spdx3"

    def supports(self, info: FormatInfo) -> bool:
        return info.spec == SpecType.SPDX and info.is_spdx3 and info.file_format == FileFormat.JSON

    def parse(self, raw: bytes, info: FormatInfo) -> Document:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SBOMParseError(f"Failed to decode SPDX 3 JSON-LD: {e}", "spdx", "json") from e
        if not is_spdx3(data):
            raise SBOMParseError("Document does not carry an SPDX 3 @context", "spdx", "json")
        return build_spdx3_document(data, info)


def build_spdx3_document(data: Dict[str, Any], info: Optional[FormatInfo] = None) -> Document:
    """Build a Document from an already decoded SPDX 3 JSON-LD dictionary."""
    info = info or FormatInfo(SpecType.SPDX, FileFormat.JSON, extract_spdx3_version(data))
    return _Spdx3Adapter(data, info).build()
