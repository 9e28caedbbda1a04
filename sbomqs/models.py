"""Unified, read-only document model shared by all SBOM specifications.

Parsers build these objects in one pass; nothing mutates them afterwards.
Collections are tuples so a Document can be shared freely between checks.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ._licenses import License
from .identifiers import Swid


class SpecType(str, Enum):
    """SBOM specification family."""

    SPDX = "spdx"
    CYCLONEDX = "cyclonedx"
    UNKNOWN = "unknown"


class FileFormat(str, Enum):
    """Serialization of an SBOM file."""

    JSON = "json"
    XML = "xml"
    YAML = "yaml"
    TAG_VALUE = "tag-value"
    RDF = "rdf"
    UNKNOWN = "unknown"


class RelationshipType(str, Enum):
    DESCRIBES = "DESCRIBES"
    CONTAINS = "CONTAINS"
    DEPENDS_ON = "DEPENDS_ON"


# =============================================================================
# Small value types
# =============================================================================


@dataclass(frozen=True)
class Checksum:
    algorithm: str
    value: str


@dataclass(frozen=True)
class Contact:
    name: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class Author:
    """Person or organization credited with creating an SBOM or component."""

    name: str = ""
    email: str = ""
    phone: str = ""
    author_type: str = "person"

    @property
    def present(self) -> bool:
        return bool(self.name.strip() or self.email.strip())


@dataclass(frozen=True)
class Tool:
    name: str
    version: str = ""


@dataclass(frozen=True)
class Party:
    """A supplier or manufacturer organization."""

    name: str = ""
    url: str = ""
    email: str = ""
    contacts: Tuple[Contact, ...] = ()

    @property
    def present(self) -> bool:
        return bool(self.name.strip() or self.url.strip() or self.email.strip() or self.contacts)


Supplier = Party
Manufacturer = Party


@dataclass(frozen=True)
class ExternalReference:
    ref_type: str
    locator: str


@dataclass(frozen=True)
class Relationship:
    """Directed edge between two component (or document) identifiers."""

    from_id: str
    to_id: str
    rel_type: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "rel_type", self.rel_type.upper())


@dataclass(frozen=True)
class PrimaryComponent:
    """Component the SBOM describes."""

    present: bool = False
    id: str = ""
    name: str = ""
    dependency_count: int = 0
    dependencies: Tuple[str, ...] = ()

    @property
    def has_dependencies(self) -> bool:
        return self.dependency_count > 0


@dataclass(frozen=True)
class Vulnerability:
    id: str


@dataclass(frozen=True)
class Composition:
    """Producer-declared completeness statement (CycloneDX compositions)."""

    id: str = ""
    aggregate: str = "unknown"
    assemblies: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()
    vulnerabilities: Tuple[str, ...] = ()

    @property
    def scope(self) -> str:
        if self.dependencies:
            return "dependencies"
        if self.assemblies:
            return "assemblies"
        if self.vulnerabilities:
            return "vulnerabilities"
        return "global"

    @property
    def is_complete(self) -> bool:
        return self.aggregate == "complete"


@dataclass(frozen=True)
class Signature:
    """Embedded JSON signature (JSF) of a CycloneDX document.

    Attributes:
        algorithm: JWA name, e.g. RS256
        key_id: Optional key identifier
        value: Base64 signature value
        public_key: PEM encoded public key rebuilt from the JWK
        certificate_path: Certificate chain, if any
        excludes: Properties excluded from signing
        payload: Canonical bytes the signature is checked against
    """

    algorithm: str = ""
    key_id: str = ""
    value: str = ""
    public_key: str = ""
    certificate_path: Tuple[str, ...] = ()
    excludes: Tuple[str, ...] = ()
    payload: bytes = field(default=b"", repr=False)

    @property
    def present(self) -> bool:
        return bool(self.value)


# =============================================================================
# Spec, Component, Document
# =============================================================================


@dataclass(frozen=True)
class Spec:
    """Document-level metadata of an SBOM."""

    spec_type: SpecType
    version: str
    file_format: FileFormat
    name: str = ""
    spdx_id: str = ""
    namespace: str = ""
    uri: str = ""
    creation_timestamp: str = ""
    organization: str = ""
    licenses: Tuple[License, ...] = ()
    comment: str = ""
    external_doc_refs: Tuple[str, ...] = ()
    required_fields: bool = False
    parsable: bool = True


@dataclass(frozen=True)
class Component:
    """A software unit inside a Document."""

    id: str
    name: str = ""
    version: str = ""
    purls: Tuple[str, ...] = ()
    cpes: Tuple[str, ...] = ()
    swhids: Tuple[str, ...] = ()
    swids: Tuple[Swid, ...] = ()
    omnibor_ids: Tuple[str, ...] = ()
    checksums: Tuple[Checksum, ...] = ()
    licenses: Tuple[License, ...] = ()
    declared_licenses: Tuple[License, ...] = ()
    concluded_licenses: Tuple[License, ...] = ()
    supplier: Party = field(default_factory=Party)
    manufacturer: Party = field(default_factory=Party)
    authors: Tuple[Author, ...] = ()
    publisher: str = ""
    primary_purpose: str = ""
    source_code_url: str = ""
    download_location: str = ""
    source_code_hash: str = ""
    copyright: str = ""
    files_analyzed: bool = False
    external_refs: Tuple[ExternalReference, ...] = ()
    required_fields: bool = False
    is_primary: bool = False
    has_relationships: bool = False
    relationship_count: int = 0
    dependencies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Document:
    """A normalized SBOM.

    Example:
        doc = parse_sbom(Path("bom.json").read_bytes())
        for comp in doc.components:
            print(comp.name, comp.version)
    """

    spec: Spec
    components: Tuple[Component, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    authors: Tuple[Author, ...] = ()
    tools: Tuple[Tool, ...] = ()
    supplier: Party = field(default_factory=Party)
    manufacturer: Party = field(default_factory=Party)
    primary_component: PrimaryComponent = field(default_factory=PrimaryComponent)
    vulnerabilities: Tuple[Vulnerability, ...] = ()
    signature: Optional[Signature] = None
    compositions: Tuple[Composition, ...] = ()
    lifecycles: Tuple[str, ...] = ()
    logs: Tuple[str, ...] = ()
    schema_valid: Optional[bool] = None

    def component_by_id(self, component_id: str) -> Optional[Component]:
        for component in self.components:
            if component.id == component_id:
                return component
        return None

    def dependencies_of(self, component_id: str) -> Tuple[str, ...]:
        """Direct DEPENDS_ON / CONTAINS targets of a component."""
        return tuple(
            rel.to_id
            for rel in self.relationships
            if rel.from_id == component_id and rel.rel_type in (RelationshipType.DEPENDS_ON, RelationshipType.CONTAINS)
        )

    def composition_of(self, component_id: str) -> Optional[Composition]:
        """Composition that names this component, else the global one, else None."""
        global_composition = None
        for composition in self.compositions:
            if component_id in composition.dependencies or component_id in composition.assemblies:
                return composition
            if composition.scope == "global" and global_composition is None:
                global_composition = composition
        return global_composition
