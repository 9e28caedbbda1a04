"""CycloneDX XML support.

The XML tree is normalised into the dictionary shape of CycloneDX JSON and
handed to the JSON adapter.
"""

import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional

from ..exceptions import SBOMParseError
from ..models import Document, FileFormat, SpecType
from ..sniffer import FormatInfo
from .cyclonedx import build_cyclonedx_document


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> Optional[ET.Element]:
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _children(elem: Optional[ET.Element], name: str) -> List[ET.Element]:
    if elem is None:
        return []
    return [child for child in elem if _local(child.tag) == name]


def _text(elem: ET.Element, name: str) -> str:
    child = _child(elem, name)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _texts(elem: ET.Element, name: str) -> List[str]:
    return [c.text.strip() for c in _children(elem, name) if c.text and c.text.strip()]


def _refs(elem: Optional[ET.Element], name: str) -> List[str]:
    return [c.get("ref", "") for c in _children(elem, name) if c.get("ref")]


# ---------------------------------------------------------------------------
# Element converters
# ---------------------------------------------------------------------------


def _contact(elem: ET.Element) -> Dict[str, Any]:
    return {"name": _text(elem, "name"), "email": _text(elem, "email"), "phone": _text(elem, "phone")}


def _organization(elem: Optional[ET.Element]) -> Optional[Dict[str, Any]]:
    if elem is None:
        return None
    return {
        "name": _text(elem, "name"),
        "url": _texts(elem, "url"),
        "contact": [_contact(c) for c in _children(elem, "contact")],
    }


def _licenses(elem: Optional[ET.Element]) -> List[Dict[str, Any]]:
    entries: List[Dict[str, Any]] = []
    if elem is None:
        return entries
    for child in elem:
        kind = _local(child.tag)
        if kind == "expression" and child.text:
            entry = {"expression": child.text.strip()}
            if child.get("acknowledgement"):
                entry["acknowledgement"] = child.get("acknowledgement")
            entries.append(entry)
        elif kind == "license":
            lic = {"id": _text(child, "id"), "name": _text(child, "name")}
            if child.get("acknowledgement"):
                lic["acknowledgement"] = child.get("acknowledgement")
            entries.append({"license": lic})
    return entries


def _external_references(elem: Optional[ET.Element]) -> List[Dict[str, Any]]:
    return [{"type": ref.get("type", ""), "url": _text(ref, "url")} for ref in _children(elem, "reference")]


def _component(elem: ET.Element) -> Dict[str, Any]:
    comp: Dict[str, Any] = {
        "type": elem.get("type", ""),
        "name": _text(elem, "name"),
        "version": _text(elem, "version"),
        "publisher": _text(elem, "publisher"),
        "copyright": _text(elem, "copyright"),
        "cpe": _text(elem, "cpe"),
        "purl": _text(elem, "purl"),
        "omniborId": _texts(elem, "omniborId"),
        "swhid": _texts(elem, "swhid"),
        "author": _text(elem, "author"),
        "hashes": [
            {"alg": h.get("alg", ""), "content": (h.text or "").strip()}
            for h in _children(_child(elem, "hashes"), "hash")
        ],
        "licenses": _licenses(_child(elem, "licenses")),
        "externalReferences": _external_references(_child(elem, "externalReferences")),
        "components": [_component(c) for c in _children(_child(elem, "components"), "component")],
    }
    if elem.get("bom-ref"):
        comp["bom-ref"] = elem.get("bom-ref")

    authors = _children(_child(elem, "authors"), "author")
    if authors:
        comp["authors"] = [_contact(a) for a in authors]

    for key in ("supplier", "manufacturer"):
        party = _organization(_child(elem, key))
        if party is not None:
            comp[key] = party

    swid = _child(elem, "swid")
    if swid is not None:
        comp["swid"] = {"tagId": swid.get("tagId", ""), "name": swid.get("name", "")}
    return comp


def _tools(elem: Optional[ET.Element]) -> Any:
    if elem is None:
        return None
    legacy = _children(elem, "tool")
    if legacy:
        return [
            {"vendor": _text(t, "vendor"), "name": _text(t, "name"), "version": _text(t, "version")} for t in legacy
        ]
    return {
        "components": [_component(c) for c in _children(_child(elem, "components"), "component")],
        "services": [
            {"name": _text(s, "name"), "version": _text(s, "version")}
            for s in _children(_child(elem, "services"), "service")
        ],
    }


def _metadata(elem: Optional[ET.Element]) -> Dict[str, Any]:
    if elem is None:
        return {}
    metadata: Dict[str, Any] = {
        "timestamp": _text(elem, "timestamp"),
        "authors": [_contact(a) for a in _children(_child(elem, "authors"), "author")],
        "licenses": _licenses(_child(elem, "licenses")),
        "lifecycles": [
            {"phase": _text(lc, "phase"), "name": _text(lc, "name")}
            for lc in _children(_child(elem, "lifecycles"), "lifecycle")
        ],
    }
    tools = _tools(_child(elem, "tools"))
    if tools is not None:
        metadata["tools"] = tools

    component = _child(elem, "component")
    if component is not None:
        metadata["component"] = _component(component)

    for key in ("supplier", "manufacturer", "manufacture"):
        party = _organization(_child(elem, key))
        if party is not None:
            metadata[key] = party
    return metadata


def xml_to_dict(root: ET.Element) -> Dict[str, Any]:
    """Normalise a CycloneDX ``<bom>`` element into the JSON document shape."""
    version_text = root.get("version", "")
    data: Dict[str, Any] = {
        "specVersion": _local_namespace_version(root.tag),
        "serialNumber": root.get("serialNumber", ""),
        "version": int(version_text) if version_text.isdigit() else 0,
        "metadata": _metadata(_child(root, "metadata")),
        "components": [_component(c) for c in _children(_child(root, "components"), "component")],
        "externalReferences": _external_references(_child(root, "externalReferences")),
        "dependencies": [
            {"ref": dep.get("ref", ""), "dependsOn": _refs(dep, "dependency")}
            for dep in _children(_child(root, "dependencies"), "dependency")
        ],
        "compositions": [
            {
                "aggregate": _text(comp, "aggregate"),
                "assemblies": _refs(_child(comp, "assemblies"), "assembly"),
                "dependencies": _refs(_child(comp, "dependencies"), "dependency"),
                "vulnerabilities": _refs(_child(comp, "vulnerabilities"), "vulnerability"),
            }
            for comp in _children(_child(root, "compositions"), "composition")
        ],
        "vulnerabilities": [
            {"id": _text(v, "id")} for v in _children(_child(root, "vulnerabilities"), "vulnerability")
        ],
    }
    return data


def _local_namespace_version(tag: str) -> str:
    if not tag.startswith("{"):
        return ""
    namespace = tag[1:].split("}", 1)[0]
    return namespace.rstrip("/").rsplit("/", 1)[-1]


class CycloneDXXmlParser:
    """Parser for CycloneDX 1.0 - 1.6 XML."""

    name = "cyclonedx-xml"

    def supports(self, info: FormatInfo) -> bool:
        return info.spec == SpecType.CYCLONEDX and info.file_format == FileFormat.XML

    def parse(self, raw: bytes, info: FormatInfo) -> Document:
        try:
            root = ET.fromstring(raw)
        except ET.ParseError as e:
            raise SBOMParseError(f"Failed to decode CycloneDX XML: {e}", "cyclonedx", "xml") from e
        return build_cyclonedx_document(xml_to_dict(root), info)
