"""List the components (or document property) behind a single feature.

Example:
    from sbomqs._listing import list_feature

    result = list_feature(doc, "comp_with_supplier", missing=True, file_name="bom.json")
    for entry in result.components:
        print(entry.name, entry.version)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..logging_config import logger
from ..models import Document
from .features import COMPONENT_FEATURES, DOCUMENT_FEATURES, available_features, resolve_feature


@dataclass(frozen=True)
class ComponentEntry:
    name: str
    version: str
    value: str


@dataclass(frozen=True)
class DocumentProperty:
    property: str
    value: str
    present: bool


@dataclass
class ListResult:
    """
    Outcome of listing one feature for one SBOM.

    Component features fill ``components``; document features fill
    ``document_property``.
    """

    file_name: str
    feature: str
    missing: bool
    components: List[ComponentEntry] = field(default_factory=list)
    document_property: Optional[DocumentProperty] = None
    total_components: int = 0

    @property
    def is_component_feature(self) -> bool:
        return self.document_property is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"file_name": self.file_name, "feature": self.feature, "missing": self.missing}
        if self.document_property is not None:
            data["document_property"] = {
                "property": self.document_property.property,
                "value": self.document_property.value,
                "present": self.document_property.present,
            }
        else:
            data["total_components"] = self.total_components
            data["components"] = [
                {"name": c.name, "version": c.version, "value": c.value} for c in self.components
            ]
        return data


def list_feature(doc: Document, feature: str, missing: bool = False, file_name: str = "") -> ListResult:
    """
    List the components that have (or, with *missing*, lack) a feature.

    Document features report the property value instead; *missing* then
    only records what was asked for.

    Raises:
        ValueError: If the feature is unknown
    """
    key = resolve_feature(feature)
    result = ListResult(file_name=file_name, feature=key, missing=missing, total_components=len(doc.components))

    if key in COMPONENT_FEATURES:
        evaluate = COMPONENT_FEATURES[key]
        for comp in doc.components:
            present, value = evaluate(doc, comp)
            if present != missing:
                result.components.append(ComponentEntry(comp.name, comp.version, value))
        logger.debug(f"{key}: {len(result.components)}/{len(doc.components)} components listed")
        return result

    if key in DOCUMENT_FEATURES:
        present, value = DOCUMENT_FEATURES[key](doc)
        result.document_property = DocumentProperty(property=key, value=value, present=present)
        return result

    raise ValueError(f"Unknown feature: {feature}")


__all__ = [
    "COMPONENT_FEATURES",
    "DOCUMENT_FEATURES",
    "ComponentEntry",
    "DocumentProperty",
    "ListResult",
    "available_features",
    "list_feature",
    "resolve_feature",
]
