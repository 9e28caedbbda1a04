"""Check selection by category or feature."""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from .protocol import Check

# Feature names accepted by older command lines.
LEGACY_FEATURE_ALIASES = {
    "doc-license": "sbom_sharable",
    "comp-no-restric-licence": "comp_with_restrictive_licenses",
    "comp-primary-purpose": "comp_with_primary_purpose",
    "comp-no-deprecat-licence": "comp_with_deprecated_licenses",
    "comp-valid-licence": "comp_valid_licenses",
    "comp-checksums": "comp_with_checksums",
    "comp-licence": "comp_with_licenses",
    "doc-all-req-fileds": "sbom_required_fields",
    "doc-timestamp": "sbom_creation_timestamp",
    "doc-author": "sbom_authors",
    "doc-relationship": "sbom_dependencies",
    "comp-uniq-ids": "comp_with_uniq_ids",
    "comp-version": "comp_with_version",
    "comp-name": "comp_with_name",
    "comp-supplier-name": "comp_with_supplier",
    "spec-parsable": "sbom_parsable",
    "spec-file-format": "sbom_spec_file_format",
    "spec-version": "sbom_spec_version",
    "sbom-spec": "sbom_spec",
    "comp-any-vulnerability-id": "comp_with_any_vuln_lookup_id",
    "comp-multi-vulnerability-id": "comp_with_multi_vuln_lookup_id",
    "doc-creator-tool": "sbom_with_creator_and_version",
}


def normalize_feature(name: str) -> str:
    """Map a legacy alias to its feature key; other names pass through stripped."""
    name = name.strip()
    return LEGACY_FEATURE_ALIASES.get(name, name)


def _split(values: Iterable[str]) -> FrozenSet[str]:
    """Flatten comma separated values."""
    items = set()
    for value in values:
        for part in value.split(","):
            if part.strip():
                items.add(part.strip())
    return frozenset(items)


@dataclass(frozen=True)
class ScoreFilter:
    """
    Selection of checks to evaluate.

    The modes are mutually exclusive: a feature filter wins over a category
    filter, and an empty filter selects everything.

    Attributes:
        categories: Category names, matched case-insensitively
        features: Feature keys, ``Category:key`` qualified keys or legacy aliases
    """

    categories: FrozenSet[str] = field(default_factory=frozenset)
    features: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def create(cls, categories: Iterable[str] = (), features: Iterable[str] = ()) -> "ScoreFilter":
        return cls(
            categories=frozenset(c.lower() for c in _split(categories)),
            features=frozenset(normalize_feature(f) for f in _split(features)),
        )

    @property
    def mode(self) -> str:
        if self.features:
            return "feature"
        if self.categories:
            return "category"
        return "all"

    def matches(self, check: Check) -> bool:
        if self.features:
            return check.key in self.features or check.qualified_key in self.features
        if self.categories:
            return check.category.value.lower() in self.categories
        return True
