"""SCVS maturity level evaluation."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..logging_config import logger
from ..models import Document
from . import features as f

LEVELS = ("l1", "l2", "l3")

L123 = (True, True, True)
L23 = (False, True, True)
L3 = (False, False, True)


@dataclass(frozen=True)
class ScvsFeature:
    """A verification requirement and the maturity levels that require it."""

    key: str
    description: str
    evaluate: Callable[[Document], bool]
    levels: Tuple[bool, bool, bool]


@dataclass
class ScvsResult:
    """
    Result of one SCVS feature.

    Attributes:
        feature: Feature key
        description: Requirement text
        passed: Whether the document satisfies the requirement
        l1, l2, l3: True/False for levels requiring the feature, None otherwise
        error: Error message if the predicate raised
    """

    feature: str
    description: str
    passed: bool
    l1: Optional[bool] = None
    l2: Optional[bool] = None
    l3: Optional[bool] = None
    error: Optional[str] = None

    def level(self, name: str) -> Optional[bool]:
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "feature": self.feature,
            "description": self.description,
            "l1": self.l1,
            "l2": self.l2,
            "l3": self.l3,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class ScvsScores:
    """Results of all SCVS features."""

    results: List[ScvsResult] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.results)

    def level_passed(self, name: str) -> bool:
        """A level passes when every feature it requires passes."""
        return all(r.level(name) is not False for r in self.results)

    def level_summary(self) -> Dict[str, Tuple[int, int]]:
        """Per level: (passed, required) feature counts."""
        summary = {}
        for name in LEVELS:
            required = [r for r in self.results if r.level(name) is not None]
            summary[name] = (sum(1 for r in required if r.level(name)), len(required))
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "levels": {name: self.level_passed(name) for name in LEVELS},
            "scores": [r.to_dict() for r in self.results],
        }


SCVS_FEATURES: List[ScvsFeature] = [
    ScvsFeature("sbom_machine_readable", "SBOM is machine readable", f.is_machine_readable, L123),
    ScvsFeature("sbom_automated_creation", "SBOM creation is automated and reproducible", f.is_creation_automated, L23),
    ScvsFeature("sbom_unique_id", "Each SBOM has a unique identifier", f.has_unique_id, L123),
    ScvsFeature(
        "sbom_signed", "SBOM has been signed by publisher, supplier, or certifying authority", f.has_signature, L23
    ),
    ScvsFeature("sbom_signature_correct", "SBOM signature verification exists", f.is_signature_correct, L23),
    ScvsFeature("sbom_signature_verified", "SBOM signature verification is performed", f.is_signature_verified, L3),
    ScvsFeature("sbom_timestamp", "SBOM is timestamped", f.is_timestamped, L123),
    ScvsFeature("sbom_risk_analysis", "SBOM is analyzed for risk", f.is_analyzed_for_risk, L123),
    ScvsFeature(
        "sbom_dependency_inventory",
        "SBOM contains a complete and accurate inventory of all components the SBOM describes",
        f.has_dependency_inventory,
        L123,
    ),
    ScvsFeature(
        "sbom_test_inventory",
        "SBOM contains an accurate inventory of all test components for the asset or application it describes",
        f.has_test_inventory,
        L23,
    ),
    ScvsFeature(
        "sbom_primary_component",
        "SBOM contains metadata about the asset or software the SBOM describes",
        f.has_primary_component,
        L23,
    ),
    ScvsFeature(
        "comp_identity_id",
        "Component identifiers are derived from their native ecosystems (if applicable)",
        f.components_have_identity,
        L123,
    ),
    ScvsFeature(
        "comp_origin_id",
        "Component point of origin is identified in a consistent, machine readable format (e.g. PURL)",
        f.components_have_origin,
        L3,
    ),
    ScvsFeature(
        "comp_licenses",
        "Components defined in SBOM have accurate license information",
        f.components_have_licenses,
        L123,
    ),
    ScvsFeature(
        "comp_verified_licenses",
        "Components defined in SBOM have valid SPDX license ID's or expressions (if applicable)",
        f.components_have_verified_licenses,
        L23,
    ),
    ScvsFeature(
        "comp_copyright",
        "Components defined in SBOM have valid copyright statements",
        f.components_have_copyright,
        L3,
    ),
    ScvsFeature(
        "comp_modifications",
        "Components defined in SBOM which have been modified from the original have detailed provenance "
        "and pedigree information",
        f.components_have_modifications,
        L3,
    ),
    ScvsFeature(
        "comp_hash",
        "Components defined in SBOM have one or more file hashes (SHA-256, SHA-512, etc)",
        f.components_have_hash,
        L3,
    ),
]


def _evaluate(feature: ScvsFeature, doc: Document) -> ScvsResult:
    error = None
    try:
        passed = bool(feature.evaluate(doc))
    except Exception as e:
        logger.error(f"SCVS feature {feature.key} raised exception: {e}")
        passed = False
        error = str(e)

    levels = [passed if required else None for required in feature.levels]
    return ScvsResult(
        feature=feature.key,
        description=feature.description,
        passed=passed,
        l1=levels[0],
        l2=levels[1],
        l3=levels[2],
        error=error,
    )


def score_scvs(doc: Document) -> ScvsScores:
    """Evaluate every SCVS feature against a Document."""
    scores = ScvsScores([_evaluate(feature, doc) for feature in SCVS_FEATURES])
    logger.info(
        "SCVS levels: " + ", ".join(f"{name}={'pass' if scores.level_passed(name) else 'fail'}" for name in LEVELS)
    )
    return scores
