"""Policy evaluation against a Document."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..logging_config import logger
from ..models import Document
from .extractor import NO_ASSERTION, component_values, document_values, is_document_field, known_field
from .models import Policy, PolicyAction, PolicyType, Rule

DOCUMENT_ELEMENT = "sbom"

OUTCOME_PASS = "pass"
OUTCOME_WARN = "warn"
OUTCOME_FAIL = "fail"


@dataclass(frozen=True)
class Violation:
    """A component (or the document) breaking one rule."""

    component: str
    field: str
    actual: List[str]
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"component_name": self.component, "field": self.field, "actual": self.actual, "reason": self.reason}


@dataclass
class PolicyResult:
    """Outcome of one policy on one SBOM."""

    policy: Policy
    total_checked: int
    violations: List[Violation] = field(default_factory=list)
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    )

    @property
    def outcome(self) -> str:
        """``pass`` without violations, otherwise the policy's action."""
        if not self.violations:
            return OUTCOME_PASS
        if self.policy.action == PolicyAction.WARN:
            return OUTCOME_WARN
        if self.policy.action == PolicyAction.PASS:
            return OUTCOME_PASS
        return OUTCOME_FAIL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.policy.name,
            "type": self.policy.type.value,
            "action": self.policy.action.value,
            "outcome": self.outcome,
            "total_checked": self.total_checked,
            "violation_count": len(self.violations),
            "violations": [v.to_dict() for v in self.violations],
            "generated_at": self.generated_at,
        }


def _missing(actual: List[str]) -> bool:
    return not any(v.strip() and v.strip().upper() not in (NO_ASSERTION, "NONE") for v in actual)


def _violation_reason(policy_type: PolicyType, rule: Rule, actual: List[str]) -> Optional[str]:
    if policy_type == PolicyType.REQUIRED:
        return "missing field" if _missing(actual) else None
    matched = rule.matches(actual)
    if policy_type == PolicyType.WHITELIST and not matched:
        return "value not in whitelist"
    if policy_type == PolicyType.BLACKLIST and matched:
        return "value in blacklist"
    return None


def evaluate_policy(policy: Policy, doc: Document) -> PolicyResult:
    """
    Apply a policy's rules to every component of a Document.

    Rules on ``sbom_`` fields are checked once against the document and
    reported under the element name ``sbom``. Rules naming an unknown
    field are logged and skipped.

    Args:
        policy: Validated policy
        doc: Parsed Document

    Returns:
        PolicyResult with one violation per failing (component, rule) pair
    """
    result = PolicyResult(policy=policy, total_checked=len(doc.components))
    rules = []
    for rule in policy.rules:
        if known_field(rule.field):
            rules.append(rule)
        else:
            logger.warning(f"Policy {policy.name}: unknown field '{rule.field}', rule skipped")

    for rule in (r for r in rules if is_document_field(r.field)):
        actual = document_values(doc, rule.field)
        reason = _violation_reason(policy.type, rule, actual)
        if reason:
            result.violations.append(Violation(DOCUMENT_ELEMENT, rule.field, actual, reason))

    component_rules = [r for r in rules if not is_document_field(r.field)]
    for comp in doc.components:
        for rule in component_rules:
            actual = component_values(comp, rule.field)
            reason = _violation_reason(policy.type, rule, actual)
            if reason:
                result.violations.append(Violation(comp.name or comp.id, rule.field, actual, reason))

    logger.debug(
        f"Policy {policy.name}: {len(result.violations)} violation(s) across {result.total_checked} component(s)"
    )
    return result


def evaluate_policies(policies: List[Policy], doc: Document) -> List[PolicyResult]:
    return [evaluate_policy(policy, doc) for policy in policies]


def any_failed(results: List[PolicyResult]) -> bool:
    return any(r.outcome == OUTCOME_FAIL for r in results)
