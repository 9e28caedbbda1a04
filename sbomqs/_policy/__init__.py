"""Policy engine: whitelist, blacklist and required-field rules over SBOM fields."""

from .engine import PolicyResult, Violation, any_failed, evaluate_policies, evaluate_policy
from .extractor import COMPONENT_FIELDS, DOCUMENT_FIELDS
from .loader import load_policy_file, parse_inline_rule, parse_policies, policy_from_flags
from .models import Policy, PolicyAction, PolicyType, Rule

__all__ = [
    "COMPONENT_FIELDS",
    "DOCUMENT_FIELDS",
    "Policy",
    "PolicyAction",
    "PolicyResult",
    "PolicyType",
    "Rule",
    "Violation",
    "any_failed",
    "evaluate_policies",
    "evaluate_policy",
    "load_policy_file",
    "parse_inline_rule",
    "parse_policies",
    "policy_from_flags",
]
