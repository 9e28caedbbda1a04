"""Policy and rule definitions."""

import dataclasses
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Pattern, Tuple

from ..exceptions import PolicyError


class PolicyType(str, Enum):
    """How a policy's rules are applied to each component."""

    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"
    REQUIRED = "required"


class PolicyAction(str, Enum):
    """Outcome reported when a policy has violations."""

    FAIL = "fail"
    WARN = "warn"
    PASS = "pass"


@dataclass(frozen=True)
class Rule:
    """
    A field match condition.

    Attributes:
        field: Component field, or ``sbom_``-prefixed document field
        values: Exact values, compared case-sensitively
        patterns: Regular expressions, searched anywhere in a value
    """

    field: str
    values: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()
    _compiled: Tuple[Pattern[str], ...] = dataclasses.field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        compiled = []
        for pattern in self.patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                raise PolicyError(f"Invalid pattern '{pattern}' for field {self.field}: {e}") from e
        object.__setattr__(self, "_compiled", tuple(compiled))

    def matches(self, actual: List[str]) -> bool:
        """Any actual value equals a listed value or matches a pattern."""
        for value in actual:
            if value in self.values:
                return True
            if any(p.search(value) for p in self._compiled):
                return True
        return False


@dataclass(frozen=True)
class Policy:
    """A named set of rules with a type and an action."""

    name: str
    type: PolicyType
    rules: Tuple[Rule, ...]
    action: PolicyAction = PolicyAction.WARN

    @classmethod
    def create(cls, name: str, type: str, rules: List[Rule], action: str = "warn") -> "Policy":
        """
        Build a validated policy from plain strings.

        Raises:
            PolicyError: If the name is empty, the type or action is unknown,
                there are no rules, or a whitelist/blacklist rule has neither
                values nor patterns
        """
        name = (name or "").strip()
        if not name:
            raise PolicyError("Policy name is required")
        try:
            policy_type = PolicyType((type or "").strip().lower())
        except ValueError:
            raise PolicyError(
                f"Policy {name}: type must be one of {', '.join(t.value for t in PolicyType)}, got '{type}'"
            ) from None
        try:
            policy_action = PolicyAction((action or "warn").strip().lower())
        except ValueError:
            raise PolicyError(
                f"Policy {name}: action must be one of {', '.join(a.value for a in PolicyAction)}, got '{action}'"
            ) from None
        if not rules:
            raise PolicyError(f"Policy {name}: at least one rule is required")
        for index, rule in enumerate(rules):
            if not rule.field.strip():
                raise PolicyError(f"Policy {name}: rule {index} has no field")
            if policy_type != PolicyType.REQUIRED and not (rule.values or rule.patterns):
                raise PolicyError(f"Policy {name}: rule {index} ({rule.field}) needs values or patterns")
        return cls(name=name, type=policy_type, rules=tuple(rules), action=policy_action)
