"""Policy definitions from YAML files or command line flags.

A policy file holds a list of policies:

    policy:
      - name: approved_licenses
        type: whitelist
        action: fail
        rules:
          - field: license
            values: [MIT, Apache-2.0]
            patterns: ["^BSD-"]

Inline rules use ``field=<name>,values=<v1>,<v2>,patterns=<p1>``.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

import jsonschema
import yaml

from ..exceptions import PolicyError
from ..logging_config import logger
from .models import Policy, Rule

POLICY_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["policy"],
    "properties": {
        "schemaVersion": {"type": ["string", "number"]},
        "policy": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["name", "type", "rules"],
                "properties": {
                    "name": {"type": "string"},
                    "type": {"type": "string"},
                    "action": {"type": "string"},
                    "rules": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["field"],
                            "properties": {
                                "field": {"type": "string"},
                                "values": {"type": "array", "items": {"type": ["string", "number", "boolean"]}},
                                "patterns": {"type": "array", "items": {"type": "string"}},
                            },
                        },
                    },
                },
            },
        },
    },
}

_INLINE_KEY = re.compile(r"(?:^|,)\s*(field|values|patterns)\s*=", re.IGNORECASE)


def _rule_from_dict(entry: Dict[str, Any]) -> Rule:
    return Rule(
        field=str(entry["field"]).strip(),
        values=tuple(str(v) for v in entry.get("values") or ()),
        patterns=tuple(str(p) for p in entry.get("patterns") or ()),
    )


def parse_policies(data: Any) -> List[Policy]:
    """
    Build policies from decoded policy file data.

    Raises:
        PolicyError: If the data does not match the policy schema or a policy is invalid
    """
    try:
        jsonschema.validate(instance=data, schema=POLICY_SCHEMA)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path)
        raise PolicyError(f"Invalid policy file{f' at {path}' if path else ''}: {e.message}") from e

    return [
        Policy.create(
            name=entry["name"],
            type=entry["type"],
            rules=[_rule_from_dict(rule) for rule in entry["rules"]],
            action=entry.get("action", "warn"),
        )
        for entry in data["policy"]
    ]


def load_policy_file(path: Union[str, Path]) -> List[Policy]:
    """
    Load every policy in a YAML policy file.

    Raises:
        PolicyError: If the file cannot be read, is not YAML or holds an invalid policy
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise PolicyError(f"Cannot read policy file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise PolicyError(f"Policy file {path} is not valid YAML: {e}") from e

    policies = parse_policies(data)
    logger.debug(f"Loaded {len(policies)} polic{'y' if len(policies) == 1 else 'ies'} from {path}")
    return policies


def _split_list(value: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def parse_inline_rule(text: str) -> Rule:
    """
    Parse ``field=license,values=MIT,Apache-2.0`` into a Rule.

    Each value runs to the next ``field=``, ``values=`` or ``patterns=``,
    so lists may contain commas and patterns may contain ``=``.

    Raises:
        PolicyError: If the rule has no field or a pattern does not compile
    """
    matches = list(_INLINE_KEY.finditer(text))
    if not matches or text[: matches[0].start()].strip(" ,"):
        raise PolicyError(f"Invalid rule '{text}': expected field=<name>,values=<v1>,<v2>")

    parsed: Dict[str, str] = {}
    for index, match in enumerate(matches):
        key = match.group(1).lower()
        end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        parsed[key] = text[match.end() : end].strip(" ,")

    field = parsed.get("field", "")
    if not field:
        raise PolicyError(f"Invalid rule '{text}': field is required")
    return Rule(
        field=field,
        values=_split_list(parsed.get("values", "")),
        patterns=_split_list(parsed.get("patterns", "")),
    )


def policy_from_flags(name: str, type: str, rules: Sequence[str], action: str = "warn") -> Policy:
    """
    Build one policy from inline command line flags.

    Raises:
        PolicyError: If name, type or rules are missing or invalid
    """
    if not name or not type or not rules:
        raise PolicyError("Inline policies need --name, --type and at least one --rules")
    return Policy.create(name=name, type=type, rules=[parse_inline_rule(r) for r in rules], action=action)
