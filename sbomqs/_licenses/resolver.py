"""License expression tokenizer and resolver."""

import re
from typing import Iterable, List, Optional, Sequence

from ..logging_config import logger
from .models import License, create_custom_license
from .registry import LicenseRegistry, get_license_registry

_OPERATORS = {"and", "or", "with"}
_NO_LICENSE = {"none", "noassertion"}
_SEPARATORS = re.compile(r"[(),]")


def tokenize_expression(expression: str) -> List[str]:
    """Split a license expression into sorted license identifiers.

    Parentheses and commas are treated as whitespace and the AND / OR / WITH
    operators (any case) are dropped. A trailing ``+`` is kept.

    Example:
        >>> tokenize_expression("(MIT OR Apache-2.0) AND BSD-3-Clause")
        ['Apache-2.0', 'BSD-3-Clause', 'MIT']
    """
    if not expression:
        return []
    cleaned = _SEPARATORS.sub(" ", expression)
    return sorted(token for token in cleaned.split() if token.lower() not in _OPERATORS)


def is_no_assertion(expression: Optional[str]) -> bool:
    """True for empty, NONE or NOASSERTION expressions, ignoring parentheses and case."""
    if expression is None:
        return True
    stripped = _SEPARATORS.sub(" ", expression).strip().lower()
    return stripped == "" or stripped in _NO_LICENSE


def lookup_expression(
    expression: Optional[str],
    custom_licenses: Sequence[License] = (),
    registry: Optional[LicenseRegistry] = None,
) -> List[License]:
    """Resolve every identifier in a license expression.

    Resolution order per token: SPDX licenses, SPDX exceptions, AboutCode,
    the caller's custom licenses, and finally a synthesized custom license
    named after the token. Never raises.

    Args:
        expression: SPDX license expression or single identifier
        custom_licenses: Document-local licenses (e.g. SPDX extracted licensing infos)
        registry: Registry to resolve against, defaults to the process-wide one

    Returns:
        Resolved licenses in token order. Empty for NONE / NOASSERTION.
    """
    if is_no_assertion(expression):
        return []

    registry = registry or get_license_registry()
    return [
        lookup_license(token, custom_licenses, registry)
        for token in tokenize_expression(expression or "")
        if token.lower() not in _NO_LICENSE
    ]


def lookup_license(
    identifier: str,
    custom_licenses: Sequence[License] = (),
    registry: Optional[LicenseRegistry] = None,
) -> License:
    """Resolve one license identifier or free-text license name without tokenizing it.

    A name such as ``Apache License 2.0`` that is in no registry becomes a
    single custom license named after the whole string.
    """
    registry = registry or get_license_registry()
    key = identifier.strip().rstrip("+")
    license_ = registry.lookup(key)
    if license_ is None:
        license_ = next((lic for lic in custom_licenses if lic.short_id == key), None)
    if license_ is None:
        logger.debug(f"License '{identifier}' not found in any registry, treating as custom")
        license_ = create_custom_license(key)
    return license_


def lookup_expressions(
    expressions: Iterable[Optional[str]],
    custom_licenses: Sequence[License] = (),
) -> List[License]:
    """Resolve several expressions and concatenate the results."""
    resolved: List[License] = []
    for expression in expressions:
        resolved.extend(lookup_expression(expression, custom_licenses))
    return resolved
