"""License resolution for SBOM license expressions.

Expressions are tokenized into identifiers and each identifier is resolved
against the SPDX license list, the SPDX exception list and the ScanCode
LicenseDB (AboutCode) index. Unknown identifiers become custom licenses.

Example:
    from sbomqs._licenses import lookup_expression

    licenses = lookup_expression("MIT AND Apache-2.0")
    assert {lic.short_id for lic in licenses} == {"MIT", "Apache-2.0"}
"""

from .models import License, LicenseSource, create_custom_license
from .registry import LicenseRegistry, get_license_registry
from .resolver import is_no_assertion, lookup_expression, lookup_expressions, lookup_license, tokenize_expression

__all__ = [
    "License",
    "LicenseRegistry",
    "LicenseSource",
    "create_custom_license",
    "get_license_registry",
    "is_no_assertion",
    "lookup_expression",
    "lookup_expressions",
    "lookup_license",
    "tokenize_expression",
]
