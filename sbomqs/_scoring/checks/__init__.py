"""Built-in scoring checks, grouped by category module."""

from typing import List

from ..protocol import Check
from . import bsi, ntia, quality, semantic, sharing, structural


def builtin_checks() -> List[Check]:
    """All built-in checks in report order."""
    return (
        structural.CHECKS
        + ntia.CHECKS
        + semantic.CHECKS
        + quality.CHECKS
        + sharing.CHECKS
        + bsi.CHECKS
    )


__all__ = ["builtin_checks"]
