"""Compliance reports against published SBOM frameworks.

Example:
    from sbomqs._compliance import get_framework, run_framework

    result = run_framework(get_framework("ntia"), doc, "bom.json")
    print(result.basic_line())
"""

from typing import Dict

from .bsi import BSI
from .framework import MAX_SCORE, ComplianceResult, Framework, Section, run_framework
from .fsct import FSCT
from .ntia import NTIA
from .oct import OCT
from .records import DOC_ELEMENT, ComplianceScore, Record, RecordDB

FRAMEWORKS: Dict[str, Framework] = {f.key: f for f in (NTIA, BSI, OCT, FSCT)}


def get_framework(key: str) -> Framework:
    """
    Look up a framework by its short name.

    Raises:
        ValueError: If no framework has this name
    """
    try:
        return FRAMEWORKS[key.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown compliance framework: {key} (choose from {', '.join(FRAMEWORKS)})") from None


__all__ = [
    "BSI",
    "DOC_ELEMENT",
    "FRAMEWORKS",
    "FSCT",
    "MAX_SCORE",
    "NTIA",
    "OCT",
    "ComplianceResult",
    "ComplianceScore",
    "Framework",
    "Record",
    "RecordDB",
    "Section",
    "get_framework",
    "run_framework",
]
