"""Rule/check engine for SBOM quality scoring.

Checks are grouped into categories and evaluated against a parsed Document.
Per-component checks score ``have/total * 10`` and are ignored when the
document has no components; averages only consider non-ignored checks.

Example:
    from sbomqs._scoring import ScoreFilter, score_document

    scores = score_document(doc, ScoreFilter.create(categories=["NTIA-minimum-elements"]))
    print(f"{scores.avg_score:.1f}/10 over {scores.count} checks")
"""

from .config import generate_default_config, load_config_file, parse_config
from .engine import create_default_registry, get_default_registry, score_document
from .filters import LEGACY_FEATURE_ALIASES, ScoreFilter, normalize_feature
from .protocol import Category, Check, CheckFunction
from .registry import CheckRegistry
from .result import MAX_SCORE, Outcome, Scores, ScoreResult

__all__ = [
    # Main entry points
    "score_document",
    "create_default_registry",
    "get_default_registry",
    # Registry and protocol
    "Category",
    "Check",
    "CheckFunction",
    "CheckRegistry",
    # Results
    "MAX_SCORE",
    "Outcome",
    "ScoreResult",
    "Scores",
    # Selection
    "LEGACY_FEATURE_ALIASES",
    "ScoreFilter",
    "normalize_feature",
    "generate_default_config",
    "load_config_file",
    "parse_config",
]
