"""Scoring entry points."""

from typing import Optional

from ..logging_config import logger
from ..models import Document
from .checks import builtin_checks
from .filters import ScoreFilter
from .registry import CheckRegistry
from .result import Scores

_default_registry: Optional[CheckRegistry] = None


def create_default_registry() -> CheckRegistry:
    """Create a CheckRegistry with all built-in checks."""
    registry = CheckRegistry()
    for check in builtin_checks():
        registry.register(check)
    return registry


def get_default_registry() -> CheckRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_registry()
    return _default_registry


def score_document(
    doc: Document,
    score_filter: Optional[ScoreFilter] = None,
    registry: Optional[CheckRegistry] = None,
) -> Scores:
    """
    Score a Document.

    Args:
        doc: Parsed Document
        score_filter: Optional selection by category or feature
        registry: Registry to use instead of the built-in checks

    Returns:
        Scores with count, average and per-check results
    """
    registry = registry or get_default_registry()
    scores = registry.evaluate(doc, score_filter)
    logger.info(
        f"Scored {doc.spec.spec_type.value} document: {scores.count} checks, average {scores.avg_score:.2f}"
    )
    for result in scores.errors:
        logger.warning(f"Check {result.category}:{result.feature} failed: {result.error}")
    return scores
