"""Check registry for managing scoring checks."""

from typing import Any, Dict, List, Optional

from ..exceptions import CheckEvaluationError
from ..logging_config import logger
from ..models import Document
from .filters import ScoreFilter, normalize_feature
from .protocol import Category, Check
from .result import Scores, ScoreResult


class CheckRegistry:
    """
    Registry for scoring checks.

    Checks keep their registration order, which is also the report order.
    A predicate that raises produces an errored, ignored result; it never
    stops the other checks from running.

    Example:
        registry = CheckRegistry()
        registry.register(Check(Category.NTIA, "comp_with_name", "components have names", comp_with_name))

        scores = registry.evaluate(doc, ScoreFilter.create(categories=["NTIA-minimum-elements"]))
        print(scores.avg_score)
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._checks: Dict[str, Check] = {}

    def register(self, check: Check) -> None:
        """
        Register a check.

        Args:
            check: Check to register

        Raises:
            ValueError: If a check with the same category and key exists
        """
        if check.qualified_key in self._checks:
            raise ValueError(f"Check already registered: {check.qualified_key}")
        self._checks[check.qualified_key] = check
        logger.debug(f"Registered check: {check.qualified_key}")

    def get(self, key: str, category: Optional[Category] = None) -> Optional[Check]:
        """
        Get a check by feature key.

        Args:
            key: Feature key, qualified key or legacy alias
            category: Category to look in; the first match wins when omitted

        Returns:
            Check if found, None otherwise
        """
        key = normalize_feature(key)
        if category is not None:
            return self._checks.get(f"{category.value}:{key}")
        if key in self._checks:
            return self._checks[key]
        return next((c for c in self._checks.values() if c.key == key), None)

    @property
    def checks(self) -> List[Check]:
        return list(self._checks.values())

    @property
    def categories(self) -> List[Category]:
        """Categories that have at least one check, in registration order."""
        seen: List[Category] = []
        for check in self._checks.values():
            if check.category not in seen:
                seen.append(check.category)
        return seen

    def checks_in(self, category: Category) -> List[Check]:
        return [c for c in self._checks.values() if c.category == category]

    def select(self, score_filter: Optional[ScoreFilter] = None) -> List[Check]:
        """Checks selected by a filter (all checks when no filter is given)."""
        score_filter = score_filter or ScoreFilter()
        selected = [c for c in self._checks.values() if score_filter.matches(c)]
        if score_filter.mode != "all" and not selected:
            logger.warning(f"No checks matched the {score_filter.mode} filter")
        return selected

    def evaluate(self, doc: Document, score_filter: Optional[ScoreFilter] = None) -> Scores:
        """
        Evaluate the selected checks against a Document.

        Args:
            doc: Parsed Document
            score_filter: Optional check selection

        Returns:
            Scores with one result per selected check
        """
        scores = Scores()
        for check in self.select(score_filter):
            scores.add(self._execute_check(check, doc))
        return scores

    def _execute_check(self, check: Check, doc: Document) -> ScoreResult:
        """Execute a check with error handling."""
        try:
            outcome = check.evaluate(doc)
        except Exception as e:
            error = CheckEvaluationError(f"{check.qualified_key}: {e}")
            logger.error(f"Check raised exception: {error}")
            return ScoreResult.failure_result(check.category.value, check.key, str(e))
        return ScoreResult.from_outcome(check.category.value, check.key, outcome)

    def list_checks(self) -> List[Dict[str, Any]]:
        """
        List all registered checks.

        Returns:
            List of dicts with check info
        """
        return [
            {"category": c.category.value, "feature": c.key, "description": c.description}
            for c in self._checks.values()
        ]
