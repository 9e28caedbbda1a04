"""Result types produced by scoring checks."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MAX_SCORE = 10.0
NOT_APPLICABLE = "N/A (no components)"


def _clamp(score: float) -> float:
    if math.isnan(score):
        return 0.0
    return max(0.0, min(MAX_SCORE, score))


@dataclass(frozen=True)
class Outcome:
    """What a check predicate returns: a score, its explanation, and applicability."""

    score: float
    description: str
    ignored: bool = False

    @classmethod
    def ratio(cls, have: int, total: int, what: str) -> "Outcome":
        """Score ``have/total * 10``; not applicable when total is zero.

        Example:
            >>> Outcome.ratio(2, 4, "have names")
            Outcome(score=5.0, description='2/4 have names', ignored=False)
        """
        if total == 0:
            return cls.not_applicable()
        return cls(score=_clamp(have / total * MAX_SCORE), description=f"{have}/{total} {what}")

    @classmethod
    def boolean(cls, ok: bool, passed: str, failed: str) -> "Outcome":
        return cls(score=MAX_SCORE if ok else 0.0, description=passed if ok else failed)

    @classmethod
    def not_applicable(cls, description: str = NOT_APPLICABLE) -> "Outcome":
        return cls(score=0.0, description=description, ignored=True)


@dataclass
class ScoreResult:
    """
    Result of evaluating one check against a Document.

    Attributes:
        category: Category of the check
        feature: Feature key of the check
        score: Value in [0, 10]
        description: Explanation of the score
        ignored: Whether the check is excluded from averages
        error: Error message if the predicate raised
    """

    category: str
    feature: str
    score: float
    description: str
    ignored: bool = False
    error: Optional[str] = None

    def __post_init__(self) -> None:
        self.score = _clamp(self.score)

    @property
    def max_score(self) -> float:
        return MAX_SCORE

    @classmethod
    def from_outcome(cls, category: str, feature: str, outcome: Outcome) -> "ScoreResult":
        return cls(
            category=category,
            feature=feature,
            score=outcome.score,
            description=outcome.description,
            ignored=outcome.ignored,
        )

    @classmethod
    def failure_result(cls, category: str, feature: str, error_message: str) -> "ScoreResult":
        """Create a result for a check whose predicate raised."""
        return cls(
            category=category,
            feature=feature,
            score=0.0,
            description=f"evaluation failed: {error_message}",
            ignored=True,
            error=error_message,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "category": self.category,
            "feature": self.feature,
            "score": round(self.score, 2),
            "max_score": MAX_SCORE,
            "ignored": self.ignored,
            "description": self.description,
        }
        if self.error:
            data["error"] = self.error
        return data


def _mean(results: List[ScoreResult]) -> float:
    applicable = [r.score for r in results if not r.ignored]
    if not applicable:
        return 0.0
    return sum(applicable) / len(applicable)


@dataclass
class Scores:
    """
    Aggregated results of a scoring run.

    Attributes:
        results: Individual check results in evaluation order
    """

    results: List[ScoreResult] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.results)

    @property
    def avg_score(self) -> float:
        """Mean of the non-ignored scores, 0.0 when nothing is applicable."""
        return _mean(self.results)

    @property
    def errors(self) -> List[ScoreResult]:
        return [r for r in self.results if r.error]

    @property
    def applicable(self) -> List[ScoreResult]:
        return [r for r in self.results if not r.ignored]

    def add(self, result: ScoreResult) -> None:
        self.results.append(result)

    def category_scores(self) -> Dict[str, float]:
        """Per-category mean of non-ignored scores, in first-seen order."""
        grouped: Dict[str, List[ScoreResult]] = {}
        for result in self.results:
            grouped.setdefault(result.category, []).append(result)
        return {category: _mean(results) for category, results in grouped.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "average_score": round(self.avg_score, 2),
            "scores": [r.to_dict() for r in self.results],
        }
