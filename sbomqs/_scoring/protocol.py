"""Check definition and categories for the scoring engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..models import Document
from .result import Outcome


class Category(str, Enum):
    """Check categories, in report order."""

    STRUCTURAL = "Structural"
    NTIA = "NTIA-minimum-elements"
    SEMANTIC = "Semantic"
    QUALITY = "Quality"
    SHARING = "Sharing"
    BSI_V1_1 = "bsi-v1.1"
    BSI_V2_0 = "bsi-v2.0"

    @classmethod
    def from_name(cls, name: str) -> "Category":
        """Look up a category case-insensitively.

        Raises:
            ValueError: If no category has this name.
        """
        wanted = name.strip().lower()
        for category in cls:
            if category.value.lower() == wanted:
                return category
        raise ValueError(f"Unknown category: {name}")


class CheckFunction(Protocol):
    """Predicate evaluated against a Document.

    Implementations must not mutate the Document and may raise; the registry
    turns exceptions into errored results.

    Example:
        def comp_with_name(doc: Document) -> Outcome:
            return Outcome.ratio(count_named(doc), len(doc.components), "have names")
    """

    def __call__(self, doc: Document) -> Outcome: ...


@dataclass(frozen=True)
class Check:
    """A scoring check.

    Attributes:
        category: Category the check belongs to
        key: Feature key, unique within its category
        description: Human-readable summary of what the check measures
        evaluate: Predicate producing the Outcome
    """

    category: Category
    key: str
    description: str
    evaluate: CheckFunction

    @property
    def qualified_key(self) -> str:
        return f"{self.category.value}:{self.key}"
