"""Compliance records and their required/optional score aggregation."""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import DefaultDict, Dict, Iterable, List, Optional, Tuple

DOC_ELEMENT = "doc"


@dataclass(frozen=True)
class Record:
    """Result of one framework check against the document or one component.

    Attributes:
        key: Check key, looked up in the framework's section table
        element_id: ``doc`` for document checks, else a component element id
        value: What was found, shown in reports
        score: 0-10 (FSCT awards up to 15)
        required: Whether the section is mandatory; defaults to the section's flag
        maturity: FSCT maturity level, empty for other frameworks
    """

    key: str
    element_id: str
    value: str
    score: float
    required: Optional[bool] = None
    maturity: str = ""


@dataclass
class ComplianceScore:
    """Running totals of required and optional record scores."""

    required_score: float = 0.0
    optional_score: float = 0.0
    required_records: int = 0
    optional_records: int = 0

    def add(self, record: Record) -> None:
        if record.required:
            self.required_score += record.score
            self.required_records += 1
        else:
            self.optional_score += record.score
            self.optional_records += 1

    @property
    def required(self) -> float:
        return self.required_score / self.required_records if self.required_records else 0.0

    @property
    def optional(self) -> float:
        return self.optional_score / self.optional_records if self.optional_records else 0.0

    @property
    def total(self) -> float:
        """Mean of the required and optional averages, or whichever exists."""
        if self.required_records and self.optional_records:
            return (self.required + self.optional) / 2
        if self.optional_records:
            return self.optional
        return self.required

    @classmethod
    def of(cls, records: Iterable[Record]) -> "ComplianceScore":
        score = cls()
        for record in records:
            score.add(record)
        return score


@dataclass
class RecordDB:
    """Records of one framework run, indexed by key, element and both.

    Element ids keep first-seen order so reports list the document first
    and components in document order.
    """

    records: List[Record] = field(default_factory=list)
    _by_key: DefaultDict[str, List[Record]] = field(default_factory=lambda: defaultdict(list), repr=False)
    _by_id: Dict[str, List[Record]] = field(default_factory=dict, repr=False)
    _by_key_id: DefaultDict[Tuple[str, str], List[Record]] = field(
        default_factory=lambda: defaultdict(list), repr=False
    )

    def add(self, record: Record) -> None:
        self.records.append(record)
        self._by_key[record.key].append(record)
        self._by_id.setdefault(record.element_id, []).append(record)
        self._by_key_id[(record.key, record.element_id)].append(record)

    def extend(self, records: Iterable[Record]) -> None:
        for record in records:
            self.add(record)

    def by_key(self, key: str) -> List[Record]:
        return list(self._by_key.get(key, ()))

    def by_id(self, element_id: str) -> List[Record]:
        return list(self._by_id.get(element_id, ()))

    def by_key_id(self, key: str, element_id: str) -> List[Record]:
        return list(self._by_key_id.get((key, element_id), ()))

    @property
    def element_ids(self) -> List[str]:
        return list(self._by_id)

    def score(self) -> ComplianceScore:
        return ComplianceScore.of(self.records)

    def __len__(self) -> int:
        return len(self.records)
