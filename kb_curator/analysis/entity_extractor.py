"""Extract comparable facts from Russian insurance text.

Extracts:
- Prices (1500 руб, 2 000₽, 300 rur)
- Terms (12 месяцев, 1 год, 5 лет)
- Percentages (10%, 2,5 %)
"""

import re
from dataclasses import dataclass, field
from enum import Enum


class FactType(str, Enum):
    """Categories of facts compared between documents."""
    PRICE = "price"
    TERM = "term"
    PERCENTAGE = "percentage"


@dataclass
class KeyData:
    """Distinct raw fact strings per category, in first-seen order."""
    prices: list[str] = field(default_factory=list)
    terms: list[str] = field(default_factory=list)
    percentages: list[str] = field(default_factory=list)

    def values(self, fact_type: FactType) -> list[str]:
        return {
            FactType.PRICE: self.prices,
            FactType.TERM: self.terms,
            FactType.PERCENTAGE: self.percentages,
        }[fact_type]

    def to_dict(self) -> dict:
        return {
            "prices": self.prices,
            "terms": self.terms,
            "conditions": self.percentages,
        }


class EntityExtractor:
    """Extract price, term and percentage facts using regex patterns."""

    PRICE_PATTERN = r"\d+[,.]?\d*\s*(?:руб|₽|rur)"
    TERM_PATTERN = r"\d+\s*(?:месяц|год|лет)"
    PERCENTAGE_PATTERN = r"\d+[,.]?\d*\s*%"

    def __init__(self):
        """Initialize the extractor with compiled patterns."""
        self._patterns = {
            FactType.PRICE: re.compile(self.PRICE_PATTERN, re.IGNORECASE),
            FactType.TERM: re.compile(self.TERM_PATTERN, re.IGNORECASE),
            FactType.PERCENTAGE: re.compile(self.PERCENTAGE_PATTERN, re.IGNORECASE),
        }

    def extract_by_type(self, text: str, fact_type: FactType) -> list[str]:
        """Return distinct full matches of one fact type in order of appearance."""
        found: list[str] = []
        for match in self._patterns[fact_type].finditer(text):
            value = match.group()
            if value not in found:
                found.append(value)
        return found

    def extract(self, text: str) -> KeyData:
        """Extract all fact categories from text.

        Args:
            text: The text to extract facts from.

        Returns:
            KeyData with one list per category (possibly empty).
        """
        if not text or not text.strip():
            return KeyData()

        return KeyData(
            prices=self.extract_by_type(text, FactType.PRICE),
            terms=self.extract_by_type(text, FactType.TERM),
            percentages=self.extract_by_type(text, FactType.PERCENTAGE),
        )

    @staticmethod
    def normalize(value: str) -> str:
        """Normalize a fact for comparison: lowercase, trim, collapse whitespace."""
        return re.sub(r"\s+", " ", value.strip().lower())

    def find_conflicting_values(self, values_a: list[str], values_b: list[str]) -> bool:
        """Return True when the normalized value sets differ in either direction."""
        set_a = {self.normalize(v) for v in values_a}
        set_b = {self.normalize(v) for v in values_b}
        return bool(set_a ^ set_b)
