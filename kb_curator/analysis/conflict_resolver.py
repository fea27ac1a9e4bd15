"""Detect factual conflicts between a new text and related corpus documents.

Compares the sets of prices, terms and percentages mentioned on each side.
Any value present on one side only is a conflict for that category; the
magnitude of the difference is not considered.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..ingestion.corpus import CorpusStore
from .entity_extractor import EntityExtractor, FactType, KeyData

logger = logging.getLogger(__name__)

MAX_VALUES_SHOWN = 3


class ConflictType(str, Enum):
    """Types of conflicts that can be detected."""
    PRICE_DIFFERENCE = "price_difference"
    TERM_MISMATCH = "term_mismatch"
    CONDITION_MISMATCH = "condition_mismatch"


_FACT_CONFLICTS = [
    (FactType.PRICE, ConflictType.PRICE_DIFFERENCE, "Обнаружено расхождение в ценах"),
    (FactType.TERM, ConflictType.TERM_MISMATCH, "Обнаружено расхождение в сроках"),
    (FactType.PERCENTAGE, ConflictType.CONDITION_MISMATCH, "Обнаружено расхождение в условиях"),
]


@dataclass
class Conflict:
    """A fact mismatch between the new text and one corpus document."""
    doc_id: str
    doc_title: str
    conflict_type: ConflictType
    description: str
    new_value: str
    old_value: str

    def to_dict(self) -> dict:
        return {
            "docId": self.doc_id,
            "docTitle": self.doc_title,
            "conflictType": self.conflict_type.value,
            "description": self.description,
            "newValue": self.new_value,
            "oldValue": self.old_value,
        }


class ConflictResolver:
    """Find price, term and condition mismatches against related documents."""

    def __init__(self, corpus: CorpusStore, extractor: Optional[EntityExtractor] = None):
        self.corpus = corpus
        self.extractor = extractor or EntityExtractor()

    def find_conflicts(
        self,
        new_text: str,
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        exclude_doc_id: Optional[str] = None,
    ) -> list[Conflict]:
        """Compare facts in ``new_text`` with every related corpus document.

        Args:
            new_text: Text of the incoming or analysed document.
            company_code: Restrict comparison to this company.
            product_code: Restrict comparison to this product.
            exclude_doc_id: Id of the document itself, never compared.

        Returns:
            At most one conflict per category per related document.
        """
        new_data = self.extractor.extract(new_text)
        existing = self.corpus.find_documents(
            company_code=company_code,
            product_code=product_code,
            exclude_doc_id=exclude_doc_id,
        )

        conflicts: list[Conflict] = []
        for doc in existing:
            if exclude_doc_id is not None and doc.id == exclude_doc_id:
                continue
            old_data = self.extractor.extract(doc.content)
            conflicts.extend(self._compare(new_data, old_data, doc.id, doc.title))

        if conflicts:
            logger.info(f"Found {len(conflicts)} conflicts across {len(existing)} documents")
        return conflicts

    def _compare(
        self, new_data: KeyData, old_data: KeyData, doc_id: str, doc_title: str
    ) -> list[Conflict]:
        conflicts = []
        for fact_type, conflict_type, description in _FACT_CONFLICTS:
            new_values = new_data.values(fact_type)
            old_values = old_data.values(fact_type)
            # Only compare categories mentioned on both sides
            if not new_values or not old_values:
                continue
            if self.extractor.find_conflicting_values(new_values, old_values):
                conflicts.append(
                    Conflict(
                        doc_id=doc_id,
                        doc_title=doc_title,
                        conflict_type=conflict_type,
                        description=description,
                        new_value=", ".join(new_values[:MAX_VALUES_SHOWN]),
                        old_value=", ".join(old_values[:MAX_VALUES_SHOWN]),
                    )
                )
        return conflicts
