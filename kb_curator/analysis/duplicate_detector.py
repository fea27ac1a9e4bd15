"""Detect near-duplicate documents in the corpus.

Each candidate is checked cheapest-first and the checks short-circuit once a
duplicate is confirmed:
1. Title edit-distance similarity, then title keyword overlap
2. Term-frequency cosine over content, then insurance key-phrase overlap
3. Content size ratio combined with a looser title similarity
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import DuplicateThresholds, settings
from ..ingestion.corpus import CorpusStore
from ..ingestion.documents import KBDocument
from . import text_similarity

logger = logging.getLogger(__name__)


@dataclass
class DuplicateCandidate:
    """A corpus document that looks like a duplicate of the input."""
    doc_id: str
    title: str
    similarity: float
    reason: str

    def to_dict(self) -> dict:
        return {
            "docId": self.doc_id,
            "title": self.title,
            "similarity": self.similarity,
            "reason": self.reason,
        }


def _percent(value: float) -> int:
    return round(value * 100)


class DuplicateDetector:
    """Find corpus documents that duplicate a given title and content."""

    def __init__(
        self,
        corpus: CorpusStore,
        thresholds: Optional[DuplicateThresholds] = None,
    ):
        """Initialize the detector.

        Args:
            corpus: Corpus snapshot to compare against.
            thresholds: Similarity thresholds (defaults from settings).
        """
        self.corpus = corpus
        self.thresholds = thresholds or settings.duplicates

    def find_duplicates(
        self,
        title: str,
        content: str,
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        exclude_doc_id: Optional[str] = None,
    ) -> list[DuplicateCandidate]:
        """Compare the input against every matching corpus document.

        Args:
            title: Title of the document being checked.
            content: Its full text.
            company_code: Restrict candidates to this company.
            product_code: Restrict candidates to this product.
            exclude_doc_id: Id of the document itself, never reported.

        Returns:
            Duplicate candidates sorted by similarity, highest first.
        """
        existing = self.corpus.find_documents(
            company_code=company_code,
            product_code=product_code,
            exclude_doc_id=exclude_doc_id,
        )
        logger.debug(f"Checking for duplicates among {len(existing)} existing documents")

        duplicates = []
        for doc in existing:
            if exclude_doc_id is not None and doc.id == exclude_doc_id:
                continue
            candidate = self.compare(title, content, doc)
            if candidate:
                duplicates.append(candidate)

        duplicates.sort(key=lambda d: d.similarity, reverse=True)
        if duplicates:
            logger.info(f"Found {len(duplicates)} potential duplicates for '{title}'")
        return duplicates

    def compare(self, title: str, content: str, doc: KBDocument) -> Optional[DuplicateCandidate]:
        """Run the short-circuiting checks against a single document."""
        t = self.thresholds
        title_sim = text_similarity.levenshtein_similarity(title, doc.title)

        # 1. Title
        if title_sim > t.title_very_similar:
            return DuplicateCandidate(
                doc.id, doc.title, title_sim,
                f"Очень похожий заголовок ({_percent(title_sim)}%)",
            )
        if title_sim > t.title_keyword_gate:
            keyword_sim = text_similarity.keyword_similarity(title, doc.title)
            if keyword_sim > t.title_keyword_match:
                return DuplicateCandidate(
                    doc.id, doc.title, keyword_sim,
                    f"Похожие ключевые слова в заголовке ({_percent(keyword_sim)}%)",
                )

        # 2. Content
        doc_content = doc.content
        content_sim = text_similarity.cosine_similarity(content, doc_content)
        if content_sim > t.content_identical:
            return DuplicateCandidate(
                doc.id, doc.title, content_sim,
                f"Идентичное содержимое ({_percent(content_sim)}%)",
            )
        if content_sim > t.content_phrase_gate:
            phrase_sim = text_similarity.phrase_similarity(
                content, doc_content, pair_threshold=t.phrase_pair
            )
            if phrase_sim > t.phrase_match:
                similarity = max(content_sim, phrase_sim)
                return DuplicateCandidate(
                    doc.id, doc.title, similarity,
                    f"Похожие ключевые фразы ({_percent(similarity)}%)",
                )

        # 3. Size and title
        ratio = text_similarity.size_ratio(len(content), len(doc_content))
        if ratio > t.size_ratio and title_sim > t.size_title:
            similarity = (ratio + title_sim) / 2
            return DuplicateCandidate(
                doc.id, doc.title, similarity,
                f"Похожий размер и заголовок ({_percent(similarity)}%)",
            )

        return None
