"""Lexical relevance scoring for knowledge-base chunks."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..config import settings
from ..ingestion.chunker import Chunk
from ..ingestion.documents import KBDocument

logger = logging.getLogger(__name__)

# Weights per occurrence
BODY_EXACT_WEIGHT = 2
TITLE_EXACT_WEIGHT = 6
BODY_PARTIAL_WEIGHT = 0.5
TITLE_PARTIAL_WEIGHT = 1.5

# Bonuses when the whole query occurs verbatim
BODY_PHRASE_BONUS = 15
TITLE_PHRASE_BONUS = 50

NORMALIZATION = 10

_NON_WORD = re.compile(r"[^\w]")


@dataclass
class SearchHit:
    """A scored chunk with its document's metadata."""
    text: str
    score: float
    raw_score: float
    doc_id: str
    doc_title: str
    company_code: Optional[str]
    product_code: Optional[str]
    is_approved: bool
    is_obsolete: bool

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "score": self.score,
            "docId": self.doc_id,
            "docTitle": self.doc_title,
            "companyCode": self.company_code,
            "productCode": self.product_code,
            "isApproved": self.is_approved,
            "isObsolete": self.is_obsolete,
        }


def query_words(query: str) -> list[str]:
    """Lowercased query words longer than 2 chars, punctuation stripped."""
    words = [_NON_WORD.sub("", w) for w in query.lower().split() if len(w) > 2]
    return [w for w in words if w]


class SearchScorer:
    """Rank chunks by weighted word matches in body and title.

    Exact word-boundary matches count most, substring-only matches count a
    little, and finding the whole query verbatim gives a large bonus. Title
    matches outweigh body matches.
    """

    def raw_score(self, query: str, words: list[str], text: str, title: str) -> float:
        query_lower = query.lower()
        text_lower = text.lower()
        title_lower = title.lower()

        score = 0.0
        for word in words:
            exact = re.compile(rf"\b{re.escape(word)}\b")
            text_exact = len(exact.findall(text_lower))
            title_exact = len(exact.findall(title_lower))
            score += text_exact * BODY_EXACT_WEIGHT + title_exact * TITLE_EXACT_WEIGHT

            text_partial = text_lower.count(word) - text_exact
            title_partial = title_lower.count(word) - title_exact
            score += text_partial * BODY_PARTIAL_WEIGHT + title_partial * TITLE_PARTIAL_WEIGHT

        if query_lower and query_lower in text_lower:
            score += BODY_PHRASE_BONUS
        if query_lower and query_lower in title_lower:
            score += TITLE_PHRASE_BONUS

        return score

    def score(
        self,
        query: str,
        candidates: list[tuple[Chunk, KBDocument]],
        limit: Optional[int] = None,
    ) -> list[SearchHit]:
        """Score candidate chunks and return the best ``limit`` hits.

        Args:
            query: Free-text query.
            candidates: (chunk, owning document) pairs.
            limit: Maximum hits returned (defaults from settings).

        Returns:
            Hits with score in (0, 1], best first. Ties on the normalized
            score are broken by the raw score.
        """
        limit = settings.search.default_limit if limit is None else limit
        words = query_words(query)

        hits = []
        for chunk, doc in candidates:
            raw = self.raw_score(query, words, chunk.text, doc.title)
            normalized = min(1.0, raw / NORMALIZATION)
            if normalized <= 0:
                continue
            hits.append(
                SearchHit(
                    text=chunk.text,
                    score=normalized,
                    raw_score=raw,
                    doc_id=doc.id,
                    doc_title=doc.title,
                    company_code=doc.company_code,
                    product_code=doc.product_code,
                    is_approved=doc.is_approved,
                    is_obsolete=doc.is_obsolete,
                )
            )

        hits.sort(key=lambda h: (h.score, h.raw_score), reverse=True)
        logger.debug(f"Text search for '{query}' returned {min(len(hits), limit)} of {len(hits)} hits")
        return hits[:limit]
