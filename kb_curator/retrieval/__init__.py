"""Lexical retrieval over the corpus."""

from .search_scorer import SearchHit, SearchScorer, query_words

__all__ = ["SearchHit", "SearchScorer", "query_words"]
