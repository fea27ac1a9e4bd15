"""Document storage components."""

from .chunker import Chunk, Chunker, join_chunks
from .corpus import CorpusError, CorpusStore, DocumentNotFoundError, InMemoryCorpus
from .documents import KBDocument
from .indexer import ElasticsearchCorpus

__all__ = [
    "Chunk",
    "Chunker",
    "join_chunks",
    "CorpusError",
    "CorpusStore",
    "DocumentNotFoundError",
    "InMemoryCorpus",
    "KBDocument",
    "ElasticsearchCorpus",
]
