"""Corpus snapshot access.

The analyzers never talk to storage directly; they go through a
:class:`CorpusStore`. :class:`InMemoryCorpus` keeps everything in a dict and
is used for embedded runs and tests, while
:class:`~kb_curator.ingestion.indexer.ElasticsearchCorpus` backs it with
Elasticsearch.
"""

import logging
import threading
from dataclasses import fields as dataclass_fields
from typing import Optional, Protocol

from .chunker import Chunk
from .documents import KBDocument

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {f.name for f in dataclass_fields(KBDocument)} - {"id"}


class CorpusError(Exception):
    """Raised when the corpus backend fails to read or write."""


class DocumentNotFoundError(CorpusError):
    """Raised when an operation targets a document id that does not exist."""


class CorpusStore(Protocol):
    """Read/write interface the curation engine needs from storage."""

    def find_documents(
        self,
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        exclude_doc_id: Optional[str] = None,
    ) -> list[KBDocument]:
        ...

    def load_documents(
        self,
        include_approved: bool = True,
        include_obsolete: bool = True,
        company_code: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[KBDocument]:
        ...

    def search_candidates(
        self,
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        limit: int = 100,
    ) -> list[tuple[Chunk, KBDocument]]:
        ...

    def get_document(self, doc_id: str) -> Optional[KBDocument]:
        ...

    def add_document(self, document: KBDocument) -> KBDocument:
        ...

    def update_document(self, doc_id: str, **fields) -> Optional[KBDocument]:
        ...

    def delete_document(self, doc_id: str) -> bool:
        ...


def _matches_codes(
    doc: KBDocument, company_code: Optional[str], product_code: Optional[str]
) -> bool:
    if company_code and doc.company_code != company_code:
        return False
    if product_code and doc.product_code != product_code:
        return False
    return True


class InMemoryCorpus:
    """Thread-safe in-process corpus."""

    def __init__(self, documents: Optional[list[KBDocument]] = None) -> None:
        self._docs: dict[str, KBDocument] = {}
        self._lock = threading.Lock()
        for doc in documents or []:
            self.add_document(doc)

    def __len__(self) -> int:
        return len(self._docs)

    def _snapshot(self) -> list[KBDocument]:
        with self._lock:
            return list(self._docs.values())

    def find_documents(
        self,
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        exclude_doc_id: Optional[str] = None,
    ) -> list[KBDocument]:
        """Return documents matching the given codes, optionally excluding one id."""
        return [
            doc
            for doc in self._snapshot()
            if doc.id != exclude_doc_id and _matches_codes(doc, company_code, product_code)
        ]

    def load_documents(
        self,
        include_approved: bool = True,
        include_obsolete: bool = True,
        company_code: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[KBDocument]:
        """Load documents for batch analysis, newest first."""
        docs = [
            doc
            for doc in self._snapshot()
            if (include_approved or not doc.is_approved)
            and (include_obsolete or not doc.is_obsolete)
            and _matches_codes(doc, company_code, None)
        ]
        docs.sort(key=lambda d: d.created_at, reverse=True)
        if limit is not None:
            docs = docs[:limit]
        return docs

    def search_candidates(
        self,
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        limit: int = 100,
    ) -> list[tuple[Chunk, KBDocument]]:
        """Return chunks of approved, non-obsolete documents."""
        candidates: list[tuple[Chunk, KBDocument]] = []
        for doc in self._snapshot():
            if not doc.is_approved or doc.is_obsolete:
                continue
            if not _matches_codes(doc, company_code, product_code):
                continue
            for chunk in doc.chunks:
                candidates.append((chunk, doc))
                if len(candidates) >= limit:
                    return candidates
        return candidates

    def get_document(self, doc_id: str) -> Optional[KBDocument]:
        with self._lock:
            return self._docs.get(doc_id)

    def add_document(self, document: KBDocument) -> KBDocument:
        with self._lock:
            self._docs[document.id] = document
        logger.debug(f"Stored document {document.id} with {len(document.chunks)} chunks")
        return document

    def update_document(self, doc_id: str, **fields) -> Optional[KBDocument]:
        """Set attributes on a stored document. Unknown fields raise ValueError."""
        unknown = sorted(set(fields) - UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown document field: {', '.join(unknown)}")
        with self._lock:
            doc = self._docs.get(doc_id)
            if doc is None:
                return None
            for name, value in fields.items():
                setattr(doc, name, value)
            return doc

    def delete_document(self, doc_id: str) -> bool:
        with self._lock:
            return self._docs.pop(doc_id, None) is not None
