"""Elasticsearch-backed corpus for documents and chunks."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from elasticsearch import Elasticsearch, NotFoundError, helpers

from ..config import ElasticsearchSettings
from .chunker import Chunk
from .corpus import UPDATABLE_FIELDS, CorpusError
from .documents import KBDocument

logger = logging.getLogger(__name__)

# Upper bound on documents fetched in one corpus query
MAX_DOCUMENTS = 10000
# Page size for scrolling through chunk hits
CHUNK_SCAN_PAGE_SIZE = 1000

_DATETIME_FIELDS = ("created_at", "approved_at", "obsolete_at")


class ElasticsearchCorpus:
    """Store documents and their chunks in two Elasticsearch indexes.

    Document metadata lives in ``documents_index``; chunk texts live in
    ``chunks_index`` keyed by ``doc_id`` and ordered by ``chunk_idx``.
    Client failures are re-raised as :class:`CorpusError`.
    """

    def __init__(
        self,
        es_client: Optional[Elasticsearch] = None,
        es_settings: Optional[ElasticsearchSettings] = None,
        refresh: bool = False,
    ) -> None:
        es_settings = es_settings or ElasticsearchSettings()
        self.documents_index = es_settings.documents_index
        self.chunks_index = es_settings.chunks_index
        self.refresh = refresh

        if es_client:
            self.es = es_client
        else:
            self.es = self._create_client(es_settings)

    def _create_client(self, es_settings: ElasticsearchSettings) -> Elasticsearch:
        """Create an Elasticsearch client."""
        url = es_settings.connection_url

        if es_settings.api_key:
            return Elasticsearch(
                hosts=[url], api_key=es_settings.api_key, verify_certs=es_settings.verify_certs
            )
        elif es_settings.username and es_settings.password:
            return Elasticsearch(
                hosts=[url],
                basic_auth=(es_settings.username, es_settings.password),
                verify_certs=es_settings.verify_certs,
            )
        else:
            return Elasticsearch(hosts=[url], verify_certs=es_settings.verify_certs)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _document_body(self, document: KBDocument) -> dict[str, Any]:
        body: dict[str, Any] = {
            "title": document.title,
            "company_code": document.company_code,
            "product_code": document.product_code,
            "source_url": document.source_url,
            "file_url": document.file_url,
            "version": document.version,
            "document_type": document.document_type,
            "is_approved": document.is_approved,
            "approved_by": document.approved_by,
            "is_obsolete": document.is_obsolete,
            "obsolete_by": document.obsolete_by,
            "chunk_count": len(document.chunks),
        }
        for name in _DATETIME_FIELDS:
            value = getattr(document, name)
            body[name] = value.isoformat() if value else None
        return body

    def _document_from_hit(self, doc_id: str, source: dict, chunks: list[Chunk]) -> KBDocument:
        dates = {
            name: datetime.fromisoformat(source[name]) if source.get(name) else None
            for name in _DATETIME_FIELDS
        }
        return KBDocument(
            id=doc_id,
            title=source.get("title", ""),
            company_code=source.get("company_code"),
            product_code=source.get("product_code"),
            chunks=chunks,
            source_url=source.get("source_url"),
            file_url=source.get("file_url"),
            version=source.get("version"),
            document_type=source.get("document_type"),
            created_at=dates["created_at"] or datetime.min.replace(tzinfo=timezone.utc),
            is_approved=bool(source.get("is_approved", False)),
            approved_at=dates["approved_at"],
            approved_by=source.get("approved_by"),
            is_obsolete=bool(source.get("is_obsolete", False)),
            obsolete_at=dates["obsolete_at"],
            obsolete_by=source.get("obsolete_by"),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def _build_filters(
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        is_approved: Optional[bool] = None,
        is_obsolete: Optional[bool] = None,
    ) -> list[dict]:
        """Build term filters for the documents index."""
        filters: list[dict] = []
        if company_code:
            filters.append({"term": {"company_code": company_code}})
        if product_code:
            filters.append({"term": {"product_code": product_code}})
        if is_approved is not None:
            filters.append({"term": {"is_approved": is_approved}})
        if is_obsolete is not None:
            filters.append({"term": {"is_obsolete": is_obsolete}})
        return filters

    def _search_documents(
        self,
        filters: list[dict],
        must_not: Optional[list[dict]] = None,
        size: int = MAX_DOCUMENTS,
        sort: Optional[list[dict]] = None,
    ) -> list[dict]:
        try:
            response = self.es.search(
                index=self.documents_index,
                query={"bool": {"filter": filters, "must_not": must_not or []}},
                sort=sort or [{"created_at": "desc"}],
                size=size,
            )
        except Exception as e:
            logger.error(f"Document query failed: {e}")
            raise CorpusError(f"Document query failed: {e}") from e
        return response["hits"]["hits"]

    def _fetch_chunks(self, doc_ids: list[str]) -> dict[str, list[Chunk]]:
        """Fetch every chunk of the given documents, grouped by doc id.

        Hits are scrolled so no chunk is lost however large the corpus is.
        Scroll order is arbitrary, so each group is sorted by ``chunk_idx``.
        """
        grouped: dict[str, list[Chunk]] = {doc_id: [] for doc_id in doc_ids}
        if not doc_ids:
            return grouped

        try:
            for hit in helpers.scan(
                self.es,
                index=self.chunks_index,
                query={"query": {"terms": {"doc_id": doc_ids}}},
                size=CHUNK_SCAN_PAGE_SIZE,
            ):
                source = hit["_source"]
                grouped.setdefault(source["doc_id"], []).append(
                    Chunk(
                        doc_id=source["doc_id"],
                        chunk_idx=source["chunk_idx"],
                        text=source["text"],
                    )
                )
        except Exception as e:
            logger.error(f"Chunk query failed: {e}")
            raise CorpusError(f"Chunk query failed: {e}") from e

        for chunks in grouped.values():
            chunks.sort(key=lambda c: c.chunk_idx)
        return grouped

    def _hydrate(self, hits: list[dict]) -> list[KBDocument]:
        chunks = self._fetch_chunks([hit["_id"] for hit in hits])
        return [
            self._document_from_hit(hit["_id"], hit["_source"], chunks.get(hit["_id"], []))
            for hit in hits
        ]

    def find_documents(
        self,
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        exclude_doc_id: Optional[str] = None,
    ) -> list[KBDocument]:
        """Return documents matching the given codes, optionally excluding one id."""
        must_not = [{"ids": {"values": [exclude_doc_id]}}] if exclude_doc_id else None
        hits = self._search_documents(
            self._build_filters(company_code, product_code), must_not=must_not
        )
        return self._hydrate(hits)

    def load_documents(
        self,
        include_approved: bool = True,
        include_obsolete: bool = True,
        company_code: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[KBDocument]:
        """Load documents for batch analysis, newest first."""
        filters = self._build_filters(
            company_code=company_code,
            is_approved=None if include_approved else False,
            is_obsolete=None if include_obsolete else False,
        )
        hits = self._search_documents(filters, size=limit or MAX_DOCUMENTS)
        return self._hydrate(hits)

    def search_candidates(
        self,
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        limit: int = 100,
    ) -> list[tuple[Chunk, KBDocument]]:
        """Return chunks of approved, non-obsolete documents."""
        hits = self._search_documents(
            self._build_filters(company_code, product_code, is_approved=True, is_obsolete=False)
        )
        candidates: list[tuple[Chunk, KBDocument]] = []
        for doc in self._hydrate(hits):
            for chunk in doc.chunks:
                candidates.append((chunk, doc))
                if len(candidates) >= limit:
                    return candidates
        return candidates

    def get_document(self, doc_id: str) -> Optional[KBDocument]:
        """Get a document with its chunks by ID."""
        try:
            response = self.es.get(index=self.documents_index, id=doc_id)
        except NotFoundError:
            return None
        except Exception as e:
            raise CorpusError(f"Failed to get document {doc_id}: {e}") from e

        chunks = self._fetch_chunks([doc_id])[doc_id]
        return self._document_from_hit(response["_id"], response["_source"], chunks)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_document(self, document: KBDocument) -> KBDocument:
        """Index a document and bulk index its chunks."""
        try:
            self.es.index(
                index=self.documents_index,
                id=document.id,
                document=self._document_body(document),
                refresh=self.refresh,
            )
        except Exception as e:
            raise CorpusError(f"Failed to index document {document.id}: {e}") from e

        if document.chunks:
            self._bulk_index_chunks(document.chunks)

        logger.info(f"Indexed document '{document.title}' with {len(document.chunks)} chunks")
        return document

    def _bulk_index_chunks(self, chunks: list[Chunk]) -> None:
        """Bulk index chunk texts."""
        actions = [
            {
                "_index": self.chunks_index,
                "_id": chunk.id,
                "_source": {
                    "doc_id": chunk.doc_id,
                    "chunk_idx": chunk.chunk_idx,
                    "text": chunk.text,
                    "char_count": chunk.char_count,
                },
            }
            for chunk in chunks
        ]

        success, errors = helpers.bulk(
            self.es,
            actions,
            refresh=self.refresh,
            raise_on_error=False,
        )

        if errors:
            logger.warning(f"Bulk indexing had {len(errors)} errors")
            for error in errors[:5]:
                logger.warning(f"  Error: {error}")

        logger.debug(f"Bulk indexed {success} chunks")

    def update_document(self, doc_id: str, **fields) -> Optional[KBDocument]:
        """Apply a partial update to document metadata."""
        partial: dict[str, Any] = {}
        for name, value in fields.items():
            if name == "chunks":
                raise ValueError("Chunks cannot be updated in place")
            if name not in UPDATABLE_FIELDS:
                raise ValueError(f"Unknown document field: {name}")
            partial[name] = value.isoformat() if isinstance(value, datetime) else value

        try:
            self.es.update(
                index=self.documents_index, id=doc_id, doc=partial, refresh=self.refresh
            )
        except NotFoundError:
            return None
        except Exception as e:
            raise CorpusError(f"Failed to update document {doc_id}: {e}") from e

        return self.get_document(doc_id)

    def delete_document(self, doc_id: str) -> bool:
        """Delete a document and all its chunks."""
        try:
            self.es.delete_by_query(
                index=self.chunks_index,
                query={"term": {"doc_id": doc_id}},
                refresh=self.refresh,
            )
            self.es.delete(index=self.documents_index, id=doc_id, refresh=self.refresh)
        except NotFoundError:
            return False
        except Exception as e:
            logger.error(f"Failed to delete document {doc_id}: {e}")
            raise CorpusError(f"Failed to delete document {doc_id}: {e}") from e

        logger.info(f"Deleted document {doc_id}")
        return True
