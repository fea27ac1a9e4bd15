"""KB Curator - Main entry point."""

import logging
import threading
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional, Union

from .analysis import (
    DocumentAnalysis,
    DocumentAnalyzer,
    RemediationSuggester,
    RemediationSuggestion,
    UploadReview,
    UploadReviewer,
)
from .config import settings
from .ingestion import (
    Chunker,
    CorpusStore,
    DocumentNotFoundError,
    ElasticsearchCorpus,
    InMemoryCorpus,
    KBDocument,
)
from .progress import ProgressRegistry
from .retrieval import SearchHit, SearchScorer
from .schemas import (
    AnalysisRequest,
    DeleteDocumentsRequest,
    DocumentCreate,
    DocumentUpdate,
    SearchRequest,
    UploadReviewRequest,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_corpus() -> CorpusStore:
    """Create the corpus backend selected in settings."""
    backend = settings.corpus_backend.lower()
    if backend == "elasticsearch":
        return ElasticsearchCorpus(es_settings=settings.elasticsearch)
    if backend == "memory":
        return InMemoryCorpus()
    raise ValueError(f"Unknown corpus backend: {settings.corpus_backend}")


def create_chunker() -> Chunker:
    """Create a chunker from settings."""
    return Chunker(size=settings.chunking.size, overlap=settings.chunking.overlap)


@lru_cache
def get_corpus() -> CorpusStore:
    """Process-wide corpus instance."""
    return create_corpus()


@lru_cache
def get_registry() -> ProgressRegistry:
    """Process-wide progress registry."""
    return ProgressRegistry()


@lru_cache
def get_analyzer() -> DocumentAnalyzer:
    """Process-wide analyzer; it holds the last batch results."""
    return DocumentAnalyzer(get_corpus(), registry=get_registry())


@lru_cache
def get_upload_reviewer() -> UploadReviewer:
    return UploadReviewer(get_corpus(), chunker=create_chunker(), registry=get_registry())


def _coerce(model, data):
    return data if isinstance(data, model) else model.model_validate(data)


def _require(doc: Optional[KBDocument], doc_id: str) -> KBDocument:
    if doc is None:
        raise DocumentNotFoundError(f"Document not found: {doc_id}")
    return doc


# ----------------------------------------------------------------------
# Corpus operations
# ----------------------------------------------------------------------


def add_document(request: Union[DocumentCreate, dict]) -> KBDocument:
    """Chunk and store a new document."""
    request = _coerce(DocumentCreate, request)

    document = KBDocument(
        title=request.title,
        company_code=request.company_code,
        product_code=request.product_code,
        source_url=request.source_url,
        file_url=request.file_url,
        version=request.version or datetime.now(timezone.utc).isoformat(),
        document_type=request.document_type,
    )
    document.chunks = create_chunker().chunk(document.id, request.content)
    get_corpus().add_document(document)

    logger.info(f"Added document '{document.title}' with {len(document.chunks)} chunks")
    return document


def get_document(doc_id: str) -> KBDocument:
    return _require(get_corpus().get_document(doc_id), doc_id)


def list_documents(
    company_code: Optional[str] = None, product_code: Optional[str] = None
) -> list[KBDocument]:
    """List documents, newest first."""
    docs = get_corpus().find_documents(company_code=company_code, product_code=product_code)
    return sorted(docs, key=lambda d: d.created_at, reverse=True)


def approve_document(doc_id: str, approved_by: str = "admin") -> KBDocument:
    doc = get_corpus().update_document(
        doc_id,
        is_approved=True,
        approved_at=datetime.now(timezone.utc),
        approved_by=approved_by,
    )
    logger.info(f"Document {doc_id} approved by {approved_by}")
    return _require(doc, doc_id)


def unapprove_document(doc_id: str) -> KBDocument:
    doc = get_corpus().update_document(
        doc_id, is_approved=False, approved_at=None, approved_by=None
    )
    return _require(doc, doc_id)


def mark_document_obsolete(doc_id: str, obsolete_by: str = "admin") -> KBDocument:
    """Flag a document as no longer current, independent of its score."""
    doc = get_corpus().update_document(
        doc_id,
        is_obsolete=True,
        obsolete_at=datetime.now(timezone.utc),
        obsolete_by=obsolete_by,
    )
    logger.info(f"Document {doc_id} marked obsolete by {obsolete_by}")
    return _require(doc, doc_id)


def unmark_document_obsolete(doc_id: str) -> KBDocument:
    doc = get_corpus().update_document(
        doc_id, is_obsolete=False, obsolete_at=None, obsolete_by=None
    )
    return _require(doc, doc_id)


def update_document(doc_id: str, request: Union[DocumentUpdate, dict]) -> KBDocument:
    """Rename a document or change its codes or file location."""
    request = _coerce(DocumentUpdate, request)
    fields = request.model_dump(exclude_unset=True)
    if not fields:
        return get_document(doc_id)
    return _require(get_corpus().update_document(doc_id, **fields), doc_id)


def rename_document(doc_id: str, new_title: str) -> KBDocument:
    return update_document(doc_id, DocumentUpdate(title=new_title))


def delete_documents(request: Union[DeleteDocumentsRequest, dict, list[str]]) -> dict:
    """Delete documents one by one; failures are logged and skipped.

    Accepts a request, its dict form or a bare list of ids.
    """
    if isinstance(request, list):
        request = {"doc_ids": request}
    request = _coerce(DeleteDocumentsRequest, request)

    corpus = get_corpus()
    deleted = 0
    for doc_id in request.doc_ids:
        try:
            if corpus.delete_document(doc_id):
                deleted += 1
        except Exception as e:
            logger.error(f"Error deleting document {doc_id}: {e}")
    logger.info(f"Deleted {deleted} documents")
    return {"deleted": deleted}


# ----------------------------------------------------------------------
# Search
# ----------------------------------------------------------------------


def search(request: Union[SearchRequest, dict]) -> list[SearchHit]:
    """Lexical search over approved, non-obsolete documents."""
    request = _coerce(SearchRequest, request)
    candidates = get_corpus().search_candidates(
        company_code=request.company_code,
        product_code=request.product_code,
        limit=settings.search.candidate_limit,
    )
    logger.info(f"Searching '{request.query}' over {len(candidates)} chunks")
    if not candidates:
        return []
    return SearchScorer().score(request.query, candidates, limit=request.limit)


# ----------------------------------------------------------------------
# Analysis
# ----------------------------------------------------------------------


def analyze_document(doc_id: str) -> DocumentAnalysis:
    return get_analyzer().analyze_document(get_document(doc_id))


def run_analysis(request: Union[AnalysisRequest, dict, None] = None) -> list[DocumentAnalysis]:
    """Run a batch analysis on the calling thread."""
    request = _coerce(AnalysisRequest, request or {})
    return get_analyzer().analyze_all_documents_with_progress(
        include_approved=request.include_approved,
        include_obsolete=request.include_obsolete,
        company_code=request.company_code,
        limit=request.limit,
        analysis_id=request.analysis_id,
    )


def start_analysis(request: Union[AnalysisRequest, dict, None] = None) -> str:
    """Start a batch analysis in the background and return its progress id.

    The channel is opened before the thread starts, so a subscriber that
    attaches right after this call sees every event.
    """
    request = _coerce(AnalysisRequest, request or {})
    analysis_id = request.analysis_id or get_registry().new_id()
    get_registry().open(analysis_id)
    request = request.model_copy(update={"analysis_id": analysis_id})

    def _run() -> None:
        try:
            run_analysis(request)
        except Exception as e:
            logger.error(f"Background analysis {analysis_id} failed: {e}")

    threading.Thread(target=_run, name=analysis_id, daemon=True).start()
    logger.info(f"Started background analysis {analysis_id}")
    return analysis_id


def get_last_results() -> list[DocumentAnalysis]:
    return get_analyzer().last_results


def suggest_remediations(
    analyses: Optional[list[DocumentAnalysis]] = None,
) -> list[RemediationSuggestion]:
    """Suggestions for the given analyses, or for the last batch."""
    if analyses is None:
        analyses = get_last_results()
    return RemediationSuggester().suggest_all(analyses)


# ----------------------------------------------------------------------
# Upload review
# ----------------------------------------------------------------------


def review_upload(request: Union[UploadReviewRequest, dict]) -> UploadReview:
    request = _coerce(UploadReviewRequest, request)
    return get_upload_reviewer().review(
        text=request.text,
        filename=request.filename,
        company_code=request.company_code,
        product_code=request.product_code,
        document_type=request.document_type,
    )


def approve_upload(
    review: UploadReview, replace_doc_ids: Optional[list[str]] = None
) -> KBDocument:
    return get_upload_reviewer().approve(review, replace_doc_ids=replace_doc_ids)
