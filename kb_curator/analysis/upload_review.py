"""Review workflow for incoming documents before they enter the corpus.

An incoming text is classified (company, product, document type), given a
readable title and checked for duplicates, fact conflicts and stale dates.
A curator then approves it (optionally replacing duplicates) or rejects it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..config import ProgressSettings, settings
from ..ingestion.chunker import Chunker
from ..ingestion.corpus import CorpusStore
from ..ingestion.documents import KBDocument
from ..progress.registry import ProgressRegistry
from .attribution import AttributionAnalyzer
from .conflict_resolver import Conflict, ConflictResolver
from .date_validator import DateValidationResult, DateValidator
from .duplicate_detector import DuplicateCandidate, DuplicateDetector

logger = logging.getLogger(__name__)


@dataclass
class UploadReview:
    """Everything a curator needs to decide on an incoming document."""
    id: str
    title: str
    text: str
    filename: str
    company_code: Optional[str]
    product_code: Optional[str]
    document_type: str
    duplicates: list[DuplicateCandidate] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    date_validation: Optional[DateValidationResult] = None
    status: str = "pending"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self, include_text: bool = False) -> dict:
        result = {
            "id": self.id,
            "title": self.title,
            "filename": self.filename,
            "companyCode": self.company_code,
            "productCode": self.product_code,
            "documentType": self.document_type,
            "status": self.status,
            "duplicates": [d.to_dict() for d in self.duplicates],
            "conflicts": [c.to_dict() for c in self.conflicts],
            "dateValidation": self.date_validation.to_dict() if self.date_validation else None,
            "createdAt": self.created_at.isoformat(),
        }
        if include_text:
            result["text"] = self.text
        return result


class UploadReviewer:
    """Run the pre-ingestion checks on incoming text."""

    def __init__(
        self,
        corpus: CorpusStore,
        duplicate_detector: Optional[DuplicateDetector] = None,
        conflict_resolver: Optional[ConflictResolver] = None,
        date_validator: Optional[DateValidator] = None,
        attribution: Optional[AttributionAnalyzer] = None,
        chunker: Optional[Chunker] = None,
        registry: Optional[ProgressRegistry] = None,
        progress_settings: Optional[ProgressSettings] = None,
    ):
        self.corpus = corpus
        self.duplicate_detector = duplicate_detector or DuplicateDetector(corpus)
        self.conflict_resolver = conflict_resolver or ConflictResolver(corpus)
        self.date_validator = date_validator or DateValidator()
        self.attribution = attribution or AttributionAnalyzer()
        self.chunker = chunker or Chunker()
        self.registry = registry or ProgressRegistry()
        self.progress_settings = progress_settings or settings.progress

    def review(
        self,
        text: str,
        filename: str = "",
        company_code: Optional[str] = None,
        product_code: Optional[str] = None,
        document_type: Optional[str] = None,
        review_id: Optional[str] = None,
    ) -> UploadReview:
        """Classify and check an incoming document, publishing progress.

        Args:
            text: Extracted document text.
            filename: Original file name, used for detection and the year.
            company_code: Known company code; detected when omitted.
            product_code: Known product code; detected when omitted.
            document_type: Known document type; detected when omitted.
            review_id: Progress channel id; generated when omitted.

        Returns:
            The pending UploadReview.
        """
        review_id = review_id or self.registry.new_id("file")
        self.registry.open(review_id)
        publish = self.registry.publish

        logger.info(f"Reviewing upload '{filename}' as {review_id}")

        try:
            publish(review_id, "start", 0, "Начинаем обработку файла...", {"filename": filename})

            publish(
                review_id, "analyzing", 40, "Определение компании и продукта...",
                {"textLength": len(text)},
            )
            detected_company, detected_product = self.attribution.detect_company_and_product(
                text, filename
            )
            company_code = company_code or detected_company
            product_code = product_code or detected_product
            document_type = document_type or self.attribution.detect_document_type(text, filename)
            title = self.attribution.generate_title(
                text,
                filename=filename,
                company_code=company_code,
                product_code=product_code,
                document_type=document_type,
            )

            publish(review_id, "duplicates", 60, "Поиск дубликатов...", {"title": title})
            duplicates = self.duplicate_detector.find_duplicates(
                title=title,
                content=text,
                company_code=company_code,
                product_code=product_code,
            )

            publish(
                review_id, "conflicts", 75, "Проверка конфликтов...",
                {"duplicatesFound": len(duplicates)},
            )
            conflicts = self.conflict_resolver.find_conflicts(
                new_text=text, company_code=company_code, product_code=product_code
            )

            publish(
                review_id, "dates", 90, "Проверка актуальности дат...",
                {"conflictsFound": len(conflicts)},
            )
            date_validation = self.date_validator.validate_document_dates(
                title=title, content=text, filename=filename
            )

            publish(
                review_id, "complete", 100, "Обработка завершена!",
                {
                    "duplicates": len(duplicates),
                    "conflicts": len(conflicts),
                    "dateWarnings": len(date_validation.warnings),
                },
            )

            logger.info(
                f"Upload reviewed: {len(duplicates)} duplicates, {len(conflicts)} conflicts, "
                f"{len(date_validation.found_dates)} dates found "
                f"({len(date_validation.warnings)} warnings)"
            )
            self.registry.close(review_id, delay=self.progress_settings.upload_close_delay_seconds)

            return UploadReview(
                id=review_id,
                title=title,
                text=text,
                filename=filename,
                company_code=company_code,
                product_code=product_code,
                document_type=document_type,
                duplicates=duplicates,
                conflicts=conflicts,
                date_validation=date_validation,
            )

        except Exception as e:
            publish(review_id, "error", 0, f"Ошибка обработки: {e}", {"error": str(e)})
            self.registry.close(review_id, delay=self.progress_settings.error_close_delay_seconds)
            logger.error(f"Error reviewing upload '{filename}': {e}")
            raise

    def approve(
        self,
        review: UploadReview,
        replace_doc_ids: Optional[list[str]] = None,
        title: Optional[str] = None,
    ) -> KBDocument:
        """Store a reviewed document, deleting the duplicates it replaces."""
        for doc_id in replace_doc_ids or []:
            if self.corpus.delete_document(doc_id):
                logger.info(f"Deleted replaced document: {doc_id}")

        document = KBDocument(
            title=title or review.title,
            company_code=review.company_code,
            product_code=review.product_code,
            file_url=review.filename or None,
            document_type=review.document_type,
            version=datetime.now(timezone.utc).isoformat(),
        )
        document.chunks = self.chunker.chunk(document.id, review.text)
        self.corpus.add_document(document)
        review.status = "approved"

        logger.info(f"Upload approved and added to corpus: {document.id}")
        return document

    @staticmethod
    def reject(review: UploadReview) -> UploadReview:
        review.status = "rejected"
        logger.info(f"Upload rejected: {review.id}")
        return review
