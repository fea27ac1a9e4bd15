"""Score knowledge-base documents and recommend keep, review or delete.

A document starts from a base score and loses points for each problem found:
thin content, no insurance vocabulary, duplicates, stale dates, a newer
sibling version, a mismatched company code and a title that does not name
its product or company. The recommendation is then derived from the final
score and the duplicate/outdated/newer-version flags.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..config import ProgressSettings, ScoringSettings, settings
from ..ingestion.corpus import CorpusStore
from ..ingestion.documents import KBDocument
from ..progress.registry import ProgressRegistry
from .analytics import BatchSummary
from .attribution import AttributionAnalyzer, CompanyValidation, TitleValidation
from .date_validator import DateValidationResult, DateValidator
from .duplicate_detector import DuplicateCandidate, DuplicateDetector

logger = logging.getLogger(__name__)


class Recommendation(str, Enum):
    """Curation verdict for a document."""
    KEEP = "keep"
    REVIEW = "review"
    DELETE = "delete"


INSURANCE_TERMS = re.compile(r"страхов|полис|выплат|возмещ|покрыти", re.IGNORECASE)

OUTDATED_MARKERS = ("устарел", "истек", "неактуален")

TEST_DATA_PHRASES = [
    "это тестовый документ",
    "тестовая компания",
    "одна из ведущих страховых компаний россии",
    "предоставляет широкий спектр",
    "базовый продукт",
    "базовая информация",
]

# Shorter content with no price in it counts as placeholder text
BASIC_CONTENT_MAX_LENGTH = 200

_DATE = r"(\d{1,2}[.\-/]\d{1,2}[.\-/]\d{2,4})"

EFFECTIVE_DATE_PATTERNS = [
    rf"действует\s+с\s+{_DATE}",
    rf"вступает\s+в\s+силу\s+с\s+{_DATE}",
    rf"применяется\s+с\s+{_DATE}",
    rf"с\s+{_DATE}\s+года?\s+действует",
]

VERSION_DATE_PATTERNS = [
    rf"версия\s+от\s+{_DATE}",
    rf"редакция\s+от\s+{_DATE}",
    rf"утверждено\s+{_DATE}",
]

MAX_TITLE_IN_PROGRESS = 60


@dataclass
class ExpiredInfo:
    """Where the first expired date of an outdated document was found."""
    expired_date: str
    context: str
    source: str

    def to_dict(self) -> dict:
        return {"expiredDate": self.expired_date, "context": self.context, "source": self.source}


@dataclass
class AnalysisDetails:
    """Flags and sub-results behind a document's score."""
    has_useful_content: bool = False
    has_specific_info: bool = False
    is_relevant: bool = False
    is_duplicate: bool = False
    is_outdated: bool = False
    is_test_data: bool = False
    content_length: int = 0
    duplicates: list[DuplicateCandidate] = field(default_factory=list)
    date_validation: Optional[DateValidationResult] = None
    has_newer_version: bool = False
    newer_version_info: Optional[str] = None
    expired_info: Optional[ExpiredInfo] = None
    company_validation: Optional[CompanyValidation] = None
    title_validation: Optional[TitleValidation] = None

    def to_dict(self) -> dict:
        result = {
            "hasUsefulContent": self.has_useful_content,
            "hasSpecificInfo": self.has_specific_info,
            "isRelevant": self.is_relevant,
            "isDuplicate": self.is_duplicate,
            "isOutdated": self.is_outdated,
            "isTestData": self.is_test_data,
            "contentLength": self.content_length,
            "hasNewerVersion": self.has_newer_version,
        }
        if self.duplicates:
            result["duplicates"] = [d.to_dict() for d in self.duplicates]
        if self.date_validation is not None:
            result["dateValidation"] = self.date_validation.to_dict()
        if self.newer_version_info:
            result["newerVersionInfo"] = self.newer_version_info
        if self.expired_info is not None:
            result["expiredInfo"] = self.expired_info.to_dict()
        if self.company_validation is not None:
            result["companyValidation"] = self.company_validation.to_dict()
        if self.title_validation is not None:
            result["titleValidation"] = self.title_validation.to_dict()
        return result


@dataclass
class DocumentAnalysis:
    """Quality score, issues and recommendation for one document."""
    doc_id: str
    title: str
    company_code: Optional[str]
    product_code: Optional[str]
    score: int
    issues: list[str]
    recommendation: Recommendation
    reason: str
    details: AnalysisDetails = field(default_factory=AnalysisDetails)

    def to_dict(self) -> dict:
        """Convert to dictionary for the review surface."""
        return {
            "docId": self.doc_id,
            "title": self.title,
            "companyCode": self.company_code,
            "productCode": self.product_code,
            "score": self.score,
            "issues": self.issues,
            "recommendation": self.recommendation.value,
            "reason": self.reason,
            "details": self.details.to_dict(),
        }


def decide_recommendation(
    score: int,
    is_outdated: bool,
    has_newer_version: bool,
    is_duplicate: bool,
    newer_version_info: Optional[str] = None,
    scoring: Optional[ScoringSettings] = None,
) -> tuple[Recommendation, str]:
    """Apply the recommendation rule chain; the first matching rule wins.

    Args:
        score: Final clamped score.
        is_outdated: Document contains expired dates.
        has_newer_version: A sibling document supersedes this one.
        is_duplicate: Duplicates were found.
        newer_version_info: Explanation used as the reason for superseded documents.
        scoring: Thresholds (defaults from settings).

    Returns:
        (recommendation, reason) tuple.
    """
    scoring = scoring or settings.scoring

    if is_outdated:
        return Recommendation.DELETE, "Документ устарел и неактуален"
    if has_newer_version:
        return Recommendation.DELETE, newer_version_info or "Есть более актуальная версия документа"
    if is_duplicate and score < scoring.duplicate_delete_threshold:
        return Recommendation.DELETE, "Дубликат с низкой оценкой"
    if is_duplicate:
        return Recommendation.REVIEW, "Возможный дубликат, требует проверки"
    if score >= scoring.keep_threshold:
        return Recommendation.KEEP, "Документ содержит полезную информацию"
    if score >= scoring.review_threshold:
        return Recommendation.REVIEW, "Документ требует проверки"
    return Recommendation.DELETE, "Документ не содержит полезной информации"


def _parse_numeric_date(value: str) -> Optional[datetime]:
    day, month, year = (int(part) for part in re.split(r"[.\-/]", value))
    if year < 100:
        year += 2000
    if not 1900 <= year <= 2100:
        return None
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def _short_title(title: str) -> str:
    if len(title) > MAX_TITLE_IN_PROGRESS:
        return title[:MAX_TITLE_IN_PROGRESS] + "..."
    return title


class DocumentAnalyzer:
    """Analyze documents one at a time or as a batch with progress events."""

    def __init__(
        self,
        corpus: CorpusStore,
        duplicate_detector: Optional[DuplicateDetector] = None,
        date_validator: Optional[DateValidator] = None,
        attribution: Optional[AttributionAnalyzer] = None,
        registry: Optional[ProgressRegistry] = None,
        scoring: Optional[ScoringSettings] = None,
        progress_settings: Optional[ProgressSettings] = None,
    ):
        """Initialize the analyzer.

        Args:
            corpus: Corpus snapshot the checks read from.
            duplicate_detector: Defaults to one over the same corpus.
            date_validator: Defaults to a validator reading the system clock.
            attribution: Company and title heuristics.
            registry: Where batch progress is published.
            scoring: Base score, deductions and thresholds.
            progress_settings: Channel close delays.
        """
        self.corpus = corpus
        self.duplicate_detector = duplicate_detector or DuplicateDetector(corpus)
        self.date_validator = date_validator or DateValidator()
        self.attribution = attribution or AttributionAnalyzer()
        self.registry = registry or ProgressRegistry()
        self.scoring = scoring or settings.scoring
        self.progress_settings = progress_settings or settings.progress

        self._effective_patterns = [re.compile(p, re.IGNORECASE) for p in EFFECTIVE_DATE_PATTERNS]
        self._version_patterns = [re.compile(p, re.IGNORECASE) for p in VERSION_DATE_PATTERNS]

        self._results_lock = threading.Lock()
        self._last_results: list[DocumentAnalysis] = []

    @property
    def last_results(self) -> list[DocumentAnalysis]:
        """Results of the most recent progress-tracked batch."""
        with self._results_lock:
            return list(self._last_results)

    # ------------------------------------------------------------------
    # Single document
    # ------------------------------------------------------------------

    def analyze_document(self, document: KBDocument) -> DocumentAnalysis:
        """Analyze one document against the corpus.

        Never raises: an unexpected failure yields a degraded analysis with
        score 0 and a review recommendation.
        """
        logger.debug(f"Starting analysis of document: {document.title}")
        try:
            return self._analyze(document)
        except Exception as e:
            logger.error(f"Error analyzing document {document.id}: {e}", exc_info=True)
            return DocumentAnalysis(
                doc_id=document.id,
                title=document.title,
                company_code=document.company_code,
                product_code=document.product_code,
                score=0,
                issues=["Ошибка анализа"],
                recommendation=Recommendation.REVIEW,
                reason="Ошибка при анализе",
            )

    def _analyze(self, document: KBDocument) -> DocumentAnalysis:
        s = self.scoring
        content = document.content
        details = AnalysisDetails(content_length=len(content))
        issues: list[str] = []
        score = s.base_score

        details.has_useful_content = len(content) > s.min_useful_length
        if not details.has_useful_content:
            issues.append("Мало содержимого")
            score -= s.low_content_penalty

        details.has_specific_info = details.is_relevant = bool(INSURANCE_TERMS.search(content))
        if not details.has_specific_info:
            issues.append("Нет страховых терминов")
            score -= s.no_insurance_terms_penalty

        details.is_test_data = self.is_test_data(content, document.title)

        # Duplicates
        details.duplicates = self.duplicate_detector.find_duplicates(
            title=document.title,
            content=content,
            company_code=document.company_code,
            product_code=document.product_code,
            exclude_doc_id=document.id,
        )
        if details.duplicates:
            details.is_duplicate = True
            issues.append(f"Найдено {len(details.duplicates)} дубликатов")
            score -= s.duplicate_penalty

        # Dates
        validation = self.date_validator.validate_document_dates(
            title=document.title, content=content, filename=document.file_url
        )
        details.date_validation = validation
        outdated = [w for w in validation.warnings if any(m in w for m in OUTDATED_MARKERS)]
        if outdated:
            details.is_outdated = True
            issues.append(f"Документ устарел: {len(outdated)} предупреждений")
            score -= s.outdated_penalty
            expired = validation.expired_dates
            if expired:
                details.expired_info = ExpiredInfo(
                    expired_date=expired[0].date,
                    context=expired[0].context,
                    source=f'Документ "{document.title}"',
                )
        elif validation.warnings:
            issues.append(f"Проблемы с датами: {len(validation.warnings)} предупреждений")
            score -= s.date_warnings_penalty

        # Newer sibling version
        newer = self.find_newer_version(document, content)
        if newer:
            info, issue = newer
            details.has_newer_version = True
            details.newer_version_info = info
            issues.append(issue)
            score -= s.newer_version_penalty

        # Company attribution
        details.company_validation = self.attribution.analyze_company_belonging(
            content, document.title, document.company_code
        )
        if not details.company_validation.is_correct:
            issues.append(
                f"Неправильная принадлежность к компании: {details.company_validation.reason}"
            )
            score -= s.company_mismatch_penalty

        # Title
        details.title_validation = self.attribution.analyze_title_correctness(
            document.title, document.company_code, document.product_code
        )
        if not details.title_validation.is_correct:
            issues.append(f"Неправильное название: {details.title_validation.reason}")
            score -= s.title_mismatch_penalty

        score = max(0, min(100, score))

        recommendation, reason = decide_recommendation(
            score,
            details.is_outdated,
            details.has_newer_version,
            details.is_duplicate,
            details.newer_version_info,
            scoring=s,
        )

        logger.debug(
            f"Completed analysis of document: {document.title}, score: {score}, "
            f"duplicates: {len(details.duplicates)}, outdated: {details.is_outdated}"
        )

        return DocumentAnalysis(
            doc_id=document.id,
            title=document.title,
            company_code=document.company_code,
            product_code=document.product_code,
            score=score,
            issues=issues,
            recommendation=recommendation,
            reason=reason,
            details=details,
        )

    @staticmethod
    def is_test_data(content: str, title: str) -> bool:
        """Detect boilerplate or placeholder documents."""
        content_lower = content.lower()
        title_lower = title.lower()
        if any(p in content_lower or p in title_lower for p in TEST_DATA_PHRASES):
            return True
        return (
            len(content) < BASIC_CONTENT_MAX_LENGTH
            and "руб" not in content
            and "₽" not in content
        )

    def extract_effective_date(self, title: str, content: str) -> Optional[datetime]:
        """Find when a document takes effect, falling back to its version date."""
        text = f"{title} {content}"
        for patterns in (self._effective_patterns, self._version_patterns):
            for pattern in patterns:
                match = pattern.search(text)
                if not match:
                    continue
                parsed = _parse_numeric_date(match.group(1))
                if parsed:
                    return parsed
        return None

    def find_newer_version(
        self, document: KBDocument, content: Optional[str] = None
    ) -> Optional[tuple[str, str]]:
        """Return (explanation, issue) for the first sibling that takes effect later.

        Siblings share both company and product code. Documents without a
        product code, or without a recognizable effective date, are skipped.
        """
        if not document.product_code:
            return None

        current = self.extract_effective_date(
            document.title, document.content if content is None else content
        )
        if current is None:
            return None

        siblings = self.corpus.find_documents(
            company_code=document.company_code,
            product_code=document.product_code,
            exclude_doc_id=document.id,
        )
        for other in siblings:
            if (
                other.id == document.id
                or other.company_code != document.company_code
                or other.product_code != document.product_code
            ):
                continue
            other_date = self.extract_effective_date(other.title, other.content)
            if other_date and other_date > current:
                current_str = current.strftime("%d.%m.%Y")
                newer_str = other_date.strftime("%d.%m.%Y")
                info = (
                    f'По данному продукту найдены более свежие документы: документ "{other.title}" '
                    f"(ID: {other.id}) действует с {newer_str}, текущий документ от {current_str}"
                )
                issue = (
                    f'Есть более актуальная версия: "{other.title}" от {newer_str}, '
                    f"текущий от {current_str}"
                )
                return info, issue
        return None

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def analyze_all_documents(self, include_approved: bool = True) -> list[DocumentAnalysis]:
        """Analyze the corpus without progress reporting, worst first.

        Results are not cached in :attr:`last_results`.
        """
        logger.info("Starting document analysis")
        documents = self.corpus.load_documents(include_approved=include_approved)
        analyses = [self.analyze_document(doc) for doc in documents]
        analyses.sort(key=lambda a: a.score)
        return analyses

    def analyze_all_documents_with_progress(
        self,
        include_approved: bool = True,
        include_obsolete: bool = True,
        company_code: Optional[str] = None,
        limit: Optional[int] = None,
        analysis_id: Optional[str] = None,
    ) -> list[DocumentAnalysis]:
        """Analyze a filtered document set sequentially, publishing progress.

        Emits one ``loading`` event, an ``analyzing`` event before and after
        each document (scaled into 5..95) and a final ``complete`` event with
        the batch summary. The channel is closed after a delay so consumers
        can drain the last event.

        Args:
            include_approved: Include approved documents.
            include_obsolete: Include documents marked obsolete.
            company_code: Only analyze this company's documents.
            limit: Analyze at most this many of the newest documents.
            analysis_id: Progress channel id; generated when omitted.

        Returns:
            Analyses sorted by score, worst first.

        Raises:
            Exception: Whatever failed while loading; an ``error`` event is
                published first.
        """
        analysis_id = analysis_id or self.registry.new_id()
        self.registry.open(analysis_id)
        publish = self.registry.publish

        logger.info(f"Starting document analysis with progress tracking: {analysis_id}")

        try:
            publish(analysis_id, "loading", 0, "Загрузка документов для анализа...")

            documents = self.corpus.load_documents(
                include_approved=include_approved,
                include_obsolete=include_obsolete,
                company_code=company_code,
                limit=limit if limit and limit > 0 else None,
            )
            total = len(documents)
            logger.info(f"Loaded {total} documents for analysis")

            analyses: list[DocumentAnalysis] = []
            for i, doc in enumerate(documents):
                base_details = {
                    "current": i + 1,
                    "total": total,
                    "currentDocument": _short_title(doc.title),
                    "companyCode": doc.company_code,
                }
                publish(
                    analysis_id,
                    "analyzing",
                    round(i / total * 90) + 5,
                    f"Анализируем документ {i + 1} из {total}",
                    {**base_details, "status": "Начинаем анализ..."},
                )

                analysis = self.analyze_document(doc)
                analyses.append(analysis)

                status = [f"Оценка: {analysis.score}/100 ({analysis.recommendation.value})"]
                if analysis.details.is_duplicate:
                    status.append(f"{len(analysis.details.duplicates)} дубликатов")
                if analysis.details.is_outdated:
                    status.append("Устарел")
                if analysis.details.has_newer_version:
                    status.append("Есть новая версия")

                publish(
                    analysis_id,
                    "analyzing",
                    round((i + 1) / total * 90) + 5,
                    f"Завершен анализ {i + 1} из {total}",
                    {
                        **base_details,
                        "status": " | ".join(status),
                        "score": analysis.score,
                        "recommendation": analysis.recommendation.value,
                        "isDuplicate": analysis.details.is_duplicate,
                        "isOutdated": analysis.details.is_outdated,
                        "duplicatesCount": len(analysis.details.duplicates),
                    },
                )

            summary = BatchSummary.from_analyses(analyses)
            publish(analysis_id, "complete", 100, "Анализ завершен!", summary.to_dict())

            analyses.sort(key=lambda a: a.score)
            with self._results_lock:
                self._last_results = analyses
            logger.info(f"Cached {len(analyses)} analysis results")

            self.registry.close(analysis_id, delay=self.progress_settings.close_delay_seconds)
            return analyses

        except Exception as e:
            publish(
                analysis_id,
                "error",
                0,
                f"Ошибка анализа: {e}",
                {"error": str(e)},
            )
            self.registry.close(analysis_id, delay=self.progress_settings.error_close_delay_seconds)
            logger.error(f"Error during document analysis {analysis_id}: {e}")
            raise
