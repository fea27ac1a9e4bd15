"""Document analysis components.

This module provides tools for curating the knowledge base:
- Duplicate detection (title, content and size heuristics)
- Conflict resolution (prices, terms and percentages that disagree)
- Date validation (expired, expiring and stale version dates)
- Document scoring with keep/review/delete recommendations
- Upload review before new documents enter the corpus
"""

from .entity_extractor import (
    EntityExtractor,
    FactType,
    KeyData,
)
from .duplicate_detector import (
    DuplicateCandidate,
    DuplicateDetector,
)
from .conflict_resolver import (
    Conflict,
    ConflictResolver,
    ConflictType,
)
from .date_validator import (
    DateFinding,
    DateType,
    DateValidationResult,
    DateValidator,
)
from .attribution import (
    AttributionAnalyzer,
    CompanyValidation,
    TitleValidation,
)
from .analytics import BatchSummary
from .document_analyzer import (
    AnalysisDetails,
    DocumentAnalysis,
    DocumentAnalyzer,
    ExpiredInfo,
    Recommendation,
    decide_recommendation,
)
from .remediation_suggester import (
    RecommendedAction,
    RemediationAction,
    RemediationPriority,
    RemediationSuggester,
    RemediationSuggestion,
)
from .upload_review import (
    UploadReview,
    UploadReviewer,
)

__all__ = [
    # Fact extraction
    "EntityExtractor",
    "FactType",
    "KeyData",
    # Duplicates
    "DuplicateCandidate",
    "DuplicateDetector",
    # Conflicts
    "Conflict",
    "ConflictResolver",
    "ConflictType",
    # Dates
    "DateFinding",
    "DateType",
    "DateValidationResult",
    "DateValidator",
    # Attribution
    "AttributionAnalyzer",
    "CompanyValidation",
    "TitleValidation",
    # Scoring
    "AnalysisDetails",
    "BatchSummary",
    "DocumentAnalysis",
    "DocumentAnalyzer",
    "ExpiredInfo",
    "Recommendation",
    "decide_recommendation",
    # Remediation suggestions
    "RecommendedAction",
    "RemediationAction",
    "RemediationPriority",
    "RemediationSuggester",
    "RemediationSuggestion",
    # Upload review
    "UploadReview",
    "UploadReviewer",
]
