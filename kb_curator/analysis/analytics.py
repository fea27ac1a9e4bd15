"""Summary statistics over a batch of document analyses."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .document_analyzer import DocumentAnalysis

logger = logging.getLogger(__name__)

PROBLEM_SCORE_THRESHOLD = 70


@dataclass
class BatchSummary:
    """Aggregate view of one batch analysis run."""
    total_analyzed: int = 0
    average_score: int = 0
    problem_documents: int = 0
    duplicates_count: int = 0
    outdated_count: int = 0
    newer_versions_count: int = 0
    recommendations: dict[str, int] = field(
        default_factory=lambda: {"keep": 0, "review": 0, "delete": 0}
    )

    @classmethod
    def from_analyses(cls, analyses: list["DocumentAnalysis"]) -> "BatchSummary":
        """Build a summary from analysis results (in any order)."""
        summary = cls(total_analyzed=len(analyses))
        if not analyses:
            return summary

        summary.average_score = round(sum(a.score for a in analyses) / len(analyses))
        for analysis in analyses:
            details = analysis.details
            if analysis.score < PROBLEM_SCORE_THRESHOLD:
                summary.problem_documents += 1
            if details.is_duplicate:
                summary.duplicates_count += 1
            if details.is_outdated:
                summary.outdated_count += 1
            if details.has_newer_version:
                summary.newer_versions_count += 1
            key = analysis.recommendation.value
            summary.recommendations[key] = summary.recommendations.get(key, 0) + 1

        return summary

    @property
    def summary(self) -> str:
        return (
            f"Проблемных: {self.problem_documents}, "
            f"Дубликатов: {self.duplicates_count}, "
            f"Устаревших: {self.outdated_count}, "
            f"Есть новые версии: {self.newer_versions_count}"
        )

    def to_dict(self) -> dict:
        """Convert to the completion event payload."""
        return {
            "totalAnalyzed": self.total_analyzed,
            "averageScore": self.average_score,
            "problemDocuments": self.problem_documents,
            "duplicatesCount": self.duplicates_count,
            "outdatedCount": self.outdated_count,
            "newerVersionsCount": self.newer_versions_count,
            "recommendations": dict(self.recommendations),
            "summary": self.summary,
        }
