"""Remediation suggestions for analysed documents and detected conflicts.

Turns the findings of a :class:`DocumentAnalysis` into concrete, ordered
actions for a curator. Nothing is applied automatically.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .conflict_resolver import Conflict, ConflictType
from .document_analyzer import DocumentAnalysis, Recommendation


class RemediationAction(str, Enum):
    """Types of remediation actions."""
    UPDATE_DOCUMENT = "update_document"
    RETIRE_DOCUMENT = "retire_document"
    MERGE_DOCUMENTS = "merge_documents"
    FIX_COMPANY_CODE = "fix_company_code"
    RENAME_DOCUMENT = "rename_document"
    REVIEW_CONTENT = "review_content"


class RemediationPriority(str, Enum):
    """Priority levels for remediation."""
    IMMEDIATE = "immediate"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_PRIORITY_ORDER = {
    RemediationPriority.IMMEDIATE: 0,
    RemediationPriority.HIGH: 1,
    RemediationPriority.MEDIUM: 2,
    RemediationPriority.LOW: 3,
}


@dataclass
class RecommendedAction:
    """A recommended action to resolve an issue."""
    action: RemediationAction
    target_document: str
    suggested_change: str
    rationale: str
    priority: RemediationPriority
    confidence: float = 0.0
    related_documents: list[str] = field(default_factory=list)
    proposed_value: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "action": self.action.value,
            "targetDocument": self.target_document,
            "suggestedChange": self.suggested_change,
            "rationale": self.rationale,
            "priority": self.priority.value,
            "confidence": self.confidence,
            "relatedDocuments": self.related_documents,
            "proposedValue": self.proposed_value,
        }


@dataclass
class RemediationSuggestion:
    """All suggested actions for one document."""
    doc_id: str
    title: str
    recommendation: Recommendation
    actions: list[RecommendedAction]
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "docId": self.doc_id,
            "title": self.title,
            "recommendation": self.recommendation.value,
            "actions": [a.to_dict() for a in self.actions],
            "createdAt": self.created_at.isoformat(),
        }


class RemediationSuggester:
    """Generate remediation suggestions for analysed documents.

    Resolution logic:
    1. Outdated or superseded documents are retired (marked obsolete)
    2. Duplicates are merged into the best-matching existing document
    3. Attribution problems get a concrete replacement code or title
    4. Everything else is routed to manual review
    """

    def suggest(self, analysis: DocumentAnalysis) -> RemediationSuggestion:
        """Build the ordered action list for one analysis."""
        details = analysis.details
        actions: list[RecommendedAction] = []

        if details.is_outdated:
            expired = details.expired_info.expired_date if details.expired_info else None
            actions.append(
                RecommendedAction(
                    action=RemediationAction.RETIRE_DOCUMENT,
                    target_document=analysis.doc_id,
                    suggested_change=(
                        f"Пометить документ устаревшим (истекшая дата: {expired})"
                        if expired
                        else "Пометить документ устаревшим"
                    ),
                    rationale="Документ содержит истекшие даты действия.",
                    priority=RemediationPriority.IMMEDIATE,
                    confidence=0.95,
                )
            )

        if details.has_newer_version:
            actions.append(
                RecommendedAction(
                    action=RemediationAction.RETIRE_DOCUMENT,
                    target_document=analysis.doc_id,
                    suggested_change="Заменить документ более свежей версией",
                    rationale=details.newer_version_info or "Есть более актуальная версия.",
                    priority=RemediationPriority.HIGH,
                    confidence=0.85,
                )
            )

        if details.is_duplicate and details.duplicates:
            best = details.duplicates[0]
            actions.append(
                RecommendedAction(
                    action=RemediationAction.MERGE_DOCUMENTS,
                    target_document=analysis.doc_id,
                    suggested_change=f'Объединить с документом "{best.title}"',
                    rationale=best.reason,
                    priority=(
                        RemediationPriority.HIGH
                        if best.similarity > 0.9
                        else RemediationPriority.MEDIUM
                    ),
                    confidence=round(best.similarity, 2),
                    related_documents=[d.doc_id for d in details.duplicates],
                )
            )

        company = details.company_validation
        if company and not company.is_correct and company.suggested_company:
            actions.append(
                RecommendedAction(
                    action=RemediationAction.FIX_COMPANY_CODE,
                    target_document=analysis.doc_id,
                    suggested_change=f"Изменить компанию на {company.suggested_company}",
                    rationale=company.reason,
                    priority=RemediationPriority.MEDIUM,
                    confidence=company.confidence,
                    proposed_value=company.suggested_company,
                )
            )

        title = details.title_validation
        if title and not title.is_correct and title.suggested_title:
            actions.append(
                RecommendedAction(
                    action=RemediationAction.RENAME_DOCUMENT,
                    target_document=analysis.doc_id,
                    suggested_change=f'Переименовать в "{title.suggested_title}"',
                    rationale=title.reason,
                    priority=RemediationPriority.LOW,
                    confidence=title.confidence,
                    proposed_value=title.suggested_title,
                )
            )

        validation = details.date_validation
        if validation and validation.warnings and not details.is_outdated:
            actions.append(
                RecommendedAction(
                    action=RemediationAction.UPDATE_DOCUMENT,
                    target_document=analysis.doc_id,
                    suggested_change="Проверить и обновить даты в документе",
                    rationale="; ".join(validation.warnings),
                    priority=RemediationPriority.MEDIUM,
                    confidence=0.7,
                )
            )

        if not details.has_useful_content or not details.has_specific_info:
            actions.append(
                RecommendedAction(
                    action=RemediationAction.REVIEW_CONTENT,
                    target_document=analysis.doc_id,
                    suggested_change="Дополнить документ или удалить его",
                    rationale=", ".join(analysis.issues) or analysis.reason,
                    priority=(
                        RemediationPriority.HIGH
                        if analysis.recommendation == Recommendation.DELETE
                        else RemediationPriority.LOW
                    ),
                    confidence=0.6,
                )
            )

        actions.sort(key=lambda a: _PRIORITY_ORDER[a.priority])
        return RemediationSuggestion(
            doc_id=analysis.doc_id,
            title=analysis.title,
            recommendation=analysis.recommendation,
            actions=actions,
        )

    def suggest_all(self, analyses: list[DocumentAnalysis]) -> list[RemediationSuggestion]:
        """Suggestions for every analysis that needs at least one action."""
        suggestions = [self.suggest(a) for a in analyses]
        return [s for s in suggestions if s.actions]

    def suggest_for_conflict(self, conflict: Conflict) -> RecommendedAction:
        """Suggest how to reconcile a fact conflict with an existing document."""
        subject = {
            ConflictType.PRICE_DIFFERENCE: "цены",
            ConflictType.TERM_MISMATCH: "сроки",
            ConflictType.CONDITION_MISMATCH: "условия",
        }[conflict.conflict_type]

        return RecommendedAction(
            action=RemediationAction.UPDATE_DOCUMENT,
            target_document=conflict.doc_id,
            suggested_change=(
                f'Сверить {subject} в документе "{conflict.doc_title}": '
                f"было {conflict.old_value}, стало {conflict.new_value}"
            ),
            rationale=conflict.description,
            priority=(
                RemediationPriority.HIGH
                if conflict.conflict_type == ConflictType.PRICE_DIFFERENCE
                else RemediationPriority.MEDIUM
            ),
            confidence=0.7,
        )
