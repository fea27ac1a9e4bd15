"""Remediation suggestion tests."""

from kb_curator.analysis import (
    AnalysisDetails,
    CompanyValidation,
    Conflict,
    ConflictType,
    DocumentAnalysis,
    DuplicateCandidate,
    ExpiredInfo,
    Recommendation,
    RemediationAction,
    RemediationPriority,
    RemediationSuggester,
    TitleValidation,
)


def _analysis(details: AnalysisDetails, recommendation=Recommendation.DELETE) -> DocumentAnalysis:
    return DocumentAnalysis(
        doc_id="d1",
        title="Памятка",
        company_code="SOGAZ",
        product_code="OSAGO",
        score=30,
        issues=["проблема"],
        recommendation=recommendation,
        reason="причина",
        details=details,
    )


def test_actions_ordered_by_priority() -> None:
    details = AnalysisDetails(
        has_useful_content=True,
        has_specific_info=True,
        is_outdated=True,
        expired_info=ExpiredInfo("01.01.2020", "действует до 01.01.2020", 'Документ "Памятка"'),
        is_duplicate=True,
        duplicates=[
            DuplicateCandidate("d2", "Копия", 0.95, "Идентичное содержимое (95%)"),
            DuplicateCandidate("d3", "Похожий", 0.9, "Очень похожий заголовок (90%)"),
        ],
        company_validation=CompanyValidation(False, 0.6, "причина", suggested_company="VSK"),
        title_validation=TitleValidation(False, 0.6, "нет ключевых слов", "Вск Осаго - Памятка"),
    )

    suggestion = RemediationSuggester().suggest(_analysis(details))

    assert [a.action for a in suggestion.actions] == [
        RemediationAction.RETIRE_DOCUMENT,
        RemediationAction.MERGE_DOCUMENTS,
        RemediationAction.FIX_COMPANY_CODE,
        RemediationAction.RENAME_DOCUMENT,
    ]
    retire, merge, fix, rename = suggestion.actions
    assert retire.priority == RemediationPriority.IMMEDIATE
    assert "01.01.2020" in retire.suggested_change
    assert merge.priority == RemediationPriority.HIGH
    assert merge.related_documents == ["d2", "d3"]
    assert fix.proposed_value == "VSK"
    assert rename.proposed_value == "Вск Осаго - Памятка"


def test_thin_content_routed_to_review() -> None:
    suggestion = RemediationSuggester().suggest(_analysis(AnalysisDetails()))

    assert len(suggestion.actions) == 1
    action = suggestion.actions[0]
    assert action.action == RemediationAction.REVIEW_CONTENT
    assert action.priority == RemediationPriority.HIGH
    assert action.rationale == "проблема"


def test_suggest_all_skips_clean_documents() -> None:
    clean = _analysis(
        AnalysisDetails(has_useful_content=True, has_specific_info=True),
        recommendation=Recommendation.KEEP,
    )
    thin = _analysis(AnalysisDetails())

    suggestions = RemediationSuggester().suggest_all([clean, thin])

    assert len(suggestions) == 1
    assert suggestions[0].to_dict()["actions"][0]["action"] == "review_content"


def test_conflict_suggestion() -> None:
    conflict = Conflict(
        doc_id="d9",
        doc_title="Тарифы ОСАГО",
        conflict_type=ConflictType.PRICE_DIFFERENCE,
        description="Обнаружено расхождение в ценах",
        new_value="7000 руб",
        old_value="5000 руб",
    )

    action = RemediationSuggester().suggest_for_conflict(conflict)

    assert action.target_document == "d9"
    assert action.priority == RemediationPriority.HIGH
    assert action.suggested_change == (
        'Сверить цены в документе "Тарифы ОСАГО": было 5000 руб, стало 7000 руб'
    )
