"""Document scoring and recommendation tests."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from kb_curator.analysis import DocumentAnalyzer, Recommendation, decide_recommendation

from .conftest import make_doc

GOOD_CONTENT = (
    "Компания СОГАЗ выплачивает страховое возмещение по полису ОСАГО в течение "
    "двадцати дней. СОГАЗ принимает заявления в любом офисе и на сайте."
)


@pytest.fixture
def analyzer(corpus, date_validator, registry) -> DocumentAnalyzer:
    return DocumentAnalyzer(corpus, date_validator=date_validator, registry=registry)


@pytest.mark.parametrize(
    "score,expected",
    [
        (100, Recommendation.KEEP),
        (70, Recommendation.KEEP),
        (69, Recommendation.REVIEW),
        (40, Recommendation.REVIEW),
        (39, Recommendation.DELETE),
        (0, Recommendation.DELETE),
    ],
)
def test_score_thresholds(score, expected) -> None:
    recommendation, _ = decide_recommendation(score, False, False, False)

    assert recommendation == expected


def test_rule_precedence() -> None:
    assert decide_recommendation(100, True, True, True) == (
        Recommendation.DELETE,
        "Документ устарел и неактуален",
    )
    assert decide_recommendation(100, False, True, True, "есть новее") == (
        Recommendation.DELETE,
        "есть новее",
    )
    assert decide_recommendation(59, False, False, True) == (
        Recommendation.DELETE,
        "Дубликат с низкой оценкой",
    )
    assert decide_recommendation(60, False, False, True) == (
        Recommendation.REVIEW,
        "Возможный дубликат, требует проверки",
    )


def test_clean_document_is_kept(corpus, analyzer) -> None:
    doc = corpus.add_document(make_doc("ОСАГО СОГАЗ", GOOD_CONTENT, "SOGAZ", "OSAGO"))

    analysis = analyzer.analyze_document(doc)

    assert analysis.score == 80
    assert analysis.issues == []
    assert analysis.recommendation == Recommendation.KEEP
    assert analysis.reason == "Документ содержит полезную информацию"
    assert analysis.details.has_useful_content
    assert analysis.details.is_relevant
    assert analysis.details.company_validation.is_correct
    assert analysis.details.title_validation.is_correct


def test_thin_document(analyzer) -> None:
    doc = make_doc("Заметка", "Короткий текст")

    analysis = analyzer.analyze_document(doc)

    # 80 - 30 (short) - 20 (no terms) - 10 (no company mentions) - 5 (title)
    assert analysis.score == 15
    assert analysis.issues[:2] == ["Мало содержимого", "Нет страховых терминов"]
    assert analysis.recommendation == Recommendation.DELETE
    assert analysis.reason == "Документ не содержит полезной информации"


def test_outdated_document(analyzer) -> None:
    content = GOOD_CONTENT + " Полис действует до 01.01.2020."
    doc = make_doc("ОСАГО СОГАЗ", content, "SOGAZ", "OSAGO")

    analysis = analyzer.analyze_document(doc)

    assert analysis.score == 55
    assert analysis.details.is_outdated
    assert analysis.details.expired_info.expired_date == "01.01.2020"
    assert analysis.details.expired_info.source == 'Документ "ОСАГО СОГАЗ"'
    assert "Документ устарел: 1 предупреждений" in analysis.issues
    assert analysis.recommendation == Recommendation.DELETE
    assert analysis.reason == "Документ устарел и неактуален"


def test_soft_date_warning(analyzer) -> None:
    content = GOOD_CONTENT + " Полис действует до 01.11.2026."
    doc = make_doc("ОСАГО СОГАЗ", content, "SOGAZ", "OSAGO")

    analysis = analyzer.analyze_document(doc)

    assert analysis.score == 70
    assert not analysis.details.is_outdated
    assert "Проблемы с датами: 1 предупреждений" in analysis.issues


def test_duplicate_pair(corpus, analyzer) -> None:
    first = corpus.add_document(make_doc("ОСАГО СОГАЗ", GOOD_CONTENT, "SOGAZ", "OSAGO"))
    second = corpus.add_document(make_doc("СОГАЗ: ОСАГО", GOOD_CONTENT, "SOGAZ", "OSAGO"))

    analysis = analyzer.analyze_document(first)

    assert analysis.score == 65
    assert analysis.details.is_duplicate
    assert [d.doc_id for d in analysis.details.duplicates] == [second.id]
    assert "Найдено 1 дубликатов" in analysis.issues
    assert analysis.recommendation == Recommendation.REVIEW


def test_score_clamped_at_zero(analyzer) -> None:
    doc = make_doc("Памятка", "Действует до 01.01.2020", "SOGAZ", "OSAGO")

    analysis = analyzer.analyze_document(doc)

    assert analysis.score == 0
    assert analysis.recommendation == Recommendation.DELETE


def test_failure_degrades_to_review(corpus, date_validator) -> None:
    detector = MagicMock()
    detector.find_duplicates.side_effect = RuntimeError("boom")
    analyzer = DocumentAnalyzer(corpus, duplicate_detector=detector, date_validator=date_validator)

    analysis = analyzer.analyze_document(make_doc("ОСАГО", GOOD_CONTENT))

    assert analysis.score == 0
    assert analysis.issues == ["Ошибка анализа"]
    assert analysis.recommendation == Recommendation.REVIEW
    assert analysis.reason == "Ошибка при анализе"


def test_test_data_flag(analyzer) -> None:
    assert analyzer.is_test_data("Это тестовый документ о страховании", "Заголовок")
    assert analyzer.is_test_data("текст", "Тестовая компания")
    assert not analyzer.is_test_data(GOOD_CONTENT + " Стоимость полиса 7000 руб.", "ОСАГО СОГАЗ")
    assert not analyzer.is_test_data(GOOD_CONTENT * 2, "ОСАГО СОГАЗ")


def test_short_text_without_price_is_basic_data(analyzer) -> None:
    assert analyzer.is_test_data(GOOD_CONTENT, "ОСАГО СОГАЗ")
    assert analyzer.is_test_data("Полис ОСАГО", "Памятка")
    assert not analyzer.is_test_data("Полис стоит 5000 ₽", "Памятка")


def test_basic_data_flag_does_not_change_score(analyzer) -> None:
    analysis = analyzer.analyze_document(make_doc("ОСАГО СОГАЗ", GOOD_CONTENT, "SOGAZ", "OSAGO"))

    assert analysis.details.is_test_data
    assert analysis.score == 80


def test_effective_date_falls_back_to_version_date(analyzer) -> None:
    assert analyzer.extract_effective_date("", "Вступает в силу с 10.10.2026") == datetime(
        2026, 10, 10
    )
    assert analyzer.extract_effective_date("Версия от 05.06.23", "") == datetime(2023, 6, 5)
    assert analyzer.extract_effective_date("", "Без даты") is None


def test_newer_sibling_version(corpus, analyzer) -> None:
    old = corpus.add_document(
        make_doc("Правила ОСАГО", "Правила действует с 01.01.2027", "SOGAZ", "OSAGO")
    )
    new = corpus.add_document(
        make_doc("Новые правила ОСАГО", "Правила действует с 01.03.2027", "SOGAZ", "OSAGO")
    )
    corpus.add_document(
        make_doc("Правила ВСК", "Правила действует с 01.06.2027", "VSK", "OSAGO")
    )

    info, issue = analyzer.find_newer_version(old)

    assert f"(ID: {new.id}) действует с 01.03.2027, текущий документ от 01.01.2027" in info
    assert issue == (
        'Есть более актуальная версия: "Новые правила ОСАГО" от 01.03.2027, '
        "текущий от 01.01.2027"
    )
    assert analyzer.find_newer_version(new) is None


def test_newer_version_requires_product_code(corpus, analyzer) -> None:
    doc = corpus.add_document(make_doc("Правила", "действует с 01.01.2027", "SOGAZ"))
    corpus.add_document(make_doc("Правила 2", "действует с 01.03.2027", "SOGAZ"))

    assert analyzer.find_newer_version(doc) is None


def test_analyze_all_documents_sorted_worst_first(corpus, analyzer) -> None:
    corpus.add_document(make_doc("ОСАГО СОГАЗ", GOOD_CONTENT, "SOGAZ", "OSAGO"))
    corpus.add_document(make_doc("Заметка", "Короткий текст"))

    analyses = analyzer.analyze_all_documents()

    assert [a.score for a in analyses] == [15, 80]
    assert analyzer.last_results == []


def test_analysis_dict(analyzer) -> None:
    analysis = analyzer.analyze_document(make_doc("Заметка", "Короткий текст"))

    data = analysis.to_dict()

    assert data["recommendation"] == "delete"
    assert data["details"]["contentLength"] == len("Короткий текст")
    assert "duplicates" not in data["details"]


def test_missing_product_code_costs_title_points(analyzer) -> None:
    analysis = analyzer.analyze_document(make_doc("ОСАГО СОГАЗ", GOOD_CONTENT, "SOGAZ"))

    assert analysis.score == 75
    assert analysis.issues == [
        "Неправильное название: Название не содержит ключевых слов продукта"
    ]
    assert analysis.details.title_validation.suggested_title is None
    assert analysis.recommendation == Recommendation.KEEP
