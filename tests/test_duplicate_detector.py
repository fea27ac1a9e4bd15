"""Duplicate detection tests."""

import pytest

from kb_curator.analysis import DuplicateDetector

from .conftest import make_doc


def test_very_similar_title(corpus) -> None:
    existing = corpus.add_document(make_doc("Правила ОСАГО СОГАЗ 2024"))

    duplicates = DuplicateDetector(corpus).find_duplicates(
        title="Правила ОСАГО СОГАЗ 2025", content=""
    )

    assert len(duplicates) == 1
    assert duplicates[0].doc_id == existing.id
    assert duplicates[0].similarity == pytest.approx(23 / 24)
    assert duplicates[0].reason == "Очень похожий заголовок (96%)"


def test_identical_content_with_different_titles(corpus) -> None:
    text = "Страховая выплата производится в течение двадцати рабочих дней после обращения."
    corpus.add_document(make_doc("Памятка водителю", text))

    duplicates = DuplicateDetector(corpus).find_duplicates(
        title="Инструкция по урегулированию", content=text
    )

    assert len(duplicates) == 1
    assert duplicates[0].similarity == pytest.approx(1.0)
    assert duplicates[0].reason == "Идентичное содержимое (100%)"


def test_similar_size_and_title(corpus) -> None:
    corpus.add_document(make_doc("Памятка ABCD", "облако " * 50))

    duplicates = DuplicateDetector(corpus).find_duplicates(
        title="Памятка WXYZ", content="солнце " * 50
    )

    assert len(duplicates) == 1
    assert duplicates[0].similarity == pytest.approx((1.0 + 8 / 12) / 2)
    assert duplicates[0].reason == "Похожий размер и заголовок (83%)"


def test_unrelated_documents_are_not_duplicates(corpus) -> None:
    corpus.add_document(make_doc("Тарифы КАСКО", "Стоимость зависит от стажа водителя."))

    duplicates = DuplicateDetector(corpus).find_duplicates(
        title="Памятка путешественнику",
        content="Полис покрывает медицинские расходы за границей и возвращение домой.",
    )

    assert duplicates == []


def test_document_never_matches_itself(corpus) -> None:
    doc = corpus.add_document(make_doc("Правила ОСАГО", "текст"))

    duplicates = DuplicateDetector(corpus).find_duplicates(
        title=doc.title, content=doc.content, exclude_doc_id=doc.id
    )

    assert duplicates == []


def test_sorted_by_similarity(corpus) -> None:
    close = corpus.add_document(make_doc("Правила ОСАГО СОГАЗ 2024"))
    exact = corpus.add_document(make_doc("Правила ОСАГО СОГАЗ 2025"))

    duplicates = DuplicateDetector(corpus).find_duplicates(
        title="Правила ОСАГО СОГАЗ 2025", content=""
    )

    assert [d.doc_id for d in duplicates] == [exact.id, close.id]


def test_candidates_restricted_by_codes(corpus) -> None:
    corpus.add_document(make_doc("Правила ОСАГО", company_code="VSK", product_code="OSAGO"))
    same = corpus.add_document(
        make_doc("Правила ОСАГО", company_code="SOGAZ", product_code="OSAGO")
    )

    duplicates = DuplicateDetector(corpus).find_duplicates(
        title="Правила ОСАГО", content="", company_code="SOGAZ", product_code="OSAGO"
    )

    assert [d.doc_id for d in duplicates] == [same.id]
    assert duplicates[0].to_dict()["docId"] == same.id
