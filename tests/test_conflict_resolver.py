"""Fact extraction and conflict resolution tests."""

from kb_curator.analysis import ConflictResolver, ConflictType, EntityExtractor, FactType

from .conftest import make_doc


def test_extract_facts() -> None:
    data = EntityExtractor().extract(
        "Стоимость 5000 руб, скидка 10%, срок 12 месяцев. Повторно: 5000 руб, 2,5 %, 300₽."
    )

    assert data.prices == ["5000 руб", "300₽"]
    assert data.terms == ["12 месяц"]
    assert data.percentages == ["10%", "2,5 %"]
    assert data.values(FactType.PRICE) is data.prices


def test_extract_from_blank_text() -> None:
    data = EntityExtractor().extract("   ")

    assert data.prices == [] and data.terms == [] and data.percentages == []


def test_conflicting_values_normalized() -> None:
    extractor = EntityExtractor()

    assert not extractor.find_conflicting_values(["5000 руб"], ["5000  РУБ"])
    assert extractor.find_conflicting_values(["5000 руб"], ["7000 руб"])
    assert extractor.find_conflicting_values(["5000 руб"], ["5000 руб", "7000 руб"])


def test_price_conflict(corpus) -> None:
    old = corpus.add_document(
        make_doc("Тарифы ОСАГО", "Стоимость полиса 5000 руб, срок 12 месяцев.", "SOGAZ", "OSAGO")
    )

    conflicts = ConflictResolver(corpus).find_conflicts(
        "Стоимость полиса 7000 руб, срок 12 месяцев.",
        company_code="SOGAZ",
        product_code="OSAGO",
    )

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.doc_id == old.id
    assert conflict.conflict_type == ConflictType.PRICE_DIFFERENCE
    assert conflict.description == "Обнаружено расхождение в ценах"
    assert conflict.new_value == "7000 руб"
    assert conflict.old_value == "5000 руб"


def test_category_missing_on_one_side_is_not_compared(corpus) -> None:
    corpus.add_document(make_doc("Тарифы", "Стоимость полиса 5000 руб."))

    conflicts = ConflictResolver(corpus).find_conflicts("Стоимость 5000 руб, скидка 10%.")

    assert conflicts == []


def test_term_and_condition_conflicts(corpus) -> None:
    corpus.add_document(make_doc("Условия", "Срок 1 год, франшиза 10%."))

    conflicts = ConflictResolver(corpus).find_conflicts("Срок 2 года, франшиза 15%.")

    by_type = {c.conflict_type: c for c in conflicts}
    assert set(by_type) == {ConflictType.TERM_MISMATCH, ConflictType.CONDITION_MISMATCH}
    assert by_type[ConflictType.TERM_MISMATCH].description == "Обнаружено расхождение в сроках"
    assert by_type[ConflictType.CONDITION_MISMATCH].description == (
        "Обнаружено расхождение в условиях"
    )
    assert by_type[ConflictType.CONDITION_MISMATCH].to_dict()["conflictType"] == (
        "condition_mismatch"
    )


def test_values_shown_capped_at_three(corpus) -> None:
    corpus.add_document(make_doc("Тарифы", "1 руб"))

    conflicts = ConflictResolver(corpus).find_conflicts("2 руб, 3 руб, 4 руб, 5 руб")

    assert conflicts[0].new_value == "2 руб, 3 руб, 4 руб"


def test_excluded_document_not_compared(corpus) -> None:
    doc = corpus.add_document(make_doc("Тарифы", "Стоимость 5000 руб."))

    conflicts = ConflictResolver(corpus).find_conflicts(
        "Стоимость 7000 руб.", exclude_doc_id=doc.id
    )

    assert conflicts == []
