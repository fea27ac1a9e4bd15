"""In-memory corpus tests."""

import pytest

from .conftest import make_doc


def test_rejected_update_leaves_document_untouched(corpus) -> None:
    doc = corpus.add_document(make_doc("Старое", "текст", "SOGAZ"))

    with pytest.raises(ValueError, match="bogus"):
        corpus.update_document(doc.id, title="Новое", bogus=1)

    stored = corpus.get_document(doc.id)
    assert stored.title == "Старое"
    assert stored.company_code == "SOGAZ"


def test_update_sets_known_fields(corpus) -> None:
    doc = corpus.add_document(make_doc("Старое", "текст"))

    updated = corpus.update_document(doc.id, title="Новое", company_code="VSK")

    assert updated.title == "Новое"
    assert corpus.get_document(doc.id).company_code == "VSK"


def test_update_missing_document(corpus) -> None:
    assert corpus.update_document("nope", title="x") is None


def test_find_documents_excludes_id(corpus) -> None:
    first = corpus.add_document(make_doc("Первый", "текст", "SOGAZ", "OSAGO"))
    second = corpus.add_document(make_doc("Второй", "текст", "SOGAZ", "OSAGO"))
    corpus.add_document(make_doc("Третий", "текст", "VSK", "OSAGO"))

    found = corpus.find_documents(company_code="SOGAZ", exclude_doc_id=first.id)

    assert [d.id for d in found] == [second.id]
