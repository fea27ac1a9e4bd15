"""End-to-end tests of the entry-point operations on the in-memory backend."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from kb_curator import main
from kb_curator.analysis import Recommendation
from kb_curator.ingestion import DocumentNotFoundError, InMemoryCorpus
from kb_curator.schemas import DeleteDocumentsRequest, DocumentCreate, SearchRequest

CONTENT = (
    "Компания СОГАЗ выплачивает страховое возмещение по полису ОСАГО в течение "
    "двадцати дней. СОГАЗ принимает заявления в любом офисе и на сайте."
)


FACTORIES = (main.get_corpus, main.get_registry, main.get_analyzer, main.get_upload_reviewer)


@pytest.fixture(autouse=True)
def fresh_state():
    for factory in FACTORIES:
        factory.cache_clear()
    yield
    for factory in FACTORIES:
        factory.cache_clear()


def _add(title="ОСАГО СОГАЗ", content=CONTENT, **kwargs):
    return main.add_document(
        DocumentCreate(
            title=title, content=content, company_code="SOGAZ", product_code="OSAGO", **kwargs
        )
    )


def test_memory_backend_by_default() -> None:
    assert isinstance(main.get_corpus(), InMemoryCorpus)


def test_add_document_chunks_text() -> None:
    doc = main.add_document({"title": "Длинный", "content": "а" * 1200})

    stored = main.get_document(doc.id)
    assert [len(c.text) for c in stored.chunks] == [500, 500, 300]
    assert stored.version is not None
    assert not stored.is_approved


def test_approval_and_obsolescence_lifecycle() -> None:
    doc = _add()

    approved = main.approve_document(doc.id, approved_by="curator")
    assert approved.is_approved and approved.approved_by == "curator"
    assert approved.approved_at is not None

    obsolete = main.mark_document_obsolete(doc.id)
    assert obsolete.is_obsolete and obsolete.obsolete_by == "admin"

    restored = main.unmark_document_obsolete(doc.id)
    assert not restored.is_obsolete and restored.obsolete_at is None

    unapproved = main.unapprove_document(doc.id)
    assert not unapproved.is_approved and unapproved.approved_by is None


def test_rename_and_update() -> None:
    doc = _add()

    assert main.rename_document(doc.id, "Новое имя").title == "Новое имя"
    updated = main.update_document(doc.id, {"company_code": "VSK"})
    assert updated.company_code == "VSK"
    assert updated.title == "Новое имя"


def test_missing_document_raises() -> None:
    with pytest.raises(DocumentNotFoundError):
        main.get_document("nope")
    with pytest.raises(DocumentNotFoundError):
        main.approve_document("nope")
    with pytest.raises(DocumentNotFoundError):
        main.rename_document("nope", "x")


def test_list_documents_newest_first() -> None:
    first = _add("Первый")
    second = _add("Второй")
    corpus = main.get_corpus()
    corpus.update_document(first.id, created_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
    corpus.update_document(second.id, created_at=datetime(2026, 2, 1, tzinfo=timezone.utc))

    assert [d.id for d in main.list_documents(company_code="SOGAZ")] == [second.id, first.id]
    assert main.list_documents(company_code="VSK") == []


def test_delete_documents_counts_existing_only() -> None:
    doc = _add()

    assert main.delete_documents([doc.id, "nope"]) == {"deleted": 1}
    assert main.list_documents() == []


def test_delete_documents_request_validated() -> None:
    doc = _add()

    assert main.delete_documents(DeleteDocumentsRequest(doc_ids=[doc.id])) == {"deleted": 1}
    assert main.delete_documents({"doc_ids": ["nope"]}) == {"deleted": 0}
    with pytest.raises(ValidationError):
        main.delete_documents([])


def test_search_only_returns_approved_live_documents() -> None:
    approved = _add("ОСАГО СОГАЗ")
    _add("Черновик ОСАГО")
    retired = _add("Старое ОСАГО")
    main.approve_document(approved.id)
    main.approve_document(retired.id)
    main.mark_document_obsolete(retired.id)

    hits = main.search(SearchRequest(query="осаго"))

    assert [h.doc_id for h in hits] == [approved.id]
    assert main.search({"query": "осаго", "company_code": "VSK"}) == []


def test_run_analysis_and_suggestions() -> None:
    _add()
    main.add_document({"title": "Заметка", "content": "Короткий текст"})

    analyses = main.run_analysis({"analysis_id": "batch-main"})

    assert [a.recommendation for a in analyses] == [Recommendation.DELETE, Recommendation.KEEP]
    assert main.get_last_results() == analyses
    suggestions = main.suggest_remediations()
    assert [s.title for s in suggestions] == ["Заметка"]


def test_start_analysis_runs_in_background() -> None:
    _add()

    analysis_id = main.start_analysis()
    channel = main.get_registry().get(analysis_id)

    steps = []
    for event in channel.events(timeout=5):
        steps.append(event.step)
        if event.step == "complete":
            break

    assert steps[0] == "loading"
    assert steps[-1] == "complete"


def test_review_and_approve_upload() -> None:
    review = main.review_upload(
        {"text": "Правила страхования ОСАГО СОГАЗ. Стоимость 7000 руб.", "filename": "osago.txt"}
    )

    document = main.approve_upload(review)

    assert main.get_document(document.id).company_code == "SOGAZ"
    assert review.status == "approved"
