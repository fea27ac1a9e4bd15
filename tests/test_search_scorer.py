"""Lexical search scoring tests."""

import pytest

from kb_curator.retrieval import SearchScorer, query_words

from .conftest import make_doc


def _candidates(*docs):
    return [(chunk, doc) for doc in docs for chunk in doc.chunks]


def test_query_words() -> None:
    assert query_words("Что такое ОСАГО?") == ["что", "такое", "осаго"]
    assert query_words("и в на") == []


def test_raw_score_weights() -> None:
    scorer = SearchScorer()

    # one exact body hit plus the verbatim-query bonus
    assert scorer.raw_score("осаго", ["осаго"], "полис осаго", "Документ") == 2 + 15
    # exact title hit plus the title bonus
    assert scorer.raw_score("осаго", ["осаго"], "текст", "ОСАГО") == 6 + 50
    # substring-only hit counts as partial
    assert scorer.raw_score("страхов", ["страхов"], "страхования", "Документ") == 0.5 + 15
    assert scorer.raw_score("страхов", ["страхов"], "текст", "Страховка") == 1.5 + 50


def test_title_match_outranks_body_match_on_tie() -> None:
    in_title = make_doc("ОСАГО правила", "текст про страхование")
    in_body = make_doc("Документ", "полис осаго оформляется онлайн")

    hits = SearchScorer().score("осаго", _candidates(in_body, in_title))

    assert [h.doc_id for h in hits] == [in_title.id, in_body.id]
    assert all(h.score == 1.0 for h in hits)
    assert hits[0].raw_score > hits[1].raw_score


def test_scores_normalized_and_zero_hits_dropped() -> None:
    weak = make_doc("Документ", "страхования")
    none = make_doc("Памятка", "ничего общего")

    hits = SearchScorer().score("страхов полис", _candidates(weak, none))

    assert len(hits) == 1
    assert hits[0].doc_id == weak.id
    assert hits[0].score == pytest.approx(0.05)


def test_limit() -> None:
    docs = [make_doc(f"Документ {i}", "полис осаго") for i in range(10)]

    assert len(SearchScorer().score("осаго", _candidates(*docs), limit=3)) == 3
    assert len(SearchScorer().score("осаго", _candidates(*docs))) == 5


def test_hit_dict_carries_document_metadata() -> None:
    doc = make_doc("ОСАГО", "полис", company_code="SOGAZ", product_code="OSAGO")

    hit = SearchScorer().score("осаго", _candidates(doc))[0]

    assert hit.to_dict() == {
        "text": "полис",
        "score": 1.0,
        "docId": doc.id,
        "docTitle": "ОСАГО",
        "companyCode": "SOGAZ",
        "productCode": "OSAGO",
        "isApproved": False,
        "isObsolete": False,
    }
