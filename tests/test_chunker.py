"""Chunking behavior tests."""

import pytest

from kb_curator.ingestion import Chunk, Chunker, KBDocument, join_chunks


def test_split_produces_overlapping_windows() -> None:
    chunker = Chunker(size=10, overlap=3)

    windows = chunker.split("abcdefghijklmnopqrst")

    assert windows == ["abcdefghij", "hijklmnopq", "opqrst"]


def test_short_and_empty_text() -> None:
    chunker = Chunker(size=10, overlap=3)

    assert chunker.split("") == []
    assert chunker.split("short") == ["short"]


def test_text_of_exactly_one_window() -> None:
    chunker = Chunker(size=5, overlap=0)

    assert chunker.split("abcde") == ["abcde"]
    assert chunker.split("abcdef") == ["abcde", "f"]


def test_defaults_come_from_settings() -> None:
    chunker = Chunker()

    assert chunker.size == 500
    assert chunker.overlap == 50
    assert chunker.step == 450


@pytest.mark.parametrize("size,overlap", [(0, 0), (-5, 0), (10, 10), (10, 20), (10, -1)])
def test_invalid_configuration_rejected(size: int, overlap: int) -> None:
    with pytest.raises(ValueError):
        Chunker(size=size, overlap=overlap)


def test_chunk_assigns_ids_and_indexes() -> None:
    chunks = Chunker(size=4, overlap=1).chunk("doc-1", "abcdef")

    assert [c.chunk_idx for c in chunks] == [0, 1]
    assert [c.id for c in chunks] == ["doc-1_0", "doc-1_1"]
    assert chunks[1].text == "def"
    assert chunks[1].char_count == 3


def test_join_chunks_duplicates_overlap_and_orders_by_index() -> None:
    chunks = Chunker(size=10, overlap=3).chunk("d", "abcdefghijklmnopqrst")

    joined = join_chunks(reversed(chunks))

    assert joined == "abcdefghijhijklmnopqopqrst"
    assert len(joined) == 26


def test_document_content_joins_chunks_with_space() -> None:
    doc = KBDocument(title="t")
    doc.chunks = [Chunk(doc.id, 1, "мир"), Chunk(doc.id, 0, "привет")]

    assert doc.content == "привет мир"
    assert doc.search_text == "t привет мир"
    assert doc.to_dict()["chunkCount"] == 2
