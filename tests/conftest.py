"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from kb_curator.analysis import DateValidator
from kb_curator.config import ProgressSettings
from kb_curator.ingestion import Chunker, InMemoryCorpus, KBDocument
from kb_curator.progress import ProgressRegistry

NOW = datetime(2026, 10, 18, 12, 0)

# One chunk per document, so ``KBDocument.content`` equals the source text
WHOLE_TEXT_CHUNKER = Chunker(size=10_000, overlap=0)

_created = [datetime(2026, 1, 1, tzinfo=timezone.utc)]


def make_doc(
    title: str,
    content: str = "",
    company_code: Optional[str] = None,
    product_code: Optional[str] = None,
    **kwargs,
) -> KBDocument:
    """Build a document whose creation times increase with each call."""
    _created[0] += timedelta(minutes=1)
    kwargs.setdefault("created_at", _created[0])
    doc = KBDocument(
        title=title, company_code=company_code, product_code=product_code, **kwargs
    )
    doc.chunks = WHOLE_TEXT_CHUNKER.chunk(doc.id, content)
    return doc


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def corpus() -> InMemoryCorpus:
    return InMemoryCorpus()


@pytest.fixture
def date_validator() -> DateValidator:
    return DateValidator(current_date=NOW)


@pytest.fixture
def registry() -> ProgressRegistry:
    return ProgressRegistry()


@pytest.fixture
def instant_close() -> ProgressSettings:
    """Progress settings that close channels immediately."""
    return ProgressSettings(
        close_delay_seconds=0,
        error_close_delay_seconds=0,
        upload_close_delay_seconds=0,
    )
