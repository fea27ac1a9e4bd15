"""Settings tests."""

import pytest
from pydantic import ValidationError

from kb_curator.config import (
    AppSettings,
    ChunkingSettings,
    DuplicateThresholds,
    ElasticsearchSettings,
    ScoringSettings,
)


def test_defaults() -> None:
    app = AppSettings()

    assert app.corpus_backend == "memory"
    assert app.chunking.size == 500
    assert app.scoring.base_score == 80
    assert app.duplicates.title_very_similar == 0.85
    assert app.progress.close_delay_seconds == 3.0


def test_overlap_must_be_smaller_than_size() -> None:
    with pytest.raises(ValidationError):
        ChunkingSettings(size=10, overlap=10)


def test_thresholds_bounded() -> None:
    with pytest.raises(ValidationError):
        DuplicateThresholds(content_identical=1.5)


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SCORE_BASE_SCORE", "90")
    monkeypatch.setenv("ES_HOST", "es.internal")

    assert ScoringSettings().base_score == 90
    assert ElasticsearchSettings().connection_url == "http://es.internal:9200"
