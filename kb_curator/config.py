"""Configuration management for KB Curator."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ElasticsearchSettings(BaseSettings):
    """Elasticsearch connection settings."""

    model_config = SettingsConfigDict(env_prefix="ES_")

    host: str = Field(default="localhost", description="Elasticsearch host")
    port: int = Field(default=9200, description="Elasticsearch port")
    scheme: str = Field(default="http", description="Connection scheme (http/https)")
    username: Optional[str] = Field(default=None, description="Elasticsearch username")
    password: Optional[str] = Field(default=None, description="Elasticsearch password")
    api_key: Optional[str] = Field(default=None, description="Elasticsearch API key")
    verify_certs: bool = Field(default=True, description="Verify SSL certificates")

    # Index names
    documents_index: str = Field(default="kb-documents", description="Documents index name")
    chunks_index: str = Field(default="kb-chunks", description="Chunks index name")

    @property
    def connection_url(self) -> str:
        """Build Elasticsearch connection URL."""
        return f"{self.scheme}://{self.host}:{self.port}"


class ChunkingSettings(BaseSettings):
    """Fixed-window chunking settings."""

    model_config = SettingsConfigDict(env_prefix="CHUNK_")

    size: int = Field(default=500, gt=0, description="Window size in characters")
    overlap: int = Field(default=50, ge=0, description="Overlap between windows in characters")

    @model_validator(mode="after")
    def _check_overlap(self) -> "ChunkingSettings":
        if self.overlap >= self.size:
            raise ValueError("overlap must be smaller than size")
        return self


class DuplicateThresholds(BaseSettings):
    """Similarity thresholds used by the duplicate detector."""

    model_config = SettingsConfigDict(env_prefix="DUPLICATE_")

    title_very_similar: float = Field(default=0.85, ge=0, le=1)
    title_keyword_gate: float = Field(default=0.70, ge=0, le=1)
    title_keyword_match: float = Field(default=0.80, ge=0, le=1)
    content_identical: float = Field(default=0.90, ge=0, le=1)
    content_phrase_gate: float = Field(default=0.75, ge=0, le=1)
    phrase_match: float = Field(default=0.80, ge=0, le=1)
    phrase_pair: float = Field(default=0.80, ge=0, le=1)
    size_ratio: float = Field(default=0.95, ge=0, le=1)
    size_title: float = Field(default=0.60, ge=0, le=1)


class ScoringSettings(BaseSettings):
    """Quality score deductions and recommendation thresholds."""

    model_config = SettingsConfigDict(env_prefix="SCORE_")

    base_score: int = Field(default=80, description="Starting score for every document")
    min_useful_length: int = Field(
        default=100, description="Content must be longer than this to count as useful"
    )

    # Deductions
    low_content_penalty: int = 30
    no_insurance_terms_penalty: int = 20
    duplicate_penalty: int = 15
    outdated_penalty: int = 25
    date_warnings_penalty: int = 10
    newer_version_penalty: int = 20
    company_mismatch_penalty: int = 10
    title_mismatch_penalty: int = 5

    # Recommendation thresholds
    keep_threshold: int = 70
    review_threshold: int = 40
    duplicate_delete_threshold: int = 60


class DateSettings(BaseSettings):
    """Date validation settings."""

    model_config = SettingsConfigDict(env_prefix="DATES_")

    context_chars: int = Field(default=50, description="Context window on each side of a date")
    expiry_warning_days: int = Field(
        default=30, description="Warn when an expiry date is this close"
    )
    upcoming_days: int = Field(
        default=90, description="Recommend monitoring when a date is this close"
    )
    version_max_age_months: int = Field(
        default=12, description="Version dates older than this are flagged"
    )


class SearchSettings(BaseSettings):
    """Lexical search settings."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    default_limit: int = Field(default=5, ge=1)
    candidate_limit: int = Field(default=100, ge=1)


class ProgressSettings(BaseSettings):
    """Progress channel teardown delays."""

    model_config = SettingsConfigDict(env_prefix="PROGRESS_")

    close_delay_seconds: float = Field(default=3.0, ge=0)
    error_close_delay_seconds: float = Field(default=1.0, ge=0)
    upload_close_delay_seconds: float = Field(default=2.0, ge=0)


class AppSettings(BaseSettings):
    """Application-level settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="KB Curator", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    corpus_backend: str = Field(
        default="memory", description="Corpus backend (memory, elasticsearch)"
    )

    # Sub-settings
    elasticsearch: ElasticsearchSettings = Field(default_factory=ElasticsearchSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    duplicates: DuplicateThresholds = Field(default_factory=DuplicateThresholds)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    dates: DateSettings = Field(default_factory=DateSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    progress: ProgressSettings = Field(default_factory=ProgressSettings)


@lru_cache
def get_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


# Convenience accessor
settings = get_settings()
