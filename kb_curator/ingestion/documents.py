"""Knowledge-base document model."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .chunker import Chunk


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class KBDocument:
    """A curated knowledge-base document and its stored chunks.

    ``company_code`` and ``product_code`` are open vocabularies: codes the
    analyzers do not know are carried through unchanged.
    """

    title: str
    company_code: Optional[str] = None
    product_code: Optional[str] = None
    chunks: list[Chunk] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    source_url: Optional[str] = None
    file_url: Optional[str] = None
    version: Optional[str] = None
    document_type: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    # Approval state
    is_approved: bool = False
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None

    # Obsolescence state
    is_obsolete: bool = False
    obsolete_at: Optional[datetime] = None
    obsolete_by: Optional[str] = None

    @property
    def content(self) -> str:
        """Chunk texts joined by a single space in index order."""
        return " ".join(c.text for c in sorted(self.chunks, key=lambda c: c.chunk_idx))

    @property
    def search_text(self) -> str:
        return f"{self.title} {self.content}"

    def to_dict(self, include_content: bool = False) -> dict:
        """Convert to dictionary representation."""
        result = {
            "id": self.id,
            "title": self.title,
            "companyCode": self.company_code,
            "productCode": self.product_code,
            "sourceUrl": self.source_url,
            "fileUrl": self.file_url,
            "version": self.version,
            "documentType": self.document_type,
            "createdAt": self.created_at.isoformat(),
            "isApproved": self.is_approved,
            "approvedAt": self.approved_at.isoformat() if self.approved_at else None,
            "approvedBy": self.approved_by,
            "isObsolete": self.is_obsolete,
            "obsoleteAt": self.obsolete_at.isoformat() if self.obsolete_at else None,
            "obsoleteBy": self.obsolete_by,
            "chunkCount": len(self.chunks),
        }
        if include_content:
            result["content"] = self.content
        return result
