"""Fixed-window document chunker."""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..config import settings


@dataclass
class Chunk:
    """Represents a stored window of document content."""

    doc_id: str
    chunk_idx: int
    text: str

    @property
    def id(self) -> str:
        """Return a stable identifier for this chunk."""
        return f"{self.doc_id}_{self.chunk_idx}"

    @property
    def char_count(self) -> int:
        """Return the character count of this chunk."""
        return len(self.text)

    def to_dict(self) -> dict:
        return {"docId": self.doc_id, "chunkIdx": self.chunk_idx, "text": self.text}


class Chunker:
    """Split text into overlapping fixed-size windows.

    Window k starts at ``k * (size - overlap)``; windows are produced while the
    start offset lies inside the text, so the last window may be shorter.
    Boundaries ignore words and sentences.
    """

    def __init__(self, size: Optional[int] = None, overlap: Optional[int] = None) -> None:
        self.size = settings.chunking.size if size is None else size
        self.overlap = settings.chunking.overlap if overlap is None else overlap

        if self.size <= 0:
            raise ValueError(f"Chunk size must be positive, got {self.size}")
        if self.overlap < 0 or self.overlap >= self.size:
            raise ValueError(
                f"Chunk overlap must be in [0, {self.size}), got {self.overlap}"
            )

    @property
    def step(self) -> int:
        return self.size - self.overlap

    def split(self, text: str) -> list[str]:
        """Split raw text into window strings."""
        windows: list[str] = []
        start = 0
        while start < len(text):
            windows.append(text[start : start + self.size])
            start += self.step
        return windows

    def chunk(self, doc_id: str, text: str) -> list[Chunk]:
        """Chunk text for storage under a document id."""
        return [
            Chunk(doc_id=doc_id, chunk_idx=i, text=window)
            for i, window in enumerate(self.split(text))
        ]


def join_chunks(chunks: Iterable[Chunk]) -> str:
    """Concatenate chunk texts in index order.

    Overlap regions appear twice in the result; this is not a lossless
    reconstruction of the original text.
    """
    return "".join(c.text for c in sorted(chunks, key=lambda c: c.chunk_idx))
