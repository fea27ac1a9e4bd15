"""KB Curator: quality curation for an insurance knowledge base."""

__version__ = "1.0.0"
