"""Pydantic schemas for inbound requests."""

from typing import Optional

from pydantic import BaseModel, Field


class DocumentCreate(BaseModel):
    """New knowledge-base document."""

    title: str = Field(..., min_length=1, description="Document title")
    content: str = Field("", description="Normalized document text")
    company_code: Optional[str] = Field(None, description="Company code, e.g. SOGAZ")
    product_code: Optional[str] = Field(None, description="Product code, e.g. OSAGO")
    source_url: Optional[str] = Field(None, description="Where the document was collected")
    file_url: Optional[str] = Field(None, description="Stored file location")
    version: Optional[str] = Field(None, description="Free-text version stamp")
    document_type: Optional[str] = Field(None, description="rules, terms, tariffs, ...")


class DocumentUpdate(BaseModel):
    """Partial metadata update."""

    title: Optional[str] = Field(None, min_length=1)
    company_code: Optional[str] = None
    product_code: Optional[str] = None
    file_url: Optional[str] = None


class SearchRequest(BaseModel):
    """Search request schema."""

    query: str = Field(..., min_length=1, description="Search query")
    company_code: Optional[str] = Field(None, description="Restrict to a company")
    product_code: Optional[str] = Field(None, description="Restrict to a product")
    limit: int = Field(5, ge=1, le=100, description="Number of results to return")


class AnalysisRequest(BaseModel):
    """Batch analysis options."""

    include_approved: bool = Field(True, description="Analyze approved documents")
    include_obsolete: bool = Field(True, description="Analyze obsolete documents")
    company_code: Optional[str] = Field(None, description="Restrict to a company")
    limit: Optional[int] = Field(None, ge=1, description="Analyze at most N newest documents")
    analysis_id: Optional[str] = Field(None, description="Progress channel id")


class UploadReviewRequest(BaseModel):
    """Incoming text to review before ingestion."""

    text: str = Field(..., min_length=1, description="Extracted document text")
    filename: str = Field("", description="Original file name")
    company_code: Optional[str] = None
    product_code: Optional[str] = None
    document_type: Optional[str] = None


class DeleteDocumentsRequest(BaseModel):
    """Bulk deletion request."""

    doc_ids: list[str] = Field(..., min_length=1, description="Documents to delete")
