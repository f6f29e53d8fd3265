"""Pydantic schemas for the create-document API payload.

Attribute names are snake_case; ``alias`` keeps the exact field names the
remote API expects on the wire (a couple of them are camelCase).
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire_json(self) -> str:
        """Serialize with wire field names."""
        return self.model_dump_json(by_alias=True)


class Description(_WireModel):
    participant_inn: str | None = Field(default=None, alias="participantInn")


class Product(_WireModel):
    """One product line of a document."""

    certificate_document: str | None = None
    certificate_document_date: str | None = None
    certificate_document_number: str | None = None
    owner_inn: str | None = None
    producer_inn: str | None = None
    production_date: str | None = None
    tnved_code: str | None = None
    uit_code: str | None = None
    uitu_code: str | None = None


class Document(_WireModel):
    """Document submitted to the create-document endpoint."""

    description: Description | None = None
    doc_id: str = Field(..., min_length=1, description="Client-side document identifier.")
    doc_status: str | None = None
    doc_type: str | None = Field(default=None, description="e.g. LP_INTRODUCE_GOODS")
    import_request: bool = Field(default=False, alias="importRequest")
    owner_inn: str | None = None
    participant_inn: str | None = None
    producer_inn: str | None = None
    production_date: str | None = None
    production_type: str | None = None
    products: List[Product] = Field(default_factory=list)
    reg_date: str | None = None
    reg_number: str | None = None


class DocumentCreateResult(BaseModel):
    """Outcome of one create-document call."""

    doc_id: str
    status_code: int = Field(..., description="HTTP status returned by the remote API.")
    accepted: bool = Field(..., description="True when the remote API answered 200.")
    body: str = Field(default="", description="Raw response body.")
