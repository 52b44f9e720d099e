"""Contact extraction endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter
from pydantic import BaseModel, Field

from filing_desk.schemas.contacts import ContactExtractionResult
from filing_desk.services.contact_extraction import dedupe_contacts, extract_contacts

router = APIRouter(prefix="/contacts", tags=["contacts"])
logger = structlog.get_logger(__name__)


class ExtractContactsRequest(BaseModel):
    """Pasted document text to scan for contacts."""

    text: str = Field(..., min_length=1)
    dedupe: bool = Field(default=True, description="Drop repeated contacts")


@router.post(
    "/extract",
    response_model=ContactExtractionResult,
    summary="Extract contacts",
)
async def extract(request: ExtractContactsRequest) -> ContactExtractionResult:
    """Extract contacts from a pasted legacy document. Nothing is saved."""
    result = extract_contacts(request.text)
    if request.dedupe:
        result = result.model_copy(update={"contacts": dedupe_contacts(result.contacts)})

    await logger.ainfo(
        "contacts_extracted",
        contact_count=len(result.contacts),
        has_contacts_section=result.has_contacts_section,
    )
    return result
