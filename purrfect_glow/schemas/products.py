"""Product size and inquiry schemas."""

from uuid import UUID

from pydantic import ConfigDict, Field

from purrfect_glow.schemas.base import CamelModel


class SizeRequest(CamelModel):
    """Desired size entry."""

    model_config = ConfigDict(str_strip_whitespace=True)

    value: str = Field(..., min_length=1, max_length=50, description="Size label")
    inventory: int = Field(..., ge=0, description="Units on hand")


class SizesUpdateRequest(CamelModel):
    """Complete desired size list; an empty list removes every size."""

    sizes: list[SizeRequest] = Field(default_factory=list)


class SizeResponse(CamelModel):
    id: UUID
    value: str
    inventory: int


class ReconciliationResponse(CamelModel):
    """Changes applied by a size reconciliation."""

    product_id: UUID
    created: list[str]
    updated: list[str]
    unchanged: list[str]
    deleted: list[str]
    sizes: list[SizeResponse]


class InquiryLinkResponse(CamelModel):
    product_id: UUID
    link: str
