from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response from the health check endpoint."""

    status: str
    version: str
    catalog_version: int
    badge_count: int


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str = Field(description="Error message")
