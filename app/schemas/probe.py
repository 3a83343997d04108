from pydantic import BaseModel, Field


class ProbeResponse(BaseModel):
    """Response model for the sweep trigger endpoint."""
    status: str = Field(..., description="Status of the sweep request")
    message: str = Field(..., description="Human-readable message")
