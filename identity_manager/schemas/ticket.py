"""Support ticket schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TicketCreate(BaseModel):
    """Ticket creation request for the caller's own account."""

    subject: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)

    @field_validator("subject", "description", mode="before")
    @classmethod
    def normalize_text(cls, v: str) -> str:
        """Normalize text by stripping whitespace."""
        return v.strip() if isinstance(v, str) else v


class AdminTicketCreate(TicketCreate):
    """Ticket creation request naming the owning user."""

    user_id: int


class TicketStatusUpdate(BaseModel):
    """Status change request. The literal is checked against TicketStatus by the service."""

    status: str = Field(..., min_length=1)


class TicketResponse(BaseModel):
    """Read-only projection of a ticket with its owner denormalized."""

    model_config = ConfigDict(frozen=True)

    id: int
    subject: str
    description: str
    status: str
    user_id: int
    user_email: str
    created_at: datetime
