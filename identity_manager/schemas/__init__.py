"""Pydantic schemas package."""

from identity_manager.schemas.common import Page, PageRequest
from identity_manager.schemas.ticket import TicketResponse
from identity_manager.schemas.user import UserResponse

__all__ = [
    "Page",
    "PageRequest",
    "TicketResponse",
    "UserResponse",
]
