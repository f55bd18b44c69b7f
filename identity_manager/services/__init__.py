"""Service layer: domain rules on top of the database session."""

from identity_manager.services.ticket_service import SupportTicketService
from identity_manager.services.user_service import UserService

__all__ = ["SupportTicketService", "UserService"]
