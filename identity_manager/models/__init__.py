"""Database models package."""

from identity_manager.models.role import Role, RoleName, user_roles
from identity_manager.models.support_ticket import SupportTicket, TicketStatus
from identity_manager.models.user import User

__all__ = ["User", "Role", "RoleName", "SupportTicket", "TicketStatus", "user_roles"]
