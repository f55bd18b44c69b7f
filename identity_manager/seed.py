"""Reference and sample data loaded at startup."""

import logging

from sqlalchemy.orm import Session

from identity_manager.database import transaction
from identity_manager.models.role import Role, RoleName
from identity_manager.models.support_ticket import TicketStatus
from identity_manager.models.user import User
from identity_manager.services.ticket_service import SupportTicketService
from identity_manager.services.user_service import UserService

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"


def seed_roles(db: Session) -> None:
    """Create the USER and ADMIN lookup rows if they are missing."""
    existing = {role.name for role in db.query(Role).all()}
    missing = [name for name in RoleName if name not in existing]
    if not missing:
        return
    with transaction(db):
        for name in missing:
            db.add(Role(name=name))
    logger.info(f"Seeded roles: {', '.join(name.value for name in missing)}")


def seed_demo_data(db: Session) -> None:
    """Insert sample accounts and tickets into an empty database."""
    if db.query(User).count() > 0:
        return

    users = UserService(db)
    tickets = SupportTicketService(db)

    users.create_user(
        email="admin@example.com",
        password=DEMO_PASSWORD,
        first_name="Admin",
        last_name="User",
        phone="123456789",
        roles=(RoleName.ADMIN, RoleName.USER),
    )
    john = users.create_user(
        email="john@example.com",
        password=DEMO_PASSWORD,
        first_name="John",
        last_name="Doe",
        phone="987654321",
        is_privacy_enabled=True,
    )
    jane = users.create_user(
        email="jane@example.com",
        password=DEMO_PASSWORD,
        first_name="Jane",
        last_name="Smith",
    )

    tickets.create_ticket(john.id, "Cannot login", "I forgot my password and cannot login to my account")
    in_progress = tickets.create_ticket(john.id, "Profile update issue", "When I try to update my profile, I get an error")
    resolved = tickets.create_ticket(jane.id, "Privacy settings", "How do I enable privacy settings?")
    tickets.update_ticket_status(in_progress.id, TicketStatus.IN_PROGRESS)
    tickets.update_ticket_status(resolved.id, TicketStatus.RESOLVED)

    logger.info("Database initialized with sample data")
