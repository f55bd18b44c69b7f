"""Support ticket lifecycle."""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from identity_manager.core.exceptions import InvalidArgumentError, NotFoundError
from identity_manager.database import transaction
from identity_manager.models.support_ticket import SupportTicket, TicketStatus
from identity_manager.models.user import User
from identity_manager.schemas.ticket import TicketResponse

logger = logging.getLogger(__name__)

ALLOWED_STATUSES = ", ".join(status.value for status in TicketStatus)


def to_ticket_response(ticket: SupportTicket) -> TicketResponse:
    """Map a ticket entity to its projection, denormalizing the owner."""
    return TicketResponse(
        id=ticket.id,
        subject=ticket.subject,
        description=ticket.description,
        status=ticket.status.value,
        user_id=ticket.user.id,
        user_email=ticket.user.email,
        created_at=ticket.created_at,
    )


def parse_ticket_status(value: TicketStatus | str) -> TicketStatus:
    """Parse a status literal case-insensitively.

    Raises:
        InvalidArgumentError: If the literal is not one of the four statuses
    """
    if isinstance(value, TicketStatus):
        return value
    try:
        return TicketStatus(str(value).strip().upper())
    except ValueError:
        raise InvalidArgumentError(f"Invalid status. Allowed values: {ALLOWED_STATUSES}") from None


class SupportTicketService:
    """CRUD and status changes for support tickets.

    Status is a free-form enumeration: any status can be set from any other.
    Tickets are never deleted here; they go away only with their owner.
    """

    def __init__(self, db: Session):
        self.db = db

    def _require_ticket(self, ticket_id: int) -> SupportTicket:
        ticket = self.db.get(SupportTicket, ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", "id", ticket_id)
        return ticket

    def _require_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", "id", user_id)
        return user

    def get_all_tickets(self) -> list[TicketResponse]:
        tickets = (
            self.db.query(SupportTicket)
            .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
            .all()
        )
        return [to_ticket_response(ticket) for ticket in tickets]

    def get_ticket_by_id(self, ticket_id: int) -> TicketResponse:
        return to_ticket_response(self._require_ticket(ticket_id))

    def get_tickets_by_user_id(self, user_id: int) -> list[TicketResponse]:
        """List a user's tickets.

        Raises:
            NotFoundError: If the user does not exist (an existing user with no
                tickets yields an empty list)
        """
        user = self._require_user(user_id)
        tickets = (
            self.db.query(SupportTicket)
            .filter(SupportTicket.user_id == user.id)
            .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
            .all()
        )
        return [to_ticket_response(ticket) for ticket in tickets]

    def get_tickets_by_user_email(self, email: str) -> list[TicketResponse]:
        user = self.db.query(User).filter(User.email == email).first()
        if user is None:
            raise NotFoundError("User", "email", email)
        return self.get_tickets_by_user_id(user.id)

    def create_ticket(self, user_id: int, subject: str, description: str) -> TicketResponse:
        """Open a ticket for a user. New tickets always start as OPEN.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = self._require_user(user_id)

        with transaction(self.db):
            ticket = SupportTicket(
                subject=subject,
                description=description,
                status=TicketStatus.OPEN,
                user=user,
            )
            self.db.add(ticket)

        self.db.refresh(ticket)
        logger.info(f"Created ticket {ticket.id} for user {user.id}")
        return to_ticket_response(ticket)

    def create_ticket_for_user_email(self, email: str, subject: str, description: str) -> TicketResponse:
        user = self.db.query(User).filter(User.email == email).first()
        if user is None:
            raise NotFoundError("User", "email", email)
        return self.create_ticket(user.id, subject, description)

    def update_ticket_status(self, ticket_id: int, new_status: TicketStatus | str) -> TicketResponse:
        """Overwrite a ticket's status.

        The literal is parsed before anything is written, so an invalid value
        leaves the stored status untouched.

        Raises:
            InvalidArgumentError: If the status literal is unknown
            NotFoundError: If the ticket does not exist
        """
        status = parse_ticket_status(new_status)
        ticket = self._require_ticket(ticket_id)

        with transaction(self.db):
            previous = ticket.status
            ticket.status = status

        self.db.refresh(ticket)
        logger.info(f"Ticket {ticket.id} status changed from {previous.value} to {status.value}")
        return to_ticket_response(ticket)

    def count_tickets_by_status(self) -> dict[str, int]:
        """Count tickets per status, including statuses with no tickets."""
        counts = {status.value: 0 for status in TicketStatus}
        rows = (
            self.db.query(SupportTicket.status, func.count(SupportTicket.id))
            .group_by(SupportTicket.status)
            .all()
        )
        for status, count in rows:
            counts[status.value] = count
        return counts
