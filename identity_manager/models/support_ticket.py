"""SupportTicket model."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from identity_manager.database import Base


class TicketStatus(str, enum.Enum):
    """Ticket status values. Any value may follow any other."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class SupportTicket(Base):
    """Support request raised by (or for) a user."""

    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=False)
    status = Column(
        Enum(TicketStatus, name="ticket_status", native_enum=False, length=20),
        default=TicketStatus.OPEN,
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    user = relationship("User", back_populates="tickets", lazy="joined")

    def __repr__(self) -> str:
        """String representation of SupportTicket."""
        return f"<SupportTicket(id={self.id}, status={self.status}, user_id={self.user_id})>"
