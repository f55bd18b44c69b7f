"""Tests for SupportTicketService."""

import pytest
from sqlalchemy.orm import Session

from identity_manager.core.exceptions import InvalidArgumentError, NotFoundError
from identity_manager.models.support_ticket import SupportTicket, TicketStatus
from identity_manager.services.ticket_service import SupportTicketService, parse_ticket_status


@pytest.fixture
def tickets(test_db_session: Session) -> SupportTicketService:
    return SupportTicketService(test_db_session)


@pytest.fixture
def owner(create_user):
    user, _ = create_user("owner@example.com")
    return user


def test_create_ticket_starts_open(tickets: SupportTicketService, owner):
    ticket = tickets.create_ticket(owner.id, "Cannot login", "I forgot my password")

    assert ticket.status == "OPEN"
    assert ticket.user_id == owner.id
    assert ticket.user_email == "owner@example.com"
    assert ticket.subject == "Cannot login"


def test_create_ticket_for_unknown_user(tickets: SupportTicketService, test_db_session: Session):
    with pytest.raises(NotFoundError) as exc_info:
        tickets.create_ticket(9999, "Subject", "Description")

    assert exc_info.value.message == "User not found with id: '9999'"
    assert test_db_session.query(SupportTicket).count() == 0


def test_create_ticket_for_user_email(tickets: SupportTicketService, owner):
    ticket = tickets.create_ticket_for_user_email("owner@example.com", "Subject", "Description")

    assert ticket.user_id == owner.id
    assert ticket.status == "OPEN"


@pytest.mark.parametrize("status", list(TicketStatus))
def test_update_status_round_trips(tickets: SupportTicketService, owner, status: TicketStatus):
    created = tickets.create_ticket(owner.id, "Subject", "Description")

    tickets.update_ticket_status(created.id, status.value)

    assert tickets.get_ticket_by_id(created.id).status == status.value


def test_update_status_accepts_any_transition(tickets: SupportTicketService, owner):
    created = tickets.create_ticket(owner.id, "Subject", "Description")

    tickets.update_ticket_status(created.id, TicketStatus.CLOSED)
    reopened = tickets.update_ticket_status(created.id, "open")

    assert reopened.status == "OPEN"


def test_invalid_status_leaves_ticket_unchanged(tickets: SupportTicketService, owner):
    created = tickets.create_ticket(owner.id, "Subject", "Description")
    tickets.update_ticket_status(created.id, "RESOLVED")

    with pytest.raises(InvalidArgumentError) as exc_info:
        tickets.update_ticket_status(created.id, "BOGUS")

    assert exc_info.value.message == "Invalid status. Allowed values: OPEN, IN_PROGRESS, RESOLVED, CLOSED"
    assert tickets.get_ticket_by_id(created.id).status == "RESOLVED"


def test_update_status_of_unknown_ticket(tickets: SupportTicketService):
    with pytest.raises(NotFoundError):
        tickets.update_ticket_status(9999, "OPEN")


def test_get_ticket_by_id_unknown(tickets: SupportTicketService):
    with pytest.raises(NotFoundError) as exc_info:
        tickets.get_ticket_by_id(42)

    assert exc_info.value.message == "Ticket not found with id: '42'"


def test_get_tickets_by_user_id(tickets: SupportTicketService, owner, create_user):
    other, _ = create_user("other@example.com")
    tickets.create_ticket(owner.id, "Mine", "Mine")
    tickets.create_ticket(other.id, "Theirs", "Theirs")

    own = tickets.get_tickets_by_user_id(owner.id)

    assert [ticket.subject for ticket in own] == ["Mine"]
    assert tickets.get_tickets_by_user_email("other@example.com")[0].subject == "Theirs"


def test_get_tickets_by_user_id_empty_and_unknown(tickets: SupportTicketService, owner):
    assert tickets.get_tickets_by_user_id(owner.id) == []

    with pytest.raises(NotFoundError):
        tickets.get_tickets_by_user_id(9999)


def test_get_all_tickets_newest_first(tickets: SupportTicketService, owner):
    first = tickets.create_ticket(owner.id, "First", "First")
    second = tickets.create_ticket(owner.id, "Second", "Second")

    assert [ticket.id for ticket in tickets.get_all_tickets()] == [second.id, first.id]


def test_count_tickets_by_status(tickets: SupportTicketService, owner):
    first = tickets.create_ticket(owner.id, "First", "First")
    tickets.create_ticket(owner.id, "Second", "Second")
    tickets.update_ticket_status(first.id, TicketStatus.IN_PROGRESS)

    assert tickets.count_tickets_by_status() == {
        "OPEN": 1,
        "IN_PROGRESS": 1,
        "RESOLVED": 0,
        "CLOSED": 0,
    }


@pytest.mark.parametrize("value, expected", [("in_progress", TicketStatus.IN_PROGRESS), (" closed ", TicketStatus.CLOSED)])
def test_parse_ticket_status(value, expected):
    assert parse_ticket_status(value) is expected
