"""Tests for startup seeding."""

from sqlalchemy.orm import Session

from identity_manager.core.security import verify_password
from identity_manager.models.role import Role, RoleName
from identity_manager.models.support_ticket import SupportTicket, TicketStatus
from identity_manager.models.user import User
from identity_manager.seed import DEMO_PASSWORD, seed_demo_data, seed_roles


def test_seed_roles_is_idempotent(test_db_session: Session):
    seed_roles(test_db_session)
    seed_roles(test_db_session)

    assert {role.name for role in test_db_session.query(Role).all()} == {RoleName.USER, RoleName.ADMIN}
    assert test_db_session.query(Role).count() == 2


def test_seed_demo_data(test_db_session: Session):
    seed_roles(test_db_session)
    seed_demo_data(test_db_session)

    admin = test_db_session.query(User).filter(User.email == "admin@example.com").one()
    john = test_db_session.query(User).filter(User.email == "john@example.com").one()
    assert admin.role_names == {"USER", "ADMIN"}
    assert john.role_names == {"USER"}
    assert john.is_privacy_enabled is True
    assert verify_password(DEMO_PASSWORD, admin.password_hash)

    statuses = sorted(ticket.status.value for ticket in test_db_session.query(SupportTicket).all())
    assert statuses == sorted([TicketStatus.OPEN.value, TicketStatus.IN_PROGRESS.value, TicketStatus.RESOLVED.value])


def test_seed_demo_data_skips_populated_database(test_db_session: Session, create_user):
    create_user("someone@example.com")

    seed_demo_data(test_db_session)

    assert test_db_session.query(User).count() == 1
