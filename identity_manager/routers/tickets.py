"""Support tickets router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from identity_manager.core.access import Principal
from identity_manager.core.dependencies import (
    api_gate,
    get_current_principal,
    get_ticket_service,
    require_admin,
)
from identity_manager.core.exceptions import ForbiddenError
from identity_manager.schemas.ticket import (
    AdminTicketCreate,
    TicketCreate,
    TicketResponse,
    TicketStatusUpdate,
)
from identity_manager.services.ticket_service import SupportTicketService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tickets", tags=["tickets"], dependencies=[Depends(api_gate)])


@router.get("", response_model=list[TicketResponse])
async def list_tickets(
    principal: Annotated[Principal, Depends(get_current_principal)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
) -> list[TicketResponse]:
    """List tickets: every ticket for administrators, own tickets otherwise."""
    if principal.is_admin:
        return tickets.get_all_tickets()
    return tickets.get_tickets_by_user_id(principal.user_id)


@router.get("/my", response_model=list[TicketResponse])
async def list_my_tickets(
    principal: Annotated[Principal, Depends(get_current_principal)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
) -> list[TicketResponse]:
    return tickets.get_tickets_by_user_id(principal.user_id)


@router.get("/user/{user_id}", response_model=list[TicketResponse])
async def list_user_tickets(
    user_id: int,
    admin: Annotated[Principal, Depends(require_admin)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
) -> list[TicketResponse]:
    """List the tickets of any user. Administrators only."""
    return tickets.get_tickets_by_user_id(user_id)


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: int,
    principal: Annotated[Principal, Depends(get_current_principal)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
) -> TicketResponse:
    """Get a ticket by ID.

    Raises:
        NotFoundError: If the ticket does not exist
        ForbiddenError: If the caller neither owns the ticket nor is an administrator
    """
    ticket = tickets.get_ticket_by_id(ticket_id)
    if ticket.user_id != principal.user_id and not principal.is_admin:
        logger.warning(f"{principal.email} tried to read ticket {ticket_id} owned by user {ticket.user_id}")
        raise ForbiddenError("You can only view your own tickets")
    return ticket


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    ticket_data: TicketCreate,
    principal: Annotated[Principal, Depends(get_current_principal)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
) -> TicketResponse:
    """Open a ticket for the calling user."""
    return tickets.create_ticket(principal.user_id, ticket_data.subject, ticket_data.description)


@router.post("/admin", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket_for_user(
    ticket_data: AdminTicketCreate,
    admin: Annotated[Principal, Depends(require_admin)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
) -> TicketResponse:
    """Open a ticket on behalf of another user. Administrators only.

    Raises:
        NotFoundError: If the target user does not exist
    """
    return tickets.create_ticket(ticket_data.user_id, ticket_data.subject, ticket_data.description)


@router.patch("/{ticket_id}/status", response_model=TicketResponse)
async def update_ticket_status(
    ticket_id: int,
    update: TicketStatusUpdate,
    principal: Annotated[Principal, Depends(get_current_principal)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
) -> TicketResponse:
    """Change a ticket's status. Open to any authenticated caller.

    Raises:
        InvalidArgumentError: If the status literal is unknown
        NotFoundError: If the ticket does not exist
    """
    logger.info(f"{principal.email} sets ticket {ticket_id} to {update.status}")
    return tickets.update_ticket_status(ticket_id, update.status)
