"""Administrator pages for managing users and support tickets."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError as PydanticValidationError

from identity_manager.core.access import Principal
from identity_manager.core.dependencies import get_ticket_service, get_user_service
from identity_manager.core.error_handlers import field_errors_from
from identity_manager.core.exceptions import (
    DuplicateResourceError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)
from identity_manager.models.role import RoleName
from identity_manager.models.support_ticket import TicketStatus
from identity_manager.schemas.common import PageRequest
from identity_manager.schemas.ticket import AdminTicketCreate
from identity_manager.schemas.user import UserCreate, UserUpdate
from identity_manager.services.ticket_service import SupportTicketService
from identity_manager.services.user_service import UserService
from identity_manager.web.rendering import redirect, render
from identity_manager.web.session import flash, require_web_user, web_gate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(web_gate)], include_in_schema=False)

TICKET_STATUSES = [ticket_status.value for ticket_status in TicketStatus]


def _user_form(
    request: Request,
    *,
    is_edit: bool,
    form: dict,
    errors: dict[str, str] | None = None,
    user_id: int | None = None,
    error: str | None = None,
) -> HTMLResponse:
    return render(
        request,
        "admin/user_form.html",
        {
            "is_edit": is_edit,
            "form": form,
            "errors": errors or {},
            "user_id": user_id,
            "error": error,
        },
        status_code=status.HTTP_400_BAD_REQUEST if errors or error else status.HTTP_200_OK,
    )


# ----------------------------------------------------------------------
# users
# ----------------------------------------------------------------------


@router.get("/users", response_class=HTMLResponse)
async def list_users(
    request: Request,
    users: Annotated[UserService, Depends(get_user_service)],
    page: int = 0,
    size: int = 10,
):
    """Paginated user table."""
    page_request = PageRequest(page=max(page, 0), size=min(max(size, 1), 100))
    return render(request, "admin/users_list.html", {"page": users.get_users_page(page_request)})


@router.get("/users/new", response_class=HTMLResponse)
async def new_user_form(request: Request):
    return _user_form(request, is_edit=False, form={})


@router.post("/users")
async def create_user(
    request: Request,
    users: Annotated[UserService, Depends(get_user_service)],
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    first_name: Annotated[str, Form()] = "",
    last_name: Annotated[str, Form()] = "",
    phone: Annotated[str, Form()] = "",
    is_privacy_enabled: Annotated[bool, Form()] = False,
    is_admin: Annotated[bool, Form()] = False,
):
    """Create a user from the admin form. ADMIN is granted on request, USER always."""
    form = {
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "phone": phone,
        "is_privacy_enabled": is_privacy_enabled,
        "is_admin": is_admin,
    }
    try:
        data = UserCreate(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            is_privacy_enabled=is_privacy_enabled,
        )
    except PydanticValidationError as e:
        return _user_form(request, is_edit=False, form=form, errors=field_errors_from(e))

    try:
        created = users.create_user(
            email=data.email,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            is_privacy_enabled=data.is_privacy_enabled,
            roles=(RoleName.ADMIN,) if is_admin else (),
        )
    except ValidationError as e:
        return _user_form(request, is_edit=False, form=form, errors=e.field_errors)
    except DuplicateResourceError as e:
        return _user_form(request, is_edit=False, form=form, error=e.message)

    flash(request, "User created successfully!")
    logger.info(f"Administrator created user {created.id}")
    return redirect("/admin/users")


@router.get("/users/{user_id}/edit", response_class=HTMLResponse)
async def edit_user_form(
    request: Request,
    user_id: int,
    users: Annotated[UserService, Depends(get_user_service)],
):
    user = users.get_user_by_id(user_id)
    if user is None:
        flash(request, NotFoundError("User", "id", user_id).message, "danger")
        return redirect("/admin/users")

    form = {
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone or "",
        "is_privacy_enabled": user.is_privacy_enabled,
        "is_admin": RoleName.ADMIN.value in user.roles,
    }
    return _user_form(request, is_edit=True, form=form, user_id=user_id)


@router.post("/users/{user_id}/edit")
async def update_user(
    request: Request,
    user_id: int,
    principal: Annotated[Principal, Depends(require_web_user)],
    users: Annotated[UserService, Depends(get_user_service)],
    first_name: Annotated[str, Form()] = "",
    last_name: Annotated[str, Form()] = "",
    phone: Annotated[str, Form()] = "",
    is_privacy_enabled: Annotated[bool, Form()] = False,
    is_admin: Annotated[bool, Form()] = False,
):
    """Update profile fields, the privacy flag and the ADMIN role of a user.

    Email and password are never edited here.
    """
    existing = users.get_user_by_id(user_id)
    if existing is None:
        flash(request, NotFoundError("User", "id", user_id).message, "danger")
        return redirect("/admin/users")

    form = {
        "email": existing.email,
        "first_name": first_name,
        "last_name": last_name,
        "phone": phone,
        "is_privacy_enabled": is_privacy_enabled,
        "is_admin": is_admin,
    }
    try:
        update = UserUpdate(first_name=first_name, last_name=last_name, phone=phone)
    except PydanticValidationError as e:
        return _user_form(request, is_edit=True, form=form, errors=field_errors_from(e), user_id=user_id)

    if user_id == principal.user_id and not is_admin:
        return _user_form(
            request,
            is_edit=True,
            form=form,
            user_id=user_id,
            error="You cannot remove your own administrator role",
        )

    try:
        users.update_account(user_id, update, is_privacy_enabled=is_privacy_enabled, is_admin=is_admin)
    except ValidationError as e:
        return _user_form(request, is_edit=True, form=form, errors=e.field_errors, user_id=user_id)
    except NotFoundError as e:
        flash(request, e.message, "danger")
        return redirect("/admin/users")

    flash(request, "User updated successfully!")
    return redirect("/admin/users")


@router.post("/users/{user_id}/delete")
async def delete_user(
    request: Request,
    user_id: int,
    principal: Annotated[Principal, Depends(require_web_user)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> RedirectResponse:
    if user_id == principal.user_id:
        flash(request, "You cannot delete your own account", "danger")
        return redirect("/admin/users")

    try:
        users.delete_user(user_id)
    except NotFoundError as e:
        flash(request, e.message, "danger")
    else:
        flash(request, "User deleted successfully!")
    return redirect("/admin/users")


# ----------------------------------------------------------------------
# tickets
# ----------------------------------------------------------------------


@router.get("/tickets", response_class=HTMLResponse)
async def list_tickets(
    request: Request,
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
    users: Annotated[UserService, Depends(get_user_service)],
):
    """All tickets, per-status counts and the create-for-user form."""
    return render(
        request,
        "admin/tickets_list.html",
        {
            "tickets": tickets.get_all_tickets(),
            "users": users.get_all_users(),
            "status_counts": tickets.count_tickets_by_status(),
            "statuses": TICKET_STATUSES,
        },
    )


@router.post("/tickets")
async def create_ticket(
    request: Request,
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
    user_id: Annotated[str, Form()] = "",
    subject: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
) -> RedirectResponse:
    """Open a ticket on behalf of any user.

    ``user_id`` arrives as raw form text so a blank or non-numeric choice is
    reported through a flash message like every other field.
    """
    try:
        data = AdminTicketCreate(user_id=user_id, subject=subject, description=description)
    except PydanticValidationError as e:
        errors = field_errors_from(e)
        flash(request, "; ".join(f"{field}: {message}" for field, message in errors.items()), "danger")
        return redirect("/admin/tickets")

    try:
        tickets.create_ticket(data.user_id, data.subject, data.description)
    except NotFoundError as e:
        flash(request, f"Failed to create ticket: {e.message}", "danger")
    else:
        flash(request, "Ticket created successfully!")
    return redirect("/admin/tickets")


@router.get("/tickets/{ticket_id}", response_class=HTMLResponse)
async def ticket_detail(
    request: Request,
    ticket_id: int,
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
):
    try:
        ticket = tickets.get_ticket_by_id(ticket_id)
    except NotFoundError as e:
        flash(request, e.message, "danger")
        return redirect("/admin/tickets")
    return render(request, "admin/ticket_detail.html", {"ticket": ticket, "statuses": TICKET_STATUSES})


@router.post("/tickets/{ticket_id}/status")
async def update_ticket_status(
    request: Request,
    ticket_id: int,
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
    new_status: Annotated[str, Form(alias="status")] = "",
) -> RedirectResponse:
    try:
        tickets.update_ticket_status(ticket_id, new_status)
    except InvalidArgumentError as e:
        flash(request, e.message, "danger")
    except NotFoundError as e:
        flash(request, e.message, "danger")
        return redirect("/admin/tickets")
    else:
        flash(request, "Ticket status updated successfully!")
    return redirect(f"/admin/tickets/{ticket_id}")
