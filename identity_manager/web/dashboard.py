"""Self-service pages for signed-in users."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError as PydanticValidationError

from identity_manager.config import settings
from identity_manager.core.access import Principal
from identity_manager.core.dependencies import get_ticket_service, get_user_service
from identity_manager.core.error_handlers import field_errors_from
from identity_manager.core.exceptions import (
    IdentityManagerError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)
from identity_manager.core.storage import StorageError
from identity_manager.schemas.ticket import TicketCreate
from identity_manager.schemas.user import UserUpdate
from identity_manager.services.ticket_service import SupportTicketService
from identity_manager.services.user_service import UserService, check_avatar_upload
from identity_manager.web.rendering import redirect, render
from identity_manager.web.session import flash, logout_session, require_web_user, web_gate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", dependencies=[Depends(web_gate)], include_in_schema=False)


def _describe(errors: dict[str, str]) -> str:
    return "Validation failed: " + "; ".join(f"{field} - {message}" for field, message in errors.items())


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    principal: Annotated[Principal, Depends(require_web_user)],
    users: Annotated[UserService, Depends(get_user_service)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
):
    """Profile, avatar and own tickets of the signed-in user."""
    user = users.get_user_by_email(principal.email)
    if user is None:
        # Account was deleted while the session was alive
        logout_session(request)
        return redirect("/login")

    return render(
        request,
        "user/dashboard.html",
        {"user": user, "tickets": tickets.get_tickets_by_user_id(user.id)},
    )


@router.post("/profile/update")
async def update_profile(
    request: Request,
    principal: Annotated[Principal, Depends(require_web_user)],
    users: Annotated[UserService, Depends(get_user_service)],
    first_name: Annotated[str, Form()] = "",
    last_name: Annotated[str, Form()] = "",
    phone: Annotated[str, Form()] = "",
    is_privacy_enabled: Annotated[bool, Form()] = False,
    avatar: UploadFile | None = File(None),
) -> RedirectResponse:
    """Update profile fields, the privacy flag and optionally the avatar in one form post."""
    try:
        update = UserUpdate(first_name=first_name, last_name=last_name, phone=phone)
    except PydanticValidationError as e:
        flash(request, _describe(field_errors_from(e)), "danger")
        return redirect("/user/dashboard")

    new_avatar = None
    if avatar is not None and avatar.filename:
        content = await avatar.read()
        if content:
            try:
                check_avatar_upload(content, avatar.content_type, settings.max_avatar_size)
            except InvalidArgumentError as e:
                flash(request, f"Failed to upload avatar: {e}", "danger")
                return redirect("/user/dashboard")
            new_avatar = (avatar.filename, content)

    try:
        users.update_own_account(principal.email, update, is_privacy_enabled, avatar=new_avatar)
    except ValidationError as e:
        flash(request, _describe(e.field_errors), "danger")
        return redirect("/user/dashboard")
    except StorageError as e:
        flash(request, f"Failed to upload avatar: {e}", "danger")
        return redirect("/user/dashboard")
    except NotFoundError:
        logout_session(request)
        return redirect("/login")

    flash(request, "Profile updated successfully!")
    return redirect("/user/dashboard")


@router.post("/avatar/delete")
async def delete_avatar(
    request: Request,
    principal: Annotated[Principal, Depends(require_web_user)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> RedirectResponse:
    user = users.get_user_by_email(principal.email)
    if user is not None and user.avatar_filename is not None:
        try:
            users.remove_avatar(user.id)
        except (IdentityManagerError, StorageError) as e:
            flash(request, f"Failed to delete avatar: {e}", "danger")
        else:
            flash(request, "Avatar deleted successfully!")
    return redirect("/user/dashboard")


@router.post("/tickets")
async def create_ticket(
    request: Request,
    principal: Annotated[Principal, Depends(require_web_user)],
    tickets: Annotated[SupportTicketService, Depends(get_ticket_service)],
    subject: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
) -> RedirectResponse:
    """Open a ticket for the signed-in user."""
    try:
        data = TicketCreate(subject=subject, description=description)
    except PydanticValidationError as e:
        flash(request, _describe(field_errors_from(e)), "danger")
        return redirect("/user/dashboard")

    try:
        tickets.create_ticket_for_user_email(principal.email, data.subject, data.description)
    except NotFoundError as e:
        flash(request, f"Failed to create ticket: {e.message}", "danger")
    else:
        flash(request, "Ticket created successfully!")
    return redirect("/user/dashboard")
