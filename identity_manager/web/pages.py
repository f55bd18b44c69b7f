"""Login, logout, landing and access denied pages."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from identity_manager.core.access import Principal
from identity_manager.core.dependencies import get_user_service
from identity_manager.services.user_service import UserService
from identity_manager.web.rendering import redirect, render
from identity_manager.web.session import (
    flash,
    login_session,
    logout_session,
    require_web_user,
    web_gate,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(web_gate)], include_in_schema=False)


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    principal: Annotated[Principal | None, Depends(web_gate)],
):
    if principal is not None:
        return redirect("/")
    return render(request, "login.html")


@router.post("/login")
async def login(
    request: Request,
    email: Annotated[str, Form()],
    password: Annotated[str, Form()],
    users: Annotated[UserService, Depends(get_user_service)],
) -> RedirectResponse:
    """Check the submitted credentials and open a session."""
    user = users.authenticate(email.strip(), password)
    if user is None:
        flash(request, "Invalid email or password", "danger")
        return redirect("/login")

    login_session(request, user)
    logger.info(f"User {user.id} logged in to the web console")
    return redirect("/")


@router.get("/logout")
async def logout(request: Request) -> RedirectResponse:
    logout_session(request)
    flash(request, "You have been logged out", "info")
    return redirect("/login")


@router.get("/")
async def home(principal: Annotated[Principal, Depends(require_web_user)]) -> RedirectResponse:
    """Send administrators to user management and everyone else to their dashboard."""
    if principal.is_admin:
        return redirect("/admin/users")
    return redirect("/user/dashboard")


@router.get("/403", response_class=HTMLResponse)
async def access_denied(request: Request):
    return render(request, "403.html", status_code=status.HTTP_403_FORBIDDEN)
