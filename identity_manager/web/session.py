"""Session login state, flash messages and the browser authorization gate."""

import logging
from typing import Annotated

from fastapi import Depends, Request

from identity_manager.core.access import WEB_POLICY, Decision, Principal
from identity_manager.core.dependencies import principal_for
from identity_manager.models.user import User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"
FLASH_KEY = "_flashes"


class LoginRequired(Exception):
    """The page needs a logged-in session."""


class AccessDenied(Exception):
    """The logged-in user lacks the role the page needs."""


def login_session(request: Request, user: User) -> Principal:
    """Start a fresh session for an authenticated user.

    Roles are captured at login; changes made later apply from the next login.
    """
    principal = principal_for(user)
    request.session.clear()
    request.session[SESSION_USER_KEY] = {
        "id": principal.user_id,
        "email": principal.email,
        "authorities": sorted(principal.authorities),
    }
    return principal


def logout_session(request: Request) -> None:
    request.session.clear()


def session_principal(request: Request) -> Principal | None:
    data = request.session.get(SESSION_USER_KEY)
    if not data:
        return None
    return Principal(
        user_id=data["id"],
        email=data["email"],
        authorities=frozenset(data.get("authorities", ())),
    )


def flash(request: Request, message: str, category: str = "success") -> None:
    """Queue a message for the next rendered page."""
    messages = request.session.get(FLASH_KEY, [])
    messages.append({"category": category, "message": message})
    request.session[FLASH_KEY] = messages


def pop_flashes(request: Request) -> list[dict[str, str]]:
    return request.session.pop(FLASH_KEY, [])


def web_gate(request: Request) -> Principal | None:
    """Apply the browser policy to the current request.

    Raises:
        LoginRequired: If the page needs a session and there is none
        AccessDenied: If the page needs a role the session user lacks
    """
    principal = session_principal(request)
    decision = WEB_POLICY.decide(principal, request.method, request.url.path)

    if decision is Decision.UNAUTHENTICATED:
        raise LoginRequired()
    if decision is Decision.FORBIDDEN:
        logger.warning(f"{principal.email} denied access to {request.url.path}")
        raise AccessDenied()

    return principal


def require_web_user(
    principal: Annotated[Principal | None, Depends(web_gate)],
) -> Principal:
    if principal is None:
        raise LoginRequired()
    return principal
