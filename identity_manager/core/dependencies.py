"""FastAPI dependencies: services and the REST API authorization gate."""

import logging
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from identity_manager.core.access import API_POLICY, Decision, Principal
from identity_manager.core.exceptions import ForbiddenError, UnauthorizedError
from identity_manager.core.security import decode_access_token, parse_basic_credentials
from identity_manager.core.storage import Storage, get_storage
from identity_manager.database import get_db
from identity_manager.models.user import User
from identity_manager.services.ticket_service import SupportTicketService
from identity_manager.services.user_service import UserService

logger = logging.getLogger(__name__)


def get_user_service(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[Storage, Depends(get_storage)],
) -> UserService:
    return UserService(db, storage=storage)


def get_ticket_service(db: Annotated[Session, Depends(get_db)]) -> SupportTicketService:
    return SupportTicketService(db)


def principal_for(user: User) -> Principal:
    """Build the principal for an authenticated user from its current roles."""
    return Principal.from_roles(user.id, user.email, user.role_names)


def resolve_api_principal(request: Request, db: Session) -> Principal | None:
    """Resolve the identity carried by the ``Authorization`` header.

    Supports HTTP Basic (email and password on every request) and Bearer JWTs
    issued by ``/api/auth/login``.

    Args:
        request: Incoming request
        db: Database session

    Returns:
        Principal for valid credentials, None when no credentials were sent

    Raises:
        UnauthorizedError: If credentials were sent but are invalid
    """
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None

    scheme, _, credentials = authorization.partition(" ")
    scheme = scheme.lower()
    credentials = credentials.strip()

    if scheme == "basic":
        parsed = parse_basic_credentials(credentials)
        if parsed is None:
            raise UnauthorizedError("Malformed basic credentials")
        email, password = parsed
        user = UserService(db).authenticate(email, password)
        if user is None:
            raise UnauthorizedError("Invalid email or password")
        return principal_for(user)

    if scheme == "bearer":
        payload = decode_access_token(credentials)
        if payload is None or not payload.get("sub"):
            raise UnauthorizedError("Invalid or expired token")
        user = db.query(User).filter(User.email == payload["sub"]).first()
        if user is None:
            raise UnauthorizedError("User no longer exists")
        return principal_for(user)

    raise UnauthorizedError("Unsupported authorization scheme")


def api_gate(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> Principal | None:
    """Apply the API policy to the current request.

    Returns:
        The caller's principal, or None on an open route called anonymously

    Raises:
        UnauthorizedError: If the route needs an identity and none was given
        ForbiddenError: If the route needs a role the caller lacks
    """
    principal = resolve_api_principal(request, db)
    decision = API_POLICY.decide(principal, request.method, request.url.path)

    if decision is Decision.UNAUTHENTICATED:
        raise UnauthorizedError()
    if decision is Decision.FORBIDDEN:
        logger.warning(f"{principal.email} denied access to {request.method} {request.url.path}")
        raise ForbiddenError()

    return principal


def get_current_principal(
    principal: Annotated[Principal | None, Depends(api_gate)],
) -> Principal:
    if principal is None:
        raise UnauthorizedError()
    return principal


def require_admin(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    """Handler-level check for API operations reserved to administrators."""
    if not principal.is_admin:
        raise ForbiddenError("Administrator role required")
    return principal
