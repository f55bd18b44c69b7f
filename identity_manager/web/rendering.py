"""Jinja2 template rendering with the session context every page needs."""

from pathlib import Path
from typing import Any

from fastapi import Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from identity_manager.web.session import pop_flashes, session_principal

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render(
    request: Request,
    template_name: str,
    context: dict[str, Any] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    """Render a page with the current principal and pending flash messages."""
    page_context = dict(context or {})
    page_context.setdefault("principal", session_principal(request))
    page_context["flashes"] = pop_flashes(request)
    return templates.TemplateResponse(request, template_name, page_context, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    """Post/redirect/get style redirect."""
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)
