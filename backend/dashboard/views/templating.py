"""Jinja2 template factory, display filters, and page rendering."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from starlette.templating import Jinja2Templates

from dashboard.server.csrf import get_or_create_csrf_token, set_csrf_cookie

if TYPE_CHECKING:
    from datetime import datetime, tzinfo

    from starlette.requests import Request
    from starlette.responses import Response

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def format_played_at(value: datetime, tz: tzinfo | None = None) -> str:
    """E.g. ``Oct 3, 2025 6:05 PM`` in the display zone (server local when tz is None)."""
    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {local.year} {hour}:{local:%M %p}"


def format_average(value: float) -> str:
    return f"{value:.2f}"


def create_templates(tz: tzinfo | None = None) -> Jinja2Templates:
    """Create the Jinja2 engine for dashboard templates with timestamps shown in ``tz``."""
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.filters["played_at"] = lambda value: format_played_at(value, tz)
    templates.env.filters["average"] = format_average
    return templates


def render_page(request: Request, name: str, context: dict[str, Any], *, status_code: int = 200) -> Response:
    """Render a template with the page's CSRF token, setting the cookie on first visit."""
    templates: Jinja2Templates = request.app.state.templates
    csrf_token, is_new = get_or_create_csrf_token(request)
    response = templates.TemplateResponse(
        request,
        name,
        {**context, "csrf_token": csrf_token},
        status_code=status_code,
    )
    if is_new:
        set_csrf_cookie(response, csrf_token, cookie_secure=request.app.state.settings.cookie_secure)
    return response
