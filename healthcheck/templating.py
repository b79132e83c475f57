from pathlib import Path
from typing import Any

from fastapi import Request, status
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

TEMPLATES_DIR = Path(__file__).parent / "templates"
STATIC_DIR = Path(__file__).parent / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render(request: Request, name: str, context: dict[str, Any] | None = None, status_code: int = status.HTTP_200_OK):
    """Render a page. The current session (if any) is exposed as `auth`."""
    page_context = {"auth": getattr(request.state, "auth", None)}
    page_context.update(context or {})
    return templates.TemplateResponse(request, name, page_context, status_code=status_code)


def error_messages(exc: ValidationError) -> list[dict[str, str]]:
    """Flatten a pydantic ValidationError into one message per field for inline display."""
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "__root__")
        msg = error.get("msg", "Invalid value").removeprefix("Value error, ")
        messages.append({"field": field, "msg": f"{field}: {msg}" if field else msg})
    return messages
