from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from ..models.student import MAX_LEVEL, MIN_LEVEL

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.globals["LEVELS"] = list(range(MIN_LEVEL, MAX_LEVEL + 1))


def render(request: Request, name: str, context: dict | None = None, *, status_code: int = 200, user=None):
    """Render a page; one-shot ?msg= / ?error= from a redirect are passed through."""
    ctx = {
        "user": user,
        "msg": request.query_params.get("msg"),
        "error": request.query_params.get("error"),
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)
