"""Server-rendered landing page with the CAPTCHA widget demo."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from capgate.config.settings import get_settings

router = APIRouter(tags=["pages"])

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


@router.get("/", response_class=HTMLResponse)
async def home_page(request: Request) -> HTMLResponse:
    settings = get_settings()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "challenge_count": settings.challenge_count,
            "challenge_difficulty": settings.challenge_difficulty,
            "challenge_ttl_minutes": settings.challenge_ttl_ms // 60_000,
            "token_ttl_minutes": settings.token_ttl_ms // 60_000,
        },
    )
