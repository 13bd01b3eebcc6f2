"""
Landing page fallback route

Registered after every API route: any single path segment that is not a
file name (no ".") and not "api" gets the landing page shell, which then
validates the slug through the API.
"""

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
import structlog

from app.core.config import Settings, get_settings
from app.core.exceptions import NotFoundError

logger = structlog.get_logger(__name__)
router = APIRouter()

RESERVED_SEGMENTS = {"api"}


def is_landing_slug(segment: str) -> bool:
    return bool(segment) and "." not in segment and segment not in RESERVED_SEGMENTS


@router.get("/{slug}", include_in_schema=False)
async def landing_page(slug: str, settings: Settings = Depends(get_settings)):
    if not is_landing_slug(slug):
        raise NotFoundError("Recurso no encontrado")

    page = Path(settings.LANDING_PAGE_PATH)
    if not page.is_file():
        logger.error(f"Landing page shell missing: {page}")
        raise NotFoundError("Página no disponible")

    return FileResponse(page, media_type="text/html")
