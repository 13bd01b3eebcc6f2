"""
Standalone advisor contact lookup

Serves a single preconfigured advisor profile from the ASESORES_DATA JSON
blob, without touching the database. Included in the main application and
also deployable on its own as `app.api.lookup:lookup_app`.
"""

import json

from fastapi import APIRouter, Depends, FastAPI, Response, status
from fastapi.responses import JSONResponse
import structlog

from app.core.config import Settings, get_settings
from app.core.exceptions import ConfigurationError, NotFoundError

logger = structlog.get_logger(__name__)
router = APIRouter()

LOOKUP_PATH = "/api/asesores/prueba-landing"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def load_profiles(raw: str) -> dict:
    try:
        profiles = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError("Error al procesar solicitud", str(e))
    if not isinstance(profiles, dict):
        raise ConfigurationError("Error al procesar solicitud", "ASESORES_DATA debe ser un objeto JSON")
    return profiles


def find_profile(settings: Settings) -> dict:
    """Resolve the configured key (hyphen or underscore form) to its contact fields"""
    if not settings.ASESORES_DATA:
        raise ConfigurationError("ASESORES_DATA no configurado")

    profiles = load_profiles(settings.ASESORES_DATA)
    key = settings.LOOKUP_KEY
    profile = profiles.get(key) or profiles.get(key.replace("-", "_"))
    if not isinstance(profile, dict):
        raise NotFoundError("Asesor no encontrado")

    return {
        "nombre": profile.get("nombre"),
        "telefono": profile.get("telefono"),
        "correo": profile.get("correo"),
        "callmebot_apikey": profile.get("callmebot_apikey"),
    }


@router.api_route("", methods=["GET", "POST"])
async def lookup_advisor(settings: Settings = Depends(get_settings)):
    """Return the preconfigured advisor's contact info"""
    try:
        profile = find_profile(settings)
    except (ConfigurationError, NotFoundError) as e:
        if e.status_code >= 500:
            logger.error(f"Lookup failed: {e.message} {e.detail or ''}")
        return JSONResponse(status_code=e.status_code, content=e.to_dict(), headers=CORS_HEADERS)
    return JSONResponse(content=profile, headers=CORS_HEADERS)


@router.options("")
async def lookup_preflight():
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


lookup_app = FastAPI(title="Colmena advisor lookup")
lookup_app.include_router(router, prefix=LOOKUP_PATH, tags=["lookup"])
