"""
Colmena Asesores - Main Application Entry Point
Advisor landing pages, activity tracking and renewals
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import structlog

from app.core.config import get_settings
from app.core.database import database_from_settings
from app.core.exceptions import AppError
from app.api import advisors, landing, lookup

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Initializing Colmena Asesores backend")
    database = database_from_settings()
    try:
        await database.connect()
    except Exception as e:
        # Without a store there is nothing to serve; abort startup
        logger.error(f"Could not connect to database: {e}")
        raise
    app.state.database = database

    yield

    # Shutdown
    logger.info("Shutting down Colmena Asesores backend")
    await database.dispose()


# Create FastAPI application
app = FastAPI(
    title="Colmena Asesores API",
    description="Advisor referral landing pages with activity tracking",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure middleware stack
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) or "body" for err in exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Datos inválidos", "detalle": fields},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Error interno del servidor"},
    )


# Include routers (lookup before the slug routes it would otherwise collide with)
app.include_router(lookup.router, prefix=lookup.LOOKUP_PATH, tags=["lookup"])
app.include_router(advisors.router, prefix="/api/asesores", tags=["asesores"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "colmena-asesores-api"}


# Catch-all landing page, matched only after every route above
app.include_router(landing.router, tags=["landing"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
