import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tripwise.api.v1.ai import router as ai_router
from tripwise.api.v1.geo import router as geo_router
from tripwise.core.config import get_settings
from tripwise.core.errors import MissingConfigurationError
from tripwise.services.geo.resolver import create_place_resolver

settings = get_settings()

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Tripwise API",
    version="0.3.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
)
app.state.place_resolver = None


@app.on_event("startup")
async def _startup_place_resolver():
    if app.state.place_resolver is not None:
        return
    try:
        app.state.place_resolver = create_place_resolver(settings)
    except MissingConfigurationError as exc:
        # Geo endpoints answer 503 until the key is configured.
        logger.warning("Place resolver not started: %s", exc)


@app.on_event("shutdown")
async def _shutdown_place_resolver():
    resolver = app.state.place_resolver
    if resolver is not None:
        app.state.place_resolver = None
        await resolver.close()


if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

app.include_router(ai_router, prefix="/api/v1", tags=["ai"])
app.include_router(geo_router, prefix="/api/v1", tags=["geo"])


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # 503 carries the missing setting name; other 5xx stay opaque unless enabled.
    if exc.status_code >= 500 and exc.status_code != 503 and not settings.expose_error_details:
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(MissingConfigurationError)
async def _missing_configuration_handler(request: Request, exc: MissingConfigurationError):
    logger.warning("Request needs unconfigured setting %s", exc.setting)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    if settings.expose_error_details:
        return JSONResponse(status_code=500, content={"detail": str(exc)})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
async def health_check():
    return {"status": "ok"}
