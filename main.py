# main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

# Settings and monitoring
from settings import get_settings
settings = get_settings()

# Initialize Sentry error monitoring (if configured)
if settings.SENTRY_DSN:
    import sentry_sdk
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.1,  # 10% sampling for performance (free tier friendly)
    )

from database import init_db
from routers import pos
from services.pos import POSIntegrationError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def empty_preflight_response(request: Request, call_next):
    """Answer accepted CORS pre-flights with an empty body"""
    response = await call_next(request)
    is_preflight = (
        request.method == "OPTIONS"
        and "origin" in request.headers
        and "access-control-request-method" in request.headers
    )
    if is_preflight and response.status_code == 200:
        headers = {
            key: value for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)
    return response


def cors_headers(request: Request) -> dict:
    """CORS headers for responses built outside CORSMiddleware"""
    if "*" in settings.CORS_ORIGINS:
        return {"Access-Control-Allow-Origin": "*"}
    origin = request.headers.get("origin")
    if origin in settings.CORS_ORIGINS:
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    return {}


def error_response(status_code: int, message: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers
    )


@app.exception_handler(POSIntegrationError)
async def pos_integration_exception_handler(request: Request, exc: POSIntegrationError):
    """Render POS connection and sync errors with their status code."""
    if exc.status_code >= 500:
        logger.error(f"POS error on {request.url.path}: {exc.message}")
    else:
        logger.info(f"POS request rejected on {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Auth and request errors share the POS error body."""
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    # Runs outside CORSMiddleware, so the headers are added here
    return error_response(500, "Internal server error", headers=cors_headers(request))


@app.on_event("startup")
async def startup_event():
    init_db()
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")


app.include_router(pos.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
