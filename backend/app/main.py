import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from backend.app.api import deps
from backend.app.api.v1.router import api_router
from backend.app.core.config import settings
from backend.app.core.exceptions import AuthError, RateLimitedError, ValidationError
from backend.app.db import init_models
from backend.app.db.base import engine
from backend.app.jobs.cleanup import CleanupScheduler

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# --- Startup: schema + daily cleanup job. Shutdown: stop job, close pool ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await init_models()

    scheduler = None
    if settings.CLEANUP_ENABLED:
        scheduler = CleanupScheduler(
            deps.get_auth_service(),
            hour=settings.CLEANUP_HOUR_UTC,
            minute=settings.CLEANUP_MINUTE_UTC,
        )
        scheduler.start()
    app.state.cleanup_scheduler = scheduler
    logger.info("%s API started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)

    yield

    if scheduler is not None:
        scheduler.stop()
    await engine.dispose()
    logger.info("Database connection closed")


# --- Error translation: every failure leaves as {success, error, message} ---
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    content = {"success": False, "error": exc.error, "message": exc.message}
    headers = None
    if isinstance(exc, ValidationError):
        content["field"] = exc.field
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = loc[-1] if loc else "body"

    original = (first.get("ctx") or {}).get("error")
    if isinstance(original, ValidationError):
        field, message = original.field, original.message
    elif first.get("type") == "missing":
        message = f"{field.replace('_', ' ').capitalize()} is required"
    elif first.get("type") == "value_error":
        message = str(first.get("msg", "")).removeprefix("Value error, ")
    else:
        message = f"{field}: {first.get('msg', 'Invalid value')}"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Validation failed",
            "message": message,
            "field": field,
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "Something went wrong!" if settings.is_production else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal Server Error", "message": message},
    )


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan if use_lifespan else None,
    )

    # Set up CORS (credentials allowed so the session cookie travels)
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.BACKEND_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        return {"message": f"Welcome to {settings.PROJECT_NAME} API"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("backend.app.main:app", host=settings.HOST, port=settings.PORT)
