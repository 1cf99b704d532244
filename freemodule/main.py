"""
freemodule/main.py
Application factory

create_app() builds every runtime object from a Settings instance and hangs
them on app.state:

    app.state.settings   Settings
    app.state.db         Database (engine + session pool)
    app.state.tokens     TokenService
    app.state.passwords  PasswordHasher
    app.state.files      FileStore
    app.state.limiter    slowapi Limiter

`app` at module level is what uvicorn/gunicorn serve.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from freemodule import __version__
from freemodule.config.settings import Settings, load_settings
from freemodule.database import Database
from freemodule.errors import APIError, ErrorCode, ServiceUnavailableError, error_body, new_log_id
from freemodule.routes import router
from freemodule.security.passwords import PasswordHasher
from freemodule.security.rate_limit import STORAGE_URI, limiter, rate_limit_exceeded_handler, storage_scheme
from freemodule.security.tokens import TokenService
from freemodule.services.file_store import URL_PREFIX, FileStore

logger = logging.getLogger(__name__)

HTTP_STATUS_CODES = {
    401: ErrorCode.UNAUTHENTICATED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    429: ErrorCode.RATE_LIMITED,
}


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.is_development else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        logger.warning(f"API error on {request.url.path}: {exc.code} - {exc.message}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

        error_details = []
        for error in exc.errors():
            error_details.append({
                "loc": list(error.get("loc", ())),
                "msg": error.get("msg"),
                "type": error.get("type"),
            })

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(ErrorCode.VALIDATION, "Request validation failed", error_details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP exception on {request.url.path}: {exc.detail}")
        if exc.status_code >= 500:
            code = ErrorCode.SERVER_ERROR
        else:
            code = HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.VALIDATION)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.exception_handler(PoolTimeoutError)
    async def pool_timeout_handler(request: Request, exc: PoolTimeoutError):
        logger.error(f"Database pool exhausted on {request.url.path}: {exc}")
        return ServiceUnavailableError("Database is busy. Please retry shortly.").to_response()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        log_id = new_log_id()
        logger.error(
            f"[{log_id}] Unhandled exception on {request.url.path}: {type(exc).__name__}: {str(exc)}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                ErrorCode.SERVER_ERROR,
                "An unexpected error occurred. Please try again later.",
                [{"log_id": log_id}],
            ),
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        settings = load_settings()
    else:
        settings.validate()
    configure_logging(settings)

    database = Database(settings)
    files = FileStore(settings.upload_dir, settings.max_upload_bytes, settings.allowed_upload_types)
    tokens = TokenService(settings.signing_secret, settings.jwt_algorithm, settings.jwt_expire_minutes)
    passwords = PasswordHasher(rounds=settings.bcrypt_rounds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Free Module API ({settings.environment})")
        try:
            files.ensure_directory()
        except OSError as e:
            logger.error(f"Cannot create upload directory {settings.upload_dir}: {e}")
            raise
        await database.create_all()
        logger.info("Database connected successfully")

        yield

        logger.info("Shutting down application...")
        await database.dispose()
        passwords.shutdown()

    app = FastAPI(
        title="Free Module API",
        description="Class notes, Q&A and community posts for university students",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = database
    app.state.files = files
    app.state.tokens = tokens
    app.state.passwords = passwords

    # The limiter is process-wide; each app switches its own limits via
    # settings.rate_limit_enabled (see limits_disabled).
    app.state.limiter = limiter
    if settings.rate_limit_storage_uri != STORAGE_URI:
        logger.warning(
            "RATE_LIMIT_STORAGE_URI changed after import; the limiter keeps using "
            f"{storage_scheme(STORAGE_URI)} storage"
        )
    elif settings.rate_limit_enabled and not settings.shared_rate_limit_storage:
        logger.info("Rate limit counters are held in memory, per worker process")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(router)
    app.mount(URL_PREFIX, StaticFiles(directory=str(files.root), check_dir=False), name="uploads")

    return app


app = create_app()
