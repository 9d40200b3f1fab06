"""FastAPI application entrypoint. No business logic; only wiring, startup and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from authcore.api.v1 import router as v1_router
from authcore.core.config import Settings, get_settings
from authcore.core.database import create_engine_for, create_session_factory, create_tables
from authcore.core.exceptions import AuthCoreError
from authcore.core.secrets import SecretProvider
from authcore.core.security import BcryptPasswordHasher
from authcore.core.tokens import TokenCodec
from authcore.schemas.auth import ErrorResponse
from authcore.services.credential_store import SqlCredentialStore
from authcore.services.credentials import CredentialService

logger = logging.getLogger(__name__)


def _status_text(code: int) -> str:
    return f"{code} {HTTPStatus(code).phrase}"


async def handle_auth_error(request: Request, exc: AuthCoreError) -> JSONResponse:
    """Render any domain error as {message, status, code} with its own HTTP status."""
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, extra={"code": exc.code, "path": request.url.path})
    body = ErrorResponse(message=exc.message, status=_status_text(exc.status_code), code=exc.code)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=headers)


# Codes for framework-raised HTTP errors (unknown route, wrong method, ...).
_HTTP_ERROR_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors in the same {message, status, code} shape as domain errors."""
    message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
    body = ErrorResponse(
        message=message,
        status=_status_text(exc.status_code),
        code=_HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies: 422 with the first field error as the message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "")
    else:
        message = "Invalid request body"
    body = ErrorResponse(message=message, status=_status_text(422), code="VALIDATION_ERROR")
    return JSONResponse(status_code=422, content=body.model_dump())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. The signing key is loaded before serving begins."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        secrets = SecretProvider(settings)
        # SecretUnavailableError here aborts startup: the process must not serve without a key.
        secrets.get()

        engine = create_engine_for(settings.DATABASE_URL, echo=settings.DEBUG)
        if settings.DB_CREATE_TABLES:
            await create_tables(engine)
        codec = TokenCodec(
            secrets,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            strict_roles=settings.STRICT_ROLE_CLAIMS,
        )
        app.state.settings = settings
        app.state.engine = engine
        app.state.token_codec = codec
        app.state.credential_service = CredentialService(
            SqlCredentialStore(create_session_factory(engine)),
            codec,
            BcryptPasswordHasher(rounds=settings.BCRYPT_ROUNDS),
            issue_refresh_on_signup=settings.ISSUE_REFRESH_TOKEN_ON_SIGNUP,
        )
        logger.info("authcore started", extra={"environment": settings.APP_ENV})
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title="authcore",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthCoreError, handle_auth_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.include_router(v1_router, prefix=settings.API_PREFIX)
    return app


logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)

app = create_app()


def run() -> None:
    """Console entrypoint: serve the app with uvicorn (HOST/PORT from settings)."""
    settings = get_settings()
    uvicorn.run(
        "authcore.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
