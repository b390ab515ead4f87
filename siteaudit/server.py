"""FastAPI application for the site audit admin surface.

Endpoints:
- Admin login (shared-secret cookie)
- Agent skill listing and detail
- Prompt log review per refresh session
- Results page shell (never indexed)
- Health and metrics

Handlers are thin: an admin gate, one gateway call, a projection.
"""

import json
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.responses import PlainTextResponse

from siteaudit import __version__
from siteaudit.auth import (
    AuthCheck,
    admin_cookie_options,
    get_auth_check,
    get_settings_dependency,
    secret_matches,
)
from siteaudit.config import FRAMEWORK, Settings, get_settings
from siteaudit.db import PersistenceGateway, SQLGateway, get_gateway, get_sql_gateway, init_db
from siteaudit.db.engine import close_db
from siteaudit.logging import configure_logging, get_logger
from siteaudit.metrics import metrics
from siteaudit.middleware import RequestTracingMiddleware
from siteaudit.results import router as results_router
from siteaudit.schemas import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    PromptLogListResponse,
    PromptLogRecord,
    SkillDetail,
    SkillListResponse,
    SkillSummary,
)
from siteaudit.skills import VALID_SLUGS

logger = get_logger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    """JSON error envelope shared by the admin endpoints."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def unauthorized() -> JSONResponse:
    logger.warning("admin_unauthorized")
    return error_response(status.HTTP_401_UNAUTHORIZED, "Unauthorized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()

    configure_logging(
        json_format=not settings.debug,
        level="DEBUG" if settings.debug else settings.log_level,
    )

    logger.info(
        "server_starting",
        version=__version__,
        host=settings.host,
        port=settings.port,
        debug=settings.debug,
        admin_configured=bool(settings.admin_secret),
        framework=asdict(FRAMEWORK),
    )
    await init_db()
    logger.info("database_ready")
    yield
    await close_db()
    logger.info("server_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Site Audit",
        description="Admin API and results pages for website analyses",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(RequestTracingMiddleware)
    app.include_router(results_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.get("/metrics", include_in_schema=False)
    async def get_metrics() -> PlainTextResponse:
        """Return Prometheus-formatted metrics."""
        return PlainTextResponse(
            content=metrics.to_prometheus(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    @app.get("/metrics/json")
    async def get_metrics_json() -> dict:
        return metrics.get_stats()

    # =========================================================================
    # Admin
    # =========================================================================

    @app.post(
        "/api/admin/auth",
        response_model=LoginResponse,
        responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    )
    async def admin_login(
        request: Request,
        settings: Settings = Depends(get_settings_dependency),
    ):
        """Validate the admin password and set the admin cookie."""
        if not settings.admin_secret:
            return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Admin not configured")

        try:
            body = LoginRequest.model_validate(await request.json())
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
            return error_response(status.HTTP_400_BAD_REQUEST, "Invalid JSON")

        password = body.password.strip() if isinstance(body.password, str) else ""
        if not secret_matches(password, settings.admin_secret):
            logger.warning("admin_login_failed")
            return error_response(status.HTTP_401_UNAUTHORIZED, "Invalid password")

        response = JSONResponse(content=LoginResponse().model_dump())
        response.set_cookie(**admin_cookie_options(settings))
        logger.info("admin_login_succeeded")
        return response

    @app.get(
        "/api/admin/settings/skills",
        response_model=SkillListResponse,
        responses={401: {"model": ErrorResponse}},
    )
    async def list_skills(
        auth: AuthCheck = Depends(get_auth_check),
        gateway: PersistenceGateway = Depends(get_gateway),
    ):
        """List all agent skills without their system prompts.

        Ordered by category, then slug.
        """
        if not await auth.is_admin():
            return unauthorized()

        rows = await gateway.list_skills()
        # Re-project so nothing beyond the listing fields can leak through
        skills = [SkillSummary.model_validate(row) for row in rows]
        logger.info("skills_listed", count=len(skills))
        return SkillListResponse(skills=skills)

    @app.get(
        "/api/admin/settings/skills/{slug}",
        response_model=SkillDetail,
        responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    )
    async def get_skill(
        slug: str,
        auth: AuthCheck = Depends(get_auth_check),
        gateway: SQLGateway = Depends(get_sql_gateway),
    ):
        """Full skill detail, including the system prompt."""
        if not await auth.is_admin():
            return unauthorized()
        if slug not in VALID_SLUGS:
            return error_response(status.HTTP_404_NOT_FOUND, "Invalid skill slug")

        skill = await gateway.get_skill(slug)
        if skill is None:
            return error_response(status.HTTP_404_NOT_FOUND, "Not found")
        return SkillDetail.model_validate(skill)

    @app.get(
        "/api/admin/refreshes/{refresh_id}/prompt-logs",
        response_model=PromptLogListResponse,
        responses={401: {"model": ErrorResponse}},
    )
    async def list_prompt_logs(
        refresh_id: str,
        auth: AuthCheck = Depends(get_auth_check),
        gateway: SQLGateway = Depends(get_sql_gateway),
    ):
        """Prompt logs recorded during one refresh session, oldest first."""
        if not await auth.is_admin():
            return unauthorized()

        logs = await gateway.list_prompt_logs(refresh_id)
        return PromptLogListResponse(
            logs=[PromptLogRecord.model_validate(log) for log in logs],
        )

    return app


# Application instance for uvicorn
app = create_app()
