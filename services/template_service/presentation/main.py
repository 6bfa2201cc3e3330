from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from services.common.docs import add_template_app_openapi, use_swagger_ui
from services.common.settings import AppSettings

from ..application.services import TemplateService
from .api import router
from .metrics import setup_metrics
from .middleware import setup_middleware


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    settings = settings or AppSettings.from_env()
    app = FastAPI(
        title=settings.service_name,
        version=settings.version,
        description="TemplateApp API secured with OAuth2 authorization code flow (PKCE).",
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.template_service = TemplateService()

    setup_middleware(app, log_level=settings.log_level)
    setup_metrics(app)
    app.include_router(router)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    add_template_app_openapi(app, settings.auth)
    use_swagger_ui(app, settings)
    return app


def __getattr__(name: str) -> FastAPI:
    # Built on first access so importing the module does not require configuration;
    # `uvicorn services.template_service.presentation.main:app` still fails fast.
    if name == "app":
        application = create_app()
        globals()["app"] = application
        return application
    raise AttributeError(name)
