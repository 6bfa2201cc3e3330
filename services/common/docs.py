from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol

from fastapi import FastAPI, Request
from fastapi.openapi.docs import get_swagger_ui_html, get_swagger_ui_oauth2_redirect_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import HTMLResponse, JSONResponse

from .settings import AppSettings, AuthOptions, ConfigurationError


DOCUMENT_TITLE = "TemplateApp API"
DOCUMENT_ROUTE = "/openapi/v1.json"
DOCUMENT_DISPLAY_NAME = "TemplateApp API v1"
SWAGGER_UI_ROUTE = "/swagger"
SWAGGER_UI_REDIRECT_ROUTE = "/swagger/oauth2-redirect.html"

SECURITY_SCHEME_NAME = "oauth2"
SECURITY_SCHEME_DESCRIPTION = "Keycloak OAuth2 Authorization Code Flow (PKCE)"
SCOPE_DESCRIPTION = "Access to TemplateApp protected endpoints"

HTTP_METHODS = frozenset(
    {"get", "put", "post", "delete", "options", "head", "patch", "trace"}
)

logger = logging.getLogger("templateapp.openapi")


@dataclass
class DocumentTransformerContext:
    """Per-generation context handed to every document transformer."""

    document_name: str
    app: Optional[FastAPI] = None
    cancelled: threading.Event = field(default_factory=threading.Event)


class DocumentTransformer(Protocol):
    def __call__(self, document: dict[str, Any], context: DocumentTransformerContext) -> None:
        ...


class OAuthSecurityDocumentTransformer:
    """Declares the OAuth2 authorization code (PKCE) scheme and requires it on
    every operation so Swagger UI sends the bearer token after Authorize.

    Running it twice on the same document replaces the scheme but appends a
    second requirement to each operation.
    """

    def __init__(self, auth_options: AuthOptions):
        self._auth_options = auth_options

    def security_scheme(self) -> dict[str, Any]:
        opts = self._auth_options
        return {
            "type": "oauth2",
            "description": SECURITY_SCHEME_DESCRIPTION,
            "flows": {
                "authorizationCode": {
                    "authorizationUrl": opts.authorization_url,
                    "tokenUrl": opts.token_url,
                    "scopes": {opts.api_scope: SCOPE_DESCRIPTION},
                }
            },
        }

    def __call__(self, document: dict[str, Any], context: DocumentTransformerContext) -> None:
        info = document.get("info")
        if info is None:
            info = document["info"] = {}
        info["title"] = DOCUMENT_TITLE

        components = document.get("components")
        if components is None:
            components = document["components"] = {}
        security_schemes = components.get("securitySchemes")
        if security_schemes is None:
            security_schemes = components["securitySchemes"] = {}
        security_schemes[SECURITY_SCHEME_NAME] = self.security_scheme()

        secured = 0
        for path_item in (document.get("paths") or {}).values():
            if not path_item:
                continue
            for method, operation in path_item.items():
                if method not in HTTP_METHODS:
                    continue
                requirements = operation.get("security")
                if requirements is None:
                    requirements = operation["security"] = []
                requirements.append({SECURITY_SCHEME_NAME: [self._auth_options.api_scope]})
                secured += 1

        logger.info(
            "openapi_document_augmented",
            extra={
                "document": context.document_name,
                "scheme": SECURITY_SCHEME_NAME,
                "operations_secured": secured,
            },
        )


def add_document_transformer(app: FastAPI, transformer: DocumentTransformer) -> FastAPI:
    transformers = getattr(app.state, "openapi_transformers", None)
    if transformers is None:
        transformers = app.state.openapi_transformers = []
    transformers.append(transformer)
    # A cached document predates this transformer.
    app.openapi_schema = None
    return app


def add_openapi(
    app: FastAPI,
    *,
    transformers: Iterable[DocumentTransformer] = (),
    document_name: str = "v1",
) -> FastAPI:
    """Replace ``app.openapi`` with a generator that runs registered transformers.

    The document is generated once and cached on ``app.openapi_schema``;
    transformers always receive a freshly generated document. Adding a
    transformer later drops the cached document.
    """

    for transformer in transformers:
        add_document_transformer(app, transformer)
    if not hasattr(app.state, "openapi_transformers"):
        app.state.openapi_transformers = []

    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        context = DocumentTransformerContext(document_name=document_name, app=app)
        for transformer in app.state.openapi_transformers:
            transformer(openapi_schema, context)
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]
    return app


def add_template_app_openapi(app: FastAPI, auth_options: AuthOptions) -> FastAPI:
    return add_openapi(app, transformers=[OAuthSecurityDocumentTransformer(auth_options)])


@dataclass
class SwaggerUIOptions:
    """Resolved Swagger UI configuration."""

    openapi_url: str
    title: str
    client_id: str
    scopes: list[str]
    use_pkce: bool = True
    persist_authorization: bool = True
    oauth2_redirect_url: str = SWAGGER_UI_REDIRECT_ROUTE

    @property
    def init_oauth(self) -> dict[str, Any]:
        return {
            "clientId": self.client_id,
            "usePkceWithAuthorizationCodeGrant": self.use_pkce,
            "scopes": self.scopes,
        }

    @property
    def parameters(self) -> dict[str, Any]:
        return {"persistAuthorization": self.persist_authorization}

    async def route(self, request: Request) -> HTMLResponse:
        root_path = request.scope.get("root_path", "").rstrip("/")
        return get_swagger_ui_html(
            openapi_url=root_path + self.openapi_url,
            title=self.title,
            oauth2_redirect_url=root_path + self.oauth2_redirect_url,
            init_oauth=self.init_oauth,
            swagger_ui_parameters=self.parameters,
        )


def map_openapi(app: FastAPI, route: str = DOCUMENT_ROUTE) -> FastAPI:
    async def openapi_document(_: Request) -> JSONResponse:
        return JSONResponse(app.openapi())

    app.add_route(route, openapi_document, include_in_schema=False)
    return app


def use_swagger_ui(app: FastAPI, settings: AppSettings) -> FastAPI:
    """Expose the generated document and an OAuth2 (PKCE) enabled Swagger UI.

    Raises ``ConfigurationError`` when no Swagger UI client id is configured.
    """

    map_openapi(app)

    client_id = settings.swagger_ui_client_id
    if not client_id:
        raise ConfigurationError("SWAGGERUI_CLIENTID is not configured")

    options = SwaggerUIOptions(
        openapi_url=DOCUMENT_ROUTE,
        title=DOCUMENT_DISPLAY_NAME,
        client_id=client_id,
        scopes=[settings.auth.api_scope],
    )

    async def oauth2_redirect(_: Request) -> HTMLResponse:
        return get_swagger_ui_oauth2_redirect_html()

    app.add_route(SWAGGER_UI_ROUTE, options.route, include_in_schema=False)
    app.add_route(SWAGGER_UI_REDIRECT_ROUTE, oauth2_redirect, include_in_schema=False)
    app.state.swagger_ui = options
    logger.info(
        "swagger_ui_configured",
        extra={"route": SWAGGER_UI_ROUTE, "document": DOCUMENT_ROUTE, "client_id": client_id},
    )
    return app


__all__ = [
    "DocumentTransformerContext",
    "OAuthSecurityDocumentTransformer",
    "SwaggerUIOptions",
    "add_document_transformer",
    "add_openapi",
    "add_template_app_openapi",
    "map_openapi",
    "use_swagger_ui",
]
