from __future__ import annotations

from typing import Any, Callable

import pytest

from services.common.settings import AppSettings, AuthOptions


# The repository-level pytest shim supplies an ``event_loop`` fixture so the
# async HTTP tests run without depending on the external pytest-asyncio plugin.

AUTHORITY = "https://keycloak.local/realms/templateapp"
API_SCOPE = "templateapp-api"
CLIENT_ID = "templateapp-swagger"


@pytest.fixture
def auth_options() -> AuthOptions:
    return AuthOptions(authority=AUTHORITY, api_scope=API_SCOPE)


@pytest.fixture
def settings_factory(auth_options: AuthOptions) -> Callable[..., AppSettings]:
    def _factory(**overrides: Any) -> AppSettings:
        defaults: dict[str, Any] = {
            "auth": auth_options,
            "swagger_ui_client_id": CLIENT_ID,
        }
        defaults.update(overrides)
        return AppSettings(**defaults)

    return _factory


@pytest.fixture
def document_factory() -> Callable[[], dict[str, Any]]:
    def _factory() -> dict[str, Any]:
        return {
            "openapi": "3.1.0",
            "info": {"title": "Generated", "version": "1.0.0"},
            "paths": {
                "/api/v1/templates": {
                    "summary": "Templates",
                    "parameters": [],
                    "get": {"operationId": "list_templates", "responses": {}},
                    "post": {
                        "operationId": "create_template",
                        "responses": {},
                        "security": [{"apiKey": []}],
                    },
                },
                "/api/v1/templates/{template_id}": {
                    "get": {"operationId": "get_template", "responses": {}},
                },
                "/health": {"get": {"operationId": "health_check", "responses": {}}},
                "/empty": {},
            },
        }

    return _factory
