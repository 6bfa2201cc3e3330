from __future__ import annotations

import pytest

from services.common.settings import AppSettings, AuthOptions, ConfigurationError


@pytest.mark.unit
def test_auth_options_derive_keycloak_endpoints() -> None:
    options = AuthOptions(authority="https://idp.example/realms/demo", api_scope="api")

    assert options.authorization_url == "https://idp.example/realms/demo/protocol/openid-connect/auth"
    assert options.token_url == "https://idp.example/realms/demo/protocol/openid-connect/token"


@pytest.mark.unit
def test_auth_options_concatenate_without_normalising() -> None:
    options = AuthOptions(authority="https://idp.example/", api_scope="api")

    assert options.authorization_url == "https://idp.example//protocol/openid-connect/auth"


@pytest.mark.unit
def test_app_settings_from_env_reads_all_values() -> None:
    settings = AppSettings.from_env(
        {
            "AUTH_AUTHORITY": "https://idp.example/realms/demo",
            "AUTH_API_SCOPE": "templateapp-api",
            "SWAGGERUI_CLIENTID": "swagger",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.auth == AuthOptions("https://idp.example/realms/demo", "templateapp-api")
    assert settings.swagger_ui_client_id == "swagger"
    assert settings.log_level == "DEBUG"


@pytest.mark.unit
def test_app_settings_leave_missing_client_id_unset() -> None:
    settings = AppSettings.from_env(
        {"AUTH_AUTHORITY": "https://idp.example", "AUTH_API_SCOPE": "api", "SWAGGERUI_CLIENTID": ""}
    )

    assert settings.swagger_ui_client_id is None


@pytest.mark.unit
@pytest.mark.parametrize("missing", ["AUTH_AUTHORITY", "AUTH_API_SCOPE"])
def test_auth_options_require_authority_and_scope(missing: str) -> None:
    environ = {"AUTH_AUTHORITY": "https://idp.example", "AUTH_API_SCOPE": "api"}
    del environ[missing]

    with pytest.raises(ConfigurationError) as excinfo:
        AuthOptions.from_env(environ)
    assert missing in str(excinfo.value)


@pytest.mark.unit
def test_settings_read_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_AUTHORITY", "https://idp.example")
    monkeypatch.setenv("AUTH_API_SCOPE", "api")
    monkeypatch.delenv("SWAGGERUI_CLIENTID", raising=False)

    settings = AppSettings.from_env()

    assert settings.auth.authority == "https://idp.example"
    assert settings.swagger_ui_client_id is None


@pytest.mark.unit
@pytest.mark.parametrize("level", ["verbose", "TRACE", "5", " info"])
def test_app_settings_reject_unknown_log_level(auth_options, level: str) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        AppSettings(auth=auth_options, log_level=level)
    assert str(excinfo.value) == f"LOG_LEVEL is invalid: {level!r}"


@pytest.mark.unit
def test_app_settings_from_env_rejects_unknown_log_level() -> None:
    environ = {
        "AUTH_AUTHORITY": "https://idp.example",
        "AUTH_API_SCOPE": "api",
        "LOG_LEVEL": "verbose",
    }

    with pytest.raises(ConfigurationError, match="LOG_LEVEL is invalid"):
        AppSettings.from_env(environ)


@pytest.mark.unit
@pytest.mark.parametrize("level,expected", [("warning", "WARNING"), ("Debug", "DEBUG")])
def test_app_settings_normalise_log_level(auth_options, level: str, expected: str) -> None:
    assert AppSettings(auth=auth_options, log_level=level).log_level == expected
