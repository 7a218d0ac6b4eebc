"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from survey_data.config import Settings


def make_settings(**overrides) -> Settings:
    values = {"database_url": "sqlite:///:memory:", "jwt_secret_key": "secret"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:

    def test_defaults(self):
        settings = make_settings()

        assert settings.jwt_algorithm == "HS256"
        assert settings.access_token_expire_minutes == 60
        assert settings.connection_test_timeout_seconds == 10

    def test_normalises_case(self):
        settings = make_settings(environment="PRODUCTION", log_level="debug", jwt_algorithm="hs512")

        assert settings.is_production is True
        assert settings.log_level == "DEBUG"
        assert settings.jwt_algorithm == "HS512"

    @pytest.mark.parametrize("field,value", [
        ("environment", "qa"),
        ("log_level", "VERBOSE"),
        ("jwt_algorithm", "RS256"),
        ("access_token_expire_minutes", 0),
    ])
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            make_settings(**{field: value})

    def test_allowed_origins_list(self):
        settings = make_settings(allowed_origins="https://a.example, https://b.example")

        assert settings.get_allowed_origins_list() == ["https://a.example", "https://b.example"]
