"""Tests for configuration selection and startup validation."""

import pytest

from storebooks import create_app
from storebooks.config import (
    Config,
    ConfigurationError,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config_class,
    validate_config,
)


class TestConfigSelection:

    def test_named_configs(self):
        assert get_config_class("testing") is TestingConfig
        assert get_config_class("PRODUCTION") is ProductionConfig

    def test_env_var_selects(self, monkeypatch):
        monkeypatch.setenv("STOREBOOKS_ENV", "testing")
        assert get_config_class() is TestingConfig

    def test_default_is_development(self, monkeypatch):
        monkeypatch.delenv("STOREBOOKS_ENV", raising=False)
        assert get_config_class() is DevelopmentConfig

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError):
            get_config_class("staging")


class TestValidateConfig:

    def test_missing_settings_refuse_startup(self):
        class Broken(Config):
            SECRET_KEY = None
            JWT_SECRET_KEY = None
            SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"

        with pytest.raises(ConfigurationError) as exc_info:
            create_app(Broken)
        assert "SECRET_KEY" in str(exc_info.value)
        assert "JWT_SECRET_KEY" in str(exc_info.value)

    def test_complete_settings_pass(self):
        validate_config({
            "SECRET_KEY": "s",
            "JWT_SECRET_KEY": "j",
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "REQUIRED_SETTINGS": Config.REQUIRED_SETTINGS,
        })

    def test_testing_config_exempt(self):
        validate_config({"TESTING": True, "REQUIRED_SETTINGS": Config.REQUIRED_SETTINGS})

    def test_testing_defaults(self, app):
        assert app.config["TESTING"] is True
        assert app.config["ALLOW_SELF_REGISTRATION"] is False
        assert app.config["JWT_EXPIRES_HOURS"] == 24
        assert app.extensions["document_storage"] is not None


class TestCors:

    def test_allowed_origin_echoed(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://localhost:3000"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    def test_other_origin_ignored(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "https://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers
