"""Tests for settings loading and log formatting"""
import json
import logging
from decimal import Decimal

from marketplace.config import CommonSettings, Settings
from marketplace.logging_setup import setup_logging


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("DELIVERY_CHARGES", "75.50")
    monkeypatch.setenv("HISTORY_LIMIT", "10")
    monkeypatch.setenv("ALLOW_ADMIN_SIGNUP", "true")

    settings = Settings()

    assert settings.delivery_charges == Decimal("75.50")
    assert settings.prepayment_rate == Decimal("0.20")
    assert settings.history_limit == 10
    assert settings.allow_admin_signup is True


def test_json_log_records(capsys):
    setup_logging(Settings(log_format="json", service_name="marketplace-test"))
    try:
        logging.getLogger("marketplace.tests").info("order placed")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "order placed"
        assert record["level"] == "INFO"
        assert record["logger"] == "marketplace.tests"
        assert record["service"] == "marketplace-test"
    finally:
        setup_logging(Settings(log_format="text"))


def test_marketplace_settings_extend_common_settings(monkeypatch):
    monkeypatch.setenv("SERVICE_NAME", "marketplace-eu")

    settings = Settings()

    assert isinstance(settings, CommonSettings)
    assert settings.service_name == "marketplace-eu"
    assert "history_limit" not in CommonSettings.model_fields
