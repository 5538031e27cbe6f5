"""Tests for application factory start-up checks."""
from __future__ import annotations

import logging

from salonbook import create_app
from salonbook.config import DEFAULT_SECRET_KEY, TestConfig


class DefaultKeyConfig(TestConfig):
    TESTING = False
    SECRET_KEY = DEFAULT_SECRET_KEY


def test_default_secret_key_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="salonbook"):
        create_app(DefaultKeyConfig)

    assert any("SECRET_KEY is not set" in record.getMessage() for record in caplog.records)


def test_configured_secret_key_is_quiet(caplog):
    with caplog.at_level(logging.WARNING, logger="salonbook"):
        create_app(TestConfig)

    assert not any("SECRET_KEY" in record.getMessage() for record in caplog.records)
