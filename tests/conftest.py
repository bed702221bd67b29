"""Pytest helpers for path configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from playersync.models.migration import Settings  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mysql_host="db.example.net",
        mysql_port=3306,
        mysql_username="admin",
        mysql_password="s3cr3t",
        mysql_database="minecraft",
        minecraft_version="1.19.2",
    )
