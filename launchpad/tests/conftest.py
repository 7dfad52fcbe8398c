"""Pytest configuration."""

import os
import pytest


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: mark test as requiring a live database (skipped in CI by default)"
    )


# DB tests mock the connection; never point at a real database by accident
os.environ.setdefault("DATABASE_URL", "postgresql://localhost:5432/chess_launchpad?user=postgres&password=postgres")
