"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets environment defaults before any module imports the settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
# This prevents loading the .env.{APP_ENV} file during tests
os.environ["TESTING"] = "true"

os.environ.setdefault("RATE_LIMIT_REQUESTS", "2")
os.environ.setdefault("RATE_LIMIT_WINDOW_SECONDS", "1.0")
os.environ.setdefault("CRPT_BASE_URL", "https://crpt.test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
