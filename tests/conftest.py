"""Test environment: settings are read at import time, so set them before any taskify import."""

import os

os.environ.setdefault("JWT_SECRET", "test-only-signing-secret-0123456789abcdef")
os.environ["APP_ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
