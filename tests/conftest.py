"""Root conftest — shared test configuration."""

import os

# Keep tests off real infrastructure
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("MESSAGE_CHANNEL", "deep_link")
os.environ.setdefault("PROOF_STORE_BACKEND", "local")
