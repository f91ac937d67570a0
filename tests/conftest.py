"""
Main conftest file that imports and re-exports all fixtures from modular files.
"""

import os

from dotenv import load_dotenv

# Explicitly load the test environment variables before importing any app modules
dotenv_path = os.path.join(os.path.dirname(__file__), "..", ".env.test")
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path, override=True)
else:
    print(f"Warning: .env.test file not found at {dotenv_path}")
os.environ.setdefault("CHAT_SERVICE_DATABASE_URL", "sqlite+aiosqlite:///./test_chat_service.db")

# Import and re-export fixtures from modular files
from tests.fixtures.client import client
from tests.fixtures.db import db_engine, db_session, session_factory
from tests.fixtures.helpers import add_messages, create_test_conversation
from tests.fixtures.mocks import StubAdapter, mock_backend, stub_adapter

__all__ = [
    "StubAdapter",
    "add_messages",
    "client",
    "create_test_conversation",
    "db_engine",
    "db_session",
    "mock_backend",
    "session_factory",
    "stub_adapter",
]
