"""Shared pytest setup: env files and process-wide state isolation."""
from __future__ import annotations

from pathlib import Path

import pytest

try:
    from contacts_etl.context import ApplicationContext
    from contacts_etl.env import load_env
except ImportError as exc:
    raise RuntimeError(
        "contacts_etl is not importable. Run 'pip install -e .[test]' in your "
        "virtualenv before running pytest."
    ) from exc

# .env.test overrides the developer's .env for the whole session
load_env()
if Path(".env.test").exists():
    load_env(dotenv_path=".env.test", override=True)


@pytest.fixture(autouse=True)
def isolated_context(monkeypatch):
    monkeypatch.delenv("CONTACTS_CONFIG_PATH", raising=False)
    ApplicationContext.clear_instance()
    yield
    ApplicationContext.clear_instance()
