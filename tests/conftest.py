"""
Shared pytest fixtures for the StartUP Companion test suite.
All fixtures use mock mode, so no OpenRouter credentials are required.
Every test gets its own SQLite file and PDF directory under tmp_path.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Force mock mode: tests never call OpenRouter
os.environ["FORCE_MOCK_MODE"] = "true"
os.environ["OPENROUTER_API_KEY"] = "<placeholder>"
for _delay in ("FLOW_DOCUMENTS_DELAY", "FLOW_FEEDBACK_DELAY", "FLOW_CLOSING_DELAY", "FLOW_MENTOR_DELAY"):
    os.environ[_delay] = "0"


import pytest

from factories import make_profile, make_user

from startup_companion import database
from startup_companion.flow import ChatFlow


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    """Point the store and the PDF directory at a fresh tmp location."""
    monkeypatch.setenv("STARTUP_COMPANION_DB", str(tmp_path / "companion.db"))
    monkeypatch.setenv("PDF_OUTPUT_DIR", str(tmp_path / "pdfs"))
    monkeypatch.setenv("PDF_PUBLIC_BASE_URL", "")
    monkeypatch.delenv("GUIDE_FUNCTIONS_URL", raising=False)
    database.init_db()
    return tmp_path


@pytest.fixture
def seeded_mentors():
    database.seed_demo_mentors()


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def profile():
    return make_profile()


@pytest.fixture
def session_id(user):
    return database.create_session(user.id)


@pytest.fixture
def flow():
    return ChatFlow(sleep=lambda _s: None)
