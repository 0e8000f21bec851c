import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Point the app at a throwaway database before `app.config` is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="course-records-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'app.db'}"
os.environ["ADMIN_USERNAMES"] = "admin@ucsb.edu"

from app.auth import get_caller_roles  # noqa: E402
from app.controllers import HelpRequestController, UCSBOrganizationController  # noqa: E402
from app.main import app, get_help_request_controller, get_organization_controller  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def reset_db():
    """Remove the temporary SQLite database after the test session."""
    yield
    shutil.rmtree(_DB_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def with_roles():
    """Pretend the caller is logged in with the given roles."""
    def _set(*roles):
        app.dependency_overrides[get_caller_roles] = lambda: frozenset(roles)
    return _set


@pytest.fixture
def help_request_repo():
    """Mock store injected into the help request controller."""
    repo = MagicMock()
    app.dependency_overrides[get_help_request_controller] = lambda: HelpRequestController(repo)
    return repo


@pytest.fixture
def organization_repo():
    """Mock store injected into the organization controller."""
    repo = MagicMock()
    app.dependency_overrides[get_organization_controller] = lambda: UCSBOrganizationController(repo)
    return repo
