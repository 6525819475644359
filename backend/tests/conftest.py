"""
Shared test fixtures and configuration.
"""

import pytest
import os

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ["STORAGE_TYPE"] = "local"
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/cartgenie_test_data")
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["LLM_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["GOOGLE_CLIENT_ID"] = "test-client.apps.googleusercontent.com"
os.environ["ADMIN_USERNAMES"] = '["admin"]'

from fastapi.testclient import TestClient

from cartgenie.main import app
from cartgenie.storage import INDEXES, LocalStorage, init_document_store
from cartgenie.utils.auth import create_access_token


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store(tmp_path):
    """A fresh file-backed document store installed as the global store."""
    return init_document_store(LocalStorage(str(tmp_path / "data"), indexes=INDEXES))


@pytest.fixture
def client(store):
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


def auth_headers_for(username: str) -> dict:
    token = create_access_token(data={"sub": username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return auth_headers_for("dana")


@pytest.fixture
def headers_for():
    """Bearer headers for any username."""
    return auth_headers_for


@pytest.fixture
def profile_payload():
    """A complete first save from the wizard, with form values as strings."""
    return {
        "username": "dana",
        "firstName": "Dana",
        "lastName": "Levi",
        "birthDate": "1990-05-01T00:00:00.000Z",
        "ageYears": "35",
        "sex": "female",
        "weight": "70",
        "height": "170",
        "waist": "80",
        "illnesses": ["Diabetes Type 2"],
        "otherIllnesses": "",
    }
