import os
import tempfile

# Settings are read at import time; point them at throwaway storage first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="agrocredito-uploads-")

import uuid

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="session")
def client():
    from main import app

    with TestClient(app) as c:
        yield c


def _headers(user_type: str, prefix: str):
    return {"X-User-Id": f"{prefix}-{uuid.uuid4().hex[:8]}", "X-User-Type": user_type}


@pytest.fixture
def farmer():
    return _headers("farmer", "farmer")


@pytest.fixture
def bank():
    return _headers("financial_institution", "bank")


@pytest.fixture
def admin():
    return _headers("admin", "admin")


@pytest.fixture
def pdf_bytes():
    return b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"
