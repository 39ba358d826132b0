import pytest
from fastapi.testclient import TestClient

from risk_register.config import CSV_PATH_ENV


@pytest.fixture
def csv_path(tmp_path, monkeypatch):
    path = tmp_path / "risks.csv"
    monkeypatch.setenv(CSV_PATH_ENV, str(path))
    monkeypatch.chdir(tmp_path)
    return path


@pytest.fixture
def client(csv_path):
    from risk_register.main import create_app

    return TestClient(create_app())


def auth_headers(role, department, user_id="u-1"):
    return {
        "X-User-Id": user_id,
        "X-User-Role": role,
        "X-User-Department": department,
    }
