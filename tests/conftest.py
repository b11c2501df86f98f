from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from ohmage_runkeeper import db as db_module
from ohmage_runkeeper.services.runkeeper import DOMAIN_ID


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setattr(db_module, "DATABASE_PATH", str(tmp_path / "test.db"))
    from ohmage_runkeeper.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def runkeeper_transport(client: TestClient):
    """Route the app's outbound RunKeeper calls to a handler set by the test."""
    from ohmage_runkeeper.main import app
    from ohmage_runkeeper.routers.omh import get_http_client

    state = {"handler": None, "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        if state["handler"] is None:
            raise AssertionError(f"Unexpected RunKeeper call: {request.url}")
        return state["handler"](request)

    def override():
        with httpx.Client(transport=httpx.MockTransport(handler)) as mock_client:
            yield mock_client

    app.dependency_overrides[get_http_client] = override
    return state


@pytest.fixture
def link_owner(client: TestClient):
    def link(owner: str, token: str):
        conn = db_module.get_db()
        try:
            db_module.set_credential(conn, DOMAIN_ID, f"bearer_{owner}", token)
        finally:
            conn.close()

    return link
