"""Service endpoints and authentication guard."""

from lifeos.api.auth import get_current_user
from lifeos.main import app


async def test_root(client):
    body = (await client.get("/")).json()
    assert body["success"] is True
    assert "running" in body["message"]


async def test_health(client):
    body = (await client.get("/health")).json()
    assert body["status"] == "healthy"
    assert body["uptime"] >= 0
    assert body["timestamp"]


async def test_upload_requires_auth(client):
    app.dependency_overrides.pop(get_current_user)
    response = await client.post("/api/documents/upload")
    assert response.status_code in (401, 403)
