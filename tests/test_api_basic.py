"""
API tests for the stock metadata service
"""
import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from stockmeta.auth import create_access_token
from stockmeta.config import settings
from stockmeta.db import get_db
from stockmeta.inference.gemini import GeminiClient
from stockmeta.main import app
from stockmeta.models import ImageMetadataGeneration, UserProfile
from stockmeta.routes import images as images_routes
from stockmeta.routes import sessions as sessions_routes
from stockmeta.routes import svg as svg_routes
from stockmeta.services import sessions as session_store
from stockmeta.services.workspace import workspaces

USER_ID = "user-1"
AUTH = {"Authorization": f"Bearer {create_access_token(USER_ID, 'user@example.com')}"}
ADOBE_REPLY = '{"title": "Red car on the road", "keywords": ["car", "vehicle", "road"]}'


def _gemini(text=None, status_code=200, error=None):
    def handler(request):
        if status_code != 200:
            return httpx.Response(status_code, json={"error": {"message": error}})
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})
    return GeminiClient("test-key", transport=httpx.MockTransport(handler))


@pytest_asyncio.fixture
async def client(session_factory, monkeypatch):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(images_routes, "AsyncSessionLocal", session_factory)
    workspaces.discard(USER_ID)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    workspaces.discard(USER_ID)


async def _upload_png(client):
    response = await client.post(
        "/images", files=[("files", ("car.png", b"\x89PNG fake", "image/png"))], headers=AUTH
    )
    assert response.status_code == 201
    return response.json()["added"][0]["id"]


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_process_svg_requires_content(client):
    response = await client.post("/api/process-svg", json={"query": "what is it?"})
    assert response.status_code == 400
    assert response.json() == {"error": "SVG content is required"}


@pytest.mark.asyncio
async def test_process_svg_returns_model_text(client):
    app.dependency_overrides[svg_routes.get_svg_client] = lambda: _gemini("A red circle")
    response = await client.post("/api/process-svg", json={"svgContent": "<svg/>", "mode": "text"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "result": "A red circle"}


@pytest.mark.asyncio
async def test_process_svg_model_failure(client):
    app.dependency_overrides[svg_routes.get_svg_client] = lambda: _gemini(status_code=500, error="quota exceeded")
    response = await client.post("/api/process-svg", json={"svgContent": "<svg/>"})
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to process SVG", "details": "quota exceeded"}


@pytest.mark.asyncio
async def test_process_svg_reply_that_is_not_json(client):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>bad gateway</html>"))
    app.dependency_overrides[svg_routes.get_svg_client] = lambda: GeminiClient("test-key", transport=transport)
    response = await client.post("/api/process-svg", json={"svgContent": "<svg/>", "mode": "text"})
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to process SVG",
        "details": "Invalid response from Gemini API",
    }


@pytest.mark.asyncio
async def test_images_require_authentication(client):
    response = await client.get("/images")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_upload_rejects_unsupported_files(client):
    response = await client.post(
        "/images",
        files=[
            ("files", ("doc.pdf", b"%PDF-1.4", "application/pdf")),
            ("files", ("car.png", b"\x89PNG fake", "image/png")),
        ],
        headers=AUTH,
    )
    assert response.status_code == 201
    data = response.json()
    assert [image["filename"] for image in data["added"]] == ["car.png"]
    assert data["added"][0]["status"] == "pending"
    assert data["rejected"][0]["filename"] == "doc.pdf"

    listing = (await client.get("/images", headers=AUTH)).json()
    assert listing["pendingCount"] == 1
    assert listing["isProcessing"] is False


@pytest.mark.asyncio
async def test_remove_and_clear_images(client):
    image_id = await _upload_png(client)
    await _upload_png(client)

    response = await client.delete(f"/images/{image_id}", headers=AUTH)
    assert len(response.json()["images"]) == 1

    missing = await client.delete(f"/images/{image_id}", headers=AUTH)
    assert missing.status_code == 404
    assert missing.json()["error"] == "IMAGE_NOT_FOUND"

    cleared = await client.delete("/images", headers=AUTH)
    assert cleared.json()["images"] == []


@pytest.mark.asyncio
async def test_process_without_api_key_is_refused(client, monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    await _upload_png(client)
    response = await client.post("/images/process", headers=AUTH)
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_API_KEY"


@pytest.mark.asyncio
async def test_process_with_nothing_pending(client):
    app.dependency_overrides[images_routes.get_gemini_client] = lambda: _gemini(ADOBE_REPLY)
    response = await client.post("/images/process", headers=AUTH)
    assert response.status_code == 202
    assert response.json() == {"queued": 0, "message": "No images to process"}


@pytest.mark.asyncio
async def test_export_before_processing_is_not_found(client):
    await _upload_png(client)
    response = await client.get("/images/export.csv", headers=AUTH)
    assert response.status_code == 404
    assert response.json()["error"] == "NO_COMPLETED_IMAGES"


@pytest.mark.asyncio
async def test_process_then_export_csv(client):
    app.dependency_overrides[images_routes.get_gemini_client] = lambda: _gemini(ADOBE_REPLY)
    await _upload_png(client)

    response = await client.post("/images/process", json={"platforms": ["AdobeStock"]}, headers=AUTH)
    assert response.status_code == 202
    assert response.json()["queued"] == 1

    listing = (await client.get("/images", headers=AUTH)).json()
    image = listing["images"][0]
    assert image["status"] == "complete"
    assert image["result"]["categories"] == ["Transport"]

    export = await client.get("/images/export.csv", params={"platform": "AdobeStock"}, headers=AUTH)
    assert export.status_code == 200
    assert export.text == (
        '"Filename","Title","Keywords","Category"\n'
        '"car.png","Red car on the road","car, vehicle, road","Transport"'
    )
    assert "AdobeStock-MetaData" in export.headers["content-disposition"]

    profile = (await client.get("/account/profile", headers=AUTH)).json()
    assert profile["creditsUsed"] == 1
    assert profile["remainingCredits"] == settings.FREE_CREDITS_LIMIT - 1


@pytest.mark.asyncio
async def test_image_to_prompt_downloads(client, session_factory):
    app.dependency_overrides[images_routes.get_gemini_client] = lambda: _gemini("A red car at dusk.")
    image_id = await _upload_png(client)

    await client.post("/images/process", json={"generationMode": "imageToPrompt"}, headers=AUTH)

    single = await client.get(f"/images/{image_id}/prompt.txt", headers=AUTH)
    assert single.text == "A red car at dusk."
    assert "car-prompt.txt" in single.headers["content-disposition"]

    everything = await client.get("/images/prompts.txt", headers=AUTH)
    assert everything.text == "--- car.png ---\n\nA red car at dusk.\n\n"

    async with session_factory() as db:
        rows = (await db.execute(select(ImageMetadataGeneration))).scalars().all()
    assert [(row.user_id, row.prompt) for row in rows] == [(USER_ID, "A red car at dusk.")]


@pytest.mark.asyncio
async def test_process_refused_when_credits_are_used_up(client, session_factory):
    async with session_factory() as db:
        db.add(UserProfile(id=USER_ID, email="user@example.com", credits_used=10, credits_limit=10, is_premium=False))
        await db.commit()
    app.dependency_overrides[images_routes.get_gemini_client] = lambda: _gemini(ADOBE_REPLY)
    await _upload_png(client)

    response = await client.post("/images/process", headers=AUTH)

    assert response.status_code == 403
    assert response.json()["error"] == "CREDITS_EXHAUSTED"


@pytest.mark.asyncio
async def test_concurrent_process_requests_start_one_batch(client, monkeypatch):
    monkeypatch.setattr(settings, "PROCESSING_DELAY_SECONDS", 0)
    release = asyncio.Event()
    model_calls = []

    async def handler(request):
        model_calls.append(request)
        try:
            await asyncio.wait_for(release.wait(), timeout=1)
        except asyncio.TimeoutError:
            pass
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": ADOBE_REPLY}]}}]})

    app.dependency_overrides[images_routes.get_gemini_client] = lambda: GeminiClient(
        "test-key", transport=httpx.MockTransport(handler)
    )
    files = [("files", (f"car{i}.png", b"\x89PNG fake", "image/png")) for i in range(3)]
    assert (await client.post("/images", files=files, headers=AUTH)).status_code == 201

    async def process():
        response = await client.post("/images/process", json={"platforms": ["AdobeStock"]}, headers=AUTH)
        if response.status_code == 409:
            release.set()
        return response

    first, second = await asyncio.gather(process(), process())

    assert sorted([first.status_code, second.status_code]) == [202, 409]
    busy = first if first.status_code == 409 else second
    assert busy.json()["error"] == "BATCH_IN_PROGRESS"
    assert len(model_calls) == 3

    profile = (await client.get("/account/profile", headers=AUTH)).json()
    assert profile["creditsUsed"] == 1


@pytest.mark.asyncio
async def test_track_user_session(client, monkeypatch):
    async def fake_lookup(ip_address):
        return {"country": "France", "city": "Paris"}

    monkeypatch.setattr(sessions_routes.session_store, "lookup_location", fake_lookup)
    payload = {"user_id": USER_ID, "ip_address": "1.2.3.4", "user_agent": "pytest", "session_id": "s1"}

    first = await client.post("/functions/track-user-session", json=payload)
    second = await client.post("/functions/track-user-session", json=payload)

    assert first.json() == {"success": True}
    assert second.json() == {"success": True}


@pytest.mark.asyncio
async def test_active_session_lifecycle(client):
    body = {"user_id": USER_ID, "email": "user@example.com", "session_id": "s1"}
    assert (await client.post("/functions/active-sessions", json=body)).json() == {"active": True}

    check = await client.get("/functions/active-sessions", params={"email": "user@example.com"})
    assert check.json() == {"active": True}

    await _upload_png(client)
    removed = await client.delete(f"/functions/active-sessions/{USER_ID}")
    assert removed.json() == {"active": False}

    check = await client.get("/functions/active-sessions", params={"email": "user@example.com"})
    assert check.json() == {"active": False}
    assert (await client.get("/images", headers=AUTH)).json()["images"] == []

    cleanup = await client.post("/functions/active-sessions/cleanup")
    assert cleanup.json() == {"removed": 0}


@pytest.mark.asyncio
async def test_cleanup_drops_workspaces_of_idle_users(client, session_factory):
    async with session_factory() as db:
        await session_store.set_active_session(
            db, user_id=USER_ID, email="user@example.com", session_id="s1",
            activity_time=datetime.now(timezone.utc) - timedelta(days=2),
        )
    await _upload_png(client)

    cleanup = await client.post("/functions/active-sessions/cleanup")

    assert cleanup.json() == {"removed": 1}
    assert (await client.get("/images", headers=AUTH)).json()["images"] == []
