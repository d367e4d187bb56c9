import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from aetherflow.core.dependencies import get_db
from aetherflow.main import app


def _override_db(session: AsyncSession):
    async def _get_db():
        yield session

    return _get_db


def _api_client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health():
    async with _api_client() as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_register_login_and_me(db):
    app.dependency_overrides[get_db] = _override_db(db)
    try:
        async with _api_client() as client:
            resp = await client.post(
                "/auth/register",
                json={"username": "carol", "email": "Carol@Example.com", "password": "hunter22"},
            )
            assert resp.status_code == 201
            token = resp.json()["access_token"]
            assert resp.json()["user"]["email"] == "carol@example.com"

            dup = await client.post(
                "/auth/register",
                json={"username": "carol", "email": "other@example.com", "password": "hunter22"},
            )
            assert dup.status_code == 409
            assert dup.json()["code"] == "DUPLICATE_USER"

            me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
            assert me.status_code == 200
            assert me.json()["role"] == "user"
            assert me.json()["username"] == "carol"

            login = await client.post(
                "/auth/login", json={"email": "carol@example.com", "password": "hunter22"}
            )
            assert login.status_code == 200

            bad = await client.post(
                "/auth/login", json={"email": "carol@example.com", "password": "wrong-pass"}
            )
            assert bad.status_code == 401
            assert bad.json()["code"] == "INVALID_LOGIN"

            forged = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
            assert forged.status_code == 401
    finally:
        app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_api_key_lifecycle(db, user, http_client, metrics, override_app):
    override_app(db, user, http_client, metrics)

    async with _api_client() as client:
        created = await client.post(
            "/api-keys", json={"provider": "openai", "key": "sk-never-echoed", "name": "main"}
        )
        assert created.status_code == 201
        body = created.json()
        assert body["provider"] == "openai"
        assert body["is_active"] is True
        assert "ciphertext" not in body
        assert "nonce" not in body
        assert "sk-never-echoed" not in created.text
        key_id = body["id"]

        dup = await client.post("/api-keys", json={"provider": "openai", "key": "sk-other"})
        assert dup.status_code == 409
        assert dup.json()["code"] == "DUPLICATE_CREDENTIAL"

        listed = await client.get("/api-keys")
        assert listed.status_code == 200
        assert [k["id"] for k in listed.json()] == [key_id]
        assert "sk-never-echoed" not in listed.text
        assert "ciphertext" not in listed.text

        filtered = await client.get("/api-keys", params={"provider": "deepseek"})
        assert filtered.json() == []

        patched = await client.patch(f"/api-keys/{key_id}", json={"isActive": False})
        assert patched.status_code == 200
        assert patched.json()["is_active"] is False
        assert patched.json()["name"] == "main"

        rotated = await client.put(f"/api-keys/{key_id}/secret", json={"key": "sk-rotated"})
        assert rotated.status_code == 200
        assert rotated.json()["is_active"] is True

        verified = await client.post(f"/api-keys/{key_id}/verify")
        assert verified.json() == {"valid": True}

        deleted = await client.delete(f"/api-keys/{key_id}")
        assert deleted.json() == {"message": "API key deleted"}

        missing = await client.delete(f"/api-keys/{key_id}")
        assert missing.status_code == 404
        assert missing.json()["code"] == "RESOURCE_NOT_FOUND"


@pytest.mark.asyncio
async def test_invalid_request_does_not_echo_input(db, user, http_client, metrics, override_app):
    override_app(db, user, http_client, metrics)

    async with _api_client() as client:
        resp = await client.post("/api-keys", json={"provider": "anthropic", "key": "sk-leaky"})

    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"
    assert "sk-leaky" not in resp.text
    for error in resp.json()["detail"]:
        assert "input" not in error


@pytest.mark.asyncio
async def test_rejected_deepseek_key_returns_400(db, user, http_client, metrics, provider_stub, override_app):
    override_app(db, user, http_client, metrics)
    provider_stub.status_code = 401

    async with _api_client() as client:
        resp = await client.post("/api-keys", json={"provider": "deepseek", "key": "sk-bad"})
        listed = await client.get("/api-keys")

    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_CREDENTIAL"
    assert listed.json() == []


@pytest.mark.asyncio
async def test_optimize_history_and_rating(db, user, http_client, metrics, override_app):
    override_app(db, user, http_client, metrics)

    async with _api_client() as client:
        first = await client.post("/prompts/optimize", json={"content": "Plan a trip", "category": "writing"})
        assert first.status_code == 200
        result = first.json()
        assert result["mock"] is True
        assert result["model"] == "gpt-4-mock"
        history_id = result["history_id"]

        second = await client.post(
            "/prompts/optimize", json={"content": "Plan a trip", "historyId": history_id}
        )
        assert second.json()["history_id"] == history_id

        detail = await client.get(f"/prompts/optimize/history/{history_id}")
        assert detail.status_code == 200
        assert len(detail.json()["iterations"]) == 2
        assert detail.json()["category"] == "writing"

        page = await client.get("/prompts/optimize/history", params={"limit": 5})
        assert page.json()["total"] == 1
        assert page.json()["pages"] == 1

        bad = await client.post(f"/prompts/optimize/history/{history_id}/rate", json={"rating": 6})
        assert bad.status_code == 400
        assert bad.json()["code"] == "VALIDATION_ERROR"

        good = await client.post(f"/prompts/optimize/history/{history_id}/rate", json={"rating": 4})
        assert good.json() == {"id": history_id, "rating": 4}

        activities = await client.get("/activities")
        actions = [a["action"] for a in activities.json()]
        assert actions.count("optimize") == 2
        assert "rate_optimization" in actions

        for loose in (True, "3", 3.0):
            resp = await client.post(f"/prompts/optimize/history/{history_id}/rate", json={"rating": loose})
            assert resp.status_code == 400


@pytest.mark.asyncio
async def test_upstream_failure_is_502(db, user, http_client, metrics, provider_stub, override_app):
    override_app(db, user, http_client, metrics)
    provider_stub.status_code = 503

    async with _api_client() as client:
        resp = await client.post("/prompts/optimize", json={"content": "hi", "apiKey": "sk-client"})

    assert resp.status_code == 502
    assert resp.json()["code"] == "OPTIMIZATION_FAILURE"
    assert "sk-client" not in resp.text


@pytest.mark.asyncio
async def test_client_config(db, user, http_client, metrics, override_app):
    override_app(db, user, http_client, metrics)

    async with _api_client() as client:
        resp = await client.get("/prompts/optimize/config")

    body = resp.json()
    assert set(body["system_prompts"]) == {"general", "programming", "writing"}
    assert body["providers"]["deepseek"]["api_url"] == "https://api.deepseek.com/v1/chat/completions"
    assert body["providers"]["openai"]["default_model"] == "gpt-4"


@pytest.mark.asyncio
async def test_monitor_is_admin_only(db, user, http_client, metrics, override_app):
    override_app(db, user, http_client, metrics)
    metrics.increment("optimization.requests", provider="openai", mode="mock")

    async with _api_client() as client:
        denied = await client.get("/monitor/stats")
        assert denied.status_code == 403
        assert denied.json()["code"] == "FORBIDDEN"
        assert (await client.post("/monitor/reset")).status_code == 403

        user.role = "admin"
        stats = await client.get("/monitor/stats")
        assert stats.status_code == 200
        assert "optimization.requests{mode=mock,provider=openai}" in stats.json()["counters"]

        reset = await client.post("/monitor/reset")
        assert reset.json() == {"message": "Metrics reset"}
        assert (await client.get("/monitor/stats")).json()["counters"] == {}
