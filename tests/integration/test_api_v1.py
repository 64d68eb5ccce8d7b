import time
import httpx
import pytest
from claimcheck.routers import v1


@pytest.mark.asyncio
async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert "message" in data
    assert "version" in data


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "healthy"
    assert data["rules_loaded"] == 19


@pytest.mark.asyncio
async def test_v1_health(client):
    r = await client.get("/v1/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "healthy"
    assert data["rules_version"] == "2024.1"


@pytest.mark.asyncio
async def test_v1_root(client):
    r = await client.get("/v1/")
    assert r.status_code == 200
    assert "version" in r.json()


@pytest.mark.asyncio
async def test_check_finds_violation(client):
    r = await client.post("/v1/check", json={"text": "100%効果がある美容液"})
    assert r.status_code == 200
    data = r.json()
    result = data["result"]
    assert result["has_violations"] is True
    assert result["matches"][0]["rule"]["id"] == "com-03"
    assert result["matches"][0]["matched_text"] == "100%効果"
    assert 0 < result["risk_score"] <= 10
    assert "".join(s["text"] for s in data["segments"]) == "100%効果がある美容液"
    assert [s["kind"] for s in data["segments"]] == ["violation", "plain"]
    assert data["product_categories"] == ["cosmetics"]


@pytest.mark.asyncio
async def test_check_clean_text(client):
    r = await client.post("/v1/check", json={"text": "今日は良い天気です"})
    assert r.status_code == 200
    result = r.json()["result"]
    assert result["has_violations"] is False
    assert result["risk_score"] == 0
    assert result["matches"] == []


@pytest.mark.asyncio
async def test_check_missing_text(client):
    r = await client.post("/v1/check", json={})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_check_text_too_long(client, monkeypatch):
    monkeypatch.setattr(v1, "MAX_TEXT_LENGTH", 10)
    r = await client.post("/v1/check", json={"text": "x" * 11})
    assert r.status_code == 413


@pytest.mark.asyncio
async def test_check_report(client):
    r = await client.post("/v1/check/report", json={"text": "ニキビが治る！"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert "Recommendations:" in r.text
    assert "薬機法" in r.text


@pytest.mark.asyncio
async def test_segments(client):
    text = "医師も推奨する商品です"
    r = await client.post("/v1/segments", json={"text": text})
    assert r.status_code == 200
    segments = r.json()
    assert "".join(s["text"] for s in segments) == text
    assert segments[0]["kind"] == "violation"
    assert segments[0]["match"]["rule"]["id"] == "com-02"


@pytest.mark.asyncio
async def test_alignment_from_message(client, brief_payload):
    message = "テーマ: 保湿スキンケア\nシーン1: ラーメンを食べる（20秒）\nシーン2: クリームを塗る（20秒）"
    r = await client.post("/v1/alignment", json={"brief": brief_payload, "message": message})
    assert r.status_code == 200
    data = r.json()
    assert data["overall_alignment"] == "minor_issues"
    assert data["confidence"] == 85
    assert [i["category"] for i in data["issues"]] == ["scene_content"]
    assert data["id"].startswith("alignment-")


@pytest.mark.asyncio
async def test_alignment_from_storyboard(client, brief_payload):
    storyboard = {
        "overall_theme": "moisturizing routine",
        "scenes": [
            {"id": "s1", "scene_number": 1, "description": "Applying cream", "duration": 50},
            {"id": "s2", "scene_number": 2, "description": "Close-up", "duration": 30},
        ],
    }
    r = await client.post("/v1/alignment", json={"brief": brief_payload, "storyboard": storyboard})
    assert r.status_code == 200
    data = r.json()
    assert [i["id"] for i in data["issues"]] == ["duration-tiktok-1"]
    assert data["check_result"]["has_violations"] is False


@pytest.mark.asyncio
async def test_alignment_requires_content(client, brief_payload):
    r = await client.post("/v1/alignment", json={"brief": brief_payload})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_list_rules(client):
    r = await client.get("/v1/rules", params={"page": 1, "page_size": 5})
    assert r.status_code == 200
    data = r.json()
    assert data["total"] == 19
    assert len(data["rules"]) == 5
    assert data["rules"][0]["id"] == "med-01"


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    r = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_metrics(client):
    await client.post("/v1/check", json={"text": "100%効果"})
    r = await client.get("/metrics")
    assert r.status_code == 200
    data = r.json()
    assert "request_count" in data
    assert "/v1/check" in data["request_count"]


@pytest.mark.asyncio
async def test_metrics_prometheus(client):
    r = await client.get("/metrics/prometheus")
    assert r.status_code == 200
    assert "http_requests_total" in r.text


@pytest.mark.asyncio
async def test_alignment_text_too_long(client, brief_payload, monkeypatch):
    monkeypatch.setattr(v1, "MAX_TEXT_LENGTH", 10)
    r = await client.post("/v1/alignment", json={"brief": brief_payload, "message": "x" * 11})
    assert r.status_code == 413
    storyboard = {"overall_theme": "x" * 11}
    r = await client.post("/v1/alignment", json={"brief": brief_payload, "storyboard": storyboard})
    assert r.status_code == 413


@pytest.mark.asyncio
async def test_check_times_out(client, app, monkeypatch):
    def slow_check(text):
        time.sleep(0.5)

    monkeypatch.setattr(v1, "ANALYZE_TIMEOUT", 0.05)
    monkeypatch.setattr(app.state.engine, "check_violations", slow_check)
    r = await client.post("/v1/check", json={"text": "100%効果"})
    assert r.status_code == 504
    assert r.json()["detail"] == "Analysis timed out after 0.05s."


@pytest.mark.asyncio
async def test_unhandled_error_returns_500(app, monkeypatch):
    def broken_check(text):
        raise RuntimeError("boom")

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        async with app.router.lifespan_context(app):
            monkeypatch.setattr(app.state.engine, "check_violations", broken_check)
            r = await ac.post("/v1/check", json={"text": "hello"})
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}
