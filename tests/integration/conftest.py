import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))


@pytest.fixture
def app():
    from claimcheck.main import app
    yield app


@pytest.fixture
async def client(app):
    import httpx
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        async with app.router.lifespan_context(app):
            await ac.get("/health")
            yield ac


@pytest.fixture
def brief_payload():
    return {
        "id": "project-1",
        "title": "Spring skincare launch",
        "category": "cosmetics",
        "campaign_objective": "Promote the moisturizing skincare cream",
        "campaign_target": "20代 women",
        "messages_to_convey": ["moisturizing all day", "gentle formula"],
        "target_platforms": ["TIKTOK"],
        "deadline": "2025-04-30",
    }
