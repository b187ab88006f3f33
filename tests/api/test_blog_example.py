"""Blog Example — the shipped example app end to end.

Tests:
    - the example builds and exposes users/articles/tags/profiles routes
    - user → article → tag association flow over HTTP
    - one-to-one profile lookup
"""

from httpx import ASGITransport, AsyncClient

from examples.blog import build_blog
from geck.config import Settings
from geck.main import create_app


async def test_example_routes_exist():
    table = build_blog(Settings(log_format="text"))
    for method, path in [
        ("POST", "/user"), ("GET", "/user/:id/articles"), ("GET", "/user/:id/profile"),
        ("POST", "/article/:id/tag/:relation_id"), ("GET", "/article/:id/tags"),
        ("POST", "/tag/:id"), ("PUT", "/profile/:id"),
    ]:
        assert table.find(method, path) is not None, (method, path)


async def test_blog_flow():
    settings = Settings(log_format="text")
    app = create_app(build_blog(settings), settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        profile = (await c.post("/profile", json={"bio": "hi"})).json()["response"]
        user = (await c.post(
            "/user", json={"name": "ada", "profile_id": profile["_id"]},
        )).json()["response"]
        article = (await c.post(
            f"/user/{user['_id']}/article", json={"title": "Notes"},
        )).json()["response"]
        await c.post("/tag/python", json={"label": "Python"})

        linked = await c.post(f"/article/{article['_id']}/tag/python")
        duplicate = await c.post(f"/article/{article['_id']}/tag/python")
        tags = (await c.get(f"/article/{article['_id']}/tags")).json()["response"]
        found = (await c.get(f"/user/{user['_id']}/profile")).json()["response"]

    assert linked.status_code == 200
    assert duplicate.status_code == 409
    assert [t["label"] for t in tags] == ["Python"]
    assert found["bio"] == "hi"
