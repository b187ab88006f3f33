"""REST API — derived routes served through FastAPI.

Tests (memory and sql):
    - CRUD over HTTP with the success/failure envelopes and status codes
    - malformed and non-object JSON bodies → 400 VALIDATION_FAILURE
    - query strings narrow list routes
    - one-to-many routes with path params
    - request timeout → 504; unhandled handler error → 500 without internals
    - custom response hooks can render HTML
"""

import asyncio

from httpx import ASGITransport, AsyncClient

from geck.core.completion import Completion
from geck.core.routing import basic_response
from geck.main import create_app
from geck.services.builder import RouteTableBuilder


async def test_create_and_read_user(client):
    res = await client.post("/user", json={"name": "ada"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    user = body["response"]
    assert user["name"] == "ada"
    assert user["created_at"] == user["updated_at"]

    res = await client.get(f"/user/{user['_id']}")
    assert res.json() == {"success": True, "response": user}


async def test_update_and_delete_user(client):
    user = (await client.post("/user", json={"name": "ada"})).json()["response"]

    res = await client.put(f"/user/{user['_id']}", json={"name": "grace"})
    assert res.json()["response"]["name"] == "grace"

    res = await client.delete(f"/user/{user['_id']}")
    assert res.json() == {"success": True, "response": None}
    assert (await client.get(f"/user/{user['_id']}")).status_code == 404


async def test_validation_failure_envelope(client):
    res = await client.post("/user", json={"age": 3})
    assert res.status_code == 400
    assert res.json() == {
        "success": False, "error": "Validation failure.", "code": "VALIDATION_FAILURE",
    }


async def test_missing_record_is_404(client):
    res = await client.get("/user/nope")
    assert res.status_code == 404
    assert res.json()["code"] == "NOT_FOUND"


async def test_malformed_json_is_rejected(client):
    res = await client.post(
        "/user", content=b"{oops", headers={"content-type": "application/json"},
    )
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_FAILURE"


async def test_non_object_body_is_rejected(client):
    res = await client.post("/user", json=["name"])
    assert res.status_code == 400
    assert res.json()["success"] is False


async def test_forced_id_route_rejected_when_disabled(client):
    res = await client.post("/user/mine", json={"name": "ada"})
    assert res.status_code == 400


async def test_list_with_query(client):
    await client.post("/user", json={"name": "ada"})
    await client.post("/user", json={"name": "bo"})

    everyone = (await client.get("/users")).json()["response"]
    just_bo = (await client.get("/users", params={"name": "bo"})).json()["response"]

    assert len(everyone) == 2
    assert [u["name"] for u in just_bo] == ["bo"]


async def test_one_to_many_over_http(client):
    user = (await client.post("/user", json={"name": "ada"})).json()["response"]
    other = (await client.post("/user", json={"name": "bo"})).json()["response"]

    article = (await client.post(
        f"/user/{user['_id']}/article", json={"title": "t"},
    )).json()["response"]

    assert article["user_id"] == user["_id"]
    listed = (await client.get(f"/user/{user['_id']}/articles")).json()["response"]
    assert [a["_id"] for a in listed] == [article["_id"]]
    res = await client.get(f"/user/{other['_id']}/article/{article['_id']}")
    assert res.status_code == 404


async def test_request_timeout_is_504(settings):
    def slow(request):
        completion = Completion("slow")
        basic_response(request, completion)
        completion.attach(asyncio.ensure_future(asyncio.sleep(10)))
        return completion

    table = RouteTableBuilder().get("/slow", slow).build()
    app = create_app(table, settings.model_copy(update={"request_timeout_seconds": 0.05}))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        res = await c.get("/slow")

    assert res.status_code == 504
    assert res.json()["code"] == "REQUEST_TIMEOUT"


async def test_unhandled_error_does_not_leak(settings):
    def broken(request):
        raise RuntimeError("secret internals")

    table = RouteTableBuilder().get("/broken", broken).build()
    app = create_app(table, settings)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        res = await c.get("/broken")

    assert res.status_code == 500
    assert res.json() == {
        "success": False, "error": "An unexpected error occurred", "code": "INTERNAL_ERROR",
    }
    assert "secret" not in res.text


async def test_html_response_hook(settings):
    def render_count(request, completion):
        completion.add_listener(
            lambda outcome: request.responder.html(f"<b>{len(outcome.document)}</b>"),
        )

    builder = RouteTableBuilder()
    builder.resource("note", {"list": render_count})
    app = create_app(builder.build(), settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        await c.post("/note", json={"text": "x"})
        res = await c.get("/notes")

    assert res.headers["content-type"].startswith("text/html")
    assert res.text == "<b>1</b>"
