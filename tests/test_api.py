import json

import httpx
import pytest
import pytest_asyncio

from conftest import FakePublisher
from viz_gateway.main import create_fastapi_app
from viz_gateway.services.orchestrator import VisualizationOrchestrator

HEADERS = {"X-Organization-ID": "acme"}


def _body(*dashboards, name="sales", tags=None):
    return {"name": name, "tags": tags or {}, "dashboards": list(dashboards)}


def _dashboard(name="d0", body='{"title": "{{.title}}"}', params=None):
    return {
        "name": name,
        "template_body": body,
        "template_parameters": params if params is not None else {"title": name},
    }


@pytest.fixture
def publisher():
    return FakePublisher(slugs=["g0", "g1", "g2"])


@pytest_asyncio.fixture
async def client(store, publisher):
    app = create_fastapi_app()
    app.state.orchestrator = VisualizationOrchestrator(store, publisher)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_health_reports_ready(client):
    response = await client.get("/api/v1/system/health")
    assert response.status_code == 200
    assert response.json()["ready"] is True


@pytest.mark.asyncio
async def test_create_returns_published_visualization(client):
    response = await client.post(
        "/api/v1/visualizations",
        json=_body(_dashboard("d0"), _dashboard("d1"), tags={"env": "prod"}),
        headers=HEADERS,
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["visualization"]["name"] == "sales"
    assert payload["visualization"]["organization_id"] == "acme"
    assert payload["visualization"]["tags"] == {"env": "prod"}
    assert "id" not in payload["visualization"]
    assert [d["slug"] for d in payload["dashboards"]] == ["g0", "g1"]
    assert payload["dashboards"][0]["rendered_template"] == '{"title": "d0"}'


@pytest.mark.asyncio
async def test_requests_without_organization_are_unauthorized(client):
    response = await client.get("/api/v1/visualizations")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_with_bad_template_is_bad_request(client, publisher):
    response = await client.post(
        "/api/v1/visualizations",
        json=_body(_dashboard(body="{{ missing }}", params={})),
        headers=HEADERS,
    )

    assert response.status_code == 400
    assert "TemplateIndex: '0'" in response.json()["detail"]
    assert publisher.upload_calls == []


@pytest.mark.asyncio
async def test_create_without_dashboards_fails_validation(client):
    response = await client.post("/api/v1/visualizations", json=_body(), headers=HEADERS)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unwound_upload_failure_is_bad_gateway(client, publisher):
    publisher.fail_upload_at = 1

    response = await client.post(
        "/api/v1/visualizations",
        json=_body(_dashboard("d0"), _dashboard("d1")),
        headers=HEADERS,
    )

    assert response.status_code == 502
    listing = await client.get("/api/v1/visualizations", headers=HEADERS)
    assert listing.json() == []


@pytest.mark.asyncio
async def test_residual_state_is_returned_with_server_error(client, publisher):
    publisher.fail_upload_at = 1
    publisher.fail_delete = {"g0"}

    response = await client.post(
        "/api/v1/visualizations",
        json=_body(_dashboard("d0"), _dashboard("d1")),
        headers=HEADERS,
    )

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["visualization"]["name"] == "sales"
    assert [d["slug"] for d in detail["dashboards"]] == ["g0"]


@pytest.mark.asyncio
async def test_query_filters_by_tags_and_organization(client):
    await client.post(
        "/api/v1/visualizations",
        json=_body(_dashboard("d0"), name="prod", tags={"env": "prod"}),
        headers=HEADERS,
    )
    await client.post(
        "/api/v1/visualizations",
        json=_body(_dashboard("d1"), name="dev", tags={"env": "dev"}),
        headers=HEADERS,
    )

    response = await client.get(
        "/api/v1/visualizations",
        params={"tags": json.dumps({"env": "prod"})},
        headers=HEADERS,
    )
    other_org = await client.get(
        "/api/v1/visualizations", headers={"X-Organization-ID": "globex"},
    )

    assert response.status_code == 200
    assert [g["visualization"]["name"] for g in response.json()] == ["prod"]
    assert other_org.json() == []


@pytest.mark.asyncio
async def test_query_rejects_malformed_tags(client):
    response = await client.get(
        "/api/v1/visualizations", params={"tags": "not-json"}, headers=HEADERS,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_then_delete_again_is_not_found(client, publisher):
    created = await client.post(
        "/api/v1/visualizations", json=_body(_dashboard("d0")), headers=HEADERS,
    )
    slug = created.json()["visualization"]["slug"]

    first = await client.delete(f"/api/v1/visualizations/{slug}", headers=HEADERS)
    second = await client.delete(f"/api/v1/visualizations/{slug}", headers=HEADERS)

    assert first.status_code == 200
    assert [d["slug"] for d in first.json()["dashboards"]] == ["g0"]
    assert publisher.published == {}
    assert second.status_code == 404


@pytest.mark.asyncio
async def test_endpoints_answer_503_before_startup():
    app = create_fastapi_app()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        response = await c.get("/api/v1/visualizations", headers=HEADERS)
    assert response.status_code == 503
