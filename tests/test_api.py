import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from prompt_history.core.db import get_db
from prompt_history.core.exceptions import TransientStorageError
from prompt_history.core.security import create_access_token
from prompt_history.domains.versioning.services import VersioningService
from prompt_history.main import app


def auth_headers(user_id: uuid.UUID) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def headers(owner_id):
    return auth_headers(owner_id)


@pytest.fixture
async def created(client, headers):
    response = await client.post("/documents", json={
        "title": "Greeting",
        "content": "Hello {{name}}",
        "structured_fields": [{"name": "name", "type": "text", "default": "World"}],
    }, headers=headers)
    assert response.status_code == 201
    return response.json()


async def list_versions(client, headers, document_id, **params):
    response = await client.get(f"/documents/{document_id}/versions", params=params, headers=headers)
    assert response.status_code == 200
    return response.json()


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"


async def test_requires_token(client):
    response = await client.get(f"/documents/{uuid.uuid4()}")
    assert response.status_code in (401, 403)

    response = await client.get(f"/documents/{uuid.uuid4()}", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


async def test_create_document_starts_history(client, headers, created):
    assert created["current_version_number"] == 1
    assert created["structured_fields"] == [{"name": "name", "type": "text", "default": "World"}]

    page = await list_versions(client, headers, created["uuid"])
    assert page["total"] == 1
    assert page["versions"][0]["change_summary"] == "Initial version"
    assert page["versions"][0]["is_snapshot"] is True


async def test_invalid_structured_field_rejected(client, headers):
    response = await client.post("/documents", json={
        "title": "Bad",
        "content": "x",
        "structured_fields": [{"name": "tone", "type": "select", "options": ["a"], "default": "b"}],
    }, headers=headers)

    assert response.status_code == 422


async def test_update_creates_version_only_on_content_change(client, headers, created):
    url = f"/documents/{created['uuid']}"

    response = await client.put(url, json={"content": "Hi {{name}}!"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["created_version_number"] == 2

    response = await client.put(url, json={"title": "Renamed", "description": None}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["created_version_number"] is None
    assert body["document"]["title"] == "Renamed"
    assert body["document"]["current_version_number"] == 2


async def test_blank_content_update_is_validation_error(client, headers, created):
    response = await client.put(f"/documents/{created['uuid']}", json={"content": "   "}, headers=headers)

    assert response.status_code == 422


async def test_snapshot_restore_and_compare(client, headers, created):
    document_id = created["uuid"]
    await client.put(f"/documents/{document_id}", json={"content": "Hi {{name}}!"}, headers=headers)

    response = await client.post(
        f"/documents/{document_id}/versions/snapshots", json={"annotation": "before rewrite"}, headers=headers
    )
    assert response.status_code == 201
    assert response.json()["version_number"] == 3

    page = await list_versions(client, headers, document_id)
    initial_id = page["versions"][-1]["id"]

    response = await client.post(f"/versions/{initial_id}/restore", json={}, headers=headers)
    assert response.status_code == 200
    restored = response.json()
    assert restored["version"]["version_number"] == 4
    assert restored["version"]["change_summary"] == "Restored from version 1"
    assert restored["document"]["content"] == "Hello {{name}}"

    response = await client.get(
        f"/documents/{document_id}/versions/compare",
        params={"version_id_1": initial_id, "version_id_2": page["versions"][1]["id"]},
        headers=headers,
    )
    assert response.status_code == 200
    comparison = response.json()
    assert comparison["version1"]["content"] == "Hello {{name}}"
    assert comparison["version2"]["content"] == "Hi {{name}}!"


async def test_snapshot_requires_annotation(client, headers, created):
    response = await client.post(
        f"/documents/{created['uuid']}/versions/snapshots", json={"annotation": ""}, headers=headers
    )

    assert response.status_code == 422


async def test_annotation_and_delete(client, headers, created):
    document_id = created["uuid"]
    edit = await client.put(f"/documents/{document_id}", json={"content": "Second"}, headers=headers)
    assert edit.status_code == 200
    page = await list_versions(client, headers, document_id)
    plain_id, initial_id = page["versions"][0]["id"], page["versions"][1]["id"]

    response = await client.patch(f"/versions/{plain_id}/annotation", json={"annotation": "noted"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["annotation"] == "noted"

    response = await client.delete(f"/versions/{initial_id}", headers=headers)
    assert response.status_code == 400

    response = await client.delete(f"/versions/{plain_id}", headers=headers)
    assert response.status_code == 204

    response = await client.get(f"/versions/{plain_id}", headers=headers)
    assert response.status_code == 404


async def test_pagination_bounds(client, headers, created):
    response = await client.get(
        f"/documents/{created['uuid']}/versions", params={"limit": 101}, headers=headers
    )
    assert response.status_code == 422

    page = await list_versions(client, headers, created["uuid"], limit=1, offset=0)
    assert page["limit"] == 1
    assert len(page["versions"]) == 1


async def test_other_user_cannot_touch_history(client, created, other_user_id, headers):
    stranger = auth_headers(other_user_id)
    page = await list_versions(client, headers, created["uuid"])
    version_id = page["versions"][0]["id"]

    assert (await client.get(f"/documents/{created['uuid']}", headers=stranger)).status_code == 404
    assert (await client.get(f"/documents/{created['uuid']}/versions", headers=stranger)).status_code == 404
    assert (await client.get(f"/versions/{version_id}", headers=stranger)).status_code == 403
    response = await client.post(f"/versions/{version_id}/restore", json={}, headers=stranger)
    assert response.status_code == 403


async def test_stats_and_soft_delete(client, headers, created):
    document_id = created["uuid"]

    response = await client.get(f"/documents/{document_id}/stats", headers=headers)
    assert response.status_code == 200
    assert response.json()["version_count"] == 1

    assert (await client.delete(f"/documents/{document_id}", headers=headers)).status_code == 204
    assert (await client.get(f"/documents/{document_id}", headers=headers)).status_code == 404


async def test_transient_storage_error_maps_to_503(client, headers, created, monkeypatch):
    async def exhausted(self, document_id, user_id, annotation):
        raise TransientStorageError("Could not write version", attempts=5)

    monkeypatch.setattr(VersioningService, "create_snapshot", exhausted)

    response = await client.post(
        f"/documents/{created['uuid']}/versions/snapshots", json={"annotation": "later"}, headers=headers
    )

    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"
