"""
HTTP surface through fastapi.testclient.TestClient, with the use cases
wired to a temp-file store and stub services.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from appservice.api.dependencies import get_manage_use_case, get_paginate_use_case
from appservice.api.main import app
from appservice.core.use_cases.manage_applications import ManageApplicationsUseCase
from tests.conftest import FlakyStore, at, seed_application

BASE = "/api/v1/applications"


@pytest.fixture
def api(manage, paginate):
    app.dependency_overrides[get_manage_use_case] = lambda: manage
    app.dependency_overrides[get_paginate_use_case] = lambda: paginate
    yield TestClient(app)
    app.dependency_overrides.clear()


def _headers(user_id, token="Bearer test-token"):
    return {"X-User-Id": str(user_id), "Authorization": token}


def _create(api, user, product, **extra):
    body = {"applicant_id": str(user), "product_id": str(product), **extra}
    return api.post(BASE, json=body, headers=_headers(user))


class TestCreateEndpoint:

    def test_create_then_approve(self, api, client_user, product, admin):
        created = _create(api, client_user, product, tags=["urgent"])
        assert created.status_code == 201
        body = created.json()
        assert body["status"] == "SUBMITTED"
        assert body["tags"] == ["urgent"]

        app_id = body["id"]
        approved = api.put(f"{BASE}/{app_id}/status", json={"status": "approved"}, headers=_headers(admin))
        assert approved.status_code == 200
        assert approved.json()["status"] == "APPROVED"

        history = api.get(f"{BASE}/{app_id}/history", headers=_headers(admin))
        assert history.status_code == 200
        assert len(history.json()) == 2
        assert history.json()[0]["changed_by"] == "ADMIN"

    def test_create_requires_actor(self, api, client_user, product):
        resp = api.post(BASE, json={"applicant_id": str(client_user), "product_id": str(product)})
        assert resp.status_code == 401
        assert resp.json()["code"] == "UNAUTHORIZED"

    def test_bad_actor_header(self, api, client_user, product):
        resp = api.post(
            BASE,
            json={"applicant_id": str(client_user), "product_id": str(product)},
            headers={"X-User-Id": "not-a-uuid"},
        )
        assert resp.status_code == 401

    def test_missing_ids_is_bad_request(self, api, client_user):
        resp = api.post(BASE, json={"product_id": str(uuid.uuid4())}, headers=_headers(client_user))
        assert resp.status_code == 400

    def test_unknown_product(self, api, client_user):
        resp = _create(api, client_user, uuid.uuid4())
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Product with this ID not found"

    def test_tag_service_down_is_503_with_saved_id(self, api, tags, store, client_user, product):
        tags.down = True
        resp = _create(api, client_user, product, tags=["urgent"])
        assert resp.status_code == 503
        body = resp.json()
        assert body["code"] == "SERVICE_UNAVAILABLE"
        assert store.get(uuid.UUID(body["context"]["application_id"])) is not None

    def test_documents_round_trip(self, api, client_user, product):
        resp = _create(api, client_user, product, documents=[{"file_name": "passport.pdf", "content_type": "application/pdf"}])
        assert resp.status_code == 201
        [doc] = resp.json()["documents"]
        assert doc["file_name"] == "passport.pdf"
        assert doc["content_type"] == "application/pdf"


class TestReadEndpoints:

    def test_get_by_id(self, api, client_user, product):
        app_id = _create(api, client_user, product).json()["id"]
        resp = api.get(f"{BASE}/{app_id}")
        assert resp.status_code == 200
        assert resp.json()["id"] == app_id

    def test_get_missing(self, api):
        resp = api.get(f"{BASE}/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"

    def test_stream_pages(self, api, store):
        apps = [seed_application(store, at(i)) for i in range(3)]
        first = api.get(f"{BASE}/stream", params={"limit": 2}).json()
        assert [i["id"] for i in first["items"]] == [str(apps[2].id), str(apps[1].id)]

        second = api.get(f"{BASE}/stream", params={"limit": 2, "cursor": first["next_cursor"]}).json()
        assert [i["id"] for i in second["items"]] == [str(apps[0].id)]

    def test_stream_bad_cursor(self, api):
        resp = api.get(f"{BASE}/stream", params={"cursor": "???"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "invalid cursor"

    @pytest.mark.parametrize(
        "path, params",
        [
            ("", {"size": "abc"}),
            ("", {"page": "first", "size": "10"}),
            ("/stream", {"limit": "x"}),
            ("/stream", {"limit": "2.5"}),
        ],
    )
    def test_non_numeric_paging_is_bad_request(self, api, path, params):
        resp = api.get(f"{BASE}{path}", params=params)
        assert resp.status_code == 400
        assert resp.json()["code"] == "BAD_REQUEST"

    def test_default_page_size(self, api, store):
        for i in range(25):
            seed_application(store, at(i))
        assert len(api.get(BASE).json()) == 20
        assert len(api.get(f"{BASE}/stream").json()["items"]) == 20

    def test_list_size_over_cap(self, api):
        resp = api.get(BASE, params={"page": 0, "size": 51})
        assert resp.status_code == 400

    def test_list(self, api, store):
        seed_application(store, at(0))
        resp = api.get(BASE, params={"page": 0, "size": 10})
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_count_and_by_tag(self, api, client_user, product):
        _create(api, client_user, product, tags=["urgent"])
        _create(api, client_user, product)
        assert api.get(f"{BASE}/count").json() == 2
        found = api.get(f"{BASE}/by-tag", params={"tag": "urgent"}).json()
        assert len(found) == 1
        assert set(found[0]) == {"id", "applicant_id", "product_id", "status", "created_at"}


class TestMutationEndpoints:

    def test_tags_put_and_delete(self, api, client_user, product):
        app_id = _create(api, client_user, product).json()["id"]
        put = api.put(f"{BASE}/{app_id}/tags", json=["urgent", "vip"], headers=_headers(client_user))
        assert put.status_code == 204
        removed = api.request("DELETE", f"{BASE}/{app_id}/tags", json=["vip", "absent"], headers=_headers(client_user))
        assert removed.status_code == 204
        assert api.get(f"{BASE}/{app_id}").json()["tags"] == ["urgent"]

    def test_manager_self_approval_is_409(self, api, manager, product):
        app_id = _create(api, manager, product).json()["id"]
        resp = api.put(f"{BASE}/{app_id}/status", json={"status": "APPROVED"}, headers=_headers(manager))
        assert resp.status_code == 409

    def test_status_without_actor(self, api):
        resp = api.put(f"{BASE}/{uuid.uuid4()}/status", json={"status": "APPROVED"})
        assert resp.status_code == 401

    def test_delete_admin_only(self, api, client_user, admin, product):
        app_id = _create(api, client_user, product).json()["id"]
        assert api.delete(f"{BASE}/{app_id}", headers=_headers(client_user)).status_code == 403
        assert api.delete(f"{BASE}/{app_id}", headers=_headers(admin)).status_code == 204
        assert api.get(f"{BASE}/{app_id}").status_code == 404


class TestInternalEndpoints:

    def test_delete_by_product(self, api, store):
        product = uuid.uuid4()
        seed_application(store, at(0), product_id=product)
        resp = api.delete(f"{BASE}/internal/by-product", params={"productId": str(product)})
        assert resp.status_code == 204
        assert store.count() == 0

    def test_delete_by_user(self, api, store):
        user = uuid.uuid4()
        seed_application(store, at(0), applicant_id=user)
        seed_application(store, at(1))
        resp = api.delete(f"{BASE}/internal/by-user", params={"userId": str(user)})
        assert resp.status_code == 204
        assert store.count() == 1

    def test_incomplete_cascade_is_500(self, api, database, identity, catalog, tags):
        user = uuid.uuid4()
        store = FlakyStore(database, fail_ids=[])
        app_id = seed_application(store, at(0), applicant_id=user).id
        store.fail_ids.add(app_id)
        app.dependency_overrides[get_manage_use_case] = lambda: ManageApplicationsUseCase(
            store=store, identity=identity, catalog=catalog, tags=tags
        )

        resp = api.delete(f"{BASE}/internal/by-user", params={"userId": str(user)})
        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == "CASCADE_INCOMPLETE"
        assert body["context"]["failed_ids"] == [str(app_id)]


def test_health(api):
    resp = api.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
