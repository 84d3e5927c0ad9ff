"""
Tests for the admin redirects API.

Covers validation on create/update, all-or-nothing bulk import, the orphan
sweep endpoint and bearer token auth.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from autoredirect.adapters.memory import InMemoryRedirectStore
from autoredirect.api.deps import (
    Settings,
    get_engine,
    get_redirect_config,
    get_redirect_repo,
    get_settings,
    require_admin,
)
from autoredirect.api.routes.admin_redirects import router
from autoredirect.components.redirects import RedirectConfig
from tests.conftest import ARTICLE, make_redirect

# --- Test Fixtures ---


def build_app() -> FastAPI:
    app = FastAPI()
    app.include_router(router, prefix="/api/admin/redirects")
    return app


@pytest.fixture
def client(store: InMemoryRedirectStore, engine) -> TestClient:
    """Test client with storage and auth overridden."""
    app = build_app()
    app.dependency_overrides[get_redirect_repo] = lambda: store
    app.dependency_overrides[get_redirect_config] = lambda: RedirectConfig()
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[require_admin] = lambda: None
    return TestClient(app)


# --- Create ---


class TestCreateRedirect:
    def test_create_success(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects",
            json={"fromPath": "/old", "toPath": "/new"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["fromPath"] == "/old"
        assert data["toPath"] == "/new"
        assert data["statusCode"] == 301
        assert data["isActive"] is True
        assert data["priority"] == 100

    def test_snake_case_fields_accepted(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects",
            json={"from_path": "/old", "to_path": "/new", "status_code": 302},
        )
        assert response.status_code == 201
        assert response.json()["statusCode"] == 302

    def test_path_is_normalized(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects",
            json={"fromPath": "/old/", "toPath": "/new/"},
        )
        assert response.json()["fromPath"] == "/old"
        assert response.json()["toPath"] == "/new"

    def test_invalid_status_code_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects",
            json={"fromPath": "/old", "toPath": "/new", "statusCode": 200},
        )
        assert response.status_code == 400
        errors = response.json()["detail"]["errors"]
        assert errors[0]["code"] == "invalid_status_code"

    def test_duplicate_active_source_rejected(self, client: TestClient) -> None:
        client.post("/api/admin/redirects", json={"fromPath": "/old", "toPath": "/a"})
        response = client.post(
            "/api/admin/redirects", json={"fromPath": "/old", "toPath": "/b"}
        )
        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "source_exists"

    def test_inactive_duplicate_allowed(self, client: TestClient) -> None:
        client.post("/api/admin/redirects", json={"fromPath": "/old", "toPath": "/a"})
        response = client.post(
            "/api/admin/redirects",
            json={"fromPath": "/old", "toPath": "/b", "isActive": False},
        )
        assert response.status_code == 201


class TestLoopDetection:
    def test_direct_loop_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects", json={"fromPath": "/page", "toPath": "/page"}
        )
        assert response.status_code == 400
        errors = response.json()["detail"]["errors"]
        assert any(e["code"] == "redirect_loop" for e in errors)

    def test_indirect_loop_rejected(self, client: TestClient) -> None:
        client.post("/api/admin/redirects", json={"fromPath": "/b", "toPath": "/a"})
        response = client.post(
            "/api/admin/redirects", json={"fromPath": "/a", "toPath": "/b"}
        )
        assert response.status_code == 400
        errors = response.json()["detail"]["errors"]
        assert any(e["code"] == "redirect_loop" for e in errors)


class TestOpenRedirectPrevention:
    def test_external_url_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects",
            json={"fromPath": "/go", "toPath": "https://evil.com/phish"},
        )
        assert response.status_code == 400
        errors = response.json()["detail"]["errors"]
        assert any(e["code"] == "external_target_not_allowed" for e in errors)

    def test_protocol_relative_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects", json={"fromPath": "/go", "toPath": "//evil.com/path"}
        )
        assert response.status_code == 400

    def test_source_url_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects",
            json={"fromPath": "https://example.com/old", "toPath": "/new"},
        )
        assert response.status_code == 400
        errors = response.json()["detail"]["errors"]
        assert errors[0]["code"] == "source_cannot_be_url"


# --- Read / Update / Delete ---


class TestCrud:
    def test_list_ordered_by_priority(self, client: TestClient, store) -> None:
        client.post("/api/admin/redirects", json={"fromPath": "/b", "toPath": "/x", "priority": 50})
        client.post("/api/admin/redirects", json={"fromPath": "/a", "toPath": "/x", "priority": 10})

        data = client.get("/api/admin/redirects").json()

        assert data["count"] == 2
        assert [r["fromPath"] for r in data["data"]] == ["/a", "/b"]

    def test_list_active_only(self, client: TestClient) -> None:
        client.post("/api/admin/redirects", json={"fromPath": "/a", "toPath": "/x"})
        client.post(
            "/api/admin/redirects", json={"fromPath": "/b", "toPath": "/x", "isActive": False}
        )
        data = client.get("/api/admin/redirects", params={"active_only": True}).json()
        assert [r["fromPath"] for r in data["data"]] == ["/a"]

    def test_get_update_delete(self, client: TestClient) -> None:
        created = client.post(
            "/api/admin/redirects", json={"fromPath": "/old", "toPath": "/new"}
        ).json()
        url = f"/api/admin/redirects/{created['id']}"

        assert client.get(url).json()["toPath"] == "/new"

        updated = client.put(url, json={"toPath": "/newer", "description": "moved"})
        assert updated.status_code == 200
        assert updated.json()["toPath"] == "/newer"
        assert updated.json()["description"] == "moved"

        assert client.delete(url).json() == {"deleted": True}
        assert client.get(url).status_code == 404

    def test_update_missing_is_404(self, client: TestClient) -> None:
        response = client.put(f"/api/admin/redirects/{uuid4()}", json={"toPath": "/x"})
        assert response.status_code == 404

    def test_update_without_fields_is_400(self, client: TestClient) -> None:
        created = client.post(
            "/api/admin/redirects", json={"fromPath": "/old", "toPath": "/new"}
        ).json()
        response = client.put(f"/api/admin/redirects/{created['id']}", json={})
        assert response.status_code == 400

    def test_update_into_loop_rejected(self, client: TestClient) -> None:
        client.post("/api/admin/redirects", json={"fromPath": "/b", "toPath": "/a"})
        created = client.post(
            "/api/admin/redirects", json={"fromPath": "/a", "toPath": "/c"}
        ).json()

        response = client.put(f"/api/admin/redirects/{created['id']}", json={"toPath": "/b"})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "redirect_loop"

    def test_delete_missing_is_404(self, client: TestClient) -> None:
        assert client.delete(f"/api/admin/redirects/{uuid4()}").status_code == 404


# --- Bulk Import ---


class TestBulkImport:
    def test_imports_all(self, client: TestClient, store) -> None:
        response = client.post(
            "/api/admin/redirects/bulk-import",
            json={
                "data": [
                    {"fromPath": "/one", "toPath": "/uno"},
                    {"fromPath": "/two", "toPath": "/dos", "statusCode": 302},
                ]
            },
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Successfully imported 2 redirects"
        assert len(store.all()) == 2

    def test_one_bad_item_rejects_batch(self, client: TestClient, store) -> None:
        response = client.post(
            "/api/admin/redirects/bulk-import",
            json={
                "data": [
                    {"fromPath": "/one", "toPath": "/uno"},
                    {"fromPath": "/two", "toPath": "https://evil.com"},
                ]
            },
        )

        assert response.status_code == 400
        (error,) = response.json()["detail"]["errors"]
        assert error["index"] == 1
        assert error["code"] == "external_target_not_allowed"
        assert store.all() == []

    def test_duplicate_in_batch_rejected(self, client: TestClient, store) -> None:
        response = client.post(
            "/api/admin/redirects/bulk-import",
            json={
                "data": [
                    {"fromPath": "/one", "toPath": "/uno"},
                    {"fromPath": "/one/", "toPath": "/eins"},
                ]
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "duplicate_in_batch"
        assert store.all() == []

    def test_malformed_item_reports_index(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects/bulk-import",
            json={"data": [{"fromPath": "/one", "toPath": "/uno"}, {"fromPath": "/two"}]},
        )
        assert response.status_code == 400
        (error,) = response.json()["detail"]["errors"]
        assert error["index"] == 1
        assert error["code"] == "invalid_item"

    def test_data_must_be_array(self, client: TestClient) -> None:
        response = client.post("/api/admin/redirects/bulk-import", json={"data": {"a": 1}})
        assert response.status_code == 400
        assert response.json()["detail"] == "Data must be an array of redirect objects"


# --- Sweep and Validate ---


class TestSweep:
    def test_sweep_deactivates_orphans(self, client: TestClient, store) -> None:
        ghost = make_redirect("/articles/old", "/articles/ghost")
        store._redirects[ghost.id] = ghost

        response = client.post(f"/api/admin/redirects/sweep/{ARTICLE}")

        assert response.status_code == 200
        data = response.json()
        assert data["contentTypeUid"] == ARTICLE
        assert data["prefix"] == "/articles/"
        assert data["checked"] == 1
        assert [r["id"] for r in data["deactivated"]] == [str(ghost.id)]
        assert data["deactivated"][0]["isActive"] is False

    def test_untracked_type_is_404(self, client: TestClient) -> None:
        response = client.post("/api/admin/redirects/sweep/api::thing.thing")
        assert response.status_code == 404


class TestValidate:
    def test_reports_chains(self, client: TestClient, store) -> None:
        for redirect in (make_redirect("/a", "/b"), make_redirect("/b", "/c")):
            store._redirects[redirect.id] = redirect

        data = client.post("/api/admin/redirects/validate").json()

        assert data["valid"] is False
        assert data["totalChecked"] == 2
        (issue,) = data["issues"]
        assert issue["fromPath"] == "/a"
        assert issue["errors"][0]["code"] == "chain"

    def test_clean_set_is_valid(self, client: TestClient) -> None:
        client.post("/api/admin/redirects", json={"fromPath": "/a", "toPath": "/b"})
        data = client.post("/api/admin/redirects/validate").json()
        assert data == {"valid": True, "issues": [], "totalChecked": 1}


# --- Auth ---


class TestAuth:
    @pytest.fixture
    def secured_client(self, store, monkeypatch) -> TestClient:
        monkeypatch.setenv("AUTOREDIRECT_ADMIN_TOKEN", "s3cret")
        settings = Settings()
        app = build_app()
        app.dependency_overrides[get_redirect_repo] = lambda: store
        app.dependency_overrides[get_settings] = lambda: settings
        return TestClient(app)

    def test_missing_token_is_401(self, secured_client: TestClient) -> None:
        assert secured_client.get("/api/admin/redirects").status_code == 401

    def test_wrong_token_is_401(self, secured_client: TestClient) -> None:
        response = secured_client.get(
            "/api/admin/redirects", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401

    def test_valid_token(self, secured_client: TestClient) -> None:
        response = secured_client.get(
            "/api/admin/redirects", headers={"Authorization": "Bearer s3cret"}
        )
        assert response.status_code == 200

    def test_unset_token_disables_admin(self, store, monkeypatch) -> None:
        monkeypatch.delenv("AUTOREDIRECT_ADMIN_TOKEN", raising=False)
        settings = Settings()
        app = build_app()
        app.dependency_overrides[get_redirect_repo] = lambda: store
        app.dependency_overrides[get_settings] = lambda: settings

        response = TestClient(app).get(
            "/api/admin/redirects", headers={"Authorization": "Bearer anything"}
        )
        assert response.status_code == 401
