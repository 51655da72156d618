import pytest


@pytest.fixture(params=["/api/resumes", "/api/letters"], ids=["resumes", "letters"])
def base(request):
    return request.param


class TestDocumentsAPI:
    def _create(self, client, base, headers, title="My Doc", data=None):
        r = client.post(base, json={"title": title, "data": data or {"name": "Ada"}}, headers=headers)
        assert r.status_code == 201
        return r.json()

    def test_create_document(self, client, base, auth_headers):
        r = client.post(base, json={"title": "Engineer", "data": {"skills": ["python"]}}, headers=auth_headers())
        assert r.status_code == 201
        data = r.json()
        assert data["title"] == "Engineer"
        assert data["data"] == {"skills": ["python"]}
        assert data["ownerId"] == "user-a"
        assert set(data) == {"id", "ownerId", "title", "data", "createdAt", "updatedAt"}

    def test_create_ignores_client_supplied_owner(self, client, base, auth_headers):
        r = client.post(base, json={"title": "T", "data": {"a": 1}, "ownerId": "user-b"}, headers=auth_headers())
        assert r.json()["ownerId"] == "user-a"

    @pytest.mark.parametrize("body", [
        {"data": {"a": 1}},
        {"title": "", "data": {"a": 1}},
        {"title": "T"},
        {"title": "T", "data": None},
        {},
    ])
    def test_create_requires_title_and_data(self, client, base, auth_headers, body):
        r = client.post(base, json=body, headers=auth_headers())
        assert r.status_code == 400
        assert "required" in r.json()["detail"]

    def test_create_accepts_empty_object(self, client, base, auth_headers):
        r = client.post(base, json={"title": "T", "data": {}}, headers=auth_headers())
        assert r.status_code == 201
        assert r.json()["data"] == {}

    def test_create_without_body(self, client, base, auth_headers):
        r = client.post(base, headers=auth_headers())
        assert r.status_code == 400
        assert "required" in r.json()["detail"]

    def test_create_with_numeric_title(self, client, base, auth_headers):
        r = client.post(base, json={"title": 5, "data": {"a": 1}}, headers=auth_headers())
        assert r.status_code == 201
        assert r.json()["title"] == "5"

    def test_get_document(self, client, base, auth_headers):
        h = auth_headers()
        doc = self._create(client, base, h, data={"a": 1})

        r = client.get(f"{base}/{doc['id']}", headers=h)
        assert r.status_code == 200
        assert r.json()["title"] == "My Doc"
        assert r.json()["data"] == {"a": 1}

    def test_list_documents_most_recent_first(self, client, base, auth_headers):
        h = auth_headers()
        d1 = self._create(client, base, h, title="D1")
        d2 = self._create(client, base, h, title="D2")
        d3 = self._create(client, base, h, title="D3")
        client.put(f"{base}/{d1['id']}", json={"title": "D1 v2", "data": {"v": 2}}, headers=h)

        r = client.get(base, headers=h)
        assert r.status_code == 200
        assert [d["id"] for d in r.json()] == [d1["id"], d3["id"], d2["id"]]

    def test_list_empty(self, client, base, auth_headers):
        r = client.get(base, headers=auth_headers())
        assert r.status_code == 200
        assert r.json() == []

    def test_update_document(self, client, base, auth_headers):
        h = auth_headers()
        doc = self._create(client, base, h, data={"a": 1, "b": 2})

        r = client.put(f"{base}/{doc['id']}", json={"title": "New Title", "data": {"a": 3}}, headers=h)
        assert r.status_code == 200
        assert "updated successfully" in r.json()["message"]

        fetched = client.get(f"{base}/{doc['id']}", headers=h).json()
        assert fetched["title"] == "New Title"
        assert fetched["data"] == {"a": 3}
        assert fetched["createdAt"] == doc["createdAt"]
        assert fetched["updatedAt"] > doc["updatedAt"]

    def test_update_requires_fields(self, client, base, auth_headers):
        h = auth_headers()
        doc = self._create(client, base, h)
        r = client.put(f"{base}/{doc['id']}", json={"title": "Only title"}, headers=h)
        assert r.status_code == 400

    def test_update_without_body(self, client, base, auth_headers):
        h = auth_headers()
        doc = self._create(client, base, h)
        r = client.put(f"{base}/{doc['id']}", headers=h)
        assert r.status_code == 400
        assert client.get(f"{base}/{doc['id']}", headers=h).json()["title"] == doc["title"]

    def test_update_missing_document(self, client, base, auth_headers):
        r = client.put(f"{base}/does-not-exist", json={"title": "T", "data": {"a": 1}}, headers=auth_headers())
        assert r.status_code == 404

    def test_delete_document(self, client, base, auth_headers):
        h = auth_headers()
        doc = self._create(client, base, h)

        r = client.delete(f"{base}/{doc['id']}", headers=h)
        assert r.status_code == 200

        assert client.get(f"{base}/{doc['id']}", headers=h).status_code == 404
        assert client.delete(f"{base}/{doc['id']}", headers=h).status_code == 404


class TestCrossTenantIsolation:
    def _create_as_a(self, client, base, auth_headers):
        r = client.post(base, json={"title": "A's doc", "data": {"secret": True}}, headers=auth_headers("user-a"))
        return r.json()["id"]

    def test_other_user_gets_same_404_as_missing_id(self, client, base, auth_headers):
        doc_id = self._create_as_a(client, base, auth_headers)
        h_b = auth_headers("user-b")

        foreign = client.get(f"{base}/{doc_id}", headers=h_b)
        missing = client.get(f"{base}/no-such-id", headers=h_b)
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json()

    def test_other_user_cannot_update_or_delete(self, client, base, auth_headers):
        doc_id = self._create_as_a(client, base, auth_headers)
        h_b = auth_headers("user-b")

        r = client.put(f"{base}/{doc_id}", json={"title": "pwned", "data": {"x": 1}}, headers=h_b)
        assert r.status_code == 404
        r = client.delete(f"{base}/{doc_id}", headers=h_b)
        assert r.status_code == 404

        r = client.get(f"{base}/{doc_id}", headers=auth_headers("user-a"))
        assert r.status_code == 200
        assert r.json()["title"] == "A's doc"

    def test_other_user_list_excludes_foreign_documents(self, client, base, auth_headers):
        self._create_as_a(client, base, auth_headers)
        r = client.get(base, headers=auth_headers("user-b"))
        assert r.json() == []


class TestDocumentsRequireAuth:
    def test_missing_header(self, client, base):
        r = client.get(base)
        assert r.status_code == 401
        assert r.headers["WWW-Authenticate"] == "Bearer"

    def test_non_bearer_scheme(self, client, base):
        r = client.get(base, headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert r.status_code == 401

    def test_invalid_token(self, client, base):
        r = client.post(base, json={"title": "T", "data": {"a": 1}}, headers={"Authorization": "Bearer garbage"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Invalid token provided."

    def test_expired_token(self, client, base, auth_headers):
        r = client.get(base, headers=auth_headers(expires_in=-60))
        assert r.status_code == 401
        assert r.json()["detail"] == "Token expired. Please re-authenticate."

    def test_rejection_is_logged_once(self, client, base, auth_headers, caplog):
        caplog.set_level("INFO", logger="resume_api")
        client.get(base, headers=auth_headers(expires_in=-60))
        rejections = [r for r in caplog.records if "rejected" in r.getMessage().lower()]
        assert len(rejections) == 1
        assert "expired" in rejections[0].getMessage()
