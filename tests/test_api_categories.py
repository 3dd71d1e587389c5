"""
Tests for the admin category endpoints.
"""

from app.models.admin_activity_log import AdminActivityLog

BASE = "/admin/categories"


def create(client, name, parent_id=None, **extra):
    response = client.post(BASE, json={"name": name, "parent_id": parent_id, **extra})
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateEndpoint:
    def test_create(self, client):
        response = client.post(BASE, json={"name": "Home & Garden"}, headers={"X-Admin-Id": "admin-1"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["slug"] == "home-garden"
        assert body["data"]["parent"] is None

    def test_admin_header_is_recorded(self, client, db_session):
        client.post(BASE, json={"name": "Books"}, headers={"X-Admin-Id": "admin-9"})
        entry = db_session.query(AdminActivityLog).one()
        assert entry.admin_id == "admin-9"

    def test_duplicate_slug(self, client):
        create(client, "Books")
        response = client.post(BASE, json={"name": "books"})

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "ALREADY_EXISTS"
        assert body["error"]["details"] == {"slug": "books"}

    def test_bad_slug_pattern(self, client):
        response = client.post(BASE, json={"name": "Books", "slug": "Not A Slug"})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_name_without_slug_characters(self, client):
        response = client.post(BASE, json={"name": "!!!"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_INPUT"

    def test_missing_parent(self, client):
        response = client.post(BASE, json={"name": "Orphan", "parent_id": "missing"})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestMutationEndpoints:
    def test_update(self, client):
        category = create(client, "Phones")
        response = client.put(f"{BASE}/{category['id']}", json={"name": "Smart Phones"})
        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "smart-phones"

    def test_move_onto_itself(self, client):
        category = create(client, "Loop")
        response = client.put(f"{BASE}/{category['id']}/move", json={"parent_id": category["id"]})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_STATE"

    def test_move_under_descendant(self, client):
        a = create(client, "Alpha")
        b = create(client, "Bravo", parent_id=a["id"])
        response = client.put(f"{BASE}/{a['id']}/move", json={"parent_id": b["id"]})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CIRCULAR_REFERENCE"

    def test_move_to_root(self, client):
        a = create(client, "Alpha")
        b = create(client, "Bravo", parent_id=a["id"])
        response = client.put(f"{BASE}/{b['id']}/move", json={"parent_id": None})
        assert response.status_code == 200
        assert response.json()["data"]["parent_id"] is None

    def test_deactivation_blocked(self, client):
        a = create(client, "Alpha")
        create(client, "Bravo", parent_id=a["id"])
        response = client.put(f"{BASE}/{a['id']}", json={"is_active": False})
        assert response.status_code == 422
        assert response.json()["error"]["details"] == {"active_children": 1, "active_products": 0}

    def test_hard_delete(self, client):
        category = create(client, "Empty")
        response = client.delete(f"{BASE}/{category['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["method"] == "hard"
        assert client.get(f"{BASE}/{category['id']}").status_code == 404

    def test_soft_delete(self, client, make_product, service):
        category = create(client, "Stocked")
        make_product(service.store.get_by_id(category["id"]))

        response = client.delete(f"{BASE}/{category['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["method"] == "soft"
        detail = client.get(f"{BASE}/{category['id']}").json()["data"]
        assert detail["is_active"] is False

    def test_delete_with_active_child(self, client):
        a = create(client, "Alpha")
        create(client, "Bravo", parent_id=a["id"])
        response = client.delete(f"{BASE}/{a['id']}")
        assert response.status_code == 422

    def test_reorder(self, client):
        first = create(client, "First")
        response = client.put(
            f"{BASE}/reorder",
            json={"categories": [{"id": first["id"], "sort_order": 3}, {"id": "missing", "sort_order": 1}]},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["successful"] == 1
        assert list(data["errors"]) == ["missing"]

    def test_bulk_status(self, client):
        a = create(client, "Alpha")
        b = create(client, "Bravo", parent_id=a["id"])
        response = client.post(
            f"{BASE}/bulk/update-status",
            json={"category_ids": [a["id"], b["id"]], "is_active": False},
        )
        assert response.status_code == 200
        assert response.json()["data"]["successful"] == 2


class TestReadEndpoints:
    def test_get_missing(self, client):
        response = client.get(f"{BASE}/missing")
        assert response.status_code == 404
        assert response.json()["error"]["details"] == {"category_id": "missing"}

    def test_get_by_slug(self, client):
        category = create(client, "Home & Garden")
        response = client.get(f"{BASE}/slug/home-garden")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == category["id"]

    def test_path(self, client):
        a = create(client, "Alpha")
        b = create(client, "Bravo", parent_id=a["id"])
        c = create(client, "Charlie", parent_id=b["id"])

        response = client.get(f"{BASE}/{c['id']}/path")

        assert response.status_code == 200
        assert [p["slug"] for p in response.json()["data"]] == ["alpha", "bravo", "charlie"]

    def test_tree(self, client):
        a = create(client, "Alpha")
        b = create(client, "Bravo", parent_id=a["id"])
        create(client, "Charlie", parent_id=b["id"])

        response = client.get(f"{BASE}/tree", params={"depth": 1})

        assert response.status_code == 200
        tree = response.json()["data"]
        assert tree[0]["slug"] == "alpha"
        assert tree[0]["children"][0]["children"] == []
        assert tree[0]["children"][0]["children_count"] == 1

    def test_tree_negative_depth(self, client):
        assert client.get(f"{BASE}/tree", params={"depth": -1}).status_code == 422

    def test_stats(self, client):
        a = create(client, "Alpha")
        create(client, "Bravo", parent_id=a["id"])

        response = client.get(f"{BASE}/stats")

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total_categories"] == 2
        assert stats["max_depth"] == 2
        assert stats["root_categories"] == 1

    def test_list(self, client):
        create(client, "Books")
        create(client, "Archive", is_active=False)

        active = client.get(BASE).json()["data"]
        everything = client.get(BASE, params={"is_active": "false"}).json()["data"]

        assert [c["name"] for c in active] == ["Books"]
        assert [c["name"] for c in everything] == ["Archive", "Books"]

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"
