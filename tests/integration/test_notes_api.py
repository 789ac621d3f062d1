"""
Integration tests for the /api/notes and /api/bookmarks endpoints.
"""

from roadmap_tracker.models import Bookmark, ItemNote
from tests.conftest import register


def _note(client, headers, content="remember flexbox", **fields):
    body = {"itemId": "html-css", "content": content, **fields}
    return client.post("/api/notes", headers=headers, json=body)


class TestNotes:
    def test_create_and_list(self, client, auth_headers):
        response = _note(client, auth_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["itemId"] == "html-css"
        assert data["isPrivate"] is True

        listed = client.get("/api/notes/html-css", headers=auth_headers).json()["data"]
        assert [n["content"] for n in listed] == ["remember flexbox"]

    def test_requires_auth(self, client):
        assert client.post("/api/notes", json={"itemId": "html-css", "content": "x"}).status_code == 401

    def test_empty_content_is_400(self, client, auth_headers):
        assert _note(client, auth_headers, content="").status_code == 400

    def test_update(self, client, auth_headers):
        note_id = _note(client, auth_headers).json()["data"]["id"]

        response = client.put(
            f"/api/notes/{note_id}", headers=auth_headers, json={"content": "grid too", "isPrivate": False}
        )

        assert response.status_code == 200
        assert response.json()["data"]["content"] == "grid too"
        assert response.json()["data"]["isPrivate"] is False

    def test_other_users_note_is_404(self, client, auth_headers):
        note_id = _note(client, auth_headers).json()["data"]["id"]
        bob = register(client, "bob")

        assert client.put(f"/api/notes/{note_id}", headers=bob, json={"content": "x"}).status_code == 404
        assert client.delete(f"/api/notes/{note_id}", headers=bob).status_code == 404
        assert client.get("/api/notes/html-css", headers=bob).json()["data"] == []

    def test_delete(self, client, auth_headers):
        note_id = _note(client, auth_headers).json()["data"]["id"]

        assert client.delete(f"/api/notes/{note_id}", headers=auth_headers).status_code == 200
        assert client.delete(f"/api/notes/{note_id}", headers=auth_headers).status_code == 404

    def test_shared_notes_are_public(self, client, auth_headers):
        _note(client, auth_headers, content="public tip", isPrivate=False)
        _note(client, auth_headers, content="private thought")

        shared = client.get("/api/notes/html-css/shared").json()["data"]

        assert [(n["username"], n["content"]) for n in shared] == [("alice", "public tip")]


class TestBookmarks:
    def test_add_list_remove(self, client, auth_headers):
        response = client.post("/api/bookmarks", headers=auth_headers, json={"itemId": "html-css"})
        assert response.status_code == 201
        assert response.json()["data"]["collectionId"] is None

        listed = client.get("/api/bookmarks", headers=auth_headers).json()["data"]
        assert [b["itemId"] for b in listed] == ["html-css"]

        assert client.delete("/api/bookmarks/html-css", headers=auth_headers).status_code == 200
        assert client.delete("/api/bookmarks/html-css", headers=auth_headers).status_code == 404

    def test_collections(self, client, auth_headers):
        created = client.post("/api/bookmarks/collections", headers=auth_headers, json={"name": "Later"})
        assert created.status_code == 201
        collection_id = created.json()["data"]["id"]

        client.post("/api/bookmarks", headers=auth_headers, json={"itemId": "html-css", "collectionId": collection_id})
        client.post("/api/bookmarks", headers=auth_headers, json={"itemId": "javascript"})

        filed = client.get(f"/api/bookmarks?collectionId={collection_id}", headers=auth_headers).json()["data"]
        assert [b["itemId"] for b in filed] == ["html-css"]

        duplicate = client.post("/api/bookmarks/collections", headers=auth_headers, json={"name": "Later"})
        assert duplicate.status_code == 400

        assert client.delete(f"/api/bookmarks/collections/{collection_id}", headers=auth_headers).status_code == 200
        remaining = client.get("/api/bookmarks", headers=auth_headers).json()["data"]
        assert sorted(b["itemId"] for b in remaining) == ["html-css", "javascript"]
        assert all(b["collectionId"] is None for b in remaining)

    def test_foreign_collection_is_404(self, client, auth_headers):
        bob = register(client, "bob")
        theirs = client.post("/api/bookmarks/collections", headers=bob, json={"name": "Bob's"}).json()["data"]["id"]

        response = client.post(
            "/api/bookmarks", headers=auth_headers, json={"itemId": "html-css", "collectionId": theirs}
        )

        assert response.status_code == 404


def test_account_deletion_removes_notes_and_bookmarks(client, auth_headers, db_session):
    _note(client, auth_headers)
    client.post("/api/bookmarks", headers=auth_headers, json={"itemId": "html-css"})

    response = client.request(
        "DELETE", "/api/auth/account", headers=auth_headers, json={"password": "secret123"}
    )

    assert response.status_code == 200
    assert db_session.query(ItemNote).count() == 0
    assert db_session.query(Bookmark).count() == 0
