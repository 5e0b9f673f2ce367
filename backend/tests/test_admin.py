"""Tests for admin routes."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.config import BackendSettings
from tuneforge.core.models import User

SONG_FORM = {
    "title": " Night Drive ",
    "artist": "The Neons",
    "genre": "electronic",
    "duration": "245",
    "tags": "synthwave, retro, ",
    "is_premium": "true",
}


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin", role="admin")


@pytest.fixture
def admin_headers(admin: User, auth_headers) -> dict[str, str]:
    return auth_headers(admin)


def _stored_files(settings: BackendSettings, subdir: str) -> list[Path]:
    directory = Path(settings.media_root) / subdir
    return list(directory.iterdir()) if directory.exists() else []


class TestAdminAccess:
    """Every admin route requires the admin role."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/admin/stats"),
            ("get", "/api/admin/songs"),
            ("get", "/api/admin/users"),
            ("delete", "/api/admin/songs/s1"),
        ],
    )
    def test_regular_user_forbidden(self, client: TestClient, make_user, auth_headers, method: str, path: str) -> None:
        headers = auth_headers(make_user("regular"))

        response = getattr(client, method)(path, headers=headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    def test_anonymous_unauthorized(self, client: TestClient) -> None:
        assert client.get("/api/admin/stats").status_code == 401

    def test_demoted_admin_loses_access_immediately(
        self, client: TestClient, admin: User, admin_headers, fake_firestore
    ) -> None:
        fake_firestore.collections["users"]["admin"]["role"] = "user"

        assert client.get("/api/admin/stats", headers=admin_headers).status_code == 403


class TestStats:
    """Tests for GET /api/admin/stats."""

    def test_dashboard_counts(self, client: TestClient, admin_headers, make_user, make_song, make_playlist) -> None:
        make_user("fan", subscription="premium")
        make_song("s1", genre="rock", play_count=9)
        make_song("s2", genre="rock", is_premium=True)
        make_song("s3", genre="jazz", is_active=False)
        make_playlist("p1", "fan")
        make_playlist("p2", "fan", is_public=False)

        response = client.get("/api/admin/stats", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["users"] == {"total": 2, "active": 2, "premium": 1}
        assert data["songs"] == {"total": 3, "active": 2, "premium": 1}
        assert data["playlists"] == {"total": 2, "public": 1}
        assert data["genres"] == {"rock": 2}
        assert [song["id"] for song in data["top_songs"]][0] == "s1"
        assert {song["id"] for song in data["recent_songs"]} == {"s1", "s2"}


class TestSongUpload:
    """Tests for POST /api/admin/songs."""

    def test_upload_stores_file_and_record(
        self, client: TestClient, admin_headers, mock_backend_settings: BackendSettings, fake_firestore
    ) -> None:
        response = client.post(
            "/api/admin/songs",
            data=SONG_FORM,
            files={"song_file": ("night drive.mp3", b"ID3-audio-bytes", "audio/mpeg")},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Night Drive"
        assert data["tags"] == ["synthwave", "retro"]
        assert data["is_premium"] is True
        assert data["file_path"].startswith("songs/song-")
        assert (Path(mock_backend_settings.media_root) / data["file_path"]).read_bytes() == b"ID3-audio-bytes"

        stored = fake_firestore.collections["songs"][data["id"]]
        assert stored["uploaded_by"] == "admin"
        assert stored["file_size"] == len(b"ID3-audio-bytes")
        assert "neons" in stored["search_terms"]

    def test_upload_with_cover(
        self, client: TestClient, admin_headers, mock_backend_settings: BackendSettings
    ) -> None:
        response = client.post(
            "/api/admin/songs",
            data=SONG_FORM,
            files={
                "song_file": ("a.mp3", b"audio", "audio/mpeg"),
                "cover_art": ("cover.png", b"\x89PNG", "image/png"),
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["cover_art"].startswith("covers/cover-")
        assert len(_stored_files(mock_backend_settings, "covers")) == 1

    def test_rejects_non_audio(self, client: TestClient, admin_headers, mock_backend_settings: BackendSettings) -> None:
        response = client.post(
            "/api/admin/songs",
            data=SONG_FORM,
            files={"song_file": ("notes.txt", b"hello", "text/plain")},
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Invalid file type. Only audio files are allowed."
        assert _stored_files(mock_backend_settings, "songs") == []

    def test_bad_cover_removes_stored_audio(
        self, client: TestClient, admin_headers, mock_backend_settings: BackendSettings, fake_firestore
    ) -> None:
        response = client.post(
            "/api/admin/songs",
            data=SONG_FORM,
            files={
                "song_file": ("a.mp3", b"audio", "audio/mpeg"),
                "cover_art": ("cover.mp3", b"not an image", "audio/mpeg"),
            },
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert _stored_files(mock_backend_settings, "songs") == []
        assert fake_firestore.collections.get("songs", {}) == {}

    def test_missing_metadata(self, client: TestClient, admin_headers) -> None:
        response = client.post(
            "/api/admin/songs",
            data={"title": "No Artist", "genre": "pop", "duration": "10"},
            files={"song_file": ("a.mp3", b"audio", "audio/mpeg")},
            headers=admin_headers,
        )

        assert response.status_code == 422


class TestSongManagement:
    """Tests for listing, editing and deleting songs."""

    def test_admin_listing_includes_everything(self, client: TestClient, admin_headers, make_song) -> None:
        make_song("s1")
        make_song("s2", is_premium=True)
        make_song("s3", is_active=False)

        data = client.get("/api/admin/songs", headers=admin_headers).json()

        assert data["total"] == 3

    def test_update_song(self, client: TestClient, admin_headers, make_song) -> None:
        make_song("s1", title="Draft")

        response = client.put(
            "/api/admin/songs/s1",
            json={"title": "Final", "is_featured": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Final"
        assert response.json()["is_featured"] is True

    def test_update_missing_song(self, client: TestClient, admin_headers) -> None:
        assert client.put("/api/admin/songs/ghost", json={"title": "X"}, headers=admin_headers).status_code == 404

    def test_soft_delete(self, client: TestClient, admin_headers, make_song, fake_firestore) -> None:
        make_song("s1")

        response = client.delete("/api/admin/songs/s1", params={"permanent": "false"}, headers=admin_headers)

        assert response.json()["message"] == "Song deactivated"
        assert fake_firestore.collections["songs"]["s1"]["is_active"] is False

    def test_permanent_delete_removes_media(
        self, client: TestClient, admin_headers, mock_backend_settings: BackendSettings, fake_firestore
    ) -> None:
        uploaded = client.post(
            "/api/admin/songs",
            data=SONG_FORM,
            files={"song_file": ("a.mp3", b"audio", "audio/mpeg")},
            headers=admin_headers,
        ).json()

        response = client.delete(f"/api/admin/songs/{uploaded['id']}", headers=admin_headers)

        assert response.json()["message"] == "Song deleted"
        assert uploaded["id"] not in fake_firestore.collections["songs"]
        assert _stored_files(mock_backend_settings, "songs") == []


class TestUserManagement:
    """Tests for the admin user routes."""

    def test_list_and_filter(self, client: TestClient, admin_headers, make_user) -> None:
        make_user("u1", username="melody", subscription="premium")
        make_user("u2", username="rhythm", is_active=False)

        everyone = client.get("/api/admin/users", headers=admin_headers).json()
        inactive = client.get("/api/admin/users", params={"status": "inactive"}, headers=admin_headers).json()
        premium = client.get("/api/admin/users", params={"subscription": "premium"}, headers=admin_headers).json()
        searched = client.get("/api/admin/users", params={"search": "MEL"}, headers=admin_headers).json()

        assert everyone["total"] == 3
        assert [u["id"] for u in inactive["users"]] == ["u2"]
        assert [u["id"] for u in premium["users"]] == ["u1"]
        assert [u["username"] for u in searched["users"]] == ["melody"]
        assert "password_hash" not in everyone["users"][0]

    def test_deactivate_blocks_login(self, client: TestClient, admin_headers, make_user, auth_headers) -> None:
        target = make_user("u1", username="ada")
        target_headers = auth_headers(target)

        response = client.post("/api/admin/users/u1/status", json={"is_active": False}, headers=admin_headers)

        assert response.json()["is_active"] is False
        assert client.get("/api/auth/me", headers=target_headers).status_code == 401
        login = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "correct-horse"})
        assert login.status_code == 401

    def test_set_role(self, client: TestClient, admin_headers, make_user) -> None:
        make_user("u1")

        response = client.post("/api/admin/users/u1/role", json={"role": "moderator"}, headers=admin_headers)
        invalid = client.post("/api/admin/users/u1/role", json={"role": "emperor"}, headers=admin_headers)

        assert response.json()["role"] == "moderator"
        assert invalid.status_code == 422

    def test_award_badge_once(self, client: TestClient, admin_headers, make_user) -> None:
        make_user("u1")

        client.post("/api/admin/users/u1/badges", json={"name": "Curator"}, headers=admin_headers)
        response = client.post("/api/admin/users/u1/badges", json={"name": "Curator"}, headers=admin_headers)

        assert [badge["name"] for badge in response.json()["badges"]] == ["Curator"]

    def test_unknown_user(self, client: TestClient, admin_headers) -> None:
        response = client.post("/api/admin/users/ghost/status", json={"is_active": True}, headers=admin_headers)

        assert response.status_code == 404
