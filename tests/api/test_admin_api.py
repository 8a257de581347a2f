"""
Tests for the moderation endpoints.
"""

from tests.api.helpers import login, signup, signup_and_login, upload


class TestAccess:

    def test_requires_login(self, client):
        """Anonymous requests should get 401."""
        assert client.get("/api/v1/admin").status_code == 401

    def test_members_are_refused(self, client):
        """Non-admins should get 403."""
        signup_and_login(client, "juan")

        response = client.get("/api/v1/admin")

        assert response.status_code == 403
        assert response.json()["detail"] == "Access denied."

    def test_overview(self, client, admin):
        """The overview lists every member and video."""
        signup_and_login(client, "juan")
        upload(client, "clip")
        login(client, admin.username)

        overview = client.get("/api/v1/admin").json()

        assert {u["username"] for u in overview["users"]} == {"juan", "villamor gelera"}
        assert overview["videos"][0]["owner_username"] == "juan"


class TestModeration:

    def test_ban_toggles_and_blocks_login(self, client, admin):
        """Banned members can't log in until unbanned."""
        member = signup(client, "juan")
        login(client, admin.username)

        banned = client.post(f"/api/v1/admin/users/{member['id']}/ban").json()
        assert banned["banned"] is True
        assert login(client, "juan").status_code == 403

        login(client, admin.username)
        unbanned = client.post(f"/api/v1/admin/users/{member['id']}/ban").json()
        assert unbanned["banned"] is False

    def test_admin_cannot_ban_self(self, client, admin):
        """An admin should not be able to lock themselves out."""
        login(client, admin.username)

        response = client.post(f"/api/v1/admin/users/{admin.id}/ban")

        assert response.status_code == 400

    def test_verify(self, client, admin):
        """Verifying should mark the member as verified."""
        member = signup(client, "juan")
        login(client, admin.username)

        result = client.post(f"/api/v1/admin/users/{member['id']}/verify").json()

        assert result["verified"] is True

    def test_warn(self, client, admin, users):
        """Warnings should be stored on the member."""
        member = signup(client, "juan")
        login(client, admin.username)

        response = client.post(
            f"/api/v1/admin/users/{member['id']}/warn",
            json={"message": "Inappropriate content"},
        )

        assert response.status_code == 200
        assert response.json()["warning_count"] == 1
        assert users.get(member["id"]).warnings[0].message == "Inappropriate content"

    def test_warning_needs_a_message(self, client, admin):
        """A blank warning should be refused."""
        member = signup(client, "juan")
        login(client, admin.username)

        response = client.post(f"/api/v1/admin/users/{member['id']}/warn", json={"message": " "})

        assert response.status_code == 400

    def test_delete_member_keeps_their_videos(self, client, admin, videos):
        """A deleted member's videos stay up with an unknown owner."""
        member = signup_and_login(client, "juan")
        video = upload(client)
        login(client, admin.username)

        response = client.delete(f"/api/v1/admin/users/{member['id']}")
        detail = client.get(f"/api/v1/videos/{video['id']}").json()

        assert response.status_code == 200
        assert detail["video"]["owner_username"] == "Unknown"

    def test_delete_any_video(self, client, admin, videos, media):
        """Admins can delete any video, including its file in the media cloud."""
        signup_and_login(client, "juan")
        video = upload(client)
        public_id = videos.get(video["id"]).public_id
        login(client, admin.username)

        assert client.delete(f"/api/v1/admin/videos/{video['id']}").status_code == 200
        assert videos.list_all() == []
        assert media.get(public_id) is None

    def test_unknown_targets(self, client, admin):
        """Unknown ids should 404."""
        login(client, admin.username)

        assert client.post("/api/v1/admin/users/nobody/verify").status_code == 404
        assert client.delete("/api/v1/admin/videos/nothing").status_code == 404
