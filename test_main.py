# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
SECONS API, HTTP tests
Run:  pytest -v
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from main import app
from secons.core import dependencies
from secons.core.timeutil import utcnow
from secons.repositories import InvitationRepository, NotificationRepository


def _notifications_for(database, uid):
    return NotificationRepository(database).list_for_user(uid)


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health_ok(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["service"] == "secons-api"

    def test_readiness_ok(self, client):
        r = client.get("/health/ready")
        assert r.status_code == 200
        assert r.json()["database"] == "connected"

    def test_readiness_fails_when_db_down(self, client):
        repo = MagicMock()
        repo.verify_connection.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
        with patch("secons.controllers.system_controller.get_user_repo", return_value=repo):
            r = client.get("/health/ready")
        assert r.status_code == 503

    def test_metrics_endpoint(self, client):
        r = client.get("/metrics")
        assert r.status_code == 200
        assert "secons_requests_total" in r.text

    def test_request_id_propagated(self, client):
        r = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert r.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        r = client.get("/health")
        assert r.headers.get("X-Request-ID")


# ============================================
# Envelope & errors
# ============================================
class TestErrors:
    def test_missing_token_is_401(self, client):
        r = client.get("/api/v1/auth/me")
        assert r.status_code == 401
        assert r.json() == {"success": False, "error": "Authentication required"}

    def test_bad_token_is_401(self, client):
        r = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401

    def test_token_without_profile_is_404(self, client, identity):
        token = identity.register("uid-new", "new@edblazon.test")
        r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 404

    def test_deactivated_user_is_403(self, client, make_user):
        user = make_user(active=False)
        r = client.get("/api/v1/auth/me", headers=user["headers"])
        assert r.status_code == 403

    def test_validation_error_is_400(self, client, make_user):
        ga = make_user("ga")
        r = client.post("/api/v1/announcements", json={"title": "x"}, headers=ga["headers"])
        assert r.status_code == 400
        assert r.json()["success"] is False
        assert "content" in r.json()["error"]

    def test_unhandled_error_is_500(self, identity, mail):
        client = TestClient(app, raise_server_exceptions=False)
        with patch.object(dependencies._team_service, "list_teams",
                          side_effect=RuntimeError("boom")):
            r = client.get("/api/v1/teams")
        assert r.status_code == 500
        assert r.json() == {"success": False, "error": "Internal server error"}


# ============================================
# Session
# ============================================
class TestSession:
    def test_ga_status_public(self, client):
        r = client.get("/api/v1/auth/ga-status")
        assert r.status_code == 200
        assert r.json() == {"success": True, "data": {"has_active_ga": False}}

    def test_register_first_ga(self, client, identity):
        token = identity.register("uid-first", "first@edblazon.test", "First GA")
        r = client.post("/api/v1/auth/register-ga", json={"name": "Grace"},
                        headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 201
        data = r.json()["data"]
        assert data["role"] == "ga" and data["name"] == "Grace"
        assert identity.claims["uid-first"] == {"role": "ga", "domain": None}
        assert client.get("/api/v1/auth/ga-status").json()["data"]["has_active_ga"] is True

    def test_register_ga_closed_once_ga_exists(self, client, identity, make_user):
        make_user("ga")
        token = identity.register("uid-late", "late@edblazon.test")
        r = client.post("/api/v1/auth/register-ga", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 409

    def test_get_and_update_me(self, client, make_user):
        user = make_user(name="Old Name")
        r = client.patch("/api/v1/auth/me", headers=user["headers"],
                         json={"name": "New Name", "onboarding_complete": True, "role": "ga"})
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["name"] == "New Name"
        assert data["onboarding_complete"] is True
        assert data["role"] == "student"
        assert client.get("/api/v1/auth/me", headers=user["headers"]).json()["data"]["name"] == "New Name"


# ============================================
# Users
# ============================================
class TestUsers:
    def test_list_requires_admin(self, client, make_user):
        student = make_user()
        assert client.get("/api/v1/users", headers=student["headers"]).status_code == 403

    def test_list_filters(self, client, make_user):
        jga = make_user("jga", "sports")
        make_user("animator", "sports")
        make_user("animator", "club")
        r = client.get("/api/v1/users", params={"role": "animator", "domain": "sports"},
                       headers=jga["headers"])
        assert r.status_code == 200
        assert r.json()["data"]["total"] == 1

    def test_non_admin_can_only_view_self(self, client, make_user):
        a, b = make_user(), make_user()
        assert client.get(f"/api/v1/users/{a['id']}", headers=a["headers"]).status_code == 200
        assert client.get(f"/api/v1/users/{b['id']}", headers=a["headers"]).status_code == 403

    def test_unknown_user_is_404(self, client, make_user):
        ga = make_user("ga")
        assert client.get("/api/v1/users/missing", headers=ga["headers"]).status_code == 404

    def test_ga_changes_role_and_claims_resync(self, client, identity, make_user):
        ga, target = make_user("ga"), make_user()
        r = client.patch(f"/api/v1/users/{target['id']}", headers=ga["headers"],
                         json={"role": "volunteer", "domain": "club"})
        assert r.status_code == 200
        assert r.json()["data"]["role"] == "volunteer"
        assert identity.claims[target["uid"]] == {"role": "volunteer", "domain": "club"}

    def test_ga_cannot_change_own_role(self, client, make_user):
        ga = make_user("ga")
        r = client.patch(f"/api/v1/users/{ga['id']}", headers=ga["headers"], json={"role": "jga"})
        assert r.status_code == 400

    def test_domain_role_requires_domain(self, client, identity, make_user):
        ga, target = make_user("ga"), make_user()
        r = client.patch(f"/api/v1/users/{target['id']}", headers=ga["headers"], json={"role": "jga"})
        assert r.status_code == 400
        assert target["uid"] not in identity.claims

    def test_jga_cannot_patch_users(self, client, make_user):
        jga, target = make_user("jga", "sports"), make_user()
        r = client.patch(f"/api/v1/users/{target['id']}", headers=jga["headers"],
                         json={"is_active": False})
        assert r.status_code == 403

    def test_self_deactivation(self, client, identity, make_user):
        user = make_user()
        r = client.delete(f"/api/v1/users/{user['id']}", headers=user["headers"])
        assert r.status_code == 200
        assert r.json()["data"]["message"] == "Account deleted"
        assert user["uid"] in identity.deleted

    def test_only_ga_deactivates_others(self, client, make_user):
        a, b, ga = make_user(), make_user(), make_user("ga")
        assert client.delete(f"/api/v1/users/{b['id']}", headers=a["headers"]).status_code == 403
        r = client.delete(f"/api/v1/users/{b['id']}", headers=ga["headers"])
        assert r.json()["data"]["message"] == "User deactivated"


# ============================================
# Announcements
# ============================================
class TestAnnouncements:
    def _post(self, client, user, **body):
        payload = {"title": "Kickoff", "content": "<p>See you <b>there</b></p>"}
        payload.update(body)
        return client.post("/api/v1/announcements", json=payload, headers=user["headers"])

    def test_student_cannot_post(self, client, make_user):
        assert self._post(client, make_user()).status_code == 403

    def test_ga_post_notifies_targets_except_creator(self, client, make_user, database):
        ga = make_user("ga")
        anim = make_user("animator", "sports")
        student = make_user()
        r = self._post(client, ga, target_roles=["animator"])
        assert r.status_code == 201
        assert r.json()["data"]["is_read_by_me"] is True

        notes = _notifications_for(database, anim["uid"])
        assert len(notes) == 1
        assert notes[0]["type"] == "announcement"
        assert notes[0]["body"] == "See you there"
        assert _notifications_for(database, student["uid"]) == []
        assert _notifications_for(database, ga["uid"]) == []

    def test_jga_restrictions(self, client, make_user):
        jga = make_user("jga", "literary")
        r = self._post(client, jga, target_roles=["ga", "student"],
                       target_domains=["sports"], pinned=True)
        data = r.json()["data"]
        assert data["target_domains"] == ["literary"]
        assert data["target_roles"] == ["animator", "volunteer"]
        assert data["pinned"] is False

    def test_visibility_follows_targeting(self, client, make_user):
        ga = make_user("ga")
        jga_sports = make_user("jga", "sports")
        jga_lit = make_user("jga", "literary")
        self._post(client, ga, title="Sports JGAs", target_roles=["jga"], target_domains=["sports"])
        self._post(client, ga, title="Everyone")

        def titles(user):
            r = client.get("/api/v1/announcements", headers=user["headers"])
            return [a["title"] for a in r.json()["data"]["announcements"]]

        assert set(titles(jga_sports)) == {"Sports JGAs", "Everyone"}
        assert titles(jga_lit) == ["Everyone"]
        assert len(titles(ga)) == 2

    def test_creator_sees_own_post(self, client, make_user):
        jga = make_user("jga", "club")
        self._post(client, jga, title="Mine")
        r = client.get("/api/v1/announcements", headers=jga["headers"])
        assert [a["title"] for a in r.json()["data"]["announcements"]] == ["Mine"]

    def test_pinned_first_and_pagination(self, client, make_user):
        ga = make_user("ga")
        self._post(client, ga, title="Pinned", pinned=True)
        for i in range(3):
            self._post(client, ga, title=f"Regular {i}")
        r = client.get("/api/v1/announcements", params={"page": 1, "limit": 2},
                       headers=ga["headers"]).json()["data"]
        assert r["announcements"][0]["title"] == "Pinned"
        assert r["total"] == 4 and r["total_pages"] == 2

    def test_mark_read(self, client, make_user):
        ga, student = make_user("ga"), make_user()
        aid = self._post(client, ga).json()["data"]["id"]
        r = client.patch(f"/api/v1/announcements/{aid}", json={"action": "mark_read"},
                         headers=student["headers"])
        assert r.status_code == 200
        listed = client.get("/api/v1/announcements", headers=student["headers"]).json()
        assert listed["data"]["announcements"][0]["is_read_by_me"] is True

    def test_pin_requires_ga(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        aid = self._post(client, ga).json()["data"]["id"]
        body = {"action": "update", "pinned": True}
        assert client.patch(f"/api/v1/announcements/{aid}", json=body,
                            headers=jga["headers"]).status_code == 403
        r = client.patch(f"/api/v1/announcements/{aid}", json=body, headers=ga["headers"])
        assert r.json()["data"]["pinned"] is True

    def test_invalid_action(self, client, make_user):
        ga = make_user("ga")
        aid = self._post(client, ga).json()["data"]["id"]
        r = client.patch(f"/api/v1/announcements/{aid}", json={"action": "archive"},
                         headers=ga["headers"])
        assert r.status_code == 400

    def test_delete(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        aid = self._post(client, ga).json()["data"]["id"]
        assert client.delete(f"/api/v1/announcements/{aid}", headers=jga["headers"]).status_code == 403
        assert client.delete(f"/api/v1/announcements/{aid}", headers=ga["headers"]).status_code == 200
        assert client.delete(f"/api/v1/announcements/{aid}", headers=ga["headers"]).status_code == 404


# ============================================
# Meetings
# ============================================
class TestMeetings:
    WHEN = "2026-03-01T10:00:00Z"

    def _create(self, client, user, **body):
        payload = {"title": "Core sync", "scheduled_at": self.WHEN, "location": "Hall A"}
        payload.update(body)
        return client.post("/api/v1/meetings", json=payload, headers=user["headers"])

    def test_only_ga_creates(self, client, make_user):
        assert self._create(client, make_user("jga", "sports")).status_code == 403

    def test_attendees_resolved_and_notified(self, client, make_user, database):
        ga = make_user("ga")
        jga = make_user("jga", "sports")
        anim = make_user("animator", "sports")
        other = make_user("animator", "club")
        extra = make_user()
        r = self._create(client, ga, attendee_groups=["jga_all", "animator_sports", "bogus"],
                         specific_attendee_ids=[extra["uid"], jga["uid"]])
        assert r.status_code == 201
        attendees = r.json()["data"]["attendees"]
        assert sorted(attendees) == sorted([jga["uid"], anim["uid"], extra["uid"]])

        note = _notifications_for(database, anim["uid"])[0]
        assert note["title"] == "📅 New Meeting: Core sync"
        assert "Hall A" in note["body"]
        assert _notifications_for(database, other["uid"]) == []

    def test_listing_is_scoped_to_attendees(self, client, make_user):
        ga = make_user("ga")
        jga = make_user("jga", "sports")
        student = make_user()
        self._create(client, ga, title="Later", scheduled_at="2026-04-01T10:00:00Z",
                     attendee_groups=["jga_all"])
        self._create(client, ga, title="Sooner", attendee_groups=["jga_all"])
        self._create(client, ga, title="Private")

        def titles(user):
            return [m["title"] for m in
                    client.get("/api/v1/meetings", headers=user["headers"]).json()["data"]]

        assert titles(jga) == ["Sooner", "Later"]
        assert titles(student) == []
        assert len(titles(ga)) == 3

    def test_reschedule_notifies_attendees(self, client, make_user, database):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        mid = self._create(client, ga, attendee_groups=["jga_all"]).json()["data"]["id"]
        client.patch(f"/api/v1/meetings/{mid}", json={"notes": "minutes"}, headers=ga["headers"])
        assert len(_notifications_for(database, jga["uid"])) == 1

        r = client.patch(f"/api/v1/meetings/{mid}", json={"location": "Hall B"},
                         headers=ga["headers"])
        assert r.json()["data"]["location"] == "Hall B"
        assert len(_notifications_for(database, jga["uid"])) == 2

    def test_cancel_notifies_and_deletes(self, client, make_user, database):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        mid = self._create(client, ga, attendee_groups=["all"]).json()["data"]["id"]
        assert client.delete(f"/api/v1/meetings/{mid}", headers=ga["headers"]).status_code == 200
        titles = [n["title"] for n in _notifications_for(database, jga["uid"])]
        assert any(t.startswith("❌") for t in titles)
        assert client.delete(f"/api/v1/meetings/{mid}", headers=ga["headers"]).status_code == 404

    def test_missing_scheduled_at_is_400(self, client, make_user):
        ga = make_user("ga")
        r = client.post("/api/v1/meetings", json={"title": "x"}, headers=ga["headers"])
        assert r.status_code == 400


# ============================================
# Notifications
# ============================================
class TestNotifications:
    @pytest.fixture
    def inbox(self, database):
        return NotificationRepository(database)

    def test_list_with_unread_count(self, client, make_user, inbox):
        user = make_user()
        inbox.create_many([user["uid"]], "system", "One", "b")
        inbox.create_many([user["uid"]], "system", "Two", "b")
        data = client.get("/api/v1/notifications", headers=user["headers"]).json()["data"]
        assert data["unread_count"] == 2
        assert len(data["notifications"]) == 2

    def test_mark_all_read_and_clear(self, client, make_user, inbox):
        user = make_user()
        inbox.create_many([user["uid"]], "system", "One", "b")
        client.patch("/api/v1/notifications", headers=user["headers"])
        assert inbox.unread_count(user["uid"]) == 0
        client.delete("/api/v1/notifications", headers=user["headers"])
        assert inbox.list_for_user(user["uid"]) == []

    def test_single_notification_scoped_to_owner(self, client, make_user, inbox):
        owner, other = make_user(), make_user()
        inbox.create_many([owner["uid"]], "system", "Mine", "b")
        nid = inbox.list_for_user(owner["uid"])[0]["id"]
        assert client.patch(f"/api/v1/notifications/{nid}", headers=other["headers"]).status_code == 404
        assert client.delete(f"/api/v1/notifications/{nid}", headers=other["headers"]).status_code == 404
        assert client.patch(f"/api/v1/notifications/{nid}", headers=owner["headers"]).status_code == 200
        assert client.delete(f"/api/v1/notifications/{nid}", headers=owner["headers"]).status_code == 200


# ============================================
# Invitations
# ============================================
class TestInvitations:
    def _invite(self, client, user, **body):
        payload = {"role": "volunteer", "domain": "sports"}
        payload.update(body)
        return client.post("/api/v1/invitations", json=payload, headers=user["headers"])

    def test_ga_creates_code(self, client, make_user):
        r = self._invite(client, make_user("ga"))
        assert r.status_code == 201
        data = r.json()["data"]
        assert len(data["code"]) == 6
        assert data["role"] == "volunteer" and data["domain"] == "sports"
        expires = datetime.fromisoformat(data["expires_at"])
        assert timedelta(hours=47) < expires - datetime.now(timezone.utc) <= timedelta(hours=48)

    def test_cannot_invite_ga(self, client, make_user):
        assert self._invite(client, make_user("ga"), role="ga").status_code == 400

    def test_inviter_must_outrank_role(self, client, make_user):
        jga = make_user("jga", "sports")
        assert self._invite(client, jga, role="jga").status_code == 403
        assert self._invite(client, jga, role="animator").status_code == 201

    def test_students_cannot_invite(self, client, make_user):
        assert self._invite(client, make_user(), role="student").status_code == 403

    def test_domain_roles_require_domain(self, client, make_user):
        ga = make_user("ga")
        for role in ("jga", "animator", "volunteer"):
            assert self._invite(client, ga, role=role, domain=None).status_code == 400
        assert self._invite(client, ga, role="student", domain=None).status_code == 201

    def test_existing_account_email_conflicts(self, client, make_user):
        ga, existing = make_user("ga"), make_user()
        assert self._invite(client, ga, email=existing["email"]).status_code == 409

    def test_pending_invite_email_conflicts(self, client, make_user):
        ga = make_user("ga")
        assert self._invite(client, ga, email="x@edblazon.test").status_code == 201
        assert self._invite(client, ga, email="X@edblazon.test").status_code == 409

    def test_code_collision_is_409(self, client, make_user):
        ga = make_user("ga")
        with patch("secons.services.invitation_service.generate_access_code",
                   return_value="SAME22"):
            assert self._invite(client, ga).status_code == 201
            assert self._invite(client, ga).status_code == 409

    def test_validate(self, client, make_user):
        code = self._invite(client, make_user("ga")).json()["data"]["code"]
        r = client.get("/api/v1/invitations/validate", params={"code": code.lower()})
        assert r.status_code == 200
        assert r.json()["data"] == {"role": "volunteer", "domain": "sports"}

    def test_validate_bad_format_and_unknown(self, client):
        assert client.get("/api/v1/invitations/validate", params={"code": "ABC"}).status_code == 400
        assert client.get("/api/v1/invitations/validate").status_code == 400
        assert client.get("/api/v1/invitations/validate", params={"code": "ZZZZZZ"}).status_code == 404

    def test_validate_expired(self, client, database):
        InvitationRepository(database).create_invitation(
            "OLD234", "student", None, None, None, "g", utcnow() - timedelta(minutes=1),
        )
        assert client.get("/api/v1/invitations/validate", params={"code": "OLD234"}).status_code == 404

    def test_list_by_status(self, client, make_user):
        ga = make_user("ga")
        self._invite(client, ga)
        self._invite(client, ga)
        r = client.get("/api/v1/invitations", params={"status": "pending"}, headers=ga["headers"])
        assert r.json()["data"]["total"] == 2
        r = client.get("/api/v1/invitations", params={"status": "used"}, headers=ga["headers"])
        assert r.json()["data"]["total"] == 0

    def test_send_email(self, client, make_user, mail, database):
        ga = make_user("ga", name="Grace")
        code = self._invite(client, ga, name="Vik").json()["data"]["code"]
        r = client.post("/api/v1/invitations/send", json={"code": code, "email": "vik@edblazon.test"},
                        headers=ga["headers"])
        assert r.status_code == 200
        assert mail.sent[0]["to"] == "vik@edblazon.test"
        assert code in mail.sent[0]["html"]
        stored = InvitationRepository(database).get_by_code(code)
        assert stored["email"] == "vik@edblazon.test"
        assert stored["last_emailed_at"] is not None

    def test_send_requires_email(self, client, make_user):
        ga = make_user("ga")
        code = self._invite(client, ga).json()["data"]["code"]
        r = client.post("/api/v1/invitations/send", json={"code": code}, headers=ga["headers"])
        assert r.status_code == 400

    def test_redeem_creates_profile(self, client, identity, make_user):
        code = self._invite(client, make_user("ga")).json()["data"]["code"]
        token = identity.register("uid-vol", "vol@edblazon.test", "Vol")
        headers = {"Authorization": f"Bearer {token}"}
        r = client.post("/api/v1/invitations/redeem", json={"code": code}, headers=headers)
        assert r.status_code == 201
        data = r.json()["data"]
        assert data["role"] == "volunteer" and data["domain"] == "sports"
        assert identity.claims["uid-vol"] == {"role": "volunteer", "domain": "sports"}

        # Code is now spent, and the profile exists.
        assert client.get("/api/v1/invitations/validate", params={"code": code}).status_code == 404
        assert client.post("/api/v1/invitations/redeem", json={"code": code},
                           headers=headers).status_code == 409

    def test_redeem_lost_claim_writes_nothing(self, client, identity, make_user, user_repo):
        code = self._invite(client, make_user("ga")).json()["data"]["code"]
        token = identity.register("uid-late", "late@edblazon.test")
        with patch("secons.repositories.invitation_repository.InvitationRepository.mark_used",
                   return_value=False):
            r = client.post("/api/v1/invitations/redeem", json={"code": code},
                            headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 409
        assert user_repo.get_by_uid("uid-late") is None
        assert "uid-late" not in identity.claims

    def test_redeem_used_code(self, client, identity, make_user):
        code = self._invite(client, make_user("ga")).json()["data"]["code"]
        for uid in ("uid-a", "uid-b"):
            token = identity.register(uid, f"{uid}@edblazon.test")
            r = client.post("/api/v1/invitations/redeem", json={"code": code},
                            headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 404


# ============================================
# Teams & Leaderboard
# ============================================
class TestTeams:
    def _seed(self, client, ga):
        return client.post("/api/v1/teams/seed", headers=ga["headers"])

    def test_seed_requires_ga(self, client, make_user):
        assert self._seed(client, make_user("jga", "sports")).status_code == 403

    def test_seed_creates_eighteen_teams(self, client, make_user):
        r = self._seed(client, make_user("ga"))
        assert r.status_code == 200
        teams = r.json()["data"]
        assert len(teams) == 18
        assert teams[0]["semester"] == 2

    def test_award_points_and_reseed(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        team = self._seed(client, ga).json()["data"][0]
        body = {"points": 10, "position": 1, "event_id": "E1"}
        r = client.post(f"/api/v1/teams/{team['id']}/points", json=body, headers=jga["headers"])
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["total_points"] == 10
        assert len(data["event_points"]) == 1

        self._seed(client, ga)
        assert client.get(f"/api/v1/teams/{team['id']}").json()["data"]["total_points"] == 10

    def test_award_points_missing_team(self, client, make_user):
        ga = make_user("ga")
        r = client.post("/api/v1/teams/nope/points",
                        json={"points": 10, "position": 1, "event_id": "E1"}, headers=ga["headers"])
        assert r.status_code == 404

    def test_award_points_requires_admin(self, client, make_user):
        ga, vol = make_user("ga"), make_user("volunteer", "sports")
        team = self._seed(client, ga).json()["data"][0]
        r = client.post(f"/api/v1/teams/{team['id']}/points",
                        json={"points": 1, "position": 3, "event_id": "E1"}, headers=vol["headers"])
        assert r.status_code == 403

    def test_award_points_validation(self, client, make_user):
        ga = make_user("ga")
        team = self._seed(client, ga).json()["data"][0]
        r = client.post(f"/api/v1/teams/{team['id']}/points", json={"points": 1},
                        headers=ga["headers"])
        assert r.status_code == 400

    def test_leaderboard(self, client, make_user):
        ga = make_user("ga")
        teams = self._seed(client, ga).json()["data"]
        leader = teams[-1]
        client.post(f"/api/v1/teams/{leader['id']}/points",
                    json={"points": 25, "position": 1, "event_id": "E1"}, headers=ga["headers"])
        board = client.get("/api/v1/sports/leaderboard", params={"limit": 3}).json()["data"]
        assert len(board) == 3
        assert board[0]["id"] == leader["id"] and board[0]["rank"] == 1
        assert board[1]["semester"] == 2


# ============================================
# Finance
# ============================================
class TestFinance:
    def _submit(self, client, user, **body):
        payload = {"type": "expense", "domain": "sports", "amount": 120.5,
                   "description": "Cones", "category": "equipment"}
        payload.update(body)
        return client.post("/api/v1/finance", json=payload, headers=user["headers"])

    def test_budget_allocation_is_ga_only_and_auto_approved(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        assert self._submit(client, jga, type="budget_allocation").status_code == 403
        r = self._submit(client, ga, type="budget_allocation", amount=1000)
        assert r.status_code == 201
        assert r.json()["data"]["status"] == "approved"

    def test_student_cannot_submit(self, client, make_user):
        assert self._submit(client, make_user()).status_code == 403

    def test_jga_limited_to_own_domain(self, client, make_user):
        jga = make_user("jga", "sports")
        assert self._submit(client, jga, domain="club").status_code == 403
        assert self._submit(client, jga).json()["data"]["status"] == "pending"

    def test_invalid_amount(self, client, make_user):
        assert self._submit(client, make_user("ga"), amount=0).status_code == 400

    def test_listing_scopes(self, client, make_user):
        ga = make_user("ga")
        jga = make_user("jga", "sports")
        anim = make_user("animator", "sports")
        self._submit(client, anim)
        self._submit(client, jga)
        self._submit(client, ga, domain="club")

        def count(user, **params):
            return len(client.get("/api/v1/finance", params=params,
                                  headers=user["headers"]).json()["data"])

        assert count(ga) == 3
        assert count(ga, domain="club") == 1
        assert count(jga) == 2
        assert count(anim) == 1

    def test_status_change_rules(self, client, make_user):
        anim = make_user("animator", "sports")
        other_jga = make_user("jga", "club")
        jga = make_user("jga", "sports")
        tx = self._submit(client, anim).json()["data"]
        url = f"/api/v1/finance/{tx['id']}"
        assert client.patch(url, json={"status": "approved"},
                            headers=other_jga["headers"]).status_code == 403
        r = client.patch(url, json={"status": "approved", "approval_note": "ok"},
                         headers=jga["headers"])
        data = r.json()["data"]
        assert data["status"] == "approved"
        assert data["approved_by"] == jga["uid"]

        r = client.patch(url, json={"amount": 999}, headers=jga["headers"])
        assert r.json()["data"]["amount"] == 120.5

    def test_delete_rules(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        pending = self._submit(client, jga).json()["data"]
        approved = self._submit(client, ga, type="budget_allocation").json()["data"]
        assert client.delete(f"/api/v1/finance/{approved['id']}",
                             headers=jga["headers"]).status_code == 403
        assert client.delete(f"/api/v1/finance/{pending['id']}",
                             headers=jga["headers"]).status_code == 200
        assert client.delete(f"/api/v1/finance/{approved['id']}",
                             headers=ga["headers"]).status_code == 200
        assert client.delete(f"/api/v1/finance/{approved['id']}",
                             headers=ga["headers"]).status_code == 404

    def test_stats_count_approved_expenses_only(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        self._submit(client, ga, type="budget_allocation", amount=1000)
        self._submit(client, ga, type="budget_allocation", amount=500, domain="club")
        tx = self._submit(client, jga, amount=200).json()["data"]
        self._submit(client, jga, amount=50)
        client.patch(f"/api/v1/finance/{tx['id']}", json={"status": "approved"},
                     headers=ga["headers"])

        mine = client.get("/api/v1/finance/stats", headers=jga["headers"]).json()["data"]
        assert mine == {"total_budget": 1000.0, "total_spent": 200.0, "remaining": 800.0}

        everything = client.get("/api/v1/finance/stats", headers=ga["headers"]).json()["data"]
        assert everything["total_budget"] == 1500.0
        assert {d["domain"] for d in everything["domain_breakdown"]} == {"club", "sports"}

    def test_jga_without_domain_sees_nothing(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", None)
        self._submit(client, ga, type="budget_allocation", amount=5000)
        assert client.get("/api/v1/finance", headers=jga["headers"]).status_code == 403
        assert client.get("/api/v1/finance/stats", headers=jga["headers"]).status_code == 403
        dashboard = client.get("/api/v1/dashboard/stats", headers=jga["headers"]).json()["data"]
        assert dashboard["finance"] is None

    def test_stats_require_admin(self, client, make_user):
        assert client.get("/api/v1/finance/stats",
                          headers=make_user("volunteer", "sports")["headers"]).status_code == 403


# ============================================
# Dashboard
# ============================================
class TestDashboard:
    def test_stats_for_ga(self, client, make_user):
        ga = make_user("ga")
        make_user()
        client.post("/api/v1/teams/seed", headers=ga["headers"])
        client.post("/api/v1/announcements", json={"title": "Hi", "content": "All"},
                    headers=ga["headers"])
        data = client.get("/api/v1/dashboard/stats", headers=ga["headers"]).json()["data"]
        assert data["counts"]["total_users"] == 2
        assert data["counts"]["total_teams"] == 18
        assert len(data["leaderboard"]) == 5
        assert data["announcements"][0]["title"] == "Hi"
        assert data["finance"] == {"budget": 0.0, "spent": 0.0, "remaining": 0.0}

    def test_stats_for_student_hide_finance(self, client, make_user):
        student = make_user()
        data = client.get("/api/v1/dashboard/stats", headers=student["headers"]).json()["data"]
        assert data["finance"] is None
        assert data["user"] == {"role": "student", "domain": None}


# ============================================
# Audit log
# ============================================
class TestAudit:
    def _log(self, client, ga, **params):
        r = client.get("/api/v1/audit-logs", params=params, headers=ga["headers"])
        assert r.status_code == 200
        return r.json()["data"]["entries"]

    def test_ga_only(self, client, make_user):
        jga = make_user("jga", "sports")
        assert client.get("/api/v1/audit-logs", headers=jga["headers"]).status_code == 403

    def test_points_awarded(self, client, make_user):
        ga = make_user("ga")
        team = client.post("/api/v1/teams/seed", headers=ga["headers"]).json()["data"][0]
        client.post(f"/api/v1/teams/{team['id']}/points",
                    json={"points": 5, "position": 2, "event_id": "E9"}, headers=ga["headers"])
        entry = self._log(client, ga, action="POINTS_AWARDED")[0]
        assert entry["actor_uid"] == ga["uid"]
        assert entry["target_id"] == team["id"]
        assert entry["details"]["points"] == 5

    def test_role_change_and_deactivation(self, client, make_user):
        ga, target = make_user("ga"), make_user()
        client.patch(f"/api/v1/users/{target['id']}", headers=ga["headers"],
                     json={"role": "volunteer", "domain": "club"})
        client.delete(f"/api/v1/users/{target['id']}", headers=ga["headers"])

        changed = self._log(client, ga, action="ROLE_CHANGED")[0]
        assert changed["details"] == {"from": "student", "to": "volunteer", "domain": "club"}
        gone = self._log(client, ga, action="USER_DEACTIVATED")[0]
        assert gone["severity"] == "WARNING"
        assert [e["action"] for e in self._log(client, ga, target_id=target["id"])] == [
            "USER_DEACTIVATED", "ROLE_CHANGED",
        ]

    def test_invitation_lifecycle(self, client, identity, make_user):
        ga = make_user("ga")
        invitation = client.post("/api/v1/invitations", json={"role": "volunteer", "domain": "sports"},
                                 headers=ga["headers"]).json()["data"]
        client.post("/api/v1/invitations/send",
                    json={"code": invitation["code"], "email": "new@edblazon.test"},
                    headers=ga["headers"])
        token = identity.register("uid-new", "new@edblazon.test")
        client.post("/api/v1/invitations/redeem", json={"code": invitation["code"]},
                    headers={"Authorization": f"Bearer {token}"})
        actions = [e["action"] for e in self._log(client, ga, target_id=invitation["id"])]
        assert actions == ["INVITATION_ACCEPTED", "INVITATION_SENT", "INVITATION_CREATED"]

    def test_expense_approval(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        tx = client.post("/api/v1/finance", headers=jga["headers"],
                         json={"type": "expense", "domain": "sports", "amount": 80,
                               "description": "Nets", "category": "equipment"}).json()["data"]
        client.patch(f"/api/v1/finance/{tx['id']}", json={"status": "approved"},
                     headers=ga["headers"])
        entry = self._log(client, ga, action="EXPENSE_APPROVED")[0]
        assert entry["target_id"] == tx["id"]
        assert entry["details"]["amount"] == 80

    def test_meeting_scheduled(self, client, make_user):
        ga = make_user("ga")
        client.post("/api/v1/meetings", headers=ga["headers"],
                    json={"title": "Core sync", "scheduled_at": "2026-03-01T10:00:00Z"})
        assert self._log(client, ga, action="MEETING_SCHEDULED")[0]["details"]["title"] == "Core sync"

    def test_failed_write_does_not_fail_request(self, client, make_user):
        ga = make_user("ga")
        team = client.post("/api/v1/teams/seed", headers=ga["headers"]).json()["data"][0]
        with patch("secons.repositories.audit_repository.AuditRepository.record",
                   side_effect=OperationalError("INSERT", {}, Exception("down"))):
            r = client.post(f"/api/v1/teams/{team['id']}/points",
                            json={"points": 5, "position": 2, "event_id": "E9"},
                            headers=ga["headers"])
        assert r.status_code == 200
        assert self._log(client, ga, action="POINTS_AWARDED") == []


# ============================================
# Events
# ============================================
class TestEvents:
    START = "2026-11-02T09:00:00Z"
    END = "2026-11-02T17:00:00Z"

    def _create(self, client, user, **body):
        payload = {"title": "Relay", "category": "sports", "description": "4x100",
                   "venue": "Track", "start_at": self.START, "end_at": self.END,
                   "jga_domain": "sports"}
        payload.update(body)
        return client.post("/api/v1/events", json=payload, headers=user["headers"])

    def test_only_admins_create(self, client, make_user):
        assert self._create(client, make_user()).status_code == 403
        r = self._create(client, make_user("jga", "sports"))
        assert r.status_code == 201
        assert r.json()["data"]["status"] == "draft"

    def test_end_before_start_is_400(self, client, make_user):
        ga = make_user("ga")
        assert self._create(client, ga, end_at="2026-11-01T09:00:00Z").status_code == 400
        assert self._create(client, ga, category="chess").status_code == 400
        event = self._create(client, ga).json()["data"]
        r = client.patch(f"/api/v1/events/{event['id']}", json={"end_at": "2026-11-01T09:00:00Z"},
                         headers=ga["headers"])
        assert r.status_code == 400

    def test_public_listing_hides_drafts(self, client, make_user):
        ga = make_user("ga")
        draft = self._create(client, ga, title="Draft").json()["data"]
        self._create(client, ga, title="Live", status="published")

        public = client.get("/api/v1/events").json()["data"]
        assert [e["title"] for e in public["events"]] == ["Live"]
        hidden = client.get("/api/v1/events", params={"status": "draft"}).json()["data"]
        assert [e["title"] for e in hidden["events"]] == ["Live"]
        admin = client.get("/api/v1/events", headers=ga["headers"]).json()["data"]
        assert admin["total"] == 2

        assert client.get(f"/api/v1/events/{draft['id']}").status_code == 404
        assert client.get(f"/api/v1/events/{draft['id']}", headers=ga["headers"]).status_code == 200

    def test_publish_broadcasts(self, client, make_user, database):
        ga, student = make_user("ga"), make_user()
        event = self._create(client, ga).json()["data"]
        assert _notifications_for(database, student["uid"]) == []

        r = client.patch(f"/api/v1/events/{event['id']}", json={"status": "published"},
                         headers=ga["headers"])
        assert r.status_code == 200
        note = _notifications_for(database, student["uid"])[0]
        assert note["title"] == "Event Published: Relay"
        assert note["type"] == "system"
        assert note["link"] == "/all-events"
        assert _notifications_for(database, ga["uid"]) == []

    def test_create_published_broadcasts(self, client, make_user, database):
        ga, student = make_user("ga"), make_user()
        self._create(client, ga, status="published")
        assert _notifications_for(database, student["uid"])[0]["title"] == "New Event: Relay"

    def test_delete_is_ga_only(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        event = self._create(client, ga).json()["data"]
        url = f"/api/v1/events/{event['id']}"
        assert client.delete(url, headers=jga["headers"]).status_code == 403
        assert client.delete(url, headers=ga["headers"]).status_code == 200
        assert client.delete(url, headers=ga["headers"]).status_code == 404

    def test_bulk_reports_bad_rows(self, client, make_user):
        ga = make_user("ga")
        rows = [
            {"title": "Quiz", "category": "literary", "venue": "Library", "start_at": self.START,
             "end_at": self.END, "jga_domain": "literary"},
            {"title": "Dance", "category": "ballet", "venue": "Hall", "start_at": self.START,
             "end_at": self.END, "jga_domain": "performing_creative_arts"},
            {"title": "Debate"},
        ]
        assert client.post("/api/v1/events/bulk", json={"events": rows},
                           headers=make_user("jga", "sports")["headers"]).status_code == 403
        r = client.post("/api/v1/events/bulk", json={"events": rows}, headers=ga["headers"])
        assert r.status_code == 201
        data = r.json()["data"]
        assert data["success"] == 1 and data["failed"] == 2
        assert data["errors"][0].startswith("Row 2: Invalid category")
        assert data["errors"][1].startswith("Row 3: Missing required fields")

        events = client.get("/api/v1/events", headers=ga["headers"]).json()["data"]["events"]
        assert events[0]["title"] == "Quiz" and events[0]["status"] == "draft"

    def test_bulk_limit(self, client, make_user):
        rows = [{"title": f"E{i}"} for i in range(101)]
        r = client.post("/api/v1/events/bulk", json={"events": rows},
                        headers=make_user("ga")["headers"])
        assert r.status_code == 400

    def test_categories(self, client, make_user):
        ga = make_user("ga")
        slugs = [c["slug"] for c in client.get("/api/v1/events/categories").json()["data"]]
        assert slugs == ["literary", "performing_creative_arts", "sports"]

        r = client.post("/api/v1/events/categories", json={"name": "Quiz Bowl"}, headers=ga["headers"])
        assert r.status_code == 201
        assert r.json()["data"]["slug"] == "quiz_bowl"
        assert client.post("/api/v1/events/categories", json={"name": "quiz bowl"},
                           headers=ga["headers"]).status_code == 409

        assert client.delete("/api/v1/events/categories/sports",
                             headers=ga["headers"]).status_code == 400
        assert client.delete("/api/v1/events/categories/quiz_bowl",
                             headers=ga["headers"]).status_code == 200
        assert client.delete("/api/v1/events/categories/quiz_bowl",
                             headers=ga["headers"]).status_code == 404

    def test_domains(self, client, make_user):
        ga = make_user("ga")
        self._create(client, ga, title="Relay", status="published")
        self._create(client, ga, title="Essay", category="literary", jga_domain="literary")
        self._create(client, ga, title="Gone", status="cancelled")
        assert client.get("/api/v1/events/domains",
                          headers=make_user()["headers"]).status_code == 403
        data = client.get("/api/v1/events/domains", headers=ga["headers"]).json()["data"]
        assert data["domains"] == ["literary", "sports"]
        assert data["events_by_domain"]["sports"] == [{"title": "Relay", "category": "sports"}]


# ============================================
# Sports matches
# ============================================
class TestMatches:
    @pytest.fixture
    def ga(self, make_user):
        return make_user("ga")

    @pytest.fixture
    def teams(self, client, ga):
        return client.post("/api/v1/teams/seed", headers=ga["headers"]).json()["data"]

    def _create(self, client, user, teams, **body):
        payload = {"team1_id": teams[0]["id"], "team2_id": teams[1]["id"], "sport_name": "Football"}
        payload.update(body)
        return client.post("/api/v1/sports/matches", json=payload, headers=user["headers"])

    def _update(self, client, user, match, **body):
        return client.patch(f"/api/v1/sports/matches/{match['id']}", json=body,
                            headers=user["headers"])

    def _points(self, client, team):
        return client.get(f"/api/v1/teams/{team['id']}").json()["data"]["total_points"]

    def test_create_validation(self, client, make_user, ga, teams):
        assert self._create(client, make_user(), teams).status_code == 403
        assert self._create(client, ga, teams, team2_id=teams[0]["id"]).status_code == 400
        assert self._create(client, ga, teams, team2_id="nope").status_code == 400
        assert self._create(client, ga, teams, event_id="nope").status_code == 404

    def test_sport_event_found_or_created(self, client, ga, teams):
        first = self._create(client, ga, teams).json()["data"]
        second = self._create(client, ga, teams, sport_name="football").json()["data"]
        assert first["event_id"] == second["event_id"]

        event = client.get(f"/api/v1/events/{first['event_id']}").json()["data"]
        assert event["title"] == "Football"
        assert event["category"] == "sports" and event["status"] == "ongoing"

        history = client.get(f"/api/v1/sports/matches/{first['id']}").json()["data"]["score_history"]
        assert [h["reason"] for h in history] == ["Match Initialized"]

    def test_completion_awards_winner_once(self, client, ga, teams):
        match = self._create(client, ga, teams).json()["data"]
        r = self._update(client, ga, match, score_team1=3, score_team2=1, note="Half time")
        assert r.status_code == 200
        assert r.json()["data"]["score_history"][-1]["reason"] == "Half time"

        done = self._update(client, ga, match, status="completed").json()["data"]
        assert done["winner_id"] == teams[0]["id"]
        assert done["points_awarded"] is True
        assert self._points(client, teams[0]) == 1

        assert self._update(client, ga, match, status="completed").status_code == 200
        assert self._points(client, teams[0]) == 1
        assert self._points(client, teams[1]) == 0

        r = self._update(client, ga, match, score_team1=4)
        assert r.status_code == 400
        assert r.json()["error"] == "Match is finalized. Scores cannot be modified."

    def test_draw_awards_nothing(self, client, ga, teams):
        match = self._create(client, ga, teams, score_team1=2, score_team2=2).json()["data"]
        done = self._update(client, ga, match, status="completed").json()["data"]
        assert done["winner_id"] is None
        assert done["points_awarded"] is True
        assert self._points(client, teams[0]) == 0 and self._points(client, teams[1]) == 0

    def test_explicit_winner(self, client, ga, teams):
        match = self._create(client, ga, teams).json()["data"]
        assert self._update(client, ga, match, status="completed", winner="nope").status_code == 400
        done = self._update(client, ga, match, status="completed",
                            winner=teams[1]["id"]).json()["data"]
        assert done["winner_id"] == teams[1]["id"]
        assert self._points(client, teams[1]) == 1

    def test_event_status_follows_matches(self, client, ga, teams):
        first = self._create(client, ga, teams).json()["data"]
        second = self._create(client, ga, teams, team1_id=teams[2]["id"]).json()["data"]
        event_url = f"/api/v1/events/{first['event_id']}"

        self._update(client, ga, first, status="live")
        self._update(client, ga, second, status="live")
        self._update(client, ga, first, status="completed")
        assert client.get(event_url).json()["data"]["status"] == "ongoing"
        self._update(client, ga, second, status="completed")
        assert client.get(event_url).json()["data"]["status"] == "completed"

    def test_score_update_notifies(self, client, make_user, ga, teams, database):
        student = make_user()
        match = self._create(client, ga, teams).json()["data"]
        self._update(client, ga, match, score_team1=1)
        note = _notifications_for(database, student["uid"])[0]
        assert note["title"] == f"Match Update: {teams[0]['name']} vs {teams[1]['name']}"
        assert note["body"] == "Score updated: 1 - 0"
        assert note["link"] == "/sports"

    def test_list_filters(self, client, ga, teams):
        self._create(client, ga, teams)
        self._create(client, ga, teams, sport_name="Kabaddi", status="live")
        assert len(client.get("/api/v1/sports/matches").json()["data"]) == 2
        live = client.get("/api/v1/sports/matches", params={"status": "live"}).json()["data"]
        assert [m["sport_name"] for m in live] == ["Kabaddi"]
        foot = client.get("/api/v1/sports/matches", params={"sport": "foot"}).json()["data"]
        assert [m["sport_name"] for m in foot] == ["Football"]

    def test_delete(self, client, ga, teams):
        match = self._create(client, ga, teams).json()["data"]
        url = f"/api/v1/sports/matches/{match['id']}"
        assert client.delete(url, headers=ga["headers"]).status_code == 200
        assert client.get(url).status_code == 404

    def test_bulk_import(self, client, ga, teams):
        event = client.post("/api/v1/events", headers=ga["headers"], json={
            "title": "Cricket", "category": "sports", "description": "League", "venue": "Oval",
            "start_at": "2026-11-02T09:00:00Z", "end_at": "2026-11-02T17:00:00Z",
            "jga_domain": "sports",
        }).json()["data"]
        r = client.post("/api/v1/sports/bulk", headers=ga["headers"], json={
            "event_id": event["id"],
            "fixtures": [{"format": "knockout"}],
            "matches": [
                {"team1_name": teams[0]["name"], "team2_name": teams[1]["name"].lower(),
                 "sport_name": "Cricket"},
                {"team1_name": "Nobody", "team2_name": teams[1]["name"]},
            ],
        })
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["fixtures"] == 1 and data["matches"] == 1
        assert data["errors"] == [f"Could not resolve teams for match: Nobody vs {teams[1]['name']}"]

        match = client.get("/api/v1/sports/matches").json()["data"][0]
        assert match["event_id"] == event["id"] and match["fixture_id"]


# ============================================
# Chat
# ============================================
class TestChat:
    def _thread(self, client, user, **body):
        payload = {"type": "custom", "name": "Ops"}
        payload.update(body)
        return client.post("/api/v1/chat/threads", json=payload, headers=user["headers"])

    def _send(self, client, user, thread, content="hello"):
        return client.post(f"/api/v1/chat/threads/{thread['id']}/messages",
                           json={"content": content}, headers=user["headers"])

    def _messages(self, client, user, thread, **params):
        return client.get(f"/api/v1/chat/threads/{thread['id']}/messages", params=params,
                          headers=user["headers"])

    def test_creation_rights(self, client, make_user):
        student, anim = make_user(), make_user("animator", "sports")
        assert self._thread(client, student).status_code == 403
        assert self._thread(client, anim, type="workspace").status_code == 403
        assert self._thread(client, anim, type="volunteer").status_code == 201
        assert self._thread(client, student, type="event").status_code == 201

    def test_workspace_members(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        make_user("animator", "sports")
        thread = self._thread(client, jga, type="workspace").json()["data"]
        assert sorted(thread["participants"]) == sorted([ga["uid"], jga["uid"]])

    def test_domain_thread_members(self, client, make_user):
        jga = make_user("jga", "sports")
        anim = make_user("animator", "sports")
        make_user("animator", "club")
        assert self._thread(client, jga, type="domain").status_code == 400
        thread = self._thread(client, jga, type="domain", domain="sports").json()["data"]
        assert sorted(thread["participants"]) == sorted([jga["uid"], anim["uid"]])

    def test_message_notifies_with_chat_type(self, client, make_user, database):
        ga, vol = make_user("ga", name="Grace"), make_user("volunteer", "sports")
        thread = self._thread(client, ga, participant_uids=[vol["uid"]]).json()["data"]
        r = self._send(client, ga, thread, "Kickoff at 5")
        assert r.status_code == 201

        note = _notifications_for(database, vol["uid"])[0]
        assert note["type"] == "chat"
        assert note["title"] == "Message from Grace"
        assert note["body"] == "Kickoff at 5"
        assert note["link"] == f"/chat?thread={thread['id']}"
        assert _notifications_for(database, ga["uid"]) == []

    def test_non_participants_are_refused(self, client, make_user):
        ga, outsider = make_user("ga"), make_user()
        thread = self._thread(client, ga).json()["data"]
        url = f"/api/v1/chat/threads/{thread['id']}"
        assert client.get(url, headers=outsider["headers"]).status_code == 403
        assert self._messages(client, outsider, thread).status_code == 403
        assert self._send(client, outsider, thread).status_code == 403
        assert client.get("/api/v1/chat/threads/missing", headers=ga["headers"]).status_code == 404

    def test_thread_details(self, client, make_user):
        ga, vol = make_user("ga", name="Grace"), make_user("volunteer", "sports", name="Vik")
        thread = self._thread(client, ga, participant_uids=[vol["uid"]]).json()["data"]
        data = client.get(f"/api/v1/chat/threads/{thread['id']}", headers=vol["headers"]).json()["data"]
        assert [p["name"] for p in data["participant_details"]] == ["Grace", "Vik"]

    def test_unread_counts_and_mark_read(self, client, make_user):
        ga, vol = make_user("ga", name="Grace"), make_user("volunteer", "sports")
        thread = self._thread(client, ga, participant_uids=[vol["uid"]]).json()["data"]
        self._send(client, ga, thread, "one")
        self._send(client, ga, thread, "two")

        listed = client.get("/api/v1/chat/threads", headers=vol["headers"]).json()["data"][0]
        assert listed["unread_count"] == 2
        assert listed["name"] == "Grace"
        assert listed["last_message"]["content"] == "two"
        assert client.get("/api/v1/chat/threads", headers=ga["headers"]).json()["data"][0]["unread_count"] == 0

        r = client.post(f"/api/v1/chat/threads/{thread['id']}/read", headers=vol["headers"])
        assert r.json()["data"] == {"marked_read": 2}
        listed = client.get("/api/v1/chat/threads", headers=vol["headers"]).json()["data"][0]
        assert listed["unread_count"] == 0

    def test_empty_message_is_400(self, client, make_user):
        ga = make_user("ga")
        thread = self._thread(client, ga).json()["data"]
        assert self._send(client, ga, thread, "   ").status_code == 400

    def test_edit_rules(self, client, make_user):
        ga, vol = make_user("ga"), make_user("volunteer", "sports")
        thread = self._thread(client, ga, participant_uids=[vol["uid"]]).json()["data"]
        message = self._send(client, ga, thread, "tpyo").json()["data"]
        url = f"/api/v1/chat/threads/{thread['id']}/messages/{message['id']}"

        assert client.patch(url, json={"content": "x"}, headers=vol["headers"]).status_code == 403
        r = client.patch(url, json={"content": ""}, headers=ga["headers"])
        assert r.status_code == 400 and r.json()["error"] == "No changes provided"
        r = client.patch(url, json={"content": "typo"}, headers=ga["headers"])
        assert r.json()["data"]["content"] == "typo" and r.json()["data"]["edited"] is True

        with patch("secons.services.chat_service.utcnow",
                   return_value=utcnow() + timedelta(minutes=16)):
            r = client.patch(url, json={"content": "late"}, headers=ga["headers"])
        assert r.status_code == 400 and r.json()["error"] == "Edit window expired (15 min)"

    def test_delete_masks_content(self, client, make_user):
        ga, vol = make_user("ga"), make_user("volunteer", "sports")
        thread = self._thread(client, ga, participant_uids=[vol["uid"]]).json()["data"]
        mine = self._send(client, ga, thread, "secret").json()["data"]
        theirs = self._send(client, vol, thread, "oops").json()["data"]
        base = f"/api/v1/chat/threads/{thread['id']}/messages"

        assert client.delete(f"{base}/{mine['id']}", headers=vol["headers"]).status_code == 403
        assert client.delete(f"{base}/{mine['id']}", headers=ga["headers"]).status_code == 200
        assert client.delete(f"{base}/{theirs['id']}", headers=ga["headers"]).status_code == 200
        assert client.patch(f"{base}/{mine['id']}", json={"content": "x"},
                            headers=ga["headers"]).status_code == 400

        contents = [m["content"] for m in self._messages(client, vol, thread).json()["data"]["messages"]]
        assert contents == ["This message was deleted", "This message was deleted"]

    def test_message_paging(self, client, make_user):
        ga = make_user("ga")
        thread = self._thread(client, ga).json()["data"]
        for content in ("a", "b", "c"):
            self._send(client, ga, thread, content)

        page = self._messages(client, ga, thread, limit=2).json()["data"]
        assert [m["content"] for m in page["messages"]] == ["b", "c"]
        assert page["has_more"] is True
        older = self._messages(client, ga, thread, limit=2, cursor=page["cursor"]).json()["data"]
        assert [m["content"] for m in older["messages"]] == ["a"]
        assert older["has_more"] is False

        newer = self._messages(client, ga, thread, after=older["cursor"]).json()["data"]
        assert [m["content"] for m in newer["messages"]] == ["b", "c"]
        assert self._messages(client, ga, thread, cursor="yesterday").status_code == 400

    def test_update_thread(self, client, make_user):
        ga, jga = make_user("ga"), make_user("jga", "sports")
        vol = make_user("volunteer", "sports")
        thread = self._thread(client, jga, type="volunteer").json()["data"]
        url = f"/api/v1/chat/threads/{thread['id']}"

        assert client.patch(url, json={"name": "X"}, headers=vol["headers"]).status_code == 403
        r = client.patch(url, json={"name": "Crew", "add_participants": [vol["uid"]]},
                         headers=jga["headers"])
        assert r.json()["data"]["name"] == "Crew"
        assert vol["uid"] in r.json()["data"]["participants"]

        client.patch(url, json={"is_archived": True}, headers=ga["headers"])
        assert client.get("/api/v1/chat/threads", headers=jga["headers"]).json()["data"] == []
