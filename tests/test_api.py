"""
HTTP API TESTS

Every endpoint through the real FastAPI app with the database, LLM and
Google OAuth dependencies overridden.
"""
import pytest

from growthforge.config import Settings
from growthforge.models.user import User
from growthforge.routes import users as users_routes
from growthforge.schemas.growth import GrowthItemDraft
from growthforge.services.persister import Persister
from growthforge.services.sessions import issue_session_token

from conftest import auth_headers, make_mental_models

PROTECTED = [
    ("GET", "/api/auth/me"),
    ("GET", "/api/users/me"),
    ("POST", "/api/role-profile"),
    ("GET", "/api/role-profile"),
    ("POST", "/api/growth-plan"),
    ("GET", "/api/growth-items"),
    ("PUT", "/api/growth-items/1/status"),
    ("POST", "/api/skills"),
    ("GET", "/api/skills"),
    ("POST", "/api/reflections"),
    ("GET", "/api/reflections"),
    ("POST", "/api/mental-models"),
    ("GET", "/api/mental-models"),
    ("GET", "/api/mental-models/1"),
    ("GET", "/api/profile/overview"),
]


class TestAuthentication:
    """Session handling."""

    @pytest.mark.parametrize("method, path", PROTECTED)
    async def test_unauthenticated_never_touches_storage(self, client, db_calls, completions, method, path):
        response = await client.request(method, path, json={})
        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"
        assert response.headers["www-authenticate"] == "Bearer"
        assert db_calls["count"] == 0
        assert completions.calls == []

    async def test_bad_token(self, client):
        response = await client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_malformed_header(self, client):
        response = await client.get("/api/users/me", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    async def test_expired_token(self, client, user):
        token = issue_session_token(user, Settings(jwt_secret="test-secret", session_ttl_days=-1))
        response = await client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert "expired" in response.json()["detail"]

    async def test_create_user_sets_session_cookie(self, client):
        response = await client.post("/api/users", json={"email": "new@example.com", "name": "New Person"})
        assert response.status_code == 200
        assert response.json()["email"] == "new@example.com"
        assert "session" in response.cookies

        # Cookie alone authenticates follow-up requests
        me = await client.get("/api/users/me")
        assert me.status_code == 200
        assert me.json()["name"] == "New Person"

    async def test_duplicate_email(self, client, user):
        response = await client.post("/api/users", json={"email": user.email, "name": "Again"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"

    async def test_google_sign_in_links_existing_user(self, client, user, oauth):
        response = await client.post("/api/auth/google", json={"code": "abc", "redirectUri": "http://localhost/cb"})
        assert response.status_code == 200
        body = response.json()["user"]
        assert body["id"] == user.id
        assert body["picture"] == oauth.identity.picture
        assert "session" in response.cookies

        me = await client.get("/api/auth/me")
        assert me.json()["user"]["email"] == oauth.identity.email

    async def test_duplicate_email_race(self, client, user, monkeypatch):
        async def not_taken(db, email):
            return False

        # The pre-check misses the existing row, so the unique index decides
        monkeypatch.setattr(users_routes, "email_taken", not_taken)
        response = await client.post("/api/users", json={"email": user.email, "name": "Racer"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"

    async def test_google_sign_in_prefers_google_id(self, client, user, db, oauth):
        linked = User(email="ada.work@example.com", name="Ada", google_id=oauth.identity.id)
        db.add(linked)
        await db.commit()
        await db.refresh(linked)

        response = await client.post("/api/auth/google", json={"code": "abc", "redirectUri": "http://localhost/cb"})
        assert response.status_code == 200
        assert response.json()["user"]["id"] == linked.id

    async def test_google_sign_in_email_owned_by_other_account(self, client, user, db, oauth):
        user.google_id = "g-someone-else"
        await db.commit()

        response = await client.post("/api/auth/google", json={"code": "abc", "redirectUri": "http://localhost/cb"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"

    async def test_logout_clears_cookie(self, client):
        await client.post("/api/users", json={"email": "bye@example.com", "name": "Bye"})
        response = await client.post("/api/auth/logout")
        assert response.status_code == 200
        assert (await client.get("/api/users/me")).status_code == 401


class TestRoleProfile:
    async def test_generate_and_read(self, client, user, completions, role_profile_json):
        completions.queue(role_profile_json)
        headers = auth_headers(user)

        response = await client.post("/api/role-profile", json={"roleDescription": "Engineering manager"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["archetype"] == "Engineering Manager"

        stored = (await client.get("/api/role-profile", headers=headers)).json()
        assert stored["roleDescription"] == "Engineering manager"
        assert stored["targetProfile"]["skillAreas"][1]["skills"][0]["id"] == "planning"

    async def test_invalid_ai_output_is_502_and_not_stored(self, client, user, completions):
        completions.queue("definitely not json")
        headers = auth_headers(user)

        response = await client.post("/api/role-profile", json={"roleDescription": "Engineering manager"}, headers=headers)
        assert response.status_code == 502
        assert response.json()["error"] == "invalid_ai_response"
        assert (await client.get("/api/role-profile", headers=headers)).json()["targetProfile"] is None

    async def test_short_description_rejected(self, client, user, completions):
        response = await client.post("/api/role-profile", json={"roleDescription": "x"}, headers=auth_headers(user))
        assert response.status_code == 400
        assert response.json()["detail"].startswith("roleDescription")
        assert completions.calls == []

    async def test_whitespace_description_rejected(self, client, user, completions):
        headers = auth_headers(user)
        response = await client.post("/api/role-profile", json={"roleDescription": "     "}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"
        assert completions.calls == []

        stored = (await client.get("/api/role-profile", headers=headers)).json()
        assert stored["roleDescription"] is None
        assert stored["targetProfile"] is None

    async def test_token_for_deleted_user(self, client, completions):
        class Ghost:
            id, email, name, picture = 999, "ghost@example.com", "Ghost", None

        response = await client.post(
            "/api/role-profile", json={"roleDescription": "Engineer"}, headers=auth_headers(Ghost())
        )
        assert response.status_code == 404
        assert completions.calls == []


class TestSkillsAndGrowthPlan:
    async def test_assess_then_plan_then_progress(self, client, user, completions, growth_plan_json):
        headers = auth_headers(user)
        skill = {"skillId": "coaching", "area": "Leadership", "name": "Coaching", "targetLevel": 4, "currentLevel": 2}

        first = await client.post("/api/skills", json=skill, headers=headers)
        assert first.status_code == 200
        again = await client.post("/api/skills", json=dict(skill, currentLevel=3), headers=headers)
        assert again.json()["id"] == first.json()["id"]
        assert again.json()["currentLevel"] == 3

        assessments = (await client.get("/api/skills", headers=headers)).json()["assessments"]
        assert len(assessments) == 1

        completions.queue(growth_plan_json)
        plan = await client.post("/api/growth-plan", headers=headers)
        assert plan.status_code == 200
        items = plan.json()["growthItems"]
        assert len(items) == 3
        assert {i["status"] for i in items} == {"pending"}

        item_id = items[0]["id"]
        moved = await client.put(f"/api/growth-items/{item_id}/status", json={"status": "done"}, headers=headers)
        assert moved.json()["status"] == "done"

        listed = (await client.get("/api/growth-items", headers=headers)).json()["growthItems"]
        assert {i["id"]: i["status"] for i in listed}[item_id] == "done"

    async def test_no_gaps_empty_plan(self, client, user, completions):
        response = await client.post("/api/growth-plan", headers=auth_headers(user))
        assert response.json() == {"growthItems": []}
        assert completions.calls == []

    async def test_level_out_of_range(self, client, user):
        skill = {"skillId": "coaching", "area": "Leadership", "name": "Coaching", "targetLevel": 6, "currentLevel": 2}
        response = await client.post("/api/skills", json=skill, headers=auth_headers(user))
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"

    async def test_unknown_status_rejected(self, client, user):
        response = await client.put("/api/growth-items/1/status", json={"status": "abandoned"}, headers=auth_headers(user))
        assert response.status_code == 400

    async def test_cannot_update_someone_elses_item(self, client, user, other_user, db):
        [item] = await Persister(db).save_growth_items(
            user.id, [GrowthItemDraft(type="book", title="Mine", description="Mine")]
        )
        response = await client.put(
            f"/api/growth-items/{item.id}/status", json={"status": "done"}, headers=auth_headers(other_user)
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestJournal:
    async def test_reflections_newest_first(self, client, user):
        headers = auth_headers(user)
        await client.post("/api/reflections", json={"content": "First"}, headers=headers)
        await client.post("/api/reflections", json={"content": "Second", "type": "weekly_review"}, headers=headers)

        entries = (await client.get("/api/reflections", headers=headers)).json()["reflections"]
        assert [e["content"] for e in entries] == ["Second", "First"]
        assert entries[1]["type"] == "general"

        weekly = (await client.get("/api/reflections?type=weekly_review", headers=headers)).json()["reflections"]
        assert [e["content"] for e in weekly] == ["Second"]

    async def test_mental_models_session(self, client, user, other_user, completions):
        completions.queue(make_mental_models(5))
        headers = auth_headers(user)

        created = await client.post("/api/mental-models", json={"prompt": "Should I switch teams?"}, headers=headers)
        assert created.status_code == 200
        session_id = created.json()["id"]
        assert len(created.json()["models"]) == 5

        fetched = await client.get(f"/api/mental-models/{session_id}", headers=headers)
        assert fetched.json()["prompt"] == "Should I switch teams?"

        hidden = await client.get(f"/api/mental-models/{session_id}", headers=auth_headers(other_user))
        assert hidden.status_code == 404

    async def test_wrong_model_count_is_502(self, client, user, completions):
        completions.queue(make_mental_models(4))
        response = await client.post("/api/mental-models", json={"prompt": "Should I switch teams?"}, headers=auth_headers(user))
        assert response.status_code == 502
        assert response.json()["detail"] == "models: expected 5, got 4"
        listed = await client.get("/api/mental-models", headers=auth_headers(user))
        assert listed.json()["sessions"] == []

        pipeline = (await client.get("/metrics")).json()["pipeline"]
        assert pipeline["mental_models"]["failed"] == {"invalid_ai_response": 1}

    async def test_whitespace_prompt_rejected(self, client, user, completions):
        headers = auth_headers(user)
        response = await client.post("/api/mental-models", json={"prompt": "      "}, headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"].startswith("prompt")
        assert completions.calls == []
        assert (await client.get("/api/mental-models", headers=headers)).json()["sessions"] == []

    async def test_profile_overview(self, client, user):
        headers = auth_headers(user)
        skill = {"skillId": "coaching", "area": "Leadership", "name": "Coaching", "targetLevel": 4, "currentLevel": 4}
        await client.post("/api/skills", json=skill, headers=headers)
        await client.post("/api/reflections", json={"content": "Shipped it"}, headers=headers)

        overview = (await client.get("/api/profile/overview", headers=headers)).json()
        assert len(overview["skills"]) == 1
        assert overview["growthItems"] == []
        assert overview["reflections"][0]["content"] == "Shipped it"


class TestOps:
    async def test_health_and_metrics(self, client):
        assert (await client.get("/health")).json() == {"status": "ok"}
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert "x-correlation-id" in response.headers

    async def test_correlation_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["x-correlation-id"] == "abc-123"


class TestStorageFailures:
    """Database errors on plain reads come back as storage_error."""

    async def test_missing_table_is_storage_error(self, client, user, engine):
        async with engine.begin() as conn:
            await conn.exec_driver_sql("DROP TABLE reflection_entries")

        response = await client.get("/api/reflections", headers=auth_headers(user))
        assert response.status_code == 500
        assert response.json() == {"error": "storage_error", "detail": "Database operation failed"}

    async def test_generation_read_failure(self, client, user, engine, completions):
        async with engine.begin() as conn:
            await conn.exec_driver_sql("DROP TABLE skill_assessments")

        response = await client.post("/api/growth-plan", headers=auth_headers(user))
        assert response.status_code == 500
        assert response.json()["error"] == "storage_error"
        assert completions.calls == []
