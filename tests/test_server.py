"""Tests for the HTTP endpoints."""

from datetime import datetime, timezone

from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

import siteaudit.server
from siteaudit.auth import get_auth_check, secret_matches
from siteaudit.db import get_gateway, get_sql_gateway
from siteaudit.db.models import AgentSkill, PromptLog, Provider

UPDATED = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def skill_row(slug: str, category: str, **extra) -> dict:
    row = {
        "agent_slug": slug,
        "agent_name": slug.replace("-", " ").title(),
        "category": category,
        "active": True,
        "version": 1,
        "updated_at": UPDATED,
    }
    row.update(extra)
    return row


def skill_record() -> AgentSkill:
    return AgentSkill(
        id="skill-1",
        agent_slug="score",
        agent_name="Score Agent",
        category="pipeline",
        system_prompt="You are the Score Agent.",
        output_schema={"overall": "number"},
        max_tokens=8192,
        temperature=0.3,
        version=2,
        created_at=UPDATED,
        updated_at=UPDATED,
    )


class FakeGateway:
    """Gateway double recording every call it receives."""

    def __init__(self, rows=None):
        self.rows = rows or []
        self.calls = []

    async def list_skills(self):
        self.calls.append("list_skills")
        return self.rows

    async def create_prompt_log(self, data):
        self.calls.append(("create_prompt_log", data))


class FailingGateway(FakeGateway):
    async def list_skills(self):
        raise SQLAlchemyError("database is unavailable")


class FakeSQLGateway:
    def __init__(self, skill=None, logs=None):
        self.skill = skill
        self.logs = logs or []
        self.calls = []

    async def get_skill(self, agent_slug):
        self.calls.append(("get_skill", agent_slug))
        return self.skill

    async def list_prompt_logs(self, refresh_id):
        self.calls.append(("list_prompt_logs", refresh_id))
        return self.logs


class DenyAll:
    async def is_admin(self) -> bool:
        return False


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data


class TestSkillListing:
    """Tests for GET /api/admin/settings/skills."""

    def test_unauthenticated_returns_401_without_query(self, client, app):
        gateway = FakeGateway([skill_row("score", "pipeline")])
        app.dependency_overrides[get_gateway] = lambda: gateway

        response = client.get("/api/admin/settings/skills")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert gateway.calls == []

    def test_wrong_cookie_returns_401(self, client, app):
        gateway = FakeGateway()
        app.dependency_overrides[get_gateway] = lambda: gateway

        response = client.get(
            "/api/admin/settings/skills",
            headers={"Cookie": "admin_token=not-the-secret"},
        )

        assert response.status_code == 401
        assert gateway.calls == []

    def test_auth_check_override_is_honoured(self, admin_client, app):
        gateway = FakeGateway()
        app.dependency_overrides[get_gateway] = lambda: gateway
        app.dependency_overrides[get_auth_check] = lambda: DenyAll()

        response = admin_client.get("/api/admin/settings/skills")

        assert response.status_code == 401
        assert gateway.calls == []

    def test_lists_skills_with_camel_case_keys(self, admin_client, app):
        gateway = FakeGateway([skill_row("score", "pipeline", version=3)])
        app.dependency_overrides[get_gateway] = lambda: gateway

        response = admin_client.get("/api/admin/settings/skills")

        assert response.status_code == 200
        skills = response.json()["skills"]
        assert len(skills) == 1
        assert skills[0]["agentSlug"] == "score"
        assert skills[0]["agentName"] == "Score"
        assert skills[0]["category"] == "pipeline"
        assert skills[0]["active"] is True
        assert skills[0]["version"] == 3
        assert skills[0]["updatedAt"].startswith("2025-03-01T12:00:00")
        assert gateway.calls == ["list_skills"]

    def test_system_prompt_never_returned(self, admin_client, app):
        rows = [
            skill_row("score", "pipeline", system_prompt="SECRET PROMPT", id="abc"),
            skill_row("creative-modern", "creative", systemPrompt="ALSO SECRET"),
        ]
        app.dependency_overrides[get_gateway] = lambda: FakeGateway(rows)

        response = admin_client.get("/api/admin/settings/skills")

        assert response.status_code == 200
        assert "SECRET" not in response.text
        for skill in response.json()["skills"]:
            assert set(skill) == {
                "agentSlug",
                "agentName",
                "category",
                "active",
                "version",
                "updatedAt",
            }

    def test_gateway_order_is_preserved(self, admin_client, app):
        rows = [
            skill_row("creative-classy", "creative"),
            skill_row("creative-modern", "creative"),
            skill_row("industry-seo", "pipeline"),
            skill_row("score", "pipeline"),
        ]
        app.dependency_overrides[get_gateway] = lambda: FakeGateway(rows)

        response = admin_client.get("/api/admin/settings/skills")

        slugs = [s["agentSlug"] for s in response.json()["skills"]]
        assert slugs == ["creative-classy", "creative-modern", "industry-seo", "score"]

    def test_empty_table_returns_empty_list(self, admin_client, app):
        app.dependency_overrides[get_gateway] = lambda: FakeGateway([])

        response = admin_client.get("/api/admin/settings/skills")

        assert response.status_code == 200
        assert response.json() == {"skills": []}

    def test_real_gateway_on_fresh_database(self, admin_client):
        response = admin_client.get("/api/admin/settings/skills")

        assert response.status_code == 200
        assert response.json() == {"skills": []}

    def test_naive_timestamps_are_sent_as_utc(self, admin_client, app):
        # Rows read back from SQLite carry no offset
        naive = UPDATED.replace(tzinfo=None)
        app.dependency_overrides[get_gateway] = lambda: FakeGateway(
            [skill_row("score", "pipeline", updated_at=naive)]
        )

        response = admin_client.get("/api/admin/settings/skills")

        assert response.json()["skills"][0]["updatedAt"] == "2025-03-01T12:00:00Z"

    def test_gateway_failure_is_server_error(self, app):
        app.dependency_overrides[get_gateway] = lambda: FailingGateway()

        with TestClient(app, raise_server_exceptions=False) as failing_client:
            failing_client.headers["Cookie"] = "admin_token=s3cret"
            response = failing_client.get("/api/admin/settings/skills")

        assert response.status_code == 500
        assert "skills" not in response.text


class TestSkillDetail:
    """Tests for GET /api/admin/settings/skills/{slug}."""

    def test_requires_admin(self, client, app):
        gateway = FakeSQLGateway(skill_record())
        app.dependency_overrides[get_sql_gateway] = lambda: gateway

        response = client.get("/api/admin/settings/skills/score")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert gateway.calls == []

    def test_unknown_slug_is_404(self, admin_client, app):
        gateway = FakeSQLGateway(skill_record())
        app.dependency_overrides[get_sql_gateway] = lambda: gateway

        response = admin_client.get("/api/admin/settings/skills/not-an-agent")

        assert response.status_code == 404
        assert response.json() == {"error": "Invalid skill slug"}
        assert gateway.calls == []

    def test_missing_skill_is_404(self, admin_client, app):
        app.dependency_overrides[get_sql_gateway] = lambda: FakeSQLGateway(None)

        response = admin_client.get("/api/admin/settings/skills/industry-seo")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_returns_full_record(self, admin_client, app):
        app.dependency_overrides[get_sql_gateway] = lambda: FakeSQLGateway(skill_record())

        response = admin_client.get("/api/admin/settings/skills/score")

        assert response.status_code == 200
        data = response.json()
        assert data["agentSlug"] == "score"
        assert data["systemPrompt"] == "You are the Score Agent."
        assert data["outputSchema"] == {"overall": "number"}
        assert data["maxTokens"] == 8192
        assert data["version"] == 2

    def test_timestamps_carry_utc_offset(self, admin_client, app):
        skill = skill_record()
        skill.created_at = UPDATED.replace(tzinfo=None)
        skill.updated_at = UPDATED.replace(tzinfo=None)
        app.dependency_overrides[get_sql_gateway] = lambda: FakeSQLGateway(skill)

        data = admin_client.get("/api/admin/settings/skills/score").json()

        assert data["createdAt"] == "2025-03-01T12:00:00Z"
        assert data["updatedAt"] == "2025-03-01T12:00:00Z"


class TestPromptLogReview:
    """Tests for GET /api/admin/refreshes/{refresh_id}/prompt-logs."""

    def test_requires_admin(self, client, app):
        gateway = FakeSQLGateway()
        app.dependency_overrides[get_sql_gateway] = lambda: gateway

        response = client.get("/api/admin/refreshes/r1/prompt-logs")

        assert response.status_code == 401
        assert gateway.calls == []

    def test_lists_logs_for_refresh(self, admin_client, app):
        log = PromptLog(
            id="log-1",
            refresh_id="r1",
            step="screenshot-analysis",
            provider=Provider.CLAUDE,
            model="claude-sonnet-4",
            prompt_text="prompt",
            response_text="response",
            created_at=UPDATED,
        )
        gateway = FakeSQLGateway(logs=[log])
        app.dependency_overrides[get_sql_gateway] = lambda: gateway

        response = admin_client.get("/api/admin/refreshes/r1/prompt-logs")

        assert response.status_code == 200
        logs = response.json()["logs"]
        assert gateway.calls == [("list_prompt_logs", "r1")]
        assert logs[0]["refreshId"] == "r1"
        assert logs[0]["provider"] == "claude"
        assert logs[0]["tokensUsed"] is None
        assert logs[0]["responseTimeMs"] is None

    def test_one_override_serves_detail_and_logs(self, admin_client, app):
        gateway = FakeSQLGateway(skill_record())
        app.dependency_overrides[get_sql_gateway] = lambda: gateway

        admin_client.get("/api/admin/settings/skills/score")
        admin_client.get("/api/admin/refreshes/r9/prompt-logs")

        assert gateway.calls == [("get_skill", "score"), ("list_prompt_logs", "r9")]


class TestAdminLogin:
    """Tests for POST /api/admin/auth."""

    def test_correct_password_sets_cookie(self, client):
        response = client.post("/api/admin/auth", json={"password": "  s3cret  "})

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        cookie = response.headers["set-cookie"]
        assert "admin_token=s3cret" in cookie
        assert "HttpOnly" in cookie
        assert "Max-Age=604800" in cookie
        assert "Path=/" in cookie
        assert "samesite=lax" in cookie.lower()
        assert "Secure" not in cookie

    def test_wrong_password_is_401(self, client):
        response = client.post("/api/admin/auth", json={"password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid password"}
        assert "set-cookie" not in response.headers

    def test_missing_password_is_401(self, client):
        response = client.post("/api/admin/auth", json={})

        assert response.status_code == 401

    def test_invalid_json_is_400(self, client):
        response = client.post(
            "/api/admin/auth",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON"}

    def test_unconfigured_admin_is_503(self, client, app_settings):
        app_settings.admin_secret = None

        response = client.post("/api/admin/auth", json={"password": "anything"})

        assert response.status_code == 503
        assert response.json() == {"error": "Admin not configured"}

    def test_unconfigured_admin_denies_listing(self, client, app_settings):
        app_settings.admin_secret = None

        response = client.get(
            "/api/admin/settings/skills",
            headers={"Cookie": "admin_token="},
        )

        assert response.status_code == 401

    def test_secure_cookie_in_production(self, client, app_settings):
        app_settings.environment = "production"

        response = client.post("/api/admin/auth", json={"password": "s3cret"})

        assert "Secure" in response.headers["set-cookie"]

    def test_password_checked_in_constant_time(self, client, monkeypatch):
        seen = []

        def recording_match(candidate, secret):
            seen.append((candidate, secret))
            return secret_matches(candidate, secret)

        monkeypatch.setattr(siteaudit.server, "secret_matches", recording_match)

        response = client.post("/api/admin/auth", json={"password": " nope "})

        assert response.status_code == 401
        assert seen == [("nope", "s3cret")]


class TestSecretMatches:
    def test_equal_values_match(self):
        assert secret_matches("s3cret", "s3cret") is True

    def test_different_values_do_not_match(self):
        assert secret_matches("s3cre", "s3cret") is False

    def test_unset_secret_never_matches(self):
        assert secret_matches("", None) is False
        assert secret_matches("", "") is False

    def test_missing_candidate_never_matches(self):
        assert secret_matches(None, "s3cret") is False


class TestResultsPage:
    """Tests for the results layout."""

    def test_robots_header_and_meta(self, client):
        response = client.get("/results/abc123")

        assert response.status_code == 200
        assert response.headers["x-robots-tag"] == "noindex, nofollow"
        assert "text/html" in response.headers["content-type"]
        assert '<meta name="robots" content="noindex, nofollow">' in response.text
        assert 'data-result-id="abc123"' in response.text

    def test_robots_policy_independent_of_route_params(self, client):
        for result_id in ("1", "some-uuid-value", "%3Cscript%3E"):
            response = client.get(f"/results/{result_id}")
            assert response.headers["x-robots-tag"] == "noindex, nofollow"
            assert 'content="noindex, nofollow"' in response.text

    def test_result_id_is_escaped(self, client):
        response = client.get("/results/%3Cscript%3E")

        assert "<script>" not in response.text
        assert "&lt;script&gt;" in response.text
