"""
Integration tests for API endpoints using a SQLite DB.

Dates that the server derives from "now" (insights, cron runs) are seeded
relative to the real UTC date.
"""
import pytest
from datetime import date, datetime, timedelta, timezone

from app.core.config import settings
from app.models.benchmark_aggregate import BenchmarkAggregate
from app.models.computed_score import ComputedScore

USER_HEADERS = {"X-User-Id": "user_alice"}
CRON_HEADERS = {"Authorization": f"Bearer {settings.CRON_SECRET}"}
DAY = date(2026, 3, 1)


def _utc_today() -> date:
    return datetime.now(tz=timezone.utc).date()


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["db"] == "ok"


class TestReadiness:
    def test_readiness_for_day(self, client, add_log):
        add_log(
            "user_alice", DAY,
            symptoms={"hot_flashes": 3},
            sleep_hours=7, sleep_quality="good", disruptions=1, mood=4,
        )
        r = client.get("/scores/readiness", params={"day": "2026-03-01"}, headers=USER_HEADERS)
        assert r.status_code == 200
        body = r.json()
        assert body["user_id"] == "user_alice"
        assert body["day"] == "2026-03-01"
        assert body["readiness"] == 80
        assert body["components"]["mood"] == 80
        assert body["components"]["symptom"] == 81
        assert body["streak"] == 1
        assert body["recommendation"] is None

    def test_readiness_is_stored(self, client, add_log, db):
        add_log("user_alice", DAY, mood=3)
        client.get("/scores/readiness", params={"day": "2026-03-01"}, headers=USER_HEADERS)
        assert db.query(ComputedScore).filter_by(user_id="user_alice").count() == 1

    def test_refresh_recomputes(self, client, add_log):
        add_log("user_alice", DAY, mood=5, hour=7)
        client.get("/scores/readiness", params={"day": "2026-03-01"}, headers=USER_HEADERS)
        add_log("user_alice", DAY, mood=1, hour=21)

        cached = client.get("/scores/readiness", params={"day": "2026-03-01"}, headers=USER_HEADERS)
        assert cached.json()["components"]["mood"] == 100

        fresh = client.get(
            "/scores/readiness",
            params={"day": "2026-03-01", "refresh": "true"},
            headers=USER_HEADERS,
        )
        assert fresh.json()["components"]["mood"] == 20

    def test_no_logs_returns_404(self, client):
        r = client.get("/scores/readiness", params={"day": "2026-03-01"}, headers=USER_HEADERS)
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "NO_LOGS_FOR_DAY"
        assert body["details"] == {"user_id": "user_alice", "day": "2026-03-01"}

    def test_other_users_logs_are_not_used(self, client, add_log):
        add_log("user_bob", DAY, mood=5)
        r = client.get("/scores/readiness", params={"day": "2026-03-01"}, headers=USER_HEADERS)
        assert r.status_code == 404


class TestBenchmarkInsightsEndpoint:
    def test_fallback_response(self, client, add_profile, add_log):
        add_profile("user_alice")
        add_log("user_alice", _utc_today() - timedelta(days=1), symptoms={"night_sweats": 1})

        r = client.get("/insights/benchmarks", headers=USER_HEADERS)
        assert r.status_code == 200
        body = r.json()
        assert body["message"]
        assert body["cohort"]["sample_size"] == 0
        assert len(body["symptoms"]) == 8
        sweats = next(s for s in body["symptoms"] if s["name"] == "Night sweats")
        assert sweats["user_frequency_days"] == 1

    def test_cohort_response_has_no_message(self, client, add_profile, db):
        add_profile("user_alice", stage="Postmenopause", date_of_birth=None)
        db.add(BenchmarkAggregate(
            cohort_key="postmenopause_unknown_age_moderate", symptom="joint_pain",
            prevalence_pct=52.0, avg_frequency=5.5, avg_severity=2.1,
            p25_frequency=0, p50_frequency=4, p75_frequency=9, sample_size=77,
        ))
        db.commit()

        r = client.get("/insights/benchmarks", headers=USER_HEADERS)
        assert r.status_code == 200
        body = r.json()
        assert "message" not in body
        assert body["cohort"] == {
            "key": "postmenopause_unknown_age_moderate",
            "label": "Postmenopause, All ages, Moderate",
            "sample_size": 77,
        }
        [joint] = body["symptoms"]
        assert joint["label"] == "Common"
        assert joint["percentile_position"] == 0

    def test_missing_profile_returns_404(self, client):
        r = client.get("/insights/benchmarks", headers=USER_HEADERS)
        assert r.status_code == 404
        assert r.json()["code"] == "PROFILE_NOT_FOUND"


class TestCorrelationInsightsEndpoint:
    def test_empty(self, client):
        r = client.get("/insights/correlations", headers=USER_HEADERS)
        assert r.status_code == 200
        assert r.json() == {
            "correlations": [],
            "last_computed": None,
            "data_quality": "building",
            "total_found": 0,
        }


class TestCron:
    @pytest.mark.parametrize("path", ["/cron/benchmarks", "/cron/compute-scores"])
    def test_requires_secret(self, client, path):
        assert client.post(path).status_code == 401
        wrong = client.post(path, headers={"Authorization": "Bearer nope"})
        assert wrong.status_code == 401
        assert wrong.json()["code"] == "CRON_UNAUTHORIZED"

    def test_benchmarks_run(self, client):
        r = client.post("/cron/benchmarks", headers=CRON_HEADERS)
        assert r.status_code == 200
        body = r.json()
        assert body["cohorts"] == 0
        assert body["errors"] == 0
        assert body["cohort_keys"] == []
        assert body["computed_at"]

    def test_compute_scores_run(self, client, add_log, db):
        today = _utc_today()
        add_log("user_alice", today, mood=4)
        add_log("user_bob", today, sleep_hours=8)
        r = client.post("/cron/compute-scores", headers=CRON_HEADERS)
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["processed"] == 2
        assert body["errors"] == 0
        assert db.query(ComputedScore).filter_by(date=today).count() == 2


class TestOpenAPI:
    def test_error_envelope_documented(self, client):
        openapi = client.get("/openapi.json").json()
        assert "ErrorResponse" in openapi["components"]["schemas"]
        readiness = openapi["paths"]["/scores/readiness"]["get"]["responses"]
        assert readiness["404"]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/ErrorResponse"
        }
