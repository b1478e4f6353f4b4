"""
Tests for the cohort benchmark aggregator.

Covered:
  - minimum cohort size gate (49 skipped, 50 written)
  - widening: small exact cohorts roll up into their widened key, written once
  - statistics: prevalence, frequency mean, loggers-only severity, percentiles
  - replace semantics: reruns are idempotent, skipped cohorts keep old rows
  - error isolation: a failing cohort is counted, a failed load is one error
"""
from __future__ import annotations

from datetime import date, timedelta

import pytest

from app.models.benchmark_aggregate import BenchmarkAggregate
from app.services import benchmarks
from app.services.benchmarks import (
    CohortMember,
    compute_all_benchmarks,
    compute_cohort_stats,
    group_by_cohort,
    resolve_effective_cohort,
)
from app.services.symptoms import NormalizedLog, normalize

NOW = date(2026, 3, 1)
RECENT_SINCE = NOW - timedelta(days=28)


def _member(user_id, key, *logs):
    return CohortMember(
        user_id=user_id,
        cohort_key=key,
        logs=[NormalizedLog(day=day, symptoms=normalize(raw)) for day, raw in logs],
    )


def _stored_rows(db):
    """Every stored aggregate as comparable tuples, ignoring id and computed_at."""
    return sorted(
        (
            r.cohort_key, r.symptom, r.prevalence_pct, r.avg_frequency, r.avg_severity,
            r.p25_frequency, r.p50_frequency, r.p75_frequency, r.sample_size,
        )
        for r in db.query(BenchmarkAggregate)
    )


@pytest.fixture()
def seed_users(add_profile, add_log):
    """Create `count` onboarded users, each logging `symptoms` once yesterday."""
    def _seed(prefix: str, count: int, symptoms=None):
        for i in range(count):
            user_id = f"{prefix}_{i:03d}"
            add_profile(user_id)
            if symptoms is not None:
                add_log(user_id, NOW - timedelta(days=1), symptoms=symptoms)
    return _seed


# ---------------------------------------------------------------------------
# Pure statistics
# ---------------------------------------------------------------------------

class TestComputeCohortStats:
    def test_basic_statistics(self):
        day1, day2 = NOW - timedelta(days=1), NOW - timedelta(days=2)
        members = [
            _member("a", "k", (day1, {"hot_flashes": 2}), (day2, {"hot_flashes": 4})),
            _member("b", "k", (day1, {"hot_flashes": 1})),
            _member("c", "k"),
            _member("d", "k"),
        ]
        [row] = compute_cohort_stats(members, RECENT_SINCE)
        assert row.symptom == "hot_flashes"
        assert row.sample_size == 4
        assert row.prevalence_pct == 50.0
        assert row.avg_frequency == 0.75
        # a averages 3.0, b 1.0; non-loggers are excluded
        assert row.avg_severity == 2.0
        # sorted frequencies [0, 0, 1, 2]
        assert row.p25_frequency == 0.0
        assert row.p50_frequency == 0.5
        assert row.p75_frequency == 1.25

    def test_same_day_repeats_count_once_with_max_severity(self):
        day = NOW - timedelta(days=1)
        members = [
            _member("a", "k", (day, {"brain_fog": 1}), (day, {"brain_fog": 3})),
        ]
        [row] = compute_cohort_stats(members, RECENT_SINCE)
        assert row.avg_frequency == 1
        assert row.avg_severity == 3.0

    def test_symptom_only_outside_recent_window_is_omitted(self):
        old = NOW - timedelta(days=40)
        members = [
            _member("a", "k", (old, {"night_sweats": 3}), (NOW, {"hot_flashes": 2})),
        ]
        rows = compute_cohort_stats(members, RECENT_SINCE)
        assert [r.symptom for r in rows] == ["hot_flashes"]

    def test_rows_sorted_by_symptom(self):
        members = [_member("a", "k", (NOW, {"night_sweats": 1, "anxiety": 2, "fatigue": 1}))]
        rows = compute_cohort_stats(members, RECENT_SINCE)
        assert [r.symptom for r in rows] == ["anxiety", "fatigue", "night_sweats"]

    def test_prevalence_rounds_to_one_decimal(self):
        members = [_member("a", "k", (NOW, {"x": 1})), _member("b", "k"), _member("c", "k")]
        [row] = compute_cohort_stats(members, RECENT_SINCE)
        assert row.prevalence_pct == 33.3
        assert row.avg_frequency == 0.33


class TestResolveEffectiveCohort:
    def test_large_exact_cohort_kept(self):
        members = [_member(str(i), "p_45-49_mild") for i in range(3)]
        exact, widened = group_by_cohort(members)
        assert resolve_effective_cohort("p_45-49_mild", exact["p_45-49_mild"], widened, 3) == (
            "p_45-49_mild", members,
        )

    def test_small_exact_cohort_widens(self):
        members = [_member("a", "p_45-49_mild"), _member("b", "p_45-49_severe")]
        exact, widened = group_by_cohort(members)
        key, resolved = resolve_effective_cohort("p_45-49_mild", exact["p_45-49_mild"], widened, 2)
        assert key == "p_45-49"
        assert {m.user_id for m in resolved} == {"a", "b"}

    def test_skipped_when_widened_is_also_small(self):
        members = [_member("a", "p_45-49_mild")]
        exact, widened = group_by_cohort(members)
        assert resolve_effective_cohort("p_45-49_mild", exact["p_45-49_mild"], widened, 2) is None


# ---------------------------------------------------------------------------
# Full run against the database
# ---------------------------------------------------------------------------

class TestComputeAllBenchmarks:
    def test_no_profiles_is_a_no_op(self, db):
        result = compute_all_benchmarks(db, now=NOW)
        assert (result.cohorts, result.errors) == (0, 0)
        assert db.query(BenchmarkAggregate).count() == 0

    def test_cohort_of_49_is_skipped(self, db, seed_users):
        seed_users("mild", 49, {"hot_flashes": 1})
        result = compute_all_benchmarks(db, now=NOW)
        assert result.cohorts == 0
        assert db.query(BenchmarkAggregate).count() == 0

    def test_cohort_of_50_is_written(self, db, seed_users):
        seed_users("mild", 50, {"hot_flashes": 1})
        result = compute_all_benchmarks(db, now=NOW)
        assert result.cohorts == 1
        assert result.cohort_keys == ["perimenopause_45-49_mild"]
        row = db.query(BenchmarkAggregate).one()
        assert row.cohort_key == "perimenopause_45-49_mild"
        assert row.sample_size == 50
        assert row.prevalence_pct == 100.0

    def test_small_cohorts_roll_up_into_widened_key_once(self, db, seed_users):
        seed_users("mild", 30, {"hot_flashes": 1})
        seed_users("moderate", 20)  # no logs: default average severity
        seed_users("severe", 30, {"hot_flashes": 4})

        result = compute_all_benchmarks(db, now=NOW)
        assert result.cohorts == 1
        assert result.errors == 0
        assert result.cohort_keys == ["perimenopause_45-49"]

        row = db.query(BenchmarkAggregate).one()
        assert row.cohort_key == "perimenopause_45-49"
        assert row.symptom == "hot_flashes"
        assert row.sample_size == 80
        assert row.prevalence_pct == 75.0
        assert row.avg_frequency == 0.75
        assert row.avg_severity == 2.5
        assert row.p25_frequency == 0.75
        assert row.p50_frequency == 1
        assert row.p75_frequency == 1

    def test_rerun_is_idempotent(self, db, seed_users):
        seed_users("both", 30, {"hot_flashes": 1, "brain_fog": 1})
        seed_users("hot", 20, {"hot_flashes": 1})
        compute_all_benchmarks(db, now=NOW)
        first = _stored_rows(db)
        db.expire_all()
        compute_all_benchmarks(db, now=NOW)
        second = _stored_rows(db)
        assert first == second
        assert len(first) == 2
        assert ("perimenopause_45-49_mild", "brain_fog", 60.0, 0.6, 1.0, 0.0, 1.0, 1.0, 50) in first

    def test_skipped_cohort_keeps_previous_rows(self, db, seed_users):
        db.add(BenchmarkAggregate(
            cohort_key="menopause_50-54_mild", symptom="hot_flashes",
            prevalence_pct=60.0, avg_frequency=4.0, avg_severity=1.2,
            p25_frequency=1, p50_frequency=3, p75_frequency=6, sample_size=55,
        ))
        db.commit()
        seed_users("mild", 3, {"hot_flashes": 1})

        compute_all_benchmarks(db, now=NOW)
        stale = db.query(BenchmarkAggregate).filter_by(cohort_key="menopause_50-54_mild").one()
        assert stale.sample_size == 55

    def test_non_onboarded_profiles_are_excluded(self, db, seed_users, add_profile):
        seed_users("mild", 49, {"hot_flashes": 1})
        add_profile("pending", onboarding_complete=False)
        result = compute_all_benchmarks(db, now=NOW)
        assert result.cohorts == 0

    def test_logs_outside_benchmark_window_are_ignored(self, db, add_profile, add_log):
        add_profile("a")
        add_profile("b")
        add_log("a", NOW - timedelta(days=120), symptoms={"hot_flashes": 5})
        result = compute_all_benchmarks(db, now=NOW, min_cohort_size=2)
        assert result.cohorts == 1
        assert db.query(BenchmarkAggregate).count() == 0

    def test_failing_cohort_is_counted_and_others_written(self, db, seed_users, monkeypatch):
        seed_users("mild", 2, {"hot_flashes": 1})
        seed_users("severe", 2, {"hot_flashes": 5})

        original = benchmarks.compute_cohort_stats

        def flaky(members, recent_since):
            if members[0].cohort_key.endswith("_severe"):
                raise RuntimeError("boom")
            return original(members, recent_since)

        monkeypatch.setattr(benchmarks, "compute_cohort_stats", flaky)
        result = compute_all_benchmarks(db, now=NOW, min_cohort_size=2)

        assert result.cohorts == 1
        assert result.errors == 1
        assert result.cohort_keys == ["perimenopause_45-49_mild"]
        assert {r.cohort_key for r in db.query(BenchmarkAggregate)} == {"perimenopause_45-49_mild"}

    def test_load_failure_is_a_single_error(self, db, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(benchmarks, "_load_members", broken)
        result = compute_all_benchmarks(db, now=NOW)
        assert (result.cohorts, result.errors) == (0, 1)

    def test_failure_after_delete_restores_previous_rows(self, db, seed_users, monkeypatch):
        seed_users("mild", 50, {"hot_flashes": 1})
        compute_all_benchmarks(db, now=NOW)
        before = _stored_rows(db)
        assert before

        original = benchmarks._replace_rows

        def delete_then_fail(session, key, rows):
            original(session, key, [])
            assert session.query(BenchmarkAggregate).filter_by(cohort_key=key).count() == 0
            raise RuntimeError("insert failed")

        monkeypatch.setattr(benchmarks, "_replace_rows", delete_then_fail)
        result = compute_all_benchmarks(db, now=NOW)

        assert (result.cohorts, result.errors) == (0, 1)
        db.expire_all()
        assert _stored_rows(db) == before

    def test_explicit_zero_minimum_is_honoured(self, db, add_profile, add_log):
        add_profile("solo")
        add_log("solo", NOW - timedelta(days=1), symptoms={"hot_flashes": 1})
        result = compute_all_benchmarks(db, now=NOW, min_cohort_size=0)
        assert result.cohort_keys == ["perimenopause_45-49_mild"]
        assert db.query(BenchmarkAggregate).one().sample_size == 1
