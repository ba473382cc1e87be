"""
Sync orchestration: retries, error bookkeeping, data-quality scoring,
cache freshness, status broadcast and the concurrency guard.
"""
import re
from datetime import timedelta

import pytest

from conftest import FakeClock, FlakyLoader, make_drug
from dental_cds.dosing import DoseCalculator
from dental_cds.exceptions import NotFoundError
from dental_cds.interactions import InteractionChecker, RiskLevel
from dental_cds.models import PatientParameters
from dental_cds.reference import DrugProvider, MaterialProvider, ProcedureProvider
from dental_cds.store import MemoryStore
from dental_cds.sync import (
    CACHE_KEY,
    STATUS_KEY,
    DataQualityReport,
    StatusChannel,
    SyncOrchestrator,
    SyncState,
    SyncStatus,
    generate_version,
)
from dental_cds.validation import FieldWarning, ValidationResult


class SleepRecorder:

    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def make_orchestrator(store, clock, drugs=None, procedures=None, materials=None, **options):
    options.setdefault("sleep", SleepRecorder())
    options.setdefault("max_retries", 3)
    options.setdefault("retry_delay", 1.0)
    options.setdefault("cache_ttl_hours", 24)
    options.setdefault("parallel", False)
    return SyncOrchestrator(
        drugs or DrugProvider(),
        procedures or ProcedureProvider(),
        materials or MaterialProvider(),
        store=store,
        clock=clock,
        **options,
    )


def failing_drugs(failures=99, records=None):
    loader = FlakyLoader(records=records or [make_drug()], failures=failures)
    return DrugProvider(loader=loader), loader


class TestSyncAll:

    def test_full_sync(self, store, clock):
        orchestrator = make_orchestrator(store, clock)
        status = orchestrator.sync_all()

        assert status.state == SyncState.LOADED
        assert status.last_sync == clock.now
        assert status.errors == []
        quality = status.data_quality
        assert (quality.drugs.total, quality.procedures.total, quality.materials.total) == (12, 9, 7)
        assert quality.overall_score == 100

        cache = orchestrator.get_cached_data()
        assert cache["last_updated"] == clock.now.isoformat()
        assert cache["version"].startswith("v")
        assert len(cache["drugs"]) == 12
        assert cache["data_quality"]["overall_score"] == 100

    def test_status_is_persisted(self, store, clock):
        make_orchestrator(store, clock).sync_all()
        assert store.get(STATUS_KEY)["value"]["state"] == "loaded"

    def test_failed_category_records_error_and_keeps_others(self, store, clock):
        drugs, loader = failing_drugs()
        sleep = SleepRecorder()
        orchestrator = make_orchestrator(store, clock, drugs=drugs, sleep=sleep)

        status = orchestrator.sync_all()

        assert loader.calls == 3
        assert sleep.delays == [1.0, 2.0]
        assert status.state == SyncState.LOADED
        assert len(status.errors) == 1
        error = status.errors[0]
        assert error.service == "drugs"
        assert error.message == "Failed to sync drugs after 3 attempts"
        assert error.retry_count == 3
        assert error.timestamp == clock.now
        assert status.data_quality.drugs.total == 0
        assert status.data_quality.procedures.total == 9
        assert orchestrator.get_cached_data()["drugs"] == []

    def test_recurring_failure_accumulates_retry_count(self, store, clock):
        drugs, _ = failing_drugs()
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        orchestrator.sync_all()
        clock.advance(timedelta(minutes=5))

        status = orchestrator.sync_all()

        assert len(status.errors) == 1
        assert status.errors[0].retry_count == 6
        assert status.errors[0].timestamp == clock.now

    def test_success_after_retries_records_no_error(self, store, clock):
        drugs, loader = failing_drugs(failures=2)
        sleep = SleepRecorder()
        status = make_orchestrator(store, clock, drugs=drugs, sleep=sleep).sync_all()

        assert loader.calls == 3
        assert sleep.delays == [1.0, 2.0]
        assert status.errors == []
        assert status.data_quality.drugs.total == 1

    def test_later_success_clears_category_error(self, store, clock):
        drugs, _ = failing_drugs(failures=3)
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        assert len(orchestrator.sync_all().errors) == 1
        assert orchestrator.sync_all().errors == []

    def test_failed_category_keeps_previous_records(self, store, clock):
        drugs, loader = failing_drugs(failures=0)
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        orchestrator.sync_all()
        loader.failures = 99

        orchestrator.sync_all()

        assert [d.id for d in drugs.records] == ["testcillin"]

    def test_every_category_failing_is_an_error_state(self, store, clock):
        orchestrator = make_orchestrator(
            store, clock,
            drugs=DrugProvider(loader=FlakyLoader(failures=99)),
            procedures=ProcedureProvider(loader=FlakyLoader(failures=99)),
            materials=MaterialProvider(loader=FlakyLoader(failures=99)),
        )
        status = orchestrator.sync_all()
        assert status.state == SyncState.ERROR
        assert [e.service for e in status.errors] == ["drugs", "procedures", "materials"]
        assert status.data_quality.overall_score == 0

    def test_parallel_matches_serial(self, store, clock):
        drugs, _ = failing_drugs()
        status = make_orchestrator(store, clock, drugs=drugs, parallel=True).sync_all()
        assert status.state == SyncState.LOADED
        assert [e.service for e in status.errors] == ["drugs"]
        assert status.data_quality.procedures.total == 9
        assert status.data_quality.materials.total == 7

    def test_interaction_cache_invalidated(self, store, clock, drugs):
        checker = InteractionChecker(drugs)
        checker.check_pair_interaction("ibuprofen", "naproxen")
        assert checker.interaction_stats()["pairs_cached"] == 1

        make_orchestrator(store, clock, drugs=drugs, interaction_checker=checker).sync_all()

        assert checker.interaction_stats()["pairs_cached"] == 0


class TestConcurrencyGuard:

    def test_sync_ignored_while_loading(self, store, clock):
        drugs, loader = failing_drugs(failures=0)
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        orchestrator._status.state = SyncState.LOADING

        status = orchestrator.sync_all()

        assert status.state == SyncState.LOADING
        assert loader.calls == 0

    def test_refresh_ignored_while_loading(self, store, clock):
        orchestrator = make_orchestrator(store, clock)
        orchestrator.sync_all()
        orchestrator._status.state = SyncState.LOADING

        orchestrator.force_refresh()

        assert orchestrator.get_cached_data() is not None
        assert orchestrator.get_status().state == SyncState.LOADING


class TestInitialize:

    def test_no_cache_triggers_sync(self, store, clock):
        drugs, loader = failing_drugs(failures=0)
        status = make_orchestrator(store, clock, drugs=drugs).initialize()
        assert loader.calls == 1
        assert status.state == SyncState.LOADED

    def test_fresh_cache_is_restored_without_fetching(self, store, clock):
        make_orchestrator(store, clock).sync_all()
        clock.advance(timedelta(hours=23))

        drugs, loader = failing_drugs()
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        status = orchestrator.initialize()

        assert loader.calls == 0
        assert status.state == SyncState.LOADED
        assert len(drugs.records) == 12
        assert drugs.get_by_id("amoxicillin").name == "Amoxicillin"
        assert status.data_quality.overall_score == 100

    def test_stale_cache_triggers_sync(self, store, clock):
        make_orchestrator(store, clock).sync_all()
        clock.advance(timedelta(hours=25))

        drugs, loader = failing_drugs(failures=0)
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        assert orchestrator.should_sync()
        orchestrator.initialize()

        assert loader.calls == 1

    def test_outstanding_errors_trigger_sync(self, store, clock):
        failing, _ = failing_drugs()
        make_orchestrator(store, clock, drugs=failing).sync_all()

        drugs, loader = failing_drugs(failures=0)
        status = make_orchestrator(store, clock, drugs=drugs).initialize()

        assert loader.calls == 1
        assert status.errors == []

    def test_interrupted_sync_does_not_block(self, store, clock):
        store.save(STATUS_KEY, SyncStatus(state=SyncState.LOADING).to_dict())
        status = make_orchestrator(store, clock).initialize()
        assert status.state == SyncState.LOADED

    def test_unreadable_cache_falls_back_to_sync(self, store, clock):
        make_orchestrator(store, clock).sync_all()
        cache = store.get(CACHE_KEY)["value"]
        cache["drugs"] = "not a list of records"
        store.save(CACHE_KEY, cache)

        drugs, loader = failing_drugs(failures=0)
        make_orchestrator(store, clock, drugs=drugs).initialize()

        assert loader.calls == 1

    @pytest.mark.parametrize("cache", [
        {"last_updated": "not-a-date", "drugs": []},
        {"last_updated": 12345},
        ["not", "a", "dict"],
    ])
    def test_unreadable_cache_timestamp_triggers_sync(self, store, clock, cache):
        store.save(CACHE_KEY, cache)

        drugs, loader = failing_drugs(failures=0)
        status = make_orchestrator(store, clock, drugs=drugs).initialize()

        assert loader.calls == 1
        assert status.state == SyncState.LOADED
        assert store.get(CACHE_KEY)["value"]["last_updated"] == clock.now.isoformat()


class TestForceRefresh:

    def test_refresh_clears_errors_and_resyncs(self, store, clock):
        drugs, loader = failing_drugs(failures=3)
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        orchestrator.sync_all()
        first_version = orchestrator.get_cached_data()["version"]

        status = orchestrator.force_refresh()

        assert status.errors == []
        assert status.data_quality.drugs.total == 1
        assert orchestrator.get_cached_data()["version"] != first_version
        assert loader.calls == 4


class TestBroadcast:

    def test_subscribers_see_each_transition(self, store, clock):
        drugs, _ = failing_drugs()
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        seen = []
        orchestrator.subscribe(lambda status: seen.append((status.state, len(status.errors))))

        orchestrator.sync_all()

        assert seen == [
            (SyncState.LOADING, 0),
            (SyncState.LOADING, 1),
            (SyncState.LOADED, 1),
        ]

    def test_failing_subscriber_does_not_block_others(self, store, clock):
        orchestrator = make_orchestrator(store, clock)
        calls = []

        def broken(status):
            calls.append("broken")
            raise RuntimeError("subscriber bug")

        orchestrator.subscribe(broken)
        orchestrator.subscribe(lambda status: calls.append("ok"))

        orchestrator.sync_all()

        assert calls == ["broken", "ok", "broken", "ok"]

    def test_unsubscribe(self, store, clock):
        orchestrator = make_orchestrator(store, clock)
        seen = []
        subscription = orchestrator.subscribe(seen.append)
        subscription.unsubscribe()
        subscription()

        orchestrator.sync_all()

        assert seen == []
        assert len(orchestrator.channel) == 0

    def test_publish_returns_delivery_count(self):
        channel = StatusChannel()
        channel.subscribe(lambda value: None)
        channel.subscribe(lambda value: 1 / 0)
        assert channel.publish("status") == 1

    def test_status_snapshots_are_copies(self, store, clock):
        drugs, _ = failing_drugs()
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        orchestrator.sync_all()
        orchestrator.get_status().errors.clear()
        assert len(orchestrator.get_status().errors) == 1


class TestQualityReporting:

    def test_score_rounds_to_nearest_percent(self):
        valid = ValidationResult(True)
        invalid = ValidationResult(False)
        report = DataQualityReport.from_validations(
            {"drugs": [valid, valid, invalid], "procedures": [], "materials": []})
        assert report.overall_score == 67

    def test_empty_score_is_zero(self):
        assert DataQualityReport.from_validations({}).overall_score == 0

    def test_warning_counts(self):
        result = ValidationResult(True, warnings=[FieldWarning("f", "m", "r")] * 2)
        report = DataQualityReport.from_validations({"materials": [result]})
        assert report.materials.warnings == 2
        assert report.total_warnings == 2

    def test_summary_before_sync(self, store, clock):
        orchestrator = make_orchestrator(store, clock)
        assert orchestrator.quality_summary() == (
            "All 0 medical items validated successfully (0% quality score)")

    def test_summary_reports_warnings(self, store, clock):
        orchestrator = make_orchestrator(store, clock)
        orchestrator.sync_all()
        assert re.fullmatch(r"\d+ validation warnings in medical data", orchestrator.quality_summary())

    def test_summary_reports_errors(self, store, clock):
        drugs = DrugProvider(loader=FlakyLoader(records=[{"name": "", "class": ""}]))
        orchestrator = make_orchestrator(store, clock, drugs=drugs)
        status = orchestrator.sync_all()

        assert orchestrator.quality_summary() == "6 validation errors found in medical data"
        # 16 of 17 records valid
        assert status.data_quality.overall_score == 94

    def test_data_freshness(self, store, clock):
        orchestrator = make_orchestrator(store, clock)
        assert orchestrator.data_freshness() == {
            "last_sync": None, "age_seconds": 0.0, "is_stale": False}

        orchestrator.sync_all()
        clock.advance(timedelta(hours=25))

        freshness = orchestrator.data_freshness()
        assert freshness["last_sync"] == "2024-03-01T09:00:00+00:00"
        assert freshness["age_seconds"] == 90000.0
        assert freshness["is_stale"]


class TestHousekeeping:

    def test_clear_resets_everything(self, store, clock):
        orchestrator = make_orchestrator(store, clock)
        orchestrator.sync_all()

        orchestrator.clear()

        assert orchestrator.get_cached_data() is None
        assert STATUS_KEY not in store.keys()
        status = orchestrator.get_status()
        assert status.state == SyncState.IDLE
        assert status.last_sync is None

    def test_generate_version(self):
        version = generate_version(FakeClock()())
        assert re.fullmatch(r"v1709283600000-[0-9a-f]{9}", version)
        assert version != generate_version(FakeClock()())

    def test_defaults_to_memory_store(self):
        orchestrator = SyncOrchestrator(DrugProvider(), ProcedureProvider(), MaterialProvider())
        assert isinstance(orchestrator.store, MemoryStore)

    @pytest.mark.parametrize("retries", [0, -2])
    def test_at_least_one_attempt(self, retries):
        orchestrator = SyncOrchestrator(
            DrugProvider(), ProcedureProvider(), MaterialProvider(), max_retries=retries)
        assert orchestrator.max_retries == 1


class TestServingAfterFailedSync:

    def test_failed_category_serves_empty_collection(self, store, clock):
        drugs, _ = failing_drugs()
        make_orchestrator(store, clock, drugs=drugs).sync_all()

        assert drugs.records == []
        assert drugs.get_by_id("amoxicillin") is None
        with pytest.raises(NotFoundError):
            DoseCalculator(drugs).calculate_dose(PatientParameters(age=30, weight=70), "Amoxicillin")

        result = InteractionChecker(drugs).check_interactions(["amoxicillin", "ibuprofen"])
        assert result.interactions == []
        assert result.overall_risk == RiskLevel.LOW
