"""Synchronization orchestrator.

Drives the three reference providers, validates every loaded record,
aggregates data-quality statistics and keeps a persisted cache of the last
successful aggregate. Status changes are broadcast through a
``StatusChannel`` after every mutation.
"""

import copy
import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from ..config import config
from ..exceptions import DataLoadError
from ..interactions import InteractionChecker
from ..reference import DrugProvider, MaterialProvider, ProcedureProvider
from ..reference.base import ReferenceProvider
from ..store import MemoryStore
from ..validation import ContentValidator, ValidationResult
from .events import StatusChannel, Subscription
from .models import CATEGORIES, DataQualityReport, SyncError, SyncState, SyncStatus

logger = logging.getLogger(__name__)

CACHE_KEY = "medical_data_cache"
STATUS_KEY = "medical_sync_status"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_version(now: datetime) -> str:
    """Cache version tag: millisecond timestamp plus a random suffix."""
    return f"v{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:9]}"


class SyncOrchestrator:
    """Sole writer of the sync status and the aggregate cache."""

    def __init__(
        self,
        drugs: DrugProvider,
        procedures: ProcedureProvider,
        materials: MaterialProvider,
        validator: ContentValidator | None = None,
        store=None,
        interaction_checker: InteractionChecker | None = None,
        channel: StatusChannel | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        cache_ttl_hours: float | None = None,
        parallel: bool | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            drugs: Drug reference provider.
            procedures: Procedure reference provider.
            materials: Material reference provider.
            validator: Validator run over every loaded record.
            store: Key/value store with the CacheStore interface. Defaults to
                an in-memory store.
            interaction_checker: Checker whose pair cache is invalidated
                after each sync.
            channel: Status broadcast channel.
            max_retries: Fetch attempts per category.
            retry_delay: Base delay in seconds; attempt n waits ``n * delay``.
            cache_ttl_hours: Freshness window of the persisted cache.
            parallel: Fetch the three categories concurrently.
            sleep: Delay function used between attempts.
            clock: Returns the current aware datetime.
        """
        self.providers: dict[str, ReferenceProvider] = {
            "drugs": drugs,
            "procedures": procedures,
            "materials": materials,
        }
        self.validator = validator or ContentValidator()
        self.store = store if store is not None else MemoryStore()
        self.interaction_checker = interaction_checker
        self.channel: StatusChannel[SyncStatus] = channel or StatusChannel()
        self.max_retries = max(1, max_retries if max_retries is not None else config.SYNC_MAX_RETRIES)
        self.retry_delay = retry_delay if retry_delay is not None else config.SYNC_RETRY_DELAY_SECONDS
        self.cache_ttl = timedelta(
            hours=cache_ttl_hours if cache_ttl_hours is not None else config.CACHE_TTL_HOURS
        )
        self.parallel = parallel if parallel is not None else config.SYNC_PARALLEL
        self._sleep = sleep
        self._clock = clock or _utcnow

        self._status = SyncStatus()
        self._lock = threading.Lock()

    # --- Public API ---

    def initialize(self) -> SyncStatus:
        """Restore persisted status, then either sync or load the cache."""
        with self._lock:
            self._status = self._load_persisted_status()
            if self._status.state == SyncState.LOADING:
                # A previous process stopped mid-sync
                self._status.state = SyncState.IDLE
            self._persist_status()
        self._publish()

        if self.should_sync():
            logger.info("Reference data cache missing, stale or has outstanding errors; syncing")
            return self.sync_all()

        try:
            self._load_from_cache()
        except (DataLoadError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to load reference data from cache: {e}")
            return self.sync_all()
        return self.get_status()

    def should_sync(self) -> bool:
        """True when there is no cache, it is older than the TTL, or errors are outstanding."""
        cache = self.get_cached_data()
        if not cache:
            return True

        try:
            last_updated = self._parse_timestamp(cache.get("last_updated"))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Unreadable reference data cache; treating as stale: {e}")
            return True
        if last_updated is None or self._clock() - last_updated > self.cache_ttl:
            return True

        with self._lock:
            return bool(self._status.errors)

    def sync_all(self) -> SyncStatus:
        """Run a full sync. A call made while a sync is running is ignored."""
        with self._lock:
            if self._status.is_loading:
                logger.info("Sync already in progress; request ignored")
                return copy.deepcopy(self._status)
            self._status.state = SyncState.LOADING
            self._persist_status()
        self._publish()

        logger.info("Starting reference data sync")
        try:
            fetched = self._fetch_all()
            validations = self._validate_all(fetched)
            quality = DataQualityReport.from_validations(validations)
            now = self._clock()
            self._save_cache(fetched, quality, now)
            if self.interaction_checker is not None:
                self.interaction_checker.clear_cache()
        except Exception as e:
            logger.error(f"Reference data sync failed: {e}", exc_info=True)
            with self._lock:
                self._status.state = SyncState.ERROR
                self._persist_status()
            self._publish()
            raise

        all_failed = all(records is None for records in fetched.values())
        with self._lock:
            self._status.state = SyncState.ERROR if all_failed else SyncState.LOADED
            self._status.last_sync = now
            self._status.data_quality = quality
            self._persist_status()
        self._publish()

        logger.info(
            f"Sync completed: {quality.total_items} records, "
            f"score {quality.overall_score}%, {len(self._status.errors)} sync errors"
        )
        return self.get_status()

    def force_refresh(self) -> SyncStatus:
        """Drop the cache and outstanding errors, then sync unconditionally."""
        with self._lock:
            if self._status.is_loading:
                logger.info("Refresh requested while syncing; request ignored")
                return copy.deepcopy(self._status)
            self.store.remove(CACHE_KEY)
            self._status.errors = []
            self._persist_status()
        self._publish()
        return self.sync_all()

    def subscribe(self, callback: Callable[[SyncStatus], None]) -> Subscription:
        return self.channel.subscribe(callback)

    def get_status(self) -> SyncStatus:
        with self._lock:
            return copy.deepcopy(self._status)

    def get_cached_data(self) -> dict[str, Any] | None:
        entry = self.store.get(CACHE_KEY)
        return entry["value"] if entry else None

    def data_freshness(self) -> dict[str, Any]:
        """Age of the last sync and whether it is outside the freshness window."""
        with self._lock:
            last_sync = self._status.last_sync
        age = (self._clock() - last_sync) if last_sync else timedelta(0)
        return {
            "last_sync": last_sync.isoformat() if last_sync else None,
            "age_seconds": round(age.total_seconds(), 3),
            "is_stale": age > self.cache_ttl,
        }

    def quality_summary(self) -> str:
        with self._lock:
            quality = self._status.data_quality

        if quality.total_errors > 0:
            return f"{quality.total_errors} validation errors found in medical data"
        if quality.total_warnings > 0:
            return f"{quality.total_warnings} validation warnings in medical data"
        return (
            f"All {quality.total_items} medical items validated successfully "
            f"({quality.overall_score}% quality score)"
        )

    def clear(self) -> None:
        """Remove the cache and persisted status and reset to idle."""
        with self._lock:
            self.store.remove(CACHE_KEY)
            self.store.remove(STATUS_KEY)
            self._status = SyncStatus()
        self._publish()

    # --- Fetching ---

    def _fetch_all(self) -> dict[str, list | None]:
        if not self.parallel:
            return {category: self._fetch_with_retry(category) for category in CATEGORIES}

        results: dict[str, list | None] = {}
        with ThreadPoolExecutor(max_workers=len(CATEGORIES)) as executor:
            futures = {executor.submit(self._fetch_with_retry, c): c for c in CATEGORIES}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return {category: results[category] for category in CATEGORIES}

    def _fetch_with_retry(self, category: str) -> list | None:
        """Load one category, retrying with a linearly growing delay.

        Returns:
            The loaded records, or None once every attempt has failed.
        """
        provider = self.providers[category]
        for attempt in range(1, self.max_retries + 1):
            try:
                records = provider.load(force=True)
            except DataLoadError as e:
                logger.warning(f"{category} sync failed ({attempt}/{self.max_retries}): {e}")
                if attempt < self.max_retries:
                    self._sleep(self.retry_delay * attempt)
                continue

            logger.info(f"Loaded {len(records)} {category} from database")
            self._clear_error(category)
            return list(records)

        self._add_error(category, f"Failed to sync {category} after {self.max_retries} attempts")
        return None

    def _validate_all(self, fetched: dict[str, list | None]) -> dict[str, list[ValidationResult]]:
        validate = {
            "drugs": self.validator.validate_drug,
            "procedures": self.validator.validate_procedure,
            "materials": self.validator.validate_material,
        }
        validations = {
            category: [validate[category](record) for record in fetched[category] or []]
            for category in CATEGORIES
        }
        logger.debug(
            "Validation completed: "
            + ", ".join(f"{len(v)} {c}" for c, v in validations.items())
        )
        return validations

    # --- Error bookkeeping ---

    def _add_error(self, category: str, message: str) -> None:
        now = self._clock()
        with self._lock:
            existing = next((e for e in self._status.errors if e.service == category), None)
            if existing:
                existing.message = message
                existing.timestamp = now
                existing.retry_count += self.max_retries
            else:
                self._status.errors.append(SyncError(category, message, now, self.max_retries))
            self._persist_status()
        logger.error(message)
        self._publish()

    def _clear_error(self, category: str) -> None:
        with self._lock:
            remaining = [e for e in self._status.errors if e.service != category]
            if len(remaining) == len(self._status.errors):
                return
            self._status.errors = remaining
            self._persist_status()
        self._publish()

    # --- Persistence ---

    def _save_cache(self, fetched: dict[str, list | None], quality: DataQualityReport, now: datetime) -> None:
        cache = {
            "version": generate_version(now),
            "last_updated": now.isoformat(),
            "data_quality": quality.to_dict(),
        }
        for category in CATEGORIES:
            cache[category] = [record.to_dict() for record in fetched[category] or []]
        self.store.save(CACHE_KEY, cache)

    def _load_from_cache(self) -> None:
        cache = self.get_cached_data()
        if not cache:
            raise DataLoadError("No cached reference data")

        for category in CATEGORIES:
            self.providers[category].restore(cache.get(category) or [])

        with self._lock:
            self._status.state = SyncState.LOADED
            self._status.last_sync = self._parse_timestamp(cache.get("last_updated"))
            self._status.data_quality = DataQualityReport.from_dict(cache.get("data_quality"))
            self._persist_status()
        self._publish()
        logger.info(f"Reference data loaded from cache {cache.get('version')}")

    def _load_persisted_status(self) -> SyncStatus:
        entry = self.store.get(STATUS_KEY)
        if not entry:
            return SyncStatus()
        try:
            return SyncStatus.from_dict(entry["value"])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable sync status: {e}")
            return SyncStatus()

    def _persist_status(self) -> None:
        """Caller must hold ``_lock``."""
        self.store.save(STATUS_KEY, self._status.to_dict())

    def _publish(self) -> None:
        self.channel.publish(self.get_status())

    @staticmethod
    def _parse_timestamp(value: str | None) -> datetime | None:
        if not value:
            return None
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
