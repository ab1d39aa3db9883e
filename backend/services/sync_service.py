"""
TLE synchronization job.

Fetches the latest element set of every tracked object from Space-Track,
derives orbital parameters and stores them idempotently.

- One upstream request in flight at a time, paced by a fixed delay.
- A failure on one object is logged and skipped; the pass continues.
- If no session can be established the whole pass is retried, up to a
  fixed number of attempts with a fixed backoff, then reported as failed.
"""
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from models import db, Satellite
from services.epoch_resolver import resolve_epoch
from services.orbit_derivation import RawElementSet, derive
from services.spacetrack_session import (
    SessionUnavailableError,
    SpaceTrackError,
    SpaceTrackSession,
)
from services.tle_repository import TLERepository

logger = logging.getLogger(__name__)


class InvalidElementSetError(ValueError):
    """Raised when a fetched element set cannot be derived or dated"""
    pass


@dataclass
class SyncReport:
    """Outcome of one run_sync() invocation."""
    status: str = 'pending'  # success, partial, empty, failed
    attempts: int = 0
    targets: int = 0
    stored: int = 0
    unchanged: int = 0
    skipped: int = 0
    error: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def failed(self) -> bool:
        return self.status == 'failed'

    def reset_counts(self):
        self.targets = self.stored = self.unchanged = self.skipped = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['started_at'] = self.started_at.isoformat() if self.started_at else None
        data['finished_at'] = self.finished_at.isoformat() if self.finished_at else None
        return data


class SyncService:
    """Sync Orchestrator: session + derivation + persistence for all tracked objects."""

    def __init__(self, session: SpaceTrackSession,
                 repository: Optional[TLERepository] = None,
                 pacing_seconds: float = 1.0,
                 max_attempts: int = 3,
                 retry_backoff: float = 30.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.session = session
        self.repository = repository or TLERepository()
        self.pacing_seconds = pacing_seconds
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff = retry_backoff
        self.sleep = sleep
        self.last_report: Optional[SyncReport] = None

    @classmethod
    def from_config(cls, config, session: Optional[SpaceTrackSession] = None) -> 'SyncService':
        return cls(
            session=session or SpaceTrackSession.from_config(config),
            pacing_seconds=config.get('SYNC_REQUEST_PACING', 1.0),
            max_attempts=config.get('SYNC_MAX_ATTEMPTS', 3),
            retry_backoff=config.get('SYNC_RETRY_BACKOFF', 30.0),
        )

    # ==================== Job level ====================

    def run_sync(self) -> SyncReport:
        """
        Run one sync invocation with bounded pass-level retry.

        Never raises for upstream failures; a give-up is reported through
        the returned report with status 'failed'.
        """
        report = SyncReport()
        logger.info("TLE sync triggered")

        for attempt in range(1, self.max_attempts + 1):
            report.attempts = attempt
            try:
                self.run_pass(report)
                break
            except SessionUnavailableError as e:
                report.error = str(e)
                logger.warning("Sync pass %d/%d failed: %s", attempt, self.max_attempts, e)
                if attempt < self.max_attempts:
                    self.sleep(self.retry_backoff)
            except SQLAlchemyError as e:
                db.session.rollback()
                report.error = str(e)
                report.status = 'failed'
                logger.error("TLE sync aborted, database error: %s", e)
                break
        else:
            report.status = 'failed'
            logger.error("TLE sync abandoned after %d attempts: %s", report.attempts, report.error)

        report.finished_at = datetime.now(timezone.utc)
        self.last_report = report
        return report

    def run_pass(self, report: SyncReport) -> SyncReport:
        """
        One sequential pass over every tracked object.

        Raises:
            SessionUnavailableError: no session could be established up front
        """
        report.reset_counts()
        report.error = None

        if not self.session.ensure_session():
            raise SessionUnavailableError("Could not establish a Space-Track session")

        targets = self.repository.list_sync_targets()
        report.targets = len(targets)
        if not targets:
            report.status = 'empty'
            logger.info("No satellites to update")
            return report

        logger.info("Fetching latest TLEs for %d satellites", len(targets))
        for index, (norad_id, user_id) in enumerate(targets):
            if index:
                self.sleep(self.pacing_seconds)
            try:
                if self.sync_object(norad_id, user_id):
                    report.stored += 1
                else:
                    report.unchanged += 1
            except (SpaceTrackError, InvalidElementSetError, SQLAlchemyError) as e:
                report.skipped += 1
                logger.warning("Failed for NORAD %s (user %s): %s", norad_id, user_id, e)
            except Exception:
                report.skipped += 1
                logger.exception("Unexpected error for NORAD %s (user %s)", norad_id, user_id)

        report.status = 'partial' if report.skipped else 'success'
        logger.info("TLE sync complete: %d stored, %d unchanged, %d skipped",
                    report.stored, report.unchanged, report.skipped)
        return report

    # ==================== Object level ====================

    def sync_object(self, norad_id: int, user_id: str) -> bool:
        """
        Fetch, derive and store the latest element set of one object.

        A session rejected earlier in the pass is re-established here.

        Returns:
            True if a new epoch was stored, False if it was already known
        """
        if not self.session.ensure_session():
            raise SessionUnavailableError("Could not re-establish a Space-Track session")
        raw = self.session.fetch_latest_tle(norad_id)
        return self.store_element_set(norad_id, user_id, raw)

    def store_element_set(self, norad_id: int, user_id: str, raw: RawElementSet) -> bool:
        """Derive, date and persist one element set; nothing is written if either step fails."""
        derived = derive(raw.line1, raw.line2)
        if derived is None:
            raise InvalidElementSetError(f"Could not derive orbital parameters for NORAD {norad_id}")
        try:
            epoch = resolve_epoch(raw.line1)
        except ValueError as e:
            raise InvalidElementSetError(f"Bad epoch for NORAD {norad_id}: {e}") from e

        return self.repository.record_observation(norad_id, user_id, raw, epoch, derived)

    def fetch_on_demand(self, norad_id: int, user_id: str) -> Optional[Satellite]:
        """
        Fetch and store a single object outside the scheduled pass.

        Upstream or data failures are logged and yield None, so callers can
        answer "not found" instead of surfacing a transient error.
        """
        try:
            if not self.session.ensure_session():
                raise SessionUnavailableError("Could not establish a Space-Track session")
            raw = self.session.fetch_gp_record(norad_id)
            self.store_element_set(norad_id, user_id, raw)
        except (SpaceTrackError, InvalidElementSetError, SQLAlchemyError) as e:
            logger.warning("On-demand fetch failed for NORAD %s: %s", norad_id, e)
            return None
        return self.repository.get_satellite(norad_id, user_id)

    def fetch_latest_public(self, norad_id: int) -> Optional[RawElementSet]:
        """Latest element set without storing it (public endpoints)."""
        try:
            if not self.session.ensure_session():
                raise SessionUnavailableError("Could not establish a Space-Track session")
            return self.session.fetch_latest_tle(norad_id)
        except SpaceTrackError as e:
            logger.warning("Public TLE fetch failed for NORAD %s: %s", norad_id, e)
            return None

    def status(self) -> Dict[str, Any]:
        return {
            'session': self.session.status(),
            'last_report': self.last_report.to_dict() if self.last_report else None,
        }
