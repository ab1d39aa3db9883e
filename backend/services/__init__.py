"""
Business logic services for the orbit history backend.

Services:
- orbit_derivation: TLE field extraction and orbital parameter derivation
- epoch_resolver: TLE epoch to UTC datetime
- spacetrack_session: Space-Track.org session, throttling and fetches
- tle_repository: idempotent persistence of history and snapshots
- sync_service: the sync job (per-object isolation, pacing, retry)
- scheduler_service: periodic execution of the sync job
"""

from .orbit_derivation import (
    DerivedOrbitalParameters,
    RawElementSet,
    classify_orbit,
    derive,
    parse_tle_text,
)
from .epoch_resolver import resolve_epoch
from .spacetrack_session import (
    SpaceTrackSession,
    SyncSession,
    SpaceTrackError,
    TransportError,
    RateLimitError,
    AuthenticationError,
    SessionUnavailableError,
    TLENotFoundError,
)
from .tle_repository import TLERepository
from .sync_service import SyncService, SyncReport, InvalidElementSetError

__all__ = [
    # Derivation
    'DerivedOrbitalParameters',
    'RawElementSet',
    'classify_orbit',
    'derive',
    'parse_tle_text',
    'resolve_epoch',

    # Space-Track
    'SpaceTrackSession',
    'SyncSession',
    'SpaceTrackError',
    'TransportError',
    'RateLimitError',
    'AuthenticationError',
    'SessionUnavailableError',
    'TLENotFoundError',

    # Persistence
    'TLERepository',

    # Sync
    'SyncService',
    'SyncReport',
    'InvalidElementSetError',
]
