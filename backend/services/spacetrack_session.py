"""
Space-Track.org session management.

Owns the authenticated cookie session with Space-Track, its freshness
window and the cooldown imposed after the API throttles us.

State machine:
    no session -> login -> authenticated -> (429) rate limited
    rate limited -> (cooldown elapsed) -> authenticated / login again

API Documentation: https://www.space-track.org/documentation
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from services.orbit_derivation import RawElementSet, parse_tle_text
from utils.logging_util import mask_username

logger = logging.getLogger(__name__)


class SpaceTrackError(Exception):
    """Base exception for Space-Track errors"""
    pass


class TransportError(SpaceTrackError):
    """Raised on timeouts, connection errors and unexpected HTTP statuses"""
    pass


class RateLimitError(SpaceTrackError):
    """Raised when rate limit is hit or the cooldown is still running"""
    pass


class AuthenticationError(SpaceTrackError):
    """Raised when a request is rejected as unauthenticated"""
    pass


class SessionUnavailableError(SpaceTrackError):
    """Raised when no session could be established"""
    pass


class TLENotFoundError(SpaceTrackError):
    """Raised when Space-Track has no element set for an object"""
    pass


@dataclass
class SyncSession:
    """Mutable session state shared by every fetch of one service instance."""
    credential_token: Optional[str] = None
    issued_at: Optional[float] = None
    rate_limited_until: float = 0.0

    def clear(self):
        """Drop the credential; an active cooldown survives."""
        self.credential_token = None
        self.issued_at = None


class SpaceTrackSession:
    """
    Authenticated access to Space-Track.

    One instance holds one ``SyncSession``. The check-login-use sequence runs
    under a re-entrant lock so the web app's request threads and the
    scheduler thread never log in twice or race on the cooldown.
    """

    LOGIN_PATH = "/ajaxauth/login"
    COOKIE_NAME = "chocolatechip"

    def __init__(self, username: Optional[str], password: Optional[str],
                 base_url: str = "https://www.space-track.org",
                 session_ttl: float = 20 * 60,
                 rate_limit_cooldown: float = 60,
                 auth_timeout: float = 30,
                 request_timeout: float = 15,
                 http: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time):
        self.username = username
        self.password = password
        self.base_url = base_url.rstrip('/')
        self.session_ttl = session_ttl
        self.rate_limit_cooldown = rate_limit_cooldown
        self.auth_timeout = auth_timeout
        self.request_timeout = request_timeout
        self.clock = clock

        self.state = SyncSession()
        self.login_attempts = 0
        self._lock = threading.RLock()

        self._http = http or requests.Session()
        self._http.headers.update({
            'Accept': 'application/json, text/plain, */*',
        })

    @classmethod
    def from_config(cls, config) -> 'SpaceTrackSession':
        """Build a session from a Flask config mapping."""
        return cls(
            username=config.get('SPACETRACK_USER'),
            password=config.get('SPACETRACK_PASS'),
            base_url=config.get('SPACETRACK_URL', 'https://www.space-track.org'),
            session_ttl=config.get('SPACETRACK_SESSION_TTL', 20 * 60),
            rate_limit_cooldown=config.get('SPACETRACK_RATE_LIMIT_COOLDOWN', 60),
            auth_timeout=config.get('SPACETRACK_AUTH_TIMEOUT', 30),
            request_timeout=config.get('SPACETRACK_REQUEST_TIMEOUT', 15),
        )

    # ==================== Session state ====================

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    @property
    def is_authenticated(self) -> bool:
        return self.state.credential_token is not None

    def session_age(self) -> Optional[float]:
        if self.state.issued_at is None:
            return None
        return self.clock() - self.state.issued_at

    def is_fresh(self) -> bool:
        age = self.session_age()
        return self.is_authenticated and age is not None and age <= self.session_ttl

    def is_rate_limited(self) -> bool:
        return self.clock() < self.state.rate_limited_until

    def cooldown_remaining(self) -> float:
        return max(0.0, self.state.rate_limited_until - self.clock())

    def invalidate(self):
        """Forget the current credential; the next call logs in again."""
        with self._lock:
            self.state.clear()
            self._http.cookies.clear()

    def _start_cooldown(self):
        with self._lock:
            self.state.rate_limited_until = self.clock() + self.rate_limit_cooldown
        logger.warning("Rate limited (429), requests refused for %ss", self.rate_limit_cooldown)

    # ==================== Authentication ====================

    def login(self) -> bool:
        """
        Exchange the configured credentials for a session cookie.

        A failed login clears any held session. No retry happens here, and
        nothing is sent while a rate-limit cooldown is running.
        """
        with self._lock:
            if self.is_rate_limited():
                logger.warning("Login deferred, rate limited for another %.0fs",
                               self.cooldown_remaining())
                return False

            if not self.has_credentials:
                logger.error("SPACETRACK_USER or SPACETRACK_PASS not set")
                self.invalidate()
                return False

            self.login_attempts += 1
            try:
                response = self._http.post(
                    self.base_url + self.LOGIN_PATH,
                    data={'identity': self.username, 'password': self.password},
                    timeout=self.auth_timeout,
                    allow_redirects=False,
                )
            except requests.RequestException as e:
                logger.error("Login failed for %s: %s", mask_username(self.username), e)
                self.invalidate()
                return False

            # Space-Track answers bad credentials with 200 and {"Login": "Failed"}
            token = response.cookies.get(self.COOKIE_NAME) or self._http.cookies.get(self.COOKIE_NAME)
            if response.status_code != 200 or 'failed' in response.text.lower() or not token:
                logger.error("Login rejected for %s (HTTP %s)",
                             mask_username(self.username), response.status_code)
                self.invalidate()
                return False

            self.state.credential_token = token
            self.state.issued_at = self.clock()
            logger.info("Space-Track login successful for %s", mask_username(self.username))
            return True

    def ensure_session(self) -> bool:
        """
        Log in if there is no session or it is older than the TTL.

        During a cooldown no login is attempted; a stale credential is kept
        and ``get`` refuses requests until the cooldown ends.
        """
        with self._lock:
            if not self.is_fresh() and not self.is_rate_limited():
                self.login()
            return self.is_authenticated

    # ==================== Requests ====================

    def get(self, path: str, timeout: Optional[float] = None) -> requests.Response:
        """
        Authenticated GET against the Space-Track API.

        Raises:
            RateLimitError: cooldown active, or the response was 429
            AuthenticationError: no session, or the response was 401/403
            TransportError: timeout, connection error or other bad status
        """
        with self._lock:
            if self.is_rate_limited():
                raise RateLimitError(
                    f"Rate limited for another {self.cooldown_remaining():.0f}s")
            if not self.is_authenticated:
                raise AuthenticationError("No Space-Track session")
            cookie = self.state.credential_token

        try:
            response = self._http.get(
                self.base_url + path,
                cookies={self.COOKIE_NAME: cookie},
                timeout=timeout or self.request_timeout,
            )
        except requests.Timeout as e:
            raise TransportError(f"Timeout fetching {path}") from e
        except requests.RequestException as e:
            raise TransportError(f"Request error fetching {path}: {e}") from e

        if response.status_code == 429:
            self._start_cooldown()
            raise RateLimitError("Space-Track returned 429")
        if response.status_code in (401, 403):
            logger.warning("Session rejected (HTTP %s), clearing it", response.status_code)
            self.invalidate()
            raise AuthenticationError(f"HTTP {response.status_code}")
        if response.status_code != 200:
            raise TransportError(f"HTTP {response.status_code}: {response.text[:200]}")
        return response

    def fetch_latest_tle(self, norad_id: int) -> RawElementSet:
        """Latest element set for one object, as three-line text."""
        path = (
            f"/basicspacedata/query/class/gp/"
            f"NORAD_CAT_ID/{int(norad_id)}/"
            f"orderby/EPOCH%20desc/"
            f"format/3le/limit/1"
        )
        response = self.get(path)
        raw = parse_tle_text(response.text, default_name=f"NORAD {norad_id}")
        if raw is None:
            raise TLENotFoundError(f"No TLE data returned for NORAD {norad_id}")
        return raw

    def fetch_gp_record(self, norad_id: int) -> RawElementSet:
        """Latest element set for one object, from the JSON ``gp`` record."""
        path = (
            f"/basicspacedata/query/class/gp/"
            f"NORAD_CAT_ID/{int(norad_id)}/"
            f"orderby/EPOCH%20desc/"
            f"format/json/limit/1"
        )
        response = self.get(path)
        try:
            records = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON for NORAD {norad_id}") from e

        if not isinstance(records, list) or not records:
            raise TLENotFoundError(f"No GP record for NORAD {norad_id}")
        record = records[0]
        line1 = record.get('TLE_LINE1')
        line2 = record.get('TLE_LINE2')
        if not line1 or not line2:
            raise TLENotFoundError(f"GP record for NORAD {norad_id} has no TLE lines")
        name = (record.get('OBJECT_NAME') or '').strip() or 'UNKNOWN'
        return RawElementSet(name=name, line1=line1, line2=line2)

    def status(self) -> Dict[str, Any]:
        """Session status for monitoring endpoints."""
        age = self.session_age()
        return {
            'username': mask_username(self.username),
            'authenticated': self.is_authenticated,
            'session_age_seconds': round(age, 1) if age is not None else None,
            'rate_limited': self.is_rate_limited(),
            'cooldown_remaining_seconds': round(self.cooldown_remaining(), 1),
            'login_attempts': self.login_attempts,
        }
