"""
Orbital parameter derivation from Two-Line Element sets.

Single shared entry point (``derive``) used by both the scheduled sync job
and the on-demand satellite lookup. Pure functions only: no I/O, no state.

Field layout (1-based columns, published TLE format):

    Line 1: 19-20 epoch year, 21-32 epoch day, 34-43 mean motion dot,
            45-52 mean motion ddot, 54-61 bstar
    Line 2: 9-16 inclination, 18-25 RAAN, 27-33 eccentricity,
            35-42 argument of perigee, 44-51 mean anomaly, 53-63 mean motion
"""
import math
import re
from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

# Earth constants for orbital calculations
EARTH_RADIUS_KM = 6378.137
EARTH_MU = 398600.4418  # km^3/s^2
SECONDS_PER_DAY = 86400.0

# Orbit regime boundaries (km)
LEO_CEILING_KM = 2000.0
GEO_ALTITUDE_KM = 35786.0
GEO_BAND_KM = 2000.0

# Decimal places kept per field
ANGLE_PRECISION = 4
ECCENTRICITY_PRECISION = 8
MEAN_MOTION_PRECISION = 8
DISTANCE_PRECISION = 2
VELOCITY_PRECISION = 4
PERIOD_PRECISION = 4

# " 12345-3", "-11606-4", "+00000+0", "00000-0"
_EXPONENTIAL_FIELD = re.compile(r'^([+-]?)(\d{1,5})([+-])(\d)$', re.ASCII)


@dataclass(frozen=True)
class RawElementSet:
    """One element set as received: optional name line and the two data lines."""
    name: str
    line1: str
    line2: str


@dataclass(frozen=True)
class DerivedOrbitalParameters:
    """Physical orbital parameters computed from one element set."""
    inclination: float
    eccentricity: float
    mean_motion: float
    semi_major_axis_km: float
    perigee_km: float
    apogee_km: float
    orbital_period_minutes: float
    altitude_km: float
    velocity_kms: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    bstar: float
    mean_motion_dot: float
    mean_motion_ddot: float

    @property
    def orbit_type(self) -> str:
        return classify_orbit(self.altitude_km)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def _field(line: str, start: int, end: int) -> str:
    """Slice a 1-based inclusive column range and strip padding."""
    return line[start - 1:end].strip()


def _parse_float(text: str) -> Optional[float]:
    if not text or not text.isascii():
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_exponential_field(text: str) -> Optional[float]:
    """
    Decode the TLE implied-decimal exponent notation.

    ``" 10270-3"`` means ``0.10270e-3``; an empty field is 0.
    Returns None when the field does not follow the notation.
    """
    text = text.strip()
    if not text:
        return 0.0
    match = _EXPONENTIAL_FIELD.match(text.replace(' ', ''))
    if not match:
        return None
    sign, mantissa, exp_sign, exponent = match.groups()
    try:
        value = Decimal(f"{sign}0.{mantissa}E{exp_sign}{exponent}")
    except InvalidOperation:
        return None
    return float(value)


def parse_decimal_field(text: str) -> Optional[float]:
    """Parse a plain decimal literal such as ``" .00016717"``; empty is 0."""
    text = text.strip()
    if not text:
        return 0.0
    return _parse_float(text)


def parse_eccentricity(text: str) -> Optional[float]:
    """Eccentricity is stored as digits with an implied leading decimal point."""
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    return float('0.' + text)


def classify_orbit(altitude_km: float) -> str:
    """
    Coarse orbit regime from mean altitude.

    LEO below 2000 km, GEO within 2000 km of 35786 km, MEO anything else
    below 35786 km, HEO beyond.
    """
    if altitude_km < LEO_CEILING_KM:
        return 'LEO'
    if abs(altitude_km - GEO_ALTITUDE_KM) <= GEO_BAND_KM:
        return 'GEO'
    if altitude_km < GEO_ALTITUDE_KM:
        return 'MEO'
    return 'HEO'


def derive(line1: Optional[str], line2: Optional[str]) -> Optional[DerivedOrbitalParameters]:
    """
    Derive orbital parameters from the two data lines of an element set.

    Returns None if either line is missing, mean motion is not a positive
    number, or any other field fails to parse. Never returns a partial result.
    """
    if not line1 or not line2:
        return None
    line1 = line1.rstrip()
    line2 = line2.rstrip()

    mean_motion = _parse_float(_field(line2, 53, 63))
    if mean_motion is None or mean_motion <= 0:
        return None

    inclination = _parse_float(_field(line2, 9, 16))
    raan = _parse_float(_field(line2, 18, 25))
    eccentricity = parse_eccentricity(_field(line2, 27, 33))
    arg_perigee = _parse_float(_field(line2, 35, 42))
    mean_anomaly = _parse_float(_field(line2, 44, 51))

    mean_motion_dot = parse_decimal_field(_field(line1, 34, 43))
    mean_motion_ddot = parse_exponential_field(_field(line1, 45, 52))
    bstar = parse_exponential_field(_field(line1, 54, 61))

    fields = (inclination, raan, eccentricity, arg_perigee, mean_anomaly,
              mean_motion_dot, mean_motion_ddot, bstar)
    if any(value is None for value in fields):
        return None

    # Kepler's third law
    period_seconds = SECONDS_PER_DAY / mean_motion
    semi_major_axis = (EARTH_MU * (period_seconds / (2 * math.pi)) ** 2) ** (1 / 3)

    altitude = semi_major_axis - EARTH_RADIUS_KM
    velocity = (2 * math.pi * semi_major_axis) / period_seconds
    perigee = semi_major_axis * (1 - eccentricity) - EARTH_RADIUS_KM
    apogee = semi_major_axis * (1 + eccentricity) - EARTH_RADIUS_KM

    return DerivedOrbitalParameters(
        inclination=round(inclination, ANGLE_PRECISION),
        eccentricity=round(eccentricity, ECCENTRICITY_PRECISION),
        mean_motion=round(mean_motion, MEAN_MOTION_PRECISION),
        semi_major_axis_km=round(semi_major_axis, DISTANCE_PRECISION),
        perigee_km=round(perigee, DISTANCE_PRECISION),
        apogee_km=round(apogee, DISTANCE_PRECISION),
        orbital_period_minutes=round(period_seconds / 60, PERIOD_PRECISION),
        altitude_km=round(altitude, DISTANCE_PRECISION),
        velocity_kms=round(velocity, VELOCITY_PRECISION),
        raan=round(raan, ANGLE_PRECISION),
        arg_perigee=round(arg_perigee, ANGLE_PRECISION),
        mean_anomaly=round(mean_anomaly, ANGLE_PRECISION),
        bstar=bstar,
        mean_motion_dot=mean_motion_dot,
        mean_motion_ddot=mean_motion_ddot,
    )


def parse_tle_text(tle_text: str, default_name: str = 'UNKNOWN') -> Optional[RawElementSet]:
    """
    Parse raw two- or three-line text into the first complete element set.

    A name line is optional; the ``0 `` prefix used by 3LE output is dropped.
    """
    if not tle_text:
        return None
    lines = [line.rstrip() for line in tle_text.splitlines() if line.strip()]

    for i, line in enumerate(lines):
        if not line.startswith('1 '):
            continue
        if i + 1 >= len(lines) or not lines[i + 1].startswith('2 '):
            continue
        name = default_name
        if i > 0 and not lines[i - 1].startswith(('1 ', '2 ')):
            name = lines[i - 1].strip()
            if name.startswith('0 '):
                name = name[2:].strip()
        return RawElementSet(name=name or default_name, line1=line, line2=lines[i + 1])

    return None
