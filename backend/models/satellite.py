"""
Satellite model: the current snapshot of one tracked object for one owner.
"""
from . import db, utcnow


class Satellite(db.Model):
    """
    Latest element set and derived parameters of a tracked object.
    Keyed by (norad_id, user_id); each owner tracks its own copy.
    """
    __tablename__ = 'satellites'

    norad_id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    user_id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)

    # TLE Data
    tle_line1 = db.Column(db.String(70))
    tle_line2 = db.Column(db.String(70))
    tle_epoch = db.Column(db.DateTime(timezone=True))

    # Orbital parameters (derived from TLE)
    inclination = db.Column(db.Float)  # degrees
    mean_motion = db.Column(db.Float)  # revolutions per day
    eccentricity = db.Column(db.Float)
    semi_major_axis = db.Column(db.Float)  # km
    perigee = db.Column(db.Float)  # km
    apogee = db.Column(db.Float)  # km
    period = db.Column(db.Float)  # minutes
    altitude = db.Column(db.Float)  # km
    orbit_type = db.Column(db.String(10))  # LEO, MEO, GEO, HEO
    orbital_velocity_kms = db.Column(db.Float)
    orbital_velocity_kmh = db.Column(db.Integer)

    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self, include_tle=True):
        """Convert model to dictionary."""
        data = {
            'norad_id': self.norad_id,
            'name': self.name,
            'orbit_type': self.orbit_type,
            'altitude': self.altitude,
            'inclination': self.inclination,
            'mean_motion': self.mean_motion,
            'eccentricity': self.eccentricity,
            'semi_major_axis': self.semi_major_axis,
            'perigee': self.perigee,
            'apogee': self.apogee,
            'period': self.period,
            'orbital_velocity_kms': self.orbital_velocity_kms,
            'orbital_velocity_kmh': self.orbital_velocity_kmh,
            'tle_epoch': self.tle_epoch.isoformat() if self.tle_epoch else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_tle:
            data['tle_line1'] = self.tle_line1
            data['tle_line2'] = self.tle_line2
        return data

    def __repr__(self):
        return f'<Satellite {self.name} (NORAD: {self.norad_id}, user: {self.user_id})>'
