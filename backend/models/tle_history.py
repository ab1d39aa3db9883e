"""
Append-only TLE history and the parameters derived from each entry.
"""
from . import db, utcnow


class TLEHistory(db.Model):
    """
    Raw element sets as fetched, one row per (norad_id, epoch, user_id).
    """
    __tablename__ = 'tle_history'
    __table_args__ = (
        db.UniqueConstraint('norad_id', 'epoch', 'user_id', name='uq_tle_history_norad_epoch_user'),
    )

    id = db.Column(db.Integer, primary_key=True)
    norad_id = db.Column(db.Integer, nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(100))

    # TLE Data
    tle_line1 = db.Column(db.String(70), nullable=False)
    tle_line2 = db.Column(db.String(70), nullable=False)
    epoch = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    recorded_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        """Convert model to dictionary."""
        return {
            'norad_id': self.norad_id,
            'name': self.name,
            'tle_line1': self.tle_line1,
            'tle_line2': self.tle_line2,
            'epoch': self.epoch.isoformat() if self.epoch else None,
            'recorded_at': self.recorded_at.isoformat() if self.recorded_at else None,
        }

    def __repr__(self):
        return f'<TLEHistory norad_id={self.norad_id} epoch={self.epoch}>'


class TLEDerived(db.Model):
    """
    Orbital parameters derived from one history row, same composite key.
    """
    __tablename__ = 'tle_derived'
    __table_args__ = (
        db.UniqueConstraint('norad_id', 'epoch', 'user_id', name='uq_tle_derived_norad_epoch_user'),
    )

    id = db.Column(db.Integer, primary_key=True)
    norad_id = db.Column(db.Integer, nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(100))
    epoch = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    inclination = db.Column(db.Float)
    eccentricity = db.Column(db.Float)
    mean_motion = db.Column(db.Float)
    semi_major_axis_km = db.Column(db.Float)
    perigee_km = db.Column(db.Float)
    apogee_km = db.Column(db.Float)
    orbital_period_minutes = db.Column(db.Float)
    altitude_km = db.Column(db.Float)
    velocity_kms = db.Column(db.Float)
    raan = db.Column(db.Float)
    arg_perigee = db.Column(db.Float)
    mean_anomaly = db.Column(db.Float)
    bstar = db.Column(db.Float)
    mean_motion_dot = db.Column(db.Float)
    mean_motion_ddot = db.Column(db.Float)

    PARAMETER_FIELDS = (
        'inclination', 'eccentricity', 'mean_motion',
        'semi_major_axis_km', 'perigee_km', 'apogee_km',
        'orbital_period_minutes', 'altitude_km', 'velocity_kms',
        'raan', 'arg_perigee', 'mean_anomaly',
        'bstar', 'mean_motion_dot', 'mean_motion_ddot',
    )

    def to_dict(self):
        """Convert model to dictionary."""
        data = {'epoch': self.epoch.isoformat() if self.epoch else None}
        for field in self.PARAMETER_FIELDS:
            data[field] = getattr(self, field)
        return data

    def __repr__(self):
        return f'<TLEDerived norad_id={self.norad_id} epoch={self.epoch}>'
