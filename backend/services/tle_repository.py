"""
Persistence for tracked satellites, their TLE history and derived parameters.

History and derived rows are keyed by (norad_id, epoch, user_id) and written
with insert-or-do-nothing, so re-running a sync over a seen epoch is a no-op.
The snapshot row is keyed by (norad_id, user_id) and written with
insert-or-update.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import case, or_
from sqlalchemy.dialects import postgresql, sqlite

from models import db, Satellite, TLEHistory, TLEDerived
from services.orbit_derivation import DerivedOrbitalParameters, RawElementSet

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def _upsert_insert(model):
    """Dialect-specific INSERT supporting ON CONFLICT clauses."""
    dialect = db.engine.dialect.name
    try:
        return _DIALECT_INSERTS[dialect](model)
    except KeyError:
        raise NotImplementedError(f"ON CONFLICT inserts not supported for dialect {dialect!r}")


class TLERepository:
    """Persistence Gateway over the Flask-SQLAlchemy session."""

    HISTORY_KEY = ('norad_id', 'epoch', 'user_id')
    SNAPSHOT_KEY = ('norad_id', 'user_id')

    # ==================== Writes ====================

    def insert_history(self, norad_id: int, user_id: str, raw: RawElementSet,
                       epoch: datetime) -> bool:
        """Insert a raw history row; returns False if the key already existed."""
        stmt = _upsert_insert(TLEHistory).values(
            norad_id=norad_id,
            user_id=user_id,
            name=raw.name,
            tle_line1=raw.line1,
            tle_line2=raw.line2,
            epoch=epoch,
            recorded_at=datetime.now(timezone.utc),
        ).on_conflict_do_nothing(index_elements=list(self.HISTORY_KEY))
        result = db.session.execute(stmt)
        return result.rowcount > 0

    def insert_derived(self, norad_id: int, user_id: str, name: str, epoch: datetime,
                       derived: DerivedOrbitalParameters) -> bool:
        """Insert a derived-parameters row; returns False if the key already existed."""
        stmt = _upsert_insert(TLEDerived).values(
            norad_id=norad_id,
            user_id=user_id,
            name=name,
            epoch=epoch,
            **derived.to_dict(),
        ).on_conflict_do_nothing(index_elements=list(self.HISTORY_KEY))
        result = db.session.execute(stmt)
        return result.rowcount > 0

    def upsert_snapshot(self, norad_id: int, user_id: str, raw: RawElementSet,
                        epoch: datetime, derived: DerivedOrbitalParameters):
        """
        Insert or refresh the current snapshot.

        An existing snapshot is only replaced by an element set whose epoch
        is not older than the stored one. The stored name is kept so a
        user rename survives later syncs.
        """
        values = {
            'norad_id': norad_id,
            'user_id': user_id,
            'name': raw.name,
            'tle_line1': raw.line1,
            'tle_line2': raw.line2,
            'tle_epoch': epoch,
            'inclination': derived.inclination,
            'mean_motion': derived.mean_motion,
            'eccentricity': derived.eccentricity,
            'semi_major_axis': derived.semi_major_axis_km,
            'perigee': derived.perigee_km,
            'apogee': derived.apogee_km,
            'period': derived.orbital_period_minutes,
            'altitude': derived.altitude_km,
            'orbit_type': derived.orbit_type,
            'orbital_velocity_kms': derived.velocity_kms,
            'orbital_velocity_kmh': int(round(derived.velocity_kms * 3600)),
            'updated_at': datetime.now(timezone.utc),
        }
        table = Satellite.__table__
        stmt = _upsert_insert(Satellite).values(**values)
        update_columns = {
            key: stmt.excluded[key]
            for key in values
            if key not in self.SNAPSHOT_KEY and key != 'name'
        }
        # Placeholder names from track() are replaced on the first fetch
        update_columns['name'] = case(
            (table.c.tle_epoch.is_(None), stmt.excluded.name),
            else_=table.c.name,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=list(self.SNAPSHOT_KEY),
            set_=update_columns,
            where=or_(
                table.c.tle_epoch.is_(None),
                table.c.tle_epoch <= stmt.excluded.tle_epoch,
            ),
        )
        db.session.execute(stmt)

    def record_observation(self, norad_id: int, user_id: str, raw: RawElementSet,
                           epoch: datetime, derived: DerivedOrbitalParameters) -> bool:
        """
        Store one fetched element set: history, derived row and snapshot,
        committed together.

        Returns:
            True if a new history row was written, False for a seen epoch
        """
        try:
            inserted = self.insert_history(norad_id, user_id, raw, epoch)
            self.insert_derived(norad_id, user_id, raw.name, epoch, derived)
            self.upsert_snapshot(norad_id, user_id, raw, epoch, derived)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        if not inserted:
            logger.debug("NORAD %s epoch %s already stored for %s", norad_id, epoch, user_id)
        return inserted

    # ==================== Reads ====================

    def list_sync_targets(self) -> List[Tuple[int, str]]:
        """(norad_id, user_id) of every tracked object, in a stable order."""
        rows = Satellite.query.with_entities(Satellite.norad_id, Satellite.user_id)\
            .filter(Satellite.norad_id.isnot(None), Satellite.user_id.isnot(None))\
            .order_by(Satellite.user_id, Satellite.norad_id)\
            .all()
        return [(row.norad_id, row.user_id) for row in rows]

    def list_satellites(self, user_id: str) -> List[Satellite]:
        return Satellite.query.filter_by(user_id=user_id).order_by(Satellite.name.asc()).all()

    def get_satellite(self, norad_id: int, user_id: str) -> Optional[Satellite]:
        return db.session.get(Satellite, (norad_id, user_id))

    def get_history(self, norad_id: int, user_id: str) -> List[TLEHistory]:
        return TLEHistory.query.filter_by(norad_id=norad_id, user_id=user_id)\
            .order_by(TLEHistory.epoch.asc()).all()

    def get_derived_history(self, norad_id: int, user_id: str) -> List[TLEDerived]:
        return TLEDerived.query.filter_by(norad_id=norad_id, user_id=user_id)\
            .order_by(TLEDerived.epoch.asc()).all()

    # ==================== Owner edits ====================

    def track(self, norad_id: int, user_id: str, name: Optional[str] = None) -> Satellite:
        """Register an object for syncing without fetching it."""
        satellite = self.get_satellite(norad_id, user_id)
        if satellite is None:
            satellite = Satellite(norad_id=norad_id, user_id=user_id,
                                  name=name or f"NORAD {norad_id}")
            db.session.add(satellite)
            db.session.commit()
        return satellite

    def rename_satellite(self, norad_id: int, user_id: str, name: str) -> Optional[Satellite]:
        satellite = self.get_satellite(norad_id, user_id)
        if satellite is None:
            return None
        satellite.name = name
        db.session.commit()
        return satellite

    def delete_satellite(self, norad_id: int, user_id: str) -> bool:
        """Stop tracking an object; its history stays."""
        satellite = self.get_satellite(norad_id, user_id)
        if satellite is None:
            return False
        db.session.delete(satellite)
        db.session.commit()
        return True
