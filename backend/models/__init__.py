"""
SQLAlchemy database models for the orbit history backend.
"""
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc)


from .satellite import Satellite
from .tle_history import TLEHistory, TLEDerived

__all__ = ['db', 'utcnow', 'Satellite', 'TLEHistory', 'TLEDerived']
