"""
API route blueprints for the orbit history backend.
"""
from .satellite_routes import satellite_bp
from .public_routes import public_bp

__all__ = ['satellite_bp', 'public_bp']
