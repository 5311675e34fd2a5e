"""
Common utilities and infrastructure for the GPS Trilateration Simulator.

This package provides foundational components used across all modules:
- Model constants (spherical Earth radius, tolerances)
- Value types for positions, distances and solver outcomes
- Unit registry for distances given with units
- Logging and audit trail infrastructure
"""

from common.constants import (
    PhysicalConstants,
    EARTH_RADIUS_KM,
    GEOMETRY_TOLERANCE_KM,
)
from common.units import validate_units, to_kilometers
from common.types import (
    ArcDistanceKm,
    ChordDistanceKm,
    GeoPoint,
    CartesianPoint,
    RangeMeasurement,
    TrilaterationStatus,
    PositionFix,
)
from common.logging_config import get_logger, AuditLogger

__all__ = [
    "PhysicalConstants",
    "EARTH_RADIUS_KM",
    "GEOMETRY_TOLERANCE_KM",
    "validate_units",
    "to_kilometers",
    "ArcDistanceKm",
    "ChordDistanceKm",
    "GeoPoint",
    "CartesianPoint",
    "RangeMeasurement",
    "TrilaterationStatus",
    "PositionFix",
    "get_logger",
    "AuditLogger",
]
