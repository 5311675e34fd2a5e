"""
Geospatial Module for the GPS Trilateration Simulator.

This is the geodesic core. All Earth-surface calculations system-wide
MUST originate from this module, so that one Earth radius and one
distance formula are used everywhere.

This module provides:
- Spherical Earth coordinate transforms (geographic <-> Cartesian)
- Great-circle (arc) and chord distances
- Three-sphere intersection trilateration
"""

from geospatial.coordinate_models import (
    to_cartesian,
    from_cartesian,
    to_cartesian_batch,
    from_cartesian_batch,
    surface_offset_km,
)

from geospatial.distance_calculations import (
    haversine_distance,
    haversine_distance_batch,
    arc_to_chord,
    chord_to_arc,
    ellipsoidal_distance,
)

from geospatial.trilateration import (
    TrilaterationError,
    NoIntersectionError,
    DegenerateGeometryError,
    LocalFrame,
    TrilaterationOutcome,
    build_local_frame,
    solve_sphere_intersection,
    select_candidate,
    trilaterate,
    trilaterate_measurements,
)

__all__ = [
    # Coordinate models
    "to_cartesian",
    "from_cartesian",
    "to_cartesian_batch",
    "from_cartesian_batch",
    "surface_offset_km",
    # Distance calculations
    "haversine_distance",
    "haversine_distance_batch",
    "arc_to_chord",
    "chord_to_arc",
    "ellipsoidal_distance",
    # Trilateration
    "TrilaterationError",
    "NoIntersectionError",
    "DegenerateGeometryError",
    "LocalFrame",
    "TrilaterationOutcome",
    "build_local_frame",
    "solve_sphere_intersection",
    "select_candidate",
    "trilaterate",
    "trilaterate_measurements",
]
