"""
Great-Circle and Chord Distances on the Spherical Earth.

This module provides the two kinds of distance the simulator works with:

- Arc distance: shortest path along the sphere surface (haversine).
- Chord distance: straight line between the same two points through the
  sphere interior.

Trilateration intersects spheres in Cartesian space, so the measured arc
distances must be converted to chords before they are used as sphere
radii. Using arc distances directly as Euclidean radii is a correctness
bug that raises no error.

Scientific Context
------------------
Domain: Spherical trigonometry
Model: Sphere of radius R = 6371 km

The WGS84 ellipsoidal geodesic (via `pyproj`, GeographicLib algorithms by
Charles Karney) is provided for reference only, to quantify the error of
the spherical model.

References
----------
- Sinnott, R.W. (1984). Virtues of the Haversine. Sky and Telescope, 68(2), 159.
- Karney, C.F.F. (2013). Algorithms for geodesics. Journal of Geodesy, 87(1), 43-55.
"""

import numpy as np
from numpy.typing import NDArray

from pyproj import Geod

from common.constants import EARTH_RADIUS_KM, PhysicalConstants
from common.types import ArcDistanceKm, ChordDistanceKm, GeoPoint


# Geodesic calculator for the WGS84 reference comparison
_wgs84_geod = Geod(
    a=PhysicalConstants.WGS84_SEMI_MAJOR_AXIS.value * 1000.0,
    f=PhysicalConstants.WGS84_FLATTENING.value,
)


def haversine_distance(
    point_a: GeoPoint,
    point_b: GeoPoint,
    radius_km: float = EARTH_RADIUS_KM
) -> ArcDistanceKm:
    """Great-circle distance between two points using the haversine formula.

    Parameters
    ----------
    point_a, point_b : GeoPoint
        Positions in degrees. Ranges are not validated; out-of-range
        values give a defined but geographically meaningless result.
    radius_km : float
        Sphere radius in km.

    Returns
    -------
    ArcDistanceKm
        Surface distance in km, in [0, π·R].

    Notes
    -----
    a = sin²(Δφ/2) + cos φ1 · cos φ2 · sin²(Δλ/2)
    c = 2 · atan2(√a, √(1 − a))
    d = R · c

    Examples
    --------
    >>> # Paris to London
    >>> d = haversine_distance(GeoPoint(48.8566, 2.3522), GeoPoint(51.5074, -0.1278))
    >>> round(d)
    344
    """
    phi1 = np.radians(point_a.latitude)
    phi2 = np.radians(point_b.latitude)
    dphi = np.radians(point_b.latitude - point_a.latitude)
    dlam = np.radians(point_b.longitude - point_a.longitude)

    a = np.sin(dphi / 2)**2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlam / 2)**2
    # Rounding near antipodes can push a slightly outside [0, 1]
    a = min(max(float(a), 0.0), 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return ArcDistanceKm(float(radius_km * c))


def haversine_distance_batch(
    lat1_deg: NDArray[np.float64],
    lon1_deg: NDArray[np.float64],
    lat2_deg: NDArray[np.float64],
    lon2_deg: NDArray[np.float64],
    radius_km: float = EARTH_RADIUS_KM
) -> NDArray[np.float64]:
    """Vectorized haversine distance for arrays of point pairs.

    Notes
    -----
    Inputs broadcast against each other, so one point against many works
    as well as pairwise arrays.
    """
    phi1 = np.radians(lat1_deg)
    phi2 = np.radians(lat2_deg)
    dphi = np.radians(np.asarray(lat2_deg) - np.asarray(lat1_deg))
    dlam = np.radians(np.asarray(lon2_deg) - np.asarray(lon1_deg))

    a = np.sin(dphi / 2)**2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlam / 2)**2
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return np.asarray(radius_km * c, dtype=np.float64)


def arc_to_chord(
    arc_km: ArcDistanceKm,
    radius_km: float = EARTH_RADIUS_KM
) -> ChordDistanceKm:
    """Convert a surface distance to the straight-line distance through the sphere.

    Parameters
    ----------
    arc_km : ArcDistanceKm
        Great-circle distance in km, expected in [0, π·R].
    radius_km : float
        Sphere radius in km.

    Returns
    -------
    ChordDistanceKm
        Chord length in km. Equal to 2R for antipodal points.

    Notes
    -----
    chord = 2R · sin(arc / 2R). The chord never exceeds the arc and the
    two coincide only as the arc tends to zero.
    """
    return ChordDistanceKm(float(2 * radius_km * np.sin(arc_km / (2 * radius_km))))


def chord_to_arc(
    chord_km: ChordDistanceKm,
    radius_km: float = EARTH_RADIUS_KM
) -> ArcDistanceKm:
    """Inverse of :func:`arc_to_chord`.

    The chord is clamped to [0, 2R] so that rounding on the diameter
    cannot produce NaN.
    """
    ratio = min(max(chord_km / (2 * radius_km), 0.0), 1.0)
    return ArcDistanceKm(float(2 * radius_km * np.arcsin(ratio)))


def ellipsoidal_distance(point_a: GeoPoint, point_b: GeoPoint) -> float:
    """Geodesic distance on the WGS84 ellipsoid, in km.

    For comparison with :func:`haversine_distance` only; no part of the
    trilateration pipeline uses this value.
    """
    _, _, distance_m = _wgs84_geod.inv(
        point_a.longitude, point_a.latitude,
        point_b.longitude, point_b.latitude
    )
    return float(distance_m) / 1000.0
