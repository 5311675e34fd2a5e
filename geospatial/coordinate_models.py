"""
Coordinate Models for the Spherical Earth.

This module maps geographic positions to an Earth-centred Cartesian frame
and back, assuming a perfect sphere of radius R = 6371 km. The Cartesian
frame is the intermediate representation in which trilateration is solved
as an intersection of spheres.

Scientific Context
------------------
Domain: Geodesy, spherical trigonometry
Model: Sphere of radius R (same radius as the haversine distance)

Frame Definition
----------------
- Origin at the centre of the sphere
- X-axis through (0°, 0°)
- Y-axis through (0°, 90°E)
- Z-axis through the North Pole

Limitations
-----------
The inverse transform keeps only the direction of a vector. Any point on
the same ray from the origin maps to the same latitude/longitude, so
points off the sphere lose their radial information. At the poles x = y = 0
and the recovered longitude is arbitrary.
"""

from typing import Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import EARTH_RADIUS_KM
from common.types import GeoPoint, CartesianPoint


def to_cartesian(point: GeoPoint, radius_km: float = EARTH_RADIUS_KM) -> CartesianPoint:
    """Convert a geographic point to Earth-centred Cartesian coordinates.

    Parameters
    ----------
    point : GeoPoint
        Latitude/longitude in degrees.
    radius_km : float
        Sphere radius in km (default: the model Earth radius).

    Returns
    -------
    CartesianPoint
        (x, y, z) in km, on the sphere of the given radius.

    Notes
    -----
    x = R cos φ cos λ, y = R cos φ sin λ, z = R sin φ
    """
    phi = np.radians(point.latitude)
    lam = np.radians(point.longitude)

    cos_phi = np.cos(phi)

    return CartesianPoint(
        x=float(radius_km * cos_phi * np.cos(lam)),
        y=float(radius_km * cos_phi * np.sin(lam)),
        z=float(radius_km * np.sin(phi)),
    )


def from_cartesian(point: CartesianPoint) -> GeoPoint:
    """Convert Earth-centred Cartesian coordinates back to a geographic point.

    Parameters
    ----------
    point : CartesianPoint
        (x, y, z) in km. Need not lie on the sphere.

    Returns
    -------
    GeoPoint
        Latitude in [-90, 90] and longitude in (-180, 180], degrees.

    Raises
    ------
    ValueError
        If the point is the origin, which has no direction.

    Notes
    -----
    r = |v|, lat = asin(z / r), lng = atan2(y, x)
    """
    r = point.norm
    if r == 0.0:
        raise ValueError("The origin has no geographic direction")

    # Rounding can push |z / r| a hair above 1
    sin_lat = np.clip(point.z / r, -1.0, 1.0)

    return GeoPoint(
        latitude=float(np.degrees(np.arcsin(sin_lat))),
        longitude=float(np.degrees(np.arctan2(point.y, point.x))),
    )


def surface_offset_km(point: CartesianPoint, radius_km: float = EARTH_RADIUS_KM) -> float:
    """Signed distance of a Cartesian point from the model sphere.

    Positive above the surface, negative below.
    """
    return point.norm - radius_km


# Vectorized versions for batch processing
def to_cartesian_batch(
    latitudes_deg: NDArray[np.float64],
    longitudes_deg: NDArray[np.float64],
    radius_km: float = EARTH_RADIUS_KM
) -> NDArray[np.float64]:
    """Vectorized geographic to Cartesian conversion.

    Parameters
    ----------
    latitudes_deg : ndarray
        Array of latitudes in degrees.
    longitudes_deg : ndarray
        Array of longitudes in degrees, broadcastable with latitudes.
    radius_km : float
        Sphere radius in km.

    Returns
    -------
    ndarray
        Array of shape (..., 3) holding (x, y, z) in km.
    """
    phi = np.radians(np.asarray(latitudes_deg, dtype=np.float64))
    lam = np.radians(np.asarray(longitudes_deg, dtype=np.float64))

    cos_phi = np.cos(phi)

    return np.stack(
        [
            radius_km * cos_phi * np.cos(lam),
            radius_km * cos_phi * np.sin(lam),
            radius_km * np.sin(phi) * np.ones_like(lam),
        ],
        axis=-1,
    )


def from_cartesian_batch(
    vectors_km: NDArray[np.float64]
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Vectorized Cartesian to geographic conversion.

    Parameters
    ----------
    vectors_km : ndarray
        Array of shape (..., 3) holding (x, y, z) in km. No row may be
        the zero vector.

    Returns
    -------
    Tuple[ndarray, ndarray]
        (latitudes_deg, longitudes_deg).
    """
    vectors = np.asarray(vectors_km, dtype=np.float64)
    x = vectors[..., 0]
    y = vectors[..., 1]
    z = vectors[..., 2]

    r = np.linalg.norm(vectors, axis=-1)
    if np.any(r == 0.0):
        raise ValueError("The origin has no geographic direction")

    latitudes = np.degrees(np.arcsin(np.clip(z / r, -1.0, 1.0)))
    longitudes = np.degrees(np.arctan2(y, x))

    return latitudes, longitudes
