"""
Type Definitions for the Trilateration Simulator.

This module defines the value types exchanged between the geodesic module
and its callers. Positions, distances and solver outcomes are plain
immutable values; none of them carries identity or lifecycle.

Design Rationale
----------------
Surface (arc) distances and straight-line (chord) distances are both
kilometres, but using one where the other is expected is a silent
correctness bug in trilateration. They get distinct names so every
signature states which kind it holds.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType, Optional, Tuple
import numpy as np
from numpy.typing import NDArray


# Great-circle distance along the sphere surface, in km.
ArcDistanceKm = NewType("ArcDistanceKm", float)

# Straight-line distance through the sphere interior, in km.
ChordDistanceKm = NewType("ChordDistanceKm", float)


@dataclass(frozen=True)
class GeoPoint:
    """A geographic position on the model sphere.

    Attributes
    ----------
    latitude : float
        Latitude in DEGREES. Expected range: [-90, 90].
    longitude : float
        Longitude in DEGREES. Expected range: [-180, 180].

    Notes
    -----
    The constructor does not validate ranges; the geodesic functions are
    total over finite inputs. Callers taking untrusted input should use
    :meth:`checked`.

    Examples
    --------
    >>> p = GeoPoint(48.8566, 2.3522)
    >>> p.as_tuple()
    (48.8566, 2.3522)
    """
    latitude: float
    longitude: float

    @classmethod
    def checked(cls, latitude: float, longitude: float) -> 'GeoPoint':
        """Create a point, rejecting out-of-range coordinates.

        Raises
        ------
        ValueError
            If latitude is outside [-90, 90] or longitude outside
            [-180, 180], or either is not finite.
        """
        point = cls(float(latitude), float(longitude))
        point.validate()
        return point

    def validate(self) -> None:
        """Raise ``ValueError`` unless both coordinates are in range."""
        if not (np.isfinite(self.latitude) and np.isfinite(self.longitude)):
            raise ValueError(f"Non-finite coordinate: {self}")
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(
                f"Latitude {self.latitude} out of range [-90, 90]. "
                f"Did you swap latitude and longitude?"
            )
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude {self.longitude} out of range [-180, 180]")

    def as_tuple(self) -> Tuple[float, float]:
        return self.latitude, self.longitude

    def __str__(self) -> str:
        return f"({self.latitude:.6f}, {self.longitude:.6f})"


@dataclass(frozen=True)
class CartesianPoint:
    """A point in the Earth-centred Cartesian frame.

    Attributes
    ----------
    x, y, z : float
        Coordinates in KILOMETRES. X points through (0°, 0°), Y through
        (0°, 90°E), Z through the North Pole.
    """
    x: float
    y: float
    z: float

    @classmethod
    def from_vector(cls, vector: NDArray[np.float64]) -> 'CartesianPoint':
        return cls(float(vector[0]), float(vector[1]), float(vector[2]))

    def to_vector(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def norm(self) -> float:
        """Distance from the Earth's centre in km."""
        return float(np.sqrt(self.x**2 + self.y**2 + self.z**2))


@dataclass(frozen=True)
class RangeMeasurement:
    """A satellite position paired with its measured arc distance to the target.

    Attributes
    ----------
    position : GeoPoint
        Where the satellite sits.
    arc_distance_km : float
        Great-circle distance from the satellite to the target in km.
    """
    position: GeoPoint
    arc_distance_km: ArcDistanceKm


class TrilaterationStatus(Enum):
    """Tag of a :class:`~geospatial.trilateration.TrilaterationOutcome`."""
    RESOLVED = "resolved"
    NO_INTERSECTION = "no_intersection"
    DEGENERATE_GEOMETRY = "degenerate_geometry"


@dataclass(frozen=True)
class PositionFix:
    """A located position together with its error against the true target.

    Attributes
    ----------
    point : GeoPoint
        The calculated position.
    accuracy_km : float, optional
        Great-circle distance from ``point`` to the true target in km,
        None when the target is unknown.
    """
    point: GeoPoint
    accuracy_km: Optional[float] = None
