"""
Three-Sphere Trilateration on the Spherical Earth.

Given three satellites on the Earth's surface and the great-circle distance
from each of them to an unknown target, this module recovers the target.

Method
------
1. Satellites are converted to the Earth-centred Cartesian frame and the
   arc distances to chord distances, so each measurement defines a sphere
   (centre = satellite, radius = chord).
2. The three spheres are intersected analytically in a local orthonormal
   frame: ``ex`` points from P1 to P2, ``ey`` is the part of P3 - P1
   orthogonal to ``ex``, and ``ez = ex × ey``.
3. In that frame the target has coordinates

       x = (r1² − r2² + d²) / 2d
       y = (r1² − r3² + i² + j²) / 2j − (i / j)·x
       z² = r1² − x² − y²

   and the two candidates are ``P1 + x·ex + y·ey ± z·ez``.

Ambiguity
---------
Both candidates satisfy the three range equations; they are mirror images
across the plane of the satellites. Three ranges alone cannot tell them
apart. The target is also known to lie on the Earth sphere (an implicit
fourth constraint), and in general only one candidate does. This module
therefore returns both candidates and leaves the choice to
:func:`select_candidate`, which uses either a caller-supplied prior
position or the distance of each candidate from the Earth sphere.

When all three satellites lie on one great circle the plane of the
satellites passes through the Earth's centre, the mirror candidate lies on
the sphere too, and the ambiguity cannot be resolved. Such configurations
(satellites "in a straight line" on the map) are reported as degenerate.

This module is pure: no state, no I/O, no logging.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import EARTH_RADIUS_KM, GEOMETRY_TOLERANCE_KM
from common.types import (
    ArcDistanceKm,
    CartesianPoint,
    ChordDistanceKm,
    GeoPoint,
    RangeMeasurement,
    TrilaterationStatus,
)
from geospatial.coordinate_models import from_cartesian, to_cartesian
from geospatial.distance_calculations import arc_to_chord, haversine_distance


# Relative allowance for z² rounding below zero when the target lies in
# the plane of the satellites.
_Z_SQUARED_RELATIVE_EPS = 1e-12


class TrilaterationError(ValueError):
    """Base class for inputs from which no position can be derived."""

    status: TrilaterationStatus


class NoIntersectionError(TrilaterationError):
    """The three spheres have no common point.

    Raised when the discriminant z² is negative: the ranges are
    inconsistent with each other (measurement noise, or radii too small
    for the satellite spacing).
    """

    status = TrilaterationStatus.NO_INTERSECTION

    def __init__(self, z_squared: float):
        self.z_squared = z_squared
        super().__init__(
            f"Spheres do not intersect (z² = {z_squared:.6g} km² < 0)"
        )


class DegenerateGeometryError(TrilaterationError):
    """The satellites do not span a usable local frame.

    Attributes
    ----------
    reason : str
        One of 'coincident', 'collinear' or 'great_circle'.
    """

    status = TrilaterationStatus.DEGENERATE_GEOMETRY

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message)


@dataclass(frozen=True)
class LocalFrame:
    """Orthonormal frame anchored at the first sphere centre.

    Attributes
    ----------
    origin : ndarray
        P1 in the Earth-centred frame, km.
    ex, ey, ez : ndarray
        Right-handed orthonormal basis.
    d : float
        |P2 − P1| in km.
    i : float
        Projection of P3 − P1 onto ``ex``, km.
    j : float
        Projection of P3 − P1 onto ``ey``, km.
    """
    origin: NDArray[np.float64] = field(repr=False)
    ex: NDArray[np.float64] = field(repr=False)
    ey: NDArray[np.float64] = field(repr=False)
    ez: NDArray[np.float64] = field(repr=False)
    d: float
    i: float
    j: float

    def to_global(self, x: float, y: float, z: float) -> NDArray[np.float64]:
        """Map local frame coordinates to the Earth-centred frame."""
        return self.origin + x * self.ex + y * self.ey + z * self.ez

    def plane_offset_from_centre(self) -> float:
        """Distance from the Earth's centre to the plane of the three centres, km."""
        return float(abs(np.dot(self.origin, self.ez)))


def build_local_frame(
    p1: CartesianPoint,
    p2: CartesianPoint,
    p3: CartesianPoint,
    tolerance_km: float = GEOMETRY_TOLERANCE_KM
) -> LocalFrame:
    """Build the trilateration frame for three sphere centres.

    Raises
    ------
    DegenerateGeometryError
        If P1 and P2 coincide, or P3 lies on the line through P1 and P2,
        within ``tolerance_km``.
    """
    v1 = p1.to_vector()
    p2_minus_p1 = p2.to_vector() - v1
    p3_minus_p1 = p3.to_vector() - v1

    d = float(np.linalg.norm(p2_minus_p1))
    if d < tolerance_km:
        raise DegenerateGeometryError(
            "coincident",
            f"First and second centres coincide (separation {d:.3g} km)"
        )
    ex = p2_minus_p1 / d

    i = float(np.dot(ex, p3_minus_p1))
    orthogonal = p3_minus_p1 - i * ex
    j = float(np.linalg.norm(orthogonal))
    if j < tolerance_km:
        raise DegenerateGeometryError(
            "collinear",
            f"Centres are collinear (third centre {j:.3g} km off the baseline)"
        )
    ey = orthogonal / j
    ez = np.cross(ex, ey)

    return LocalFrame(origin=v1, ex=ex, ey=ey, ez=ez, d=d, i=i, j=j)


def _intersect_in_frame(
    frame: LocalFrame,
    r1: ChordDistanceKm,
    r2: ChordDistanceKm,
    r3: ChordDistanceKm
) -> Tuple[CartesianPoint, CartesianPoint, float]:
    d, i, j = frame.d, frame.i, frame.j

    x = (r1**2 - r2**2 + d**2) / (2 * d)
    y = (r1**2 - r3**2 + i**2 + j**2) / (2 * j) - (i / j) * x
    z_squared = r1**2 - x**2 - y**2

    if z_squared < 0:
        if z_squared < -_Z_SQUARED_RELATIVE_EPS * max(r1**2, 1.0):
            raise NoIntersectionError(float(z_squared))
        z_squared = 0.0

    z = np.sqrt(z_squared)

    upper = CartesianPoint.from_vector(frame.to_global(x, y, z))
    lower = CartesianPoint.from_vector(frame.to_global(x, y, -z))
    return upper, lower, float(z_squared)


def solve_sphere_intersection(
    p1: CartesianPoint,
    r1: ChordDistanceKm,
    p2: CartesianPoint,
    r2: ChordDistanceKm,
    p3: CartesianPoint,
    r3: ChordDistanceKm,
    tolerance_km: float = GEOMETRY_TOLERANCE_KM
) -> Tuple[CartesianPoint, CartesianPoint]:
    """Intersect three spheres given by Cartesian centres and chord radii.

    Parameters
    ----------
    p1, p2, p3 : CartesianPoint
        Sphere centres in km.
    r1, r2, r3 : ChordDistanceKm
        Sphere radii in km. These are straight-line distances; convert
        surface distances with :func:`arc_to_chord` first.
    tolerance_km : float
        Lengths below this make the local frame undefined.

    Returns
    -------
    Tuple[CartesianPoint, CartesianPoint]
        The ``+z`` and ``−z`` candidates, in that order. They coincide when
        the spheres touch in a single point.

    Raises
    ------
    DegenerateGeometryError
        If the centres are coincident or collinear.
    NoIntersectionError
        If the discriminant z² is negative by more than rounding allows,
        i.e. below ``-1e-12 · max(r1², 1)``. Smaller negative values are
        treated as z² = 0 (the spheres touch) and yield two equal candidates.
    """
    frame = build_local_frame(p1, p2, p3, tolerance_km)
    upper, lower, _ = _intersect_in_frame(frame, r1, r2, r3)
    return upper, lower


@dataclass(frozen=True)
class TrilaterationOutcome:
    """Tagged result of :func:`trilaterate`.

    Attributes
    ----------
    status : TrilaterationStatus
        RESOLVED, NO_INTERSECTION or DEGENERATE_GEOMETRY.
    candidates : tuple of GeoPoint
        The ``+z`` and ``−z`` solutions when resolved, empty otherwise.
    cartesian_candidates : tuple of CartesianPoint
        The same solutions in the Earth-centred frame.
    z_squared : float, optional
        The discriminant, when the frame could be built.
    message : str
        Reason for a failure; empty when resolved.
    error : TrilaterationError, optional
        The exception that caused the failure.
    """
    status: TrilaterationStatus
    candidates: Tuple[GeoPoint, ...] = ()
    cartesian_candidates: Tuple[CartesianPoint, ...] = ()
    z_squared: Optional[float] = None
    message: str = ""
    error: Optional[TrilaterationError] = field(default=None, compare=False, repr=False)

    @property
    def resolved(self) -> bool:
        return self.status is TrilaterationStatus.RESOLVED

    def unwrap(self, prior: Optional[GeoPoint] = None) -> GeoPoint:
        """Return the selected candidate or raise the failure.

        Raises
        ------
        NoIntersectionError, DegenerateGeometryError
            When the outcome is not resolved.
        """
        return select_candidate(self, prior)

    @classmethod
    def failed(cls, error: TrilaterationError) -> 'TrilaterationOutcome':
        return cls(
            status=error.status,
            z_squared=getattr(error, "z_squared", None),
            message=str(error),
            error=error,
        )


def select_candidate(
    outcome: TrilaterationOutcome,
    prior: Optional[GeoPoint] = None,
    radius_km: float = EARTH_RADIUS_KM
) -> GeoPoint:
    """Pick one of the two candidate solutions.

    Parameters
    ----------
    outcome : TrilaterationOutcome
        A resolved outcome.
    prior : GeoPoint, optional
        Rough position estimate. When given, the candidate with the
        smallest great-circle distance to it wins.
    radius_km : float
        Earth radius for the default rule.

    Returns
    -------
    GeoPoint
        The selected candidate.

    Notes
    -----
    Without a prior, the candidate whose distance from the Earth's centre
    is closest to ``radius_km`` wins, since the target is known to be on
    the surface. Ties go to the ``+z`` candidate.

    Raises
    ------
    TrilaterationError
        The stored failure when the outcome is not resolved.
    """
    if not outcome.resolved:
        if outcome.error is not None:
            raise outcome.error
        raise TrilaterationError(outcome.message or f"Outcome is {outcome.status.value}")

    if prior is not None:
        scores = [haversine_distance(prior, c, radius_km) for c in outcome.candidates]
    else:
        scores = [abs(c.norm - radius_km) for c in outcome.cartesian_candidates]

    return outcome.candidates[int(np.argmin(scores))]


def trilaterate(
    p1: GeoPoint,
    r1: ArcDistanceKm,
    p2: GeoPoint,
    r2: ArcDistanceKm,
    p3: GeoPoint,
    r3: ArcDistanceKm,
    radius_km: float = EARTH_RADIUS_KM,
    tolerance_km: float = GEOMETRY_TOLERANCE_KM
) -> TrilaterationOutcome:
    """Locate a surface point from three satellites and their arc distances to it.

    Parameters
    ----------
    p1, p2, p3 : GeoPoint
        Satellite positions in degrees.
    r1, r2, r3 : ArcDistanceKm
        Great-circle distances from each satellite to the target, in km,
        derived with the same radius as ``radius_km``.
    radius_km : float
        Radius of the spherical Earth model.
    tolerance_km : float
        Geometry tolerance for degeneracy checks.

    Returns
    -------
    TrilaterationOutcome
        RESOLVED with both candidates, NO_INTERSECTION when the ranges
        are inconsistent, DEGENERATE_GEOMETRY when the satellites are
        coincident, collinear, or on one great circle.

    Raises
    ------
    ValueError
        If any range is negative or not finite.

    Examples
    --------
    >>> sats = [GeoPoint(0, 0), GeoPoint(0, 1), GeoPoint(1, 0)]
    >>> target = GeoPoint(0.3, 0.3)
    >>> ranges = [haversine_distance(s, target) for s in sats]
    >>> outcome = trilaterate(sats[0], ranges[0], sats[1], ranges[1], sats[2], ranges[2])
    >>> fix = outcome.unwrap()
    """
    for arc in (r1, r2, r3):
        if not np.isfinite(arc) or arc < 0:
            raise ValueError(f"Range {arc} km is not a non-negative distance")

    c1 = to_cartesian(p1, radius_km)
    c2 = to_cartesian(p2, radius_km)
    c3 = to_cartesian(p3, radius_km)

    chord1 = arc_to_chord(r1, radius_km)
    chord2 = arc_to_chord(r2, radius_km)
    chord3 = arc_to_chord(r3, radius_km)

    try:
        frame = build_local_frame(c1, c2, c3, tolerance_km)
        offset = frame.plane_offset_from_centre()
        if offset < tolerance_km:
            raise DegenerateGeometryError(
                "great_circle",
                "Satellites lie on one great circle; the two solutions are "
                "mirror images on the surface and cannot be told apart"
            )
        upper, lower, z_squared = _intersect_in_frame(frame, chord1, chord2, chord3)
    except TrilaterationError as e:
        return TrilaterationOutcome.failed(e)

    return TrilaterationOutcome(
        status=TrilaterationStatus.RESOLVED,
        candidates=(from_cartesian(upper), from_cartesian(lower)),
        cartesian_candidates=(upper, lower),
        z_squared=z_squared,
    )


def trilaterate_measurements(
    measurements: Sequence[RangeMeasurement],
    radius_km: float = EARTH_RADIUS_KM
) -> TrilaterationOutcome:
    """Convenience wrapper over :func:`trilaterate` for three measurements.

    Raises
    ------
    ValueError
        If there are not exactly three measurements.
    """
    if len(measurements) != 3:
        raise ValueError(f"Exactly three range measurements required, got {len(measurements)}")
    m1, m2, m3 = measurements
    return trilaterate(
        m1.position, m1.arc_distance_km,
        m2.position, m2.arc_distance_km,
        m3.position, m3.arc_distance_km,
        radius_km=radius_km,
    )
