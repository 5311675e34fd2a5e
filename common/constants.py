"""
Physical and Model Constants for the Trilateration Simulator.

This module provides the constants shared by every geodesic calculation,
with their uncertainty bounds and sources. All distances are in kilometres.

A single spherical Earth radius is used by the haversine distance, the
Cartesian transform and the arc-to-chord conversion. Mixing radii (for
instance the IUGG mean radius in one place and 6371 km in another) corrupts
trilateration results silently, so every caller must read the radius from
here.

References
----------
- WGS84 parameters: NIMA TR8350.2, Third Edition, 2000
- Mean Earth radius: Moritz, H. (2000). Geodetic Reference System 1980.
"""

from dataclasses import dataclass
from typing import Final
import numpy as np


@dataclass(frozen=True)
class Constant:
    """A constant with uncertainty and provenance.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    uncertainty : float
        The standard uncertainty (1-sigma) of the constant.
    unit : str
        The unit of the constant.
    source : str
        Reference for the constant value.
    description : str
        Human-readable description of the constant.
    """
    value: float
    uncertainty: float
    unit: str
    source: str
    description: str


class PhysicalConstants:
    """Registry of constants used throughout the system.

    Spherical Earth Model
    ---------------------
    The simulator works on a perfect sphere. The radius below is the
    only radius the geodesic module uses.

    WGS84 Ellipsoid
    ---------------
    Only used to quantify how far the spherical model is from the
    reference ellipsoid (see ``validation.metrics``).
    """

    # =========================================================================
    # Spherical Earth Model
    # =========================================================================

    EARTH_RADIUS: Final[Constant] = Constant(
        value=6371.0,
        uncertainty=0.0,  # Model constant, defined exactly
        unit="km",
        source="Rounded IUGG mean radius",
        description="Radius of the spherical Earth model used by all geodesic calculations"
    )

    # =========================================================================
    # WGS84 Ellipsoid Parameters
    # Reference: NIMA TR8350.2, Third Edition, 2000
    # =========================================================================

    WGS84_SEMI_MAJOR_AXIS: Final[Constant] = Constant(
        value=6378.137,
        uncertainty=0.0,  # Defined exactly
        unit="km",
        source="WGS84, NIMA TR8350.2",
        description="Semi-major axis (equatorial radius) of WGS84 ellipsoid"
    )

    WGS84_FLATTENING: Final[Constant] = Constant(
        value=1.0 / 298.257223563,
        uncertainty=0.0,  # Defined exactly
        unit="dimensionless",
        source="WGS84, NIMA TR8350.2",
        description="Flattening of WGS84 ellipsoid: f = (a - b) / a"
    )

    # =========================================================================
    # Numerical Tolerances
    # =========================================================================

    GEOMETRY_TOLERANCE: Final[Constant] = Constant(
        value=1e-6,
        uncertainty=0.0,
        unit="km",
        source="Solver convention",
        description=(
            "Below this length the local trilateration frame is undefined "
            "(coincident or collinear satellites, or satellites on one great circle)"
        )
    )

    # =========================================================================
    # Simulation Defaults
    # =========================================================================

    JITTER_HALF_WIDTH: Final[Constant] = Constant(
        value=0.0025,
        uncertainty=0.0,
        unit="degree",
        source="Interactive map convention: (random - 0.5) * 0.005",
        description="Half-width of the uniform jitter applied to the target in jitter mode"
    )

    @staticmethod
    def km_per_degree() -> float:
        """Length of one degree of arc on the model sphere.

        Returns
        -------
        float
            Kilometres per degree of great-circle arc (≈ 111.19 km).
        """
        return PhysicalConstants.EARTH_RADIUS.value * np.pi / 180.0

    @staticmethod
    def max_arc_distance() -> float:
        """Half the great-circle circumference, π·R, in km."""
        return np.pi * PhysicalConstants.EARTH_RADIUS.value


EARTH_RADIUS_KM: Final[float] = PhysicalConstants.EARTH_RADIUS.value
GEOMETRY_TOLERANCE_KM: Final[float] = PhysicalConstants.GEOMETRY_TOLERANCE.value
