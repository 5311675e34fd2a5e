"""
Accuracy Metrics for Trilaterated Positions.

This module provides standard metrics for evaluating calculated positions
against their true targets.

Standard Metrics
----------------
- Fix Error: Great-circle distance between calculated and true position
- Aggregate Errors: mean, RMS, max and percentiles over many fixes
- Model Error: Difference between the spherical haversine distance and
  the WGS84 ellipsoidal geodesic, i.e. what the spherical model costs
"""

from dataclasses import dataclass
from typing import Sequence
import numpy as np
from numpy.typing import NDArray

from common.logging_config import get_logger
from common.types import GeoPoint
from geospatial.distance_calculations import (
    ellipsoidal_distance,
    haversine_distance,
    haversine_distance_batch,
)

logger = get_logger(__name__)


@dataclass
class FixErrorMetrics:
    """Position error metrics over a set of fixes.

    Attributes
    ----------
    count : int
        Number of fixes evaluated.
    mean_error_km : float
        Mean fix error in km.
    rms_error_km : float
        Root mean square fix error in km.
    max_error_km : float
        Largest fix error in km.
    p50_error_km : float
        Median fix error in km.
    p90_error_km : float
        90th percentile fix error in km.
    """
    count: int
    mean_error_km: float
    rms_error_km: float
    max_error_km: float
    p50_error_km: float
    p90_error_km: float


@dataclass
class ModelErrorMetrics:
    """Spherical versus ellipsoidal distance for one point pair.

    Attributes
    ----------
    spherical_km : float
        Haversine distance on the model sphere.
    ellipsoidal_km : float
        WGS84 geodesic distance.
    absolute_error_km : float
        spherical - ellipsoidal.
    relative_error : float
        absolute error / ellipsoidal distance (0 for coincident points).
    """
    spherical_km: float
    ellipsoidal_km: float
    absolute_error_km: float
    relative_error: float


def position_error_km(estimate: GeoPoint, truth: GeoPoint) -> float:
    """Great-circle distance from a calculated position to the true one."""
    return haversine_distance(estimate, truth)


def compute_fix_errors(
    estimated_lat: NDArray[np.float64],
    estimated_lon: NDArray[np.float64],
    true_lat: NDArray[np.float64],
    true_lon: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Compute fix errors for arrays of positions in degrees.

    Returns
    -------
    ndarray
        Errors in km.
    """
    return haversine_distance_batch(estimated_lat, estimated_lon, true_lat, true_lon)


def compute_fix_error_metrics(
    estimates: Sequence[GeoPoint],
    truths: Sequence[GeoPoint]
) -> FixErrorMetrics:
    """Aggregate fix errors over paired estimates and truths.

    Raises
    ------
    ValueError
        If the sequences are empty or differ in length.
    """
    if len(estimates) != len(truths):
        raise ValueError(
            f"Got {len(estimates)} estimates but {len(truths)} true positions"
        )
    if not estimates:
        raise ValueError("No fixes to evaluate")

    errors_km = compute_fix_errors(
        np.array([p.latitude for p in estimates]),
        np.array([p.longitude for p in estimates]),
        np.array([p.latitude for p in truths]),
        np.array([p.longitude for p in truths]),
    )

    return FixErrorMetrics(
        count=len(errors_km),
        mean_error_km=float(np.mean(errors_km)),
        rms_error_km=float(np.sqrt(np.mean(errors_km**2))),
        max_error_km=float(np.max(errors_km)),
        p50_error_km=float(np.percentile(errors_km, 50)),
        p90_error_km=float(np.percentile(errors_km, 90)),
    )


def spherical_model_error(point_a: GeoPoint, point_b: GeoPoint) -> ModelErrorMetrics:
    """Compare the spherical haversine distance with the WGS84 geodesic.

    Notes
    -----
    The sphere of radius 6371 km differs from the ellipsoid by up to
    about 0.5 %, depending on latitude and direction.
    """
    spherical = haversine_distance(point_a, point_b)
    ellipsoidal = ellipsoidal_distance(point_a, point_b)
    absolute = spherical - ellipsoidal
    relative = absolute / ellipsoidal if ellipsoidal > 0 else 0.0

    logger.debug(
        f"Spherical {spherical:.3f} km vs ellipsoidal {ellipsoidal:.3f} km "
        f"({relative:+.3%})"
    )

    return ModelErrorMetrics(
        spherical_km=spherical,
        ellipsoidal_km=ellipsoidal,
        absolute_error_km=absolute,
        relative_error=relative,
    )
