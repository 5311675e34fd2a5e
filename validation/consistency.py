"""
Geometric Consistency Checks for Trilateration.

This module verifies that a solver result is consistent with its inputs.

Check Categories
----------------
1. Range residuals (the fix reproduces every measured distance)
2. Surface constraint (the fix lies on the model sphere)
3. Satellite geometry (the satellite triangle is well conditioned)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence
import numpy as np

from common.constants import EARTH_RADIUS_KM
from common.logging_config import get_logger
from common.types import CartesianPoint, GeoPoint
from geospatial.coordinate_models import surface_offset_km, to_cartesian_batch
from geospatial.distance_calculations import haversine_distance
from geospatial.trilateration import TrilaterationOutcome, select_candidate

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes
    ----------
    test_name : str
        Name of the check.
    passed : bool
        Whether the check passed.
    message : str
        Description of result.
    details : dict
        Additional details.
    """
    test_name: str
    passed: bool
    message: str
    details: Dict[str, Any]


class GeometryConsistencyChecker:
    """Checker for geometric consistency of trilateration results."""

    def __init__(
        self,
        residual_tolerance_km: float = 1e-3,
        min_satellite_angle_deg: float = 5.0,
        strict_mode: bool = False,
        log_violations: bool = True
    ):
        """Initialize geometry checker.

        Parameters
        ----------
        residual_tolerance_km : float
            Largest acceptable range residual and surface offset, km.
        min_satellite_angle_deg : float
            Smallest acceptable interior angle of the satellite triangle.
        strict_mode : bool
            If True, raise ValueError on the first failed check.
        log_violations : bool
            Whether to log failed checks.
        """
        self.residual_tolerance_km = residual_tolerance_km
        self.min_satellite_angle_deg = min_satellite_angle_deg
        self.strict_mode = strict_mode
        self.log_violations = log_violations
        self._logger = get_logger("GeometryConsistencyChecker")

    def check_all(
        self,
        satellites: Sequence[GeoPoint],
        ranges_km: Sequence[float],
        outcome: TrilaterationOutcome
    ) -> List[ValidationResult]:
        """Run every check on a resolved outcome.

        Raises
        ------
        TrilaterationError
            If the outcome is not resolved.
        """
        fix = select_candidate(outcome)
        selected = outcome.cartesian_candidates[outcome.candidates.index(fix)]

        return [
            self.check_satellite_geometry(satellites),
            self.check_range_residuals(satellites, ranges_km, fix),
            self.check_on_surface(selected),
        ]

    def check_range_residuals(
        self,
        satellites: Sequence[GeoPoint],
        ranges_km: Sequence[float],
        fix: GeoPoint
    ) -> ValidationResult:
        """Check that the fix reproduces every measured arc distance."""
        residuals = [
            abs(haversine_distance(sat, fix) - r)
            for sat, r in zip(satellites, ranges_km)
        ]
        worst = max(residuals)

        return self._finish(ValidationResult(
            test_name="range_residuals",
            passed=worst <= self.residual_tolerance_km,
            message=f"Range residual check: worst residual {worst:.6f} km",
            details={
                'residuals_km': residuals,
                'tolerance_km': self.residual_tolerance_km,
            }
        ))

    def check_on_surface(self, point: CartesianPoint) -> ValidationResult:
        """Check that a Cartesian solution lies on the model sphere."""
        offset = surface_offset_km(point, EARTH_RADIUS_KM)

        return self._finish(ValidationResult(
            test_name="surface_constraint",
            passed=abs(offset) <= self.residual_tolerance_km,
            message=f"Surface check: {offset:+.6f} km from the sphere",
            details={
                'offset_km': offset,
                'tolerance_km': self.residual_tolerance_km,
            }
        ))

    def check_satellite_geometry(self, satellites: Sequence[GeoPoint]) -> ValidationResult:
        """Check that no interior angle of the satellite triangle is too small.

        Nearly collinear satellites make the solution very sensitive to
        range noise even when the solver still succeeds.
        """
        vectors = to_cartesian_batch(
            np.array([s.latitude for s in satellites]),
            np.array([s.longitude for s in satellites]),
        )

        angles = []
        for k in range(3):
            apex = vectors[k]
            u = vectors[(k + 1) % 3] - apex
            v = vectors[(k + 2) % 3] - apex
            norm = np.linalg.norm(u) * np.linalg.norm(v)
            if norm == 0.0:
                angles.append(0.0)
                continue
            cos_angle = np.clip(np.dot(u, v) / norm, -1.0, 1.0)
            angles.append(float(np.degrees(np.arccos(cos_angle))))

        smallest = min(angles)

        return self._finish(ValidationResult(
            test_name="satellite_geometry",
            passed=smallest >= self.min_satellite_angle_deg,
            message=f"Satellite geometry check: smallest angle {smallest:.2f}°",
            details={
                'angles_deg': angles,
                'min_angle_deg': self.min_satellite_angle_deg,
            }
        ))

    def _finish(self, result: ValidationResult) -> ValidationResult:
        if not result.passed:
            if self.log_violations:
                self._logger.warning(f"{result.test_name} FAILED: {result.message}")
            if self.strict_mode:
                raise ValueError(result.message)
        return result
