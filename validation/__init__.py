"""
Validation Framework for the GPS Trilateration Simulator.

This module provides accuracy metrics and geometric consistency checks.
"""

from validation.consistency import (
    GeometryConsistencyChecker,
    ValidationResult,
)

from validation.metrics import (
    FixErrorMetrics,
    ModelErrorMetrics,
    position_error_km,
    compute_fix_errors,
    compute_fix_error_metrics,
    spherical_model_error,
)

__all__ = [
    "GeometryConsistencyChecker",
    "ValidationResult",
    "FixErrorMetrics",
    "ModelErrorMetrics",
    "position_error_km",
    "compute_fix_errors",
    "compute_fix_error_metrics",
    "spherical_model_error",
]
