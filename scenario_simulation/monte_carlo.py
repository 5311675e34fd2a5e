"""
Monte Carlo Simulation of Range Noise.

This module estimates how measurement noise on the three ranges
propagates into the trilaterated position.

Purpose
-------
A single noise-free exercise recovers the target exactly. Real ranges are
noisy, and the solver reacts to noise in two ways:
1. The fix moves away from the target (error grows with noise and with
   poor satellite geometry).
2. The spheres stop intersecting at all (NO_INTERSECTION), because the
   noisy ranges are mutually inconsistent.

Repeating the exercise with perturbed ranges measures both effects.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import numpy as np
from numpy.typing import NDArray

from common.logging_config import get_logger, AuditLogger
from common.units import to_kilometers
from common.types import GeoPoint, RangeMeasurement, TrilaterationStatus
from geospatial.distance_calculations import haversine_distance
from geospatial.trilateration import select_candidate, trilaterate_measurements

logger = get_logger(__name__)


@dataclass
class MonteCarloConfig:
    """Configuration for range-noise sampling.

    Attributes
    ----------
    num_samples : int
        Number of Monte Carlo samples.
    range_std_km : float
        Standard deviation of the Gaussian noise on each range, km,
        or any length pint understands.
    random_seed : Optional[int]
        Random seed for reproducibility.
    """
    num_samples: int = 100
    range_std_km: float = 0.5
    random_seed: Optional[int] = None

    def __post_init__(self):
        self.range_std_km = to_kilometers(self.range_std_km)
        if self.num_samples < 1:
            raise ValueError("num_samples must be at least 1")
        if self.range_std_km < 0:
            raise ValueError("range_std_km must be non-negative")


@dataclass
class EnsembleStats:
    """Statistics of fix errors over the resolved samples.

    Attributes
    ----------
    mean : float
        Mean fix error in km.
    std : float
        Standard deviation of the fix error in km.
    percentiles : Dict[int, float]
        10th, 50th and 90th percentile errors in km.
    samples : ndarray, optional
        Raw errors, retained for small ensembles.
    convergence_diagnostic : float
        Relative standard error of the mean.
    """
    mean: float
    std: float
    percentiles: Dict[int, float]
    samples: Optional[NDArray[np.float64]] = None
    convergence_diagnostic: float = 0.0


@dataclass
class MonteCarloResult:
    """Outcome counts and error statistics of a Monte Carlo run."""
    num_samples: int
    status_counts: Dict[TrilaterationStatus, int] = field(default_factory=dict)
    error_stats: Optional[EnsembleStats] = None
    fixes: List[GeoPoint] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        return self.status_counts.get(TrilaterationStatus.RESOLVED, 0) / self.num_samples


class MonteCarloSimulator:
    """Monte Carlo simulator for trilateration under range noise."""

    def __init__(self, config: MonteCarloConfig):
        """Initialize Monte Carlo simulator.

        Parameters
        ----------
        config : MonteCarloConfig
            Sampling configuration.
        """
        self.config = config
        self.rng = np.random.default_rng(config.random_seed)
        self._logger = get_logger("MonteCarloSimulator")

    def perturb_ranges(self, ranges_km: Sequence[float]) -> NDArray[np.float64]:
        """Add Gaussian noise to each range, clipped at zero."""
        ranges = np.asarray(ranges_km, dtype=np.float64)
        noise = self.rng.normal(0.0, self.config.range_std_km, size=ranges.shape)
        return np.maximum(ranges + noise, 0.0)

    def run_simulation(
        self,
        satellites: Sequence[GeoPoint],
        target: GeoPoint,
        prior: Optional[GeoPoint] = None
    ) -> MonteCarloResult:
        """Trilaterate the target repeatedly from noisy ranges.

        Parameters
        ----------
        satellites : sequence of GeoPoint
            Exactly three satellite positions.
        target : GeoPoint
            The true position.
        prior : GeoPoint, optional
            Rough position for choosing between the two candidates.

        Returns
        -------
        MonteCarloResult
            Status counts, resolved fixes and their error statistics.

        Raises
        ------
        ValueError
            If there are not exactly three satellites.
        RuntimeError
            If no sample could be resolved.
        """
        if len(satellites) != 3:
            raise ValueError(f"Exactly three satellites required, got {len(satellites)}")

        self._logger.info(
            f"Running Monte Carlo with {self.config.num_samples} samples "
            f"(range std {self.config.range_std_km} km)"
        )

        true_ranges = [haversine_distance(sat, target) for sat in satellites]
        audit = AuditLogger()

        result = MonteCarloResult(
            num_samples=self.config.num_samples,
            status_counts={status: 0 for status in TrilaterationStatus},
        )
        errors = []

        for sample_idx in range(self.config.num_samples):
            noisy = self.perturb_ranges(true_ranges)
            measurements = [
                RangeMeasurement(sat, float(r)) for sat, r in zip(satellites, noisy)
            ]
            outcome = trilaterate_measurements(measurements)
            result.status_counts[outcome.status] += 1

            if not outcome.resolved:
                if audit.current_run is not None:
                    audit.log_solver_failure(
                        status=outcome.status.value,
                        message=outcome.message,
                        context={"sample": sample_idx},
                    )
                continue

            fix = select_candidate(outcome, prior)
            result.fixes.append(fix)
            errors.append(haversine_distance(fix, target))

        if not errors:
            raise RuntimeError("All Monte Carlo samples failed")

        errors = np.array(errors)
        result.error_stats = EnsembleStats(
            mean=float(np.mean(errors)),
            std=float(np.std(errors)),
            percentiles={
                10: float(np.percentile(errors, 10)),
                50: float(np.percentile(errors, 50)),
                90: float(np.percentile(errors, 90)),
            },
            samples=errors if len(errors) < 1000 else None,
            convergence_diagnostic=self._compute_convergence(errors),
        )

        self._logger.info(
            f"Resolved {len(errors)}/{self.config.num_samples} samples, "
            f"median error {result.error_stats.percentiles[50]:.3f} km"
        )
        return result

    def _compute_convergence(self, samples: NDArray) -> float:
        """Relative standard error of the sample mean."""
        if len(samples) < 10:
            return float('inf')

        se = np.std(samples) / np.sqrt(len(samples))
        mean_abs = np.abs(np.mean(samples))

        if mean_abs < 1e-10:
            return 0.0

        return float(se / mean_abs)
