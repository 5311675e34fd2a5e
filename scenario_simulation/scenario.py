"""
Trilateration Scenarios.

This module holds the state of one simulated GPS exercise: three satellites
placed on the map, a hidden target, the distances measured from each
satellite to the target, and the position derived from those distances.

The state is an immutable value owned by the caller. Every operation
returns a new state; nothing here is global and the geodesic module never
sees it.

Locate Modes
------------
SOLVE
    Run the real three-sphere trilateration on the measured distances.
JITTER
    Place the fix at a uniformly perturbed copy of the target and re-derive
    the distances from the fix, so that range circles drawn on a map cross
    exactly at the reported position. This matches the interactive map
    display and bypasses the solver entirely.
"""

from dataclasses import dataclass, field, replace, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple
import numpy as np

from common.constants import PhysicalConstants
from common.logging_config import get_logger, AuditLogger
from common.units import to_kilometers
from common.types import GeoPoint, PositionFix, RangeMeasurement
from geospatial.distance_calculations import haversine_distance
from geospatial.trilateration import (
    TrilaterationOutcome,
    select_candidate,
    trilaterate_measurements,
)

logger = get_logger(__name__)


class LocateMode(Enum):
    """How the calculated position is produced."""
    SOLVE = "solve"
    JITTER = "jitter"


@dataclass(frozen=True)
class BoundingBox:
    """Latitude/longitude box in degrees, e.g. the visible map area.

    Raises
    ------
    ValueError
        If south > north or west > east.
    """
    south: float
    north: float
    west: float
    east: float

    def __post_init__(self):
        if self.south > self.north:
            raise ValueError(f"South edge {self.south} is north of north edge {self.north}")
        if self.west > self.east:
            raise ValueError(f"West edge {self.west} is east of east edge {self.east}")

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.south <= point.latitude <= self.north
            and self.west <= point.longitude <= self.east
        )


@dataclass
class SimulationConfig:
    """Configuration for a trilateration scenario.

    Attributes
    ----------
    bounds : BoundingBox
        Area in which random targets are drawn.
    mode : LocateMode
        SOLVE runs the solver, JITTER fakes the fix around the target.
    range_noise_std_km : float
        Standard deviation of Gaussian noise added to each measured range,
        km. Accepts a pint quantity or a string such as "250 m".
    jitter_half_width_deg : float
        Half-width of the uniform perturbation used in JITTER mode.
    accuracy_tolerance_km : float
        Fix error above which the audit trail records a failed check.
    random_seed : Optional[int]
        Seed for the scenario's random generator.
    """
    bounds: BoundingBox = field(default_factory=lambda: BoundingBox(-60.0, 60.0, -180.0, 180.0))
    mode: LocateMode = LocateMode.SOLVE
    range_noise_std_km: float = 0.0
    jitter_half_width_deg: float = PhysicalConstants.JITTER_HALF_WIDTH.value
    accuracy_tolerance_km: float = 1.0
    random_seed: Optional[int] = None

    def __post_init__(self):
        self.range_noise_std_km = to_kilometers(self.range_noise_std_km)
        if self.range_noise_std_km < 0:
            raise ValueError("Range noise standard deviation must be non-negative")
        if self.jitter_half_width_deg < 0:
            raise ValueError("Jitter half-width must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        return data


@dataclass(frozen=True)
class Satellite:
    """A satellite marker.

    Attributes
    ----------
    id : str
        Stable identifier ('sat1', 'sat2', 'sat3').
    name : str
        Display name.
    color : str
        Display colour as a hex string.
    position : GeoPoint, optional
        Where the satellite was placed; None until placed.
    """
    id: str
    name: str
    color: str
    position: Optional[GeoPoint] = None

    @property
    def placed(self) -> bool:
        return self.position is not None


DEFAULT_SATELLITES: Tuple[Satellite, ...] = (
    Satellite(id="sat1", name="Satellite 1", color="#ef4444"),  # Red
    Satellite(id="sat2", name="Satellite 2", color="#3b82f6"),  # Blue
    Satellite(id="sat3", name="Satellite 3", color="#22c55e"),  # Green
)


def generate_random_point(bounds: BoundingBox, rng: np.random.Generator) -> GeoPoint:
    """Draw a point uniformly in latitude/longitude inside a box.

    Parameters
    ----------
    bounds : BoundingBox
        Box in degrees.
    rng : numpy.random.Generator
        Random source owned by the caller.

    Returns
    -------
    GeoPoint
        A point inside ``bounds``.
    """
    latitude = bounds.south + rng.random() * (bounds.north - bounds.south)
    longitude = bounds.west + rng.random() * (bounds.east - bounds.west)
    return GeoPoint(float(latitude), float(longitude))


@dataclass(frozen=True)
class SimulationState:
    """Snapshot of one trilateration exercise.

    Attributes
    ----------
    satellites : tuple of Satellite
        The three satellite markers.
    target : GeoPoint, optional
        The hidden true position.
    distances : mapping of str to float
        Measured arc distance in km per satellite id.
    fix : PositionFix, optional
        The calculated position and its error.
    outcome : TrilaterationOutcome, optional
        Raw solver result of the last SOLVE.
    """
    satellites: Tuple[Satellite, ...] = DEFAULT_SATELLITES
    target: Optional[GeoPoint] = None
    distances: Mapping[str, float] = field(default_factory=dict)
    fix: Optional[PositionFix] = None
    outcome: Optional[TrilaterationOutcome] = None

    def satellite(self, satellite_id: str) -> Satellite:
        for sat in self.satellites:
            if sat.id == satellite_id:
                return sat
        raise KeyError(f"Unknown satellite {satellite_id!r}")

    @property
    def placed_satellites(self) -> Tuple[Satellite, ...]:
        return tuple(sat for sat in self.satellites if sat.placed)

    @property
    def ready_to_measure(self) -> bool:
        return self.target is not None and len(self.placed_satellites) == len(self.satellites)

    def place_satellite(self, satellite_id: str, position: GeoPoint) -> 'SimulationState':
        """Place or move a satellite. Earlier measurements become stale.

        Raises
        ------
        KeyError
            If the satellite id is unknown.
        ValueError
            If the position is out of range.
        """
        self.satellite(satellite_id)
        position.validate()
        satellites = tuple(
            replace(sat, position=position) if sat.id == satellite_id else sat
            for sat in self.satellites
        )
        return replace(self, satellites=satellites, distances={}, fix=None, outcome=None)

    def set_target(self, point: GeoPoint) -> 'SimulationState':
        """Set the hidden target, e.g. from the user's geolocation."""
        point.validate()
        return replace(self, target=point, distances={}, fix=None, outcome=None)

    def generate_target(self, bounds: BoundingBox, rng: np.random.Generator) -> 'SimulationState':
        """Set the hidden target to a random point inside ``bounds``."""
        return self.set_target(generate_random_point(bounds, rng))

    def measure_distances(
        self,
        rng: Optional[np.random.Generator] = None,
        noise_std_km: float = 0.0
    ) -> 'SimulationState':
        """Measure the arc distance from every placed satellite to the target.

        Parameters
        ----------
        rng : numpy.random.Generator, optional
            Required when ``noise_std_km`` is positive.
        noise_std_km : float
            Gaussian range noise; noisy ranges are clipped at zero.

        Raises
        ------
        ValueError
            If no target is set.
        """
        if self.target is None:
            raise ValueError("Cannot measure distances without a target")
        if noise_std_km > 0 and rng is None:
            raise ValueError("A random generator is required for noisy ranges")

        distances: Dict[str, float] = {}
        for sat in self.placed_satellites:
            d = haversine_distance(sat.position, self.target)
            if noise_std_km > 0:
                d = max(0.0, d + float(rng.normal(0.0, noise_std_km)))
            distances[sat.id] = d

        return replace(self, distances=distances, fix=None, outcome=None)

    def range_measurements(self) -> Tuple[RangeMeasurement, ...]:
        """Pair each placed satellite with its measured distance.

        Raises
        ------
        ValueError
            If any satellite is unplaced or unmeasured.
        """
        measurements = []
        for sat in self.satellites:
            if not sat.placed:
                raise ValueError(f"{sat.name} has not been placed")
            if sat.id not in self.distances:
                raise ValueError(f"No distance measured for {sat.name}")
            measurements.append(RangeMeasurement(sat.position, self.distances[sat.id]))
        return tuple(measurements)

    def locate(
        self,
        mode: LocateMode = LocateMode.SOLVE,
        rng: Optional[np.random.Generator] = None,
        prior: Optional[GeoPoint] = None,
        jitter_half_width_deg: float = PhysicalConstants.JITTER_HALF_WIDTH.value
    ) -> 'SimulationState':
        """Derive the calculated position.

        In SOLVE mode a failed trilateration leaves ``fix`` empty and the
        reason in ``outcome``; callers must inspect it.

        Raises
        ------
        ValueError
            If the inputs the mode needs are missing.
        """
        if mode is LocateMode.JITTER:
            return self._locate_jitter(rng, jitter_half_width_deg)

        outcome = trilaterate_measurements(self.range_measurements())
        if not outcome.resolved:
            logger.warning(f"Trilateration failed: {outcome.message}")
            return replace(self, fix=None, outcome=outcome)

        point = select_candidate(outcome, prior)
        accuracy = haversine_distance(point, self.target) if self.target is not None else None
        logger.debug(f"Trilaterated position {point} (accuracy {accuracy} km)")
        return replace(self, fix=PositionFix(point, accuracy), outcome=outcome)

    def _locate_jitter(
        self,
        rng: Optional[np.random.Generator],
        half_width_deg: float
    ) -> 'SimulationState':
        if self.target is None:
            raise ValueError("Jitter mode needs a target")
        if rng is None:
            raise ValueError("Jitter mode needs a random generator")

        point = GeoPoint(
            self.target.latitude + float(rng.uniform(-half_width_deg, half_width_deg)),
            self.target.longitude + float(rng.uniform(-half_width_deg, half_width_deg)),
        )

        # Ranges follow the fix so that range circles cross where the marker is
        distances = {
            sat.id: haversine_distance(sat.position, point)
            for sat in self.placed_satellites
        }
        accuracy = haversine_distance(point, self.target)
        return replace(
            self,
            distances=distances,
            fix=PositionFix(point, accuracy),
            outcome=None,
        )

    def reset(self) -> 'SimulationState':
        return SimulationState()


def run_scenario(
    satellite_positions: Tuple[GeoPoint, GeoPoint, GeoPoint],
    target: Optional[GeoPoint] = None,
    config: Optional[SimulationConfig] = None,
    rng: Optional[np.random.Generator] = None,
    prior: Optional[GeoPoint] = None,
    run_id: Optional[str] = None
) -> SimulationState:
    """Run one exercise end to end and record it in the audit trail.

    Parameters
    ----------
    satellite_positions : tuple of GeoPoint
        Positions for sat1, sat2 and sat3.
    target : GeoPoint, optional
        The true position; drawn from ``config.bounds`` when omitted.
    config : SimulationConfig, optional
        Scenario settings (defaults apply when omitted).
    rng : numpy.random.Generator, optional
        Random source; created from ``config.random_seed`` when omitted.
    prior : GeoPoint, optional
        Rough position used to choose between the two solver candidates.
    run_id : str, optional
        Audit identifier.

    Returns
    -------
    SimulationState
        Final state with distances, fix and solver outcome.
    """
    config = config or SimulationConfig()
    rng = rng if rng is not None else np.random.default_rng(config.random_seed)
    run_id = run_id or f"scenario_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}"

    if len(satellite_positions) != len(DEFAULT_SATELLITES):
        raise ValueError(
            f"Expected {len(DEFAULT_SATELLITES)} satellite positions, got {len(satellite_positions)}"
        )

    audit = AuditLogger()
    with audit.run_context(run_id, config.to_dict()) as run:
        state = SimulationState()
        for sat, position in zip(DEFAULT_SATELLITES, satellite_positions):
            state = state.place_satellite(sat.id, position)

        state = state.set_target(target) if target is not None else state.generate_target(config.bounds, rng)
        state = state.measure_distances(rng, config.range_noise_std_km)
        state = state.locate(
            config.mode,
            rng=rng,
            prior=prior,
            jitter_half_width_deg=config.jitter_half_width_deg,
        )

        run.input_metadata = {
            "satellites": {s.id: s.position.as_tuple() for s in state.satellites},
            "target": state.target.as_tuple(),
            "distances_km": dict(state.distances),
        }

        if state.outcome is not None and not state.outcome.resolved:
            audit.log_solver_failure(
                status=state.outcome.status.value,
                message=state.outcome.message,
                context={"run_id": run_id},
            )
        if state.fix is not None:
            audit.log_accuracy_check(
                check_name="fix_error",
                error_km=state.fix.accuracy_km,
                tolerance_km=config.accuracy_tolerance_km,
                context={"mode": config.mode.value},
            )
            run.output_metadata = {
                "fix": state.fix.point.as_tuple(),
                "accuracy_km": state.fix.accuracy_km,
            }

    return state
