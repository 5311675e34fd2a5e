"""
Scenario Simulation Module.

Runs simulated GPS exercises around the geodesic core: satellite
placement, hidden targets, range measurement, locating, and Monte Carlo
analysis of range noise. All state is held in explicit values owned by
the caller.
"""

from scenario_simulation.scenario import (
    LocateMode,
    BoundingBox,
    SimulationConfig,
    Satellite,
    DEFAULT_SATELLITES,
    SimulationState,
    generate_random_point,
    run_scenario,
)
from scenario_simulation.monte_carlo import (
    MonteCarloConfig,
    MonteCarloSimulator,
    MonteCarloResult,
    EnsembleStats,
)

__all__ = [
    "LocateMode",
    "BoundingBox",
    "SimulationConfig",
    "Satellite",
    "DEFAULT_SATELLITES",
    "SimulationState",
    "generate_random_point",
    "run_scenario",
    "MonteCarloConfig",
    "MonteCarloSimulator",
    "MonteCarloResult",
    "EnsembleStats",
]
