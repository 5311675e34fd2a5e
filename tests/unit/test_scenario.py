"""
Unit tests for scenario state transitions and end-to-end runs.
"""

import dataclasses

import pytest

from common.logging_config import AuditLogger
from common.types import GeoPoint, TrilaterationStatus
from common.units import Q_
from geospatial.distance_calculations import haversine_distance
from scenario_simulation.scenario import (
    DEFAULT_SATELLITES,
    BoundingBox,
    LocateMode,
    SimulationConfig,
    SimulationState,
    generate_random_point,
    run_scenario,
)


def _placed_state(satellites):
    state = SimulationState()
    for sat, position in zip(DEFAULT_SATELLITES, satellites):
        state = state.place_satellite(sat.id, position)
    return state


class TestBoundingBox:

    @pytest.mark.unit
    def test_rejects_inverted_latitudes(self):
        with pytest.raises(ValueError):
            BoundingBox(south=10.0, north=0.0, west=0.0, east=1.0)

    @pytest.mark.unit
    def test_rejects_inverted_longitudes(self):
        with pytest.raises(ValueError):
            BoundingBox(south=0.0, north=1.0, west=5.0, east=-5.0)

    @pytest.mark.unit
    def test_random_points_stay_inside(self, rng):
        box = BoundingBox(south=45.0, north=50.0, west=5.0, east=15.0)
        for _ in range(500):
            assert box.contains(generate_random_point(box, rng))

    @pytest.mark.unit
    def test_degenerate_box_yields_its_corner(self, rng):
        box = BoundingBox(south=12.0, north=12.0, west=-3.0, east=-3.0)
        assert generate_random_point(box, rng) == GeoPoint(12.0, -3.0)


class TestSimulationConfig:

    @pytest.mark.unit
    def test_defaults(self):
        config = SimulationConfig()
        assert config.mode is LocateMode.SOLVE
        assert config.range_noise_std_km == 0.0
        assert config.jitter_half_width_deg == pytest.approx(0.0025)

    @pytest.mark.unit
    def test_negative_noise_rejected(self):
        with pytest.raises(ValueError):
            SimulationConfig(range_noise_std_km=-0.1)

    @pytest.mark.unit
    @pytest.mark.parametrize("noise", ["250 m", Q_(0.25, 'km'), 0.25])
    def test_noise_with_units(self, noise):
        assert SimulationConfig(range_noise_std_km=noise).range_noise_std_km == pytest.approx(0.25)

    @pytest.mark.unit
    def test_noise_must_be_a_length(self):
        with pytest.raises(ValueError):
            SimulationConfig(range_noise_std_km="2 s")

    @pytest.mark.unit
    def test_negative_jitter_rejected(self):
        with pytest.raises(ValueError):
            SimulationConfig(jitter_half_width_deg=-1.0)

    @pytest.mark.unit
    def test_to_dict_is_plain(self):
        data = SimulationConfig(mode=LocateMode.JITTER).to_dict()
        assert data["mode"] == "jitter"
        assert data["bounds"]["south"] == -60.0


class TestSimulationState:

    @pytest.mark.unit
    def test_initial_state(self):
        state = SimulationState()
        assert [s.id for s in state.satellites] == ["sat1", "sat2", "sat3"]
        assert [s.color for s in state.satellites] == ["#ef4444", "#3b82f6", "#22c55e"]
        assert state.placed_satellites == ()
        assert not state.ready_to_measure
        assert state.fix is None

    @pytest.mark.unit
    def test_state_is_immutable(self):
        state = SimulationState()
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.target = GeoPoint(0.0, 0.0)

    @pytest.mark.unit
    def test_place_satellite_returns_new_state(self):
        state = SimulationState()
        placed = state.place_satellite("sat2", GeoPoint(1.0, 2.0))

        assert state.satellite("sat2").position is None
        assert placed.satellite("sat2").position == GeoPoint(1.0, 2.0)
        assert [s.id for s in placed.placed_satellites] == ["sat2"]

    @pytest.mark.unit
    def test_unknown_satellite(self):
        with pytest.raises(KeyError):
            SimulationState().place_satellite("sat4", GeoPoint(0.0, 0.0))

    @pytest.mark.unit
    def test_out_of_range_position(self):
        with pytest.raises(ValueError):
            SimulationState().place_satellite("sat1", GeoPoint(95.0, 0.0))

    @pytest.mark.unit
    def test_moving_a_satellite_clears_measurements(self, near_equator_satellites, near_equator_target):
        state = _placed_state(near_equator_satellites).set_target(near_equator_target)
        state = state.measure_distances().locate()
        assert state.fix is not None

        moved = state.place_satellite("sat1", GeoPoint(-1.0, 0.0))
        assert moved.distances == {}
        assert moved.fix is None
        assert moved.outcome is None

    @pytest.mark.unit
    def test_measure_without_target(self, near_equator_satellites):
        with pytest.raises(ValueError, match="target"):
            _placed_state(near_equator_satellites).measure_distances()

    @pytest.mark.unit
    def test_noise_requires_generator(self, near_equator_satellites, near_equator_target):
        state = _placed_state(near_equator_satellites).set_target(near_equator_target)
        with pytest.raises(ValueError):
            state.measure_distances(noise_std_km=0.5)

    @pytest.mark.unit
    def test_measured_distances_are_haversine(self, near_equator_satellites, near_equator_target):
        state = _placed_state(near_equator_satellites).set_target(near_equator_target).measure_distances()
        for sat in state.satellites:
            assert state.distances[sat.id] == haversine_distance(sat.position, near_equator_target)

    @pytest.mark.unit
    def test_noisy_distances_are_non_negative(self, rng):
        satellites = (GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0), GeoPoint(1.0, 0.0))
        state = _placed_state(satellites).set_target(GeoPoint(0.0, 0.0))
        for _ in range(50):
            noisy = state.measure_distances(rng, noise_std_km=5.0)
            assert all(d >= 0.0 for d in noisy.distances.values())

    @pytest.mark.unit
    def test_locate_requires_all_measurements(self, near_equator_target):
        state = SimulationState().place_satellite("sat1", GeoPoint(0.0, 0.0))
        state = state.set_target(near_equator_target).measure_distances()
        with pytest.raises(ValueError, match="has not been placed"):
            state.locate()

    @pytest.mark.unit
    def test_solve_mode_recovers_target(self, near_equator_satellites, near_equator_target):
        state = _placed_state(near_equator_satellites).set_target(near_equator_target)
        assert state.ready_to_measure

        located = state.measure_distances().locate(LocateMode.SOLVE)

        assert located.outcome.status is TrilaterationStatus.RESOLVED
        assert located.fix.accuracy_km < 1e-3
        assert located.fix.point.latitude == pytest.approx(0.3, abs=1e-3)
        assert located.fix.point.longitude == pytest.approx(0.3, abs=1e-3)

    @pytest.mark.unit
    def test_solve_mode_on_great_circle(self):
        satellites = (GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0), GeoPoint(0.0, 2.0))
        state = _placed_state(satellites).set_target(GeoPoint(0.5, 1.0)).measure_distances()

        located = state.locate(LocateMode.SOLVE)

        assert located.fix is None
        assert located.outcome.status is TrilaterationStatus.DEGENERATE_GEOMETRY

    @pytest.mark.unit
    def test_jitter_mode(self, rng, european_satellites):
        target = GeoPoint(48.1351, 11.5820)
        state = _placed_state(european_satellites).set_target(target)

        located = state.locate(LocateMode.JITTER, rng=rng)

        assert located.outcome is None
        assert abs(located.fix.point.latitude - target.latitude) <= 0.0025 + 1e-12
        assert abs(located.fix.point.longitude - target.longitude) <= 0.0025 + 1e-12
        assert located.fix.accuracy_km == pytest.approx(haversine_distance(located.fix.point, target))
        for sat in located.satellites:
            assert located.distances[sat.id] == pytest.approx(
                haversine_distance(sat.position, located.fix.point)
            )

    @pytest.mark.unit
    def test_jitter_mode_needs_inputs(self, european_satellites, rng):
        state = _placed_state(european_satellites)
        with pytest.raises(ValueError):
            state.locate(LocateMode.JITTER, rng=rng)
        with pytest.raises(ValueError):
            state.set_target(GeoPoint(48.0, 11.0)).locate(LocateMode.JITTER)

    @pytest.mark.unit
    def test_generate_target_respects_bounds(self, rng):
        box = BoundingBox(south=-10.0, north=10.0, west=100.0, east=120.0)
        state = SimulationState().generate_target(box, rng)
        assert box.contains(state.target)

    @pytest.mark.unit
    def test_reset(self, near_equator_satellites, near_equator_target):
        state = _placed_state(near_equator_satellites).set_target(near_equator_target)
        assert state.reset() == SimulationState()


class TestRunScenario:

    @pytest.mark.unit
    def test_solve_run_records_accuracy(self, near_equator_satellites, near_equator_target):
        state = run_scenario(near_equator_satellites, target=near_equator_target, run_id="test_scenario_solve")

        assert state.fix.accuracy_km < 1e-3
        summary = AuditLogger().get_run_summary("test_scenario_solve")
        assert summary["accuracy_checks_passed"] == 1
        assert summary["accuracy_checks_failed"] == 0
        assert summary["total_solver_failures"] == 0
        assert summary["end_time"] is not None

    @pytest.mark.unit
    def test_degenerate_run_records_failure(self):
        satellites = (GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0), GeoPoint(0.0, 2.0))
        state = run_scenario(satellites, target=GeoPoint(0.5, 1.0), run_id="test_scenario_degenerate")

        assert state.fix is None
        summary = AuditLogger().get_run_summary("test_scenario_degenerate")
        assert summary["failure_counts_by_status"] == {"degenerate_geometry": 1}
        assert summary["accuracy_checks_passed"] == 0

    @pytest.mark.unit
    def test_random_target_is_reproducible(self, european_satellites):
        config = SimulationConfig(bounds=BoundingBox(45.0, 50.0, 5.0, 15.0), random_seed=7)
        first = run_scenario(european_satellites, config=config, run_id="test_scenario_seed_a")
        second = run_scenario(european_satellites, config=config, run_id="test_scenario_seed_b")

        assert first.target == second.target
        assert config.bounds.contains(first.target)

    @pytest.mark.unit
    def test_jitter_run(self, european_satellites):
        config = SimulationConfig(mode=LocateMode.JITTER, random_seed=1)
        state = run_scenario(
            european_satellites, target=GeoPoint(48.1351, 11.5820), config=config, run_id="test_scenario_jitter"
        )
        assert state.outcome is None
        assert state.fix.accuracy_km < 1.0

    @pytest.mark.unit
    def test_wrong_satellite_count(self):
        with pytest.raises(ValueError):
            run_scenario((GeoPoint(0.0, 0.0), GeoPoint(1.0, 1.0)), target=GeoPoint(0.5, 0.5))
