"""
Unit tests for great-circle and chord distances.
Pure functions, no mocking required.
"""

import math

import numpy as np
import pytest

from common.constants import EARTH_RADIUS_KM, PhysicalConstants
from common.types import GeoPoint
from geospatial.distance_calculations import (
    arc_to_chord,
    chord_to_arc,
    ellipsoidal_distance,
    haversine_distance,
    haversine_distance_batch,
)

KM_PER_DEGREE = PhysicalConstants.km_per_degree()
HALF_CIRCUMFERENCE = PhysicalConstants.max_arc_distance()


class TestHaversineDistance:
    """Tests for the haversine great-circle distance."""

    @pytest.mark.unit
    @pytest.mark.parametrize("point", [
        GeoPoint(0.0, 0.0),
        GeoPoint(51.5074, -0.1278),
        GeoPoint(-33.8688, 151.2093),
        GeoPoint(90.0, 0.0),
        GeoPoint(-90.0, 45.0),
    ])
    def test_distance_to_self_is_zero(self, point):
        assert haversine_distance(point, point) == 0.0

    @pytest.mark.unit
    def test_symmetry_on_random_points(self, rng):
        for _ in range(200):
            a = GeoPoint(rng.uniform(-90, 90), rng.uniform(-180, 180))
            b = GeoPoint(rng.uniform(-90, 90), rng.uniform(-180, 180))
            assert haversine_distance(a, b) == pytest.approx(haversine_distance(b, a), rel=1e-9)

    @pytest.mark.unit
    def test_bounded_by_half_circumference(self, rng):
        for _ in range(200):
            a = GeoPoint(rng.uniform(-90, 90), rng.uniform(-180, 180))
            b = GeoPoint(rng.uniform(-90, 90), rng.uniform(-180, 180))
            d = haversine_distance(a, b)
            assert 0.0 <= d <= HALF_CIRCUMFERENCE + 1e-9

    @pytest.mark.unit
    @pytest.mark.parametrize("a,b", [
        (GeoPoint(0.0, 0.0), GeoPoint(0.0, 180.0)),
        (GeoPoint(90.0, 0.0), GeoPoint(-90.0, 0.0)),
        (GeoPoint(45.0, 10.0), GeoPoint(-45.0, -170.0)),
    ])
    def test_antipodal_points(self, a, b):
        assert haversine_distance(a, b) == pytest.approx(HALF_CIRCUMFERENCE, rel=1e-7)

    @pytest.mark.unit
    def test_one_degree_along_equator(self):
        d = haversine_distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0))
        assert d == pytest.approx(KM_PER_DEGREE, rel=1e-12)

    @pytest.mark.unit
    def test_one_degree_along_meridian(self):
        d = haversine_distance(GeoPoint(10.0, 20.0), GeoPoint(11.0, 20.0))
        assert d == pytest.approx(KM_PER_DEGREE, rel=1e-9)

    @pytest.mark.unit
    def test_paris_to_london(self):
        d = haversine_distance(GeoPoint(48.8566, 2.3522), GeoPoint(51.5074, -0.1278))
        assert d == pytest.approx(343.5, abs=1.0)

    @pytest.mark.unit
    def test_out_of_range_input_is_not_rejected(self):
        d = haversine_distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 361.0))
        assert d == pytest.approx(KM_PER_DEGREE, rel=1e-9)

    @pytest.mark.unit
    def test_batch_matches_scalar(self, rng):
        lat1 = rng.uniform(-90, 90, 50)
        lon1 = rng.uniform(-180, 180, 50)
        lat2 = rng.uniform(-90, 90, 50)
        lon2 = rng.uniform(-180, 180, 50)

        batch = haversine_distance_batch(lat1, lon1, lat2, lon2)

        for k in range(50):
            expected = haversine_distance(GeoPoint(lat1[k], lon1[k]), GeoPoint(lat2[k], lon2[k]))
            assert batch[k] == pytest.approx(expected, rel=1e-12, abs=1e-9)

    @pytest.mark.unit
    def test_batch_broadcasts_one_to_many(self):
        lats = np.array([0.0, 1.0, 2.0])
        lons = np.zeros(3)
        d = haversine_distance_batch(0.0, 0.0, lats, lons)
        assert d.shape == (3,)
        assert d[0] == 0.0
        assert d[2] == pytest.approx(2 * KM_PER_DEGREE, rel=1e-9)


class TestArcToChord:
    """Tests for the surface-to-straight-line distance conversion."""

    @pytest.mark.unit
    def test_zero_arc(self):
        assert arc_to_chord(0.0) == 0.0

    @pytest.mark.unit
    def test_antipodal_arc_is_diameter(self):
        assert arc_to_chord(HALF_CIRCUMFERENCE) == pytest.approx(2 * EARTH_RADIUS_KM, rel=1e-12)

    @pytest.mark.unit
    def test_monotonic_on_valid_range(self):
        arcs = np.linspace(0.0, HALF_CIRCUMFERENCE, 2001)
        chords = np.array([arc_to_chord(a) for a in arcs])
        assert np.all(np.diff(chords) >= -1e-9)

    @pytest.mark.unit
    @pytest.mark.parametrize("arc", [0.001, 1.0, 100.0, 1000.0, 10000.0, 20000.0])
    def test_chord_never_exceeds_arc(self, arc):
        assert arc_to_chord(arc) <= arc + 1e-12

    @pytest.mark.unit
    def test_short_arcs_are_nearly_straight(self):
        assert arc_to_chord(0.01) == pytest.approx(0.01, rel=1e-9)

    @pytest.mark.unit
    def test_quarter_circumference(self):
        quarter = HALF_CIRCUMFERENCE / 2
        assert arc_to_chord(quarter) == pytest.approx(math.sqrt(2) * EARTH_RADIUS_KM, rel=1e-12)

    @pytest.mark.unit
    @pytest.mark.parametrize("arc", [0.0, 12.5, 470.0, 8000.0, HALF_CIRCUMFERENCE])
    def test_chord_to_arc_inverts(self, arc):
        assert chord_to_arc(arc_to_chord(arc)) == pytest.approx(arc, rel=1e-9, abs=1e-9)

    @pytest.mark.unit
    def test_chord_to_arc_clamps_past_diameter(self):
        assert chord_to_arc(2 * EARTH_RADIUS_KM + 1e-9) == pytest.approx(HALF_CIRCUMFERENCE)


class TestEllipsoidalDistance:
    """Tests for the WGS84 reference distance."""

    @pytest.mark.unit
    def test_one_degree_along_equator(self):
        d = ellipsoidal_distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0))
        assert d == pytest.approx(111.3195, abs=1e-3)

    @pytest.mark.unit
    def test_close_to_spherical_distance(self):
        a, b = GeoPoint(40.7128, -74.0060), GeoPoint(51.5074, -0.1278)
        spherical = haversine_distance(a, b)
        ellipsoidal = ellipsoidal_distance(a, b)
        assert abs(spherical - ellipsoidal) / ellipsoidal < 0.005
