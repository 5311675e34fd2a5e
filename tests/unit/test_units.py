"""
Unit tests for distance parsing with pint.
"""

import pytest

from common.units import Q_, to_kilometers, validate_units


class TestToKilometers:

    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [
        (12.5, 12.5),
        (3, 3.0),
        ("47.2", 47.2),
        ("1500 m", 1.5),
        ("2 km", 2.0),
        ("1 nmi", 1.852),
    ])
    def test_conversions(self, value, expected):
        assert to_kilometers(value) == pytest.approx(expected)

    @pytest.mark.unit
    def test_quantity(self):
        assert to_kilometers(Q_(500, 'm')) == pytest.approx(0.5)

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [Q_(5, 's'), "3 kg"])
    def test_non_length_rejected(self, value):
        with pytest.raises(ValueError):
            to_kilometers(value)


class TestValidateUnits:

    @pytest.mark.unit
    def test_decorator(self):
        @validate_units({'distance': 'km', 'return': 'km'})
        def halve(distance):
            return distance / 2

        assert halve(Q_(4.0, 'km')).magnitude == pytest.approx(2.0)
        with pytest.raises(ValueError, match="incompatible units"):
            halve(Q_(4.0, 'second'))
