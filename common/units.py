"""
Unit Registry for the Trilateration Simulator.

This module provides a centralized unit system using the `pint` library.
The geodesic module works on bare floats in kilometres; quantities with
units enter only at the edges (command line, scenario configuration) and
are normalised to kilometres here before reaching any calculation.

Example Usage
-------------
>>> from common.units import ureg, Q_, to_kilometers
>>> to_kilometers(Q_(500, 'm'))
0.5
>>> to_kilometers("1500 m")
1.5
"""

from functools import wraps
from typing import Callable, Union
import inspect

import pint
from pint import UnitRegistry as PintUnitRegistry

# Create the global unit registry
ureg = PintUnitRegistry()

# Convenience alias for creating quantities
Q_ = ureg.Quantity

DistanceLike = Union[float, int, str, pint.Quantity]


def validate_units(expected_units: dict[str, str]):
    """Decorator to validate units of quantity arguments and return values.

    Parameters
    ----------
    expected_units : dict[str, str]
        Mapping from argument names to expected unit strings.
        Use 'return' key for return value validation.

    Examples
    --------
    >>> @validate_units({'distance': 'km', 'return': 'km'})
    ... def halve(distance):
    ...     return distance / 2
    """
    def decorator(func: Callable) -> Callable:
        sig = inspect.signature(func)

        @wraps(func)
        def wrapper(*args, **kwargs):
            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()

            for param_name, expected_unit in expected_units.items():
                if param_name == 'return':
                    continue

                if param_name in bound.arguments:
                    value = bound.arguments[param_name]
                    if isinstance(value, pint.Quantity):
                        try:
                            value.to(expected_unit)
                        except pint.DimensionalityError as e:
                            raise ValueError(
                                f"Parameter '{param_name}' has incompatible units. "
                                f"Expected {expected_unit}, got {value.units}"
                            ) from e

            result = func(*args, **kwargs)

            if 'return' in expected_units and isinstance(result, pint.Quantity):
                try:
                    result.to(expected_units['return'])
                except pint.DimensionalityError as e:
                    raise ValueError(
                        f"Return value has incompatible units. "
                        f"Expected {expected_units['return']}, got {result.units}"
                    ) from e

            return result
        return wrapper
    return decorator


@validate_units({'value': 'km'})
def to_kilometers(value: DistanceLike) -> float:
    """Normalise a distance to a float in kilometres.

    Parameters
    ----------
    value : float, int, str or pint.Quantity
        Bare numbers are taken as kilometres. Strings are parsed by pint
        (``"500 m"``, ``"3.2 km"``, ``"12 nmi"``); a string without a unit
        is kilometres too.

    Returns
    -------
    float
        The distance in km.

    Raises
    ------
    ValueError
        If the value does not have length dimensionality.
    """
    if isinstance(value, str):
        parsed = ureg.parse_expression(value)
        if not isinstance(parsed, pint.Quantity):
            return float(parsed)
        value = parsed
    if isinstance(value, pint.Quantity):
        if value.dimensionless:
            return float(value.magnitude)
        try:
            return float(value.to('km').magnitude)
        except pint.DimensionalityError as e:
            raise ValueError(f"Expected a length, got {value.units}") from e
    return float(value)
