"""
Physical constants and temperature conversions used throughout porebox.

To access the quantities, invoke pb.KEY.

"""

__all__ = [
    "GRAVITY_ACCELERATION",
    "CELSIUS_to_KELVIN",
    "KELVIN_to_CELSIUS",
]

GRAVITY_ACCELERATION = 9.80665
"""Standard gravity in m/s^2."""


def CELSIUS_to_KELVIN(celsius):
    return celsius + 273.15


def KELVIN_to_CELSIUS(kelvin):
    return kelvin - 273.15
