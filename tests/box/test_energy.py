"""Tests of the isothermal and non-isothermal energy models."""

from __future__ import annotations

import numpy as np
import pytest

import porebox as pb


@pytest.fixture
def nonisothermal(cell_assembler):
    def _make(solution, **kwargs):
        return cell_assembler(solution, energy=pb.NonIsothermal(), **kwargs)

    return _make


def test_isothermal_model(cell_assembler):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]], params={"temperature": 300.0})
    assert assembler.num_equations == 2
    assert assembler.current_cache[0].temperature == 300.0
    assert assembler.compute_storage(0).size == 2
    assert assembler.compute_flux(0).size == 2


def test_heat_storage(nonisothermal, problem):
    assembler = nonisothermal([[1e5, 0.3, 300.0], [1e5, 0.3, 300.0]])
    assert assembler.num_equations == 3
    storage = assembler.compute_storage(0)

    celsius = pb.KELVIN_to_CELSIUS(300.0)
    p_n = 1e5 + 700.0
    u_w = 4000.0 * celsius - 1e5 / 1000.0
    u_n = 1000.0 * celsius - p_n / 1.2
    soil = problem.soil
    expected = 0.25 * (1000.0 * u_w * 0.7 + 1.2 * u_n * 0.3) + 0.75 * (
        soil.density * soil.specific_heat_capacity * 300.0
    )
    assert np.isclose(storage[pb.ENERGY_EQ], expected)


def test_heat_conduction(nonisothermal, problem):
    assembler = nonisothermal([[1e5, 0.3, 300.0], [1e5, 0.3, 290.0]])
    flux = assembler.compute_flux(0)
    # No pressure gradient, no advection.
    assert np.all(flux[[pb.W_COMP_EQ, pb.N_COMP_EQ]] == 0)
    # Heat flows from the warm vertex i to the cold vertex j.
    assert np.isclose(flux[pb.ENERGY_EQ], problem.soil.thermal_conductivity * 10.0)


def test_advective_heat_flux(nonisothermal):
    assembler = nonisothermal([[2e5, 0.3, 300.0], [1e5, 0.3, 300.0]])
    i = assembler.current_cache[0]
    q = assembler.darcy_flux(0)
    assert np.all(q > 0)
    expected = np.sum(q * i.density * i.mobility * i.enthalpy)
    flux = assembler.compute_flux(0)
    assert np.isclose(flux[pb.ENERGY_EQ], expected)


def test_temperature_dependence_of_jacobian(nonisothermal):
    """The energy balance depends on the temperature of both vertices."""
    assembler = nonisothermal([[1e5, 0.3, 300.0], [1e5, 0.3, 290.0]])
    jacobian = assembler.local_jacobian(dt=1.0)
    assert jacobian.shape == (6, 6)
    energy_rows = [pb.ENERGY_EQ, 3 + pb.ENERGY_EQ]
    temperature_cols = [pb.TEMPERATURE_INDEX, 3 + pb.TEMPERATURE_INDEX]
    assert np.all(jacobian[np.ix_(energy_rows, temperature_cols)] != 0)
