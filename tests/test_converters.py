"""Tests for the structure converters."""

import logging

import numpy as np
import pytest
from ase import Atoms, units

from atoms_bridge import (
    AbstractSystem,
    Atom,
    Boundary,
    Species,
    convert,
    from_ase,
    to_ase,
)
from atoms_bridge.converters import detect_input_type
from atoms_bridge.errors import DimensionalityMismatchError, UnknownElementError


def _water(**kwargs):
    atoms = [
        Atom([0.0, 0.0, 0.0], Species(8), {'charge': -0.8, 'tag': 1}),
        Atom([0.757, 0.586, 0.0], Species(1), {'charge': 0.4, 'tag': 1}),
        Atom([-0.757, 0.586, 0.0], Species(1), {'charge': 0.4, 'tag': 2}),
    ]
    return AbstractSystem(
        atoms,
        cell=np.diag([10.0, 11.0, 12.0]),
        boundary_conditions=(True, True, False),
        **kwargs,
    )


def test_to_ase():
    """Test conversion to ASE Atoms."""
    atoms = to_ase(_water())

    assert isinstance(atoms, Atoms)
    assert atoms.get_chemical_symbols() == ['O', 'H', 'H']
    assert np.allclose(atoms.get_positions()[1], [0.757, 0.586, 0.0])
    assert np.allclose(atoms.get_cell(), np.diag([10.0, 11.0, 12.0]))
    assert atoms.get_pbc().tolist() == [True, True, False]
    assert np.allclose(atoms.get_initial_charges(), [-0.8, 0.4, 0.4])
    assert atoms.get_tags().tolist() == [1, 1, 2]
    assert 'masses' not in atoms.arrays


def test_roundtrip():
    """Test abstract -> ASE -> abstract round trip."""
    system = _water(properties={'name': 'water'})
    result = from_ase(to_ase(system))

    assert len(result) == len(system)
    assert result.atomic_numbers == system.atomic_numbers
    assert np.allclose(result.positions, system.positions)
    assert np.allclose(result.cell, system.cell)
    assert result.boundary_conditions == system.boundary_conditions
    assert result.properties['name'] == 'water'
    for before, after in zip(system, result):
        assert after.species == before.species
        assert after.species.mass is None
        assert after.properties['charge'] == pytest.approx(before.properties['charge'])
        assert after.properties['tag'] == before.properties['tag']


def test_order_preserved():
    """Test that atom i maps to atom i in both directions."""
    numbers = [26, 8, 1, 12, 79, 6]
    atoms = Atoms(numbers=numbers, positions=np.arange(18.0).reshape(6, 3), cell=[20, 20, 20])

    system = from_ase(atoms)
    assert system.atomic_numbers == numbers
    assert np.allclose(system.positions, atoms.get_positions())

    back = to_ase(system)
    assert back.get_atomic_numbers().tolist() == numbers
    assert np.allclose(back.get_positions(), atoms.get_positions())


def test_velocity_roundtrip():
    """Test velocity <-> momenta with isotope masses."""
    atoms = [
        Atom([0.0, 0.0, 0.0], Species(1, mass=2.014), {'velocity': [0.01, 0.0, 0.0]}),
        Atom([1.0, 0.0, 0.0], Species(8), {'velocity': [0.0, -0.02, 0.0]}),
    ]
    system = AbstractSystem(atoms, cell=np.eye(3) * 5.0)

    ase_atoms = to_ase(system)
    assert np.allclose(ase_atoms.get_masses()[0], 2.014)
    assert np.allclose(ase_atoms.get_velocities() * units.fs, [[0.01, 0.0, 0.0], [0.0, -0.02, 0.0]])

    result = from_ase(ase_atoms)
    assert result[0].species.mass == pytest.approx(2.014)
    assert result[1].species.mass is None
    assert np.allclose(result[0].properties['velocity'], [0.01, 0.0, 0.0])
    assert np.allclose(result[1].properties['velocity'], [0.0, -0.02, 0.0])


def test_bohr_length_unit():
    """Test conversion of positions and cell from bohr."""
    atoms = [Atom([1.0, 2.0, 3.0], Species(1))]
    system = AbstractSystem(atoms, cell=np.eye(3) * 10.0, length_unit='bohr')

    ase_atoms = to_ase(system)
    assert np.allclose(ase_atoms.get_positions()[0], np.array([1.0, 2.0, 3.0]) * units.Bohr)
    assert np.allclose(ase_atoms.get_cell(), np.eye(3) * 10.0 * units.Bohr)

    result = from_ase(ase_atoms, length_unit='bohr')
    assert result.length_unit == 'bohr'
    assert np.allclose(result.positions, [[1.0, 2.0, 3.0]])
    assert np.allclose(result.cell, np.eye(3) * 10.0)


@pytest.mark.parametrize('dimension', [2, 4])
def test_dimensionality_guard(dimension):
    """Test that only 3-axis systems can be converted to ASE."""
    atoms = [Atom(np.zeros(dimension), Species(1))]
    system = AbstractSystem(atoms, cell=np.eye(dimension), boundary_conditions=[True] * dimension)

    with pytest.raises(DimensionalityMismatchError) as err:
        to_ase(system)
    assert err.value.dimension == dimension


def test_unknown_element():
    """Test that unknown atomic numbers propagate as UnknownElementError."""
    system = AbstractSystem([Atom([0.0, 0.0, 0.0], Species(0))])
    with pytest.raises(UnknownElementError):
        to_ase(system)

    with pytest.raises(UnknownElementError):
        from_ase(Atoms('X', positions=[[0, 0, 0]]))


def test_partial_property_not_exported():
    """Test total-or-nothing export of a property set on 9 of 10 atoms."""
    atoms = [
        Atom([float(i), 0.0, 0.0], Species(6), {'charge': 0.1} if i < 9 else {})
        for i in range(10)
    ]
    ase_atoms = to_ase(AbstractSystem(atoms, cell=np.eye(3) * 20.0))

    assert 'initial_charges' not in ase_atoms.arrays
    assert np.allclose(ase_atoms.get_initial_charges(), 0.0)


def test_unrecognized_property_dropped(caplog):
    """Test that unrecognized per-atom properties are dropped with a warning."""
    atoms = [Atom([0.0, 0.0, 0.0], Species(14), {'pseudopotential': 'hgh/lda/si-q4'})]
    with caplog.at_level(logging.WARNING, logger='atoms_bridge'):
        ase_atoms = to_ase(AbstractSystem(atoms, cell=np.eye(3) * 5.0))

    assert 'pseudopotential' not in ase_atoms.arrays
    assert 'pseudopotential' in caplog.text


def test_from_ase_extras():
    """Test that ASE extras and info are carried into the system."""
    atoms = Atoms(
        'FeO',
        positions=[[0, 0, 0], [2, 0, 0]],
        cell=[4, 4, 4],
        pbc=[True, False, True],
        magmoms=[3.0, 0.5],
    )
    atoms.set_array('forces_ref', np.array([[0.1, 0.0, 0.0], [-0.1, 0.0, 0.0]]))
    atoms.info['energy'] = -12.5

    system = from_ase(atoms)

    assert system.boundary_conditions == (
        Boundary.PERIODIC, Boundary.NON_PERIODIC, Boundary.PERIODIC,
    )
    assert system[0].properties['magnetic_moment'] == pytest.approx(3.0)
    assert np.allclose(system[1].properties['forces_ref'], [-0.1, 0.0, 0.0])
    assert system.properties['energy'] == -12.5


def test_noncollinear_magmoms_roundtrip():
    """Test vector magnetic moments."""
    atoms = Atoms('Fe2', positions=[[0, 0, 0], [1.4, 1.4, 1.4]], cell=[2.8] * 3, pbc=True,
                  magmoms=[[0, 0, 2.2], [0, 0, -2.2]])

    back = to_ase(from_ase(atoms))
    assert np.allclose(back.get_initial_magnetic_moments(), atoms.get_initial_magnetic_moments())


def test_inputs_not_mutated():
    """Test that neither conversion modifies its input."""
    atoms = Atoms('H2', positions=[[0, 0, 0], [0.74, 0, 0]], cell=[5, 5, 5])
    atoms.info['meta'] = {'source': 'test'}
    positions = atoms.get_positions().copy()

    system = from_ase(atoms)
    assert np.allclose(atoms.get_positions(), positions)
    assert set(atoms.arrays) == {'numbers', 'positions'}

    back = to_ase(system)
    back.info['meta']['source'] = 'changed'
    assert system.properties['meta']['source'] == 'test'
    assert atoms.info['meta']['source'] == 'test'


def test_repeated_calls_are_independent():
    """Test that repeated conversions produce fresh, equivalent objects."""
    system = _water()
    first = to_ase(system)
    second = to_ase(system)

    assert first is not second
    assert np.allclose(first.get_positions(), second.get_positions())
    first.positions[0] += 1.0
    assert not np.allclose(first.get_positions(), second.get_positions())


def test_empty_system():
    """Test conversion of a system with no atoms."""
    atoms = to_ase(AbstractSystem([], cell=np.eye(3) * 3.0))
    assert len(atoms) == 0

    system = from_ase(atoms)
    assert len(system) == 0
    assert np.allclose(system.cell, np.eye(3) * 3.0)


def test_detect_type():
    """Test detection of input models."""
    assert detect_input_type(Atoms('H')) == 'ase'
    assert detect_input_type(_water()) == 'abstract'
    assert detect_input_type({'positions': []}) == 'unknown'


def test_convert_dispatch():
    """Test that convert returns the other model."""
    assert isinstance(convert(_water()), Atoms)
    assert isinstance(convert(Atoms('H')), AbstractSystem)

    with pytest.raises(TypeError):
        convert({'positions': []})


def test_imported_velocities_are_read_only():
    """Test that a converted system cannot be changed through its arrays."""
    atoms = Atoms('H2', positions=[[0, 0, 0], [0.74, 0, 0]], cell=[5, 5, 5],
                  momenta=[[0.1, 0, 0], [-0.1, 0, 0]])
    system = from_ase(atoms)

    with pytest.raises(ValueError):
        system[0].properties['velocity'][0] = 99.0

    atoms.arrays['momenta'][0, 0] = 50.0
    assert np.allclose(system[0].properties['velocity'], [0.1 / atoms.get_masses()[0] * units.fs, 0, 0])


def test_extras_array_does_not_shadow_charges():
    """Test that an ASE array named 'charge' leaves converted charges intact."""
    atoms = Atoms('H2', positions=[[0, 0, 0], [0.74, 0, 0]], cell=[5, 5, 5],
                  charges=[0.3, -0.3])
    atoms.set_array('charge', np.array([9.0, 9.0]))

    system = from_ase(atoms)

    assert system[0].properties['charge'] == pytest.approx(0.3)
    assert system[1].properties['charge'] == pytest.approx(-0.3)
    assert np.allclose(to_ase(system).get_initial_charges(), [0.3, -0.3])
